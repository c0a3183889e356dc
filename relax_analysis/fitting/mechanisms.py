"""
Relaxation mechanisms and their parameters.

Model
-----
    1/tau(T) = exp(-Ueff/T) / tau0  +  qtm  +  C * T**n
               \\___ Orbach ___/      QTM     Raman

Each parameter slot is tagged as seeded (free, with a start value), fixed
(held constant) or excluded. A mechanism whose parameters are excluded
contributes nothing and its parameters do not enter the fit at all.

Usage:
    from relax_analysis.fitting.mechanisms import MechanismParameters, seeded, fixed

    params = MechanismParameters().with_params(Ueff=seeded(80), tau0=seeded(1e-9))
    params = params.with_params(qtm=fixed(1e-3))

Internally the attempt time is fitted as ln(tau0): ln(tau) is linear in
ln(tau0), and tau0 spans many decades.

Author: Relaxation Analysis Toolkit
"""

import logging
from dataclasses import dataclass, replace, fields
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import logsumexp

from ..io.samples import DomainError

logger = logging.getLogger(__name__)

PARAMETER_NAMES = ('Ueff', 'tau0', 'qtm', 'C', 'n')

MECHANISM_PARAMETERS = {
    'orbach': ('Ueff', 'tau0'),
    'qtm': ('qtm',),
    'raman': ('C', 'n'),
}

# Parameters fitted in natural-log coordinates
LOG_PARAMETERS = ('tau0',)


class ParameterMode(Enum):
    """Role of a mechanism parameter in a fit."""
    SEEDED = 'seeded'
    FIXED = 'fixed'
    EXCLUDED = 'excluded'


@dataclass(frozen=True)
class MechanismParameter:
    """One parameter slot: mode plus value (NaN when excluded)."""
    mode: ParameterMode = ParameterMode.EXCLUDED
    value: float = np.nan

    def __post_init__(self):
        if self.mode is ParameterMode.EXCLUDED:
            object.__setattr__(self, 'value', np.nan)
        elif not np.isfinite(self.value):
            raise ValueError(f"A {self.mode.value} parameter needs a finite value, got {self.value}")

    @property
    def is_free(self) -> bool:
        return self.mode is ParameterMode.SEEDED

    @property
    def is_fixed(self) -> bool:
        return self.mode is ParameterMode.FIXED

    @property
    def is_excluded(self) -> bool:
        return self.mode is ParameterMode.EXCLUDED

    def __repr__(self) -> str:
        if self.is_excluded:
            return "excluded()"
        return f"{self.mode.value}({self.value:g})"


def seeded(value: float) -> MechanismParameter:
    """Free parameter starting at ``value``."""
    return MechanismParameter(ParameterMode.SEEDED, float(value))


def fixed(value: float) -> MechanismParameter:
    """Parameter held at ``value`` during the fit."""
    return MechanismParameter(ParameterMode.FIXED, float(value))


def excluded() -> MechanismParameter:
    """Parameter (and its mechanism) left out of the model."""
    return MechanismParameter()


def _as_parameter(value) -> MechanismParameter:
    """Accept a MechanismParameter, a number (seeded) or None/NaN (excluded)."""
    if isinstance(value, MechanismParameter):
        return value
    if value is None:
        return excluded()
    value = float(value)
    if np.isnan(value):
        return excluded()
    return seeded(value)


_EXCLUDED = MechanismParameter()


@dataclass(frozen=True)
class MechanismParameters:
    """
    Snapshot of the five mechanism parameter slots.

    All slots start excluded. Use ``with_params`` to obtain a modified copy.

    Attributes
    ----------
    Ueff : MechanismParameter
        Effective energy barrier [K]
    tau0 : MechanismParameter
        Orbach attempt time [s]
    qtm : MechanismParameter
        Quantum tunnelling rate [1/s]
    C : MechanismParameter
        Raman coefficient [1/(s K^n)]
    n : MechanismParameter
        Raman exponent [-]
    """
    Ueff: MechanismParameter = _EXCLUDED
    tau0: MechanismParameter = _EXCLUDED
    qtm: MechanismParameter = _EXCLUDED
    C: MechanismParameter = _EXCLUDED
    n: MechanismParameter = _EXCLUDED

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, _as_parameter(getattr(self, f.name)))

    @classmethod
    def from_values(cls, fixed_names: Tuple[str, ...] = (), **values) -> 'MechanismParameters':
        """
        Build from plain numbers: finite -> seeded, None/NaN -> excluded.

        Names listed in ``fixed_names`` are fixed instead of seeded.
        """
        unknown = set(values) - set(PARAMETER_NAMES)
        if unknown:
            raise ValueError(f"Unknown mechanism parameter(s): {sorted(unknown)}")
        slots = {}
        for name, value in values.items():
            slot = _as_parameter(value)
            if name in fixed_names and not slot.is_excluded:
                slot = fixed(slot.value)
            slots[name] = slot
        for name in fixed_names:
            if name not in slots or slots[name].is_excluded:
                raise ValueError(f"Cannot fix parameter '{name}' without a value")
        return cls(**slots)

    def with_params(self, **changes) -> 'MechanismParameters':
        """Return a copy with some slots replaced (numbers are seeded)."""
        unknown = set(changes) - set(PARAMETER_NAMES)
        if unknown:
            raise ValueError(f"Unknown mechanism parameter(s): {sorted(unknown)}")
        return replace(self, **{k: _as_parameter(v) for k, v in changes.items()})

    def __getitem__(self, name: str) -> MechanismParameter:
        if name not in PARAMETER_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def items(self) -> List[Tuple[str, MechanismParameter]]:
        return [(name, getattr(self, name)) for name in PARAMETER_NAMES]

    @property
    def mechanisms(self) -> Tuple[str, ...]:
        """Mechanisms included in the model (all their slots not excluded)."""
        return tuple(
            mech for mech, names in MECHANISM_PARAMETERS.items()
            if not any(self[n].is_excluded for n in names)
        )

    def validate(self) -> None:
        """
        Check that every mechanism is either fully included or fully excluded.

        Raises
        ------
        ValueError
            E.g. Ueff seeded while tau0 is excluded
        """
        for mech, names in MECHANISM_PARAMETERS.items():
            states = [self[n].is_excluded for n in names]
            if any(states) and not all(states):
                detail = ', '.join(f"{n}={self[n]!r}" for n in names)
                raise ValueError(
                    f"Mechanism '{mech}' is partially excluded ({detail}); "
                    f"exclude or include all of {names}"
                )
        if not self.mechanisms:
            raise ValueError("All mechanisms are excluded; nothing to model")


class MechanismModel:
    """
    Evaluate the combined relaxation rate for one parameter snapshot.

    Parameters are split into free (fitted), fixed and excluded. Free
    parameters are passed around as a vector in *internal* coordinates
    (``ln(tau0)`` instead of ``tau0``) in the order of ``free_names``.

    Parameters
    ----------
    params : MechanismParameters
        Parameter snapshot (validated on construction)
    """

    def __init__(self, params: MechanismParameters):
        params.validate()
        self.params = params
        self.mechanisms = params.mechanisms
        self.free_names = [name for name, p in params.items() if p.is_free]
        self.fixed_values = {name: p.value for name, p in params.items() if p.is_fixed}
        self.excluded_names = [name for name, p in params.items() if p.is_excluded]

    def __repr__(self) -> str:
        return f"MechanismModel(mechanisms={self.mechanisms}, free={self.free_names})"

    @property
    def n_free(self) -> int:
        return len(self.free_names)

    # -------------------------------------------------------------------------
    # Coordinates
    # -------------------------------------------------------------------------

    def initial_guess(self) -> NDArray[np.float64]:
        """Seeds of the free parameters (external coordinates)."""
        return np.array([self.params[name].value for name in self.free_names], dtype=float)

    def to_internal(self, values: ArrayLike) -> NDArray[np.float64]:
        """External -> internal coordinates for the free parameters."""
        internal = np.array(values, dtype=float)
        for i, name in enumerate(self.free_names):
            if name in LOG_PARAMETERS:
                with np.errstate(divide='ignore'):
                    internal[i] = np.log(internal[i])
        return internal

    def to_external(self, internal: ArrayLike) -> NDArray[np.float64]:
        """Internal -> external coordinates for the free parameters."""
        values = np.array(internal, dtype=float)
        for i, name in enumerate(self.free_names):
            if name in LOG_PARAMETERS:
                values[i] = np.exp(values[i])
        return values

    def values(self, free: ArrayLike) -> Dict[str, float]:
        """
        All parameter values for a free vector (external coordinates).

        Excluded parameters are NaN.
        """
        values = {name: np.nan for name in PARAMETER_NAMES}
        values.update(self.fixed_values)
        values.update(zip(self.free_names, np.asarray(free, dtype=float)))
        return values

    # -------------------------------------------------------------------------
    # Model evaluation
    # -------------------------------------------------------------------------

    def _log_terms(
        self,
        temperature: NDArray[np.float64],
        values: Dict[str, float]
    ) -> Dict[str, NDArray[np.float64]]:
        """ln of each included rate term."""
        terms = {}
        with np.errstate(divide='ignore'):
            if 'orbach' in self.mechanisms:
                terms['orbach'] = -values['Ueff'] / temperature - np.log(values['tau0'])
            if 'qtm' in self.mechanisms:
                terms['qtm'] = np.full_like(temperature, np.log(values['qtm']))
            if 'raman' in self.mechanisms:
                terms['raman'] = np.log(values['C']) + values['n'] * np.log(temperature)
        return terms

    def log_rate(self, temperature: ArrayLike, values: Dict[str, float]) -> NDArray[np.float64]:
        """ln(1/tau) summed over the included mechanisms."""
        temperature = np.asarray(temperature, dtype=float)
        terms = self._log_terms(temperature, values)
        return logsumexp(np.vstack(list(terms.values())), axis=0)

    def rate(self, temperature: ArrayLike, values: Dict[str, float]) -> NDArray[np.float64]:
        """Total relaxation rate 1/tau [1/s]."""
        return np.exp(self.log_rate(temperature, values))

    def mechanism_rates(
        self,
        temperature: ArrayLike,
        values: Dict[str, float]
    ) -> Dict[str, NDArray[np.float64]]:
        """Rate [1/s] of each included mechanism separately."""
        temperature = np.asarray(temperature, dtype=float)
        return {mech: np.exp(term) for mech, term in self._log_terms(temperature, values).items()}

    def log_tau(self, temperature: ArrayLike, internal: ArrayLike) -> NDArray[np.float64]:
        """ln(tau) for a free vector in internal coordinates."""
        return -self.log_rate(temperature, self.values(self.to_external(internal)))

    def log_tau_jacobian(self, temperature: ArrayLike, internal: ArrayLike) -> NDArray[np.float64]:
        """
        Analytic Jacobian of ln(tau) with respect to the internal free vector.

        With w_k = rate_k / rate (share of mechanism k):

            d ln tau / d Ueff     =  w_orbach / T
            d ln tau / d ln tau0  =  w_orbach
            d ln tau / d qtm      = -1 / rate
            d ln tau / d C        = -T**n / rate
            d ln tau / d n        = -w_raman * ln T
        """
        temperature = np.asarray(temperature, dtype=float)
        values = self.values(self.to_external(internal))
        terms = self._log_terms(temperature, values)
        log_rate = logsumexp(np.vstack(list(terms.values())), axis=0)

        jac = np.empty((len(temperature), self.n_free))
        for j, name in enumerate(self.free_names):
            if name == 'Ueff':
                jac[:, j] = np.exp(terms['orbach'] - log_rate) / temperature
            elif name == 'tau0':
                jac[:, j] = np.exp(terms['orbach'] - log_rate)
            elif name == 'qtm':
                jac[:, j] = -np.exp(-log_rate)
            elif name == 'C':
                jac[:, j] = -np.exp(values['n'] * np.log(temperature) - log_rate)
            elif name == 'n':
                jac[:, j] = -np.exp(terms['raman'] - log_rate) * np.log(temperature)
        return jac


def relaxation_rate(
    temperature: ArrayLike,
    Ueff: Optional[float] = None,
    tau0: Optional[float] = None,
    qtm: Optional[float] = None,
    C: Optional[float] = None,
    n: Optional[float] = None
) -> NDArray[np.float64]:
    """
    Evaluate 1/tau(T) for plain parameter values.

    None or NaN excludes a parameter (and its mechanism).

    Parameters
    ----------
    temperature : array_like
        Temperatures [K], must be positive

    Returns
    -------
    rate : ndarray
        Relaxation rate [1/s]

    Raises
    ------
    DomainError
        If any temperature is not positive and finite

    Examples
    --------
    >>> relaxation_rate([5.0, 10.0], Ueff=100, tau0=1e-10)
    array([2.06115362e+01, 4.53999298e+05])
    """
    temperature = np.asarray(temperature, dtype=float)
    if not np.all(np.isfinite(temperature)) or np.any(temperature <= 0):
        raise DomainError("Temperature must be finite and positive")

    params = MechanismParameters.from_values(Ueff=Ueff, tau0=tau0, qtm=qtm, C=C, n=n)
    model = MechanismModel(params)
    return model.rate(temperature, model.values(model.initial_guess()))


__all__ = [
    'PARAMETER_NAMES',
    'MECHANISM_PARAMETERS',
    'ParameterMode',
    'MechanismParameter',
    'MechanismParameters',
    'MechanismModel',
    'seeded',
    'fixed',
    'excluded',
    'relaxation_rate',
]
