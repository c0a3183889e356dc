"""
Relaxation time curve tau(T) handed from the decay fits to the mechanism fit.

Author: Relaxation Analysis Toolkit
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..io.samples import DomainError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class TauCurve:
    """
    Ordered (temperature, tau) pairs.

    Temperatures and taus must be finite and positive; the pairs are
    sorted by ascending temperature on construction.

    Attributes
    ----------
    temperature : ndarray
        Temperatures [K]
    tau : ndarray
        Relaxation times [s]
    tau_ci : ndarray or None
        95% CI half-widths of tau [s]
    """
    temperature: NDArray[np.float64]
    tau: NDArray[np.float64]
    tau_ci: Optional[NDArray[np.float64]] = None

    def __post_init__(self):
        temperature = np.asarray(self.temperature, dtype=float).ravel()
        tau = np.asarray(self.tau, dtype=float).ravel()
        if len(temperature) != len(tau):
            raise ValueError(
                f"temperature and tau differ in length: {len(temperature)} vs {len(tau)}"
            )
        if not np.all(np.isfinite(temperature)) or np.any(temperature <= 0):
            raise DomainError("TauCurve temperatures must be finite and positive")
        if not np.all(np.isfinite(tau)) or np.any(tau <= 0):
            raise DomainError("TauCurve relaxation times must be finite and positive")

        order = np.argsort(temperature, kind='stable')
        object.__setattr__(self, 'temperature', temperature[order])
        object.__setattr__(self, 'tau', tau[order])

        if self.tau_ci is not None:
            tau_ci = np.asarray(self.tau_ci, dtype=float).ravel()
            if len(tau_ci) != len(tau):
                raise ValueError("tau_ci must have the same length as tau")
            object.__setattr__(self, 'tau_ci', tau_ci[order])

    @classmethod
    def from_fits(
        cls,
        fits: pd.DataFrame,
        temp_range: Optional[Tuple[float, float]] = None
    ) -> 'TauCurve':
        """
        Build a curve from a decay fit table, dropping invalid rows.

        Parameters
        ----------
        fits : DataFrame
            Decay fit table with Temperature, tau and (optionally) tauCi
            and converged columns
        temp_range : tuple of float, optional
            Inclusive (low, high) restriction of the temperature
        """
        valid = np.isfinite(fits['tau'].to_numpy(dtype=float))
        if 'converged' in fits.columns:
            valid &= fits['converged'].to_numpy(dtype=bool)
        if temp_range is not None:
            low, high = temp_range
            temperature = fits['Temperature'].to_numpy(dtype=float)
            valid &= (temperature >= low) & (temperature <= high)

        n_dropped = int(np.sum(~valid))
        if n_dropped:
            logger.debug(f"TauCurve: dropped {n_dropped} invalid or out-of-range row(s)")

        rows = fits[valid]
        tau_ci = rows['tauCi'].to_numpy(dtype=float) if 'tauCi' in rows.columns else None
        return cls(
            temperature=rows['Temperature'].to_numpy(dtype=float),
            tau=rows['tau'].to_numpy(dtype=float),
            tau_ci=tau_ci,
        )

    def __len__(self) -> int:
        return len(self.temperature)

    @property
    def temp_range(self) -> Tuple[float, float]:
        """(min, max) temperature, (nan, nan) for an empty curve."""
        if len(self) == 0:
            return (np.nan, np.nan)
        return (float(self.temperature[0]), float(self.temperature[-1]))

    @property
    def inverse_temperature(self) -> NDArray[np.float64]:
        return 1.0 / self.temperature

    @property
    def log_tau(self) -> NDArray[np.float64]:
        return np.log(self.tau)

    def restrict(self, temp_range: Tuple[float, float]) -> 'TauCurve':
        """Return the sub-curve with low <= T <= high."""
        low, high = temp_range
        mask = (self.temperature >= low) & (self.temperature <= high)
        return TauCurve(
            temperature=self.temperature[mask],
            tau=self.tau[mask],
            tau_ci=None if self.tau_ci is None else self.tau_ci[mask],
        )

    def to_frame(self) -> pd.DataFrame:
        """Table with columns Temperature, tau[, tauCi]."""
        frame = pd.DataFrame({'Temperature': self.temperature, 'tau': self.tau})
        if self.tau_ci is not None:
            frame['tauCi'] = self.tau_ci
        return frame


__all__ = [
    'TauCurve',
]
