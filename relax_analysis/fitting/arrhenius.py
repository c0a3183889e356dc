"""
Least-squares fit of relaxation mechanisms to a tau(T) curve.

The residual is ln(tau_model) - ln(tau_data), so every temperature has the
same relative weight regardless of how many decades tau spans. Only seeded
parameters are fitted; fixed ones enter the model as constants and
excluded ones (with their mechanism) are dropped.

Usage:
    from relax_analysis.fitting import fit_arrhenius, MechanismParameters

    params = MechanismParameters.from_values(Ueff=100, tau0=1e-9)
    result = fit_arrhenius(curve, params)
    print(result.values['Ueff'], result.ci('Ueff'))

Author: Relaxation Analysis Toolkit
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import least_squares, OptimizeWarning

from .bounds import generate_bounds, clip_to_bounds, find_params_at_bounds
from .config import CONFIDENCE_LEVEL, ARRHENIUS_MAX_NFEV
from .covariance import compute_covariance_matrix, compute_confidence_interval
from .diagnostics import FitDiagnostics, compute_fit_metrics, assess_quality
from .mechanisms import PARAMETER_NAMES, LOG_PARAMETERS, MechanismModel, MechanismParameters
from .tau_curve import TauCurve

logger = logging.getLogger(__name__)


@dataclass
class ArrheniusFitResult:
    """
    Result of a relaxation mechanism fit.

    Attributes
    ----------
    params : MechanismParameters
        Parameter snapshot the fit was started from
    values : dict
        Final value of every parameter (seeds replaced by fitted values,
        fixed values unchanged, NaN for excluded)
    stderr : dict
        Standard errors (NaN for fixed, excluded or degenerate)
    ci_low, ci_high : dict
        Confidence interval bounds (NaN for fixed, excluded or degenerate)
    n_points : int
        Number of (T, tau) points used
    n_free : int
        Number of fitted parameters
    is_degenerate : bool
        True when n_points <= n_free (no intervals)
    temp_range : tuple of float
        (min, max) temperature of the fitted curve
    fit_error_rel : float
        RMS residual of ln(tau) [%]
    quality : str
        'excellent', 'good', 'acceptable' or 'poor'
    diagnostics : FitDiagnostics
    """
    params: MechanismParameters
    values: Dict[str, float]
    stderr: Dict[str, float]
    ci_low: Dict[str, float]
    ci_high: Dict[str, float]
    n_points: int
    n_free: int
    is_degenerate: bool
    temp_range: Tuple[float, float]
    fit_error_rel: float
    quality: str
    confidence_level: float = CONFIDENCE_LEVEL
    diagnostics: Optional[FitDiagnostics] = field(repr=False, default=None)

    @property
    def param_names(self) -> Tuple[str, ...]:
        return PARAMETER_NAMES

    @property
    def model(self) -> MechanismModel:
        return MechanismModel(self.params)

    @property
    def mechanisms(self) -> Tuple[str, ...]:
        return self.params.mechanisms

    def status(self, name: str) -> str:
        """'free', 'fixed' or 'excluded'."""
        slot = self.params[name]
        if slot.is_excluded:
            return 'excluded'
        return 'fixed' if slot.is_fixed else 'free'

    def is_free(self, name: str) -> bool:
        return self.status(name) == 'free'

    def value(self, name: str) -> float:
        return self.values[name]

    def ci(self, name: str) -> Tuple[float, float]:
        """Confidence interval (low, high) of one parameter."""
        return self.ci_low[name], self.ci_high[name]

    def predict_tau(self, temperature: ArrayLike) -> NDArray[np.float64]:
        """Model relaxation time [s] at the given temperatures."""
        return 1.0 / self.model.rate(temperature, self.values)

    @property
    def all_warnings(self) -> List[str]:
        if self.diagnostics is None:
            return []
        return self.diagnostics.all_warnings

    def to_frame(self) -> pd.DataFrame:
        """Parameter table: name, status, value, stderr, ci_low, ci_high."""
        rows = [
            {
                'parameter': name,
                'status': self.status(name),
                'value': self.values[name],
                'stderr': self.stderr[name],
                'ci_low': self.ci_low[name],
                'ci_high': self.ci_high[name],
            }
            for name in self.param_names
        ]
        return pd.DataFrame(rows)


def _log_parameter_ci(
    internal: NDArray[np.float64],
    ci_low: NDArray[np.float64],
    ci_high: NDArray[np.float64],
    stderr: NDArray[np.float64],
    free_names: List[str]
) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """
    Map intervals of log-fitted parameters back to linear scale.

    The interval of ln(tau0) maps to [exp(low), exp(high)], which is
    asymmetric around tau0; the standard error uses the delta method.
    """
    ci_low, ci_high, stderr = ci_low.copy(), ci_high.copy(), stderr.copy()
    for i, name in enumerate(free_names):
        if name in LOG_PARAMETERS:
            value = np.exp(internal[i])
            ci_low[i] = np.exp(ci_low[i])
            ci_high[i] = np.exp(ci_high[i])
            stderr[i] = value * stderr[i]
    return ci_low, ci_high, stderr


def fit_arrhenius(
    curve: TauCurve,
    params: MechanismParameters,
    confidence_level: float = CONFIDENCE_LEVEL,
    max_nfev: int = ARRHENIUS_MAX_NFEV
) -> ArrheniusFitResult:
    """
    Fit the included relaxation mechanisms to tau(T).

    Parameters
    ----------
    curve : TauCurve
        Relaxation times to fit
    params : MechanismParameters
        Seeded / fixed / excluded parameter snapshot
    confidence_level : float, optional
        Confidence level for the intervals (default: 0.95)
    max_nfev : int, optional
        Maximum number of function evaluations (default: 10000)

    Returns
    -------
    result : ArrheniusFitResult
        With NaN intervals when the curve has no more points than free
        parameters (degenerate fit)

    Raises
    ------
    ValueError
        If the curve is empty, no parameter is free, or a mechanism is only
        partially excluded
    RuntimeError
        If the optimizer fails
    """
    model = MechanismModel(params)

    if len(curve) == 0:
        raise ValueError("Cannot fit an empty tau(T) curve")
    if model.n_free == 0:
        raise ValueError("No free parameters: seed at least one mechanism parameter")

    temperature = curve.temperature
    log_tau_data = curve.log_tau
    free_names = model.free_names

    # Bounds in internal coordinates (ln tau0 is unbounded)
    lower_bounds, upper_bounds = generate_bounds(free_names)
    for i, name in enumerate(free_names):
        if name in LOG_PARAMETERS:
            lower_bounds[i], upper_bounds[i] = -np.inf, np.inf

    x0 = model.to_internal(model.initial_guess())
    x0, clipped_idx = clip_to_bounds(x0, lower_bounds, upper_bounds)

    diag_warnings = []
    for i in clipped_idx:
        diag_warnings.append(f"Seed of {free_names[i]} clipped into bounds")

    logger.debug(f"Mechanism fit: {model}, {len(curve)} points")

    def residual(internal):
        return model.log_tau(temperature, internal) - log_tau_data

    def jacobian(internal):
        return model.log_tau_jacobian(temperature, internal)

    x_scale = np.where(x0 != 0, np.abs(x0), 1.0)

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", OptimizeWarning)
            opt_result = least_squares(
                residual,
                x0=x0,
                jac=jacobian,
                bounds=(lower_bounds, upper_bounds),
                method='trf',
                max_nfev=max_nfev,
                x_scale=x_scale
            )
            for warning in caught:
                if issubclass(warning.category, OptimizeWarning):
                    diag_warnings.append(f"Optimizer warning: {warning.message}")
    except Exception as e:
        logger.error(f"Mechanism fit failed: {type(e).__name__}: {e}")
        raise RuntimeError(f"Mechanism fitting failed: {e}") from e

    if not opt_result.success:
        diag_warnings.append(f"Optimizer did not converge: {opt_result.message}")

    diagnostics = FitDiagnostics(
        optimizer_status=opt_result.status,
        optimizer_message=opt_result.message,
        optimizer_success=opt_result.success,
        n_function_evals=opt_result.nfev,
        warnings=diag_warnings,
    )

    internal = opt_result.x
    free_values = model.to_external(internal)

    cov_result = compute_covariance_matrix(opt_result.jac, opt_result.fun)
    ci_low, ci_high = compute_confidence_interval(
        internal, cov_result.stderr, len(curve), confidence_level
    )
    ci_low, ci_high, stderr = _log_parameter_ci(
        internal, ci_low, ci_high, cov_result.stderr, free_names
    )
    diagnostics.condition_number = cov_result.condition_number
    diagnostics.covariance_rank = cov_result.rank
    diagnostics.covariance_warning = cov_result.warning_message

    # ln(tau0) is unbounded, only linearly fitted parameters can sit at a bound
    linear_idx = [i for i, name in enumerate(free_names) if name not in LOG_PARAMETERS]
    linear_names = [free_names[i] for i in linear_idx]
    bound_lb, bound_ub = generate_bounds(linear_names)
    names, messages = find_params_at_bounds(
        linear_names, free_values[linear_idx], bound_lb, bound_ub
    )
    diagnostics.params_at_bounds = names
    diagnostics.bounds_warnings = messages

    nan_dict = {name: np.nan for name in PARAMETER_NAMES}
    stderr_dict, ci_low_dict, ci_high_dict = dict(nan_dict), dict(nan_dict), dict(nan_dict)
    for i, name in enumerate(free_names):
        stderr_dict[name] = float(stderr[i])
        ci_low_dict[name] = float(ci_low[i])
        ci_high_dict[name] = float(ci_high[i])

    values = {name: float(v) for name, v in model.values(free_values).items()}

    rms, _ = compute_fit_metrics(log_tau_data, log_tau_data + opt_result.fun)
    fit_error_rel = rms * 100

    return ArrheniusFitResult(
        params=params,
        values=values,
        stderr=stderr_dict,
        ci_low=ci_low_dict,
        ci_high=ci_high_dict,
        n_points=len(curve),
        n_free=model.n_free,
        is_degenerate=cov_result.is_degenerate,
        temp_range=curve.temp_range,
        fit_error_rel=fit_error_rel,
        quality=assess_quality(fit_error_rel),
        confidence_level=confidence_level,
        diagnostics=diagnostics,
    )


__all__ = [
    'ArrheniusFitResult',
    'fit_arrhenius',
]
