"""
Stretched exponential fits of isothermal moment decays.

Model
-----
    m(t) = mf + (m0 - mf) * exp(-(t / tau)**beta)

m0 and mf are fixed to the maximum and minimum moment of the group; only
tau and beta are fitted. The fit is done on the normalised curve
(m - mf) / (m0 - mf), which has the same optimum and the same
linearised confidence intervals but a residual scale independent of the
moment units.

Temperatures are fitted in ascending order and each fit is seeded with the
last converged (tau, beta), which keeps the solver on the right branch
across a temperature sweep.

Author: Relaxation Analysis Toolkit
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import least_squares, OptimizeWarning

from .config import (
    DATA_TYPE,
    DECAY_INITIAL_GUESS,
    DECAY_LOWER_BOUNDS,
    DECAY_UPPER_BOUNDS,
    DECAY_FTOL,
    DECAY_XTOL,
    DECAY_GTOL,
    DECAY_MAX_NFEV,
)
from .grouping import TemperatureGroup
from ..fitting.config import CONFIDENCE_LEVEL
from ..fitting.covariance import compute_covariance_matrix, compute_confidence_interval
from ..fitting.bounds import clip_to_bounds, find_params_at_bounds
from ..fitting.diagnostics import FitDiagnostics, compute_fit_metrics, assess_quality

logger = logging.getLogger(__name__)

DECAY_PARAM_NAMES = ('tau', 'beta')


def stretched_exponential(
    time: ArrayLike,
    tau: float,
    beta: float,
    m0: float,
    mf: float
) -> NDArray[np.float64]:
    """Evaluate m(t) = mf + (m0 - mf) * exp(-(t/tau)**beta)."""
    time = np.asarray(time, dtype=float)
    return mf + (m0 - mf) * np.exp(-(time / tau) ** beta)


def _decay_shape_jacobian(
    time: NDArray[np.float64],
    tau: float,
    beta: float
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Normalised decay exp(-(t/tau)**beta) and its derivatives.

        d/dtau  = e * beta * u**beta / tau
        d/dbeta = -e * u**beta * ln(u),   u = t / tau

    The u = 0 sample (t = 0) has zero derivative with respect to beta.
    """
    u = time / tau
    u_beta = u ** beta
    shape = np.exp(-u_beta)
    log_u = np.log(np.where(u > 0, u, 1.0))

    jac = np.empty((len(time), 2))
    jac[:, 0] = shape * beta * u_beta / tau
    jac[:, 1] = -shape * u_beta * log_u
    return shape, jac


@dataclass
class DecayFitResult:
    """
    Result of one stretched exponential fit.

    Attributes
    ----------
    temperature : float
        Rounded group temperature [K]
    tau : float
        Relaxation time [s] (NaN if not converged)
    tau_ci : float
        95% CI half-width of tau: tau minus the lower CI bound
    beta : float
        Stretching exponent (NaN if not converged)
    beta_ci : float
        95% CI half-width of beta
    converged : bool
        True if the solver reported convergence and the result is finite
    n_points : int
        Number of samples in the group
    m0, mf : float
        Fixed initial and final moment (group max / min)
    moment_calc : ndarray
        Model moment at the group's sample times (NaN if not converged)
    fit_error_rel : float
        RMS residual relative to m0 - mf [%]
    quality : str
        'excellent', 'good', 'acceptable', 'poor' or 'unknown'
    diagnostics : FitDiagnostics or None
        Solver and covariance diagnostics
    """
    temperature: float
    tau: float
    tau_ci: float
    beta: float
    beta_ci: float
    converged: bool
    n_points: int
    m0: float
    mf: float
    moment_calc: NDArray[np.float64] = field(repr=False, default_factory=lambda: np.array([]))
    fit_error_rel: float = np.nan
    quality: str = "unknown"
    diagnostics: Optional[FitDiagnostics] = field(repr=False, default=None)

    @property
    def params(self) -> NDArray[np.float64]:
        """Fitted (tau, beta)."""
        return np.array([self.tau, self.beta])

    @property
    def is_valid(self) -> bool:
        return self.converged and bool(np.all(np.isfinite(self.params)))

    def as_row(self) -> Dict[str, object]:
        """Row of the decay fit table."""
        return {
            'Temperature': self.temperature,
            'DataType': DATA_TYPE,
            'tau': self.tau,
            'tauCi': self.tau_ci,
            'beta': self.beta,
            'betaCi': self.beta_ci,
            'converged': self.converged,
            'n_points': self.n_points,
            'm0': self.m0,
            'mf': self.mf,
            'fit_error_rel': self.fit_error_rel,
        }


def _failed_result(
    temperature: float,
    time: NDArray[np.float64],
    m0: float,
    mf: float,
    reason: str,
    diagnostics: Optional[FitDiagnostics] = None
) -> DecayFitResult:
    logger.warning(f"Decay fit at {temperature:.2f} K failed: {reason}")
    return DecayFitResult(
        temperature=temperature,
        tau=np.nan,
        tau_ci=np.nan,
        beta=np.nan,
        beta_ci=np.nan,
        converged=False,
        n_points=len(time),
        m0=m0,
        mf=mf,
        moment_calc=np.full(len(time), np.nan),
        diagnostics=diagnostics,
    )


def fit_decay_group(
    time: ArrayLike,
    moment: ArrayLike,
    x0: Sequence[float] = DECAY_INITIAL_GUESS,
    temperature: float = np.nan,
    confidence_level: float = CONFIDENCE_LEVEL,
    max_nfev: int = DECAY_MAX_NFEV
) -> DecayFitResult:
    """
    Fit a stretched exponential to one isothermal decay.

    Parameters
    ----------
    time : array_like
        Normalised time [s] (earliest sample at 0)
    moment : array_like
        Moment values
    x0 : sequence of float, optional
        Seed (tau, beta), clipped into bounds (default: (10, 1))
    temperature : float, optional
        Group temperature, only used for labelling the result
    confidence_level : float, optional
        Confidence level for intervals (default: 0.95)
    max_nfev : int, optional
        Maximum number of function evaluations (default: 1000)

    Returns
    -------
    result : DecayFitResult
        Never raises for a non-converging fit: the result is marked
        not converged and carries NaN tau/beta instead.
    """
    time = np.asarray(time, dtype=float)
    moment = np.asarray(moment, dtype=float)
    if time.shape != moment.shape:
        raise ValueError(f"time and moment differ in shape: {time.shape} vs {moment.shape}")
    if len(time) == 0:
        raise ValueError("Cannot fit an empty decay curve")

    m0 = float(np.max(moment))
    mf = float(np.min(moment))
    span = m0 - mf
    if not span > 0:
        return _failed_result(temperature, time, m0, mf, "flat decay (max moment equals min moment)")

    y = (moment - mf) / span
    lower_bounds, upper_bounds = list(DECAY_LOWER_BOUNDS), list(DECAY_UPPER_BOUNDS)
    x_start, clipped = clip_to_bounds(x0, lower_bounds, upper_bounds)

    def residual(params):
        shape, _ = _decay_shape_jacobian(time, params[0], params[1])
        return shape - y

    def jacobian(params):
        _, jac = _decay_shape_jacobian(time, params[0], params[1])
        return jac

    diag_warnings = []
    if clipped:
        diag_warnings.append(f"Seed clipped into bounds: {x0} -> {tuple(x_start)}")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", OptimizeWarning)
        opt_result = least_squares(
            residual,
            x0=x_start,
            jac=jacobian,
            bounds=(lower_bounds, upper_bounds),
            method='trf',
            ftol=DECAY_FTOL,
            xtol=DECAY_XTOL,
            gtol=DECAY_GTOL,
            max_nfev=max_nfev,
            x_scale=np.maximum(np.abs(x_start), 1e-10)
        )
        for warning in caught:
            if issubclass(warning.category, OptimizeWarning):
                diag_warnings.append(f"Optimizer warning: {warning.message}")

    diagnostics = FitDiagnostics(
        optimizer_status=opt_result.status,
        optimizer_message=opt_result.message,
        optimizer_success=opt_result.success,
        n_function_evals=opt_result.nfev,
        warnings=diag_warnings,
    )

    if not opt_result.success:
        return _failed_result(temperature, time, m0, mf,
                              f"optimizer did not converge ({opt_result.message})", diagnostics)
    if not np.all(np.isfinite(opt_result.x)):
        return _failed_result(temperature, time, m0, mf, "non-finite parameters", diagnostics)

    tau, beta = opt_result.x

    cov_result = compute_covariance_matrix(opt_result.jac, opt_result.fun)
    ci_low, _ = compute_confidence_interval(
        opt_result.x, cov_result.stderr, len(time), confidence_level
    )
    diagnostics.condition_number = cov_result.condition_number
    diagnostics.covariance_rank = cov_result.rank
    diagnostics.covariance_warning = cov_result.warning_message

    names, messages = find_params_at_bounds(
        DECAY_PARAM_NAMES, opt_result.x, lower_bounds, upper_bounds
    )
    diagnostics.params_at_bounds = names
    diagnostics.bounds_warnings = messages
    for message in messages:
        logger.debug(f"{temperature:.2f} K: {message}")

    rms, _ = compute_fit_metrics(y, y + opt_result.fun)
    fit_error_rel = rms * 100

    return DecayFitResult(
        temperature=temperature,
        tau=float(tau),
        tau_ci=float(tau - ci_low[0]),
        beta=float(beta),
        beta_ci=float(beta - ci_low[1]),
        converged=True,
        n_points=len(time),
        m0=m0,
        mf=mf,
        moment_calc=stretched_exponential(time, tau, beta, m0, mf),
        fit_error_rel=fit_error_rel,
        quality=assess_quality(fit_error_rel),
        diagnostics=diagnostics,
    )


def fit_decays(
    groups: Dict[float, TemperatureGroup],
    x0: Sequence[float] = DECAY_INITIAL_GUESS,
    confidence_level: float = CONFIDENCE_LEVEL,
    max_nfev: int = DECAY_MAX_NFEV
) -> List[DecayFitResult]:
    """
    Fit every temperature group, carrying the solution forward as seed.

    Groups are processed in ascending temperature regardless of the dict
    order. A failed group does not update the seed, so the next group is
    seeded from the last successful fit.

    Parameters
    ----------
    groups : dict
        Rounded temperature -> TemperatureGroup
    x0 : sequence of float, optional
        Seed (tau, beta) for the lowest temperature (default: (10, 1))

    Returns
    -------
    results : list of DecayFitResult
        One result per group, ascending in temperature
    """
    seed = np.asarray(x0, dtype=float)
    results = []

    for temperature in sorted(groups):
        group = groups[temperature]
        result = fit_decay_group(
            group.time, group.moment,
            x0=seed,
            temperature=temperature,
            confidence_level=confidence_level,
            max_nfev=max_nfev
        )
        if result.is_valid:
            seed = result.params
        results.append(result)

    n_failed = sum(not r.is_valid for r in results)
    if n_failed:
        logger.warning(f"{n_failed} of {len(results)} decay fits did not converge")
    return results


def decay_results_to_frame(results: Sequence[DecayFitResult]) -> pd.DataFrame:
    """
    Tabulate decay fit results, one row per temperature.

    Columns: Temperature, DataType, tau, tauCi, beta, betaCi, converged,
    n_points, m0, mf, fit_error_rel.
    """
    columns = ['Temperature', 'DataType', 'tau', 'tauCi', 'beta', 'betaCi',
               'converged', 'n_points', 'm0', 'mf', 'fit_error_rel']
    fits = pd.DataFrame([r.as_row() for r in results], columns=columns)
    fits['converged'] = fits['converged'].astype(bool)
    return fits


__all__ = [
    'DECAY_PARAM_NAMES',
    'stretched_exponential',
    'DecayFitResult',
    'fit_decay_group',
    'fit_decays',
    'decay_results_to_frame',
]
