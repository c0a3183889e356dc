"""
Covariance and confidence intervals for least-squares relaxation fits.

Linearised uncertainty from the Jacobian and residuals at the solution,
as used for both the stretched-exponential decay fits and the Arrhenius
(mechanism) fits.

Author: Relaxation Analysis Toolkit
"""

import numpy as np
import logging
from typing import Union, Tuple
from numpy.typing import NDArray
from dataclasses import dataclass
from scipy.stats import t

logger = logging.getLogger(__name__)


@dataclass
class CovarianceResult:
    """
    Result of covariance matrix computation.

    Attributes
    ----------
    cov : ndarray or None
        Covariance matrix of the free parameters (None if undefined)
    stderr : ndarray
        Standard errors of parameters (NaN if undefined)
    dof : int
        Residual degrees of freedom (n_data - n_params)
    condition_number : float
        Condition number of the Jacobian (high = ill-conditioned)
    rank : int
        Numerical rank of Jacobian
    is_well_conditioned : bool
        True if condition number < 1e10
    warning_message : str or None
        Warning message if any issues detected
    """
    cov: Union[NDArray[np.float64], None]
    stderr: NDArray[np.float64]
    dof: int
    condition_number: float
    rank: int
    is_well_conditioned: bool
    warning_message: Union[str, None]

    @property
    def is_degenerate(self) -> bool:
        """True when there are no residual degrees of freedom."""
        return self.dof < 1


def compute_covariance_matrix(
    jacobian: NDArray[np.float64],
    residuals: NDArray[np.float64],
    rcond: float = 1e-10
) -> CovarianceResult:
    """
    Compute the parameter covariance matrix using an SVD of the Jacobian.

    Mathematical background
    -----------------------
        RSS = r^T @ r
        s^2 = RSS / (n - p)
        cov(theta) = s^2 * (J^T @ J)^{-1}

    with (J^T J)^{-1} = V @ S^{-2} @ V^T from J = U @ S @ V^T. Singular
    values below ``rcond * max(S)`` are clamped to that threshold.

    Parameters
    ----------
    jacobian : ndarray of float, shape (n_residuals, n_params)
        Jacobian of the residual vector at the solution
    residuals : ndarray of float, shape (n_residuals,)
        Residual vector at the solution
    rcond : float, optional
        Cutoff for small singular values (default: 1e-10)

    Returns
    -------
    result : CovarianceResult
        With NaN standard errors when n_residuals <= n_params

    Notes
    -----
    Scaling the residuals by a constant (e.g. normalising a decay curve to
    [0, 1]) scales J by the same constant and leaves the covariance
    unchanged.
    """
    jacobian = np.atleast_2d(np.asarray(jacobian, dtype=float))
    residuals = np.asarray(residuals, dtype=float)
    n_residuals = len(residuals)
    n_params = jacobian.shape[1]
    dof = n_residuals - n_params

    if dof < 1:
        return CovarianceResult(
            cov=None,
            stderr=np.full(n_params, np.nan),
            dof=dof,
            condition_number=np.inf,
            rank=min(n_residuals, n_params),
            is_well_conditioned=False,
            warning_message=(
                f"Degenerate fit: {n_residuals} data points for {n_params} free "
                f"parameters, confidence intervals are undefined."
            )
        )

    residual_variance = (residuals @ residuals) / dof
    warning_message = None

    try:
        U, S, Vt = np.linalg.svd(jacobian, full_matrices=False)
    except np.linalg.LinAlgError as e:
        logger.error(f"SVD computation failed: {e}")
        return CovarianceResult(
            cov=None,
            stderr=np.full(n_params, np.nan),
            dof=dof,
            condition_number=np.inf,
            rank=0,
            is_well_conditioned=False,
            warning_message=f"SVD failed: {e}"
        )

    if S[0] == 0:
        return CovarianceResult(
            cov=None,
            stderr=np.full(n_params, np.inf),
            dof=dof,
            condition_number=np.inf,
            rank=0,
            is_well_conditioned=False,
            warning_message="Zero Jacobian: parameters have no effect on the model."
        )

    condition_number = S[0] / S[-1] if S[-1] > 0 else np.inf
    threshold = rcond * S[0]
    rank = int(np.sum(S > threshold))
    is_well_conditioned = condition_number < 1e10

    if not is_well_conditioned:
        warning_message = (
            f"Ill-conditioned Jacobian (cond={condition_number:.2e}). "
            f"Covariance estimates may be unreliable."
        )
    if rank < n_params:
        warning_message = (
            f"Rank-deficient Jacobian (rank={rank}/{n_params}). "
            f"Some parameters are not identifiable from data."
        )

    S_clamped = np.maximum(S, threshold)
    JtJ_inv = (Vt.T / S_clamped**2) @ Vt
    cov = residual_variance * JtJ_inv
    stderr = np.sqrt(np.abs(np.diag(cov)))

    return CovarianceResult(
        cov=cov,
        stderr=stderr,
        dof=dof,
        condition_number=condition_number,
        rank=rank,
        is_well_conditioned=is_well_conditioned,
        warning_message=warning_message
    )


def compute_confidence_interval(
    params_opt: NDArray[np.float64],
    params_stderr: NDArray[np.float64],
    n_data: int,
    confidence_level: float = 0.95
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Compute confidence intervals for parameters using t-distribution.

    Parameters
    ----------
    params_opt : ndarray
        Optimal parameters
    params_stderr : ndarray
        Standard errors of parameters (from covariance matrix)
    n_data : int
        Number of data points (for degrees of freedom)
    confidence_level : float, optional
        Confidence level (0.95 for 95% CI), default 0.95

    Returns
    -------
    ci_low : ndarray
        Lower bounds of confidence intervals (NaN when n_data <= n_params)
    ci_high : ndarray
        Upper bounds of confidence intervals (NaN when n_data <= n_params)

    Notes
    -----
    Linearised interval: Student-t quantile with (n_data - n_params)
    degrees of freedom times the standard error.
    """
    params_opt = np.asarray(params_opt, dtype=float)
    params_stderr = np.asarray(params_stderr, dtype=float)
    if not 0 < confidence_level < 1:
        raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")

    dof = n_data - len(params_opt)
    if dof < 1:
        nan = np.full_like(params_opt, np.nan)
        return nan, nan.copy()

    alpha = 1 - confidence_level
    t_critical = t.ppf(1 - alpha/2, dof)

    margin = t_critical * params_stderr
    return params_opt - margin, params_opt + margin


__all__ = [
    'CovarianceResult',
    'compute_covariance_matrix',
    'compute_confidence_interval',
]
