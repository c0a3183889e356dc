"""
Fit diagnostics and quality assessment for relaxation fits.

Provides the diagnostics container shared by the decay and mechanism
fitters, fit quality metrics and console reporting of result tables.

Author: Relaxation Analysis Toolkit
"""

import numpy as np
import pandas as pd
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from numpy.typing import NDArray

from .config import FIT_QUALITY_EXCELLENT_ERROR, FIT_QUALITY_GOOD_ERROR, KELVIN_PER_WAVENUMBER

logger = logging.getLogger(__name__)


@dataclass
class FitDiagnostics:
    """Diagnostics from a single least-squares fit."""
    # Optimization info
    optimizer_status: int
    optimizer_message: str
    optimizer_success: bool
    n_function_evals: int

    # Covariance info
    condition_number: float = np.inf
    covariance_rank: int = 0
    covariance_warning: Optional[str] = None

    # Bounds info
    params_at_bounds: List[str] = field(default_factory=list)
    bounds_warnings: List[str] = field(default_factory=list)

    # General warnings
    warnings: List[str] = field(default_factory=list)

    @property
    def all_warnings(self) -> List[str]:
        """Collect all warnings in one list."""
        collected = list(self.warnings)
        collected.extend(self.bounds_warnings)
        if self.covariance_warning:
            collected.append(self.covariance_warning)
        return collected


def compute_fit_metrics(
    y: NDArray[np.float64],
    y_fit: NDArray[np.float64]
) -> Tuple[float, float]:
    """
    Compute RMS error and coefficient of determination.

    Returns
    -------
    rms : float
        Root-mean-square residual
    r_squared : float
        1 - SS_res / SS_tot (NaN when the data has no variance)
    """
    y = np.asarray(y, dtype=float)
    y_fit = np.asarray(y_fit, dtype=float)
    if len(y) == 0:
        return np.nan, np.nan

    residuals = y - y_fit
    rms = float(np.sqrt(np.mean(residuals**2)))
    ss_tot = float(np.sum((y - np.mean(y))**2))
    r_squared = 1.0 - float(np.sum(residuals**2)) / ss_tot if ss_tot > 0 else np.nan
    return rms, r_squared


def assess_quality(error_percent: float) -> str:
    """
    Map a relative fit error [%] to 'excellent', 'good', 'acceptable' or 'poor'.
    """
    if not np.isfinite(error_percent):
        return 'unknown'
    if error_percent < FIT_QUALITY_EXCELLENT_ERROR:
        return 'excellent'
    elif error_percent < FIT_QUALITY_GOOD_ERROR:
        return 'good'
    elif error_percent < FIT_QUALITY_GOOD_ERROR * 2:
        return 'acceptable'
    return 'poor'


def log_decay_results(fits: pd.DataFrame) -> None:
    """
    Log a decay fit table (one row per temperature) to console.

    Parameters
    ----------
    fits : DataFrame
        Table with columns Temperature, tau, tauCi, beta, betaCi, converged
    """
    logger.info("")
    logger.info("Stretched exponential fits:")
    logger.info(f"  {'T [K]':>7s}  {'tau [s]':>10s}  {'+/- 95%':>9s}  {'beta':>6s}  {'+/- 95%':>7s}")

    for row in fits.itertuples(index=False):
        if not row.converged:
            logger.warning(f"  {row.Temperature:7.2f}  not converged, excluded from tau(T)")
            continue
        logger.info(
            f"  {row.Temperature:7.2f}  {row.tau:10.4g}  {row.tauCi:9.2g}  "
            f"{row.beta:6.3f}  {row.betaCi:7.3f}"
        )

    n_failed = int((~fits['converged']).sum()) if len(fits) else 0
    if n_failed:
        logger.warning(f"  {n_failed} of {len(fits)} temperatures did not converge")


def log_arrhenius_results(result) -> None:
    """
    Log a mechanism fit result to console.

    Parameters
    ----------
    result : ArrheniusFitResult
        Result of fit_arrhenius
    """
    low, high = result.temp_range
    logger.info("")
    logger.info(f"Relaxation mechanism fit ({result.n_points} points, {low:.2f}-{high:.2f} K):")
    logger.info(f"  Mechanisms: {', '.join(result.mechanisms)}")
    logger.info("  Parameters:")
    level = f"{result.confidence_level * 100:.0f}% CI"

    for name in result.param_names:
        status = result.status(name)
        value = result.values[name]
        if status == 'excluded':
            logger.info(f"    {name:5s} = excluded")
        elif status == 'fixed':
            logger.info(f"    {name:5s} = {value:.4e} (fixed)")
        else:
            ci_low, ci_high = result.ci(name)
            if np.isnan(ci_low) or np.isnan(ci_high):
                logger.info(f"    {name:5s} = {value:.4e}  [{level}: undefined]")
            else:
                logger.info(f"    {name:5s} = {value:.4e}  [{level}: {ci_low:.3e}, {ci_high:.3e}]")

    if result.status('Ueff') != 'excluded':
        ueff_cm = result.values['Ueff'] / KELVIN_PER_WAVENUMBER
        logger.info(f"  Ueff = {ueff_cm:.1f} cm^-1")

    logger.info(f"  Fit error: {result.fit_error_rel:.2f}% (rms of ln tau)")

    if result.is_degenerate:
        logger.warning("  Degenerate fit: not enough temperatures for confidence intervals")

    if result.quality == 'excellent':
        logger.info(f"  Quality: Excellent (<{FIT_QUALITY_EXCELLENT_ERROR}%)")
    elif result.quality == 'good':
        logger.info(f"  Quality: Good (<{FIT_QUALITY_GOOD_ERROR}%)")
    elif result.quality == 'acceptable':
        logger.warning("  Quality: Acceptable (consider adding a mechanism)")
    else:
        logger.warning("  Quality: POOR! Model does not describe tau(T)")

    for warning in result.all_warnings:
        logger.warning(f"  {warning}")


__all__ = [
    'FitDiagnostics',
    'compute_fit_metrics',
    'assess_quality',
    'log_decay_results',
    'log_arrhenius_results',
]
