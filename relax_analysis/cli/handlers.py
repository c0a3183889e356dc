"""
Analysis workflow handlers for the relaxation analysis CLI.

Each handler corresponds to a step in the analysis pipeline:
- run_decay_fitting: Temperature grouping + stretched exponential fits
- run_arrhenius_fitting: Mechanism fit of tau(T)
- run_plots: Moment and Arrhenius plots
"""

import argparse
import logging
from typing import Optional

import matplotlib.pyplot as plt

from .data_handling import temp_range_from_args
from .logging import log_separator
from .utils import RelaxAnalysisError, LoadedData, save_figure, save_table, build_mechanism_parameters
from ..decay import DecayAnalysis, analyze_decays
from ..fitting import ArrheniusFitResult, fit_arrhenius, log_decay_results, log_arrhenius_results
from ..visualization import plot_moment, plot_arrhenius

logger = logging.getLogger(__name__)


# =============================================================================
# Decay Fitting
# =============================================================================

def run_decay_fitting(data: LoadedData, args: argparse.Namespace) -> DecayAnalysis:
    """
    Group samples by temperature and fit every decay.

    Parameters
    ----------
    data : LoadedData
        Loaded samples
    args : argparse.Namespace
        CLI arguments (uses: t_min, t_max, rounding, save)

    Returns
    -------
    analysis : DecayAnalysis

    Raises
    ------
    RelaxAnalysisError
        If the range is malformed or no temperature remains
    """
    log_separator("Stretched exponential decay fits")

    temp_range = temp_range_from_args(args)
    try:
        analysis = analyze_decays(data.samples, temp_range=temp_range, granularity=args.rounding)
    except ValueError as e:
        raise RelaxAnalysisError(f"Decay fitting failed: {e}") from e

    if analysis.fits.empty:
        raise RelaxAnalysisError(
            "No temperature left after range selection! Check --t-min and --t-max."
        )

    low, high = analysis.temp_range
    logger.info(f"Active range: {low:.2f}-{high:.2f} K ({len(analysis.fits)} temperatures)")
    log_decay_results(analysis.fits)

    save_table(analysis.fits, args.save, 'decay_fits')
    return analysis


# =============================================================================
# Mechanism Fitting
# =============================================================================

def run_arrhenius_fitting(
    analysis: DecayAnalysis,
    args: argparse.Namespace
) -> Optional[ArrheniusFitResult]:
    """
    Fit relaxation mechanisms to tau(T) of the converged decays.

    Parameters
    ----------
    analysis : DecayAnalysis
        Result of run_decay_fitting
    args : argparse.Namespace
        CLI arguments (uses: no_arrhenius, Ueff, tau0, qtm, C, n, mechanism, fix, save)

    Returns
    -------
    result : ArrheniusFitResult or None
        None when skipped or when too few temperatures converged
    """
    if args.no_arrhenius:
        return None

    curve = analysis.tau_curve()
    if len(curve) == 0:
        logger.warning("No converged decay fit, mechanism fit skipped")
        return None

    params = build_mechanism_parameters(args)

    try:
        result = fit_arrhenius(curve, params)
    except (ValueError, RuntimeError) as e:
        raise RelaxAnalysisError(f"Mechanism fit failed: {e}") from e

    log_separator()
    log_arrhenius_results(result)
    log_separator()

    save_table(curve.to_frame(), args.save, 'tau_curve')
    save_table(result.to_frame(), args.save, 'mechanism_fit')
    return result


# =============================================================================
# Plots
# =============================================================================

def run_plots(
    data: LoadedData,
    analysis: DecayAnalysis,
    result: Optional[ArrheniusFitResult],
    args: argparse.Namespace
) -> None:
    """
    Create the moment decay and Arrhenius plots.

    Parameters
    ----------
    args : argparse.Namespace
        CLI arguments (uses: save, format)
    """
    fig_moment = plot_moment(analysis.parsed, title=f"Moment decays - {data.title}")
    save_figure(fig_moment, args.save, 'moment', args.format)

    fig_arrhenius = plot_arrhenius(analysis.tau_curve(), result)
    save_figure(fig_arrhenius, args.save, 'arrhenius', args.format)

    if args.no_show:
        plt.close(fig_moment)
        plt.close(fig_arrhenius)
