#!/usr/bin/env python3
"""
DC Magnetic Relaxation Analysis
===============================

CLI tool for relaxation times of single-molecule magnets from DC
magnetisation decays.

Version: Imported from relax_analysis.version (single source of truth)

Features:
- Temperature grouping of decay samples (0.05 K rounding)
- Stretched exponential fit per temperature with 95% confidence intervals
- Temperature range selection (--t-min/--t-max)
- Orbach / QTM / Raman mechanism fit of tau(T) with seeded or fixed parameters

Usage:
    relax                                   # synthetic data demo
    relax samples.csv                       # decay fits + Orbach fit
    relax samples.csv --t-min 2 --t-max 4   # restricted range
    relax samples.csv --qtm 1e-3 -v         # Orbach + QTM, debug output
    relax samples.csv --save out --no-show  # save plots and tables

    relax --help                            # help
"""

import argparse
import logging
import sys

import matplotlib.pyplot as plt

from relax_analysis import get_version_string
from relax_analysis.cli import (
    setup_logging,
    log_separator,
    parse_arguments,
    load_relaxation_data,
    run_decay_fitting,
    run_arrhenius_fitting,
    run_plots,
    RelaxAnalysisError,
)

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    args = parse_arguments(argv)
    setup_logging(args)

    try:
        _run_analysis(args)
    except RelaxAnalysisError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        sys.exit(130)


def _run_analysis(args: argparse.Namespace) -> None:
    """Run the full analysis pipeline."""
    log_separator(f"DC Relaxation Analysis ({get_version_string()})", length=60)

    data = load_relaxation_data(args)

    analysis = run_decay_fitting(data, args)
    result = run_arrhenius_fitting(analysis, args)
    run_plots(data, analysis, result, args)

    if not args.no_show:
        plt.show()

    log_separator("Analysis complete", length=60)


if __name__ == "__main__":
    main()
