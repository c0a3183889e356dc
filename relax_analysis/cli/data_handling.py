"""
Data loading for the relaxation analysis CLI.

Contains:
- load_relaxation_data: Load a CSV or generate synthetic data
- temp_range_from_args: Temperature range from --t-min/--t-max
"""

import argparse
import logging
import os
from typing import Optional, Tuple

import numpy as np

from .utils import RelaxAnalysisError, LoadedData
from ..io import load_sample_csv, generate_relaxation_dataset

logger = logging.getLogger(__name__)


# =============================================================================
# Synthetic Data Configuration
# =============================================================================
# A slow-relaxing molecule with Orbach relaxation above ~2.5 K and
# a tunnelling plateau below

SYNTHETIC_DATA_PARAMS = {
    'temperatures': (2.0, 2.2, 2.4, 2.6, 2.8, 3.0, 3.2, 3.4),
    'Ueff': 50.0,       # Effective barrier [K]
    'tau0': 1e-6,       # Attempt time [s]
    'qtm': 1e-4,        # Tunnelling rate [1/s]
    'beta': 0.9,        # Mild stretching
    'noise': 0.002,     # 0.2% of the decay amplitude
}


# =============================================================================
# Data Loading
# =============================================================================

def load_relaxation_data(args: argparse.Namespace) -> LoadedData:
    """
    Load samples from file or generate synthetic data.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments. Uses args.input and args.delimiter.

    Returns
    -------
    LoadedData

    Raises
    ------
    RelaxAnalysisError
        If the file does not exist or cannot be parsed
    """
    if args.input is None:
        np.random.seed(42)
        samples = generate_relaxation_dataset(**SYNTHETIC_DATA_PARAMS)
        return LoadedData(samples=samples, title="Synthetic data")

    if not os.path.exists(args.input):
        raise RelaxAnalysisError(f"File '{args.input}' does not exist!")

    try:
        samples = load_sample_csv(args.input, delimiter=args.delimiter)
    except (ValueError, OSError) as e:
        raise RelaxAnalysisError(f"Error loading file: {e}") from e

    n_temps = samples['Temperature'].round(1).nunique()
    logger.info(f"Loaded {len(samples)} samples (~{n_temps} temperatures) from {args.input}")
    return LoadedData(samples=samples, title=os.path.basename(args.input))


def temp_range_from_args(args: argparse.Namespace) -> Optional[Tuple[float, float]]:
    """
    Temperature range from --t-min/--t-max, None if neither is given.

    A missing side is left open.
    """
    if args.t_min is None and args.t_max is None:
        return None
    low = args.t_min if args.t_min is not None else 0.0
    high = args.t_max if args.t_max is not None else np.finfo(float).max
    if low > high:
        raise RelaxAnalysisError(f"--t-min ({low}) is larger than --t-max ({high})")
    return low, high
