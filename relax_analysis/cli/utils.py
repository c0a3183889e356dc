"""
Utility functions and dataclasses for the relaxation analysis CLI.

Contains:
- Exception classes
- Data containers (dataclasses)
- Helper functions (save_figure, save_table, build_mechanism_parameters)
"""

import argparse
import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd
import matplotlib.pyplot as plt

from ..fitting.config import (
    DEFAULT_UEFF_GUESS,
    DEFAULT_TAU0_GUESS,
    DEFAULT_QTM_GUESS,
    DEFAULT_C_GUESS,
    DEFAULT_N_GUESS,
)
from ..fitting.mechanisms import PARAMETER_NAMES, MECHANISM_PARAMETERS, MechanismParameters

logger = logging.getLogger(__name__)

# Seeds for mechanisms requested with --mechanism but not seeded explicitly
DEFAULT_SEEDS = {
    'Ueff': DEFAULT_UEFF_GUESS,
    'tau0': DEFAULT_TAU0_GUESS,
    'qtm': DEFAULT_QTM_GUESS,
    'C': DEFAULT_C_GUESS,
    'n': DEFAULT_N_GUESS,
}


# =============================================================================
# Exceptions
# =============================================================================

class RelaxAnalysisError(Exception):
    """Base exception for user-facing relaxation analysis errors."""
    pass


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class LoadedData:
    """
    Container for loaded samples.

    Attributes
    ----------
    samples : DataFrame
        Sample table (Temperature, Time, Moment, Field)
    title : str
        Data title (filename or "Synthetic data")
    """
    samples: pd.DataFrame
    title: str


# =============================================================================
# Helper Functions
# =============================================================================

def save_figure(
    fig: Optional[plt.Figure],
    prefix: Optional[str],
    suffix: str,
    fmt: str = 'png'
) -> None:
    """
    Save figure to ``{prefix}_{suffix}.{fmt}`` if fig and prefix are given.

    Errors are logged, not raised: a failed save must not abort the analysis.
    """
    if fig is None or prefix is None:
        return

    filepath = f"{prefix}_{suffix}.{fmt}"
    try:
        if fmt == 'png':
            fig.savefig(filepath, dpi=150, bbox_inches='tight')
        else:
            fig.savefig(filepath, bbox_inches='tight')
        logger.info(f"Saved: {filepath}")
    except OSError as e:
        logger.error(f"Error saving figure: {e}")


def save_table(table: Optional[pd.DataFrame], prefix: Optional[str], suffix: str) -> None:
    """Save a result table to ``{prefix}_{suffix}.csv``."""
    if table is None or prefix is None:
        return

    filepath = f"{prefix}_{suffix}.csv"
    try:
        table.to_csv(filepath, index=False)
        logger.info(f"Saved: {filepath}")
    except OSError as e:
        logger.error(f"Error saving table: {e}")


def build_mechanism_parameters(args: argparse.Namespace) -> MechanismParameters:
    """
    Mechanism parameters from CLI seeds.

    A mechanism is included as soon as one of its parameters is given; a
    missing partner is then reported as an error. Mechanisms listed with
    --mechanism are seeded from DEFAULT_SEEDS where no value is given. With
    no parameter at all the Orbach mechanism is seeded with default values.

    Raises
    ------
    RelaxAnalysisError
        For fixed parameters without a value or half-specified mechanisms
    """
    values = {name: getattr(args, name) for name in PARAMETER_NAMES}

    for mechanism in args.mechanism:
        for name in MECHANISM_PARAMETERS[mechanism]:
            if values[name] is None:
                values[name] = DEFAULT_SEEDS[name]

    if all(v is None for v in values.values()):
        values['Ueff'] = DEFAULT_SEEDS['Ueff']
        values['tau0'] = DEFAULT_SEEDS['tau0']
        logger.info(f"No mechanism given, fitting Orbach from Ueff = {DEFAULT_UEFF_GUESS} K, "
                    f"tau0 = {DEFAULT_TAU0_GUESS} s")

    for mechanism, names in MECHANISM_PARAMETERS.items():
        given = [n for n in names if values[n] is not None]
        if given and len(given) < len(names):
            missing = [n for n in names if values[n] is None]
            raise RelaxAnalysisError(
                f"Mechanism '{mechanism}' needs {', '.join('--' + n for n in missing)} "
                f"as well (given: {', '.join('--' + n for n in given)})"
            )

    try:
        params = MechanismParameters.from_values(fixed_names=tuple(args.fix), **values)
        params.validate()
    except ValueError as e:
        raise RelaxAnalysisError(str(e)) from e
    return params
