"""
CLI module for the DC relaxation analysis toolkit.

This module provides the command-line interface components:
- logging: Custom log formatters and setup
- parser: Argument parsing
- data_handling: Data loading and temperature range options
- handlers: Analysis workflow handlers
- utils: Helper functions and dataclasses

The main entry point is in the root relax.py script.
"""

from .logging import setup_logging, log_separator
from .parser import build_parser, parse_arguments
from .data_handling import load_relaxation_data, temp_range_from_args
from .handlers import (
    run_decay_fitting,
    run_arrhenius_fitting,
    run_plots,
)
from .utils import (
    RelaxAnalysisError,
    LoadedData,
    save_figure,
    save_table,
    build_mechanism_parameters,
)

__all__ = [
    # Logging
    'setup_logging',
    'log_separator',
    # Parser
    'build_parser',
    'parse_arguments',
    # Data handling
    'load_relaxation_data',
    'temp_range_from_args',
    # Handlers
    'run_decay_fitting',
    'run_arrhenius_fitting',
    'run_plots',
    # Utils
    'RelaxAnalysisError',
    'LoadedData',
    'save_figure',
    'save_table',
    'build_mechanism_parameters',
]
