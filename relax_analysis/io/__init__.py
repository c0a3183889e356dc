"""
I/O module for sample tables and synthetic relaxation data.
"""

from .samples import (
    SAMPLE_COLUMNS,
    DomainError,
    make_sample_table,
    validate_sample_table,
    correct_moment,
    load_sample_csv,
)
from .synthetic import (
    generate_decay_data,
    generate_relaxation_dataset,
    generate_tau_curve,
)

__all__ = [
    'SAMPLE_COLUMNS',
    'DomainError',
    'make_sample_table',
    'validate_sample_table',
    'correct_moment',
    'load_sample_csv',
    'generate_decay_data',
    'generate_relaxation_dataset',
    'generate_tau_curve',
]
