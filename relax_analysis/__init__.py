"""
DC Relaxation Analysis Toolkit
==============================

Relaxation times of single-molecule magnets from DC magnetisation decays
and their interpretation by competing relaxation mechanisms.

Modules:
- io: Sample tables, moment correction, CSV loading and synthetic data
- decay: Temperature grouping, stretched exponential fits, range selection
- fitting: Orbach / QTM / Raman mechanism model and the tau(T) fit
- visualization: Moment and Arrhenius plots

Version is imported from relax_analysis.version (single source of truth).
"""

# Import version from single source of truth
from .version import __version__, __version_info__, get_version_string

# I/O (first: the other subpackages import io.samples)
from .io import (
    DomainError,
    make_sample_table,
    validate_sample_table,
    correct_moment,
    load_sample_csv,
    generate_decay_data,
    generate_relaxation_dataset,
    generate_tau_curve,
)

# Decay analysis
from .decay import (
    round_temperature,
    group_by_temperature,
    fit_decay_group,
    fit_decays,
    analyze_decays,
    DecayAnalysis,
    DecayFitResult,
)

# Mechanism fitting
from .fitting import (
    MechanismParameter,
    MechanismParameters,
    MechanismModel,
    ParameterMode,
    seeded,
    fixed,
    excluded,
    relaxation_rate,
    TauCurve,
    fit_arrhenius,
    ArrheniusFitResult,
)

# Visualization
from .visualization import (
    plot_moment,
    plot_arrhenius,
)

__all__ = [
    # Version info
    '__version__',
    '__version_info__',
    'get_version_string',
    # I/O
    'DomainError',
    'make_sample_table',
    'validate_sample_table',
    'correct_moment',
    'load_sample_csv',
    'generate_decay_data',
    'generate_relaxation_dataset',
    'generate_tau_curve',
    # Decay analysis
    'round_temperature',
    'group_by_temperature',
    'fit_decay_group',
    'fit_decays',
    'analyze_decays',
    'DecayAnalysis',
    'DecayFitResult',
    # Mechanism fitting
    'MechanismParameter',
    'MechanismParameters',
    'MechanismModel',
    'ParameterMode',
    'seeded',
    'fixed',
    'excluded',
    'relaxation_rate',
    'TauCurve',
    'fit_arrhenius',
    'ArrheniusFitResult',
    # Visualization
    'plot_moment',
    'plot_arrhenius',
]
