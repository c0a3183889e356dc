"""
Configuration constants for temperature grouping and decay fitting.

Values follow the usual SQUID magnetometer protocol for DC relaxation:
the sample is saturated in field, the field is switched off and the moment
decay is recorded at a fixed temperature.
"""

# =============================================================================
# Temperature Grouping
# =============================================================================

TEMPERATURE_ROUNDING = 0.05
"""
Granularity of temperature bins [K].

Temperature readings of one isothermal decay fluctuate by a few mK;
rounding to 0.05 K gathers one decay into one group while keeping
neighbouring set points (typically >= 0.1 K apart) separate.
"""

# =============================================================================
# Stretched Exponential Fit
# =============================================================================

DECAY_INITIAL_GUESS = (10.0, 1.0)
"""
Seed (tau [s], beta [-]) for the first (lowest) temperature.

Later temperatures are seeded from the previous converged solution.
"""

DECAY_LOWER_BOUNDS = (1.0, 0.2)
"""Lower bounds for (tau [s], beta [-])."""

DECAY_UPPER_BOUNDS = (1e6, 1.7)
"""
Upper bounds for (tau [s], beta [-]).

tau above ~1e6 s cannot be resolved in a measurement of a few hours,
beta > 1.7 is a compressed exponential with no physical meaning here.
"""

DECAY_FTOL = 1e-15
"""
Function tolerance for the bounded solver.

scipy disables a termination test whose tolerance is below machine
epsilon (2.2e-16), so this is the tightest usable setting.
"""

DECAY_XTOL = 1e-15
"""Parameter step tolerance for the bounded solver (see DECAY_FTOL)."""

DECAY_GTOL = 1e-15
"""Gradient tolerance for the bounded solver."""

DECAY_MAX_NFEV = 1000
"""
Maximum number of function evaluations per temperature.

A fit that hits this cap is reported as not converged and its row
carries NaN tau/beta.
"""

DATA_TYPE = 'DcData'
"""Value of the DataType column in decay fit tables."""

__all__ = [
    'TEMPERATURE_ROUNDING',
    'DECAY_INITIAL_GUESS',
    'DECAY_LOWER_BOUNDS',
    'DECAY_UPPER_BOUNDS',
    'DECAY_FTOL',
    'DECAY_XTOL',
    'DECAY_GTOL',
    'DECAY_MAX_NFEV',
    'DATA_TYPE',
]
