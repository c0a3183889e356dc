"""
Configuration constants for relaxation fitting.

References
----------
.. [1] D. Gatteschi, R. Sessoli, J. Villain, "Molecular Nanomagnets" (2006)
       Oxford University Press, ISBN: 978-0-19-856753-0
.. [2] K. N. Shrivastava, Phys. Status Solidi B 117 (1983) 437-458
       "Theory of spin-lattice relaxation"
"""

# =============================================================================
# Confidence Intervals
# =============================================================================

CONFIDENCE_LEVEL = 0.95
"""Confidence level for all reported parameter intervals."""

# =============================================================================
# Fit Quality Assessment
# =============================================================================

FIT_QUALITY_EXCELLENT_ERROR = 1.0
"""
Threshold for excellent fit [%].

For decay fits: RMS residual relative to the decay amplitude (m0 - mf).
For Arrhenius fits: RMS residual of ln(tau), i.e. approximately the
relative error of tau.
"""

FIT_QUALITY_GOOD_ERROR = 10.0
"""Threshold for good fit [%]."""

# =============================================================================
# Arrhenius (Mechanism) Fit
# =============================================================================

ARRHENIUS_MAX_NFEV = 10000
"""Maximum number of function evaluations for the mechanism fit."""

DEFAULT_UEFF_GUESS = 100.0
"""
Default seed for the effective barrier Ueff [K].

Typical single-molecule magnets show barriers of tens to hundreds of K
(lanthanide complexes up to ~2000 K) [1].
"""

DEFAULT_TAU0_GUESS = 1e-9
"""
Default seed for the attempt time tau0 [s].

Orbach pre-factors are usually 1e-12 to 1e-8 s [1].
"""

DEFAULT_QTM_GUESS = 1e-3
"""Default seed for the tunnelling rate qtm [1/s]."""

DEFAULT_C_GUESS = 1e-4
"""Default seed for the Raman coefficient C [1/(s K^n)]."""

DEFAULT_N_GUESS = 5.0
"""
Default seed for the Raman exponent n [-].

n = 9 for Kramers ions, n = 7 for non-Kramers ions in the Debye model;
optical phonons lower n to 1-6 [2].
"""

KELVIN_PER_WAVENUMBER = 1.4387769
"""Conversion factor 1 cm^-1 = 1.4388 K (h c / k_B)."""

__all__ = [
    'CONFIDENCE_LEVEL',
    'FIT_QUALITY_EXCELLENT_ERROR',
    'FIT_QUALITY_GOOD_ERROR',
    'ARRHENIUS_MAX_NFEV',
    'DEFAULT_UEFF_GUESS',
    'DEFAULT_TAU0_GUESS',
    'DEFAULT_QTM_GUESS',
    'DEFAULT_C_GUESS',
    'DEFAULT_N_GUESS',
    'KELVIN_PER_WAVENUMBER',
]
