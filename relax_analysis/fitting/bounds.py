"""
Parameter bounds generation and checking for relaxation fits.

Provides physically reasonable bounds for relaxation mechanism parameters
and detection of parameters that ended up at (or near) a bound.

Author: Relaxation Analysis Toolkit
"""

import numpy as np
import logging
from typing import List, Sequence, Tuple
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

PARAMETER_BOUNDS = {
    # Orbach: effective barrier [K] and attempt time [s], both strictly positive
    'Ueff': (0.0, np.inf),
    'tau0': (0.0, np.inf),

    # Quantum tunnelling rate [1/s]
    'qtm': (0.0, np.inf),

    # Raman coefficient [1/(s K^n)] and exponent [-]
    'C': (0.0, np.inf),
    'n': (1.0, 9.0),
}

DEFAULT_BOUNDS = (-np.inf, np.inf)


def generate_bounds(param_names: Sequence[str]) -> Tuple[List[float], List[float]]:
    """
    Look up bounds for the given parameter names.

    Parameters
    ----------
    param_names : sequence of str
        Parameter names (e.g., ['Ueff', 'tau0', 'qtm'])

    Returns
    -------
    lower_bounds : list of float
    upper_bounds : list of float
    """
    lower_bounds = []
    upper_bounds = []

    for name in param_names:
        lb, ub = PARAMETER_BOUNDS.get(name, DEFAULT_BOUNDS)
        lower_bounds.append(lb)
        upper_bounds.append(ub)

    return lower_bounds, upper_bounds


def clip_to_bounds(
    values: Sequence[float],
    lower_bounds: Sequence[float],
    upper_bounds: Sequence[float]
) -> Tuple[NDArray[np.float64], List[int]]:
    """
    Clip initial values into their bounds.

    Returns
    -------
    clipped : ndarray
        Values inside [lower, upper]
    clipped_idx : list of int
        Indices that had to be moved
    """
    values = np.asarray(values, dtype=float)
    clipped = np.clip(values, lower_bounds, upper_bounds)
    clipped_idx = [i for i in range(len(values)) if clipped[i] != values[i]]
    return clipped, clipped_idx


def find_params_at_bounds(
    param_names: Sequence[str],
    values: NDArray[np.float64],
    lower_bounds: Sequence[float],
    upper_bounds: Sequence[float]
) -> Tuple[List[str], List[str]]:
    """
    Find parameters at or near their bounds.

    Wide bounds (ratio > 1e3) are compared on a log scale (within 0.01
    decade), narrow finite bounds within 1% of the bound range. A lower
    bound of 0 is "near" when the value is below 1e-12.

    Returns
    -------
    names : list of str
        Names of parameters at bounds
    messages : list of str
        One human-readable message per parameter at a bound
    """
    names, messages = [], []

    for name, val, lb, ub in zip(param_names, values, lower_bounds, upper_bounds):
        side = None
        if np.isfinite(lb) and np.isfinite(ub) and lb > 0 and ub / lb > 1e3:
            log_val = np.log10(val) if val > 0 else -np.inf
            if log_val - np.log10(lb) < 0.01:
                side = 'lower'
            elif np.log10(ub) - log_val < 0.01:
                side = 'upper'
        elif np.isfinite(lb) and np.isfinite(ub):
            bound_range = ub - lb
            if val - lb < 0.01 * bound_range:
                side = 'lower'
            elif ub - val < 0.01 * bound_range:
                side = 'upper'
        elif np.isfinite(lb):
            if abs(val - lb) <= max(abs(lb) * 0.01, 1e-12):
                side = 'lower'
        elif np.isfinite(ub):
            if abs(ub - val) <= max(abs(ub) * 0.01, 1e-12):
                side = 'upper'

        if side is not None:
            bound = lb if side == 'lower' else ub
            names.append(name)
            messages.append(f"Parameter {name} = {val:.3e} at {side} bound {bound:.3e}")

    return names, messages


__all__ = [
    'PARAMETER_BOUNDS',
    'generate_bounds',
    'clip_to_bounds',
    'find_params_at_bounds',
]
