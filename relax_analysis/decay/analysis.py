"""
Temperature range selection and the full decay analysis of one sample.

``analyze_decays`` runs grouping, range selection, time re-anchoring and
the temperature-ascending decay fits in one call and returns an immutable
``DecayAnalysis``. Changing the range creates a new analysis from the
original samples; nothing is updated in place.

Usage:
    from relax_analysis.decay import analyze_decays

    analysis = analyze_decays(samples)
    narrow = analysis.with_temp_range((2.0, 6.0))
    curve = narrow.tau_curve()

Author: Relaxation Analysis Toolkit
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .config import TEMPERATURE_ROUNDING, DECAY_INITIAL_GUESS
from .grouping import assign_temperature_groups, normalize_group_times, groups_from_table
from .stretched import DecayFitResult, fit_decays, decay_results_to_frame
from ..fitting.config import CONFIDENCE_LEVEL
from ..fitting.tau_curve import TauCurve
from ..io.samples import validate_sample_table

logger = logging.getLogger(__name__)

TempRange = Optional[Union[Tuple[float, float], Sequence[float], float]]


def parse_temp_range(temp_range: TempRange) -> Optional[Tuple[float, float]]:
    """
    Validate a temperature range.

    ``None`` or NaN (scalar or all-NaN pair) means unbounded.

    Returns
    -------
    bounds : tuple of float or None
        (low, high) or None for unbounded

    Raises
    ------
    ValueError
        If the range is not a pair, contains non-finite values or has low > high
    """
    if temp_range is None:
        return None

    values = np.atleast_1d(np.asarray(temp_range, dtype=float))
    if np.all(np.isnan(values)):
        return None

    if values.shape != (2,):
        raise ValueError(f"Temperature range must be (low, high), got {temp_range!r}")
    if not np.all(np.isfinite(values)):
        raise ValueError(f"Temperature range must be finite, got {temp_range!r}")

    low, high = float(values[0]), float(values[1])
    if low > high:
        raise ValueError(f"Temperature range has low > high: ({low}, {high})")
    return low, high


def select_temperature_range(
    parsed: pd.DataFrame,
    bounds: Optional[Tuple[float, float]]
) -> pd.DataFrame:
    """
    Keep rows whose rounded temperature lies inside [low, high].

    Parameters
    ----------
    parsed : DataFrame
        Table with a TemperatureRounded column
    bounds : tuple of float or None
        Inclusive (low, high), None keeps everything

    Returns
    -------
    selected : DataFrame
        Filtered copy (times are NOT re-anchored here)
    """
    if bounds is None:
        return parsed.copy()

    low, high = bounds
    rounded = parsed['TemperatureRounded']
    selected = parsed[(rounded >= low) & (rounded <= high)].copy()
    logger.debug(f"Temperature filter [{low}, {high}] K: {len(parsed)} -> {len(selected)} samples")
    return selected


def active_temp_range(parsed: pd.DataFrame) -> Tuple[float, float]:
    """[min, max] of retained rounded temperatures, (nan, nan) if empty."""
    if parsed.empty:
        return (np.nan, np.nan)
    rounded = parsed['TemperatureRounded']
    return (float(rounded.min()), float(rounded.max()))


@dataclass(frozen=True, eq=False)
class DecayAnalysis:
    """
    Decay fits of one sample over the active temperature range.

    Attributes
    ----------
    samples : DataFrame
        Validated input samples (all temperatures, original times)
    parsed : DataFrame
        Samples inside the active range with TemperatureRounded,
        re-anchored Time and the model trace MomentCalc
    fits : DataFrame
        One row per temperature (see decay_results_to_frame)
    results : tuple of DecayFitResult
        Full per-temperature results incl. diagnostics
    temp_range : tuple of float
        Active range [min, max] of the retained rounded temperatures
    requested_range : tuple of float or None
        Range as requested by the caller (None = unbounded)
    granularity : float
        Temperature rounding granularity [K]
    """
    samples: pd.DataFrame = field(repr=False)
    parsed: pd.DataFrame = field(repr=False)
    fits: pd.DataFrame = field(repr=False)
    results: Tuple[DecayFitResult, ...] = field(repr=False)
    temp_range: Tuple[float, float]
    requested_range: Optional[Tuple[float, float]]
    granularity: float = TEMPERATURE_ROUNDING
    initial_guess: Tuple[float, float] = DECAY_INITIAL_GUESS
    confidence_level: float = CONFIDENCE_LEVEL

    @property
    def temperatures(self) -> np.ndarray:
        """Rounded temperatures of all fitted groups."""
        return self.fits['Temperature'].to_numpy(dtype=float)

    @property
    def n_converged(self) -> int:
        return int(self.fits['converged'].sum())

    def with_temp_range(self, temp_range: TempRange) -> 'DecayAnalysis':
        """
        Re-run the analysis on a new temperature range.

        The range is validated before anything is computed; this object is
        left unchanged.
        """
        return analyze_decays(
            self.samples,
            temp_range=temp_range,
            granularity=self.granularity,
            x0=self.initial_guess,
            confidence_level=self.confidence_level
        )

    def tau_curve(self) -> TauCurve:
        """tau(T) of the converged fits in the active range."""
        return TauCurve.from_fits(self.fits)


def analyze_decays(
    samples: pd.DataFrame,
    temp_range: TempRange = None,
    granularity: float = TEMPERATURE_ROUNDING,
    x0: Sequence[float] = DECAY_INITIAL_GUESS,
    confidence_level: float = CONFIDENCE_LEVEL
) -> DecayAnalysis:
    """
    Group samples by temperature, select a range and fit every decay.

    Parameters
    ----------
    samples : DataFrame
        Sample table (Temperature, Time, Moment[, Field])
    temp_range : (low, high), None or NaN, optional
        Inclusive range on the rounded temperature (default: unbounded)
    granularity : float, optional
        Temperature rounding granularity [K] (default: 0.05)
    x0 : sequence of float, optional
        Seed (tau, beta) for the lowest temperature (default: (10, 1))
    confidence_level : float, optional
        Confidence level for the intervals (default: 0.95)

    Returns
    -------
    analysis : DecayAnalysis

    Raises
    ------
    ValueError
        If temp_range is malformed (raised before any fitting)
    DomainError
        If the samples contain non-physical values
    """
    bounds = parse_temp_range(temp_range)

    parsed = assign_temperature_groups(samples, granularity)
    parsed = select_temperature_range(parsed, bounds)
    parsed = normalize_group_times(parsed)
    current_range = active_temp_range(parsed)

    if parsed.empty:
        logger.warning(f"No samples inside temperature range {bounds}")

    groups = groups_from_table(parsed)
    results = fit_decays(groups, x0=x0, confidence_level=confidence_level)

    parsed['MomentCalc'] = np.nan
    for group, result in zip(groups.values(), results):
        parsed.loc[group.index, 'MomentCalc'] = result.moment_calc

    return DecayAnalysis(
        samples=validate_sample_table(samples),
        parsed=parsed,
        fits=decay_results_to_frame(results),
        results=tuple(results),
        temp_range=current_range,
        requested_range=bounds,
        granularity=granularity,
        initial_guess=tuple(float(v) for v in x0),
        confidence_level=confidence_level
    )


__all__ = [
    'DecayAnalysis',
    'analyze_decays',
    'parse_temp_range',
    'select_temperature_range',
    'active_temp_range',
]
