"""
Temperature grouping of DC relaxation samples.

Each isothermal decay is identified by its rounded temperature. Within a
group the time axis is re-anchored so that the earliest sample is at t = 0,
i.e. each decay curve starts at its own relaxation onset.

Author: Relaxation Analysis Toolkit
"""

import logging
from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from .config import TEMPERATURE_ROUNDING
from ..io.samples import validate_sample_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class TemperatureGroup:
    """
    Samples sharing one rounded temperature.

    Attributes
    ----------
    temperature : float
        Rounded temperature [K]
    index : ndarray of int
        Row labels of the group in the parsed sample table
    time : ndarray of float
        Normalised time [s] (minimum is exactly 0)
    moment : ndarray of float
        Moment values, in original sample order
    field : ndarray of float
        Applied field [Oe]
    """
    temperature: float
    index: NDArray[np.int64]
    time: NDArray[np.float64]
    moment: NDArray[np.float64]
    field: NDArray[np.float64]

    @property
    def n_points(self) -> int:
        return len(self.time)

    @property
    def moment_max(self) -> float:
        return float(np.max(self.moment))

    @property
    def moment_min(self) -> float:
        return float(np.min(self.moment))


def round_temperature(
    temperature: ArrayLike,
    granularity: float = TEMPERATURE_ROUNDING
) -> NDArray[np.float64]:
    """
    Round temperatures to the nearest multiple of ``granularity``.

    Ties are rounded half away from zero (5.025 K -> 5.05 K for 0.05 K bins).

    Parameters
    ----------
    temperature : array_like
        Temperatures [K]
    granularity : float, optional
        Bin width [K] (default: 0.05)

    Returns
    -------
    rounded : ndarray of float
    """
    if not granularity > 0:
        raise ValueError(f"Rounding granularity must be positive, got {granularity}")

    scaled = np.asarray(temperature, dtype=float) / granularity
    # Decimal ties (5.025 / 0.05) land just below .5 after the division
    rounded = np.sign(scaled) * np.floor(np.abs(scaled) + 0.5 + 1e-9) * granularity
    # Strip float noise so keys compare equal to literals like 5.05
    return np.round(rounded, 10)


def assign_temperature_groups(
    samples: pd.DataFrame,
    granularity: float = TEMPERATURE_ROUNDING
) -> pd.DataFrame:
    """
    Return a validated copy of ``samples`` with a TemperatureRounded column.
    """
    parsed = validate_sample_table(samples)
    parsed['TemperatureRounded'] = round_temperature(parsed['Temperature'].to_numpy(), granularity)
    return parsed


def normalize_group_times(parsed: pd.DataFrame) -> pd.DataFrame:
    """
    Subtract each group's minimum time from every time in that group.

    Must be re-run after any filtering, since the group minimum can change.
    Returns a new table.
    """
    parsed = parsed.copy()
    if parsed.empty:
        return parsed
    group_min = parsed.groupby('TemperatureRounded')['Time'].transform('min')
    parsed['Time'] = parsed['Time'] - group_min
    return parsed


def groups_from_table(parsed: pd.DataFrame) -> Dict[float, TemperatureGroup]:
    """
    Split a parsed table into temperature groups, ascending in temperature.

    The table must already carry TemperatureRounded and normalised times.
    """
    groups = {}
    for temperature, rows in parsed.groupby('TemperatureRounded', sort=True):
        groups[float(temperature)] = TemperatureGroup(
            temperature=float(temperature),
            index=rows.index.to_numpy(),
            time=rows['Time'].to_numpy(dtype=float),
            moment=rows['Moment'].to_numpy(dtype=float),
            field=rows['Field'].to_numpy(dtype=float),
        )
    return groups


def group_by_temperature(
    samples: pd.DataFrame,
    granularity: float = TEMPERATURE_ROUNDING
) -> Dict[float, TemperatureGroup]:
    """
    Bin samples into temperature groups for independent decay fits.

    Parameters
    ----------
    samples : DataFrame
        Sample table (Temperature, Time, Moment[, Field])
    granularity : float, optional
        Rounding granularity [K] (default: 0.05)

    Returns
    -------
    groups : dict
        Rounded temperature -> TemperatureGroup, ascending. Empty input
        gives an empty dict.
    """
    parsed = normalize_group_times(assign_temperature_groups(samples, granularity))
    groups = groups_from_table(parsed)
    logger.debug(f"Grouped {len(parsed)} samples into {len(groups)} temperatures")
    return groups


__all__ = [
    'TemperatureGroup',
    'round_temperature',
    'assign_temperature_groups',
    'normalize_group_times',
    'groups_from_table',
    'group_by_temperature',
]
