"""
Sample table ingestion for DC relaxation measurements.

The analysis core consumes one table of already corrected samples with the
columns ``Temperature`` [K], ``Time`` [s], ``Moment`` [emu/mol] and
``Field`` [Oe]. This module builds and validates that table, applies the
sample/background moment correction and provides a thin CSV adapter.

Author: Relaxation Analysis Toolkit
"""

import logging
import re
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

SAMPLE_COLUMNS = ('Temperature', 'Time', 'Moment', 'Field')

# Accepted CSV header aliases (compared after lowercasing and stripping
# everything that is not a letter or digit)
COLUMN_ALIASES: Dict[str, tuple] = {
    'Temperature': ('temperature', 'temperaturek', 'temp', 't', 'tk'),
    'Time': ('time', 'timesec', 'times', 'timestamp', 'timestampsec', 'elapsedtime'),
    'Moment': ('moment', 'momentemu', 'momentemumol', 'm', 'dcmoment'),
    'Field': ('field', 'fieldoe', 'magneticfield', 'magneticfieldoe', 'h'),
}


class DomainError(ValueError):
    """Raised when a measurement value lies outside the physical domain."""
    pass


def _check_domain(table: pd.DataFrame) -> None:
    """Reject non-finite values, non-positive temperatures and negative times."""
    for column in ('Temperature', 'Time', 'Moment'):
        values = table[column].to_numpy()
        if not np.all(np.isfinite(values)):
            n_bad = int(np.sum(~np.isfinite(values)))
            raise DomainError(f"Column '{column}' contains {n_bad} non-finite value(s)")

    temperature = table['Temperature'].to_numpy()
    if np.any(temperature <= 0):
        raise DomainError(
            f"Temperature must be positive, got minimum {temperature.min():.4g} K"
        )

    time = table['Time'].to_numpy()
    if np.any(time < 0):
        raise DomainError(f"Time must be non-negative, got minimum {time.min():.4g} s")


def make_sample_table(
    temperature: ArrayLike,
    time: ArrayLike,
    moment: ArrayLike,
    field: Optional[ArrayLike] = None
) -> pd.DataFrame:
    """
    Build a validated sample table from column arrays.

    Parameters
    ----------
    temperature : array_like
        Sample temperature [K], must be positive
    time : array_like
        Time stamp [s], must be non-negative
    moment : array_like
        Corrected magnetic moment
    field : array_like, optional
        Applied field [Oe]; NaN when not recorded

    Returns
    -------
    samples : DataFrame
        Table with columns Temperature, Time, Moment, Field

    Raises
    ------
    ValueError
        If the columns differ in length
    DomainError
        If a value is outside the physical domain
    """
    temperature = np.asarray(temperature, dtype=float).ravel()
    time = np.asarray(time, dtype=float).ravel()
    moment = np.asarray(moment, dtype=float).ravel()
    if field is None:
        field = np.full_like(temperature, np.nan)
    else:
        field = np.broadcast_to(np.asarray(field, dtype=float), temperature.shape).copy()

    lengths = {len(temperature), len(time), len(moment), len(field)}
    if len(lengths) != 1:
        raise ValueError(
            f"Sample columns differ in length: temperature={len(temperature)}, "
            f"time={len(time)}, moment={len(moment)}, field={len(field)}"
        )

    samples = pd.DataFrame({
        'Temperature': temperature,
        'Time': time,
        'Moment': moment,
        'Field': field,
    })
    _check_domain(samples)
    return samples


def validate_sample_table(samples: pd.DataFrame) -> pd.DataFrame:
    """
    Validate an externally built sample table and return a clean copy.

    The copy has a fresh RangeIndex and float columns, so callers can keep
    mutating their own frame without affecting the analysis.
    """
    missing = [c for c in ('Temperature', 'Time', 'Moment') if c not in samples.columns]
    if missing:
        raise ValueError(f"Sample table is missing column(s): {missing}")

    field = samples['Field'] if 'Field' in samples.columns else None
    return make_sample_table(
        samples['Temperature'].to_numpy(),
        samples['Time'].to_numpy(),
        samples['Moment'].to_numpy(),
        None if field is None else field.to_numpy()
    )


def correct_moment(
    raw_moment: Union[float, NDArray[np.float64]],
    moles: float,
    field: Union[float, NDArray[np.float64]],
    xdm: float = 0.0,
    eicosane_xdm: float = 0.0,
    eicosane_moles: float = 0.0
) -> NDArray[np.float64]:
    """
    Convert a raw moment [emu] to a molar moment with diamagnetic corrections.

        M = m_raw / n - chi_eicosane * n_eicosane * H - chi_dm * H

    Parameters
    ----------
    raw_moment : float or ndarray
        Measured moment [emu]
    moles : float
        Sample amount [mol]
    field : float or ndarray
        Applied field [Oe]
    xdm : float, optional
        Diamagnetic susceptibility of the sample [emu/(mol Oe)]
    eicosane_xdm : float, optional
        Diamagnetic susceptibility of the eicosane matrix [emu/(mol Oe)]
    eicosane_moles : float, optional
        Amount of eicosane [mol]

    Returns
    -------
    moment : ndarray
        Corrected molar moment [emu/mol]
    """
    if not moles > 0:
        raise DomainError(f"Sample amount must be positive, got {moles}")

    raw_moment = np.asarray(raw_moment, dtype=float)
    field = np.asarray(field, dtype=float)
    return (raw_moment / moles
            - eicosane_xdm * eicosane_moles * field
            - xdm * field)


def _normalize_header(name: str) -> str:
    return re.sub(r'[^a-z0-9]', '', str(name).lower())


def _detect_delimiter(header_line: str) -> str:
    """Pick the delimiter (tab, semicolon or comma) giving the most header columns."""
    best_delimiter, max_columns = ',', 0
    for delim in ('\t', ';', ','):
        n_columns = len(header_line.split(delim))
        if n_columns > max_columns:
            best_delimiter, max_columns = delim, n_columns
    return best_delimiter


def _read_header_line(filename: str) -> str:
    """First line that is neither empty nor a '#' comment."""
    with open(filename, 'r', encoding='utf-8', errors='replace') as f:
        for line in f:
            stripped = line.strip()
            if stripped and not stripped.startswith('#'):
                return stripped
    raise ValueError(f"CSV file {filename} has no header line")


def load_sample_csv(filename: str, delimiter: Optional[str] = None) -> pd.DataFrame:
    """
    Load corrected samples from a CSV file.

    Column names are matched case-insensitively against common aliases,
    e.g. ``Temperature (K)``, ``Time Stamp (sec)``, ``Moment``,
    ``Magnetic Field (Oe)``. Lines starting with '#' are ignored. The
    Field column is optional.

    Parameters
    ----------
    filename : str
        Path to CSV file
    delimiter : str, optional
        Column delimiter. If None, auto-detected from the header line
        (tab, semicolon or comma).

    Returns
    -------
    samples : DataFrame
        Validated sample table

    Raises
    ------
    ValueError
        If a required column cannot be found
    DomainError
        If a value is outside the physical domain
    """
    if delimiter is None:
        delimiter = _detect_delimiter(_read_header_line(filename))
    logger.debug(f"CSV delimiter: {delimiter!r}")

    # Semicolon files usually come with decimal commas
    decimal = ',' if delimiter == ';' else '.'
    raw = pd.read_csv(filename, sep=delimiter, comment='#', decimal=decimal, skipinitialspace=True)

    lookup = {_normalize_header(col): col for col in raw.columns}
    columns = {}
    for target, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lookup:
                columns[target] = lookup[alias]
                break

    missing = [c for c in ('Temperature', 'Time', 'Moment') if c not in columns]
    if missing:
        raise ValueError(
            f"Cannot find column(s) {missing} in '{filename}'. "
            f"Available columns: {list(raw.columns)}"
        )

    logger.debug(f"CSV column mapping: {columns}")
    field = raw[columns['Field']].to_numpy() if 'Field' in columns else None
    samples = make_sample_table(
        raw[columns['Temperature']].to_numpy(),
        raw[columns['Time']].to_numpy(),
        raw[columns['Moment']].to_numpy(),
        field
    )
    logger.info(f"Loaded {len(samples)} samples from {filename}")
    return samples


__all__ = [
    'SAMPLE_COLUMNS',
    'DomainError',
    'make_sample_table',
    'validate_sample_table',
    'correct_moment',
    'load_sample_csv',
]
