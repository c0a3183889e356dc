#!/usr/bin/env python3
"""Test sample table ingestion, moment correction and CSV loading."""

import numpy as np
import pandas as pd
import pytest

from relax_analysis.io.samples import (
    DomainError,
    make_sample_table,
    validate_sample_table,
    correct_moment,
    load_sample_csv,
)


def test_make_sample_table_columns():
    samples = make_sample_table([2.0, 2.0], [0.0, 10.0], [5.0, 4.0])
    assert list(samples.columns) == ['Temperature', 'Time', 'Moment', 'Field']
    assert samples['Field'].isna().all()


def test_make_sample_table_broadcasts_scalar_field():
    samples = make_sample_table([2.0, 2.0], [0.0, 10.0], [5.0, 4.0], field=1000.0)
    assert np.all(samples['Field'] == 1000.0)


def test_domain_error_is_value_error():
    assert issubclass(DomainError, ValueError)


@pytest.mark.parametrize("temperature, time, moment", [
    ([0.0], [0.0], [1.0]),          # zero temperature
    ([-2.0], [0.0], [1.0]),         # negative temperature
    ([2.0], [-1.0], [1.0]),         # negative time
    ([2.0], [0.0], [np.nan]),       # non-finite moment
    ([np.inf], [0.0], [1.0]),       # non-finite temperature
])
def test_out_of_domain_samples_rejected(temperature, time, moment):
    with pytest.raises(DomainError):
        make_sample_table(temperature, time, moment)


def test_length_mismatch_rejected():
    with pytest.raises(ValueError, match="differ in length"):
        make_sample_table([2.0, 3.0], [0.0], [1.0, 1.0])


def test_validate_returns_independent_copy():
    raw = pd.DataFrame({'Temperature': [2.0], 'Time': [5.0], 'Moment': [1.0]}, index=[7])
    samples = validate_sample_table(raw)
    raw.loc[7, 'Moment'] = 100.0

    assert samples['Moment'].iloc[0] == 1.0
    assert list(samples.index) == [0]


def test_validate_missing_column():
    with pytest.raises(ValueError, match="missing"):
        validate_sample_table(pd.DataFrame({'Temperature': [2.0], 'Time': [0.0]}))


def test_correct_moment_applies_all_terms():
    """raw/n - chi_eicosane * n_eicosane * H - chi_dm * H."""
    moment = correct_moment(
        raw_moment=1.0, moles=0.5, field=1000.0,
        xdm=-1e-4, eicosane_xdm=-2e-4, eicosane_moles=0.01
    )
    assert np.isclose(moment, 2.0 + 0.002 + 0.1)


def test_correct_moment_without_background():
    raw = np.array([1e-3, 2e-3])
    assert np.allclose(correct_moment(raw, moles=1e-5, field=0.0), raw / 1e-5)


def test_correct_moment_rejects_non_positive_amount():
    with pytest.raises(DomainError):
        correct_moment(1.0, moles=0.0, field=1000.0)


def test_load_sample_csv_with_instrument_headers(tmp_path):
    path = tmp_path / "decay.csv"
    path.write_text(
        "# DC relaxation export\n"
        "Temperature (K),Time Stamp (sec),Moment (emu),Magnetic Field (Oe)\n"
        "2.01,1000.0,5.0,0\n"
        "2.00,1010.0,4.0,0\n"
        "1.99,1020.0,3.5,0\n"
    )
    samples = load_sample_csv(str(path))

    assert len(samples) == 3
    assert np.allclose(samples['Temperature'], [2.01, 2.00, 1.99])
    assert np.allclose(samples['Time'], [1000.0, 1010.0, 1020.0])
    assert np.allclose(samples['Field'], 0.0)


def test_load_sample_csv_semicolon_decimal_comma(tmp_path):
    path = tmp_path / "decay.csv"
    path.write_text("temperature;time;moment\n3,0;0;2,0\n3,0;5;1,5\n")
    samples = load_sample_csv(str(path))

    assert np.allclose(samples['Moment'], [2.0, 1.5])
    assert samples['Field'].isna().all()


def test_load_sample_csv_missing_moment(tmp_path):
    path = tmp_path / "decay.csv"
    path.write_text("Temperature,Time\n3.0,0\n")
    with pytest.raises(ValueError, match="Moment"):
        load_sample_csv(str(path))
