#!/usr/bin/env python3
"""
Integration tests for the CLI workflow.

Tests end-to-end CLI workflows including:
1. Synthetic data analysis (no input file)
2. Decay fitting with a temperature range
3. Mechanism fitting from CLI seeds
4. File-based input (CSV)
5. Saving plots and result tables
6. Error handling and exit codes
"""

import sys
import os
import argparse
import logging

import numpy as np
import pandas as pd
import pytest

# Ensure the package and relax.py are importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Suppress matplotlib GUI
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from relax import main
from relax_analysis.cli import (
    load_relaxation_data,
    temp_range_from_args,
    run_decay_fitting,
    run_arrhenius_fitting,
    build_mechanism_parameters,
    parse_arguments,
    RelaxAnalysisError,
)
from relax_analysis.io import generate_relaxation_dataset

# Setup minimal logging for tests
logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')


def create_test_args(**kwargs) -> argparse.Namespace:
    """
    Create argparse.Namespace with default CLI arguments.

    Override defaults by passing keyword arguments.
    """
    defaults = {
        # Input/Output
        'input': None,
        'delimiter': None,
        'save': None,
        'format': 'png',
        'no_show': True,  # Always disable show in tests
        'verbose': 0,
        'quiet': True,

        # Decay fitting
        't_min': None,
        't_max': None,
        'rounding': 0.05,

        # Mechanism fitting
        'Ueff': None,
        'tau0': None,
        'qtm': None,
        'C': None,
        'n': None,
        'mechanism': [],
        'fix': [],
        'no_arrhenius': False,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


@pytest.fixture(scope="module")
def synthetic_data():
    return load_relaxation_data(create_test_args())


@pytest.fixture
def sample_csv(tmp_path):
    """Synthetic samples written as a CSV file."""
    np.random.seed(42)
    samples = generate_relaxation_dataset(
        temperatures=(2.0, 2.4, 2.8, 3.2), Ueff=50.0, tau0=1e-6, qtm=1e-4
    )
    path = tmp_path / 'samples.csv'
    samples.drop(columns='Field').to_csv(path, index=False)
    return str(path)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


# =============================================================================
# Data Loading
# =============================================================================

def test_synthetic_data_basic(synthetic_data):
    assert synthetic_data.title == "Synthetic data"
    assert list(synthetic_data.samples.columns) == ['Temperature', 'Time', 'Moment', 'Field']
    assert len(synthetic_data.samples) > 0


def test_synthetic_data_reproducible(synthetic_data):
    again = load_relaxation_data(create_test_args())
    pd.testing.assert_frame_equal(again.samples, synthetic_data.samples)


def test_csv_input(sample_csv):
    data = load_relaxation_data(create_test_args(input=sample_csv))

    assert data.title == 'samples.csv'
    assert np.all(np.isnan(data.samples['Field']))
    assert np.allclose(sorted(data.samples['Temperature'].round(1).unique()),
                       [2.0, 2.4, 2.8, 3.2])


# =============================================================================
# Temperature Range Options
# =============================================================================

def test_temp_range_from_args():
    assert temp_range_from_args(create_test_args()) is None
    assert temp_range_from_args(create_test_args(t_min=2.0, t_max=3.0)) == (2.0, 3.0)

    low, high = temp_range_from_args(create_test_args(t_min=2.5))
    assert low == 2.5 and high > 1e300

    low, high = temp_range_from_args(create_test_args(t_max=3.0))
    assert low == 0.0 and high == 3.0


def test_temp_range_inverted():
    with pytest.raises(RelaxAnalysisError):
        temp_range_from_args(create_test_args(t_min=4.0, t_max=2.0))


def test_decay_fitting_with_range(synthetic_data):
    args = create_test_args(t_min=2.5, t_max=3.1)
    analysis = run_decay_fitting(synthetic_data, args)

    assert np.allclose(analysis.temperatures, [2.6, 2.8, 3.0])
    assert np.allclose(analysis.temp_range, (2.6, 3.0))
    assert analysis.n_converged == 3


def test_decay_fitting_empty_range(synthetic_data):
    with pytest.raises(RelaxAnalysisError):
        run_decay_fitting(synthetic_data, create_test_args(t_min=10.0, t_max=20.0))


# =============================================================================
# Mechanism Parameters from CLI
# =============================================================================

def test_default_mechanism_is_orbach():
    params = build_mechanism_parameters(create_test_args())

    assert params.mechanisms == ('orbach',)
    assert params.Ueff.is_free and params.tau0.is_free
    assert params.qtm.is_excluded


def test_fixed_parameter_from_cli():
    args = create_test_args(Ueff=40.0, tau0=1e-7, C=1e-3, n=5.0, fix=['n'])
    params = build_mechanism_parameters(args)

    assert params.n.is_fixed and params.n.value == 5.0
    assert params.C.is_free
    assert params.mechanisms == ('orbach', 'raman')


def test_mechanism_option_uses_default_seeds():
    args = create_test_args(Ueff=40.0, tau0=1e-7, mechanism=['qtm', 'raman'])
    params = build_mechanism_parameters(args)

    assert params.mechanisms == ('orbach', 'qtm', 'raman')
    assert params.Ueff.value == 40.0
    assert params.qtm.value == 1e-3
    assert params.C.value == 1e-4 and params.n.value == 5.0


def test_half_mechanism_rejected():
    with pytest.raises(RelaxAnalysisError, match="raman"):
        build_mechanism_parameters(create_test_args(Ueff=40.0, tau0=1e-7, C=1e-3))


def test_fix_without_value_rejected():
    with pytest.raises(RelaxAnalysisError):
        build_mechanism_parameters(create_test_args(Ueff=40.0, tau0=1e-7, fix=['qtm']))


def test_arrhenius_from_cli_seeds(synthetic_data):
    analysis = run_decay_fitting(synthetic_data, create_test_args())
    args = create_test_args(Ueff=40.0, tau0=1e-7, qtm=1e-3)

    result = run_arrhenius_fitting(analysis, args)

    assert result is not None
    assert result.n_points == 8
    assert np.isclose(result.values['Ueff'], 50.0, rtol=0.1)


def test_arrhenius_skipped(synthetic_data):
    analysis = run_decay_fitting(synthetic_data, create_test_args(t_min=3.0))
    assert run_arrhenius_fitting(analysis, create_test_args(no_arrhenius=True)) is None


# =============================================================================
# Full CLI Runs
# =============================================================================

def test_parse_arguments():
    args = parse_arguments(['data.csv', '--t-min', '2', '--qtm', '1e-3', '--fix', 'qtm'])

    assert args.input == 'data.csv'
    assert args.t_min == 2.0 and args.t_max is None
    assert args.qtm == 1e-3
    assert args.fix == ['qtm']
    assert args.mechanism == []


def test_main_synthetic_with_save(tmp_path):
    prefix = str(tmp_path / 'run')
    main(['--Ueff', '40', '--tau0', '1e-7', '--qtm', '1e-3',
          '--save', prefix, '--no-show', '-q'])

    for suffix in ('moment.png', 'arrhenius.png', 'decay_fits.csv',
                   'tau_curve.csv', 'mechanism_fit.csv'):
        path = f"{prefix}_{suffix}"
        assert os.path.exists(path), f"{path} was not written"
        assert os.path.getsize(path) > 0

    fits = pd.read_csv(f"{prefix}_decay_fits.csv")
    assert len(fits) == 8
    assert fits['converged'].all()

    mechanism = pd.read_csv(f"{prefix}_mechanism_fit.csv").set_index('parameter')
    assert mechanism.loc['Ueff', 'status'] == 'free'
    assert mechanism.loc['C', 'status'] == 'excluded'


def test_main_csv_input(sample_csv, tmp_path):
    prefix = str(tmp_path / 'csv')
    main([sample_csv, '--qtm', '1e-3', '--Ueff', '40', '--tau0', '1e-7',
          '--save', prefix, '--format', 'svg', '--no-show', '-q'])

    assert os.path.exists(f"{prefix}_moment.svg")
    tau_curve = pd.read_csv(f"{prefix}_tau_curve.csv")
    assert np.allclose(tau_curve['Temperature'], [2.0, 2.4, 2.8, 3.2])


@pytest.mark.parametrize("argv", [
    ['/nonexistent/file.csv'],
    ['--C', '1e-3'],
    ['--t-min', '4', '--t-max', '2'],
    ['--t-min', '10', '--t-max', '20'],
])
def test_main_error_exit_code(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv + ['--no-show', '-q'])
    assert exc_info.value.code == 1
