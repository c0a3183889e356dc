#!/usr/bin/env python3
"""Test the relaxation mechanism fit of tau(T)."""

import numpy as np
import pytest

from relax_analysis.fitting import (
    MechanismParameters,
    TauCurve,
    fit_arrhenius,
    fixed,
    seeded,
)
from relax_analysis.io.synthetic import generate_tau_curve


@pytest.fixture
def orbach_curve():
    """Pure Orbach tau(T) with Ueff = 100 K, tau0 = 1e-10 s (qtm = 0)."""
    return generate_tau_curve(np.linspace(5.0, 10.0, 8), Ueff=100.0, tau0=1e-10, qtm=0.0)


@pytest.fixture
def orbach_seeds():
    return MechanismParameters.from_values(Ueff=80.0, tau0=1e-9)


def test_recovers_orbach_parameters(orbach_curve, orbach_seeds):
    result = fit_arrhenius(orbach_curve, orbach_seeds)

    assert np.isclose(result.values['Ueff'], 100.0, rtol=1e-6)
    assert np.isclose(result.values['tau0'], 1e-10, rtol=1e-5)
    assert result.mechanisms == ('orbach',)
    assert result.n_points == 8
    assert result.n_free == 2
    assert not result.is_degenerate
    assert result.quality == 'excellent'
    assert np.allclose(result.predict_tau(orbach_curve.temperature), orbach_curve.tau, rtol=1e-5)


def test_excluded_parameters_not_applicable(orbach_curve, orbach_seeds):
    result = fit_arrhenius(orbach_curve, orbach_seeds)

    for name in ('qtm', 'C', 'n'):
        assert result.status(name) == 'excluded'
        assert not result.is_free(name)
        assert np.isnan(result.values[name])
        assert np.isnan(result.stderr[name])
        assert all(np.isnan(result.ci(name)))


def test_ci_brackets_estimate_with_noise():
    np.random.seed(42)
    curve = generate_tau_curve(np.linspace(5.0, 10.0, 12), Ueff=100.0, tau0=1e-10, noise=0.05)
    result = fit_arrhenius(curve, MechanismParameters.from_values(Ueff=80.0, tau0=1e-9))

    assert np.isclose(result.values['Ueff'], 100.0, rtol=0.1)
    for name in ('Ueff', 'tau0'):
        low, high = result.ci(name)
        assert low < result.values[name] < high
        assert result.stderr[name] > 0


def test_tau0_interval_is_positive():
    """tau0 is fitted as ln(tau0), so its interval never reaches zero."""
    np.random.seed(42)
    curve = generate_tau_curve(np.linspace(5.0, 7.0, 5), Ueff=100.0, tau0=1e-10, noise=0.3)
    result = fit_arrhenius(curve, MechanismParameters.from_values(Ueff=80.0, tau0=1e-9))

    low, high = result.ci('tau0')
    assert 0 < low < result.values['tau0'] < high


def test_fixed_parameter_held_constant(orbach_curve):
    params = MechanismParameters.from_values(Ueff=80.0).with_params(tau0=fixed(1e-10))
    result = fit_arrhenius(orbach_curve, params)

    assert result.status('tau0') == 'fixed'
    assert result.values['tau0'] == 1e-10
    assert np.isnan(result.stderr['tau0'])
    assert all(np.isnan(result.ci('tau0')))
    assert result.n_free == 1
    assert np.isclose(result.values['Ueff'], 100.0, rtol=1e-6)
    assert result.status('Ueff') == 'free'


def test_two_points_degenerate_without_raising():
    curve = generate_tau_curve([5.0, 8.0], Ueff=100.0, tau0=1e-10)
    result = fit_arrhenius(curve, MechanismParameters.from_values(Ueff=80.0, tau0=1e-9))

    assert result.is_degenerate
    assert result.n_points == 2
    assert np.isclose(result.values['Ueff'], 100.0, rtol=1e-5)
    assert all(np.isnan(result.ci('Ueff')))
    assert all(np.isnan(result.ci('tau0')))
    assert any('Degenerate' in w for w in result.all_warnings)


def test_three_point_curve_with_rising_tau():
    """tau grows with T here, so the barrier is pushed to its lower bound."""
    curve = TauCurve(temperature=[5.0, 8.0, 11.1], tau=[1e-9, 2e-8, 5e-7])
    result = fit_arrhenius(curve, MechanismParameters().with_params(
        Ueff=seeded(100.0), tau0=seeded(1e-9)))

    assert result.n_points == 3
    assert result.values['Ueff'] > 0
    assert result.values['tau0'] > 0
    assert np.isfinite(result.values['tau0'])
    assert result.mechanisms == ('orbach',)


def test_recovers_orbach_plus_qtm():
    curve = generate_tau_curve(np.linspace(2.0, 8.0, 15), Ueff=50.0, tau0=1e-6, qtm=1e-4)
    params = MechanismParameters.from_values(Ueff=40.0, tau0=1e-7, qtm=1e-3)

    result = fit_arrhenius(curve, params)

    assert result.mechanisms == ('orbach', 'qtm')
    assert np.isclose(result.values['Ueff'], 50.0, rtol=1e-3)
    assert np.isclose(result.values['tau0'], 1e-6, rtol=1e-2)
    assert np.isclose(result.values['qtm'], 1e-4, rtol=1e-3)


def test_raman_with_fixed_exponent():
    curve = generate_tau_curve(np.linspace(2.0, 10.0, 12), qtm=1e-2, C=1e-3, n=4.0)
    params = MechanismParameters.from_values(fixed_names=('n',), qtm=1e-1, C=1e-2, n=4.0)

    result = fit_arrhenius(curve, params)

    assert result.mechanisms == ('qtm', 'raman')
    assert np.isclose(result.values['C'], 1e-3, rtol=1e-4)
    assert np.isclose(result.values['qtm'], 1e-2, rtol=1e-4)
    assert result.values['n'] == 4.0


def test_empty_curve_raises(orbach_seeds):
    with pytest.raises(ValueError, match="empty"):
        fit_arrhenius(TauCurve(temperature=[], tau=[]), orbach_seeds)


def test_no_free_parameter_raises(orbach_curve):
    params = MechanismParameters().with_params(Ueff=fixed(100.0), tau0=fixed(1e-10))
    with pytest.raises(ValueError, match="No free"):
        fit_arrhenius(orbach_curve, params)


def test_result_table(orbach_curve, orbach_seeds):
    table = fit_arrhenius(orbach_curve, orbach_seeds).to_frame()

    assert table['parameter'].tolist() == ['Ueff', 'tau0', 'qtm', 'C', 'n']
    assert table['status'].tolist() == ['free', 'free', 'excluded', 'excluded', 'excluded']
    assert table.loc[2:, 'ci_low'].isna().all()


def test_tau_curve_rejects_non_physical_points():
    from relax_analysis.io import DomainError

    with pytest.raises(DomainError):
        TauCurve(temperature=[5.0, -1.0], tau=[1.0, 2.0])
    with pytest.raises(DomainError):
        TauCurve(temperature=[5.0, 6.0], tau=[1.0, 0.0])


def test_tau_curve_sorted_and_restricted():
    curve = TauCurve(temperature=[8.0, 5.0, 6.0], tau=[1.0, 3.0, 2.0])
    assert curve.temperature.tolist() == [5.0, 6.0, 8.0]
    assert curve.tau.tolist() == [3.0, 2.0, 1.0]

    sub = curve.restrict((5.5, 8.0))
    assert sub.temperature.tolist() == [6.0, 8.0]
    assert sub.temp_range == (6.0, 8.0)
