#!/usr/bin/env python3
"""Test covariance and confidence intervals from the least-squares Jacobian."""

import numpy as np
import pytest
from scipy.stats import t

from relax_analysis.fitting.covariance import compute_covariance_matrix, compute_confidence_interval


def test_confidence_interval_margins():
    """CI margin is the t-quantile times the standard error."""
    params = np.array([250.0, 0.85])
    stderr = np.array([4.0, 0.02])
    n_data = 40
    dof = n_data - len(params)

    ci_low, ci_high = compute_confidence_interval(params, stderr, n_data, 0.95)

    expected_margin = t.ppf(0.975, dof) * stderr
    assert np.allclose(ci_high - params, expected_margin, rtol=1e-12)
    assert np.allclose(params - ci_low, expected_margin, rtol=1e-12)


def test_ci_99_wider_than_95():
    params = np.array([250.0, 0.85])
    stderr = np.array([4.0, 0.02])

    low_95, high_95 = compute_confidence_interval(params, stderr, 40, 0.95)
    low_99, high_99 = compute_confidence_interval(params, stderr, 40, 0.99)

    assert np.all(high_99 - low_99 > high_95 - low_95)


def test_ci_undefined_without_degrees_of_freedom():
    low, high = compute_confidence_interval(np.array([1.0, 2.0]), np.array([0.1, 0.1]), 2)
    assert np.all(np.isnan(low)) and np.all(np.isnan(high))


@pytest.mark.parametrize("level", [0.0, 1.0, 95.0])
def test_invalid_confidence_level(level):
    with pytest.raises(ValueError):
        compute_confidence_interval(np.array([1.0]), np.array([0.1]), 10, level)


def test_covariance_matches_linear_regression():
    """For a straight line the SVD covariance equals s^2 (X^T X)^-1."""
    np.random.seed(42)
    x = np.linspace(0.1, 0.2, 15)
    y = 100.0 * x - 23.0 + 0.05 * np.random.randn(len(x))

    X = np.column_stack([x, np.ones_like(x)])
    coef, *_ = np.linalg.lstsq(X, y, rcond=None)
    residuals = X @ coef - y

    result = compute_covariance_matrix(X, residuals)

    s2 = residuals @ residuals / (len(x) - 2)
    expected = s2 * np.linalg.inv(X.T @ X)
    assert np.allclose(result.cov, expected, rtol=1e-8)
    assert np.allclose(result.stderr, np.sqrt(np.diag(expected)), rtol=1e-8)
    assert result.dof == 13
    assert result.rank == 2
    assert result.is_well_conditioned
    assert result.warning_message is None


def test_covariance_scale_invariant_residuals():
    """Scaling residuals and Jacobian together leaves the covariance unchanged."""
    np.random.seed(42)
    J = np.random.randn(20, 2)
    r = 0.01 * np.random.randn(20)

    base = compute_covariance_matrix(J, r)
    scaled = compute_covariance_matrix(8.0 * J, 8.0 * r)

    assert np.allclose(base.cov, scaled.cov, rtol=1e-10)


def test_degenerate_covariance():
    result = compute_covariance_matrix(np.eye(2), np.zeros(2))

    assert result.is_degenerate
    assert result.cov is None
    assert np.all(np.isnan(result.stderr))
    assert "Degenerate" in result.warning_message


def test_rank_deficient_jacobian_reported():
    J = np.column_stack([np.linspace(1, 2, 10), 2 * np.linspace(1, 2, 10)])
    result = compute_covariance_matrix(J, 0.01 * np.ones(10))

    assert result.rank == 1
    assert not result.is_well_conditioned
    assert "Rank-deficient" in result.warning_message


def test_zero_jacobian():
    result = compute_covariance_matrix(np.zeros((10, 2)), np.ones(10))
    assert np.all(np.isinf(result.stderr))
    assert "Zero Jacobian" in result.warning_message
