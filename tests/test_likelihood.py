"""
Likelihood model tests: bivariate Gaussian formula, overflow handling,
scipy-backed models and the config factory.
"""

import math

import numpy as np
import pytest

from L4_intent import (
    BivariateGaussianLikelihood,
    FullCovarianceGaussianLikelihood,
    InferenceConfig,
    StudentTLikelihood,
    likelihood_from_config,
)


SIGMA = 0.06


def test_zero_delta_is_peak_density():
    """Identical observed and predicted velocity gives 1/(2π σx σy)."""
    model = BivariateGaussianLikelihood(SIGMA, SIGMA, 0.0)
    value = model.evaluate([1.0, 0.0], [1.0, 0.0])
    assert value == pytest.approx(1.0 / (2 * math.pi * SIGMA * SIGMA))


def test_matches_closed_form():
    model = BivariateGaussianLikelihood(0.1, 0.2, 0.0)
    dx, dy = 0.05, -0.1
    expected = (1.0 / (2 * math.pi * 0.1 * 0.2)
                * math.exp(-0.5 * (dx * dx / 0.01 + dy * dy / 0.04)))
    assert model.evaluate([dx, dy], [0.0, 0.0]) == pytest.approx(expected, rel=1e-12)


def test_symmetric_in_delta():
    model = BivariateGaussianLikelihood(SIGMA, SIGMA, 0.0)
    assert model.evaluate([0.3, 0.1], [0.2, 0.0]) == model.evaluate([0.2, 0.0], [0.3, 0.1])


def test_positive_correlation_favours_same_sign_deltas():
    model = BivariateGaussianLikelihood(SIGMA, SIGMA, 0.5)
    same_sign = model.evaluate([SIGMA, SIGMA], [0.0, 0.0])
    opposite_sign = model.evaluate([SIGMA, -SIGMA], [0.0, 0.0])
    assert same_sign > opposite_sign


def test_agrees_with_full_covariance_model():
    rho = 0.3
    gaussian = BivariateGaussianLikelihood(SIGMA, SIGMA, rho)
    covariance = np.array([[SIGMA ** 2, rho * SIGMA ** 2],
                           [rho * SIGMA ** 2, SIGMA ** 2]])
    full = FullCovarianceGaussianLikelihood(covariance)

    observed, predicted = [0.52, -0.11], [0.47, -0.05]
    assert gaussian.evaluate(observed, predicted) == pytest.approx(
        full.evaluate(observed, predicted), rel=1e-9
    )


def test_large_delta_underflows_to_zero():
    model = BivariateGaussianLikelihood(SIGMA, SIGMA, 0.0)
    value = model.evaluate([5.0, 0.0], [-5.0, 0.0])
    assert value == 0.0


def test_overflowing_delta_stays_finite():
    """Squared deltas overflowing to inf must still give a finite density."""
    model = BivariateGaussianLikelihood(SIGMA, SIGMA, 0.0)
    assert model.evaluate([1e200, 0.0], [-1e200, 0.0]) == 0.0

    correlated = BivariateGaussianLikelihood(SIGMA, SIGMA, 0.4)
    value = correlated.evaluate([1e200, 1e200], [0.0, 0.0])
    assert math.isfinite(value)
    assert value == 0.0


def test_from_config_uses_derived_sigma():
    config = InferenceConfig(max_acceleration=1.2, cycle_period=0.1)
    model = BivariateGaussianLikelihood.from_config(config)
    assert model.sigma_x == pytest.approx(0.06)
    assert model.sigma_y == pytest.approx(0.06)
    assert model.correlation == 0.0


@pytest.mark.parametrize("sigma_x, sigma_y, rho", [
    (0.0, 0.06, 0.0),
    (0.06, -1.0, 0.0),
    (0.06, 0.06, 1.0),
    (0.06, 0.06, -1.0),
    (1e-200, 1e-200, 0.0),
])
def test_invalid_parameters_rejected(sigma_x, sigma_y, rho):
    with pytest.raises(ValueError):
        BivariateGaussianLikelihood(sigma_x, sigma_y, rho)


def test_full_covariance_rejects_wrong_shape():
    with pytest.raises(ValueError):
        FullCovarianceGaussianLikelihood(np.eye(3))


def test_student_t_has_heavier_tails():
    gaussian = BivariateGaussianLikelihood(SIGMA, SIGMA, 0.0)
    student = StudentTLikelihood(SIGMA, dof=4.0)

    far = ([0.5, 0.0], [0.0, 0.0])
    assert student.evaluate(*far) > gaussian.evaluate(*far)
    assert student.evaluate([0.0, 0.0], [0.0, 0.0]) > student.evaluate(*far)


def test_factory_selects_model_by_name():
    assert isinstance(likelihood_from_config(InferenceConfig()), BivariateGaussianLikelihood)

    student = likelihood_from_config(InferenceConfig(likelihood_model="student_t",
                                                     student_t_dof=3.0))
    assert isinstance(student, StudentTLikelihood)
    assert student.dof == 3.0


def test_factory_rejects_unknown_model():
    with pytest.raises(ValueError, match="Unknown likelihood model"):
        likelihood_from_config(InferenceConfig(likelihood_model="laplace"))


def test_student_t_carries_configured_correlation():
    student = likelihood_from_config(InferenceConfig(likelihood_model="student_t",
                                                     correlation=0.5))
    assert student.correlation == 0.5
    assert student.shape[0, 1] == pytest.approx(0.5 * student.sigma ** 2)

    same_sign = student.evaluate([0.05, 0.05], [0.0, 0.0])
    opposite_sign = student.evaluate([0.05, -0.05], [0.0, 0.0])
    assert same_sign > opposite_sign


def test_student_t_rejects_invalid_correlation():
    with pytest.raises(ValueError):
        StudentTLikelihood(SIGMA, dof=4.0, correlation=1.0)
