# =============================================================================
# L4 Intent - Likelihood Models
# =============================================================================
# Emission models converting an (observed velocity, predicted velocity) pair
# into a scalar likelihood. All models are stateless and total over finite
# real inputs: the result is always finite and non-negative.
#
# Models:
# - BivariateGaussianLikelihood: per-axis sigma with fixed correlation
# - FullCovarianceGaussianLikelihood: arbitrary 2x2 covariance
# - StudentTLikelihood: heavy-tailed emission for outlier observations
# =============================================================================

import math
import numpy as np
from abc import ABC, abstractmethod
from typing import Sequence
from scipy.stats import multivariate_normal, multivariate_t

from .types import InferenceConfig
from .config import VELOCITY_SIGMA, VELOCITY_CORRELATION, STUDENT_T_DOF


class LikelihoodModel(ABC):
    """
    Abstract emission model.

    Subclasses must implement evaluate() returning p(observed | predicted).
    """

    @abstractmethod
    def evaluate(self, observed: Sequence[float], predicted: Sequence[float]) -> float:
        """
        Likelihood of the observed velocity given the predicted one.

        Args:
            observed: Observed velocity [vx, vy]
            predicted: Velocity predicted by the simulation oracle [vx, vy]

        Returns:
            Finite, non-negative density value
        """
        pass


class BivariateGaussianLikelihood(LikelihoodModel):
    """
    Zero-mean bivariate Gaussian density evaluated at (observed - predicted).

    density = 1 / (2π σx σy √(1-ρ²))
              · exp(-1/(2(1-ρ²)) · (Δx²/σx² + Δy²/σy² - 2ρΔxΔy/(σxσy)))

    Evaluated in plain float arithmetic so the value is reproducible
    bit-for-bit from its inputs.
    """

    def __init__(self,
                 sigma_x: float = VELOCITY_SIGMA,
                 sigma_y: float = VELOCITY_SIGMA,
                 correlation: float = VELOCITY_CORRELATION):
        if sigma_x <= 0 or sigma_y <= 0:
            raise ValueError(f"Standard deviations must be positive, got ({sigma_x}, {sigma_y})")
        if not -1.0 < correlation < 1.0:
            raise ValueError(f"Correlation must lie in (-1, 1), got {correlation}")

        self.sigma_x = float(sigma_x)
        self.sigma_y = float(sigma_y)
        self.correlation = float(correlation)

        self._one_minus_rho2 = 1.0 - self.correlation * self.correlation
        denominator = (2.0 * math.pi * self.sigma_x * self.sigma_y
                       * math.sqrt(self._one_minus_rho2))
        if denominator == 0.0 or not math.isfinite(1.0 / denominator):
            raise ValueError(
                f"Standard deviations ({sigma_x}, {sigma_y}) are too small for a finite density"
            )
        self._coefficient = 1.0 / denominator

    @classmethod
    def from_config(cls, config: InferenceConfig) -> "BivariateGaussianLikelihood":
        sigma = config.velocity_sigma
        return cls(sigma_x=sigma, sigma_y=sigma, correlation=config.correlation)

    def evaluate(self, observed: Sequence[float], predicted: Sequence[float]) -> float:
        dx = float(observed[0]) - float(predicted[0])
        dy = float(observed[1]) - float(predicted[1])

        # Products instead of ** so that huge deltas overflow to inf, not raise
        t1 = (dx * dx) / (self.sigma_x * self.sigma_x)
        t2 = (dy * dy) / (self.sigma_y * self.sigma_y)
        t3 = (2.0 * self.correlation * dx * dy) / (self.sigma_x * self.sigma_y)

        exponent = -(t1 + t2 - t3) / (2.0 * self._one_minus_rho2)
        if math.isnan(exponent):
            # inf - inf from opposing overflowed terms: infinitely far away
            return 0.0
        return self._coefficient * math.exp(exponent)


class FullCovarianceGaussianLikelihood(LikelihoodModel):
    """Zero-mean Gaussian with an arbitrary positive-definite 2x2 covariance."""

    def __init__(self, covariance: np.ndarray):
        covariance = np.asarray(covariance, dtype=float)
        if covariance.shape != (2, 2):
            raise ValueError(f"Covariance must be 2x2, got shape {covariance.shape}")
        # Raises for non-symmetric / non positive-definite matrices
        self._distribution = multivariate_normal(mean=np.zeros(2), cov=covariance)
        self.covariance = covariance

    @classmethod
    def from_config(cls, config: InferenceConfig) -> "FullCovarianceGaussianLikelihood":
        sigma = config.velocity_sigma
        off_diagonal = config.correlation * sigma * sigma
        return cls(np.array([[sigma * sigma, off_diagonal],
                             [off_diagonal, sigma * sigma]]))

    def evaluate(self, observed: Sequence[float], predicted: Sequence[float]) -> float:
        delta = np.asarray(observed, dtype=float) - np.asarray(predicted, dtype=float)
        return float(self._distribution.pdf(delta))


class StudentTLikelihood(LikelihoodModel):
    """
    Bivariate Student-t emission model.

    Heavier tails than the Gaussian keep a single outlier observation from
    collapsing every likelihood in the cycle to zero.
    """

    def __init__(self, sigma: float = VELOCITY_SIGMA, dof: float = STUDENT_T_DOF,
                 correlation: float = VELOCITY_CORRELATION):
        if sigma <= 0:
            raise ValueError(f"Scale must be positive, got {sigma}")
        if dof <= 0:
            raise ValueError(f"Degrees of freedom must be positive, got {dof}")
        if not -1.0 < correlation < 1.0:
            raise ValueError(f"Correlation must lie in (-1, 1), got {correlation}")
        self.sigma = float(sigma)
        self.dof = float(dof)
        self.correlation = float(correlation)

        variance = self.sigma * self.sigma
        off_diagonal = self.correlation * variance
        self.shape = np.array([[variance, off_diagonal],
                               [off_diagonal, variance]])
        self._distribution = multivariate_t(loc=np.zeros(2), shape=self.shape, df=self.dof)

    @classmethod
    def from_config(cls, config: InferenceConfig) -> "StudentTLikelihood":
        return cls(sigma=config.velocity_sigma, dof=config.student_t_dof,
                   correlation=config.correlation)

    def evaluate(self, observed: Sequence[float], predicted: Sequence[float]) -> float:
        delta = np.asarray(observed, dtype=float) - np.asarray(predicted, dtype=float)
        return float(self._distribution.pdf(delta))


# =============================================================================
# Factory
# =============================================================================

LIKELIHOOD_MODELS = {
    'gaussian': BivariateGaussianLikelihood,
    'student_t': StudentTLikelihood,
}


def likelihood_from_config(config: InferenceConfig) -> LikelihoodModel:
    """Return the emission model named by config.likelihood_model."""
    try:
        model_class = LIKELIHOOD_MODELS[config.likelihood_model]
    except KeyError:
        raise ValueError(f"Unknown likelihood model: {config.likelihood_model}") from None
    return model_class.from_config(config)
