"""
Tests for item parameter priors.

Log-density derivatives are checked against centered finite differences of
the scipy log-densities.
"""

import numpy as np
import pytest

from gpcm_analysis.irt.priors import (
    BetaPrior,
    ItemParamPrior,
    LogNormalPrior,
    NormalPrior,
)

EPS = 1e-6


def numerical_deriv(prior: ItemParamPrior, x: float) -> float:
    return (prior.log_density(x + EPS) - prior.log_density(x - EPS)) / (
        2 * EPS
    )


class TestNormalPrior:
    def test_deriv_matches_numerical(self) -> None:
        prior = NormalPrior(mean=0.5, sd=2.0)
        for x in [-3.0, 0.0, 0.5, 4.0]:
            assert prior.log_density_deriv1(x) == pytest.approx(
                numerical_deriv(prior, x), abs=1e-6
            )

    def test_deriv_zero_at_mean(self) -> None:
        assert NormalPrior(mean=1.2, sd=0.3).log_density_deriv1(1.2) == 0.0

    def test_invalid_sd(self) -> None:
        with pytest.raises(ValueError):
            NormalPrior(sd=0.0)


class TestLogNormalPrior:
    def test_deriv_matches_numerical(self) -> None:
        prior = LogNormalPrior(mean=0.0, sd=0.5)
        for x in [0.3, 1.0, 2.5]:
            assert prior.log_density_deriv1(x) == pytest.approx(
                numerical_deriv(prior, x), rel=1e-5
            )

    def test_outside_support(self) -> None:
        prior = LogNormalPrior()
        assert prior.log_density(0.0) == -np.inf
        assert prior.log_density(-1.0) == -np.inf
        assert prior.log_density_deriv1(-1.0) == 0.0


class TestBetaPrior:
    def test_deriv_matches_numerical(self) -> None:
        prior = BetaPrior(alpha=2.0, beta=5.0, lower=0.0, upper=0.5)
        for x in [0.05, 0.1, 0.3]:
            assert prior.log_density_deriv1(x) == pytest.approx(
                numerical_deriv(prior, x), rel=1e-5
            )

    def test_outside_support(self) -> None:
        prior = BetaPrior(lower=0.0, upper=1.0)
        assert prior.log_density_deriv1(1.5) == 0.0
        assert prior.log_density_deriv1(-0.5) == 0.0

    def test_invalid_bounds(self) -> None:
        with pytest.raises(ValueError, match="upper"):
            BetaPrior(lower=1.0, upper=1.0)
        with pytest.raises(ValueError, match="shape"):
            BetaPrior(alpha=0.0)


def test_priors_satisfy_protocol() -> None:
    for prior in [NormalPrior(), LogNormalPrior(), BetaPrior()]:
        assert isinstance(prior, ItemParamPrior)
