"""Tests for prior elicitation and empirical Bayes helpers."""

import pytest

from abayes.core.errors import ValidationError
from abayes.stats.distributions import validate
from abayes.stats.priors import (
    fit_beta_moment_matching,
    fit_gamma_moment_matching,
    historical_prior,
    prior_from_mean,
)


class TestPriorFromMean:

    def test_poisson_prior(self):
        prior = prior_from_mean("poisson", 2.3, 10)
        assert prior["shape"] == pytest.approx(23.0)
        assert prior["rate"] == pytest.approx(10.0)

    def test_scaling_strength_keeps_mean(self):
        weak = prior_from_mean("poisson", 2.3, 10)
        strong = prior_from_mean("poisson", 2.3, 100)
        assert weak["shape"] / weak["rate"] == pytest.approx(strong["shape"] / strong["rate"])
        assert strong["shape"] == pytest.approx(230.0)

    def test_bernoulli_prior(self):
        prior = prior_from_mean("bernoulli", 0.05, 20)
        assert prior["alpha"] == pytest.approx(1.0)
        assert prior["beta"] == pytest.approx(19.0)
        validate("bernoulli", prior)

    def test_exponential_prior(self):
        prior = prior_from_mean("exponential", 0.5, 4)
        assert prior == {"shape": pytest.approx(2.0), "rate": 4.0}

    def test_invalid_inputs(self):
        with pytest.raises(ValidationError):
            prior_from_mean("bernoulli", 1.0, 10)
        with pytest.raises(ValidationError):
            prior_from_mean("poisson", -1.0, 10)
        with pytest.raises(ValidationError):
            prior_from_mean("poisson", 2.3, 0)

    def test_family_without_mean_form(self):
        with pytest.raises(ValidationError, match="no mean/strength form"):
            prior_from_mean("normal", 1.0, 10)


class TestMomentMatching:
    """Test Beta and Gamma moment matching."""

    def test_beta_fit_preserves_mean(self):
        rates = [0.04, 0.05, 0.06, 0.05, 0.045, 0.055]
        alpha, beta = fit_beta_moment_matching(rates)
        assert alpha > 0 and beta > 0
        assert alpha / (alpha + beta) == pytest.approx(0.05, abs=1e-9)

    def test_beta_fit_variance(self):
        rates = [0.1, 0.2, 0.3]
        alpha, beta = fit_beta_moment_matching(rates)
        ab = alpha + beta
        var = alpha * beta / (ab * ab * (ab + 1))
        assert var == pytest.approx(0.01)

    def test_beta_needs_two_rates(self):
        with pytest.raises(ValidationError, match="insufficient data"):
            fit_beta_moment_matching([0.05])

    def test_beta_zero_variance_rejected(self):
        with pytest.raises(ValidationError):
            fit_beta_moment_matching([0.05, 0.05, 0.05])

    def test_beta_rates_outside_unit_interval(self):
        with pytest.raises(ValidationError):
            fit_beta_moment_matching([1.5, 2.5])

    def test_gamma_fit_preserves_mean(self):
        shape, rate = fit_gamma_moment_matching([2.0, 2.5, 3.0])
        assert shape / rate == pytest.approx(2.5)
        assert shape / rate ** 2 == pytest.approx(0.25)

    def test_historical_prior_dispatch(self):
        assert set(historical_prior("bernoulli", [0.1, 0.2, 0.3])) == {"alpha", "beta"}
        assert set(historical_prior("poisson", [2.0, 2.5, 3.0])) == {"shape", "rate"}
        with pytest.raises(ValidationError):
            historical_prior("uniform", [1.0, 2.0])
