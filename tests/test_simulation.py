"""Calibration runs: false-positive rates under a shared truth."""

import math
import threading

import numpy as np
import pytest

from abayes.core.errors import ValidationError
from abayes.stats.simulation import (
    CalibrationReport,
    bernoulli_null,
    poisson_null,
    run_calibration,
)

STRONG = {"shape": 230, "rate": 100}
MEDIUM = {"shape": 23, "rate": 10}
FLAT = {"shape": 1e-5, "rate": 1e-5}


class TestPoissonCalibration:
    """Poisson(2.3) in both groups, 100 observations each."""

    def test_medium_prior_false_positive_rate(self):
        report = run_calibration(
            poisson_null(2.3, 100), MEDIUM, "poisson",
            trials=300, threshold=0.1, simulation_count=2_000, seed=17,
        )
        assert isinstance(report, CalibrationReport)
        assert report.completed == 300
        assert not report.cancelled
        assert report.false_positive_rate < 0.15

    def test_stronger_prior_fewer_false_positives(self):
        """Same data and draws for every prior; only the prior strength differs."""
        kwargs = dict(trials=1_000, threshold=0.1, simulation_count=2_000, seed=2023)
        strong = run_calibration(poisson_null(2.3, 100), STRONG, "poisson", **kwargs)
        medium = run_calibration(poisson_null(2.3, 100), MEDIUM, "poisson", **kwargs)
        flat = run_calibration(poisson_null(2.3, 100), FLAT, "poisson", **kwargs)
        assert strong.significant < medium.significant
        assert medium.significant < flat.significant
        assert flat.false_positive_rate == pytest.approx(0.1, abs=0.03)

    def test_probabilities_in_trial_order(self):
        report = run_calibration(
            poisson_null(2.3, 50), MEDIUM, "poisson",
            trials=25, threshold=0.1, simulation_count=1_000, seed=3, max_workers=4,
        )
        assert report.probabilities.shape == (25,)
        assert np.all((report.probabilities >= 0) & (report.probabilities <= 1))
        with pytest.raises(ValueError):
            report.probabilities[0] = 0.5

    def test_reproducible_with_seed(self):
        kwargs = dict(trials=20, threshold=0.1, simulation_count=1_000, seed=7, max_workers=4)
        r1 = run_calibration(poisson_null(2.3, 50), MEDIUM, "poisson", **kwargs)
        r2 = run_calibration(poisson_null(2.3, 50), MEDIUM, "poisson", **kwargs)
        np.testing.assert_array_equal(r1.probabilities, r2.probabilities)
        assert r1.significant == r2.significant


class TestCancellation:

    def test_cancel_mid_run(self):
        cancel = threading.Event()
        calls = []
        base = poisson_null(2.3, 30)

        def generate(rng):
            calls.append(1)
            if len(calls) == 5:
                cancel.set()
            return base(rng)

        report = run_calibration(
            generate, MEDIUM, "poisson",
            trials=50, threshold=0.1, simulation_count=1_000, seed=1,
            max_workers=1, cancel=cancel,
        )
        assert report.cancelled
        assert report.requested == 50
        assert report.completed == 5
        assert report.probabilities.shape == (5,)

    def test_cancelled_before_start(self):
        cancel = threading.Event()
        cancel.set()
        report = run_calibration(
            poisson_null(2.3, 30), MEDIUM, "poisson",
            trials=10, threshold=0.1, seed=1, cancel=cancel,
        )
        assert report.completed == 0
        assert report.cancelled
        assert math.isnan(report.false_positive_rate)


class TestCalibrationArguments:

    def test_zero_trials(self):
        with pytest.raises(ValidationError):
            run_calibration(poisson_null(2.3, 10), MEDIUM, "poisson", trials=0, threshold=0.1)

    @pytest.mark.parametrize("threshold", [0.0, 1.0, -0.5])
    def test_bad_threshold(self, threshold):
        with pytest.raises(ValidationError):
            run_calibration(poisson_null(2.3, 10), MEDIUM, "poisson", trials=5, threshold=threshold)

    def test_negative_seed(self):
        with pytest.raises(ValidationError, match="seed must be a non-negative integer"):
            run_calibration(poisson_null(2.3, 10), MEDIUM, "poisson", trials=2, threshold=0.1, seed=-3)

    def test_invalid_prior_propagates(self):
        with pytest.raises(ValidationError, match="invalid prior domain"):
            run_calibration(
                poisson_null(2.3, 10), {"shape": -1, "rate": 1}, "poisson",
                trials=2, threshold=0.1, simulation_count=1_000, seed=0,
            )


def test_bernoulli_null_smoke():
    report = run_calibration(
        bernoulli_null(0.1, 200), {"alpha": 1, "beta": 1}, "bernoulli",
        trials=20, threshold=0.1, simulation_count=1_000, seed=5,
    )
    assert report.completed == 20
    assert 0 <= report.significant <= 20
