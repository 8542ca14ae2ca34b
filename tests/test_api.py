"""HTTP tests for the comparison service."""

import pytest
from fastapi.testclient import TestClient

from abayes.core.config import settings
from abayes.main import app

URL = f"{settings.API_V1_PREFIX}/comparisons"


@pytest.fixture
def client():
    return TestClient(app)


def _body(**overrides):
    body = {
        "distribution": "bernoulli",
        "sample_a": [1, 0, 1, 1, 0, 1, 1, 1],
        "sample_b": [0, 0, 1, 0, 0, 0, 1, 0],
        "priors": {"alpha": 1, "beta": 1},
        "simulation_count": 5_000,
        "seed": 42,
    }
    body.update(overrides)
    return body


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


class TestComparisonsEndpoint:

    def test_summary_only(self, client):
        resp = client.post(URL, json=_body())
        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"]["distribution"] == "bernoulli"
        assert data["summary"]["simulation_count"] == 5_000
        assert 0 <= data["summary"]["primary"]["prob_a_gt_b"] <= 1
        assert data["loss_decision"] is None
        assert data["rope_decision"] is None

    def test_with_decisions(self, client):
        resp = client.post(URL, json=_body(loss_threshold=0.01, rope_width=0.05))
        assert resp.status_code == 200
        data = resp.json()
        assert data["loss_decision"]["loss_threshold"] == 0.01
        assert data["loss_decision"]["decision"] in {"choose_a", "choose_b", "keep_testing"}
        assert data["rope_decision"]["decision"] in {"choose_a", "choose_b", "equivalent", "undecided"}

    def test_seed_reproduces(self, client):
        first = client.post(URL, json=_body()).json()
        second = client.post(URL, json=_body()).json()
        assert first["summary"]["primary"] == second["summary"]["primary"]

    def test_invalid_prior(self, client):
        resp = client.post(URL, json=_body(priors={"alpha": -1, "beta": 1}))
        assert resp.status_code == 422
        assert "invalid prior domain" in resp.json()["detail"]

    def test_missing_prior_param(self, client):
        resp = client.post(URL, json=_body(priors={"alpha": 1}))
        assert resp.status_code == 422
        assert "invalid prior specification" in resp.json()["detail"]

    def test_empty_sample(self, client):
        resp = client.post(URL, json=_body(sample_a=[]))
        assert resp.status_code == 422
        assert "insufficient data" in resp.json()["detail"]

    def test_support_violation(self, client):
        resp = client.post(URL, json=_body(sample_b=[0, 2, 1]))
        assert resp.status_code == 422
        assert "sample violates distribution support" in resp.json()["detail"]

    def test_unknown_distribution(self, client):
        resp = client.post(URL, json=_body(distribution="binomial"))
        assert resp.status_code == 422

    def test_negative_seed(self, client):
        resp = client.post(URL, json=_body(seed=-1))
        assert resp.status_code == 422

    def test_simulation_count_above_maximum(self, client):
        resp = client.post(URL, json=_body(simulation_count=settings.MAX_SIMULATION_COUNT + 1))
        assert resp.status_code == 422

    def test_non_positive_loss_threshold(self, client):
        resp = client.post(URL, json=_body(loss_threshold=0))
        assert resp.status_code == 422
