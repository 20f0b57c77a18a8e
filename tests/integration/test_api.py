"""Integration tests for the diagnostics API using FastAPI TestClient."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from service_dispatch.api import create_app
from service_dispatch.config import get_settings
from service_dispatch.dispatcher import ServiceDispatcher
from service_dispatch.types import ErrorInfo


@pytest.fixture
def dispatcher(store) -> ServiceDispatcher:
    return ServiceDispatcher(store, settings=get_settings())


@pytest.fixture
def client(dispatcher) -> TestClient:
    return TestClient(create_app(dispatcher))


class TestStatusEndpoints:
    def test_status(self, client, dispatcher) -> None:
        dispatcher.failover_queue()
        dispatcher.mark_failure("ep-deepseek", ErrorInfo(503, "unavailable"))

        resp = client.get("/dispatch/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["rotation_cursor"] == 1
        assert data["usable"] == 2
        by_id = {e["endpoint_id"]: e for e in data["endpoints"]}
        assert set(by_id) == {"ep-openai-1", "ep-deepseek", "ep-openai-2", "ep-disabled"}
        assert by_id["ep-deepseek"]["state"] == "cooling_down"
        assert by_id["ep-deepseek"]["last_error"]["code"] == 503
        assert by_id["ep-disabled"]["state"] == "disabled"

    def test_single_endpoint(self, client) -> None:
        resp = client.get("/dispatch/endpoints/ep-openai-1")
        assert resp.status_code == 200
        assert resp.json()["key_count"] == 2

    def test_unknown_endpoint_is_404(self, client) -> None:
        resp = client.get("/dispatch/endpoints/ghost")
        assert resp.status_code == 404
        assert resp.json()["code"] == "ENDPOINT_NOT_FOUND"


class TestOperatorEndpoints:
    def test_reset_rotation(self, client, dispatcher) -> None:
        dispatcher.failover_queue()
        resp = client.post("/dispatch/rotation/reset")
        assert resp.status_code == 200
        assert resp.json() == {"status": "reset", "rotation_cursor": 0}
        assert dispatcher.rotation_cursor == 0

    def test_reset_health(self, client, dispatcher) -> None:
        dispatcher.mark_failure("ep-openai-1", ErrorInfo(429, "slow down"))
        resp = client.post("/dispatch/health/reset")
        assert resp.status_code == 200
        assert dispatcher.stats("ep-openai-1") is None


class TestMetrics:
    def test_metrics_endpoint(self, client, dispatcher) -> None:
        dispatcher.mark_failure("ep-openai-1", ErrorInfo(429, "slow down"))
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert b"dispatch_endpoint_failures_total" in resp.content

    def test_metrics_can_be_disabled(self, store) -> None:
        settings = get_settings(metrics_enabled=False)
        client = TestClient(create_app(ServiceDispatcher(store, settings=settings)))
        assert client.get("/metrics").status_code == 404
