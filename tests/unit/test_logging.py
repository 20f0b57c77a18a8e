"""Tests for structlog configuration."""

from __future__ import annotations

import json

import pytest
import structlog

from service_dispatch.observability import configure_logging


@pytest.fixture(autouse=True)
def _restore_structlog():
    yield
    structlog.reset_defaults()


def test_json_logs(caplog: pytest.LogCaptureFixture) -> None:
    configure_logging(log_level="INFO", json_logs=True)
    structlog.get_logger("dispatch-test").info("endpoint_recovered", endpoint="ep-1")
    record = json.loads(caplog.records[-1].getMessage())
    assert record["event"] == "endpoint_recovered"
    assert record["endpoint"] == "ep-1"
    assert record["level"] == "info"
    assert record["logger"] == "dispatch-test"


def test_level_filtering(caplog: pytest.LogCaptureFixture) -> None:
    configure_logging(log_level="WARNING", json_logs=True)
    logger = structlog.get_logger("dispatch-test")
    logger.info("quiet")
    logger.warning("loud")
    messages = [r.getMessage() for r in caplog.records]
    assert not any("quiet" in m for m in messages)
    assert any("loud" in m for m in messages)
