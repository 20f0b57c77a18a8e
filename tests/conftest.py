"""Shared test fixtures."""

from __future__ import annotations

import pytest

from service_dispatch.config import DispatchSettings, get_settings
from service_dispatch.health import HealthRegistry
from service_dispatch.store import InMemoryConfigStore
from service_dispatch.types import EndpointConfig


class FakeClock:
    """Manually advanced clock, callable like ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> HealthRegistry:
    return HealthRegistry(clock=clock)


@pytest.fixture
def endpoints() -> list[EndpointConfig]:
    return [
        EndpointConfig(
            id="ep-openai-1",
            name="OpenAI primary",
            provider="openai",
            priority=2,
            api_key_raw="sk-aaaaaaaa1, sk-aaaaaaaa2",
        ),
        EndpointConfig(
            id="ep-deepseek",
            name="DeepSeek",
            provider="deepseek",
            priority=1,
            api_key_raw="ds-key-1\nds-key-2\nds-key-3",
        ),
        EndpointConfig(
            id="ep-openai-2",
            name="OpenAI backup",
            provider="openai",
            priority=0,
            api_key_raw="sk-bbbbbbbb1",
        ),
        EndpointConfig(
            id="ep-disabled",
            name="Retired",
            provider="openai",
            enabled=False,
            api_key_raw="old-key",
        ),
    ]


@pytest.fixture
def store(endpoints: list[EndpointConfig]) -> InMemoryConfigStore:
    return InMemoryConfigStore(endpoints)


@pytest.fixture
def settings() -> DispatchSettings:
    return get_settings(default_cooldown_s=60.0, key_cooldown_s=30.0)
