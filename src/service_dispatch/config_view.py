"""Enabled-endpoint view over the configuration store.

Caches the enabled/provider-filtered endpoint lists for a short TTL so hot
paths do not rescan the whole configuration, while the cooldown filter is
re-applied on every call because health changes far more often than config.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

import structlog

from service_dispatch.health import HealthRegistry
from service_dispatch.observability.metrics import CONFIG_CACHE_EVENTS_TOTAL
from service_dispatch.types import ConfigEvent, EndpointConfig

logger = structlog.get_logger(__name__)

ALL_PROVIDERS_KEY = "__all__"
DEFAULT_CACHE_TTL_S = 1.0

ConfigListener = Callable[[ConfigEvent, str | None], Any]


class ConfigStore(ABC):
    """Source of endpoint configuration (the settings backend)."""

    @abstractmethod
    def load_endpoints(self) -> Sequence[EndpointConfig]:
        """Current endpoints, in configured order."""

    @abstractmethod
    def subscribe(self, event: ConfigEvent, handler: ConfigListener) -> None:
        """Call ``handler(event, endpoint_id)`` whenever ``event`` occurs."""


class ConfigView:
    """TTL-cached projection of the endpoints that may currently be selected."""

    def __init__(
        self,
        store: ConfigStore,
        registry: HealthRegistry,
        *,
        ttl_s: float = DEFAULT_CACHE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._registry = registry
        self._ttl = ttl_s
        self._clock = clock

        self._raw: list[EndpointConfig] | None = None
        self._enabled: dict[str, list[EndpointConfig]] = {}
        self._cached_at: float | None = None
        self._lock = threading.Lock()

    @property
    def ttl_s(self) -> float:
        return self._ttl

    def enabled_endpoints(self, provider: str | None = None) -> list[EndpointConfig]:
        """Enabled endpoints (optionally for one provider) not on cooldown."""
        return self._without_cooldown(self._enabled_for(provider))

    def invalidate(self) -> None:
        """Drop the raw snapshot and every derived list."""
        with self._lock:
            self._raw = None
            self._enabled.clear()
            self._cached_at = None
        CONFIG_CACHE_EVENTS_TOTAL.labels(result="invalidate").inc()
        logger.debug("config_cache_invalidated")

    # ── Internals ────────────────────────────────────────────
    def _enabled_for(self, provider: str | None) -> list[EndpointConfig]:
        cache_key = provider or ALL_PROVIDERS_KEY
        with self._lock:
            now = self._clock()
            if (
                self._cached_at is not None
                and now - self._cached_at < self._ttl
                and cache_key in self._enabled
            ):
                CONFIG_CACHE_EVENTS_TOTAL.labels(result="hit").inc()
                return self._enabled[cache_key]

            if self._raw is None:
                self._raw = list(self._store.load_endpoints())

            endpoints = [c for c in self._raw if c.enabled is not False]
            if provider:
                endpoints = [c for c in endpoints if c.provider == provider]

            # One timestamp covers every cache key.
            self._enabled[cache_key] = endpoints
            self._cached_at = now

        CONFIG_CACHE_EVENTS_TOTAL.labels(result="miss").inc()
        logger.debug(
            "config_cache_refreshed",
            cache_key=cache_key,
            enabled=len(endpoints),
        )
        return endpoints

    def _without_cooldown(
        self, endpoints: list[EndpointConfig]
    ) -> list[EndpointConfig]:
        if not self._registry.has_entries:
            return list(endpoints)

        now = self._registry.now()
        if len(endpoints) == 1:
            if self._registry.is_on_cooldown(endpoints[0].id, now):
                return []
            return list(endpoints)

        return [c for c in endpoints if not self._registry.is_on_cooldown(c.id, now)]
