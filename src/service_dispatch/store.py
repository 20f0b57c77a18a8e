"""In-memory configuration store with change notifications.

A process-local stand-in for the settings backend: it holds the ordered
endpoint list and fans each change out to subscribers.  For persistent
settings, implement ``ConfigStore`` on top of the real backend instead.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Iterable, Sequence

import structlog

from service_dispatch.config_view import ConfigListener, ConfigStore
from service_dispatch.exceptions import DuplicateEndpointError, EndpointNotFoundError
from service_dispatch.types import ConfigEvent, EndpointConfig

logger = structlog.get_logger(__name__)


class InMemoryConfigStore(ConfigStore):
    """Ordered endpoint list with synchronous publish/subscribe."""

    def __init__(self, endpoints: Iterable[EndpointConfig] = ()) -> None:
        self._endpoints: list[EndpointConfig] = list(endpoints)
        self._handlers: dict[ConfigEvent, list[ConfigListener]] = defaultdict(list)
        self._lock = threading.Lock()

    # ── ConfigStore port ─────────────────────────────────────
    def load_endpoints(self) -> Sequence[EndpointConfig]:
        with self._lock:
            return tuple(self._endpoints)

    def subscribe(self, event: ConfigEvent, handler: ConfigListener) -> None:
        self._handlers[event].append(handler)
        logger.debug("config_handler_registered", config_event=event.value)

    # ── Mutations ────────────────────────────────────────────
    def get(self, endpoint_id: str) -> EndpointConfig:
        with self._lock:
            for endpoint in self._endpoints:
                if endpoint.id == endpoint_id:
                    return endpoint
        raise EndpointNotFoundError(endpoint_id)

    def add(self, endpoint: EndpointConfig) -> None:
        with self._lock:
            if any(e.id == endpoint.id for e in self._endpoints):
                raise DuplicateEndpointError(endpoint.id)
            self._endpoints.append(endpoint)
        self._publish(ConfigEvent.ENDPOINT_ADDED, endpoint.id)

    def update(self, endpoint: EndpointConfig) -> None:
        """Replace an endpoint in place, keeping its position."""
        with self._lock:
            idx = self._index_of(endpoint.id)
            self._endpoints[idx] = endpoint
        self._publish(ConfigEvent.ENDPOINT_UPDATED, endpoint.id)

    def remove(self, endpoint_id: str) -> None:
        with self._lock:
            idx = self._index_of(endpoint_id)
            del self._endpoints[idx]
        self._publish(ConfigEvent.ENDPOINT_REMOVED, endpoint_id)

    def replace_all(self, endpoints: Iterable[EndpointConfig]) -> None:
        """Bulk reload, as when settings are loaded from disk."""
        with self._lock:
            self._endpoints = list(endpoints)
        self._publish(ConfigEvent.SETTINGS_LOADED)

    def save(self) -> None:
        """Signal that the current settings were persisted."""
        self._publish(ConfigEvent.SETTINGS_SAVED)

    def clear(self) -> None:
        with self._lock:
            self._endpoints.clear()
        self._publish(ConfigEvent.DATA_CLEARED)

    # ── Internals ────────────────────────────────────────────
    def _index_of(self, endpoint_id: str) -> int:
        """Caller holds lock."""
        for idx, endpoint in enumerate(self._endpoints):
            if endpoint.id == endpoint_id:
                return idx
        raise EndpointNotFoundError(endpoint_id)

    def _publish(self, event: ConfigEvent, endpoint_id: str | None = None) -> None:
        handlers = list(self._handlers.get(event, []))
        if not handlers:
            logger.debug("config_event_no_handlers", config_event=event.value)
            return

        logger.info(
            "config_event_published",
            config_event=event.value,
            endpoint=endpoint_id,
            handler_count=len(handlers),
        )
        for i, handler in enumerate(handlers):
            try:
                handler(event, endpoint_id)
            except Exception as exc:
                logger.error(
                    "config_handler_error",
                    config_event=event.value,
                    handler_index=i,
                    error=str(exc),
                )
