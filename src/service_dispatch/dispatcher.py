"""Service dispatcher - the entry-point the transport layer talks to.

Composes HealthRegistry, ConfigView, RotationSelector, FailoverQueueBuilder,
KeyRotationSelector and DiagnosticsReporter.  The dispatcher never performs
a request itself; a caller follows this loop::

    dispatcher = ServiceDispatcher(store)

    for endpoint in dispatcher.failover_queue(provider="openai"):
        key = dispatcher.next_key(endpoint)
        if key is None:
            continue
        try:
            result = call_api(endpoint, key)
        except ApiError as exc:
            dispatcher.mark_key_failure(endpoint.id, key, ErrorInfo(exc.status, str(exc)))
            dispatcher.mark_failure(endpoint.id, ErrorInfo(exc.status, str(exc)))
            continue
        dispatcher.mark_key_success(endpoint.id, key)
        dispatcher.mark_success(endpoint.id)
        break
"""

from __future__ import annotations

import structlog

from service_dispatch.config import DispatchSettings, get_settings
from service_dispatch.config_view import ConfigStore, ConfigView
from service_dispatch.diagnostics import DiagnosticsReporter
from service_dispatch.failover import FailoverQueueBuilder
from service_dispatch.health import HealthRegistry
from service_dispatch.key_manager import KeyRotationSelector
from service_dispatch.rotation import RotationSelector
from service_dispatch.types import (
    ConfigEvent,
    EndpointConfig,
    EndpointStatus,
    ErrorInfo,
    HealthEntry,
)

logger = structlog.get_logger(__name__)


class ServiceDispatcher:
    """Load-balancing facade over one configuration store."""

    def __init__(
        self,
        store: ConfigStore,
        *,
        settings: DispatchSettings | None = None,
        registry: HealthRegistry | None = None,
        rotation: RotationSelector | None = None,
        view: ConfigView | None = None,
        subscribe: bool = True,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store
        self.registry = registry or HealthRegistry(
            default_cooldown_s=self._settings.default_cooldown_s,
        )
        self.rotation = rotation or RotationSelector(
            wrap_threshold=self._settings.rotation_wrap_threshold,
        )
        self.view = view or ConfigView(
            store,
            self.registry,
            ttl_s=self._settings.config_cache_ttl_s,
        )
        self.failover = FailoverQueueBuilder(self.rotation)
        self.keys = KeyRotationSelector(
            self.registry,
            key_cooldown_s=self._settings.key_cooldown_s,
        )
        self.diagnostics = DiagnosticsReporter(self.registry, self.rotation)

        if subscribe:
            self.attach(store)

    @property
    def settings(self) -> DispatchSettings:
        return self._settings

    # ── Config change wiring ─────────────────────────────────
    def attach(self, store: ConfigStore) -> None:
        """Register for every change notification the store emits."""
        for event in ConfigEvent:
            store.subscribe(event, self.on_config_changed)

    def on_config_changed(
        self, event: ConfigEvent, endpoint_id: str | None = None
    ) -> None:
        """Invalidate cached config; purge health state of removed endpoints."""
        self.view.invalidate()
        if event == ConfigEvent.ENDPOINT_REMOVED and endpoint_id:
            self.registry.remove(endpoint_id)
        logger.debug(
            "config_change_applied",
            config_event=event.value,
            endpoint=endpoint_id,
        )

    # ── Selection ────────────────────────────────────────────
    def enabled_endpoints(self, provider: str | None = None) -> list[EndpointConfig]:
        return self.view.enabled_endpoints(provider)

    def next_endpoint(self, provider: str | None = None) -> EndpointConfig | None:
        """Plain round-robin pick among the usable endpoints."""
        return self.rotation.next(self.enabled_endpoints(provider))

    def failover_queue(self, provider: str | None = None) -> list[EndpointConfig]:
        """Ordered attempt sequence for one logical request."""
        candidates = self.enabled_endpoints(provider)
        if not candidates:
            logger.warning("no_available_endpoints", provider=provider)
        return self.failover.build(candidates)

    def next_key(self, endpoint: EndpointConfig) -> str | None:
        return self.keys.next_available_key(endpoint.id, endpoint.api_key_raw)

    # ── Outcome reports ──────────────────────────────────────
    def mark_success(self, endpoint_id: str) -> None:
        self.registry.report_success(endpoint_id)

    def mark_failure(
        self,
        endpoint_id: str,
        error: ErrorInfo,
        cooldown_s: float | None = None,
    ) -> None:
        self.registry.report_failure(endpoint_id, error, cooldown_s)

    def mark_key_success(self, endpoint_id: str, key: str) -> None:
        self.keys.report_key_success(endpoint_id, key)

    def mark_key_failure(
        self,
        endpoint_id: str,
        key: str,
        error: ErrorInfo,
        cooldown_s: float | None = None,
    ) -> None:
        self.keys.report_key_failure(endpoint_id, key, error, cooldown_s)

    # ── Diagnostics / operator actions ───────────────────────
    def stats(self, endpoint_id: str) -> HealthEntry | None:
        return self.registry.stats(endpoint_id)

    def status(self) -> list[EndpointStatus]:
        """Status of every configured endpoint, enabled or not."""
        return self.diagnostics.summarize(self._store.load_endpoints())

    @property
    def rotation_cursor(self) -> int:
        return self.diagnostics.rotation_cursor()

    def reset_rotation(self) -> None:
        self.rotation.reset()

    def reset_health(self) -> None:
        self.registry.clear_all()
