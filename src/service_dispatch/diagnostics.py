"""Read-only status summary of the endpoint pool."""

from __future__ import annotations

from typing import Sequence

from service_dispatch.health import HealthRegistry
from service_dispatch.key_manager import parse_keys
from service_dispatch.observability.metrics import ENDPOINTS_COOLING_DOWN
from service_dispatch.rotation import RotationSelector
from service_dispatch.types import CooldownState, EndpointConfig, EndpointStatus


class DiagnosticsReporter:
    """Projects health and rotation state for display; never mutates it."""

    def __init__(self, registry: HealthRegistry, rotation: RotationSelector) -> None:
        self._registry = registry
        self._rotation = rotation

    def rotation_cursor(self) -> int:
        return self._rotation.peek()

    def summarize(
        self,
        candidates: Sequence[EndpointConfig],
        now: float | None = None,
    ) -> list[EndpointStatus]:
        now = self._registry.now() if now is None else now
        statuses = [self._status(c, now) for c in candidates]
        ENDPOINTS_COOLING_DOWN.set(sum(1 for s in statuses if s.on_cooldown))
        return statuses

    def _status(self, endpoint: EndpointConfig, now: float) -> EndpointStatus:
        entry = self._registry.stats(endpoint.id)
        keys = parse_keys(endpoint.api_key_raw)
        enabled = endpoint.enabled is not False

        on_cooldown = entry is not None and entry.is_on_cooldown(now)
        remaining_ms = None
        if on_cooldown and entry is not None and entry.cooldown_until is not None:
            remaining_ms = max(1, round((entry.cooldown_until - now) * 1000))

        keys_cooling = 0
        if entry is not None:
            keys_cooling = sum(
                1
                for k in keys
                if k in entry.keys and entry.keys[k].is_on_cooldown(now)
            )

        if not enabled:
            state = CooldownState.DISABLED
        elif on_cooldown:
            state = CooldownState.COOLING_DOWN
        else:
            state = CooldownState.READY

        if entry is None:
            return EndpointStatus(
                endpoint_id=endpoint.id,
                name=endpoint.name,
                provider=endpoint.provider,
                enabled=enabled,
                state=state,
                key_count=len(keys),
            )

        return EndpointStatus(
            endpoint_id=endpoint.id,
            name=endpoint.name,
            provider=endpoint.provider,
            enabled=enabled,
            state=state,
            success_count=entry.success_count,
            failure_count=entry.failure_count,
            last_used_at=entry.last_used_at,
            on_cooldown=on_cooldown,
            cooldown_remaining_ms=remaining_ms,
            last_error=entry.last_error,
            key_count=len(keys),
            keys_on_cooldown=keys_cooling,
        )
