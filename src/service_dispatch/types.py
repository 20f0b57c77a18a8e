"""Core types for the endpoint dispatch engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any


class ConfigEvent(str, enum.Enum):
    """Configuration-change notifications emitted by a config store."""

    SETTINGS_SAVED = "settings_saved"
    SETTINGS_LOADED = "settings_loaded"
    ENDPOINT_ADDED = "endpoint_added"
    ENDPOINT_UPDATED = "endpoint_updated"
    ENDPOINT_REMOVED = "endpoint_removed"
    DATA_CLEARED = "data_cleared"


class CooldownState(str, enum.Enum):
    """Selection state of an endpoint as seen by diagnostics."""

    READY = "ready"
    COOLING_DOWN = "cooling_down"
    DISABLED = "disabled"


@dataclass(frozen=True)
class EndpointConfig:
    """Static configuration for a single backend endpoint.

    Attributes:
        id:           Unique, stable identifier.
        name:         Human-readable label.
        provider:     Provider tag (e.g. "openai", "deepseek").
        enabled:      Disabled endpoints are never selected.
        priority:     Lower = earlier in the failover queue (after the
                      rotation-preferred endpoint).
        api_key_raw:  One or more credential keys separated by comma or newline.
        metadata:     Transport settings (model, base URL, ...). Never read here.
    """

    id: str
    name: str = ""
    provider: str = ""
    enabled: bool = True
    priority: int = 0
    api_key_raw: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ErrorInfo:
    """Opaque failure payload reported by the transport layer."""

    code: int
    message: str


@dataclass(frozen=True)
class LastError:
    code: int
    message: str
    timestamp: float


@dataclass
class KeyHealthEntry:
    """Health of a single credential key within an endpoint."""

    success_count: int = 0
    failure_count: int = 0
    cooldown_until: float | None = None
    last_error: LastError | None = None

    def is_on_cooldown(self, now: float) -> bool:
        return self.cooldown_until is not None and now < self.cooldown_until


@dataclass
class HealthEntry:
    """Runtime health of one endpoint, including its per-key state."""

    success_count: int = 0
    failure_count: int = 0
    last_used_at: float | None = None
    last_error: LastError | None = None
    cooldown_until: float | None = None
    keys: dict[str, KeyHealthEntry] = field(default_factory=dict)
    key_rotation_index: int = 0

    def is_on_cooldown(self, now: float) -> bool:
        return self.cooldown_until is not None and now < self.cooldown_until

    def snapshot(self) -> HealthEntry:
        """Deep-enough copy for handing out to readers."""
        return replace(
            self,
            keys={k: replace(v) for k, v in self.keys.items()},
        )


@dataclass(frozen=True)
class EndpointStatus:
    """Read-only diagnostics record for one endpoint."""

    endpoint_id: str
    name: str
    provider: str
    enabled: bool
    state: CooldownState
    success_count: int = 0
    failure_count: int = 0
    last_used_at: float | None = None
    on_cooldown: bool = False
    cooldown_remaining_ms: int | None = None
    last_error: LastError | None = None
    key_count: int = 0
    keys_on_cooldown: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint_id": self.endpoint_id,
            "name": self.name,
            "provider": self.provider,
            "enabled": self.enabled,
            "state": self.state.value,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_used_at": self.last_used_at,
            "on_cooldown": self.on_cooldown,
            "cooldown_remaining_ms": self.cooldown_remaining_ms,
            "last_error": (
                {
                    "code": self.last_error.code,
                    "message": self.last_error.message,
                    "timestamp": self.last_error.timestamp,
                }
                if self.last_error
                else None
            ),
            "key_count": self.key_count,
            "keys_on_cooldown": self.keys_on_cooldown,
        }
