"""Endpoint dispatch engine.

Round-robin selection, priority failover ordering, per-key rotation, and
cooldown-based health tracking for a pool of backend API endpoints.
"""

from service_dispatch.types import (
    ConfigEvent,
    CooldownState,
    EndpointConfig,
    EndpointStatus,
    ErrorInfo,
    HealthEntry,
    KeyHealthEntry,
    LastError,
)
from service_dispatch.health import HealthRegistry
from service_dispatch.rotation import RotationSelector
from service_dispatch.failover import FailoverQueueBuilder
from service_dispatch.key_manager import KeyRotationSelector, parse_keys
from service_dispatch.config_view import ConfigStore, ConfigView
from service_dispatch.store import InMemoryConfigStore
from service_dispatch.diagnostics import DiagnosticsReporter
from service_dispatch.dispatcher import ServiceDispatcher

__all__ = [
    "ConfigEvent",
    "ConfigStore",
    "ConfigView",
    "CooldownState",
    "DiagnosticsReporter",
    "EndpointConfig",
    "EndpointStatus",
    "ErrorInfo",
    "FailoverQueueBuilder",
    "HealthEntry",
    "HealthRegistry",
    "InMemoryConfigStore",
    "KeyHealthEntry",
    "KeyRotationSelector",
    "LastError",
    "RotationSelector",
    "ServiceDispatcher",
    "parse_keys",
]
