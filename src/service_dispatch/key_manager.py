"""Key rotation - round-robin over the credential keys of a single endpoint.

An endpoint's ``api_key_raw`` may hold several keys separated by commas or
newlines.  Each endpoint keeps its own rotation cursor in the health
registry, and keys on cooldown are skipped.  A single-key endpoint always
gets its key back: it is only ever skipped at the endpoint level.
"""

from __future__ import annotations

import re

import structlog

from service_dispatch.health import DEFAULT_COOLDOWN_S, HealthRegistry, mask_key
from service_dispatch.observability.metrics import KEYS_EXHAUSTED_TOTAL
from service_dispatch.types import ErrorInfo

logger = structlog.get_logger(__name__)

_KEY_SEPARATORS = re.compile(r"[,\r\n]")


def parse_keys(raw: str | None) -> list[str]:
    """Split a raw key string into trimmed, non-empty keys in source order."""
    if not raw:
        return []
    return [k.strip() for k in _KEY_SEPARATORS.split(raw) if k.strip()]


class KeyRotationSelector:
    """Picks the next usable key for an endpoint."""

    def __init__(
        self,
        registry: HealthRegistry,
        *,
        key_cooldown_s: float = DEFAULT_COOLDOWN_S,
    ) -> None:
        self._registry = registry
        self._key_cooldown = key_cooldown_s

    def next_available_key(
        self,
        endpoint_id: str,
        raw_keys: str | None,
        now: float | None = None,
    ) -> str | None:
        """Return the next key not on cooldown, or ``None`` if all are cooling."""
        keys = parse_keys(raw_keys)
        if not keys:
            return None
        if len(keys) == 1:
            return keys[0]

        idx = self._registry.select_key(endpoint_id, keys, now)
        if idx is None:
            KEYS_EXHAUSTED_TOTAL.labels(endpoint_id=endpoint_id).inc()
            logger.warning(
                "all_api_keys_cooling_down",
                endpoint=endpoint_id,
                key_count=len(keys),
            )
            return None

        key = keys[idx]
        logger.debug(
            "api_key_selected",
            endpoint=endpoint_id,
            position=idx + 1,
            key_count=len(keys),
            key=mask_key(key),
        )
        return key

    def report_key_failure(
        self,
        endpoint_id: str,
        key: str,
        error: ErrorInfo,
        cooldown_s: float | None = None,
    ) -> None:
        duration = self._key_cooldown if cooldown_s is None else cooldown_s
        self._registry.report_key_failure(endpoint_id, key, error, duration)

    def report_key_success(self, endpoint_id: str, key: str) -> None:
        self._registry.report_key_success(endpoint_id, key)
