"""Per-endpoint and per-key health registry.

Tracks cumulative success/failure counters, the last reported error and a
cooldown deadline for every endpoint (and every credential key nested under
it).  Cooldown is never time-decayed on its own: a deadline is compared
against the clock at query time and cleared by the next success report.
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from typing import Callable

import structlog

from service_dispatch.observability.metrics import (
    ENDPOINT_FAILURES_TOTAL,
    ENDPOINT_SUCCESSES_TOTAL,
    KEY_FAILURES_TOTAL,
    forget_all_endpoints,
    forget_endpoint,
)
from service_dispatch.types import ErrorInfo, HealthEntry, KeyHealthEntry, LastError

logger = structlog.get_logger(__name__)

DEFAULT_COOLDOWN_S = 60.0


def mask_key(key: str) -> str:
    """Shorten a credential for log output.

    Shows at most eight characters and never more than a quarter of the key.
    """
    return f"{key[: min(8, len(key) // 4)]}..."


class HealthRegistry:
    """Thread-safe, process-local health state keyed by endpoint id."""

    def __init__(
        self,
        *,
        default_cooldown_s: float = DEFAULT_COOLDOWN_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._default_cooldown = default_cooldown_s
        self._clock = clock
        self._entries: dict[str, HealthEntry] = {}
        self._lock = threading.Lock()

    @property
    def default_cooldown_s(self) -> float:
        return self._default_cooldown

    def now(self) -> float:
        return self._clock()

    # ── Endpoint reports ─────────────────────────────────────
    def report_failure(
        self,
        endpoint_id: str,
        error: ErrorInfo,
        cooldown_s: float | None = None,
    ) -> None:
        """Count a failure and put the endpoint on cooldown."""
        duration = self._default_cooldown if cooldown_s is None else cooldown_s
        with self._lock:
            now = self._clock()
            entry = self._entry(endpoint_id)
            entry.failure_count += 1
            entry.last_error = LastError(error.code, error.message, now)
            entry.cooldown_until = now + duration
            failures = entry.failure_count

        ENDPOINT_FAILURES_TOTAL.labels(endpoint_id=endpoint_id).inc()
        logger.warning(
            "endpoint_cooldown_started",
            endpoint=endpoint_id,
            error_code=error.code,
            error=error.message,
            cooldown_s=duration,
            failures=failures,
        )

    def report_success(self, endpoint_id: str) -> None:
        """Count a success and lift any cooldown."""
        with self._lock:
            entry = self._entry(endpoint_id)
            was_cooling = entry.cooldown_until is not None
            entry.success_count += 1
            entry.last_used_at = self._clock()
            entry.cooldown_until = None

        ENDPOINT_SUCCESSES_TOTAL.labels(endpoint_id=endpoint_id).inc()
        if was_cooling:
            logger.info("endpoint_recovered", endpoint=endpoint_id)

    def is_on_cooldown(self, endpoint_id: str, now: float | None = None) -> bool:
        with self._lock:
            entry = self._entries.get(endpoint_id)
            if entry is None:
                return False
            return entry.is_on_cooldown(self._clock() if now is None else now)

    def stats(self, endpoint_id: str) -> HealthEntry | None:
        """Snapshot of an endpoint's health, or ``None`` if never reported."""
        with self._lock:
            entry = self._entries.get(endpoint_id)
            return entry.snapshot() if entry else None

    # ── Key reports ──────────────────────────────────────────
    def report_key_failure(
        self,
        endpoint_id: str,
        key: str,
        error: ErrorInfo,
        cooldown_s: float | None = None,
    ) -> None:
        duration = self._default_cooldown if cooldown_s is None else cooldown_s
        with self._lock:
            now = self._clock()
            key_entry = self._key_entry(endpoint_id, key)
            key_entry.failure_count += 1
            key_entry.last_error = LastError(error.code, error.message, now)
            key_entry.cooldown_until = now + duration

        KEY_FAILURES_TOTAL.labels(endpoint_id=endpoint_id).inc()
        logger.warning(
            "api_key_cooldown_started",
            endpoint=endpoint_id,
            key=mask_key(key),
            error_code=error.code,
            cooldown_s=duration,
        )

    def report_key_success(self, endpoint_id: str, key: str) -> None:
        with self._lock:
            key_entry = self._key_entry(endpoint_id, key)
            key_entry.success_count += 1
            key_entry.cooldown_until = None

    def is_key_on_cooldown(
        self, endpoint_id: str, key: str, now: float | None = None
    ) -> bool:
        with self._lock:
            entry = self._entries.get(endpoint_id)
            key_entry = entry.keys.get(key) if entry else None
            if key_entry is None:
                return False
            return key_entry.is_on_cooldown(self._clock() if now is None else now)

    def key_stats(self, endpoint_id: str, key: str) -> KeyHealthEntry | None:
        with self._lock:
            entry = self._entries.get(endpoint_id)
            key_entry = entry.keys.get(key) if entry else None
            return replace(key_entry) if key_entry else None

    # ── Key rotation cursor ──────────────────────────────────
    def key_rotation_index(self, endpoint_id: str) -> int:
        with self._lock:
            entry = self._entries.get(endpoint_id)
            return entry.key_rotation_index if entry else 0

    def select_key(
        self, endpoint_id: str, keys: list[str], now: float | None = None
    ) -> int | None:
        """Find the next key not on cooldown, starting at the stored cursor.

        Advances the cursor past the returned position. Returns ``None`` and
        leaves the cursor untouched when every key is cooling down.
        """
        count = len(keys)
        if count == 0:
            return None
        with self._lock:
            current = self._clock() if now is None else now
            entry = self._entry(endpoint_id)
            start = entry.key_rotation_index
            for i in range(count):
                idx = (start + i) % count
                key_entry = entry.keys.get(keys[idx])
                if key_entry is None or not key_entry.is_on_cooldown(current):
                    entry.key_rotation_index = (idx + 1) % count
                    return idx
            return None

    # ── Housekeeping ─────────────────────────────────────────
    @property
    def has_entries(self) -> bool:
        with self._lock:
            return bool(self._entries)

    def endpoint_ids(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def remove(self, endpoint_id: str) -> None:
        """Forget an endpoint (called when it is deleted from configuration)."""
        with self._lock:
            removed = self._entries.pop(endpoint_id, None)
        forget_endpoint(endpoint_id)
        if removed is not None:
            logger.info("endpoint_health_purged", endpoint=endpoint_id)

    def clear_all(self) -> None:
        """Wipe every entry (operator reset)."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        forget_all_endpoints()
        logger.info("health_registry_cleared", entries=count)

    # ── Internals ────────────────────────────────────────────
    def _entry(self, endpoint_id: str) -> HealthEntry:
        """Get or lazily create an entry. Caller holds lock."""
        entry = self._entries.get(endpoint_id)
        if entry is None:
            entry = self._entries[endpoint_id] = HealthEntry()
        return entry

    def _key_entry(self, endpoint_id: str, key: str) -> KeyHealthEntry:
        """Caller holds lock."""
        entry = self._entry(endpoint_id)
        key_entry = entry.keys.get(key)
        if key_entry is None:
            key_entry = entry.keys[key] = KeyHealthEntry()
        return key_entry
