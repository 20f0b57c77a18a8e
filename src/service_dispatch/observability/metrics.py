"""Prometheus metrics for the dispatch engine."""

from __future__ import annotations

from contextlib import suppress

from prometheus_client import Counter, Gauge


# ── Selection metrics ────────────────────────────────────────
DISPATCH_SELECTIONS_TOTAL = Counter(
    "dispatch_selections_total",
    "Endpoints chosen as the preferred failover candidate",
    ["provider"],
)

FAILOVER_QUEUE_LENGTH = Gauge(
    "dispatch_failover_queue_length",
    "Length of the most recently built failover queue",
)

# ── Health metrics ───────────────────────────────────────────
ENDPOINT_SUCCESSES_TOTAL = Counter(
    "dispatch_endpoint_successes_total",
    "Successful calls reported per endpoint",
    ["endpoint_id"],
)

ENDPOINT_FAILURES_TOTAL = Counter(
    "dispatch_endpoint_failures_total",
    "Failed calls reported per endpoint",
    ["endpoint_id"],
)

KEY_FAILURES_TOTAL = Counter(
    "dispatch_key_failures_total",
    "Failed calls reported against individual API keys",
    ["endpoint_id"],
)

KEYS_EXHAUSTED_TOTAL = Counter(
    "dispatch_keys_exhausted_total",
    "Key selections that found every key cooling down",
    ["endpoint_id"],
)

ENDPOINTS_COOLING_DOWN = Gauge(
    "dispatch_endpoints_cooling_down",
    "Endpoints on cooldown at the last diagnostics snapshot",
)

# ── Config cache metrics ─────────────────────────────────────
CONFIG_CACHE_EVENTS_TOTAL = Counter(
    "dispatch_config_cache_events_total",
    "Enabled-endpoint cache lookups and invalidations",
    ["result"],  # hit / miss / invalidate
)

_ENDPOINT_LABELLED = (
    ENDPOINT_SUCCESSES_TOTAL,
    ENDPOINT_FAILURES_TOTAL,
    KEY_FAILURES_TOTAL,
    KEYS_EXHAUSTED_TOTAL,
)


def forget_endpoint(endpoint_id: str) -> None:
    """Drop every per-endpoint series for a removed endpoint."""
    for metric in _ENDPOINT_LABELLED:
        with suppress(KeyError):
            metric.remove(endpoint_id)


def forget_all_endpoints() -> None:
    for metric in _ENDPOINT_LABELLED:
        metric.clear()
