"""Failover queue builder.

Puts the rotation-preferred endpoint first and the remaining candidates
after it, ordered by priority, giving the attempt order for one request.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from service_dispatch.observability.metrics import (
    DISPATCH_SELECTIONS_TOTAL,
    FAILOVER_QUEUE_LENGTH,
)
from service_dispatch.rotation import RotationSelector
from service_dispatch.types import EndpointConfig

logger = structlog.get_logger(__name__)


def _priority(endpoint: EndpointConfig) -> int:
    return endpoint.priority or 0


class FailoverQueueBuilder:
    """Composes a rotation pick with a priority-ordered fallback chain."""

    def __init__(self, rotation: RotationSelector) -> None:
        self._rotation = rotation

    @property
    def rotation(self) -> RotationSelector:
        return self._rotation

    def build(self, candidates: Sequence[EndpointConfig]) -> list[EndpointConfig]:
        """Return ``[preferred, *rest_by_priority]``; consumes one rotation step."""
        preferred = self._rotation.next(candidates)
        if preferred is None:
            return []

        # sorted() is stable, so equal priorities keep their input order
        rest = sorted(
            (c for c in candidates if c.id != preferred.id),
            key=_priority,
        )
        queue = [preferred, *rest]

        DISPATCH_SELECTIONS_TOTAL.labels(provider=preferred.provider or "unknown").inc()
        FAILOVER_QUEUE_LENGTH.set(len(queue))
        logger.debug(
            "failover_queue_built",
            preferred=preferred.id,
            fallbacks=[c.id for c in rest],
        )
        return queue
