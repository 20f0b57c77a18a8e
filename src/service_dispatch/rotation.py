"""Round-robin rotation cursor.

One cursor is shared by every call on a selector instance, whatever candidate
list is passed in: the pick is ``candidates[calls % len(candidates)]``.
Callers that want fair rotation pass the same candidate ordering each time.
"""

from __future__ import annotations

import threading
from typing import Sequence, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Largest integer a double represents exactly; the cursor wraps before it.
MAX_SAFE_CURSOR = 2**53 - 1


class RotationSelector:
    """Monotonic, wrapping round-robin cursor."""

    def __init__(self, *, wrap_threshold: int = MAX_SAFE_CURSOR) -> None:
        if wrap_threshold < 1:
            raise ValueError("wrap_threshold must be >= 1")
        self._wrap_threshold = wrap_threshold
        self._cursor = 0
        self._lock = threading.Lock()

    def next(self, candidates: Sequence[T]) -> T | None:
        """Pick the candidate under the cursor and advance it."""
        if not candidates:
            return None
        with self._lock:
            picked = candidates[self._cursor % len(candidates)]
            self._cursor += 1
            if self._cursor >= self._wrap_threshold:
                self._cursor = 0
                logger.debug("rotation_cursor_wrapped")
            return picked

    def peek(self) -> int:
        """Current cursor value, without advancing."""
        with self._lock:
            return self._cursor

    def reset(self) -> None:
        with self._lock:
            previous = self._cursor
            self._cursor = 0
        logger.info("rotation_cursor_reset", previous=previous)
