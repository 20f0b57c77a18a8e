"""Tests for RotationSelector and FailoverQueueBuilder."""

from __future__ import annotations

import pytest

from service_dispatch.failover import FailoverQueueBuilder
from service_dispatch.rotation import MAX_SAFE_CURSOR, RotationSelector
from service_dispatch.types import EndpointConfig


def _ep(endpoint_id: str, priority: int = 0) -> EndpointConfig:
    return EndpointConfig(id=endpoint_id, name=endpoint_id, provider="p", priority=priority)


# ═══════════════════════════════════════════════════════════════
#  RotationSelector
# ═══════════════════════════════════════════════════════════════
class TestRotationSelector:
    def test_empty_returns_none_without_advancing(self) -> None:
        rotation = RotationSelector()
        assert rotation.next([]) is None
        assert rotation.peek() == 0

    def test_visits_every_candidate_once_per_cycle(self) -> None:
        rotation = RotationSelector()
        candidates = ["a", "b", "c"]
        assert [rotation.next(candidates) for _ in range(3)] == ["a", "b", "c"]
        assert [rotation.next(candidates) for _ in range(3)] == ["a", "b", "c"]
        assert rotation.peek() == 6

    def test_cycle_starts_at_cursor_position(self) -> None:
        rotation = RotationSelector()
        rotation.next(["x"])
        rotation.next(["x"])
        candidates = ["a", "b", "c"]
        picks = [rotation.next(candidates) for _ in range(3)]
        assert picks == ["c", "a", "b"]
        assert sorted(picks) == candidates

    def test_cursor_is_shared_across_candidate_lists(self) -> None:
        rotation = RotationSelector()
        assert rotation.next(["a", "b"]) == "a"
        assert rotation.next(["x", "y", "z"]) == "y"
        assert rotation.next(["a", "b"]) == "a"

    def test_reset(self) -> None:
        rotation = RotationSelector()
        rotation.next(["a", "b"])
        rotation.reset()
        assert rotation.peek() == 0
        assert rotation.next(["a", "b"]) == "a"

    def test_wraps_before_threshold(self) -> None:
        rotation = RotationSelector(wrap_threshold=3)
        for _ in range(2):
            rotation.next(["a"])
        assert rotation.peek() == 2
        rotation.next(["a"])
        assert rotation.peek() == 0

    def test_default_threshold_is_safe_integer_range(self) -> None:
        assert MAX_SAFE_CURSOR == 2**53 - 1

    def test_rejects_invalid_threshold(self) -> None:
        with pytest.raises(ValueError):
            RotationSelector(wrap_threshold=0)

    def test_independent_instances_do_not_share_state(self) -> None:
        first, second = RotationSelector(), RotationSelector()
        first.next(["a", "b"])
        assert second.peek() == 0
        assert second.next(["a", "b"]) == "a"


# ═══════════════════════════════════════════════════════════════
#  FailoverQueueBuilder
# ═══════════════════════════════════════════════════════════════
class TestFailoverQueueBuilder:
    def test_empty_input(self) -> None:
        rotation = RotationSelector()
        builder = FailoverQueueBuilder(rotation)
        assert builder.build([]) == []
        assert rotation.peek() == 0

    def test_preferred_first_rest_by_priority(self) -> None:
        builder = FailoverQueueBuilder(RotationSelector())
        a, b, c = _ep("a", 5), _ep("b", 1), _ep("c", 3)
        assert builder.build([a, b, c]) == [a, b, c]
        # Second call prefers b, rest sorted ascending by priority
        assert builder.build([a, b, c]) == [b, c, a]
        assert builder.build([a, b, c]) == [c, b, a]

    def test_equal_priorities_keep_input_order(self) -> None:
        builder = FailoverQueueBuilder(RotationSelector())
        eps = [_ep("a"), _ep("b"), _ep("c"), _ep("d")]
        builder.build(eps)  # consume "a"
        assert [e.id for e in builder.build(eps)] == ["b", "a", "c", "d"]

    def test_queue_is_permutation_of_input(self) -> None:
        builder = FailoverQueueBuilder(RotationSelector())
        eps = [_ep("a", 2), _ep("b", 0), _ep("c", 2), _ep("d", -1)]
        for _ in range(len(eps)):
            queue = builder.build(eps)
            assert sorted(e.id for e in queue) == ["a", "b", "c", "d"]
            rest = [e.priority for e in queue[1:]]
            assert rest == sorted(rest)

    def test_consumes_one_rotation_step(self) -> None:
        rotation = RotationSelector()
        builder = FailoverQueueBuilder(rotation)
        builder.build([_ep("a"), _ep("b")])
        assert rotation.peek() == 1

    def test_single_candidate(self) -> None:
        builder = FailoverQueueBuilder(RotationSelector())
        only = _ep("solo")
        assert builder.build([only]) == [only]
