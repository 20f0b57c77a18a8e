"""Dispatch exception hierarchy.

The selection engine itself reports "nothing usable" as ``None`` or an empty
list; these exceptions belong to the configuration-store collaborator and the
HTTP surface.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for all dispatch errors."""

    def __init__(self, message: str, *, code: str = "DISPATCH_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# ── Configuration store ─────────────────────────────────────
class EndpointNotFoundError(DispatchError):
    def __init__(self, endpoint_id: str) -> None:
        super().__init__(
            f"Endpoint {endpoint_id!r} not found", code="ENDPOINT_NOT_FOUND"
        )


class DuplicateEndpointError(DispatchError):
    def __init__(self, endpoint_id: str) -> None:
        super().__init__(
            f"Endpoint {endpoint_id!r} already exists", code="DUPLICATE_ENDPOINT"
        )
