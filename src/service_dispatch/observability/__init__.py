"""Logging and metrics for the dispatch engine."""

from service_dispatch.observability.logging import configure_logging

__all__ = ["configure_logging"]
