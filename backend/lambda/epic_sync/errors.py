"""errors.py — Exception taxonomy for the epic_sync Lambda.

None of these are recovered inside the Lambda: every one aborts the
invocation and Clubhouse's webhook dispatcher owns redelivery.
"""
from __future__ import annotations

from typing import Optional

__all__ = [
    "ConfigurationError",
    "EpicSyncError",
    "MalformedEventError",
    "ParseError",
    "TransportError",
]


class EpicSyncError(Exception):
    """Base class for every failure raised by epic_sync."""


class MalformedEventError(EpicSyncError):
    """Inbound webhook body is not JSON or lacks required fields."""


class TransportError(EpicSyncError):
    """Network failure or non-2xx response from the Clubhouse API."""

    def __init__(self, message: str, *, url: str = "", status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ParseError(EpicSyncError):
    """Clubhouse response body is not JSON or lacks required fields."""


class ConfigurationError(EpicSyncError):
    """Missing API token, or the epic workflow lacks an expected state."""
