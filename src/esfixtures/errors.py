"""Exception types raised by the fixture engine."""

from __future__ import annotations

from typing import Any

from httpx import TransportError

__all__ = [
    "DocumentMismatchError",
    "MalformedFixtureError",
    "StoreOperationError",
    "TransportError",
]


class MalformedFixtureError(ValueError):
    """Raised when fixture content does not have the expected shape."""


class StoreOperationError(RuntimeError):
    """Raised when the document store reports a failed request."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class DocumentMismatchError(AssertionError):
    """Raised when the live index content differs from the expected fixture."""
