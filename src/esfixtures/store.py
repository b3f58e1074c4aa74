"""Document store interface consumed by the writer, cleanup and comparator."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, Union


@dataclass(frozen=True, slots=True)
class IndexOperation:
    """Bulk action writing one document."""

    index: str
    source: Mapping[str, Any]
    doc_type: str | None = None
    doc_id: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteOperation:
    """Bulk action removing one document."""

    index: str
    doc_id: str
    doc_type: str | None = None


BulkOperation = Union[IndexOperation, DeleteOperation]


@dataclass(frozen=True, slots=True)
class BulkFailure:
    """A single rejected item of a bulk request."""

    action: str
    index: str | None
    doc_id: str | None
    status: int | None
    reason: str

    def describe(self) -> str:
        return f"[{self.index}][{self.doc_id}]: {self.action} failed (status={self.status}): {self.reason}"


@dataclass(frozen=True, slots=True)
class BulkResult:
    failures: tuple[BulkFailure, ...] = ()

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def failure_message(self) -> str:
        lines = [failure.describe() for failure in self.failures]
        return "failure in bulk execution:\n" + "\n".join(lines)


@dataclass(frozen=True, slots=True)
class GetResult:
    found: bool
    source: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Hit:
    index: str
    doc_id: str
    doc_type: str | None = None


@dataclass(frozen=True, slots=True)
class ScrollPage:
    """One page of a scroll cursor."""

    scroll_id: str | None
    hits: tuple[Hit, ...] = ()
    total: int | None = None
    shard_failures: tuple[Any, ...] = ()


class StoreClient(Protocol):
    """Operations the engine needs from a document store.

    Implementations raise :class:`~esfixtures.errors.StoreOperationError` for
    rejected requests and let transport errors propagate.
    """

    def count(self, indices: Sequence[str] | None = None) -> int: ...

    def get(self, index: str, doc_type: str | None, doc_id: str) -> GetResult: ...

    def bulk(self, operations: Sequence[BulkOperation]) -> BulkResult: ...

    def create_index(self, name: str, settings: Mapping[str, Any]) -> None: ...

    def delete_index(self, pattern: str) -> None: ...

    def create_template(self, name: str, body: Mapping[str, Any]) -> None: ...

    def delete_template(self, name: str) -> None: ...

    def refresh(self, indices: Sequence[str] | None = None) -> None: ...

    def open_scroll(
        self,
        query: Mapping[str, Any],
        size: int,
        keep_alive: str,
        indices: Sequence[str] | None = None,
    ) -> ScrollPage: ...

    def scroll(self, scroll_id: str, keep_alive: str) -> ScrollPage: ...

    def clear_scroll(self, scroll_id: str) -> None: ...
