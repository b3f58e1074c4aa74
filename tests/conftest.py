from __future__ import annotations

import json
from fnmatch import fnmatchcase
from itertools import count
from typing import Any

import pytest

from esfixtures.errors import StoreOperationError
from esfixtures.store import (
    BulkFailure,
    BulkResult,
    DeleteOperation,
    GetResult,
    Hit,
    IndexOperation,
    ScrollPage,
)


class FakeStore:
    """In-memory store recording every call the engine makes."""

    def __init__(self, *, page_limit: int | None = None) -> None:
        self.documents: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.indices: dict[str, dict[str, Any]] = {}
        self.templates: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple] = []
        self.page_limit = page_limit
        self.fail_ids: set[str] = set()
        self.fail_templates: set[str] = set()
        self.fail_template_deletes: set[str] = set()
        self.shard_failures_on_page: int | None = None
        self.open_scrolls: dict[str, list[Hit]] = {}
        self._page_sizes: dict[str, int] = {}
        self._pages_served = 0
        self._auto_ids = count(1)
        self._scroll_ids = count(1)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def seed(self, index: str, doc_id: str, source: dict[str, Any], doc_type: str = "_doc") -> None:
        self.indices.setdefault(index, {})
        self.documents[(index, doc_type, doc_id)] = dict(source)

    def count(self, indices=None) -> int:
        self.calls.append(("count", tuple(indices or ())))
        if not indices:
            return len(self.documents)
        return sum(1 for key in self.documents if _matches(key[0], indices))

    def get(self, index, doc_type, doc_id) -> GetResult:
        self.calls.append(("get", index, doc_type, doc_id))
        source = self.documents.get((index, doc_type or "_doc", doc_id))
        if source is None:
            return GetResult(found=False)
        return GetResult(found=True, source=json.loads(json.dumps(source)))

    def bulk(self, operations) -> BulkResult:
        self.calls.append(("bulk", len(operations)))
        failures = []
        for operation in operations:
            if isinstance(operation, IndexOperation):
                doc_id = operation.doc_id or f"auto-{next(self._auto_ids)}"
                if doc_id in self.fail_ids:
                    failures.append(
                        BulkFailure("index", operation.index, doc_id, 400, "mapper_parsing_exception: boom")
                    )
                    continue
                self.indices.setdefault(operation.index, {})
                key = (operation.index, operation.doc_type or "_doc", doc_id)
                self.documents[key] = json.loads(json.dumps(dict(operation.source)))
            elif isinstance(operation, DeleteOperation):
                key = (operation.index, operation.doc_type or "_doc", operation.doc_id)
                if operation.doc_id in self.fail_ids:
                    failures.append(BulkFailure("delete", operation.index, operation.doc_id, 500, "boom"))
                    continue
                self.documents.pop(key, None)
        return BulkResult(failures=tuple(failures))

    def create_index(self, name, settings) -> None:
        self.calls.append(("create_index", name, dict(settings)))
        self.indices[name] = dict(settings)

    def delete_index(self, pattern) -> None:
        self.calls.append(("delete_index", pattern))
        patterns = ["*"] if pattern == "_all" else [pattern]
        for name in [name for name in self.indices if _matches(name, patterns)]:
            del self.indices[name]
        for key in [key for key in self.documents if _matches(key[0], patterns)]:
            del self.documents[key]

    def create_template(self, name, body) -> None:
        self.calls.append(("create_template", name))
        if name in self.fail_templates:
            raise StoreOperationError(f'Elasticsearch create template "{name}" failed', status_code=400)
        self.templates[name] = dict(body)

    def delete_template(self, name) -> None:
        self.calls.append(("delete_template", name))
        if name in self.fail_template_deletes:
            raise StoreOperationError(f'Elasticsearch delete template "{name}" failed', status_code=500)
        self.templates.pop(name, None)

    def refresh(self, indices=None) -> None:
        self.calls.append(("refresh",))

    def open_scroll(self, query, size, keep_alive, indices=None) -> ScrollPage:
        self.calls.append(("open_scroll", size, keep_alive))
        size = min(size, self.page_limit) if self.page_limit else size
        remaining = [
            Hit(index=index, doc_type=doc_type, doc_id=doc_id)
            for index, doc_type, doc_id in self.documents
            if not indices or _matches(index, indices)
        ]
        scroll_id = f"scroll-{next(self._scroll_ids)}"
        self.open_scrolls[scroll_id] = remaining
        self._page_sizes[scroll_id] = size
        self._pages_served = 0
        return self._next_page(scroll_id)

    def scroll(self, scroll_id, keep_alive) -> ScrollPage:
        self.calls.append(("scroll", scroll_id, keep_alive))
        if scroll_id not in self.open_scrolls:
            raise StoreOperationError(f"No search context found for id [{scroll_id}]", status_code=404)
        return self._next_page(scroll_id)

    def clear_scroll(self, scroll_id) -> None:
        self.calls.append(("clear_scroll", scroll_id))
        self.open_scrolls.pop(scroll_id, None)

    def _next_page(self, scroll_id: str) -> ScrollPage:
        remaining = self.open_scrolls[scroll_id]
        size = self._page_sizes[scroll_id]
        hits, self.open_scrolls[scroll_id] = remaining[:size], remaining[size:]
        self._pages_served += 1
        failures: tuple = ()
        if self.shard_failures_on_page == self._pages_served:
            failures = ({"shard": 0, "reason": {"type": "search_context_missing_exception"}},)
        return ScrollPage(scroll_id=scroll_id, hits=tuple(hits), total=len(self.documents), shard_failures=failures)


def _matches(index: str, patterns) -> bool:
    return any(fnmatchcase(index, part) for pattern in patterns for part in pattern.split(","))


def fixture_json(*documents: tuple[dict[str, Any], dict[str, Any] | None]) -> bytes:
    """Build fixture bytes from ``(placement, data)`` pairs."""

    entries = []
    for placement, data in documents:
        properties: list[dict[str, Any]] = [{"index": placement}]
        if data is not None:
            properties.append({"data": data})
        entries.append({"document": properties})
    return json.dumps({"documents": entries}).encode("utf-8")


def tweet(doc_id: str, **data: Any) -> bytes:
    return fixture_json(({"indexName": "tweeter", "indexType": "tweet", "indexId": doc_id}, data))


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()
