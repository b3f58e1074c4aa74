"""Remove every document or index left behind by previous fixtures."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from enum import Enum
from typing import Any

from .errors import StoreOperationError
from .store import DeleteOperation, ScrollPage, StoreClient


logger = logging.getLogger(__name__)

MATCH_ALL_QUERY: Mapping[str, Any] = {"match_all": {}}


class CleanupMode(Enum):
    """How :meth:`CursorCleanup.delete_all` resets the store."""

    DROP_INDICES = "drop_indices"
    DELETE_DOCUMENTS = "delete_documents"


class ScrollCursor:
    """Server-side scroll position; advancing replaces the current page."""

    def __init__(self, client: StoreClient, page: ScrollPage, keep_alive: str) -> None:
        self._client = client
        self._keep_alive = keep_alive
        self.page = page
        self.scroll_id = page.scroll_id

    def advance(self) -> ScrollPage:
        if not self.scroll_id:
            msg = "Scroll response did not include a scroll id."
            raise StoreOperationError(msg)
        page = self._client.scroll(self.scroll_id, self._keep_alive)
        _check_shards(page)
        self.page = page
        if page.scroll_id:
            self.scroll_id = page.scroll_id
        return page


@contextmanager
def scroll_cursor(
    client: StoreClient,
    query: Mapping[str, Any],
    *,
    size: int,
    keep_alive: str,
    indices: Sequence[str] | None = None,
) -> Iterator[ScrollCursor]:
    """Open a scroll and release it on every exit path."""

    page = client.open_scroll(query, size, keep_alive, indices=indices)
    cursor = ScrollCursor(client, page, keep_alive)
    try:
        _check_shards(page)
        yield cursor
    finally:
        if cursor.scroll_id:
            client.clear_scroll(cursor.scroll_id)


class CursorCleanup:
    """Delete store content between test runs.

    ``index_pattern`` limits both modes: dropped indices and the indices whose
    documents are scrolled and deleted.
    """

    def __init__(
        self,
        client: StoreClient,
        *,
        index_pattern: str = "*",
        keep_alive: str = "1m",
        max_page_size: int = 10_000,
    ) -> None:
        if max_page_size <= 0:
            msg = "max_page_size must be a positive integer"
            raise ValueError(msg)
        self._client = client
        self._index_pattern = index_pattern
        self._keep_alive = keep_alive
        self._max_page_size = max_page_size

    def delete_all(self, mode: CleanupMode = CleanupMode.DELETE_DOCUMENTS) -> None:
        if mode is CleanupMode.DROP_INDICES:
            self._client.delete_index(self._index_pattern)
            self._client.refresh()
            logger.info("fixtures.cleanup.indices_dropped pattern=%s", self._index_pattern)
            return

        self._delete_documents()

    def _delete_documents(self) -> None:
        indices = self._target_indices()
        document_count = self._client.count(indices)
        if document_count <= 0:
            logger.debug("fixtures.cleanup.skipped reason=empty")
            return

        page_size = min(document_count, self._max_page_size)
        deletes: list[DeleteOperation] = []
        pages = 0

        with scroll_cursor(
            self._client,
            MATCH_ALL_QUERY,
            size=page_size,
            keep_alive=self._keep_alive,
            indices=indices,
        ) as cursor:
            page = cursor.page
            # the server may return fewer hits per page than requested
            served = len(page.hits) or page_size
            max_pages = math.ceil(document_count / served) + 1
            while page.hits:
                pages += 1
                if pages > max_pages:
                    msg = (
                        f"Scroll returned more than {max_pages} pages for {document_count} "
                        "documents; aborting cleanup."
                    )
                    raise StoreOperationError(msg)
                deletes.extend(
                    DeleteOperation(index=hit.index, doc_type=hit.doc_type, doc_id=hit.doc_id)
                    for hit in page.hits
                )
                page = cursor.advance()

        if deletes:
            result = self._client.bulk(deletes)
            if result.has_failures:
                msg = f"Error while bulk deleting documents: {result.failure_message()}"
                raise StoreOperationError(msg, detail=result.failures)

        self._client.refresh(indices)
        logger.info(
            "fixtures.cleanup.documents_deleted count=%s pages=%s pattern=%s",
            len(deletes),
            pages,
            self._index_pattern,
        )

    def _target_indices(self) -> list[str] | None:
        if self._index_pattern in {"*", "_all"}:
            return None
        return [self._index_pattern]


def _check_shards(page: ScrollPage) -> None:
    if page.shard_failures:
        msg = f"Scroll page reported shard failures: {list(page.shard_failures)}"
        raise StoreOperationError(msg, detail=page.shard_failures)
