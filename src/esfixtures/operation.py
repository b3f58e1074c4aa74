"""Entry point used by test setup, assertion and teardown hooks."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import IO, Any

from .cleanup import CleanupMode, CursorCleanup
from .comparator import Comparator
from .config import Settings
from .errors import DocumentMismatchError
from .fixture import Fixture, parse_fixture
from .http_store import HttpStoreClient, wait_until_available
from .observability import MetricsRecorder
from .store import StoreClient
from .writer import BulkWriter, InsertOptions


logger = logging.getLogger(__name__)

FixtureSource = Fixture | bytes | str | IO[Any]


class FixtureOperation:
    """Insert, compare and clean fixtures against one store client."""

    def __init__(
        self,
        client: StoreClient,
        *,
        delete_all_indices: bool = False,
        create_indices: bool = False,
        index_settings: Mapping[str, Any] | None = None,
        templates: Mapping[str, Mapping[str, Any]] | None = None,
        index_pattern: str = "*",
        scroll_keep_alive: str = "1m",
        scroll_max_page_size: int = 10_000,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self._client = client
        self._cleanup_mode = CleanupMode.DROP_INDICES if delete_all_indices else CleanupMode.DELETE_DOCUMENTS
        self._insert_options = InsertOptions(
            create_indices=create_indices,
            index_settings=dict(index_settings or {}),
            templates={name: dict(body) for name, body in (templates or {}).items()},
        )
        self._writer = BulkWriter(client)
        self._cleanup = CursorCleanup(
            client,
            index_pattern=index_pattern,
            keep_alive=scroll_keep_alive,
            max_page_size=scroll_max_page_size,
        )
        self._comparator = Comparator(client)
        self._metrics = metrics or MetricsRecorder(enabled=False)

    @classmethod
    def from_settings(cls, settings: Settings, *, wait_for_store: bool = True) -> "FixtureOperation":
        """Build an operation backed by an HTTP client created from ``settings``."""

        index_settings = settings.load_index_settings()
        templates = settings.load_templates()
        client = HttpStoreClient.from_settings(settings)
        if wait_for_store:
            try:
                wait_until_available(
                    client,
                    retries=settings.connect_retries,
                    wait=settings.connect_retry_wait,
                )
            except AssertionError:
                client.close()
                raise
        return cls(
            client,
            delete_all_indices=settings.delete_all_indices,
            create_indices=settings.create_indices,
            index_settings=index_settings,
            templates=templates,
            index_pattern=settings.index_pattern,
            scroll_keep_alive=settings.scroll_keep_alive,
            scroll_max_page_size=settings.scroll_max_page_size,
            metrics=MetricsRecorder.from_settings(settings),
        )

    @property
    def client(self) -> StoreClient:
        return self._client

    @property
    def insert_options(self) -> InsertOptions:
        return self._insert_options

    @property
    def cleanup_mode(self) -> CleanupMode:
        return self._cleanup_mode

    def insert(self, data: FixtureSource) -> None:
        fixture = _as_fixture(data)
        with self._metrics.track_timing("fixtures.insert.duration"):
            self._writer.insert(fixture, self._insert_options)
        self._metrics.increment("fixtures.insert.documents", value=len(fixture))

    def delete_all(self) -> None:
        with self._metrics.track_timing("fixtures.cleanup.duration", mode=self._cleanup_mode.value):
            self._cleanup.delete_all(self._cleanup_mode)
        self._metrics.increment("fixtures.cleanup.runs", mode=self._cleanup_mode.value)

    def database_is(self, expected: FixtureSource, ignore_properties: Iterable[str] | None = None) -> bool:
        fixture = _as_fixture(expected)
        try:
            with self._metrics.track_timing("fixtures.compare.duration"):
                matched = self._comparator.compare(fixture, ignore_properties)
        except DocumentMismatchError:
            self._metrics.increment("fixtures.compare.results", outcome="mismatch")
            raise
        self._metrics.increment("fixtures.compare.results", outcome="match")
        return matched

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "FixtureOperation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _as_fixture(data: FixtureSource) -> Fixture:
    if isinstance(data, Fixture):
        return data
    return parse_fixture(data)
