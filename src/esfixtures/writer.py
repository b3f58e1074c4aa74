"""Insert fixtures into the document store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import StoreOperationError
from .fixture import Fixture
from .store import IndexOperation, StoreClient


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InsertOptions:
    """Index and template preparation performed before documents are written."""

    create_indices: bool = False
    index_settings: Mapping[str, Any] = field(default_factory=dict)
    templates: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)


class BulkWriter:
    """Write a fixture with a single bulk request."""

    def __init__(self, client: StoreClient) -> None:
        self._client = client

    def insert(self, fixture: Fixture, options: InsertOptions | None = None) -> None:
        """Create templates and indices, bulk-write every placement, then refresh.

        Templates created here are removed again before returning, whether or
        not the write succeeded. Any failing step aborts the call.
        """

        options = options or InsertOptions()
        fixture.require_placements()

        created: list[str] = []
        try:
            for name, body in options.templates.items():
                self._client.create_template(name, body)
                created.append(name)
                logger.debug("fixtures.insert.template_created name=%s", name)

            if options.create_indices:
                for index_name in fixture.index_names():
                    self._client.create_index(index_name, options.index_settings)
                    logger.debug("fixtures.insert.index_created index=%s", index_name)

            operations = self._operations(fixture)
            if operations:
                result = self._client.bulk(operations)
                if result.has_failures:
                    msg = f"Error while bulk indexing documents: {result.failure_message()}"
                    raise StoreOperationError(msg, detail=result.failures)
        except Exception:
            self._discard_templates(created)
            raise

        cleanup_error = self._discard_templates(created)
        if cleanup_error is not None:
            raise cleanup_error

        self._client.refresh()
        logger.info(
            "fixtures.insert.completed documents=%s operations=%s templates=%s",
            len(fixture),
            len(operations),
            len(created),
        )

    @staticmethod
    def _operations(fixture: Fixture) -> list[IndexOperation]:
        return [
            IndexOperation(
                index=placement.index_name,
                doc_type=placement.index_type,
                doc_id=placement.index_id,
                source=document.payload,
            )
            for document in fixture
            for placement in document.placements
        ]

    def _discard_templates(self, names: list[str]) -> Exception | None:
        """Delete every named template and return the first failure, if any."""

        first_error: Exception | None = None
        for name in names:
            try:
                self._client.delete_template(name)
            except Exception as exc:
                logger.exception("fixtures.insert.template_cleanup_failed name=%s", name)
                if first_error is None:
                    first_error = exc
        return first_error
