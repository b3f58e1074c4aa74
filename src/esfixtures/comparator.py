"""Assert that the store holds exactly the documents of a fixture."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import DocumentMismatchError, MalformedFixtureError
from .fixture import Fixture, Placement
from .payload import canonical_json, payloads_equal
from .store import StoreClient


logger = logging.getLogger(__name__)


class Comparator:
    """Strict comparison: every field of every expected document must match."""

    def __init__(self, client: StoreClient) -> None:
        self._client = client

    def compare(self, expected: Fixture, ignore_properties: Iterable[str] | None = None) -> bool:
        """Return True when the store matches ``expected``, else raise ``DocumentMismatchError``.

        ``ignore_properties`` is accepted for interface compatibility with
        lenient strategies; the strict comparison never excludes fields.
        """

        expected.require_placements()
        self._check_document_count(expected)

        for document in expected:
            for placement in document.placements:
                self._check_document(placement, document.payload)

        logger.debug("fixtures.compare.matched documents=%s", len(expected))
        return True

    def _check_document_count(self, expected: Fixture) -> None:
        actual = self._client.count()
        if len(expected) != actual:
            msg = f"Expected number of documents are {len(expected)} but {actual} has been found."
            raise DocumentMismatchError(msg)

    def _check_document(self, placement: Placement, expected_payload: Mapping[str, Any]) -> None:
        if placement.index_id is None:
            msg = f"Document with {placement.describe()} cannot be compared without an indexId."
            raise MalformedFixtureError(msg)

        result = self._client.get(placement.index_name, placement.index_type, placement.index_id)
        if not result.found:
            msg = f"Document with {placement.describe()} has not returned any document."
            raise DocumentMismatchError(msg)

        if not payloads_equal(expected_payload, result.source):
            msg = (
                f"Expected document for {placement.describe()} is "
                f"{canonical_json(expected_payload)}, but {canonical_json(result.source)} was found."
            )
            raise DocumentMismatchError(msg)
