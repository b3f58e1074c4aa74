"""Load, verify and clean Elasticsearch test fixtures."""

from __future__ import annotations

from .cleanup import CleanupMode, CursorCleanup
from .comparator import Comparator
from .config import Settings
from .errors import DocumentMismatchError, MalformedFixtureError, StoreOperationError, TransportError
from .fixture import Fixture, LogicalDocument, Placement, load_fixture, parse_fixture
from .http_store import HttpStoreClient, wait_until_available
from .operation import FixtureOperation
from .writer import BulkWriter, InsertOptions

__all__ = [
    "BulkWriter",
    "CleanupMode",
    "Comparator",
    "CursorCleanup",
    "DocumentMismatchError",
    "Fixture",
    "FixtureOperation",
    "HttpStoreClient",
    "InsertOptions",
    "LogicalDocument",
    "MalformedFixtureError",
    "Placement",
    "Settings",
    "StoreOperationError",
    "TransportError",
    "load_fixture",
    "parse_fixture",
    "wait_until_available",
]

