"""Fixture data model and parser."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Iterator

import yaml

from .errors import MalformedFixtureError

DOCUMENTS_ELEMENT = "documents"
DOCUMENT_ELEMENT = "document"
DATA_ELEMENT = "data"
INDEX_ELEMENT = "index"
INDEX_NAME_ELEMENT = "indexName"
INDEX_TYPE_ELEMENT = "indexType"
INDEX_ID_ELEMENT = "indexId"

_YAML_SUFFIXES = {".yaml", ".yml"}


@dataclass(frozen=True, slots=True)
class Placement:
    """Location of a document inside the store."""

    index_name: str
    index_type: str | None = None
    index_id: str | None = None

    def describe(self) -> str:
        return f"index: {self.index_name} - type: {_render(self.index_type)} - id: {_render(self.index_id)}"


@dataclass(frozen=True, slots=True)
class LogicalDocument:
    """One fixture entry: a payload and every place it is stored."""

    placements: tuple[Placement, ...] = ()
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Fixture:
    """Ordered collection of logical documents."""

    documents: tuple[LogicalDocument, ...] = ()

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self) -> Iterator[LogicalDocument]:
        return iter(self.documents)

    def index_names(self) -> list[str]:
        """Return every referenced index name once, in first-seen order."""

        names: dict[str, None] = {}
        for document in self.documents:
            for placement in document.placements:
                names.setdefault(placement.index_name, None)
        return list(names)

    def require_placements(self) -> None:
        """Fail when any document has nowhere to be written to or read from."""

        for position, document in enumerate(self.documents):
            if not document.placements:
                msg = f"Document #{position} has no index placement."
                raise MalformedFixtureError(msg)


def parse_fixture(data: bytes | str | IO[Any]) -> Fixture:
    """Decode JSON fixture content into a :class:`Fixture`."""

    if hasattr(data, "read"):
        data = data.read()
    try:
        root = json.loads(data)
    except ValueError as exc:
        raise MalformedFixtureError(f"Fixture is not valid JSON: {exc}") from exc
    return fixture_from_mapping(root)


def load_fixture(path: str | Path) -> Fixture:
    """Read a fixture file; ``.yaml``/``.yml`` files are decoded as YAML, others as JSON."""

    fixture_path = Path(path)
    if fixture_path.suffix.lower() not in _YAML_SUFFIXES:
        return parse_fixture(fixture_path.read_bytes())
    try:
        root = yaml.safe_load(fixture_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise MalformedFixtureError(f"Fixture {fixture_path} is not valid YAML: {exc}") from exc
    return fixture_from_mapping(root)


def fixture_from_mapping(root: Any) -> Fixture:
    """Build a fixture from already decoded content."""

    if not isinstance(root, Mapping):
        raise MalformedFixtureError("Array of documents are required.")
    entries = root.get(DOCUMENTS_ELEMENT)
    if not isinstance(entries, list):
        raise MalformedFixtureError("Array of documents are required.")
    return Fixture(documents=tuple(_parse_document(entry) for entry in entries))


def _parse_document(entry: Any) -> LogicalDocument:
    properties = entry.get(DOCUMENT_ELEMENT) if isinstance(entry, Mapping) else None
    if not isinstance(properties, list):
        raise MalformedFixtureError("Array of Indexes and Data are required.")

    placements: list[Placement] = []
    payload: Mapping[str, Any] = {}
    for prop in properties:
        if not isinstance(prop, Mapping):
            raise MalformedFixtureError("Array of Indexes and Data are required.")
        if INDEX_ELEMENT in prop:
            placements.append(_parse_placement(prop[INDEX_ELEMENT]))
        if DATA_ELEMENT in prop:
            data = prop[DATA_ELEMENT]
            if not isinstance(data, Mapping):
                msg = f"Document data must be an object, got {type(data).__name__}."
                raise MalformedFixtureError(msg)
            payload = data
    return LogicalDocument(placements=tuple(placements), payload=payload)


def _parse_placement(info: Any) -> Placement:
    if not isinstance(info, Mapping):
        msg = f"Index element must be an object, got {type(info).__name__}."
        raise MalformedFixtureError(msg)
    name = info.get(INDEX_NAME_ELEMENT)
    if not isinstance(name, str) or not name:
        raise MalformedFixtureError(f"Missing index name element in {dict(info)}")
    return Placement(
        index_name=name,
        index_type=_optional_text(info.get(INDEX_TYPE_ELEMENT)),
        index_id=_optional_text(info.get(INDEX_ID_ELEMENT)),
    )


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    # ids are frequently written as bare numbers in fixtures
    return str(value)


def _render(value: str | None) -> str:
    return "null" if value is None else value
