from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from esfixtures.errors import MalformedFixtureError
from esfixtures.fixture import Fixture, LogicalDocument, Placement, load_fixture, parse_fixture

from conftest import fixture_json, tweet


def test_parse_reads_placements_and_payload() -> None:
    fixture = parse_fixture(tweet("1", name="a", msg="b"))

    assert len(fixture) == 1
    document = fixture.documents[0]
    assert document.placements == (Placement("tweeter", "tweet", "1"),)
    assert document.payload == {"name": "a", "msg": "b"}


def test_parse_accepts_text_and_streams() -> None:
    raw = tweet("7", name="x")
    assert parse_fixture(raw.decode("utf-8")) == parse_fixture(io.BytesIO(raw))


def test_document_without_data_gets_empty_payload() -> None:
    fixture = parse_fixture(fixture_json(({"indexName": "books"}, None)))

    document = fixture.documents[0]
    assert document.placements == (Placement("books"),)
    assert document.payload == {}


def test_multiple_placements_accumulate_and_last_data_wins() -> None:
    raw = json.dumps(
        {
            "documents": [
                {
                    "document": [
                        {"index": {"indexName": "a", "indexId": "1"}},
                        {"data": {"v": 1}},
                        {"index": {"indexName": "b", "indexId": "1"}, "data": {"v": 2}, "comment": "ignored"},
                    ]
                }
            ]
        }
    )

    document = parse_fixture(raw).documents[0]

    assert [placement.index_name for placement in document.placements] == ["a", "b"]
    assert document.payload == {"v": 2}


def test_numeric_ids_are_read_as_text() -> None:
    fixture = parse_fixture(fixture_json(({"indexName": "books", "indexId": 42}, {"t": "x"})))
    assert fixture.documents[0].placements[0].index_id == "42"


@pytest.mark.parametrize(
    "raw",
    [
        b"{}",
        b'{"documents": {"document": []}}',
        b"[]",
        b"not json",
    ],
)
def test_missing_documents_array_is_rejected(raw: bytes) -> None:
    with pytest.raises(MalformedFixtureError):
        parse_fixture(raw)


def test_document_content_must_be_a_list() -> None:
    raw = json.dumps({"documents": [{"document": {"index": {"indexName": "a"}}}]})
    with pytest.raises(MalformedFixtureError, match="Array of Indexes and Data are required."):
        parse_fixture(raw)


def test_index_name_is_required() -> None:
    raw = fixture_json(({"indexType": "tweet", "indexId": "1"}, {"a": 1}))
    with pytest.raises(MalformedFixtureError, match="Missing index name element"):
        parse_fixture(raw)


def test_data_must_be_an_object() -> None:
    raw = json.dumps({"documents": [{"document": [{"index": {"indexName": "a"}}, {"data": [1, 2]}]}]})
    with pytest.raises(MalformedFixtureError):
        parse_fixture(raw)


def test_index_names_are_unique_in_first_seen_order() -> None:
    fixture = Fixture(
        documents=(
            LogicalDocument(placements=(Placement("b"), Placement("a"))),
            LogicalDocument(placements=(Placement("a"), Placement("c"))),
        )
    )
    assert fixture.index_names() == ["b", "a", "c"]


def test_require_placements_names_offending_document() -> None:
    fixture = Fixture(documents=(LogicalDocument(placements=(Placement("a"),)), LogicalDocument()))
    with pytest.raises(MalformedFixtureError, match="#1"):
        fixture.require_placements()


def test_load_fixture_reads_yaml(tmp_path: Path) -> None:
    path = tmp_path / "tweets.yaml"
    path.write_text(
        "documents:\n"
        "  - document:\n"
        "      - index: {indexName: tweeter, indexType: tweet, indexId: '1'}\n"
        "      - data: {name: a, tags: [x, y]}\n",
        encoding="utf-8",
    )

    fixture = load_fixture(path)

    assert fixture.documents[0].placements == (Placement("tweeter", "tweet", "1"),)
    assert fixture.documents[0].payload == {"name": "a", "tags": ["x", "y"]}


def test_load_fixture_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "tweets.json"
    path.write_bytes(tweet("3", name="c"))
    assert load_fixture(path) == parse_fixture(tweet("3", name="c"))
