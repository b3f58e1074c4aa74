from __future__ import annotations

import pytest

from esfixtures.payload import canonical_json, payloads_equal, without_properties


@pytest.mark.parametrize(
    ("left", "right"),
    [
        ({"a": 1, "b": "x"}, {"b": "x", "a": 1}),
        ({"n": 1}, {"n": 1.0}),
        ({"nested": {"list": [1, {"k": None}]}}, {"nested": {"list": [1.0, {"k": None}]}}),
        ({}, {}),
    ],
)
def test_equal_payloads(left, right) -> None:
    assert payloads_equal(left, right)
    assert payloads_equal(right, left)


@pytest.mark.parametrize(
    ("left", "right"),
    [
        ({"a": 1}, {"a": 1, "b": 2}),
        ({"a": True}, {"a": 1}),
        ({"a": False}, {"a": 0}),
        ({"a": None}, {"a": 0}),
        ({"a": "1"}, {"a": 1}),
        ({"a": [1, 2]}, {"a": [2, 1]}),
        ({"a": [1]}, {"a": [1, 1]}),
        ({"a": {"b": 1}}, {"a": [("b", 1)]}),
        ({"msg": "b"}, {"msg": "c"}),
    ],
)
def test_unequal_payloads(left, right) -> None:
    assert not payloads_equal(left, right)
    assert not payloads_equal(right, left)


def test_canonical_json_sorts_keys() -> None:
    assert canonical_json({"name": "a", "msg": "b", "n": [1, None]}) == '{"msg":"b","n":[1,null],"name":"a"}'


def test_without_properties_drops_named_fields_only() -> None:
    payload = {"id": 1, "updated": "now", "nested": {"updated": "kept"}}
    assert without_properties(payload, ["updated"]) == {"id": 1, "nested": {"updated": "kept"}}
    assert without_properties(payload, None) == payload
