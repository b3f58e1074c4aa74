"""Helpers for comparing and rendering JSON document payloads."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Union

JsonValue = Union[None, bool, int, float, str, Sequence[Any], Mapping[str, Any]]


def payloads_equal(left: JsonValue, right: JsonValue) -> bool:
    """Return True when two decoded JSON values are structurally equal.

    Mappings must have the same key set with equal values, sequences must have
    the same length with pairwise equal items. Integers and floats compare by
    numeric value, so ``1`` equals ``1.0``; booleans only ever equal booleans.
    """

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if left is None or right is None:
        return left is None and right is None
    if _is_number(left) or _is_number(right):
        return _is_number(left) and _is_number(right) and left == right
    if isinstance(left, str) or isinstance(right, str):
        return isinstance(left, str) and isinstance(right, str) and left == right
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if set(left.keys()) != set(right.keys()):
            return False
        return all(payloads_equal(left[key], right[key]) for key in left)
    if isinstance(left, Sequence) and isinstance(right, Sequence):
        if len(left) != len(right):
            return False
        return all(payloads_equal(a, b) for a, b in zip(left, right))
    return False


def canonical_json(value: JsonValue) -> str:
    """Serialize a payload to compact JSON with sorted keys."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def without_properties(payload: Mapping[str, Any], names: Iterable[str] | None) -> dict[str, Any]:
    """Return a copy of ``payload`` without the given top-level fields."""

    excluded = set(names or ())
    return {key: value for key, value in payload.items() if key not in excluded}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
