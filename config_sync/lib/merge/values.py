"""Structural comparison and cloning for configuration trees.

A configuration tree is whatever a JSON, YAML or TOML document normalizes to:
None, bool, int, float, str, a list of trees, or a dict of str -> tree.

``MISSING`` marks a key that is absent. It is distinct from ``None`` because
``null`` is a legitimate configuration value.
"""

from __future__ import annotations

import json
import math
from typing import Any
from typing import TypeAlias

ConfigTree: TypeAlias = None | bool | int | float | str | list["ConfigTree"] | dict[str, "ConfigTree"]
ConfigObject: TypeAlias = dict[str, ConfigTree]


class _Missing:
    """Sentinel type for an absent key."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict) -> _Missing:
        return self


MISSING = _Missing()


def is_plain_object(value: Any) -> bool:
    """Return True for mapping nodes (not lists, not scalars, not MISSING)."""
    return isinstance(value, dict)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality over configuration trees.

    Lists compare element-wise in order. Dicts compare by key set and value,
    ignoring insertion order. Booleans never equal numbers, matching JSON
    semantics rather than Python's ``True == 1``. Two NaNs are equal.
    """
    if a is b:
        return True
    if a is MISSING or b is MISSING:
        return False
    if a is None or b is None:
        return False

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, list):
        if not isinstance(b, list) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, dict):
        if not isinstance(b, dict) or len(a) != len(b):
            return False
        return all(key in b and deep_equal(value, b[key]) for key, value in a.items())

    if isinstance(b, (list, dict)):
        return False

    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        return a == b

    return type(a) is type(b) and a == b


def _sort_keys(value: Any) -> Any:
    if isinstance(value, list):
        return [_sort_keys(item) for item in value]
    if isinstance(value, dict):
        return {key: _sort_keys(value[key]) for key in sorted(value)}
    # 1.0 and 1 compare equal, so they must encode the same
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def canonicalize(value: Any) -> str:
    """Encode a tree so that equal trees produce equal strings.

    Used as the membership key for set operations over arrays of structured
    values, e.g. two permission entries that differ only in key order.

    Example:
        >>> canonicalize({"b": 1, "a": [True, None]})
        '{"a":[true,null],"b":1}'
    """
    if value is MISSING:
        return "<missing>"
    return json.dumps(_sort_keys(value), separators=(",", ":"), ensure_ascii=False, default=str)


def deep_clone(value: Any) -> Any:
    """Copy a tree so that the result shares no mutable structure with the input."""
    if isinstance(value, list):
        return [deep_clone(item) for item in value]
    if isinstance(value, dict):
        return {key: deep_clone(item) for key, item in value.items()}
    return value


__all__ = [
    "MISSING",
    "ConfigObject",
    "ConfigTree",
    "canonicalize",
    "deep_clone",
    "deep_equal",
    "is_plain_object",
]
