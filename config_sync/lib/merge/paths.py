"""Locations inside a configuration tree.

A path is a tuple of raw key segments. Keys are never split on "." because
real configs use filesystem paths and URLs as keys, e.g.
``projects["/Users/me/repo.git"].trust_level``.

Display strings come from ``format_path``; map lookups use ``encode_path``.
The two are never interchangeable.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .values import MISSING
from .values import is_plain_object

KeyPath = tuple[str, ...]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# NUL never appears in keys parsed from JSON/YAML/TOML config files
_KEY_SEPARATOR = "\x00"


@dataclass(frozen=True)
class LeafEntry:
    """A non-object value and the segments leading to it."""

    segments: KeyPath
    value: Any


def _format_segment(segment: str) -> str:
    escaped = segment.replace("\\", "\\\\").replace('"', '\\"')
    return f'["{escaped}"]'


def format_path(segments: Sequence[str]) -> str:
    """Render a path for humans.

    Identifier-safe segments are dot-joined; anything else is bracket-quoted,
    decided independently for each segment.

    Example:
        >>> format_path(("projects", "/Users/me/project", "trust_level"))
        'projects["/Users/me/project"].trust_level'
    """
    parts: list[str] = []
    for index, segment in enumerate(segments):
        if _IDENTIFIER.match(segment):
            parts.append(segment if index == 0 else f".{segment}")
        else:
            parts.append(_format_segment(segment))
    return "".join(parts)


def encode_path(segments: Sequence[str]) -> str:
    """Build a hashable lookup key from raw segments."""
    return _KEY_SEPARATOR.join(segments)


def child_path(parent: KeyPath, key: str) -> KeyPath:
    return (*parent, key)


def get_value_at(tree: Any, segments: Sequence[str]) -> Any:
    """Return the value at ``segments`` or ``MISSING``.

    Only plain objects are traversed; a scalar or list in the middle of the
    path means the location does not exist.
    """
    if tree is None or tree is MISSING:
        return MISSING
    current = tree
    for segment in segments:
        if is_plain_object(current) and segment in current:
            current = current[segment]
        else:
            return MISSING
    return current


def collect_leaf_entries(tree: dict[str, Any], prefix: KeyPath = ()) -> list[LeafEntry]:
    """Flatten a tree to its leaves (scalars and arrays), in key order.

    Empty objects contribute nothing since they hold no leaves.
    """
    entries: list[LeafEntry] = []
    for key, value in tree.items():
        segments = child_path(prefix, key)
        if is_plain_object(value):
            entries.extend(collect_leaf_entries(value, segments))
        else:
            entries.append(LeafEntry(segments=segments, value=value))
    return entries


__all__ = [
    "LeafEntry",
    "KeyPath",
    "child_path",
    "collect_leaf_entries",
    "encode_path",
    "format_path",
    "get_value_at",
]
