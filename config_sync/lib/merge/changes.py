"""Leaf-level diff between two configuration trees, for previews."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .paths import collect_leaf_entries
from .paths import encode_path
from .paths import format_path
from .values import MISSING
from .values import deep_equal


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class ConfigChange:
    """A single leaf difference.

    ``path`` is a display string (see ``format_path``), not a lookup key.
    ``old_value``/``new_value`` are ``MISSING`` where they do not apply.
    """

    type: ChangeType
    path: str
    old_value: Any = MISSING
    new_value: Any = MISSING

    def to_dict(self) -> dict[str, Any]:
        """Serialize as ``{type, path, oldValue?, newValue?}``."""
        data: dict[str, Any] = {"type": self.type.value, "path": self.path}
        if self.old_value is not MISSING:
            data["oldValue"] = self.old_value
        if self.new_value is not MISSING:
            data["newValue"] = self.new_value
        return data


def calculate_changes(old: dict[str, Any] | None, new: dict[str, Any]) -> list[ConfigChange]:
    """Diff two trees leaf by leaf.

    Arrays and scalars are leaves, so a change deep in a tree is reported once
    rather than at every ancestor. Additions and modifications come first in
    ``new`` order, then removals in ``old`` order.
    """
    new_entries = collect_leaf_entries(new)

    if old is None:
        return [
            ConfigChange(type=ChangeType.ADDED, path=format_path(entry.segments), new_value=entry.value)
            for entry in new_entries
        ]

    old_entries = collect_leaf_entries(old)
    old_by_key = {encode_path(entry.segments): entry for entry in old_entries}
    new_keys = {encode_path(entry.segments) for entry in new_entries}

    changes: list[ConfigChange] = []

    for entry in new_entries:
        path = format_path(entry.segments)
        previous = old_by_key.get(encode_path(entry.segments))
        if previous is None:
            changes.append(ConfigChange(type=ChangeType.ADDED, path=path, new_value=entry.value))
        elif not deep_equal(previous.value, entry.value):
            changes.append(
                ConfigChange(type=ChangeType.MODIFIED, path=path, old_value=previous.value, new_value=entry.value)
            )

    for entry in old_entries:
        if encode_path(entry.segments) not in new_keys:
            changes.append(ConfigChange(type=ChangeType.REMOVED, path=format_path(entry.segments), old_value=entry.value))

    return changes


def _render_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def format_change(change: ConfigChange) -> str:
    """Render a change as a one-line diff entry.

    Example:
        >>> format_change(ConfigChange(ChangeType.MODIFIED, "features.beta", False, True))
        '~ features.beta: false → true'
    """
    if change.type is ChangeType.ADDED:
        return f"+ {change.path}: {_render_value(change.new_value)}"
    if change.type is ChangeType.REMOVED:
        return f"- {change.path}: {_render_value(change.old_value)}"
    return f"~ {change.path}: {_render_value(change.old_value)} → {_render_value(change.new_value)}"


__all__ = ["ChangeType", "ConfigChange", "calculate_changes", "format_change"]
