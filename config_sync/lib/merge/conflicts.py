"""Decide whether a merge result needs human confirmation before writing.

Only locations the team has an opinion on (leaves of the managed tree) are
inspected. A conflict means applying the merge would overwrite or bring back
something the user deliberately changed. Detection stops at the first one;
use ``calculate_changes`` for a full listing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from .paths import collect_leaf_entries
from .paths import format_path
from .paths import get_value_at
from .strategy import MergeMode
from .strategy import MergeStrategy
from .strategy import resolve_mode
from .values import MISSING
from .values import canonicalize
from .values import deep_equal

logger = logging.getLogger(__name__)


def has_user_conflicts(
    base: dict[str, Any] | None,
    user: dict[str, Any],
    managed: dict[str, Any],
    merged: dict[str, Any],
    strategies: Sequence[MergeStrategy],
) -> bool:
    """Return True if ``merged`` would clobber a deliberate user change.

    Args:
        base: Managed config from the previous sync, or None on first sync
        user: Config currently on disk
        managed: Config the team wants applied now
        merged: Result of ``three_way_merge`` for the same inputs
        strategies: Strategy table used for the merge
    """
    for entry in collect_leaf_entries(managed):
        segments = entry.segments
        managed_value = entry.value
        user_value = get_value_at(user, segments)
        merged_value = get_value_at(merged, segments)
        base_value = get_value_at(base, segments)

        mode = resolve_mode(segments, strategies)
        if mode is MergeMode.ARRAY_UNION and isinstance(merged_value, list):
            if _array_union_has_conflict(base_value, user_value, managed_value, merged_value):
                logger.debug("Array conflict at %s", format_path(segments))
                return True
            continue

        user_has_value = user_value is not MISSING

        if base is None:
            if user_has_value and not deep_equal(user_value, managed_value):
                logger.debug("First-sync conflict at %s", format_path(segments))
                return True
            continue

        user_modified = user_has_value and not deep_equal(user_value, base_value)
        user_removed = not user_has_value and base_value is not MISSING
        merge_overwrites = not deep_equal(merged_value, user_value)

        if (user_modified or user_removed) and merge_overwrites:
            logger.debug("User change overwritten at %s", format_path(segments))
            return True

    return False


def _as_key_set(value: Any) -> set[str]:
    if not isinstance(value, list):
        return set()
    return {canonicalize(item) for item in value}


def _array_union_has_conflict(base_value: Any, user_value: Any, managed_value: Any, merged_value: Any) -> bool:
    """Conflict only if user entries were dropped, or a user removal was undone."""
    user_keys = _as_key_set(user_value)
    base_keys = _as_key_set(base_value)
    managed_keys = _as_key_set(managed_value)
    merged_keys = _as_key_set(merged_value)

    if user_keys - merged_keys:
        return True

    for key in base_keys:
        user_removed = key not in user_keys
        if user_removed and key in managed_keys and key in merged_keys:
            return True

    return False


__all__ = ["has_user_conflicts"]
