"""Three-way merge of a user config against a centrally managed one.

``base`` is the managed config as of the previous sync. Comparing it with
``user`` tells what the user changed; comparing it with ``managed`` tells what
the team changed. Both sets of changes are applied. When there is no base yet
(first sync) the merge is two-way and has no notion of deletion.

Nothing here raises for shape mismatches. A mode whose shape requirements are
not met (e.g. ``array-union`` on two objects) falls back to preferring the
managed value.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from .paths import KeyPath
from .paths import child_path
from .strategy import MergeMode
from .strategy import MergeStrategy
from .strategy import resolve_mode
from .values import MISSING
from .values import canonicalize
from .values import deep_clone
from .values import deep_equal
from .values import is_plain_object

logger = logging.getLogger(__name__)


def three_way_merge(
    base: dict[str, Any] | None,
    user: dict[str, Any],
    managed: dict[str, Any],
    strategies: Sequence[MergeStrategy],
) -> dict[str, Any]:
    """Merge ``user`` and ``managed`` given the last synced ``base``.

    Args:
        base: Managed config from the previous successful sync, or None
        user: Config currently on disk
        managed: Config the team wants applied now
        strategies: Ordered strategy table used to pick a mode per key path

    Returns:
        A new tree sharing no structure with any input
    """
    if base is None:
        return _merge_two_way(user, managed, (), strategies)
    return _merge_three_way(base, user, managed, (), strategies)


def _merge_two_way(
    user: dict[str, Any],
    managed: dict[str, Any],
    path: KeyPath,
    strategies: Sequence[MergeStrategy],
) -> dict[str, Any]:
    result: dict[str, Any] = {}

    for key, managed_value in managed.items():
        key_path = child_path(path, key)

        if key not in user:
            result[key] = deep_clone(managed_value)
            continue

        user_value = user[key]
        mode = resolve_mode(key_path, strategies)

        if mode is MergeMode.ARRAY_UNION and isinstance(user_value, list) and isinstance(managed_value, list):
            result[key] = merge_arrays([], user_value, managed_value)
        elif mode is MergeMode.OBJECT_MERGE and is_plain_object(user_value) and is_plain_object(managed_value):
            result[key] = _merge_two_way(user_value, managed_value, key_path, strategies)
        elif mode is MergeMode.USER_FIRST:
            result[key] = deep_clone(user_value)
        else:
            result[key] = deep_clone(managed_value)

    for key, user_value in user.items():
        if key not in result:
            result[key] = deep_clone(user_value)

    return result


def _merge_three_way(
    base: dict[str, Any],
    user: dict[str, Any],
    managed: dict[str, Any],
    path: KeyPath,
    strategies: Sequence[MergeStrategy],
) -> dict[str, Any]:
    result: dict[str, Any] = {}

    # dict.fromkeys keeps first-seen order across the three configs
    all_keys = dict.fromkeys([*base, *user, *managed])

    for key in all_keys:
        key_path = child_path(path, key)
        base_value = base.get(key, MISSING)
        user_value = user.get(key, MISSING)
        managed_value = managed.get(key, MISSING)

        # Removed by the team
        if base_value is not MISSING and managed_value is MISSING:
            if user_value is not MISSING and not deep_equal(user_value, base_value):
                remainder = subtract_base_values(base_value, user_value)
                if remainder is not MISSING:
                    result[key] = remainder
            continue

        # Added by the team
        if base_value is MISSING and managed_value is not MISSING:
            if user_value is not MISSING:
                mode = resolve_mode(key_path, strategies)
                result[key] = _merge_value(MISSING, user_value, managed_value, key_path, mode, strategies)
            else:
                result[key] = deep_clone(managed_value)
            continue

        # Present in base and managed
        if managed_value is not MISSING:
            if user_value is MISSING:
                # The team still wants it, so a local deletion is undone
                result[key] = deep_clone(managed_value)
                continue
            mode = resolve_mode(key_path, strategies)
            result[key] = _merge_value(base_value, user_value, managed_value, key_path, mode, strategies)
            continue

        # Custom key the team never had
        if user_value is not MISSING:
            result[key] = deep_clone(user_value)

    return result


def _merge_value(
    base_value: Any,
    user_value: Any,
    managed_value: Any,
    path: KeyPath,
    mode: MergeMode,
    strategies: Sequence[MergeStrategy],
) -> Any:
    if mode is MergeMode.ARRAY_UNION and isinstance(user_value, list) and isinstance(managed_value, list):
        base_list = base_value if isinstance(base_value, list) else []
        return merge_arrays(base_list, user_value, managed_value)

    if mode is MergeMode.OBJECT_MERGE and is_plain_object(user_value) and is_plain_object(managed_value):
        base_obj = base_value if is_plain_object(base_value) else {}
        return _merge_three_way(base_obj, user_value, managed_value, path, strategies)

    if mode is MergeMode.USER_FIRST:
        return deep_clone(user_value)

    if mode in (MergeMode.MANAGED_FIRST, MergeMode.REPLACE):
        if deep_equal(user_value, base_value):
            return deep_clone(managed_value)
        logger.debug("Keeping user edit at %s under %s", path, mode.value)
        return deep_clone(user_value)

    if mode in (MergeMode.ARRAY_UNION, MergeMode.OBJECT_MERGE):
        logger.debug("Shape mismatch for %s at %s, preferring managed value", mode.value, path)
    return deep_clone(managed_value)


def merge_arrays(base: list[Any], user: list[Any], managed: list[Any]) -> list[Any]:
    """Three-way union of lists, comparing entries by canonical encoding.

    Entries the team dropped since ``base`` disappear; entries only the user
    added survive; shared entries appear once. Managed order comes first,
    followed by the user's additions in their order.

    Example:
        >>> merge_arrays(["a", "b"], ["a", "b", "mine"], ["a", "c"])
        ['a', 'c', 'mine']
    """
    base_keys = {canonicalize(item) for item in base}
    managed_keys = {canonicalize(item) for item in managed}
    team_deletions = base_keys - managed_keys

    user_custom = [
        item for item in user if canonicalize(item) not in base_keys and canonicalize(item) not in team_deletions
    ]

    seen: set[str] = set()
    result: list[Any] = []
    for item in [*managed, *user_custom]:
        key = canonicalize(item)
        if key in seen:
            continue
        seen.add(key)
        result.append(deep_clone(item))
    return result


def subtract_base_values(base_value: Any, user_value: Any) -> Any:
    """Strip everything from ``user_value`` that still matches ``base_value``.

    Used when the team deletes a key the user had customized: unmodified
    managed leaves go away, user-only siblings and edited leaves stay.
    Returns ``MISSING`` when nothing user-specific remains.
    """
    if user_value is MISSING:
        return MISSING
    if base_value is MISSING:
        return deep_clone(user_value)

    if is_plain_object(base_value) and is_plain_object(user_value):
        remainder: dict[str, Any] = {}
        for key, value in user_value.items():
            cleaned = subtract_base_values(base_value.get(key, MISSING), value)
            if cleaned is not MISSING:
                remainder[key] = cleaned
        return remainder if remainder else MISSING

    return MISSING if deep_equal(base_value, user_value) else deep_clone(user_value)


__all__ = ["merge_arrays", "subtract_base_values", "three_way_merge"]
