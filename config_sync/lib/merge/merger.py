"""Convenience wrapper binding a strategy table to the merge functions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .changes import ConfigChange
from .changes import calculate_changes
from .conflicts import has_user_conflicts
from .strategy import DEFAULT_STRATEGIES
from .strategy import MergeMode
from .strategy import MergeStrategy
from .strategy import resolve_mode
from .three_way import three_way_merge


class ConfigMerger:
    """Format-agnostic three-way config merger.

    Holds no state beyond its strategy table, so one instance can serve any
    number of targets.

    Usage:
        merger = ConfigMerger()
        merged = merger.three_way_merge(base, user, managed)
        if merger.has_user_conflicts(base, user, managed, merged):
            ...  # ask before writing
        for change in merger.calculate_changes(user, merged):
            print(format_change(change))
    """

    def __init__(self, strategies: Sequence[MergeStrategy] | None = None) -> None:
        self.strategies: tuple[MergeStrategy, ...] = tuple(strategies) if strategies else DEFAULT_STRATEGIES

    def three_way_merge(
        self,
        base: dict[str, Any] | None,
        user: dict[str, Any],
        managed: dict[str, Any],
        strategies: Sequence[MergeStrategy] | None = None,
    ) -> dict[str, Any]:
        """Merge with this merger's table, or ``strategies`` for this call only."""
        return three_way_merge(base, user, managed, strategies if strategies else self.strategies)

    def has_user_conflicts(
        self,
        base: dict[str, Any] | None,
        user: dict[str, Any],
        managed: dict[str, Any],
        merged: dict[str, Any],
        strategies: Sequence[MergeStrategy] | None = None,
    ) -> bool:
        return has_user_conflicts(base, user, managed, merged, strategies if strategies else self.strategies)

    def calculate_changes(self, old: dict[str, Any] | None, new: dict[str, Any]) -> list[ConfigChange]:
        return calculate_changes(old, new)

    def resolve_mode(self, segments: Sequence[str]) -> MergeMode:
        return resolve_mode(segments, self.strategies)
