"""Per-path merge policy.

A strategy table is an ordered list of ``MergeStrategy`` records. Each record
carries dot-separated path patterns; ``*`` stands for exactly one key, and a
trailing ``*`` also swallows everything below it. The first record with a
matching pattern decides the mode; unmatched paths use ``object-merge``.

Patterns are matched segment by segment against the raw key path, so keys
containing regex metacharacters or dots are never misinterpreted.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel
from pydantic import Field

WILDCARD = "*"


class MergeMode(str, Enum):
    """How one key path is reconciled between user and managed configs."""

    ARRAY_UNION = "array-union"
    OBJECT_MERGE = "object-merge"
    USER_FIRST = "user-first"
    MANAGED_FIRST = "managed-first"
    REPLACE = "replace"


DEFAULT_MODE = MergeMode.OBJECT_MERGE


class MergeStrategy(BaseModel):
    """One row of a strategy table."""

    patterns: list[str] = Field(..., min_length=1, description="Dotted key path patterns, '*' is a wildcard")
    mode: MergeMode = Field(..., description="Merge mode applied to matching paths")
    description: str = Field(default="", description="Why these paths merge this way")


DEFAULT_STRATEGIES: tuple[MergeStrategy, ...] = (
    MergeStrategy(
        patterns=["allowedCommands", "permissions.*", "mcpServers.*"],
        mode=MergeMode.ARRAY_UNION,
        description="Merge arrays by combining unique values",
    ),
    MergeStrategy(
        patterns=["*"],
        mode=MergeMode.OBJECT_MERGE,
        description="Default: deep merge objects",
    ),
)


@lru_cache(maxsize=256)
def _tokenize(pattern: str) -> tuple[str, ...]:
    return tuple(pattern.split("."))


def match_pattern(segments: Sequence[str], pattern: str) -> bool:
    """Check whether a raw key path matches a dotted pattern.

    Examples:
        >>> match_pattern(("permissions", "allow"), "permissions.*")
        True
        >>> match_pattern(("permissions",), "permissions.*")
        False
        >>> match_pattern(("a", "b", "c"), "a.*.c")
        True
    """
    if pattern == WILDCARD:
        return True

    tokens = _tokenize(pattern)
    last = len(tokens) - 1

    for index, token in enumerate(tokens):
        if index >= len(segments):
            return False
        if token == WILDCARD:
            if index == last:
                # Trailing wildcard covers the rest of the path
                return True
            continue
        if token != segments[index]:
            return False

    return len(segments) == len(tokens)


def resolve_mode(segments: Sequence[str], strategies: Sequence[MergeStrategy]) -> MergeMode:
    """Return the mode of the first strategy with a pattern matching ``segments``."""
    for strategy in strategies:
        for pattern in strategy.patterns:
            if match_pattern(segments, pattern):
                return strategy.mode
    return DEFAULT_MODE


def load_strategies(raw: Sequence[dict]) -> list[MergeStrategy]:
    """Validate a strategy table read from a settings file."""
    return [MergeStrategy.model_validate(entry) for entry in raw]


__all__ = [
    "DEFAULT_MODE",
    "DEFAULT_STRATEGIES",
    "MergeMode",
    "MergeStrategy",
    "WILDCARD",
    "load_strategies",
    "match_pattern",
    "resolve_mode",
]
