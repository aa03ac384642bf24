"""Three-way configuration merge engine.

Pure functions over plain configuration trees: no I/O, no global state, and
inputs are never mutated.
"""

from .changes import ChangeType
from .changes import ConfigChange
from .changes import calculate_changes
from .changes import format_change
from .conflicts import has_user_conflicts
from .merger import ConfigMerger
from .paths import encode_path
from .paths import format_path
from .strategy import DEFAULT_STRATEGIES
from .strategy import MergeMode
from .strategy import MergeStrategy
from .strategy import load_strategies
from .strategy import match_pattern
from .strategy import resolve_mode
from .three_way import merge_arrays
from .three_way import three_way_merge
from .values import MISSING
from .values import canonicalize
from .values import deep_equal

__all__ = [
    "DEFAULT_STRATEGIES",
    "MISSING",
    "ChangeType",
    "ConfigChange",
    "ConfigMerger",
    "MergeMode",
    "MergeStrategy",
    "calculate_changes",
    "canonicalize",
    "deep_equal",
    "encode_path",
    "format_change",
    "format_path",
    "has_user_conflicts",
    "load_strategies",
    "match_pattern",
    "merge_arrays",
    "resolve_mode",
    "three_way_merge",
]
