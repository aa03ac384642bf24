"""Tests for merge-mode resolution from path patterns."""

import pytest
from pydantic import ValidationError

from config_sync.lib.merge.strategy import DEFAULT_STRATEGIES
from config_sync.lib.merge.strategy import MergeMode
from config_sync.lib.merge.strategy import MergeStrategy
from config_sync.lib.merge.strategy import load_strategies
from config_sync.lib.merge.strategy import match_pattern
from config_sync.lib.merge.strategy import resolve_mode


class TestMatchPattern:
    @pytest.mark.parametrize(
        ("segments", "pattern", "expected"),
        [
            (("allowedCommands",), "allowedCommands", True),
            (("allowedCommands", "x"), "allowedCommands", False),
            (("permissions",), "permissions.*", False),
            (("permissions", "allow"), "permissions.*", True),
            (("permissions", "allow", "deep"), "permissions.*", True),
            (("a", "b", "c"), "a.*.c", True),
            (("a", "b", "d"), "a.*.c", False),
            (("a", "b", "c", "d"), "a.*.c", False),
            (("anything", "at", "all"), "*", True),
            (("x",), "*", True),
        ],
    )
    def test_patterns(self, segments, pattern, expected):
        assert match_pattern(segments, pattern) is expected

    def test_regex_metacharacters_are_literal(self):
        assert match_pattern(("a+b",), "a+b")
        assert not match_pattern(("aab",), "a+b")
        assert not match_pattern(("ab",), "a?b")

    def test_dotted_key_is_one_segment(self):
        assert match_pattern(("projects", "/x/y.z"), "projects.*")
        assert not match_pattern(("projects", "/x/y.z"), "projects.*.z")


class TestResolveMode:
    def test_default_table(self):
        assert resolve_mode(("allowedCommands",), DEFAULT_STRATEGIES) is MergeMode.ARRAY_UNION
        assert resolve_mode(("permissions", "deny"), DEFAULT_STRATEGIES) is MergeMode.ARRAY_UNION
        assert resolve_mode(("mcpServers", "github"), DEFAULT_STRATEGIES) is MergeMode.ARRAY_UNION
        assert resolve_mode(("permissions",), DEFAULT_STRATEGIES) is MergeMode.OBJECT_MERGE
        assert resolve_mode(("model",), DEFAULT_STRATEGIES) is MergeMode.OBJECT_MERGE

    def test_first_match_wins(self):
        strategies = [
            MergeStrategy(patterns=["env.*"], mode=MergeMode.USER_FIRST),
            MergeStrategy(patterns=["env.PATH"], mode=MergeMode.REPLACE),
        ]
        assert resolve_mode(("env", "PATH"), strategies) is MergeMode.USER_FIRST

    def test_unmatched_falls_back_to_object_merge(self):
        strategies = [MergeStrategy(patterns=["theme"], mode=MergeMode.USER_FIRST)]
        assert resolve_mode(("model",), strategies) is MergeMode.OBJECT_MERGE
        assert resolve_mode(("model",), []) is MergeMode.OBJECT_MERGE


class TestLoadStrategies:
    def test_validates_modes(self):
        strategies = load_strategies([{"patterns": ["a.*"], "mode": "managed-first", "description": "x"}])
        assert strategies[0].mode is MergeMode.MANAGED_FIRST
        assert strategies[0].patterns == ["a.*"]

    def test_description_optional(self):
        assert load_strategies([{"patterns": ["*"], "mode": "replace"}])[0].description == ""

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            load_strategies([{"patterns": ["*"], "mode": "merge-harder"}])

    def test_empty_patterns_rejected(self):
        with pytest.raises(ValidationError):
            load_strategies([{"patterns": [], "mode": "replace"}])
