"""Tests for scoped settings and per-tool strategy tables."""

import pytest
import yaml

from config_sync.lib.merge import DEFAULT_STRATEGIES
from config_sync.lib.merge import MergeMode
from config_sync.lib.merge import MergeStrategy
from config_sync.settings import SettingsError
from config_sync.settings import SettingsPaths
from config_sync.settings import SyncSettings


@pytest.fixture
def paths(tmp_path):
    return SettingsPaths(
        global_settings=tmp_path / "global" / "settings.yaml",
        project_settings=tmp_path / "project" / "settings.yaml",
        local_settings=tmp_path / "project" / "settings.local.yaml",
    )


def write_yaml(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))


class TestSyncSettings:
    def test_defaults_when_unset(self, paths):
        assert SyncSettings(paths).get_merge_strategies("claude") == list(DEFAULT_STRATEGIES)

    def test_project_table(self, paths):
        write_yaml(
            paths.project_settings,
            {"merge_strategies": {"claude": [{"patterns": ["env.*"], "mode": "user-first"}]}},
        )
        strategies = SyncSettings(paths).get_merge_strategies("claude")
        assert strategies == [MergeStrategy(patterns=["env.*"], mode=MergeMode.USER_FIRST)]

    def test_local_overrides_global_per_tool(self, paths):
        write_yaml(
            paths.global_settings,
            {
                "merge_strategies": {
                    "claude": [{"patterns": ["*"], "mode": "replace"}],
                    "codex": [{"patterns": ["*"], "mode": "managed-first"}],
                }
            },
        )
        write_yaml(paths.local_settings, {"merge_strategies": {"claude": [{"patterns": ["*"], "mode": "user-first"}]}})
        settings = SyncSettings(paths)
        assert settings.get_merge_strategies("claude")[0].mode is MergeMode.USER_FIRST
        assert settings.get_merge_strategies("codex")[0].mode is MergeMode.MANAGED_FIRST

    def test_invalid_table_raises(self, paths):
        write_yaml(paths.project_settings, {"merge_strategies": {"claude": [{"patterns": ["*"], "mode": "bogus"}]}})
        with pytest.raises(SettingsError, match="Invalid merge_strategies.claude"):
            SyncSettings(paths).get_merge_strategies("claude")

    def test_non_list_table_raises(self, paths):
        write_yaml(paths.project_settings, {"merge_strategies": {"claude": "array-union"}})
        with pytest.raises(SettingsError):
            SyncSettings(paths).get_merge_strategies("claude")

    def test_malformed_file_skipped(self, paths):
        paths.global_settings.parent.mkdir(parents=True)
        paths.global_settings.write_text("merge_strategies: [unclosed")
        assert SyncSettings(paths).get_merged_settings() == {}

    def test_set_and_clear(self, paths):
        settings = SyncSettings(paths)
        table = [MergeStrategy(patterns=["mcpServers.*"], mode=MergeMode.ARRAY_UNION, description="servers")]
        settings.set_merge_strategies("claude", table, scope="project")
        assert settings.get_merge_strategies("claude") == table

        settings.clear_merge_strategies("claude", scope="project")
        assert settings.get_merged_settings() == {}
