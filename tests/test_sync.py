"""Tests for syncing a managed config into a target file across cycles."""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from config_sync.config_format import ConfigFormatError
from config_sync.config_format import TomlParser
from config_sync.state_store import StateManager
from config_sync.sync import ConfigSyncer
from config_sync.sync import SyncStatus


@pytest.fixture
def state(tmp_path):
    return StateManager(tmp_path / "state")


@pytest.fixture
def syncer(state):
    return ConfigSyncer(state)


@pytest.fixture
def target(tmp_path):
    return tmp_path / "settings.json"


def read_json(path):
    return json.loads(path.read_text())


def always(answer):
    return MagicMock(return_value=answer)


class TestConfigSyncer:
    def test_first_sync_creates_file(self, syncer, state, target):
        managed = {"permissions": {"allow": ["Read"]}}
        result = syncer.sync("claude", target, managed, confirm=always(True))

        assert result.status is SyncStatus.APPLIED
        assert read_json(target) == managed
        assert result.backup_path is None
        assert state.get_last_synced_config("claude", str(target.resolve())) == managed

    def test_user_edits_survive_next_sync(self, syncer, target):
        syncer.sync("claude", target, {"permissions": {"allow": ["Read"]}}, confirm=always(True))

        target.write_text(json.dumps({"permissions": {"allow": ["Read", "Bash(ls)"]}, "theme": "dark"}))
        result = syncer.sync("claude", target, {"permissions": {"allow": ["Read", "Write"]}}, confirm=always(True))

        assert result.status is SyncStatus.APPLIED
        assert result.has_conflicts is False
        assert read_json(target) == {"permissions": {"allow": ["Read", "Write", "Bash(ls)"]}, "theme": "dark"}

    def test_team_removal_applies(self, syncer, target):
        syncer.sync("claude", target, {"permissions": {"allow": ["Read", "Write"]}}, confirm=always(True))
        syncer.sync("claude", target, {"permissions": {"allow": ["Read"]}}, confirm=always(True))
        assert read_json(target) == {"permissions": {"allow": ["Read"]}}

    def test_backup_written(self, syncer, target):
        target.write_text(json.dumps({"theme": "dark"}))
        result = syncer.sync("claude", target, {"model": "opus"}, confirm=always(True))
        assert result.backup_path == target.with_name("settings.json.backup")
        assert read_json(result.backup_path) == {"theme": "dark"}

    def test_no_backup_option(self, syncer, target):
        target.write_text(json.dumps({"theme": "dark"}))
        result = syncer.sync("claude", target, {"model": "opus"}, confirm=always(True), backup=False)
        assert result.backup_path is None
        assert not target.with_name("settings.json.backup").exists()

    def test_conflict_declined_leaves_everything(self, syncer, state, target):
        syncer.sync("claude", target, {"features": {"beta": True}}, confirm=always(True))
        target.write_text(json.dumps({"features": {"beta": False}}))

        confirm = always(False)
        result = syncer.sync("claude", target, {"features": {"beta": True}, "model": "opus"}, confirm=confirm)

        confirm.assert_called_once()
        assert result.status is SyncStatus.DECLINED
        assert read_json(target) == {"features": {"beta": False}}
        assert state.get_last_synced_config("claude", str(target.resolve())) == {"features": {"beta": True}}

    def test_conflict_accepted_overwrites(self, syncer, target):
        syncer.sync("claude", target, {"features": {"beta": True}}, confirm=always(True))
        target.write_text(json.dumps({"features": {"beta": False}}))

        result = syncer.sync("claude", target, {"features": {"beta": True}}, confirm=always(True))

        assert result.has_conflicts is True
        assert result.status is SyncStatus.APPLIED
        assert read_json(target) == {"features": {"beta": True}}

    def test_confirm_not_called_without_conflicts(self, syncer, target):
        confirm = always(False)
        result = syncer.sync("claude", target, {"model": "opus"}, confirm=confirm)
        confirm.assert_not_called()
        assert result.status is SyncStatus.APPLIED

    def test_unchanged_still_records_base(self, syncer, state, target):
        target.write_text(json.dumps({"model": "opus"}))
        result = syncer.sync("claude", target, {"model": "opus"}, confirm=always(True))
        assert result.status is SyncStatus.UNCHANGED
        assert result.changes == []
        assert state.get_last_synced_config("claude", str(target.resolve())) == {"model": "opus"}

    def test_dry_run_writes_nothing(self, syncer, state, target):
        result = syncer.sync("claude", target, {"model": "opus"}, confirm=always(True), dry_run=True)
        assert result.status is SyncStatus.DRY_RUN
        assert [c.path for c in result.changes] == ["model"]
        assert not target.exists()
        assert state.get_last_synced_config("claude", str(target.resolve())) is None

    def test_toml_target(self, syncer, tmp_path):
        target = tmp_path / "config.toml"
        target.write_text('theme = "dark"\n')
        syncer.sync("codex", target, {"model": "o3"}, confirm=always(True))
        assert 'model = "o3"' in target.read_text()
        assert 'theme = "dark"' in target.read_text()

    def test_unparseable_target_raises(self, syncer, target):
        target.write_text("{oops")
        with pytest.raises(ConfigFormatError):
            syncer.sync("claude", target, {"model": "opus"}, confirm=always(True))

    def test_state_persisted_between_instances(self, tmp_path, target):
        first = ConfigSyncer(StateManager(tmp_path / "state"))
        first.sync("claude", target, {"permissions": {"allow": ["A", "B"]}}, confirm=always(True))

        target.write_text(json.dumps({"permissions": {"allow": ["A"]}}))
        second = ConfigSyncer(StateManager(tmp_path / "state"))
        plan = second.plan("claude", target, {"permissions": {"allow": ["A", "B"]}})

        assert plan.base == {"permissions": {"allow": ["A", "B"]}}
        assert plan.has_conflicts is True

    def test_relative_and_absolute_paths_share_base(self, syncer, state, target, tmp_path, monkeypatch):
        syncer.sync("claude", target, {"features": {"beta": True}}, confirm=always(True))

        monkeypatch.chdir(tmp_path)
        result = syncer.sync("claude", target.relative_to(tmp_path), {}, confirm=always(True))

        assert result.status is SyncStatus.APPLIED
        assert read_json(target) == {}
        assert state.get_tracked_config_paths("claude") == [str(target.resolve())]

    def test_unrecordable_managed_config_writes_nothing(self, syncer, state, tmp_path):
        target = tmp_path / "config.toml"
        target.write_text('model = "a"\nreleased = 2024-05-01\n')

        with pytest.raises(ConfigFormatError, match="cannot be recorded"):
            syncer.sync("codex", target, {"model": "b", "released": date(2024, 5, 1)}, confirm=always(True))

        assert target.read_text() == 'model = "a"\nreleased = 2024-05-01\n'
        assert not target.with_name("config.toml.backup").exists()
        assert state.get_last_synced_config("codex", str(target.resolve())) is None
        assert not (tmp_path / "state" / "state.json").exists()

    def test_dated_toml_target_records_base(self, syncer, state, tmp_path):
        target = tmp_path / "config.toml"
        target.write_text('model = "a"\nreleased = 2024-05-01\n')
        managed = TomlParser().parse('model = "b"\nreleased = 2024-05-01\n')

        result = syncer.sync("codex", target, managed, confirm=always(True))

        assert result.status is SyncStatus.APPLIED
        assert [c.path for c in result.changes] == ["model"]
        reloaded = StateManager(tmp_path / "state")
        reloaded.load()
        base = reloaded.get_last_synced_config("codex", str(target.resolve()))
        assert base == {"model": "b", "released": "2024-05-01"}
