"""
Apply a managed config to a user-editable file.

Reads the target, merges it against the managed config and the last synced
snapshot, asks for confirmation when the merge would clobber user edits, then
writes the result with a backup and records the new snapshot.
"""

import contextlib
import logging
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .config_format import ConfigFormatError
from .config_format import ConfigParserFactory
from .config_format import read_config
from .lib.merge import ConfigChange
from .lib.merge import ConfigMerger
from .paths import backup_path_for
from .state_store import StateManager

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[list[ConfigChange]], bool]


class SyncStatus(str, Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    DECLINED = "declined"
    DRY_RUN = "dry-run"


@dataclass
class SyncResult:
    """Outcome of one sync of one target file."""

    status: SyncStatus
    changes: list[ConfigChange]
    has_conflicts: bool
    merged: dict[str, Any]
    backup_path: Path | None = None


@dataclass
class SyncPlan:
    """Everything computed before anything is written."""

    base: dict[str, Any] | None
    user: dict[str, Any]
    merged: dict[str, Any]
    changes: list[ConfigChange]
    has_conflicts: bool


class ConfigSyncer:
    """
    Syncs managed configs into target files.

    Contract:
    - Inputs: tool name, target path, managed config dict
    - Outputs: SyncResult
    - Side Effects: writes the target file, its .backup sibling, and state.json
    - Errors: ConfigFormatError for unreadable targets, OSError for disk issues
    """

    def __init__(self, state: StateManager, merger: ConfigMerger | None = None):
        self.state = state
        self.merger = merger or ConfigMerger()

    def plan(self, tool: str, target_path: Path, managed: dict[str, Any]) -> SyncPlan:
        """Compute the merge for a target without touching disk."""
        target_path = target_path.expanduser().resolve()
        self.state.load()
        user = read_config(target_path)
        base = self.state.get_last_synced_config(tool, str(target_path))

        merged = self.merger.three_way_merge(base, user, managed)
        has_conflicts = self.merger.has_user_conflicts(base, user, managed, merged)
        changes = self.merger.calculate_changes(user, merged)

        logger.debug(
            f"Planned sync for {tool}:{target_path}: {len(changes)} changes, "
            f"conflicts={has_conflicts}, first_sync={base is None}"
        )
        return SyncPlan(base=base, user=user, merged=merged, changes=changes, has_conflicts=has_conflicts)

    def sync(
        self,
        tool: str,
        target_path: Path,
        managed: dict[str, Any],
        *,
        confirm: ConfirmCallback,
        dry_run: bool = False,
        backup: bool = True,
    ) -> SyncResult:
        """Merge and write one target.

        ``confirm`` is only called when the merge has user conflicts. Declining
        leaves both the file and the stored snapshot untouched, so the same
        conflict is raised again on the next sync.

        The target is keyed in state by its resolved absolute path, so relative
        and absolute spellings of one file share a snapshot.
        """
        target_path = target_path.expanduser().resolve()
        plan = self.plan(tool, target_path, managed)

        if dry_run:
            return SyncResult(SyncStatus.DRY_RUN, plan.changes, plan.has_conflicts, plan.merged)

        if not plan.changes:
            self.state.save(self._stage_base(tool, target_path, managed))
            logger.info(f"{target_path} already up to date")
            return SyncResult(SyncStatus.UNCHANGED, plan.changes, plan.has_conflicts, plan.merged)

        if plan.has_conflicts and not confirm(plan.changes):
            logger.info(f"Sync of {target_path} declined by user")
            return SyncResult(SyncStatus.DECLINED, plan.changes, plan.has_conflicts, plan.merged)

        # Nothing is written unless the new base is known to be recordable
        content = ConfigParserFactory.get_parser(target_path).stringify(plan.merged)
        state_content = self._stage_base(tool, target_path, managed)

        backup_path = self._backup(target_path) if backup else None
        self._write(target_path, content)
        self.state.save(state_content)

        logger.info(f"Applied {len(plan.changes)} changes to {target_path}")
        return SyncResult(SyncStatus.APPLIED, plan.changes, plan.has_conflicts, plan.merged, backup_path)

    def _stage_base(self, tool: str, target_path: Path, managed: dict[str, Any]) -> str:
        """Set ``managed`` as the in-memory base and render state.json.

        Raises:
            ConfigFormatError: If the managed config cannot be stored as JSON;
                the previous base is restored first
        """
        key = str(target_path)
        previous = self.state.get_last_synced_config(tool, key)
        self.state.set_last_synced_config(tool, key, managed)
        try:
            return self.state.dumps()
        except ValueError as e:
            if previous is None:
                self.state.remove_last_synced_config(tool, key)
            else:
                self.state.set_last_synced_config(tool, key, previous)
            raise ConfigFormatError(f"Managed config for {target_path} cannot be recorded: {e}") from e

    def _backup(self, target_path: Path) -> Path | None:
        if not target_path.exists():
            return None
        backup_path = backup_path_for(target_path)
        shutil.copy2(target_path, backup_path)
        logger.debug(f"Backed up {target_path} to {backup_path}")
        return backup_path

    def _write(self, target_path: Path, content: str) -> None:
        """Replace the target atomically with already serialized content."""
        target_path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            mode="w", dir=target_path.parent, prefix=f".{target_path.name}_", suffix=".tmp", delete=False, encoding="utf-8"
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            try:
                tmp_file.write(content)
                tmp_file.flush()
                temp_path.replace(target_path)
            except Exception as e:
                with contextlib.suppress(Exception):
                    temp_path.unlink()
                raise OSError(f"Failed to write {target_path}: {e}") from e
