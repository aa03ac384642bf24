"""Scoped settings for config-sync.

Simple, scope-aware YAML settings. The only section the merge cares about is
``merge_strategies``, a per-tool strategy table:

    merge_strategies:
      claude:
        - patterns: ["permissions.*"]
          mode: array-union
          description: Keep local permission grants
        - patterns: ["*"]
          mode: object-merge
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from typing import Literal

import yaml
from pydantic import ValidationError

from .lib.merge.strategy import DEFAULT_STRATEGIES
from .lib.merge.strategy import MergeStrategy
from .lib.merge.strategy import load_strategies
from .paths import get_install_dir
from .paths import get_project_dir

logger = logging.getLogger(__name__)

Scope = Literal["local", "project", "global"]


class SettingsError(ValueError):
    """Raised when a settings file holds an invalid strategy table."""


@dataclass
class SettingsPaths:
    """Standard paths for settings files."""

    global_settings: Path
    project_settings: Path
    local_settings: Path

    @classmethod
    def default(cls) -> SettingsPaths:
        project_dir = get_project_dir()
        return cls(
            global_settings=get_install_dir() / "settings.yaml",
            project_settings=project_dir / "settings.yaml",
            local_settings=project_dir / "settings.local.yaml",
        )


class SyncSettings:
    """Settings manager with scope-aware merging.

    Scope priority (most specific wins):
    1. local (.config-sync/settings.local.yaml) - gitignored, machine-specific
    2. project (.config-sync/settings.yaml) - committed, team-shared
    3. global (~/.config-sync/settings.yaml) - user defaults
    """

    def __init__(self, paths: SettingsPaths | None = None) -> None:
        self.paths = paths or SettingsPaths.default()

    def get_merged_settings(self) -> dict[str, Any]:
        """Load and merge settings from all scopes."""
        result: dict[str, Any] = {}
        for path in [self.paths.global_settings, self.paths.project_settings, self.paths.local_settings]:
            if not path.exists():
                continue
            try:
                with open(path, encoding="utf-8") as f:
                    content = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Skipping unreadable settings file {path}: {e}")
                continue
            if not isinstance(content, dict):
                logger.warning(f"Skipping settings file {path}: top level is not a mapping")
                continue
            result = self._deep_merge(result, content)
        return result

    def get_merge_strategies(self, tool: str) -> list[MergeStrategy]:
        """Strategy table for a tool, or the built-in defaults.

        Raises:
            SettingsError: If the configured table does not validate
        """
        tables = self.get_merged_settings().get("merge_strategies") or {}
        if not isinstance(tables, dict):
            raise SettingsError("merge_strategies must map tool names to strategy lists")
        raw = tables.get(tool)
        if not raw:
            return list(DEFAULT_STRATEGIES)
        if not isinstance(raw, list):
            raise SettingsError(f"merge_strategies.{tool} must be a list of strategies")
        try:
            return load_strategies(raw)
        except ValidationError as e:
            raise SettingsError(f"Invalid merge_strategies.{tool}: {e}") from e

    def set_merge_strategies(self, tool: str, strategies: list[MergeStrategy], scope: Scope = "project") -> None:
        settings = self._read_scope(scope)
        settings.setdefault("merge_strategies", {})[tool] = [s.model_dump(mode="json") for s in strategies]
        self._write_scope(scope, settings)

    def clear_merge_strategies(self, tool: str, scope: Scope = "project") -> None:
        settings = self._read_scope(scope)
        tables = settings.get("merge_strategies", {})
        if tool in tables:
            del tables[tool]
            if not tables:
                del settings["merge_strategies"]
            self._write_scope(scope, settings)

    # ----- Scope utilities -----

    def _get_scope_path(self, scope: Scope) -> Path:
        return {
            "local": self.paths.local_settings,
            "project": self.paths.project_settings,
            "global": self.paths.global_settings,
        }[scope]

    def _read_scope(self, scope: Scope) -> dict[str, Any]:
        path = self._get_scope_path(scope)
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return {}

    def _write_scope(self, scope: Scope, settings: dict[str, Any]) -> None:
        path = self._get_scope_path(scope)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(settings, f, default_flow_style=False, sort_keys=False)

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dicts, overlay wins."""
        result = base.copy()
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
