"""
Last-synced config persistence.

The three-way merge needs the managed config as it was at the previous sync.
This module keeps one such snapshot per (tool, config path) in a single
``state.json`` file, written atomically.
"""

import contextlib
import json
import logging
import tempfile
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .lib.merge.values import deep_clone

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = "1.0"


def _now() -> str:
    return datetime.now(UTC).isoformat()


class StateNotLoadedError(RuntimeError):
    """Raised when state is accessed before ``load()``."""

    def __init__(self) -> None:
        super().__init__("State not loaded. Call load() first.")


class ConfigState(BaseModel):
    """On-disk shape of state.json."""

    configs: dict[str, dict[str, dict[str, Any]]] = Field(
        default_factory=dict, description="tool -> config path -> last synced managed config"
    )
    recipes_version: str | None = Field(None, description="Last installed recipes version label")
    last_sync: str = Field(default_factory=_now, description="ISO timestamp of last save")
    version: str = Field(default=STATE_FORMAT_VERSION, description="State format version")


class StateManager:
    """
    Tracks the last synced managed config for each target.

    Contract:
    - Inputs: tool name, config path, config dict
    - Outputs: last synced config or None
    - Side Effects: writes <install_dir>/state.json on save()
    - Errors: StateNotLoadedError before load(), ValueError if state cannot be rendered,
      OSError if the file can't be written
    """

    def __init__(self, install_dir: Path):
        self.state_file = install_dir / "state.json"
        self._state: ConfigState | None = None

    @property
    def state(self) -> ConfigState:
        if self._state is None:
            raise StateNotLoadedError()
        return self._state

    def load(self) -> ConfigState:
        """Load state from disk, falling back to empty state if missing or corrupt."""
        if self._state is not None:
            return self._state

        if self.state_file.exists():
            try:
                data = json.loads(self.state_file.read_text(encoding="utf-8"))
                self._state = ConfigState.model_validate(data)
                return self._state
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Failed to load state: {e}. Using empty state.")

        self._state = ConfigState()
        return self._state

    def dumps(self) -> str:
        """Render state.json content, stamping the sync time.

        Raises:
            ValueError: If a stored config holds values JSON cannot represent
        """
        state = self.state
        state.last_sync = _now()
        try:
            return json.dumps(state.model_dump(), indent=2, ensure_ascii=False) + "\n"
        except TypeError as e:
            raise ValueError(f"State is not JSON-serializable: {e}") from e

    def save(self, content: str | None = None) -> None:
        """Write state atomically.

        ``content`` is a result of ``dumps()`` rendered earlier; when omitted
        the current state is rendered now.
        """
        if content is None:
            content = self.dumps()

        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=self.state_file.parent, prefix="state_", suffix=".tmp", delete=False, encoding="utf-8"
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            try:
                tmp_file.write(content)
                tmp_file.flush()
                temp_path.replace(self.state_file)
            except Exception as e:
                with contextlib.suppress(Exception):
                    temp_path.unlink()
                raise OSError(f"Failed to save state: {e}") from e

        logger.debug(f"State saved to {self.state_file}")

    def get_last_synced_config(self, tool: str, config_path: str) -> dict[str, Any] | None:
        return self.state.configs.get(tool, {}).get(config_path)

    def set_last_synced_config(self, tool: str, config_path: str, config: dict[str, Any]) -> None:
        self.state.configs.setdefault(tool, {})[config_path] = deep_clone(config)

    def remove_last_synced_config(self, tool: str, config_path: str) -> None:
        """Forget a target; drops the tool entry once it tracks nothing."""
        tool_configs = self.state.configs.get(tool)
        if tool_configs is None:
            return
        tool_configs.pop(config_path, None)
        if not tool_configs:
            del self.state.configs[tool]

    def get_tracked_config_paths(self, tool: str) -> list[str]:
        return list(self.state.configs.get(tool, {}))

    def has_tracked_configs(self, tool: str) -> bool:
        return bool(self.state.configs.get(tool))

    def get_recipes_version(self) -> str | None:
        return self.state.recipes_version

    def set_recipes_version(self, version: str | None) -> None:
        self.state.recipes_version = version

    def get_last_sync_time(self) -> str:
        return self.state.last_sync

    def clear(self) -> None:
        """Reset to empty state (not persisted until save())."""
        self._state = ConfigState()
