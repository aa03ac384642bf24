"""Config file parsers.

Turns JSON, YAML and TOML documents into the plain dict trees the merge
engine works on, and back. Format is picked by file extension.

JSON files may carry comments and trailing commas (VS Code style), so both
``.json`` and ``.jsonc`` are read with json5. Output is always strict JSON.
"""

from __future__ import annotations

import json
import tomllib
from datetime import date
from datetime import datetime
from datetime import time
from pathlib import Path
from typing import Any
from typing import Protocol

import json5
import tomli_w
import yaml


class ConfigFormatError(ValueError):
    """Raised when a config document cannot be parsed or serialized."""


class ConfigParser(Protocol):
    """Parse/serialize one config format."""

    extension: str
    format_name: str

    def parse(self, content: str) -> dict[str, Any]: ...

    def stringify(self, data: dict[str, Any]) -> str: ...


def _require_mapping(data: Any, format_name: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFormatError(f"{format_name} must parse to an object, got {type(data).__name__}")
    return data


def _to_plain_tree(value: Any) -> Any:
    """Replace TOML/YAML temporal values with their ISO 8601 strings."""
    if isinstance(value, dict):
        return {key: _to_plain_tree(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_plain_tree(item) for item in value]
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value
class JsonParser:
    """JSON parser. Accepts comments and trailing commas; output is indented with a trailing newline."""

    extension = ".json"
    format_name = "JSON"

    def parse(self, content: str) -> dict[str, Any]:
        if not content.strip():
            return {}
        try:
            data = json5.loads(content)
        except ValueError as e:
            raise ConfigFormatError(f"Failed to parse JSON: {e}") from e
        return _require_mapping(data, self.format_name)

    def stringify(self, data: dict[str, Any]) -> str:
        try:
            return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as e:
            raise ConfigFormatError(f"Failed to stringify JSON: {e}") from e


class YamlParser:
    """YAML parser using PyYAML safe loading."""

    extension = ".yaml"
    format_name = "YAML"

    def parse(self, content: str) -> dict[str, Any]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigFormatError(f"Failed to parse YAML: {e}") from e
        return _to_plain_tree(_require_mapping(data, self.format_name))

    def stringify(self, data: dict[str, Any]) -> str:
        try:
            return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        except yaml.YAMLError as e:
            raise ConfigFormatError(f"Failed to stringify YAML: {e}") from e


class TomlParser:
    """TOML parser (tomllib to read, tomli_w to write)."""

    extension = ".toml"
    format_name = "TOML"

    def parse(self, content: str) -> dict[str, Any]:
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise ConfigFormatError(f"Failed to parse TOML: {e}") from e
        return _to_plain_tree(data)

    def stringify(self, data: dict[str, Any]) -> str:
        try:
            return tomli_w.dumps(data)
        except (TypeError, ValueError) as e:
            raise ConfigFormatError(f"Failed to stringify TOML: {e}") from e


class ConfigParserFactory:
    """Maps file extensions to parsers.

    The registry is process-wide: ``register_parser`` affects every later
    lookup until ``unregister_parser`` removes the extension again.
    """

    _parsers: dict[str, ConfigParser] = {
        ".json": JsonParser(),
        ".jsonc": JsonParser(),
        ".yaml": YamlParser(),
        ".yml": YamlParser(),
        ".toml": TomlParser(),
    }

    @classmethod
    def get_parser(cls, file_path: str | Path) -> ConfigParser:
        """Get the parser for a file.

        Raises:
            ConfigFormatError: If the extension is not supported
        """
        ext = Path(file_path).suffix.lower()
        parser = cls._parsers.get(ext)
        if parser is None:
            supported = ", ".join(cls.supported_extensions())
            raise ConfigFormatError(f"Unsupported config format: {ext or '(none)'}. Supported formats: {supported}")
        return parser

    @classmethod
    def register_parser(cls, extension: str, parser: ConfigParser) -> None:
        if not extension.startswith("."):
            extension = "." + extension
        cls._parsers[extension.lower()] = parser

    @classmethod
    def unregister_parser(cls, extension: str) -> None:
        if not extension.startswith("."):
            extension = "." + extension
        cls._parsers.pop(extension.lower(), None)

    @classmethod
    def supported_extensions(cls) -> list[str]:
        return list(cls._parsers)

    @classmethod
    def is_supported(cls, file_path: str | Path) -> bool:
        return Path(file_path).suffix.lower() in cls._parsers


def read_config(path: Path) -> dict[str, Any]:
    """Read and parse a config file; a missing file reads as ``{}``."""
    parser = ConfigParserFactory.get_parser(path)
    if not path.exists():
        return {}
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigFormatError(f"Config file is not valid UTF-8: {path} ({e.reason})") from e
    return parser.parse(content)


__all__ = [
    "ConfigFormatError",
    "ConfigParser",
    "ConfigParserFactory",
    "JsonParser",
    "TomlParser",
    "YamlParser",
    "read_config",
]
