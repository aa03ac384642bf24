"""Tests for CLI error formatting.

Config errors routinely contain bracketed paths such as
``projects["/Users/me/repo"]``, which Rich would otherwise parse as markup.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from config_sync.config_format import ConfigFormatError
from config_sync.utils.error_format import escape_markup
from config_sync.utils.error_format import format_error_message


class TestFormatErrorMessage:
    def test_includes_type(self):
        assert format_error_message(ConfigFormatError("Failed to parse JSON: x")) == (
            "ConfigFormatError: Failed to parse JSON: x"
        )

    def test_without_type(self):
        assert format_error_message(ValueError("invalid input"), include_type=False) == "invalid input"

    def test_empty_message_uses_friendly_fallback(self):
        assert format_error_message(PermissionError()) == (
            "PermissionError: Permission denied while accessing a config file."
        )

    def test_empty_message_without_fallback(self):
        assert format_error_message(RuntimeError()) == "RuntimeError: (no additional details)"


class TestEscapeMarkup:
    def test_path_with_closing_tag_pattern(self):
        result = escape_markup("[/Users/me/settings.json]")
        assert "/Users/me/settings.json" in result

    def test_preserves_plain_text(self):
        assert escape_markup("Connection refused") == "Connection refused"

    def test_handles_non_string_input(self):
        assert escape_markup(ValueError("boom")) == "boom"
        assert escape_markup(42) == "42"

    def test_bracketed_config_path_renders_literally(self):
        buf = StringIO()
        c = Console(file=buf, force_terminal=False, no_color=True)
        escaped = escape_markup('projects["/Users/me/repo"].trust_level')
        c.print(f"[red]Error:[/red] {escaped}")
        assert 'projects["/Users/me/repo"].trust_level' in buf.getvalue()
