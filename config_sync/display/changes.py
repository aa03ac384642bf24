"""Rendering of config change lists for the CLI."""

from rich.console import Console
from rich.text import Text

from ..lib.merge import ChangeType
from ..lib.merge import ConfigChange
from ..lib.merge import format_change

CHANGE_STYLES = {
    ChangeType.ADDED: "green",
    ChangeType.REMOVED: "red",
    ChangeType.MODIFIED: "yellow",
}


def truncate_value(line: str, max_length: int) -> str:
    """Shorten long diff lines (large arrays, nested server definitions)."""
    if max_length < 0 or len(line) <= max_length:
        return line
    return line[:max_length] + "..."


def summarize_changes(changes: list[ConfigChange]) -> str:
    """One-line count summary, e.g. "2 added, 1 modified"."""
    if not changes:
        return "no changes"
    counts = {change_type: 0 for change_type in ChangeType}
    for change in changes:
        counts[change.type] += 1
    return ", ".join(f"{count} {change_type.value}" for change_type, count in counts.items() if count)


def render_changes(console: Console, changes: list[ConfigChange], max_line_length: int = 160) -> None:
    """Print one colored diff line per change.

    Lines are built as ``Text`` rather than markup because config paths
    contain brackets.
    """
    if not changes:
        console.print("[dim]No changes[/dim]")
        return
    for change in changes:
        line = truncate_value(format_change(change), max_line_length)
        console.print(Text("  " + line, style=CHANGE_STYLES[change.type]))
