"""Config sync commands.

Examples:
    # See what a sync would change
    config-sync config preview managed/settings.json ~/.claude/settings.json --tool claude

    # Apply it, prompting only if local edits would be overwritten
    config-sync config apply managed/settings.json ~/.claude/settings.json --tool claude

    # Scripted usage
    config-sync config apply managed/config.toml ~/.codex/config.toml --tool codex -y
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any
from typing import NoReturn

import click
from rich.prompt import Confirm
from rich.table import Table

from ..config_format import ConfigFormatError
from ..config_format import read_config
from ..console import console
from ..display.changes import render_changes
from ..display.changes import summarize_changes
from ..lib.merge import ConfigChange
from ..lib.merge import ConfigMerger
from ..paths import create_settings
from ..paths import create_state_manager
from ..settings import SettingsError
from ..sync import ConfigSyncer
from ..sync import SyncStatus
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message

DEFAULT_TOOL = "default"


def _fail(e: BaseException) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
    sys.exit(1)


def _load_managed(managed_file: str) -> dict[str, Any]:
    try:
        return read_config(Path(managed_file))
    except ConfigFormatError as e:
        _fail(e)


def _create_syncer(tool: str) -> ConfigSyncer:
    try:
        strategies = create_settings().get_merge_strategies(tool)
    except SettingsError as e:
        _fail(e)
    return ConfigSyncer(create_state_manager(), ConfigMerger(strategies))


def _confirm_overwrite(changes: list[ConfigChange]) -> bool:
    console.print("\n[yellow]⚠️ This sync would overwrite values you changed locally:[/yellow]")
    render_changes(console, changes)
    return Confirm.ask("\nApply these changes anyway?", default=False, console=console)


@click.group()
def config():
    """Sync managed configs into local config files."""
    pass


@config.command("preview")
@click.argument("managed_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("target_file", type=click.Path(dir_okay=False))
@click.option("--tool", default=DEFAULT_TOOL, show_default=True, help="Tool the target belongs to")
def config_preview(managed_file: str, target_file: str, tool: str):
    """Show what syncing MANAGED_FILE into TARGET_FILE would change."""
    managed = _load_managed(managed_file)
    syncer = _create_syncer(tool)

    try:
        plan = syncer.plan(tool, Path(target_file), managed)
    except (ValueError, OSError) as e:
        _fail(e)

    console.print(f"[bold]Target:[/bold] {escape_markup(target_file)}")
    console.print(f"[bold]Changes:[/bold] {summarize_changes(plan.changes)}")
    if plan.base is None:
        console.print("[dim]First sync for this target[/dim]")
    render_changes(console, plan.changes)
    if plan.has_conflicts:
        console.print("\n[yellow]Local edits would be overwritten; apply will ask for confirmation.[/yellow]")


@config.command("apply")
@click.argument("managed_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("target_file", type=click.Path(dir_okay=False))
@click.option("--tool", default=DEFAULT_TOOL, show_default=True, help="Tool the target belongs to")
@click.option("--yes", "-y", is_flag=True, help="Apply without confirmation even if local edits conflict")
@click.option("--no-backup", is_flag=True, help="Do not keep a .backup copy of the target")
@click.option("--dry-run", is_flag=True, help="Compute the merge without writing anything")
def config_apply(managed_file: str, target_file: str, tool: str, yes: bool, no_backup: bool, dry_run: bool):
    """Merge MANAGED_FILE into TARGET_FILE, keeping local customizations."""
    managed = _load_managed(managed_file)
    syncer = _create_syncer(tool)

    confirm = (lambda _changes: True) if yes else _confirm_overwrite

    try:
        result = syncer.sync(
            tool,
            Path(target_file),
            managed,
            confirm=confirm,
            dry_run=dry_run,
            backup=not no_backup,
        )
    except (ValueError, OSError) as e:
        _fail(e)

    target = escape_markup(target_file)
    if result.status is SyncStatus.DRY_RUN:
        console.print("[yellow]DRY RUN - No changes will be made[/yellow]\n")
        render_changes(console, result.changes)
    elif result.status is SyncStatus.UNCHANGED:
        console.print(f"[green]✓ Up to date:[/green] {target}")
    elif result.status is SyncStatus.DECLINED:
        console.print(f"[yellow]Skipped {target}; nothing was written.[/yellow]")
    else:
        console.print(f"[green]✓ Updated {target}[/green] ({summarize_changes(result.changes)})")
        if result.backup_path:
            console.print(f"[dim]Backup: {escape_markup(result.backup_path)}[/dim]")


@config.command("state")
@click.option("--tool", default=None, help="Only show one tool")
def config_state(tool: str | None):
    """List targets with a recorded sync snapshot."""
    state_manager = create_state_manager()
    state = state_manager.load()

    tools = [tool] if tool else sorted(state.configs)
    rows = [(name, path) for name in tools for path in state_manager.get_tracked_config_paths(name)]

    if not rows:
        console.print("[dim]No synced configs recorded[/dim]")
        return

    table = Table(title="Synced Configs", show_header=True, header_style="bold cyan")
    table.add_column("Tool", style="green")
    table.add_column("Config Path")
    for name, path in rows:
        table.add_row(name, escape_markup(path))

    console.print(table)
    console.print(f"[dim]Last sync: {state_manager.get_last_sync_time()}[/dim]")
