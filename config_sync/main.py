"""config-sync - keep centrally managed configs in sync with local edits."""

import logging

import click

from .commands.config import config as config_group
from .logging_setup import init_json_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="config-sync")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the JSONL log (defaults to $CONFIG_SYNC_LOG_LEVEL or INFO)",
)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Path of the JSONL log file")
def cli(log_level: str | None, log_file: str | None):
    """config-sync - three-way merge of managed configs into local config files."""
    init_json_logging(path=log_file, level=log_level)
    logger.debug("config-sync started")


cli.add_command(config_group)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
