"""
Main CLI entry point for migrate-idmap.

This module provides the command-line interface for inspecting and
maintaining the id maps of data migrations.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from migrate_idmap import __version__
from migrate_idmap.cli.commands import idmap as idmap_commands
from migrate_idmap.cli.context import IdMapContext
from migrate_idmap.utils.logging import configure_logging, get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="migrate-idmap")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
    envvar="MIGRATE_IDMAP_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="ERROR",
    help="Set console logging level",
    envvar="MIGRATE_IDMAP_LOG_LEVEL",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Also log to this file",
    envvar="MIGRATE_IDMAP_LOG_FILE",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    log_level: str,
    log_file: Path | None,
) -> None:
    """migrate-idmap - Inspect and maintain migration id maps.

    Every migration records which destination record each source record
    became in its own map table. These commands read those tables and
    perform the maintenance a migration run cannot do itself.

    Examples:

        # Counters of every configured migration
        migrate-idmap status --config config.yaml

        # Where did source node 5 go?
        migrate-idmap lookup d7_node 5 --config config.yaml

        # Reimport everything on the next run
        migrate-idmap mark-update d7_node --config config.yaml
    """
    configure_logging(level=log_level, log_file=str(log_file) if log_file else None)

    # Create context
    ctx.obj = IdMapContext(
        config_path=config,
        log_level=log_level,
        log_file=log_file,
    )
    ctx.call_on_close(ctx.obj.cleanup)

    logger.debug(
        "CLI initialized",
        config=str(config) if config else None,
        log_level=log_level,
    )


# Register standalone commands
cli.add_command(idmap_commands.status)
cli.add_command(idmap_commands.messages)
cli.add_command(idmap_commands.lookup)
cli.add_command(idmap_commands.mark_update)
cli.add_command(idmap_commands.clear_messages)
cli.add_command(idmap_commands.highest_id)
cli.add_command(idmap_commands.destroy)


def main() -> int:
    """Main entry point for CLI."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Exit as e:
        return e.exit_code
    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
