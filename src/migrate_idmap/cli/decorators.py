"""Decorators shared by the id map commands."""

import functools
from collections.abc import Callable

import click

from migrate_idmap.cli.context import IdMapContext
from migrate_idmap.exceptions import ConfigurationError, MigrateError, StateError
from migrate_idmap.utils.logging import get_logger

logger = get_logger(__name__)


def pass_context(f: Callable) -> Callable:
    """Pass the IdMapContext stored on the click context as first argument."""

    @click.pass_context
    @functools.wraps(f)
    def wrapper(click_ctx: click.Context, *args, **kwargs):
        idmap_ctx: IdMapContext = click_ctx.obj
        return f(idmap_ctx, *args, **kwargs)

    return wrapper


def handle_errors(f: Callable) -> Callable:
    """
    Report id map errors and exit with a code per error kind.

    Exit codes:
        1: Unexpected error
        2: Configuration error or unknown migration
        3: Invalid identifiers or misuse of the id map
        5: Storage error
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)

        except click.exceptions.Exit:
            raise

        except ConfigurationError as e:
            logger.error("Configuration error", error=str(e))
            click.echo(f"Configuration Error: {e}", err=True)
            click.echo(
                "\nPlease check your configuration file and the migrations declared in it.",
                err=True,
            )
            raise click.exceptions.Exit(2) from e

        except MigrateError as e:
            logger.error("Id map usage error", error=str(e))
            click.echo(f"Id Map Error: {e}", err=True)
            raise click.exceptions.Exit(3) from e

        except StateError as e:
            logger.error("State error", error=str(e))
            click.echo(f"State Error: {e}", err=True)
            click.echo(
                "\nThe id map tables could not be read or written. "
                "Check that the database is reachable and the tables are intact.",
                err=True,
            )
            raise click.exceptions.Exit(5) from e

        except Exception as e:
            logger.error("Unexpected error", error=str(e), exc_info=True)
            click.echo(f"Unexpected Error: {e}", err=True)
            raise click.exceptions.Exit(1) from e

    return wrapper


def requires_config(f: Callable) -> Callable:
    """Load and validate the configuration file before the command runs."""

    @functools.wraps(f)
    def wrapper(ctx: IdMapContext, *args, **kwargs):
        if ctx.config_path is None:
            click.echo(
                "Error: Configuration file required. "
                "Use --config option or set MIGRATE_IDMAP_CONFIG.",
                err=True,
            )
            raise click.exceptions.Exit(2)

        try:
            _ = ctx.config
        except Exception as e:
            click.echo(f"Error loading configuration: {e}", err=True)
            raise click.exceptions.Exit(2) from e

        return f(ctx, *args, **kwargs)

    return wrapper


def confirm_action(message: str, abort_message: str = "Operation cancelled.") -> Callable:
    """Ask for confirmation unless the command was given ``--yes``."""

    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            if not click.get_current_context().params.get("yes", False):
                if not click.confirm(message):
                    click.echo(abort_message)
                    raise click.exceptions.Exit(0)
            return f(*args, **kwargs)

        return wrapper

    return decorator
