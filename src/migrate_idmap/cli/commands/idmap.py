"""
Id map commands.

This module provides commands for inspecting and maintaining the id maps
of configured migrations: status counters, messages, lookups, marking
rows for update and dropping map tables.
"""

import click

from migrate_idmap.cli.context import IdMapContext
from migrate_idmap.cli.decorators import (
    confirm_action,
    handle_errors,
    pass_context,
    requires_config,
)
from migrate_idmap.cli.utils import (
    echo_info,
    echo_success,
    echo_warning,
    format_count,
    format_ids,
    print_table,
)
from migrate_idmap.exceptions import MigrateError
from migrate_idmap.idmap.models import MessageLevel
from migrate_idmap.utils.idlist import parse_id_list
from migrate_idmap.utils.logging import get_logger

logger = get_logger(__name__)

LEVEL_CHOICES = [level.name.lower() for level in MessageLevel]


@click.command(name="status")
@click.argument("migration_ids", nargs=-1)
@pass_context
@requires_config
@handle_errors
def status(ctx: IdMapContext, migration_ids: tuple[str, ...]) -> None:
    """Show id map counters of migrations.

    Without MIGRATION_IDS every configured migration is listed.

    Examples:

        migrate-idmap status --config config.yaml

        migrate-idmap status d7_node:article d7_node:page --config config.yaml
    """
    ids = list(migration_ids) or ctx.catalog.ids
    if not ids:
        echo_warning("No migrations configured")
        return

    rows = []
    for migration_id in ids:
        id_map = ctx.id_map(migration_id)
        rows.append(
            [
                migration_id,
                format_count(id_map.processed_count()),
                format_count(id_map.imported_count()),
                format_count(id_map.update_count()),
                format_count(id_map.error_count()),
                format_count(id_map.message_count()),
            ]
        )

    print_table(
        "Id Map Status",
        ["Migration", "Processed", "Imported", "Update", "Failed", "Messages"],
        rows,
    )


@click.command(name="messages")
@click.argument("migration_id")
@click.option(
    "--idlist",
    type=str,
    help="Comma separated source ids to show messages for, e.g. 1:en,2:fr",
)
@click.option(
    "--level",
    type=click.Choice(LEVEL_CHOICES, case_sensitive=False),
    help="Only show messages of this level",
)
@pass_context
@requires_config
@handle_errors
def messages(ctx: IdMapContext, migration_id: str, idlist: str | None, level: str | None) -> None:
    """Show messages saved against source rows of a migration.

    Examples:

        migrate-idmap messages d7_node --config config.yaml

        migrate-idmap messages d7_node --idlist 1,5 --level error --config config.yaml
    """
    id_map = ctx.id_map(migration_id)
    message_level = MessageLevel[level.upper()] if level else None

    rows = []
    source_ids_list = parse_id_list(idlist)
    if source_ids_list:
        for source_ids in source_ids_list:
            for message in id_map.get_messages(source_ids, message_level):
                rows.append([format_ids(source_ids), message.level.name.lower(), message.message])
    else:
        for message in id_map.get_messages(level=message_level):
            rows.append(
                [message.source_ids_hash[:12], message.level.name.lower(), message.message]
            )

    if not rows:
        echo_info(f"No messages for {migration_id}")
        return

    print_table(f"Messages: {migration_id}", ["Source", "Level", "Message"], rows)


@click.command(name="lookup")
@click.argument("migration_id")
@click.argument("ids")
@click.option(
    "--reverse",
    is_flag=True,
    help="Look up the source ids of destination IDS",
)
@pass_context
@requires_config
@handle_errors
def lookup(ctx: IdMapContext, migration_id: str, ids: str, reverse: bool) -> None:
    """Look up where source IDS were migrated to.

    IDS are colon separated in declared key order. A leading part of a
    multi-column source key finds every matching row.

    Examples:

        migrate-idmap lookup d7_node 5 --config config.yaml

        migrate-idmap lookup d7_node 100 --reverse --config config.yaml
    """
    id_map = ctx.id_map(migration_id)
    parsed = parse_id_list(ids)
    if len(parsed) != 1:
        raise MigrateError(
            "Exactly one id must be given", migration_id=migration_id, operation="lookup"
        )
    values = parsed[0]

    if reverse:
        source_ids = id_map.lookup_source_id(values)
        if not source_ids:
            echo_warning(f"No source row maps to {format_ids(values)}")
            return
        print_table(
            f"Source of {format_ids(values)}",
            ["Field", "Value"],
            [[name, value] for name, value in source_ids.items()],
        )
        return

    destinations = id_map.lookup_destination_ids(values)
    if not destinations:
        echo_warning(f"No destination recorded for {format_ids(values)}")
        return

    print_table(
        f"Destination of {format_ids(values)}",
        id_map.identity.destination_field_names,
        destinations,
    )


@click.command(name="mark-update")
@click.argument("migration_id")
@click.option(
    "--idlist",
    type=str,
    help="Comma separated source ids to mark; all rows when omitted",
)
@pass_context
@requires_config
@handle_errors
def mark_update(ctx: IdMapContext, migration_id: str, idlist: str | None) -> None:
    """Mark map rows as needing update so the next run reimports them.

    Examples:

        migrate-idmap mark-update d7_node --config config.yaml

        migrate-idmap mark-update d7_node --idlist 1,5 --config config.yaml
    """
    id_map = ctx.id_map(migration_id)
    source_ids_list = parse_id_list(idlist)

    if not source_ids_list:
        id_map.prepare_update()
        echo_success(f"All rows of {migration_id} marked as needing update")
        return

    marked = 0
    for source_ids in source_ids_list:
        count = id_map.set_update(source_ids)
        if not count:
            echo_warning(f"No map row for {format_ids(source_ids)}")
        marked += count
    echo_success(f"{format_count(marked)} row(s) of {migration_id} marked")


@click.command(name="clear-messages")
@click.argument("migration_id")
@pass_context
@requires_config
@handle_errors
def clear_messages(ctx: IdMapContext, migration_id: str) -> None:
    """Delete every message of a migration."""
    id_map = ctx.id_map(migration_id)
    count = id_map.message_count()
    id_map.clear_messages()
    echo_success(f"Cleared {format_count(count)} message(s) of {migration_id}")


@click.command(name="highest-id")
@click.argument("migration_id")
@pass_context
@requires_config
@handle_errors
def highest_id(ctx: IdMapContext, migration_id: str) -> None:
    """Print the highest destination id recorded for a migration family."""
    click.echo(ctx.id_map(migration_id).get_highest_id())


@click.command(name="destroy")
@click.argument("migration_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@confirm_action(
    "This will drop the map and message tables of the migration. Continue?",
    abort_message="Destroy cancelled.",
)
@pass_context
@requires_config
@handle_errors
def destroy(ctx: IdMapContext, migration_id: str, yes: bool) -> None:
    """Drop the map and message tables of a migration.

    All mappings are lost; the next run processes every source row again.
    """
    ctx.id_map(migration_id).destroy()
    logger.warning("Id map destroyed", migration_id=migration_id)
    echo_success(f"Id map of {migration_id} destroyed")
