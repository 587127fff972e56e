"""
SQL-backed id map.

This module provides the SqlIdMap class, which records for one migration
which destination record every processed source record became, tracks
the status of each source row, stores per-row messages and answers the
lookups other migrations make when resolving references.
"""

import time
from collections.abc import Generator, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from sqlalchemy import (
    Connection,
    Engine,
    Table,
    column,
    delete,
    func,
    insert,
    inspect,
    select,
    table,
    update,
)
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from migrate_idmap.exceptions import (
    IncompleteKeyError,
    MigrateError,
    StateError,
    UnsupportedIdTypeError,
)
from migrate_idmap.idmap.catalog import MigrationCatalog
from migrate_idmap.idmap.cursor import IdMapCursor
from migrate_idmap.idmap.events import (
    EventDispatcher,
    IdMapListener,
    IdMapMessageEvent,
    MapDeleteEvent,
    MapSaveEvent,
)
from migrate_idmap.idmap.hashing import source_ids_hash
from migrate_idmap.idmap.messages import LogMessageSink, MessageSink
from migrate_idmap.idmap.models import (
    MapRow,
    MessageLevel,
    MessageRow,
    MigrationIdentity,
    RollbackAction,
    SourceRowStatus,
)
from migrate_idmap.idmap.schema import (
    DEFAULT_IDENTIFIER_MAX_LENGTH,
    MAP_TABLE_PREFIX,
    MESSAGE_TABLE_PREFIX,
    SOURCE_IDS_HASH,
    SchemaManager,
    generate_table_name,
)
from migrate_idmap.utils.logging import get_logger

logger = get_logger(__name__)

IdValues = Mapping[str, Any] | Sequence[Any]


def _as_sequence(values: Any) -> list[Any]:
    """Treat a bare scalar as a one-value positional tuple."""
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        return [values]
    return list(values)


class SqlIdMap:
    """
    Id map of one migration stored in a map table and a message table.

    Tables are created lazily on first use and only checked once per
    instance. Writes are single statements keyed by the source id hash, so
    two saves of the same source row converge on the last one.

    Usage:
        id_map = SqlIdMap(identity, engine)
        id_map.save_id_mapping({"nid": 1}, {"id": 100})
        id_map.lookup_destination_id({"nid": 1})  # [100]
    """

    def __init__(
        self,
        identity: MigrationIdentity,
        engine: Engine,
        *,
        catalog: MigrationCatalog | None = None,
        listeners: Iterable[IdMapListener] | None = None,
        message_sink: MessageSink | None = None,
        table_prefix: str = "",
        identifier_max_length: int = DEFAULT_IDENTIFIER_MAX_LENGTH,
    ):
        """
        Initialize the id map.

        Args:
            identity: Migration whose rows are mapped
            engine: Engine of the database holding the map tables
            catalog: Catalog used to find derivative siblings for get_highest_id()
            listeners: Listeners notified of saves, messages and deletes
            message_sink: Receives diagnostics for refused saves (logs by default)
            table_prefix: Prefix prepended to the physical table names
            identifier_max_length: Identifier length limit of the database, in bytes

        Raises:
            SchemaError: If an identifier field has an unsupported type
        """
        self.identity = identity
        self.engine = engine
        self.catalog = catalog
        self.events = EventDispatcher(listeners)
        self.message = message_sink or LogMessageSink(identity.id)
        self.table_prefix = table_prefix
        self.identifier_max_length = identifier_max_length

        self._map_table_name = self._table_name(MAP_TABLE_PREFIX, identity)
        self._message_table_name = self._table_name(MESSAGE_TABLE_PREFIX, identity)
        self._source_id_fields = identity.source_columns()
        self._destination_id_fields = identity.destination_columns()

        self.schema = SchemaManager(
            engine,
            identity,
            self.qualified_map_table_name,
            self.qualified_message_table_name,
            identifier_max_length=identifier_max_length,
        )
        self.map_table = self.schema.map_table
        self.message_table = self.schema.message_table
        self._initialized = False

    def _table_name(self, prefix: str, identity: MigrationIdentity) -> str:
        return generate_table_name(
            prefix, identity.id, self.table_prefix, self.identifier_max_length
        )

    @property
    def map_table_name(self) -> str:
        """Map table name without the connection table prefix."""
        return self._map_table_name

    @property
    def message_table_name(self) -> str:
        """Message table name without the connection table prefix."""
        return self._message_table_name

    @property
    def qualified_map_table_name(self) -> str:
        return f"{self.table_prefix}{self._map_table_name}"

    @property
    def qualified_message_table_name(self) -> str:
        return f"{self.table_prefix}{self._message_table_name}"

    def set_message_sink(self, sink: MessageSink) -> None:
        self.message = sink

    def ensure_tables(self) -> None:
        """Create or update the tables once for the lifetime of this instance."""
        if not self._initialized:
            self.schema.ensure_tables()
            self._initialized = True

    @contextmanager
    def _transaction(self, operation: str) -> Generator[Connection, None, None]:
        """
        Run one operation in its own transaction.

        Commits on success and rolls back on error. Storage errors are
        logged and re-raised as StateError; other exceptions pass through.
        """
        self.ensure_tables()
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error(
                "Id map operation failed",
                migration_id=self.identity.id,
                operation=operation,
                error=str(e),
            )
            raise StateError(
                f"Id map operation failed: {e}",
                migration_id=self.identity.id,
                operation=operation,
            ) from e

    def _contract_error(self, message: str, operation: str) -> MigrateError:
        return MigrateError(message, migration_id=self.identity.id, operation=operation)

    def source_ids_hash(self, source_id_values: IdValues, operation: str = "source_ids_hash") -> str:
        """
        Compute the map table key of a full source id tuple.

        Args:
            source_id_values: Values keyed by source field name, or positional
                in declared order

        Raises:
            IncompleteKeyError: If a declared source field has no value
        """
        try:
            return source_ids_hash(source_id_values, self.identity.source_field_names)
        except IncompleteKeyError as e:
            raise IncompleteKeyError(
                e.message, migration_id=self.identity.id, operation=operation
            ) from None

    def _keyed_source_values(self, source_id_values: IdValues, operation: str) -> dict[str, Any]:
        """Key source values by field name; absent fields map to None."""
        if isinstance(source_id_values, Mapping):
            return {name: source_id_values.get(name) for name in self._source_id_fields}

        values = _as_sequence(source_id_values)
        if len(values) > len(self._source_id_fields):
            raise self._contract_error(
                f"Extra unknown items in source IDs: {values[len(self._source_id_fields):]!r}",
                operation,
            )
        values += [None] * (len(self._source_id_fields) - len(values))
        return dict(zip(self._source_id_fields, values))

    def _ordered_destination_values(
        self, destination_id_values: IdValues, operation: str
    ) -> list[Any]:
        """Normalize a full destination tuple to the declared order."""
        if isinstance(destination_id_values, Mapping):
            missing = [
                name for name in self._destination_id_fields if name not in destination_id_values
            ]
            if missing:
                raise self._contract_error(
                    f"Missing destination id values: {', '.join(missing)}", operation
                )
            return [destination_id_values[name] for name in self._destination_id_fields]

        values = _as_sequence(destination_id_values)
        if len(values) != len(self._destination_id_fields):
            raise self._contract_error(
                f"Expected {len(self._destination_id_fields)} destination id values, "
                f"got {len(values)}",
                operation,
            )
        return values

    def _destination_conditions(self, destination_id_values: IdValues, operation: str) -> list:
        values = self._ordered_destination_values(destination_id_values, operation)
        return [
            self.map_table.c[db_field] == value
            for db_field, value in zip(self._destination_id_fields.values(), values)
        ]

    def get_row_by_source(self, source_id_values: IdValues) -> MapRow | None:
        """
        Get the map row of a source id tuple.

        Args:
            source_id_values: Full source id tuple

        Returns:
            The row, or None if the source row was never processed
        """
        key = self.source_ids_hash(source_id_values, "get_row_by_source")
        with self._transaction("get_row_by_source") as conn:
            record = (
                conn.execute(select(self.map_table).where(self.map_table.c[SOURCE_IDS_HASH] == key))
                .mappings()
                .first()
            )
        return MapRow.from_record(record, self.identity) if record else None

    def get_row_by_destination(self, destination_id_values: IdValues) -> MapRow | None:
        """
        Get the map row whose destination tuple matches on every column.

        Args:
            destination_id_values: Full destination id tuple

        Returns:
            The row, or None if no row maps to that destination
        """
        conditions = self._destination_conditions(destination_id_values, "get_row_by_destination")
        with self._transaction("get_row_by_destination") as conn:
            record = conn.execute(select(self.map_table).where(*conditions)).mappings().first()
        return MapRow.from_record(record, self.identity) if record else None

    def get_rows_needing_update(self, limit: int) -> list[MapRow]:
        """
        Get rows marked as needing update.

        Args:
            limit: Maximum number of rows to return
        """
        query = (
            select(self.map_table)
            .where(self.map_table.c.source_row_status == int(SourceRowStatus.NEEDS_UPDATE))
            .limit(limit)
        )
        with self._transaction("get_rows_needing_update") as conn:
            records = conn.execute(query).mappings().all()
        return [MapRow.from_record(record, self.identity) for record in records]

    def lookup_source_id(self, destination_id_values: IdValues) -> dict[str, Any]:
        """
        Find the source id tuple a destination tuple was migrated from.

        Returns:
            Source values keyed by source field name, or an empty dict
        """
        conditions = self._destination_conditions(destination_id_values, "lookup_source_id")
        query = select(
            *(
                self.map_table.c[db_field].label(field_name)
                for field_name, db_field in self._source_id_fields.items()
            )
        ).where(*conditions)
        with self._transaction("lookup_source_id") as conn:
            record = conn.execute(query).mappings().first()
        return dict(record) if record else {}

    def lookup_destination_id(self, source_id_values: IdValues) -> list[Any]:
        """
        Find the destination tuple of a source id tuple.

        Returns:
            Destination values in declared order of the first match, or an
            empty list
        """
        results = self.lookup_destination_ids(source_id_values)
        return results[0] if results else []

    def lookup_destination_ids(self, source_id_values: IdValues) -> list[list[Any]]:
        """
        Find the destination tuples of a full or partial source id tuple.

        Keyed input may name any subset of the source fields in any order;
        None values are ignored. Positional input is matched against the
        first declared source fields. A full key is looked up through the
        primary key hash, a partial key through per-column equality.

        Args:
            source_id_values: Keyed or positional source values

        Returns:
            Destination value lists in declared order, one per matching row

        Raises:
            MigrateError: If values are given for undeclared source fields
        """
        if isinstance(source_id_values, Mapping):
            if not source_id_values:
                return []
            remaining: Any = dict(source_id_values)
        else:
            remaining = _as_sequence(source_id_values)
            if not remaining:
                return []

        conditions: dict[str, Any] = {}
        for field_name, db_field in self._source_id_fields.items():
            if isinstance(remaining, dict):
                if field_name in remaining:
                    value = remaining.pop(field_name)
                    if value is not None:
                        conditions[db_field] = value
            else:
                if not remaining:
                    break
                conditions[db_field] = remaining.pop(0)

        if remaining:
            raise self._contract_error(
                f"Extra unknown items in source IDs: {remaining!r}", "lookup_destination_ids"
            )

        query = select(
            *(self.map_table.c[db_field] for db_field in self._destination_id_fields.values())
        )
        if len(conditions) == len(self._source_id_fields):
            query = query.where(
                self.map_table.c[SOURCE_IDS_HASH]
                == self.source_ids_hash(list(conditions.values()), "lookup_destination_ids")
            )
        else:
            query = query.where(
                *(self.map_table.c[db_field] == value for db_field, value in conditions.items())
            )

        with self._transaction("lookup_destination_ids") as conn:
            return [list(row) for row in conn.execute(query).all()]

    def save_id_mapping(
        self,
        source_id_values: IdValues,
        destination_id_values: IdValues | None = None,
        source_row_status: SourceRowStatus = SourceRowStatus.IMPORTED,
        rollback_action: RollbackAction = RollbackAction.DELETE,
        content_hash: str | None = None,
    ) -> bool:
        """
        Record the outcome of processing a source row.

        The save is refused, with a message to the message sink, when a
        source field has no value or when destination values are given
        but do not cover every destination field.

        Args:
            source_id_values: Source values keyed by field name (or positional)
            destination_id_values: Destination values; empty for rows
                without a destination such as failed or ignored rows
            source_row_status: Status to record
            rollback_action: What a rollback does with the destination record
            content_hash: Hash of the source row data, for change detection

        Returns:
            True if the row was written, False if the save was refused
        """
        keyed = self._keyed_source_values(source_id_values, "save_id_mapping")

        fields: dict[str, Any] = {}
        for field_name, db_field in self._source_id_fields.items():
            # A NULL key value is usually an indication of a problem
            if keyed[field_name] is None:
                self.message.display(
                    f"Did not save to map table due to NULL value for key field {field_name}",
                    "error",
                )
                return False
            fields[db_field] = keyed[field_name]

        fields.update(
            {
                "source_row_status": int(source_row_status),
                "rollback_action": int(rollback_action),
                "hash": content_hash,
            }
        )

        if isinstance(destination_id_values, Mapping):
            destination_values = [
                destination_id_values[name]
                for name in self._destination_id_fields
                if name in destination_id_values
            ]
        else:
            destination_values = [] if destination_id_values is None else _as_sequence(
                destination_id_values
            )
        if destination_values and len(destination_values) != len(self._destination_id_fields):
            self.message.display(
                "Could not save to map table due to missing destination id values", "error"
            )
            return False
        for delta, value in enumerate(destination_values, 1):
            fields[f"destid{delta}"] = value

        if self.identity.track_last_imported:
            fields["last_imported"] = int(time.time())

        key = self.source_ids_hash(keyed, "save_id_mapping")

        # Notify anyone listening of the map row we're about to save
        self.events.row_saved(MapSaveEvent(id_map=self, fields=dict(fields)))

        with self._transaction("save_id_mapping") as conn:
            self._merge(conn, key, fields)

        logger.debug(
            "Id mapping saved",
            migration_id=self.identity.id,
            source_ids=keyed,
            destination_ids=destination_values,
            status=SourceRowStatus(source_row_status).name,
        )
        return True

    def _merge(self, conn: Connection, key: str, fields: dict[str, Any]) -> None:
        """Insert the row or update it in place when the key already exists."""
        values = {SOURCE_IDS_HASH: key, **fields}
        dialect = conn.dialect.name
        # Conflict clauses need a unique key, which evolved legacy tables lack
        native = self.schema.hash_is_unique

        if native and dialect in ("sqlite", "postgresql"):
            insert_factory = sqlite_insert if dialect == "sqlite" else postgresql_insert
            statement = insert_factory(self.map_table).values(**values)
            statement = statement.on_conflict_do_update(
                index_elements=[self.map_table.c[SOURCE_IDS_HASH]],
                set_={name: statement.excluded[name] for name in fields},
            )
            conn.execute(statement)

        elif native and dialect in ("mysql", "mariadb"):
            statement = mysql_insert(self.map_table).values(**values)
            statement = statement.on_duplicate_key_update(
                **{name: statement.inserted[name] for name in fields}
            )
            conn.execute(statement)

        else:
            result = conn.execute(
                update(self.map_table)
                .where(self.map_table.c[SOURCE_IDS_HASH] == key)
                .values(**fields)
            )
            if result.rowcount == 0:
                conn.execute(insert(self.map_table).values(**values))

    def save_message(
        self,
        source_id_values: IdValues,
        message: str,
        level: MessageLevel = MessageLevel.ERROR,
    ) -> bool:
        """
        Save a message against a source row.

        Nothing is saved when a source field has no value.

        Returns:
            True if the message was saved
        """
        keyed = self._keyed_source_values(source_id_values, "save_message")
        if any(value is None for value in keyed.values()):
            return False

        level = MessageLevel(level)
        with self._transaction("save_message") as conn:
            conn.execute(
                insert(self.message_table).values(
                    source_ids_hash=self.source_ids_hash(keyed, "save_message"),
                    level=int(level),
                    message=message,
                )
            )

        # Notify anyone listening of the message we've saved
        self.events.message_saved(
            IdMapMessageEvent(
                identity=self.identity,
                source_id_values=keyed,
                message=message,
                level=level,
            )
        )
        return True

    def get_messages(
        self,
        source_id_values: IdValues | None = None,
        level: MessageLevel | None = None,
    ) -> Iterator[MessageRow]:
        """
        Iterate over saved messages, optionally for one source row and level.

        The query runs when iteration starts; each call starts a new query.
        """
        query = select(self.message_table).order_by(self.message_table.c.msgid)
        if source_id_values:
            query = query.where(
                self.message_table.c[SOURCE_IDS_HASH]
                == self.source_ids_hash(source_id_values, "get_messages")
            )
        if level:
            query = query.where(self.message_table.c.level == int(level))

        def _iterate() -> Iterator[MessageRow]:
            with self._transaction("get_messages") as conn:
                records = conn.execute(query).mappings().all()
            for record in records:
                yield MessageRow.from_record(record)

        return _iterate()

    def prepare_update(self) -> None:
        """Mark every row as needing update."""
        with self._transaction("prepare_update") as conn:
            conn.execute(
                update(self.map_table).values(
                    source_row_status=int(SourceRowStatus.NEEDS_UPDATE)
                )
            )
        logger.info("All map rows marked for update", migration_id=self.identity.id)

    def set_update(self, source_id_values: IdValues) -> int:
        """
        Mark one row as needing update.

        Returns:
            Number of rows marked; 0 when no row matches every source field

        Raises:
            MigrateError: If no source values are given
        """
        if not source_id_values:
            raise self._contract_error("No source identifiers provided to update.", "set_update")

        keyed = self._keyed_source_values(source_id_values, "set_update")
        query = update(self.map_table).values(
            source_row_status=int(SourceRowStatus.NEEDS_UPDATE)
        )
        for field_name, db_field in self._source_id_fields.items():
            query = query.where(self.map_table.c[db_field] == keyed[field_name])

        with self._transaction("set_update") as conn:
            return conn.execute(query).rowcount

    def _count(self, counted: Table, statuses: Sequence[SourceRowStatus] | None = None) -> int:
        """
        Count rows of a table without creating it.

        A table that does not exist yet holds no rows.
        """
        query = select(func.count()).select_from(counted)
        if statuses:
            query = query.where(counted.c.source_row_status.in_([int(s) for s in statuses]))

        try:
            with self.engine.connect() as conn:
                if not inspect(conn).has_table(counted.name):
                    return 0
                return int(conn.execute(query).scalar() or 0)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to count id map rows",
                migration_id=self.identity.id,
                table=counted.name,
                error=str(e),
            )
            raise StateError(
                f"Failed to count rows: {e}", migration_id=self.identity.id, operation="count"
            ) from e

    def processed_count(self) -> int:
        return self._count(self.map_table)

    def imported_count(self) -> int:
        """Count rows imported, including those since marked as needing update."""
        return self._count(
            self.map_table, [SourceRowStatus.IMPORTED, SourceRowStatus.NEEDS_UPDATE]
        )

    def update_count(self) -> int:
        return self._count(self.map_table, [SourceRowStatus.NEEDS_UPDATE])

    def error_count(self) -> int:
        return self._count(self.map_table, [SourceRowStatus.FAILED])

    def message_count(self) -> int:
        return self._count(self.message_table)

    def delete(self, source_id_values: IdValues, messages_only: bool = False) -> None:
        """
        Delete the map row of a source id tuple together with its messages.

        Args:
            source_id_values: Full source id tuple
            messages_only: Keep the map row, delete only the messages

        Raises:
            MigrateError: If no source values are given
        """
        if not source_id_values:
            raise self._contract_error(
                "Without source identifier values it is impossible to find the row to delete.",
                "delete",
            )

        key = self.source_ids_hash(source_id_values, "delete")
        keyed = self._keyed_source_values(source_id_values, "delete")

        if not messages_only:
            # Notify anyone listening of the map row we're about to delete
            self.events.before_delete(MapDeleteEvent(id_map=self, source_id_values=keyed))

        with self._transaction("delete") as conn:
            if not messages_only:
                conn.execute(delete(self.map_table).where(self.map_table.c[SOURCE_IDS_HASH] == key))
            conn.execute(
                delete(self.message_table).where(self.message_table.c[SOURCE_IDS_HASH] == key)
            )

    def delete_destination(self, destination_id_values: IdValues) -> None:
        """Delete the map row and messages of a destination tuple, if mapped."""
        conditions = self._destination_conditions(destination_id_values, "delete_destination")
        source_id_values = self.lookup_source_id(destination_id_values)
        if not source_id_values:
            return

        # Notify anyone listening of the map row we're about to delete
        self.events.before_delete(MapDeleteEvent(id_map=self, source_id_values=source_id_values))

        key = self.source_ids_hash(source_id_values, "delete_destination")
        with self._transaction("delete_destination") as conn:
            conn.execute(delete(self.map_table).where(*conditions))
            conn.execute(
                delete(self.message_table).where(self.message_table.c[SOURCE_IDS_HASH] == key)
            )

    def clear_messages(self) -> None:
        """Delete every message of this migration."""
        with self._transaction("clear_messages") as conn:
            conn.execute(delete(self.message_table))

    def destroy(self) -> None:
        """Drop the map and message tables; all mapping data is lost."""
        self.schema.drop_tables()
        self._initialized = False

    def get_highest_id(self, siblings: Iterable[MigrationIdentity] | None = None) -> int:
        """
        Get the highest destination id recorded by this migration's family.

        Derivative migrations sharing a base id also share a destination id
        space, so their map tables are searched too. Map tables that do not
        exist yet are skipped.

        Args:
            siblings: Family members to include; defaults to the catalog's
                family of this migration

        Returns:
            The highest destination id, or 0 if none was recorded

        Raises:
            UnsupportedIdTypeError: If the destination id is not a single
                set of integer columns
        """
        if not self.identity.destination_ids or any(
            spec.base_type != "integer" for spec in self.identity.destination_ids
        ):
            raise UnsupportedIdTypeError(
                "Cannot determine the highest migrated ID without an integer ID column",
                migration_id=self.identity.id,
                operation="get_highest_id",
            )

        if siblings is None:
            siblings = self.catalog.family(self.identity) if self.catalog else []

        map_tables = {self.identity.id: self.qualified_map_table_name}
        for sibling in siblings:
            map_tables[sibling.id] = (
                f"{self.table_prefix}{self._table_name(MAP_TABLE_PREFIX, sibling)}"
            )

        destination_columns = list(self._destination_id_fields.values())
        ids = [0]
        try:
            with self.engine.connect() as conn:
                inspector = inspect(conn)
                for map_table_name in map_tables.values():
                    if not inspector.has_table(map_table_name):
                        continue
                    map_table = table(
                        map_table_name, *(column(name) for name in destination_columns)
                    )
                    query = (
                        select(map_table.c[destination_columns[0]])
                        .where(*(map_table.c[name].isnot(None) for name in destination_columns))
                        .order_by(*(map_table.c[name].desc() for name in destination_columns))
                        .limit(1)
                    )
                    value = conn.execute(query).scalar()
                    if value is not None:
                        ids.append(int(value))
        except SQLAlchemyError as e:
            logger.error(
                "Failed to determine highest id", migration_id=self.identity.id, error=str(e)
            )
            raise StateError(
                f"Failed to determine highest id: {e}",
                migration_id=self.identity.id,
                operation="get_highest_id",
            ) from e

        return max(ids)

    def fetch_ordered_rows(self) -> list[dict[str, Any]]:
        """
        Fetch the source and destination columns of every row.

        Rows are ordered by the first destination column (by source key
        hash when the destination declares no id fields).
        """
        columns = [self.map_table.c[name] for name in self._source_id_fields.values()]
        columns += [self.map_table.c[name] for name in self._destination_id_fields.values()]
        order = (
            self.map_table.c.destid1
            if self._destination_id_fields
            else self.map_table.c[SOURCE_IDS_HASH]
        )
        with self._transaction("iterate") as conn:
            records = conn.execute(select(*columns).order_by(order)).mappings()
            return [dict(record) for record in records]

    def cursor(self) -> IdMapCursor:
        """Get a new cursor over the map rows."""
        return IdMapCursor(self)

    def __iter__(self) -> Iterator[tuple[dict[str, Any], dict[str, Any]]]:
        """Iterate ``(source values, destination values)`` pairs with a fresh cursor."""
        return iter(self.cursor())
