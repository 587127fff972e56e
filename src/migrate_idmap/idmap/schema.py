"""
Creation and additive evolution of the map and message tables.

Every migration owns two tables whose layout is derived from the
identifier fields its source and destination declare:

* the map table, keyed by the hash of the source id tuple, with one
  ``sourceidN`` column per source field and one ``destidN`` column per
  destination field plus status bookkeeping;
* the message table, holding diagnostics keyed by the same hash.
"""

from collections.abc import Callable

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Engine,
    Float,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    Numeric,
    SmallInteger,
    String,
    Table,
    Text,
    inspect,
    text,
)
from sqlalchemy.engine import Inspector
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.types import TypeEngine

from migrate_idmap.exceptions import SchemaError
from migrate_idmap.idmap.hashing import HASH_LENGTH
from migrate_idmap.idmap.models import (
    FieldSpec,
    MigrationIdentity,
    RollbackAction,
    SourceRowStatus,
)
from migrate_idmap.utils.logging import get_logger

logger = get_logger(__name__)

SOURCE_IDS_HASH = "source_ids_hash"
MAP_TABLE_PREFIX = "migrate_map_"
MESSAGE_TABLE_PREFIX = "migrate_message_"
DEFAULT_IDENTIFIER_MAX_LENGTH = 63


def _integer_type(settings) -> TypeEngine:
    size = settings.get("size", "normal")
    if size == "big":
        return BigInteger()
    if size in ("tiny", "small"):
        return SmallInteger()
    return Integer()


def _string_type(settings) -> TypeEngine:
    return String(int(settings.get("max_length", 255)))


def _entity_reference_type(settings) -> TypeEngine:
    if settings.get("target_type_is_string"):
        return String(int(settings.get("max_length", 255)))
    return Integer()


FIELD_TYPES: dict[str, Callable[..., TypeEngine]] = {
    "integer": _integer_type,
    "string": _string_type,
    "string_long": lambda settings: Text(),
    "text": lambda settings: Text(),
    "float": lambda settings: Float(),
    "decimal": lambda settings: Numeric(
        int(settings.get("precision", 10)), int(settings.get("scale", 2))
    ),
    "boolean": lambda settings: Boolean(),
    "timestamp": lambda settings: Integer(),
    "created": lambda settings: Integer(),
    "changed": lambda settings: Integer(),
    "uuid": lambda settings: String(128),
    "email": lambda settings: String(254),
    "uri": lambda settings: String(int(settings.get("max_length", 2048))),
    "language": lambda settings: String(12),
    "datetime": lambda settings: String(20),
    "binary": lambda settings: LargeBinary(),
    "entity_reference": _entity_reference_type,
}


def column_type(spec: FieldSpec) -> TypeEngine:
    """Resolve the native column type for an identifier field.

    Raises:
        SchemaError: If the semantic type is unknown
    """
    factory = FIELD_TYPES.get(spec.base_type)
    if factory is None:
        raise SchemaError(
            f"Unsupported id field type '{spec.type}' for field '{spec.name}'",
            operation="ensure_tables",
        )
    return factory(spec.settings)


def truncate_identifier(name: str, max_bytes: int) -> str:
    """Truncate a name to a byte length without splitting a character."""
    encoded = name.encode("utf-8")
    if len(encoded) <= max_bytes:
        return name
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def generate_table_name(
    prefix: str,
    migration_id: str,
    table_prefix: str = "",
    max_length: int = DEFAULT_IDENTIFIER_MAX_LENGTH,
) -> str:
    """Generate the (unprefixed) map or message table name for a migration.

    Args:
        prefix: ``migrate_map_`` or ``migrate_message_``
        migration_id: Migration id; ``:`` separators become ``__``
        table_prefix: Connection-wide table prefix; its length is reserved
        max_length: Storage engine identifier length limit in bytes
    """
    machine_name = migration_id.replace(":", "__").lower()
    available = max_length - len(table_prefix.encode("utf-8"))
    return truncate_identifier(f"{prefix}{machine_name}", available)


class SchemaManager:
    """
    Ensures the map and message tables of one migration exist.

    A missing map table is created together with the message table. An
    existing map table is only ever widened: columns introduced by later
    layouts are added with defaults that keep existing rows valid, nothing
    is dropped or narrowed and no data is touched.

    Usage:
        manager = SchemaManager(engine, identity, "migrate_map_x", "migrate_message_x")
        manager.ensure_tables()
        rows = conn.execute(select(manager.map_table))
    """

    def __init__(
        self,
        engine: Engine,
        identity: MigrationIdentity,
        map_table_name: str,
        message_table_name: str,
        identifier_max_length: int = DEFAULT_IDENTIFIER_MAX_LENGTH,
    ):
        """
        Initialize schema manager.

        Args:
            engine: Engine of the database holding the tables
            identity: Migration whose tables are managed
            map_table_name: Physical map table name
            message_table_name: Physical message table name
            identifier_max_length: Identifier length limit of the database, in bytes

        Raises:
            SchemaError: If an identifier field has an unsupported type
        """
        self.engine = engine
        self.identity = identity
        self.identifier_max_length = identifier_max_length
        # False when an evolved map table has no unique key on source_ids_hash
        self.hash_is_unique = True
        self.metadata = MetaData()
        self.map_table = self._build_map_table(map_table_name)
        self.message_table = self._build_message_table(message_table_name)

    def _build_map_table(self, name: str) -> Table:
        source_columns = list(self.identity.source_columns().values())
        columns = [
            Column(
                SOURCE_IDS_HASH,
                String(HASH_LENGTH),
                primary_key=True,
                comment="Hash of source ids. Used as primary key",
            )
        ]
        for spec, column_name in zip(self.identity.source_ids, source_columns):
            columns.append(Column(column_name, column_type(spec), nullable=False))

        # Destination ids stay NULL for IGNORED and FAILED rows
        for spec, column_name in zip(
            self.identity.destination_ids, self.identity.destination_columns().values()
        ):
            columns.append(Column(column_name, column_type(spec), nullable=True))

        columns.extend(
            [
                Column(
                    "source_row_status",
                    SmallInteger,
                    nullable=False,
                    default=int(SourceRowStatus.IMPORTED),
                    server_default=text(str(int(SourceRowStatus.IMPORTED))),
                    comment="Indicates current status of the source row",
                ),
                self._rollback_action_column(),
                Column(
                    "last_imported",
                    Integer,
                    nullable=False,
                    default=0,
                    server_default=text("0"),
                    comment="UNIX timestamp of the last time this row was imported",
                ),
                self._hash_column(),
            ]
        )

        table = Table(name, self.metadata, *columns)
        Index(
            truncate_identifier(f"{name}_source", self.identifier_max_length),
            *(table.c[column_name] for column_name in source_columns),
        )
        return table

    def _build_message_table(self, name: str) -> Table:
        return Table(
            name,
            self.metadata,
            Column("msgid", Integer, primary_key=True, autoincrement=True),
            Column(SOURCE_IDS_HASH, String(HASH_LENGTH), nullable=False),
            Column("level", Integer, nullable=False, default=1, server_default=text("1")),
            Column("message", Text, nullable=False),
        )

    @staticmethod
    def _rollback_action_column() -> Column:
        return Column(
            "rollback_action",
            SmallInteger,
            nullable=False,
            default=int(RollbackAction.DELETE),
            server_default=text(str(int(RollbackAction.DELETE))),
            comment="Flag indicating what to do for this item on rollback",
        )

    @staticmethod
    def _hash_column() -> Column:
        return Column(
            "hash",
            String(HASH_LENGTH),
            nullable=True,
            comment="Hash of source row data, for detecting changes",
        )

    @staticmethod
    def _source_ids_hash_column() -> Column:
        # Rows predating the column get an empty hash until they are saved again
        return Column(
            SOURCE_IDS_HASH,
            String(HASH_LENGTH),
            nullable=False,
            server_default=text("''"),
            comment="Hash of source ids. Used as primary key",
        )

    def _evolvable_columns(self) -> dict[str, Callable[[], Column]]:
        """Columns later map table layouts added, with fresh Column factories."""
        return {
            "rollback_action": self._rollback_action_column,
            "hash": self._hash_column,
            SOURCE_IDS_HASH: self._source_ids_hash_column,
        }

    @staticmethod
    def _hash_is_unique(inspector: Inspector, table_name: str) -> bool:
        """Check whether source_ids_hash alone is a primary or unique key."""
        primary_key = inspector.get_pk_constraint(table_name).get("constrained_columns") or []
        if primary_key == [SOURCE_IDS_HASH]:
            return True

        keys = [
            constraint["column_names"]
            for constraint in inspector.get_unique_constraints(table_name)
        ]
        keys += [
            index["column_names"]
            for index in inspector.get_indexes(table_name)
            if index.get("unique")
        ]
        return [SOURCE_IDS_HASH] in keys

    def table_exists(self, table_name: str) -> bool:
        """Check whether a table exists without creating anything."""
        with self.engine.connect() as conn:
            return inspect(conn).has_table(table_name)

    def ensure_tables(self) -> None:
        """
        Create the map and message tables, or add missing map table columns.

        Idempotent; safe to call on every run.

        Raises:
            SchemaError: If the tables cannot be created or altered
        """
        map_name = self.map_table.name
        message_name = self.message_table.name

        try:
            with self.engine.begin() as conn:
                inspector = inspect(conn)

                if not inspector.has_table(map_name):
                    self.map_table.create(conn)
                    self.hash_is_unique = True
                    if not inspector.has_table(message_name):
                        self.message_table.create(conn)
                    logger.info(
                        "Id map tables created",
                        migration_id=self.identity.id,
                        map_table=map_name,
                        message_table=message_name,
                    )
                    return

                existing = {column["name"] for column in inspector.get_columns(map_name)}
                missing = [
                    factory
                    for column_name, factory in self._evolvable_columns().items()
                    if column_name not in existing
                ]
                if missing:
                    operations = Operations(MigrationContext.configure(conn))
                    for factory in missing:
                        column = factory()
                        operations.add_column(map_name, column)
                        logger.info(
                            "Map table column added",
                            migration_id=self.identity.id,
                            map_table=map_name,
                            column=column.name,
                        )

                self.hash_is_unique = self._hash_is_unique(inspect(conn), map_name)
                if not self.hash_is_unique:
                    logger.warning(
                        "Map table has no unique key on source_ids_hash",
                        migration_id=self.identity.id,
                        map_table=map_name,
                    )

                if not inspector.has_table(message_name):
                    self.message_table.create(conn)
                    logger.info(
                        "Message table created",
                        migration_id=self.identity.id,
                        message_table=message_name,
                    )

        except SQLAlchemyError as e:
            logger.error(
                "Failed to ensure id map tables",
                migration_id=self.identity.id,
                map_table=map_name,
                error=str(e),
            )
            raise SchemaError(
                f"Failed to ensure id map tables: {e}",
                migration_id=self.identity.id,
                operation="ensure_tables",
            ) from e

    def drop_tables(self) -> None:
        """
        Drop the map and message tables.

        Raises:
            SchemaError: If a table cannot be dropped
        """
        try:
            with self.engine.begin() as conn:
                self.map_table.drop(conn, checkfirst=True)
                self.message_table.drop(conn, checkfirst=True)
        except SQLAlchemyError as e:
            logger.error("Failed to drop id map tables", migration_id=self.identity.id, error=str(e))
            raise SchemaError(
                f"Failed to drop id map tables: {e}",
                migration_id=self.identity.id,
                operation="destroy",
            ) from e

        logger.warning(
            "Id map tables dropped",
            migration_id=self.identity.id,
            map_table=self.map_table.name,
            message_table=self.message_table.name,
        )
