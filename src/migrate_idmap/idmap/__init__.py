"""
Id map module for migrate-idmap.

This module provides the SQL-backed map between source and destination
identifiers of a migration, its table management, iteration and the
listener hooks around it.
"""

# Models
from migrate_idmap.idmap.catalog import MigrationCatalog
from migrate_idmap.idmap.cursor import CursorState, IdMapCursor

# Database utilities
from migrate_idmap.idmap.database import create_database_engine, validate_database_connection

# Events and messages
from migrate_idmap.idmap.events import (
    AuditLogListener,
    EventDispatcher,
    IdMapListener,
    IdMapMessageEvent,
    MapDeleteEvent,
    MapSaveEvent,
)
from migrate_idmap.idmap.filter import IdMapFilter, find_missing_source_rows
from migrate_idmap.idmap.hashing import source_ids_hash
from migrate_idmap.idmap.messages import LogMessageSink, MessageSink
from migrate_idmap.idmap.models import (
    FieldSpec,
    MapRow,
    MessageLevel,
    MessageRow,
    MigrationIdentity,
    RollbackAction,
    SourceRowStatus,
)
from migrate_idmap.idmap.schema import SchemaManager, generate_table_name

# Map store
from migrate_idmap.idmap.store import SqlIdMap

__all__ = [
    # Models
    "FieldSpec",
    "MigrationIdentity",
    "SourceRowStatus",
    "RollbackAction",
    "MessageLevel",
    "MapRow",
    "MessageRow",
    "MigrationCatalog",
    # Database utilities
    "create_database_engine",
    "validate_database_connection",
    "SchemaManager",
    "generate_table_name",
    "source_ids_hash",
    # Events and messages
    "IdMapListener",
    "EventDispatcher",
    "AuditLogListener",
    "MapSaveEvent",
    "IdMapMessageEvent",
    "MapDeleteEvent",
    "MessageSink",
    "LogMessageSink",
    # Map store
    "SqlIdMap",
    "IdMapCursor",
    "CursorState",
    "IdMapFilter",
    "find_missing_source_rows",
]
