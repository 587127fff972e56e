"""
CLI context manager for migrate-idmap.

This module provides the context object that is passed to all CLI commands,
containing configuration, the database engine and the migration catalog.
"""

from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import Engine

from migrate_idmap.config import Settings, load_config_from_yaml
from migrate_idmap.idmap.catalog import MigrationCatalog
from migrate_idmap.idmap.events import AuditLogListener
from migrate_idmap.idmap.store import SqlIdMap
from migrate_idmap.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class IdMapContext:
    """
    Context object for CLI commands.

    This object holds configuration, the engine and the catalog shared
    across CLI commands. It is passed via Click's context mechanism.

    Attributes:
        config_path: Path to configuration file
        log_level: Console logging level
        log_file: Optional log file path
    """

    config_path: Path | None = None
    log_level: str = "WARNING"
    log_file: Path | None = None

    # Lazy-loaded attributes
    _config: Settings | None = field(default=None, init=False, repr=False)
    _engine: Engine | None = field(default=None, init=False, repr=False)
    _catalog: MigrationCatalog | None = field(default=None, init=False, repr=False)
    _id_maps: dict[str, SqlIdMap] = field(default_factory=dict, init=False, repr=False)

    @property
    def config(self) -> Settings:
        """Get or load configuration."""
        if self._config is None:
            if self.config_path is None:
                raise ValueError(
                    "Configuration file path not provided. "
                    "Use --config option or set MIGRATE_IDMAP_CONFIG environment variable."
                )

            logger.debug("Loading configuration", config_path=str(self.config_path))
            self._config = load_config_from_yaml(self.config_path)

            # The log file option wins over the configured one
            log_file = str(self.log_file) if self.log_file else self._config.logging.file
            if log_file:
                configure_logging(
                    level=self.log_level,
                    log_format=self._config.logging.format,
                    log_file=log_file,
                    file_level=self._config.logging.file_level,
                )
            logger.debug("Configuration loaded successfully")

        return self._config

    @property
    def engine(self) -> Engine:
        """Get or create the engine of the configured database."""
        if self._engine is None:
            logger.debug("Creating database engine")
            self._engine = self.config.build_engine()

        return self._engine

    @property
    def catalog(self) -> MigrationCatalog:
        """Get or build the catalog of configured migrations."""
        if self._catalog is None:
            self._catalog = self.config.build_catalog()
            logger.debug("Migration catalog built", migrations=len(self._catalog))

        return self._catalog

    def id_map(self, migration_id: str) -> SqlIdMap:
        """
        Get the id map of a configured migration.

        Raises:
            ConfigurationError: If the migration is not configured
        """
        if migration_id not in self._id_maps:
            self._id_maps[migration_id] = SqlIdMap(
                self.catalog.get(migration_id),
                self.engine,
                catalog=self.catalog,
                listeners=[AuditLogListener()],
                table_prefix=self.config.database.table_prefix,
                identifier_max_length=self.config.idmap.identifier_max_length,
            )

        return self._id_maps[migration_id]

    def cleanup(self) -> None:
        """Clean up resources."""
        if self._engine is not None:
            logger.debug("Disposing database engine")
            self._engine.dispose()
            self._engine = None
        self._id_maps.clear()

    def __enter__(self) -> "IdMapContext":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.cleanup()
