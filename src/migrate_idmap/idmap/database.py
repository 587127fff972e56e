"""
Database engine creation and connection checks.

The id map never looks up a connection from ambient state: callers create
an engine here (or bring their own) and hand it to ``SqlIdMap``.
"""

from sqlalchemy import Engine, create_engine, event, pool, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from migrate_idmap.exceptions import ConfigurationError
from migrate_idmap.utils.logging import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """
    Enable foreign key constraints for SQLite connections.

    SQLite has foreign keys disabled by default. This event handler
    enables them for each new connection.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_database_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 3600,
) -> Engine:
    """
    Create a SQLAlchemy engine with appropriate settings.

    Args:
        database_url: Database connection URL (sqlite:///, postgresql://, mysql://)
        echo: Whether to log SQL statements (useful for debugging)
        pool_size: Number of connections to maintain in the pool
        max_overflow: Maximum number of connections that can be created beyond pool_size
        pool_timeout: Timeout for getting a connection from the pool (seconds)
        pool_recycle: Recycle connections after this many seconds (prevents stale connections)

    Returns:
        SQLAlchemy Engine instance

    Raises:
        ConfigurationError: If database URL is invalid
    """
    if not database_url:
        raise ConfigurationError("Database URL cannot be empty")

    try:
        url = make_url(database_url)
        backend = url.get_backend_name()

        if backend == "sqlite":
            in_memory = url.database in (None, "", ":memory:")
            engine = create_engine(
                url,
                echo=echo,
                # An in-memory database only lives as long as its one connection
                poolclass=pool.StaticPool if in_memory else pool.NullPool,
                connect_args={"check_same_thread": False},
            )
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)

        else:
            engine = create_engine(
                url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=pool_recycle,
            )

        logger.info(
            "Database engine created",
            database_type=backend,
            pool_size=pool_size if backend != "sqlite" else engine.pool.__class__.__name__,
        )

        return engine

    except (ArgumentError, SQLAlchemyError, ImportError) as e:
        logger.error("Failed to create database engine", error=str(e))
        raise ConfigurationError(f"Failed to create database engine: {e}") from e


def validate_database_connection(database_url: str) -> bool:
    """
    Validate that a database connection can be established.

    Args:
        database_url: Database connection URL

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = create_database_engine(database_url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        engine.dispose()
        logger.info("Database connection validated successfully")
        return True

    except (ConfigurationError, SQLAlchemyError) as e:
        logger.error("Database connection validation failed", error=str(e))
        return False
