"""Configuration management for migrate-idmap using Pydantic.

This module provides type-safe configuration models for the database that
holds the id maps, table naming, logging and the migrations whose maps
are managed.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import Engine

from migrate_idmap.idmap.catalog import MigrationCatalog
from migrate_idmap.idmap.database import create_database_engine
from migrate_idmap.idmap.models import FieldSpec, MigrationIdentity
from migrate_idmap.idmap.schema import DEFAULT_IDENTIFIER_MAX_LENGTH


class DatabaseConfig(BaseModel):
    """Configuration of the database holding map and message tables."""

    url: str = Field(
        default="sqlite:///./migrate_idmap.db", description="SQLAlchemy database URL"
    )
    echo: bool = Field(default=False, description="Log every SQL statement")
    pool_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of connections to maintain in the pool (server databases only)",
    )
    max_overflow: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum number of connections to create beyond pool_size",
    )
    pool_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Timeout in seconds for getting a connection from the pool",
    )
    pool_recycle: int = Field(
        default=3600,
        ge=60,
        le=28800,
        description="Recycle connections after this many seconds",
    )
    table_prefix: str = Field(
        default="", description="Prefix prepended to every map and message table name"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is not empty."""
        if not v or v.strip() == "":
            raise ValueError("Database URL cannot be empty")
        return v.strip()


class IdMapConfig(BaseModel):
    """Id map table settings."""

    identifier_max_length: int = Field(
        default=DEFAULT_IDENTIFIER_MAX_LENGTH,
        ge=16,
        le=255,
        description="Identifier length limit of the database in bytes (63 for PostgreSQL)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="WARNING",
        description="Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    file_level: str = Field(
        default="DEBUG",
        description="File log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    format: str = Field(default="json", description="Log file format (json or console)")
    file: str | None = Field(default=None, description="Log file path")

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "console"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Log format must be one of: {', '.join(valid_formats)}")
        return v_lower


class IdFieldConfig(BaseModel):
    """Declaration of one identifier field.

    Besides ``type`` any type specific setting (``max_length``, ``size``,
    ``precision``...) may be given and is passed through to the schema.
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., description="Semantic field type, e.g. integer or string")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate type is not empty."""
        if not v or v.strip() == "":
            raise ValueError("Field type cannot be empty")
        return v.strip()

    @property
    def settings(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class MigrationDefinition(BaseModel):
    """A migration whose id map is managed."""

    id: str = Field(..., description="Migration id; derivatives use base:derivative")
    label: str | None = Field(default=None, description="Human readable name")
    source_ids: dict[str, IdFieldConfig] = Field(
        ..., description="Source identifier fields in key order"
    )
    destination_ids: dict[str, IdFieldConfig] = Field(
        default_factory=dict, description="Destination identifier fields in key order"
    )
    track_last_imported: bool = Field(
        default=False, description="Record the timestamp of every import"
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate migration id is not empty."""
        if not v or v.strip() == "":
            raise ValueError("Migration id cannot be empty")
        return v.strip()

    @field_validator("source_ids")
    @classmethod
    def validate_source_ids(cls, v: dict[str, IdFieldConfig]) -> dict[str, IdFieldConfig]:
        """Validate at least one source id field is declared."""
        if not v:
            raise ValueError("At least one source id field must be declared")
        return v

    def to_identity(self) -> MigrationIdentity:
        """Convert to the immutable descriptor the id map works with."""
        return MigrationIdentity(
            id=self.id,
            source_ids=tuple(
                FieldSpec(name, field.type, field.settings) for name, field in self.source_ids.items()
            ),
            destination_ids=tuple(
                FieldSpec(name, field.type, field.settings)
                for name, field in self.destination_ids.items()
            ),
            track_last_imported=self.track_last_imported,
            label=self.label,
        )


class Settings(BaseSettings):
    """Main migrate-idmap configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MIGRATE_IDMAP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )

    # Id map tables
    idmap: IdMapConfig = Field(default_factory=IdMapConfig, description="Id map configuration")

    # Logging
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    # Migrations
    migrations: list[MigrationDefinition] = Field(
        default_factory=list, description="Migrations whose id maps are managed"
    )

    @model_validator(mode="after")
    def validate_unique_migration_ids(self) -> "Settings":
        """Ensure no migration id is declared twice."""
        seen: set[str] = set()
        for migration in self.migrations:
            if migration.id in seen:
                raise ValueError(f"Migration '{migration.id}' is declared more than once")
            seen.add(migration.id)
        return self

    def build_catalog(self) -> MigrationCatalog:
        """Build a catalog of every configured migration."""
        return MigrationCatalog(migration.to_identity() for migration in self.migrations)

    def build_engine(self) -> Engine:
        """Create the engine of the configured database."""
        return create_database_engine(
            self.database.url,
            echo=self.database.echo,
            pool_size=self.database.pool_size,
            max_overflow=self.database.max_overflow,
            pool_timeout=self.database.pool_timeout,
            pool_recycle=self.database.pool_recycle,
        )


def load_config_from_yaml(config_path: str | Path) -> Settings:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Settings: Loaded configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        raise ValueError(f"Empty configuration file: {config_path}")

    # Expand environment variables in the config
    config_data = _expand_env_vars(config_data)

    return Settings(**config_data)


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in config data.

    Supports ${VAR_NAME} syntax for environment variable substitution.

    Args:
        data: Configuration data

    Returns:
        Data with expanded environment variables
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Replace ${VAR_NAME} with environment variable value
        if data.startswith("${") and data.endswith("}"):
            var_name = data[2:-1]
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(
                    f"Environment variable '{var_name}' not found. "
                    f"Please set it in your environment or .env file."
                )
            return env_value
        return data
    else:
        return data
