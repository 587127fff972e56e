"""Custom exceptions for migrate-idmap.

This module defines exception classes for the error conditions that can
occur while maintaining a migration's id map: caller-contract violations,
storage failures and configuration problems.
"""


class IdMapError(Exception):
    """Base exception for all migrate-idmap errors."""

    def __init__(
        self,
        message: str,
        migration_id: str | None = None,
        operation: str | None = None,
    ):
        """Initialize id map error.

        Args:
            message: Error message
            migration_id: Id of the migration whose map raised the error
            operation: Map operation that was being performed
        """
        self.message = message
        self.migration_id = migration_id
        self.operation = operation
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with migration id and operation."""
        context = ":".join(part for part in (self.migration_id, self.operation) if part)
        if context:
            return f"[{context}] {self.message}"
        return self.message


class MigrateError(IdMapError):
    """Raised when the calling migration engine breaks the map's contract.

    Examples are deleting without a source key or passing identifier
    components the migration does not declare.
    """

    pass


class IncompleteKeyError(MigrateError):
    """Raised when a source key hash is requested for a partial key."""

    pass


class UnsupportedIdTypeError(MigrateError):
    """Raised when the highest id is requested for a non-integer destination id."""

    pass


class StateError(IdMapError):
    """Raised when reading or writing the map or message table fails."""

    pass


class SchemaError(StateError):
    """Raised when the map or message table cannot be created or evolved."""

    pass


class ConfigurationError(IdMapError):
    """Raised when configuration is invalid or missing."""

    pass
