"""
Value types describing a migration and the rows of its id map.

The map and message tables are laid out per migration at runtime, so rows
are exposed as plain dataclasses built from SQLAlchemy result mappings
rather than as declarative ORM classes.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

DERIVATIVE_SEPARATOR = ":"


class SourceRowStatus(IntEnum):
    """Status of a source row as recorded in the map table."""

    IMPORTED = 0
    NEEDS_UPDATE = 1
    IGNORED = 2
    FAILED = 3


class RollbackAction(IntEnum):
    """What a rollback does with the destination record of a map row."""

    DELETE = 0
    PRESERVE = 1


class MessageLevel(IntEnum):
    """Severity of a message saved against a source row."""

    ERROR = 1
    WARNING = 2
    NOTICE = 3
    STATUS = 4


@dataclass(frozen=True)
class FieldSpec:
    """
    Declaration of one source or destination identifier field.

    Attributes:
        name: Field name as used by the source or destination
        type: Semantic type, optionally with a property (``integer``,
            ``string``, ``entity_reference.target_id``)
        settings: Type specific settings such as ``max_length`` or ``size``
    """

    name: str
    type: str
    settings: Mapping[str, Any] = field(default_factory=dict)

    @property
    def base_type(self) -> str:
        return self.type.split(".", 1)[0]


@dataclass(frozen=True)
class MigrationIdentity:
    """
    Immutable descriptor of a single migration.

    Attributes:
        id: Unique migration id; derivative migrations use ``base:derivative``
        source_ids: Ordered source identifier fields
        destination_ids: Ordered destination identifier fields
        track_last_imported: Whether saves record the import timestamp
        label: Optional human-readable name
    """

    id: str
    source_ids: tuple[FieldSpec, ...]
    destination_ids: tuple[FieldSpec, ...]
    track_last_imported: bool = False
    label: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Migration id cannot be empty")
        if not self.source_ids:
            raise ValueError(f"Migration {self.id} declares no source id fields")
        # Accept lists from callers but store tuples
        object.__setattr__(self, "source_ids", tuple(self.source_ids))
        object.__setattr__(self, "destination_ids", tuple(self.destination_ids))

    @property
    def base_id(self) -> str:
        """Id of the base definition shared by a family of derivative migrations."""
        return self.id.split(DERIVATIVE_SEPARATOR, 1)[0]

    @property
    def is_derivative(self) -> bool:
        return DERIVATIVE_SEPARATOR in self.id

    @property
    def source_field_names(self) -> list[str]:
        return [spec.name for spec in self.source_ids]

    @property
    def destination_field_names(self) -> list[str]:
        return [spec.name for spec in self.destination_ids]

    def source_columns(self) -> dict[str, str]:
        """Map source field names to map table columns (``sourceid1``...)."""
        return {spec.name: f"sourceid{delta}" for delta, spec in enumerate(self.source_ids, 1)}

    def destination_columns(self) -> dict[str, str]:
        """Map destination field names to map table columns (``destid1``...)."""
        return {
            spec.name: f"destid{delta}" for delta, spec in enumerate(self.destination_ids, 1)
        }


@dataclass
class MapRow:
    """One row of a migration's map table."""

    source_ids_hash: str
    source_id_values: dict[str, Any]
    destination_id_values: dict[str, Any]
    source_row_status: SourceRowStatus
    rollback_action: RollbackAction
    last_imported: int = 0
    hash: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], identity: MigrationIdentity) -> "MapRow":
        """Build a row from a map table result mapping."""
        return cls(
            source_ids_hash=record["source_ids_hash"],
            source_id_values={
                name: record[column] for name, column in identity.source_columns().items()
            },
            destination_id_values={
                name: record[column] for name, column in identity.destination_columns().items()
            },
            source_row_status=SourceRowStatus(record["source_row_status"]),
            rollback_action=RollbackAction(record["rollback_action"]),
            last_imported=record.get("last_imported") or 0,
            hash=record.get("hash"),
        )

    @property
    def destination_ids(self) -> list[Any]:
        """Destination values in declared order."""
        return list(self.destination_id_values.values())

    @property
    def source_ids(self) -> list[Any]:
        """Source values in declared order."""
        return list(self.source_id_values.values())


@dataclass
class MessageRow:
    """One message saved against a source row."""

    msgid: int
    source_ids_hash: str
    level: MessageLevel
    message: str

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "MessageRow":
        return cls(
            msgid=record["msgid"],
            source_ids_hash=record["source_ids_hash"],
            level=MessageLevel(record["level"]),
            message=record["message"],
        )
