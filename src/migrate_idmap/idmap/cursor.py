"""Cursor over the rows of an id map."""

import json
from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING, Any

from migrate_idmap.exceptions import MigrateError

if TYPE_CHECKING:
    from migrate_idmap.idmap.store import SqlIdMap


class CursorState(str, Enum):
    NOT_STARTED = "not_started"
    POSITIONED = "positioned"
    EXHAUSTED = "exhausted"


class IdMapCursor:
    """
    Rewindable cursor over map rows ordered by the first destination id.

    ``rewind()`` runs a new query and positions the cursor on the first row;
    ``next()`` advances it. Once past the last row the cursor stays
    exhausted until it is rewound again.

    Usage:
        cursor = id_map.cursor()
        cursor.rewind()
        while cursor.valid():
            print(cursor.current_source(), cursor.current_destination())
            cursor.next()
    """

    def __init__(self, id_map: "SqlIdMap"):
        self.id_map = id_map
        self.state = CursorState.NOT_STARTED
        self._source_columns = id_map.identity.source_columns()
        self._destination_columns = id_map.identity.destination_columns()
        self._rows: Iterator[dict[str, Any]] = iter(())
        self._current_row: dict[str, Any] = {}
        self._current_key: dict[str, Any] = {}

    def rewind(self) -> None:
        self._rows = iter(self.id_map.fetch_ordered_rows())
        self._advance()

    def next(self) -> None:
        """
        Move to the next row.

        Raises:
            MigrateError: If the cursor was never rewound
        """
        if self.state is CursorState.NOT_STARTED:
            raise MigrateError(
                "Cursor must be rewound before it can advance",
                migration_id=self.id_map.identity.id,
                operation="next",
            )
        if self.state is CursorState.POSITIONED:
            self._advance()

    def _advance(self) -> None:
        record = next(self._rows, None)
        if record is None:
            self._current_row = {}
            self._current_key = {}
            self.state = CursorState.EXHAUSTED
            return

        row = dict(record)
        self._current_key = {column: row.pop(column) for column in self._source_columns.values()}
        self._current_row = row
        self.state = CursorState.POSITIONED

    def valid(self) -> bool:
        return self.state is CursorState.POSITIONED

    def current(self) -> dict[str, Any] | None:
        """Destination columns (``destid1``...) of the current row."""
        return dict(self._current_row) if self.valid() else None

    def key(self) -> str | None:
        """Serialized source columns of the current row."""
        if not self.valid():
            return None
        return json.dumps(self._current_key, default=str)

    def current_source(self) -> dict[str, Any]:
        """Source values of the current row keyed by source field name."""
        if not self.valid():
            return {}
        return {
            field_name: self._current_key[column]
            for field_name, column in self._source_columns.items()
        }

    def current_destination(self) -> dict[str, Any]:
        """Destination values of the current row keyed by field name; NULLs are omitted."""
        if not self.valid():
            return {}
        return {
            field_name: self._current_row[column]
            for field_name, column in self._destination_columns.items()
            if self._current_row.get(column) is not None
        }

    def __iter__(self) -> Iterator[tuple[dict[str, Any], dict[str, Any]]]:
        self.rewind()
        while self.valid():
            yield self.current_source(), self.current_destination()
            self.next()
