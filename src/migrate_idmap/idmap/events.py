"""
Listener interface for id map events.

``SqlIdMap`` notifies listeners synchronously when it is about to save a
map row, after it saved a message, and before it deletes a map row, so
audit trails can be built without the map knowing how they are stored.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from migrate_idmap.idmap.models import MessageLevel, MigrationIdentity
from migrate_idmap.utils.logging import get_logger

if TYPE_CHECKING:
    from migrate_idmap.idmap.store import SqlIdMap

logger = get_logger(__name__)


@dataclass(frozen=True)
class MapSaveEvent:
    """A map row is about to be written; ``fields`` are the column values."""

    id_map: "SqlIdMap"
    fields: Mapping[str, Any]


@dataclass(frozen=True)
class IdMapMessageEvent:
    """A message was saved against a source row."""

    identity: MigrationIdentity
    source_id_values: Mapping[str, Any]
    message: str
    level: MessageLevel


@dataclass(frozen=True)
class MapDeleteEvent:
    """A map row is about to be deleted."""

    id_map: "SqlIdMap"
    source_id_values: Mapping[str, Any]


class IdMapListener:
    """
    Base class for id map listeners.

    Every hook is a no-op; subclasses override the ones they need.
    """

    def on_row_saved(self, event: MapSaveEvent) -> None:
        pass

    def on_message_saved(self, event: IdMapMessageEvent) -> None:
        pass

    def on_before_delete(self, event: MapDeleteEvent) -> None:
        pass


class EventDispatcher:
    """Delivers id map events to registered listeners in registration order."""

    def __init__(self, listeners: Iterable[IdMapListener] | None = None):
        self._listeners: list[IdMapListener] = list(listeners or [])

    def add_listener(self, listener: IdMapListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: IdMapListener) -> None:
        self._listeners.remove(listener)

    @property
    def listeners(self) -> list[IdMapListener]:
        return list(self._listeners)

    def row_saved(self, event: MapSaveEvent) -> None:
        for listener in self._listeners:
            listener.on_row_saved(event)

    def message_saved(self, event: IdMapMessageEvent) -> None:
        for listener in self._listeners:
            listener.on_message_saved(event)

    def before_delete(self, event: MapDeleteEvent) -> None:
        for listener in self._listeners:
            listener.on_before_delete(event)


class AuditLogListener(IdMapListener):
    """Writes every map save, message and delete to the structured log."""

    def on_row_saved(self, event: MapSaveEvent) -> None:
        logger.debug(
            "Map row saved",
            migration_id=event.id_map.identity.id,
            fields=dict(event.fields),
        )

    def on_message_saved(self, event: IdMapMessageEvent) -> None:
        logger.info(
            "Id map message saved",
            migration_id=event.identity.id,
            source_ids=dict(event.source_id_values),
            level=event.level.name,
            message=event.message,
        )

    def on_before_delete(self, event: MapDeleteEvent) -> None:
        logger.info(
            "Map row deleting",
            migration_id=event.id_map.identity.id,
            source_ids=dict(event.source_id_values),
        )
