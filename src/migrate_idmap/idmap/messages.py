"""Message sinks receiving diagnostics the id map emits instead of writing."""

from typing import Protocol, runtime_checkable

from migrate_idmap.utils.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class MessageSink(Protocol):
    """Receives human-readable diagnostics, e.g. a refused map save."""

    def display(self, message: str, level: str = "status") -> None: ...


class LogMessageSink:
    """Default sink forwarding diagnostics to the structured log.

    Levels are ``error``, ``warning``, ``status`` (logged as info) and
    anything else, which is logged at debug.
    """

    def __init__(self, migration_id: str | None = None):
        self.migration_id = migration_id

    def display(self, message: str, level: str = "status") -> None:
        log = logger.bind(migration_id=self.migration_id) if self.migration_id else logger
        if level == "error":
            log.error(message)
        elif level == "warning":
            log.warning(message)
        elif level == "status":
            log.info(message)
        else:
            log.debug(message, level=level)
