"""Shared fixtures for migrate-idmap tests."""

import pytest

from migrate_idmap.idmap.catalog import MigrationCatalog
from migrate_idmap.idmap.database import create_database_engine
from migrate_idmap.idmap.events import IdMapListener
from migrate_idmap.idmap.models import FieldSpec, MigrationIdentity
from migrate_idmap.idmap.store import SqlIdMap


class RecordingSink:
    """Message sink remembering every diagnostic it was given."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def display(self, message: str, level: str = "status") -> None:
        self.messages.append((message, level))


class RecordingListener(IdMapListener):
    """Listener remembering every event it received."""

    def __init__(self):
        self.saved = []
        self.messages = []
        self.deleted = []

    def on_row_saved(self, event):
        self.saved.append(event)

    def on_message_saved(self, event):
        self.messages.append(event)

    def on_before_delete(self, event):
        self.deleted.append(event)


@pytest.fixture
def engine(tmp_path):
    """Engine of a fresh SQLite database file."""
    engine = create_database_engine(f"sqlite:///{tmp_path / 'idmap.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def node_identity():
    """Single integer source and destination id."""
    return MigrationIdentity(
        id="d7_node",
        source_ids=(FieldSpec("nid", "integer"),),
        destination_ids=(FieldSpec("id", "integer"),),
    )


@pytest.fixture
def translation_identity():
    """Two column source key, two column destination key."""
    return MigrationIdentity(
        id="d7_node_translation:article",
        source_ids=(
            FieldSpec("lang", "string", {"max_length": 12}),
            FieldSpec("nid", "integer"),
        ),
        destination_ids=(
            FieldSpec("id", "integer"),
            FieldSpec("langcode", "language"),
        ),
    )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def id_map(node_identity, engine, sink, listener):
    return SqlIdMap(node_identity, engine, message_sink=sink, listeners=[listener])


@pytest.fixture
def translation_map(translation_identity, engine, sink):
    return SqlIdMap(translation_identity, engine, message_sink=sink)


@pytest.fixture
def catalog(node_identity, translation_identity):
    return MigrationCatalog([node_identity, translation_identity])
