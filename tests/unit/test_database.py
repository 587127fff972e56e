"""Tests for engine creation and the connectivity check."""

import pytest

from migrate_idmap.exceptions import ConfigurationError
from migrate_idmap.idmap.database import create_database_engine, validate_database_connection
from migrate_idmap.idmap.store import SqlIdMap


class TestCreateDatabaseEngine:
    """Tests for create_database_engine."""

    def test_in_memory_engine_keeps_tables(self, node_identity):
        engine = create_database_engine("sqlite://")
        id_map = SqlIdMap(node_identity, engine)
        id_map.save_id_mapping({"nid": 1}, {"id": 1})

        assert id_map.lookup_destination_id({"nid": 1}) == [1]
        engine.dispose()

    def test_empty_url(self):
        with pytest.raises(ConfigurationError):
            create_database_engine("")

    def test_invalid_url(self):
        with pytest.raises(ConfigurationError):
            create_database_engine("not a url")


class TestValidateDatabaseConnection:
    """Tests for validate_database_connection."""

    def test_sqlite_file(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'check.db'}"
        assert validate_database_connection(url) is True

    def test_unreachable_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}"
        assert validate_database_connection(url) is False
