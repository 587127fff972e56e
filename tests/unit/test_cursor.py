"""Tests for iterating id maps."""

import json

import pytest

from migrate_idmap.exceptions import MigrateError
from migrate_idmap.idmap.cursor import CursorState
from migrate_idmap.idmap.models import SourceRowStatus


@pytest.fixture
def populated_map(translation_map):
    translation_map.save_id_mapping(["fr", 1], [30, "fr"])
    translation_map.save_id_mapping(["en", 1], [10, "en"])
    translation_map.save_id_mapping(["en", 2], [20, "en"])
    return translation_map


class TestIdMapCursor:
    """Tests for the cursor state machine."""

    def test_starts_not_started(self, id_map):
        cursor = id_map.cursor()
        assert cursor.state is CursorState.NOT_STARTED
        assert not cursor.valid()
        assert cursor.current() is None
        assert cursor.key() is None

    def test_next_before_rewind(self, id_map):
        with pytest.raises(MigrateError, match="rewound"):
            id_map.cursor().next()

    def test_empty_map_is_exhausted_after_rewind(self, id_map):
        cursor = id_map.cursor()
        cursor.rewind()
        assert cursor.state is CursorState.EXHAUSTED
        assert cursor.current_source() == {}
        assert cursor.current_destination() == {}

    def test_walks_rows_in_destination_order(self, populated_map):
        cursor = populated_map.cursor()
        cursor.rewind()

        seen = []
        while cursor.valid():
            seen.append(cursor.current())
            cursor.next()

        assert seen == [
            {"destid1": 10, "destid2": "en"},
            {"destid1": 20, "destid2": "en"},
            {"destid1": 30, "destid2": "fr"},
        ]
        assert cursor.state is CursorState.EXHAUSTED

    def test_key_serializes_source_columns(self, populated_map):
        cursor = populated_map.cursor()
        cursor.rewind()
        assert json.loads(cursor.key()) == {"sourceid1": "en", "sourceid2": 1}

    def test_current_source_and_destination(self, populated_map):
        cursor = populated_map.cursor()
        cursor.rewind()
        assert cursor.current_source() == {"lang": "en", "nid": 1}
        assert cursor.current_destination() == {"id": 10, "langcode": "en"}

    def test_exhausted_is_terminal_until_rewind(self, populated_map):
        cursor = populated_map.cursor()
        cursor.rewind()
        for _ in range(3):
            cursor.next()
        assert cursor.state is CursorState.EXHAUSTED

        cursor.next()
        assert cursor.state is CursorState.EXHAUSTED

        cursor.rewind()
        assert cursor.state is CursorState.POSITIONED
        assert cursor.current_source() == {"lang": "en", "nid": 1}

    def test_rewind_sees_new_rows(self, populated_map):
        cursor = populated_map.cursor()
        cursor.rewind()
        populated_map.save_id_mapping(["de", 1], [5, "de"])

        cursor.rewind()
        assert cursor.current_source() == {"lang": "de", "nid": 1}

    def test_null_destination_values_are_omitted(self, id_map):
        id_map.save_id_mapping({"nid": 1}, [], SourceRowStatus.FAILED)

        assert list(id_map) == [({"nid": 1}, {})]


class TestIteration:
    """Tests for iterating the map directly."""

    def test_iterates_pairs(self, populated_map):
        assert list(populated_map) == [
            ({"lang": "en", "nid": 1}, {"id": 10, "langcode": "en"}),
            ({"lang": "en", "nid": 2}, {"id": 20, "langcode": "en"}),
            ({"lang": "fr", "nid": 1}, {"id": 30, "langcode": "fr"}),
        ]

    def test_iterations_are_independent(self, populated_map):
        first = iter(populated_map)
        second = iter(populated_map)
        next(first)
        next(first)

        assert next(second)[0] == {"lang": "en", "nid": 1}
        assert next(first)[0] == {"lang": "fr", "nid": 1}

    def test_each_call_returns_new_cursor(self, id_map):
        assert id_map.cursor() is not id_map.cursor()
