"""Tests for filtered iteration and missing source row detection."""

import pytest

from migrate_idmap.idmap.filter import IdMapFilter, find_missing_source_rows


@pytest.fixture
def populated_map(translation_map):
    translation_map.save_id_mapping(["en", 1], [10, "en"])
    translation_map.save_id_mapping(["en", 2], [20, "en"])
    translation_map.save_id_mapping(["fr", 1], [30, "fr"])
    return translation_map


class TestIdMapFilter:
    """Tests for IdMapFilter."""

    def test_no_restriction(self, populated_map):
        assert len(list(IdMapFilter(populated_map))) == 3

    def test_source_ids(self, populated_map):
        rows = list(IdMapFilter(populated_map, source_id_values=[["en", "2"], ["fr", "1"]]))
        assert [source for source, _ in rows] == [
            {"lang": "en", "nid": 2},
            {"lang": "fr", "nid": 1},
        ]

    def test_keyed_source_ids(self, populated_map):
        rows = list(IdMapFilter(populated_map, source_id_values=[{"nid": 1, "lang": "en"}]))
        assert rows == [({"lang": "en", "nid": 1}, {"id": 10, "langcode": "en"})]

    def test_destination_ids(self, populated_map):
        rows = list(IdMapFilter(populated_map, destination_id_values=[[30, "fr"]]))
        assert [destination for _, destination in rows] == [{"id": 30, "langcode": "fr"}]

    def test_source_and_destination_ids(self, populated_map):
        rows = list(
            IdMapFilter(
                populated_map,
                source_id_values=[["en", 1], ["en", 2]],
                destination_id_values=[["20", "en"]],
            )
        )
        assert [source for source, _ in rows] == [{"lang": "en", "nid": 2}]

    def test_no_match(self, populated_map):
        assert list(IdMapFilter(populated_map, source_id_values=[["de", 1]])) == []


class TestFindMissingSourceRows:
    """Tests for find_missing_source_rows."""

    def test_rows_not_seen_are_reported(self, populated_map):
        missing = find_missing_source_rows(populated_map, [["en", 1], {"lang": "fr", "nid": 1}])
        assert missing == [{"id": 20, "langcode": "en"}]

    def test_everything_seen(self, populated_map):
        seen = [["en", "1"], ["en", "2"], ["fr", "1"]]
        assert find_missing_source_rows(populated_map, seen) == []

    def test_empty_source(self, populated_map):
        assert len(find_missing_source_rows(populated_map, [])) == 3
