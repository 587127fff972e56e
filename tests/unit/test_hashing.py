"""Tests for source id hashing."""

import pytest

from migrate_idmap.exceptions import IncompleteKeyError
from migrate_idmap.idmap.hashing import (
    HASH_LENGTH,
    hash_values,
    order_source_values,
    serialize_strings,
    source_ids_hash,
    stringify,
)

NID = ["nid"]
LANG_NID = ["lang", "nid"]


class TestStringify:
    """Tests for value coercion before hashing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, "5"),
            ("5", "5"),
            (5.0, "5"),
            (2.5, "2.5"),
            (None, ""),
            (True, "1"),
            (False, ""),
            (b"abc", b"abc"),
            (bytearray(b"\xff"), b"\xff"),
        ],
    )
    def test_stringify(self, value, expected):
        assert stringify(value) == expected


class TestSerializeStrings:
    """Tests for the PHP serialize() array format."""

    def test_single_value(self):
        assert serialize_strings(["1"]) == b'a:1:{i:0;s:1:"1";}'

    def test_multiple_values(self):
        assert serialize_strings(["en", "5"]) == b'a:2:{i:0;s:2:"en";i:1;s:1:"5";}'

    def test_lengths_are_counted_in_bytes(self):
        assert serialize_strings(["ñ"]) == 'a:1:{i:0;s:2:"ñ";}'.encode()

    def test_empty_list(self):
        assert serialize_strings([]) == b"a:0:{}"

    def test_bytes_are_written_raw(self):
        assert serialize_strings([b"\xff\x00"]) == b'a:1:{i:0;s:2:"\xff\x00";}'


class TestSourceIdsHash:
    """Tests for the map table key."""

    def test_known_digest(self):
        assert source_ids_hash([1], NID) == (
            "7ad742edb7e866caa78ced1e4455d2e9cbd8adb2074e7c323d21b4e67732e755"
        )

    def test_known_multi_column_digest(self):
        assert source_ids_hash({"lang": "en", "nid": 5}, LANG_NID) == (
            "6857aa3ff60b9e7c7150648ab9b97658c86f31c3169c0fac2752f936bf1c83c1"
        )

    def test_hash_length(self):
        assert len(source_ids_hash([1], NID)) == HASH_LENGTH

    def test_is_deterministic(self):
        assert source_ids_hash([1], NID) == source_ids_hash([1], NID)

    def test_integer_and_string_agree(self):
        assert source_ids_hash({"nid": 5}, NID) == source_ids_hash({"nid": "5"}, NID)

    def test_ascii_bytes_and_text_agree(self):
        assert source_ids_hash([b"abc"], NID) == source_ids_hash(["abc"], NID)

    def test_non_utf8_bytes(self):
        digest = source_ids_hash([b"\xff\x00"], NID)
        assert len(digest) == HASH_LENGTH
        assert digest != source_ids_hash([b"\xff\x01"], NID)

    def test_positional_and_keyed_agree(self):
        keyed = source_ids_hash({"nid": 5, "lang": "en"}, LANG_NID)
        positional = source_ids_hash(["en", 5], LANG_NID)
        assert keyed == positional

    def test_scalar_is_single_value(self):
        assert source_ids_hash(5, NID) == source_ids_hash([5], NID)
        assert source_ids_hash("5", NID) == source_ids_hash([5], NID)

    def test_distinct_tuples_differ(self):
        assert source_ids_hash(["en", 5], LANG_NID) != source_ids_hash(["en", 6], LANG_NID)
        assert source_ids_hash(["en", 5], LANG_NID) != source_ids_hash(["fr", 5], LANG_NID)

    def test_hash_values_matches_ordered_input(self):
        assert hash_values(["en", 5]) == source_ids_hash(["en", 5], LANG_NID)

    def test_partial_keyed_key_is_refused(self):
        with pytest.raises(IncompleteKeyError, match="missing: nid"):
            source_ids_hash({"lang": "en"}, LANG_NID)

    def test_partial_positional_key_is_refused(self):
        with pytest.raises(IncompleteKeyError):
            source_ids_hash(["en"], LANG_NID)


class TestOrderSourceValues:
    """Tests for normalizing input to the declared order."""

    def test_mapping_is_reordered(self):
        assert order_source_values({"nid": 5, "lang": "en"}, LANG_NID) == ["en", 5]

    def test_extra_mapping_keys_are_ignored(self):
        assert order_source_values({"nid": 5, "vid": 9}, NID) == [5]

    def test_too_many_positional_values(self):
        with pytest.raises(IncompleteKeyError):
            order_source_values([1, 2], NID)
