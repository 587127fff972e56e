"""
Hashing of source id tuples into map table keys.

A source id tuple is normalized to the declared field order, every value
is converted to its string form and the resulting list is serialized in
the PHP ``serialize()`` array format before being hashed with SHA-256.
Using that exact format keeps keys compatible with map tables written by
the PHP migrate module, so existing maps can be read and extended.
"""

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any

from migrate_idmap.exceptions import IncompleteKeyError

HASH_LENGTH = 64


def stringify(value: Any) -> str | bytes:
    """Convert an id value to the string used for hashing.

    Integers and their string forms must agree (``5`` and ``"5"``), as
    must integral floats (``5.0``). Binary values are kept as raw bytes.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return str(value)


def serialize_strings(values: Sequence[str | bytes]) -> bytes:
    """Serialize a list of strings in the PHP ``serialize()`` array format.

    Text is encoded as UTF-8; bytes are written as they are. String lengths
    are byte counts.
    """
    parts = [f"a:{len(values)}:{{".encode()]
    for index, value in enumerate(values):
        encoded = value if isinstance(value, bytes) else value.encode("utf-8")
        parts.append(f'i:{index};s:{len(encoded)}:"'.encode())
        parts.append(encoded)
        parts.append(b'";')
    parts.append(b"}")
    return b"".join(parts)


def hash_values(values: Sequence[Any]) -> str:
    """Hash an already ordered list of id values."""
    serialized = serialize_strings([stringify(value) for value in values])
    return hashlib.sha256(serialized).hexdigest()


def order_source_values(
    values: Mapping[str, Any] | Sequence[Any],
    field_names: Sequence[str],
) -> list[Any]:
    """Normalize positional or keyed source values to the declared field order.

    Args:
        values: Either a sequence in declared order or a mapping keyed by
            source field name
        field_names: Declared source field names

    Returns:
        Values in declared order

    Raises:
        IncompleteKeyError: If the values do not cover every declared field
    """
    if isinstance(values, Mapping):
        missing = [name for name in field_names if name not in values]
        if missing:
            raise IncompleteKeyError(
                f"Cannot hash a partial source key, missing: {', '.join(missing)}",
                operation="source_ids_hash",
            )
        return [values[name] for name in field_names]

    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        values = [values]
    ordered = list(values)
    if len(ordered) != len(field_names):
        raise IncompleteKeyError(
            f"Cannot hash a source key of {len(ordered)} values, "
            f"{len(field_names)} source id fields are declared",
            operation="source_ids_hash",
        )
    return ordered


def source_ids_hash(
    values: Mapping[str, Any] | Sequence[Any],
    field_names: Sequence[str],
) -> str:
    """Compute the map table key for a full source id tuple.

    Args:
        values: Positional values in declared order, or a mapping keyed
            by source field name
        field_names: Declared source field names

    Returns:
        64 character hex SHA-256 digest
    """
    return hash_values(order_source_values(values, field_names))
