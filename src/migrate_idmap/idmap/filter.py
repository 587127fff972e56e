"""Filtering of id map rows and detection of rows whose source is gone."""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from migrate_idmap.idmap.hashing import order_source_values, stringify

if TYPE_CHECKING:
    from migrate_idmap.idmap.store import SqlIdMap


def _normalize(values: Mapping[str, Any] | Sequence[Any], field_names: Sequence[str]) -> tuple:
    return tuple(stringify(value) for value in order_source_values(values, field_names))


class IdMapFilter:
    """
    Iterate the rows of an id map restricted to given source or destination ids.

    Values are compared in their string form, so ids typed on a command
    line match integer columns. Without any filter every row is yielded.

    Usage:
        for source, destination in IdMapFilter(id_map, source_id_values=[["1"], ["3"]]):
            ...
    """

    def __init__(
        self,
        id_map: "SqlIdMap",
        source_id_values: Iterable[Mapping[str, Any] | Sequence[Any]] | None = None,
        destination_id_values: Iterable[Mapping[str, Any] | Sequence[Any]] | None = None,
    ):
        self.id_map = id_map
        identity = id_map.identity
        self._sources = {
            _normalize(values, identity.source_field_names) for values in source_id_values or []
        }
        self._destinations = {
            _normalize(values, identity.destination_field_names)
            for values in destination_id_values or []
        }

    def accepts(self, source: Mapping[str, Any], destination: Mapping[str, Any]) -> bool:
        if self._sources and tuple(stringify(v) for v in source.values()) not in self._sources:
            return False
        if self._destinations:
            key = tuple(
                stringify(destination.get(name))
                for name in self.id_map.identity.destination_field_names
            )
            if key not in self._destinations:
                return False
        return True

    def __iter__(self) -> Iterator[tuple[dict[str, Any], dict[str, Any]]]:
        for source, destination in self.id_map:
            if self.accepts(source, destination):
                yield source, destination


def find_missing_source_rows(
    id_map: "SqlIdMap",
    seen_source_ids: Iterable[Mapping[str, Any] | Sequence[Any]],
) -> list[dict[str, Any]]:
    """
    Find map rows whose source record no longer exists.

    Args:
        id_map: Map to check
        seen_source_ids: Every source id tuple the source currently holds

    Returns:
        Destination values of the rows whose source id tuple was not seen,
        in cursor order
    """
    field_names = id_map.identity.source_field_names
    seen = {_normalize(values, field_names) for values in seen_source_ids}

    missing = []
    for source, destination in id_map:
        if tuple(stringify(value) for value in source.values()) not in seen:
            missing.append(destination)
    return missing
