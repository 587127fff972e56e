"""
Registry of known migrations.

Derivative migrations (``d7_node:article``, ``d7_node:page``) are generated
from one base definition and share an identifier namespace; the catalog
answers which registered migrations belong to the same family.
"""

from collections.abc import Iterable, Iterator

from migrate_idmap.exceptions import ConfigurationError
from migrate_idmap.idmap.models import MigrationIdentity


class MigrationCatalog:
    """In-memory catalog of migration identities keyed by migration id."""

    def __init__(self, identities: Iterable[MigrationIdentity] | None = None):
        self._identities: dict[str, MigrationIdentity] = {}
        for identity in identities or []:
            self.register(identity)

    def register(self, identity: MigrationIdentity) -> None:
        """Add a migration, replacing any earlier one with the same id."""
        self._identities[identity.id] = identity

    def get(self, migration_id: str) -> MigrationIdentity:
        """
        Get a registered migration.

        Raises:
            ConfigurationError: If no migration with that id is registered
        """
        try:
            return self._identities[migration_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown migration '{migration_id}'", migration_id=migration_id
            ) from None

    def __contains__(self, migration_id: object) -> bool:
        return migration_id in self._identities

    def __iter__(self) -> Iterator[MigrationIdentity]:
        return iter(self._identities.values())

    def __len__(self) -> int:
        return len(self._identities)

    @property
    def ids(self) -> list[str]:
        return list(self._identities)

    def family(self, identity: MigrationIdentity) -> list[MigrationIdentity]:
        """
        Get the other derivatives of a derivative migration's base definition.

        A migration whose id has no derivative part has no family.
        """
        if not identity.is_derivative:
            return []
        return [
            candidate
            for candidate in self._identities.values()
            if candidate.base_id == identity.base_id and candidate.id != identity.id
        ]
