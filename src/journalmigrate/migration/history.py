"""
Applied schema version history.

The current version lives under migration.version and the append-only
history under migration.history. Entries are strictly increasing; the
current version always equals the last entry, or the "0.0.0" sentinel
when the history is empty.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from journalmigrate.migration.models import SENTINEL_VERSION, MigrationVersion
from journalmigrate.stores.interface import RecordStore
from journalmigrate.stores.keys import MIGRATION_HISTORY_KEY, MIGRATION_VERSION_KEY

logger = logging.getLogger(__name__)


def parse_version(version: str) -> tuple[int, ...]:
    """
    Parse a dotted numeric version into a comparable tuple.

    Raises:
        ValueError: If any component is not a non-negative integer.
    """
    parts = version.strip().split(".")
    if not parts or any(not part.isdigit() for part in parts):
        raise ValueError(f"Invalid version string: {version!r}")
    return tuple(int(part) for part in parts)


def is_newer(candidate: str, current: str) -> bool:
    return parse_version(candidate) > parse_version(current)


class VersionHistory:
    """
    Reads and appends applied schema versions.

    Example:
        >>> history = VersionHistory(store)
        >>> await history.get_current_version()
        '0.0.0'
        >>> await history.record("1.0.0", "Migration to version 1.0.0")
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def get_current_version(self) -> str:
        version = await self._store.get_json(MIGRATION_VERSION_KEY)
        if not version:
            return SENTINEL_VERSION
        return str(version)

    async def get_history(self) -> list[MigrationVersion]:
        stored = await self._store.get_json(MIGRATION_HISTORY_KEY, [])
        if not isinstance(stored, list):
            logger.warning("Migration history is not a list, treating it as empty")
            return []
        return [MigrationVersion.from_dict(entry) for entry in stored if isinstance(entry, dict)]

    async def record(
        self,
        version: str,
        description: str | None = None,
        *,
        rollback_available: bool = True,
    ) -> MigrationVersion | None:
        """
        Append a version if it is newer than the current one.

        The history entry is written before the version key so that an
        interrupted write never leaves a current version without history.

        Returns:
            The appended entry, or None if the version was not newer and the
            history was left unchanged.
        """
        current = await self.get_current_version()
        if not is_newer(version, current):
            logger.warning(
                "Not recording version %s: current version %s is not older",
                version,
                current,
            )
            return None

        entry = MigrationVersion(
            version=version,
            description=description or f"Migration to version {version}",
            applied_at=datetime.now(UTC),
            rollback_available=rollback_available,
        )
        history = await self.get_history()
        history.append(entry)
        await self._store.set_json(MIGRATION_HISTORY_KEY, [item.to_dict() for item in history])
        await self._store.set_json(MIGRATION_VERSION_KEY, version)
        logger.info("Recorded migration version %s", version)
        return entry

    async def reset(self) -> None:
        """Return to the sentinel version by removing the version key and history."""
        await self._store.delete(MIGRATION_VERSION_KEY)
        await self._store.delete(MIGRATION_HISTORY_KEY)
        logger.info("Migration version reset to %s", SENTINEL_VERSION)


__all__ = ["VersionHistory", "parse_version", "is_newer"]
