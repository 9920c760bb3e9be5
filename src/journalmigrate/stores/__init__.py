"""
Record store adapters for journalmigrate.

The migration core and the feature flag registry persist all of their
state through a RecordStore: a small async key/value contract over
opaque bytes.

Example:
    >>> from journalmigrate.stores import InMemoryRecordStore
    >>>
    >>> store = InMemoryRecordStore()
    >>> await store.set_json("records.legacy", [{"id": "t1"}])
"""

from journalmigrate.stores.in_memory import InMemoryRecordStore
from journalmigrate.stores.interface import RecordStore
from journalmigrate.stores.keys import (
    ARCHIVED_RECORDS_KEY,
    FEATURE_FLAGS_KEY,
    LEGACY_RECORDS_KEY,
    MIGRATED_RECORDS_KEY,
    MIGRATION_BACKUP_KEY,
    MIGRATION_HISTORY_KEY,
    MIGRATION_PROGRESS_KEY,
    MIGRATION_VERSION_KEY,
)
from journalmigrate.stores.sqlite import (
    SQLITE_AVAILABLE,
    SQLiteNotAvailableError,
    SQLiteRecordStore,
)

__all__ = [
    # Interface
    "RecordStore",
    # Implementations
    "InMemoryRecordStore",
    "SQLiteRecordStore",
    "SQLiteNotAvailableError",
    "SQLITE_AVAILABLE",
    # Keys
    "MIGRATION_VERSION_KEY",
    "MIGRATION_HISTORY_KEY",
    "MIGRATION_BACKUP_KEY",
    "MIGRATION_PROGRESS_KEY",
    "FEATURE_FLAGS_KEY",
    "LEGACY_RECORDS_KEY",
    "MIGRATED_RECORDS_KEY",
    "ARCHIVED_RECORDS_KEY",
]
