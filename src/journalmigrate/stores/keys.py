"""
Persisted-state keys used by journalmigrate.

The migration.* and feature.* namespaces are owned exclusively by this
library. The records.* collections belong to the journal application and
are only read and written here while a migration or rollback runs.
"""

MIGRATION_VERSION_KEY = "migration.version"
"""Current schema version string."""

MIGRATION_HISTORY_KEY = "migration.history"
"""Append-only list of applied MigrationVersion entries."""

MIGRATION_BACKUP_KEY = "migration.backup"
"""Most recent pre-migration snapshot: {timestamp, version, data}."""

MIGRATION_PROGRESS_KEY = "migration.progress"
"""Current or most recent MigrationProgress."""

FEATURE_FLAGS_KEY = "feature.flags"
"""List of persisted FeatureFlag entries."""

LEGACY_RECORDS_KEY = "records.legacy"
"""Legacy (pre-migration) trade records."""

MIGRATED_RECORDS_KEY = "records.migrated"
"""Enhanced (post-migration) trade records."""

ARCHIVED_RECORDS_KEY = "records.archive"
"""Archived legacy records written by the cleanup step."""

__all__ = [
    "MIGRATION_VERSION_KEY",
    "MIGRATION_HISTORY_KEY",
    "MIGRATION_BACKUP_KEY",
    "MIGRATION_PROGRESS_KEY",
    "FEATURE_FLAGS_KEY",
    "LEGACY_RECORDS_KEY",
    "MIGRATED_RECORDS_KEY",
    "ARCHIVED_RECORDS_KEY",
]
