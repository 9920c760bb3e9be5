"""
journalmigrate - Schema migration core for a trading journal.

This library provides:
- Feature flag registry with deterministic percentage rollout
- Schema migrator from legacy trade records to the enhanced review schema
- Migration orchestrator with declarative plans, progress and rollback
- Record store adapters with In-Memory and SQLite backends
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("journalmigrate")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from journalmigrate.exceptions import (
    ErrorSeverity,
    FeatureFlagNotFoundError,
    InvalidPlanError,
    InvalidStatusTransitionError,
    JournalMigrateError,
    PlanError,
    PlanNotFoundError,
    RollbackError,
    StepFailedError,
    StorageError,
    ValidationError,
)
from journalmigrate.flags import (
    FeatureFlag,
    FeatureFlagContext,
    FeatureFlagRegistry,
    FlagCondition,
    JournalFeatureFlag,
)
from journalmigrate.migration import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_PLAN_ID,
    SENTINEL_VERSION,
    LegacyDataValidator,
    MigrationConfig,
    MigrationOrchestrator,
    MigrationPlan,
    MigrationProgress,
    MigrationResult,
    MigrationStatus,
    MigrationVersion,
    SchemaMigrator,
    VersionHistory,
)
from journalmigrate.records import EnhancedRecord, ReviewWorkflow, TradeNotes
from journalmigrate.stores import (
    SQLITE_AVAILABLE,
    InMemoryRecordStore,
    RecordStore,
    SQLiteNotAvailableError,
    SQLiteRecordStore,
)

__all__ = [
    "__version__",
    # Exceptions
    "JournalMigrateError",
    "ErrorSeverity",
    "ValidationError",
    "StorageError",
    "PlanError",
    "PlanNotFoundError",
    "InvalidPlanError",
    "StepFailedError",
    "RollbackError",
    "InvalidStatusTransitionError",
    "FeatureFlagNotFoundError",
    # Stores
    "RecordStore",
    "InMemoryRecordStore",
    "SQLiteRecordStore",
    "SQLITE_AVAILABLE",
    "SQLiteNotAvailableError",
    # Flags
    "FeatureFlagRegistry",
    "FeatureFlag",
    "FeatureFlagContext",
    "FlagCondition",
    "JournalFeatureFlag",
    # Records
    "EnhancedRecord",
    "ReviewWorkflow",
    "TradeNotes",
    # Migration
    "SchemaMigrator",
    "MigrationOrchestrator",
    "LegacyDataValidator",
    "VersionHistory",
    "MigrationConfig",
    "MigrationPlan",
    "MigrationProgress",
    "MigrationResult",
    "MigrationStatus",
    "MigrationVersion",
    "DEFAULT_PLAN_ID",
    "SENTINEL_VERSION",
    "CURRENT_SCHEMA_VERSION",
]
