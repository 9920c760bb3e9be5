"""
Schema migration for journal trade records.

Components:
    - SchemaMigrator: legacy to enhanced record transform, batched writes,
      backup and rollback
    - LegacyDataValidator: source-data clean-up and checks
    - VersionHistory: applied schema versions
    - MigrationOrchestrator: plan execution, progress and rollback

Example:
    >>> from journalmigrate.migration import MigrationOrchestrator
    >>>
    >>> orchestrator = MigrationOrchestrator(store, flags)
    >>> result = await orchestrator.execute_plan()
    >>> result.success, result.migrated_count
    (True, 42)
"""

from journalmigrate.migration.history import VersionHistory, is_newer, parse_version
from journalmigrate.migration.models import (
    CURRENT_SCHEMA_VERSION,
    SENTINEL_VERSION,
    MigrationConfig,
    MigrationError,
    MigrationPlan,
    MigrationProgress,
    MigrationResult,
    MigrationStatus,
    MigrationStep,
    MigrationVersion,
    RollbackStep,
)
from journalmigrate.migration.orchestrator import (
    FLAG_ROLLOUT_AFTER_MIGRATION,
    MigrationOrchestrator,
    StepContext,
    StepHandler,
)
from journalmigrate.migration.plans import (
    DEFAULT_PLAN,
    DEFAULT_PLAN_ID,
    ensure_valid_plan,
    validate_plan,
)
from journalmigrate.migration.schema import LEGACY_FIELDS, SchemaMigrator
from journalmigrate.migration.source_validation import (
    DEFAULT_CLEANUP_RULES,
    DEFAULT_VALIDATION_RULES,
    CleanupAction,
    CleanupRule,
    LegacyDataValidator,
    RuleKind,
    ValidationReport,
    ValidationRule,
    ValidationSummary,
)

__all__ = [
    # Orchestration
    "MigrationOrchestrator",
    "StepContext",
    "StepHandler",
    "FLAG_ROLLOUT_AFTER_MIGRATION",
    # Schema migration
    "SchemaMigrator",
    "LEGACY_FIELDS",
    # Versions
    "VersionHistory",
    "parse_version",
    "is_newer",
    "SENTINEL_VERSION",
    "CURRENT_SCHEMA_VERSION",
    # Plans
    "DEFAULT_PLAN",
    "DEFAULT_PLAN_ID",
    "validate_plan",
    "ensure_valid_plan",
    # Models
    "MigrationConfig",
    "MigrationError",
    "MigrationPlan",
    "MigrationProgress",
    "MigrationResult",
    "MigrationStatus",
    "MigrationStep",
    "MigrationVersion",
    "RollbackStep",
    # Source validation
    "LegacyDataValidator",
    "ValidationRule",
    "CleanupRule",
    "RuleKind",
    "CleanupAction",
    "ValidationReport",
    "ValidationSummary",
    "DEFAULT_VALIDATION_RULES",
    "DEFAULT_CLEANUP_RULES",
]
