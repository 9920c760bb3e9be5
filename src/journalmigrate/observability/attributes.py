"""
Standard span attributes for journalmigrate.

Attribute constants used across all components for consistent span
naming.

Example:
    >>> from journalmigrate.observability.attributes import ATTR_STORE_KEY
    >>>
    >>> with tracer.span("journalmigrate.store.get", {ATTR_STORE_KEY: key}):
    ...     pass
"""

# =============================================================================
# Store Attributes
# =============================================================================

ATTR_STORE_KEY = "journalmigrate.store.key"
"""Key of the persisted-state entry being accessed."""

ATTR_STORE_BACKEND = "journalmigrate.store.backend"
"""Backend of the record store (e.g., 'memory', 'sqlite')."""

ATTR_BYTES = "journalmigrate.store.bytes"
"""Size in bytes of a value written to the store (integer)."""

# =============================================================================
# Migration Attributes
# =============================================================================

ATTR_PLAN_ID = "journalmigrate.migration.plan_id"
"""Identifier of the migration plan being executed."""

ATTR_STEP_ID = "journalmigrate.migration.step_id"
"""Identifier of the migration step being executed."""

ATTR_TARGET_VERSION = "journalmigrate.migration.target_version"
"""Schema version a migration moves records to."""

ATTR_RECORD_COUNT = "journalmigrate.migration.record_count"
"""Number of records handled by an operation (integer)."""

ATTR_BATCH_SIZE = "journalmigrate.migration.batch_size"
"""Configured batch size (integer)."""

ATTR_BATCH_INDEX = "journalmigrate.migration.batch_index"
"""Zero-based index of the batch being processed (integer)."""

# =============================================================================
# Feature Flag Attributes
# =============================================================================

ATTR_FLAG_KEY = "journalmigrate.flag.key"
"""Key of the feature flag being mutated."""

ATTR_ROLLOUT_PERCENTAGE = "journalmigrate.flag.rollout_percentage"
"""Rollout percentage after a mutation (integer 0-100)."""


__all__ = [
    "ATTR_STORE_KEY",
    "ATTR_STORE_BACKEND",
    "ATTR_BYTES",
    "ATTR_PLAN_ID",
    "ATTR_STEP_ID",
    "ATTR_TARGET_VERSION",
    "ATTR_RECORD_COUNT",
    "ATTR_BATCH_SIZE",
    "ATTR_BATCH_INDEX",
    "ATTR_FLAG_KEY",
    "ATTR_ROLLOUT_PERCENTAGE",
]
