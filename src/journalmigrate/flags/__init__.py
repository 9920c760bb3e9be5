"""
Feature flags for gradual rollout of the enhanced journal schema.

Example:
    >>> from journalmigrate.flags import FeatureFlagRegistry, FeatureFlagContext
    >>>
    >>> registry = FeatureFlagRegistry(store)
    >>> await registry.load()
    >>> registry.is_enabled("data_migration", FeatureFlagContext(user_id="u-1"))
    True
"""

from journalmigrate.flags.conditions import (
    create_condition,
    evaluate_condition,
    evaluate_conditions,
)
from journalmigrate.flags.defaults import JournalFeatureFlag, default_flags
from journalmigrate.flags.hashing import is_in_rollout, rollout_bucket, string_hash
from journalmigrate.flags.models import (
    ConditionOperator,
    ConditionType,
    FeatureFlag,
    FeatureFlagContext,
    FlagCondition,
    clamp_percentage,
)
from journalmigrate.flags.registry import FeatureFlagRegistry

__all__ = [
    # Registry
    "FeatureFlagRegistry",
    # Models
    "FeatureFlag",
    "FeatureFlagContext",
    "FlagCondition",
    "ConditionType",
    "ConditionOperator",
    "clamp_percentage",
    # Defaults
    "JournalFeatureFlag",
    "default_flags",
    # Evaluation
    "create_condition",
    "evaluate_condition",
    "evaluate_conditions",
    "string_hash",
    "rollout_bucket",
    "is_in_rollout",
]
