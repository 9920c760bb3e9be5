"""
Built-in journal feature flags.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from journalmigrate.flags.models import FeatureFlag


class JournalFeatureFlag(Enum):
    """Keys of the flags every journal starts with."""

    ENHANCED_TRADE_REVIEW = "enhanced_trade_review"
    ADVANCED_NOTES_EDITOR = "advanced_notes_editor"
    CHART_GALLERY_MANAGER = "chart_gallery_manager"
    PERFORMANCE_ANALYTICS = "performance_analytics"
    REVIEW_WORKFLOW = "review_workflow"
    EXPORT_FUNCTIONALITY = "export_functionality"
    CONTEXTUAL_NAVIGATION = "contextual_navigation"
    TAG_MANAGEMENT = "tag_management"
    DATA_MIGRATION = "data_migration"
    BACKWARD_COMPATIBILITY = "backward_compatibility"


# (key, name, description, enabled, rollout_percentage)
_DEFINITIONS: tuple[tuple[JournalFeatureFlag, str, str, bool, int], ...] = (
    (
        JournalFeatureFlag.ENHANCED_TRADE_REVIEW,
        "Enhanced Trade Review System",
        "Enable the comprehensive trade review system",
        False,
        0,
    ),
    (
        JournalFeatureFlag.ADVANCED_NOTES_EDITOR,
        "Advanced Notes Editor",
        "Enable advanced note-taking with categories and templates",
        False,
        0,
    ),
    (
        JournalFeatureFlag.CHART_GALLERY_MANAGER,
        "Chart Gallery Manager",
        "Enable chart upload and annotation features",
        False,
        0,
    ),
    (
        JournalFeatureFlag.PERFORMANCE_ANALYTICS,
        "Performance Analytics",
        "Enable advanced performance metrics and comparisons",
        False,
        0,
    ),
    (
        JournalFeatureFlag.REVIEW_WORKFLOW,
        "Review Workflow Management",
        "Enable structured review workflow with stages",
        False,
        0,
    ),
    (
        JournalFeatureFlag.EXPORT_FUNCTIONALITY,
        "Export and Reporting",
        "Enable trade export and report generation",
        False,
        0,
    ),
    (
        JournalFeatureFlag.CONTEXTUAL_NAVIGATION,
        "Contextual Navigation",
        "Enable smart back navigation and context preservation",
        False,
        0,
    ),
    (
        JournalFeatureFlag.TAG_MANAGEMENT,
        "Advanced Tag Management",
        "Enable enhanced tag management with performance tracking",
        False,
        0,
    ),
    (
        JournalFeatureFlag.DATA_MIGRATION,
        "Data Migration",
        "Enable automatic data migration to enhanced format",
        True,
        100,
    ),
    (
        JournalFeatureFlag.BACKWARD_COMPATIBILITY,
        "Backward Compatibility",
        "Maintain compatibility with legacy trade data",
        True,
        100,
    ),
)


def default_flags(now: datetime | None = None) -> list[FeatureFlag]:
    """Fresh copies of the built-in flags, timestamped now."""
    timestamp = now or datetime.now(UTC)
    return [
        FeatureFlag(
            key=key.value,
            name=name,
            description=description,
            enabled=enabled,
            rollout_percentage=rollout,
            created_at=timestamp,
            updated_at=timestamp,
        )
        for key, name, description, enabled, rollout in _DEFINITIONS
    ]


__all__ = ["JournalFeatureFlag", "default_flags"]
