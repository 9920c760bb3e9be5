"""
Feature flag registry.

The registry holds the journal's feature flags in memory, answers
"is flag X on for context Y" deterministically, and persists every
mutation to the record store before the new state becomes visible.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pydantic

from journalmigrate.exceptions import FeatureFlagNotFoundError
from journalmigrate.flags.conditions import evaluate_conditions
from journalmigrate.flags.defaults import JournalFeatureFlag, default_flags
from journalmigrate.flags.hashing import is_in_rollout
from journalmigrate.flags.models import (
    FeatureFlag,
    FeatureFlagContext,
    FlagCondition,
    clamp_percentage,
)
from journalmigrate.observability import Tracer, create_tracer
from journalmigrate.observability.attributes import ATTR_FLAG_KEY, ATTR_ROLLOUT_PERCENTAGE
from journalmigrate.stores.interface import RecordStore
from journalmigrate.stores.keys import FEATURE_FLAGS_KEY

logger = logging.getLogger(__name__)

_ANONYMOUS = FeatureFlagContext()


class FeatureFlagRegistry:
    """
    Deterministic, percentage-based feature flags backed by a RecordStore.

    Evaluation order for is_enabled, short-circuiting at the first miss:
    1. the flag is enabled
    2. the context's identity falls inside the rollout bucket
    3. every condition holds

    Mutations are coroutines: they compute the new flag set, await the
    write to feature.flags, and only then replace the in-memory state. A
    failed write raises StorageError and leaves the registry unchanged.

    Example:
        >>> registry = FeatureFlagRegistry(InMemoryRecordStore())
        >>> await registry.load()
        >>> await registry.enable_flag("enhanced_trade_review", 50)
        >>> registry.is_enabled(
        ...     "enhanced_trade_review", FeatureFlagContext(user_id="u-42")
        ... )
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the registry with the built-in flags.

        Call load() to replace them with the persisted flag set.

        Args:
            store: Record store holding the feature.flags key.
            tracer: Optional custom Tracer instance.
            enable_tracing: Whether to enable OpenTelemetry tracing (default True).
        """
        self._store = store
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._flags: dict[str, FeatureFlag] = {flag.key: flag for flag in default_flags()}

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self) -> list[FeatureFlag]:
        """
        Load flags from the store.

        Falls back to the built-in flags when nothing is persisted. Entries
        that fail to parse are skipped with a warning.

        Returns:
            The loaded flags.
        """
        stored = await self._store.get_json(FEATURE_FLAGS_KEY)
        if stored is None:
            self._flags = {flag.key: flag for flag in default_flags()}
            logger.debug("No persisted feature flags, using %d defaults", len(self._flags))
            return self.get_all_flags()

        if not isinstance(stored, list):
            logger.warning(
                "Persisted feature flags are not a list (got %s), using defaults",
                type(stored).__name__,
            )
            self._flags = {flag.key: flag for flag in default_flags()}
            return self.get_all_flags()

        flags: dict[str, FeatureFlag] = {}
        for entry in stored:
            try:
                flag = FeatureFlag.model_validate(entry)
            except pydantic.ValidationError as e:
                logger.warning("Skipping invalid persisted feature flag: %s", e)
                continue
            flags[flag.key] = flag

        self._flags = flags
        logger.debug("Loaded %d feature flags", len(flags))
        return self.get_all_flags()

    # =========================================================================
    # Queries
    # =========================================================================

    def is_enabled(self, key: str, context: FeatureFlagContext | None = None) -> bool:
        """
        Check whether a flag is on for a context.

        Unknown keys log a warning and return False; they never raise.
        """
        flag = self._flags.get(key)
        if flag is None:
            logger.warning("Feature flag '%s' not found", key)
            return False

        if not flag.enabled:
            return False

        ctx = context or _ANONYMOUS
        if not is_in_rollout(flag.rollout_percentage, ctx.identity, flag.key):
            return False

        return evaluate_conditions(flag.conditions, ctx)

    def get_flag(self, key: str) -> FeatureFlag | None:
        return self._flags.get(key)

    def get_all_flags(self) -> list[FeatureFlag]:
        return list(self._flags.values())

    def get_enabled_flags(self, context: FeatureFlagContext | None = None) -> list[str]:
        """Keys of every flag that is on for the context."""
        return [key for key in self._flags if self.is_enabled(key, context)]

    def get_feature_availability(
        self,
        context: FeatureFlagContext | None = None,
    ) -> dict[str, bool]:
        """On/off state of every built-in journal flag for the context."""
        return {
            member.value: self.is_enabled(member.value, context) for member in JournalFeatureFlag
        }

    def should_perform_data_migration(self, context: FeatureFlagContext | None = None) -> bool:
        return self.is_enabled(JournalFeatureFlag.DATA_MIGRATION.value, context)

    def should_use_enhanced_trade_review(self, context: FeatureFlagContext | None = None) -> bool:
        return self.is_enabled(JournalFeatureFlag.ENHANCED_TRADE_REVIEW.value, context)

    def should_maintain_backward_compatibility(
        self,
        context: FeatureFlagContext | None = None,
    ) -> bool:
        return self.is_enabled(JournalFeatureFlag.BACKWARD_COMPATIBILITY.value, context)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def update_flag(
        self,
        key: str,
        *,
        enabled: bool | None = None,
        rollout_percentage: float | None = None,
        name: str | None = None,
        description: str | None = None,
        conditions: list[FlagCondition] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FeatureFlag:
        """
        Update selected fields of an existing flag.

        Arguments left as None are unchanged. The rollout percentage is
        clamped to [0, 100].

        Raises:
            FeatureFlagNotFoundError: If the flag does not exist.
            StorageError: If persisting the change fails.
        """
        flag = self._require(key)
        changes: dict[str, Any] = {"updated_at": datetime.now(UTC)}
        if enabled is not None:
            changes["enabled"] = enabled
        if rollout_percentage is not None:
            changes["rollout_percentage"] = clamp_percentage(rollout_percentage)
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if conditions is not None:
            changes["conditions"] = list(conditions)
        if metadata is not None:
            changes["metadata"] = dict(metadata)

        updated = flag.model_copy(update=changes)
        await self._commit({**self._flags, key: updated}, "journalmigrate.flags.update", updated)
        logger.info(
            "Feature flag %s updated (enabled=%s, rollout=%d%%)",
            key,
            updated.enabled,
            updated.rollout_percentage,
        )
        return updated

    async def enable_flag(self, key: str, rollout_percentage: float = 100) -> FeatureFlag:
        """Enable a flag at the given (clamped) rollout percentage."""
        return await self.update_flag(key, enabled=True, rollout_percentage=rollout_percentage)

    async def disable_flag(self, key: str) -> FeatureFlag:
        """Disable a flag and reset its rollout to 0."""
        return await self.update_flag(key, enabled=False, rollout_percentage=0)

    async def gradual_rollout(
        self,
        key: str,
        target_percentage: float,
        increment: float = 10,
    ) -> FeatureFlag:
        """
        Move a flag's rollout toward a target by at most one increment.

        Never overshoots the target, in either direction. The flag is
        enabled as part of the step.

        Raises:
            ValueError: If increment is not a positive whole number.
            FeatureFlagNotFoundError: If the flag does not exist.
        """
        if increment <= 0 or increment != int(increment):
            raise ValueError(f"increment must be a positive whole number, got {increment}")
        flag = self._require(key)
        target = clamp_percentage(target_percentage)
        current = flag.rollout_percentage
        if current <= target:
            new_percentage = min(target, current + increment)
        else:
            new_percentage = max(target, current - increment)
        return await self.update_flag(key, enabled=True, rollout_percentage=new_percentage)

    async def create_flag(
        self,
        key: str,
        *,
        name: str = "",
        description: str = "",
        enabled: bool = False,
        rollout_percentage: float = 0,
        conditions: list[FlagCondition] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FeatureFlag:
        """
        Create a flag, replacing any existing flag with the same key.
        """
        now = datetime.now(UTC)
        flag = FeatureFlag(
            key=key,
            name=name,
            description=description,
            enabled=enabled,
            rollout_percentage=clamp_percentage(rollout_percentage),
            conditions=list(conditions or []),
            metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )
        if key in self._flags:
            logger.warning("Feature flag %s already exists and will be replaced", key)
        await self._commit({**self._flags, key: flag}, "journalmigrate.flags.create", flag)
        logger.info("Feature flag %s created", key)
        return flag

    async def delete_flag(self, key: str) -> None:
        """
        Delete a flag.

        Raises:
            FeatureFlagNotFoundError: If the flag does not exist.
        """
        flag = self._require(key)
        remaining = {k: v for k, v in self._flags.items() if k != key}
        await self._commit(remaining, "journalmigrate.flags.delete", flag)
        logger.info("Feature flag %s deleted", key)

    async def reset_to_defaults(self) -> list[FeatureFlag]:
        """Replace every flag with the built-in set in a single write."""
        flags = {flag.key: flag for flag in default_flags()}
        with self._tracer.span("journalmigrate.flags.reset", {}):
            await self._persist(flags)
        self._flags = flags
        logger.info("Feature flags reset to %d defaults", len(flags))
        return self.get_all_flags()

    def snapshot(self) -> list[dict[str, Any]]:
        """Wire form of every flag, for recording and later restoring state."""
        return [flag.to_wire() for flag in self._flags.values()]

    async def restore(self, snapshot: list[Mapping[str, Any]]) -> int:
        """
        Restore enabled state and rollout from a snapshot.

        Flags absent from the registry are skipped.

        Returns:
            Number of flags restored.
        """
        flags = dict(self._flags)
        now = datetime.now(UTC)
        restored = 0
        for entry in snapshot:
            try:
                recorded = FeatureFlag.model_validate(entry)
            except pydantic.ValidationError as e:
                logger.warning("Skipping invalid flag snapshot entry: %s", e)
                continue
            current = flags.get(recorded.key)
            if current is None:
                logger.warning("Cannot restore unknown feature flag %s", recorded.key)
                continue
            flags[recorded.key] = current.model_copy(
                update={
                    "enabled": recorded.enabled,
                    "rollout_percentage": recorded.rollout_percentage,
                    "updated_at": now,
                }
            )
            restored += 1

        with self._tracer.span("journalmigrate.flags.restore", {}):
            await self._persist(flags)
        self._flags = flags
        logger.info("Restored %d feature flags from snapshot", restored)
        return restored

    # =========================================================================
    # Internals
    # =========================================================================

    def _require(self, key: str) -> FeatureFlag:
        flag = self._flags.get(key)
        if flag is None:
            raise FeatureFlagNotFoundError(key)
        return flag

    async def _commit(
        self,
        flags: dict[str, FeatureFlag],
        span_name: str,
        flag: FeatureFlag,
    ) -> None:
        with self._tracer.span(
            span_name,
            {ATTR_FLAG_KEY: flag.key, ATTR_ROLLOUT_PERCENTAGE: flag.rollout_percentage},
        ):
            await self._persist(flags)
        self._flags = flags

    async def _persist(self, flags: dict[str, FeatureFlag]) -> None:
        await self._store.set_json(FEATURE_FLAGS_KEY, [flag.to_wire() for flag in flags.values()])

    def __repr__(self) -> str:
        return f"FeatureFlagRegistry(flags={len(self._flags)})"


__all__ = ["FeatureFlagRegistry"]
