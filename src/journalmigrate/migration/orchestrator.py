"""
MigrationOrchestrator - runs migration plans step by step.

The orchestrator is the entry point callers use to move a journal from the
legacy schema to the enhanced one. It owns a registry of migration plans,
executes a plan's steps strictly in order, persists a MigrationProgress
record after every step, and reverts a run from the snapshot carried on its
MigrationResult.

Responsibilities:
    - Deciding whether a migration is needed (flag, stored version, data)
    - Plan validation before any state is written
    - Step execution with required/optional failure semantics
    - Cooperative cancellation between steps
    - Version recording once every required step succeeded
    - Rollback through the plan's rollback steps

Usage:
    >>> from journalmigrate.migration import MigrationOrchestrator
    >>>
    >>> orchestrator = MigrationOrchestrator(store, flags)
    >>> if await orchestrator.is_migration_needed():
    ...     result = await orchestrator.execute_plan()
    ...     if not result.success and await orchestrator.is_rollback_available():
    ...         await orchestrator.rollback_migration(result)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from journalmigrate.exceptions import (
    InvalidPlanError,
    PlanNotFoundError,
    RollbackError,
    StepFailedError,
)
from journalmigrate.flags.defaults import JournalFeatureFlag
from journalmigrate.flags.registry import FeatureFlagRegistry
from journalmigrate.migration.history import VersionHistory, is_newer
from journalmigrate.migration.models import (
    SENTINEL_VERSION,
    MigrationConfig,
    MigrationError,
    MigrationPlan,
    MigrationProgress,
    MigrationResult,
    MigrationStatus,
    MigrationVersion,
)
from journalmigrate.migration.plans import DEFAULT_PLAN, DEFAULT_PLAN_ID, ensure_valid_plan
from journalmigrate.migration.schema import SchemaMigrator
from journalmigrate.migration.source_validation import LegacyDataValidator
from journalmigrate.observability import Tracer, create_tracer
from journalmigrate.observability.attributes import (
    ATTR_PLAN_ID,
    ATTR_STEP_ID,
    ATTR_TARGET_VERSION,
)
from journalmigrate.stores.interface import RecordStore
from journalmigrate.stores.keys import (
    ARCHIVED_RECORDS_KEY,
    LEGACY_RECORDS_KEY,
    MIGRATION_BACKUP_KEY,
    MIGRATION_PROGRESS_KEY,
)

logger = logging.getLogger(__name__)

FLAG_ROLLOUT_AFTER_MIGRATION: tuple[tuple[JournalFeatureFlag, int], ...] = (
    (JournalFeatureFlag.ENHANCED_TRADE_REVIEW, 100),
    (JournalFeatureFlag.ADVANCED_NOTES_EDITOR, 100),
    (JournalFeatureFlag.CONTEXTUAL_NAVIGATION, 100),
    (JournalFeatureFlag.REVIEW_WORKFLOW, 100),
    (JournalFeatureFlag.PERFORMANCE_ANALYTICS, 50),
    (JournalFeatureFlag.CHART_GALLERY_MANAGER, 25),
)
"""Flags enabled by the update_feature_flags step, with their rollout."""


@dataclass
class StepContext:
    """
    State shared by the steps of one plan execution or rollback.

    Attributes:
        plan: Plan being executed.
        step_id: Step (or rollback step) currently running.
        result: Result being built; steps append warnings and counts.
        rollback_data: Snapshot data recorded by forward steps and read by
            rollback steps.
    """

    plan: MigrationPlan
    step_id: str
    result: MigrationResult
    rollback_data: dict[str, Any] = field(default_factory=dict)


StepHandler = Callable[[StepContext], Awaitable[None]]


class MigrationOrchestrator:
    """
    Executes migration plans against a record store.

    Steps are looked up by id in a handler registry, so custom plans can
    reuse the built-in steps or register their own. A required step that
    raises stops the run and marks it failed; an optional step that raises
    is recorded as a warning and the run continues.

    The stored version is advanced only after every required step has
    succeeded, and the orchestrator never runs two steps or two store
    writes concurrently.
    """

    def __init__(
        self,
        store: RecordStore,
        flags: FeatureFlagRegistry,
        *,
        config: MigrationConfig | None = None,
        migrator: SchemaMigrator | None = None,
        validator: LegacyDataValidator | None = None,
        plans: Mapping[str, MigrationPlan] | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            store: Record store holding records and migration state.
            flags: Feature flag registry consulted and updated by the plan.
            config: Migration configuration, used when no migrator is given.
            migrator: Schema migrator (defaults to one over the same store).
            validator: Source-data validator (defaults to the built-in rules).
            plans: Additional plans by id; the default plan is always present.
            tracer: Optional custom Tracer instance.
            enable_tracing: Whether to enable OpenTelemetry tracing (default True).
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._store = store
        self._flags = flags
        self._migrator = migrator or SchemaMigrator(
            store,
            config,
            tracer=self._tracer,
        )
        self._validator = validator or LegacyDataValidator()
        self._plans: dict[str, MigrationPlan] = {DEFAULT_PLAN_ID: DEFAULT_PLAN}
        if plans:
            self._plans.update(plans)

        self._step_handlers: dict[str, StepHandler] = {
            "backup_existing_data": self._backup_existing_data,
            "validate_source_data": self._validate_source_data,
            "migrate_trade_structure": self._migrate_trade_structure,
            "validate_migrated_data": self._validate_migrated_data,
            "update_feature_flags": self._update_feature_flags,
            "cleanup_legacy_data": self._cleanup_legacy_data,
        }
        self._rollback_handlers: dict[str, StepHandler] = {
            "restore_trade_data": self._restore_trade_data,
            "disable_features": self._disable_features,
            "cleanup_migration_artifacts": self._cleanup_migration_artifacts,
        }

        self._progress: MigrationProgress | None = None
        self._cancel_requested = False
        self._committing = False

    @property
    def migrator(self) -> SchemaMigrator:
        return self._migrator

    @property
    def history(self) -> VersionHistory:
        return self._migrator.history

    @property
    def target_version(self) -> str:
        return self._migrator.config.target_version

    @property
    def step_handlers(self) -> dict[str, StepHandler]:
        return dict(self._step_handlers)

    def register_step_handler(self, step_id: str, handler: StepHandler) -> None:
        """Register (or replace) the handler for a forward step id."""
        self._step_handlers[step_id] = handler

    def register_rollback_handler(self, step_id: str, handler: StepHandler) -> None:
        """Register (or replace) the handler for a rollback step id."""
        self._rollback_handlers[step_id] = handler

    # =========================================================================
    # Queries
    # =========================================================================

    async def is_migration_needed(self) -> bool:
        """
        Check whether a migration should run.

        False when the data_migration flag is off, when the stored version
        already equals the target, or when there are no legacy records.
        """
        if not self._flags.should_perform_data_migration():
            logger.debug("Data migration flag is off")
            return False
        if await self._migrator.get_current_version() == self.target_version:
            return False
        return bool(await self._migrator.load_legacy_records())

    def get_plan(self, plan_id: str = DEFAULT_PLAN_ID) -> MigrationPlan:
        """
        Raises:
            PlanNotFoundError: If no plan is registered under plan_id.
        """
        plan = self._plans.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    async def is_rollback_available(self) -> bool:
        """True while a backup snapshot exists in the store."""
        return await self._migrator.get_backup() is not None

    async def get_migration_progress(self) -> MigrationProgress | None:
        if self._progress is not None:
            return self._progress
        stored = await self._store.get_json(MIGRATION_PROGRESS_KEY)
        if not isinstance(stored, dict):
            return None
        return MigrationProgress.from_dict(stored)

    async def get_migration_history(self) -> list[MigrationVersion]:
        return await self._migrator.get_history()

    async def reset_migration_state(self) -> None:
        """Clear persisted progress only; version history and data are untouched."""
        self._progress = None
        self._cancel_requested = False
        await self._store.delete(MIGRATION_PROGRESS_KEY)
        logger.info("Migration progress reset")

    async def cancel_migration(self) -> bool:
        """
        Stop the running execution at the next step boundary.

        The progress record is marked failed immediately. The step that is
        currently running finishes first. Once every step has finished and
        the target version is being recorded, the run can no longer be
        cancelled.

        Returns:
            True if a running execution was cancelled.
        """
        progress = self._progress
        if progress is None or progress.status is not MigrationStatus.IN_PROGRESS:
            logger.debug("No running migration to cancel")
            return False
        if self._committing:
            logger.warning("Migration %s is recording its version; not cancelled", progress.plan_id)
            return False

        self._cancel_requested = True
        progress.transition_to(MigrationStatus.FAILED)
        progress.overall_progress = 0.0
        await self._save_progress(progress)
        logger.warning("Migration %s cancelled", progress.plan_id)
        return True

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_plan(self, plan_id: str | None = None) -> MigrationResult:
        """
        Execute a migration plan.

        Args:
            plan_id: Plan to run (default plan when omitted).

        Returns:
            MigrationResult with rollback_data for rollback_migration(). When
            the store is already at (or past) the target version, nothing is
            executed and the result carries a warning and no rollback data.

        Raises:
            PlanNotFoundError: If the plan id is unknown.
            InvalidPlanError: If the plan's ordering or dependencies are
                invalid, or a step has no handler.
            StorageError: If the progress record cannot be persisted.
        """
        plan = self.get_plan(plan_id or DEFAULT_PLAN_ID)
        ensure_valid_plan(plan)
        missing = [step.id for step in plan.steps if step.id not in self._step_handlers]
        if missing:
            raise InvalidPlanError(
                plan.id, [f"no handler for step '{step_id}'" for step_id in missing]
            )

        target = self.target_version
        current = await self._migrator.get_current_version()
        if not is_newer(target, current):
            logger.info("Version %s already applied, not executing plan %s", current, plan.id)
            return MigrationResult(
                success=True,
                version=target,
                plan_id=plan.id,
                warnings=[f"Version {current} is already applied; nothing to migrate"],
            )

        with self._tracer.span(
            "journalmigrate.orchestrator.execute_plan",
            {ATTR_PLAN_ID: plan.id, ATTR_TARGET_VERSION: target},
        ):
            started = time.perf_counter()
            self._cancel_requested = False
            self._committing = False
            progress = MigrationProgress(plan_id=plan.id)
            self._progress = progress
            await self._save_progress(progress)
            progress.transition_to(MigrationStatus.IN_PROGRESS)
            await self._save_progress(progress)
            logger.info("Executing migration plan %s to version %s", plan.id, target)

            result = MigrationResult(success=True, version=target, plan_id=plan.id)
            context = StepContext(plan=plan, step_id="", result=result)
            steps = plan.ordered_steps

            for index, step in enumerate(steps):
                if self._cancel_requested:
                    break

                context.step_id = step.id
                progress.current_step = step.id
                progress.touch()
                await self._save_progress(progress)

                try:
                    with self._tracer.span(
                        "journalmigrate.orchestrator.step",
                        {ATTR_PLAN_ID: plan.id, ATTR_STEP_ID: step.id},
                    ):
                        await self._step_handlers[step.id](context)
                except Exception as e:
                    progress.failed_steps.append(step.id)
                    result.failed_steps.append(step.id)
                    if step.required:
                        logger.error("Required step %s failed: %s", step.id, e)
                        result.success = False
                        result.add_error(step.id, f"Required step failed: {e}")
                        await self._save_progress(progress)
                        break
                    logger.warning("Optional step %s failed: %s", step.id, e)
                    result.warnings.append(f"Optional step {step.id} failed: {e}")
                else:
                    progress.completed_steps.append(step.id)
                    result.executed_steps.append(step.id)
                    logger.debug("Step %s completed", step.id)

                if not self._cancel_requested:
                    progress.overall_progress = (index + 1) / len(steps) * 100
                progress.touch()
                await self._save_progress(progress)

            if self._cancel_requested:
                result.success = False
                result.add_error("cancelled", "Migration was cancelled")

            if result.success:
                # No await between the cancel check above and this flag.
                self._committing = True
                try:
                    recorded = await self.history.record(
                        target,
                        f"Executed plan {plan.id}",
                        rollback_available=self._migrator.config.enable_rollback,
                    )
                    if recorded is None:
                        result.warnings.append(
                            f"Version {target} was already applied; history left unchanged"
                        )
                    progress.transition_to(MigrationStatus.COMPLETED)
                    await self._save_progress(progress)
                finally:
                    self._committing = False
            else:
                if progress.status is MigrationStatus.IN_PROGRESS:
                    progress.transition_to(MigrationStatus.FAILED)
                await self._save_progress(progress)

            result.rollback_data = context.rollback_data
            result.duration_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "Migration plan %s finished: success=%s steps=%d/%d",
            plan.id,
            result.success,
            len(result.executed_steps),
            len(steps),
        )
        return result

    async def rollback_migration(self, result: MigrationResult) -> MigrationResult:
        """
        Revert an execution using the rollback data on its result.

        Rollback steps run in reverse order of the forward steps they undo.
        A result without rollback data yields an unsuccessful result and
        leaves the store untouched.
        """
        if not result.rollback_data:
            logger.error("Rollback requested without rollback data")
            return MigrationResult(
                success=False,
                version=await self._migrator.get_current_version(),
                plan_id=result.plan_id,
                errors=[MigrationError("rollback_error", "No rollback data available")],
            )

        plan = self.get_plan(result.plan_id or DEFAULT_PLAN_ID)
        forward_orders = {step.id: step.order for step in plan.steps}
        rollback_steps = sorted(
            plan.rollback_plan,
            key=lambda rollback: forward_orders.get(rollback.migration_step_id, 0),
            reverse=True,
        )

        rollback = MigrationResult(success=True, version=SENTINEL_VERSION, plan_id=plan.id)
        context = StepContext(
            plan=plan,
            step_id="",
            result=rollback,
            rollback_data=dict(result.rollback_data),
        )

        with self._tracer.span("journalmigrate.orchestrator.rollback", {ATTR_PLAN_ID: plan.id}):
            try:
                for rollback_step in rollback_steps:
                    handler = self._rollback_handlers.get(rollback_step.id)
                    if handler is None:
                        raise RollbackError(f"No handler for rollback step '{rollback_step.id}'")
                    context.step_id = rollback_step.id
                    with self._tracer.span(
                        "journalmigrate.orchestrator.rollback_step",
                        {ATTR_PLAN_ID: plan.id, ATTR_STEP_ID: rollback_step.id},
                    ):
                        await handler(context)
                    rollback.executed_steps.append(rollback_step.id)
            except Exception as e:
                logger.error("Rollback of plan %s failed: %s", plan.id, e)
                rollback.success = False
                rollback.failed_steps.append(context.step_id)
                rollback.version = await self._migrator.get_current_version()
                rollback.add_error("rollback_error", f"Rollback failed: {e}")
                return rollback

            progress = self._progress
            if progress is not None and progress.plan_id == plan.id:
                if progress.status.can_transition_to(MigrationStatus.ROLLED_BACK):
                    progress.transition_to(MigrationStatus.ROLLED_BACK)
            else:
                now = datetime.now(UTC)
                progress = MigrationProgress(
                    plan_id=plan.id,
                    status=MigrationStatus.ROLLED_BACK,
                    completed_at=now,
                )
                self._progress = progress
            await self._save_progress(progress)

        logger.info("Migration plan %s rolled back", plan.id)
        return rollback

    async def _save_progress(self, progress: MigrationProgress) -> None:
        await self._store.set_json(MIGRATION_PROGRESS_KEY, progress.to_dict())

    # =========================================================================
    # Built-in steps
    # =========================================================================

    async def _backup_existing_data(self, context: StepContext) -> None:
        records = await self._migrator.load_legacy_records()
        context.rollback_data["backup"] = await self._migrator.create_backup(records)
        context.result.warnings.append(f"Backed up {len(records)} trades")

    async def _validate_source_data(self, context: StepContext) -> None:
        records = await self._migrator.load_legacy_records()
        reports = self._validator.validate_records(records)
        summary = self._validator.summarize(reports)
        context.result.validation_reports.extend(report.to_dict() for report in reports)
        context.rollback_data["source_validation"] = summary.to_dict()
        if summary.invalid_records:
            context.result.warnings.append(
                f"Found {summary.invalid_records} trades with validation issues. "
                f"{summary.total_errors} errors, {summary.total_warnings} warnings."
            )

    async def _migrate_trade_structure(self, context: StepContext) -> None:
        records = await self._migrator.load_legacy_records()
        outcome = await self._migrator.migrate_many(
            records,
            create_backup=False,
            validate_after=False,
            record_version=False,
        )
        result = context.result
        result.migrated_count += outcome.migrated_count
        result.failed_count += outcome.failed_count
        result.errors.extend(outcome.errors)
        result.warnings.extend(outcome.warnings)
        context.rollback_data["migration"] = {
            "migrated_count": outcome.migrated_count,
            "failed_count": outcome.failed_count,
        }

        if not outcome.success:
            messages = ", ".join(error.message for error in outcome.errors)
            raise StepFailedError(context.step_id, messages, plan_id=context.plan.id)
        if outcome.migrated_count == 0 and outcome.failed_count > 0:
            raise StepFailedError(
                context.step_id,
                f"no trades migrated, {outcome.failed_count} failed",
                plan_id=context.plan.id,
            )
        result.warnings.append(
            f"Migrated {outcome.migrated_count} trades successfully. "
            f"{outcome.failed_count} trades failed migration."
        )

    async def _validate_migrated_data(self, context: StepContext) -> None:
        issues = await self._migrator.validate_migrated_data()
        if issues:
            context.result.warnings.append(
                f"Post-migration validation found {len(issues)} invalid trades"
            )
            context.result.warnings.extend(issues)

    async def _update_feature_flags(self, context: StepContext) -> None:
        context.rollback_data["original_flags"] = self._flags.snapshot()
        for flag, rollout in FLAG_ROLLOUT_AFTER_MIGRATION:
            await self._flags.enable_flag(flag.value, rollout)
        context.result.warnings.append("Updated feature flags for enhanced trade review")

    async def _cleanup_legacy_data(self, context: StepContext) -> None:
        legacy = await self._store.get_json(LEGACY_RECORDS_KEY)
        if legacy is None:
            return
        archive = {
            "timestamp": datetime.now(UTC).isoformat(),
            "data": legacy,
            "archived": True,
        }
        await self._store.set_json(ARCHIVED_RECORDS_KEY, archive)
        await self._store.delete(LEGACY_RECORDS_KEY)
        context.result.warnings.append("Archived legacy trade data")

    # =========================================================================
    # Built-in rollback steps
    # =========================================================================

    async def _restore_trade_data(self, context: StepContext) -> None:
        outcome = await self._migrator.rollback(context.rollback_data.get("backup"))
        if not outcome.success:
            raise RollbackError(", ".join(error.message for error in outcome.errors))
        context.result.migrated_count = outcome.migrated_count
        context.result.warnings.append(f"Restored {outcome.migrated_count} trades from backup")

    async def _disable_features(self, context: StepContext) -> None:
        original = context.rollback_data.get("original_flags")
        if original is None:
            context.result.warnings.append("No recorded feature flag state to restore")
            return
        restored = await self._flags.restore(original)
        context.result.warnings.append(f"Restored {restored} feature flags")

    async def _cleanup_migration_artifacts(self, context: StepContext) -> None:
        await self._store.delete(MIGRATION_BACKUP_KEY)
        await self._store.delete(MIGRATION_PROGRESS_KEY)

    def __repr__(self) -> str:
        return (
            f"MigrationOrchestrator(plans={sorted(self._plans)}, "
            f"target_version={self.target_version!r})"
        )


__all__ = [
    "MigrationOrchestrator",
    "StepContext",
    "StepHandler",
    "FLAG_ROLLOUT_AFTER_MIGRATION",
]
