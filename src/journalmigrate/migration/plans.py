"""
Migration plan definitions and structural validation.
"""

from __future__ import annotations

from journalmigrate.exceptions import InvalidPlanError
from journalmigrate.migration.models import MigrationPlan, MigrationStep, RollbackStep

DEFAULT_PLAN_ID = "trade_review_v1_migration"

DEFAULT_PLAN = MigrationPlan(
    id=DEFAULT_PLAN_ID,
    name="Trade Review System v1 Migration",
    description="Migrate trade records to the enhanced review schema",
    steps=(
        MigrationStep(
            id="backup_existing_data",
            name="Backup Existing Data",
            description="Create a backup of all legacy trade records",
            order=1,
            estimated_duration_ms=30_000,
        ),
        MigrationStep(
            id="validate_source_data",
            name="Validate Source Data",
            description="Check legacy trade records for migration compatibility",
            order=2,
            dependencies=("backup_existing_data",),
            estimated_duration_ms=60_000,
        ),
        MigrationStep(
            id="migrate_trade_structure",
            name="Migrate Trade Structure",
            description="Convert trades to the enhanced format with review data",
            order=3,
            dependencies=("validate_source_data",),
            estimated_duration_ms=120_000,
        ),
        MigrationStep(
            id="validate_migrated_data",
            name="Validate Migrated Data",
            description="Check migrated records for integrity and completeness",
            order=4,
            dependencies=("migrate_trade_structure",),
            estimated_duration_ms=60_000,
        ),
        MigrationStep(
            id="update_feature_flags",
            name="Update Feature Flags",
            description="Enable the enhanced trade review features",
            order=5,
            required=False,
            dependencies=("validate_migrated_data",),
            estimated_duration_ms=5_000,
        ),
        MigrationStep(
            id="cleanup_legacy_data",
            name="Cleanup Legacy Data",
            description="Archive legacy records after a successful migration",
            order=6,
            required=False,
            dependencies=("update_feature_flags",),
            rollback_supported=False,
            estimated_duration_ms=10_000,
        ),
    ),
    rollback_plan=(
        RollbackStep(
            id="restore_trade_data",
            name="Restore Trade Data",
            description="Restore legacy records from the backup",
            order=1,
            migration_step_id="migrate_trade_structure",
        ),
        RollbackStep(
            id="disable_features",
            name="Disable Enhanced Features",
            description="Restore feature flags to their pre-migration state",
            order=2,
            migration_step_id="update_feature_flags",
        ),
        RollbackStep(
            id="cleanup_migration_artifacts",
            name="Cleanup Migration Artifacts",
            description="Remove the backup and progress records",
            order=3,
            migration_step_id="backup_existing_data",
        ),
    ),
    estimated_duration_ms=285_000,
)


def validate_plan(plan: MigrationPlan) -> list[str]:
    """
    Check a plan's structure.

    Detects duplicate step ids and orders, dependencies that are unknown,
    self-referencing or not strictly earlier in order (which also rules out
    cycles), and rollback steps that reference unknown forward steps.

    Returns:
        Problem descriptions; empty when the plan is valid.
    """
    problems: list[str] = []
    if not plan.steps:
        problems.append("plan has no steps")

    orders: dict[str, int] = {}
    seen_orders: set[int] = set()
    for step in plan.steps:
        if step.id in orders:
            problems.append(f"duplicate step id '{step.id}'")
        if step.order in seen_orders:
            problems.append(f"duplicate step order {step.order} ('{step.id}')")
        orders[step.id] = step.order
        seen_orders.add(step.order)

    for step in plan.steps:
        for dependency in step.dependencies:
            if dependency == step.id:
                problems.append(f"step '{step.id}' depends on itself")
            elif dependency not in orders:
                problems.append(f"step '{step.id}' depends on unknown step '{dependency}'")
            elif orders[dependency] >= step.order:
                problems.append(
                    f"step '{step.id}' (order {step.order}) depends on "
                    f"'{dependency}' (order {orders[dependency]}), which does not run earlier"
                )

    rollback_ids: set[str] = set()
    for rollback in plan.rollback_plan:
        if rollback.id in rollback_ids:
            problems.append(f"duplicate rollback step id '{rollback.id}'")
        rollback_ids.add(rollback.id)
        if rollback.migration_step_id not in orders:
            problems.append(
                f"rollback step '{rollback.id}' references unknown step "
                f"'{rollback.migration_step_id}'"
            )
    return problems


def ensure_valid_plan(plan: MigrationPlan) -> None:
    """
    Raises:
        InvalidPlanError: If validate_plan reports any problem.
    """
    problems = validate_plan(plan)
    if problems:
        raise InvalidPlanError(plan.id, problems)


__all__ = ["DEFAULT_PLAN", "DEFAULT_PLAN_ID", "validate_plan", "ensure_valid_plan"]
