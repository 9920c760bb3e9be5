"""
Data models for journal schema migrations.

Models in this module:

Enums:
    - MigrationStatus: Lifecycle of a plan execution

Configuration:
    - MigrationConfig: Batch size and safety switches for a migration run

Core Models:
    - MigrationVersion: One entry of the applied-version history
    - MigrationError: A per-record (or per-batch) failure
    - MigrationResult: Outcome of a migration or rollback run
    - MigrationStep / RollbackStep / MigrationPlan: Declarative plan definition
    - MigrationProgress: Persisted progress of a plan execution
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from journalmigrate.exceptions import InvalidStatusTransitionError

SENTINEL_VERSION = "0.0.0"
"""Version reported when no migration has ever been applied."""

CURRENT_SCHEMA_VERSION = "1.0.0"
"""Schema version produced by the enhanced record migration."""


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class MigrationStatus(Enum):
    """
    Lifecycle of a migration plan execution.

    State machine transitions:
        NOT_STARTED -> IN_PROGRESS -> COMPLETED
                            |
                            +------> FAILED
                            +------> ROLLED_BACK
        COMPLETED / FAILED -------> ROLLED_BACK (rollback of a finished run)

    Attributes:
        NOT_STARTED: Progress created but no step has run.
        IN_PROGRESS: Steps are executing.
        COMPLETED: Every required step succeeded.
        FAILED: A required step failed or the run was cancelled.
        ROLLED_BACK: The run was reverted from its backup.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"

    @property
    def is_terminal(self) -> bool:
        """
        Check if an execution in this status has finished.

        Returns:
            True for COMPLETED, FAILED and ROLLED_BACK.
        """
        return self in (
            MigrationStatus.COMPLETED,
            MigrationStatus.FAILED,
            MigrationStatus.ROLLED_BACK,
        )

    def can_transition_to(self, target: MigrationStatus) -> bool:
        """
        Check if transition to target status is valid.

        Args:
            target: The target status to transition to.

        Returns:
            True if the transition is valid.
        """
        valid_transitions: dict[MigrationStatus, tuple[MigrationStatus, ...]] = {
            MigrationStatus.NOT_STARTED: (MigrationStatus.IN_PROGRESS,),
            MigrationStatus.IN_PROGRESS: (
                MigrationStatus.COMPLETED,
                MigrationStatus.FAILED,
                MigrationStatus.ROLLED_BACK,
            ),
            MigrationStatus.COMPLETED: (MigrationStatus.ROLLED_BACK,),
            MigrationStatus.FAILED: (MigrationStatus.ROLLED_BACK,),
        }
        return target in valid_transitions.get(self, ())


@dataclass(frozen=True)
class MigrationConfig:
    """
    Configuration for a migration run.

    This class is immutable (frozen) to prevent accidental modification
    during migration.

    Attributes:
        batch_size: Records per batch (default 100).
        enable_rollback: Whether history entries advertise rollback (default True).
        validate_after_migration: Re-validate written records (default True).
        backup_before_migration: Snapshot legacy records first (default True).
        skip_validation_errors: Persist invalid records with a warning
            instead of failing them (default False).
        target_version: Version recorded on success (default "1.0.0").

    Example:
        >>> config = MigrationConfig(batch_size=50, skip_validation_errors=True)
        >>> config.batch_size
        50
    """

    batch_size: int = 100
    enable_rollback: bool = True
    validate_after_migration: bool = True
    backup_before_migration: bool = True
    skip_validation_errors: bool = False
    target_version: str = CURRENT_SCHEMA_VERSION

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")

        if not self.target_version or self.target_version == SENTINEL_VERSION:
            raise ValueError(
                f"target_version must be a non-sentinel version, got {self.target_version!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON storage.

        Returns:
            Dictionary representation suitable for JSON serialization.
        """
        return {
            "batch_size": self.batch_size,
            "enable_rollback": self.enable_rollback,
            "validate_after_migration": self.validate_after_migration,
            "backup_before_migration": self.backup_before_migration,
            "skip_validation_errors": self.skip_validation_errors,
            "target_version": self.target_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        """
        Create from dictionary.

        Args:
            data: Dictionary containing configuration values.

        Returns:
            MigrationConfig instance.
        """
        return cls(
            batch_size=data.get("batch_size", 100),
            enable_rollback=data.get("enable_rollback", True),
            validate_after_migration=data.get("validate_after_migration", True),
            backup_before_migration=data.get("backup_before_migration", True),
            skip_validation_errors=data.get("skip_validation_errors", False),
            target_version=data.get("target_version", CURRENT_SCHEMA_VERSION),
        )


@dataclass(frozen=True)
class MigrationVersion:
    """
    One applied schema version.

    Attributes:
        version: Semantic version string.
        description: Human-readable description.
        applied_at: When the version was applied.
        rollback_available: Whether rollback data was kept for it.
    """

    version: str
    description: str
    applied_at: datetime
    rollback_available: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "description": self.description,
            "applied_at": _format_datetime(self.applied_at),
            "rollback_available": self.rollback_available,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationVersion:
        applied_at = _parse_datetime(data.get("applied_at"))
        return cls(
            version=str(data["version"]),
            description=data.get("description", ""),
            applied_at=applied_at or datetime.now(UTC),
            rollback_available=bool(data.get("rollback_available", False)),
        )


@dataclass(frozen=True)
class MigrationError:
    """
    A failure recorded on a MigrationResult.

    Attributes:
        record_id: ID of the failing record, or a marker such as "batch_error".
        message: What went wrong.
        severity: "error" or "warning".
        field: Offending field, if known.
    """

    record_id: str
    message: str
    severity: Literal["error", "warning"] = "error"
    field: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "message": self.message,
            "severity": self.severity,
            "field": self.field,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationError:
        return cls(
            record_id=str(data.get("record_id", "unknown")),
            message=data.get("message", ""),
            severity=data.get("severity", "error"),
            field=data.get("field"),
        )


@dataclass
class MigrationResult:
    """
    Outcome of a migration, plan execution or rollback.

    Attributes:
        success: Whether the run achieved its goal.
        version: Version the run moved to (target, or the sentinel for rollbacks).
        migrated_count: Records written (or restored, for rollbacks).
        failed_count: Records that were not written.
        errors: Per-record and per-batch failures.
        warnings: Non-fatal observations.
        rollback_data: Snapshot needed to revert the run, if any.
        plan_id: Plan executed, for orchestrator results.
        executed_steps: Step ids that completed.
        failed_steps: Step ids that failed.
        validation_reports: Source and post-migration validation reports.
        duration_ms: Wall-clock duration in milliseconds.
    """

    success: bool
    version: str
    migrated_count: int = 0
    failed_count: int = 0
    errors: list[MigrationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    rollback_data: dict[str, Any] | None = None
    plan_id: str | None = None
    executed_steps: list[str] = field(default_factory=list)
    failed_steps: list[str] = field(default_factory=list)
    validation_reports: list[dict[str, Any]] = field(default_factory=list)
    duration_ms: float = 0.0

    def add_error(
        self,
        record_id: str,
        message: str,
        *,
        field: str | None = None,
        severity: Literal["error", "warning"] = "error",
    ) -> None:
        self.errors.append(MigrationError(record_id, message, severity, field))

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation suitable for JSON.
        """
        return {
            "success": self.success,
            "version": self.version,
            "migrated_count": self.migrated_count,
            "failed_count": self.failed_count,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": list(self.warnings),
            "rollback_data": self.rollback_data,
            "plan_id": self.plan_id,
            "executed_steps": list(self.executed_steps),
            "failed_steps": list(self.failed_steps),
            "validation_reports": list(self.validation_reports),
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationResult:
        return cls(
            success=bool(data.get("success", False)),
            version=data.get("version", SENTINEL_VERSION),
            migrated_count=data.get("migrated_count", 0),
            failed_count=data.get("failed_count", 0),
            errors=[MigrationError.from_dict(e) for e in data.get("errors", [])],
            warnings=list(data.get("warnings", [])),
            rollback_data=data.get("rollback_data"),
            plan_id=data.get("plan_id"),
            executed_steps=list(data.get("executed_steps", [])),
            failed_steps=list(data.get("failed_steps", [])),
            validation_reports=list(data.get("validation_reports", [])),
            duration_ms=data.get("duration_ms", 0.0),
        )


@dataclass(frozen=True)
class MigrationStep:
    """
    A step of a migration plan.

    Attributes:
        id: Step identifier; also selects the step handler.
        name: Display name.
        description: What the step does.
        order: Execution position; unique within a plan.
        required: Whether a failure aborts the plan.
        dependencies: Step ids that must run earlier.
        rollback_supported: Whether a rollback step undoes this step.
        estimated_duration_ms: Rough duration for progress display.
    """

    id: str
    name: str
    order: int
    description: str = ""
    required: bool = True
    dependencies: tuple[str, ...] = ()
    rollback_supported: bool = True
    estimated_duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "order": self.order,
            "required": self.required,
            "dependencies": list(self.dependencies),
            "rollback_supported": self.rollback_supported,
            "estimated_duration_ms": self.estimated_duration_ms,
        }


@dataclass(frozen=True)
class RollbackStep:
    """
    A step of a plan's rollback.

    Attributes:
        id: Rollback step identifier; also selects the rollback handler.
        name: Display name.
        order: Position in the rollback listing.
        migration_step_id: Forward step this step undoes.
        description: What the step does.
    """

    id: str
    name: str
    order: int
    migration_step_id: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "order": self.order,
            "migration_step_id": self.migration_step_id,
        }


@dataclass(frozen=True)
class MigrationPlan:
    """
    Declarative, ordered migration plan.

    Attributes:
        id: Plan identifier.
        name: Display name.
        description: What the plan migrates.
        steps: Forward steps.
        rollback_plan: Steps that revert the forward steps.
        estimated_duration_ms: Rough total duration.
    """

    id: str
    name: str
    description: str
    steps: tuple[MigrationStep, ...]
    rollback_plan: tuple[RollbackStep, ...] = ()
    estimated_duration_ms: int = 0

    @property
    def ordered_steps(self) -> list[MigrationStep]:
        return sorted(self.steps, key=lambda step: step.order)

    def get_step(self, step_id: str) -> MigrationStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [step.to_dict() for step in self.steps],
            "rollback_plan": [step.to_dict() for step in self.rollback_plan],
            "estimated_duration_ms": self.estimated_duration_ms,
        }


@dataclass
class MigrationProgress:
    """
    Persisted progress of a plan execution.

    Written to migration.progress after every transition so a caller (or a
    restarted process) can inspect how far a run got.

    Attributes:
        plan_id: Plan being executed.
        status: Current lifecycle status.
        current_step: Step running now (or last run).
        completed_steps: Step ids that finished.
        failed_steps: Step ids that failed.
        overall_progress: Completed share of steps, 0-100.
        started_at: When execution began.
        updated_at: Last change.
        completed_at: When a terminal status was reached.
    """

    plan_id: str
    status: MigrationStatus = MigrationStatus.NOT_STARTED
    current_step: str = ""
    completed_steps: list[str] = field(default_factory=list)
    failed_steps: list[str] = field(default_factory=list)
    overall_progress: float = 0.0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def transition_to(self, target: MigrationStatus) -> None:
        """
        Move to a new status.

        Raises:
            InvalidStatusTransitionError: If the state machine forbids it.
        """
        if not self.status.can_transition_to(target):
            raise InvalidStatusTransitionError(self.plan_id, self.status.value, target.value)
        now = datetime.now(UTC)
        self.status = target
        self.updated_at = now
        if target.is_terminal:
            self.completed_at = now

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "status": self.status.value,
            "current_step": self.current_step,
            "completed_steps": list(self.completed_steps),
            "failed_steps": list(self.failed_steps),
            "overall_progress": self.overall_progress,
            "started_at": _format_datetime(self.started_at),
            "updated_at": _format_datetime(self.updated_at),
            "completed_at": _format_datetime(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationProgress:
        now = datetime.now(UTC)
        return cls(
            plan_id=data["plan_id"],
            status=MigrationStatus(data.get("status", MigrationStatus.NOT_STARTED.value)),
            current_step=data.get("current_step", ""),
            completed_steps=list(data.get("completed_steps", [])),
            failed_steps=list(data.get("failed_steps", [])),
            overall_progress=float(data.get("overall_progress", 0.0)),
            started_at=_parse_datetime(data.get("started_at")) or now,
            updated_at=_parse_datetime(data.get("updated_at")) or now,
            completed_at=_parse_datetime(data.get("completed_at")),
        )


__all__ = [
    "SENTINEL_VERSION",
    "CURRENT_SCHEMA_VERSION",
    "MigrationStatus",
    "MigrationConfig",
    "MigrationVersion",
    "MigrationError",
    "MigrationResult",
    "MigrationStep",
    "RollbackStep",
    "MigrationPlan",
    "MigrationProgress",
]
