"""
Library exceptions for the journalmigrate package.

Exception Hierarchy:
    JournalMigrateError (base)
    +-- ValidationError
    +-- StorageError
    +-- PlanError
    |   +-- PlanNotFoundError
    |   +-- InvalidPlanError
    |   +-- StepFailedError
    +-- RollbackError
    +-- InvalidStatusTransitionError
    +-- FeatureFlagNotFoundError

Every exception carries an ErrorSeverity so callers can pick a log level
or decide whether an operator needs to be alerted.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """
    Severity level of migration errors.

    Attributes:
        CRITICAL: Data may be inconsistent and needs immediate attention.
        ERROR: The operation failed and did not take effect.
        WARNING: Something was skipped or degraded but the operation went on.
        INFO: Informational condition, not a failure.
    """

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def log_level(self) -> int:
        """
        Get the corresponding Python logging level.

        Returns:
            Python logging level constant.
        """
        level_map = {
            ErrorSeverity.CRITICAL: logging.CRITICAL,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.INFO: logging.INFO,
        }
        return level_map[self]


class JournalMigrateError(Exception):
    """Base exception for the journalmigrate library."""

    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for logging and results."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
        }


class ValidationError(JournalMigrateError):
    """
    Raised when a record violates the enhanced record invariants.

    Inside the batch loop validation failures are returned as values rather
    than raised; this exception is used where there is no result object to
    carry the failure (e.g. review workflow updates).

    Attributes:
        record_id: ID of the offending record, if known.
        field: Name of the offending field, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        record_id: str | None = None,
        field: str | None = None,
    ) -> None:
        self.record_id = record_id
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["record_id"] = self.record_id
        result["field"] = self.field
        return result


class StorageError(JournalMigrateError):
    """
    Raised when the record store adapter fails to read or write.

    Attributes:
        key: The store key being accessed.
        operation: The store operation ("get", "set", "remove", "keys").
    """

    severity = ErrorSeverity.CRITICAL

    def __init__(self, key: str, operation: str, message: str) -> None:
        self.key = key
        self.operation = operation
        super().__init__(f"Store {operation} failed for key '{key}': {message}")


class PlanError(JournalMigrateError):
    """Base exception for migration plan problems."""

    def __init__(self, message: str, *, plan_id: str | None = None) -> None:
        self.plan_id = plan_id
        super().__init__(message)


class PlanNotFoundError(PlanError):
    """Raised when a migration plan id is not registered."""

    def __init__(self, plan_id: str) -> None:
        super().__init__(f"Migration plan '{plan_id}' not found", plan_id=plan_id)


class InvalidPlanError(PlanError):
    """
    Raised when a plan's step ordering or dependency graph is invalid.

    Attributes:
        problems: Every problem found while validating the plan.
    """

    def __init__(self, plan_id: str, problems: list[str]) -> None:
        self.problems = problems
        super().__init__(
            f"Migration plan '{plan_id}' is invalid: {'; '.join(problems)}",
            plan_id=plan_id,
        )


class StepFailedError(PlanError):
    """
    Raised by a step handler when a migration step cannot complete.

    Attributes:
        step_id: ID of the failing step.
    """

    def __init__(self, step_id: str, message: str, *, plan_id: str | None = None) -> None:
        self.step_id = step_id
        super().__init__(f"Step '{step_id}' failed: {message}", plan_id=plan_id)


class RollbackError(JournalMigrateError):
    """Raised when there is no usable snapshot to roll back to."""


class InvalidStatusTransitionError(JournalMigrateError):
    """
    Raised when migration progress is moved to a status the state machine forbids.

    Attributes:
        current_status: Status value before the attempted transition.
        target_status: Status value that was attempted.
    """

    def __init__(self, plan_id: str, current_status: str, target_status: str) -> None:
        self.plan_id = plan_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Invalid status transition for plan '{plan_id}': {current_status} -> {target_status}"
        )


class FeatureFlagNotFoundError(JournalMigrateError):
    """Raised when mutating a feature flag that does not exist."""

    severity = ErrorSeverity.WARNING

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Feature flag '{key}' not found")


__all__ = [
    "ErrorSeverity",
    "JournalMigrateError",
    "ValidationError",
    "StorageError",
    "PlanError",
    "PlanNotFoundError",
    "InvalidPlanError",
    "StepFailedError",
    "RollbackError",
    "InvalidStatusTransitionError",
    "FeatureFlagNotFoundError",
]
