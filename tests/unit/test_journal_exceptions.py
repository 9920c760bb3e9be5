"""
Unit tests for the exceptions module.

Tests all exception types, their messages and severities.
"""

import logging

import pytest

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


class TestErrorSeverity:
    """Tests for ErrorSeverity."""

    @pytest.mark.parametrize(
        ("severity", "level"),
        [
            (ErrorSeverity.CRITICAL, logging.CRITICAL),
            (ErrorSeverity.ERROR, logging.ERROR),
            (ErrorSeverity.WARNING, logging.WARNING),
            (ErrorSeverity.INFO, logging.INFO),
        ],
    )
    def test_log_level(self, severity: ErrorSeverity, level: int):
        assert severity.log_level == level


class TestJournalMigrateError:
    """Tests for the base JournalMigrateError."""

    def test_base_exception(self):
        """Test that JournalMigrateError can be raised with message."""
        with pytest.raises(JournalMigrateError) as exc_info:
            raise JournalMigrateError("Test error")
        assert str(exc_info.value) == "Test error"
        assert exc_info.value.message == "Test error"

    def test_to_dict(self):
        error = JournalMigrateError("Test error")
        assert error.to_dict() == {
            "type": "JournalMigrateError",
            "message": "Test error",
            "severity": "error",
        }

    @pytest.mark.parametrize(
        "exc_type",
        [
            ValidationError,
            StorageError,
            PlanError,
            PlanNotFoundError,
            InvalidPlanError,
            StepFailedError,
            RollbackError,
            InvalidStatusTransitionError,
            FeatureFlagNotFoundError,
        ],
    )
    def test_hierarchy(self, exc_type: type):
        """Every library exception derives from JournalMigrateError."""
        assert issubclass(exc_type, JournalMigrateError)


class TestValidationError:
    """Tests for ValidationError."""

    def test_attributes(self):
        error = ValidationError("bad value", record_id="t1", field="entryPrice")
        assert error.record_id == "t1"
        assert error.field == "entryPrice"
        assert error.to_dict()["field"] == "entryPrice"
        assert error.to_dict()["record_id"] == "t1"


class TestStorageError:
    """Tests for StorageError."""

    def test_message_includes_key_and_operation(self):
        error = StorageError("records.legacy", "set", "disk full")
        assert str(error) == "Store set failed for key 'records.legacy': disk full"
        assert error.key == "records.legacy"
        assert error.operation == "set"

    def test_severity_is_critical(self):
        assert StorageError("k", "get", "x").severity is ErrorSeverity.CRITICAL


class TestPlanErrors:
    """Tests for plan-related exceptions."""

    def test_plan_not_found(self):
        error = PlanNotFoundError("missing_plan")
        assert error.plan_id == "missing_plan"
        assert "missing_plan" in str(error)
        assert isinstance(error, PlanError)

    def test_invalid_plan_joins_problems(self):
        error = InvalidPlanError("p", ["first problem", "second problem"])
        assert error.problems == ["first problem", "second problem"]
        assert "first problem; second problem" in str(error)

    def test_step_failed(self):
        error = StepFailedError("migrate_trade_structure", "no records", plan_id="p")
        assert error.step_id == "migrate_trade_structure"
        assert error.plan_id == "p"
        assert str(error) == "Step 'migrate_trade_structure' failed: no records"


class TestOtherErrors:
    """Tests for the remaining exceptions."""

    def test_invalid_status_transition(self):
        error = InvalidStatusTransitionError("p", "completed", "in_progress")
        assert error.current_status == "completed"
        assert error.target_status == "in_progress"
        assert "completed -> in_progress" in str(error)

    def test_feature_flag_not_found_is_warning(self):
        error = FeatureFlagNotFoundError("unknown_flag")
        assert error.key == "unknown_flag"
        assert error.severity is ErrorSeverity.WARNING
        assert str(error) == "Feature flag 'unknown_flag' not found"
