"""
Unit tests for LegacyDataValidator.

Tests for:
- Clean-up of legacy values before validation
- Built-in validation rules and severities
- Custom rule registration and removal
- Summaries over many reports
"""

from typing import Any

import pytest

from journalmigrate.migration import (
    CleanupAction,
    CleanupRule,
    LegacyDataValidator,
    RuleKind,
    ValidationRule,
    ValidationSummary,
)
from tests.conftest import make_legacy_record


def _codes(issues: list[Any]) -> set[str]:
    return {issue.code for issue in issues}


@pytest.fixture
def validator() -> LegacyDataValidator:
    return LegacyDataValidator()


class TestCleanup:
    """Tests for clean-up rules."""

    def test_valid_record_only_cleans_tags(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record())

        assert report.is_valid
        assert report.errors == []
        assert report.warnings == []
        assert report.cleanup_applied == ["Cleaned field: tags"]
        assert report.cleaned_data["tags"] == ["a", "b"]

    def test_pair_is_trimmed_and_normalized(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(currencyPair="  eur-usd "))
        assert report.cleaned_data["currencyPair"] == "EUR/USD"
        assert "Cleaned field: currencyPair" in report.cleanup_applied
        assert report.is_valid

    def test_numeric_strings_are_converted(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(entryPrice="1.10", lotSize="2"))
        assert report.cleaned_data["entryPrice"] == 1.10
        assert report.cleaned_data["lotSize"] == 2.0
        assert report.is_valid

    def test_defaults_are_filled(self, validator: LegacyDataValidator):
        report = validator.validate_record(
            make_legacy_record(commission=None, lotType=None, tags=None)
        )
        assert report.cleaned_data["commission"] == 0
        assert report.cleaned_data["lotType"] == "standard"
        assert report.cleaned_data["tags"] == []

    def test_absent_optional_fields_are_not_reported(self, validator: LegacyDataValidator):
        """Trimming a field that is not there is not a clean-up."""
        report = validator.validate_record(make_legacy_record(strategy=None, notes=None))
        assert "Cleaned field: strategy" not in report.cleanup_applied
        assert "strategy" not in report.cleaned_data

    def test_input_is_not_mutated(self, validator: LegacyDataValidator):
        record = make_legacy_record(currencyPair=" eurusd ")
        validator.validate_record(record)
        assert record["currencyPair"] == " eurusd "

    def test_remove_action(self):
        validator = LegacyDataValidator(
            cleanup_rules=[CleanupRule("emotions", CleanupAction.REMOVE)]
        )
        report = validator.validate_record(make_legacy_record(emotions="calm"))
        assert "emotions" not in report.cleaned_data
        assert "Removed field: emotions" in report.cleanup_applied


class TestValidationRules:
    """Tests for the built-in rules."""

    def test_missing_required_fields(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(side=None, status=None))
        assert not report.is_valid
        assert {"required_side", "required_status"} <= _codes(report.errors)
        assert report.record_id == "t1"

    def test_invalid_formats(self, validator: LegacyDataValidator):
        report = validator.validate_record(
            make_legacy_record(currencyPair="EURO", date="yesterday", side="buy")
        )
        assert {"format_currencyPair", "format_date", "format_side"} <= _codes(report.errors)

    def test_non_positive_prices(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(entryPrice=-1, lotSize="abc"))
        assert {"type_entryPrice", "type_lotSize"} <= _codes(report.errors)

    def test_closed_trade_needs_exit(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(exitPrice=None))
        assert _codes(report.errors) == {"custom_exitPrice"}

    def test_open_trade_without_exit_is_valid(self, validator: LegacyDataValidator):
        report = validator.validate_record(
            make_legacy_record(status="open", exitPrice=None, timeOut=None)
        )
        assert report.is_valid

    def test_level_problems_are_warnings(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(stopLoss=1.2, takeProfit=1.0))
        assert report.is_valid
        assert _codes(report.warnings) == {"custom_stopLoss", "custom_takeProfit"}

    def test_short_levels(self, validator: LegacyDataValidator):
        report = validator.validate_record(
            make_legacy_record(side="short", stopLoss=1.2, takeProfit=1.0, exitPrice=1.05)
        )
        assert report.warnings == []

    def test_exit_before_entry_is_warning(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(timeOut="08:00"))
        assert report.is_valid
        assert _codes(report.warnings) == {"custom_timeOut"}

    def test_unparseable_time_is_warning(self, validator: LegacyDataValidator):
        report = validator.validate_record(make_legacy_record(timeOut="late"))
        assert _codes(report.warnings) == {"custom_timeOut"}

    def test_non_object_record(self, validator: LegacyDataValidator):
        report = validator.validate_record("not a record")
        assert not report.is_valid
        assert report.record_id == "unknown"
        assert _codes(report.errors) == {"type_record"}


class TestCustomRules:
    """Tests for adding and removing rules."""

    def test_add_and_remove_validation_rule(self, validator: LegacyDataValidator):
        rule = ValidationRule(
            "strategy",
            RuleKind.CUSTOM,
            "Strategy must be set",
            check=lambda value, _: bool(value),
        )
        validator.add_validation_rule(rule)
        report = validator.validate_record(make_legacy_record(strategy=None))
        assert "custom_strategy" in _codes(report.errors)

        validator.remove_validation_rule("strategy", RuleKind.CUSTOM)
        assert validator.validate_record(make_legacy_record(strategy=None)).is_valid

    def test_remove_builtin_rule(self, validator: LegacyDataValidator):
        validator.remove_validation_rule("exitPrice", RuleKind.CUSTOM)
        assert validator.validate_record(make_legacy_record(exitPrice=None)).is_valid

    def test_range_rule(self, validator: LegacyDataValidator):
        validator.add_validation_rule(
            ValidationRule("lotSize", RuleKind.RANGE, "Lot size too large", maximum=10)
        )
        report = validator.validate_record(make_legacy_record(lotSize=50))
        assert "range_lotSize" in _codes(report.errors)

    def test_rule_that_raises_fails(self, validator: LegacyDataValidator):
        validator.add_validation_rule(
            ValidationRule(
                "pnl",
                RuleKind.CUSTOM,
                "pnl check",
                severity="warning",
                check=lambda value, _: value > "x",
            )
        )
        report = validator.validate_record(make_legacy_record())
        assert "custom_pnl" in _codes(report.warnings)

    def test_custom_cleanup_rule(self, validator: LegacyDataValidator):
        validator.add_cleanup_rule(
            CleanupRule("strategy", CleanupAction.CUSTOM, lambda value, _: value.upper())
        )
        report = validator.validate_record(make_legacy_record())
        assert report.cleaned_data["strategy"] == "BREAKOUT"

        validator.remove_cleanup_rule("strategy", CleanupAction.CUSTOM)
        assert validator.validate_record(make_legacy_record()).cleaned_data["strategy"] == (
            "breakout"
        )

    def test_rules_are_copies(self, validator: LegacyDataValidator):
        rules = validator.validation_rules
        rules.clear()
        assert validator.validation_rules


class TestSummary:
    """Tests for ValidationSummary."""

    def test_summarize(self, validator: LegacyDataValidator):
        reports = validator.validate_records(
            [
                make_legacy_record("t1"),
                make_legacy_record("t2", exitPrice=None),
                make_legacy_record("t3", exitPrice=None, timeOut="08:00"),
            ]
        )
        summary = validator.summarize(reports)

        assert summary == ValidationSummary(
            total_records=3,
            valid_records=1,
            invalid_records=2,
            total_errors=2,
            total_warnings=1,
            common_errors={"custom_exitPrice": 2},
            common_warnings={"custom_timeOut": 1},
        )
        assert summary.to_dict()["invalid_records"] == 2

    def test_report_to_dict(self, validator: LegacyDataValidator):
        data = validator.validate_record(make_legacy_record(exitPrice=None)).to_dict()
        assert data["is_valid"] is False
        assert data["errors"][0]["code"] == "custom_exitPrice"
