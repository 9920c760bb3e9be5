"""
Source-data checks and clean-up for legacy trade records.

The validator runs before the schema migration. It never mutates the
stored records; each report carries the cleaned copy it validated so the
caller can inspect what would change. Findings are advisory: the
orchestrator records them as warnings and the migrator applies its own
invariants when it transforms the records.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from journalmigrate.records.instruments import DEFAULT_LOT_TYPE, LOT_SIZES
from journalmigrate.records.results import ValidationIssue

logger = logging.getLogger(__name__)

RuleCheck = Callable[[Any, Mapping[str, Any]], bool]
Cleaner = Callable[[Any, Mapping[str, Any]], Any]

_PAIR_FORMAT = re.compile(r"^[A-Z]{3}/[A-Z]{3}$")
_NON_LETTERS = re.compile(r"[^A-Z]")


class RuleKind(Enum):
    REQUIRED = "required"
    TYPE = "type"
    RANGE = "range"
    FORMAT = "format"
    CUSTOM = "custom"


class CleanupAction(Enum):
    TRIM = "trim"
    NORMALIZE = "normalize"
    CONVERT = "convert"
    DEFAULT = "default"
    REMOVE = "remove"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ValidationRule:
    """
    A check applied to one field of a (cleaned) legacy record.

    Attributes:
        field: Field the rule applies to.
        kind: Rule kind; REQUIRED rules need no check.
        message: Message reported when the rule fails.
        severity: "error" makes the record invalid, "warning" does not.
        check: Predicate over (value, record); required for TYPE, FORMAT
            and CUSTOM rules.
        minimum: Lower bound for RANGE rules.
        maximum: Upper bound for RANGE rules.
    """

    field: str
    kind: RuleKind
    message: str
    severity: Literal["error", "warning"] = "error"
    check: RuleCheck | None = None
    minimum: float | None = None
    maximum: float | None = None

    @property
    def code(self) -> str:
        return f"{self.kind.value}_{self.field}"

    def passes(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        if self.kind is RuleKind.REQUIRED:
            return value is not None and value != ""
        if self.kind is RuleKind.RANGE:
            if not _is_number(value):
                return True
            return (self.minimum is None or value >= self.minimum) and (
                self.maximum is None or value <= self.maximum
            )
        if self.check is None:
            return True
        try:
            return bool(self.check(value, record))
        except (TypeError, ValueError) as e:
            logger.warning("Validation rule %s raised %s, treating as failed", self.code, e)
            return False


@dataclass(frozen=True)
class CleanupRule:
    """
    A normalization applied to one field before validation.

    TRIM strips whitespace from strings; REMOVE drops the field; every
    other action calls the cleaner with (value, record).
    """

    field: str
    action: CleanupAction
    cleaner: Cleaner | None = None


@dataclass
class ValidationReport:
    """
    Result of validating one legacy record.

    Attributes:
        record_id: Record id, or "unknown".
        is_valid: False when any error-severity rule failed.
        errors: Failed error-severity rules.
        warnings: Failed warning-severity rules.
        cleanup_applied: Human-readable list of clean-up changes.
        cleaned_data: The cleaned copy that was validated.
    """

    record_id: str
    is_valid: bool = True
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    cleanup_applied: list[str] = field(default_factory=list)
    cleaned_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "is_valid": self.is_valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "cleanup_applied": list(self.cleanup_applied),
            "cleaned_data": dict(self.cleaned_data),
        }


@dataclass(frozen=True)
class ValidationSummary:
    """Aggregate counts over a list of validation reports."""

    total_records: int
    valid_records: int
    invalid_records: int
    total_errors: int
    total_warnings: int
    common_errors: dict[str, int]
    common_warnings: dict[str, int]

    @classmethod
    def from_reports(cls, reports: Sequence[ValidationReport]) -> ValidationSummary:
        errors = Counter(issue.code for report in reports for issue in report.errors)
        warnings = Counter(issue.code for report in reports for issue in report.warnings)
        valid = sum(1 for report in reports if report.is_valid)
        return cls(
            total_records=len(reports),
            valid_records=valid,
            invalid_records=len(reports) - valid,
            total_errors=sum(errors.values()),
            total_warnings=sum(warnings.values()),
            common_errors=dict(errors),
            common_warnings=dict(warnings),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "valid_records": self.valid_records,
            "invalid_records": self.invalid_records,
            "total_errors": self.total_errors,
            "total_warnings": self.total_warnings,
            "common_errors": dict(self.common_errors),
            "common_warnings": dict(self.common_warnings),
        }


# =============================================================================
# Built-in rules
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_positive(value: Any) -> bool:
    return _is_number(value) and value > 0


def _is_iso_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def _stop_loss_on_risk_side(value: Any, record: Mapping[str, Any]) -> bool:
    entry = record.get("entryPrice")
    side = record.get("side")
    if not value or not entry or not side:
        return True
    return value < entry if side == "long" else value > entry


def _take_profit_on_reward_side(value: Any, record: Mapping[str, Any]) -> bool:
    entry = record.get("entryPrice")
    side = record.get("side")
    if not value or not entry or not side:
        return True
    return value > entry if side == "long" else value < entry


def _exit_after_entry(value: Any, record: Mapping[str, Any]) -> bool:
    time_in = record.get("timeIn")
    date = record.get("date")
    if not value or not time_in or not date:
        return True
    return datetime.fromisoformat(f"{date}T{value}") >= datetime.fromisoformat(f"{date}T{time_in}")


def _closed_has_exit(value: Any, record: Mapping[str, Any]) -> bool:
    if record.get("status") != "closed":
        return True
    return _is_positive(value)


DEFAULT_VALIDATION_RULES: tuple[ValidationRule, ...] = (
    ValidationRule("id", RuleKind.REQUIRED, "Trade ID is required"),
    ValidationRule("currencyPair", RuleKind.REQUIRED, "Currency pair is required"),
    ValidationRule("date", RuleKind.REQUIRED, "Trade date is required"),
    ValidationRule("entryPrice", RuleKind.REQUIRED, "Entry price is required"),
    ValidationRule("side", RuleKind.REQUIRED, "Trade side (long/short) is required"),
    ValidationRule("lotSize", RuleKind.REQUIRED, "Lot size is required"),
    ValidationRule("status", RuleKind.REQUIRED, "Trade status is required"),
    ValidationRule(
        "entryPrice",
        RuleKind.TYPE,
        "Entry price must be a positive number",
        check=lambda value, _: _is_positive(value),
    ),
    ValidationRule(
        "exitPrice",
        RuleKind.TYPE,
        "Exit price must be a positive number",
        check=lambda value, _: value is None or _is_positive(value),
    ),
    ValidationRule(
        "lotSize",
        RuleKind.TYPE,
        "Lot size must be a positive number",
        check=lambda value, _: _is_positive(value),
    ),
    ValidationRule(
        "commission",
        RuleKind.TYPE,
        "Commission must be a number",
        check=lambda value, _: _is_number(value),
    ),
    ValidationRule(
        "currencyPair",
        RuleKind.FORMAT,
        "Currency pair must be in format XXX/YYY",
        check=lambda value, _: isinstance(value, str) and bool(_PAIR_FORMAT.match(value)),
    ),
    ValidationRule(
        "date",
        RuleKind.FORMAT,
        "Date must be a valid ISO date string",
        check=lambda value, _: _is_iso_date(value),
    ),
    ValidationRule(
        "side",
        RuleKind.FORMAT,
        'Side must be either "long" or "short"',
        check=lambda value, _: value in ("long", "short"),
    ),
    ValidationRule(
        "status",
        RuleKind.FORMAT,
        'Status must be either "open" or "closed"',
        check=lambda value, _: value in ("open", "closed"),
    ),
    ValidationRule(
        "lotType",
        RuleKind.FORMAT,
        'Lot type must be "standard", "mini", or "micro"',
        check=lambda value, _: value in LOT_SIZES,
    ),
    ValidationRule(
        "exitPrice",
        RuleKind.CUSTOM,
        "Closed trades must have an exit price",
        check=_closed_has_exit,
    ),
    ValidationRule(
        "stopLoss",
        RuleKind.CUSTOM,
        "Stop loss level is invalid for trade direction",
        severity="warning",
        check=_stop_loss_on_risk_side,
    ),
    ValidationRule(
        "takeProfit",
        RuleKind.CUSTOM,
        "Take profit level is invalid for trade direction",
        severity="warning",
        check=_take_profit_on_reward_side,
    ),
    ValidationRule(
        "timeOut",
        RuleKind.CUSTOM,
        "Exit time must be after entry time",
        severity="warning",
        check=_exit_after_entry,
    ),
)


def _normalize_pair(value: Any, _: Mapping[str, Any]) -> Any:
    if not isinstance(value, str):
        return value
    letters = _NON_LETTERS.sub("", value.upper())
    if len(letters) < 6:
        return letters
    return f"{letters[:3]}/{letters[3:6]}{letters[6:]}"


def _to_number(value: Any, _: Mapping[str, Any]) -> Any:
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return value
    return value


def _default_tags(value: Any, _: Mapping[str, Any]) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if isinstance(value, list):
        return value
    return []


DEFAULT_CLEANUP_RULES: tuple[CleanupRule, ...] = (
    CleanupRule("currencyPair", CleanupAction.TRIM),
    CleanupRule("strategy", CleanupAction.TRIM),
    CleanupRule("notes", CleanupAction.TRIM),
    CleanupRule("emotions", CleanupAction.TRIM),
    CleanupRule("currencyPair", CleanupAction.NORMALIZE, _normalize_pair),
    CleanupRule("entryPrice", CleanupAction.CONVERT, _to_number),
    CleanupRule("exitPrice", CleanupAction.CONVERT, _to_number),
    CleanupRule("lotSize", CleanupAction.CONVERT, _to_number),
    CleanupRule("commission", CleanupAction.CONVERT, _to_number),
    CleanupRule(
        "commission",
        CleanupAction.DEFAULT,
        lambda value, _: 0 if value is None else value,
    ),
    CleanupRule("tags", CleanupAction.DEFAULT, _default_tags),
    CleanupRule(
        "lotType",
        CleanupAction.DEFAULT,
        lambda value, _: value if value in LOT_SIZES else DEFAULT_LOT_TYPE,
    ),
)


# =============================================================================
# Validator
# =============================================================================


class LegacyDataValidator:
    """
    Cleans and validates legacy trade records.

    Custom rules are appended after the built-in ones and can be removed
    again by field and kind (or action).

    Example:
        >>> validator = LegacyDataValidator()
        >>> report = validator.validate_record({"id": "t1", "currencyPair": " eurusd "})
        >>> report.cleaned_data["currencyPair"]
        'EUR/USD'
        >>> report.is_valid
        False
    """

    def __init__(
        self,
        validation_rules: Sequence[ValidationRule] = (),
        cleanup_rules: Sequence[CleanupRule] = (),
    ) -> None:
        self._validation_rules = [*DEFAULT_VALIDATION_RULES, *validation_rules]
        self._cleanup_rules = [*DEFAULT_CLEANUP_RULES, *cleanup_rules]

    @property
    def validation_rules(self) -> list[ValidationRule]:
        return list(self._validation_rules)

    @property
    def cleanup_rules(self) -> list[CleanupRule]:
        return list(self._cleanup_rules)

    def add_validation_rule(self, rule: ValidationRule) -> None:
        self._validation_rules.append(rule)

    def add_cleanup_rule(self, rule: CleanupRule) -> None:
        self._cleanup_rules.append(rule)

    def remove_validation_rule(self, field_name: str, kind: RuleKind) -> None:
        self._validation_rules = [
            rule
            for rule in self._validation_rules
            if not (rule.field == field_name and rule.kind is kind)
        ]

    def remove_cleanup_rule(self, field_name: str, action: CleanupAction) -> None:
        self._cleanup_rules = [
            rule
            for rule in self._cleanup_rules
            if not (rule.field == field_name and rule.action is action)
        ]

    def validate_record(self, record: Any) -> ValidationReport:
        """Clean a copy of the record, then run every validation rule over it."""
        if not isinstance(record, Mapping):
            report = ValidationReport(record_id="unknown", is_valid=False)
            report.errors.append(
                ValidationIssue(
                    f"Record must be an object, got {type(record).__name__}",
                    "type_record",
                )
            )
            return report

        record_id = record.get("id")
        report = ValidationReport(record_id=str(record_id) if record_id else "unknown")
        cleaned = self._clean(record, report)
        report.cleaned_data = cleaned

        for rule in self._validation_rules:
            if rule.passes(cleaned):
                continue
            issue = ValidationIssue(rule.message, rule.code, rule.field, rule.severity)
            if rule.severity == "error":
                report.errors.append(issue)
                report.is_valid = False
            else:
                report.warnings.append(issue)
        return report

    def validate_records(self, records: Sequence[Any]) -> list[ValidationReport]:
        return [self.validate_record(record) for record in records]

    def summarize(self, reports: Sequence[ValidationReport]) -> ValidationSummary:
        return ValidationSummary.from_reports(reports)

    def _clean(self, record: Mapping[str, Any], report: ValidationReport) -> dict[str, Any]:
        cleaned = dict(record)
        for rule in self._cleanup_rules:
            original = cleaned.get(rule.field)
            if rule.action is CleanupAction.REMOVE:
                if rule.field in cleaned:
                    del cleaned[rule.field]
                    report.cleanup_applied.append(f"Removed field: {rule.field}")
                continue

            if rule.action is CleanupAction.TRIM:
                value = original.strip() if isinstance(original, str) else original
            elif rule.cleaner is not None:
                try:
                    value = rule.cleaner(original, cleaned)
                except (TypeError, ValueError) as e:
                    logger.warning("Cleanup rule for %s failed: %s", rule.field, e)
                    continue
            else:
                continue

            present = rule.field in cleaned
            if (present and value == original) or (not present and value is None):
                continue
            cleaned[rule.field] = value
            report.cleanup_applied.append(f"Cleaned field: {rule.field}")
        return cleaned


__all__ = [
    "LegacyDataValidator",
    "ValidationRule",
    "CleanupRule",
    "RuleKind",
    "CleanupAction",
    "ValidationReport",
    "ValidationSummary",
    "DEFAULT_VALIDATION_RULES",
    "DEFAULT_CLEANUP_RULES",
]
