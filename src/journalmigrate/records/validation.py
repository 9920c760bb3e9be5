"""
Validation of enhanced trade records.

validate_enhanced is the single predicate every migrated record must
satisfy before it is written. It returns a Result instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

import pydantic

from journalmigrate.records.models import EnhancedRecord, ReviewWorkflow
from journalmigrate.records.results import Err, Ok, Result, ValidationIssue

BACKWARD_COMPATIBLE_FIELDS: tuple[str, ...] = (
    "id",
    "currencyPair",
    "date",
    "entryPrice",
    "side",
    "status",
)
"""Keys a record needs for legacy callers to read it."""


def validate_enhanced(record: EnhancedRecord) -> Result[EnhancedRecord]:
    """
    Check an enhanced record against its invariants.

    Rules:
    - id, currencyPair, date, entryPrice, lotSize and accountId are required
    - entryPrice and lotSize are finite numbers greater than zero
    - closed records carry an exit price
    - for long positions with both levels set, stopLoss < entryPrice < takeProfit
    - the review workflow progress matches its stages

    Returns:
        Ok(record) or Err with one issue per violated rule.
    """
    errors: list[ValidationIssue] = []

    required = (
        ("id", record.id, "Trade ID is required"),
        ("currencyPair", record.currency_pair, "Currency pair is required"),
        ("date", record.date, "Trade date is required"),
        ("entryPrice", record.entry_price, "Entry price is required"),
        ("lotSize", record.lot_size, "Lot size is required"),
        ("accountId", record.account_id, "Account ID is required"),
    )
    for name, value, message in required:
        if value is None or value == "":
            errors.append(ValidationIssue(message, f"required_{name}", name))

    for name, value, label in (
        ("entryPrice", record.entry_price, "Entry price"),
        ("lotSize", record.lot_size, "Lot size"),
    ):
        if value is not None and not (math.isfinite(value) and value > 0):
            errors.append(
                ValidationIssue(f"{label} must be a positive number", f"type_{name}", name)
            )

    if record.is_closed and not record.exit_price:
        errors.append(
            ValidationIssue(
                "Closed trades must have an exit price", "custom_exitPrice", "exitPrice"
            )
        )

    if (
        record.side == "long"
        and record.stop_loss
        and record.take_profit
        and record.entry_price is not None
        and (record.stop_loss >= record.entry_price or record.take_profit <= record.entry_price)
    ):
        errors.append(
            ValidationIssue(
                "Invalid stop loss or take profit levels for long position",
                "custom_levels",
                "stopLoss",
            )
        )

    if record.review_data is not None:
        errors.extend(_workflow_issues(record.review_data.review_workflow))

    if errors:
        return Err(tuple(errors))
    return Ok(record)


def parse_enhanced(data: Any) -> Result[EnhancedRecord]:
    """
    Parse a stored wire dict into an EnhancedRecord.

    Type errors reported by pydantic become ValidationIssue entries keyed
    by the offending wire field.
    """
    if not isinstance(data, Mapping):
        message = f"Record must be an object, got {type(data).__name__}"
        return Err((ValidationIssue(message, "type_record"),))
    try:
        return Ok(EnhancedRecord.model_validate(dict(data)))
    except pydantic.ValidationError as e:
        issues = tuple(
            ValidationIssue(
                message=f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}",
                code=f"type_{error['loc'][0]}" if error["loc"] else "type_record",
                field=str(error["loc"][0]) if error["loc"] else None,
            )
            for error in e.errors()
        )
        return Err(issues)


def validate_stored(data: Any) -> Result[EnhancedRecord]:
    """Parse then validate a stored record."""
    parsed = parse_enhanced(data)
    if isinstance(parsed, Err):
        return parsed
    return validate_enhanced(parsed.value)


def is_backward_compatible(record: Mapping[str, Any]) -> bool:
    """True if every key legacy readers need is present and not null."""
    return all(record.get(name) is not None for name in BACKWARD_COMPATIBLE_FIELDS)


def _workflow_issues(workflow: ReviewWorkflow) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not workflow.trade_id:
        issues.append(
            ValidationIssue("Review workflow must have tradeId", "required_tradeId", "reviewData")
        )
    all_complete = bool(workflow.stages) and all(stage.completed for stage in workflow.stages)
    if (workflow.overall_progress >= 100) != all_complete:
        issues.append(
            ValidationIssue(
                "Review progress is 100 only when every stage is complete",
                "invalid_progress",
                "reviewData",
            )
        )
    return issues


__all__ = [
    "BACKWARD_COMPATIBLE_FIELDS",
    "validate_enhanced",
    "parse_enhanced",
    "validate_stored",
    "is_backward_compatible",
]
