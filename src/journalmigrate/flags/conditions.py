"""
Condition evaluation for feature flags.

Conditions fail closed: an unknown type or operator, a malformed custom
condition, or values that cannot be compared never enable a flag.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from journalmigrate.flags.models import (
    ConditionOperator,
    ConditionType,
    FeatureFlagContext,
    FlagCondition,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _greater_than(actual: Any, expected: Any) -> bool:
    return bool(actual > expected)


def _less_than(actual: Any, expected: Any) -> bool:
    return bool(actual < expected)


def _contains(actual: Any, expected: Any) -> bool:
    return isinstance(actual, str) and isinstance(expected, str) and expected in actual


_OPERATORS: dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS: lambda actual, expected: actual == expected,
    ConditionOperator.NOT_EQUALS: lambda actual, expected: actual != expected,
    ConditionOperator.GREATER_THAN: _greater_than,
    ConditionOperator.LESS_THAN: _less_than,
    ConditionOperator.IN: lambda actual, expected: (
        isinstance(expected, list) and actual in expected
    ),
    ConditionOperator.NOT_IN: lambda actual, expected: (
        isinstance(expected, list) and actual not in expected
    ),
    ConditionOperator.CONTAINS: _contains,
}


def create_condition(
    condition_type: ConditionType | str,
    operator: ConditionOperator | str,
    value: Any,
) -> FlagCondition:
    """
    Build a FlagCondition from enum members or raw strings.

    Example:
        >>> create_condition(ConditionType.ACCOUNT_TYPE, ConditionOperator.EQUALS, "live")
        FlagCondition(type='account_type', operator='equals', value='live')
    """
    return FlagCondition(
        type=condition_type.value if isinstance(condition_type, ConditionType) else condition_type,
        operator=operator.value if isinstance(operator, ConditionOperator) else operator,
        value=value,
    )


def _resolve(condition: FlagCondition, context: FeatureFlagContext) -> tuple[Any, Any]:
    """Return (context value, expected value), or _MISSING when unresolvable."""
    try:
        condition_type = ConditionType(condition.type)
    except ValueError:
        return _MISSING, _MISSING

    if condition_type is ConditionType.USER_ID:
        return context.user_id, condition.value
    if condition_type is ConditionType.ACCOUNT_TYPE:
        return context.account_type, condition.value
    if condition_type is ConditionType.TRADE_COUNT:
        return context.trade_count, condition.value
    if condition_type is ConditionType.ACCOUNT_AGE:
        return context.account_age, condition.value

    target = condition.value
    if not isinstance(target, dict) or "key" not in target:
        return _MISSING, _MISSING
    return context.custom_attributes.get(target["key"]), target.get("value")


def evaluate_condition(condition: FlagCondition, context: FeatureFlagContext) -> bool:
    """Evaluate one condition against a context."""
    try:
        operator = ConditionOperator(condition.operator)
    except ValueError:
        logger.debug("Unknown condition operator %r, treating as unsatisfied", condition.operator)
        return False

    actual, expected = _resolve(condition, context)
    if actual is _MISSING:
        logger.debug("Unresolvable condition %r, treating as unsatisfied", condition)
        return False

    if operator in (ConditionOperator.GREATER_THAN, ConditionOperator.LESS_THAN) and (
        actual is None or expected is None
    ):
        return False

    try:
        return _OPERATORS[operator](actual, expected)
    except TypeError:
        return False


def evaluate_conditions(
    conditions: Iterable[FlagCondition],
    context: FeatureFlagContext,
) -> bool:
    """True if every condition holds; an empty list always holds."""
    return all(evaluate_condition(condition, context) for condition in conditions)


__all__ = [
    "create_condition",
    "evaluate_condition",
    "evaluate_conditions",
]
