"""
Unit tests for feature flag condition evaluation.
"""

import pytest

from journalmigrate.flags import (
    ConditionOperator,
    ConditionType,
    FeatureFlagContext,
    FlagCondition,
    create_condition,
    evaluate_condition,
    evaluate_conditions,
)


class TestCreateCondition:
    """Tests for create_condition."""

    def test_enum_members_are_stored_as_values(self):
        condition = create_condition(ConditionType.ACCOUNT_TYPE, ConditionOperator.EQUALS, "live")
        assert condition == FlagCondition(type="account_type", operator="equals", value="live")

    def test_raw_strings_are_accepted(self):
        condition = create_condition("trade_count", "greater_than", 10)
        assert condition.type == "trade_count"
        assert condition.operator == "greater_than"


class TestEvaluateCondition:
    """Tests for each operator and attribute."""

    @pytest.mark.parametrize(
        ("condition_type", "operator", "value", "expected"),
        [
            (ConditionType.USER_ID, ConditionOperator.EQUALS, "u-1", True),
            (ConditionType.USER_ID, ConditionOperator.NOT_EQUALS, "u-1", False),
            (ConditionType.ACCOUNT_TYPE, ConditionOperator.IN, ["live", "demo"], True),
            (ConditionType.ACCOUNT_TYPE, ConditionOperator.NOT_IN, ["demo"], True),
            (ConditionType.TRADE_COUNT, ConditionOperator.GREATER_THAN, 10, True),
            (ConditionType.TRADE_COUNT, ConditionOperator.LESS_THAN, 10, False),
            (ConditionType.ACCOUNT_AGE, ConditionOperator.LESS_THAN, 30, True),
        ],
    )
    def test_operators(self, condition_type, operator, value, expected):
        context = FeatureFlagContext(
            user_id="u-1",
            account_type="live",
            trade_count=25,
            account_age=7,
        )
        condition = create_condition(condition_type, operator, value)
        assert evaluate_condition(condition, context) is expected

    def test_custom_attribute(self):
        context = FeatureFlagContext(custom_attributes={"region": "emea-west"})
        condition = create_condition(
            ConditionType.CUSTOM,
            ConditionOperator.CONTAINS,
            {"key": "region", "value": "emea"},
        )
        assert evaluate_condition(condition, context) is True

    def test_contains_requires_strings(self):
        context = FeatureFlagContext(custom_attributes={"tags": ["a"]})
        condition = create_condition("custom", "contains", {"key": "tags", "value": "a"})
        assert evaluate_condition(condition, context) is False


class TestConditionsFailClosed:
    """Malformed or unknown conditions never hold."""

    def test_unknown_operator(self):
        condition = FlagCondition(type="user_id", operator="matches_regex", value=".*")
        assert evaluate_condition(condition, FeatureFlagContext(user_id="u-1")) is False

    def test_unknown_type(self):
        condition = FlagCondition(type="country", operator="equals", value="DE")
        assert evaluate_condition(condition, FeatureFlagContext()) is False

    @pytest.mark.parametrize("value", [None, "region", {"value": "emea"}])
    def test_malformed_custom_condition(self, value):
        condition = FlagCondition(type="custom", operator="equals", value=value)
        context = FeatureFlagContext(custom_attributes={"region": "emea"})
        assert evaluate_condition(condition, context) is False

    def test_comparison_with_missing_context_value(self):
        condition = create_condition("trade_count", "greater_than", 0)
        assert evaluate_condition(condition, FeatureFlagContext()) is False

    def test_incomparable_values(self):
        condition = create_condition("trade_count", "greater_than", "ten")
        assert evaluate_condition(condition, FeatureFlagContext(trade_count=5)) is False

    def test_in_requires_list(self):
        condition = create_condition("account_type", "in", "live")
        assert evaluate_condition(condition, FeatureFlagContext(account_type="live")) is False


class TestEvaluateConditions:
    """Tests for conjunction of conditions."""

    def test_empty_list_holds(self):
        assert evaluate_conditions([], FeatureFlagContext()) is True

    def test_all_must_hold(self):
        context = FeatureFlagContext(account_type="live", trade_count=3)
        conditions = [
            create_condition("account_type", "equals", "live"),
            create_condition("trade_count", "greater_than", 5),
        ]
        assert evaluate_conditions(conditions, context) is False
        assert evaluate_conditions(conditions[:1], context) is True
