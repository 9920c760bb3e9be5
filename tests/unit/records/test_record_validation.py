"""
Unit tests for enhanced record validation.
"""

from typing import Any

import pytest

from journalmigrate.records import (
    EnhancedRecord,
    Err,
    Ok,
    ReviewData,
    create_default_workflow,
    is_backward_compatible,
    parse_enhanced,
    validate_enhanced,
    validate_stored,
)


def _record(**overrides: Any) -> EnhancedRecord:
    data: dict[str, Any] = {
        "id": "t1",
        "currencyPair": "EUR/USD",
        "date": "2024-03-01",
        "side": "long",
        "status": "closed",
        "entryPrice": 1.10,
        "exitPrice": 1.105,
        "lotSize": 1.0,
    }
    data.update(overrides)
    return EnhancedRecord.model_validate(data)


def _codes(result: Any) -> set[str]:
    assert isinstance(result, Err)
    return {issue.code for issue in result.errors}


class TestValidateEnhanced:
    """Tests for the enhanced record invariants."""

    def test_valid_record(self):
        record = _record()
        assert validate_enhanced(record) == Ok(record)

    @pytest.mark.parametrize("field", ["id", "currencyPair", "date", "entryPrice", "lotSize"])
    def test_required_fields(self, field: str):
        result = validate_enhanced(_record(**{field: None}))
        assert f"required_{field}" in _codes(result)

    def test_empty_account_id_is_rejected(self):
        assert "required_accountId" in _codes(validate_enhanced(_record(accountId="")))

    @pytest.mark.parametrize("price", [0, -1.0])
    def test_entry_price_must_be_positive(self, price: float):
        assert "type_entryPrice" in _codes(validate_enhanced(_record(entryPrice=price)))

    def test_lot_size_must_be_positive(self):
        assert "type_lotSize" in _codes(validate_enhanced(_record(lotSize=0)))

    def test_closed_without_exit_price(self):
        result = validate_enhanced(_record(exitPrice=None))
        assert _codes(result) == {"custom_exitPrice"}
        assert result.first_field == "exitPrice"

    def test_open_without_exit_price_is_valid(self):
        assert isinstance(validate_enhanced(_record(status="open", exitPrice=None)), Ok)

    def test_long_levels_must_bracket_entry(self):
        result = validate_enhanced(_record(stopLoss=1.12, takeProfit=1.15))
        assert _codes(result) == {"custom_levels"}

    def test_long_levels_valid(self):
        result = validate_enhanced(_record(stopLoss=1.09, takeProfit=1.12))
        assert isinstance(result, Ok)

    def test_short_levels_are_not_checked(self):
        result = validate_enhanced(_record(side="short", stopLoss=1.09, takeProfit=1.12))
        assert isinstance(result, Ok)

    def test_review_progress_must_match_stages(self):
        workflow = create_default_workflow("t1")
        workflow.overall_progress = 100.0
        record = _record(reviewData=ReviewData(review_workflow=workflow))
        assert "invalid_progress" in _codes(validate_enhanced(record))

    def test_review_workflow_requires_trade_id(self):
        workflow = create_default_workflow("")
        record = _record(reviewData=ReviewData(review_workflow=workflow))
        assert "required_tradeId" in _codes(validate_enhanced(record))

    def test_multiple_violations_are_all_reported(self):
        result = validate_enhanced(_record(id=None, lotSize=None, exitPrice=None))
        assert _codes(result) == {"required_id", "required_lotSize", "custom_exitPrice"}


class TestParseEnhanced:
    """Tests for parse_enhanced / validate_stored."""

    def test_non_object_is_rejected(self):
        result = parse_enhanced(["not", "a", "record"])
        assert _codes(result) == {"type_record"}

    def test_type_errors_become_issues(self):
        result = parse_enhanced({"id": "t1", "entryPrice": "not a number"})
        assert isinstance(result, Err)
        assert result.errors[0].field == "entryPrice"

    def test_null_tags_become_empty_list(self):
        result = parse_enhanced({"id": "t1", "tags": None})
        assert isinstance(result, Ok)
        assert result.value.tags == []

    def test_extra_fields_are_kept(self):
        result = parse_enhanced({"id": "t1", "screenshots": ["a.png"]})
        assert isinstance(result, Ok)
        assert result.value.to_wire()["screenshots"] == ["a.png"]

    def test_validate_stored_runs_both_stages(self):
        stored = _record().to_wire()
        assert isinstance(validate_stored(stored), Ok)
        stored["exitPrice"] = None
        assert _codes(validate_stored(stored)) == {"custom_exitPrice"}


class TestBackwardCompatibility:
    """Tests for is_backward_compatible."""

    def test_complete_record(self):
        assert is_backward_compatible(_record().to_wire())

    def test_missing_key(self):
        wire = _record().to_wire()
        del wire["side"]
        assert not is_backward_compatible(wire)

    def test_null_key(self):
        wire = _record().to_wire()
        wire["status"] = None
        assert not is_backward_compatible(wire)
