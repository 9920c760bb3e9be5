"""
Unit tests for legacy record decoding.

Tests for:
- classify() variants
- numeric and text decoding
- tag normalization
- decode_legacy() over whole records
"""

import math

import pytest

from journalmigrate.records import (
    Err,
    Invalid,
    Missing,
    Number,
    Ok,
    Sequence,
    Text,
    classify,
    decode_legacy,
    decode_number,
    decode_tags,
    decode_text,
    normalize_tags,
)
from tests.conftest import make_legacy_record


class TestClassify:
    """Tests for raw value classification."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, Missing()),
            ("1.1", Text("1.1")),
            (2, Number(2.0)),
            (1.5, Number(1.5)),
            (["a", "b"], Sequence(("a", "b"))),
        ],
    )
    def test_variants(self, value, expected):
        assert classify(value) == expected

    def test_booleans_are_invalid(self):
        """A boolean is never accepted as a number."""
        assert isinstance(classify(True), Invalid)

    def test_non_finite_numbers_are_invalid(self):
        assert isinstance(classify(math.nan), Invalid)
        assert isinstance(classify(math.inf), Invalid)

    def test_objects_are_invalid(self):
        raw = classify({"nested": 1})
        assert isinstance(raw, Invalid)
        assert "dict" in raw.reason


class TestDecodeNumber:
    """Tests for decode_number."""

    def test_missing_and_blank_decode_to_none(self):
        assert decode_number(Missing(), "exitPrice") == Ok(None)
        assert decode_number(Text("   "), "exitPrice") == Ok(None)

    def test_numeric_string_is_converted(self):
        assert decode_number(Text(" 1.105 "), "exitPrice") == Ok(1.105)

    def test_garbage_string_is_type_error(self):
        result = decode_number(Text("abc"), "entryPrice")
        assert isinstance(result, Err)
        assert result.errors[0].code == "type_entryPrice"
        assert result.first_field == "entryPrice"

    def test_nan_string_is_rejected(self):
        """NaN must never reach a record."""
        result = decode_number(Text("nan"), "pnl")
        assert isinstance(result, Err)

    def test_sequence_is_type_error(self):
        result = decode_number(Sequence((1,)), "lotSize")
        assert isinstance(result, Err)
        assert "[1]" in result.messages()[0]


class TestDecodeText:
    """Tests for decode_text."""

    def test_integral_number_has_no_trailing_zero(self):
        assert decode_text(Number(42.0), "id") == Ok("42")

    def test_fractional_number(self):
        assert decode_text(Number(1.5), "id") == Ok("1.5")

    def test_invalid_is_type_error(self):
        result = decode_text(Invalid(True, "boolean value"), "side")
        assert isinstance(result, Err)
        assert result.errors[0].code == "type_side"


class TestTags:
    """Tests for tag normalization."""

    def test_comma_joined_string(self):
        assert decode_tags(Text("a, b,,a")) == ["a", "b"]

    def test_list_of_mixed_values(self):
        assert decode_tags(Sequence((" x ", 3, None, "x", True))) == ["x", "3"]

    @pytest.mark.parametrize("raw", [Missing(), Number(1.0), Invalid({}, "object")])
    def test_unusable_values_give_empty_list(self, raw):
        assert decode_tags(raw) == []

    def test_normalize_preserves_first_occurrence_order(self):
        assert normalize_tags(["b", "a", "b", " ", None]) == ["b", "a"]


class TestDecodeLegacy:
    """Tests for whole-record decoding."""

    def test_valid_record(self):
        result = decode_legacy(make_legacy_record())
        assert isinstance(result, Ok)
        decoded = result.value
        assert decoded["entryPrice"] == 1.10
        assert decoded["tags"] == ["a", "b"]
        assert decoded["stopLoss"] is None

    def test_numeric_strings_are_converted(self):
        result = decode_legacy(make_legacy_record(entryPrice="1.2", lotSize="0.5"))
        assert isinstance(result, Ok)
        assert result.value["entryPrice"] == 1.2
        assert result.value["lotSize"] == 0.5

    def test_unknown_fields_pass_through(self):
        result = decode_legacy(make_legacy_record(screenshots=["chart.png"]))
        assert isinstance(result, Ok)
        assert result.value["screenshots"] == ["chart.png"]

    def test_every_bad_field_is_reported(self):
        result = decode_legacy(make_legacy_record(entryPrice="abc", side=True))
        assert isinstance(result, Err)
        assert {issue.code for issue in result.errors} == {"type_entryPrice", "type_side"}

    def test_input_is_not_mutated(self):
        record = make_legacy_record(entryPrice="1.2")
        decode_legacy(record)
        assert record["entryPrice"] == "1.2"
        assert record["tags"] == "a,b"
