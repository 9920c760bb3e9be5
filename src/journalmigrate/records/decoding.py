"""
Decoding of loosely-typed legacy trade records.

Legacy records arrive as plain JSON objects whose fields may be missing,
numeric strings, comma-joined lists or outright garbage. Every raw value
is first classified into a RawField variant and then decoded into a
strict value before any migration logic runs.

Example:
    >>> classify("1.105")
    Text(value='1.105')
    >>> decode_number(classify("1.105"), "exitPrice")
    Ok(value=1.105, warnings=())
    >>> decode_tags(classify("a, b,,a"))
    ['a', 'b']
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from journalmigrate.records.results import Err, Ok, Result, ValidationIssue


@dataclass(frozen=True)
class Missing:
    """Field absent or null."""


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Sequence:
    items: tuple[Any, ...]


@dataclass(frozen=True)
class Invalid:
    """Value of a type no decoder accepts."""

    raw: Any
    reason: str


RawField = Missing | Text | Number | Sequence | Invalid

NUMERIC_FIELDS: tuple[str, ...] = (
    "entryPrice",
    "exitPrice",
    "lotSize",
    "stopLoss",
    "takeProfit",
    "pips",
    "pnl",
    "commission",
    "riskAmount",
    "rMultiple",
)

TEXT_FIELDS: tuple[str, ...] = (
    "id",
    "accountId",
    "currencyPair",
    "date",
    "timeIn",
    "timeOut",
    "side",
    "lotType",
    "accountCurrency",
    "strategy",
    "notes",
    "status",
)

LIST_FIELDS: tuple[str, ...] = ("tags",)


def classify(value: Any) -> RawField:
    """Classify a raw JSON value into a RawField variant."""
    if value is None:
        return Missing()
    # bool is an int subclass; a boolean price is never meaningful
    if isinstance(value, bool):
        return Invalid(value, "boolean value")
    if isinstance(value, int | float):
        if not math.isfinite(value):
            return Invalid(value, "non-finite number")
        return Number(float(value))
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, list | tuple):
        return Sequence(tuple(value))
    return Invalid(value, f"unsupported type {type(value).__name__}")


def decode_number(raw: RawField, field_name: str) -> Result[float | None]:
    """
    Decode a numeric field.

    Missing values and blank strings decode to None. Numeric strings are
    converted. Anything else is an error, so NaN never reaches a record.
    """
    if isinstance(raw, Missing):
        return Ok(None)
    if isinstance(raw, Number):
        return Ok(raw.value)
    if isinstance(raw, Text):
        stripped = raw.value.strip()
        if not stripped:
            return Ok(None)
        try:
            number = float(stripped)
        except ValueError:
            return _type_error(field_name, "must be numeric", raw.value)
        if not math.isfinite(number):
            return _type_error(field_name, "must be a finite number", raw.value)
        return Ok(number)
    return _type_error(field_name, "must be numeric", _raw_value(raw))


def decode_text(raw: RawField, field_name: str) -> Result[str | None]:
    """
    Decode a text field.

    Numbers are accepted and rendered without a trailing ".0" when
    integral, since legacy ids were sometimes stored as numbers.
    """
    if isinstance(raw, Missing):
        return Ok(None)
    if isinstance(raw, Text):
        return Ok(raw.value)
    if isinstance(raw, Number):
        return Ok(_number_text(raw.value))
    return _type_error(field_name, "must be text", _raw_value(raw))


def decode_tags(raw: RawField) -> list[str]:
    """
    Normalize a tag field into a trimmed, deduplicated list.

    Accepts both the comma-joined string and the array encodings. Null,
    missing and unusable values decode to an empty list.
    """
    if isinstance(raw, Text):
        return normalize_tags(raw.value.split(","))
    if isinstance(raw, Sequence):
        return normalize_tags(_tag_text(item) for item in raw.items)
    return []


def normalize_tags(tags: Iterable[str | None]) -> list[str]:
    cleaned = (tag.strip() for tag in tags if tag is not None)
    return list(dict.fromkeys(tag for tag in cleaned if tag))


def decode_legacy(record: Mapping[str, Any]) -> Result[dict[str, Any]]:
    """
    Decode a legacy record into strict wire values.

    Known numeric, text and list fields are decoded. Unknown keys are
    passed through untouched so the enhanced record keeps them.

    Returns:
        Ok with a new dict keyed by wire (camelCase) names, or Err listing
        every field that could not be decoded.
    """
    decoded: dict[str, Any] = dict(record)
    errors: list[ValidationIssue] = []

    for name in NUMERIC_FIELDS:
        result = decode_number(classify(record.get(name)), name)
        if isinstance(result, Err):
            errors.extend(result.errors)
        else:
            decoded[name] = result.value

    for name in TEXT_FIELDS:
        result = decode_text(classify(record.get(name)), name)
        if isinstance(result, Err):
            errors.extend(result.errors)
        else:
            decoded[name] = result.value

    for name in LIST_FIELDS:
        decoded[name] = decode_tags(classify(record.get(name)))

    if errors:
        return Err(tuple(errors))
    return Ok(decoded)


def _tag_text(item: Any) -> str | None:
    raw = classify(item)
    if isinstance(raw, Text):
        return raw.value
    if isinstance(raw, Number):
        return _number_text(raw.value)
    return None


def _number_text(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)


def _raw_value(raw: RawField) -> Any:
    if isinstance(raw, Sequence):
        return list(raw.items)
    if isinstance(raw, Invalid):
        return raw.raw
    return None


def _type_error(field_name: str, requirement: str, value: Any) -> Err:
    return Err(
        (
            ValidationIssue(
                message=f"{field_name} {requirement}, got {value!r}",
                code=f"type_{field_name}",
                field=field_name,
            ),
        )
    )


__all__ = [
    "Missing",
    "Text",
    "Number",
    "Sequence",
    "Invalid",
    "RawField",
    "NUMERIC_FIELDS",
    "TEXT_FIELDS",
    "LIST_FIELDS",
    "classify",
    "decode_number",
    "decode_text",
    "decode_tags",
    "normalize_tags",
    "decode_legacy",
]
