"""
Unit tests for the JSON serialization helpers.
"""

from datetime import UTC, date, datetime
from enum import Enum
from uuid import UUID

import pytest

from journalmigrate.records.models import TradeNotes
from journalmigrate.serialization import (
    JournalJSONEncoder,
    from_bytes,
    json_dumps,
    json_loads,
    to_bytes,
)


class Color(Enum):
    RED = "red"


class TestJournalJSONEncoder:
    """Tests for types the encoder handles beyond plain JSON."""

    def test_datetime_and_date(self):
        moment = datetime(2024, 3, 1, 9, 30, tzinfo=UTC)
        assert json_loads(json_dumps({"at": moment, "on": date(2024, 3, 1)})) == {
            "at": "2024-03-01T09:30:00+00:00",
            "on": "2024-03-01",
        }

    def test_uuid(self):
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert json_loads(json_dumps([value])) == ["12345678-1234-5678-1234-567812345678"]

    def test_enum_uses_value(self):
        assert json_dumps(Color.RED) == '"red"'

    def test_pydantic_models_use_aliases(self):
        """Models are dumped with their camelCase wire names."""
        notes = TradeNotes(general_notes="hello", version=1)
        decoded = json_loads(json_dumps(notes))
        assert decoded["generalNotes"] == "hello"
        assert "general_notes" not in decoded

    def test_unknown_types_raise(self):
        with pytest.raises(TypeError):
            json_dumps({"value": object()})

    def test_encoder_class_is_json_encoder(self):
        import json

        assert issubclass(JournalJSONEncoder, json.JSONEncoder)


class TestByteHelpers:
    """Tests for to_bytes/from_bytes."""

    def test_bytes_are_utf8(self):
        payload = to_bytes({"pair": "EUR/USD", "note": "café"})
        assert isinstance(payload, bytes)
        assert from_bytes(payload) == {"pair": "EUR/USD", "note": "café"}

    def test_invalid_utf8_raises(self):
        with pytest.raises(UnicodeDecodeError):
            from_bytes(b"\xff\xfe")
