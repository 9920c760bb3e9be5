"""
JSON serialization utilities for journalmigrate state.

Everything this library persists is stored as UTF-8 encoded JSON. This
module provides an encoder for the types that appear in migration state
but are not natively JSON-serializable (datetimes, UUIDs, enums, pydantic
models) and byte-level helpers for the record store.

Example:
    >>> from journalmigrate.serialization import json_dumps, json_loads
    >>> from datetime import datetime, UTC
    >>>
    >>> payload = json_dumps({"applied_at": datetime.now(UTC)})
    >>> json_loads(payload)["applied_at"]
    '2026-...'
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class JournalJSONEncoder(json.JSONEncoder):
    """
    Custom JSON encoder for migration state.

    Handles:
    - UUID objects: converted to string representation
    - datetime/date objects: converted to ISO 8601 strings
    - Enum members: converted to their value
    - pydantic models: dumped in JSON mode using field aliases
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime | date):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json", by_alias=True)
        return super().default(obj)


def json_dumps(obj: Any) -> str:
    """
    Serialize an object to a JSON string.

    Args:
        obj: Object to serialize

    Returns:
        JSON string representation
    """
    return json.dumps(obj, cls=JournalJSONEncoder)


def json_loads(s: str | bytes) -> Any:
    """
    Deserialize a JSON string (or UTF-8 bytes) to a Python object.

    Datetime strings are NOT converted back to datetime objects; the models
    that own them parse their own fields.
    """
    return json.loads(s)


def to_bytes(obj: Any) -> bytes:
    """Serialize an object to UTF-8 encoded JSON bytes for the record store."""
    return json_dumps(obj).encode("utf-8")


def from_bytes(data: bytes) -> Any:
    """Deserialize UTF-8 encoded JSON bytes read from the record store."""
    return json_loads(data.decode("utf-8"))


__all__ = [
    "JournalJSONEncoder",
    "json_dumps",
    "json_loads",
    "to_bytes",
    "from_bytes",
]
