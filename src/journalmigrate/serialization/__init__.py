"""
Serialization utilities for journalmigrate.

Provides JSON helpers for datetimes, UUIDs, enums and pydantic models, plus
byte-level helpers used by the record stores.
"""

from journalmigrate.serialization.json import (
    JournalJSONEncoder,
    from_bytes,
    json_dumps,
    json_loads,
    to_bytes,
)

__all__ = [
    "JournalJSONEncoder",
    "json_dumps",
    "json_loads",
    "to_bytes",
    "from_bytes",
]
