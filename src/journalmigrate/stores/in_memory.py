"""
In-memory record store implementation.

Provides a simple, lock-guarded store for testing and development.
All data is stored in memory and lost when the process ends.
"""

from __future__ import annotations

import asyncio
import logging

from journalmigrate.observability import Tracer, create_tracer
from journalmigrate.observability.attributes import (
    ATTR_BYTES,
    ATTR_STORE_BACKEND,
    ATTR_STORE_KEY,
)
from journalmigrate.stores.interface import RecordStore

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """
    In-memory implementation of RecordStore for testing and development.

    Features:
    - Fast in-memory operations
    - asyncio.Lock around every access
    - clear() method for test cleanup
    - Optional OpenTelemetry tracing

    Limitations:
    - Data is not persisted (lost on process restart)
    - Single-process only (no shared state)

    Example:
        >>> store = InMemoryRecordStore({"records.legacy": b"[]"})
        >>> await store.get("records.legacy")
        b'[]'
    """

    def __init__(
        self,
        initial: dict[str, bytes] | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the in-memory record store.

        Args:
            initial: Optional initial contents.
            tracer: Optional custom Tracer instance. If not provided, one is
                   created based on enable_tracing setting.
            enable_tracing: Whether to enable OpenTelemetry tracing (default True).
                          Ignored if tracer is explicitly provided.
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._data: dict[str, bytes] = dict(initial or {})
        self._lock = asyncio.Lock()
        logger.debug("InMemoryRecordStore initialized with %d keys", len(self._data))

    async def get(self, key: str) -> bytes | None:
        with self._tracer.span(
            "journalmigrate.store.get",
            {ATTR_STORE_KEY: key, ATTR_STORE_BACKEND: "memory"},
        ):
            async with self._lock:
                value = self._data.get(key)
                logger.debug("Read key %s (%s)", key, "hit" if value is not None else "miss")
                return value

    async def set(self, key: str, value: bytes) -> None:
        with self._tracer.span(
            "journalmigrate.store.set",
            {ATTR_STORE_KEY: key, ATTR_STORE_BACKEND: "memory", ATTR_BYTES: len(value)},
        ):
            async with self._lock:
                self._data[key] = bytes(value)
                logger.debug("Wrote %d bytes to key %s", len(value), key)

    async def remove(self, key: str) -> bool:
        with self._tracer.span(
            "journalmigrate.store.remove",
            {ATTR_STORE_KEY: key, ATTR_STORE_BACKEND: "memory"},
        ):
            async with self._lock:
                if key in self._data:
                    del self._data[key]
                    logger.debug("Removed key %s", key)
                    return True
                return False

    async def keys(self) -> list[str]:
        async with self._lock:
            return sorted(self._data)

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return key in self._data

    async def clear(self) -> None:
        """
        Remove every key from the store.

        Useful for test cleanup between test cases.
        """
        async with self._lock:
            count = len(self._data)
            self._data.clear()
            logger.debug("Cleared %d keys from InMemoryRecordStore", count)

    @property
    def key_count(self) -> int:
        """Number of keys currently stored (diagnostic, not lock-guarded)."""
        return len(self._data)

    def __repr__(self) -> str:
        return f"InMemoryRecordStore(keys={len(self._data)})"


__all__ = ["InMemoryRecordStore"]
