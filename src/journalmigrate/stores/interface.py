"""
Record store interface.

The record store is the narrow key/value contract the migration core
depends on. Values are opaque bytes; this library always writes UTF-8
encoded JSON and reads it back through the get_json/set_json helpers.

No transactional guarantees are assumed. The migration core relies on
strictly sequential, awaited writes plus a full backup before the first
mutation instead.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from journalmigrate.exceptions import StorageError
from journalmigrate.serialization import from_bytes, to_bytes

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """
    Abstract base class for record store adapters.

    Implementations must provide:
    - get: Read the raw bytes stored under a key (None if absent)
    - set: Write raw bytes under a key (overwrite semantics)
    - remove: Delete a key
    - keys: List the keys currently stored

    Example:
        >>> class MyStore(RecordStore):
        ...     async def get(self, key: str) -> bytes | None:
        ...         ...
        ...
        ...     async def set(self, key: str, value: bytes) -> None:
        ...         ...
        ...
        ...     async def remove(self, key: str) -> bool:
        ...         ...
        ...
        ...     async def keys(self) -> list[str]:
        ...         ...

    See Also:
        - InMemoryRecordStore: Testing/development implementation
        - SQLiteRecordStore: File-backed implementation
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """
        Read the value stored under a key.

        Returns:
            The stored bytes, or None if the key does not exist.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """
        Store a value under a key, replacing any existing value.
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if a value was removed, False if the key did not exist.
        """
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List all keys currently stored."""
        pass

    async def exists(self, key: str) -> bool:
        """
        Check whether a key holds a value.

        Default implementation uses get. Implementations may override for
        efficiency.
        """
        return await self.get(key) is not None

    async def get_json(self, key: str, default: Any = None) -> Any:
        """
        Read and decode a JSON value.

        Args:
            key: Key to read.
            default: Value returned when the key does not exist.

        Returns:
            The decoded value, or default.

        Raises:
            StorageError: If the adapter fails or the value is not valid JSON.
        """
        try:
            raw = await self.get(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(key, "get", str(e)) from e

        if raw is None:
            return default

        try:
            return from_bytes(raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise StorageError(key, "get", f"stored value is not valid JSON: {e}") from e

    async def set_json(self, key: str, value: Any) -> None:
        """
        Encode a value as JSON and store it.

        Raises:
            StorageError: If the value cannot be encoded or the adapter fails.
        """
        try:
            payload = to_bytes(value)
        except (TypeError, ValueError) as e:
            raise StorageError(key, "set", f"value is not JSON serializable: {e}") from e

        try:
            await self.set(key, payload)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(key, "set", str(e)) from e

    async def delete(self, key: str) -> bool:
        """
        Remove a key, wrapping adapter failures in StorageError.
        """
        try:
            return await self.remove(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(key, "remove", str(e)) from e


__all__ = ["RecordStore"]
