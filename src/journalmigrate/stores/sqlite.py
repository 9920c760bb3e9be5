"""
SQLite record store implementation.

Provides lightweight, embedded persistence for journal state using SQLite
with the async aiosqlite driver.

This implementation is suitable for:
- Desktop and single-user journal deployments
- Development and testing environments
- Command-line migration runs against an exported journal
"""

from __future__ import annotations

import logging

from journalmigrate.exceptions import StorageError
from journalmigrate.observability import Tracer, create_tracer
from journalmigrate.observability.attributes import (
    ATTR_BYTES,
    ATTR_STORE_BACKEND,
    ATTR_STORE_KEY,
)
from journalmigrate.stores.interface import RecordStore

# Optional dependency handling
try:
    import aiosqlite

    SQLITE_AVAILABLE = True
except ImportError:
    SQLITE_AVAILABLE = False
    aiosqlite = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "record_store"


class SQLiteNotAvailableError(ImportError):
    """Raised when aiosqlite is not installed."""

    def __init__(self) -> None:
        super().__init__(
            "aiosqlite is required for SQLiteRecordStore. "
            "Install it with: pip install journalmigrate[sqlite]"
        )


class SQLiteRecordStore(RecordStore):
    """
    SQLite implementation of RecordStore.

    Each key is a row in a two-column table. A new connection is opened
    per operation, so the store holds no open handles between calls.

    Features:
    - File-based persistence
    - No external database server required
    - Upsert using INSERT OR REPLACE
    - Table created on first use
    - Optional OpenTelemetry tracing

    Example:
        >>> store = SQLiteRecordStore("journal.db")
        >>> await store.set_json("records.legacy", [])
        >>> await store.get_json("records.legacy")
        []

    Note:
        ":memory:" does not persist between operations because every
        operation uses its own connection. Use a temporary file in tests.
    """

    def __init__(
        self,
        database_path: str,
        *,
        table_name: str = DEFAULT_TABLE_NAME,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the SQLite record store.

        Args:
            database_path: Path to the SQLite database file.
            table_name: Name of the key/value table.
            tracer: Optional custom Tracer instance. If not provided, one is
                   created based on enable_tracing setting.
            enable_tracing: Whether to enable OpenTelemetry tracing (default True).
                          Ignored if tracer is explicitly provided.

        Raises:
            SQLiteNotAvailableError: If aiosqlite is not installed.
            ValueError: If table_name is not a plain identifier.
        """
        if not SQLITE_AVAILABLE:
            raise SQLiteNotAvailableError()
        if not table_name.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table_name!r}")

        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._database_path = database_path
        self._table_name = table_name
        self._initialized = False
        logger.debug("SQLiteRecordStore initialized with %s", database_path)

    @property
    def database_path(self) -> str:
        return self._database_path

    async def initialize(self) -> None:
        """
        Create the key/value table if it does not exist.

        Called automatically before the first operation.
        """
        try:
            async with aiosqlite.connect(self._database_path) as conn:
                await conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self._table_name} (
                        key TEXT PRIMARY KEY,
                        value BLOB NOT NULL
                    )
                    """
                )
                await conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(self._table_name, "initialize", str(e)) from e
        self._initialized = True
        logger.debug("Ensured table %s exists in %s", self._table_name, self._database_path)

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def get(self, key: str) -> bytes | None:
        with self._tracer.span(
            "journalmigrate.store.get",
            {ATTR_STORE_KEY: key, ATTR_STORE_BACKEND: "sqlite"},
        ):
            await self._ensure_initialized()
            try:
                async with aiosqlite.connect(self._database_path) as conn:
                    cursor = await conn.execute(
                        f"SELECT value FROM {self._table_name} WHERE key = ?",
                        (key,),
                    )
                    row = await cursor.fetchone()
            except aiosqlite.Error as e:
                raise StorageError(key, "get", str(e)) from e

            if row is None:
                return None
            value = row[0]
            return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    async def set(self, key: str, value: bytes) -> None:
        with self._tracer.span(
            "journalmigrate.store.set",
            {ATTR_STORE_KEY: key, ATTR_STORE_BACKEND: "sqlite", ATTR_BYTES: len(value)},
        ):
            await self._ensure_initialized()
            try:
                async with aiosqlite.connect(self._database_path) as conn:
                    await conn.execute(
                        f"INSERT OR REPLACE INTO {self._table_name} (key, value) VALUES (?, ?)",
                        (key, bytes(value)),
                    )
                    await conn.commit()
            except aiosqlite.Error as e:
                raise StorageError(key, "set", str(e)) from e
            logger.debug("Wrote %d bytes to key %s", len(value), key)

    async def remove(self, key: str) -> bool:
        with self._tracer.span(
            "journalmigrate.store.remove",
            {ATTR_STORE_KEY: key, ATTR_STORE_BACKEND: "sqlite"},
        ):
            await self._ensure_initialized()
            try:
                async with aiosqlite.connect(self._database_path) as conn:
                    cursor = await conn.execute(
                        f"DELETE FROM {self._table_name} WHERE key = ?",
                        (key,),
                    )
                    await conn.commit()
                    removed = cursor.rowcount > 0
            except aiosqlite.Error as e:
                raise StorageError(key, "remove", str(e)) from e
            if removed:
                logger.debug("Removed key %s", key)
            return removed

    async def keys(self) -> list[str]:
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(self._database_path) as conn:
                cursor = await conn.execute(
                    f"SELECT key FROM {self._table_name} ORDER BY key",
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError("*", "keys", str(e)) from e
        return [row[0] for row in rows]

    def __repr__(self) -> str:
        return f"SQLiteRecordStore(database_path={self._database_path!r})"


__all__ = [
    "SQLiteRecordStore",
    "SQLiteNotAvailableError",
    "SQLITE_AVAILABLE",
]
