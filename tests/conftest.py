"""
Shared pytest fixtures for the journalmigrate tests.

This module provides:
- Store fixtures (store, failing_store_factory) and store test doubles
- Feature flag fixtures (flags)
- Legacy record fixtures (legacy_record, legacy_records)
- Migration fixtures (migrator, orchestrator)
- Tracing fixtures (mock_tracer)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest
import pytest_asyncio

from journalmigrate.flags import FeatureFlagRegistry
from journalmigrate.migration import MigrationConfig, MigrationOrchestrator, SchemaMigrator
from journalmigrate.observability import MockTracer
from journalmigrate.stores import InMemoryRecordStore, RecordStore

# ============================================================================
# SQLite Availability Check
# ============================================================================

AIOSQLITE_AVAILABLE = False
try:
    import aiosqlite  # noqa: F401

    AIOSQLITE_AVAILABLE = True
except ImportError:
    pass


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for tests."""
    config.addinivalue_line("markers", "sqlite: marks tests that require SQLite (aiosqlite)")


skip_if_no_aiosqlite = pytest.mark.skipif(not AIOSQLITE_AVAILABLE, reason="aiosqlite not installed")


# ============================================================================
# Test Doubles
# ============================================================================


class FailingRecordStore(InMemoryRecordStore):
    """
    In-memory store that raises on writes (or reads) of selected keys.

    Failures can be armed after the store has been populated, so a test can
    seed data and then make one specific write fail.
    """

    def __init__(
        self,
        *,
        fail_set: set[str] | None = None,
        fail_get: set[str] | None = None,
    ) -> None:
        super().__init__(enable_tracing=False)
        self.fail_set = set(fail_set or ())
        self.fail_get = set(fail_get or ())
        self.set_calls: list[str] = []

    async def get(self, key: str) -> bytes | None:
        if key in self.fail_get:
            raise OSError(f"simulated read failure for {key}")
        return await super().get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.set_calls.append(key)
        if key in self.fail_set:
            raise OSError(f"simulated write failure for {key}")
        await super().set(key, value)


class GatedRecordStore(InMemoryRecordStore):
    """
    In-memory store that holds the first write to one key until released.

    Lets a test run code in another task while an operation is waiting on
    store I/O: await ``reached``, act, then set ``release``.
    """

    def __init__(self, gated_key: str) -> None:
        super().__init__(enable_tracing=False)
        self.gated_key = gated_key
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

    async def set(self, key: str, value: bytes) -> None:
        if key == self.gated_key and not self.release.is_set():
            self.reached.set()
            await self.release.wait()
        await super().set(key, value)


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Provide an empty in-memory record store with tracing disabled."""
    return InMemoryRecordStore(enable_tracing=False)


@pytest.fixture
def failing_store_factory() -> Callable[..., FailingRecordStore]:
    """Provide a factory for stores that fail on chosen keys."""
    return FailingRecordStore


@pytest.fixture
def mock_tracer() -> MockTracer:
    return MockTracer()


# ============================================================================
# Record Fixtures
# ============================================================================


def make_legacy_record(record_id: str = "t1", **overrides: Any) -> dict[str, Any]:
    """
    Build a valid closed legacy trade record.

    Args:
        record_id: Trade id.
        **overrides: Fields to replace; a value of None removes the field.
    """
    record: dict[str, Any] = {
        "id": record_id,
        "currencyPair": "EUR/USD",
        "date": "2024-03-01",
        "timeIn": "09:30",
        "timeOut": "11:15",
        "side": "long",
        "entryPrice": 1.10,
        "exitPrice": 1.105,
        "lotSize": 1.0,
        "lotType": "standard",
        "status": "closed",
        "pnl": 500.0,
        "commission": 0,
        "strategy": "breakout",
        "notes": "clean breakout",
        "tags": "a,b",
    }
    for key, value in overrides.items():
        if value is None:
            record.pop(key, None)
        else:
            record[key] = value
    return record


@pytest.fixture
def legacy_record() -> dict[str, Any]:
    return make_legacy_record()


@pytest.fixture
def legacy_records() -> list[dict[str, Any]]:
    """Provide five valid legacy records with ids t1..t5."""
    return [make_legacy_record(f"t{i}") for i in range(1, 6)]


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def flags(store: RecordStore) -> FeatureFlagRegistry:
    """Provide a feature flag registry loaded from the store."""
    registry = FeatureFlagRegistry(store, enable_tracing=False)
    await registry.load()
    return registry


@pytest.fixture
def migration_config() -> MigrationConfig:
    return MigrationConfig(batch_size=2)


@pytest.fixture
def migrator(store: RecordStore, migration_config: MigrationConfig) -> SchemaMigrator:
    return SchemaMigrator(store, migration_config, enable_tracing=False)


@pytest_asyncio.fixture
async def orchestrator(
    store: RecordStore,
    flags: FeatureFlagRegistry,
    migrator: SchemaMigrator,
) -> MigrationOrchestrator:
    return MigrationOrchestrator(store, flags, migrator=migrator, enable_tracing=False)


__all__ = [
    "AIOSQLITE_AVAILABLE",
    "FailingRecordStore",
    "GatedRecordStore",
    "make_legacy_record",
    "skip_if_no_aiosqlite",
]
