"""
Unit tests for VersionHistory.
"""

import pytest

from journalmigrate.migration import VersionHistory, is_newer, parse_version
from journalmigrate.stores import (
    MIGRATION_HISTORY_KEY,
    MIGRATION_VERSION_KEY,
    InMemoryRecordStore,
)


class TestParseVersion:
    """Tests for version parsing and comparison."""

    def test_parse(self):
        assert parse_version("1.2.10") == (1, 2, 10)

    @pytest.mark.parametrize("value", ["", "1.x", "1..0", "-1.0"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_version(value)

    def test_numeric_comparison(self):
        assert is_newer("1.10.0", "1.9.0")
        assert not is_newer("1.0.0", "1.0.0")
        assert not is_newer("0.9.0", "1.0.0")


class TestVersionHistory:
    """Tests for reading and appending versions."""

    @pytest.mark.asyncio
    async def test_sentinel_when_empty(self, store: InMemoryRecordStore):
        history = VersionHistory(store)
        assert await history.get_current_version() == "0.0.0"
        assert await history.get_history() == []

    @pytest.mark.asyncio
    async def test_record_appends_and_updates_current(self, store: InMemoryRecordStore):
        history = VersionHistory(store)

        entry = await history.record("1.0.0")

        assert entry is not None
        assert entry.description == "Migration to version 1.0.0"
        assert entry.rollback_available is True
        assert await history.get_current_version() == "1.0.0"
        assert [item.version for item in await history.get_history()] == ["1.0.0"]
        assert await store.get_json(MIGRATION_VERSION_KEY) == "1.0.0"

    @pytest.mark.asyncio
    async def test_history_is_strictly_increasing(self, store: InMemoryRecordStore):
        history = VersionHistory(store)
        await history.record("1.0.0")
        await history.record("1.1.0", "Add tags", rollback_available=False)

        assert await history.record("1.1.0") is None
        assert await history.record("1.0.5") is None

        entries = await history.get_history()
        assert [item.version for item in entries] == ["1.0.0", "1.1.0"]
        assert entries[1].rollback_available is False
        assert await history.get_current_version() == entries[-1].version

    @pytest.mark.asyncio
    async def test_reset(self, store: InMemoryRecordStore):
        history = VersionHistory(store)
        await history.record("1.0.0")
        await history.reset()

        assert await history.get_current_version() == "0.0.0"
        assert not await store.exists(MIGRATION_HISTORY_KEY)

    @pytest.mark.asyncio
    async def test_malformed_history_is_empty(self, store: InMemoryRecordStore):
        await store.set_json(MIGRATION_HISTORY_KEY, "garbage")
        assert await VersionHistory(store).get_history() == []
