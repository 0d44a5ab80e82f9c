"""
LabelDesk Backend: Label Store Tests
======================================

What:  Tests for LabelStore against a real SQLite database (aiosqlite).
Why:   The upsert is a single dialect-specific statement; only a real
       database shows that insert, replace, owner guard and concurrency
       behave as intended.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Text

from labeldesk.exceptions import StorageUnavailableError
from labeldesk.models.label import LabelRecord
from labeldesk.services.label_store import LabelStore

T0 = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def _naive_utc(dt):
    return dt.replace(tzinfo=None) if dt.tzinfo else dt


class TestUpsert:

    @pytest.mark.asyncio
    async def test_insert_creates_record(self, store):
        record = await store.upsert(5, "cat", "fluffy", "alice", T0)

        assert record.image_index == 5
        assert record.label == "cat"
        assert record.notes == "fluffy"
        assert record.modified_by == "alice"

        stored = await store.find_by_index(5)
        assert stored is not None
        assert stored.label == "cat"
        assert _naive_utc(stored.last_modified) == _naive_utc(T0)

    @pytest.mark.asyncio
    async def test_update_replaces_fields_in_place(self, store):
        await store.upsert(5, "cat", "fluffy", "alice", T0)
        later = T0 + timedelta(minutes=5)

        record = await store.upsert(5, "dog", "", "alice", later)

        assert record.label == "dog"
        assert record.notes == ""
        assert _naive_utc(record.last_modified) == _naive_utc(later)
        assert len(await store.list_all()) == 1

    @pytest.mark.asyncio
    async def test_unconditional_upsert_changes_owner(self, store):
        await store.upsert(5, "cat", "", "alice", T0)

        record = await store.upsert(5, "dog", "", "bob", T0 + timedelta(seconds=1))

        assert record.modified_by == "bob"

    @pytest.mark.asyncio
    async def test_owner_guard_allows_first_write(self, store):
        record = await store.upsert(9, "cat", "", "alice", T0, require_owner=True)
        assert record is not None
        assert record.modified_by == "alice"

    @pytest.mark.asyncio
    async def test_owner_guard_allows_same_owner(self, store):
        await store.upsert(9, "cat", "", "alice", T0, require_owner=True)

        record = await store.upsert(9, "lynx", "", "alice", T0 + timedelta(seconds=1), require_owner=True)

        assert record is not None
        assert record.label == "lynx"

    @pytest.mark.asyncio
    async def test_owner_guard_rejects_other_owner(self, store):
        await store.upsert(9, "cat", "mine", "alice", T0, require_owner=True)

        record = await store.upsert(9, "dog", "theirs", "bob", T0 + timedelta(seconds=1), require_owner=True)

        assert record is None
        stored = await store.find_by_index(9)
        assert stored.label == "cat"
        assert stored.notes == "mine"
        assert stored.modified_by == "alice"
        assert _naive_utc(stored.last_modified) == _naive_utc(T0)

    @pytest.mark.asyncio
    async def test_concurrent_first_writes_never_mix(self, store):
        """Two annotators claiming a fresh image at once: one wins, whole."""
        results = await asyncio.gather(
            store.upsert(11, "cat", "alice notes", "alice", T0, require_owner=True),
            store.upsert(11, "dog", "bob notes", "bob", T0 + timedelta(seconds=1), require_owner=True),
        )

        winners = [r for r in results if r is not None]
        assert len(winners) == 1

        stored = await store.find_by_index(11)
        expected = {
            "alice": ("cat", "alice notes"),
            "bob": ("dog", "bob notes"),
        }[stored.modified_by]
        assert (stored.label, stored.notes) == expected
        assert stored.modified_by == winners[0].modified_by
        assert len(await store.list_all()) == 1

    @pytest.mark.asyncio
    async def test_modified_by_is_unbounded_text(self, store):
        assert isinstance(LabelRecord.__table__.c.modified_by.type, Text)

        name = "n" * 1000
        await store.upsert(12, "cat", "", name, T0)

        assert (await store.find_by_index(12)).modified_by == name


class TestLookups:

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, store):
        assert await store.find_by_index(404) is None

    @pytest.mark.asyncio
    async def test_list_all_returns_every_record(self, store):
        for idx in (3, 1, 2):
            await store.upsert(idx, f"label-{idx}", "", "alice", T0)

        records = await store.list_all()

        assert sorted(r.image_index for r in records) == [1, 2, 3]


class TestFailures:

    def test_unsupported_dialect_rejected(self):
        database = MagicMock()
        database.dialect_name = "mssql"

        with pytest.raises(ValueError, match="Unsupported database dialect"):
            LabelStore(database)

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_storage_unavailable(self, tmp_path):
        from labeldesk.database import LabelDatabase

        # Parent directory does not exist, so SQLite cannot open the file
        database = LabelDatabase(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'labels.db'}")
        store = LabelStore(database)

        with pytest.raises(StorageUnavailableError):
            await store.list_all()

        await database.dispose()
