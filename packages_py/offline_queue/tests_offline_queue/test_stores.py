"""
Tests for offline_queue stores.

Covers the memory store and the SQLAlchemy store on a temporary SQLite file.
"""

import pytest

from offline_queue import (
    MemoryQueueStore,
    OfflineQueue,
    QueueItem,
    QueueItemState,
    QueuePriority,
    SqlAlchemyQueueStore,
)


def _item(item_id: str = "q_1", sequence: int = 1, **kwargs) -> QueueItem:
    defaults = dict(
        id=item_id,
        url="https://app.local/api/safety/sync",
        method="POST",
        headers={"Content-Type": "application/json"},
        body=b'{"ok": true}',
        enqueued_at=1000.0,
        sequence=sequence,
    )
    defaults.update(kwargs)
    return QueueItem(**defaults)


class TestMemoryQueueStore:
    """Tests for MemoryQueueStore."""

    @pytest.mark.asyncio
    async def test_save_and_load(self):
        store = MemoryQueueStore()
        await store.save(_item())
        items = await store.load_all()
        assert [item.id for item in items] == ["q_1"]

    @pytest.mark.asyncio
    async def test_copies_on_save(self):
        store = MemoryQueueStore()
        item = _item()
        await store.save(item)
        item.headers["X-Changed"] = "1"
        assert "X-Changed" not in (await store.load_all())[0].headers

    @pytest.mark.asyncio
    async def test_delete(self):
        store = MemoryQueueStore()
        await store.save(_item())
        assert await store.delete("q_1") is True
        assert await store.delete("q_1") is False


class TestSqlAlchemyQueueStore:
    """Tests for SqlAlchemyQueueStore."""

    @pytest.mark.asyncio
    async def test_round_trips_every_field(self, sqlite_store):
        item = _item(
            attempts=2,
            priority=QueuePriority.CRITICAL,
            state=QueueItemState.FAILED,
            next_attempt_at=1234.5,
            last_error="HTTP 503",
            body=b"\x00\x01binary",
        )
        await sqlite_store.save(item)

        [loaded] = await sqlite_store.load_all()

        assert loaded == item

    @pytest.mark.asyncio
    async def test_save_replaces_existing_row(self, sqlite_store):
        await sqlite_store.save(_item(attempts=0))
        await sqlite_store.save(_item(attempts=1))

        items = await sqlite_store.load_all()

        assert len(items) == 1
        assert items[0].attempts == 1

    @pytest.mark.asyncio
    async def test_loads_in_sequence_order(self, sqlite_store):
        await sqlite_store.save(_item("q_b", sequence=2))
        await sqlite_store.save(_item("q_a", sequence=1))

        assert [item.id for item in await sqlite_store.load_all()] == ["q_a", "q_b"]

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, sqlite_store):
        await sqlite_store.save(_item("q_a", sequence=1))
        await sqlite_store.save(_item("q_b", sequence=2))

        assert await sqlite_store.delete("q_a") is True
        assert await sqlite_store.delete("q_a") is False

        await sqlite_store.clear()
        assert await sqlite_store.load_all() == []

    @pytest.mark.asyncio
    async def test_queue_survives_restart(self, database_url):
        """Should reload queued requests from disk."""
        store = SqlAlchemyQueueStore(database_url)
        queue = OfflineQueue(store)
        await queue.open()
        item = await queue.enqueue(
            "https://app.local/api/safety/sync",
            "POST",
            {"Content-Type": "application/json"},
            b'{"check_in": true}',
        )
        await queue.close()

        reopened = OfflineQueue(SqlAlchemyQueueStore(database_url))
        await reopened.open()
        try:
            [restored] = await reopened.drain()
            assert restored.id == item.id
            assert restored.body == b'{"check_in": true}'
            assert restored.headers == {"Content-Type": "application/json"}
        finally:
            await reopened.close()
