"""
Tests for offline_queue queue.

Test coverage includes:
- Enqueue captures the request verbatim and persists before returning
- Stable drain order: critical first, insertion order within a priority
- Idempotent remove
- Update/get round trip and copy isolation
- Capacity limit
- Crash recovery of in-flight items on open
- Concurrent enqueue while draining
"""

import asyncio

import pytest

from offline_queue import (
    MemoryQueueStore,
    OfflineQueue,
    OfflineQueueConfig,
    QueueFullError,
    QueueItemState,
    QueuePriority,
    create_offline_queue,
)


URL = "https://app.local/api/safety/sync"


class TestEnqueue:
    """Tests for enqueue."""

    @pytest.mark.asyncio
    async def test_captures_request_verbatim(self, queue, memory_store):
        """Should keep method, headers and body exactly."""
        headers = {"Content-Type": "application/json", "X-Child-Id": "42"}
        body = b'{"lat": 51.5, "lng": -0.1}'

        item = await queue.enqueue(URL, "post", headers, body)

        assert item.id.startswith("q_")
        assert item.method == "POST"
        assert item.headers == headers
        assert item.body == body
        assert item.attempts == 0
        assert item.state == QueueItemState.PENDING
        assert item.synced is False
        assert memory_store.size == 1

    @pytest.mark.asyncio
    async def test_assigns_unique_ids(self, queue):
        ids = {(await queue.enqueue(URL, "POST")).id for _ in range(20)}
        assert len(ids) == 20

    @pytest.mark.asyncio
    async def test_rejects_when_full(self, memory_store):
        queue = OfflineQueue(memory_store, OfflineQueueConfig(max_items=1))
        await queue.open()
        await queue.enqueue(URL, "POST")

        with pytest.raises(QueueFullError):
            await queue.enqueue(URL, "POST")

    @pytest.mark.asyncio
    async def test_returned_item_is_a_copy(self, queue):
        item = await queue.enqueue(URL, "POST", {"a": "1"})
        item.headers["a"] = "changed"
        stored = await queue.get(item.id)
        assert stored.headers == {"a": "1"}


class TestDrain:
    """Tests for drain."""

    @pytest.mark.asyncio
    async def test_critical_first_then_insertion_order(self, queue):
        n1 = await queue.enqueue(URL, "POST", body=b"n1")
        c1 = await queue.enqueue(URL, "POST", body=b"c1", priority=QueuePriority.CRITICAL)
        n2 = await queue.enqueue(URL, "POST", body=b"n2")
        c2 = await queue.enqueue(URL, "POST", body=b"c2", priority=QueuePriority.CRITICAL)

        drained = await queue.drain()

        assert [item.id for item in drained] == [c1.id, c2.id, n1.id, n2.id]

    @pytest.mark.asyncio
    async def test_priority_filter(self, queue):
        await queue.enqueue(URL, "POST")
        critical = await queue.enqueue(URL, "POST", priority=QueuePriority.CRITICAL)

        drained = await queue.drain(QueuePriority.CRITICAL)

        assert [item.id for item in drained] == [critical.id]

    @pytest.mark.asyncio
    async def test_drain_does_not_remove(self, queue):
        await queue.enqueue(URL, "POST")
        await queue.drain()
        assert await queue.size() == 1

    @pytest.mark.asyncio
    async def test_pending_and_failed(self, queue):
        ok = await queue.enqueue(URL, "POST")
        bad = await queue.enqueue(URL, "POST")
        bad.state = QueueItemState.FAILED
        await queue.update(bad)

        assert [item.id for item in await queue.pending()] == [ok.id]
        assert [item.id for item in await queue.failed()] == [bad.id]

    @pytest.mark.asyncio
    async def test_enqueue_during_drain(self, queue):
        """Should serialize concurrent enqueues with drains."""
        await asyncio.gather(
            *(queue.enqueue(URL, "POST", body=str(i).encode()) for i in range(10)),
            queue.drain(),
        )
        drained = await queue.drain()
        assert [item.sequence for item in drained] == sorted(item.sequence for item in drained)
        assert len(drained) == 10


class TestRemove:
    """Tests for remove."""

    @pytest.mark.asyncio
    async def test_remove_twice_equals_once(self, queue, memory_store):
        item = await queue.enqueue(URL, "POST")
        other = await queue.enqueue(URL, "POST")

        assert await queue.remove(item.id) is True
        assert await queue.remove(item.id) is False

        assert [i.id for i in await queue.drain()] == [other.id]
        assert memory_store.size == 1

    @pytest.mark.asyncio
    async def test_remove_unknown_is_noop(self, queue):
        assert await queue.remove("q_missing") is False


class TestUpdate:
    """Tests for update."""

    @pytest.mark.asyncio
    async def test_persists_changes(self, queue):
        item = await queue.enqueue(URL, "POST")
        item.attempts = 2
        item.next_attempt_at = 123.0

        assert await queue.update(item) is True

        stored = await queue.get(item.id)
        assert stored.attempts == 2
        assert stored.next_attempt_at == 123.0

    @pytest.mark.asyncio
    async def test_update_after_remove(self, queue):
        item = await queue.enqueue(URL, "POST")
        await queue.remove(item.id)
        assert await queue.update(item) is False


class TestOpen:
    """Tests for open/close."""

    @pytest.mark.asyncio
    async def test_reloads_persisted_items(self):
        store = MemoryQueueStore()
        first = create_offline_queue(store)
        await first.open()
        a = await first.enqueue(URL, "POST", body=b"a")
        b = await first.enqueue(URL, "POST", body=b"b")
        await first.close()

        second = create_offline_queue(store)
        await second.open()
        c = await second.enqueue(URL, "POST", body=b"c")

        assert [item.id for item in await second.drain()] == [a.id, b.id, c.id]
        assert c.sequence > b.sequence

    @pytest.mark.asyncio
    async def test_in_flight_items_revert_to_pending(self):
        store = MemoryQueueStore()
        first = OfflineQueue(store)
        await first.open()
        item = await first.enqueue(URL, "POST")
        item.state = QueueItemState.IN_FLIGHT
        await first.update(item)

        second = OfflineQueue(store)
        await second.open()

        assert (await second.get(item.id)).state == QueueItemState.PENDING
