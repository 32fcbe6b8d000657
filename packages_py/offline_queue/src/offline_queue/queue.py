"""
Durable, priority-ordered queue of failed state-changing requests.
"""
import asyncio
import logging
import secrets
import time
from dataclasses import replace
from typing import Dict, Iterable, Optional

from .types import (
    OfflineQueueConfig,
    PRIORITY_RANK,
    QueueFullError,
    QueueItem,
    QueueItemState,
    QueuePriority,
    QueueStore,
)
from .stores.memory import MemoryQueueStore

logger = logging.getLogger(__name__)


DEFAULT_OFFLINE_QUEUE_CONFIG = OfflineQueueConfig(max_items=None)


def generate_item_id() -> str:
    """Generate a unique queue item ID"""
    return f"q_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def _copy(item: QueueItem) -> QueueItem:
    return replace(item, headers=dict(item.headers))


def _drain_order(item: QueueItem) -> tuple:
    return (PRIORITY_RANK[item.priority], item.sequence)


class OfflineQueue:
    """
    Offline Queue

    Holds failed state-changing requests until the sync engine replays them:
    - Every mutation is persisted before the call returns
    - Mutations are serialized with a lock so enqueue-during-drain is safe
    - drain() is stable: critical before normal, oldest first within a priority
    - remove() is idempotent

    Items handed out by drain()/get() are copies; write changes back with update().

    Example:
        queue = OfflineQueue(store=SqlAlchemyQueueStore())
        await queue.open()
        item = await queue.enqueue("https://app/api/safety/sync", "POST", {}, b"{}")
        for pending in await queue.drain():
            ...
        await queue.remove(item.id)
    """

    def __init__(
        self,
        store: Optional[QueueStore] = None,
        config: Optional[OfflineQueueConfig] = None,
    ) -> None:
        self._store = store or MemoryQueueStore()
        self._config = config or DEFAULT_OFFLINE_QUEUE_CONFIG
        self._items: Dict[str, QueueItem] = {}
        self._lock = asyncio.Lock()
        self._sequence = 0
        self._opened = False

    @property
    def config(self) -> OfflineQueueConfig:
        return self._config

    async def open(self) -> None:
        """Load persisted items. Items left IN_FLIGHT by a crash become PENDING."""
        async with self._lock:
            items = await self._store.load_all()
            self._items = {}
            for item in items:
                if item.state == QueueItemState.IN_FLIGHT:
                    item.state = QueueItemState.PENDING
                    await self._store.save(item)
                self._items[item.id] = item
            self._sequence = max((item.sequence for item in items), default=0)
            self._opened = True
        logger.info(f"open: loaded {len(self._items)} queued request(s)")

    async def enqueue(
        self,
        url: str,
        method: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        priority: QueuePriority = QueuePriority.NORMAL,
    ) -> QueueItem:
        """
        Capture a request for later replay.

        Args:
            url: Original URL
            method: Original method
            headers: Original headers, stored verbatim
            body: Original body, stored verbatim
            priority: Drain priority

        Returns:
            Copy of the persisted item
        """
        async with self._lock:
            max_items = self._config.max_items
            if max_items is not None and len(self._items) >= max_items:
                raise QueueFullError(f"Offline queue is full ({max_items} items)")

            self._sequence += 1
            item = QueueItem(
                id=generate_item_id(),
                url=url,
                method=method.upper(),
                headers=dict(headers or {}),
                body=body or b"",
                enqueued_at=time.time(),
                sequence=self._sequence,
                attempts=0,
                priority=priority,
                synced=False,
                state=QueueItemState.PENDING,
            )
            await self._store.save(item)
            self._items[item.id] = item

        logger.info(
            f"enqueue: {item.method} {item.url} queued as {item.id} "
            f"(priority={item.priority.value})"
        )
        return _copy(item)

    async def drain(
        self,
        priority_filter: Optional[QueuePriority] = None,
        states: Optional[Iterable[QueueItemState]] = None,
    ) -> list[QueueItem]:
        """
        Snapshot of queued items in drain order.

        Args:
            priority_filter: Only this priority. Default: all
            states: Only these states. Default: all

        Returns:
            Copies ordered critical first, then by insertion order
        """
        wanted_states = set(states) if states is not None else None
        async with self._lock:
            items = [
                _copy(item)
                for item in self._items.values()
                if (priority_filter is None or item.priority == priority_filter)
                and (wanted_states is None or item.state in wanted_states)
            ]
        return sorted(items, key=_drain_order)

    async def pending(self, priority_filter: Optional[QueuePriority] = None) -> list[QueueItem]:
        """Items waiting for a replay"""
        return await self.drain(priority_filter, states=[QueueItemState.PENDING])

    async def failed(self) -> list[QueueItem]:
        """Items that exhausted their attempts"""
        return await self.drain(states=[QueueItemState.FAILED])

    async def get(self, item_id: str) -> Optional[QueueItem]:
        async with self._lock:
            item = self._items.get(item_id)
            return _copy(item) if item is not None else None

    async def update(self, item: QueueItem) -> bool:
        """
        Persist changes to an item (attempts, state, backoff window).

        Returns:
            False when the item was removed in the meantime
        """
        async with self._lock:
            if item.id not in self._items:
                return False
            stored = _copy(item)
            await self._store.save(stored)
            self._items[item.id] = stored
            return True

    async def remove(self, item_id: str) -> bool:
        """
        Remove an item. Removing an unknown ID is a no-op.

        Returns:
            Whether an item was removed
        """
        async with self._lock:
            if item_id not in self._items:
                return False
            await self._store.delete(item_id)
            del self._items[item_id]
        logger.debug(f"remove: {item_id} removed")
        return True

    async def clear(self) -> None:
        async with self._lock:
            await self._store.clear()
            self._items.clear()

    async def size(self) -> int:
        async with self._lock:
            return len(self._items)

    async def close(self) -> None:
        """Close the backing store."""
        async with self._lock:
            await self._store.close()
            self._items.clear()
            self._opened = False


def create_offline_queue(
    store: Optional[QueueStore] = None,
    config: Optional[OfflineQueueConfig] = None,
) -> OfflineQueue:
    """Create a new offline queue"""
    return OfflineQueue(store, config)
