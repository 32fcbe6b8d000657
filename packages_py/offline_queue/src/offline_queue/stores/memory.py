"""
In-memory queue store implementation
Suitable for tests and ephemeral processes
"""
from dataclasses import replace

from ..types import QueueItem, QueueStore


class MemoryQueueStore(QueueStore):
    """
    In-memory implementation of QueueStore.
    Items are copied on the way in and out so callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._items: dict[str, QueueItem] = {}

    async def load_all(self) -> list[QueueItem]:
        return [replace(item, headers=dict(item.headers)) for item in self._items.values()]

    async def save(self, item: QueueItem) -> None:
        self._items[item.id] = replace(item, headers=dict(item.headers))

    async def delete(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None

    async def clear(self) -> None:
        self._items.clear()

    async def close(self) -> None:
        """Memory contents survive close so a reopened queue can reload them"""
        pass

    @property
    def size(self) -> int:
        """Get the current size of the store (for debugging)"""
        return len(self._items)


def create_memory_queue_store() -> MemoryQueueStore:
    """Create a new MemoryQueueStore instance"""
    return MemoryQueueStore()
