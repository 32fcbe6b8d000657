"""Pytest configuration and fixtures for offline_queue tests."""
import pytest

from offline_queue import MemoryQueueStore, OfflineQueue, SqlAlchemyQueueStore


@pytest.fixture
def memory_store() -> MemoryQueueStore:
    return MemoryQueueStore()


@pytest.fixture
async def queue(memory_store):
    """Opened queue backed by the memory store."""
    q = OfflineQueue(memory_store)
    await q.open()
    yield q
    await q.close()


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}"


@pytest.fixture
async def sqlite_store(database_url):
    store = SqlAlchemyQueueStore(database_url)
    yield store
    await store.close()
