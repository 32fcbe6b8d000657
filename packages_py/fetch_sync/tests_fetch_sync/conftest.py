"""Pytest configuration and fixtures for fetch_sync tests."""
import asyncio
from typing import Optional, Sequence, Union

import httpx
import pytest

from fetch_outcome import NetworkFetcher
from fetch_sync import SyncEngine, SyncEngineConfig
from offline_events import EventChannel
from offline_queue import MemoryQueueStore, OfflineQueue, QueueItem, QueueItemState


Outcome = Union[int, Exception]


class ScriptedAsyncTransport(httpx.AsyncBaseTransport):
    """
    Mock async transport answering from a script.

    Each entry is a status code or an exception to raise. The last entry
    repeats once the script is exhausted.
    """

    def __init__(self, outcomes: Sequence[Outcome] = (200,)) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(status_code=outcome, content=b"{}")

    async def aclose(self) -> None:
        pass


class GatedAsyncTransport(httpx.AsyncBaseTransport):
    """Mock async transport that blocks until released."""

    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.requests: list[httpx.Request] = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.started.set()
        await self.release.wait()
        return httpx.Response(status_code=self.status, content=b"{}")

    async def aclose(self) -> None:
        pass


class SlowQueueStore(MemoryQueueStore):
    """
    Memory store with slow writes, like a database under load.

    Saves of items in slow_states and, when slow_delete is set, deletes
    sleep for delay seconds. writing is set as soon as a slow write starts.
    """

    def __init__(self, delay: float = 0.05) -> None:
        super().__init__()
        self.delay = delay
        self.slow_states: set[QueueItemState] = set()
        self.slow_delete = False
        self.writing = asyncio.Event()

    async def save(self, item: QueueItem) -> None:
        if item.state in self.slow_states:
            self.writing.set()
            await asyncio.sleep(self.delay)
        await super().save(item)

    async def delete(self, item_id: str) -> bool:
        if self.slow_delete:
            self.writing.set()
            await asyncio.sleep(self.delay)
        return await super().delete(item_id)


class FakeClock:
    """Controllable wall clock for backoff windows."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture
def events(channel) -> list:
    """Every event published on the channel."""
    received: list = []
    channel.subscribe(received.append)
    return received


@pytest.fixture
async def queue():
    q = OfflineQueue(MemoryQueueStore())
    await q.open()
    yield q
    await q.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def make_engine(queue, channel, clock):
    """Factory building an engine over the given transport."""
    engines: list[SyncEngine] = []

    def _make(
        transport: httpx.AsyncBaseTransport,
        online: bool = True,
        on_queue: Optional[OfflineQueue] = None,
        **config,
    ) -> SyncEngine:
        config.setdefault("debounce_seconds", 0.0)
        engine = SyncEngine(
            on_queue if on_queue is not None else queue,
            NetworkFetcher(transport),
            channel,
            SyncEngineConfig(**config),
            clock=clock,
            online=online,
        )
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        await engine.stop()


@pytest.fixture
def scripted():
    def _make(*outcomes: Outcome) -> ScriptedAsyncTransport:
        return ScriptedAsyncTransport(outcomes or (200,))
    return _make


@pytest.fixture
def gated() -> GatedAsyncTransport:
    return GatedAsyncTransport()


@pytest.fixture
def slow_store() -> SlowQueueStore:
    return SlowQueueStore()


@pytest.fixture
async def slow_queue(slow_store):
    q = OfflineQueue(slow_store)
    await q.open()
    yield q
    await q.close()
