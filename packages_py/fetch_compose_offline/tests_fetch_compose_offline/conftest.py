"""Pytest configuration and fixtures for fetch_compose_offline tests."""
from typing import Dict, Optional, Tuple, Union

import httpx
import pytest

from cache_region import CacheStorage
from fetch_compose_offline import OfflineRouterTransport
from fetch_outcome import NetworkFetcher
from offline_events import EventChannel
from offline_queue import MemoryQueueStore, OfflineQueue


ORIGIN = "https://app.local"
STANDARD_REGION = "kids-safety-v1.2.0"
CRITICAL_REGION = "emergency-cache-v1.2.0"

Route = Union[Tuple[int, bytes, Dict[str, str]], Exception]


class RoutingMockTransport(httpx.AsyncBaseTransport):
    """
    Mock network answering by URL path.

    Unrouted paths answer 200 with a small body. Setting offline makes every
    request raise ConnectError.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Route] = {}
        self.requests: list[httpx.Request] = []
        self.offline = False
        self.closed = False

    def respond(
        self,
        path: str,
        status: int = 200,
        content: bytes = b"ok",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.routes[path] = (status, content, headers or {"content-type": "text/plain"})

    def fail(self, path: str, error: Exception) -> None:
        self.routes[path] = error

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("network unreachable", request=request)

        route = self.routes.get(request.url.path, (200, b"network", {"content-type": "text/plain"}))
        if isinstance(route, Exception):
            raise route
        status, content, headers = route
        return httpx.Response(status_code=status, headers=headers, content=content)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def network() -> RoutingMockTransport:
    return RoutingMockTransport()


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture
def events(channel) -> list:
    received: list = []
    channel.subscribe(received.append)
    return received


@pytest.fixture
def storage() -> CacheStorage:
    return CacheStorage()


@pytest.fixture
async def queue():
    q = OfflineQueue(MemoryQueueStore())
    await q.open()
    yield q
    await q.close()


@pytest.fixture
def inactive_router(network, storage, queue, channel) -> OfflineRouterTransport:
    return OfflineRouterTransport(NetworkFetcher(network), storage, queue, channel)


@pytest.fixture
def router(inactive_router) -> OfflineRouterTransport:
    inactive_router.activate(STANDARD_REGION, CRITICAL_REGION)
    return inactive_router


@pytest.fixture
async def client(router):
    async with httpx.AsyncClient(transport=router, base_url=ORIGIN) as c:
        yield c


@pytest.fixture
def seed(storage):
    """Store a response directly in a region."""
    async def _seed(
        region: str,
        path: str,
        content: bytes,
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
        method: str = "GET",
    ) -> None:
        cache = await storage.open(region)
        await cache.put(
            storage.identity_for(method, ORIGIN + path),
            status,
            headers or {"content-type": "text/plain"},
            content,
        )
    return _seed
