"""Pytest configuration and fixtures for offline_lifecycle tests."""
from typing import Dict, Union

import httpx
import pytest

from cache_region import CacheStorage
from fetch_outcome import NetworkFetcher
from offline_events import EventChannel
from offline_lifecycle import LifecycleManager, PrecacheManifest


ORIGIN = "https://app.local"


class SiteMockTransport(httpx.AsyncBaseTransport):
    """Mock origin serving every path with a body naming the path."""

    def __init__(self) -> None:
        self.overrides: Dict[str, Union[int, Exception]] = {}
        self.requests: list[httpx.Request] = []
        self.offline = False
        self.closed = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("network unreachable", request=request)

        override = self.overrides.get(request.url.path)
        if isinstance(override, Exception):
            raise override
        status = override if override is not None else 200
        return httpx.Response(
            status_code=status,
            headers={"content-type": "text/html"},
            content=f"page {request.url.path}".encode(),
        )

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def site() -> SiteMockTransport:
    return SiteMockTransport()


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
def manifest() -> PrecacheManifest:
    return PrecacheManifest(
        standard_files=["/", "/css/app.css"],
        emergency_files=["/emergency.html", "/offline-safety.html"],
    )


@pytest.fixture
async def lifecycle(site, storage, channel, manifest):
    manager = LifecycleManager(
        storage,
        NetworkFetcher(site),
        channel,
        version="1.2.0",
        manifest=manifest,
        origin=ORIGIN,
    )
    yield manager
    await manager.stop()
