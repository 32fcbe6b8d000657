"""Pytest configuration and fixtures for fetch_outcome tests."""
import asyncio

import httpx
import pytest


class MockAsyncTransport(httpx.AsyncBaseTransport):
    """Mock async transport for testing."""

    def __init__(
        self,
        response_status: int = 200,
        response_content: bytes = b'{"success": true}',
        response_headers: dict | None = None,
    ) -> None:
        self.response_status = response_status
        self.response_content = response_content
        self.response_headers = response_headers or {"content-type": "application/json"}
        self.requests: list[httpx.Request] = []
        self.closed = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle the async request and return a mock response."""
        self.requests.append(request)
        return httpx.Response(
            status_code=self.response_status,
            headers=self.response_headers,
            content=self.response_content,
        )

    async def aclose(self) -> None:
        """Close the transport."""
        self.closed = True


class ErrorMockAsyncTransport(httpx.AsyncBaseTransport):
    """Mock async transport that raises."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        raise self.error

    async def aclose(self) -> None:
        pass


class SlowMockAsyncTransport(httpx.AsyncBaseTransport):
    """Mock async transport that never answers in time."""

    def __init__(self, delay_seconds: float = 1.0) -> None:
        self.delay_seconds = delay_seconds

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(self.delay_seconds)
        return httpx.Response(200, content=b"late")

    async def aclose(self) -> None:
        pass


@pytest.fixture
def mock_transport() -> MockAsyncTransport:
    return MockAsyncTransport()


@pytest.fixture
def make_transport():
    """Factory for mock transports with a given status and body."""
    def _make(status: int = 200, content: bytes = b"ok", headers: dict | None = None) -> MockAsyncTransport:
        return MockAsyncTransport(status, content, headers)
    return _make


@pytest.fixture
def make_error_transport():
    """Factory for transports raising the given error."""
    def _make(error: Exception) -> ErrorMockAsyncTransport:
        return ErrorMockAsyncTransport(error)
    return _make


@pytest.fixture
def slow_transport() -> SlowMockAsyncTransport:
    return SlowMockAsyncTransport()
