"""
Network fetcher returning explicit results instead of raising.
"""
import asyncio
import logging
import time
from typing import Optional

import httpx

from .types import (
    FailureKind,
    FetchOutcomeConfig,
    NetworkFailure,
    NetworkResult,
    NetworkSuccess,
    is_success_status,
)

logger = logging.getLogger(__name__)


DEFAULT_FETCH_OUTCOME_CONFIG = FetchOutcomeConfig(
    timeout_seconds=10.0,
    retryable_statuses=[408, 429, 500, 502, 503, 504],
)


def merge_fetch_outcome_config(
    config: Optional[FetchOutcomeConfig] = None,
) -> FetchOutcomeConfig:
    """Merge user config with defaults."""
    if config is None:
        return FetchOutcomeConfig(
            timeout_seconds=DEFAULT_FETCH_OUTCOME_CONFIG.timeout_seconds,
            retryable_statuses=list(DEFAULT_FETCH_OUTCOME_CONFIG.retryable_statuses),
        )

    return FetchOutcomeConfig(
        timeout_seconds=config.timeout_seconds
        if config.timeout_seconds is not None
        else DEFAULT_FETCH_OUTCOME_CONFIG.timeout_seconds,
        retryable_statuses=config.retryable_statuses
        if config.retryable_statuses
        else list(DEFAULT_FETCH_OUTCOME_CONFIG.retryable_statuses),
    )


def classify_error(error: BaseException) -> FailureKind:
    """
    Map an exception raised by a transport to a failure kind.

    Args:
        error: The exception raised by the transport

    Returns:
        Failure kind
    """
    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return FailureKind.TIMEOUT
    if isinstance(error, (httpx.NetworkError, httpx.ProxyError, ConnectionError, OSError)):
        return FailureKind.CONNECTION

    # Check error message for common network issues
    message = str(error).lower()
    if any(term in message for term in ["timeout", "timed out"]):
        return FailureKind.TIMEOUT
    if any(term in message for term in ["network", "connection", "socket", "refused", "reset"]):
        return FailureKind.CONNECTION

    if error.__cause__ is not None:
        return classify_error(error.__cause__)

    return FailureKind.OTHER


class NetworkFetcher:
    """
    Executes requests against a transport and returns NetworkResult.

    Every call is bounded by the configured timeout. A non-2xx response is a
    NetworkFailure of kind HTTP_STATUS carrying the fully read response.

    Example:
        fetcher = NetworkFetcher(httpx.AsyncHTTPTransport())
        result = await fetcher.fetch(httpx.Request("GET", "https://example.com/"))
        if result.ok:
            print(result.response.status_code)
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        config: Optional[FetchOutcomeConfig] = None,
    ) -> None:
        self._transport = transport
        self._config = merge_fetch_outcome_config(config)

    @property
    def config(self) -> FetchOutcomeConfig:
        """Get configuration."""
        return self._config

    @property
    def transport(self) -> httpx.AsyncBaseTransport:
        """The wrapped transport"""
        return self._transport

    async def fetch(
        self,
        request: httpx.Request,
        timeout_seconds: Optional[float] = None,
    ) -> NetworkResult:
        """
        Send a request and classify the outcome.

        Args:
            request: Request to send
            timeout_seconds: Override the configured timeout

        Returns:
            NetworkSuccess for 2xx, NetworkFailure otherwise
        """
        timeout = timeout_seconds if timeout_seconds is not None else self._config.timeout_seconds
        start = time.monotonic()

        try:
            response = await asyncio.wait_for(self._send(request), timeout=timeout)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            kind = classify_error(error)
            logger.debug(f"fetch: {request.method} {request.url} failed ({kind.value}): {error!r}")
            return NetworkFailure(
                kind=kind,
                error=error,
                duration_seconds=time.monotonic() - start,
            )

        duration = time.monotonic() - start
        if is_success_status(response.status_code):
            return NetworkSuccess(response=response, duration_seconds=duration)

        logger.debug(f"fetch: {request.method} {request.url} returned {response.status_code}")
        return NetworkFailure(
            kind=FailureKind.HTTP_STATUS,
            response=response,
            duration_seconds=duration,
        )

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Send and read the body so the response can be cached and replayed."""
        response = await self._transport.handle_async_request(request)
        content = await response.aread()
        # Body is already decoded
        headers = [
            (key, value)
            for key, value in response.headers.multi_items()
            if key.lower() not in ("content-encoding", "content-length")
        ]
        return httpx.Response(
            status_code=response.status_code,
            headers=headers,
            content=content,
            request=request,
        )

    def is_retryable(self, result: NetworkResult) -> bool:
        """Whether a failure is worth retrying later."""
        if result.ok:
            return False
        if result.kind == FailureKind.HTTP_STATUS:
            return result.status_code in self._config.retryable_statuses
        return True

    async def aclose(self) -> None:
        """Close the wrapped transport."""
        await self._transport.aclose()


def create_network_fetcher(
    transport: Optional[httpx.AsyncBaseTransport] = None,
    config: Optional[FetchOutcomeConfig] = None,
) -> NetworkFetcher:
    """Create a fetcher (defaults to AsyncHTTPTransport)."""
    return NetworkFetcher(transport or httpx.AsyncHTTPTransport(), config)
