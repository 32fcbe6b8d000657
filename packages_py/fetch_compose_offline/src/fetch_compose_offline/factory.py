"""
Factory functions for creating offline router transports.
"""
from typing import Callable, Optional

import httpx

from cache_region import CacheStorage, create_cache_storage
from fetch_outcome import FetchOutcomeConfig, NetworkFetcher
from offline_events import EventChannel
from offline_queue import OfflineQueue, create_offline_queue

from .classifier import ClassificationRules
from .transport import OfflineRouterTransport
from .types import OfflineRouterConfig


def compose_transport(
    base: httpx.AsyncBaseTransport,
    *wrappers: Callable[[httpx.AsyncBaseTransport], httpx.AsyncBaseTransport],
) -> httpx.AsyncBaseTransport:
    """
    Compose transport wrappers around a base transport, innermost first.

    Example:
        network = compose_transport(
            httpx.AsyncHTTPTransport(),
            lambda inner: LoggingTransport(inner),
        )
    """
    transport = base
    for wrapper in wrappers:
        transport = wrapper(transport)
    return transport


def create_offline_router_transport(
    inner: Optional[httpx.AsyncBaseTransport] = None,
    *,
    storage: Optional[CacheStorage] = None,
    queue: Optional[OfflineQueue] = None,
    channel: Optional[EventChannel] = None,
    config: Optional[OfflineRouterConfig] = None,
    fetch_config: Optional[FetchOutcomeConfig] = None,
    rules: Optional[ClassificationRules] = None,
) -> OfflineRouterTransport:
    """
    Create an offline router transport.

    Args:
        inner: The network transport (defaults to AsyncHTTPTransport)
        storage: Cache region storage (defaults to in-memory regions)
        queue: Offline queue (defaults to an in-memory queue)
        channel: Event channel used for activation and router events
        config: Router configuration
        fetch_config: Network timeout and retryable statuses
        rules: Classification patterns

    Returns:
        OfflineRouterTransport instance
    """
    if inner is None:
        inner = httpx.AsyncHTTPTransport()

    return OfflineRouterTransport(
        NetworkFetcher(inner, fetch_config),
        storage or create_cache_storage(),
        queue or create_offline_queue(),
        channel,
        config=config,
        rules=rules,
    )


def create_offline_client(
    router: OfflineRouterTransport,
    *,
    base_url: Optional[str] = None,
    **client_kwargs,
) -> httpx.AsyncClient:
    """
    Create an httpx.AsyncClient whose requests go through the router.

    Args:
        router: Offline router transport
        base_url: Base URL for the client
        **client_kwargs: Additional arguments for httpx.AsyncClient

    Returns:
        AsyncClient with the offline router transport
    """
    return httpx.AsyncClient(
        transport=router,
        base_url=base_url or "",
        **client_kwargs,
    )
