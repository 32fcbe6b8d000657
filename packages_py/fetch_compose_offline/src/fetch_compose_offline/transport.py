"""
Offline strategy router transport for httpx.

Classifies each request and applies the matching strategy:
- CRITICAL: network first, cached copy, then an Emergency Mode page
- API_SAFETY: network only; failed state-changing calls are queued for sync
- STATIC_ASSET: cache first, then network; images degrade to an SVG placeholder
- GENERIC: network first, cached copy, then the offline page for navigations
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Set

import httpx

from cache_region import CacheStorage, RequestIdentity
from fetch_outcome import NetworkFetcher, NetworkResult
from offline_events import EventChannel, OfflineEvent, OfflineEventType
from offline_queue import OfflineQueue, OfflineQueueError

from .classifier import (
    ClassificationRules,
    classify,
    is_image_asset,
    is_navigation_request,
)
from .config import merge_offline_router_config, queue_priority_for
from .responses import (
    cached_response,
    emergency_mode_response,
    image_placeholder_response,
    queued_response,
)
from .types import OfflineRouterConfig, RequestClass, RouterStats

logger = logging.getLogger(__name__)

LOG_PREFIX = f"[ROUTER:{__file__}]"


def _raw_headers(request: httpx.Request) -> Dict[str, str]:
    """Request headers with their original casing."""
    return {
        name.decode("latin-1"): value.decode("latin-1")
        for name, value in request.headers.raw
    }


class OfflineRouterTransport(httpx.AsyncBaseTransport):
    """
    Strategy router transport.

    Wraps the network fetcher and answers every request from the network,
    the cache region storage, the offline queue or a synthetic fallback.
    Until a version is activated requests go straight to the network.

    Successful GET responses are written to the cache in background tasks
    created before the response is returned; flush() waits for them.

    Example:
        router = OfflineRouterTransport(fetcher, storage, queue, channel)
        router.activate("kids-safety-v1.2.0", "emergency-cache-v1.2.0")
        client = httpx.AsyncClient(transport=router, base_url="https://app.local")
    """

    def __init__(
        self,
        fetcher: NetworkFetcher,
        storage: CacheStorage,
        queue: OfflineQueue,
        channel: Optional[EventChannel] = None,
        *,
        config: Optional[OfflineRouterConfig] = None,
        rules: Optional[ClassificationRules] = None,
        close_fetcher: bool = True,
    ) -> None:
        """
        Create a new OfflineRouterTransport.

        Args:
            fetcher: Network fetcher wrapping the real transport
            storage: Cache region storage
            queue: Offline queue for failed state-changing calls
            channel: Event channel. The router activates on VERSION_ACTIVATED
            config: Router configuration
            rules: Classification patterns
            close_fetcher: Close the fetcher in aclose(). Disable when the fetcher is shared
        """
        self._fetcher = fetcher
        self._storage = storage
        self._queue = queue
        self._channel = channel
        self._config = merge_offline_router_config(config)
        self._rules = rules
        self._close_fetcher = close_fetcher

        self._active = bool(self._config.standard_region and self._config.critical_region)
        self._write_tasks: Set[asyncio.Task] = set()
        self._stats = RouterStats()
        self._unsubscribe = None

        self._strategies: Dict[RequestClass, Callable[[httpx.Request], Awaitable[httpx.Response]]] = {
            RequestClass.CRITICAL: self._handle_critical,
            RequestClass.API_SAFETY: self._handle_api_safety,
            RequestClass.STATIC_ASSET: self._handle_static_asset,
            RequestClass.GENERIC: self._handle_generic,
        }

        if channel is not None:
            self._unsubscribe = channel.subscribe(
                self._on_activated,
                types={OfflineEventType.VERSION_ACTIVATED},
            )

    @property
    def config(self) -> OfflineRouterConfig:
        return self._config

    @property
    def is_active(self) -> bool:
        """Whether requests are being intercepted"""
        return self._active or not self._config.passthrough_until_active

    def activate(self, standard_region: str, critical_region: str) -> None:
        """Start intercepting, writing into the given regions."""
        self._config.standard_region = standard_region
        self._config.critical_region = critical_region
        self._active = True
        logger.info(
            f"{LOG_PREFIX} intercepting requests "
            f"(standard={standard_region}, critical={critical_region})"
        )

    def _on_activated(self, event: OfflineEvent) -> None:
        standard = event.data.get("standard_region")
        critical = event.data.get("critical_region")
        if standard and critical:
            self.activate(standard, critical)
        else:
            logger.warning(f"{LOG_PREFIX} activation event without region names ignored")

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle an async HTTP request through the offline strategies."""
        return await self.handle(request)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        """
        Route a request.

        Returns:
            Network, cached, queued or synthetic response

        Raises:
            The original transport error when a strategy has no fallback
        """
        self._stats.requests += 1

        if not self.is_active:
            self._stats.passthrough += 1
            return await self._fetcher.transport.handle_async_request(request)

        request_class = classify(request, self._rules)
        self._stats.by_class[request_class.value] = self._stats.by_class.get(request_class.value, 0) + 1
        logger.debug(f"{LOG_PREFIX} {request.method} {request.url} -> {request_class.value}")

        return await self._strategies[request_class](request)

    # Strategies

    async def _handle_critical(self, request: httpx.Request) -> httpx.Response:
        result = await self._fetch(request)
        if result.ok:
            self._cache_in_background(request, result.response, self._config.critical_region)
            return result.response

        logger.warning(f"{LOG_PREFIX} emergency request failed ({result.describe()}), trying cache")
        cached = await self._match(request)
        if cached is not None:
            return cached

        self._stats.placeholders += 1
        return emergency_mode_response(request)

    async def _handle_api_safety(self, request: httpx.Request) -> httpx.Response:
        body = await request.aread()
        result = await self._fetch(request)
        if result.ok:
            return result.response

        logger.warning(f"{LOG_PREFIX} safety API request failed: {request.method} {request.url} ({result.describe()})")
        if request.method.upper() in self._config.queue_methods and self._fetcher.is_retryable(result):
            queued = await self._enqueue(request, body)
            if queued is not None:
                return queued

        return result.propagate()

    async def _handle_static_asset(self, request: httpx.Request) -> httpx.Response:
        cached = await self._match(request, count_fallback=False)
        if cached is not None:
            return cached

        result = await self._fetch(request)
        if result.ok:
            self._cache_in_background(request, result.response, self._config.standard_region)
            return result.response

        logger.warning(f"{LOG_PREFIX} static asset failed to load: {request.url} ({result.describe()})")
        if is_image_asset(request):
            self._stats.placeholders += 1
            return image_placeholder_response(request)

        return result.propagate()

    async def _handle_generic(self, request: httpx.Request) -> httpx.Response:
        result = await self._fetch(request)
        if result.ok:
            self._cache_in_background(request, result.response, self._config.standard_region)
            return result.response

        cached = await self._match(request)
        if cached is not None:
            return cached

        if is_navigation_request(request):
            page_url = str(request.url.join(self._config.offline_page))
            entry = await self._storage.match(self._storage.identity_for("GET", page_url))
            if entry is not None:
                self._stats.fallbacks += 1
                logger.info(f"{LOG_PREFIX} serving offline page for {request.url}")
                return cached_response(entry, request)

        return result.propagate()

    # Helpers

    async def _fetch(self, request: httpx.Request) -> NetworkResult:
        result = await self._fetcher.fetch(request)
        if result.ok:
            self._stats.network_successes += 1
        return result

    def _identity(self, request: httpx.Request) -> RequestIdentity:
        return self._storage.identity_for(request.method, str(request.url), dict(request.headers))

    def _lookup_regions(self) -> List[str]:
        return [
            name
            for name in (self._config.critical_region, self._config.standard_region)
            if name
        ]

    async def _match(self, request: httpx.Request, count_fallback: bool = True) -> Optional[httpx.Response]:
        entry = await self._storage.match(self._identity(request), self._lookup_regions())
        if entry is None:
            return None
        self._stats.cache_hits += 1
        if count_fallback:
            self._stats.fallbacks += 1
        logger.debug(f"{LOG_PREFIX} cache hit for {request.url} in {entry.region}")
        return cached_response(entry, request)

    async def _enqueue(self, request: httpx.Request, body: bytes) -> Optional[httpx.Response]:
        url = str(request.url)
        headers = _raw_headers(request)
        priority = queue_priority_for(url, headers, body)
        try:
            item = await self._queue.enqueue(url, request.method, headers, body, priority)
        except OfflineQueueError as error:
            logger.error(f"{LOG_PREFIX} could not queue {request.method} {url}: {error}")
            return None

        self._stats.queued += 1
        if self._channel is not None:
            self._channel.emit(
                OfflineEventType.REQUEST_QUEUED,
                id=item.id,
                url=item.url,
                method=item.method,
                priority=item.priority.value,
            )
        return queued_response(item.id, request)

    def _cache_in_background(
        self,
        request: httpx.Request,
        response: httpx.Response,
        region: Optional[str],
    ) -> None:
        """Schedule a cache write. The response is returned without waiting for it."""
        if request.method.upper() != "GET" or not region:
            return

        identity = self._identity(request)
        task = asyncio.create_task(self._write(region, identity, response))
        self._write_tasks.add(task)
        task.add_done_callback(self._write_tasks.discard)

    async def _write(self, region_name: str, identity: RequestIdentity, response: httpx.Response) -> None:
        try:
            region = await self._storage.open(region_name)
            await region.put(
                identity,
                response.status_code,
                dict(response.headers),
                response.content,
            )
            self._stats.cache_writes += 1
        except asyncio.CancelledError:
            raise
        except Exception as error:
            self._stats.cache_write_failures += 1
            logger.warning(f"{LOG_PREFIX} cache write failed for {identity.url} in {region_name}: {error!r}")
            if self._channel is not None:
                self._channel.emit(
                    OfflineEventType.CACHE_WRITE_FAILED,
                    url=identity.url,
                    region=region_name,
                    error=str(error),
                )

    async def flush(self) -> None:
        """Wait for outstanding cache writes."""
        while self._write_tasks:
            await asyncio.gather(*list(self._write_tasks), return_exceptions=True)

    def get_stats(self) -> dict:
        """Router counters"""
        return {
            "active": self.is_active,
            "requests": self._stats.requests,
            "passthrough": self._stats.passthrough,
            "by_class": dict(self._stats.by_class),
            "network_successes": self._stats.network_successes,
            "cache_hits": self._stats.cache_hits,
            "fallbacks": self._stats.fallbacks,
            "placeholders": self._stats.placeholders,
            "queued": self._stats.queued,
            "cache_writes": self._stats.cache_writes,
            "cache_write_failures": self._stats.cache_write_failures,
            "pending_writes": len(self._write_tasks),
        }

    def detach(self) -> None:
        """Stop listening for activation events."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def aclose(self) -> None:
        """Flush cache writes. Owned fetchers are closed and detached too."""
        await self.flush()
        if self._close_fetcher:
            self.detach()
            await self._fetcher.aclose()
