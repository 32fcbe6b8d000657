"""
Offline context: owns every component and their init/teardown order.
"""
import logging
from typing import Optional

import httpx

from cache_region import CacheStorage
from fetch_compose_offline import (
    AppOpener,
    NotificationPresenter,
    OfflineRouterTransport,
    SafetyNotificationHandler,
)
from fetch_outcome import NetworkFetcher
from fetch_sync import SyncEngine
from offline_events import EventChannel
from offline_queue import OfflineQueue, QueueStore, SqlAlchemyQueueStore

from .config import OfflineSettings, get_settings
from .logging_config import configure_logging
from .manager import LifecycleManager
from .manifest import PrecacheManifest, default_manifest, load_manifest
from .types import LifecycleInstallError

logger = logging.getLogger(__name__)


class OfflineContext:
    """
    Explicit container for the offline stack.

    Builds the event channel, cache storage, offline queue, network fetcher,
    router transport, sync engine and lifecycle manager from settings.
    open() loads the queue, starts the sync engine and (optionally) installs
    and activates the configured version; close() tears everything down in
    reverse order.

    Example:
        async with OfflineContext(transport=httpx.AsyncHTTPTransport()) as ctx:
            async with ctx.client() as client:
                response = await client.post("/api/safety/sync", json={...})
    """

    def __init__(
        self,
        settings: Optional[OfflineSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        queue_store: Optional[QueueStore] = None,
        manifest: Optional[PrecacheManifest] = None,
        presenter: Optional[NotificationPresenter] = None,
        opener: Optional[AppOpener] = None,
        install_on_open: bool = True,
        periodic_sync: bool = False,
        configure_logs: bool = False,
    ) -> None:
        self.settings = settings or get_settings()
        self._install_on_open = install_on_open
        self._periodic_sync = periodic_sync
        self._configure_logs = configure_logs
        self._opened = False

        if manifest is None:
            manifest = (
                load_manifest(self.settings.MANIFEST_PATH)
                if self.settings.MANIFEST_PATH
                else default_manifest()
            )

        self.channel = EventChannel()
        self.storage = CacheStorage(self.settings.cache_region_config())
        self.queue = OfflineQueue(
            queue_store or SqlAlchemyQueueStore(self.settings.QUEUE_DATABASE_URL),
            self.settings.queue_config(),
        )
        self.fetcher = NetworkFetcher(
            transport or httpx.AsyncHTTPTransport(),
            self.settings.fetch_config(),
        )
        self.router = OfflineRouterTransport(
            self.fetcher,
            self.storage,
            self.queue,
            self.channel,
            config=self.settings.router_config(),
            close_fetcher=False,
        )
        self.sync = SyncEngine(
            self.queue,
            self.fetcher,
            self.channel,
            self.settings.sync_config(),
        )
        self.lifecycle = LifecycleManager(
            self.storage,
            self.fetcher,
            self.channel,
            version=self.settings.CACHE_VERSION,
            standard_purpose=self.settings.STANDARD_REGION,
            critical_purpose=self.settings.CRITICAL_REGION,
            manifest=manifest,
            origin=self.settings.ORIGIN,
            periodic_interval_seconds=self.settings.PERIODIC_SYNC_INTERVAL_SECONDS,
        )
        self.notifications: Optional[SafetyNotificationHandler] = None
        if presenter is not None:
            self.notifications = SafetyNotificationHandler(
                self.router,
                presenter,
                opener,
                self.channel,
                origin=self.settings.ORIGIN,
            )

    @property
    def is_open(self) -> bool:
        return self._opened

    async def open(self) -> "OfflineContext":
        """Load the queue, start syncing and bring the configured version up."""
        if self._opened:
            return self
        if self._configure_logs:
            configure_logging(self.settings.LOG_LEVEL)

        await self.queue.open()
        self.sync.start()
        self._opened = True

        if self._install_on_open:
            try:
                await self.lifecycle.upgrade()
            except LifecycleInstallError as e:
                # Router stays in pass-through mode until a later upgrade succeeds
                logger.error(f"Offline support unavailable: {e}")
        if self._periodic_sync:
            self.lifecycle.start_periodic_sync()

        logger.info(f"Offline context open (version {self.settings.CACHE_VERSION})")
        return self

    async def close(self) -> None:
        """Stop signals, cancel syncing, flush cache writes and release storage."""
        if not self._opened:
            return
        self._opened = False

        await self.lifecycle.stop()
        await self.sync.stop()
        self.router.detach()
        await self.router.flush()
        await self.fetcher.aclose()
        await self.channel.drain()
        await self.queue.close()
        await self.storage.close()
        await self.channel.close()
        logger.info("Offline context closed")

    def client(self, **client_kwargs) -> httpx.AsyncClient:
        """AsyncClient whose requests go through the router."""
        client_kwargs.setdefault("base_url", self.settings.ORIGIN)
        return httpx.AsyncClient(transport=self.router, **client_kwargs)

    async def __aenter__(self) -> "OfflineContext":
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
