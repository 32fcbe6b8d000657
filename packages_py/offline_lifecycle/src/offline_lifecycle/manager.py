"""
Version lifecycle: install, activate, connectivity and periodic sync signals.
"""
import asyncio
import logging
import time
from typing import List, Optional, Tuple

import httpx

from cache_region import CacheStorage, region_name
from fetch_outcome import NetworkFetcher
from offline_events import EventChannel, OfflineEventType

from .manifest import PrecacheManifest, default_manifest
from .types import (
    InstallResult,
    LifecycleError,
    LifecycleInstallError,
    LifecycleState,
)

logger = logging.getLogger(__name__)

LOG_PREFIX = f"[LIFECYCLE:{__file__}]"


class LifecycleManager:
    """
    Lifecycle Manager

    Owns the versioned cache regions and publishes the signals the router
    and sync engine react to:
    - install(): provision <standard>-v<version> and <critical>-v<version>
      and pre-cache every manifest file, all or nothing
    - activate(): delete every other region and publish VERSION_ACTIVATED
    - set_connectivity(): publish CONNECTIVITY_CHANGED
    - start_periodic_sync(): publish PERIODIC_SYNC on an interval

    Example:
        lifecycle = LifecycleManager(storage, fetcher, channel, version="1.2.0")
        await lifecycle.upgrade()
        lifecycle.start_periodic_sync(30)
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: NetworkFetcher,
        channel: EventChannel,
        *,
        version: str = "1.2.0",
        standard_purpose: str = "kids-safety",
        critical_purpose: str = "emergency-cache",
        manifest: Optional[PrecacheManifest] = None,
        origin: str = "http://localhost",
        periodic_interval_seconds: float = 30.0,
    ) -> None:
        self._storage = storage
        self._fetcher = fetcher
        self._channel = channel
        self._version = version
        self._standard_purpose = standard_purpose
        self._critical_purpose = critical_purpose
        self._manifest = manifest or default_manifest()
        self._origin = httpx.URL(origin)
        self._periodic_interval = periodic_interval_seconds

        self._state = LifecycleState.IDLE
        self._active_version: Optional[str] = None
        self._online: Optional[bool] = None
        self._periodic_task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def version(self) -> str:
        """Version the next install/activate applies to"""
        return self._version

    @property
    def active_version(self) -> Optional[str]:
        return self._active_version

    @property
    def manifest(self) -> PrecacheManifest:
        return self._manifest

    @property
    def standard_region(self) -> str:
        return region_name(self._standard_purpose, self._version)

    @property
    def critical_region(self) -> str:
        return region_name(self._critical_purpose, self._version)

    def _url(self, path: str) -> str:
        return str(self._origin.join(path))

    async def install(self) -> InstallResult:
        """
        Provision the version's regions and pre-cache the manifest.

        Every manifest URL is fetched before anything is written. If any
        fetch fails the regions this install created are deleted and nothing
        is activated.

        Raises:
            LifecycleInstallError: a manifest file could not be fetched
        """
        async with self._lock:
            return await self._install()

    async def _install(self) -> InstallResult:
        start = time.monotonic()
        standard, critical = self.standard_region, self.critical_region
        self._state = LifecycleState.INSTALLING
        logger.info(f"{LOG_PREFIX} installing version {self._version}")

        created = [name for name in (standard, critical) if not self._storage.has(name)]
        standard_cache = await self._storage.open(standard)
        critical_cache = await self._storage.open(critical)

        targets: List[Tuple[str, str]] = [
            *((self._url(path), standard) for path in self._manifest.standard_files),
            *((self._url(path), critical) for path in self._manifest.emergency_files),
        ]
        results = await asyncio.gather(
            *(self._fetcher.fetch(httpx.Request("GET", url)) for url, _ in targets)
        )

        failed = [
            f"{url} ({result.describe()})"
            for (url, _), result in zip(targets, results)
            if not result.ok
        ]
        if failed:
            for name in created:
                await self._storage.delete(name)
            self._state = LifecycleState.INSTALL_FAILED
            error = LifecycleInstallError(self._version, failed, failed[0])
            logger.error(f"{LOG_PREFIX} {error}")
            self._channel.emit(
                OfflineEventType.VERSION_INSTALL_FAILED,
                version=self._version,
                failed=failed,
            )
            raise error

        cached: List[str] = []
        for (url, name), result in zip(targets, results):
            region = standard_cache if name == standard else critical_cache
            await region.put(
                self._storage.identity_for("GET", url),
                result.response.status_code,
                dict(result.response.headers),
                result.response.content,
            )
            cached.append(url)

        self._state = LifecycleState.INSTALLED
        install = InstallResult(
            version=self._version,
            standard_region=standard,
            critical_region=critical,
            cached=cached,
            duration_seconds=time.monotonic() - start,
        )
        logger.info(f"{LOG_PREFIX} installed version {self._version}: {len(cached)} file(s) cached")
        self._channel.emit(
            OfflineEventType.VERSION_INSTALLED,
            version=self._version,
            standard_region=standard,
            critical_region=critical,
            cached=list(cached),
        )
        return install

    async def activate(self) -> List[str]:
        """
        Make the installed version current.

        Returns:
            Names of the stale regions that were deleted

        Raises:
            LifecycleError: nothing installed for the current version
        """
        async with self._lock:
            return await self._activate()

    async def _activate(self) -> List[str]:
        if self._state not in (LifecycleState.INSTALLED, LifecycleState.ACTIVE):
            raise LifecycleError(
                f"Cannot activate version {self._version} in state {self._state.value}"
            )

        standard, critical = self.standard_region, self.critical_region
        deleted = await self._storage.delete_except([standard, critical])
        for name in deleted:
            logger.info(f"{LOG_PREFIX} deleted old cache {name}")

        self._state = LifecycleState.ACTIVE
        self._active_version = self._version
        logger.info(f"{LOG_PREFIX} version {self._version} activated")
        self._channel.emit(
            OfflineEventType.VERSION_ACTIVATED,
            version=self._version,
            standard_region=standard,
            critical_region=critical,
            deleted=deleted,
        )
        return deleted

    async def upgrade(
        self,
        version: Optional[str] = None,
        manifest: Optional[PrecacheManifest] = None,
    ) -> InstallResult:
        """
        Install and activate a version.

        On install failure the previously active version keeps serving.
        """
        async with self._lock:
            previous = (self._version, self._manifest, self._state)
            if version is not None:
                self._version = version
            if manifest is not None:
                self._manifest = manifest
            try:
                result = await self._install()
            except LifecycleInstallError:
                if self._active_version is not None:
                    self._version, self._manifest, _ = previous
                    self._state = LifecycleState.ACTIVE
                raise
            await self._activate()
            return result

    # Signals

    @property
    def is_online(self) -> Optional[bool]:
        return self._online

    def set_connectivity(self, online: bool) -> None:
        """Publish a connectivity change."""
        changed = self._online != online
        self._online = online
        if changed:
            logger.info(f"{LOG_PREFIX} connectivity {'restored' if online else 'lost'}")
        self._channel.emit(OfflineEventType.CONNECTIVITY_CHANGED, online=online)

    def request_force_sync(self) -> None:
        """Ask the sync engine to replay critical items now."""
        self._channel.emit(OfflineEventType.FORCE_SYNC)

    def start_periodic_sync(self, interval_seconds: Optional[float] = None) -> None:
        """Publish PERIODIC_SYNC every interval until stopped."""
        self.stop_periodic_sync()
        interval = interval_seconds if interval_seconds is not None else self._periodic_interval
        if interval <= 0:
            raise ValueError("interval_seconds must be positive")

        async def _tick():
            while True:
                await asyncio.sleep(interval)
                self._channel.emit(OfflineEventType.PERIODIC_SYNC, interval=interval)

        self._periodic_task = asyncio.create_task(_tick())
        logger.info(f"{LOG_PREFIX} periodic sync every {interval}s")

    def stop_periodic_sync(self) -> None:
        if self._periodic_task is not None and not self._periodic_task.done():
            self._periodic_task.cancel()
        self._periodic_task = None

    @property
    def periodic_sync_running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    async def stop(self) -> None:
        """Stop periodic signals."""
        task = self._periodic_task
        self.stop_periodic_sync()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
