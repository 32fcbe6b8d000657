"""
Named, versioned cache regions.
"""
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

from .types import CacheRegionConfig, CachedEntry, RegionStore, RequestIdentity
from .stores.memory import MemoryRegionStore

logger = logging.getLogger(__name__)


RegionStoreFactory = Callable[[str, CacheRegionConfig], RegionStore]
"""Creates the backing store for a region name."""


DEFAULT_CACHE_REGION_CONFIG = CacheRegionConfig(
    relevant_headers=[],
    max_entries=1000,
    max_size_bytes=100 * 1024 * 1024,
    max_entry_size_bytes=5 * 1024 * 1024,
)


def merge_cache_region_config(
    config: Optional[CacheRegionConfig] = None,
) -> CacheRegionConfig:
    """Merge user config with defaults."""
    if config is None:
        return CacheRegionConfig(
            relevant_headers=list(DEFAULT_CACHE_REGION_CONFIG.relevant_headers),
            max_entries=DEFAULT_CACHE_REGION_CONFIG.max_entries,
            max_size_bytes=DEFAULT_CACHE_REGION_CONFIG.max_size_bytes,
            max_entry_size_bytes=DEFAULT_CACHE_REGION_CONFIG.max_entry_size_bytes,
        )

    return CacheRegionConfig(
        relevant_headers=list(config.relevant_headers or []),
        max_entries=config.max_entries or DEFAULT_CACHE_REGION_CONFIG.max_entries,
        max_size_bytes=config.max_size_bytes or DEFAULT_CACHE_REGION_CONFIG.max_size_bytes,
        max_entry_size_bytes=config.max_entry_size_bytes
        or DEFAULT_CACHE_REGION_CONFIG.max_entry_size_bytes,
    )


def region_name(purpose: str, version: str) -> str:
    """Region name for a purpose and version tag, e.g. 'emergency-cache-v1'."""
    return f"{purpose}-v{version}"


def _default_store_factory(name: str, config: CacheRegionConfig) -> RegionStore:
    return MemoryRegionStore(
        max_size=config.max_size_bytes,
        max_entries=config.max_entries,
        max_entry_size=config.max_entry_size_bytes,
    )


class CacheRegion:
    """
    A single named region.

    Writes never replace an entry with an older observation: put() compares
    stored_at and keeps the newer one.
    """

    def __init__(self, name: str, store: RegionStore) -> None:
        self._name = name
        self._store = store

    @property
    def name(self) -> str:
        return self._name

    async def put(
        self,
        identity: RequestIdentity,
        status_code: int,
        headers: Dict[str, str],
        body: bytes = b"",
        stored_at: Optional[float] = None,
    ) -> bool:
        """
        Store a response for an identity.

        Returns:
            False when a newer entry is already present
        """
        observed_at = stored_at if stored_at is not None else time.time()
        key = identity.key()

        existing = await self._store.get(key)
        if existing is not None and existing.stored_at > observed_at:
            logger.debug(f"put: keeping newer entry for {key} in {self._name}")
            return False

        await self._store.set(
            key,
            CachedEntry(
                identity=identity,
                status_code=status_code,
                headers=dict(headers),
                body=body,
                stored_at=observed_at,
                region=self._name,
            ),
        )
        return True

    async def match(self, identity: RequestIdentity) -> Optional[CachedEntry]:
        """Look up an identity."""
        return await self._store.get(identity.key())

    async def delete(self, identity: RequestIdentity) -> bool:
        return await self._store.delete(identity.key())

    async def keys(self) -> List[str]:
        return await self._store.keys()

    async def size(self) -> int:
        return await self._store.size()

    async def close(self) -> None:
        await self._store.close()


class CacheStorage:
    """
    Collection of named regions with independent lifecycles.

    Example:
        storage = CacheStorage()
        critical = await storage.open(region_name("emergency-cache", "1"))
        await critical.put(identity, 200, {"content-type": "text/html"}, b"...")
        entry = await storage.match(identity)
    """

    def __init__(
        self,
        config: Optional[CacheRegionConfig] = None,
        store_factory: Optional[RegionStoreFactory] = None,
    ) -> None:
        self._config = merge_cache_region_config(config)
        self._store_factory = store_factory or _default_store_factory
        self._regions: Dict[str, CacheRegion] = {}

    @property
    def config(self) -> CacheRegionConfig:
        return self._config

    def identity_for(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> RequestIdentity:
        """Build an identity using the configured relevant headers."""
        return RequestIdentity.create(method, url, headers, self._config.relevant_headers)

    async def open(self, name: str) -> CacheRegion:
        """Get a region, creating it if needed."""
        region = self._regions.get(name)
        if region is None:
            region = CacheRegion(name, self._store_factory(name, self._config))
            self._regions[name] = region
            logger.debug(f"open: provisioned region {name}")
        return region

    def get(self, name: str) -> Optional[CacheRegion]:
        """Get an existing region without creating it."""
        return self._regions.get(name)

    def has(self, name: str) -> bool:
        return name in self._regions

    def names(self) -> List[str]:
        """Region names in creation order."""
        return list(self._regions.keys())

    async def delete(self, name: str) -> bool:
        """Delete a region and every entry in it."""
        region = self._regions.pop(name, None)
        if region is None:
            return False
        await region.close()
        logger.info(f"delete: removed region {name}")
        return True

    async def delete_except(self, keep: Iterable[str]) -> List[str]:
        """
        Delete every region whose name is not in keep.

        The regions are detached in one step before their stores are closed,
        so no lookup can observe a partially deleted set.
        """
        keep_set = set(keep)
        stale = [name for name in self._regions if name not in keep_set]
        detached = [self._regions.pop(name) for name in stale]
        for region in detached:
            await region.close()
            logger.info(f"delete_except: removed stale region {region.name}")
        return stale

    async def match(
        self,
        identity: RequestIdentity,
        region_names: Optional[Iterable[str]] = None,
    ) -> Optional[CachedEntry]:
        """Look up an identity across regions (all regions by default)."""
        names = list(region_names) if region_names is not None else self.names()
        for name in names:
            region = self._regions.get(name)
            if region is None:
                continue
            entry = await region.match(identity)
            if entry is not None:
                return entry
        return None

    async def close(self) -> None:
        """Close every region."""
        regions = list(self._regions.values())
        self._regions.clear()
        for region in regions:
            await region.close()


def create_cache_storage(
    config: Optional[CacheRegionConfig] = None,
    store_factory: Optional[RegionStoreFactory] = None,
) -> CacheStorage:
    """Create a cache storage instance."""
    return CacheStorage(config, store_factory)
