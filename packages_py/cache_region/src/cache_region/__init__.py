"""
Region-partitioned response cache.

Responses are keyed by request identity and grouped into named, versioned
regions that are provisioned and deleted as a unit.
"""
from .types import (
    RequestIdentity,
    CachedEntry,
    RegionStore,
    CacheRegionConfig,
)
from .storage import (
    CacheRegion,
    CacheStorage,
    RegionStoreFactory,
    create_cache_storage,
    region_name,
    DEFAULT_CACHE_REGION_CONFIG,
    merge_cache_region_config,
)
from .stores import (
    MemoryRegionStore,
    MemoryRegionStats,
    create_memory_region_store,
)


__all__ = [
    # Types
    "RequestIdentity",
    "CachedEntry",
    "RegionStore",
    "CacheRegionConfig",
    # Storage
    "CacheRegion",
    "CacheStorage",
    "RegionStoreFactory",
    "create_cache_storage",
    "region_name",
    "DEFAULT_CACHE_REGION_CONFIG",
    "merge_cache_region_config",
    # Stores
    "MemoryRegionStore",
    "MemoryRegionStats",
    "create_memory_region_store",
]

__version__ = "1.0.0"
