"""Offline settings using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

from cache_region import CacheRegionConfig
from fetch_compose_offline import OfflineRouterConfig
from fetch_outcome import FetchOutcomeConfig
from fetch_sync import SyncEngineConfig
from offline_queue import OfflineQueueConfig


class OfflineSettings(BaseSettings):
    """Settings loaded from OFFLINE_* environment variables."""

    # Versioned cache regions
    CACHE_VERSION: str = "1.2.0"
    STANDARD_REGION: str = "kids-safety"
    CRITICAL_REGION: str = "emergency-cache"
    CACHE_MAX_ENTRIES: int = 1000

    # Offline queue
    QUEUE_DATABASE_URL: str = "sqlite+aiosqlite:///offline_queue.db"
    QUEUE_MAX_ITEMS: Optional[int] = None

    # Sync
    SYNC_MAX_ATTEMPTS: int = 3
    SYNC_BASE_DELAY_SECONDS: float = 1.0
    SYNC_MAX_DELAY_SECONDS: float = 30.0
    CONNECTIVITY_DEBOUNCE_SECONDS: float = 1.0
    PERIODIC_SYNC_INTERVAL_SECONDS: float = 30.0

    # Network
    NETWORK_TIMEOUT_SECONDS: float = 10.0
    ORIGIN: str = "http://localhost"

    # Routing
    OFFLINE_FALLBACK_PAGE: str = "/offline-safety.html"
    MANIFEST_PATH: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    class Config:
        case_sensitive = True
        env_prefix = "OFFLINE_"
        env_file = None  # Use system env only

    def cache_region_config(self) -> CacheRegionConfig:
        return CacheRegionConfig(max_entries=self.CACHE_MAX_ENTRIES)

    def queue_config(self) -> OfflineQueueConfig:
        return OfflineQueueConfig(max_items=self.QUEUE_MAX_ITEMS)

    def fetch_config(self) -> FetchOutcomeConfig:
        return FetchOutcomeConfig(timeout_seconds=self.NETWORK_TIMEOUT_SECONDS)

    def sync_config(self) -> SyncEngineConfig:
        return SyncEngineConfig(
            max_attempts=self.SYNC_MAX_ATTEMPTS,
            base_delay_seconds=self.SYNC_BASE_DELAY_SECONDS,
            max_delay_seconds=self.SYNC_MAX_DELAY_SECONDS,
            timeout_seconds=self.NETWORK_TIMEOUT_SECONDS,
            debounce_seconds=self.CONNECTIVITY_DEBOUNCE_SECONDS,
        )

    def router_config(self) -> OfflineRouterConfig:
        return OfflineRouterConfig(offline_page=self.OFFLINE_FALLBACK_PAGE)


@lru_cache()
def get_settings() -> OfflineSettings:
    """Get cached settings instance."""
    return OfflineSettings()
