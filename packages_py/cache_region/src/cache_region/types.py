"""
Types for region-partitioned response caching.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class RequestIdentity:
    """Cache and queue key for a request. Immutable once created."""

    method: str
    """Request method (upper-case)."""

    url: str
    """Absolute request URL."""

    headers: Tuple[Tuple[str, str], ...] = ()
    """Relevant request headers, lower-cased names, sorted."""

    @classmethod
    def create(
        cls,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        relevant_headers: Iterable[str] = (),
    ) -> "RequestIdentity":
        """Build an identity keeping only the relevant headers."""
        wanted = {name.lower() for name in relevant_headers}
        selected: Dict[str, str] = {}
        if headers and wanted:
            for name, value in headers.items():
                if name.lower() in wanted:
                    selected[name.lower()] = value
        return cls(
            method=method.upper(),
            url=url,
            headers=tuple(sorted(selected.items())),
        )

    def key(self) -> str:
        """Stable string key."""
        key = f"{self.method}:{self.url}"
        if self.headers:
            key += "|" + "&".join(f"{k}={v}" for k, v in self.headers)
        return key


@dataclass
class CachedEntry:
    """Stored response for one identity within one region."""

    identity: RequestIdentity
    """Request identity."""

    status_code: int
    """Response status code."""

    headers: Dict[str, str]
    """Response headers."""

    body: bytes = b""
    """Response body."""

    stored_at: float = 0.0
    """When the response was observed (Unix timestamp)."""

    region: str = ""
    """Owning region name."""


class RegionStore(ABC):
    """Backing store for a single region."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CachedEntry]:
        """Get an entry by key."""
        pass

    @abstractmethod
    async def set(self, key: str, entry: CachedEntry) -> None:
        """Store an entry."""
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Check if a key exists."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an entry."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every entry."""
        pass

    @abstractmethod
    async def size(self) -> int:
        """Number of entries."""
        pass

    @abstractmethod
    async def keys(self) -> List[str]:
        """All keys."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the store and release resources."""
        pass


@dataclass
class CacheRegionConfig:
    """Configuration for cache regions."""

    relevant_headers: List[str] = field(default_factory=list)
    """Request headers that take part in the identity. Default: none."""

    max_entries: int = 1000
    """Maximum entries per region. Default: 1000."""

    max_size_bytes: int = 100 * 1024 * 1024
    """Maximum total size per region. Default: 100MB."""

    max_entry_size_bytes: int = 5 * 1024 * 1024
    """Entries larger than this are not stored. Default: 5MB."""
