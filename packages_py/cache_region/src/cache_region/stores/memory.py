"""
In-memory region store bounded by entry count and total bytes.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional

from ..types import CachedEntry, RegionStore

logger = logging.getLogger(__name__)


@dataclass
class MemoryRegionStats:
    """Memory region statistics."""

    entries: int
    size_bytes: int
    max_size_bytes: int
    max_entries: int
    evictions: int
    rejected: int
    utilization_percent: float


def entry_footprint(entry: CachedEntry) -> int:
    """Approximate bytes held by an entry: body, key and headers."""
    header_bytes = sum(len(name) + len(value) for name, value in entry.headers.items())
    return len(entry.body or b"") + len(entry.identity.key()) + header_bytes


class MemoryRegionStore(RegionStore):
    """
    In-memory region store.

    Entries never expire. They live until overwritten, pushed out by newer
    entries once a bound is reached (least recently read first), or dropped
    with their region. Entries larger than max_entry_size are not stored.
    """

    def __init__(
        self,
        max_size: int = 100 * 1024 * 1024,
        max_entries: int = 1000,
        max_entry_size: int = 5 * 1024 * 1024,
    ) -> None:
        self._entries: "OrderedDict[str, CachedEntry]" = OrderedDict()
        self._footprints: dict[str, int] = {}
        self._bytes = 0
        self._max_size = max_size
        self._max_entries = max_entries
        self._max_entry_size = max_entry_size
        self._evictions = 0
        self._rejected = 0

    def _drop(self, key: str) -> bool:
        if key not in self._entries:
            return False
        del self._entries[key]
        self._bytes -= self._footprints.pop(key)
        return True

    def _make_room(self, incoming: int) -> None:
        while self._entries and (
            self._bytes + incoming > self._max_size
            or len(self._entries) >= self._max_entries
        ):
            victim = next(iter(self._entries))
            self._drop(victim)
            self._evictions += 1
            logger.debug(f"_make_room: evicted {victim}")

    async def get(self, key: str) -> Optional[CachedEntry]:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return entry

    async def set(self, key: str, entry: CachedEntry) -> None:
        footprint = entry_footprint(entry)
        if footprint > self._max_entry_size:
            self._rejected += 1
            logger.debug(f"set: {key} is {footprint} bytes, over the {self._max_entry_size} byte limit")
            return

        self._drop(key)
        self._make_room(footprint)
        self._entries[key] = entry
        self._footprints[key] = footprint
        self._bytes += footprint

    async def has(self, key: str) -> bool:
        return key in self._entries

    async def delete(self, key: str) -> bool:
        return self._drop(key)

    async def clear(self) -> None:
        self._entries.clear()
        self._footprints.clear()
        self._bytes = 0

    async def size(self) -> int:
        return len(self._entries)

    async def keys(self) -> List[str]:
        return list(self._entries)

    async def close(self) -> None:
        await self.clear()

    def get_stats(self) -> MemoryRegionStats:
        return MemoryRegionStats(
            entries=len(self._entries),
            size_bytes=self._bytes,
            max_size_bytes=self._max_size,
            max_entries=self._max_entries,
            evictions=self._evictions,
            rejected=self._rejected,
            utilization_percent=(self._bytes / self._max_size) * 100 if self._max_size > 0 else 0,
        )


def create_memory_region_store(
    max_size: int = 100 * 1024 * 1024,
    max_entries: int = 1000,
    max_entry_size: int = 5 * 1024 * 1024,
) -> MemoryRegionStore:
    """Create a memory region store."""
    return MemoryRegionStore(max_size, max_entries, max_entry_size)
