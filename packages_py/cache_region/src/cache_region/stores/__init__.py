"""
Region store implementations.
"""
from .memory import (
    MemoryRegionStore,
    MemoryRegionStats,
    create_memory_region_store,
)

__all__ = [
    "MemoryRegionStore",
    "MemoryRegionStats",
    "create_memory_region_store",
]
