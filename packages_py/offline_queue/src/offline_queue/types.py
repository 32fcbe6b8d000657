"""
Type definitions for offline_queue
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class QueuePriority(str, Enum):
    """Drain priority. Critical items are drained first."""

    NORMAL = "normal"
    CRITICAL = "critical"


class QueueItemState(str, Enum):
    """Sync state of a queue item"""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SYNCED = "synced"
    FAILED = "failed"


PRIORITY_RANK: Dict[QueuePriority, int] = {
    QueuePriority.CRITICAL: 0,
    QueuePriority.NORMAL: 1,
}
"""Drain order rank (lower first)"""


@dataclass
class QueueItem:
    """A failed state-changing request awaiting replay"""

    id: str
    """Unique item ID"""

    url: str
    """Original request URL"""

    method: str
    """Original request method"""

    headers: Dict[str, str] = field(default_factory=dict)
    """Original request headers, as supplied by the caller"""

    body: bytes = b""
    """Original request body"""

    enqueued_at: float = 0.0
    """Enqueue timestamp"""

    sequence: int = 0
    """Insertion sequence number, used for stable ordering"""

    attempts: int = 0
    """Completed replay attempts"""

    priority: QueuePriority = QueuePriority.NORMAL
    """Drain priority"""

    synced: bool = False
    """Whether the item received a 2xx response"""

    state: QueueItemState = QueueItemState.PENDING
    """Current sync state"""

    next_attempt_at: float = 0.0
    """Earliest time of the next replay (backoff window end)"""

    last_error: Optional[str] = None
    """Description of the last failure"""

    @property
    def is_critical(self) -> bool:
        return self.priority == QueuePriority.CRITICAL


@dataclass
class OfflineQueueConfig:
    """Offline queue configuration"""

    max_items: Optional[int] = None
    """Maximum number of queued items. Default: None (unlimited)"""


class OfflineQueueError(Exception):
    """Base error for the offline queue"""
    pass


class QueueFullError(OfflineQueueError):
    """Raised when enqueueing into a full queue"""
    pass


class QueueStoreError(OfflineQueueError):
    """Raised when the backing store fails"""
    pass


class QueueStore(ABC):
    """Durable storage for queue items"""

    @abstractmethod
    async def load_all(self) -> List[QueueItem]:
        """Load every persisted item"""
        pass

    @abstractmethod
    async def save(self, item: QueueItem) -> None:
        """Insert or replace an item"""
        pass

    @abstractmethod
    async def delete(self, item_id: str) -> bool:
        """Delete an item. Returns False if it did not exist"""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every item"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the store and release resources"""
        pass
