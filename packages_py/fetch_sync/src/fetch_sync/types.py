"""
Type definitions for fetch_sync
"""
import time
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_FAILURE_MESSAGE = (
    "Unable to sync safety data. Your information is stored locally "
    "and will sync when connection improves."
)


@dataclass
class SyncEngineConfig:
    """Sync engine configuration"""

    max_attempts: int = 3
    """Replay attempts before an item is marked FAILED. Default: 3"""

    base_delay_seconds: float = 1.0
    """Base delay for exponential backoff (seconds). Default: 1.0"""

    max_delay_seconds: float = 30.0
    """Maximum backoff for normal-priority items (seconds). Default: 30.0"""

    timeout_seconds: float = 10.0
    """Upper bound for a single replay (seconds). Default: 10.0"""

    debounce_seconds: float = 1.0
    """Delay between an offline->online transition and the pass it triggers. Default: 1.0"""

    failure_message: str = DEFAULT_FAILURE_MESSAGE
    """Text of the notice recorded when an item exhausts its attempts"""


@dataclass
class FailureNotice:
    """User-visible notice for a queue item that could not be synced"""

    id: str
    """Notice ID"""

    item_id: str
    """Queue item the notice refers to"""

    url: str
    """Request URL of the item"""

    message: str
    """Notice text"""

    attempts: int = 0
    """Attempts made before giving up"""

    created_at: float = field(default_factory=time.time)
    """When the notice was raised"""

    dismissed: bool = False
    """Whether the user dismissed the notice"""


@dataclass
class SyncPassResult:
    """Summary of a single sync pass"""

    synced: list[str] = field(default_factory=list)
    """Items replayed successfully and removed"""

    retried: list[str] = field(default_factory=list)
    """Items that failed and were rescheduled"""

    failed: list[str] = field(default_factory=list)
    """Items that exhausted their attempts during this pass"""

    skipped: list[str] = field(default_factory=list)
    """Items still inside their backoff window or already in flight"""

    interrupted: bool = False
    """Whether the pass stopped early because connectivity was lost"""

    priority_filter: Optional[str] = None
    """Priority the pass was restricted to"""

    duration_seconds: float = 0.0
    """Pass duration (seconds)"""


@dataclass
class SyncStats:
    """Sync engine counters"""

    passes: int = 0
    synced: int = 0
    retried: int = 0
    failed: int = 0
    interrupted: int = 0
    force_denied: int = 0


class SyncError(Exception):
    """Base error for the sync engine"""
    pass


class InvalidTransitionError(SyncError):
    """Raised when a queue item is moved along an edge the state machine does not have"""

    def __init__(self, item_id: str, current: str, target: str) -> None:
        super().__init__(f"Cannot move item {item_id} from {current} to {target}")
        self.item_id = item_id
        self.current = current
        self.target = target
