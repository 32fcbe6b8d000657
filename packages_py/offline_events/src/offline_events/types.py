"""
Type definitions for offline_events
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Union


class OfflineEventType(str, Enum):
    """Event types carried on the offline event channel."""

    # Inbound signals
    CONNECTIVITY_CHANGED = "connectivity:changed"
    PERIODIC_SYNC = "sync:periodic"
    FORCE_SYNC = "sync:force"

    # Sync engine
    SYNC_PASS_STARTED = "sync:pass-started"
    SYNC_PASS_COMPLETE = "sync:pass-complete"
    SYNC_ITEM_COMPLETE = "sync:item-complete"
    SYNC_ITEM_RETRY = "sync:item-retry"
    SYNC_ITEM_FAILED = "sync:item-failed"
    FORCE_SYNC_DENIED = "sync:force-denied"

    # Router
    REQUEST_QUEUED = "router:request-queued"
    CACHE_WRITE_FAILED = "router:cache-write-failed"
    NOTIFICATION_SHOWN = "router:notification-shown"
    NOTIFICATION_ACTION = "router:notification-action"
    SAFE_RESPONSE_SENT = "router:safe-response-sent"

    # Lifecycle
    VERSION_INSTALLED = "lifecycle:installed"
    VERSION_INSTALL_FAILED = "lifecycle:install-failed"
    VERSION_ACTIVATED = "lifecycle:activated"


@dataclass
class OfflineEvent:
    """Event published on the channel"""

    type: OfflineEventType
    """Event type"""

    data: dict[str, Any] = field(default_factory=dict)
    """Event-specific data"""

    timestamp: float = field(default_factory=time.time)
    """When the event was created (Unix timestamp)"""


OfflineEventListener = Callable[[OfflineEvent], Union[None, Awaitable[None]]]
"""Listener type. Coroutine listeners are scheduled on the running loop."""
