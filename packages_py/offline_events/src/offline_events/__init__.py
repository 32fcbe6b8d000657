"""
Event channel connecting connectivity, lifecycle and sync signals.
"""
from .types import (
    OfflineEventType,
    OfflineEvent,
    OfflineEventListener,
)
from .channel import (
    EventChannel,
    create_event_channel,
)


__all__ = [
    # Types
    "OfflineEventType",
    "OfflineEvent",
    "OfflineEventListener",
    # Channel
    "EventChannel",
    "create_event_channel",
]


__version__ = "1.0.0"
