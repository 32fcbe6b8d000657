"""
Type definitions for fetch_compose_offline
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RequestClass(str, Enum):
    """Routing class of an intercepted request"""

    CRITICAL = "critical"
    API_SAFETY = "api_safety"
    STATIC_ASSET = "static_asset"
    GENERIC = "generic"


@dataclass
class OfflineRouterConfig:
    """Strategy router configuration"""

    standard_region: Optional[str] = None
    """Region receiving standard and static responses. Set on activation"""

    critical_region: Optional[str] = None
    """Region receiving critical responses. Set on activation"""

    offline_page: str = "/offline-safety.html"
    """Cached page served to navigations that fail with no cached copy"""

    queue_methods: List[str] = field(default_factory=lambda: ["POST", "PATCH"])
    """State-changing methods queued when a safety API call fails"""

    passthrough_until_active: bool = True
    """Forward requests untouched until a version is activated. Default: True"""


@dataclass
class RouterStats:
    """Router counters"""

    requests: int = 0
    passthrough: int = 0
    by_class: Dict[str, int] = field(default_factory=dict)
    network_successes: int = 0
    cache_hits: int = 0
    fallbacks: int = 0
    placeholders: int = 0
    queued: int = 0
    cache_writes: int = 0
    cache_write_failures: int = 0


@dataclass
class NotificationAction:
    """Action button on a safety notification"""

    action: str
    title: str
    icon: Optional[str] = None


@dataclass
class SafetyNotification:
    """Notification built from a push payload"""

    title: str
    """Notification title"""

    body: str
    """Notification text"""

    icon: str = "/icons/safety-alert-192.png"
    badge: str = "/icons/badge-72.png"

    tag: str = "safety-alert"
    """Replacement tag; notifications with the same tag replace each other"""

    require_interaction: bool = False
    """Stay visible until the user acts. Set for critical alerts"""

    vibrate: List[int] = field(default_factory=list)
    actions: List[NotificationAction] = field(default_factory=list)

    data: Dict[str, Any] = field(default_factory=dict)
    """Original payload, passed back to action handlers"""
