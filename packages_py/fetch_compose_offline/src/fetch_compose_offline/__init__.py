"""
Offline strategy router transport for httpx's compose pattern.

Routes requests by class:
- Critical pages: network first with a cached or Emergency Mode fallback
- Safety API: network only, failed writes queued for background sync
- Static assets: cache first with an image placeholder
- Everything else: network first with cache and offline page fallbacks
"""
from .types import (
    RequestClass,
    OfflineRouterConfig,
    RouterStats,
    NotificationAction,
    SafetyNotification,
)
from .classifier import (
    ClassificationRules,
    DEFAULT_CLASSIFICATION_RULES,
    IMAGE_EXTENSIONS,
    classify,
    is_image_asset,
    is_navigation_request,
    is_state_changing,
)
from .config import (
    DEFAULT_OFFLINE_ROUTER_CONFIG,
    merge_offline_router_config,
    queue_priority_for,
)
from .responses import (
    EMERGENCY_MODE_HTML,
    IMAGE_PLACEHOLDER_SVG,
    QUEUED_MESSAGE,
    emergency_mode_response,
    image_placeholder_response,
    queued_response,
    cached_response,
)
from .transport import OfflineRouterTransport
from .notifications import (
    AppOpener,
    NotificationPresenter,
    SafetyNotificationHandler,
    build_notification,
    default_notification,
    ACTION_ROUTES,
)
from .factory import (
    compose_transport,
    create_offline_router_transport,
    create_offline_client,
)


__all__ = [
    # Types
    "RequestClass",
    "OfflineRouterConfig",
    "RouterStats",
    "NotificationAction",
    "SafetyNotification",
    # Classifier
    "ClassificationRules",
    "DEFAULT_CLASSIFICATION_RULES",
    "IMAGE_EXTENSIONS",
    "classify",
    "is_image_asset",
    "is_navigation_request",
    "is_state_changing",
    # Config
    "DEFAULT_OFFLINE_ROUTER_CONFIG",
    "merge_offline_router_config",
    "queue_priority_for",
    # Synthetic responses
    "EMERGENCY_MODE_HTML",
    "IMAGE_PLACEHOLDER_SVG",
    "QUEUED_MESSAGE",
    "emergency_mode_response",
    "image_placeholder_response",
    "queued_response",
    "cached_response",
    # Transport
    "OfflineRouterTransport",
    # Notifications
    "AppOpener",
    "NotificationPresenter",
    "SafetyNotificationHandler",
    "build_notification",
    "default_notification",
    "ACTION_ROUTES",
    # Factory functions
    "compose_transport",
    "create_offline_router_transport",
    "create_offline_client",
]

__version__ = "1.0.0"
