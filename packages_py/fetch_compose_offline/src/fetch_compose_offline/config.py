"""
Configuration utilities for fetch_compose_offline
"""
import json
from typing import Mapping, Optional

from offline_queue import QueuePriority

from .types import OfflineRouterConfig


DEFAULT_OFFLINE_ROUTER_CONFIG = OfflineRouterConfig(
    standard_region=None,
    critical_region=None,
    offline_page="/offline-safety.html",
    queue_methods=["POST", "PATCH"],
    passthrough_until_active=True,
)

CRITICAL_URL_MARKER = "/api/emergency"
PRIORITY_HEADER = "x-sync-priority"


def merge_offline_router_config(
    config: Optional[OfflineRouterConfig] = None,
) -> OfflineRouterConfig:
    """Merge user config with defaults."""
    if config is None:
        return OfflineRouterConfig(
            standard_region=DEFAULT_OFFLINE_ROUTER_CONFIG.standard_region,
            critical_region=DEFAULT_OFFLINE_ROUTER_CONFIG.critical_region,
            offline_page=DEFAULT_OFFLINE_ROUTER_CONFIG.offline_page,
            queue_methods=list(DEFAULT_OFFLINE_ROUTER_CONFIG.queue_methods),
            passthrough_until_active=DEFAULT_OFFLINE_ROUTER_CONFIG.passthrough_until_active,
        )

    return OfflineRouterConfig(
        standard_region=config.standard_region,
        critical_region=config.critical_region,
        offline_page=config.offline_page or DEFAULT_OFFLINE_ROUTER_CONFIG.offline_page,
        queue_methods=[m.upper() for m in (config.queue_methods or DEFAULT_OFFLINE_ROUTER_CONFIG.queue_methods)],
        passthrough_until_active=config.passthrough_until_active,
    )


def queue_priority_for(url: str, headers: Mapping[str, str], body: bytes) -> QueuePriority:
    """
    Drain priority for a failed request.

    Critical when the URL targets the emergency API, the caller set
    X-Sync-Priority: critical, or the JSON body carries level "critical"
    or type "emergency".
    """
    if CRITICAL_URL_MARKER in url:
        return QueuePriority.CRITICAL

    for name, value in headers.items():
        if name.lower() == PRIORITY_HEADER and value.strip().lower() == "critical":
            return QueuePriority.CRITICAL

    if body:
        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            payload = None
        if isinstance(payload, dict) and (
            payload.get("level") == "critical" or payload.get("type") == "emergency"
        ):
            return QueuePriority.CRITICAL

    return QueuePriority.NORMAL
