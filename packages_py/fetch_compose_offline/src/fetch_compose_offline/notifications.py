"""
Safety alert push handling and notification actions.
"""
import inspect
import json
import logging
import time
from typing import Any, Dict, Optional, Protocol, Tuple, Union

import httpx

from offline_events import EventChannel, OfflineEventType

from .types import NotificationAction, SafetyNotification

logger = logging.getLogger(__name__)


DEFAULT_TITLE = "Safety Alert"
DEFAULT_BODY = "You have a new safety notification"
DEFAULT_TAG = "safety-alert"
ALERT_VIBRATION = [200, 100, 200, 100, 200]

ALERT_ACTIONS = [
    NotificationAction(action="open", title="Open App", icon="/icons/open.png"),
    NotificationAction(action="safe", title="I'm Safe", icon="/icons/safe.png"),
    NotificationAction(action="help", title="Need Help", icon="/icons/help.png"),
]

# action -> (endpoint, page opened afterwards or None)
ACTION_ROUTES: Dict[str, Tuple[str, Optional[str]]] = {
    "open": ("/api/safety/alert-opened", "/safety-dashboard"),
    "safe": ("/api/safety/safe-response", None),
    "help": ("/api/safety/help-request", "/emergency-help"),
}

PushPayload = Union[bytes, str, Dict[str, Any], None]


class NotificationPresenter(Protocol):
    """Displays notifications to the user"""

    def show(self, notification: SafetyNotification) -> Any:
        ...


class AppOpener(Protocol):
    """Brings the application to the foreground at a path"""

    def open(self, path: str) -> Any:
        ...


def default_notification() -> SafetyNotification:
    return SafetyNotification(title=DEFAULT_TITLE, body=DEFAULT_BODY, tag=DEFAULT_TAG)


def _parse_payload(payload: PushPayload) -> Optional[Dict[str, Any]]:
    if payload is None:
        return None
    if isinstance(payload, dict):
        return payload
    if not isinstance(payload, (str, bytes, bytearray)):
        raise ValueError(f"unsupported push payload type {type(payload).__name__}")
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError(f"push payload must be an object, got {type(data).__name__}")
    return data


def build_notification(payload: PushPayload) -> SafetyNotification:
    """
    Build a notification from a push payload.

    Payload fields: type, message or body, level, tag, alertId.
    Missing or malformed payloads produce the default "Safety Alert".
    """
    try:
        data = _parse_payload(payload)
    except (ValueError, RecursionError) as error:
        logger.warning(f"Error parsing push data, showing default notification: {error}")
        return default_notification()

    if not data:
        return default_notification()

    return SafetyNotification(
        title=f"{data.get('type') or 'Safety'} Alert",
        body=str(data.get("message") or data.get("body") or DEFAULT_BODY),
        tag=str(data.get("tag") or DEFAULT_TAG),
        require_interaction=data.get("level") == "critical",
        vibrate=list(ALERT_VIBRATION),
        actions=list(ALERT_ACTIONS),
        data=dict(data),
    )


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class SafetyNotificationHandler:
    """
    Turns push payloads into notifications and answers their actions.

    Action responses are POSTed through the router transport so they are
    queued for sync when the network is down.

    Example:
        handler = SafetyNotificationHandler(router, presenter, opener, origin="https://app.local")
        notification = await handler.handle_push(b'{"type": "Emergency", "level": "critical"}')
        await handler.handle_action("safe", notification.data)
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        presenter: NotificationPresenter,
        opener: Optional[AppOpener] = None,
        channel: Optional[EventChannel] = None,
        origin: str = "http://localhost",
    ) -> None:
        self._transport = transport
        self._presenter = presenter
        self._opener = opener
        self._channel = channel
        self._origin = httpx.URL(origin)

    async def handle_push(self, payload: PushPayload) -> SafetyNotification:
        """Show the notification for a push payload."""
        notification = build_notification(payload)
        await _maybe_await(self._presenter.show(notification))
        logger.info(f"Push notification shown: {notification.title} (tag={notification.tag})")
        if self._channel is not None:
            self._channel.emit(
                OfflineEventType.NOTIFICATION_SHOWN,
                title=notification.title,
                tag=notification.tag,
                require_interaction=notification.require_interaction,
            )
        return notification

    async def handle_action(
        self,
        action: Optional[str],
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[httpx.Response]:
        """
        Answer a notification action. Unknown or missing actions open the app.

        "safe" only reports back and publishes SAFE_RESPONSE_SENT; the other
        actions bring the app up at their page afterwards.

        Returns:
            Response of the action POST, or None if it could not be sent
        """
        action = action if action in ACTION_ROUTES else "open"
        endpoint, page = ACTION_ROUTES[action]
        data = data or {}

        body: Dict[str, Any] = {
            "alertId": data.get("alertId"),
            "response": action,
            "timestamp": int(time.time() * 1000),
        }
        if action == "help":
            body["urgent"] = True

        request = httpx.Request("POST", self._origin.join(endpoint), json=body)
        response: Optional[httpx.Response] = None
        try:
            response = await self._transport.handle_async_request(request)
        except (httpx.HTTPError, OSError) as error:
            logger.error(f"Failed to send {action} response: {error!r}")

        if page is not None and self._opener is not None:
            await _maybe_await(self._opener.open(page))

        if self._channel is not None:
            if action == "safe" and response is not None:
                self._channel.emit(OfflineEventType.SAFE_RESPONSE_SENT, alert=dict(data))
            self._channel.emit(
                OfflineEventType.NOTIFICATION_ACTION,
                action=action,
                alert_id=data.get("alertId"),
                status_code=response.status_code if response is not None else None,
                opened=page,
            )
        return response
