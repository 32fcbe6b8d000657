"""
Single event channel shared by the router, sync engine and lifecycle manager.
"""
import asyncio
import inspect
import logging
from typing import Callable, Optional, Set

from .types import OfflineEvent, OfflineEventListener, OfflineEventType

logger = logging.getLogger(__name__)


class EventChannel:
    """
    In-process publish/subscribe channel.

    Listeners subscribe either to every event or to a set of event types.
    A failing listener never affects the publisher or the other listeners.

    Example:
        channel = EventChannel()
        unsubscribe = channel.subscribe(
            lambda event: print(event.type),
            types={OfflineEventType.SYNC_ITEM_COMPLETE},
        )
        channel.publish(OfflineEvent(type=OfflineEventType.SYNC_ITEM_COMPLETE))
        unsubscribe()
    """

    def __init__(self) -> None:
        self._listeners: dict[OfflineEventListener, Optional[frozenset]] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    def subscribe(
        self,
        listener: OfflineEventListener,
        types: Optional[Set[OfflineEventType]] = None,
    ) -> Callable[[], None]:
        """
        Add a listener.

        Args:
            listener: Sync or async callable receiving OfflineEvent
            types: Only deliver these event types. Default: all

        Returns:
            Function removing the listener
        """
        self._listeners[listener] = frozenset(types) if types else None
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: OfflineEventListener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        self._listeners.pop(listener, None)

    def publish(self, event: OfflineEvent) -> None:
        """Deliver an event to every matching listener."""
        if self._closed:
            logger.debug(f"publish: channel closed, dropping {event.type.value}")
            return

        for listener, types in list(self._listeners.items()):
            if types is not None and event.type not in types:
                continue
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    self._schedule(result, event)
            except Exception:
                logger.exception(f"Listener failed while handling {event.type.value}")

    def emit(self, event_type: OfflineEventType, **data) -> None:
        """Shorthand for publish(OfflineEvent(type=event_type, data=data))."""
        self.publish(OfflineEvent(type=event_type, data=data))

    def _schedule(self, awaitable, event: OfflineEvent) -> None:
        async def _run():
            try:
                await awaitable
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(f"Async listener failed while handling {event.type.value}")

        task = asyncio.create_task(_run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every scheduled async listener to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def listener_count(self) -> int:
        """Number of registered listeners"""
        return len(self._listeners)

    async def close(self) -> None:
        """Cancel pending async listeners and drop all subscriptions."""
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
        self._listeners.clear()


def create_event_channel() -> EventChannel:
    """Create a new event channel"""
    return EventChannel()
