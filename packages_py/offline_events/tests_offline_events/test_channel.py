"""
Tests for offline_events channel.

Test coverage includes:
- Delivery to all listeners and to type-filtered listeners
- Unsubscribe through the returned callable
- Listener failure isolation (sync and async)
- Close semantics
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from offline_events import (
    EventChannel,
    OfflineEvent,
    OfflineEventType,
    create_event_channel,
)


class TestEventChannel:
    """Tests for EventChannel."""

    class TestSubscribe:
        """Tests for subscribe/unsubscribe."""

        def test_delivers_to_every_listener(self):
            """Should deliver events to listeners without a type filter."""
            channel = create_event_channel()
            listener = MagicMock()
            channel.subscribe(listener)

            event = OfflineEvent(type=OfflineEventType.PERIODIC_SYNC)
            channel.publish(event)

            listener.assert_called_once_with(event)

        def test_filters_by_type(self):
            """Should only deliver subscribed event types."""
            channel = EventChannel()
            listener = MagicMock()
            channel.subscribe(listener, types={OfflineEventType.SYNC_ITEM_COMPLETE})

            channel.emit(OfflineEventType.PERIODIC_SYNC)
            channel.emit(OfflineEventType.SYNC_ITEM_COMPLETE, id="q_1")

            assert listener.call_count == 1
            event = listener.call_args[0][0]
            assert event.type == OfflineEventType.SYNC_ITEM_COMPLETE
            assert event.data == {"id": "q_1"}

        def test_returned_callable_unsubscribes(self):
            """Should stop delivery after unsubscribe."""
            channel = EventChannel()
            listener = MagicMock()
            unsubscribe = channel.subscribe(listener)

            unsubscribe()
            channel.emit(OfflineEventType.FORCE_SYNC)

            listener.assert_not_called()
            assert channel.listener_count == 0

        def test_unsubscribe_unknown_listener_is_noop(self):
            """Should ignore unknown listeners."""
            channel = EventChannel()
            channel.unsubscribe(MagicMock())
            assert channel.listener_count == 0

    class TestIsolation:
        """Tests for listener failure isolation."""

        def test_failing_listener_does_not_stop_others(self):
            """Should keep delivering after a listener raises."""
            channel = EventChannel()
            failing = MagicMock(side_effect=RuntimeError("boom"))
            healthy = MagicMock()
            channel.subscribe(failing)
            channel.subscribe(healthy)

            channel.emit(OfflineEventType.CONNECTIVITY_CHANGED, online=True)

            failing.assert_called_once()
            healthy.assert_called_once()

        @pytest.mark.asyncio
        async def test_async_listener_is_scheduled(self):
            """Should run coroutine listeners on the loop."""
            channel = EventChannel()
            received = []

            async def listener(event):
                await asyncio.sleep(0)
                received.append(event.type)

            channel.subscribe(listener)
            channel.emit(OfflineEventType.VERSION_ACTIVATED)
            await channel.drain()

            assert received == [OfflineEventType.VERSION_ACTIVATED]

        @pytest.mark.asyncio
        async def test_failing_async_listener_is_contained(self):
            """Should log and contain async listener failures."""
            channel = EventChannel()

            async def listener(event):
                raise RuntimeError("boom")

            channel.subscribe(listener)
            channel.emit(OfflineEventType.VERSION_ACTIVATED)
            await channel.drain()

    class TestClose:
        """Tests for close."""

        @pytest.mark.asyncio
        async def test_close_drops_listeners_and_events(self):
            """Should drop subscriptions and ignore later events."""
            channel = EventChannel()
            listener = MagicMock()
            channel.subscribe(listener)

            await channel.close()
            channel.emit(OfflineEventType.PERIODIC_SYNC)

            listener.assert_not_called()
            assert channel.listener_count == 0


class TestOfflineEvent:
    """Tests for OfflineEvent."""

    def test_defaults(self):
        """Should default to empty data and a current timestamp."""
        event = OfflineEvent(type=OfflineEventType.FORCE_SYNC)
        assert event.data == {}
        assert event.timestamp > 0

    def test_event_type_values(self):
        """Should expose stable string values."""
        assert OfflineEventType.CONNECTIVITY_CHANGED.value == "connectivity:changed"
        assert OfflineEventType.VERSION_ACTIVATED.value == "lifecycle:activated"
