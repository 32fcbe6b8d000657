"""
Queue item state machine.

    PENDING -> IN_FLIGHT -> SYNCED
                         -> PENDING (backoff)
                         -> FAILED

Each function returns an updated copy and never mutates its argument.
"""
from dataclasses import replace
from typing import Optional

from offline_queue import QueueItem, QueueItemState

from .config import calculate_backoff_delay
from .types import InvalidTransitionError, SyncEngineConfig


def _require(item: QueueItem, expected: QueueItemState, target: QueueItemState) -> None:
    if item.state != expected:
        raise InvalidTransitionError(item.id, item.state.value, target.value)


def begin_attempt(item: QueueItem) -> QueueItem:
    """PENDING -> IN_FLIGHT"""
    _require(item, QueueItemState.PENDING, QueueItemState.IN_FLIGHT)
    return replace(item, headers=dict(item.headers), state=QueueItemState.IN_FLIGHT)


def record_success(item: QueueItem) -> QueueItem:
    """IN_FLIGHT -> SYNCED"""
    _require(item, QueueItemState.IN_FLIGHT, QueueItemState.SYNCED)
    return replace(
        item,
        headers=dict(item.headers),
        state=QueueItemState.SYNCED,
        synced=True,
        last_error=None,
    )


def record_failure(
    item: QueueItem,
    config: SyncEngineConfig,
    now: float,
    error: Optional[str] = None,
) -> QueueItem:
    """
    IN_FLIGHT -> PENDING (backoff) or FAILED.

    The attempt is counted. Once max_attempts is reached the item is FAILED
    and is not retried automatically.
    """
    _require(item, QueueItemState.IN_FLIGHT, QueueItemState.PENDING)
    attempts = item.attempts + 1

    if attempts >= config.max_attempts:
        return replace(
            item,
            headers=dict(item.headers),
            attempts=attempts,
            state=QueueItemState.FAILED,
            next_attempt_at=0.0,
            last_error=error,
        )

    delay = calculate_backoff_delay(attempts, config, item.priority)
    return replace(
        item,
        headers=dict(item.headers),
        attempts=attempts,
        state=QueueItemState.PENDING,
        next_attempt_at=now + delay,
        last_error=error,
    )


def record_interruption(item: QueueItem, config: SyncEngineConfig) -> QueueItem:
    """
    IN_FLIGHT -> PENDING after connectivity loss.

    The attempt counts and the item is eligible as soon as connectivity returns.
    """
    _require(item, QueueItemState.IN_FLIGHT, QueueItemState.PENDING)
    attempts = item.attempts + 1
    state = QueueItemState.FAILED if attempts >= config.max_attempts else QueueItemState.PENDING
    return replace(
        item,
        headers=dict(item.headers),
        attempts=attempts,
        state=state,
        next_attempt_at=0.0,
        last_error="interrupted",
    )


def reset_failed(item: QueueItem) -> QueueItem:
    """FAILED -> PENDING with a fresh attempt budget (manual retry)"""
    _require(item, QueueItemState.FAILED, QueueItemState.PENDING)
    return replace(
        item,
        headers=dict(item.headers),
        attempts=0,
        state=QueueItemState.PENDING,
        next_attempt_at=0.0,
        last_error=None,
    )


def is_due(item: QueueItem, now: float) -> bool:
    """Whether a PENDING item is outside its backoff window"""
    return item.state == QueueItemState.PENDING and item.next_attempt_at <= now
