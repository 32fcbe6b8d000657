"""
Sync engine replaying queued requests.
"""
import asyncio
import logging
import secrets
import time
from typing import Callable, Coroutine, Dict, Optional, Set

import httpx

from fetch_outcome import NetworkFetcher
from offline_events import EventChannel, OfflineEvent, OfflineEventType
from offline_queue import OfflineQueue, QueueItem, QueueItemState, QueuePriority

from .config import merge_sync_engine_config
from .transitions import (
    begin_attempt,
    is_due,
    record_failure,
    record_interruption,
    record_success,
    reset_failed,
)
from .types import FailureNotice, SyncEngineConfig, SyncPassResult, SyncStats

logger = logging.getLogger(__name__)

LOG_PREFIX = f"[SYNC:{__file__}]"


def _build_replay_request(item: QueueItem) -> httpx.Request:
    """Rebuild the original request from the stored method, URL, headers and body."""
    return httpx.Request(
        item.method,
        item.url,
        headers=list(item.headers.items()),
        content=item.body,
    )


class SyncEngine:
    """
    Sync Engine

    Replays queued requests when connectivity allows:
    - Critical items first, insertion order within a priority
    - 2xx removes the item; failures back off exponentially
    - After max_attempts the item is FAILED and a FailureNotice is recorded
    - One pass at a time, at most one replay per item

    Passes are triggered by CONNECTIVITY_CHANGED (offline -> online, debounced),
    PERIODIC_SYNC and FORCE_SYNC events on the channel, or directly with
    run_pass() and force_sync(). Losing connectivity cancels a scheduled pass.

    Example:
        engine = SyncEngine(queue, fetcher, channel)
        engine.start()
        ...
        await engine.stop()
    """

    def __init__(
        self,
        queue: OfflineQueue,
        fetcher: NetworkFetcher,
        channel: EventChannel,
        config: Optional[SyncEngineConfig] = None,
        clock: Optional[Callable[[], float]] = None,
        online: bool = True,
    ) -> None:
        self._queue = queue
        self._fetcher = fetcher
        self._channel = channel
        self._config = merge_sync_engine_config(config)
        self._clock = clock or time.time
        self._online = online

        self._pass_lock = asyncio.Lock()
        self._in_flight: Set[str] = set()
        self._pass_tasks: Set[asyncio.Task] = set()
        self._debounce_task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

        self._notices: Dict[str, FailureNotice] = {}
        self._stats = SyncStats()

    @property
    def config(self) -> SyncEngineConfig:
        """Get configuration."""
        return self._config

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_running(self) -> bool:
        """Whether the engine is subscribed to the channel"""
        return self._unsubscribe is not None

    # Lifecycle

    def start(self) -> None:
        """Subscribe to connectivity, periodic and force-sync events."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._channel.subscribe(
            self._handle_event,
            types={
                OfflineEventType.CONNECTIVITY_CHANGED,
                OfflineEventType.PERIODIC_SYNC,
                OfflineEventType.FORCE_SYNC,
            },
        )
        logger.info(f"{LOG_PREFIX} started (online={self._online})")

    async def stop(self) -> None:
        """Unsubscribe and cancel scheduled work."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._cancel_scheduled()
        logger.info(f"{LOG_PREFIX} stopped")

    # Triggers

    def _handle_event(self, event: OfflineEvent) -> None:
        if event.type == OfflineEventType.CONNECTIVITY_CHANGED:
            self.set_online(bool(event.data.get("online")))
        elif event.type == OfflineEventType.PERIODIC_SYNC:
            if self._online:
                self._schedule_pass()
            else:
                logger.debug(f"{LOG_PREFIX} periodic trigger ignored while offline")
        elif event.type == OfflineEventType.FORCE_SYNC:
            if self._online:
                self._schedule_pass(QueuePriority.CRITICAL)
            else:
                self._deny_force_sync()

    def set_online(self, online: bool) -> None:
        """
        Apply a connectivity change.

        offline -> online schedules a debounced pass. online -> offline cancels
        the pending debounce and any scheduled pass.
        """
        was_online = self._online
        self._online = online

        if online and not was_online:
            logger.info(f"{LOG_PREFIX} connectivity restored, sync in {self._config.debounce_seconds}s")
            self._schedule_debounced_pass()
        elif not online and was_online:
            logger.info(f"{LOG_PREFIX} connectivity lost, cancelling scheduled sync")
            self._cancel_debounce()
            for task in list(self._pass_tasks):
                task.cancel()

    def _schedule_debounced_pass(self) -> None:
        self._cancel_debounce()

        async def _debounced():
            await asyncio.sleep(self._config.debounce_seconds)
            self._debounce_task = None
            if self._online:
                self._schedule_pass()

        self._debounce_task = asyncio.create_task(_debounced())

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    def _schedule_pass(self, priority_filter: Optional[QueuePriority] = None) -> asyncio.Task:
        task = asyncio.create_task(self._run_scheduled(priority_filter))
        self._pass_tasks.add(task)
        task.add_done_callback(self._pass_tasks.discard)
        return task

    async def _run_scheduled(self, priority_filter: Optional[QueuePriority]) -> None:
        try:
            await self.run_pass(priority_filter)
        except asyncio.CancelledError:
            logger.info(f"{LOG_PREFIX} scheduled sync pass cancelled")
            raise
        except Exception:
            logger.exception(f"{LOG_PREFIX} scheduled sync pass failed")

    async def _cancel_scheduled(self) -> None:
        self._cancel_debounce()
        tasks = list(self._pass_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def wait_idle(self) -> None:
        """Wait for the pending debounce and every scheduled pass to finish."""
        while self._debounce_task is not None or self._pass_tasks:
            pending = list(self._pass_tasks)
            if self._debounce_task is not None:
                pending.append(self._debounce_task)
            await asyncio.gather(*pending, return_exceptions=True)

    # Passes

    async def force_sync(self) -> Optional[SyncPassResult]:
        """
        Replay critical items now.

        Returns:
            Pass result, or None when denied because the engine is offline
        """
        if not self._online:
            self._deny_force_sync()
            return None
        return await self.run_pass(QueuePriority.CRITICAL)

    def _deny_force_sync(self) -> None:
        self._stats.force_denied += 1
        logger.warning(f"{LOG_PREFIX} cannot force sync while offline, data stays queued")
        self._channel.emit(OfflineEventType.FORCE_SYNC_DENIED, reason="offline")

    async def run_pass(self, priority_filter: Optional[QueuePriority] = None) -> SyncPassResult:
        """
        Replay every due PENDING item, critical first.

        Passes are serialized. The pass stops early if connectivity is lost.

        Args:
            priority_filter: Only replay items of this priority

        Returns:
            Pass summary
        """
        async with self._pass_lock:
            start = time.monotonic()
            result = SyncPassResult(
                priority_filter=priority_filter.value if priority_filter else None,
            )
            self._stats.passes += 1
            self._channel.emit(
                OfflineEventType.SYNC_PASS_STARTED,
                priority_filter=result.priority_filter,
            )

            for snapshot in await self._queue.pending(priority_filter):
                if not self._online:
                    result.interrupted = True
                    logger.info(f"{LOG_PREFIX} pass stopped, connectivity lost")
                    break
                await self._sync_item(snapshot.id, result)

            result.duration_seconds = time.monotonic() - start
            logger.info(
                f"{LOG_PREFIX} pass complete: synced={len(result.synced)} "
                f"retried={len(result.retried)} failed={len(result.failed)} "
                f"skipped={len(result.skipped)}"
            )
            self._channel.emit(
                OfflineEventType.SYNC_PASS_COMPLETE,
                synced=list(result.synced),
                retried=list(result.retried),
                failed=list(result.failed),
                skipped=list(result.skipped),
                interrupted=result.interrupted,
            )
            return result

    async def _sync_item(self, item_id: str, result: SyncPassResult) -> None:
        """Replay one item. Critical items are retried immediately until synced or FAILED."""
        if item_id in self._in_flight:
            result.skipped.append(item_id)
            return

        self._in_flight.add(item_id)
        try:
            while True:
                # Re-read: the item may have been removed or updated since the snapshot
                item = await self._queue.get(item_id)
                if item is None:
                    return
                if not is_due(item, self._clock()):
                    result.skipped.append(item_id)
                    return

                item = await self._replay(item)
                if item is None:
                    result.synced.append(item_id)
                    return
                if item.state == QueueItemState.FAILED:
                    result.failed.append(item_id)
                    return
                if not item.is_critical or not self._online:
                    result.retried.append(item_id)
                    return
        finally:
            self._in_flight.discard(item_id)

    async def _persist(self, write: Coroutine) -> bool:
        """
        Run a queue write to completion even when the pass is cancelled meanwhile.

        Returns:
            Whether cancellation was requested during the write
        """
        task = asyncio.create_task(write)
        try:
            await asyncio.shield(task)
            return False
        except asyncio.CancelledError:
            await task
            return True

    async def _interrupt(self, item: QueueItem) -> None:
        item = record_interruption(item, self._config)
        self._stats.interrupted += 1
        await self._persist(self._queue.update(item))
        logger.info(f"{LOG_PREFIX} replay of {item.id} interrupted (attempts={item.attempts})")
        if item.state == QueueItemState.FAILED:
            self._fail(item)

    async def _replay(self, item: QueueItem) -> Optional[QueueItem]:
        """
        One replay attempt.

        Queue writes always complete. A cancellation that arrives before the
        outcome is known reverts the item with record_interruption; one that
        arrives while the outcome is being written is re-raised afterwards.

        Returns:
            None when synced and removed, else the updated item
        """
        in_flight = begin_attempt(item)
        if await self._persist(self._queue.update(in_flight)):
            await self._interrupt(in_flight)
            raise asyncio.CancelledError()

        try:
            outcome = await self._fetcher.fetch(
                _build_replay_request(in_flight),
                timeout_seconds=self._config.timeout_seconds,
            )
        except asyncio.CancelledError:
            await self._interrupt(in_flight)
            raise

        if outcome.ok:
            item = record_success(in_flight)
            cancelled = await self._persist(self._queue.remove(item.id))
            self._stats.synced += 1
            logger.info(f"{LOG_PREFIX} synced {item.method} {item.url} ({item.id})")
            self._channel.emit(
                OfflineEventType.SYNC_ITEM_COMPLETE,
                id=item.id,
                url=item.url,
                method=item.method,
                attempts=item.attempts + 1,
                status_code=outcome.response.status_code,
            )
            if cancelled:
                raise asyncio.CancelledError()
            return None

        item = record_failure(in_flight, self._config, self._clock(), outcome.describe())
        cancelled = await self._persist(self._queue.update(item))

        if item.state == QueueItemState.FAILED:
            self._fail(item)
        else:
            self._stats.retried += 1
            logger.warning(
                f"{LOG_PREFIX} replay of {item.id} failed ({item.last_error}), "
                f"attempt {item.attempts}/{self._config.max_attempts}"
            )
            self._channel.emit(
                OfflineEventType.SYNC_ITEM_RETRY,
                id=item.id,
                url=item.url,
                attempts=item.attempts,
                next_attempt_at=item.next_attempt_at,
                error=item.last_error,
            )

        if cancelled:
            raise asyncio.CancelledError()
        return item

    def _fail(self, item: QueueItem) -> FailureNotice:
        notice = FailureNotice(
            id=f"notice_{int(time.time() * 1000)}_{secrets.token_hex(4)}",
            item_id=item.id,
            url=item.url,
            message=self._config.failure_message,
            attempts=item.attempts,
        )
        self._notices[notice.id] = notice
        self._stats.failed += 1
        logger.error(
            f"{LOG_PREFIX} max sync attempts reached for {item.method} {item.url} "
            f"({item.id}): {item.last_error}"
        )
        self._channel.emit(
            OfflineEventType.SYNC_ITEM_FAILED,
            id=item.id,
            url=item.url,
            attempts=item.attempts,
            error=item.last_error,
            notice_id=notice.id,
        )
        return notice

    # Failed items

    async def retry_failed(self, item_id: str) -> bool:
        """Give a FAILED item a fresh attempt budget."""
        item = await self._queue.get(item_id)
        if item is None or item.state != QueueItemState.FAILED:
            return False
        return await self._queue.update(reset_failed(item))

    async def discard(self, item_id: str) -> bool:
        """Drop a queued item and dismiss its notices."""
        for notice in self._notices.values():
            if notice.item_id == item_id:
                notice.dismissed = True
        return await self._queue.remove(item_id)

    # Notices

    def get_notices(self, include_dismissed: bool = False) -> list[FailureNotice]:
        """Failure notices, oldest first"""
        notices = sorted(self._notices.values(), key=lambda n: n.created_at)
        if include_dismissed:
            return notices
        return [notice for notice in notices if not notice.dismissed]

    def dismiss_notice(self, notice_id: str) -> bool:
        notice = self._notices.get(notice_id)
        if notice is None:
            return False
        notice.dismissed = True
        return True

    def get_stats(self) -> dict:
        """Engine counters"""
        return {
            "online": self._online,
            "passes": self._stats.passes,
            "synced": self._stats.synced,
            "retried": self._stats.retried,
            "failed": self._stats.failed,
            "interrupted": self._stats.interrupted,
            "force_denied": self._stats.force_denied,
            "in_flight": len(self._in_flight),
            "notices": len(self.get_notices()),
        }


def create_sync_engine(
    queue: OfflineQueue,
    fetcher: NetworkFetcher,
    channel: EventChannel,
    config: Optional[SyncEngineConfig] = None,
    **kwargs,
) -> SyncEngine:
    """Create a new sync engine"""
    return SyncEngine(queue, fetcher, channel, config, **kwargs)
