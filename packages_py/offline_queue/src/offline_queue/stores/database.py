"""
Durable queue store backed by SQLAlchemy (async).

One row per queue item. Defaults to a local SQLite file through aiosqlite so
queued requests survive process restarts.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    delete,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..types import QueueItem, QueueItemState, QueuePriority, QueueStore, QueueStoreError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///offline_queue.db"
DEFAULT_TABLE_NAME = "offline_queue_items"


def build_queue_table(metadata: MetaData, table_name: str = DEFAULT_TABLE_NAME) -> Table:
    """Table layout for persisted queue items."""
    return Table(
        table_name,
        metadata,
        Column("id", String(64), primary_key=True),
        Column("sequence", Integer, nullable=False, index=True),
        Column("url", Text, nullable=False),
        Column("method", String(16), nullable=False),
        Column("headers", Text, nullable=False, default="{}"),
        Column("body", LargeBinary, nullable=False, default=b""),
        Column("enqueued_at", Float, nullable=False),
        Column("attempts", Integer, nullable=False, default=0),
        Column("priority", String(16), nullable=False),
        Column("synced", Boolean, nullable=False, default=False),
        Column("state", String(16), nullable=False),
        Column("next_attempt_at", Float, nullable=False, default=0.0),
        Column("last_error", Text, nullable=True),
    )


class SqlAlchemyQueueStore(QueueStore):
    """
    SQLAlchemy implementation of QueueStore.

    Example:
        store = SqlAlchemyQueueStore("sqlite+aiosqlite:////var/lib/app/queue.db")
        queue = OfflineQueue(store=store)
        await queue.open()
    """

    def __init__(
        self,
        database_url: str = DEFAULT_DATABASE_URL,
        *,
        engine: Optional[AsyncEngine] = None,
        table_name: str = DEFAULT_TABLE_NAME,
        echo: bool = False,
    ) -> None:
        """
        Create a new SqlAlchemyQueueStore.

        Args:
            database_url: Async SQLAlchemy URL. Ignored when engine is given
            engine: Existing async engine (not disposed on close)
            table_name: Table holding queue items
            echo: Log SQL statements
        """
        self._owns_engine = engine is None
        self._engine = engine or create_async_engine(database_url, echo=echo)
        self._metadata = MetaData()
        self._table = build_queue_table(self._metadata, table_name)
        self._schema_ready = False

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._engine.begin() as conn:
            await conn.run_sync(self._metadata.create_all)
        self._schema_ready = True

    def _to_row(self, item: QueueItem) -> dict:
        return {
            "id": item.id,
            "sequence": item.sequence,
            "url": item.url,
            "method": item.method,
            "headers": json.dumps(item.headers),
            "body": item.body or b"",
            "enqueued_at": item.enqueued_at,
            "attempts": item.attempts,
            "priority": item.priority.value,
            "synced": item.synced,
            "state": item.state.value,
            "next_attempt_at": item.next_attempt_at,
            "last_error": item.last_error,
        }

    def _from_row(self, row) -> QueueItem:
        return QueueItem(
            id=row.id,
            url=row.url,
            method=row.method,
            headers=json.loads(row.headers or "{}"),
            body=bytes(row.body or b""),
            enqueued_at=row.enqueued_at,
            sequence=row.sequence,
            attempts=row.attempts,
            priority=QueuePriority(row.priority),
            synced=bool(row.synced),
            state=QueueItemState(row.state),
            next_attempt_at=row.next_attempt_at or 0.0,
            last_error=row.last_error,
        )

    async def load_all(self) -> list[QueueItem]:
        try:
            await self._ensure_schema()
            async with self._engine.connect() as conn:
                result = await conn.execute(
                    select(self._table).order_by(self._table.c.sequence)
                )
                return [self._from_row(row) for row in result]
        except SQLAlchemyError as error:
            raise QueueStoreError(f"Failed to load queue items: {error}") from error

    async def save(self, item: QueueItem) -> None:
        try:
            await self._ensure_schema()
            async with self._engine.begin() as conn:
                await conn.execute(delete(self._table).where(self._table.c.id == item.id))
                await conn.execute(self._table.insert().values(**self._to_row(item)))
        except SQLAlchemyError as error:
            raise QueueStoreError(f"Failed to save queue item {item.id}: {error}") from error

    async def delete(self, item_id: str) -> bool:
        try:
            await self._ensure_schema()
            async with self._engine.begin() as conn:
                result = await conn.execute(
                    delete(self._table).where(self._table.c.id == item_id)
                )
                return (result.rowcount or 0) > 0
        except SQLAlchemyError as error:
            raise QueueStoreError(f"Failed to delete queue item {item_id}: {error}") from error

    async def clear(self) -> None:
        try:
            await self._ensure_schema()
            async with self._engine.begin() as conn:
                await conn.execute(delete(self._table))
        except SQLAlchemyError as error:
            raise QueueStoreError(f"Failed to clear queue: {error}") from error

    async def close(self) -> None:
        if self._owns_engine:
            await self._engine.dispose()
            logger.debug("close: disposed queue store engine")


def create_sqlalchemy_queue_store(
    database_url: str = DEFAULT_DATABASE_URL,
    *,
    engine: Optional[AsyncEngine] = None,
    table_name: str = DEFAULT_TABLE_NAME,
) -> SqlAlchemyQueueStore:
    """Create a new SqlAlchemyQueueStore instance"""
    return SqlAlchemyQueueStore(database_url, engine=engine, table_name=table_name)
