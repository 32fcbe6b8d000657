"""
Durable offline queue for failed state-changing requests.
"""
from .types import (
    QueuePriority,
    QueueItemState,
    QueueItem,
    QueueStore,
    OfflineQueueConfig,
    OfflineQueueError,
    QueueFullError,
    QueueStoreError,
    PRIORITY_RANK,
)
from .queue import (
    OfflineQueue,
    create_offline_queue,
    generate_item_id,
    DEFAULT_OFFLINE_QUEUE_CONFIG,
)
from .stores import (
    MemoryQueueStore,
    create_memory_queue_store,
    SqlAlchemyQueueStore,
    create_sqlalchemy_queue_store,
    build_queue_table,
    DEFAULT_DATABASE_URL,
)


__all__ = [
    # Types
    "QueuePriority",
    "QueueItemState",
    "QueueItem",
    "QueueStore",
    "OfflineQueueConfig",
    "OfflineQueueError",
    "QueueFullError",
    "QueueStoreError",
    "PRIORITY_RANK",
    # Queue
    "OfflineQueue",
    "create_offline_queue",
    "generate_item_id",
    "DEFAULT_OFFLINE_QUEUE_CONFIG",
    # Stores
    "MemoryQueueStore",
    "create_memory_queue_store",
    "SqlAlchemyQueueStore",
    "create_sqlalchemy_queue_store",
    "build_queue_table",
    "DEFAULT_DATABASE_URL",
]


__version__ = "1.0.0"
