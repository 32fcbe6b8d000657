"""
Queue store implementations
"""
from .memory import MemoryQueueStore, create_memory_queue_store
from .database import (
    SqlAlchemyQueueStore,
    create_sqlalchemy_queue_store,
    build_queue_table,
    DEFAULT_DATABASE_URL,
)

__all__ = [
    "MemoryQueueStore",
    "create_memory_queue_store",
    "SqlAlchemyQueueStore",
    "create_sqlalchemy_queue_store",
    "build_queue_table",
    "DEFAULT_DATABASE_URL",
]
