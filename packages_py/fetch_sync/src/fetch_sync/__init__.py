"""
Replays queued offline requests with exponential backoff.
"""
from .types import (
    SyncEngineConfig,
    FailureNotice,
    SyncPassResult,
    SyncStats,
    SyncError,
    InvalidTransitionError,
    DEFAULT_FAILURE_MESSAGE,
)
from .config import (
    DEFAULT_SYNC_ENGINE_CONFIG,
    merge_sync_engine_config,
    calculate_backoff_delay,
)
from .transitions import (
    begin_attempt,
    record_success,
    record_failure,
    record_interruption,
    reset_failed,
    is_due,
)
from .engine import SyncEngine, create_sync_engine


__all__ = [
    # Types
    "SyncEngineConfig",
    "FailureNotice",
    "SyncPassResult",
    "SyncStats",
    "SyncError",
    "InvalidTransitionError",
    "DEFAULT_FAILURE_MESSAGE",
    # Config
    "DEFAULT_SYNC_ENGINE_CONFIG",
    "merge_sync_engine_config",
    "calculate_backoff_delay",
    # Transitions
    "begin_attempt",
    "record_success",
    "record_failure",
    "record_interruption",
    "reset_failed",
    "is_due",
    # Engine
    "SyncEngine",
    "create_sync_engine",
]


__version__ = "1.0.0"
