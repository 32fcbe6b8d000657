"""
Configuration utilities for fetch_sync
"""
from typing import Optional

from offline_queue import QueuePriority

from .types import SyncEngineConfig, DEFAULT_FAILURE_MESSAGE


# Default sync configuration
DEFAULT_SYNC_ENGINE_CONFIG = SyncEngineConfig(
    max_attempts=3,
    base_delay_seconds=1.0,
    max_delay_seconds=30.0,
    timeout_seconds=10.0,
    debounce_seconds=1.0,
    failure_message=DEFAULT_FAILURE_MESSAGE,
)


def merge_sync_engine_config(config: Optional[SyncEngineConfig] = None) -> SyncEngineConfig:
    """
    Merge user config with defaults.

    Args:
        config: User-provided configuration

    Returns:
        Merged configuration
    """
    if config is None:
        return SyncEngineConfig(
            max_attempts=DEFAULT_SYNC_ENGINE_CONFIG.max_attempts,
            base_delay_seconds=DEFAULT_SYNC_ENGINE_CONFIG.base_delay_seconds,
            max_delay_seconds=DEFAULT_SYNC_ENGINE_CONFIG.max_delay_seconds,
            timeout_seconds=DEFAULT_SYNC_ENGINE_CONFIG.timeout_seconds,
            debounce_seconds=DEFAULT_SYNC_ENGINE_CONFIG.debounce_seconds,
            failure_message=DEFAULT_SYNC_ENGINE_CONFIG.failure_message,
        )

    if config.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    return SyncEngineConfig(
        max_attempts=config.max_attempts,
        base_delay_seconds=config.base_delay_seconds,
        max_delay_seconds=config.max_delay_seconds,
        timeout_seconds=config.timeout_seconds,
        debounce_seconds=config.debounce_seconds,
        failure_message=config.failure_message or DEFAULT_FAILURE_MESSAGE,
    )


def calculate_backoff_delay(
    attempts: int,
    config: SyncEngineConfig,
    priority: QueuePriority = QueuePriority.NORMAL,
) -> float:
    """
    Calculate the backoff window after a failed replay.

    delay = base * 2^attempts, capped at max_delay_seconds for normal items.
    No jitter is applied so successive windows strictly increase until the cap.
    Critical items are not delayed.

    Args:
        attempts: Attempts made so far (after the failure was counted)
        config: Sync configuration
        priority: Item priority

    Returns:
        Delay in seconds
    """
    if priority == QueuePriority.CRITICAL:
        return 0.0

    delay = config.base_delay_seconds * (2 ** attempts)
    return min(delay, config.max_delay_seconds)
