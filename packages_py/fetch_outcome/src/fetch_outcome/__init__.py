"""
Explicit Success/Failure results for network calls.
"""
from .types import (
    FailureKind,
    FetchOutcomeConfig,
    NetworkSuccess,
    NetworkFailure,
    NetworkResult,
    is_success_status,
)
from .fetcher import (
    DEFAULT_FETCH_OUTCOME_CONFIG,
    NetworkFetcher,
    classify_error,
    create_network_fetcher,
    merge_fetch_outcome_config,
)


__all__ = [
    # Types
    "FailureKind",
    "FetchOutcomeConfig",
    "NetworkSuccess",
    "NetworkFailure",
    "NetworkResult",
    "is_success_status",
    # Fetcher
    "DEFAULT_FETCH_OUTCOME_CONFIG",
    "NetworkFetcher",
    "classify_error",
    "create_network_fetcher",
    "merge_fetch_outcome_config",
]


__version__ = "1.0.0"
