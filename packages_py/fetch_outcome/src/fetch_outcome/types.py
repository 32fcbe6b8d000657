"""
Type definitions for fetch_outcome
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import httpx


class FailureKind(str, Enum):
    """Why a network call did not produce a 2xx response"""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    OTHER = "other"


@dataclass
class FetchOutcomeConfig:
    """Network call configuration"""

    timeout_seconds: float = 10.0
    """Upper bound for a single network call (seconds). Default: 10.0"""

    retryable_statuses: list[int] = field(
        default_factory=lambda: [408, 429, 500, 502, 503, 504]
    )
    """Non-2xx statuses considered transient"""


@dataclass
class NetworkSuccess:
    """A 2xx response"""

    response: httpx.Response
    """Fully read response"""

    duration_seconds: float = 0.0
    """Time spent on the call (seconds)"""

    ok: bool = field(default=True, init=False)


@dataclass
class NetworkFailure:
    """A transport error, timeout or non-2xx response"""

    kind: FailureKind
    """Failure category"""

    error: Optional[BaseException] = None
    """Original exception for TIMEOUT, CONNECTION and OTHER"""

    response: Optional[httpx.Response] = None
    """Original response for HTTP_STATUS"""

    duration_seconds: float = 0.0
    """Time spent on the call (seconds)"""

    ok: bool = field(default=False, init=False)

    @property
    def status_code(self) -> Optional[int]:
        """Status code when the server answered"""
        return self.response.status_code if self.response is not None else None

    def describe(self) -> str:
        """Short human readable description"""
        if self.kind == FailureKind.HTTP_STATUS and self.response is not None:
            return f"HTTP {self.response.status_code}"
        if self.error is not None:
            return f"{self.kind.value}: {type(self.error).__name__}: {self.error}"
        return self.kind.value

    def propagate(self) -> httpx.Response:
        """
        Surface the original failure to the caller.

        Returns the original response for HTTP_STATUS failures and raises the
        original exception otherwise.
        """
        if self.response is not None:
            return self.response
        if self.error is not None:
            raise self.error
        raise httpx.TransportError(self.describe())


NetworkResult = Union[NetworkSuccess, NetworkFailure]
"""Result of every network call"""


def is_success_status(status_code: int) -> bool:
    """2xx only"""
    return 200 <= status_code < 300
