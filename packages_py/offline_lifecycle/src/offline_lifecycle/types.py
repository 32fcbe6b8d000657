"""
Type definitions for offline_lifecycle
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class LifecycleState(str, Enum):
    """Version lifecycle state"""

    IDLE = "idle"
    INSTALLING = "installing"
    INSTALLED = "installed"
    INSTALL_FAILED = "install_failed"
    ACTIVE = "active"


@dataclass
class InstallResult:
    """Outcome of a successful install"""

    version: str
    standard_region: str
    critical_region: str
    cached: List[str] = field(default_factory=list)
    """URLs written into the new regions"""

    duration_seconds: float = 0.0


class LifecycleError(Exception):
    """Base error for lifecycle operations"""
    pass


class LifecycleInstallError(LifecycleError):
    """Raised when a manifest URL could not be fetched during install"""

    def __init__(self, version: str, failed: List[str], reason: Optional[str] = None) -> None:
        message = f"Install of version {version} failed: {len(failed)} file(s) could not be cached"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.version = version
        self.failed = failed


class ManifestLoadError(LifecycleError):
    """Raised when a pre-cache manifest cannot be read or validated"""
    pass
