"""
Offline lifecycle: versioned install/activate, connectivity and periodic
signals, settings, pre-cache manifest and the OfflineContext wiring.
"""
from .types import (
    LifecycleState,
    InstallResult,
    LifecycleError,
    LifecycleInstallError,
    ManifestLoadError,
)
from .config import OfflineSettings, get_settings
from .manifest import (
    PrecacheManifest,
    ESSENTIAL_FILES,
    EMERGENCY_FILES,
    default_manifest,
    load_manifest,
    parse_manifest,
)
from .manager import LifecycleManager
from .context import OfflineContext
from .logging_config import configure_logging


__all__ = [
    # Types
    "LifecycleState",
    "InstallResult",
    "LifecycleError",
    "LifecycleInstallError",
    "ManifestLoadError",
    # Settings
    "OfflineSettings",
    "get_settings",
    # Manifest
    "PrecacheManifest",
    "ESSENTIAL_FILES",
    "EMERGENCY_FILES",
    "default_manifest",
    "load_manifest",
    "parse_manifest",
    # Lifecycle
    "LifecycleManager",
    "OfflineContext",
    "configure_logging",
]


__version__ = "1.0.0"
