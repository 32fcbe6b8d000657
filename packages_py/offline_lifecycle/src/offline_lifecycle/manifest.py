"""Pre-cache manifest: the files a version needs before it can go offline."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .types import ManifestLoadError

logger = logging.getLogger(__name__)


ESSENTIAL_FILES = [
    "/",
    "/index.html",
    "/manifest.json",
    "/css/app.css",
    "/js/app.js",
    "/js/pwautils.js",
    "/icons/icon-192.png",
    "/icons/icon-512.png",
    "/icons/safety-alert-192.png",
]

# Must stay available offline; cached in the critical region
EMERGENCY_FILES = [
    "/emergency.html",
    "/emergency-contacts.html",
    "/offline-safety.html",
]


class PrecacheManifest(BaseModel):
    """Files fetched into the new regions at install time."""

    version: Optional[str] = None
    standard_files: List[str] = Field(default_factory=list)
    emergency_files: List[str] = Field(default_factory=list)

    def all_files(self) -> List[str]:
        return [*self.standard_files, *self.emergency_files]


def default_manifest() -> PrecacheManifest:
    return PrecacheManifest(
        standard_files=list(ESSENTIAL_FILES),
        emergency_files=list(EMERGENCY_FILES),
    )


def parse_manifest(data: Dict[str, Any]) -> PrecacheManifest:
    """Validate manifest data."""
    try:
        return PrecacheManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestLoadError(f"Invalid pre-cache manifest: {e}") from e


def load_manifest(path: Union[str, Path]) -> PrecacheManifest:
    """
    Load a pre-cache manifest from a YAML file.

    Example file:
        version: "1.2.0"
        standard_files:
          - /
          - /index.html
        emergency_files:
          - /emergency.html

    Raises:
        ManifestLoadError: file missing, unparsable or invalid
    """
    file_path = Path(path)
    logger.debug(f"Parsing manifest file: {file_path}")
    try:
        content = file_path.read_text()
    except OSError as e:
        raise ManifestLoadError(f"Cannot read manifest {file_path}: {e}") from e

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ManifestLoadError(f"YAML parsing error in {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestLoadError(f"Manifest {file_path} must be a mapping")

    manifest = parse_manifest(data)
    logger.info(
        f"Loaded manifest from {file_path}: {len(manifest.standard_files)} standard, "
        f"{len(manifest.emergency_files)} emergency file(s)"
    )
    return manifest
