"""
Request classification.

Rules are checked in order CRITICAL, API_SAFETY, STATIC_ASSET and the first
match wins; everything else is GENERIC. Patterns are plain substrings of the
full URL, so "/api/emergency" is CRITICAL.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

import httpx

from .types import RequestClass


@dataclass(frozen=True)
class ClassificationRules:
    """URL substrings for each request class"""

    critical: List[str] = field(
        default_factory=lambda: ["/emergency", "/safety-alert", "/panic"]
    )
    api_safety: List[str] = field(
        default_factory=lambda: ["/api/safety", "/api/emergency", "/api/alerts"]
    )
    static_asset: List[str] = field(
        default_factory=lambda: [
            "/css/", "/js/", "/images/", "/icons/", ".png", ".jpg", ".css", ".js",
        ]
    )


DEFAULT_CLASSIFICATION_RULES = ClassificationRules()

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico")

STATE_CHANGING_METHODS = ("POST", "PATCH")


def _url_of(target: Union[httpx.Request, httpx.URL, str]) -> str:
    if isinstance(target, httpx.Request):
        return str(target.url)
    return str(target)


def classify(
    target: Union[httpx.Request, httpx.URL, str],
    rules: Optional[ClassificationRules] = None,
) -> RequestClass:
    """
    Classify a request by its URL.

    Args:
        target: Request or URL
        rules: Override the default patterns

    Returns:
        Request class
    """
    rules = rules or DEFAULT_CLASSIFICATION_RULES
    url = _url_of(target)

    if any(pattern in url for pattern in rules.critical):
        return RequestClass.CRITICAL
    if any(pattern in url for pattern in rules.api_safety):
        return RequestClass.API_SAFETY
    if any(pattern in url for pattern in rules.static_asset):
        return RequestClass.STATIC_ASSET
    return RequestClass.GENERIC


def is_image_asset(target: Union[httpx.Request, httpx.URL, str]) -> bool:
    """Whether the URL path ends with an image extension."""
    if isinstance(target, str):
        path = httpx.URL(target).path
    elif isinstance(target, httpx.Request):
        path = target.url.path
    else:
        path = target.path
    return path.lower().endswith(IMAGE_EXTENSIONS)


def is_navigation_request(request: httpx.Request) -> bool:
    """Whether the request loads a page (Sec-Fetch-Mode: navigate)."""
    if request.headers.get("sec-fetch-mode", "").lower() == "navigate":
        return True
    return request.extensions.get("mode") == "navigate"


def is_state_changing(method: str) -> bool:
    return method.upper() in STATE_CHANGING_METHODS
