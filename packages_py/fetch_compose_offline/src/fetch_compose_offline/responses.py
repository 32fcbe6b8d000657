"""
Synthetic responses served when neither the network nor the cache can answer.
"""
import json
import time
from typing import Optional

import httpx

from cache_region import CachedEntry


EMERGENCY_MODE_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>Emergency Mode</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
</head>
<body style="font-family: Arial, sans-serif; padding: 20px; text-align: center;">
  <h1>&#128680; Emergency Mode</h1>
  <p>You are in offline emergency mode.</p>
  <p>Your safety data is being stored locally and will sync when connection returns.</p>
  <a href="/" style="padding: 10px 20px; font-size: 16px;">Return to Safety Dashboard</a>
</body>
</html>
"""

IMAGE_PLACEHOLDER_SVG = (
    '<svg width="100" height="100" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="100" height="100" fill="#f3f4f6"/>'
    '<text x="50" y="50" text-anchor="middle" dy=".3em">&#128241;</text>'
    "</svg>"
)

QUEUED_MESSAGE = "Request stored for sync when online"


def emergency_mode_response(request: Optional[httpx.Request] = None) -> httpx.Response:
    """HTTP 200 HTML page for critical requests with no network and no cached copy."""
    return httpx.Response(
        status_code=200,
        headers={"content-type": "text/html; charset=utf-8"},
        content=EMERGENCY_MODE_HTML.encode("utf-8"),
        request=request,
    )


def image_placeholder_response(request: Optional[httpx.Request] = None) -> httpx.Response:
    """SVG stand-in for an image that could not be loaded."""
    return httpx.Response(
        status_code=200,
        headers={"content-type": "image/svg+xml"},
        content=IMAGE_PLACEHOLDER_SVG.encode("utf-8"),
        request=request,
    )


def queued_response(item_id: str, request: Optional[httpx.Request] = None) -> httpx.Response:
    """HTTP 202 telling the caller the request was stored for later sync."""
    payload = {
        "error": "offline",
        "message": QUEUED_MESSAGE,
        "timestamp": int(time.time() * 1000),
        "queued": True,
        "id": item_id,
    }
    return httpx.Response(
        status_code=202,
        headers={"content-type": "application/json"},
        content=json.dumps(payload).encode("utf-8"),
        request=request,
    )


def cached_response(entry: CachedEntry, request: Optional[httpx.Request] = None) -> httpx.Response:
    """Rebuild the stored response unchanged."""
    return httpx.Response(
        status_code=entry.status_code,
        headers=entry.headers,
        content=entry.body or b"",
        request=request,
    )
