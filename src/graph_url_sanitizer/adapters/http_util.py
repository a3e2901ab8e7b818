"""Shared HTTP client utilities (e.g. timeouts)."""

from __future__ import annotations

import httpx

_TEXT_CONTENT_TYPES = ("text/", "application/json", "application/sparql-results+json")


def timeouts_for(seconds: float) -> httpx.Timeout:
    """Build httpx.Timeout with bounded connect/pool for fail-fast on unreachable upstreams."""
    total = float(seconds)
    connect = min(5.0, total)
    return httpx.Timeout(connect=connect, read=total, write=total, pool=connect)


def response_payload(response: httpx.Response) -> str | bytes:
    """Text for textual/JSON responses, raw bytes for everything else (images, tiles)."""
    content_type = response.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
    if not content_type or content_type.startswith(_TEXT_CONTENT_TYPES) or content_type.endswith(
        "+json"
    ):
        return response.text
    return response.content
