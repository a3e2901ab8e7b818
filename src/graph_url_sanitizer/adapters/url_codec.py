"""URL parsing/formatting for graph requests (custom schemes included)."""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from graph_url_sanitizer.domain.request import RequestDescriptor, UrlParts

# Characters left alone when re-serializing a path; existing %XX escapes survive.
_PATH_SAFE = "/:@!$&'()*+,;=%~"
# Hosts holding anything else, such as a backslash or a %XX escape, are refused.
_NETLOC_RE = re.compile(r"[a-z0-9.\-\[\]:@]*")


def parse_url(url: str, *, default_host: str | None = None) -> UrlParts:
    """
    Split ``url`` into UrlParts.

    ``wikiapi:///?...`` has no host: it is filled with ``default_host`` (the wiki the
    graph is rendered on) and flagged ``is_relative_host``. For repeated query keys
    the last value wins. Raises ValueError when the host holds characters no
    hostname can contain.
    """
    split = urlsplit(url)
    host = split.netloc.lower()
    if _NETLOC_RE.fullmatch(host) is None:
        raise ValueError(f"invalid characters in host: {host!r}")
    is_relative_host = not host
    if is_relative_host:
        host = (default_host or "").lower()

    return UrlParts(
        scheme=split.scheme.lower(),
        host=host,
        pathname=split.path or "/",
        query=dict(parse_qsl(split.query, keep_blank_values=True)),
        is_relative_host=is_relative_host,
    )


def format_url(
    parts: UrlParts,
    request: RequestDescriptor,
    *,
    cors_origin: str | None = None,
) -> str:
    query = dict(parts.query)
    if request.add_cors_origin and cors_origin:
        query["origin"] = cors_origin
    return urlunsplit(
        (
            parts.scheme,
            parts.host,
            quote(parts.pathname, safe=_PATH_SAFE),
            urlencode(query),
            "",
        )
    )
