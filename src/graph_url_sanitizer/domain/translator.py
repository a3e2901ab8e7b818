from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote, unquote

from graph_url_sanitizer.domain.error_messages import ErrorMessages
from graph_url_sanitizer.domain.errors import (
    InvalidTitleError,
    MissingParameterError,
    NonEmptyQueryError,
    RestPrefixError,
    UnknownProtocolError,
    UnlistedHostError,
    UntrustedProtocolError,
)
from graph_url_sanitizer.domain.external_service import resolve_external_service
from graph_url_sanitizer.domain.host_allowlist import HostAllowlist
from graph_url_sanitizer.domain.mapsnapshot import snapshot_path
from graph_url_sanitizer.domain.protocols import (
    TRANSPORT_SCHEMES,
    Action,
    GraphProtocol,
)
from graph_url_sanitizer.domain.request import (
    RequestDescriptor,
    ResolvedHost,
    SafeRequest,
    UrlParts,
)

API_PATH = "/w/api.php"
SPARQL_PATH = "/bigdata/namespace/wdq/sparql"
FILE_REDIRECT_PATH = "/wiki/Special:Redirect/file"
SPARQL_ACCEPT = "application/sparql-results+json"

_COMPOUND_SCHEME_RE = re.compile(r"^([a-z]+:)https?://")
_WIKI_PREFIX_RE = re.compile(r"/wiki/.+", re.DOTALL)
_TITLE_RE = re.compile(r"/[^|]+")
# encodeURIComponent leaves these unescaped.
_TITLE_SAFE = "!~*'()"

_API_FORMAT = {"format": "json", "formatversion": "2"}


class UrlParser(Protocol):
    def __call__(self, url: str) -> UrlParts: ...


class UrlFormatter(Protocol):
    def __call__(self, parts: UrlParts, request: RequestDescriptor) -> str: ...


@dataclass(frozen=True, slots=True)
class TranslationContext:
    allowlist: HostAllowlist
    is_trusted: bool = False


Handler = Callable[[RequestDescriptor, ResolvedHost, TranslationContext], RequestDescriptor]


def repair_compound_scheme(url: str) -> str:
    """Rewrite ``customprotocol:https://host/...`` to ``customprotocol://host/...``."""
    return _COMPOUND_SCHEME_RE.sub(r"\1//", url, count=1)


def parse_request(request: RequestDescriptor, parse_url: UrlParser) -> RequestDescriptor:
    url = repair_compound_scheme(request.url)
    try:
        parts = parse_url(url)
    except ValueError as exc:
        # e.g. an unbalanced IPv6 bracket or a backslash in the host.
        raise UnlistedHostError(ErrorMessages.UNLISTED_HOST.format(url=url)) from exc
    return request.evolve(url=url, parts=parts, is_relative_protocol=url.startswith("//"))


def resolve_request_host(
    request: RequestDescriptor, allowlist: HostAllowlist
) -> tuple[RequestDescriptor, ResolvedHost]:
    parts = _parts(request)
    resolved = allowlist.resolve_host(parts.host)
    if resolved is None:
        raise UnlistedHostError(ErrorMessages.UNLISTED_HOST.format(url=request.url))

    request = request.with_parts(host=resolved.host)
    if not parts.scheme:
        # Protocol-relative URL: inherit the scheme the host is allowed for.
        request = request.evolve(is_relative_protocol=True).with_parts(scheme=resolved.scheme)

    return request.evolve(graph_protocol=_parts(request).scheme), resolved


def translate_open(request: RequestDescriptor, resolved: ResolvedHost) -> RequestDescriptor:
    """Turn an open() link into a /wiki/<title> URL on the resolved host.

    open() may fire without a click, so only wiki page links are allowed.
    """
    parts = _parts(request)
    # MediaWiki trims titles anyway; doing it here saves a redirect.
    decoded = unquote(parts.pathname).strip()
    protocol = GraphProtocol.lookup(parts.scheme)

    if protocol in (GraphProtocol.HTTP, GraphProtocol.HTTPS):
        if not request.is_relative_protocol:
            if _WIKI_PREFIX_RE.fullmatch(decoded) is None:
                raise InvalidTitleError(ErrorMessages.OPEN_NEEDS_WIKI_PREFIX)
            decoded = decoded[len("/wiki"):]
        request = request.evolve(graph_protocol=GraphProtocol.WIKITITLE.value)
    elif protocol is not GraphProtocol.WIKITITLE:
        raise UnknownProtocolError(ErrorMessages.OPEN_PROTOCOL_ONLY)

    if parts.query:
        raise NonEmptyQueryError(ErrorMessages.OPEN_QUERY_NOT_ALLOWED)
    if _TITLE_RE.fullmatch(decoded) is None:
        raise InvalidTitleError(
            ErrorMessages.INVALID_TITLE.format(protocol=GraphProtocol.WIKITITLE.value)
        )

    title = decoded[1:].replace(" ", "_")
    return request.with_parts(
        pathname="/wiki/" + quote(title, safe=_TITLE_SAFE),
        scheme=resolved.scheme,
    )


def translate_data(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    protocol = GraphProtocol.lookup(_parts(request).scheme)
    if protocol is None:
        raise UnknownProtocolError(ErrorMessages.UNKNOWN_PROTOCOL.format(url=request.url))
    return _DATA_HANDLERS[protocol](request, resolved, context)


def _parts(request: RequestDescriptor) -> UrlParts:
    if request.parts is None:
        raise ValueError("request has not been parsed yet")
    return request.parts


def _page_title(request: RequestDescriptor) -> str:
    """Path minus the leading slash; only the pipe is rejected, MediaWiki checks the rest."""
    parts = _parts(request)
    decoded = unquote(parts.pathname)
    if _TITLE_RE.fullmatch(decoded) is None:
        raise InvalidTitleError(ErrorMessages.INVALID_TITLE.format(protocol=parts.scheme))
    return decoded[1:]


def _external(
    request: RequestDescriptor,
    resolved: ResolvedHost,
    context: TranslationContext,
    override: GraphProtocol | None = None,
) -> RequestDescriptor:
    parts = resolve_external_service(
        _parts(request),
        resolved,
        context.allowlist,
        url=request.url,
        override=override.value if override is not None else None,
    )
    return request.evolve(parts=parts)


def _handle_transport(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    if not context.is_trusted:
        raise UntrustedProtocolError(ErrorMessages.UNTRUSTED_PROTOCOL)
    return request


def _handle_wikiapi(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    # wikiapi:///?action=query&list=allpages -- the path is ignored.
    query = {**_parts(request).query, **_API_FORMAT}
    return request.evolve(add_cors_origin=True).with_parts(
        query=query, pathname=API_PATH, scheme=resolved.scheme
    )


def _handle_wikirest(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    if not _parts(request).pathname.startswith("/api/"):
        raise RestPrefixError(ErrorMessages.REST_PREFIX)
    return request.with_parts(scheme=resolved.scheme)


def _handle_wikiraw(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    title = _page_title(request)
    query = {
        **_API_FORMAT,
        "action": "query",
        "prop": "revisions",
        "rvprop": "content",
        "titles": title,
    }
    return request.evolve(add_cors_origin=True).with_parts(
        query=query, pathname=API_PATH, scheme=resolved.scheme
    )


def _handle_tabular(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    title = _page_title(request)
    query = {**_API_FORMAT, "action": "jsondata", "title": title}
    request = request.evolve(add_cors_origin=True).with_parts(query=query, pathname=API_PATH)
    return _external(request, resolved, context, GraphProtocol.TABULAR)


def _handle_wikifile(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    # wikifile:///Einstein_1921.jpg -> /wiki/Special:Redirect/file/Einstein_1921.jpg
    return request.with_parts(
        pathname=FILE_REDIRECT_PATH + _parts(request).pathname,
        scheme=resolved.scheme,
    )


def _handle_wikirawupload(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    request = _external(request, resolved, context)
    return request.with_parts(query={})


def _handle_wikidatasparql(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    request = _external(request, resolved, context)
    sparql = _parts(request).query.get("query")
    if not sparql:
        raise MissingParameterError(
            ErrorMessages.SPARQL_MISSING_QUERY.format(url=request.url),
            protocol=GraphProtocol.WIKIDATASPARQL.value,
        )
    headers = {**request.headers, "Accept": SPARQL_ACCEPT}
    return request.evolve(headers=headers).with_parts(
        query={"query": sparql}, pathname=SPARQL_PATH
    )


def _handle_geoshape(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    # geoline is the same service returning lines instead of polygons.
    request = _external(request, resolved, context, GraphProtocol.GEOSHAPE)
    query = _parts(request).query
    if not query.get("ids") and not query.get("query"):
        raise MissingParameterError(
            ErrorMessages.GEO_MISSING_PARAMETER.format(
                protocol=request.graph_protocol, url=request.url
            ),
            protocol=str(request.graph_protocol),
        )
    return request.with_parts(pathname=f"/{request.graph_protocol}")


def _handle_mapsnapshot(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    request = _external(request, resolved, context, GraphProtocol.GEOSHAPE)
    return request.with_parts(pathname=snapshot_path(_parts(request).query), query={})


def _handle_unknown(
    request: RequestDescriptor, resolved: ResolvedHost, context: TranslationContext
) -> RequestDescriptor:
    raise UnknownProtocolError(ErrorMessages.UNKNOWN_PROTOCOL.format(url=request.url))


_DATA_HANDLERS: dict[GraphProtocol, Handler] = {
    GraphProtocol.HTTP: _handle_transport,
    GraphProtocol.HTTPS: _handle_transport,
    GraphProtocol.WIKITITLE: _handle_unknown,
    GraphProtocol.WIKIAPI: _handle_wikiapi,
    GraphProtocol.WIKIREST: _handle_wikirest,
    GraphProtocol.WIKIRAW: _handle_wikiraw,
    GraphProtocol.TABULAR: _handle_tabular,
    GraphProtocol.TABULARINFO: _handle_tabular,
    GraphProtocol.WIKIFILE: _handle_wikifile,
    GraphProtocol.WIKIRAWUPLOAD: _handle_wikirawupload,
    GraphProtocol.WIKIDATASPARQL: _handle_wikidatasparql,
    GraphProtocol.GEOSHAPE: _handle_geoshape,
    GraphProtocol.GEOLINE: _handle_geoshape,
    GraphProtocol.MAPSNAPSHOT: _handle_mapsnapshot,
}

_unhandled = set(GraphProtocol) - set(_DATA_HANDLERS)
if _unhandled:  # pragma: no cover
    raise RuntimeError(f"no data handler for {sorted(p.value for p in _unhandled)}")


class ProtocolTranslator:
    """Rewrites graph data requests into URLs that are safe to fetch.

    Every rejection raises a ``TranslationError`` before anything is formatted,
    so a failed request never produces a URL.
    """

    def __init__(
        self,
        allowlist: HostAllowlist,
        *,
        parse_url: UrlParser,
        format_url: UrlFormatter,
        is_trusted: bool = False,
    ) -> None:
        self._context = TranslationContext(allowlist=allowlist, is_trusted=is_trusted)
        self._parse_url = parse_url
        self._format_url = format_url

    @property
    def allowlist(self) -> HostAllowlist:
        return self._context.allowlist

    @property
    def is_trusted(self) -> bool:
        return self._context.is_trusted

    def translate(self, request: RequestDescriptor) -> SafeRequest:
        request = parse_request(request, self._parse_url)
        request, resolved = resolve_request_host(request, self.allowlist)

        if request.action is Action.OPEN:
            request = translate_open(request, resolved)
        else:
            request = translate_data(request, resolved, self._context)

        parts = _parts(request)
        if not self.is_trusted:
            self._ensure_transport_allowed(request, parts)

        return SafeRequest(
            url=self._format_url(parts, request),
            graph_protocol=str(request.graph_protocol),
            headers=request.headers,
            add_cors_origin=request.add_cors_origin,
        )

    def _ensure_transport_allowed(self, request: RequestDescriptor, parts: UrlParts) -> None:
        if parts.scheme not in TRANSPORT_SCHEMES or self.allowlist.resolve_host(parts.host) is None:
            raise UnlistedHostError(ErrorMessages.UNLISTED_HOST.format(url=request.url))
