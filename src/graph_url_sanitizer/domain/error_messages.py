"""Error message constants for graph data requests.

This module centralizes error messages to:
- Keep rejection texts identical between the translator, the loader and the CLI
- Give every failure a stable code that callers can match on
"""
from __future__ import annotations


class ErrorMessages:
    """Centralized error message templates."""

    # Host validation
    UNLISTED_HOST = "URL hostname is not whitelisted: {url}"
    PROTOCOL_DISABLED = "{protocol}: protocol is disabled: {url}"
    HOST_NOT_ALLOWED = (
        "{protocol}: URL must either be relative ({protocol}///...), "
        "or use one of the allowed hosts: {url}"
    )

    # Protocol selection
    UNKNOWN_PROTOCOL = "Unknown protocol {url}"
    OPEN_PROTOCOL_ONLY = (
        '"open()" action only allows links with wikititle protocol, '
        "e.g. wikititle:///My_page"
    )
    UNTRUSTED_PROTOCOL = (
        "HTTP and HTTPS protocols are not supported for untrusted graphs.\n"
        "Use wikiraw:, wikiapi:, wikirest:, wikirawupload:, and other protocols.\n"
        "See https://www.mediawiki.org/wiki/Extension:Graph#External_data"
    )

    # Structural validation
    OPEN_NEEDS_WIKI_PREFIX = "wikititle: http(s) links must begin with /wiki/ prefix"
    OPEN_QUERY_NOT_ALLOWED = "wikititle: query parameters are not allowed"
    INVALID_TITLE = "{protocol}: invalid title"
    REST_PREFIX = "wikirest: protocol must begin with the /api/ prefix"
    SPARQL_MISSING_QUERY = "wikidatasparql: missing query parameter in: {url}"
    GEO_MISSING_PARAMETER = "{protocol}: missing ids or query parameter in: {url}"
    SNAPSHOT_PARAMETER_MISSING = "mapsnapshot: parameter {name} is not set"
    SNAPSHOT_PARAMETER_NOT_NUMBER = "mapsnapshot: parameter {name} is not a number"
    SNAPSHOT_PARAMETER_OUT_OF_RANGE = "mapsnapshot: parameter {name} is not valid"
    SNAPSHOT_STYLE = (
        "mapsnapshot: if style is given, it must be letters/numbers/dash/underscores only"
    )

    # Response normalization
    UPSTREAM_API_ERROR = "API error: {error}"
    UPSTREAM_API_WARNINGS = "API warnings: {warnings}"
    CONTENT_UNAVAILABLE = "Page content not available {url}"
    INVALID_TABULAR = "page is not a valid tabular data"
    INVALID_SPARQL = 'SPARQL query result does not have "results.bindings"'
    INVALID_JSON = "{protocol}: response is not valid JSON"

    # Transport
    FETCH_FAILED = "Fetching {url} failed: {reason}"
    FETCH_STATUS = "HTTP {status} from upstream at {url}"


class ErrorCodes:
    """Error code constants for programmatic handling."""

    # Translation (raised before any request is issued)
    UNLISTED_HOST = "E_UNLISTED_HOST"
    HOST_NOT_ALLOWED = "E_HOST_NOT_ALLOWED"
    PROTOCOL_DISABLED = "E_PROTOCOL_DISABLED"
    UNKNOWN_PROTOCOL = "E_UNKNOWN_PROTOCOL"
    UNTRUSTED_PROTOCOL = "E_UNTRUSTED_PROTOCOL"
    INVALID_TITLE = "E_INVALID_TITLE"
    NON_EMPTY_QUERY = "E_NON_EMPTY_QUERY"
    REST_PREFIX = "E_REST_PREFIX"
    MISSING_PARAMETER = "E_MISSING_PARAMETER"
    INVALID_PARAMETER = "E_INVALID_PARAMETER"

    # Normalization (raised after a successful fetch)
    UPSTREAM_API = "E_UPSTREAM_API"
    CONTENT_UNAVAILABLE = "E_CONTENT_UNAVAILABLE"
    INVALID_TABULAR = "E_INVALID_TABULAR"
    INVALID_SPARQL = "E_INVALID_SPARQL"
    INVALID_JSON = "E_INVALID_JSON"

    # Transport
    FETCH = "E_FETCH"
