from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from graph_url_sanitizer.domain.error_messages import ErrorCodes


class GraphDataError(Exception):
    """Base class for every rejected graph data request or response."""

    code = "E_GRAPH_DATA"


class TranslationError(GraphDataError):
    """The request was rejected before any network call was made."""


class ResponseError(GraphDataError):
    """The fetched payload could not be turned into graph data."""


class FetchError(GraphDataError):
    """The transport failed or upstream answered with a non-2xx status."""

    code = ErrorCodes.FETCH

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class UnlistedHostError(TranslationError):
    """Host matched no allowlist entry for http or https."""

    code = ErrorCodes.UNLISTED_HOST


class ProtocolDisabledError(TranslationError):
    """An external-service protocol has no configured hosts."""

    code = ErrorCodes.PROTOCOL_DISABLED

    def __init__(self, message: str, *, protocol: str) -> None:
        super().__init__(message)
        self.protocol = protocol


class HostNotAllowedError(TranslationError):
    """The host is not in the external service's own allowlist."""

    code = ErrorCodes.HOST_NOT_ALLOWED

    def __init__(self, message: str, *, protocol: str, allowed_hosts: Iterable[str]) -> None:
        super().__init__(message)
        self.protocol = protocol
        self.allowed_hosts = tuple(allowed_hosts)


class UnknownProtocolError(TranslationError):
    code = ErrorCodes.UNKNOWN_PROTOCOL


class UntrustedProtocolError(TranslationError):
    code = ErrorCodes.UNTRUSTED_PROTOCOL


class InvalidTitleError(TranslationError):
    code = ErrorCodes.INVALID_TITLE


class NonEmptyQueryError(TranslationError):
    code = ErrorCodes.NON_EMPTY_QUERY


class RestPrefixError(TranslationError):
    code = ErrorCodes.REST_PREFIX


class MissingParameterError(TranslationError):
    code = ErrorCodes.MISSING_PARAMETER

    def __init__(self, message: str, *, protocol: str) -> None:
        super().__init__(message)
        self.protocol = protocol


class InvalidParameterError(TranslationError):
    code = ErrorCodes.INVALID_PARAMETER

    def __init__(self, message: str, *, parameter: str) -> None:
        super().__init__(message)
        self.parameter = parameter


class UpstreamApiError(ResponseError):
    """The MediaWiki API answered with an ``error`` object."""

    code = ErrorCodes.UPSTREAM_API

    def __init__(self, message: str, *, error: Any) -> None:
        super().__init__(message)
        self.error = error


class ContentUnavailableError(ResponseError):
    code = ErrorCodes.CONTENT_UNAVAILABLE

    def __init__(self, message: str, *, url: str | None) -> None:
        super().__init__(message)
        self.url = url


class InvalidTabularShapeError(ResponseError):
    code = ErrorCodes.INVALID_TABULAR


class InvalidSparqlShapeError(ResponseError):
    code = ErrorCodes.INVALID_SPARQL


class InvalidJsonError(ResponseError):
    code = ErrorCodes.INVALID_JSON
