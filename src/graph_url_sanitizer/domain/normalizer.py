from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from graph_url_sanitizer.domain.error_messages import ErrorMessages
from graph_url_sanitizer.domain.errors import (
    ContentUnavailableError,
    InvalidJsonError,
    InvalidSparqlShapeError,
    InvalidTabularShapeError,
    UpstreamApiError,
)
from graph_url_sanitizer.domain.protocols import GraphProtocol

log = structlog.get_logger(__name__)

ValueDecoder = Callable[[Mapping[str, Any]], Any]


def _load_json(payload: str | bytes, protocol: str) -> Any:
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise InvalidJsonError(ErrorMessages.INVALID_JSON.format(protocol=protocol)) from exc


def _is_set(value: Any) -> bool:
    # Objects and arrays count as present even when empty.
    return isinstance(value, (dict, list)) or bool(value)


def _string_headers(headers: Any) -> list[str]:
    if not isinstance(headers, list) or not all(isinstance(h, str) for h in headers):
        raise InvalidTabularShapeError(ErrorMessages.INVALID_TABULAR)
    return headers


class ResponseNormalizer:
    """Unwraps fetched payloads into the flat data a graph spec consumes.

    The ``graph_protocol`` tag recorded during translation selects the shape.
    Unknown tags pass the payload through untouched.
    """

    def __init__(self, decode_value: ValueDecoder) -> None:
        self._decode_value = decode_value

    def normalize(self, payload: str | bytes, graph_protocol: str, *, url: str | None = None) -> Any:
        protocol = GraphProtocol.lookup(graph_protocol)
        if protocol is GraphProtocol.WIKIAPI:
            return self.parse_api_response(payload)
        if protocol is GraphProtocol.WIKIRAW:
            return self._page_content(self.parse_api_response(payload), url)
        if protocol is GraphProtocol.TABULAR:
            return self._tabular_rows(self.parse_api_response(payload))
        if protocol is GraphProtocol.TABULARINFO:
            return self._tabular_info(self.parse_api_response(payload))
        if protocol is GraphProtocol.WIKIDATASPARQL:
            return self._sparql_rows(_load_json(payload, protocol.value))
        return payload

    def parse_api_response(self, payload: str | bytes) -> Any:
        """Parse a MediaWiki API response; ``error`` is fatal, ``warnings`` are only logged."""
        data = _load_json(payload, GraphProtocol.WIKIAPI.value)
        if not isinstance(data, dict):
            return data
        if _is_set(data.get("error")):
            error = data["error"]
            raise UpstreamApiError(
                ErrorMessages.UPSTREAM_API_ERROR.format(error=json.dumps(error)),
                error=error,
            )
        if _is_set(data.get("warnings")):
            log.warning(
                "graph_api_warnings",
                message=ErrorMessages.UPSTREAM_API_WARNINGS.format(
                    warnings=json.dumps(data["warnings"])
                ),
            )
        return data

    @staticmethod
    def _page_content(data: Any, url: str | None) -> Any:
        try:
            return data["query"]["pages"][0]["revisions"][0]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ContentUnavailableError(
                ErrorMessages.CONTENT_UNAVAILABLE.format(url=url or ""), url=url
            ) from exc

    @staticmethod
    def _tabular_rows(data: Any) -> list[dict[str, Any]]:
        if not isinstance(data, dict) or not isinstance(data.get("rows"), list):
            raise InvalidTabularShapeError(ErrorMessages.INVALID_TABULAR)
        headers = _string_headers(data.get("headers"))

        result: list[dict[str, Any]] = []
        for row in data["rows"]:
            if not isinstance(row, list):
                raise InvalidTabularShapeError(ErrorMessages.INVALID_TABULAR)
            result.append(
                {header: (row[i] if i < len(row) else None) for i, header in enumerate(headers)}
            )
        return result

    @staticmethod
    def _tabular_info(data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise InvalidTabularShapeError(ErrorMessages.INVALID_TABULAR)
        headers = _string_headers(data.get("headers"))
        types = data.get("types")
        titles = data.get("titles")
        if not (isinstance(types, list) and isinstance(titles, list)):
            raise InvalidTabularShapeError(ErrorMessages.INVALID_TABULAR)
        if len(types) < len(headers) or len(titles) < len(headers):
            raise InvalidTabularShapeError(ErrorMessages.INVALID_TABULAR)

        rows = data.get("rows")
        return {
            "license": data.get("license"),
            "info": data.get("info"),
            "count": len(rows) if isinstance(rows, list) else 0,
            "types": dict(zip(headers, types)),
            "titles": dict(zip(headers, titles)),
        }

    def _sparql_rows(self, data: Any) -> list[dict[str, Any]]:
        results = data.get("results") if isinstance(data, dict) else None
        bindings = results.get("bindings") if isinstance(results, dict) else None
        if not isinstance(bindings, list):
            raise InvalidSparqlShapeError(ErrorMessages.INVALID_SPARQL)

        rows: list[dict[str, Any]] = []
        for binding in bindings:
            if not isinstance(binding, dict):
                raise InvalidSparqlShapeError(ErrorMessages.INVALID_SPARQL)
            rows.append({key: self._decode_value(value) for key, value in binding.items()})
        return rows
