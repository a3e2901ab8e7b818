"""Decode typed SPARQL JSON result values into plain Python values."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from graph_url_sanitizer.domain.error_messages import ErrorMessages
from graph_url_sanitizer.domain.errors import InvalidSparqlShapeError

WIKIDATA_ENTITY_PREFIX = "http://www.wikidata.org/entity/"
XSD = "http://www.w3.org/2001/XMLSchema#"

_INTEGER_TYPES = frozenset(
    XSD + name
    for name in (
        "integer",
        "int",
        "long",
        "short",
        "byte",
        "nonNegativeInteger",
        "positiveInteger",
        "nonPositiveInteger",
        "negativeInteger",
        "unsignedLong",
        "unsignedInt",
        "unsignedShort",
        "unsignedByte",
    )
)
_FLOAT_TYPES = frozenset(XSD + name for name in ("decimal", "double", "float"))
_BOOLEAN_TYPE = XSD + "boolean"


def _decode_literal(raw: str, datatype: str | None) -> Any:
    if datatype in _INTEGER_TYPES:
        try:
            return int(raw)
        except ValueError:
            return raw
    if datatype in _FLOAT_TYPES:
        try:
            return float(raw)
        except ValueError:
            return raw
    if datatype == _BOOLEAN_TYPE:
        return raw.strip().lower() in {"true", "1"}
    # dateTime, wktLiteral, langString and plain literals stay text.
    return raw


def decode_sparql_value(value: Mapping[str, Any]) -> Any:
    """
    Turn one ``{"type": ..., "value": ..., "datatype": ...}`` binding into a plain value.

    - Wikidata entity URIs become their id (``http://www.wikidata.org/entity/Q42`` -> ``"Q42"``).
    - Numeric and boolean XSD literals become int/float/bool.
    - Everything else is returned as the raw string.
    """
    if not isinstance(value, Mapping) or not isinstance(value.get("value"), str):
        raise InvalidSparqlShapeError(ErrorMessages.INVALID_SPARQL)

    raw: str = value["value"]
    kind = value.get("type")
    if kind == "uri":
        if raw.startswith(WIKIDATA_ENTITY_PREFIX):
            return raw[len(WIKIDATA_ENTITY_PREFIX):]
        return raw
    if kind in {"literal", "typed-literal"}:
        return _decode_literal(raw, value.get("datatype"))
    return raw
