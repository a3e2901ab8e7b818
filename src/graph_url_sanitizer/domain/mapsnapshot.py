from __future__ import annotations

import re
from collections.abc import Mapping

from graph_url_sanitizer.domain.error_messages import ErrorMessages
from graph_url_sanitizer.domain.errors import InvalidParameterError

DEFAULT_STYLE = "osm-intl"

_INT_RE = re.compile(r"-?[0-9]+")
_FLOAT_RE = re.compile(r"-?[0-9]+\.?[0-9]*")
_STYLE_RE = re.compile(r"[-_0-9a-z]+")

# name, min, max, is_float
_NUMERIC_PARAMETERS: tuple[tuple[str, float, float, bool], ...] = (
    ("width", 1, 4096, False),
    ("height", 1, 4096, False),
    ("zoom", 0, 22, False),
    ("lat", -90, 90, True),
    ("lon", -180, 180, True),
)


def validate_number(
    query: Mapping[str, str],
    name: str,
    minimum: float,
    maximum: float,
    *,
    is_float: bool = False,
) -> int | float:
    if name not in query:
        raise InvalidParameterError(
            ErrorMessages.SNAPSHOT_PARAMETER_MISSING.format(name=name), parameter=name
        )
    raw = query[name]
    pattern = _FLOAT_RE if is_float else _INT_RE
    if pattern.fullmatch(raw) is None:
        raise InvalidParameterError(
            ErrorMessages.SNAPSHOT_PARAMETER_NOT_NUMBER.format(name=name), parameter=name
        )
    value: int | float = float(raw) if is_float else int(raw)
    if value < minimum or value > maximum:
        raise InvalidParameterError(
            ErrorMessages.SNAPSHOT_PARAMETER_OUT_OF_RANGE.format(name=name), parameter=name
        )
    return value


def snapshot_path(query: Mapping[str, str]) -> str:
    """
    Build the Kartotherian image path for a mapsnapshot request.

    Format: /img/{style},{zoom},{lat},{lon},{width}x{height}@2x.png
    The numbers are validated and then written back as the caller spelled them.
    """
    for name, minimum, maximum, is_float in _NUMERIC_PARAMETERS:
        validate_number(query, name, minimum, maximum, is_float=is_float)

    style = query.get("style") or DEFAULT_STYLE
    if _STYLE_RE.fullmatch(style) is None:
        raise InvalidParameterError(ErrorMessages.SNAPSHOT_STYLE, parameter="style")

    return (
        f"/img/{style},{query['zoom']},{query['lat']},{query['lon']},"
        f"{query['width']}x{query['height']}@2x.png"
    )
