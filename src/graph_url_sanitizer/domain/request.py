from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from graph_url_sanitizer.domain.protocols import Action


def _freeze(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class ResolvedHost:
    host: str
    # Transport scheme the host was allowed for ("https" or "http").
    scheme: str


@dataclass(frozen=True, slots=True)
class UrlParts:
    """Structured URL. ``scheme`` has no trailing colon; "" means protocol-relative."""

    scheme: str
    host: str
    pathname: str = "/"
    query: Mapping[str, str] = field(default_factory=dict)
    is_relative_host: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "query", _freeze(self.query))

    def evolve(self, **changes: Any) -> UrlParts:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """One graph data request as it moves through translation.

    Every pipeline step returns a new descriptor; nothing is mutated in place.
    """

    url: str
    action: Action = Action.DATA
    parts: UrlParts | None = None
    graph_protocol: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    add_cors_origin: bool = False
    is_relative_protocol: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze(self.headers))

    def evolve(self, **changes: Any) -> RequestDescriptor:
        return replace(self, **changes)

    def with_parts(self, **changes: Any) -> RequestDescriptor:
        if self.parts is None:
            raise ValueError("request has not been parsed yet")
        return replace(self, parts=self.parts.evolve(**changes))


@dataclass(frozen=True, slots=True)
class SafeRequest:
    """Result of a successful translation: the only URL that may be fetched."""

    url: str
    graph_protocol: str
    headers: Mapping[str, str] = field(default_factory=dict)
    add_cors_origin: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze(self.headers))

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "graph_protocol": self.graph_protocol,
            "headers": dict(self.headers),
            "add_cors_origin": self.add_cors_origin,
        }
