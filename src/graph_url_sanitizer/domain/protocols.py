from __future__ import annotations

from enum import Enum


class GraphProtocol(str, Enum):
    """Schemes a graph spec may use for data requests and links."""

    HTTP = "http"
    HTTPS = "https"
    WIKITITLE = "wikititle"
    WIKIAPI = "wikiapi"
    WIKIREST = "wikirest"
    WIKIRAW = "wikiraw"
    TABULAR = "tabular"
    TABULARINFO = "tabularinfo"
    WIKIFILE = "wikifile"
    WIKIRAWUPLOAD = "wikirawupload"
    WIKIDATASPARQL = "wikidatasparql"
    GEOSHAPE = "geoshape"
    GEOLINE = "geoline"
    MAPSNAPSHOT = "mapsnapshot"

    @classmethod
    def lookup(cls, scheme: str) -> GraphProtocol | None:
        try:
            return cls(strip_colon(scheme).lower())
        except ValueError:
            return None


class Action(str, Enum):
    DATA = "data"
    # Builds a navigation link; nothing is fetched.
    OPEN = "open"


TRANSPORT_SCHEMES = (GraphProtocol.HTTPS.value, GraphProtocol.HTTP.value)


def strip_colon(scheme: str) -> str:
    return scheme[:-1] if scheme.endswith(":") else scheme
