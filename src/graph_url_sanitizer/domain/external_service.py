from __future__ import annotations

from graph_url_sanitizer.domain.error_messages import ErrorMessages
from graph_url_sanitizer.domain.errors import (
    HostNotAllowedError,
    ProtocolDisabledError,
    UnlistedHostError,
)
from graph_url_sanitizer.domain.host_allowlist import HostAllowlist
from graph_url_sanitizer.domain.request import ResolvedHost, UrlParts


def resolve_external_service(
    parts: UrlParts,
    resolved: ResolvedHost,
    allowlist: HostAllowlist,
    *,
    url: str,
    override: str | None = None,
) -> UrlParts:
    """
    Point a request at a dedicated external service instead of the wiki API.

    The service's allowlist is looked up under ``override`` (e.g. "geoshape" for
    mapsnapshot) or the request's own scheme. A relative request
    (``geoshape:///...``) is sent to the first configured host; an explicit host
    keeps the transport scheme it was resolved with. Either way the final host
    must pass the service's own allowlist.
    """
    protocol = override or parts.scheme
    domains = allowlist.domains_for(protocol)
    if not domains:
        raise ProtocolDisabledError(
            ErrorMessages.PROTOCOL_DISABLED.format(protocol=protocol, url=url),
            protocol=protocol,
        )

    if parts.is_relative_host:
        host = domains[0]
        service_host = allowlist.resolve_host(host)
        if service_host is None:
            raise UnlistedHostError(ErrorMessages.UNLISTED_HOST.format(url=url))
        parts = parts.evolve(host=host, scheme=service_host.scheme)
    else:
        parts = parts.evolve(scheme=resolved.scheme)

    if not allowlist.is_allowed(protocol, parts.host):
        raise HostNotAllowedError(
            ErrorMessages.HOST_NOT_ALLOWED.format(protocol=protocol, url=url),
            protocol=protocol,
            allowed_hosts=domains,
        )
    return parts
