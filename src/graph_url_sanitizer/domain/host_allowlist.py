from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Literal

from graph_url_sanitizer.domain.protocols import TRANSPORT_SCHEMES, strip_colon
from graph_url_sanitizer.domain.request import ResolvedHost

MatchPolicy = Literal["subdomain", "exact"]


def _normalize_host(host: str) -> str:
    normalized = host.strip().lower()
    return normalized[:-1] if normalized.endswith(".") else normalized


class DomainMatcher:
    """Compiled matcher for one scheme's list of allowed hosts.

    With ``allow_subdomains`` a host matches an entry when it equals it or ends
    with ``"." + entry``, and every extra label is made of letters, digits and
    hyphens. Userinfo, ports, paths and escapes never match.
    """

    def __init__(self, domains: Sequence[str], *, allow_subdomains: bool) -> None:
        self.domains = tuple(_normalize_host(d) for d in domains)
        self.allow_subdomains = allow_subdomains
        alternatives = "|".join(re.escape(d) for d in self.domains)
        prefix = r"(?:[a-z0-9-]+\.)*" if allow_subdomains else ""
        self._pattern = re.compile(rf"^{prefix}(?:{alternatives})$")

    def test(self, host: str) -> bool:
        if not host:
            return False
        return self._pattern.fullmatch(_normalize_host(host)) is not None


def _normalize_domains(domains: Mapping[str, Sequence[str]]) -> dict[str, tuple[str, ...]]:
    out: dict[str, tuple[str, ...]] = {}
    # "https:" wins over "https" when both are configured.
    for key in sorted(domains, key=lambda k: k.endswith(":")):
        entries = tuple(d for d in domains[key] if d and d.strip())
        scheme = strip_colon(key).strip().lower()
        if entries:
            out[scheme] = entries
        else:
            out.pop(scheme, None)
    return out


class HostAllowlist:
    """Per-scheme host allowlist, compiled once at construction.

    Schemes without configured hosts are disabled: every host is rejected and
    ``domains_for`` returns None.
    """

    def __init__(
        self,
        domains: Mapping[str, Sequence[str]],
        *,
        domain_map: Mapping[str, str] | None = None,
        custom_scheme_match: MatchPolicy = "subdomain",
    ) -> None:
        if custom_scheme_match not in ("subdomain", "exact"):
            raise ValueError("custom_scheme_match must be 'subdomain' or 'exact'")

        self._domains = MappingProxyType(_normalize_domains(domains))
        self._domain_map = MappingProxyType(
            {_normalize_host(k): _normalize_host(v) for k, v in (domain_map or {}).items()}
        )
        self.custom_scheme_match = custom_scheme_match
        self._validators = MappingProxyType(
            {
                scheme: DomainMatcher(
                    entries,
                    allow_subdomains=(
                        scheme in TRANSPORT_SCHEMES or custom_scheme_match == "subdomain"
                    ),
                )
                for scheme, entries in self._domains.items()
            }
        )

    @property
    def schemes(self) -> tuple[str, ...]:
        return tuple(self._domains)

    def domains_for(self, scheme: str) -> tuple[str, ...] | None:
        return self._domains.get(strip_colon(scheme).lower())

    def is_allowed(self, scheme: str, host: str) -> bool:
        validator = self._validators.get(strip_colon(scheme).lower())
        if validator is None:
            return False
        return validator.test(host)

    def rename(self, host: str) -> str:
        normalized = _normalize_host(host)
        return self._domain_map.get(normalized, normalized)

    def resolve_host(self, host: str) -> ResolvedHost | None:
        """Map ``host`` through the rename table and find its transport scheme."""
        renamed = self.rename(host)
        for scheme in TRANSPORT_SCHEMES:
            if self.is_allowed(scheme, renamed):
                return ResolvedHost(host=renamed, scheme=scheme)
        return None
