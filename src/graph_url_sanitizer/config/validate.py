from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import ValidationError

from graph_url_sanitizer.config.settings import Settings
from graph_url_sanitizer.domain.host_allowlist import HostAllowlist
from graph_url_sanitizer.domain.protocols import TRANSPORT_SCHEMES, strip_colon

_HOSTNAME_RE = re.compile(r"[a-z0-9](?:[a-z0-9.-]*[a-z0-9])?")


@dataclass(frozen=True)
class ConfigValidationIssue:
    path: str
    message: str


class ConfigValidationError(ValueError):
    def __init__(self, issues: Iterable[ConfigValidationIssue]):
        self.issues = list(issues)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = ["Configuration is invalid:"]
        for issue in self.issues:
            lines.append(f"- {issue.path}: {issue.message}")
        return "\n".join(lines)


def issues_from_pydantic_error(error: ValidationError) -> list[ConfigValidationIssue]:
    issues: list[ConfigValidationIssue] = []
    for item in error.errors(include_url=False):
        loc = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        msg = item.get("msg", "Invalid value")
        issues.append(ConfigValidationIssue(path=loc, message=msg))
    return issues


def _is_local_host(host: str) -> bool:
    normalized = host.strip().lower().rstrip(".")
    if normalized in {"localhost", "localhost.localdomain"}:
        return True

    try:
        ip = ipaddress.ip_address(normalized)
    except ValueError:
        return False

    return ip.is_loopback or ip.is_link_local or ip.is_unspecified


def _validate_domain_entries(
    settings: Settings, issues: list[ConfigValidationIssue]
) -> None:
    allow_local = settings.transport.allow_local_hosts
    for key, entries in settings.sanitizer.domains.items():
        path = f"sanitizer.domains.{key}"
        for entry in entries:
            host = entry.strip().lower()
            if _HOSTNAME_RE.fullmatch(host) is None:
                issues.append(
                    ConfigValidationIssue(
                        path=path,
                        message=(
                            f"{entry!r} is not a bare hostname "
                            "(no scheme, port, path, userinfo or wildcard)."
                        ),
                    )
                )
            elif not allow_local and _is_local_host(host):
                issues.append(
                    ConfigValidationIssue(
                        path=path,
                        message=(
                            f"Loopback/link-local host {entry!r} is blocked by default. "
                            "Set transport.allow_local_hosts=true to override."
                        ),
                    )
                )


def validate_settings(settings: Settings) -> None:
    issues: list[ConfigValidationIssue] = []

    log_level = settings.observability.log_level.upper()
    allowed_levels = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
    if log_level not in allowed_levels:
        issues.append(
            ConfigValidationIssue(
                path="observability.log_level",
                message=(
                    f"Unsupported log level {settings.observability.log_level!r} "
                    f"(allowed: {sorted(allowed_levels)})"
                ),
            )
        )

    sanitizer = settings.sanitizer
    _validate_domain_entries(settings, issues)

    configured = {strip_colon(key).lower() for key, entries in sanitizer.domains.items() if entries}
    if not configured.intersection(TRANSPORT_SCHEMES):
        issues.append(
            ConfigValidationIssue(
                path="sanitizer.domains",
                message=(
                    "No https/http hosts are configured; every graph request would be rejected. "
                    'Add e.g. sanitizer.domains.https: ["wikipedia.org"].'
                ),
            )
        )

    allowlist = HostAllowlist(
        sanitizer.domains,
        domain_map=sanitizer.domain_map,
        custom_scheme_match=sanitizer.custom_scheme_match,  # type: ignore[arg-type]
    )

    for alias, target in sanitizer.domain_map.items():
        if allowlist.resolve_host(target) is None:
            issues.append(
                ConfigValidationIssue(
                    path=f"sanitizer.domain_map.{alias}",
                    message=f"Target host {target!r} is not allowed for https or http.",
                )
            )

    if sanitizer.default_host and allowlist.resolve_host(sanitizer.default_host) is None:
        issues.append(
            ConfigValidationIssue(
                path="sanitizer.default_host",
                message=(
                    f"Default host {sanitizer.default_host!r} is not allowed for https or http; "
                    "relative graph URLs would always be rejected."
                ),
            )
        )

    if issues:
        raise ConfigValidationError(issues)
