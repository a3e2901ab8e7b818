from __future__ import annotations

import os
import socket
import sys
from collections.abc import Callable
from copy import deepcopy
from functools import partial
from pathlib import Path
from typing import Any

import pytest

DEFAULT_DOMAINS: dict[str, list[str]] = {
    "https": ["wikipedia.org", "wikimedia.org", "wikidata.org", "mediawiki.org"],
    "http:": ["wmflabs.org"],
    "wikirawupload": ["upload.wikimedia.org"],
    "wikidatasparql:": ["query.wikidata.org"],
    "geoshape": ["maps.wikimedia.org"],
    "tabular": ["commons.wikimedia.org"],
}
DEFAULT_HOST = "en.wikipedia.org"


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_path = repo_root / "src"
    sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Prevent accidental real network calls in unit/integration tests.

    Respx mocks should still work because they intercept at the HTTP client layer.
    """
    if (os.environ.get("ALLOW_NETWORK_TESTS") or "").strip().lower() in {"1", "true", "yes"}:
        return

    def _blocked(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError(
            "Network access is disabled in tests (set ALLOW_NETWORK_TESTS=1 to override)."
        )

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked, raising=True)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _make_settings(
    *,
    is_trusted: bool = False,
    domains: dict[str, list[str]] | None = None,
    overrides: dict[str, Any] | None = None,
):
    from graph_url_sanitizer.config.settings import Settings

    data: dict[str, Any] = {
        "sanitizer": {
            "is_trusted": is_trusted,
            "domains": deepcopy(DEFAULT_DOMAINS if domains is None else domains),
            "default_host": DEFAULT_HOST,
        },
    }
    if overrides:
        data = _deep_merge(data, overrides)
    return Settings.from_mapping(data)


def _make_translator(
    *,
    is_trusted: bool = False,
    domains: dict[str, list[str]] | None = None,
    domain_map: dict[str, str] | None = None,
    custom_scheme_match: str = "subdomain",
    default_host: str | None = DEFAULT_HOST,
    cors_origin: str | None = None,
):
    from graph_url_sanitizer.adapters.url_codec import format_url, parse_url
    from graph_url_sanitizer.domain.host_allowlist import HostAllowlist
    from graph_url_sanitizer.domain.translator import ProtocolTranslator

    allowlist = HostAllowlist(
        DEFAULT_DOMAINS if domains is None else domains,
        domain_map=domain_map,
        custom_scheme_match=custom_scheme_match,  # type: ignore[arg-type]
    )
    return ProtocolTranslator(
        allowlist,
        parse_url=partial(parse_url, default_host=default_host),
        format_url=partial(format_url, cors_origin=cors_origin),
        is_trusted=is_trusted,
    )


@pytest.fixture
def make_settings() -> Callable[..., Any]:
    return _make_settings


@pytest.fixture
def make_translator() -> Callable[..., Any]:
    return _make_translator
