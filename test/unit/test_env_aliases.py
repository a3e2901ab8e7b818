from __future__ import annotations

import pytest

from graph_url_sanitizer.config.env_aliases import (
    FLAT_ENV_NAMES,
    _apply_alias_mappings,
    _set_nested,
    get_flat_env_settings_source,
)


def test_set_nested_creates_intermediate_sections() -> None:
    data: dict = {"sanitizer": "not-a-dict"}
    _set_nested(data, ("sanitizer", "is_trusted"), "true")
    _set_nested(data, ("transport", "timeout_seconds"), "3")

    assert data == {
        "sanitizer": {"is_trusted": "true"},
        "transport": {"timeout_seconds": "3"},
    }


def test_empty_values_are_ignored() -> None:
    data: dict = {}
    _apply_alias_mappings(
        {"GRAPH_TRUSTED": "", "LOG_LEVEL": "DEBUG"},
        data,
        (("GRAPH_TRUSTED", ("sanitizer", "is_trusted")), ("LOG_LEVEL", ("observability", "log_level"))),
    )
    assert data == {"observability": {"log_level": "DEBUG"}}


def test_flat_env_source_reads_known_names(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in FLAT_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GRAPH_TRUSTED", "1")
    monkeypatch.setenv("GRAPH_DEFAULT_HOST", "de.wikipedia.org")
    monkeypatch.setenv("FETCH_ALLOW_LOCAL_HOSTS", "true")
    monkeypatch.setenv("LOG_JSON", "true")
    monkeypatch.setenv("UNRELATED", "x")

    assert get_flat_env_settings_source() == {
        "sanitizer": {"is_trusted": "1", "default_host": "de.wikipedia.org"},
        "transport": {"allow_local_hosts": "true"},
        "observability": {"json_logs": "true"},
    }
