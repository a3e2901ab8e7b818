from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from graph_url_sanitizer.config.env_aliases import FLAT_ENV_NAMES
from graph_url_sanitizer.config.load import load_settings
from graph_url_sanitizer.config.settings import Settings
from graph_url_sanitizer.config.validate import ConfigValidationError, validate_settings

_BASE_CONFIG = {
    "sanitizer": {
        "default_host": "en.wikipedia.org",
        "domains": {
            "https": ["wikipedia.org", "wikimedia.org"],
            "geoshape": ["maps.wikimedia.org"],
        },
    },
}


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    keys = [
        "CONFIG_PATH",
        *FLAT_ENV_NAMES,
        # Nested form (supported by pydantic-settings)
        "SANITIZER__IS_TRUSTED",
        "SANITIZER__DOMAINS",
        "SANITIZER__DEFAULT_HOST",
        "TRANSPORT__TIMEOUT_SECONDS",
    ]
    for key in keys:
        monkeypatch.delenv(key, raising=False)


def _write_config(tmp_path: Path, data: dict) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir(exist_ok=True)
    path = config_dir / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_default_config_file_is_loaded(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    _write_config(tmp_path, _BASE_CONFIG)

    settings = load_settings()

    assert settings.sanitizer.is_trusted is False
    assert settings.sanitizer.default_host == "en.wikipedia.org"
    assert settings.sanitizer.domains["geoshape"] == ["maps.wikimedia.org"]
    assert settings.sanitizer.custom_scheme_match == "subdomain"
    assert settings.sanitizer.cors_origin == "*"
    assert settings.transport.timeout_seconds == 10.0


def test_flat_env_overrides_yaml(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    _write_config(tmp_path, _BASE_CONFIG)
    monkeypatch.setenv("GRAPH_TRUSTED", "true")
    monkeypatch.setenv("GRAPH_CUSTOM_SCHEME_MATCH", "EXACT")
    monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "2.5")

    settings = load_settings()

    assert settings.sanitizer.is_trusted is True
    assert settings.sanitizer.custom_scheme_match == "exact"
    assert settings.transport.timeout_seconds == 2.5


def test_nested_env_json_domains(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("SANITIZER__DOMAINS", '{"https": ["wikipedia.org"]}')

    settings = load_settings()
    assert settings.sanitizer.domains == {"https": ["wikipedia.org"]}


def test_explicit_config_path_must_exist(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "missing.yaml"))

    with pytest.raises(ConfigValidationError) as exc:
        load_settings()
    assert "Config file not found" in str(exc.value)


def test_invalid_yaml_is_reported(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    path = tmp_path / "broken.yaml"
    path.write_text("sanitizer: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigValidationError) as exc:
        load_settings(config_path=path)
    assert "Invalid YAML" in str(exc.value)


def test_yaml_root_must_be_mapping(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigValidationError) as exc:
        load_settings(config_path=path)
    assert "YAML root must be a mapping" in str(exc.value)


def test_bad_match_policy_carries_hint(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    _write_config(tmp_path, _BASE_CONFIG)
    monkeypatch.setenv("GRAPH_CUSTOM_SCHEME_MATCH", "glob")

    with pytest.raises(ConfigValidationError) as exc:
        load_settings()

    msg = str(exc.value)
    assert "sanitizer.custom_scheme_match" in msg
    assert "GRAPH_CUSTOM_SCHEME_MATCH" in msg


def test_bad_timeout_names_its_env_var(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    _write_config(tmp_path, _BASE_CONFIG)
    monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "-1")

    with pytest.raises(ConfigValidationError) as exc:
        load_settings()
    assert "Set `FETCH_TIMEOUT_SECONDS` (or YAML `transport.timeout_seconds`)." in str(exc.value)


def test_empty_config_file_is_allowed(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("SANITIZER__DOMAINS", '{"https": ["wikipedia.org"]}')
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_settings(config_path=path).sanitizer.domains == {"https": ["wikipedia.org"]}


def test_unknown_keys_are_rejected(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    _write_config(tmp_path, {**_BASE_CONFIG, "sanitizer": {**_BASE_CONFIG["sanitizer"], "x": 1}})

    with pytest.raises(ConfigValidationError) as exc:
        load_settings()
    assert "sanitizer.x" in str(exc.value)


def test_missing_transport_hosts_is_reported(make_settings) -> None:
    settings = make_settings(domains={"geoshape": ["maps.wikimedia.org"]})

    with pytest.raises(ConfigValidationError) as exc:
        validate_settings(settings)
    assert "sanitizer.domains" in str(exc.value)
    assert "No https/http hosts" in str(exc.value)


@pytest.mark.parametrize(
    "entry",
    ["https://wikipedia.org", "wikipedia.org:443", "*.wikipedia.org", "user@wikipedia.org"],
)
def test_domain_entries_must_be_bare_hostnames(make_settings, entry: str) -> None:
    settings = make_settings(domains={"https": ["wikipedia.org", entry]})

    with pytest.raises(ConfigValidationError) as exc:
        validate_settings(settings)
    assert "sanitizer.domains.https" in str(exc.value)


@pytest.mark.parametrize("entry", ["localhost", "127.0.0.1", "169.254.169.254"])
def test_local_hosts_are_blocked_by_default(make_settings, entry: str) -> None:
    settings = make_settings(domains={"https": ["wikipedia.org"], "http": [entry]})

    with pytest.raises(ConfigValidationError) as exc:
        validate_settings(settings)
    assert "allow_local_hosts" in str(exc.value)


def test_local_hosts_can_be_allowed(make_settings) -> None:
    settings = make_settings(
        domains={"https": ["wikipedia.org"], "http": ["localhost"]},
        overrides={"transport": {"allow_local_hosts": True}},
    )
    validate_settings(settings)


def test_domain_map_target_must_be_allowed(make_settings) -> None:
    settings = make_settings(overrides={"sanitizer": {"domain_map": {"wiki.beta": "evil.com"}}})

    with pytest.raises(ConfigValidationError) as exc:
        validate_settings(settings)
    assert "sanitizer.domain_map.wiki.beta" in str(exc.value)


def test_default_host_must_be_allowed(make_settings) -> None:
    settings = make_settings(overrides={"sanitizer": {"default_host": "Evil.COM"}})
    assert settings.sanitizer.default_host == "evil.com"

    with pytest.raises(ConfigValidationError) as exc:
        validate_settings(settings)
    assert "sanitizer.default_host" in str(exc.value)


def test_bad_log_level_is_reported(make_settings) -> None:
    settings = make_settings(overrides={"observability": {"log_level": "LOUD"}})

    with pytest.raises(ConfigValidationError) as exc:
        validate_settings(settings)
    assert "observability.log_level" in str(exc.value)


def test_default_settings_pass_validation(make_settings) -> None:
    validate_settings(make_settings())


def test_from_mapping_ignores_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRAPH_TRUSTED", "true")
    settings = Settings.from_mapping({"sanitizer": {"domains": {"https": ["wikipedia.org"]}}})
    assert settings.sanitizer.is_trusted is False
