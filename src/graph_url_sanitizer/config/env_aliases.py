"""Flat environment variable names for the nested settings model.

pydantic-settings already understands ``SANITIZER__IS_TRUSTED``; this module
adds the short names operators actually set (``GRAPH_TRUSTED``, ``LOG_LEVEL``).
Structured values (the allowlist itself) come from YAML or the nested JSON form
``SANITIZER__DOMAINS='{"https": ["wikipedia.org"]}'``.
"""
from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Any


def _set_nested(data: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    node = data
    for part in path[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[path[-1]] = value


def _apply_alias_mappings(
    env: Mapping[str, str],
    data: dict[str, Any],
    mappings: Iterable[tuple[str, tuple[str, ...]]],
) -> None:
    for env_name, path in mappings:
        value = env.get(env_name)
        if value:
            _set_nested(data, path, value)


_CANONICAL_MAPPINGS: tuple[tuple[str, tuple[str, ...]], ...] = (
    # Sanitizer
    ("GRAPH_TRUSTED", ("sanitizer", "is_trusted")),
    ("GRAPH_DEFAULT_HOST", ("sanitizer", "default_host")),
    ("GRAPH_CUSTOM_SCHEME_MATCH", ("sanitizer", "custom_scheme_match")),
    ("GRAPH_CORS_ORIGIN", ("sanitizer", "cors_origin")),
    # Transport
    ("FETCH_TIMEOUT_SECONDS", ("transport", "timeout_seconds")),
    ("FETCH_VERIFY_TLS", ("transport", "verify_tls")),
    ("FETCH_TRUST_ENV", ("transport", "trust_env")),
    ("FETCH_USER_AGENT", ("transport", "user_agent")),
    ("FETCH_ALLOW_LOCAL_HOSTS", ("transport", "allow_local_hosts")),
    # Observability
    ("LOG_LEVEL", ("observability", "log_level")),
    ("LOG_FORMAT", ("observability", "log_format")),
    ("LOG_JSON", ("observability", "json_logs")),
)

FLAT_ENV_NAMES: tuple[str, ...] = tuple(name for name, _ in _CANONICAL_MAPPINGS)


def get_flat_env_settings_source() -> dict[str, Any]:
    data: dict[str, Any] = {}
    _apply_alias_mappings(os.environ, data, _CANONICAL_MAPPINGS)
    return data

ENV_NAME_BY_PATH: dict[str, str] = {".".join(path): name for name, path in _CANONICAL_MAPPINGS}
