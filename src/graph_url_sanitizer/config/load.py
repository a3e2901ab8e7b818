from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from graph_url_sanitizer.config.env_aliases import ENV_NAME_BY_PATH
from graph_url_sanitizer.config.settings import Settings
from graph_url_sanitizer.config.validate import (
    ConfigValidationError,
    ConfigValidationIssue,
    issues_from_pydantic_error,
    validate_settings,
)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
_DOMAINS_HINT = "Use YAML `sanitizer.domains` or JSON in `SANITIZER__DOMAINS`."


def _config_error(path: str | Path, message: str) -> ConfigValidationError:
    return ConfigValidationError([ConfigValidationIssue(path=str(path), message=message)])


def _read_allowlist_yaml(config_path: str | Path | None) -> dict[str, Any]:
    """
    Read the YAML file that carries the allowlist.

    An explicit path (argument or CONFIG_PATH) must exist; the default
    ``config/config.yaml`` is optional and an empty document means no overrides.
    """
    explicit = config_path or os.environ.get("CONFIG_PATH")
    path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH
    if not path.exists():
        if explicit:
            raise _config_error("CONFIG_PATH", f"Config file not found: {path}")
        return {}

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise _config_error(path, f"Unable to read config file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise _config_error(path, f"Invalid YAML: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise _config_error(path, "YAML root must be a mapping/object")
    return raw


def _with_env_hint(issue: ConfigValidationIssue) -> ConfigValidationIssue:
    if issue.path == "sanitizer.domains":
        hint = _DOMAINS_HINT
    elif issue.path in ENV_NAME_BY_PATH:
        hint = f"Set `{ENV_NAME_BY_PATH[issue.path]}` (or YAML `{issue.path}`)."
    else:
        return issue
    return ConfigValidationIssue(issue.path, f"{issue.message} {hint}")


def load_settings(*, config_path: str | Path | None = None) -> Settings:
    """Build Settings from .env, the allowlist YAML and the environment, then validate."""
    if Path(".env").is_file():
        load_dotenv(dotenv_path=".env", override=False)

    yaml_data = _read_allowlist_yaml(config_path)
    try:
        settings = Settings(**yaml_data)
    except ValidationError as exc:
        raise ConfigValidationError(
            [_with_env_hint(issue) for issue in issues_from_pydantic_error(exc)]
        ) from exc

    validate_settings(settings)
    return settings
