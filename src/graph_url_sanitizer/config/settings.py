from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from graph_url_sanitizer.config.env_aliases import get_flat_env_settings_source


class _BaseSection(BaseModel):
    model_config = {"extra": "forbid"}


class SanitizerSettings(_BaseSection):
    # Trusted graphs may fetch raw http(s) URLs (still limited to allowlisted hosts).
    is_trusted: bool = False
    # Scheme -> allowed hosts. Keys may be written with or without the trailing colon.
    domains: dict[str, list[str]] = Field(default_factory=dict)
    # Alias host -> canonical host, applied before any allowlist check.
    domain_map: dict[str, str] = Field(default_factory=dict)
    # Host used for relative URLs such as wikiapi:///?... (the wiki rendering the graph).
    default_host: str | None = None
    # subdomain|exact; http/https always allow subdomains.
    custom_scheme_match: str = "subdomain"
    # Value of the "origin" query parameter added to wiki API requests; None disables it.
    cors_origin: str | None = "*"

    @field_validator("custom_scheme_match")
    @classmethod
    def _validate_match_policy(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized in {"subdomain", "exact"}:
            return normalized
        raise ValueError("sanitizer.custom_scheme_match must be 'subdomain' or 'exact'")

    @field_validator("default_host")
    @classmethod
    def _normalize_default_host(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None


class TransportSettings(_BaseSection):
    timeout_seconds: float = Field(default=10.0, gt=0)
    verify_tls: bool = True
    # If true, allow httpx to read HTTP_PROXY/HTTPS_PROXY/NO_PROXY and other env settings.
    trust_env: bool = False
    user_agent: str = "graph-url-sanitizer"
    # Allow allowlist entries that name loopback / link-local hosts.
    allow_local_hosts: bool = False


class ObservabilitySettings(_BaseSection):
    log_level: str = "INFO"
    log_format: str | None = None  # json|human (overrides LOG_FORMAT/env when set)
    json_logs: bool = False

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized in {"json", "human"}:
            return normalized
        raise ValueError("observability.log_format must be 'json' or 'human'")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid",
    )

    sanitizer: SanitizerSettings = Field(default_factory=SanitizerSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """
        Construct Settings from a mapping without reading environment variables.

        Useful in tests where we want to pass nested dicts and keep mypy happy.
        """
        class _InitOnlySettings(Settings):
            @classmethod
            def settings_customise_sources(
                cls,
                settings_cls,
                init_settings,
                env_settings,
                dotenv_settings,
                file_secret_settings,
            ):
                return (init_settings,)

        return _InitOnlySettings(**dict(data))

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            env_settings,
            get_flat_env_settings_source,
            init_settings,
            dotenv_settings,
            file_secret_settings,
        )
