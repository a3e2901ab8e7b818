from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

import structlog
from structlog.stdlib import ProcessorFormatter

from graph_url_sanitizer.config.redact import redact_settings_dict

SERVICE_NAME = "graph-url-sanitizer"


def _scrub_event_dict(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    return redact_settings_dict(event_dict)


def _add_service(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _resolve_log_format(log_format: str | None, json_logs_default: bool) -> str:
    for raw in (log_format, os.environ.get("LOG_FORMAT")):
        normalized = (raw or "").strip().lower()
        if normalized in {"json", "human"}:
            return normalized
    return "json" if json_logs_default else "human"


def configure_logging(
    *,
    log_level: str = "INFO",
    json_logs: bool = False,
    log_format: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """
    structlog on top of stdlib logging; one handler on the root logger.

    An explicit ``log_format`` wins over LOG_FORMAT, which wins over ``json_logs``.
    Every event passes the secret scrubber, so URLs with credentials in them can
    be logged as-is.
    """
    resolved_level = ((os.environ.get("LOG_LEVEL") or "").strip() or log_level).upper()
    resolved_format = _resolve_log_format(log_format, json_logs)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_service,
        structlog.processors.format_exc_info,
        _scrub_event_dict,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    renderer: Any
    if resolved_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(resolved_level)

    # httpx logs every request at INFO, including full URLs.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *shared_processors,
            ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@contextmanager
def request_context(*, url: str, action: str) -> Iterator[None]:
    """Bind the graph request to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(graph_url=url, graph_action=action):
        yield
