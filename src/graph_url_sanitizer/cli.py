"""CLI commands for graph-url-sanitizer.

This module provides command-line utilities for:
- Validating and dumping configuration (with secrets redacted)
- Showing how a graph URL is rewritten, or why it is rejected
- Fetching graph data through the full sanitize/fetch/normalize pipeline
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from graph_url_sanitizer._version import __version__
from graph_url_sanitizer.app.loader import AsyncGraphDataLoader
from graph_url_sanitizer.app.sanitizer import GraphSanitizer
from graph_url_sanitizer.config.load import load_settings
from graph_url_sanitizer.config.redact import redact_settings_dict
from graph_url_sanitizer.config.settings import Settings
from graph_url_sanitizer.domain.errors import GraphDataError
from graph_url_sanitizer.domain.protocols import Action
from graph_url_sanitizer.observability.logger import configure_logging


def _load_configured_settings() -> Settings:
    settings = load_settings()
    configure_logging(
        log_level=settings.observability.log_level,
        log_format=settings.observability.log_format,
        json_logs=settings.observability.json_logs,
        stream=sys.stderr,
    )
    return settings


def _print_rejection(exc: GraphDataError) -> None:
    payload = {"status": "rejected", "code": exc.code, "error": str(exc)}
    print(json.dumps(payload, indent=2))


def cmd_validate_config(args: argparse.Namespace) -> int:
    """Validate configuration and exit with appropriate code.

    Exit codes:
        0: Configuration is valid
        1: Configuration is invalid
    """
    try:
        settings = load_settings()
    except Exception as e:
        print(f"✗ Configuration is invalid: {e}", file=sys.stderr)
        return 1

    sanitizer = settings.sanitizer
    print("✓ Configuration is valid")
    print(f"  - Trusted graphs: {sanitizer.is_trusted}")
    print(f"  - Default host: {sanitizer.default_host or '(none)'}")
    print(f"  - Configured schemes: {', '.join(sorted(sanitizer.domains)) or '(none)'}")
    print(f"  - Custom scheme matching: {sanitizer.custom_scheme_match}")
    return 0


def cmd_dump_config(args: argparse.Namespace) -> int:
    """Dump current configuration as JSON (with secrets redacted)."""
    try:
        settings = load_settings()
    except Exception as e:
        print(f"✗ Failed to load configuration: {e}", file=sys.stderr)
        return 1

    data = settings.model_dump(mode="json")
    print(json.dumps(redact_settings_dict(data), indent=2, default=str))
    return 0


def cmd_sanitize(args: argparse.Namespace) -> int:
    """Print the safe request for a graph URL, or the rejection."""
    try:
        settings = _load_configured_settings()
    except Exception as e:
        print(f"✗ Failed to load configuration: {e}", file=sys.stderr)
        return 1

    sanitizer = GraphSanitizer.from_settings(settings.sanitizer)
    action = Action.OPEN if args.open else Action.DATA
    try:
        safe = sanitizer.sanitize_url(args.url, action=action)
    except GraphDataError as exc:
        _print_rejection(exc)
        return 1

    print(json.dumps({"status": "ok", **safe.to_dict()}, indent=2))
    return 0


async def _load(settings: Settings, url: str) -> Any:
    async with AsyncGraphDataLoader.from_settings(settings) as loader:
        return await loader.load(url)


def cmd_fetch(args: argparse.Namespace) -> int:
    """Sanitize, fetch and normalize a graph URL; print the resulting data."""
    try:
        settings = _load_configured_settings()
    except Exception as e:
        print(f"✗ Failed to load configuration: {e}", file=sys.stderr)
        return 1

    try:
        data = asyncio.run(_load(settings, args.url))
    except GraphDataError as exc:
        _print_rejection(exc)
        return 1

    if isinstance(data, bytes):
        print(f"<{len(data)} bytes of binary data>")
    else:
        print(json.dumps(data, indent=2, default=str))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="graph-url-sanitizer",
        description="Graph data URL sanitizer CLI utilities",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser(
        "validate-config",
        help="Validate configuration and exit",
    )
    validate_parser.set_defaults(func=cmd_validate_config)

    dump_parser = subparsers.add_parser(
        "dump-config",
        help="Dump configuration as JSON (secrets redacted)",
    )
    dump_parser.set_defaults(func=cmd_dump_config)

    sanitize_parser = subparsers.add_parser(
        "sanitize",
        help="Show the safe URL a graph request is rewritten to",
    )
    sanitize_parser.add_argument("url", help="Graph URL, e.g. wikiapi:///?action=query")
    sanitize_parser.add_argument(
        "--open",
        action="store_true",
        help="Treat the URL as the target of an open() link instead of a data request",
    )
    sanitize_parser.set_defaults(func=cmd_sanitize)

    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch graph data through the sanitizer and print it",
    )
    fetch_parser.add_argument("url", help="Graph URL, e.g. wikiraw:///Main_Page")
    fetch_parser.set_defaults(func=cmd_fetch)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
