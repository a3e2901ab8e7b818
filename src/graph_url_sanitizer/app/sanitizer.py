from __future__ import annotations

from functools import partial
from typing import Any

import structlog

from graph_url_sanitizer.adapters.sparql_values import decode_sparql_value
from graph_url_sanitizer.adapters.url_codec import format_url, parse_url
from graph_url_sanitizer.config.settings import SanitizerSettings
from graph_url_sanitizer.domain.errors import ResponseError, TranslationError
from graph_url_sanitizer.domain.host_allowlist import HostAllowlist
from graph_url_sanitizer.domain.normalizer import ResponseNormalizer
from graph_url_sanitizer.domain.protocols import Action
from graph_url_sanitizer.domain.request import RequestDescriptor, SafeRequest
from graph_url_sanitizer.domain.translator import ProtocolTranslator
from graph_url_sanitizer.observability import metrics
from graph_url_sanitizer.observability.logger import request_context

log = structlog.get_logger(__name__)


class GraphSanitizer:
    """Entry point for the graph interpreter: sanitize a request, then parse its response."""

    def __init__(self, translator: ProtocolTranslator, normalizer: ResponseNormalizer) -> None:
        self.translator = translator
        self.normalizer = normalizer

    @classmethod
    def from_settings(cls, settings: SanitizerSettings) -> GraphSanitizer:
        allowlist = HostAllowlist(
            settings.domains,
            domain_map=settings.domain_map,
            custom_scheme_match=settings.custom_scheme_match,  # type: ignore[arg-type]
        )
        translator = ProtocolTranslator(
            allowlist,
            parse_url=partial(parse_url, default_host=settings.default_host),
            format_url=partial(format_url, cors_origin=settings.cors_origin),
            is_trusted=settings.is_trusted,
        )
        return cls(translator, ResponseNormalizer(decode_sparql_value))

    def sanitize_url(self, url: str, *, action: Action = Action.DATA) -> SafeRequest:
        with request_context(url=url, action=action.value):
            try:
                safe = self.translator.translate(RequestDescriptor(url=url, action=action))
            except TranslationError as exc:
                metrics.requests_rejected_total.labels(code=exc.code).inc()
                log.info("graph_request_rejected", code=exc.code, error=str(exc))
                raise

            metrics.requests_translated_total.labels(protocol=safe.graph_protocol).inc()
            log.debug(
                "graph_request_translated",
                graph_protocol=safe.graph_protocol,
                safe_url=safe.url,
            )
            return safe

    def link(self, url: str) -> str:
        """Sanitize the target of an open() action and return the wiki page URL."""
        return self.sanitize_url(url, action=Action.OPEN).url

    def parse_data(self, payload: str | bytes, request: SafeRequest) -> Any:
        with request_context(url=request.url, action=Action.DATA.value):
            try:
                data = self.normalizer.normalize(
                    payload, request.graph_protocol, url=request.url
                )
            except ResponseError as exc:
                metrics.responses_rejected_total.labels(code=exc.code).inc()
                log.warning("graph_response_rejected", code=exc.code, error=str(exc))
                raise

            metrics.responses_normalized_total.labels(protocol=request.graph_protocol).inc()
            return data
