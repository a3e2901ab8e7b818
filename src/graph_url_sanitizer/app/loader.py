from __future__ import annotations

from typing import Any

import structlog

from graph_url_sanitizer.adapters.graph_fetch import AsyncGraphFetcher
from graph_url_sanitizer.app.sanitizer import GraphSanitizer
from graph_url_sanitizer.config.settings import Settings
from graph_url_sanitizer.domain.errors import FetchError
from graph_url_sanitizer.observability import metrics

log = structlog.get_logger(__name__)


class AsyncGraphDataLoader:
    """The graph interpreter's data loader: sanitize, fetch, normalize.

    A request that fails sanitization raises before the fetcher is touched.
    """

    def __init__(self, sanitizer: GraphSanitizer, fetcher: AsyncGraphFetcher) -> None:
        self.sanitizer = sanitizer
        self.fetcher = fetcher

    @classmethod
    def from_settings(cls, settings: Settings) -> AsyncGraphDataLoader:
        transport = settings.transport
        fetcher = AsyncGraphFetcher(
            timeout_seconds=transport.timeout_seconds,
            verify_tls=transport.verify_tls,
            trust_env=transport.trust_env,
            user_agent=transport.user_agent,
        )
        return cls(GraphSanitizer.from_settings(settings.sanitizer), fetcher)

    async def aclose(self) -> None:
        await self.fetcher.aclose()

    async def __aenter__(self) -> AsyncGraphDataLoader:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def load(self, url: str) -> Any:
        safe = self.sanitizer.sanitize_url(url)
        try:
            payload = await self.fetcher.fetch(safe)
        except FetchError as exc:
            metrics.responses_rejected_total.labels(code=exc.code).inc()
            log.warning("graph_fetch_failed", safe_url=safe.url, status=exc.status, error=str(exc))
            raise
        return self.sanitizer.parse_data(payload, safe)
