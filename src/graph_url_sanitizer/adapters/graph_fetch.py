from __future__ import annotations

from typing import Any

import httpx

from graph_url_sanitizer.adapters.http_util import response_payload, timeouts_for
from graph_url_sanitizer.domain.error_messages import ErrorMessages
from graph_url_sanitizer.domain.errors import FetchError
from graph_url_sanitizer.domain.request import SafeRequest


class AsyncGraphFetcher:
    """Fetches already-sanitized graph requests.

    Redirects are never followed: a redirect could leave the allowlist. Failures
    are not retried; the caller decides whether to reissue the whole request.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        verify_tls: bool = True,
        trust_env: bool = False,
        user_agent: str = "graph-url-sanitizer",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            headers={"User-Agent": user_agent},
            timeout=timeouts_for(timeout_seconds),
            limits=httpx.Limits(
                max_connections=10,
                max_keepalive_connections=5,
                keepalive_expiry=30.0,
            ),
            verify=verify_tls,
            trust_env=trust_env,
            follow_redirects=False,
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> AsyncGraphFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any,
    ) -> None:
        await self.aclose()

    async def fetch(self, request: SafeRequest) -> str | bytes:
        try:
            response = await self._http.get(request.url, headers=dict(request.headers))
        except httpx.TimeoutException as exc:
            raise FetchError(
                ErrorMessages.FETCH_FAILED.format(url=request.url, reason="timeout")
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                ErrorMessages.FETCH_FAILED.format(url=request.url, reason=exc.__class__.__name__)
            ) from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(
                ErrorMessages.FETCH_STATUS.format(status=response.status_code, url=request.url),
                status=response.status_code,
            )
        return response_payload(response)
