"""httpx transport with retry on 429/5xx and transient network errors."""

from __future__ import annotations

import asyncio
import random

import httpx
import structlog

log = structlog.get_logger(__name__)

_DEFAULT_RETRYABLE = frozenset({429, 502, 503, 504})


def _parse_retry_after(headers: httpx.Headers) -> float | None:
    """``Retry-After`` in seconds, or None if missing or not numeric."""
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx transport with exponential-backoff retries.

    Retries on retryable status codes and on timeouts / connection
    errors, up to *max_retries* extra attempts. The last response is
    returned as-is; the last network error is re-raised.
    """

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 2,
        backoff_base: float = 0.5,
        max_backoff: float = 10.0,
        retryable_status_codes: frozenset[int] = _DEFAULT_RETRYABLE,
    ) -> None:
        self._wrapped = wrapped
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._max_backoff = max_backoff
        self._retryable = retryable_status_codes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        for attempt in range(1 + self._max_retries):
            is_last = attempt == self._max_retries
            try:
                response = await self._wrapped.handle_async_request(request)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if is_last:
                    raise
                delay = self._backoff(attempt)
                log.info(
                    "http_retry",
                    url=str(request.url),
                    error=type(e).__name__,
                    attempt=attempt + 1,
                    delay=round(delay, 2),
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code not in self._retryable or is_last:
                return response

            await response.aread()
            await response.aclose()

            delay = self._compute_delay(response, attempt)
            log.info(
                "http_retry",
                url=str(request.url),
                status=response.status_code,
                attempt=attempt + 1,
                delay=round(delay, 2),
            )
            await asyncio.sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover

    def _backoff(self, attempt: int) -> float:
        delay = self._backoff_base * (2**attempt)
        jitter = random.uniform(0, self._backoff_base)  # noqa: S311
        return min(delay + jitter, self._max_backoff)

    def _compute_delay(self, response: httpx.Response, attempt: int) -> float:
        retry_after = _parse_retry_after(response.headers)
        if retry_after is not None:
            return min(retry_after, self._max_backoff)
        return self._backoff(attempt)

    async def aclose(self) -> None:
        await self._wrapped.aclose()


def create_http_client(
    *,
    timeout_seconds: float,
    max_retries: int,
    backoff_base: float,
    user_agent: str,
) -> httpx.AsyncClient:
    """Shared AsyncClient used by the site and metadata clients."""
    transport = RetryTransport(
        httpx.AsyncHTTPTransport(),
        max_retries=max_retries,
        backoff_base=backoff_base,
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": user_agent},
    )
