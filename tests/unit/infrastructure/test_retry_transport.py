"""Tests for RetryTransport (429/5xx and network-error retry)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from calidarr.infrastructure.common.retry_transport import (
    RetryTransport,
    _parse_retry_after,
    create_http_client,
)

_ASYNCIO = "calidarr.infrastructure.common.retry_transport.asyncio"


def _make_response(
    status: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    return httpx.Response(status_code=status, headers=headers or {})


def _make_request(url: str = "https://example.com/page") -> httpx.Request:
    return httpx.Request("GET", url)


def _make_transport(
    outcomes: list[httpx.Response | Exception] | httpx.Response,
    *,
    max_retries: int = 2,
    backoff_base: float = 1.0,
    max_backoff: float = 30.0,
) -> RetryTransport:
    """RetryTransport over a mock inner transport."""
    wrapped = AsyncMock(spec=httpx.AsyncBaseTransport)
    if isinstance(outcomes, list):
        wrapped.handle_async_request = AsyncMock(side_effect=outcomes)
    else:
        wrapped.handle_async_request = AsyncMock(return_value=outcomes)
    return RetryTransport(
        wrapped,
        max_retries=max_retries,
        backoff_base=backoff_base,
        max_backoff=max_backoff,
    )


class TestParseRetryAfter:
    def test_numeric(self) -> None:
        assert _parse_retry_after(httpx.Headers({"Retry-After": "3"})) == 3.0

    def test_missing(self) -> None:
        assert _parse_retry_after(httpx.Headers()) is None

    def test_http_date_ignored(self) -> None:
        headers = httpx.Headers({"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"})
        assert _parse_retry_after(headers) is None


class TestStatusRetry:
    async def test_passes_through_success(self) -> None:
        transport = _make_transport(_make_response(200))
        resp = await transport.handle_async_request(_make_request())
        assert resp.status_code == 200

    async def test_retries_on_503_then_succeeds(self) -> None:
        transport = _make_transport([_make_response(503), _make_response(200)])
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 200
        assert m.sleep.await_count == 1
        assert transport._wrapped.handle_async_request.await_count == 2

    async def test_non_retryable_status_returned(self) -> None:
        transport = _make_transport([_make_response(404)])
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 404
        m.sleep.assert_not_awaited()

    async def test_last_response_returned_when_exhausted(self) -> None:
        transport = _make_transport(
            [_make_response(429), _make_response(429), _make_response(429)]
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 429
        assert m.sleep.await_count == 2

    async def test_retry_after_header_capped(self) -> None:
        transport = _make_transport(
            [_make_response(429, {"Retry-After": "120"}), _make_response(200)],
            max_backoff=10.0,
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            await transport.handle_async_request(_make_request())

        m.sleep.assert_awaited_once_with(10.0)

    async def test_backoff_grows_exponentially(self) -> None:
        transport = _make_transport(
            [_make_response(502), _make_response(502), _make_response(200)],
            backoff_base=1.0,
        )
        with patch(_ASYNCIO) as m, patch(
            "calidarr.infrastructure.common.retry_transport.random.uniform",
            return_value=0.0,
        ):
            m.sleep = AsyncMock()
            await transport.handle_async_request(_make_request())

        assert [c.args[0] for c in m.sleep.await_args_list] == [1.0, 2.0]


class TestNetworkRetry:
    async def test_retries_connect_error(self) -> None:
        transport = _make_transport(
            [httpx.ConnectError("refused"), _make_response(200)]
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 200
        assert m.sleep.await_count == 1

    async def test_reraises_last_timeout(self) -> None:
        transport = _make_transport(
            [httpx.ReadTimeout("slow")] * 3,
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            with pytest.raises(httpx.ReadTimeout):
                await transport.handle_async_request(_make_request())

        assert transport._wrapped.handle_async_request.await_count == 3

    async def test_other_errors_not_retried(self) -> None:
        transport = _make_transport([ValueError("bug")])
        with pytest.raises(ValueError):
            await transport.handle_async_request(_make_request())


class TestCreateHttpClient:
    async def test_client_settings(self) -> None:
        client = create_http_client(
            timeout_seconds=7.5,
            max_retries=1,
            backoff_base=0.1,
            user_agent="calidarr-test",
        )
        try:
            assert client.headers["User-Agent"] == "calidarr-test"
            assert client.timeout.read == 7.5
            assert client.follow_redirects is True
        finally:
            await client.aclose()
