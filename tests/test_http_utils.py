"""Tests for HTTP check utilities."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from docref.cancellation import CancellationToken
from docref.http_utils import (
    RETRY_STATUS_CODES,
    check_with_retries,
    create_client,
    request_url,
)
from docref.schemas import ValidationStatus

URL = "https://example.com/page"


def response(status_code: int) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status_code = status_code
    return mock_response


def client_with(*outcomes) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.request = AsyncMock(side_effect=list(outcomes))
    return mock_client


async def check(mock_client: AsyncMock, *, retry_limit: int = 2, token=None):
    return await check_with_retries(
        URL,
        client=mock_client,
        retry_limit=retry_limit,
        timeout=1.0,
        backoff=0.0,
        token=token,
    )


class TestRetryStatusCodes:
    """Tests for RETRY_STATUS_CODES constant."""

    def test_contains_expected_codes(self) -> None:
        """Should contain all expected retryable status codes."""
        assert RETRY_STATUS_CODES == frozenset({429, 500, 502, 503, 504})


class TestRequestUrl:
    """Tests for request_url function."""

    def test_network_path_uses_https(self) -> None:
        """Protocol-relative targets are requested over https."""
        assert request_url("//cdn.example.com/x") == "https://cdn.example.com/x"

    def test_absolute_url_unchanged(self) -> None:
        """Absolute URLs are requested as written."""
        assert request_url(URL) == URL


class TestCheckWithRetries:
    """Tests for check_with_retries function."""

    @pytest.mark.asyncio
    async def test_success_is_valid(self) -> None:
        """A 200 response is valid after one attempt."""
        mock_client = client_with(response(200))

        result = await check(mock_client)

        assert result is not None
        assert result.status is ValidationStatus.VALID
        assert result.attempts == 1
        assert result.http_status == 200
        mock_client.request.assert_called_once_with("HEAD", URL)

    @pytest.mark.asyncio
    async def test_head_rejected_falls_back_to_get(self) -> None:
        """405 on HEAD is retried as GET within the same attempt."""
        mock_client = client_with(response(405), response(200))

        result = await check(mock_client)

        assert result is not None
        assert result.status is ValidationStatus.VALID
        assert result.attempts == 1
        assert mock_client.request.call_args_list[1].args == ("GET", URL)

    @pytest.mark.asyncio
    async def test_404_is_broken_without_retry(self) -> None:
        """Client errors are definitive."""
        mock_client = client_with(response(404))

        result = await check(mock_client)

        assert result is not None
        assert result.status is ValidationStatus.BROKEN
        assert result.detail == "HTTP 404"
        assert mock_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_retries_on_503(self) -> None:
        """Server errors are retried."""
        mock_client = client_with(response(503), response(200))

        result = await check(mock_client)

        assert result is not None
        assert result.status is ValidationStatus.VALID
        assert result.attempts == 2
        assert "attempt 1: HTTP 503" in result.detail

    @pytest.mark.asyncio
    async def test_unreachable_after_max_retries(self) -> None:
        """Connection errors on every attempt end as unreachable."""
        mock_client = client_with(*[httpx.ConnectError("refused")] * 3)

        result = await check(mock_client)

        assert result is not None
        assert result.status is ValidationStatus.UNREACHABLE
        # Initial attempt + 2 retries = 3 total
        assert result.attempts == 3
        assert result.detail.startswith("gave up after 3 attempts")

    @pytest.mark.asyncio
    async def test_timeout_on_every_attempt(self) -> None:
        """Timing out on every attempt yields timed_out with retry_limit + 1 attempts."""
        mock_client = client_with(*[httpx.ReadTimeout("slow")] * 4)

        result = await check(mock_client, retry_limit=3)

        assert result is not None
        assert result.status is ValidationStatus.TIMED_OUT
        assert result.attempts == 4
        assert mock_client.request.call_count == 4

    @pytest.mark.asyncio
    async def test_hard_timeout_per_attempt(self) -> None:
        """A request that never returns is cut off by the per-attempt timeout."""

        async def hang(method: str, url: str) -> MagicMock:
            await asyncio.sleep(10)
            return response(200)

        mock_client = AsyncMock()
        mock_client.request = hang

        result = await check_with_retries(
            URL, client=mock_client, retry_limit=0, timeout=0.01, backoff=0.0
        )

        assert result is not None
        assert result.status is ValidationStatus.TIMED_OUT
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_get_fallback_shares_the_attempt_timeout(self) -> None:
        """HEAD plus its GET fallback must finish within one timeout."""
        calls: list[str] = []

        async def slow(method: str, url: str) -> MagicMock:
            calls.append(method)
            await asyncio.sleep(0.15)
            return response(405 if method == "HEAD" else 200)

        mock_client = AsyncMock()
        mock_client.request = slow

        result = await check_with_retries(
            URL, client=mock_client, retry_limit=0, timeout=0.25, backoff=0.0
        )

        assert result is not None
        assert result.status is ValidationStatus.TIMED_OUT
        assert result.attempts == 1
        assert calls == ["HEAD", "GET"]

    @pytest.mark.asyncio
    async def test_unsupported_protocol_is_broken(self) -> None:
        """Malformed targets are definitive failures."""
        mock_client = client_with(httpx.UnsupportedProtocol("bad scheme"))

        result = await check(mock_client)

        assert result is not None
        assert result.status is ValidationStatus.BROKEN
        assert mock_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_token_abandons_check(self) -> None:
        """A cancelled run makes no attempt and returns no result."""
        token = CancellationToken()
        token.cancel()
        mock_client = client_with(response(200))

        result = await check(mock_client, token=token)

        assert result is None
        mock_client.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_between_attempts(self) -> None:
        """Cancellation after a transient failure abandons the retries."""
        token = CancellationToken()

        async def fail_then_cancel(method: str, url: str) -> MagicMock:
            token.cancel()
            return response(503)

        mock_client = AsyncMock()
        mock_client.request = AsyncMock(side_effect=fail_then_cancel)

        result = await check(mock_client, token=token)

        assert result is None
        assert mock_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_backoff_grows_exponentially(self) -> None:
        """Backoff delays double between attempts (jitter disabled)."""
        token = CancellationToken()
        mock_client = client_with(*[response(500)] * 3)

        with (
            patch("docref.http_utils.random.uniform", return_value=0.0),
            patch.object(token, "sleep", AsyncMock(return_value=False)) as mock_sleep,
        ):
            await check_with_retries(
                URL, client=mock_client, retry_limit=2, timeout=1.0, backoff=0.5, token=token
            )

        assert [call.args[0] for call in mock_sleep.call_args_list] == [0.5, 1.0]


class TestCreateClient:
    """Tests for create_client function."""

    def test_client_has_correct_settings(self) -> None:
        """Creates client with timeout, redirect and user-agent settings."""
        with patch("docref.http_utils.httpx.AsyncClient") as mock_client_class:
            create_client(5.0)

        call_kwargs = mock_client_class.call_args[1]
        assert call_kwargs["follow_redirects"] is True
        assert call_kwargs["max_redirects"] == 5
        assert "User-Agent" in call_kwargs["headers"]
        assert call_kwargs["timeout"] == httpx.Timeout(5.0)
