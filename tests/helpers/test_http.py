"""Tests for HTTP helpers including retry logic and error handling."""

from unittest.mock import AsyncMock, patch

from typing import TYPE_CHECKING

import httpx
import pytest

from stakewatch.helpers.http import (
    create_http_client,
    handle_http_errors,
    log_and_suppress_errors,
    retry_with_backoff,
)


if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock


class TestRetryWithBackoff:
    """Tests for retry_with_backoff decorator."""

    @pytest.mark.asyncio
    async def test_succeeds_on_first_try(self) -> None:
        """Test function succeeds without retries."""
        call_count = 0

        @retry_with_backoff(max_retries=3, base_delay=0.01, log_errors=False)
        async def success_func() -> str:
            nonlocal call_count
            call_count += 1
            return "success"

        assert await success_func() == "success"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retries_on_http_error(self) -> None:
        """Test function retries on HTTP errors."""
        call_count = 0

        @retry_with_backoff(max_retries=3, base_delay=0.01, log_errors=False)
        async def failing_func() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise httpx.HTTPError("Network error")
            return "success"

        assert await failing_func() == "success"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_raises_after_max_retries(self) -> None:
        """Test function raises after exhausting retries."""

        @retry_with_backoff(max_retries=3, base_delay=0.01, log_errors=False)
        async def always_fails() -> None:
            raise httpx.HTTPError("Persistent error")

        with pytest.raises(httpx.HTTPError, match="Persistent error"):
            await always_fails()

    @pytest.mark.asyncio
    async def test_exponential_delays_are_capped(self) -> None:
        """Test delays double from base_delay and stop at max_delay."""

        @retry_with_backoff(max_retries=5, base_delay=1.0, max_delay=3.0, log_errors=False)
        async def always_fails() -> None:
            raise httpx.TimeoutException("Timeout")

        with patch("stakewatch.helpers.http.sleep", new=AsyncMock()) as mock_sleep:
            with pytest.raises(httpx.TimeoutException):
                await always_fails()

        delays = [call.args[0] for call in mock_sleep.call_args_list]
        assert delays == [1.0, 2.0, 3.0, 3.0]

    @pytest.mark.asyncio
    async def test_logs_each_retried_failure(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test each retried attempt is logged with the failure kind."""

        @retry_with_backoff(max_retries=3)
        async def flaky() -> None:
            raise httpx.TimeoutException("Timeout")

        with (
            patch("stakewatch.helpers.http.sleep", new=AsyncMock()),
            pytest.raises(httpx.TimeoutException),
        ):
            await flaky()

        messages = [record.getMessage() for record in caplog.records]
        assert "flaky failed (attempt 1/3): timeout" in messages
        assert "flaky failed (attempt 2/3): timeout" in messages
        assert "flaky failed after 3 attempts" in messages

    @pytest.mark.asyncio
    async def test_preserves_function_signature(self) -> None:
        """Test decorator preserves function name and docstring."""

        @retry_with_backoff(log_errors=False)
        async def documented_func() -> str:
            """This is a documented function."""
            return "result"

        assert documented_func.__name__ == "documented_func"
        assert documented_func.__doc__ == "This is a documented function."


class TestHandleHttpErrors:
    """Tests for handle_http_errors decorator."""

    @pytest.mark.asyncio
    async def test_returns_default_on_status_error(self, httpx_mock: "HTTPXMock") -> None:
        """Test HTTP status errors become the default value."""
        httpx_mock.add_response(url="https://api.example.com/error", status_code=500)

        @handle_http_errors(default_return={"fallback": True})
        async def fetch(client: httpx.AsyncClient) -> dict[str, bool]:
            response = await client.get("https://api.example.com/error")
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient() as client:
            assert await fetch(client) == {"fallback": True}

    @pytest.mark.asyncio
    async def test_returns_default_on_timeout(self, httpx_mock: "HTTPXMock") -> None:
        """Test transport errors become the default value."""
        httpx_mock.add_exception(httpx.TimeoutException("Request timed out"))

        @handle_http_errors()
        async def fetch(client: httpx.AsyncClient) -> dict[str, bool]:
            response = await client.get("https://api.example.com/slow")
            return response.json()

        async with httpx.AsyncClient() as client:
            assert await fetch(client) is None

    @pytest.mark.asyncio
    async def test_passes_result_through(self, httpx_mock: "HTTPXMock") -> None:
        """Test successful calls are returned unchanged."""
        httpx_mock.add_response(url="https://api.example.com/data", json={"ok": 1})

        @handle_http_errors()
        async def fetch(client: httpx.AsyncClient) -> dict[str, int]:
            response = await client.get("https://api.example.com/data")
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient() as client:
            assert await fetch(client) == {"ok": 1}


class TestLogAndSuppressErrors:
    """Tests for log_and_suppress_errors context manager."""

    @pytest.mark.asyncio
    async def test_suppresses_error_by_default(self) -> None:
        """Test context manager suppresses errors by default."""
        executed = False
        async with log_and_suppress_errors("test operation"):
            executed = True
            raise ValueError("Test error")

        assert executed

    @pytest.mark.asyncio
    async def test_reraises_when_suppress_false(self) -> None:
        """Test context manager re-raises when suppress=False."""
        with pytest.raises(ValueError, match="Test error"):
            async with log_and_suppress_errors("test operation", suppress=False):
                raise ValueError("Test error")

    @pytest.mark.asyncio
    async def test_logs_operation_name(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the failed operation is named in the log."""
        import logging

        caplog.set_level(logging.WARNING)

        async with log_and_suppress_errors("fetch unbonds for validator 7"):
            raise ConnectionError("refused")

        assert any(
            "fetch unbonds for validator 7" in record.message and "refused" in record.message
            for record in caplog.records
        )


class TestCreateHttpClient:
    """Tests for create_http_client function."""

    @pytest.mark.asyncio
    async def test_sets_timeout_and_accept_header(self) -> None:
        """Test the client carries the timeout and a JSON Accept header."""
        async with create_http_client(timeout=12.0) as client:
            assert client.timeout.read == 12.0
            assert client.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_merges_extra_headers(self) -> None:
        """Test caller headers are kept alongside the default."""
        async with create_http_client(headers={"X-Test": "1"}) as client:
            assert client.headers["X-Test"] == "1"
            assert client.headers["Accept"] == "application/json"
