import asyncio

import httpx
import pytest

from estateflow.exceptions import RequestFailedError
from estateflow.retry import (
    calculate_backoff_delay,
    is_retryable_response,
    is_transport_error,
    retry_with_backoff,
)

URL = "http://estateflow.test/api/generate"


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_backoff_delay_doubles():
    assert calculate_backoff_delay(0) == 1000
    assert calculate_backoff_delay(3) == 8000
    assert calculate_backoff_delay(2, 250) == 1000
    for n in range(8):
        assert calculate_backoff_delay(n, 100) == (2 ** n) * 100


def test_retryable_response_predicate():
    assert is_retryable_response(500)
    assert is_retryable_response(503, {"error": "down"})
    assert is_retryable_response(429)
    assert is_retryable_response(400, {"error": "upstream timeout"})
    assert is_retryable_response(404, {"error": "scraper unavailable"})
    assert not is_retryable_response(400, {"error": "URL is required"})
    assert not is_retryable_response(401)


def test_transport_error_detection():
    assert is_transport_error(httpx.ConnectError("refused"))
    assert is_transport_error(asyncio.TimeoutError())
    assert is_transport_error(RuntimeError("network is unreachable"))
    assert not is_transport_error(ValueError("bad payload"))


@pytest.mark.asyncio
async def test_always_503_makes_four_attempts_then_fails(sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, json={"error": f"Service down #{len(calls)}"})

    async with _client(handler) as client:
        with pytest.raises(RequestFailedError) as exc_info:
            await retry_with_backoff(client, URL, json={}, max_retries=3)

    assert len(calls) == 4
    assert str(exc_info.value) == "Service down #4"
    assert exc_info.value.status_code == 503
    assert sleeps == [1000, 2000, 4000]


@pytest.mark.asyncio
async def test_400_fails_after_one_attempt(sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": "Invalid URL format"})

    async with _client(handler) as client:
        with pytest.raises(RequestFailedError, match="Invalid URL format"):
            await retry_with_backoff(client, URL, json={"url": "nope"})

    assert len(calls) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_recovers_on_fourth_attempt(sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 4:
            return httpx.Response(503, json={"error": "Service Unavailable"})
        return httpx.Response(200, json={"success": True})

    async with _client(handler) as client:
        response = await retry_with_backoff(client, URL, json={}, max_retries=3)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert len(calls) == 4


@pytest.mark.asyncio
async def test_non_json_error_body_uses_status_text(sleeps):
    def handler(request):
        return httpx.Response(404, text="<html>not here</html>")

    async with _client(handler) as client:
        with pytest.raises(RequestFailedError) as exc_info:
            await retry_with_backoff(client, URL)

    assert str(exc_info.value) == "Not Found"
    assert exc_info.value.payload == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_error_without_message_reports_status(sleeps):
    def handler(request):
        return httpx.Response(422, json={"detail": "bad"})

    async with _client(handler) as client:
        with pytest.raises(RequestFailedError, match="Request failed with status 422"):
            await retry_with_backoff(client, URL)


@pytest.mark.asyncio
async def test_transport_errors_are_retried_then_raised(sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(httpx.ConnectError):
            await retry_with_backoff(client, URL, max_retries=2, base_delay=10)

    assert len(calls) == 3
    assert sleeps == [10, 20]


@pytest.mark.asyncio
async def test_per_attempt_timeout_is_retried(sleeps):
    calls = []

    async def handler(request):
        calls.append(request)
        if len(calls) == 1:
            await asyncio.sleep(1)
        return httpx.Response(200, json={"ok": True})

    async with _client(handler) as client:
        response = await retry_with_backoff(client, URL, attempt_timeout=0.05)

    assert response.status_code == 200
    assert len(calls) == 2
    assert sleeps == [1000]


@pytest.mark.asyncio
async def test_unexpected_errors_are_not_retried(sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        raise ValueError("bad request body")

    async with _client(handler) as client:
        with pytest.raises(ValueError):
            await retry_with_backoff(client, URL)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_on_retry_called_before_each_backoff(sleeps):
    seen = []

    def handler(request):
        return httpx.Response(429, json={"error": "slow down"})

    async def on_retry(attempt, error):
        seen.append((attempt, error.status_code))

    async with _client(handler) as client:
        with pytest.raises(RequestFailedError):
            await retry_with_backoff(client, URL, max_retries=2, on_retry=on_retry)

    assert seen == [(0, 429), (1, 429)]


@pytest.mark.asyncio
async def test_transport_timeout_follows_attempt_timeout():
    timeouts = []

    def handler(request):
        timeouts.append(request.extensions["timeout"])
        return httpx.Response(200)

    async with _client(handler) as client:
        await retry_with_backoff(client, URL, attempt_timeout=12.5)
        await retry_with_backoff(client, URL, attempt_timeout=12.5, timeout=2.0)

    assert timeouts[0]["read"] == 12.5
    assert timeouts[0]["connect"] == 12.5
    assert timeouts[1]["read"] == 2.0
