"""Retry logic with exponential backoff"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from loguru import logger

from .config import ATTEMPT_TIMEOUT, BASE_DELAY_MS, MAX_RETRIES
from .exceptions import MaxRetriesExceededError, RequestFailedError

RETRYABLE_ERROR_MARKERS = ("timeout", "unavailable")
TRANSPORT_ERROR_MARKERS = ("abort", "timeout", "network")


def calculate_backoff_delay(retry_count: int, base_delay: int = BASE_DELAY_MS) -> int:
    """Delay in milliseconds before retry number ``retry_count`` (0-based)"""
    return (2 ** retry_count) * base_delay


def is_retryable_response(status_code: int, payload: Optional[Dict[str, Any]] = None) -> bool:
    """Check if a failed response is worth another attempt"""
    if status_code >= 500 or status_code == 429:
        return True
    error_text = str((payload or {}).get("error") or "")
    return any(marker in error_text for marker in RETRYABLE_ERROR_MARKERS)


def is_transport_error(error: BaseException) -> bool:
    """Failures where no HTTP response was received at all"""
    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError, TimeoutError)):
        return True
    name = type(error).__name__.lower()
    message = str(error).lower()
    return any(m in name or m in message for m in TRANSPORT_ERROR_MARKERS)


def parse_error_payload(response: httpx.Response) -> Dict[str, Any]:
    """Parse an error body, falling back to the status text"""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {"error": response.reason_phrase}
    return payload


async def _sleep(delay_ms: int) -> None:
    await asyncio.sleep(delay_ms / 1000)


async def retry_with_backoff(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "POST",
    max_retries: int = MAX_RETRIES,
    base_delay: int = BASE_DELAY_MS,
    attempt_timeout: float = ATTEMPT_TIMEOUT,
    on_retry: Optional[Callable[[int, Exception], Awaitable[None]]] = None,
    **request_kwargs,
) -> httpx.Response:
    """
    Send a request with bounded retries and exponential backoff.

    Makes at most ``max_retries + 1`` attempts, strictly one after another.
    Each attempt is cancelled after ``attempt_timeout`` seconds regardless
    of any timeout passed in ``request_kwargs``; without one, the transport
    timeout is ``attempt_timeout`` as well.

    Args:
        client: HTTP client used for every attempt
        url: Target URL
        method: HTTP method
        max_retries: Retries after the first attempt
        base_delay: Backoff base in milliseconds
        attempt_timeout: Per-attempt cancellation timeout in seconds
        on_retry: Optional callback called before each backoff: on_retry(attempt, error)
        **request_kwargs: Passed through to ``client.request``

    Returns:
        The first successful (2xx) response

    Raises:
        RequestFailedError: Non-retryable response, or retryable on the last attempt
        MaxRetriesExceededError: No attempt produced a result
    """
    # The transport timeout defaults to the attempt timeout instead of httpx's 5s
    request_kwargs.setdefault("timeout", attempt_timeout)
    last_exception: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        try:
            response = await asyncio.wait_for(
                client.request(method, url, **request_kwargs),
                timeout=attempt_timeout,
            )
        except Exception as e:
            last_exception = e
            if attempt < max_retries and is_transport_error(e):
                delay = calculate_backoff_delay(attempt, base_delay)
                logger.warning(
                    f"⚠️ Network attempt {attempt + 1}/{max_retries + 1} failed "
                    f"({type(e).__name__}): {e}"
                )
                logger.info(f"   Retrying in {delay}ms...")
                if on_retry:
                    await on_retry(attempt, e)
                await _sleep(delay)
                continue
            logger.error(f"❌ Request to {url} failed after {attempt + 1} attempts: {e}")
            raise

        if response.is_success:
            if attempt > 0:
                logger.success(f"✓ Recovered after {attempt} retries")
            return response

        payload = parse_error_payload(response)
        message = payload.get("error") or f"Request failed with status {response.status_code}"
        error = RequestFailedError(str(message), response.status_code, payload)
        last_exception = error

        if attempt < max_retries and is_retryable_response(response.status_code, payload):
            delay = calculate_backoff_delay(attempt, base_delay)
            logger.warning(
                f"⚠️ Attempt {attempt + 1}/{max_retries + 1} failed with status "
                f"{response.status_code}: {message}"
            )
            logger.info(f"   Retrying in {delay}ms...")
            if on_retry:
                await on_retry(attempt, error)
            await _sleep(delay)
            continue

        logger.error(f"❌ Request to {url} failed with status {response.status_code}: {message}")
        raise error

    raise MaxRetriesExceededError() from last_exception
