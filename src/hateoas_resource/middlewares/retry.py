"""Opt-in retries with exponential backoff.

The client never retries on its own. Register this middleware to retry
transport failures and overloaded-server statuses:

    client.use(retry_middleware(attempts=5), "https://api.example.com")
"""

from collections.abc import Iterable

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from ..http.fetcher import FetchMiddleware, NextHandler

logger = structlog.get_logger(__name__)

RETRYABLE_STATUSES = (429, 502, 503, 504)


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    reason: str | int | None = None
    if outcome is not None:
        reason = repr(outcome.exception()) if outcome.failed else outcome.result().status_code
    logger.warning(
        "Retrying request",
        attempt=retry_state.attempt_number,
        reason=reason,
    )


def _last_outcome(retry_state: RetryCallState) -> httpx.Response:
    # Raises the last exception, or hands back the last response
    assert retry_state.outcome is not None
    return retry_state.outcome.result()


def retry_middleware(
    attempts: int = 3,
    statuses: Iterable[int] = RETRYABLE_STATUSES,
    min_wait: float = 0.5,
    max_wait: float = 10.0,
) -> FetchMiddleware:
    """
    Build a retrying middleware.

    Args:
        attempts: Total attempts including the first one.
        statuses: Response statuses that trigger a retry.
        min_wait: Lower bound of the exponential backoff in seconds.
        max_wait: Upper bound of the exponential backoff in seconds.

    Returns:
        Middleware returning the last response when retries run out, or
        raising the last transport error.
    """
    retry_statuses = frozenset(statuses)

    async def middleware(request: httpx.Request, call_next: NextHandler) -> httpx.Response:
        response: httpx.Response | None = None
        retrying = AsyncRetrying(
            retry=(
                retry_if_exception_type(httpx.TransportError)
                | retry_if_result(lambda r: r.status_code in retry_statuses)
            ),
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
            before_sleep=_log_retry,
            retry_error_callback=_last_outcome,
        )
        async for attempt in retrying:
            if response is not None:
                await response.aclose()
                response = None
            with attempt:
                response = await call_next(request)
            if not attempt.retry_state.outcome.failed:
                attempt.retry_state.set_result(response)
        assert response is not None
        return response

    return middleware
