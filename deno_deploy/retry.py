# Rate-limit aware retry wrapper.

# Only HTTP 429 is retried; every other failure is raised on the spot.
# Delay before attempt k+1 (k from 0):
#   retry-after header present → exactly that many seconds
#   otherwise                  → min(base * 2^k, MAX_RETRY_DELAY_MS)

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from deno_deploy.config import MAX_RETRIES, MAX_RETRY_DELAY_MS, RETRY_BASE_DELAY_MS
from deno_deploy.pagination import RequestFn

log = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_STATUS = 429


def is_rate_limited(exc: BaseException) -> bool:
    return getattr(exc, "status", None) == RATE_LIMIT_STATUS


def backoff_delay_ms(exc: BaseException, attempt: int, base_delay_ms: int = RETRY_BASE_DELAY_MS) -> int:
    retry_after = exc.retry_after_ms() if hasattr(exc, "retry_after_ms") else None
    if retry_after is not None:
        return retry_after
    return min(base_delay_ms * (2 ** attempt), MAX_RETRY_DELAY_MS)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = MAX_RETRIES,
    base_delay_ms: int = RETRY_BASE_DELAY_MS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Await `operation()` up to `max_retries` times, backing off on 429.

    The error from the final attempt is re-raised unchanged.
    """
    attempts = max(1, max_retries)
    attempt  = 0

    while True:
        try:
            return await operation()
        except Exception as exc:
            if not is_rate_limited(exc):
                raise
            if attempt + 1 >= attempts:
                log.warning("Rate limited; giving up after %d attempt(s)", attempts)
                raise
            delay_ms = backoff_delay_ms(exc, attempt, base_delay_ms)
            log.warning(
                "Rate limited. Retry %d/%d in %dms.",
                attempt + 1, attempts - 1, delay_ms,
            )
            await sleep(delay_ms / 1000)
            attempt += 1


def retrying(request: RequestFn, **retry_kwargs: Any) -> RequestFn:
    """Wrap a gateway-style request function so each call goes through with_retry."""

    async def _request(
        method: str,
        path: str,
        body: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> Any:
        return await with_retry(lambda: request(method, path, body, query), **retry_kwargs)

    return _request
