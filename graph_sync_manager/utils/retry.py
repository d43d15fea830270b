"""Retry decorator for provider API rate limits.

Wraps async provider calls (githubkit or httpx based) and retries them when the
provider reports a rate limit, honouring ``retry-after`` and
``x-ratelimit-reset`` headers and falling back to exponential backoff. Any
other error is raised immediately.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Awaitable, Callable, Mapping, TypeVar

import httpx
import structlog
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

RATE_LIMIT_STATUS_CODES = (403, 429)


def wait_time_from_headers(headers: Mapping[str, str], default: float) -> float:
    """Derive how long to wait from rate limit response headers."""
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            remaining = int(rate_limit_reset) - int(time.time())
            if remaining > 0:
                return remaining + 1
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
    return default


def rate_limit_wait_time(exc: Exception, default: float) -> float | None:
    """Return how long to wait before retrying, or None if the error is not a rate limit."""
    if isinstance(exc, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        if exc.retry_after:
            return exc.retry_after.total_seconds()
        return default
    if isinstance(exc, RequestFailed):
        status_code = exc.response.status_code
        if status_code == 429 or (status_code == 403 and "rate limit" in str(exc).lower()):
            return wait_time_from_headers(exc.response.headers, default)
        return None
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code == 429:
            return wait_time_from_headers(exc.response.headers, default)
        return None
    return None


def retry_on_rate_limit(
    max_retries: int = 10,
    initial_delay: float = 10.0,
    max_delay: float = 300.0,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async provider calls that hit a rate limit.

    Args:
        max_retries: Maximum number of retry attempts (default: 10)
        initial_delay: Initial delay in seconds when no header says otherwise (default: 10.0)
        max_delay: Maximum delay in seconds between retries (default: 300.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    wait_time = rate_limit_wait_time(exc, delay)
                    if wait_time is None:
                        raise
                    if attempt >= max_retries:
                        logger.error(
                            "Max retries reached for rate limit error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            error_type=type(exc).__name__,
                        )
                        raise
                    wait_time = min(wait_time, max_delay)
                    logger.warning(
                        "Rate limit hit, retrying",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)
                    attempt += 1

        return wrapper  # type: ignore

    return decorator
