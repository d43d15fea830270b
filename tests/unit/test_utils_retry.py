"""Unit tests for the rate limit retry decorator."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed

from graph_sync_manager.utils.retry import rate_limit_wait_time, retry_on_rate_limit, wait_time_from_headers


def http_status_error(status_code: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    """Build an httpx status error."""
    request = httpx.Request("GET", "https://example.test/")
    response = httpx.Response(status_code, headers=headers, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


def test_decorator_rejects_sync_functions() -> None:
    """Test that only coroutine functions can be decorated."""
    with pytest.raises(TypeError):

        @retry_on_rate_limit()
        def not_async() -> None:
            pass


@pytest.mark.parametrize(
    "headers, expected",
    [
        pytest.param({"retry-after": "7"}, 7.0, id="retry after"),
        pytest.param({"retry-after": "soon"}, 5.0, id="invalid retry after"),
        pytest.param({}, 5.0, id="no headers"),
    ],
)
def test_wait_time_from_headers(headers: dict[str, str], expected: float) -> None:
    """Test deriving the wait time from response headers."""
    assert wait_time_from_headers(headers, 5.0) == expected


def test_rate_limit_wait_time_classifies_errors() -> None:
    """Test which errors are treated as rate limits."""
    primary = PrimaryRateLimitExceeded(MagicMock(status_code=403), retry_after=timedelta(seconds=30))
    assert rate_limit_wait_time(primary, 1.0) == 30.0
    assert rate_limit_wait_time(http_status_error(429, {"retry-after": "3"}), 1.0) == 3.0
    assert rate_limit_wait_time(http_status_error(500), 1.0) is None
    assert rate_limit_wait_time(RequestFailed(MagicMock(status_code=404)), 1.0) is None
    assert rate_limit_wait_time(ValueError("nope"), 1.0) is None


@pytest.mark.asyncio
async def test_retries_until_success_with_backoff() -> None:
    """Test that rate limited calls are retried with exponential backoff."""
    func = AsyncMock(side_effect=[http_status_error(429), http_status_error(429), "ok"])

    async def call() -> str:
        return await func()

    decorated = retry_on_rate_limit(initial_delay=1.0, max_delay=10.0)(call)
    with patch("graph_sync_manager.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        assert await decorated() == "ok"

    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_retries() -> None:
    """Test that the last rate limit error is raised once retries are exhausted."""

    async def always_limited() -> None:
        raise http_status_error(429)

    decorated = retry_on_rate_limit(max_retries=2, initial_delay=1.0)(always_limited)
    with patch("graph_sync_manager.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        with pytest.raises(httpx.HTTPStatusError):
            await decorated()

    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried() -> None:
    """Test that non rate limit errors propagate immediately."""
    calls = 0

    async def broken() -> None:
        nonlocal calls
        calls += 1
        raise ValueError("broken")

    with pytest.raises(ValueError):
        await retry_on_rate_limit()(broken)()
    assert calls == 1
