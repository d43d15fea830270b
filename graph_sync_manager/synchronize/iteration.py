"""Streaming traversal of paginated provider collections.

A collection is described by a page fetcher: a coroutine function that takes
the continuation token of the page to fetch (``None`` for the first page) and
returns a :class:`Page`. Traversal is strictly sequential: the next page is
only requested once every item of the current page has been consumed.
"""

from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Generic, TypeVar

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a provider collection and the token for the next page."""

    items: list[T] = field(default_factory=list)
    next_token: str | None = None

    @property
    def is_last(self) -> bool:
        """Whether no further page exists."""
        return self.next_token is None


PageFetcher = Callable[[str | None], Awaitable[Page[T]]]
ResourceIteratee = Callable[[T], Awaitable[None]]


async def paginate(fetch_page: PageFetcher[T]) -> AsyncIterator[T]:
    """Yield the items of a paginated collection in provider page order."""
    token: str | None = None
    page_number = 1
    while True:
        page = await fetch_page(token)
        logger.debug("Fetched page", page_number=page_number, item_count=len(page.items), is_last=page.is_last)
        for item in page.items:
            yield item
        if page.is_last:
            break
        if page.next_token == token:
            raise RuntimeError(f"Provider returned the same continuation token twice: {token!r}")
        token = page.next_token
        page_number += 1


async def iterate_resources(fetch_page: PageFetcher[T], iteratee: ResourceIteratee[T]) -> int:
    """Invoke the iteratee once per item, awaiting each call before advancing.

    Returns the number of items visited.
    """
    visited = 0
    async for item in paginate(fetch_page):
        await iteratee(item)
        visited += 1
    return visited


async def materialize(fetch_page: PageFetcher[T]) -> list[T]:
    """Collect every item of a paginated collection into a list."""
    return [item async for item in paginate(fetch_page)]
