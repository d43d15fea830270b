"""Resource cache keyed by collection name, holding entries and fetch completion state."""

import inspect
from typing import AsyncIterator, Awaitable, Callable, Iterable, Protocol

import structlog

from graph_sync_manager.cache.models import CacheEntry, FetchStatus, ResourceCacheState, utcnow

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

CacheVisitor = Callable[[CacheEntry], Awaitable[None] | None]


class ResourceCache(Protocol):
    """Read side of the resource cache, as consumed by synchronizers."""

    async def get_state(self, collection: str) -> ResourceCacheState | None:
        """Return the fetch state of a collection, or None if it was never fetched."""
        ...

    def iter_entries(self, collection: str) -> AsyncIterator[CacheEntry]:
        """Lazily yield the entries of a collection in cache order."""
        ...

    async def for_each(self, collection: str, visitor: CacheVisitor) -> int:
        """Invoke the visitor once per entry of a collection."""
        ...


class InvalidFetchTransitionError(Exception):
    """Raised when the fetch phase attempts an invalid state transition."""

    def __init__(self, collection: str, current: FetchStatus | None, desired: FetchStatus) -> None:
        """Initializes the exception with the attempted transition."""
        current_name = current.value if current is not None else "absent"
        super().__init__(f"Invalid fetch state transition for '{collection}': {current_name} -> {desired.value}")
        self.collection = collection
        self.current = current
        self.desired = desired


class InMemoryResourceCache:
    """Process-scoped resource cache.

    Only the fetch phase calls the write methods (``begin_fetch``,
    ``add_entries``, ``complete_fetch`` and ``clear``). Synchronizers use the
    read side described by :class:`ResourceCache`.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._entries: dict[str, list[CacheEntry]] = {}
        self._states: dict[str, ResourceCacheState] = {}

    async def get_state(self, collection: str) -> ResourceCacheState | None:
        """Return a copy of the fetch state so callers cannot mutate it."""
        state = self._states.get(collection)
        if state is None:
            return None
        return state.model_copy()

    async def iter_entries(self, collection: str) -> AsyncIterator[CacheEntry]:
        """Lazily yield the entries of a collection in insertion order."""
        entries = self._entries.get(collection, [])
        for index in range(len(entries)):
            yield entries[index]

    async def for_each(self, collection: str, visitor: CacheVisitor) -> int:
        """Invoke the visitor once per entry, awaiting it before the next entry is produced.

        Returns the number of entries visited.
        """
        visited = 0
        async for entry in self.iter_entries(collection):
            result = visitor(entry)
            if inspect.isawaitable(result):
                await result
            visited += 1
        return visited

    async def begin_fetch(self, collection: str) -> None:
        """Mark a collection as being fetched, discarding entries from a previous attempt."""
        current = self._states.get(collection)
        if current is not None and current.status == FetchStatus.COMPLETED:
            raise InvalidFetchTransitionError(collection, current.status, FetchStatus.FETCHING)
        self._entries[collection] = []
        self._states[collection] = ResourceCacheState(status=FetchStatus.FETCHING, started_at=utcnow())
        logger.debug("Started fetch for collection", collection=collection)

    async def add_entries(self, collection: str, entries: Iterable[CacheEntry]) -> None:
        """Append entries to a collection that is being fetched."""
        state = self._states.get(collection)
        if state is None or state.status != FetchStatus.FETCHING:
            raise InvalidFetchTransitionError(collection, state.status if state else None, FetchStatus.FETCHING)
        added = list(entries)
        self._entries[collection].extend(added)
        state.resource_count += len(added)

    async def complete_fetch(self, collection: str) -> None:
        """Mark the fetch of a collection as completed."""
        state = self._states.get(collection)
        if state is None or state.status != FetchStatus.FETCHING:
            raise InvalidFetchTransitionError(collection, state.status if state else None, FetchStatus.COMPLETED)
        state.status = FetchStatus.COMPLETED
        state.completed_at = utcnow()
        logger.info("Completed fetch for collection", collection=collection, resource_count=state.resource_count)

    async def clear(self, collection: str | None = None) -> None:
        """Drop one collection, or every collection, starting a new cache generation."""
        if collection is None:
            self._entries.clear()
            self._states.clear()
            return
        self._entries.pop(collection, None)
        self._states.pop(collection, None)
