"""Guards synchronization against running over an incomplete fetch."""

import structlog

from graph_sync_manager.cache.models import ResourceCacheState
from graph_sync_manager.cache.store import ResourceCache
from graph_sync_manager.exceptions import IncompleteFetchError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def ensure_fetch_completed(cache: ResourceCache, collection: str) -> ResourceCacheState:
    """Return the collection's fetch state, raising if the fetch phase did not complete."""
    state = await cache.get_state(collection)
    if state is None or not state.resource_fetch_completed:
        status = state.status.value if state is not None else None
        logger.error("Fetch did not complete, refusing to synchronize", collection=collection, status=status)
        raise IncompleteFetchError(collection, status)
    return state
