"""Resource cache and fetch completion state."""

from .models import CacheEntry, FetchStatus, ResourceCacheState
from .store import CacheVisitor, InMemoryResourceCache, InvalidFetchTransitionError, ResourceCache

__all__ = [
    "CacheEntry",
    "CacheVisitor",
    "FetchStatus",
    "InMemoryResourceCache",
    "InvalidFetchTransitionError",
    "ResourceCache",
    "ResourceCacheState",
]
