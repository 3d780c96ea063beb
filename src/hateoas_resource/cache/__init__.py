"""Cache - State stores and the invalidation dependency graph."""

from .dependency import CacheDependencyGraph
from .store import CacheStats, ForeverCache, NeverCache, ShortCache, StateCache, create_cache

__all__ = [
    "StateCache",
    "ForeverCache",
    "ShortCache",
    "NeverCache",
    "CacheStats",
    "create_cache",
    "CacheDependencyGraph",
]
