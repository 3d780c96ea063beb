"""State caches keyed by absolute URI.

Three strategies share one interface:
- ForeverCache: keeps every State until it is invalidated (default)
- ShortCache: like ForeverCache, but entries expire after a timeout
- NeverCache: stores nothing, every read misses
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

from ..observability.metrics import get_global_collector
from ..state.base import State

logger = structlog.get_logger(__name__)


@dataclass
class CacheStats:
    """Statistics for State cache lookups."""

    hits: int = 0
    misses: int = 0
    stores: int = 0
    evictions: int = 0

    def hit_rate(self) -> float:
        """Return the hit rate as a percentage (0-100)."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100


class StateCache(ABC):
    """Interface of every State cache."""

    def __init__(self) -> None:
        self.stats = CacheStats()

    @abstractmethod
    def store(self, state: State) -> None:
        """Store a State under its URI, replacing any previous one."""

    @abstractmethod
    def get(self, uri: str) -> State | None:
        """Return the State for a URI, or None."""

    @abstractmethod
    def has(self, uri: str) -> bool:
        pass

    @abstractmethod
    def delete(self, uri: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def destroy(self) -> None:
        """Release timers or other resources held by the cache."""
        self.clear()

    def _record(self, outcome: str) -> None:
        if outcome == "hit":
            self.stats.hits += 1
        elif outcome == "miss":
            self.stats.misses += 1
        get_global_collector().count_cache(outcome)


class ForeverCache(StateCache):
    """
    Cache that keeps States until they are explicitly evicted.

    States are cloned on the way in and out, so callers never share a
    cached instance.
    """

    def __init__(self) -> None:
        super().__init__()
        self._states: dict[str, State] = {}

    def store(self, state: State) -> None:
        self._states[state.uri] = state.clone()
        self.stats.stores += 1
        get_global_collector().update_cache_size(len(self._states))
        logger.debug("Cached state", uri=state.uri, partial=state.is_partial)

    def get(self, uri: str) -> State | None:
        state = self._states.get(uri)
        if state is None:
            self._record("miss")
            return None
        self._record("hit")
        return state.clone()

    def has(self, uri: str) -> bool:
        return uri in self._states

    def delete(self, uri: str) -> None:
        if self._states.pop(uri, None) is not None:
            self.stats.evictions += 1
            get_global_collector().count_cache("eviction")
            logger.debug("Evicted state", uri=uri)

    def clear(self) -> None:
        self._states.clear()

    def __len__(self) -> int:
        return len(self._states)


class ShortCache(ForeverCache):
    """
    Cache whose entries expire a fixed time after they were stored.

    Expiry is checked lazily on access.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        """
        Initialize ShortCache.

        Args:
            timeout: Seconds an entry stays valid after being stored.
        """
        super().__init__()
        self.timeout = timeout
        self._stored_at: dict[str, float] = {}

    def _expired(self, uri: str) -> bool:
        stored_at = self._stored_at.get(uri)
        if stored_at is None:
            return False
        if time.monotonic() - stored_at < self.timeout:
            return False
        self.delete(uri)
        return True

    def store(self, state: State) -> None:
        super().store(state)
        self._stored_at[state.uri] = time.monotonic()

    def get(self, uri: str) -> State | None:
        if self._expired(uri):
            self._record("miss")
            return None
        return super().get(uri)

    def has(self, uri: str) -> bool:
        return not self._expired(uri) and super().has(uri)

    def delete(self, uri: str) -> None:
        super().delete(uri)
        self._stored_at.pop(uri, None)

    def clear(self) -> None:
        super().clear()
        self._stored_at.clear()


class NeverCache(StateCache):
    """Cache that never keeps anything."""

    def store(self, state: State) -> None:
        pass

    def get(self, uri: str) -> State | None:
        self._record("miss")
        return None

    def has(self, uri: str) -> bool:
        return False

    def delete(self, uri: str) -> None:
        pass

    def clear(self) -> None:
        pass


def create_cache(strategy: str = "forever", ttl_seconds: float = 30.0) -> StateCache:
    """
    Build a cache by strategy name.

    Raises:
        ValueError: If the strategy is unknown.
    """
    if strategy == "forever":
        return ForeverCache()
    if strategy == "short":
        return ShortCache(ttl_seconds)
    if strategy == "never":
        return NeverCache()
    raise ValueError(f"Unknown cache strategy: {strategy}")
