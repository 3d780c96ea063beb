"""Metrics for HTTP exchanges and the State cache.

Series are identified by a name plus optional tags and reported under keys
of the form ``name[tag=value,...]`` with tags sorted by name.
"""

from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Tags = dict[str, str] | None
SeriesKey = tuple[str, tuple[tuple[str, str], ...]]


def series_key(name: str, tags: Tags) -> SeriesKey:
    return name, tuple(sorted((tags or {}).items()))


def render_key(key: SeriesKey) -> str:
    name, tags = key
    if not tags:
        return name
    return f"{name}[{','.join(f'{k}={v}' for k, v in tags)}]"


class MetricsBackend(ABC):
    """Destination for counters, gauges and timings."""

    @abstractmethod
    def increment(self, name: str, value: int = 1, tags: Tags = None) -> None: ...

    @abstractmethod
    def gauge(self, name: str, value: float, tags: Tags = None) -> None: ...

    @abstractmethod
    def timing(self, name: str, value: float, tags: Tags = None) -> None: ...


class LoggerBackend(MetricsBackend):
    """
    Keeps every series in memory and reports them as one log event.

    Gauges keep their last value; timings keep every sample until the
    summary is taken.
    """

    def __init__(self) -> None:
        self._counters: Counter[SeriesKey] = Counter()
        self._gauges: dict[SeriesKey, float] = {}
        self._timings: defaultdict[SeriesKey, list[float]] = defaultdict(list)

    def increment(self, name: str, value: int = 1, tags: Tags = None) -> None:
        self._counters[series_key(name, tags)] += value

    def gauge(self, name: str, value: float, tags: Tags = None) -> None:
        self._gauges[series_key(name, tags)] = value

    def timing(self, name: str, value: float, tags: Tags = None) -> None:
        self._timings[series_key(name, tags)].append(value)

    def counter_total(self, name: str, **tags: str) -> int:
        """Sum a counter over every series whose tags include the given ones."""
        wanted = set(tags.items())
        return sum(
            count
            for (series, series_tags), count in self._counters.items()
            if series == name and wanted <= set(series_tags)
        )

    def get_summary(self) -> dict[str, Any]:
        timings = {
            render_key(key): {
                "count": len(samples),
                "avg": sum(samples) / len(samples),
                "min": min(samples),
                "max": max(samples),
            }
            for key, samples in self._timings.items()
            if samples
        }
        return {
            "counters": {render_key(key): count for key, count in self._counters.items()},
            "gauges": {render_key(key): value for key, value in self._gauges.items()},
            "timings": timings,
        }

    def log_summary(self) -> None:
        logger.debug("Client metrics", **self.get_summary())


class MetricsCollector:
    """Records what the Fetcher and the State cache do."""

    def __init__(self, backend: str = "logger") -> None:
        """
        Args:
            backend: Backend name. Only "logger" exists; other names fall
                back to it with a warning.
        """
        if backend != "logger":
            logger.warning("Unknown metrics backend, using logger", backend=backend)
        self.backend: MetricsBackend = LoggerBackend()

    def count_request(self, method: str, status: int | str) -> None:
        self.backend.increment("http_request_total", tags={"method": method, "status": str(status)})

    def record_latency(self, method: str, duration_ms: float) -> None:
        self.backend.timing("http_request_duration_ms", duration_ms, tags={"method": method})

    def count_cache(self, outcome: str) -> None:
        """Count a cache event: hit, miss, store or eviction."""
        self.backend.increment("state_cache_total", tags={"outcome": outcome})

    def update_cache_size(self, size: int) -> None:
        self.backend.gauge("state_cache_entries", float(size))

    def cache_hit_ratio(self) -> float | None:
        """Share of cache lookups that were hits, or None before any lookup."""
        if not isinstance(self.backend, LoggerBackend):
            return None
        hits = self.backend.counter_total("state_cache_total", outcome="hit")
        misses = self.backend.counter_total("state_cache_total", outcome="miss")
        if hits + misses == 0:
            return None
        return hits / (hits + misses)

    def get_summary(self) -> dict[str, Any]:
        if isinstance(self.backend, LoggerBackend):
            return self.backend.get_summary()
        return {}

    def log_summary(self) -> None:
        if isinstance(self.backend, LoggerBackend):
            self.backend.log_summary()

    def reset(self) -> None:
        self.backend = LoggerBackend()


_GLOBAL_COLLECTOR: MetricsCollector | None = None


def get_global_collector() -> MetricsCollector:
    """Return the process-wide collector, creating it on first use."""
    global _GLOBAL_COLLECTOR
    if _GLOBAL_COLLECTOR is None:
        _GLOBAL_COLLECTOR = MetricsCollector()
    return _GLOBAL_COLLECTOR
