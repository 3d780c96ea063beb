"""Cache dependency graph.

Records which cached representations must be invalidated together. An edge
``target -> dependent`` is registered when a cached State carries an
``inv-by`` link to ``target``: whenever ``target`` goes stale, so does the
dependent.

The graph is not assumed to be acyclic. Closures are computed with a visited
set, so ``A -> B -> A`` terminates.
"""

from collections import deque
from collections.abc import Iterable

import structlog

logger = structlog.get_logger(__name__)


class CacheDependencyGraph:
    """
    Directed graph of URI invalidation edges.

    Attributes:
        dependents: target URI -> URIs invalidated along with it
        dependencies: dependent URI -> target URIs it was registered under
    """

    def __init__(self) -> None:
        self.dependents: dict[str, set[str]] = {}
        self.dependencies: dict[str, set[str]] = {}

    def add(self, target: str, dependent: str) -> None:
        """Register that ``dependent`` is invalidated when ``target`` is."""
        if target == dependent:
            return
        self.dependents.setdefault(target, set()).add(dependent)
        self.dependencies.setdefault(dependent, set()).add(target)
        logger.debug("Registered cache dependency", target=target, dependent=dependent)

    def get_dependents(self, uri: str) -> set[str]:
        return set(self.dependents.get(uri, ()))

    def get_dependencies(self, uri: str) -> set[str]:
        return set(self.dependencies.get(uri, ()))

    def expand(self, uris: Iterable[str]) -> set[str]:
        """
        Return the transitive closure of ``uris`` in both edge directions.

        Walks from each URI to the States depending on it and to the States
        it depends on, visiting every URI once.

        Args:
            uris: Starting URIs.

        Returns:
            The starting URIs plus every URI reachable from them.
        """
        visited: set[str] = set()
        queue = deque(uris)
        while queue:
            uri = queue.popleft()
            if uri in visited:
                continue
            visited.add(uri)
            for neighbour in self.dependents.get(uri, ()):
                if neighbour not in visited:
                    queue.append(neighbour)
            for neighbour in self.dependencies.get(uri, ()):
                if neighbour not in visited:
                    queue.append(neighbour)
        return visited

    def remove(self, uri: str) -> None:
        """Drop a URI and every edge touching it."""
        for dependent in self.dependents.pop(uri, set()):
            targets = self.dependencies.get(dependent)
            if targets is not None:
                targets.discard(uri)
                if not targets:
                    del self.dependencies[dependent]
        for target in self.dependencies.pop(uri, set()):
            dependents = self.dependents.get(target)
            if dependents is not None:
                dependents.discard(uri)
                if not dependents:
                    del self.dependents[target]

    def clear(self) -> None:
        self.dependents.clear()
        self.dependencies.clear()

    def __contains__(self, uri: object) -> bool:
        return uri in self.dependents or uri in self.dependencies

    def __len__(self) -> int:
        """Number of edges."""
        return sum(len(targets) for targets in self.dependents.values())
