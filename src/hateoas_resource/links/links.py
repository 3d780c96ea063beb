"""Ordered multimap from relation name to Link records."""

from collections.abc import Iterable, Iterator
from dataclasses import replace
from typing import Any

from ..utils.uri import resolve
from .link import Link


class Links:
    """
    Collection of links grouped by relation.

    Relations keep insertion order and each relation keeps its links in the
    order they were added. ``get`` returns the first link for a relation.
    """

    def __init__(
        self,
        default_context: str = "",
        links: Iterable[Link | dict[str, Any]] | None = None,
    ) -> None:
        """
        Initialize Links.

        Args:
            default_context: Context URI applied to links added without one.
            links: Optional initial links.
        """
        self.default_context = default_context
        self._store: dict[str, list[Link]] = {}
        if links:
            self.add(links)

    def _normalize(self, link: Link | dict[str, Any] | str, href: str | None) -> Link:
        if isinstance(link, str):
            if href is None:
                raise ValueError("href is required when adding a link by rel")
            return Link(rel=link, href=href, context=self.default_context)
        normalized = Link.from_value(link, self.default_context)
        if not normalized.context:
            normalized.context = self.default_context
        return normalized

    def add(
        self,
        links: Iterable[Link | dict[str, Any]] | Link | dict[str, Any] | str,
        href: str | None = None,
    ) -> None:
        """
        Append one or more links.

        Accepts a Link, a mapping, an iterable of either, or the
        ``add(rel, href)`` shorthand.
        """
        if isinstance(links, (Link, dict, str)):
            items = [self._normalize(links, href)]
        else:
            items = [self._normalize(link, None) for link in links]
        for link in items:
            self._store.setdefault(link.rel, []).append(link)

    def set(self, link: Link | dict[str, Any] | str, href: str | None = None) -> None:
        """Replace every link for the relation with a single link."""
        normalized = self._normalize(link, href)
        self._store[normalized.rel] = [normalized]

    def get(self, rel: str) -> Link | None:
        """Return the first link for a relation, or None."""
        bucket = self._store.get(rel)
        return bucket[0] if bucket else None

    def get_many(self, rel: str) -> list[Link]:
        """Return every link for a relation. Empty when the rel is absent."""
        return list(self._store.get(rel, []))

    def get_all(self) -> list[Link]:
        """Return all links in insertion order."""
        return [link for bucket in self._store.values() for link in bucket]

    def has(self, rel: str) -> bool:
        return bool(self._store.get(rel))

    def delete(self, rel: str, href: str | None = None) -> None:
        """
        Remove links for a relation.

        Without ``href`` the whole relation is removed. With ``href`` only the
        links resolving to the same URI are removed.
        """
        if href is None:
            self._store.pop(rel, None)
            return
        target = resolve(self.default_context, href)
        remaining = [link for link in self._store.get(rel, []) if link.resolve() != target]
        if remaining:
            self._store[rel] = remaining
        else:
            self._store.pop(rel, None)

    def rels(self) -> list[str]:
        return list(self._store)

    def copy(self) -> "Links":
        clone = Links(self.default_context)
        for link in self.get_all():
            clone.add(replace(link, extra=dict(link.extra)))
        return clone

    def __iter__(self) -> Iterator[Link]:
        return iter(self.get_all())

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._store.values())

    def __contains__(self, rel: object) -> bool:
        return isinstance(rel, str) and self.has(rel)

    def __repr__(self) -> str:
        return f"Links(context={self.default_context!r}, rels={self.rels()!r})"
