"""Link record and relation constants."""

from dataclasses import dataclass, field, replace
from typing import Any

from ..utils.uri import resolve


@dataclass
class Link:
    """
    A typed edge from one resource to another.

    ``href`` may be relative; it is resolved against ``context`` (the URI of
    the document the link appeared in). Two links resolving to the same URI
    are interchangeable as far as caching is concerned.
    """

    rel: str
    href: str
    context: str = ""
    title: str | None = None
    name: str | None = None
    type: str | None = None
    templated: bool = False
    hreflang: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def resolve(self) -> str:
        """Return the absolute URI of the link target."""
        return resolve(self)

    def with_rel(self, rel: str) -> "Link":
        """Return a copy of this link with another relation name."""
        return replace(self, rel=rel, extra=dict(self.extra))

    def to_hal(self) -> dict[str, Any]:
        """Serialize to a HAL link object."""
        result: dict[str, Any] = {"href": self.href}
        if self.templated:
            result["templated"] = True
        for key in ("title", "name", "type", "hreflang"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_value(cls, value: "Link | dict[str, Any]", context: str = "") -> "Link":
        """Build a Link from a Link or a mapping with at least rel and href."""
        if isinstance(value, Link):
            return value
        data = dict(value)
        data.setdefault("context", context)
        known = {k: data.pop(k) for k in list(data) if k in cls.__dataclass_fields__}
        if data:
            known.setdefault("extra", {}).update(data)
        return cls(**known)
