"""HAL and HAL-FORMS parsing.

Handles ``application/hal+json``, ``application/prs.hal-forms+json``, plain
``application/json`` and any unregistered ``application/*+json`` type.

- ``_links`` become Links; each relation may hold one link or an array
- ``_templates`` become Forms (HAL-FORMS); the target defaults to self
- ``_embedded`` documents become child States; arrays become partial members
- the embedded array under the fetching relation becomes the collection
"""

import json
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from ..constants import DEFAULT_COLLECTION_REL
from ..links import Link, Links, parse_header_links
from ..models.form import Form
from ..models.wire import HalFormsTemplate
from ..utils.uri import resolve
from .base import Embedded, State, StateFactory, select_collection

if TYPE_CHECKING:
    from ..client import ClientInstance

logger = structlog.get_logger(__name__)

HAL_ENVELOPE_KEYS = ("_links", "_embedded", "_templates")


def parse_hal_links(context: str, raw_links: dict[str, Any] | None) -> list[Link]:
    """
    Parse a HAL ``_links`` object.

    Args:
        context: URI the hrefs are relative to.
        raw_links: The ``_links`` value.

    Returns:
        One Link per link object. ``type`` defaults to GET.
    """
    result: list[Link] = []
    for rel, value in (raw_links or {}).items():
        entries = value if isinstance(value, list) else [value]
        for entry in entries:
            if not isinstance(entry, dict) or "href" not in entry:
                continue
            result.append(
                Link(
                    rel=rel,
                    href=entry["href"],
                    context=context,
                    title=entry.get("title"),
                    name=entry.get("name"),
                    type=entry.get("type", "GET"),
                    templated=bool(entry.get("templated", False)),
                    hreflang=entry.get("hreflang"),
                )
            )
    return result


def parse_hal_templates(
    context: str, links: Links, raw_templates: dict[str, Any] | None
) -> list[Form]:
    """
    Parse HAL-FORMS ``_templates`` into Forms.

    The form URI is the template ``target`` or the self link, resolved
    against ``context``.
    """
    forms: list[Form] = []
    self_link = links.get("self")
    default_target = self_link.href if self_link else context
    for name, raw in (raw_templates or {}).items():
        template = HalFormsTemplate.model_validate(raw)
        forms.append(
            Form(
                uri=resolve(context, template.target or default_target),
                name=name,
                title=template.title,
                method=template.method.upper(),
                content_type=template.content_type,
                fields=[prop.to_field() for prop in template.properties],
            )
        )
    return forms


def split_hal_document(document: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split a HAL document into its data and its envelope."""
    data = {k: v for k, v in document.items() if k not in HAL_ENVELOPE_KEYS}
    envelope = {k: document[k] for k in HAL_ENVELOPE_KEYS if k in document}
    return data, envelope


class HalState(State):
    """State parsed from a HAL document."""

    def serialize_body(self) -> bytes | str:
        if not isinstance(self.data, dict):
            return super().serialize_body()
        return json.dumps({"_links": self.serialize_links(), **self.data})

    def serialize_links(self) -> dict[str, Any]:
        """Rebuild a HAL ``_links`` object from the State links."""
        result: dict[str, Any] = {"self": {"href": self.uri}}
        for link in self.links.get_all():
            if link.rel == "self":
                continue
            attributes = link.to_hal()
            existing = result.get(link.rel)
            if existing is None:
                result[link.rel] = attributes
            elif isinstance(existing, list):
                existing.append(attributes)
            else:
                result[link.rel] = [existing, attributes]
        return result


class HalStateFactory(StateFactory):
    """Builds HalState objects from HAL responses."""

    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        await response.aread()
        body = response.json() if response.content else {}
        state = build_hal_state(
            client,
            uri,
            body,
            rel=link.rel or DEFAULT_COLLECTION_REL,
            header_links=parse_header_links(uri, response.headers),
            headers=response.headers,
            current_link=link,
        )
        logger.debug(
            "Parsed HAL document",
            uri=uri,
            links=len(state.links),
            forms=len(state.forms),
            collection=len(state.collection),
        )
        return state


def build_hal_state(
    client: "ClientInstance",
    uri: str,
    document: Any,
    *,
    rel: str = DEFAULT_COLLECTION_REL,
    header_links: Links | None = None,
    headers: httpx.Headers | None = None,
    is_partial: bool = False,
    current_link: Link | None = None,
) -> HalState:
    """
    Build a HalState from a decoded HAL document.

    Args:
        client: Owning client.
        uri: Absolute URI of the document.
        document: Decoded JSON body.
        rel: Relation whose embedded array becomes the collection.
        header_links: Links parsed from the Link header.
        headers: Response headers.
        is_partial: Whether the document is an embedded summary.
        current_link: Link the document was fetched through.
    """
    links = Links(uri)
    if header_links is not None:
        links.add(header_links.get_all())

    if not isinstance(document, dict):
        return HalState(
            client=client,
            uri=uri,
            data=document,
            headers=headers,
            links=links,
            is_partial=is_partial,
            current_link=current_link,
        )

    data, envelope = split_hal_document(document)
    links.add(parse_hal_links(uri, envelope.get("_links")))
    embedded = _parse_embedded(client, uri, envelope.get("_embedded"))

    # Embedded documents with a self link stand in for a missing relation link
    for embedded_rel, value in embedded.items():
        if links.has(embedded_rel):
            continue
        members = value if isinstance(value, list) else [value]
        for member in members:
            self_link = member.get_link("self")
            if self_link is not None:
                links.add(Link(rel=embedded_rel, href=self_link.resolve(), context=uri))

    return HalState(
        client=client,
        uri=uri,
        data=data,
        headers=headers,
        links=links,
        forms=parse_hal_templates(uri, links, envelope.get("_templates")),
        collection=select_collection(embedded, rel),
        embedded=embedded,
        is_partial=is_partial,
        current_link=current_link,
    )


def _parse_embedded(client: "ClientInstance", context: str, raw: Any) -> Embedded:
    result: Embedded = {}
    if not isinstance(raw, dict):
        return result
    for rel, value in raw.items():
        if isinstance(value, list):
            result[rel] = [
                _embedded_state(client, context, rel, item, is_partial=True)
                for item in value
                if isinstance(item, dict)
            ]
        elif isinstance(value, dict):
            result[rel] = _embedded_state(client, context, rel, value, is_partial=False)
    return result


def _embedded_state(
    client: "ClientInstance",
    context: str,
    rel: str,
    document: dict[str, Any],
    *,
    is_partial: bool,
) -> HalState:
    self_href = None
    raw_links = document.get("_links")
    if isinstance(raw_links, dict):
        raw_self = raw_links.get("self")
        if isinstance(raw_self, list):
            raw_self = raw_self[0] if raw_self else None
        if isinstance(raw_self, dict):
            self_href = raw_self.get("href")
    uri = resolve(context, self_href) if self_href else context
    return build_hal_state(
        client,
        uri,
        document,
        rel=rel,
        is_partial=is_partial,
        current_link=Link(rel=rel, href=uri, context=context),
    )
