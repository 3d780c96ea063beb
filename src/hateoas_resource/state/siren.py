"""Siren (``application/vnd.siren+json``) parsing."""

from typing import TYPE_CHECKING, Any

import httpx

from ..constants import ITEM_REL
from ..links import Link, Links, parse_header_links
from ..models.form import Form
from ..models.wire import SirenAction
from ..utils.uri import resolve
from .base import Embedded, State, StateFactory, select_collection

if TYPE_CHECKING:
    from ..client import ClientInstance


def _self_href(entity: dict[str, Any]) -> str | None:
    for link in entity.get("links") or []:
        if "self" in (link.get("rel") or []):
            return link.get("href")
    return None


def parse_siren_links(context: str, entity: dict[str, Any]) -> list[Link]:
    """
    Collect links from an entity.

    Link entities (``href`` + ``rel``) become links directly. Embedded
    sub-entities contribute their self href under each of their rels.
    """
    links: list[Link] = []
    for raw in entity.get("links") or []:
        for rel in raw.get("rel") or []:
            links.append(
                Link(
                    rel=rel,
                    href=raw["href"],
                    context=context,
                    type=raw.get("type"),
                    title=raw.get("title"),
                )
            )

    for nested in entity.get("entities") or []:
        rels = nested.get("rel") or []
        if "href" in nested:
            for rel in rels:
                links.append(
                    Link(
                        rel=rel,
                        href=nested["href"],
                        context=context,
                        type=nested.get("type"),
                        title=nested.get("title"),
                    )
                )
            continue
        self_href = _self_href(nested)
        if not rels or not self_href:
            continue
        for rel in rels:
            links.append(Link(rel=rel, href=self_href, context=context))
    return links


def parse_siren_actions(context: str, entity: dict[str, Any]) -> list[Form]:
    forms = []
    for raw in entity.get("actions") or []:
        action = SirenAction.model_validate(raw)
        forms.append(
            Form(
                uri=resolve(context, action.href),
                name=action.name,
                title=action.title,
                method=action.method.upper(),
                content_type=action.type,
                fields=[field.to_field() for field in action.fields],
            )
        )
    return forms


def build_siren_state(
    client: "ClientInstance",
    uri: str,
    entity: dict[str, Any],
    *,
    header_links: Links | None = None,
    headers: httpx.Headers | None = None,
    current_link: Link | None = None,
    is_partial: bool = False,
) -> State:
    links = Links(uri)
    if header_links is not None:
        links.add(header_links.get_all())
    links.add(parse_siren_links(uri, entity))

    embedded: Embedded = {}
    for nested in entity.get("entities") or []:
        if "href" in nested:
            continue
        self_href = _self_href(nested)
        if not self_href:
            continue
        child_uri = resolve(uri, self_href)
        for rel in nested.get("rel") or []:
            child = build_siren_state(
                client,
                child_uri,
                nested,
                current_link=Link(rel=rel, href=child_uri, context=uri),
                is_partial=True,
            )
            existing = embedded.get(rel)
            if existing is None:
                embedded[rel] = child
            elif isinstance(existing, list):
                existing.append(child)
            else:
                embedded[rel] = [existing, child]

    # A single item entity still counts as a one-member collection
    items = embedded.get(ITEM_REL)
    if isinstance(items, State):
        embedded[ITEM_REL] = [items]

    rel = current_link.rel if current_link and current_link.rel else ITEM_REL
    return State(
        client=client,
        uri=uri,
        data=entity.get("properties") or {},
        headers=headers,
        links=links,
        forms=parse_siren_actions(uri, entity),
        collection=select_collection(embedded, rel),
        embedded=embedded,
        is_partial=is_partial,
        current_link=current_link,
    )


class SirenStateFactory(StateFactory):
    """Builds States from Siren entities."""

    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        await response.aread()
        body = response.json()
        return build_siren_state(
            client,
            uri,
            body if isinstance(body, dict) else {},
            header_links=parse_header_links(uri, response.headers),
            headers=response.headers,
            current_link=link,
        )
