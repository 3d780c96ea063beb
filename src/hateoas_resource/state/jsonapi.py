"""JSON:API (``application/vnd.api+json``) parsing."""

from typing import TYPE_CHECKING, Any

import httpx

from ..constants import ITEM_REL
from ..links import Link, Links, parse_header_links
from .base import State, StateFactory

if TYPE_CHECKING:
    from ..client import ClientInstance


def _to_href(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("href"), str):
        return value["href"]
    return None


def parse_jsonapi_links(context: str, raw_links: dict[str, Any] | None) -> list[Link]:
    """Parse a links object. Values may be strings, ``{href}`` objects or arrays."""
    links: list[Link] = []
    for rel, value in (raw_links or {}).items():
        for entry in value if isinstance(value, list) else [value]:
            href = _to_href(entry)
            if href:
                links.append(Link(rel=rel, href=href, context=context))
    return links


class JsonApiStateFactory(StateFactory):
    """
    Builds States from JSON:API documents.

    Every member of a ``data`` array with a ``links.self`` adds an ``item``
    link and a partial member State to the collection.
    """

    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        await response.aread()
        body = response.json()
        links = parse_header_links(uri, response.headers)
        if not isinstance(body, dict):
            body = {}
        links.add(parse_jsonapi_links(uri, body.get("links")))

        collection: list[State] = []
        members = body.get("data")
        for member in members if isinstance(members, list) else []:
            if not isinstance(member, dict):
                continue
            self_links = parse_jsonapi_links(uri, {"self": (member.get("links") or {}).get("self")})
            for self_link in self_links:
                links.add(Link(rel=ITEM_REL, href=self_link.href, context=uri))
            if not self_links:
                continue
            member_uri = self_links[0].resolve()
            member_links = Links(member_uri)
            member_links.add(parse_jsonapi_links(member_uri, member.get("links")))
            collection.append(
                State(
                    client=client,
                    uri=member_uri,
                    data=member,
                    headers={"Content-Type": response.headers.get("Content-Type", "")},
                    links=member_links,
                    is_partial=True,
                    current_link=Link(rel=ITEM_REL, href=member_uri, context=uri),
                )
            )

        return State(
            client=client,
            uri=uri,
            data=body,
            headers=response.headers,
            links=links,
            collection=collection,
            current_link=link,
        )
