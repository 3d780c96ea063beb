"""Collection+JSON (``application/vnd.collection+json``) parsing."""

from typing import TYPE_CHECKING, Any

import httpx

from ..constants import COLLECTION_JSON, FORM_URLENCODED, ITEM_REL
from ..links import Link, Links, parse_header_links
from ..models.form import Field, Form, TextField
from ..utils.uri import resolve
from .base import State, StateFactory

if TYPE_CHECKING:
    from ..client import ClientInstance

ENVELOPE_KEYS = ("links", "items", "queries", "template")


def data_to_object(data: list[dict[str, Any]] | None) -> dict[str, Any]:
    return {entry["name"]: entry.get("value") for entry in data or [] if "name" in entry}


def data_to_fields(data: list[dict[str, Any]] | None) -> list[Field]:
    return [
        TextField(
            name=entry["name"],
            label=entry.get("prompt"),
            value=entry["value"] if isinstance(entry.get("value"), str) else None,
        )
        for entry in data or []
        if "name" in entry
    ]


def _parse_links(context: str, raw_links: list[dict[str, Any]] | None) -> list[Link]:
    return [
        Link(
            rel=raw["rel"],
            href=raw["href"],
            context=context,
            title=raw.get("prompt"),
            name=raw.get("name"),
        )
        for raw in raw_links or []
        if raw.get("rel") and raw.get("href")
    ]


class CollectionJsonStateFactory(StateFactory):
    """
    Builds States from Collection+JSON documents.

    Items become ``item`` links plus partial member States built from their
    name/value pairs. Queries become GET forms and the template a POST form
    named ``create``.
    """

    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        await response.aread()
        body = response.json()
        collection: dict[str, Any] = (body.get("collection") if isinstance(body, dict) else None) or {}
        links = parse_header_links(uri, response.headers)
        links.add(_parse_links(uri, collection.get("links")))

        items: list[State] = []
        for item in collection.get("items") or []:
            if not item.get("href"):
                continue
            links.add(Link(rel=ITEM_REL, href=item["href"], context=uri))
            item_uri = resolve(uri, item["href"])
            item_links = Links(item_uri)
            item_links.add("self", item_uri)
            item_links.add(_parse_links(item_uri, item.get("links")))
            items.append(
                State(
                    client=client,
                    uri=item_uri,
                    data=data_to_object(item.get("data")),
                    headers={"Content-Type": response.headers.get("Content-Type", COLLECTION_JSON)},
                    links=item_links,
                    is_partial=True,
                    current_link=Link(rel=ITEM_REL, href=item["href"], context=uri),
                )
            )

        forms = [
            Form(
                uri=resolve(uri, query["href"]),
                name=query.get("rel", ""),
                title=query.get("prompt"),
                method="GET",
                content_type=FORM_URLENCODED,
                fields=data_to_fields(query.get("data")),
            )
            for query in collection.get("queries") or []
            if query.get("href")
        ]
        template = collection.get("template")
        if template:
            forms.append(
                Form(
                    uri=resolve(uri, collection.get("href") or ""),
                    name="create",
                    method="POST",
                    content_type=FORM_URLENCODED,
                    fields=data_to_fields(template.get("data")),
                )
            )

        return State(
            client=client,
            uri=uri,
            data={k: v for k, v in collection.items() if k not in ENVELOPE_KEYS},
            headers=response.headers,
            links=links,
            forms=forms,
            collection=items,
            current_link=link,
        )
