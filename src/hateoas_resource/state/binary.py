"""Opaque payloads: binary bodies and event streams.

The body is passed through untouched as ``data``; links come from the Link
header only.
"""

from typing import TYPE_CHECKING

import httpx

from ..links import Link, parse_header_links
from .base import State, StateFactory

if TYPE_CHECKING:
    from ..client import ClientInstance


class BinaryStateFactory(StateFactory):
    """Reads the whole body into ``data`` as bytes."""

    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        content = await response.aread()
        return State(
            client=client,
            uri=uri,
            data=content,
            headers=response.headers,
            links=parse_header_links(uri, response.headers),
            current_link=link,
        )


class StreamStateFactory(StateFactory):
    """
    Exposes the body as an async byte iterator.

    The response stays open until the iterator is exhausted; iterate it once.
    """

    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        return State(
            client=client,
            uri=uri,
            data=response.aiter_bytes(),
            headers=response.headers,
            links=parse_header_links(uri, response.headers),
            current_link=link,
        )
