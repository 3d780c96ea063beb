"""Plain text bodies and header-only States."""

from typing import TYPE_CHECKING

import httpx

from ..links import Link, parse_header_links
from .base import State, StateFactory

if TYPE_CHECKING:
    from ..client import ClientInstance


class TextStateFactory(StateFactory):
    """Decodes the body with the response charset into a ``str``."""

    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        await response.aread()
        return State(
            client=client,
            uri=uri,
            data=response.text,
            headers=response.headers,
            links=parse_header_links(uri, response.headers),
            current_link=link,
        )


def build_head_state(client: "ClientInstance", link: Link, response: httpx.Response) -> State:
    """Build a partial State from the headers of a HEAD response. It has no data."""
    uri = link.resolve()
    return State(
        client=client,
        uri=uri,
        headers=response.headers,
        links=parse_header_links(uri, response.headers),
        is_partial=True,
        current_link=link,
    )
