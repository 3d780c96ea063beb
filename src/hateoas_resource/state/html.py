"""Best-effort HTML (``text/html``) parsing.

Links come from ``<a>`` and ``<link>`` tags carrying both ``href`` and
``rel``; forms come from ``<form>`` tags. Fields are not extracted.
"""

import re
from typing import TYPE_CHECKING

import httpx

from ..constants import FORM_URLENCODED
from ..links import Link, parse_header_links
from ..models.form import Form
from ..utils.uri import resolve
from .base import State, StateFactory

if TYPE_CHECKING:
    from ..client import ClientInstance

_LINK_TAG_RE = re.compile(r"<(?:a|link)\b[^>]*>", re.IGNORECASE)
_FORM_TAG_RE = re.compile(r"<form\b[^>]*>", re.IGNORECASE)


def read_attribute(tag: str, name: str) -> str | None:
    match = re.search(
        rf"""\b{name}\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", tag, re.IGNORECASE
    )
    if match is None:
        return None
    return next(group for group in match.groups() if group is not None)


def parse_html_links(context: str, body: str) -> list[Link]:
    links = []
    for tag in _LINK_TAG_RE.findall(body):
        href = read_attribute(tag, "href")
        rel = read_attribute(tag, "rel")
        if not href or not rel:
            continue
        for relation in rel.split():
            links.append(
                Link(
                    rel=relation,
                    href=href,
                    context=context,
                    title=read_attribute(tag, "title"),
                    type=read_attribute(tag, "type"),
                )
            )
    return links


def parse_html_forms(context: str, body: str) -> list[Form]:
    forms = []
    for tag in _FORM_TAG_RE.findall(body):
        name = read_attribute(tag, "rel") or read_attribute(tag, "id") or read_attribute(tag, "name")
        forms.append(
            Form(
                uri=resolve(context, read_attribute(tag, "action") or ""),
                name=name or "",
                method=(read_attribute(tag, "method") or "GET").upper(),
                content_type=read_attribute(tag, "enctype") or FORM_URLENCODED,
            )
        )
    return forms


class HtmlStateFactory(StateFactory):
    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        uri = link.resolve()
        await response.aread()
        body = response.text
        links = parse_header_links(uri, response.headers)
        links.add(parse_html_links(uri, body))
        return State(
            client=client,
            uri=uri,
            data=body,
            headers=response.headers,
            links=links,
            forms=parse_html_forms(uri, body),
            current_link=link,
        )
