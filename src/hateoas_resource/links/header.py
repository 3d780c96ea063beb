"""RFC 8288 ``Link`` header parsing."""

import re

import httpx

from .link import Link
from .links import Links

_PARAM_RE = re.compile(r'\s*;\s*([^\s=;,]+)\s*(?:=\s*(?:"((?:[^"\\]|\\.)*)"|([^;,\s]*)))?')


def _split_values(header: str) -> list[str]:
    """Split a Link header on commas that are outside <...> and quotes."""
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    in_uri = False
    escaped = False
    for char in header:
        if escaped:
            escaped = False
        elif char == "\\" and in_quotes:
            escaped = True
        elif char == '"' and not in_uri:
            in_quotes = not in_quotes
        elif char == "<" and not in_quotes:
            in_uri = True
        elif char == ">" and not in_quotes:
            in_uri = False
        elif char == "," and not in_quotes and not in_uri:
            values.append("".join(current))
            current = []
            continue
        current.append(char)
    values.append("".join(current))
    return [value.strip() for value in values if value.strip()]


def parse_link_header(header: str | None, context: str = "") -> list[Link]:
    """
    Parse a Link header value into Link records.

    A link with several space-separated relations yields one Link per rel.
    Malformed entries are skipped.

    Args:
        header: Raw header value.
        context: URI the links are relative to.

    Returns:
        Parsed links in header order.
    """
    if not header:
        return []

    links: list[Link] = []
    for value in _split_values(header):
        if not value.startswith("<") or ">" not in value:
            continue
        end = value.index(">")
        href = value[1:end].strip()
        params: dict[str, str] = {}
        for match in _PARAM_RE.finditer(value[end + 1 :]):
            name = match.group(1).lower()
            raw = match.group(2) if match.group(2) is not None else (match.group(3) or "")
            # First occurrence wins
            params.setdefault(name, re.sub(r"\\(.)", r"\1", raw))

        rels = params.pop("rel", "").split()
        for rel in rels:
            links.append(
                Link(
                    rel=rel,
                    href=href,
                    context=context,
                    title=params.get("title"),
                    type=params.get("type"),
                    hreflang=params.get("hreflang"),
                    extra={k: v for k, v in params.items() if k not in ("title", "type", "hreflang")},
                )
            )
    return links


def parse_header_links(context: str, headers: httpx.Headers) -> Links:
    """Collect every Link header of a response into a Links set."""
    links = Links(context)
    for header in headers.get_list("link"):
        links.add(parse_link_header(header, context))
    return links
