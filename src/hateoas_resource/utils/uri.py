"""URI resolution, query encoding and link template expansion."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from uritemplate import URITemplate

if TYPE_CHECKING:
    from ..links.link import Link


def resolve(base: "str | Link", relative: str | None = None) -> str:
    """
    Resolve a relative reference against a base URI.

    Both parts may be relative; a relative base yields a relative result.

    Args:
        base: Base URI, or a Link whose context and href are used.
        relative: Reference to resolve. Required when base is a string.

    Returns:
        The resolved URI.
    """
    if not isinstance(base, str):
        return urljoin(base.context or "", base.href)
    if relative is None:
        return base
    return urljoin(base, relative)


def origin(uri: str) -> str:
    """Return the ``scheme://host[:port]`` part of an absolute URI."""
    parts = urlsplit(uri)
    return f"{parts.scheme}://{parts.netloc}"


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_query_value(item) for item in value]
    return value


def form_encode(data: Mapping[str, Any]) -> str:
    """
    Encode a mapping as ``application/x-www-form-urlencoded``.

    ``None`` values are dropped, booleans become ``true``/``false`` and
    sequences repeat the key.
    """
    return urlencode(
        {key: _query_value(value) for key, value in data.items() if value is not None},
        doseq=True,
    )


def merge_query(uri: str, params: Mapping[str, Any]) -> str:
    """
    Merge parameters into the query string of a URI.

    Existing parameters with the same name are replaced; a ``None`` value
    removes the parameter.
    """
    parts = urlsplit(uri)
    query: dict[str, Any] = dict(parse_qsl(parts.query, keep_blank_values=True))
    for key, value in params.items():
        if value is None:
            query.pop(key, None)
        else:
            query[key] = value
    return urlunsplit((parts.scheme, parts.netloc, parts.path, form_encode(query), parts.fragment))


def expand(link: "Link", variables: Mapping[str, Any] | None = None) -> str:
    """
    Expand a link into an absolute URI.

    Templated links are expanded as RFC 6570 URI templates. Plain links get
    the variables merged into their query string instead.

    Args:
        link: Link to expand.
        variables: Template variables or query parameters.

    Returns:
        The expanded URI resolved against the link context.
    """
    if link.templated:
        href = URITemplate(link.href).expand(dict(variables or {}))
    elif variables:
        href = merge_query(link.href, variables)
    else:
        href = link.href
    return resolve(link.context or "", href)
