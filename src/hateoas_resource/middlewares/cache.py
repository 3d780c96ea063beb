"""Cache invalidation driven by unsafe-method exchanges."""

from typing import TYPE_CHECKING

import httpx
import structlog

from ..constants import INVALIDATES_REL, SAFE_METHODS
from ..http.fetcher import FetchMiddleware, NextHandler
from ..links import Link, parse_link_header
from ..utils.uri import resolve

if TYPE_CHECKING:
    from ..client import ClientInstance

logger = structlog.get_logger(__name__)


def opted_out_of_cache(request: httpx.Request) -> bool:
    """Return True when the request carries ``Cache-Control: no-store``."""
    directives = request.headers.get("Cache-Control", "").lower()
    return "no-store" in [d.strip() for d in directives.split(",")]


def cache_middleware(client: "ClientInstance") -> FetchMiddleware:
    """
    Build the middleware that keeps the client cache coherent.

    After a successful unsafe request:
    - a DELETE marks the request URL deleted
    - ``Link: rel=invalidates`` targets and ``Location`` are marked stale
    - the client cache is cleared for those URIs and their dependents
    - a ``Content-Location`` response body is cached as the new State of
      that URI, unless the request carried ``Cache-Control: no-store``
    """

    async def middleware(request: httpx.Request, call_next: NextHandler) -> httpx.Response:
        response = await call_next(request)

        if request.method in SAFE_METHODS or not response.is_success:
            return response

        request_url = str(request.url)
        stale: list[str] = []
        deleted: list[str] = []

        if request.method == "DELETE":
            deleted.append(request_url)

        for header in response.headers.get_list("Link"):
            for link in parse_link_header(header, request_url):
                if link.rel == INVALIDATES_REL:
                    stale.append(link.resolve())

        location = response.headers.get("Location")
        if location:
            stale.append(resolve(request_url, location))

        logger.debug(
            "Unsafe request completed",
            method=request.method,
            url=request_url,
            stale=stale,
            deleted=deleted,
        )
        client.clear_resource_cache(stale, deleted)

        content_location = response.headers.get("Content-Location")
        if content_location and not opted_out_of_cache(request):
            state = await client.get_state_for_response(
                Link(rel="", href=content_location, context=request_url), response
            )
            client.cache_state(state)

        return response

    return middleware
