"""Accept header negotiation."""

from typing import TYPE_CHECKING

import httpx

from ..http.fetcher import FetchMiddleware, NextHandler

if TYPE_CHECKING:
    from ..client import ClientInstance


def build_accept_header(priorities: dict[str, float]) -> str:
    """Render content types as an Accept header, highest q first."""
    ordered = sorted(priorities.items(), key=lambda item: item[1], reverse=True)
    return ", ".join(f"{content_type};q={q:g}" for content_type, q in ordered)


def accept_middleware(client: "ClientInstance") -> FetchMiddleware:
    """
    Build a middleware that advertises every parsable content type.

    Requests that already carry an Accept header are left alone.
    """

    async def middleware(request: httpx.Request, call_next: NextHandler) -> httpx.Response:
        if "Accept" not in request.headers:
            request.headers["Accept"] = build_accept_header(client.content_type_priorities())
        return await call_next(request)

    return middleware
