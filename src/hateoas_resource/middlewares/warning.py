"""Deprecation warnings reported by servers."""

import httpx
import structlog

from ..http.fetcher import FetchMiddleware, NextHandler
from ..links import parse_link_header

logger = structlog.get_logger(__name__)


def warning_middleware() -> FetchMiddleware:
    """
    Build a middleware that logs a warning for deprecated resources.

    A response with a ``Deprecation`` header is logged together with its
    ``Sunset`` date and any ``Link: rel=deprecation`` documentation URIs.
    """

    async def middleware(request: httpx.Request, call_next: NextHandler) -> httpx.Response:
        response = await call_next(request)
        deprecation = response.headers.get("Deprecation")
        if deprecation:
            info = [
                link.resolve()
                for header in response.headers.get_list("Link")
                for link in parse_link_header(header, str(request.url))
                if link.rel == "deprecation"
            ]
            logger.warning(
                "Resource is deprecated",
                url=str(request.url),
                deprecation=deprecation,
                sunset=response.headers.get("Sunset"),
                info=info or None,
            )
        return response

    return middleware
