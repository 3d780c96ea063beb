"""Authorization header middlewares."""

import base64

import httpx

from ..http.fetcher import FetchMiddleware, NextHandler


def basic_auth(username: str, password: str) -> FetchMiddleware:
    """Send HTTP Basic credentials with every request."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")

    async def middleware(request: httpx.Request, call_next: NextHandler) -> httpx.Response:
        request.headers["Authorization"] = f"Basic {token}"
        return await call_next(request)

    return middleware


def bearer_auth(token: str) -> FetchMiddleware:
    """Send a bearer token with every request."""

    async def middleware(request: httpx.Request, call_next: NextHandler) -> httpx.Response:
        request.headers["Authorization"] = f"Bearer {token}"
        return await call_next(request)

    return middleware
