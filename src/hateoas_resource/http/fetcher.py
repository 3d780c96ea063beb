"""HTTP execution through an origin-scoped middleware chain.

Every request goes through the middlewares registered for its origin, in
registration order, before reaching ``httpx.AsyncClient.send``. Middlewares
may rewrite the request, short-circuit with their own response, or inspect
the response on the way back.

Example:
    async def add_header(request, call_next):
        request.headers["X-Trace"] = "1"
        return await call_next(request)

    fetcher.use(add_header, "https://*.example.com")
"""

import re
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
import structlog

from ..config import ClientConfig
from ..constants import PROBLEM_JSON, USER_AGENT
from ..observability.metrics import get_global_collector
from ..utils.exceptions import HttpError, Problem
from ..utils.uri import origin as uri_origin

logger = structlog.get_logger(__name__)

NextHandler = Callable[[httpx.Request], Awaitable[httpx.Response]]
FetchMiddleware = Callable[[httpx.Request, NextHandler], Awaitable[httpx.Response]]


def compile_origin(pattern: str) -> re.Pattern[str]:
    """
    Compile an origin pattern into a regular expression.

    ``*`` on its own matches every origin. Inside a pattern, ``*`` matches a
    single host label, so ``https://*.example.com`` matches
    ``https://api.example.com`` but not ``https://a.b.example.com``.
    """
    if pattern == "*":
        return re.compile(r"^.*$")
    parts = [re.escape(part) for part in pattern.split("*")]
    return re.compile("^" + r"[^./:]+".join(parts) + "$")


async def problem_from_response(response: httpx.Response) -> HttpError:
    """
    Turn a failed response into the matching exception.

    ``application/problem+json`` bodies become a Problem; anything else,
    including an unreadable problem body, becomes an HttpError. The body is
    read either way so the error carries it.
    """
    await response.aread()
    content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if content_type == PROBLEM_JSON:
        try:
            body = response.json()
        except ValueError:
            logger.warning("Unparsable problem document", url=str(response.request.url))
        else:
            if isinstance(body, dict):
                return Problem(response, body)
    return HttpError(response)


class Fetcher:
    """
    Executes HTTP requests through the middleware chain.

    Features:
    - Lazy httpx.AsyncClient creation with pooled connections
    - Origin-scoped middlewares run in registration order
    - User-Agent added when the request does not carry one
    - fetch_or_throw converts non-2xx responses into typed errors
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize Fetcher.

        Args:
            config: Client configuration. Defaults apply when omitted.
            http_client: Client to send requests with. Created lazily when
                omitted and closed by close().
        """
        self.config = config or ClientConfig()
        self.middlewares: list[tuple[re.Pattern[str], FetchMiddleware]] = []
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self.config.verify_ssl,
                timeout=self.config.timeout,
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_keepalive,
                ),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this Fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def use(self, middleware: FetchMiddleware, origin: str = "*") -> None:
        """Register a middleware for the origins matching a pattern."""
        self.middlewares.append((compile_origin(origin), middleware))

    def get_middlewares_by_origin(self, origin: str) -> list[FetchMiddleware]:
        return [mw for regex, mw in self.middlewares if regex.match(origin)]

    def build_request(
        self,
        resource: str | httpx.Request,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | httpx.Headers | None = None,
        content: bytes | str | None = None,
        extensions: dict[str, Any] | None = None,
    ) -> httpx.Request:
        """Build a request, or return the given one with extra headers applied."""
        if isinstance(resource, httpx.Request):
            if headers:
                resource.headers.update(headers)
            return resource
        return httpx.Request(
            method.upper(),
            resource,
            headers=headers,
            content=content,
            extensions=extensions,
        )

    async def fetch(
        self,
        resource: str | httpx.Request,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | httpx.Headers | None = None,
        content: bytes | str | None = None,
    ) -> httpx.Response:
        """
        Run a request through the middleware chain.

        Args:
            resource: Absolute URL or a prepared request.
            method: HTTP method when a URL is given.
            headers: Extra request headers.
            content: Request body.

        Returns:
            The response. Its body is not read yet.
        """
        request = self.build_request(resource, method=method, headers=headers, content=content)
        chain = self.get_middlewares_by_origin(uri_origin(str(request.url)))
        return await self._invoke(chain, request)

    async def fetch_or_throw(
        self,
        resource: str | httpx.Request,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | httpx.Headers | None = None,
        content: bytes | str | None = None,
    ) -> httpx.Response:
        """
        Like fetch(), but raise for non-2xx responses.

        Raises:
            Problem: For application/problem+json error bodies.
            HttpError: For every other non-2xx response.
        """
        response = await self.fetch(resource, method=method, headers=headers, content=content)
        if response.is_success:
            return response
        raise await problem_from_response(response)

    async def _invoke(
        self, chain: list[FetchMiddleware], request: httpx.Request
    ) -> httpx.Response:
        if not chain:
            return await self._send(request)
        middleware, rest = chain[0], chain[1:]

        async def call_next(next_request: httpx.Request) -> httpx.Response:
            return await self._invoke(rest, next_request)

        return await middleware(request, call_next)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        if self.config.send_user_agent and "User-Agent" not in request.headers:
            request.headers["User-Agent"] = self.config.user_agent or USER_AGENT

        metrics = get_global_collector()
        start = time.perf_counter()
        response = await self.client.send(request, stream=True)
        duration_ms = (time.perf_counter() - start) * 1000

        metrics.count_request(request.method, response.status_code)
        metrics.record_latency(request.method, duration_ms)
        logger.debug(
            "HTTP exchange",
            method=request.method,
            url=str(request.url),
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response
