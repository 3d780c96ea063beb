"""A single URI on the server, with request deduplication and cache access."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from ..links import Link
from ..state.base import State
from ..utils.exceptions import FollowError
from ..utils.uri import expand, resolve
from .base import BaseResource
from .options import RequestOptions, request_hash

if TYPE_CHECKING:
    from ..client import ClientInstance
    from .relation import ResourceRelation

logger = structlog.get_logger(__name__)

EVENTS = ("update", "stale", "delete")

Listener = Callable[..., Any]


class Resource(BaseResource):
    """
    Client-side handle for one absolute URI.

    Resources are created by ClientInstance.go() and are unique per URI
    within a client. They read through the client cache, share concurrent
    identical GET requests, and notify listeners when the cached State of
    their URI changes.

    Events:
        update: A new State was cached (listener receives the State).
        stale: The cached State was invalidated.
        delete: The resource was deleted on the server.
    """

    def __init__(self, client: "ClientInstance", link: Link) -> None:
        super().__init__(client)
        self.link = link
        self.uri = link.resolve()
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {e: [] for e in EVENTS}
        self._active_requests: dict[str, asyncio.Task[Any]] = {}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        self._listeners_for(event).append((listener, False))

    def once(self, event: str, listener: Listener) -> None:
        self._listeners_for(event).append((listener, True))

    def off(self, event: str, listener: Listener) -> None:
        self._listeners[event] = [
            (fn, once) for fn, once in self._listeners_for(event) if fn is not listener
        ]

    def emit(self, event: str, *args: Any) -> None:
        """Call the listeners of an event. Coroutine listeners are scheduled."""
        listeners = self._listeners_for(event)
        self._listeners[event] = [(fn, once) for fn, once in listeners if not once]
        for listener, _ in listeners:
            result = listener(*args)
            if inspect.isawaitable(result):
                asyncio.ensure_future(result)

    def _listeners_for(self, event: str) -> list[tuple[Listener, bool]]:
        if event not in self._listeners:
            raise ValueError(f"Unknown resource event: {event}")
        return self._listeners[event]

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def follow(self, rel: str, variables: Mapping[str, Any] | None = None) -> "ResourceRelation":
        """Start a lazy navigation chain from this resource."""
        from .relation import ResourceRelation

        relation = ResourceRelation(self.client, self, [rel])
        if variables:
            relation.with_template_parameters(variables)
        return relation

    async def follow_all(self, rel: str) -> list["Resource"]:
        """Return a Resource for every link of a relation in the current State."""
        state = await self.get()
        return state.follow_all(rel)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _for_staging(self) -> "ResourceRelation":
        # Resources are shared per URI; staged options live on a private chain.
        from .relation import ResourceRelation

        return ResourceRelation(self.client, self, [])

    async def request(self) -> State | None:
        """Return the State of this resource. Builders stage anything else."""
        return await self.send(RequestOptions())

    async def send(self, options: RequestOptions) -> State | None:
        """Execute a request described by staged options."""
        if options.query:
            staged = options.copy()
            staged.query = None
            return await self.client.go(expand(self.link, options.query)).send(staged)

        method = (options.method or "GET").upper()
        if method == "GET":
            return await self.get(options)
        if method == "POST":
            return await self.post(options)
        if method == "PUT":
            await self.put(options)
            return None
        if method == "PATCH":
            return await self.patch(options)
        if method == "DELETE":
            await self.delete(options)
            return None
        response = await self.fetch_or_throw(method=method, options=options)
        return await self.client.get_state_for_response(self.link, response)

    async def get(self, options: RequestOptions | None = None) -> State:
        """
        Return the State of this resource.

        A complete cached State is returned without I/O unless extra headers
        were given. Otherwise the resource is fetched; concurrent identical
        fetches share one request.
        """
        headers = dict(options.headers) if options else {}
        if not headers:
            cached = self.client.cache.get(self.uri)
            if cached is not None and not cached.is_partial:
                return cached
        return await self._deduplicated_get(headers)

    async def head(self, options: RequestOptions | None = None) -> State:
        """
        Return the complete cached State, or a header-only State from HEAD.

        The header-only State is partial and is not cached.
        """
        cached = self.client.cache.get(self.uri)
        if cached is not None and not cached.is_partial:
            return cached
        response = await self.fetch_or_throw(method="HEAD", options=options)
        await response.aclose()
        return self.client.get_head_state_for_response(self.link, response)

    async def refresh(self, options: RequestOptions | None = None) -> State:
        """Fetch this resource from the server, bypassing the cache."""
        headers = dict(options.headers) if options else {}
        return await self._deduplicated_get(headers)

    async def _deduplicated_get(self, headers: dict[str, str]) -> State:
        return await self._deduplicate(
            request_hash(self.uri, "GET", headers), lambda: self._get_state(headers)
        )

    async def _deduplicate(self, key: str, factory: Callable[[], Awaitable[State]]) -> State:
        task = self._active_requests.get(key)
        if task is None:

            async def run() -> State:
                try:
                    return await factory()
                finally:
                    self._active_requests.pop(key, None)

            task = asyncio.ensure_future(run())
            self._active_requests[key] = task
        else:
            logger.debug("Joining in-flight request", uri=self.uri)
        return await asyncio.shield(task)

    async def _get_state(self, headers: Mapping[str, str]) -> State:
        response = await self.fetch_or_throw(method="GET", headers=headers)
        state = await self.client.get_state_for_response(self.link, response)
        self.update_cache(state)
        return state

    async def put(self, data: RequestOptions | State) -> None:
        """
        Replace the resource on the server.

        A State is sent as its serialized body and cached on success.
        """
        if isinstance(data, State):
            response = await self.fetch_or_throw(
                method="PUT", headers=data.content_headers(), content=data.serialize_body()
            )
            await response.aclose()
            self.update_cache(data)
            return
        response = await self.fetch_or_throw(method="PUT", options=data)
        await response.aclose()

    async def patch(self, options: RequestOptions) -> State:
        response = await self.fetch_or_throw(method="PATCH", options=options)
        return await self.client.get_state_for_response(self.link, response)

    async def post(self, options: RequestOptions, dedup: bool = False) -> State:
        """
        POST to this resource and return the parsed response.

        Args:
            options: Body and headers.
            dedup: Share the request with identical in-flight POSTs.
        """
        if not dedup:
            return await self._post_state(options)
        body, headers = options.build_body()
        key = request_hash(self.uri, "POST", headers, body)
        return await self._deduplicate(key, lambda: self._post_state(options))

    async def _post_state(self, options: RequestOptions) -> State:
        response = await self.fetch_or_throw(method="POST", options=options)
        return await self.client.get_state_for_response(self.link, response)

    async def post_follow(self, options: RequestOptions) -> "Resource":
        """
        POST and return the resource the server points to.

        Returns:
            The Location target for 201, this resource for 204 and 205.

        Raises:
            FollowError: For any other success status, or 201 without Location.
        """
        response = await self.fetch_or_throw(method="POST", options=options)
        await response.aclose()
        status = response.status_code
        if status == 201:
            location = response.headers.get("Location")
            if not location:
                raise FollowError(status, "Server responded with 201 but no Location header")
            return self.client.go(resolve(self.uri, location))
        if status in (204, 205):
            return self
        raise FollowError(status)

    async def delete(self, options: RequestOptions | None = None) -> None:
        response = await self.fetch_or_throw(method="DELETE", options=options)
        await response.aclose()

    async def fetch(
        self,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        content: bytes | str | None = None,
        options: RequestOptions | None = None,
    ) -> httpx.Response:
        """Send a raw request to this resource's URI through the middlewares."""
        method, headers, content = self._request_parts(method, headers, content, options)
        return await self.client.fetcher.fetch(
            self.uri, method=method, headers=headers, content=content
        )

    async def fetch_or_throw(
        self,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        content: bytes | str | None = None,
        options: RequestOptions | None = None,
    ) -> httpx.Response:
        """Like fetch(), but raise HttpError or Problem for non-2xx responses."""
        method, headers, content = self._request_parts(method, headers, content, options)
        return await self.client.fetcher.fetch_or_throw(
            self.uri, method=method, headers=headers, content=content
        )

    @staticmethod
    def _request_parts(
        method: str,
        headers: Mapping[str, str] | None,
        content: bytes | str | None,
        options: RequestOptions | None,
    ) -> tuple[str, dict[str, str], bytes | str | None]:
        if options is None:
            return method, dict(headers or {}), content
        body, option_headers = options.build_body()
        return method, {**option_headers, **(headers or {})}, body if content is None else content

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def update_cache(self, state: State) -> None:
        """
        Cache a State for this resource and notify listeners.

        Raises:
            ValueError: If the State belongs to a different URI.
        """
        if state.uri != self.uri:
            raise ValueError(
                f"State URI {state.uri} does not match resource URI {self.uri}"
            )
        self.client.cache_state(state)

    def clear_cache(self) -> None:
        self.client.cache.delete(self.uri)

    def get_cache(self) -> State | None:
        return self.client.cache.get(self.uri)

    def __repr__(self) -> str:
        return f"Resource(uri={self.uri!r})"
