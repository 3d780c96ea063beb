"""
Client instance for hypermedia APIs.

Owns the Resource identity map, the State cache and its dependency graph,
the Fetcher with its middleware chain, and content negotiation between
response media types and State factories.
"""

import re
from typing import Any

import httpx
import structlog

from .action.json_schema_plugin import JsonSchemaPlugin
from .action.pydantic_plugin import PydanticSchemaPlugin
from .action.schema import NoopSchemaPlugin, SchemaPlugin
from .cache.dependency import CacheDependencyGraph
from .cache.store import StateCache, create_cache
from .config import ClientConfig, SchemaPluginName
from .constants import (
    COLLECTION_JSON,
    EVENT_STREAM,
    HAL_FORMS_JSON,
    HAL_JSON,
    HTML,
    INVALIDATED_BY_REL,
    JSON,
    JSON_API,
    JSON_SUFFIX_PATTERN,
    SIREN_JSON,
    TEXT_PLAIN,
)
from .http.fetcher import Fetcher, FetchMiddleware
from .links import Link
from .middlewares import accept_middleware, cache_middleware, warning_middleware
from .observability.metrics import get_global_collector
from .resource.resource import Resource
from .state import (
    BinaryStateFactory,
    CollectionJsonStateFactory,
    HalStateFactory,
    HtmlStateFactory,
    JsonApiStateFactory,
    SirenStateFactory,
    State,
    StateFactory,
    StreamStateFactory,
    TextStateFactory,
    build_head_state,
)
from .utils.uri import resolve

logger = structlog.get_logger(__name__)

_JSON_SUFFIX = re.compile(JSON_SUFFIX_PATTERN)

SCHEMA_PLUGINS: dict[SchemaPluginName, type[SchemaPlugin]] = {
    SchemaPluginName.NOOP: NoopSchemaPlugin,
    SchemaPluginName.PYDANTIC: PydanticSchemaPlugin,
    SchemaPluginName.JSONSCHEMA: JsonSchemaPlugin,
}


class ClientInstance:
    """
    Entry point for navigating a hypermedia API.

    Features:
    - One Resource per absolute URI for the lifetime of the client
    - Content negotiation from Content-Type to State factory, weighted
      by q-values that also build the Accept header
    - Recursive caching of embedded and collection States
    - Cache invalidation that follows ``inv-by`` dependency edges

    Example:
        async with ClientInstance(base_url="https://api.example.com/") as client:
            user = await client.go("/users/1").get()
            orders = await user.follow("orders").request()
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        base_url: str | None = None,
        fetcher: Fetcher | None = None,
        cache: StateCache | None = None,
        schema_plugin: SchemaPlugin | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Client configuration. Defaults apply when omitted.
            base_url: Bookmark URI; overrides config.base_url.
            fetcher: Fetcher to send requests with.
            cache: State cache; built from config.cache when omitted.
            schema_plugin: Validator factory for Action.form_schema.
            http_client: httpx client handed to the default Fetcher.
        """
        self.config = config or ClientConfig()
        self.bookmark_uri = base_url if base_url is not None else self.config.base_url
        self.fetcher = fetcher or Fetcher(self.config, http_client)
        self.cache = cache or create_cache(
            self.config.cache.strategy.value, self.config.cache.ttl_seconds
        )
        self.schema_plugin = schema_plugin or SCHEMA_PLUGINS[
            SchemaPluginName(self.config.schema_plugin)
        ]()
        self.dependencies = CacheDependencyGraph()
        self.resources: dict[str, Resource] = {}

        hal = HalStateFactory()
        self.binary_state_factory: StateFactory = BinaryStateFactory()
        self.hal_state_factory: StateFactory = hal
        self.content_type_map: dict[str, tuple[StateFactory, float]] = {
            HAL_FORMS_JSON: (hal, 1.0),
            HAL_JSON: (hal, 0.9),
            JSON: (hal, 0.8),
            TEXT_PLAIN: (TextStateFactory(), 0.5),
            EVENT_STREAM: (StreamStateFactory(), 0.5),
        }
        if self.config.enable_all_formats:
            self.content_type_map.update(
                {
                    SIREN_JSON: (SirenStateFactory(), 0.7),
                    JSON_API: (JsonApiStateFactory(), 0.7),
                    COLLECTION_JSON: (CollectionJsonStateFactory(), 0.7),
                    HTML: (HtmlStateFactory(), 0.6),
                }
            )

        self.use(accept_middleware(self))
        self.use(cache_middleware(self))
        self.use(warning_middleware())

        logger.debug(
            "Client initialized",
            bookmark_uri=self.bookmark_uri,
            formats=sorted(self.content_type_map),
            cache=type(self.cache).__name__,
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def go(self, uri: str | Link | None = None) -> Resource:
        """
        Return the Resource for a URI, creating it on first use.

        Relative URIs resolve against the bookmark URI; a Link without a
        context does too.
        """
        if uri is None:
            link = Link(rel="", href=self.bookmark_uri, context=self.bookmark_uri)
        elif isinstance(uri, Link):
            link = uri if uri.context else Link(
                rel=uri.rel,
                href=uri.href,
                context=self.bookmark_uri,
                title=uri.title,
                name=uri.name,
                type=uri.type,
                templated=uri.templated,
            )
        else:
            link = Link(rel="", href=uri, context=self.bookmark_uri)

        absolute = link.resolve()
        resource = self.resources.get(absolute)
        if resource is None:
            resource = Resource(
                self,
                Link(
                    rel=link.rel,
                    href=absolute,
                    context=absolute,
                    title=link.title,
                    name=link.name,
                    type=link.type,
                ),
            )
            self.resources[absolute] = resource
        return resource

    def use(self, middleware: FetchMiddleware, origin: str = "*") -> None:
        """Register a fetch middleware for the origins matching a pattern."""
        self.fetcher.use(middleware, origin)

    # ------------------------------------------------------------------
    # Content negotiation
    # ------------------------------------------------------------------

    def register_state_factory(
        self, content_type: str, factory: StateFactory, q: float = 1.0
    ) -> None:
        """Parse a media type with a factory, advertised with a q-value."""
        self.content_type_map[content_type.lower()] = (factory, q)

    def content_type_priorities(self) -> dict[str, float]:
        return {ct: q for ct, (_, q) in self.content_type_map.items()}

    def factory_for(self, response: httpx.Response) -> StateFactory:
        """
        Pick the State factory for a response.

        204, missing and unparsable Content-Types give the binary factory.
        Unregistered ``application/*+json`` types are parsed as HAL.
        """
        if response.status_code == 204:
            return self.binary_state_factory
        content_type = response.headers.get("Content-Type", "")
        media_type = content_type.split(";")[0].strip().lower()
        if not media_type:
            return self.binary_state_factory
        if media_type in self.content_type_map:
            return self.content_type_map[media_type][0]
        if _JSON_SUFFIX.match(media_type):
            return self.hal_state_factory
        return self.binary_state_factory

    async def get_state_for_response(self, link: Link, response: httpx.Response) -> State:
        """Convert a response into a State with the negotiated factory."""
        if not link.context:
            link = Link(rel=link.rel, href=link.href, context=self.bookmark_uri)
        factory = self.factory_for(response)
        logger.debug(
            "Parsing response",
            uri=link.resolve(),
            content_type=response.headers.get("Content-Type"),
            factory=type(factory).__name__,
        )
        return await factory.create(self, link, response)

    def get_head_state_for_response(self, link: Link, response: httpx.Response) -> State:
        """Convert a HEAD response into a header-only State."""
        if not link.context:
            link = Link(rel=link.rel, href=link.href, context=self.bookmark_uri)
        return build_head_state(self, link, response)

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _flatten(self, state: State) -> list[State]:
        """List a State and every State it carries, parents before children."""
        result: list[State] = []
        seen: set[str] = set()
        pending = [state]
        while pending:
            current = pending.pop(0)
            if current.uri in seen:
                continue
            seen.add(current.uri)
            result.append(current)
            pending.extend(current.sub_states())
        return result

    def cache_state(self, state: State) -> None:
        """
        Cache a State with everything it embeds.

        Registers ``inv-by`` dependency edges, stores each State, and emits
        ``update`` on the Resources bound to their URIs.
        """
        states = self._flatten(state)
        for item in states:
            for link in item.links.get_many(INVALIDATED_BY_REL):
                self.dependencies.add(link.resolve(), item.uri)
            self.cache.store(item)

        for item in states:
            resource = self.resources.get(item.uri)
            if resource is not None:
                resource.emit("update", item)

        logger.debug("Cached state", uri=state.uri, count=len(states))

    def clear_resource_cache(self, stale_uris: list[str], deleted_uris: list[str]) -> None:
        """
        Evict stale and deleted URIs plus everything connected to them.

        Emits ``delete`` on Resources of deleted URIs and ``stale`` on the
        Resources of every other evicted URI.
        """
        deleted = {resolve(self.bookmark_uri, uri) for uri in deleted_uris}
        stale = {resolve(self.bookmark_uri, uri) for uri in stale_uris}
        evicted = self.dependencies.expand(stale | deleted)

        for uri in sorted(evicted):
            self.cache.delete(uri)
            resource = self.resources.get(uri)
            if resource is not None:
                resource.emit("delete" if uri in deleted else "stale")

        for uri in deleted:
            self.dependencies.remove(uri)

        if evicted:
            logger.info("Cleared cached states", stale=sorted(evicted - deleted), deleted=sorted(deleted))

    def clear_cache(self) -> None:
        """Forget every cached State and dependency edge."""
        self.cache.clear()
        self.dependencies.clear()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP client and release the cache."""
        await self.fetcher.close()
        self.cache.destroy()
        get_global_collector().log_summary()

    aclose = close

    async def __aenter__(self) -> "ClientInstance":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"ClientInstance(bookmark_uri={self.bookmark_uri!r})"


def create_client(
    config: ClientConfig | str | None = None, **kwargs: Any
) -> ClientInstance:
    """
    Build a client from a configuration or a bookmark URI.

    Args:
        config: ClientConfig, or the base URL as a string.
        **kwargs: Passed to ClientInstance.
    """
    if isinstance(config, str):
        return ClientInstance(ClientConfig(base_url=config), **kwargs)
    return ClientInstance(config, **kwargs)
