"""Tests for ClientInstance."""

import httpx
import pytest

from hateoas_resource.action.json_schema_plugin import JsonSchemaPlugin
from hateoas_resource.action.schema import NoopSchemaPlugin
from hateoas_resource.cache import NeverCache, ShortCache
from hateoas_resource.client import ClientInstance, create_client
from hateoas_resource.config import CacheConfig, CacheStrategy, ClientConfig, SchemaPluginName
from hateoas_resource.links import Link, Links
from hateoas_resource.state import (
    BinaryStateFactory,
    HalStateFactory,
    SirenStateFactory,
    State,
    StateFactory,
    StreamStateFactory,
    TextStateFactory,
)

BASE_URL = "https://api.example.com/"


class TestConstruction:
    """Test client construction from configuration."""

    @pytest.mark.asyncio
    async def test_defaults(self, client):
        """Test default client settings."""
        assert client.bookmark_uri == BASE_URL
        assert isinstance(client.schema_plugin, NoopSchemaPlugin)
        assert isinstance(client.factory_for(httpx.Response(200, headers={"Content-Type": "text/plain"})), TextStateFactory)

    @pytest.mark.asyncio
    async def test_from_config(self):
        """Test construction from a ClientConfig."""
        config = ClientConfig(
            base_url="https://config.example.com/",
            schema_plugin=SchemaPluginName.JSONSCHEMA,
            cache=CacheConfig(strategy=CacheStrategy.SHORT, ttl_seconds=5),
        )

        async with ClientInstance(config) as instance:
            assert instance.bookmark_uri == "https://config.example.com/"
            assert isinstance(instance.schema_plugin, JsonSchemaPlugin)
            assert isinstance(instance.cache, ShortCache)
            assert instance.cache.timeout == 5

    @pytest.mark.asyncio
    async def test_create_client_from_url(self):
        """Test create_client with a base URL."""
        async with create_client("https://other.example.com/", cache=NeverCache()) as instance:
            assert instance.bookmark_uri == "https://other.example.com/"
            assert isinstance(instance.cache, NeverCache)

    @pytest.mark.asyncio
    async def test_extra_formats_can_be_disabled(self):
        """Test enable_all_formats=False drops the extra formats."""
        async with ClientInstance(ClientConfig(enable_all_formats=False)) as instance:
            assert "application/vnd.siren+json" not in instance.content_type_priorities()
            assert "application/hal+json" in instance.content_type_priorities()


class TestGo:
    """Test ClientInstance.go()."""

    @pytest.mark.asyncio
    async def test_same_uri_same_resource(self, client):
        """Test one Resource per URI."""
        assert client.go("/users/1") is client.go("https://api.example.com/users/1")

    @pytest.mark.asyncio
    async def test_default_is_bookmark(self, client):
        """Test go() without arguments returns the bookmark."""
        assert client.go().uri == BASE_URL

    @pytest.mark.asyncio
    async def test_link_without_context_resolves_against_bookmark(self, client):
        """Test contextless links resolve against the bookmark."""
        resource = client.go(Link(rel="author", href="people/1"))

        assert resource.uri == "https://api.example.com/people/1"
        assert resource.link.rel == "author"

    @pytest.mark.asyncio
    async def test_link_with_context(self, client):
        """Test links resolve against their own context."""
        resource = client.go(Link(rel="next", href="page/2", context="https://api.example.com/orders/"))

        assert resource.uri == "https://api.example.com/orders/page/2"


class TestContentNegotiation:
    """Test factory_for() and register_state_factory()."""

    def response(self, content_type=None, status=200):
        headers = {"Content-Type": content_type} if content_type else {}
        return httpx.Response(status, content=b"{}", headers=headers)

    @pytest.mark.asyncio
    async def test_exact_match(self, client):
        """Test exact media type dispatch."""
        assert isinstance(client.factory_for(self.response("application/hal+json; charset=utf-8")), HalStateFactory)
        assert isinstance(client.factory_for(self.response("application/vnd.siren+json")), SirenStateFactory)
        assert isinstance(client.factory_for(self.response("text/event-stream")), StreamStateFactory)

    @pytest.mark.asyncio
    async def test_json_suffix_falls_back_to_hal(self, client):
        """Test +json types are parsed as HAL."""
        assert isinstance(client.factory_for(self.response("application/vnd.custom+json")), HalStateFactory)

    @pytest.mark.asyncio
    async def test_no_content_and_missing_type_are_binary(self, client):
        """Test 204 and untyped responses are binary."""
        assert isinstance(client.factory_for(self.response("application/hal+json", status=204)), BinaryStateFactory)
        assert isinstance(client.factory_for(self.response()), BinaryStateFactory)
        assert isinstance(client.factory_for(self.response("image/png")), BinaryStateFactory)

    @pytest.mark.asyncio
    async def test_register_state_factory(self, client):
        """Test custom factories and their q-values."""
        class CsvStateFactory(StateFactory):
            async def create(self, client, link, response):
                await response.aread()
                return State(client=client, uri=link.resolve(), data=response.text.split(","))

        client.register_state_factory("text/CSV", CsvStateFactory(), q=0.4)

        state = await client.get_state_for_response(
            Link(rel="", href="/data", context=BASE_URL),
            httpx.Response(200, text="a,b", headers={"Content-Type": "text/csv"}),
        )

        assert state.data == ["a", "b"]
        assert client.content_type_priorities()["text/csv"] == 0.4

    @pytest.mark.asyncio
    async def test_get_state_for_response_without_context(self, client):
        """Test responses for contextless links use the bookmark."""
        state = await client.get_state_for_response(
            Link(rel="", href="/users/1"),
            httpx.Response(200, json={"name": "Alice"}, headers={"Content-Type": "application/json"}),
        )

        assert state.uri == "https://api.example.com/users/1"


class TestCacheState:
    """Test cache_state() and clear_resource_cache()."""

    @pytest.mark.asyncio
    async def test_caches_embedded_and_members(self, client, hal_user, hal_orders):
        """Test cache_state stores every carried State."""
        from hateoas_resource.state import build_hal_state

        client.cache_state(build_hal_state(client, BASE_URL + "users/1", hal_user))
        client.cache_state(build_hal_state(client, BASE_URL + "orders?page=1", hal_orders, rel="orders"))

        assert client.cache.get(BASE_URL + "users/1/profile").data == {"bio": "Loves REST"}
        assert client.cache.get(BASE_URL + "orders/2").is_partial is True
        assert client.cache.get(BASE_URL + "orders?page=1") is not None

    @pytest.mark.asyncio
    async def test_registers_inv_by_edges(self, client):
        """Test inv-by links become dependency edges."""
        links = Links(BASE_URL + "orders/1")
        links.add("inv-by", "/orders")
        client.cache_state(State(client=client, uri=BASE_URL + "orders/1", links=links))

        assert client.dependencies.get_dependents(BASE_URL + "orders") == {BASE_URL + "orders/1"}

    @pytest.mark.asyncio
    async def test_emits_update_on_bound_resources(self, client, hal_user):
        """Test caching notifies the bound Resource."""
        from hateoas_resource.state import build_hal_state

        received = []
        client.go("/users/1/profile").on("update", lambda state: received.append(state.uri))
        client.go("/users/1").on("update", lambda state: received.append(state.uri))

        client.cache_state(build_hal_state(client, BASE_URL + "users/1", hal_user))

        # Parents first
        assert received == [BASE_URL + "users/1", BASE_URL + "users/1/profile"]

    @pytest.mark.asyncio
    async def test_clear_resource_cache(self, client):
        """Test stale URIs and their dependents are evicted."""
        for path in ("a", "b", "c"):
            client.cache_state(State(client=client, uri=BASE_URL + path))
        events = []
        client.go("/a").on("delete", lambda: events.append("a:delete"))
        client.go("/b").on("stale", lambda: events.append("b:stale"))

        client.clear_resource_cache(stale_uris=["/b"], deleted_uris=["/a"])

        assert events == ["a:delete", "b:stale"]
        assert not client.cache.has(BASE_URL + "a")
        assert not client.cache.has(BASE_URL + "b")
        assert client.cache.has(BASE_URL + "c")

    @pytest.mark.asyncio
    async def test_deleted_uris_leave_graph(self, client):
        """Test deleted URIs are removed from the graph."""
        client.dependencies.add(BASE_URL + "a", BASE_URL + "b")

        client.clear_resource_cache([], [BASE_URL + "a"])

        assert BASE_URL + "a" not in client.dependencies

    @pytest.mark.asyncio
    async def test_clear_cache(self, client):
        """Test clear_cache empties cache and graph."""
        client.cache_state(State(client=client, uri=BASE_URL + "a"))
        client.dependencies.add(BASE_URL + "x", BASE_URL + "a")

        client.clear_cache()

        assert not client.cache.has(BASE_URL + "a")
        assert len(client.dependencies) == 0


class TestMiddlewareRegistration:
    @pytest.mark.asyncio
    async def test_use_scopes_by_origin(self, client, api):
        """Test use() registers origin-scoped middleware."""
        route = api.get("/things").mock(return_value=httpx.Response(200))

        async def tag(request, call_next):
            request.headers["X-Tag"] = "1"
            return await call_next(request)

        client.use(tag, "https://api.example.com")
        await client.fetcher.fetch(BASE_URL + "things")

        assert route.calls.last.request.headers["X-Tag"] == "1"
