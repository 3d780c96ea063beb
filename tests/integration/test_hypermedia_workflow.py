"""Integration tests for navigating and mutating a hypermedia API end to end."""

import asyncio
import json

import httpx
import pytest
import respx

from hateoas_resource import ClientInstance, create_client
from hateoas_resource.constants import HAL_FORMS_JSON, HAL_JSON
from hateoas_resource.middlewares import bearer_auth, retry_middleware
from hateoas_resource.resource import RequestOptions

BASE_URL = "https://shop.example.com/"

ROOT = {
    "_links": {
        "self": {"href": "/"},
        "articles": {"href": "/articles{?page}", "templated": True},
    }
}

ARTICLES = {
    "_links": {
        "self": {"href": "/articles?page=1"},
        "next": {"href": "/articles?page=2"},
    },
    "_templates": {
        "create": {
            "method": "POST",
            "target": "/articles",
            "contentType": "application/json",
            "properties": [{"name": "title", "type": "text", "required": True}],
        }
    },
    "_embedded": {
        "items": [
            {"_links": {"self": {"href": "/articles/1"}, "inv-by": {"href": "/articles"}}, "title": "One"},
            {"_links": {"self": {"href": "/articles/2"}}, "title": "Two"},
            {"_links": {"self": {"href": "/articles/3"}}, "title": "Three"},
        ]
    },
}


def hal(body, status=200, headers=None, content_type=HAL_JSON):
    return httpx.Response(status, json=body, headers={"Content-Type": content_type, **(headers or {})})


@pytest.fixture
async def shop():
    async with create_client(BASE_URL) as client:
        yield client


@pytest.fixture
def shop_api():
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        router.get("/").mock(return_value=hal(ROOT))
        router.get("/articles").mock(return_value=hal(ARTICLES, content_type=HAL_FORMS_JSON))
        yield router


@pytest.mark.asyncio
async def test_browse_collection_and_members(shop, shop_api):
    """Root -> templated collection -> embedded member, with one request per document."""
    detail_route = shop_api.get("/articles/2").mock(return_value=hal({"title": "Two (full)"}))

    articles = await shop.go().follow("articles", {"page": 1}).get()

    assert articles.get_link("self").resolve() == "https://shop.example.com/articles?page=1"
    assert articles.action("create").field("title").required is True
    assert len(articles.collection) == 3

    # Members were embedded as summaries, so fetching one goes to the network
    member = await shop.go("/articles/2").get()
    assert member.data == {"title": "Two (full)"}
    assert detail_route.call_count == 1

    # The full representation is now cached
    again = await shop.go("/articles/2").get()
    assert again.data == {"title": "Two (full)"}
    assert detail_route.call_count == 1


@pytest.mark.asyncio
async def test_create_invalidates_collection(shop, shop_api):
    """Submitting the create action evicts the collection and notifies listeners."""
    create_route = shop_api.post("/articles").mock(
        return_value=hal({"title": "Four"}, status=201, headers={"Location": "/articles?page=1"})
    )
    collection = shop.go("/articles?page=1")
    await collection.get()
    stale_events = []
    collection.on("stale", lambda: stale_events.append(collection.uri))

    state = await collection.get()
    created = await state.action("create").submit({"title": "Four"})

    assert json.loads(create_route.calls.last.request.content) == {"title": "Four"}
    assert created.data == {"title": "Four"}
    assert stale_events == ["https://shop.example.com/articles?page=1"]
    assert collection.get_cache() is None


@pytest.mark.asyncio
async def test_delete_cascades_through_dependencies(shop, shop_api):
    """Deleting /articles evicts members registered with an inv-by link to it."""
    shop_api.delete("/articles").mock(return_value=httpx.Response(204))
    await shop.go("/articles?page=1").get()
    member = shop.go("/articles/1")
    collection = shop.go("/articles")
    events = []
    member.on("stale", lambda: events.append("member:stale"))
    collection.on("delete", lambda: events.append("collection:delete"))

    await collection.delete()

    assert sorted(events) == ["collection:delete", "member:stale"]
    assert member.get_cache() is None


@pytest.mark.asyncio
async def test_concurrent_requests_are_deduplicated(shop, shop_api):
    """Test concurrent reads share requests."""
    async def slow(request):
        await asyncio.sleep(0.01)
        return hal({"title": "Slow"})

    route = shop_api.get("/articles/9").mock(side_effect=slow)
    resource = shop.go("/articles/9")

    first, second = await asyncio.gather(resource.request(), resource.request())

    assert route.call_count == 1
    assert first.data == second.data == {"title": "Slow"}


@pytest.mark.asyncio
async def test_content_negotiation(shop, shop_api):
    """Test responses are parsed by their media type."""
    shop_api.get("/map").mock(
        return_value=httpx.Response(
            200, json={"type": "Point"}, headers={"Content-Type": "application/geo+json"}
        )
    )
    empty_route = shop_api.get("/empty").mock(
        return_value=httpx.Response(204, headers={"Content-Type": "application/hal+json"})
    )

    geo = await shop.go("/map").get()
    empty = await shop.go("/empty").get()

    assert geo.data == {"type": "Point"}
    assert empty.data == b""

    accept = empty_route.calls.last.request.headers["Accept"]
    assert accept.startswith(HAL_FORMS_JSON)


@pytest.mark.asyncio
async def test_action_encodings(shop, shop_api):
    """Test actions in each encoding."""
    form_route = shop_api.post("/form").mock(return_value=httpx.Response(204))
    json_route = shop_api.post("/json").mock(return_value=httpx.Response(204))
    search_route = shop_api.get("/search").mock(return_value=hal({"hits": 1}))
    document = {
        "_links": {"self": {"href": "/forms"}},
        "_templates": {
            "urlencoded": {
                "method": "POST",
                "target": "/form",
                "contentType": "application/x-www-form-urlencoded",
            },
            "json": {"method": "POST", "target": "/json"},
            "search": {"method": "GET", "target": "/search"},
        },
    }
    shop_api.get("/forms").mock(return_value=hal(document, content_type=HAL_FORMS_JSON))
    state = await shop.go("/forms").get()

    await state.action("urlencoded").submit({"a": 1, "b": "x"})
    await state.action("json").submit({"a": 1, "b": "x"})
    await state.action("search").submit({"a": 1, "b": "x"})

    assert form_route.calls.last.request.content == b"a=1&b=x"
    assert json.loads(json_route.calls.last.request.content) == {"a": 1, "b": "x"}
    search_request = search_route.calls.last.request
    assert str(search_request.url) == "https://shop.example.com/search?a=1&b=x"
    assert search_request.content == b""


@pytest.mark.asyncio
async def test_layered_middlewares(shop_api):
    """Test auth and retry middlewares together."""
    flaky = shop_api.get("/secure").mock(
        side_effect=[httpx.Response(503), hal({"secret": True})]
    )
    async with ClientInstance(base_url=BASE_URL) as client:
        client.use(bearer_auth("t0k3n"), "https://*.example.com")
        client.use(retry_middleware(attempts=2, min_wait=0, max_wait=0))

        state = await client.go("/secure").get()

    assert state.data == {"secret": True}
    assert flaky.call_count == 2
    assert flaky.calls.last.request.headers["Authorization"] == "Bearer t0k3n"


@pytest.mark.asyncio
async def test_put_state_round_trip(shop, shop_api):
    """Test editing a State and putting it back."""
    shop_api.get("/articles/5").mock(
        return_value=hal({"_links": {"self": {"href": "/articles/5"}}, "title": "Draft"}, headers={"ETag": '"v1"'})
    )
    put_route = shop_api.put("/articles/5").mock(return_value=httpx.Response(204))
    resource = shop.go("/articles/5")
    updates = []
    resource.on("update", lambda state: updates.append(state.data["title"]))

    state = await resource.get()
    edited = state.clone()
    edited.data["title"] = "Published"
    await resource.put(edited)

    body = json.loads(put_route.calls.last.request.content)
    assert body["title"] == "Published"
    assert body["_links"]["self"]["href"] == "https://shop.example.com/articles/5"
    assert put_route.calls.last.request.headers["ETag"] == '"v1"'
    assert updates == ["Draft", "Published"]
    assert (await resource.get()).data["title"] == "Published"


@pytest.mark.asyncio
async def test_post_follow_to_created_resource(shop, shop_api):
    """Test following a created resource."""
    shop_api.post("/articles").mock(return_value=httpx.Response(201, headers={"Location": "/articles/10"}))
    shop_api.get("/articles/10").mock(return_value=hal({"title": "Ten"}))

    created = await shop.go("/articles").post_follow(RequestOptions(data={"title": "Ten"}))

    assert created.uri == "https://shop.example.com/articles/10"
    assert (await created.get()).data == {"title": "Ten"}
