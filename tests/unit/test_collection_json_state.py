"""Tests for Collection+JSON parsing."""

import httpx
import pytest

from hateoas_resource.constants import COLLECTION_JSON, FORM_URLENCODED
from hateoas_resource.links import Link
from hateoas_resource.state import CollectionJsonStateFactory

BASE = "https://api.example.com/"

FRIENDS = {
    "collection": {
        "version": "1.0",
        "href": "/friends/",
        "links": [{"rel": "feed", "href": "/friends/rss"}],
        "items": [
            {
                "href": "/friends/jdoe",
                "data": [
                    {"name": "full-name", "value": "J. Doe", "prompt": "Full Name"},
                    {"name": "email", "value": "jdoe@example.org", "prompt": "Email"},
                ],
                "links": [{"rel": "blog", "href": "/blogs/jdoe", "prompt": "Blog"}],
            },
            {"href": "/friends/msmith", "data": [{"name": "full-name", "value": "M. Smith"}]},
        ],
        "queries": [
            {"rel": "search", "href": "/friends/search", "prompt": "Search", "data": [{"name": "search", "value": ""}]}
        ],
        "template": {
            "data": [
                {"name": "full-name", "value": "", "prompt": "Full Name"},
                {"name": "email", "value": "", "prompt": "Email"},
            ]
        },
    }
}


@pytest.fixture
async def state(client):
    response = httpx.Response(200, json=FRIENDS, headers={"Content-Type": COLLECTION_JSON})
    return await CollectionJsonStateFactory().create(client, Link(rel="", href="/friends/", context=BASE), response)


@pytest.mark.asyncio
async def test_links_and_item_links(state):
    """Test collection links and item links."""
    assert state.get_link("feed").resolve() == "https://api.example.com/friends/rss"
    assert [link.resolve() for link in state.links.get_many("item")] == [
        "https://api.example.com/friends/jdoe",
        "https://api.example.com/friends/msmith",
    ]


@pytest.mark.asyncio
async def test_items_are_partial_states(state):
    """Test items become partial States."""
    jdoe = state.collection[0]

    assert jdoe.is_partial is True
    assert jdoe.data == {"full-name": "J. Doe", "email": "jdoe@example.org"}
    assert jdoe.get_link("blog").resolve() == "https://api.example.com/blogs/jdoe"
    assert jdoe.get_link("self").resolve() == jdoe.uri


@pytest.mark.asyncio
async def test_queries_become_get_forms(state):
    """Test queries become GET forms."""
    search = state.action("search")

    assert search.method == "GET"
    assert search.uri == "https://api.example.com/friends/search"
    assert search.title == "Search"
    assert search.field("search") is not None


@pytest.mark.asyncio
async def test_template_becomes_create_form(state):
    """Test the template becomes a POST form."""
    create = state.action("create")

    assert create.method == "POST"
    assert create.uri == "https://api.example.com/friends/"
    assert create.content_type == FORM_URLENCODED
    assert [field.name for field in create.fields] == ["full-name", "email"]
    assert create.field("email").label == "Email"


@pytest.mark.asyncio
async def test_data_excludes_envelope(state):
    """Test data holds the collection without its envelope."""
    assert state.data == {"version": "1.0", "href": "/friends/"}
