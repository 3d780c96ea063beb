"""Tests for binary and stream States."""

import httpx
import pytest

from hateoas_resource.constants import EVENT_STREAM
from hateoas_resource.links import Link
from hateoas_resource.state import BinaryStateFactory, StreamStateFactory

BASE = "https://api.example.com/"


@pytest.mark.asyncio
async def test_binary_passes_bytes_through(client):
    """Test binary bodies are kept as bytes."""
    response = httpx.Response(
        200,
        content=b"\x89PNG",
        headers={"Content-Type": "image/png", "Link": '</images/1/meta>; rel="describedby"'},
    )

    state = await BinaryStateFactory().create(client, Link(rel="", href="/images/1", context=BASE), response)

    assert state.data == b"\x89PNG"
    assert state.get_link("describedby").resolve() == "https://api.example.com/images/1/meta"
    assert state.forms == []


@pytest.mark.asyncio
async def test_binary_empty_body(client):
    """Test an empty body gives empty bytes."""
    state = await BinaryStateFactory().create(
        client, Link(rel="", href="/things/1", context=BASE), httpx.Response(204)
    )

    assert state.data == b""


@pytest.mark.asyncio
async def test_stream_yields_chunks(client):
    """Test stream States iterate the body."""
    response = httpx.Response(200, content=b"data: one\n\ndata: two\n\n", headers={"Content-Type": EVENT_STREAM})

    state = await StreamStateFactory().create(client, Link(rel="", href="/events", context=BASE), response)

    body = b"".join([chunk async for chunk in state.data])
    assert body == b"data: one\n\ndata: two\n\n"
    assert state.uri == "https://api.example.com/events"
