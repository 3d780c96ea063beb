"""Tests for the best-effort HTML parser."""

import httpx
import pytest

from hateoas_resource.constants import FORM_URLENCODED, HTML
from hateoas_resource.links import Link
from hateoas_resource.state import HtmlStateFactory
from hateoas_resource.state.html import parse_html_forms, parse_html_links, read_attribute

BASE = "https://api.example.com/"

PAGE = """
<html>
  <head>
    <link rel="stylesheet" href="/style.css" type="text/css">
    <link rel='alternate author' href='/feed' title='Feed'>
  </head>
  <body>
    <a href="/about" rel="about">About</a>
    <a href="/no-rel">Ignored</a>
    <form action="/search" method="get" id="search"></form>
    <FORM ACTION="/upload" METHOD="post" ENCTYPE="multipart/form-data" rel="upload"></FORM>
  </body>
</html>
"""


def test_read_attribute_quoting():
    """Test quoted and bare attributes."""
    assert read_attribute('<a href="/x" rel=next>', "rel") == "next"
    assert read_attribute("<a href='/y'>", "href") == "/y"
    assert read_attribute("<a>", "href") is None


def test_links_need_rel_and_href():
    """Test anchors without rel or href are skipped."""
    links = parse_html_links(BASE, PAGE)

    assert [(link.rel, link.href) for link in links] == [
        ("stylesheet", "/style.css"),
        ("alternate", "/feed"),
        ("author", "/feed"),
        ("about", "/about"),
    ]
    assert links[1].title == "Feed"


def test_forms():
    """Test forms become Forms."""
    forms = parse_html_forms(BASE, PAGE)

    assert forms[0].name == "search"
    assert forms[0].method == "GET"
    assert forms[0].content_type == FORM_URLENCODED
    assert forms[1].name == "upload"
    assert forms[1].uri == "https://api.example.com/upload"
    assert forms[1].method == "POST"
    assert forms[1].content_type == "multipart/form-data"
    assert forms[1].fields == []


@pytest.mark.asyncio
async def test_factory_keeps_markup_as_data(client):
    """Test the markup is the data."""
    response = httpx.Response(200, text=PAGE, headers={"Content-Type": HTML})

    state = await HtmlStateFactory().create(client, Link(rel="", href="/", context=BASE), response)

    assert state.data == PAGE
    assert state.get_link("about").resolve() == "https://api.example.com/about"
    assert len(state.forms) == 2
