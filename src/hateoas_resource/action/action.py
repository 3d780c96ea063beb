"""Executable forms."""

import json
from collections.abc import Mapping
from functools import cached_property
from typing import TYPE_CHECKING, Any

import structlog

from ..constants import FORM_URLENCODED, JSON
from ..links import Link
from ..models.form import Field, Form
from ..utils.exceptions import UnsupportedContentTypeError
from ..utils.uri import form_encode, merge_query
from .schema import Validator

if TYPE_CHECKING:
    from ..client import ClientInstance
    from ..state.base import State

logger = structlog.get_logger(__name__)


def serialize_form_data(content_type: str, data: Mapping[str, Any]) -> str:
    """
    Encode form data for a request body.

    Raises:
        UnsupportedContentTypeError: For anything but JSON and urlencoded.
    """
    media_type = content_type.split(";")[0].strip().lower()
    if media_type == JSON:
        return json.dumps(data, default=str, separators=(",", ":"))
    if media_type == FORM_URLENCODED:
        return form_encode(data)
    raise UnsupportedContentTypeError(content_type)


class Action:
    """
    A form bound to a client, ready to be submitted.

    Attributes:
        uri: Absolute target URI.
        name: Form name.
        title: Human readable title.
        method: HTTP method.
        content_type: Body encoding for non-GET submissions.
        fields: Form fields.
    """

    def __init__(self, client: "ClientInstance", form: Form) -> None:
        self.client = client
        self.form = form
        self.uri = form.uri
        self.name = form.name
        self.title = form.title
        self.method = form.method.upper()
        self.content_type = form.content_type
        self.fields: list[Field] = list(form.fields)

    def field(self, name: str) -> Field | None:
        """Return a field by name."""
        return self.form.field(name)

    @cached_property
    def form_schema(self) -> Validator:
        """Validator built from the fields by the client's schema plugin."""
        return self.client.schema_plugin.create_schema(self.fields)

    async def submit(self, form_data: Mapping[str, Any] | None = None) -> "State":
        """
        Execute the action.

        GET actions put the data in the query string and go through the
        client, so the result is cached like any other GET. Other methods
        send the encoded body directly and parse the response.

        Args:
            form_data: Field values.

        Returns:
            The State of the response.

        Raises:
            UnsupportedContentTypeError: If the body cannot be encoded.
            HttpError: If the server answers with a non-2xx status.
        """
        data = dict(form_data or {})
        if self.method == "GET":
            return await self.client.go(merge_query(self.uri, data)).get()

        body = serialize_form_data(self.content_type, data)
        logger.debug("Submitting action", name=self.name, method=self.method, uri=self.uri)
        response = await self.client.fetcher.fetch_or_throw(
            self.uri,
            method=self.method,
            content=body,
            headers={"Content-Type": self.content_type},
        )
        return await self.client.get_state_for_response(
            Link(rel="", href=self.uri, context=self.client.bookmark_uri), response
        )

    def __repr__(self) -> str:
        return f"Action(name={self.name!r}, method={self.method!r}, uri={self.uri!r})"
