"""Navigation chains that start from an already available State."""

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from ..action.action import Action, serialize_form_data
from ..constants import JSON
from ..links import Link
from ..state.base import State
from ..utils.exceptions import ActionValidationError
from ..utils.uri import expand
from .base import BaseResource
from .options import RequestOptions

if TYPE_CHECKING:
    from ..client import ClientInstance
    from .resource import Resource

logger = structlog.get_logger(__name__)


class StateResource(BaseResource):
    """
    A chain of relations resolved hop by hop from a starting State.

    Embedded representations are used instead of network requests when a
    GET hop targets an embedded relation.
    """

    def __init__(
        self,
        client: "ClientInstance",
        state: State,
        rels: list[str],
        options: Mapping[int, RequestOptions] | None = None,
    ) -> None:
        super().__init__(client, options)
        self.state = state
        self.rels = list(rels)

    @property
    def current_hop(self) -> int:
        return len(self.rels)

    def follow(self, rel: str, variables: Mapping[str, Any] | None = None) -> "StateResource":
        chained = StateResource(self.client, self.state, [*self.rels, rel], self._options)
        if variables:
            chained.with_template_parameters(variables)
        return chained

    async def request(self) -> State:
        """
        Resolve every hop and return the final State.

        Raises:
            RelationNotFoundError: When a hop's relation is neither linked
                nor embedded.
            ActionValidationError: When a hop's body fails its form schema.
            HttpError: When a hop's request fails.
        """
        state = self.state
        for hop, rel in enumerate(self.rels, start=1):
            state = await resolve_hop(self.client, state, rel, self.options_for(hop))
        return state

    get = request

    async def get_resource(self) -> "Resource":
        """Resolve all hops but the last, and return the Resource of the last link."""
        state = self.state
        for hop, rel in enumerate(self.rels[:-1], start=1):
            state = await resolve_hop(self.client, state, rel, self.options_for(hop))
        last = self.options_for(len(self.rels))
        link = state.link_for(self.rels[-1])
        return self.client.go(_expanded_link(link, last.query))

    def __repr__(self) -> str:
        return f"StateResource(uri={self.state.uri!r}, rels={self.rels!r})"


def _expanded_link(link: Link, query: Mapping[str, Any] | None) -> Link:
    return Link(
        rel=link.rel,
        href=expand(link, query),
        context=link.context,
        title=link.title,
        name=link.name,
        type=link.type,
    )


def _encode_body(
    client: "ClientInstance", state: State, rel: str, method: str, options: RequestOptions
) -> tuple[bytes | str | None, dict[str, str]]:
    """Encode a hop body, validating it against the matching form if any."""
    form = state.get_form(rel, method)
    if form is None or options.serialize_body is not None or options.data is None:
        return options.build_body()

    action = Action(client, form)
    result = action.form_schema.validate(options.data)
    if not result.ok:
        raise ActionValidationError(result.issues)
    headers = dict(options.headers)
    content_type = next(
        (v for k, v in headers.items() if k.lower() == "content-type"), None
    )
    if content_type is None:
        content_type = form.content_type or JSON
        headers["Content-Type"] = content_type
    if isinstance(result.value, (bytes, str)):
        return result.value, headers
    if isinstance(result.value, Mapping):
        return serialize_form_data(content_type, result.value), headers
    return json.dumps(result.value), headers


async def resolve_hop(
    client: "ClientInstance", state: State, rel: str, options: RequestOptions
) -> State:
    """Resolve one relation of a navigation chain."""
    method = (options.method or "GET").upper()

    if method == "GET" and not options.query and not options.headers:
        embedded = state.get_embedded(rel)
        if isinstance(embedded, list):
            collection = state.embedded_collection(rel)
            if collection is not None:
                return collection
        elif embedded is not None:
            logger.debug("Using embedded representation", rel=rel, uri=embedded.uri)
            return embedded

    link = state.link_for(rel)
    target = _expanded_link(link, options.query)

    if method == "GET":
        return await client.go(target).get(options)

    body, headers = _encode_body(client, state, rel, method, options)
    response = await client.fetcher.fetch_or_throw(
        target.href, method=method, headers=headers, content=body
    )
    return await client.get_state_for_response(target, response)
