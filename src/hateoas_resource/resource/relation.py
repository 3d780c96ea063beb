"""Lazy navigation chains rooted at a Resource."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..state.base import State
from ..utils.uri import expand
from .base import BaseResource
from .options import RequestOptions
from .state_resource import StateResource

if TYPE_CHECKING:
    from ..client import ClientInstance
    from .resource import Resource


class ResourceRelation(BaseResource):
    """
    A relation path from a Resource, resolved only when requested.

    Example:
        author = await client.go("/articles/1").follow("author").get()
    """

    def __init__(
        self,
        client: "ClientInstance",
        root: "Resource",
        rels: list[str],
        options: Mapping[int, RequestOptions] | None = None,
    ) -> None:
        super().__init__(client, options)
        self.root = root
        self.rels = list(rels)

    @property
    def current_hop(self) -> int:
        return len(self.rels)

    def follow(self, rel: str, variables: Mapping[str, Any] | None = None) -> "ResourceRelation":
        chained = ResourceRelation(self.client, self.root, [*self.rels, rel], self._options)
        if variables:
            chained.with_template_parameters(variables)
        return chained

    def _from_state(self, state: State) -> StateResource:
        hops = {hop: opts for hop, opts in self._options.items() if hop > 0}
        return StateResource(self.client, state, self.rels, hops)

    def _start(self) -> "Resource":
        query = self.options_for(0).query
        if query:
            return self.client.go(expand(self.root.link, query))
        return self.root

    async def request(self) -> State | None:
        """
        Execute the staged request.

        Without relations the staged request is sent to the root resource.
        Otherwise the root State is fetched and every relation resolved in
        order.
        """
        if not self.rels:
            return await self.root.send(self.options_for(0))
        root_state = await self._start().get(self.options_for(0))
        return await self._from_state(root_state).request()

    get = request

    async def get_resource(self) -> "Resource":
        """Return the Resource the last relation points to."""
        if not self.rels:
            return self._start()
        root_state = await self._start().get(self.options_for(0))
        return await self._from_state(root_state).get_resource()

    async def follow_all(self, rel: str) -> list["Resource"]:
        state = await self.request()
        return state.follow_all(rel)

    def __repr__(self) -> str:
        return f"ResourceRelation(uri={self.root.uri!r}, rels={self.rels!r})"
