"""Immutable snapshot of a fetched representation.

A State is what a StateFactory produces from a response: the payload with its
protocol envelope stripped, the links and forms found in the payload and the
Link header, and any embedded sub-representations already materialized as
child States. States are never mutated once built; the cache replaces them.
"""

import copy
import json
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from ..constants import ENTITY_HEADERS, PAGINATION_RELS
from ..links import Link, Links
from ..models.form import Form
from ..utils.exceptions import ActionNotFoundError, AmbiguousActionError, RelationNotFoundError

if TYPE_CHECKING:
    from ..action.action import Action
    from ..client import ClientInstance
    from ..resource.state_resource import StateResource

Embedded = dict[str, "State | list[State]"]


class State:
    """
    Immutable snapshot of one representation of a resource.

    Attributes:
        uri: Absolute URI of the representation.
        data: Payload without links, forms or embedded documents.
        links: Relations discovered in the body and the Link header.
        collection: Child States when the representation is list-like.
        timestamp: Creation time as a UNIX timestamp.
        is_partial: True for summaries embedded in another document.
        headers: Response headers the State was built from.
    """

    def __init__(
        self,
        *,
        client: "ClientInstance",
        uri: str,
        data: Any = None,
        headers: httpx.Headers | Mapping[str, str] | None = None,
        links: Links | None = None,
        forms: list[Form] | None = None,
        collection: list["State"] | None = None,
        embedded: Embedded | None = None,
        is_partial: bool = False,
        timestamp: float | None = None,
        current_link: Link | None = None,
    ) -> None:
        self._client = client
        self._uri = uri
        self._data = data
        self._headers = httpx.Headers(headers or {})
        self._links = links if links is not None else Links(uri)
        self._forms = list(forms or [])
        self._collection = list(collection or [])
        self._embedded: Embedded = dict(embedded or {})
        self._is_partial = is_partial
        self._timestamp = timestamp if timestamp is not None else time.time()
        self._current_link = current_link or Link(rel="", href=uri, context=uri)

    @property
    def client(self) -> "ClientInstance":
        return self._client

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def data(self) -> Any:
        return self._data

    @property
    def headers(self) -> httpx.Headers:
        return self._headers

    @property
    def links(self) -> Links:
        return self._links

    @property
    def forms(self) -> list[Form]:
        return list(self._forms)

    @property
    def collection(self) -> list["State"]:
        return list(self._collection)

    @property
    def embedded(self) -> Embedded:
        return dict(self._embedded)

    @property
    def is_partial(self) -> bool:
        return self._is_partial

    @property
    def timestamp(self) -> float:
        return self._timestamp

    @property
    def current_link(self) -> Link:
        """The link this State was fetched through."""
        return self._current_link

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def has_link(self, rel: str) -> bool:
        return self._links.has(rel)

    def get_link(self, rel: str) -> Link | None:
        return self._links.get(rel)

    def link_for(self, rel: str) -> Link:
        """
        Return the link used to navigate a relation.

        Pagination relations followed from a non-empty collection keep the
        relation name of the collection, so the next page is parsed as the
        same collection.

        Raises:
            RelationNotFoundError: If the relation is absent.
        """
        link = self._links.get(rel)
        if link is None:
            raise RelationNotFoundError(rel, self._uri)
        if self._collection and rel in PAGINATION_RELS and self._current_link.rel:
            return link.with_rel(self._current_link.rel)
        return link

    def follow(self, rel: str, variables: Mapping[str, Any] | None = None) -> "StateResource":
        """
        Start navigating from this State.

        Embedded representations are reused when the relation is embedded;
        otherwise the link is fetched when the chain is requested.
        """
        from ..resource.state_resource import StateResource

        resource = StateResource(self._client, self, [rel])
        if variables:
            resource.with_template_parameters(variables)
        return resource

    def follow_all(self, rel: str) -> list[Any]:
        """Return a Resource for every link of a relation."""
        return [self._client.go(link) for link in self._links.get_many(rel)]

    # ------------------------------------------------------------------
    # Forms and actions
    # ------------------------------------------------------------------

    def get_form(self, rel: str, method: str = "GET") -> Form | None:
        """Return the form targeting the URI of a relation with the given method."""
        link = self._links.get(rel)
        if link is None:
            return None
        target = link.resolve()
        for form in self._forms:
            if form.uri == target and form.method == method.upper():
                return form
        return None

    def _matching_forms(self, name: str | None, method: str | None) -> list[Form]:
        forms = self._forms if name is None else [f for f in self._forms if f.name == name]
        if method is not None:
            forms = [f for f in forms if f.method == method.upper()]
        return forms

    def has_action(self, name: str | None = None, method: str | None = None) -> bool:
        return bool(self._matching_forms(name, method))

    def action(self, name: str | None = None, method: str | None = None) -> "Action":
        """
        Return an executable Action.

        Args:
            name: Form name. None selects among all forms.
            method: HTTP method used to pick between forms sharing a name.

        Raises:
            ActionNotFoundError: If no form matches.
            AmbiguousActionError: If several forms with different methods
                match and no method was given.
        """
        from ..action.action import Action

        forms = self._matching_forms(name, method)
        if not forms:
            raise ActionNotFoundError(name, self._uri)
        methods = sorted({form.method for form in forms})
        if method is None and len(methods) > 1:
            raise AmbiguousActionError(name, methods)
        return Action(self._client, forms[0])

    def actions(self) -> list["Action"]:
        from ..action.action import Action

        return [Action(self._client, form) for form in self._forms]

    # ------------------------------------------------------------------
    # Embedded representations
    # ------------------------------------------------------------------

    def get_embedded(self, rel: str) -> "State | list[State] | None":
        return self._embedded.get(rel)

    def embedded_collection(self, rel: str) -> "State | None":
        """
        Build a collection State for an embedded array.

        The synthetic State takes the URI of the relation link, or this
        State's URI when the relation only links to the members themselves.
        """
        items = self._embedded.get(rel)
        if not isinstance(items, list):
            return None
        member_uris = {item.uri for item in items}
        link = next(
            (candidate for candidate in self._links.get_many(rel) if candidate.resolve() not in member_uris),
            None,
        )
        uri = link.resolve() if link else self._uri
        links = Links(uri)
        links.add("self", uri)
        return State(
            client=self._client,
            uri=uri,
            data={},
            links=links,
            collection=items,
            current_link=link or Link(rel=rel, href=uri, context=uri),
        )

    def sub_states(self) -> list["State"]:
        """
        Return the States this one carries inline.

        Includes embedded documents, synthetic collections for embedded arrays
        that have a relation link, and collection members.
        """
        result: list[State] = []
        for rel, value in self._embedded.items():
            if isinstance(value, list):
                if self._links.has(rel):
                    synthetic = self.embedded_collection(rel)
                    if synthetic is not None and synthetic.uri != self._uri:
                        result.append(synthetic)
                result.extend(value)
            else:
                result.append(value)
        result.extend(self._collection)
        return result

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def content_headers(self) -> httpx.Headers:
        """Return the headers that describe the entity itself."""
        result = httpx.Headers()
        for name in ENTITY_HEADERS:
            value = self._headers.get(name)
            if value is not None:
                result[name] = value
        return result

    def serialize_body(self) -> bytes | str:
        """Serialize the data for a PUT or POST request body."""
        if isinstance(self._data, (bytes, str)):
            return self._data
        return json.dumps(self._data)

    def _init_kwargs(self) -> dict[str, Any]:
        return {
            "client": self._client,
            "uri": self._uri,
            "data": copy.deepcopy(self._data) if isinstance(self._data, (dict, list)) else self._data,
            "headers": httpx.Headers(self._headers),
            "links": self._links.copy(),
            "forms": copy.deepcopy(self._forms),
            "collection": self._collection,
            "embedded": self._embedded,
            "is_partial": self._is_partial,
            "timestamp": self._timestamp,
            "current_link": self._current_link,
        }

    def clone(self) -> "State":
        """Return a deep copy of the data, links and headers."""
        return type(self)(**self._init_kwargs())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(uri={self._uri!r}, partial={self._is_partial})"


class StateFactory(ABC):
    """Builds a State from an HTTP response for one family of media types."""

    @abstractmethod
    async def create(
        self, client: "ClientInstance", link: Link, response: httpx.Response
    ) -> State:
        """
        Parse a response into a State.

        Args:
            client: Client the State belongs to.
            link: Link the response was fetched through.
            response: Response to parse.

        Returns:
            The parsed State. Absent sections give empty links, forms or
            collection; a malformed body raises.
        """


def select_collection(embedded: Embedded, rel: str) -> list[State]:
    """
    Pick the embedded array that forms the collection of a document.

    The array under the fetching relation wins. Otherwise a single embedded
    array is used; with several arrays there is no collection.
    """
    value = embedded.get(rel)
    if isinstance(value, list):
        return value
    arrays = [items for items in embedded.values() if isinstance(items, list)]
    if len(arrays) == 1:
        return arrays[0]
    return []
