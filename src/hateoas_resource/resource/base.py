"""Fluent request staging shared by every navigable resource type."""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from .options import RequestOptions

if TYPE_CHECKING:
    from ..client import ClientInstance


class BaseResource:
    """
    Holds the options staged for each hop of a navigation chain.

    Hop 0 is the starting resource; hop N is the Nth followed relation.
    Builder methods always configure the last hop and never perform I/O.
    They stage on the object returned by _for_staging(), which is the
    chain itself except for Resource.
    """

    def __init__(
        self,
        client: "ClientInstance",
        options: Mapping[int, RequestOptions] | None = None,
    ) -> None:
        self.client = client
        self._options: dict[int, RequestOptions] = {
            hop: opts.copy() for hop, opts in (options or {}).items()
        }

    @property
    def current_hop(self) -> int:
        return 0

    def _staged(self, hop: int | None = None) -> RequestOptions:
        hop = self.current_hop if hop is None else hop
        if hop not in self._options:
            self._options[hop] = RequestOptions()
        return self._options[hop]

    def options_for(self, hop: int) -> RequestOptions:
        """Return the options of a hop, or defaults when nothing was staged."""
        return self._options.get(hop) or RequestOptions()

    def _for_staging(self) -> "BaseResource":
        return self

    async def request(self) -> Any:
        raise NotImplementedError

    def with_method(self, method: str) -> "BaseResource":
        target = self._for_staging()
        target._staged().method = method.upper()
        return target

    def with_get(self, headers: Mapping[str, str] | None = None) -> "BaseResource":
        target = self._for_staging()
        options = target._staged()
        options.method = "GET"
        options.headers.update(headers or {})
        return target

    def _with_body(
        self,
        method: str,
        data: Any,
        headers: Mapping[str, str] | None,
        serialize_body: Callable[[], bytes | str] | None,
    ) -> "BaseResource":
        target = self._for_staging()
        options = target._staged()
        options.method = method
        options.data = data
        options.serialize_body = serialize_body
        options.headers.update(headers or {})
        return target

    def with_post(
        self,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        serialize_body: Callable[[], bytes | str] | None = None,
    ) -> "BaseResource":
        return self._with_body("POST", data, headers, serialize_body)

    def with_put(
        self,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        serialize_body: Callable[[], bytes | str] | None = None,
    ) -> "BaseResource":
        return self._with_body("PUT", data, headers, serialize_body)

    def with_patch(
        self,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        serialize_body: Callable[[], bytes | str] | None = None,
    ) -> "BaseResource":
        return self._with_body("PATCH", data, headers, serialize_body)

    def with_delete(self, headers: Mapping[str, str] | None = None) -> "BaseResource":
        target = self._for_staging()
        options = target._staged()
        options.method = "DELETE"
        options.headers.update(headers or {})
        return target

    def with_template_parameters(self, variables: Mapping[str, Any]) -> "BaseResource":
        """Set URI template variables (or query parameters) for the last hop."""
        target = self._for_staging()
        options = target._staged()
        options.query = {**(options.query or {}), **variables}
        return target
