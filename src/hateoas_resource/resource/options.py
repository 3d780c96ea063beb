"""Per-request options staged by the resource builder methods."""

import hashlib
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..constants import JSON


@dataclass
class RequestOptions:
    """
    Options for one request of a navigation chain.

    Attributes:
        method: HTTP method. None means GET.
        data: Body data, encoded as JSON unless a form says otherwise.
        headers: Extra request headers.
        query: Template variables, or query parameters for plain links.
        serialize_body: Callable producing the raw body; wins over data.
    """

    method: str | None = None
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, Any] | None = None
    serialize_body: Callable[[], bytes | str] | None = None

    def copy(self) -> "RequestOptions":
        return replace(
            self,
            headers=dict(self.headers),
            query=dict(self.query) if self.query is not None else None,
        )

    @property
    def has_body(self) -> bool:
        return self.serialize_body is not None or self.data is not None

    def build_body(self) -> tuple[bytes | str | None, dict[str, str]]:
        """
        Encode the body and return it with the request headers.

        JSON is used when no serializer is given; Content-Type defaults to
        application/json whenever there is a body.
        """
        headers = dict(self.headers)
        if self.serialize_body is not None:
            body: bytes | str | None = self.serialize_body()
        elif self.data is None:
            return None, headers
        elif isinstance(self.data, (bytes, str)):
            body = self.data
        else:
            body = json.dumps(self.data)
        if not any(key.lower() == "content-type" for key in headers):
            headers["Content-Type"] = JSON
        return body, headers


def request_hash(
    uri: str,
    method: str = "GET",
    headers: Mapping[str, str] | None = None,
    body: bytes | str | None = None,
) -> str:
    """
    Key identifying equivalent requests for deduplication.

    Header names are compared case-insensitively and regardless of order.
    """
    normalized = sorted((k.lower(), v) for k, v in (headers or {}).items())
    key = json.dumps([uri, method.upper(), normalized])
    if body is not None:
        raw = body.encode() if isinstance(body, str) else body
        key += "|" + hashlib.sha256(raw).hexdigest()
    return key
