"""Custom exceptions for the hypermedia client runtime.

Exception Hierarchy:
-------------------
HateoasError (base)
├── HttpError                       # Non-2xx response without a structured body
│   └── Problem                     # RFC 7807 application/problem+json body
├── RelationNotFoundError           # follow() on a rel the State does not carry
├── ActionNotFoundError             # action() on a name with no matching form
├── AmbiguousActionError            # Several forms match and no method was given
├── UnsupportedContentTypeError     # Action body serialization not available
├── ActionValidationError           # Form schema rejected the submitted data
└── FollowError                     # post_follow() got an unexpected status

Usage Guidelines:
----------------
1. Catch HttpError for any failed exchange; Problem adds the RFC 7807 fields.

2. Navigation errors are raised synchronously with respect to the chain being
   resolved. Check State.has_link() first when navigation is conditional.

3. Let httpx transport errors (ConnectError, TimeoutException) bubble up.
   Nothing is retried internally; layer retry_middleware for that.

4. Validator.validate() returns issues instead of raising. Only chain hops that
   validate against a discovered form raise ActionValidationError.
"""

from typing import Any

import httpx


class HateoasError(Exception):
    """Base exception for all hypermedia client errors."""

    pass


class HttpError(HateoasError):
    """Raised when the server responds with a non-2xx status."""

    def __init__(self, response: httpx.Response, message: str | None = None) -> None:
        """
        Initialize HttpError.

        Args:
            response: The raw response that triggered the error.
            message: Optional message. Defaults to "HTTP error {status}".
        """
        super().__init__(message or f"HTTP error {response.status_code}")
        self.response = response
        self.status = response.status_code


class Problem(HttpError):
    """Raised for application/problem+json error responses (RFC 7807)."""

    def __init__(self, response: httpx.Response, body: dict[str, Any]) -> None:
        """
        Initialize Problem.

        Args:
            response: The raw response that triggered the error.
            body: Parsed problem document. ``type`` defaults to ``about:blank``
                and ``status`` to the response status.
        """
        self.body: dict[str, Any] = {
            "type": "about:blank",
            "status": response.status_code,
            **body,
        }
        title = self.body.get("title") or response.reason_phrase
        super().__init__(response, f"HTTP Error {response.status_code}: {title}")
        self.type: str = self.body["type"]
        self.title: str | None = self.body.get("title")
        self.detail: str | None = self.body.get("detail")
        self.instance: str | None = self.body.get("instance")


class RelationNotFoundError(HateoasError):
    """Raised when a relation is not present on a State."""

    def __init__(self, rel: str, uri: str | None = None) -> None:
        """
        Initialize RelationNotFoundError.

        Args:
            rel: The relation that was requested.
            uri: URI of the State that was searched.
        """
        location = f" on {uri}" if uri else ""
        super().__init__(f"Relation '{rel}' not found{location}")
        self.rel = rel
        self.uri = uri


class ActionNotFoundError(HateoasError):
    """Raised when no form matches the requested action."""

    def __init__(self, name: str | None, uri: str | None = None) -> None:
        if name is None:
            message = "This State does not define any actions"
        else:
            message = f"Action '{name}' not found"
        if uri:
            message += f" on {uri}"
        super().__init__(message)
        self.name = name
        self.uri = uri


class AmbiguousActionError(HateoasError):
    """Raised when several forms match an action name and no method was given."""

    def __init__(self, name: str | None, methods: list[str]) -> None:
        super().__init__(
            f"Action '{name}' is ambiguous between methods {', '.join(methods)}; "
            "pass a method to choose one"
        )
        self.name = name
        self.methods = methods


class UnsupportedContentTypeError(HateoasError):
    """Raised when an action body cannot be serialized for its content type."""

    def __init__(self, content_type: str) -> None:
        super().__init__(f"Serializing mimetype {content_type} is not yet supported in actions")
        self.content_type = content_type


class ActionValidationError(HateoasError):
    """Raised when form data fails the form schema on a navigation hop."""

    def __init__(self, issues: list[Any]) -> None:
        """
        Initialize ActionValidationError.

        Args:
            issues: ValidationIssue list returned by the validator.
        """
        summary = "; ".join(str(issue) for issue in issues)
        super().__init__(f"Invalid form data: {summary}")
        self.issues = issues


class FollowError(HateoasError):
    """Raised when post_follow() cannot determine the next resource."""

    def __init__(self, status: int, message: str | None = None) -> None:
        super().__init__(
            message or f"Did not receive a 201, 204 or 205 status code, received {status}"
        )
        self.status = status
