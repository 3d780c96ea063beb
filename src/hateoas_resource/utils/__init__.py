"""Utility functions and exceptions."""

from .exceptions import (
    ActionNotFoundError,
    ActionValidationError,
    AmbiguousActionError,
    FollowError,
    HateoasError,
    HttpError,
    Problem,
    RelationNotFoundError,
    UnsupportedContentTypeError,
)

__all__ = [
    "HateoasError",
    "HttpError",
    "Problem",
    "RelationNotFoundError",
    "ActionNotFoundError",
    "AmbiguousActionError",
    "UnsupportedContentTypeError",
    "ActionValidationError",
    "FollowError",
]
