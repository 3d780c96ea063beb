"""Resources and navigation chains."""

from .base import BaseResource
from .options import RequestOptions, request_hash
from .relation import ResourceRelation
from .resource import Resource
from .state_resource import StateResource, resolve_hop

__all__ = [
    "BaseResource",
    "RequestOptions",
    "Resource",
    "ResourceRelation",
    "StateResource",
    "request_hash",
    "resolve_hop",
]
