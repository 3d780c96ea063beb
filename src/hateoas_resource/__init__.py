"""hateoas-resource - client runtime for hypermedia-driven REST APIs."""

from .action import Action
from .client import ClientInstance, create_client
from .config import ClientConfig, load_config
from .links import Link, Links
from .resource import Resource, ResourceRelation, StateResource
from .state import State
from .utils.exceptions import HateoasError, HttpError, Problem, RelationNotFoundError

__version__ = "0.1.0"
__all__ = [
    "Action",
    "ClientConfig",
    "ClientInstance",
    "HateoasError",
    "HttpError",
    "Link",
    "Links",
    "Problem",
    "RelationNotFoundError",
    "Resource",
    "ResourceRelation",
    "State",
    "StateResource",
    "create_client",
    "load_config",
]
