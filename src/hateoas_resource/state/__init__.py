"""State - immutable snapshots and the per-format factories that build them."""

from .base import State, StateFactory, select_collection
from .binary import BinaryStateFactory, StreamStateFactory
from .collection_json import CollectionJsonStateFactory
from .hal import HalState, HalStateFactory, build_hal_state
from .html import HtmlStateFactory
from .jsonapi import JsonApiStateFactory
from .siren import SirenStateFactory
from .text import TextStateFactory, build_head_state

__all__ = [
    "State",
    "StateFactory",
    "select_collection",
    "HalState",
    "HalStateFactory",
    "build_hal_state",
    "SirenStateFactory",
    "JsonApiStateFactory",
    "CollectionJsonStateFactory",
    "HtmlStateFactory",
    "BinaryStateFactory",
    "StreamStateFactory",
    "TextStateFactory",
    "build_head_state",
]
