"""Links - relation records and their collection."""

from .header import parse_header_links, parse_link_header
from .link import Link
from .links import Links

__all__ = ["Link", "Links", "parse_link_header", "parse_header_links"]
