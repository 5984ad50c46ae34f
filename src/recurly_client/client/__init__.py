"""
Request/response runtime of the Recurly client: request building, response
classification and pagination.
"""

from .requests import RequestSpec, build_request, encode_query
from .response import Rate, LinkCursors, Response, classify, parse_link_header
from .pager import Pager, PagerOptions

__all__ = [
    "RequestSpec",
    "build_request",
    "encode_query",
    "Rate",
    "LinkCursors",
    "Response",
    "classify",
    "parse_link_header",
    "Pager",
    "PagerOptions",
]
