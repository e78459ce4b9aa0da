"""
Core server components
"""

from .http_parser import HTTPParser, Request, parse_request, read_request
from .response import Response
from .router import Route, RouteMatch, match_route
from .storage import FileStore
from .request_handler import RequestHandler
from .server_core import HTTPServer

# Expose public interface
__all__ = [
    "HTTPParser",
    "Request",
    "parse_request",
    "read_request",
    "Response",
    "Route",
    "RouteMatch",
    "match_route",
    "FileStore",
    "RequestHandler",
    "HTTPServer",
]
