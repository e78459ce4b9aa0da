"""
Path-based routing for the request pipeline.

Matching is first-match-wins over a fixed table of exact and prefix routes.
Methods only matter for the file routes, which the request handler checks.
"""

import enum
from dataclasses import dataclass

ECHO_PREFIX = "/echo/"
FILES_PREFIX = "/files/"


class MalformedPathError(Exception):
    """The path matched a route but carries no usable remainder."""

    status_code = 400


class Route(enum.Enum):
    ROOT = "root"
    USER_AGENT = "user-agent"
    ECHO = "echo"
    FILES = "files"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class RouteMatch:
    """Which route applies, plus the path text captured after its prefix."""

    route: Route
    remainder: str = ""


def match_route(path: str) -> RouteMatch:
    """Map a request path to a RouteMatch.

    Args:
        path: Query-free request path

    Returns:
        The first matching route; ``Route.NOT_FOUND`` when none applies

    Raises:
        MalformedPathError: For ``/files/`` with an empty file name
    """
    if path == "/":
        return RouteMatch(Route.ROOT)
    if path == "/user-agent":
        return RouteMatch(Route.USER_AGENT)
    if path.startswith(ECHO_PREFIX):
        return RouteMatch(Route.ECHO, path[len(ECHO_PREFIX):])
    if path.startswith(FILES_PREFIX):
        name = path[len(FILES_PREFIX):]
        if not name:
            raise MalformedPathError("Missing file name")
        return RouteMatch(Route.FILES, name)
    return RouteMatch(Route.NOT_FOUND)
