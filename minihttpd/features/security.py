"""
Request validation and file path containment.

This module provides the safety checks applied before a request reaches a
route behaviour:
- Required header validation per route
- File name sanitisation for the /files/ routes
- Canonicalisation and root-containment of storage paths
"""

"""
Copyright 2025 Chris Bunting
File: security.py | Purpose: Request validation and path containment
@author Chris Bunting | @version 2.0.0

CHANGELOG:
2026-10-19 - Chris Bunting: Replace environ checks with per-route request validation
2026-10-19 - Chris Bunting: Add storage root containment for file routes
"""

from pathlib import Path
from typing import Optional, Union

from ..core.http_parser import Request
from ..core.router import Route, RouteMatch

MAX_NAME_SEGMENT = 255


class PathOutsideRootError(Exception):
    """A file name resolves to a location outside the storage root."""

    status_code = 403


def validate_request(request: Request, match: RouteMatch) -> Optional[str]:
    """Validate a routed request.

    Args:
        request: Parsed request
        match: Route the request resolved to

    Returns:
        Error message if validation fails, None if request is valid
    """
    if match.route is Route.USER_AGENT and request.header("User-Agent") is None:
        return "Missing User-Agent header"

    if match.route is Route.FILES:
        name = match.remainder
        # Check for null bytes and other suspicious characters
        if "\0" in name or "%00" in name.lower():
            return "Invalid path character"
        for part in name.split("/"):
            if len(part) > MAX_NAME_SEGMENT:
                return "Path segment too long"

        if request.method == "POST":
            try:
                content_length = request.content_length
            except ValueError:
                return "Invalid content length header"
            if content_length is None:
                return "Missing content length"
            if content_length < 0:
                return "Invalid content length"

    return None


def resolve_within_root(root: Union[str, Path], name: str) -> Path:
    """Resolve a file name against the storage root.

    Args:
        root: Storage root directory
        name: Untrusted file name taken from the request path

    Returns:
        Canonical absolute path strictly inside ``root``

    Raises:
        PathOutsideRootError: If the name is absolute, escapes the root
            through ``..`` or a symlink, or names the root itself
    """
    root_path = Path(root).resolve()
    # an absolute name replaces root_path entirely and fails the check below
    candidate = (root_path / name).resolve()

    try:
        relative = candidate.relative_to(root_path)
    except ValueError:
        raise PathOutsideRootError(f"{name!r} resolves outside the storage root")

    if relative == Path("."):
        raise PathOutsideRootError(f"{name!r} resolves to the storage root itself")

    return candidate
