"""
Request validation, path containment and metrics
"""

from .security import PathOutsideRootError, resolve_within_root, validate_request

__all__ = ["PathOutsideRootError", "resolve_within_root", "validate_request"]
