"""Media utilities public API (re-exports)."""

from .negotiator import (
    build_prefer_header,
    expand_prefer_token,
    resolve_accept,
    resolve_content_type,
    resolve_method,
)

__all__ = [
    "resolve_method",
    "resolve_content_type",
    "resolve_accept",
    "expand_prefer_token",
    "build_prefer_header",
]
