"""HTTP utilities public API (barrel module).

This package provides:
- Shared HTTP client manager and helpers
- Host-scoped preemptive basic authentication
- Link header parsing and construction
- Replayable response body cache

Recommended import pattern for consumers:
    from fcrepo_connector.utils.http import FcrepoLink, http_client_manager
"""

from .auth import ScopedBasicAuth, auth_host_from_base_url, build_auth
from .client_manager import (
    HTTPClientManager,
    create_limits,
    create_timeout,
    http_client_manager,
)
from .link import FcrepoLink, links_with_rel
from .stream_cache import StreamCache

__all__ = [
    "HTTPClientManager",
    "http_client_manager",
    "create_timeout",
    "create_limits",
    "ScopedBasicAuth",
    "auth_host_from_base_url",
    "build_auth",
    "FcrepoLink",
    "links_with_rel",
    "StreamCache",
]
