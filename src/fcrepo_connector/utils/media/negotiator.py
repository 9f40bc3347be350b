"""Content negotiation helpers for repository requests.

This module resolves the HTTP method, Content-Type, Accept and Prefer
values for a repository request from three sources, in order of
precedence: the endpoint settings, the individual request, and the
connector defaults.
"""

import logging
from typing import List, Mapping, Optional

from ...constants import DEFAULT_CONTENT_TYPE, PREFER_PROPERTIES, WILDCARD_ACCEPT

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def resolve_method(method: Optional[str]) -> str:
    """Determine the HTTP method for a request.

    A request body never implies POST; without an explicit method the
    request is a GET, so that the repository is not changed by accident.

    :param method: Method override from the request
    :type method: Optional[str]
    :return: Uppercased method name
    :rtype: str
    """
    if method is None:
        return "GET"
    return method.upper()


def resolve_content_type(
    endpoint_content_type: Optional[str], request_content_type: Optional[str]
) -> Optional[str]:
    """Determine the Content-Type for a request body.

    :param endpoint_content_type: Content type configured on the endpoint
    :type endpoint_content_type: Optional[str]
    :param request_content_type: Content type carried by the request
    :type request_content_type: Optional[str]
    :return: Endpoint value, else request value, else None
    :rtype: Optional[str]
    """
    if not _blank(endpoint_content_type):
        return endpoint_content_type
    if not _blank(request_content_type):
        return request_content_type
    return None


def resolve_accept(
    endpoint_accept: Optional[str],
    request_accept: Optional[str],
    metadata: bool,
) -> str:
    """Determine the Accept value for a GET request.

    Order of preference: the endpoint accept value, the request Accept
    header, ``*/*`` when the endpoint is not in metadata mode, and finally
    ``application/rdf+xml``.

    :param endpoint_accept: Accept value configured on the endpoint
    :type endpoint_accept: Optional[str]
    :param request_accept: Accept header carried by the request
    :type request_accept: Optional[str]
    :param metadata: Whether the endpoint operates on resource descriptions
    :type metadata: bool
    :return: The Accept header value
    :rtype: str
    """
    if not _blank(endpoint_accept):
        return endpoint_accept
    if not _blank(request_accept):
        return request_accept
    if not metadata:
        return WILDCARD_ACCEPT
    return DEFAULT_CONTENT_TYPE


def expand_prefer_token(
    token: str, table: Mapping[str, str] = PREFER_PROPERTIES
) -> str:
    """Expand a Prefer short name into its full URI.

    Unknown tokens, including full URIs, are returned unchanged.
    """
    return table.get(token) or token


def _expand_tokens(tokens: Optional[str]) -> List[str]:
    if _blank(tokens):
        return []
    return [expand_prefer_token(t) for t in tokens.split()]


def build_prefer_header(
    include: Optional[str], omit: Optional[str]
) -> Optional[str]:
    """Build a Prefer header from include/omit preference tokens.

    .. example::
       >>> build_prefer_header("PreferMembership", None)
       'return=representation; include="http://www.w3.org/ns/ldp#PreferMembership"'

    :param include: Whitespace separated include tokens
    :type include: Optional[str]
    :param omit: Whitespace separated omit tokens
    :type omit: Optional[str]
    :return: Prefer header value, or None when neither is configured
    :rtype: Optional[str]
    """
    include_uris = _expand_tokens(include)
    omit_uris = _expand_tokens(omit)
    if not include_uris and not omit_uris:
        return None
    parts = ["return=representation"]
    if include_uris:
        parts.append('include="' + " ".join(include_uris) + '"')
    if omit_uris:
        parts.append('omit="' + " ".join(omit_uris) + '"')
    prefer = "; ".join(parts)
    logger.debug("Built Prefer header: %s", prefer)
    return prefer


__all__ = [
    "resolve_method",
    "resolve_content_type",
    "resolve_accept",
    "expand_prefer_token",
    "build_prefer_header",
]
