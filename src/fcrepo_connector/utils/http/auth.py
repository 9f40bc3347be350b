"""Preemptive basic authentication scoped to a single repository host."""

import logging
import re
from typing import Generator, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"^https?://", re.I)
_DEFAULT_PORTS = {"http": 80, "https": 443}


def auth_host_from_base_url(base_url: Optional[str]) -> Optional[str]:
    """Derive the authentication host from a repository base URL.

    Strips the ``http(s)://`` scheme and every path segment, leaving
    ``host[:port]``.

    :param base_url: Repository base URL
    :type base_url: Optional[str]
    :return: Host with optional port, or None when no base URL is set
    :rtype: Optional[str]
    """
    if base_url is None:
        return None
    no_scheme = _SCHEME.sub("", base_url)
    while "/" in no_scheme:
        no_scheme = no_scheme[: no_scheme.rindex("/")]
    return no_scheme


def _split_host(auth_host: str) -> Tuple[str, Optional[int]]:
    host = _SCHEME.sub("", auth_host).split("/", 1)[0]
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit():
        return name.lower(), int(port)
    return host.lower(), None


class ScopedBasicAuth(httpx.Auth):
    """Basic credentials sent preemptively, but only to one host.

    Requests to any other host are sent without an Authorization header.

    :param username: Basic auth username
    :type username: str
    :param password: Basic auth password
    :type password: Optional[str]
    :param host: ``host[:port]`` the credentials are scoped to
    :type host: str
    """

    def __init__(self, username: str, password: Optional[str], host: str):
        self._basic = httpx.BasicAuth(username, password or "")
        self.username = username
        self.host = host
        self._scope = _split_host(host)

    def matches(self, url: httpx.URL) -> bool:
        """Check whether a URL falls inside the credential scope."""
        host, port = self._scope
        if (url.host or "").lower() != host:
            return False
        if port is None:
            return True
        request_port = url.port or _DEFAULT_PORTS.get(url.scheme)
        return request_port == port

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        if self.matches(request.url):
            yield from self._basic.auth_flow(request)
        else:
            logger.debug("No credentials in scope for %s", request.url.host)
            yield request


def build_auth(
    username: Optional[str], password: Optional[str], host: Optional[str]
) -> Optional[ScopedBasicAuth]:
    """Build scoped credentials when a username and a host are configured.

    Credentials are never sent without a host to scope them to.

    :return: Auth handler, or None without a username or host
    :rtype: Optional[ScopedBasicAuth]
    """
    if username is None or not host:
        return None
    return ScopedBasicAuth(username, password, host)


__all__ = ["ScopedBasicAuth", "auth_host_from_base_url", "build_auth"]
