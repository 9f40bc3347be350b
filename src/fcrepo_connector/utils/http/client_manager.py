"""HTTP client manager with connection pooling and lifecycle management.

This module provides a singleton HTTP client manager that handles
creation, caching, and lifecycle management of the shared clients used
by endpoints and transaction managers. Clients are reused across
concurrent requests; no per-request state is stored on them.

Redirects are never followed: metadata discovery and transaction
creation read the ``Location`` header of the original response.
"""

import asyncio
import hashlib
import logging
from typing import Any, Dict, Optional

import httpx

from .auth import build_auth

logger = logging.getLogger(__name__)


class HTTPClientManager:
    """Manages shared HTTP clients with connection pooling.

    Clients are cached by timeout, limits and credential scope so that
    every endpoint talking to the same repository with the same
    credentials shares one connection pool.
    """

    _instance: Optional["HTTPClientManager"] = None
    _lock = asyncio.Lock()

    def __new__(cls):
        """Ensure singleton pattern - only one instance exists.

        :return: The single instance of HTTPClientManager
        :rtype: HTTPClientManager
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the HTTP client manager.

        Sets up default timeout and connection limit configurations
        and internal storage for clients.
        """
        if not hasattr(self, "_initialized"):
            self._clients: Dict[str, httpx.AsyncClient] = {}
            self._default_timeout = httpx.Timeout(
                connect=5.0, read=30.0, write=10.0, pool=5.0
            )
            self._default_limits = httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20,
                keepalive_expiry=30.0,
            )
            self._initialized = True
            self._is_closing = False

    async def get_client(
        self,
        timeout: Optional[httpx.Timeout] = None,
        limits: Optional[httpx.Limits] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        auth_host: Optional[str] = None,
        **kwargs,
    ) -> httpx.AsyncClient:
        """Get or create an HTTP client for the given configuration.

        :param timeout: Optional custom timeout configuration
        :type timeout: Optional[httpx.Timeout]
        :param limits: Optional custom connection limits
        :type limits: Optional[httpx.Limits]
        :param username: Optional basic auth username
        :type username: Optional[str]
        :param password: Optional basic auth password
        :type password: Optional[str]
        :param auth_host: Host the credentials are scoped to
        :type auth_host: Optional[str]
        :param **kwargs: Additional client configuration options
        :return: Configured HTTP client instance
        :rtype: httpx.AsyncClient
        """

        def timeout_key(t: Optional[httpx.Timeout]):
            if not t:
                return None
            return (t.connect, t.read, t.write, t.pool)

        def limits_key(limits_obj: Optional[httpx.Limits]):
            if not limits_obj:
                return None
            return (
                limits_obj.max_keepalive_connections,
                limits_obj.max_connections,
                limits_obj.keepalive_expiry,
            )

        secret = None
        if username is not None:
            secret = hashlib.sha256((password or "").encode("utf-8")).hexdigest()[:12]
        cache_key = str(
            (
                timeout_key(timeout),
                limits_key(limits),
                username,
                secret,
                auth_host,
                tuple(sorted(kwargs.items())),
            )
        )

        if cache_key not in self._clients:
            async with self._lock:
                if cache_key not in self._clients:
                    client_config: Dict[str, Any] = {
                        "timeout": timeout or self._default_timeout,
                        "limits": limits or self._default_limits,
                        "follow_redirects": False,
                        **kwargs,
                    }
                    auth = build_auth(username, password, auth_host)
                    if auth is not None:
                        client_config["auth"] = auth
                    elif username is not None:
                        logger.warning(
                            "No auth host configured, sending requests without credentials"
                        )
                    self._clients[cache_key] = httpx.AsyncClient(**client_config)
                    logger.debug("Created new HTTP client for %s", cache_key)

        return self._clients[cache_key]

    async def close_all(self):
        """Close all managed HTTP clients."""
        if self._is_closing:
            logger.debug("Already closing HTTP clients, skipping duplicate call")
            return

        self._is_closing = True
        try:
            if not self._clients:
                logger.debug("No HTTP clients to close")
                return
            logger.info("Closing %d HTTP client(s)...", len(self._clients))
            for cache_key, client in list(self._clients.items()):
                try:
                    await client.aclose()
                    logger.debug("Closed managed HTTP client: %s", cache_key)
                except Exception as e:
                    logger.warning(
                        "Error closing managed HTTP client %s: %s",
                        cache_key,
                        e,
                    )
            self._clients.clear()
        finally:
            self._is_closing = False


http_client_manager = HTTPClientManager()


def create_timeout(
    connect: float = 5.0,
    read: float = 30.0,
    write: float = 10.0,
    pool: float = 5.0,
) -> httpx.Timeout:
    """Create a timeout configuration object.

    :param connect: Connection timeout in seconds
    :type connect: float
    :param read: Read timeout in seconds
    :type read: float
    :param write: Write timeout in seconds
    :type write: float
    :param pool: Pool timeout in seconds
    :type pool: float
    :return: Configured timeout object
    :rtype: httpx.Timeout
    """
    return httpx.Timeout(connect=connect, read=read, write=write, pool=pool)


def create_limits(
    max_keepalive_connections: int = 10,
    max_connections: int = 20,
    keepalive_expiry: float = 30.0,
) -> httpx.Limits:
    """Create a connection limits configuration object.

    :param max_keepalive_connections: Maximum number of keepalive connections
    :type max_keepalive_connections: int
    :param max_connections: Maximum total number of connections
    :type max_connections: int
    :param keepalive_expiry: Keepalive connection expiry time in seconds
    :type keepalive_expiry: float
    :return: Configured limits object
    :rtype: httpx.Limits
    """
    return httpx.Limits(
        max_keepalive_connections=max_keepalive_connections,
        max_connections=max_connections,
        keepalive_expiry=keepalive_expiry,
    )
