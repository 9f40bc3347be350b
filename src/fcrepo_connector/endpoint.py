"""Repository endpoint: settings, shared client and transaction manager.

An endpoint is the long-lived object the host keeps per configured
repository. It owns the shared HTTP client and the transaction manager
and hands out producers bound to them.

Credentials are always scoped to one host: the configured ``auth_host``,
or the host of the base URL. The producer client and the transaction
manager use the same scope, and with managed clients the same pooled
client, whichever is requested first.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .config.settings import EndpointSettings
from .producer.producer import FcrepoProducer
from .transaction.manager import TransactionManager
from .utils.http.auth import auth_host_from_base_url
from .utils.http.client_manager import create_timeout, http_client_manager
from .utils.security import setup_secure_logging

logger = logging.getLogger(__name__)


class FcrepoEndpoint:
    """A configured repository endpoint.

    :param settings: Endpoint configuration; loaded from the environment
        when not given
    :type settings: Optional[EndpointSettings]
    :param client: HTTP client to use instead of a managed one
    :type client: Optional[httpx.AsyncClient]
    :param transaction_manager: Transaction manager to use instead of one
        built from the endpoint settings
    :type transaction_manager: Optional[TransactionManager]
    :param transport: Transport for managed clients, e.g. a proxy or mock
        transport
    :type transport: Optional[httpx.AsyncBaseTransport]
    """

    def __init__(
        self,
        settings: Optional[EndpointSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        transaction_manager: Optional[TransactionManager] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or EndpointSettings()
        self._client = client
        self._transaction_manager = transaction_manager
        self._transport = transport

    @property
    def base_url_with_scheme(self) -> str:
        return self.settings.base_url_with_scheme

    @property
    def auth_host(self) -> Optional[str]:
        """Host the credentials apply to, explicit or derived from the base URL."""
        if self.settings.auth_host is not None:
            return self.settings.auth_host
        return auth_host_from_base_url(self.base_url_with_scheme)

    def _timeout(self) -> httpx.Timeout:
        return create_timeout(
            connect=self.settings.connect_timeout, read=self.settings.read_timeout
        )

    def _client_kwargs(self) -> Dict[str, Any]:
        if self._transport is None:
            return {}
        return {"transport": self._transport}

    def configure_logging(self) -> None:
        """Install sanitized logging at the configured ``log_level``.

        Call once at host startup; later calls are ignored.
        """
        setup_secure_logging(self.settings.log_level)

    async def get_client(self) -> httpx.AsyncClient:
        """Get the shared client for this endpoint.

        :return: The injected client, or a managed client carrying the
            endpoint credentials scoped to :attr:`auth_host`
        :rtype: httpx.AsyncClient
        """
        if self._client is None:
            self._client = await http_client_manager.get_client(
                timeout=self._timeout(),
                username=self.settings.auth_username,
                password=self.settings.password,
                auth_host=self.auth_host,
                **self._client_kwargs(),
            )
        return self._client

    def get_transaction_manager(self) -> TransactionManager:
        """Get the configured transaction manager, building one if needed."""
        if self._transaction_manager is None:
            self._transaction_manager = TransactionManager(
                base_url=self.base_url_with_scheme,
                auth_username=self.settings.auth_username,
                auth_password=self.settings.password,
                auth_host=self.auth_host,
                client=self._client,
                timeout=self._timeout(),
                **self._client_kwargs(),
            )
            logger.debug(
                "Created transaction manager for %s", self.base_url_with_scheme
            )
        return self._transaction_manager

    async def create_producer(self) -> FcrepoProducer:
        """Create a producer bound to this endpoint."""
        client = await self.get_client()
        return FcrepoProducer(
            self.settings,
            client,
            transaction_manager=self.get_transaction_manager(),
        )

    async def aclose(self) -> None:
        """Close every managed HTTP client.

        Managed clients are shared between endpoints with the same
        settings, so call this at host shutdown.
        """
        await http_client_manager.close_all()
        self._client = None
