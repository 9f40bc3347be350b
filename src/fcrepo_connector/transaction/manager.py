"""Transaction manager for repository-side transactions.

The repository exposes transactions through a small REST protocol:

- ``POST <base>/fcr:tx`` answers 201 with ``Location: <base>/<session id>``
- ``POST <base>/<session id>/fcr:tx/fcr:commit`` answers 204
- ``POST <base>/<session id>/fcr:tx/fcr:rollback`` answers 204

:class:`TransactionManager` drives that protocol behind a local
begin/commit/rollback interface. The active transaction is bound to the
current :mod:`contextvars` context, so a unit of work spanning several
producer calls shares one repository session while concurrent tasks
never see each other's transaction.

Examples:
    >>> manager = TransactionManager(base_url="http://localhost:8080/rest")
    >>> async with manager.transaction() as status:
    ...     await producer.process(request)
"""

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urljoin

import httpx

from ..constants import COMMIT, LOCATION, ROLLBACK, TRANSACTION
from ..exceptions import (
    CannotCreateTransactionError,
    ConfigurationError,
    IllegalTransactionStateError,
    NestedTransactionNotSupportedError,
    TransactionSystemError,
    UnexpectedRollbackError,
)
from ..utils.http.auth import auth_host_from_base_url
from ..utils.http.client_manager import http_client_manager

logger = logging.getLogger(__name__)


class Propagation(str, Enum):
    """How a request for a transaction relates to an active one."""

    REQUIRED = "required"  # join the active transaction, or begin one
    NESTED = "nested"  # not supported by the repository


class TransactionObject:
    """A repository transaction.

    Created untied, with no session id. The session id is set by
    :meth:`TransactionManager.begin` and cleared when the transaction is
    committed or rolled back, whatever the outcome.
    """

    def __init__(self) -> None:
        self.session_id: Optional[str] = None
        self.rollback_only = False

    @property
    def is_active(self) -> bool:
        return self.session_id is not None

    def __repr__(self) -> str:
        return (
            f"TransactionObject(session_id={self.session_id!r}, "
            f"rollback_only={self.rollback_only})"
        )


@dataclass
class TransactionStatus:
    """Handle for one participant in a transaction.

    :param transaction: The underlying transaction object
    :param new_transaction: True for the participant that began the
        transaction and is responsible for completing it
    :param completed: Set once commit or rollback has run
    """

    transaction: TransactionObject
    new_transaction: bool
    completed: bool = False
    _previous: Optional[TransactionObject] = field(
        default=None, repr=False, compare=False
    )
    _bound: bool = field(default=False, repr=False, compare=False)

    @property
    def session_id(self) -> Optional[str]:
        return self.transaction.session_id

    def set_rollback_only(self) -> None:
        self.transaction.rollback_only = True


def describe_transaction_error(response: httpx.Response) -> str:
    """Build a diagnostic message for a failed commit or rollback.

    :param response: The repository response
    :type response: httpx.Response
    :return: Human-readable diagnostic
    :rtype: str
    """
    status = response.status_code
    if status == 404:
        return "No transaction found with the provided ID."
    if status == 410:
        return "The transaction had already expired."
    if status == 409:
        body = None
        try:
            body = "\n".join(response.text.splitlines())
        except (httpx.ResponseNotRead, httpx.StreamError, UnicodeDecodeError):
            logger.debug("Could not read transaction conflict message")
        return "Error completing your request: " + (
            body if body is not None else "<message unavailable>"
        )
    return f"Response code {status} was completely unexpected."


class TransactionManager:
    """Begin, commit and roll back repository transactions.

    Nested transactions are not allowed: each transaction object holds
    at most one repository session.

    :param base_url: Repository base URL, including the scheme
    :type base_url: Optional[str]
    :param auth_username: Username for basic authentication
    :type auth_username: Optional[str]
    :param auth_password: Password for basic authentication
    :type auth_password: Optional[str]
    :param auth_host: Host the credentials are scoped to; derived from
        ``base_url`` when not set
    :type auth_host: Optional[str]
    :param client: Shared HTTP client; one is obtained from the client
        manager on first use when not given
    :type client: Optional[httpx.AsyncClient]
    :param timeout: Timeout for the managed client
    :type timeout: Optional[httpx.Timeout]
    :param transport: Transport for the managed client
    :type transport: Optional[httpx.AsyncBaseTransport]
    """

    nested_transaction_allowed = False

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_username: Optional[str] = None,
        auth_password: Optional[str] = None,
        auth_host: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else base_url
        self.auth_username = auth_username
        self.auth_password = auth_password
        self._auth_host = auth_host
        self._client = client
        self._timeout = timeout
        self._transport = transport
        self._current: ContextVar[Optional[TransactionObject]] = ContextVar(
            f"fcrepo_transaction_{id(self):x}", default=None
        )

    @property
    def auth_host(self) -> Optional[str]:
        """Host the credentials apply to, explicit or derived from the base URL."""
        if self._auth_host is not None:
            return self._auth_host
        return auth_host_from_base_url(self.base_url)

    @auth_host.setter
    def auth_host(self, value: Optional[str]) -> None:
        self._auth_host = value

    def _client_kwargs(self) -> Dict[str, Any]:
        if self._transport is None:
            return {}
        return {"transport": self._transport}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = await http_client_manager.get_client(
                timeout=self._timeout,
                username=self.auth_username,
                password=self.auth_password,
                auth_host=self.auth_host,
                **self._client_kwargs(),
            )
        return self._client

    def _require_base_url(self) -> str:
        if not self.base_url:
            raise ConfigurationError(
                "Transaction manager requires a base URL", setting="base_url"
            )
        return self.base_url

    def current_transaction(self) -> Optional[TransactionObject]:
        """Get the transaction bound to the current context, if active."""
        tx = self._current.get()
        if tx is not None and tx.is_active:
            return tx
        return None

    async def get_transaction(
        self, propagation: Propagation = Propagation.REQUIRED
    ) -> TransactionStatus:
        """Join the active transaction or begin a new one.

        :param propagation: Propagation behaviour
        :type propagation: Propagation
        :return: Status handle for this participant
        :rtype: TransactionStatus
        :raises NestedTransactionNotSupportedError: For a nested request
            while a transaction is active
        :raises CannotCreateTransactionError: If a new transaction cannot
            be started
        """
        existing = self.current_transaction()
        if existing is not None:
            if propagation is Propagation.NESTED and not self.nested_transaction_allowed:
                raise NestedTransactionNotSupportedError(
                    "Transaction manager does not allow nested transactions"
                )
            logger.debug("Participating in transaction %s", existing.session_id)
            return TransactionStatus(transaction=existing, new_transaction=False)

        tx = TransactionObject()
        await self.begin(tx)
        previous = self._current.get()
        self._current.set(tx)
        return TransactionStatus(
            transaction=tx, new_transaction=True, _previous=previous, _bound=True
        )

    async def begin(self, tx: TransactionObject) -> None:
        """Start a repository session for an untied transaction.

        Does nothing when the transaction already has a session id.

        :param tx: The transaction to begin
        :type tx: TransactionObject
        :raises CannotCreateTransactionError: On any status other than 201,
            a missing Location header, or a transport error
        """
        if tx.session_id is not None:
            return

        base_url = self._require_base_url()
        client = await self._get_client()
        try:
            response = await client.post(base_url + TRANSACTION)
        except httpx.HTTPError as e:
            logger.debug("Transaction begin failed: %s", e)
            raise CannotCreateTransactionError(
                "Invalid response while creating transaction"
            ) from e

        location = response.headers.get(LOCATION)
        if response.status_code != 201 or location is None:
            logger.debug("Got bad response %s", response.status_code)
            raise CannotCreateTransactionError(
                "Invalid response while creating transaction",
                status_code=response.status_code,
            )

        tx.session_id = self._session_id_from_location(base_url, location)
        logger.debug("Began transaction %s", tx.session_id)

    @staticmethod
    def _session_id_from_location(base_url: str, location: str) -> str:
        prefix = base_url + "/"
        absolute = urljoin(prefix, location)
        session_id = absolute[len(prefix) :] if absolute.startswith(prefix) else ""
        if not session_id:
            raise CannotCreateTransactionError(
                f"Transaction location {location} is not below {base_url}",
                status_code=201,
            )
        return session_id

    async def commit(self, status: TransactionStatus) -> None:
        """Commit a transaction.

        Participants that did not begin the transaction leave the commit
        to the outer unit of work. A transaction marked rollback-only is
        rolled back instead and :class:`UnexpectedRollbackError` raised.

        :param status: Status handle returned by :meth:`get_transaction`
        :type status: TransactionStatus
        :raises TransactionSystemError: If the repository does not answer 204
        """
        self._check_not_completed(status)
        if not status.new_transaction:
            status.completed = True
            return

        if status.transaction.rollback_only:
            logger.debug(
                "Transaction %s is rollback-only, rolling back",
                status.transaction.session_id,
            )
            await self.rollback(status)
            raise UnexpectedRollbackError(
                "Transaction rolled back because it has been marked as rollback-only"
            )

        try:
            await self._complete(status.transaction, COMMIT, "commit")
        finally:
            self._finish(status)

    async def rollback(self, status: TransactionStatus) -> None:
        """Roll back a transaction.

        Participants only mark the shared transaction rollback-only; the
        outer unit of work performs the remote rollback.

        :param status: Status handle returned by :meth:`get_transaction`
        :type status: TransactionStatus
        :raises TransactionSystemError: If the repository does not answer 204
        """
        self._check_not_completed(status)
        if not status.new_transaction:
            status.set_rollback_only()
            status.completed = True
            return

        try:
            await self._complete(status.transaction, ROLLBACK, "rollback")
        finally:
            self._finish(status)

    async def _complete(self, tx: TransactionObject, suffix: str, action: str) -> None:
        try:
            base_url = self._require_base_url()
            client = await self._get_client()
            url = f"{base_url}/{tx.session_id}{suffix}"
            try:
                response = await client.post(url)
            except httpx.HTTPError as e:
                logger.debug("Transaction %s failed: %s", action, e)
                raise TransactionSystemError(
                    f"Could not {action} fcrepo transaction"
                ) from e

            if response.status_code != 204:
                diagnostic = describe_transaction_error(response)
                logger.debug("Could not %s fcrepo transaction: %s", action, diagnostic)
                raise TransactionSystemError(
                    f"Could not {action} fcrepo transaction",
                    diagnostic=diagnostic,
                    status_code=response.status_code,
                )
            logger.debug("Completed %s of transaction %s", action, tx.session_id)
        finally:
            tx.session_id = None

    @staticmethod
    def _check_not_completed(status: TransactionStatus) -> None:
        if status.completed:
            raise IllegalTransactionStateError(
                "Transaction is already completed - do not call commit or "
                "rollback more than once per transaction"
            )

    def _finish(self, status: TransactionStatus) -> None:
        # Restores the binding in the current context, which may be a child
        # task of the one that began the transaction
        status.completed = True
        if status._bound:
            self._current.set(status._previous)
            status._previous = None
            status._bound = False

    @asynccontextmanager
    async def transaction(
        self, propagation: Propagation = Propagation.REQUIRED
    ) -> AsyncIterator[TransactionStatus]:
        """Run a unit of work inside a transaction.

        Commits when the block exits normally; rolls back and re-raises
        when it raises. A failing rollback propagates with the original
        error as its context.

        :param propagation: Propagation behaviour
        :type propagation: Propagation
        :return: Async context manager yielding the status handle
        """
        status = await self.get_transaction(propagation)
        try:
            yield status
        except BaseException:
            if not status.completed:
                await self.rollback(status)
            raise
        if not status.completed:
            await self.commit(status)


__all__ = [
    "Propagation",
    "TransactionObject",
    "TransactionStatus",
    "TransactionManager",
    "describe_transaction_error",
]
