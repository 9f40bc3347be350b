"""Producer that executes repository operations for the host.

The producer resolves negotiation values, builds the request (possibly
after a metadata-discovery HEAD), sends it through the endpoint's shared
client and normalizes the response into a
:class:`~fcrepo_connector.models.FcrepoResponse`. Transacted requests run
inside the endpoint's transaction manager with the session id threaded
into the request URL.

Failure policy is controlled by ``throw_exception_on_failure``:

- enabled: non-success responses raise :class:`HttpOperationFailedError`
  and transport errors propagate
- disabled: both are returned as a ``SUPPRESSED`` response
"""

import logging
from typing import Optional, Union

import httpx

from ..config.settings import EndpointSettings
from ..constants import CONTENT_TYPE
from ..exceptions import HttpOperationFailedError, TransactionSystemError
from ..models.messages import FcrepoRequest, FcrepoResponse, ResponseOutcome
from ..transaction.manager import TransactionManager
from ..utils.http.stream_cache import StreamCache
from ..utils.media import resolve_accept, resolve_content_type, resolve_method
from ..utils.security import sanitize_headers
from .builder import RequestBuilder

logger = logging.getLogger(__name__)


def is_valid_response(status_code: int) -> bool:
    """Check for a normal response code, anything in (0, 300)."""
    return 0 < status_code < 300


async def read_body_text(response: httpx.Response) -> Optional[str]:
    """Read a response body as text, lines joined with ``\\n``.

    :return: The body text, or None when it cannot be read
    :rtype: Optional[str]
    """
    try:
        await response.aread()
        return "\n".join(response.text.splitlines())
    except (httpx.HTTPError, httpx.StreamError) as e:
        logger.debug("Could not read response body: %s", e)
        return None


class FcrepoProducer:
    """Execute :class:`FcrepoRequest` operations against the repository.

    :param settings: Endpoint configuration
    :type settings: EndpointSettings
    :param client: Shared HTTP client
    :type client: httpx.AsyncClient
    :param transaction_manager: Manager used for transacted requests
    :type transaction_manager: Optional[TransactionManager]

    .. example::
       >>> producer = endpoint.create_producer()
       >>> response = await producer.process(FcrepoRequest(identifier="/foo"))
       >>> response.text()
    """

    def __init__(
        self,
        settings: EndpointSettings,
        client: httpx.AsyncClient,
        transaction_manager: Optional[TransactionManager] = None,
    ):
        self.settings = settings
        self.client = client
        self.transaction_manager = transaction_manager
        self.builder = RequestBuilder(settings, client)

    def _is_transacted(self, request: FcrepoRequest) -> bool:
        if request.transacted is not None:
            return request.transacted
        return self.settings.transacted

    async def process(self, request: FcrepoRequest) -> FcrepoResponse:
        """Process one repository operation.

        :param request: The request descriptor
        :type request: FcrepoRequest
        :return: The normalized response
        :rtype: FcrepoResponse
        :raises HttpOperationFailedError: On a non-success response when
            the endpoint throws on failure
        :raises httpx.RequestError: On a transport failure when the
            endpoint throws on failure
        :raises TransactionSystemError: When a transacted request fails
        :raises CannotCreateTransactionError: When a transaction cannot be
            started
        """
        if not self._is_transacted(request):
            return await self.do_request(request, None)

        if self.transaction_manager is None:
            raise TransactionSystemError(
                "Transacted request without a transaction manager"
            )
        async with self.transaction_manager.transaction() as status:
            try:
                return await self.do_request(request, status.session_id)
            except (httpx.HTTPError, HttpOperationFailedError) as e:
                raise TransactionSystemError(
                    "Error executing fcrepo request in transaction"
                ) from e

    async def do_request(
        self, request: FcrepoRequest, session_id: Optional[str]
    ) -> FcrepoResponse:
        """Build, send and interpret a single request.

        :param request: The request descriptor
        :type request: FcrepoRequest
        :param session_id: Active transaction session id, if any
        :type session_id: Optional[str]
        :return: The normalized response
        :rtype: FcrepoResponse
        """
        method = resolve_method(request.method)
        content_type = resolve_content_type(
            self.settings.content_type, request.content_type
        )
        accept = resolve_accept(
            self.settings.accept, request.accept, self.settings.metadata
        )
        url = self.builder.resolve_url(request, session_id)

        logger.debug("Request [%s] with method [%s]", url, method)

        try:
            http_request = await self.builder.build(
                method, url, request, content_type, accept
            )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "request is %s %s %s",
                    http_request.method,
                    http_request.url,
                    sanitize_headers(dict(http_request.headers)),
                )
            response = await self.client.send(http_request, stream=True)
            try:
                return await self._handle_response(http_request, response, request)
            finally:
                await response.aclose()
        except httpx.RequestError as e:
            if self.settings.throw_exception_on_failure:
                raise
            logger.debug("Suppressed transport failure for %s: %s", url, e)
            return FcrepoResponse(
                outcome=ResponseOutcome.SUPPRESSED, request_url=url, error=e
            )

    async def _handle_response(
        self,
        http_request: httpx.Request,
        response: httpx.Response,
        request: FcrepoRequest,
    ) -> FcrepoResponse:
        status_code = response.status_code
        content_type = response.headers.get(CONTENT_TYPE)
        request_url = str(http_request.url)

        if not is_valid_response(status_code):
            if self.settings.throw_exception_on_failure:
                raise HttpOperationFailedError(
                    request_url, status_code, await read_body_text(response)
                )
            logger.debug(
                "Suppressed failure response %s from %s", status_code, request_url
            )
            return FcrepoResponse(
                outcome=ResponseOutcome.SUPPRESSED,
                status_code=status_code,
                content_type=content_type,
                request_url=request_url,
            )

        body = None
        if http_request.method != "HEAD":
            body = await self._extract_body(response, request.disable_stream_cache)

        return FcrepoResponse(
            outcome=ResponseOutcome.SUCCESS,
            status_code=status_code,
            content_type=content_type,
            body=body,
            request_url=request_url,
        )

    async def _extract_body(
        self, response: httpx.Response, disable_stream_cache: bool
    ) -> Optional[Union[StreamCache, bytes]]:
        # The connection is released before the caller sees the body
        if disable_stream_cache:
            content = await response.aread()
            return content or None

        try:
            cache = await StreamCache.from_stream(
                response.aiter_bytes(), self.settings.stream_cache_threshold
            )
        except (httpx.RequestError, httpx.StreamError) as e:
            logger.error("Error extracting body from http response: %s", e)
            return None
        if cache.size == 0:
            cache.close()
            return None
        return cache


__all__ = ["FcrepoProducer", "is_valid_response", "read_body_text"]
