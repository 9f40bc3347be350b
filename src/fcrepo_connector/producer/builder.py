"""Request construction for repository operations.

This module turns a :class:`~fcrepo_connector.models.FcrepoRequest` into
a concrete ``httpx.Request``. It resolves the target URL, threads the
transaction session id into it, decides whether an operation targets
the resource itself or its description (the metadata URI discovered
through a HEAD request), and attaches negotiation headers and the body.
"""

import logging
from typing import Optional

import httpx

from ..config.settings import EndpointSettings
from ..constants import (
    ACCEPT,
    CONTENT_TYPE,
    DESCRIBED_BY,
    FIXITY,
    LINK,
    LOCATION,
    PREFER,
    SPARQL_UPDATE,
)
from ..models.messages import FcrepoRequest
from ..utils.http.link import links_with_rel
from ..utils.media import build_prefer_header

logger = logging.getLogger(__name__)

# Methods whose requests enclose an entity
ENTITY_METHODS = frozenset({"PUT", "POST", "PATCH"})


class RequestBuilder:
    """Build repository requests for one endpoint.

    :param settings: Endpoint configuration
    :type settings: EndpointSettings
    :param client: Shared HTTP client, also used for metadata discovery
    :type client: httpx.AsyncClient
    """

    def __init__(self, settings: EndpointSettings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    def resolve_url(self, request: FcrepoRequest, session_id: Optional[str] = None) -> str:
        """Resolve the raw resource URL for a request.

        An explicit URI wins. Otherwise the URL is the request base URL
        (or the endpoint base URL), then ``/<session id>`` inside a
        transaction, then the identifier.

        :param request: The request descriptor
        :type request: FcrepoRequest
        :param session_id: Active transaction session id
        :type session_id: Optional[str]
        :return: Raw resource URL
        :rtype: str
        """
        if request.uri:
            return request.uri

        url = request.base_url or self.settings.base_url_with_scheme
        if session_id is not None:
            url += "/" + session_id
        return url + request.identifier

    async def get_metadata_uri(self, url: str) -> str:
        """Discover the description of a resource with a HEAD request.

        A ``Location`` header wins; otherwise a single ``describedby``
        Link is used; otherwise the resource URL itself. Transport errors
        and malformed Link headers propagate.

        :param url: Raw resource URL
        :type url: str
        :return: Metadata URI
        :rtype: str
        """
        response = await self.client.head(url)
        location = response.headers.get(LOCATION)
        if location is not None:
            return location

        links = links_with_rel(response.headers.get_list(LINK), DESCRIBED_BY)
        if len(links) == 1:
            logger.debug("Resource %s is described by %s", url, links[0])
            return links[0]
        return url

    async def get_target_uri(self, method: str, url: str) -> str:
        """Get the URI a method operates on.

        :param method: Resolved HTTP method
        :type method: str
        :param url: Raw resource URL
        :type url: str
        :return: Target URI
        :rtype: str
        """
        if method == "PATCH":
            return await self.get_metadata_uri(url)
        if method in ("PUT", "POST", "DELETE", "HEAD"):
            return url
        if self.settings.fixity:
            return url + FIXITY
        if self.settings.metadata:
            return await self.get_metadata_uri(url)
        return url

    def get_prefer(self, request: FcrepoRequest) -> Optional[str]:
        """Get the Prefer header for a GET: explicit, else from the endpoint."""
        if request.prefer:
            return request.prefer
        return build_prefer_header(
            self.settings.prefer_include, self.settings.prefer_omit
        )

    async def build(
        self,
        method: str,
        url: str,
        request: FcrepoRequest,
        content_type: Optional[str],
        accept: str,
    ) -> httpx.Request:
        """Build the HTTP request for an operation.

        Methods other than PATCH, PUT, POST, DELETE and HEAD are sent as
        GET.

        :param method: Resolved HTTP method
        :type method: str
        :param url: Raw resource URL
        :type url: str
        :param request: The request descriptor
        :type request: FcrepoRequest
        :param content_type: Resolved content type
        :type content_type: Optional[str]
        :param accept: Resolved Accept value
        :type accept: str
        :return: Request ready to send
        :rtype: httpx.Request
        """
        if method not in ENTITY_METHODS | {"DELETE", "HEAD", "GET"}:
            logger.debug("Unsupported method %s sent as GET", method)
            method = "GET"

        target = await self.get_target_uri(method, url)
        headers = {}
        if method == "GET":
            headers[ACCEPT] = accept
            prefer = self.get_prefer(request)
            if prefer is not None:
                headers[PREFER] = prefer

        content = None
        if method in ENTITY_METHODS:
            content = request.body_bytes()
            if content is not None:
                if content_type is not None:
                    headers[CONTENT_TYPE] = content_type
                elif method == "PATCH":
                    headers[CONTENT_TYPE] = SPARQL_UPDATE

        logger.debug("request to uri %s is of type %s", target, method)
        return self.client.build_request(method, target, headers=headers, content=content)


__all__ = ["RequestBuilder", "ENTITY_METHODS"]
