"""Request and response models exchanged with the producer.

A :class:`FcrepoRequest` describes one logical repository operation as
supplied by the host. The producer answers with a :class:`FcrepoResponse`
carrying the normalized body, status code and content type.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.http.stream_cache import StreamCache


class ResponseOutcome(str, Enum):
    """How a producer call ended.

    Hard errors are raised rather than returned.
    """

    SUCCESS = "success"
    SUPPRESSED = "suppressed"  # failure swallowed because the endpoint does not throw


class FcrepoRequest(BaseModel):
    """A single repository operation.

    :param identifier: Resource path appended to the base URL, e.g. ``/foo``
    :type identifier: str
    :param uri: Full URI; overrides base URL, transaction and identifier
    :type uri: Optional[str]
    :param base_url: Base URL overriding the endpoint base URL
    :type base_url: Optional[str]
    :param method: HTTP method override; GET when absent
    :type method: Optional[str]
    :param content_type: Content type of the body
    :type content_type: Optional[str]
    :param accept: Accept header value
    :type accept: Optional[str]
    :param prefer: Explicit Prefer header value for GET
    :type prefer: Optional[str]
    :param transacted: Run inside a transaction; the endpoint default
        applies when None
    :type transacted: Optional[bool]
    :param disable_stream_cache: Return the raw body bytes instead of a
        replayable stream cache
    :type disable_stream_cache: bool
    :param body: Request entity as bytes, text or a binary file object
    :type body: Any
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    identifier: str = ""
    uri: Optional[str] = None
    base_url: Optional[str] = None
    method: Optional[str] = None
    content_type: Optional[str] = None
    accept: Optional[str] = None
    prefer: Optional[str] = None
    transacted: Optional[bool] = None
    disable_stream_cache: bool = False
    body: Any = None

    @field_validator("uri", "base_url", "method", "content_type", "accept", "prefer")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    def body_bytes(self) -> Optional[bytes]:
        """Get the request entity as bytes.

        File objects are read from their current position.

        :return: Entity bytes, or None without a body
        :rtype: Optional[bytes]
        """
        body = self.body
        if body is None:
            return None
        if isinstance(body, bytes):
            return body
        if isinstance(body, (bytearray, memoryview)):
            return bytes(body)
        if isinstance(body, str):
            return body.encode("utf-8")
        if hasattr(body, "read"):
            data = body.read()
            return data.encode("utf-8") if isinstance(data, str) else data
        raise TypeError(f"Unsupported request body type: {type(body).__name__}")


class FcrepoResponse(BaseModel):
    """Normalized result of a producer call.

    :param outcome: Whether the call succeeded or a failure was suppressed
    :type outcome: ResponseOutcome
    :param status_code: Response status, None after a suppressed
        transport failure
    :type status_code: Optional[int]
    :param content_type: Response Content-Type header
    :type content_type: Optional[str]
    :param body: Replayable cache, raw bytes, or None
    :type body: Optional[Union[StreamCache, bytes]]
    :param request_url: URL the main request was sent to
    :type request_url: Optional[str]
    :param error: The suppressed failure, if any
    :type error: Optional[BaseException]
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcome: ResponseOutcome = ResponseOutcome.SUCCESS
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    body: Optional[Union[StreamCache, bytes]] = Field(default=None)
    request_url: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is ResponseOutcome.SUCCESS

    def body_bytes(self) -> Optional[bytes]:
        """Get the whole body as bytes without consuming a stream cache."""
        if isinstance(self.body, StreamCache):
            return self.body.getvalue()
        return self.body

    def text(self, encoding: str = "utf-8") -> Optional[str]:
        data = self.body_bytes()
        return data.decode(encoding) if data is not None else None

    def close(self) -> None:
        """Release a spooled body."""
        if isinstance(self.body, StreamCache):
            self.body.close()


__all__ = ["ResponseOutcome", "FcrepoRequest", "FcrepoResponse"]
