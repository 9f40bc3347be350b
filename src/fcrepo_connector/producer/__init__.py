"""Repository producer and request builder."""

from ..models.messages import FcrepoRequest, FcrepoResponse, ResponseOutcome
from .builder import RequestBuilder
from .producer import FcrepoProducer

__all__ = [
    "FcrepoProducer",
    "RequestBuilder",
    "FcrepoRequest",
    "FcrepoResponse",
    "ResponseOutcome",
]
