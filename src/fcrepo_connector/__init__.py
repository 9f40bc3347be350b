"""Fedora repository connector package.

This package lets a message-routing host drive HTTP operations against a
Fedora-style content repository. It includes repository transaction
management, content negotiation, Link header parsing and a producer that
normalizes repository responses for the caller.

:var __version__: Current package version
:type __version__: str
"""

from .config.settings import EndpointSettings
from .endpoint import FcrepoEndpoint
from .producer import FcrepoProducer, FcrepoRequest, FcrepoResponse, ResponseOutcome
from .transaction import TransactionManager, TransactionObject, TransactionStatus
from .utils.http.link import FcrepoLink

__version__ = "0.1.0"

__all__ = [
    "EndpointSettings",
    "FcrepoEndpoint",
    "FcrepoProducer",
    "FcrepoRequest",
    "FcrepoResponse",
    "ResponseOutcome",
    "TransactionManager",
    "TransactionObject",
    "TransactionStatus",
    "FcrepoLink",
]
