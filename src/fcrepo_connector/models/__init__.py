"""Connector models package.

This package contains the Pydantic models exchanged between the host and
the producer.
"""

from .messages import FcrepoRequest, FcrepoResponse, ResponseOutcome

__all__ = ["FcrepoRequest", "FcrepoResponse", "ResponseOutcome"]
