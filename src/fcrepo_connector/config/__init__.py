"""Endpoint configuration."""

from .settings import EndpointSettings

__all__ = ["EndpointSettings"]
