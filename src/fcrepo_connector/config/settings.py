"""Configuration settings for a Fedora repository endpoint.

This module defines the configuration for one connector endpoint,
including the repository base URL, content negotiation defaults,
metadata/fixity modes, failure policy and transaction credentials.
Settings are loaded from ``FCREPO_*`` environment variables and .env
files, or passed explicitly as keyword arguments.
"""

from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EndpointSettings(BaseSettings):
    """Endpoint settings loaded from environment variables.

    Read-only from the point of view of the producer and the
    transaction manager.

    :param base_url: Repository base URL; ``http://`` is assumed when no
        scheme is given
    :type base_url: str
    :param content_type: Content type applied to every request body
    :type content_type: Optional[str]
    :param accept: Accept value applied to every GET request
    :type accept: Optional[str]
    :param prefer_include: Whitespace separated Prefer include tokens
    :type prefer_include: Optional[str]
    :param prefer_omit: Whitespace separated Prefer omit tokens
    :type prefer_omit: Optional[str]
    :param metadata: Operate on resource descriptions rather than binaries
    :type metadata: bool
    :param fixity: Run fixity checks on GET
    :type fixity: bool
    :param throw_exception_on_failure: Raise on non-success responses
    :type throw_exception_on_failure: bool
    :param transacted: Run every request inside a repository transaction
    :type transacted: bool
    :param auth_username: Username for basic authentication
    :type auth_username: Optional[str]
    :param auth_password: Password for basic authentication
    :type auth_password: Optional[SecretStr]
    :param auth_host: Host the credentials are scoped to
    :type auth_host: Optional[str]
    :param stream_cache_threshold: Bytes kept in memory before a cached
        response body spools to disk
    :type stream_cache_threshold: int
    :param log_level: Logging level for the application
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_prefix="FCREPO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )

    base_url: str = Field(
        "localhost:8080/rest", description="Repository base URL"
    )

    # Content negotiation
    content_type: Optional[str] = Field(
        None, description="Content type applied to request bodies"
    )
    accept: Optional[str] = Field(None, description="Accept value for GET requests")
    prefer_include: Optional[str] = Field(
        None, description="Prefer include tokens (short names or URIs)"
    )
    prefer_omit: Optional[str] = Field(
        None, description="Prefer omit tokens (short names or URIs)"
    )

    # Modes
    metadata: bool = Field(
        True, description="Operate on resource descriptions instead of binaries"
    )
    fixity: bool = Field(False, description="Run fixity checks on GET")
    throw_exception_on_failure: bool = Field(
        True, description="Raise on non-success responses and transport errors"
    )
    transacted: bool = Field(
        False, description="Run every request inside a repository transaction"
    )

    # Authentication
    auth_username: Optional[str] = Field(None, description="Basic auth username")
    auth_password: Optional[SecretStr] = Field(
        None, description="Basic auth password"
    )
    auth_host: Optional[str] = Field(
        None, description="Host the basic auth credentials are scoped to"
    )

    # Transport
    stream_cache_threshold: int = Field(
        128 * 1024,
        ge=0,
        description="Bytes held in memory before a response body spools to disk",
    )
    connect_timeout: float = Field(5.0, description="Connect timeout in seconds")
    read_timeout: float = Field(30.0, description="Read timeout in seconds")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )

    @field_validator(
        "content_type",
        "accept",
        "prefer_include",
        "prefer_omit",
        "auth_username",
        "auth_host",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        """Treat blank strings as unset.

        :param v: Raw value
        :return: None for blank strings, otherwise the value unchanged
        """
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so paths can be appended verbatim.

        :param v: The original base URL
        :type v: str
        :return: Base URL without trailing slash
        :rtype: str
        """
        return v.strip().rstrip("/")

    @property
    def base_url_with_scheme(self) -> str:
        """Get the base URL with an explicit scheme.

        :return: Base URL prefixed with ``http://`` when no scheme is set
        :rtype: str
        """
        if self.base_url.startswith(("http://", "https://")):
            return self.base_url
        return "http://" + self.base_url

    @property
    def password(self) -> Optional[str]:
        """Get the plain text password, if any.

        :return: Password or None
        :rtype: Optional[str]
        """
        if self.auth_password is None:
            return None
        return self.auth_password.get_secret_value()
