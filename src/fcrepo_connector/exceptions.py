"""Structured exception classes for the Fedora repository connector."""

import json
from typing import Any, Dict, Optional


class FcrepoConnectorError(Exception):
    """Base exception for all connector errors.

    This exception serves as the parent class for all connector
    specific exceptions, providing a consistent interface for error
    handling across the package.

    :param message: Human-readable error message
    :param code: Optional error code for programmatic handling
    :param details: Optional dictionary containing additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception with message, code, and details."""
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format.

        :return: Dictionary containing error code, message, and details
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        :return: JSON-encoded string representation of the exception
        """
        return json.dumps(self.to_dict())


class HttpOperationFailedError(FcrepoConnectorError):
    """Raised when the repository answers with a non-success status.

    The response body is captured on a best-effort basis; when it
    cannot be read ``status_text`` is ``None``.

    :param url: The URL being operated on
    :param status_code: The received status code
    :param status_text: The received response body, or None
    """

    def __init__(
        self,
        url: Optional[str],
        status_code: int,
        status_text: Optional[str] = None,
    ):
        """Initialize the failure with the request URL, status and body."""
        message = (
            f"HTTP operation failed invoking {url if url is not None else '[null]'}"
            f" with statusCode: {status_code} and message: {status_text}"
        )
        details: Dict[str, Any] = {"url": url, "status_code": status_code}
        if status_text:
            details["status_text"] = status_text
        super().__init__(
            message=message, code="HTTP_OPERATION_FAILED", details=details
        )
        self.url = url
        self.status_code = status_code
        self.status_text = status_text


class TransactionError(FcrepoConnectorError):
    """Base class for repository transaction failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="TRANSACTION_ERROR", details=details)


class CannotCreateTransactionError(TransactionError):
    """Raised when a repository transaction cannot be started.

    This is fatal to the surrounding unit of work: the caller must not
    proceed without a transaction.

    :param message: Description of the failure
    :param status_code: Optional status code of the create response
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message=message, details=details)
        self.code = "CANNOT_CREATE_TRANSACTION"
        self.status_code = status_code


class TransactionSystemError(TransactionError):
    """Raised when a transaction cannot be completed or a transacted request fails.

    :param message: Description of the failure
    :param diagnostic: Optional status-derived diagnostic message
    :param status_code: Optional status code returned by the repository
    """

    def __init__(
        self,
        message: str,
        diagnostic: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        details: Dict[str, Any] = {}
        if diagnostic:
            details["diagnostic"] = diagnostic
        if status_code is not None:
            details["status_code"] = status_code
        full_message = f"{message}: {diagnostic}" if diagnostic else message
        super().__init__(message=full_message, details=details)
        self.code = "TRANSACTION_SYSTEM_ERROR"
        self.diagnostic = diagnostic
        self.status_code = status_code


class UnexpectedRollbackError(TransactionSystemError):
    """Raised when a commit was requested for a rollback-only transaction."""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "UNEXPECTED_ROLLBACK"


class NestedTransactionNotSupportedError(TransactionError):
    """Raised when a nested transaction is requested."""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "NESTED_TRANSACTION_NOT_SUPPORTED"


class IllegalTransactionStateError(TransactionError):
    """Raised when a completed transaction is committed or rolled back again."""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "ILLEGAL_TRANSACTION_STATE"


class LinkParseError(FcrepoConnectorError, ValueError):
    """Raised when a Link header value cannot be parsed.

    :param message: Description of the parse failure
    :param value: Optional raw header value
    """

    def __init__(self, message: str, value: Optional[str] = None):
        details = {}
        if value is not None:
            details["value"] = value
        super().__init__(message=message, code="LINK_PARSE_ERROR", details=details)


class ConfigurationError(FcrepoConnectorError):
    """Raised for configuration-related errors.

    This exception is raised when configuration validation fails
    or when required configuration settings are missing or invalid.

    :param message: Description of the configuration error
    :param setting: Optional name of the problematic setting
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        """Initialize configuration error with message and optional setting."""
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)
