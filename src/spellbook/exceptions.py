"""Structured exception classes for Spellbook."""

import json
from typing import Any, Dict, Optional


class SpellbookError(Exception):
    """Base exception for all Spellbook errors.

    This exception serves as the parent class for all Spellbook
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


class HTTPClientError(SpellbookError):
    """Base class for errors raised by the HTTP client wrapper itself.

    Transport errors coming from ``httpx`` are never wrapped in this
    class; they reach the caller unchanged.
    """


class RequestBuildError(HTTPClientError):
    """Raised when a request could not be produced.

    The request-producing operation raised, or the request description
    could not be turned into an ``httpx.Request``. No network call is
    made when this error is raised.

    :param original_error: The exception raised while building the request
    """

    def __init__(self, original_error: BaseException):
        """Initialize request build error wrapping the original failure."""
        details = {
            "original_error": str(original_error),
            "error_type": type(original_error).__name__,
        }
        super().__init__(
            message=f"Failed to build HTTP request: {original_error}",
            code="REQUEST_BUILD_ERROR",
            details=details,
        )
        self.original_error = original_error


class BadResponseTypeError(HTTPClientError):
    """Raised when the session returned something that is not an HTTP response.

    :param response: The object returned by the session
    """

    def __init__(self, response: Any):
        """Initialize bad response type error with the offending object."""
        actual = type(response).__name__
        super().__init__(
            message=f"Expected httpx.Response, got {actual}",
            code="BAD_RESPONSE_TYPE",
            details={"expected": "Response", "actual": actual},
        )
        self.response = response


class BadResponseError(HTTPClientError):
    """Raised when a response body could not be decoded.

    :param underlying_error: The exception raised by the decoder
    """

    def __init__(self, underlying_error: BaseException):
        """Initialize bad response error wrapping the decode failure."""
        details = {
            "underlying_error": str(underlying_error),
            "error_type": type(underlying_error).__name__,
        }
        super().__init__(
            message=f"Failed to decode response: {underlying_error}",
            code="BAD_RESPONSE",
            details=details,
        )
        self.underlying_error = underlying_error


class ConfigurationError(SpellbookError):
    """Raised for configuration-related errors.

    This exception is raised when configuration validation fails
    or when a setting holds a value that cannot be interpreted.

    :param message: Description of the configuration error
    :param setting: Optional name of the problematic setting
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        """Initialize configuration error with message and optional setting."""
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)
