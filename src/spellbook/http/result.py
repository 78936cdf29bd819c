"""Typed HTTP result pairing a decoded value with its response."""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

import httpx

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class HTTPResult(Generic[T]):
    """Decoded value together with the response it came from.

    :param value: Raw body bytes or the decoded object
    :param response: The originating ``httpx.Response``
    """

    value: T
    response: httpx.Response

    @property
    def status_code(self) -> int:
        """Get the HTTP status code of the response.

        :return: HTTP status code
        :rtype: int
        """
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        """Get the response headers.

        :return: Response headers
        :rtype: httpx.Headers
        """
        return self.response.headers

    @property
    def url(self) -> httpx.URL:
        return self.response.url

    def is_success(self) -> bool:
        """Check if the response indicates success (2xx status code).

        :return: True if status code is in 200-299 range
        :rtype: bool
        """
        return 200 <= self.status_code < 300

    def is_client_error(self) -> bool:
        """Check if the response indicates a client error (4xx status code).

        :return: True if status code is in 400-499 range
        :rtype: bool
        """
        return 400 <= self.status_code < 500

    def is_server_error(self) -> bool:
        """Check if the response indicates a server error (5xx status code).

        :return: True if status code is in 500-599 range
        :rtype: bool
        """
        return 500 <= self.status_code < 600

    def map(self, transform: Callable[[T], U]) -> "HTTPResult[U]":
        """Return a result with the same response and a transformed value."""
        return HTTPResult(value=transform(self.value), response=self.response)
