"""HTTP request description.

:class:`HTTPRequest` is a plain, mutable description of a request
(URL, method, headers, query items, body) that turns into an
``httpx.Request`` on demand. Building happens when the client sends the
request, so an invalid description surfaces as
:class:`~spellbook.exceptions.RequestBuildError` before any network
activity.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

import httpx

from ..exceptions import RequestBuildError
from .parameters import Headers, HTTPHeader, HTTPParameters


class HTTPMethod(str, Enum):
    """HTTP request methods."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"

    @classmethod
    def _missing_(cls, value):
        # Case-insensitive lookup: HTTPMethod("get") is HTTPMethod.GET.
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


@dataclass
class HTTPRequest:
    """Description of an HTTP request.

    :param url: Absolute URL of the resource
    :type url: str
    :param method: HTTP method
    :type method: HTTPMethod
    :param headers: Request headers, in order
    :type headers: HTTPParameters
    :param query: Query items appended to the URL, in order
    :type query: HTTPParameters
    :param body: Optional raw request body
    :type body: Optional[bytes]
    :param timeout: Optional per-request timeout in seconds
    :type timeout: Optional[float]
    """

    url: str
    method: HTTPMethod = HTTPMethod.GET
    headers: Headers = field(default_factory=HTTPParameters)
    query: HTTPParameters[str] = field(default_factory=HTTPParameters)
    body: Optional[bytes] = None
    timeout: Optional[float] = None

    @classmethod
    def with_json(
        cls,
        url: str,
        payload: Any,
        method: Union[HTTPMethod, str] = HTTPMethod.POST,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "HTTPRequest":
        """Create a request whose body is ``payload`` encoded as JSON.

        Sets ``Content-Type: application/json`` unless ``headers`` already
        carries a Content-Type.

        :param url: Absolute URL of the resource
        :param payload: JSON-serializable body
        :param method: HTTP method, POST by default
        :param headers: Optional extra headers
        :return: Request description
        :raises RequestBuildError: If the method is unknown or the payload
            is not JSON-serializable
        """
        try:
            request_method = HTTPMethod(method)
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise RequestBuildError(e) from e
        request_headers: Headers = HTTPParameters(headers or {})
        if not any(name.lower() == "content-type" for name, _ in request_headers.to_list()):
            request_headers.append(HTTPHeader.CONTENT_TYPE, "application/json")
        return cls(
            url=url,
            method=request_method,
            headers=request_headers,
            body=body,
        )

    def build(self) -> httpx.Request:
        """Create the ``httpx.Request`` this description stands for.

        :return: Request ready to be sent by an ``httpx`` session
        :rtype: httpx.Request
        :raises RequestBuildError: If the URL, method or parameters are invalid
        """
        try:
            extensions = {}
            if self.timeout is not None:
                extensions["timeout"] = httpx.Timeout(self.timeout).as_dict()
            return httpx.Request(
                HTTPMethod(self.method).value,
                self.url,
                params=self.query.to_list() or None,
                headers=self.headers.to_list(),
                content=self.body,
                extensions=extensions,
            )
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise RequestBuildError(e) from e
