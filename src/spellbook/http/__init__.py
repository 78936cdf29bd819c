"""HTTP utilities public API (barrel module).

This package provides:
- HTTP client wrapper with async and callback entry points
- Ordered header and query parameter containers
- Request descriptions and typed results
- Response body decoders
- Shared session manager

Recommended import pattern for consumers:
    from spellbook.http import HTTPClient, HTTPRequest, ObjectDecoder

This keeps call sites stable even if internal modules are reorganized.
"""

from .client import (
    BaseHTTPClient,
    HTTPClient,
    HTTPSession,
    RequestLike,
    resolve_request,
)
from .client_manager import (
    HTTPClientManager,
    create_limits,
    create_timeout,
    get_http_client,
    http_client_manager,
)
from .decoders import EmptyBody, ObjectDecoder, decode_response
from .parameters import Headers, HTTPHeader, HTTPParameter, HTTPParameters, key_name
from .request import HTTPMethod, HTTPRequest
from .result import HTTPResult

__all__ = [
    "BaseHTTPClient",
    "HTTPClient",
    "HTTPSession",
    "RequestLike",
    "resolve_request",
    "HTTPClientManager",
    "http_client_manager",
    "get_http_client",
    "create_timeout",
    "create_limits",
    "EmptyBody",
    "ObjectDecoder",
    "decode_response",
    "Headers",
    "HTTPHeader",
    "HTTPParameter",
    "HTTPParameters",
    "key_name",
    "HTTPMethod",
    "HTTPRequest",
    "HTTPResult",
]
