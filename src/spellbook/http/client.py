"""HTTP client wrapper with typed decoding and callback/async entry points.

This module adapts an ``httpx`` session into a small client surface:

- Requests are given as an :class:`HTTPRequest`, an ``httpx.Request`` or a
  zero-argument callable producing either. A failure while producing the
  request raises :class:`~spellbook.exceptions.RequestBuildError` before
  the session is touched.
- Default headers are added to requests that do not already set them.
  Headers set on the request always win.
- The session's result must be an ``httpx.Response``; anything else
  raises :class:`~spellbook.exceptions.BadResponseTypeError`.
- Transport errors raised by the session reach the caller unchanged.
- Bodies are decoded with an :class:`ObjectDecoder`. Decoder failures
  raise :class:`~spellbook.exceptions.BadResponseError`.

Every operation exists as a coroutine (``fetch``, ``fetch_object``) and as
a callback variant (``fetch_with_callback``, ``fetch_object_with_callback``)
that runs the coroutine in the background and hands the finished future to
a completion callable.

Examples:
    >>> client = HTTPClient()
    >>> client.update_headers(lambda h: h.set(HTTPHeader.ACCEPT, "application/json"))
    >>> result = await client.fetch_object(
    ...     HTTPRequest("https://example.com/items"), ObjectDecoder.json()
    ... )
    >>> result.status_code, result.value
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import (
    Any,
    Awaitable,
    Callable,
    Mapping,
    Optional,
    Protocol,
    TypeVar,
    Union,
)

import httpx

from ..exceptions import BadResponseTypeError, RequestBuildError
from ..utils.async_bridge import AnyFuture, failed_future, spawn
from .client_manager import get_http_client
from .decoders import ObjectDecoder, decode_response
from .parameters import Headers, HTTPParameters
from .request import HTTPRequest
from .result import HTTPResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

RequestLike = Union[
    HTTPRequest,
    httpx.Request,
    Callable[[], Union[HTTPRequest, httpx.Request]],
]
Completion = Callable[[AnyFuture], Any]


class HTTPSession(Protocol):
    """Anything able to send an ``httpx.Request``, such as ``httpx.AsyncClient``."""

    async def send(self, request: httpx.Request, **kwargs: Any) -> Any: ...


def resolve_request(request: RequestLike) -> httpx.Request:
    """Turn a request-like value into an ``httpx.Request``.

    :param request: Request description, request or request factory
    :return: Request ready to be sent
    :raises RequestBuildError: If producing or building the request fails
    """
    try:
        produced = request() if callable(request) else request
        if isinstance(produced, HTTPRequest):
            return produced.build()
        if isinstance(produced, httpx.Request):
            return produced
        raise TypeError(
            f"Expected HTTPRequest or httpx.Request, got {type(produced).__name__}"
        )
    except RequestBuildError:
        raise
    except Exception as e:
        raise RequestBuildError(e) from e


class BaseHTTPClient(ABC):
    """HTTP client surface built on a single ``fetch`` coroutine.

    Subclasses implement :meth:`fetch`. Decoding and the callback
    variants are derived from it, so every implementation reports the
    same errors through both call styles.
    """

    @abstractmethod
    async def fetch(self, request: RequestLike) -> HTTPResult[bytes]:
        """Send ``request`` and return the raw body with the response."""

    async def fetch_object(
        self, request: RequestLike, decoder: ObjectDecoder[T]
    ) -> HTTPResult[T]:
        """Send ``request`` and decode the body with ``decoder``.

        :param request: Request description, request or request factory
        :param decoder: Decoder applied to the body
        :return: Decoded value with the response
        :raises RequestBuildError: If the request could not be produced
        :raises BadResponseTypeError: If the session returned no HTTP response
        :raises BadResponseError: If decoding failed
        """
        result = await self.fetch(request)
        value = decode_response(result.value, decoder)
        return HTTPResult(value=value, response=result.response)

    def fetch_with_callback(
        self, request: RequestLike, completion: Optional[Completion] = None
    ) -> AnyFuture:
        """Callback variant of :meth:`fetch`.

        The request is produced on the calling thread. If that fails,
        ``completion`` is called immediately with a failed future and
        nothing is scheduled. Otherwise :meth:`fetch` runs as a task of the
        running event loop, or on the background bridge loop when there is
        none, and ``completion`` receives the finished future.

        :param request: Request description, request or request factory
        :param completion: Called with the finished future
        :return: The future tracking the operation
        """
        return self._run_with_callback(self.fetch, request, completion)

    def fetch_object_with_callback(
        self,
        request: RequestLike,
        decoder: ObjectDecoder[T],
        completion: Optional[Completion] = None,
    ) -> AnyFuture:
        """Callback variant of :meth:`fetch_object`."""

        async def operation(built: httpx.Request) -> HTTPResult[T]:
            return await self.fetch_object(built, decoder)

        return self._run_with_callback(operation, request, completion)

    def _run_with_callback(
        self,
        operation: Callable[[httpx.Request], Awaitable[Any]],
        request: RequestLike,
        completion: Optional[Completion],
    ) -> AnyFuture:
        try:
            built = resolve_request(request)
        except RequestBuildError as e:
            future = failed_future(e)
            if completion is not None:
                completion(future)
            return future
        return spawn(operation(built), completion)


class HTTPClient(BaseHTTPClient):
    """HTTP client sending requests through an ``httpx`` session.

    :param session: Session used to send requests. When omitted, every call
        uses the shared session of the running event loop from
        :func:`~spellbook.http.client_manager.get_http_client`
    :param default_headers: Headers added to requests that lack them
    :param owns_session: Close ``session`` in :meth:`aclose`
    """

    def __init__(
        self,
        session: Optional[HTTPSession] = None,
        default_headers: Optional[Mapping[str, str]] = None,
        owns_session: bool = False,
    ):
        self._session = session
        self._owns_session = owns_session and session is not None
        self._lock = threading.Lock()
        self._default_headers: Headers = HTTPParameters(default_headers or {})

    @classmethod
    def from_settings(
        cls, settings=None, session: Optional[HTTPSession] = None
    ) -> "HTTPClient":
        """Create a client whose default headers come from settings.

        :param settings: Settings to use, the cached settings by default
        :param session: Optional session, the shared session by default
        :return: Configured client
        """
        # Import here to avoid circular dependency
        from ..config.settings import get_settings

        settings = settings or get_settings()
        return cls(session=session, default_headers=settings.effective_default_headers)

    @property
    def default_headers(self) -> Headers:
        """Snapshot of the default headers."""
        with self._lock:
            return self._default_headers.copy()

    def update_headers(self, update: Callable[[Headers], Any]) -> None:
        """Modify the default headers in place under the client's lock.

        :param update: Called with the live default headers
        """
        with self._lock:
            update(self._default_headers)

    def apply_default_headers(self, request: httpx.Request) -> httpx.Request:
        """Add default headers the request does not set, in place.

        Header names compare case-insensitively. When the defaults list a
        name more than once, the first entry is used.

        :param request: Request to complete
        :return: The same request
        """
        for item in self.default_headers:
            if item.name not in request.headers:
                request.headers[item.name] = item.value
        return request

    async def _get_session(self) -> HTTPSession:
        if self._session is not None:
            return self._session
        # Shared sessions belong to the running loop, so look one up per call.
        return await get_http_client()

    async def fetch(self, request: RequestLike) -> HTTPResult[bytes]:
        """Send ``request`` and return the raw body with the response.

        An ``httpx.Request`` passed in directly is completed with the
        default headers in place.

        :param request: Request description, request or request factory
        :return: Body bytes with the response
        :raises RequestBuildError: If the request could not be produced
        :raises BadResponseTypeError: If the session returned no HTTP response
        """
        built = self.apply_default_headers(resolve_request(request))
        session = await self._get_session()
        logger.debug("Sending %s %s", built.method, built.url)

        response = await session.send(built)
        if not isinstance(response, httpx.Response):
            raise BadResponseTypeError(response)

        data = await response.aread()
        logger.debug(
            "Received %d for %s %s (%d bytes)",
            response.status_code,
            built.method,
            built.url,
            len(data),
        )
        return HTTPResult(value=data, response=response)

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None:
            await self._session.aclose()  # type: ignore[attr-defined]

    async def __aenter__(self) -> "HTTPClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
