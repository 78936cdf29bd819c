"""Shared HTTP session manager.

This module provides a singleton manager that creates and caches
``httpx.AsyncClient`` sessions. It is the package's stand-in for a
process-wide shared session: an :class:`~spellbook.http.client.HTTPClient`
created without a session sends its requests through the session
returned by :func:`get_http_client`.

Sessions are cached per event loop and configuration (base URL, timeout,
limits, HTTP/2 and redirect handling) so that clients with the same needs
share one connection pool. A connection pool belongs to the loop that
opened its connections, so every loop gets its own sessions and sessions
of closed loops are dropped. Connection pooling, TLS and protocol
negotiation stay inside ``httpx``.
"""

import asyncio
import logging
import threading
import weakref
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

LoopSessions = Dict[str, httpx.AsyncClient]


class HTTPClientManager:
    """Manages shared HTTP sessions.

    This singleton class caches ``httpx.AsyncClient`` instances keyed by
    the running event loop and their configuration, and closes them all
    on :meth:`close_all`.
    """

    _instance: Optional["HTTPClientManager"] = None
    _lock = threading.Lock()

    def __new__(cls):
        """Ensure singleton pattern - only one instance exists.

        :return: The single instance of HTTPClientManager
        :rtype: HTTPClientManager
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the HTTP client manager.

        Sets up default timeout and connection limit configurations and
        the internal client cache.
        """
        if not hasattr(self, "_initialized"):
            self._clients: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, LoopSessions]" = (
                weakref.WeakKeyDictionary()
            )
            self._default_timeout = create_timeout()
            self._default_limits = create_limits()
            self._initialized = True
            self._is_closing = False

    @property
    def client_count(self) -> int:
        """Number of cached sessions across all event loops."""
        with self._lock:
            return sum(len(clients) for clients in self._clients.values())

    def _discard_closed_loops(self) -> None:
        # Caller holds self._lock.
        for loop in [loop for loop in list(self._clients.keys()) if loop.is_closed()]:
            dropped = self._clients.pop(loop)
            logger.debug("Dropped %d HTTP session(s) of a closed event loop", len(dropped))

    async def get_client(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[httpx.Timeout] = None,
        limits: Optional[httpx.Limits] = None,
        http2: bool = False,
        follow_redirects: bool = True,
        **kwargs,
    ) -> httpx.AsyncClient:
        """Get or create an HTTP session for the running loop and configuration.

        :param base_url: Optional base URL for the session
        :type base_url: Optional[str]
        :param timeout: Optional custom timeout configuration
        :type timeout: Optional[httpx.Timeout]
        :param limits: Optional custom connection limits
        :type limits: Optional[httpx.Limits]
        :param http2: Enable HTTP/2, ignored when ``h2`` is not installed
        :type http2: bool
        :param follow_redirects: Follow redirects
        :type follow_redirects: bool
        :param **kwargs: Additional ``httpx.AsyncClient`` options
        :return: Configured session bound to the running event loop
        :rtype: httpx.AsyncClient
        """
        loop = asyncio.get_running_loop()

        if http2:
            try:
                import h2  # type: ignore  # noqa: F401
            except ImportError:
                logger.warning(
                    "HTTP/2 requested but 'h2' package not installed; falling back to HTTP/1.1"
                )
                http2 = False

        def timeout_key(t: Optional[httpx.Timeout]):
            if not t:
                return None
            return (t.connect, t.read, t.write, t.pool)

        def limits_key(limits_obj: Optional[httpx.Limits]):
            if not limits_obj:
                return None
            return (
                limits_obj.max_keepalive_connections,
                limits_obj.max_connections,
                limits_obj.keepalive_expiry,
            )

        cache_key = str(
            (
                base_url or "default",
                timeout_key(timeout),
                limits_key(limits),
                http2,
                follow_redirects,
                tuple(sorted((k, repr(v)) for k, v in kwargs.items())),
            )
        )

        with self._lock:
            self._discard_closed_loops()
            clients = self._clients.setdefault(loop, {})
            client = clients.get(cache_key)
            if client is None:
                client_config: Dict[str, Any] = {
                    "timeout": timeout or self._default_timeout,
                    "limits": limits or self._default_limits,
                    "http2": http2,
                    "follow_redirects": follow_redirects,
                    **kwargs,
                }
                if base_url:
                    client_config["base_url"] = base_url
                client = httpx.AsyncClient(**client_config)
                clients[cache_key] = client
                logger.debug("Created new HTTP session for %s", cache_key)

        return client

    async def close_all(self):
        """Close all managed HTTP sessions.

        Sessions of the running loop are closed directly, sessions of
        other running loops are closed on their own loop. Sessions of
        loops that no longer run are dropped. Errors raised while closing
        one session are logged and do not prevent the others from being
        closed.
        """
        if self._is_closing:
            logger.debug("Already closing HTTP sessions, skipping duplicate call")
            return

        self._is_closing = True
        try:
            current = asyncio.get_running_loop()
            with self._lock:
                owned = [(loop, dict(clients)) for loop, clients in self._clients.items()]
                self._clients.clear()
            count = sum(len(clients) for _, clients in owned)
            if not count:
                logger.debug("No HTTP sessions to close")
                return
            logger.info("Closing %d HTTP session(s)...", count)
            for loop, clients in owned:
                for cache_key, client in clients.items():
                    try:
                        if loop is current:
                            await client.aclose()
                        elif loop.is_running():
                            await asyncio.wrap_future(
                                asyncio.run_coroutine_threadsafe(client.aclose(), loop)
                            )
                        else:
                            logger.debug("Dropped HTTP session of a stopped loop: %s", cache_key)
                            continue
                        logger.debug("Closed HTTP session: %s", cache_key)
                    except Exception as e:
                        logger.warning("Error closing HTTP session %s: %s", cache_key, e)
        finally:
            self._is_closing = False


async def get_http_client(settings=None, **kwargs) -> httpx.AsyncClient:
    """Get the shared HTTP session configured from settings.

    Explicit keyword arguments override the configured timeout, HTTP/2
    and redirect options.

    :param settings: Settings to use, the cached settings by default
    :param **kwargs: Options forwarded to :meth:`HTTPClientManager.get_client`
    :return: Shared session
    :rtype: httpx.AsyncClient
    """
    # Import here to avoid circular dependency
    from ..config.settings import get_settings

    settings = settings or get_settings()
    kwargs.setdefault("timeout", create_timeout(read=settings.http_timeout))
    kwargs.setdefault("http2", settings.http_enable_http2)
    kwargs.setdefault("follow_redirects", settings.http_follow_redirects)
    return await http_client_manager.get_client(**kwargs)


def create_timeout(
    connect: float = 5.0,
    read: float = 30.0,
    write: float = 10.0,
    pool: float = 5.0,
) -> httpx.Timeout:
    """Create a timeout configuration object.

    :param connect: Connection timeout in seconds
    :type connect: float
    :param read: Read timeout in seconds
    :type read: float
    :param write: Write timeout in seconds
    :type write: float
    :param pool: Pool timeout in seconds
    :type pool: float
    :return: Configured timeout object
    :rtype: httpx.Timeout
    """
    return httpx.Timeout(connect=connect, read=read, write=write, pool=pool)


def create_limits(
    max_keepalive_connections: int = 10,
    max_connections: int = 20,
    keepalive_expiry: float = 30.0,
) -> httpx.Limits:
    """Create a connection limits configuration object.

    :param max_keepalive_connections: Maximum number of keepalive connections
    :type max_keepalive_connections: int
    :param max_connections: Maximum total number of connections
    :type max_connections: int
    :param keepalive_expiry: Keepalive connection expiry time in seconds
    :type keepalive_expiry: float
    :return: Configured limits object
    :rtype: httpx.Limits
    """
    return httpx.Limits(
        max_keepalive_connections=max_keepalive_connections,
        max_connections=max_connections,
        keepalive_expiry=keepalive_expiry,
    )


http_client_manager = HTTPClientManager()
