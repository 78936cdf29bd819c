import asyncio
import os
import sys
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spellbook.config.settings import get_settings  # noqa: E402
import spellbook.log.logger as logger_module  # noqa: E402
from spellbook.http import http_client_manager  # noqa: E402
from spellbook.log import LogRecord  # noqa: E402


def pytest_configure(config):
    # Register the asyncio marker so pytest doesn't warn when it's used.
    config.addinivalue_line(
        "markers", "asyncio: mark test to run in an asyncio event loop"
    )
    # Add custom markers for test organization
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Isolate tests from SPELLBOOK_* variables and cached singletons.

    Runs every test from an empty directory so no ``.env`` file is picked
    up, clears the cached settings and forgets the default logger.
    """
    for key in list(os.environ):
        if key.upper().startswith("SPELLBOOK_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(logger_module, "_default_logger", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class RecordingDestination:
    """Thread-safe destination collecting every record it receives."""

    def __init__(self):
        self.records: List[LogRecord] = []
        self._lock = threading.Lock()

    def __call__(self, record: LogRecord) -> None:
        with self._lock:
            self.records.append(record)

    @property
    def messages(self) -> list:
        with self._lock:
            return [record.message for record in self.records]


@pytest.fixture
def recorder():
    """Destination recording delivered log records."""
    return RecordingDestination()


@pytest.fixture
def mock_session_factory() -> Callable[..., httpx.AsyncClient]:
    """Build ``httpx.AsyncClient`` sessions backed by ``httpx.MockTransport``.

    The returned factory takes a handler ``(httpx.Request) -> httpx.Response``
    and records every request it sees on ``session.sent``.
    """

    def factory(handler=None) -> httpx.AsyncClient:
        sent: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            if handler is None:
                return httpx.Response(200, content=b"ok")
            return handler(request)

        session = httpx.AsyncClient(transport=httpx.MockTransport(record))
        session.sent = sent
        return session

    return factory


class PingHandler(BaseHTTPRequestHandler):
    """Answers every GET with ``pong`` over a keep-alive connection."""

    protocol_version = "HTTP/1.1"

    def do_GET(self):
        body = b"pong"
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def local_server(monkeypatch):
    """Serve HTTP on 127.0.0.1 and yield the base URL.

    Shared sessions opened against the server are closed afterwards.
    """
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)

    server = ThreadingHTTPServer(("127.0.0.1", 0), PingHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    asyncio.run(http_client_manager.close_all())
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
