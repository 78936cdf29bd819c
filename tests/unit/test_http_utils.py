"""Unit tests for HTTP utilities.

This module tests the shared session manager and the async bridge used
by the callback entry points.
"""

import asyncio
import concurrent.futures
import gc
import threading
from unittest.mock import patch

import pytest

from spellbook.config import Settings
from spellbook.http import (
    HTTPClientManager,
    create_limits,
    create_timeout,
    get_http_client,
    http_client_manager,
)
from spellbook.utils import async_bridge
from spellbook.utils.async_bridge import BridgeLoop, failed_future, run_sync, spawn


def test_http_client_manager_caches():
    m = HTTPClientManager()

    async def scenario():
        c1 = await m.get_client(base_url="https://example.com")
        c2 = await m.get_client(base_url="https://example.com")
        assert c1 is c2
        await m.close_all()

    asyncio.run(scenario())


def test_http_client_manager_cache_key_stable_same_values():
    m = HTTPClientManager()
    t1 = create_timeout(5, 30, 10, 5)
    t2 = create_timeout(5, 30, 10, 5)  # distinct object, same values
    l1 = create_limits(10, 20, 30.0)
    l2 = create_limits(10, 20, 30.0)

    async def scenario():
        c1 = await m.get_client(base_url="https://ex.com", timeout=t1, limits=l1)
        c2 = await m.get_client(base_url="https://ex.com", timeout=t2, limits=l2)
        assert c1 is c2
        await m.close_all()

    asyncio.run(scenario())


def test_http_client_manager_sessions_are_per_event_loop():
    m = HTTPClientManager()
    asyncio.run(m.close_all())

    first = asyncio.run(m.get_client(base_url="https://loops.example.com"))
    second = asyncio.run(m.get_client(base_url="https://loops.example.com"))

    assert first is not second
    asyncio.run(m.close_all())
    assert m.client_count == 0


def test_close_all_closes_sessions_of_other_running_loops():
    m = HTTPClientManager()
    bridge = BridgeLoop(name="manager-bridge")
    try:
        remote = bridge.submit(m.get_client(base_url="https://remote.example.com")).result(
            timeout=5
        )
        asyncio.run(m.close_all())
        assert remote.is_closed
        assert m.client_count == 0
    finally:
        bridge.stop(timeout=5)


def test_create_timeout_defaults():
    """Test timeout creation with default values."""
    timeout = create_timeout()
    assert timeout.connect == 5.0
    assert timeout.read == 30.0
    assert timeout.write == 10.0
    assert timeout.pool == 5.0


def test_create_limits_defaults():
    """Test limits creation with default values."""
    limits = create_limits()
    assert limits.max_keepalive_connections == 10
    assert limits.max_connections == 20
    assert limits.keepalive_expiry == 30.0


def test_http_client_manager_singleton():
    """Test that HTTPClientManager is a singleton."""
    assert HTTPClientManager() is HTTPClientManager() is http_client_manager


@pytest.mark.asyncio
async def test_http_client_manager_different_configs():
    """Test that different configs create different clients."""
    m = HTTPClientManager()

    c1 = await m.get_client(base_url="https://api1.example.com")
    c2 = await m.get_client(base_url="https://api2.example.com")
    assert c1 is not c2

    c3 = await m.get_client(timeout=create_timeout(connect=5.0))
    c4 = await m.get_client(timeout=create_timeout(connect=10.0))
    assert c3 is not c4

    c5 = await m.get_client(headers={"X-A": "1"})
    c6 = await m.get_client(headers={"X-A": "2"})
    assert c5 is not c6

    await m.close_all()
    assert m.client_count == 0


@pytest.mark.asyncio
async def test_http2_without_h2_does_not_crash():
    m = HTTPClientManager()
    with patch.dict("sys.modules", {"h2": None}):
        client = await m.get_client(base_url="https://ex2.com", http2=True)
    assert client is not None
    await m.close_all()


@pytest.mark.asyncio
async def test_get_http_client_uses_settings():
    settings = Settings(_env_file=None, http_timeout=2.0, http_follow_redirects=False)

    client = await get_http_client(settings=settings)

    assert client.timeout.read == 2.0
    assert client.follow_redirects is False
    assert client is await get_http_client(settings=settings)
    await http_client_manager.close_all()


class TestAsyncBridge:
    """Test coroutine bridging for callback-style callers."""

    def test_spawn_without_loop_uses_bridge_thread(self):
        async def where():
            return threading.current_thread().name

        future = spawn(where())

        assert isinstance(future, concurrent.futures.Future)
        assert future.result(timeout=5) == "spellbook-bridge"

    @pytest.mark.asyncio
    async def test_spawn_inside_loop_creates_task(self):
        async def answer():
            return 42

        seen = []
        task = spawn(answer(), seen.append)

        assert isinstance(task, asyncio.Task)
        assert await task == 42
        await asyncio.sleep(0)
        assert seen == [task]

    @pytest.mark.asyncio
    async def test_spawned_task_survives_without_caller_reference(self):
        release = asyncio.Event()
        done = asyncio.Event()

        async def wait_for_release():
            await release.wait()
            return "finished"

        results = []

        def completion(future):
            results.append(future.result())
            done.set()

        before = set(async_bridge._pending_tasks)
        spawn(wait_for_release(), completion)
        assert len(async_bridge._pending_tasks - before) == 1
        gc.collect()

        release.set()
        await asyncio.wait_for(done.wait(), timeout=5)

        assert results == ["finished"]
        assert not async_bridge._pending_tasks - before

    def test_failed_future(self):
        future = failed_future(KeyError("missing"))
        assert future.done()
        with pytest.raises(KeyError):
            future.result()

    def test_run_sync(self):
        async def add(a, b):
            await asyncio.sleep(0)
            return a + b

        assert run_sync(add, 2, b=3) == 5

    @pytest.mark.asyncio
    async def test_run_sync_refuses_running_loop(self):
        async def never():
            return None

        with pytest.raises(RuntimeError, match="async context"):
            run_sync(never)

    def test_bridge_loop_restarts_after_stop(self):
        bridge = BridgeLoop(name="test-bridge")

        async def value():
            return "first"

        assert bridge.submit(value()).result(timeout=5) == "first"
        assert bridge.is_running
        bridge.stop(timeout=5)
        assert not bridge.is_running
        assert bridge.submit(value()).result(timeout=5) == "first"
        bridge.stop(timeout=5)

    def test_stop_before_start_is_noop(self):
        BridgeLoop(name="idle").stop()
