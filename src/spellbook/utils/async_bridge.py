"""Run coroutines on behalf of callback-style and synchronous callers."""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Awaitable, Callable, Optional, Set, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

AnyFuture = Union["asyncio.Future[Any]", "concurrent.futures.Future[Any]"]


class BridgeLoop:
    """
    Event loop running on a background daemon thread.

    The thread starts on first use. Coroutines submitted from any thread
    run on this loop and report through ``concurrent.futures.Future``.
    """

    def __init__(self, name: str = "spellbook-bridge"):
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or not self.is_running:
                loop = asyncio.new_event_loop()
                ready = threading.Event()

                def run() -> None:
                    asyncio.set_event_loop(loop)
                    loop.call_soon(ready.set)
                    loop.run_forever()

                thread = threading.Thread(target=run, name=self._name, daemon=True)
                thread.start()
                ready.wait()
                self._loop = loop
                self._thread = thread
                logger.debug("Started bridge event loop %s", self._name)
            return self._loop

    def submit(self, coro: Awaitable[T]) -> "concurrent.futures.Future[T]":
        """Schedule ``coro`` on the bridge loop."""
        loop = self._ensure_started()
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the loop and join its thread. The next submit restarts it."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        if not thread.is_alive():
            loop.close()
        logger.debug("Stopped bridge event loop %s", self._name)


bridge_loop = BridgeLoop()

# Strong references to tasks started by spawn() until they finish.
_pending_tasks: Set["asyncio.Task[Any]"] = set()


def spawn(
    coro: Awaitable[T],
    callback: Optional[Callable[[AnyFuture], Any]] = None,
) -> AnyFuture:
    """
    Run ``coro`` without waiting for it and report through ``callback``.

    Inside a running event loop the coroutine becomes a task of that loop
    and ``callback`` runs on the loop's thread. Otherwise it runs on the
    shared :data:`bridge_loop` and ``callback`` runs on the bridge thread.

    Args:
        coro: Coroutine to run
        callback: Called with the finished future

    Returns:
        The task or future tracking the coroutine.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        future: AnyFuture = bridge_loop.submit(coro)
    else:
        task = loop.create_task(coro)
        _pending_tasks.add(task)
        task.add_done_callback(_pending_tasks.discard)
        future = task
    if callback is not None:
        future.add_done_callback(callback)
    return future


def failed_future(error: BaseException) -> "concurrent.futures.Future[Any]":
    """Return an already finished future holding ``error``."""
    future: "concurrent.futures.Future[Any]" = concurrent.futures.Future()
    future.set_exception(error)
    return future


def run_sync(coro_func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
    """
    Run an async function from synchronous code and return its result.

    Args:
        coro_func: The async function to run
        *args: Positional arguments for the function
        **kwargs: Keyword arguments for the function

    Returns:
        The result of the async function

    Raises:
        RuntimeError: If called from inside a running event loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError(
            "Cannot run async function synchronously from within an async context. "
            "Use 'await' instead."
        )
    return bridge_loop.submit(coro_func(*args, **kwargs)).result()
