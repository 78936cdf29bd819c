"""Leveled logging facade with destination fan-out.

A :class:`Logger` gates log calls by level, builds a :class:`LogRecord`
for calls that pass and hands the record to a private single-worker queue
that delivers it to every registered destination in FIFO order. Call
sites never wait for destinations.

Child logs created with :meth:`Log.with_source` or :meth:`Log.child`
carry their own :class:`LogSource` but route every call through the root
logger, so the root's level, assertion toggle and destinations apply.

Examples:
    >>> log = Logger("app")
    >>> log.add_destination(print)
    >>> log.min_level = LogLevel.DEBUG
    >>> log.child("network").debug(lambda: f"expensive {state}")
"""

import logging
import sys
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, List, Optional, Tuple

from .levels import LogLevel
from .records import GENERIC, LogRecord, LogSource

logger = logging.getLogger(__name__)

Destination = Callable[[LogRecord], None]


def _call_site(depth: int) -> Tuple[str, str, int]:
    """Return (file, function, line) of the frame ``depth`` levels above the caller."""
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return "(unknown file)", "(unknown function)", 0
    code = frame.f_code
    return code.co_filename, code.co_name, frame.f_lineno


def _evaluate(message: Any) -> Any:
    # Classes are logged as-is; any other callable is a message thunk.
    if callable(message) and not isinstance(message, type):
        return message()
    return message


class Log(ABC):
    """Log call surface shared by loggers and their children.

    Subclasses implement :meth:`custom`; the level helpers capture the
    call site of their caller. ``stacklevel`` works as in the standard
    :mod:`logging` module for wrappers that want to report their own
    caller instead.

    A message can be any object. A callable other than a class is treated
    as a lazily evaluated message: it is called without arguments, once,
    and only when the record passes the level gate. To log a function or
    other callable object itself, wrap it: ``log.debug(lambda: handler)``.
    """

    @property
    @abstractmethod
    def source(self) -> LogSource:
        """Source attached to records emitted through this log."""

    @abstractmethod
    def custom(
        self,
        level: LogLevel,
        message: Any,
        assert_: bool = False,
        *,
        file: str,
        function: str,
        line: int,
    ) -> None:
        """Log ``message`` at ``level`` with an explicit call site."""

    @abstractmethod
    def _root(self) -> "Logger":
        """Logger that gates and dispatches calls made through this log."""

    def log(
        self, level: LogLevel, message: Any, assert_: bool = False, stacklevel: int = 1
    ) -> None:
        """Log ``message`` at ``level``.

        :param level: Level of the record, a :class:`LogLevel` or its value
        :param message: Message, or a zero-argument callable producing it
        :param assert_: Raise :class:`AssertionError` if asserts are enabled
        :param stacklevel: Frames to skip when capturing the call site
        :raises ConfigurationError: If ``level`` names no log level
        """
        self._log_from_caller(level, message, assert_, stacklevel)

    def verbose(self, message: Any, stacklevel: int = 1) -> None:
        self._log_from_caller(LogLevel.VERBOSE, message, False, stacklevel)

    def debug(self, message: Any, stacklevel: int = 1) -> None:
        self._log_from_caller(LogLevel.DEBUG, message, False, stacklevel)

    def info(self, message: Any, stacklevel: int = 1) -> None:
        self._log_from_caller(LogLevel.INFO, message, False, stacklevel)

    def warning(self, message: Any, stacklevel: int = 1) -> None:
        self._log_from_caller(LogLevel.WARNING, message, False, stacklevel)

    def error(self, message: Any, assert_: bool = False, stacklevel: int = 1) -> None:
        self._log_from_caller(LogLevel.ERROR, message, assert_, stacklevel)

    def fatal(self, message: Any, assert_: bool = False, stacklevel: int = 1) -> None:
        self._log_from_caller(LogLevel.FATAL, message, assert_, stacklevel)

    def _log_from_caller(
        self, level: LogLevel, message: Any, assert_: bool, stacklevel: int
    ) -> None:
        # Frames: _log_from_caller <- level helper <- caller.
        file, function, line = _call_site(1 + stacklevel)
        self.custom(level, message, assert_, file=file, function=function, line=line)

    def with_source(self, source: LogSource) -> "Log":
        """Create a child log that emits records with ``source``.

        Children perform logging through the root logger.

        :param source: Source attached to the child's records
        :return: Child log
        """
        return ChildLog(self._root(), source)

    def child(
        self,
        category: str,
        subsystem: Optional[str] = None,
        context: Optional[Any] = None,
    ) -> "Log":
        """Create a child log replacing the category and optionally the subsystem.

        The subsystem and context of this log's source are kept unless
        given.

        :param category: Category of the child's source
        :param subsystem: Optional subsystem replacing the current one
        :param context: Optional context replacing the current one
        :return: Child log
        """
        source = self.source.replace(category=category)
        if subsystem is not None:
            source = source.replace(subsystem=subsystem)
        if context is not None:
            source = source.replace(context=context)
        return self.with_source(source)


class Logger(Log):
    """Root logger owning the level gate, destinations and dispatch queue.

    All settings can be changed at any time from any thread. Readers see a
    consistent value of each setting; no guarantee spans several settings.

    :param name: Logger name, used for the dispatch thread name
    :param source: Source of records logged directly on this logger
    :param min_level: Records below this level are dropped
    :param asserts_enabled: Whether ``assert_=True`` calls raise
    :param destinations: Initial destination callables
    """

    # Subsystem used by logs the package creates for itself.
    internal_subsystem = "Spellbook"

    def __init__(
        self,
        name: str,
        *,
        source: Optional[LogSource] = None,
        min_level: LogLevel = LogLevel.INFO,
        asserts_enabled: bool = True,
        destinations: Optional[List[Destination]] = None,
    ):
        self.name = name
        self._lock = threading.Lock()
        self._source = source or LogSource.default()
        self._min_level = LogLevel.parse(min_level)
        self._asserts_enabled = asserts_enabled
        self._destinations: List[Destination] = list(destinations or [])
        self._queue = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"spellbook.log.{name}"
        )

    @classmethod
    def from_settings(cls, name: str, settings=None) -> "Logger":
        """Create a logger configured from :class:`~spellbook.config.Settings`.

        :param name: Logger name
        :param settings: Settings to use, the cached settings by default
        :return: Configured logger
        """
        # Import here to avoid circular dependency
        from ..config.settings import get_settings

        settings = settings or get_settings()
        source = (
            LogSource(subsystem=settings.log_subsystem, category=GENERIC)
            if settings.log_subsystem
            else None
        )
        return cls(
            name,
            source=source,
            min_level=settings.log_min_level,
            asserts_enabled=settings.log_asserts_enabled,
        )

    @property
    def source(self) -> LogSource:
        with self._lock:
            return self._source

    @source.setter
    def source(self, value: LogSource) -> None:
        with self._lock:
            self._source = value

    @property
    def min_level(self) -> LogLevel:
        with self._lock:
            return self._min_level

    @min_level.setter
    def min_level(self, value: LogLevel) -> None:
        level = LogLevel.parse(value)
        with self._lock:
            self._min_level = level

    @property
    def asserts_enabled(self) -> bool:
        """If log calls with ``assert_=True`` should really raise."""
        with self._lock:
            return self._asserts_enabled

    @asserts_enabled.setter
    def asserts_enabled(self, value: bool) -> None:
        with self._lock:
            self._asserts_enabled = value

    @property
    def destinations(self) -> List[Destination]:
        """Snapshot of the registered destinations."""
        with self._lock:
            return list(self._destinations)

    @destinations.setter
    def destinations(self, value: List[Destination]) -> None:
        with self._lock:
            self._destinations = list(value)

    def add_destination(self, destination: Destination) -> None:
        with self._lock:
            self._destinations.append(destination)

    def remove_destination(self, destination: Destination) -> None:
        """Remove the first registration of ``destination``.

        :raises ValueError: If the destination is not registered
        """
        with self._lock:
            self._destinations.remove(destination)

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level >= self.min_level

    def custom(
        self,
        level: LogLevel,
        message: Any,
        assert_: bool = False,
        *,
        file: str,
        function: str,
        line: int,
    ) -> None:
        self._emit(self.source, level, message, assert_, file, function, line)

    def _root(self) -> "Logger":
        return self

    def _emit(
        self,
        source: LogSource,
        level: LogLevel,
        message: Any,
        assert_: bool,
        file: str,
        function: str,
        line: int,
    ) -> None:
        level = LogLevel.parse(level)
        with self._lock:
            min_level = self._min_level
            asserts_enabled = self._asserts_enabled
        if level < min_level:
            return

        value = _evaluate(message)
        if __debug__ and assert_ and asserts_enabled:
            raise AssertionError(f"{value} ({file}:{line})")

        record = LogRecord(
            source=source,
            level=level,
            message=value,
            file=file,
            function=function,
            line=line,
        )
        try:
            self._queue.submit(self._deliver, record)
        except RuntimeError:
            # Executors refuse new work during interpreter shutdown.
            logger.debug("Dispatch queue of %s is shut down, delivering inline", self.name)
            self._deliver(record)

    def _deliver(self, record: LogRecord) -> None:
        for destination in self.destinations:
            destination(record)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every record queued before this call was delivered.

        Must not be called from a destination of the same logger.

        :param timeout: Maximum seconds to wait, forever by default
        :return: True if the queue drained in time
        """
        marker = self._queue.submit(lambda: None)
        try:
            marker.result(timeout=timeout)
        except FutureTimeoutError:
            return False
        return True

    def __repr__(self) -> str:
        return f"Logger(name={self.name!r}, source={str(self.source)!r}, min_level={self.min_level.name})"


class ChildLog(Log):
    """Log with its own source that performs logging through a root logger."""

    def __init__(self, root: Logger, source: LogSource):
        self._root_logger = root
        self._source = source

    @property
    def source(self) -> LogSource:
        return self._source

    def custom(
        self,
        level: LogLevel,
        message: Any,
        assert_: bool = False,
        *,
        file: str,
        function: str,
        line: int,
    ) -> None:
        self._root_logger._emit(self._source, level, message, assert_, file, function, line)

    def _root(self) -> Logger:
        return self._root_logger

    def __repr__(self) -> str:
        return f"ChildLog(root={self._root_logger.name!r}, source={str(self._source)!r})"


_default_logger: Optional[Logger] = None
_default_lock = threading.Lock()


def get_default_logger() -> Logger:
    """Get the shared logger named ``"default"``, creating it from settings."""
    global _default_logger
    if _default_logger is None:
        with _default_lock:
            if _default_logger is None:
                _default_logger = Logger.from_settings("default")
    return _default_logger


def internal_log(category: str) -> Log:
    """Child of the default logger used by the package for its own records."""
    return get_default_logger().child(category, subsystem=Logger.internal_subsystem)
