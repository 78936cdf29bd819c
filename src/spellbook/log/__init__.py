"""Structured logging facade public API (barrel module).

This package provides:
- Log levels and the level gate
- Log sources and records handed to destinations
- Root loggers with a serial dispatch queue
- Child logs sharing their root's gate and destinations

Recommended import pattern for consumers:
    from spellbook.log import Logger, LogLevel, LogRecord, LogSource
"""

from .levels import LogLevel
from .logger import (
    ChildLog,
    Destination,
    Log,
    Logger,
    get_default_logger,
    internal_log,
)
from .records import LogRecord, LogSource

__all__ = [
    "LogLevel",
    "LogRecord",
    "LogSource",
    "Log",
    "Logger",
    "ChildLog",
    "Destination",
    "get_default_logger",
    "internal_log",
]
