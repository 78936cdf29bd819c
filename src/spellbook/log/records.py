"""Log source and log record models.

A :class:`LogSource` names where a record comes from (subsystem and
category, plus an optional opaque context). Destinations use it to filter
and group records. A :class:`LogRecord` is built once per log call that
passes the level gate and is shared by every destination.
"""

import dataclasses
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .levels import LogLevel

GENERIC = "Generic"


def _application_identifier() -> str:
    """Best-effort identifier of the running application.

    Uses the module name of ``__main__`` when the program was started with
    ``python -m``, the script's file stem otherwise, and ``"Generic"`` for
    interactive sessions.
    """
    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    name = getattr(spec, "name", None)
    if name:
        if name.endswith(".__main__"):
            name = name[: -len(".__main__")]
        return name
    path = getattr(main, "__file__", None)
    if path:
        return Path(path).stem or GENERIC
    return GENERIC


@dataclass(frozen=True)
class LogSource:
    """Origin of a log record.

    :param subsystem: Component or application emitting the record
    :param category: Area inside the subsystem
    :param context: Optional opaque value forwarded to destinations
    """

    subsystem: str
    category: str
    context: Optional[Any] = field(default=None, hash=False)

    @classmethod
    def default(cls, category: str = GENERIC) -> "LogSource":
        """Source named after the running application."""
        return cls(subsystem=_application_identifier(), category=category)

    def replace(self, **changes: Any) -> "LogSource":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def __str__(self) -> str:
        return f"{self.subsystem}/{self.category}"


@dataclass(frozen=True)
class LogRecord:
    """A single log event delivered to destinations.

    ``message`` is whatever the caller logged, already evaluated if the
    caller passed a callable. ``file``, ``function`` and ``line`` describe
    the call site.
    """

    source: LogSource
    level: LogLevel
    message: Any
    file: str
    function: str
    line: int

    def __str__(self) -> str:
        return f"[{self.level.name}] {self.source}: {self.message}"
