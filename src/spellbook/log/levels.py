"""Log levels for the logging facade."""

from enum import IntEnum
from typing import Union

from ..exceptions import ConfigurationError


class LogLevel(IntEnum):
    """Severity of a log record, ordered from least to most severe."""

    VERBOSE = 0  # something generally unimportant
    DEBUG = 1  # something which helps during debugging
    INFO = 2  # something interesting which is not an issue or error
    WARNING = 3  # something which may cause trouble soon
    ERROR = 4  # something which already got in trouble
    FATAL = 5  # something which will keep you awake at night

    @classmethod
    def parse(cls, value: Union["LogLevel", int, str]) -> "LogLevel":
        """Parse a level from a member, its numeric value or its name.

        Names are case-insensitive and surrounding whitespace is ignored.

        :param value: Level, integer value or level name
        :return: The matching level
        :raises ConfigurationError: If no level matches
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise ConfigurationError(
                    f"Unknown log level value: {value}", setting="log_min_level"
                ) from None
        if isinstance(value, str):
            name = value.strip().upper()
            if name.isdigit():
                return cls.parse(int(name))
            if name in cls.__members__:
                return cls[name]
        raise ConfigurationError(
            f"Unknown log level: {value!r}", setting="log_min_level"
        )
