"""Configuration settings for Spellbook.

This module defines the configuration settings shared by the HTTP client
wrapper and the logging facade. Settings are loaded from environment
variables prefixed with ``SPELLBOOK_`` and from ``.env`` files.
"""

from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError
from ..log.levels import LogLevel


class Settings(BaseSettings):
    """Package settings loaded from environment variables.

    :param log_min_level: Minimum level of the default logger
    :type log_min_level: LogLevel
    :param log_asserts_enabled: Whether ``assert_=True`` log calls raise
    :type log_asserts_enabled: bool
    :param log_subsystem: Subsystem of the default logger's source
    :type log_subsystem: Optional[str]
    :param http_user_agent: User-Agent added to requests that set none
    :type http_user_agent: Optional[str]
    :param http_default_headers: Extra headers added to requests that lack them
    :type http_default_headers: Dict[str, str]
    :param http_enable_http2: Enable HTTP/2 on the shared session
    :type http_enable_http2: bool
    :param http_timeout: Read timeout of the shared session in seconds
    :type http_timeout: float
    :param http_follow_redirects: Follow redirects on the shared session
    :type http_follow_redirects: bool
    """

    model_config = SettingsConfigDict(
        env_prefix="SPELLBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )

    # Logging
    log_min_level: LogLevel = Field(
        LogLevel.INFO, description="Minimum level of the default logger"
    )
    log_asserts_enabled: bool = Field(
        True, description="Raise AssertionError for log calls made with assert_=True"
    )
    log_subsystem: Optional[str] = Field(
        None, description="Subsystem used by the default logger"
    )

    # HTTP
    http_user_agent: Optional[str] = Field(
        None, description="User-Agent header added when a request sets none"
    )
    http_default_headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Headers added to every request that does not already set them",
    )
    http_enable_http2: bool = Field(False, description="Enable HTTP/2 when h2 is installed")
    http_timeout: float = Field(30.0, description="Read timeout in seconds", gt=0)
    http_follow_redirects: bool = Field(True, description="Follow HTTP redirects")

    @field_validator("log_min_level", mode="before")
    @classmethod
    def parse_log_level(cls, v):
        """Accept level names (``"debug"``) as well as numeric values.

        :param v: Raw value from the environment or constructor
        :return: Parsed log level
        :rtype: LogLevel
        :raises ValueError: If the value names no known level
        """
        try:
            return LogLevel.parse(v)
        except ConfigurationError as e:
            raise ValueError(e.message) from e

    @property
    def effective_default_headers(self) -> Dict[str, str]:
        """Get the headers the HTTP client should add by default.

        Combines ``http_default_headers`` with ``http_user_agent``; an
        explicit User-Agent entry in ``http_default_headers`` wins.

        :return: Header name to value mapping
        :rtype: Dict[str, str]
        """
        headers = dict(self.http_default_headers)
        if self.http_user_agent and not any(
            name.lower() == "user-agent" for name in headers
        ):
            headers["User-Agent"] = self.http_user_agent
        return headers


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance.

    The instance is created on first use and cached. Call
    ``get_settings.cache_clear()`` to reload from the environment.

    :return: Cached settings
    :rtype: Settings
    """
    return Settings()
