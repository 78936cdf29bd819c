"""Spellbook convenience package.

This package provides a thin HTTP client wrapper over ``httpx`` with
typed response decoding and callback/async entry points, plus a small
structured logging facade with leveled destination fan-out and
hierarchical log sources.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.1.0"
