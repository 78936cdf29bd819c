"""Ordered HTTP parameter containers.

Headers and query items are kept as ordered lists of key/value pairs
rather than dictionaries: order is preserved, the same key may appear
several times, and lookups return the first match.
"""

from dataclasses import dataclass
from enum import Enum
from typing import (
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

K = TypeVar("K")


def key_name(key: object) -> str:
    """Raw string form of a parameter key."""
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


class HTTPHeader(str, Enum):
    """Well-known HTTP header names."""

    ACCEPT = "Accept"
    ACCEPT_ENCODING = "Accept-Encoding"
    ACCEPT_LANGUAGE = "Accept-Language"
    AUTHORIZATION = "Authorization"
    CACHE_CONTROL = "Cache-Control"
    CONNECTION = "Connection"
    CONTENT_ENCODING = "Content-Encoding"
    CONTENT_LENGTH = "Content-Length"
    CONTENT_TYPE = "Content-Type"
    COOKIE = "Cookie"
    HOST = "Host"
    IF_NONE_MATCH = "If-None-Match"
    ORIGIN = "Origin"
    REFERER = "Referer"
    USER_AGENT = "User-Agent"


@dataclass(frozen=True)
class HTTPParameter(Generic[K]):
    """Single key/value entry of :class:`HTTPParameters`."""

    key: K
    value: str

    @property
    def name(self) -> str:
        return key_name(self.key)


class HTTPParameters(Generic[K]):
    """Ordered collection of HTTP parameters.

    :param entries: Optional mapping or iterable of ``(key, value)`` pairs
    """

    def __init__(
        self,
        entries: Optional[Union[Mapping[K, str], Iterable[Tuple[K, str]]]] = None,
    ):
        self._items: List[HTTPParameter[K]] = []
        if entries is None:
            return
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        for key, value in pairs:
            self.append(key, value)

    @property
    def items(self) -> List[HTTPParameter[K]]:
        """Snapshot of the entries in insertion order."""
        return list(self._items)

    def append(self, key: K, value: str) -> None:
        self._items.append(HTTPParameter(key, str(value)))

    def set(self, key: K, value: str) -> None:
        """Replace every entry with ``key`` by a single entry.

        The new entry takes the position of the first replaced one, or is
        appended when the key was absent.
        """
        name = key_name(key)
        position = None
        kept: List[HTTPParameter[K]] = []
        for item in self._items:
            if item.name == name:
                if position is None:
                    position = len(kept)
                continue
            kept.append(item)
        entry = HTTPParameter(key, str(value))
        if position is None:
            kept.append(entry)
        else:
            kept.insert(position, entry)
        self._items = kept

    def remove(self, key: K) -> int:
        """Remove every entry with ``key`` and return how many were removed."""
        name = key_name(key)
        before = len(self._items)
        self._items = [item for item in self._items if item.name != name]
        return before - len(self._items)

    def get(self, key: K, default: Optional[str] = None) -> Optional[str]:
        """Value of the first entry with ``key``."""
        name = key_name(key)
        for item in self._items:
            if item.name == name:
                return item.value
        return default

    def get_all(self, key: K) -> List[str]:
        name = key_name(key)
        return [item.value for item in self._items if item.name == name]

    def to_list(self) -> List[Tuple[str, str]]:
        """Entries as raw string pairs, the form ``httpx`` accepts."""
        return [(item.name, item.value) for item in self._items]

    def copy(self) -> "HTTPParameters[K]":
        clone: HTTPParameters[K] = HTTPParameters()
        clone._items = list(self._items)
        return clone

    def __getitem__(self, key: K) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key_name(key))
        return value

    def __contains__(self, key: object) -> bool:
        name = key_name(key)
        return any(item.name == name for item in self._items)

    def __iter__(self) -> Iterator[HTTPParameter[K]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HTTPParameters):
            return NotImplemented
        return self.to_list() == other.to_list()

    def __repr__(self) -> str:
        return f"HTTPParameters({self.to_list()!r})"


Headers = HTTPParameters[Union[HTTPHeader, str]]
