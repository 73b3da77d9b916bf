"""Durable key/value layers shared between actors.

A layer stores raw JSON strings by key and tells every other subscriber
when a key changes. Writers are identified by an ``origin`` string; a
subscriber never hears about its own writes.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[str, str], None]


class DurableLayerError(Exception):
    """Raised when the underlying storage cannot be read or written."""


class DurableLayer(Protocol):
    def read(self, key: str) -> str | None: ...

    def write(self, key: str, raw: str, *, origin: str) -> None: ...

    def subscribe(self, origin: str, handler: ChangeHandler) -> None: ...

    def poll(self) -> int: ...


class SharedMemoryLayer:
    """In-process layer for several actors living in one interpreter.

    Writes are delivered synchronously to every subscriber whose origin
    differs from the writer's, in subscription order.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._subscribers: list[tuple[str, ChangeHandler]] = []

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, raw: str, *, origin: str) -> None:
        self._data[key] = raw
        for subscriber_origin, handler in list(self._subscribers):
            if subscriber_origin != origin:
                handler(key, raw)

    def subscribe(self, origin: str, handler: ChangeHandler) -> None:
        self._subscribers.append((origin, handler))

    def poll(self) -> int:
        """Nothing is ever pending: delivery happens inside :meth:`write`."""
        return 0

    def keys(self) -> list[str]:
        return sorted(self._data)
