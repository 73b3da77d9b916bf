"""Persistence adapter between the entity store and a durable layer.

Three operations:

* ``load`` reads a key once at startup and falls back to a default when the
  stored value is missing or malformed.
* ``save`` writes a key on every local change; failures are logged and
  otherwise ignored.
* ``subscribe_external_change`` forwards changes written by other actors.
  Payloads that do not decode are dropped with a warning.

Session-scoped keys are namespaced with the session name and are never
forwarded to subscribers.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, TypeVar

import ulid

from .layers import DurableLayer, DurableLayerError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decoder = Callable[[str], Any]
Encoder = Callable[[Any], str]
ExternalChangeHandler = Callable[[Any, str], None]

# Exceptions a decoder may raise on a malformed payload.
DECODE_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


class MalformedPersistedData(Exception):
    """Raised when a stored payload cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Malformed data under {key}: {reason}")
        self.key = key
        self.reason = reason


def decode_or_raise(key: str, raw: str, decode: Decoder) -> Any:
    """Decode ``raw`` or raise :class:`MalformedPersistedData`."""
    try:
        return decode(raw)
    except DECODE_ERRORS as exc:
        raise MalformedPersistedData(key, str(exc)) from exc


class PersistenceAdapter:
    """One actor's view of a durable layer."""

    def __init__(
        self,
        layer: DurableLayer,
        *,
        session: str = "default",
        origin: str | None = None,
    ) -> None:
        self.layer = layer
        self.session = session
        self.origin = origin or str(ulid.ULID())
        self._handlers: dict[str, list[tuple[Decoder, ExternalChangeHandler]]] = {}
        self._subscribed = False

    def session_key(self, key: str) -> str:
        return f"{self.session}:{key}"

    def _resolve(self, key: str, scoped: bool) -> str:
        return self.session_key(key) if scoped else str(key)

    def load(
        self,
        key: str,
        default: T,
        *,
        decode: Decoder = json.loads,
        scoped: bool = False,
    ) -> T:
        """Read and decode ``key``, returning ``default`` on any failure."""
        full_key = self._resolve(key, scoped)
        try:
            raw = self.layer.read(full_key)
        except DurableLayerError as exc:
            logger.warning("Cannot read %s, using default: %s", full_key, exc)
            return default
        if raw is None:
            return default
        try:
            return decode_or_raise(full_key, raw, decode)
        except MalformedPersistedData as exc:
            logger.warning("%s; using default", exc)
            return default

    def save(
        self,
        key: str,
        value: Any,
        *,
        encode: Encoder = json.dumps,
        scoped: bool = False,
    ) -> str:
        """Best-effort write. Returns the encoded payload."""
        full_key = self._resolve(key, scoped)
        raw = encode(value)
        try:
            self.layer.write(full_key, raw, origin=self.origin)
        except DurableLayerError as exc:
            logger.warning("Write of %s failed: %s", full_key, exc)
        return raw

    def subscribe_external_change(
        self,
        key: str,
        handler: ExternalChangeHandler,
        *,
        decode: Decoder = json.loads,
    ) -> None:
        """Call ``handler(value, raw)`` whenever another actor writes ``key``."""
        self._handlers.setdefault(str(key), []).append((decode, handler))
        if not self._subscribed:
            self.layer.subscribe(self.origin, self._on_layer_change)
            self._subscribed = True

    def poll(self) -> int:
        return self.layer.poll()

    def _on_layer_change(self, key: str, raw: str) -> None:
        handlers = self._handlers.get(key)
        if not handlers:
            return
        for decode, handler in handlers:
            try:
                value = decode_or_raise(key, raw, decode)
            except MalformedPersistedData as exc:
                logger.warning("Dropped external update: %s", exc)
                continue
            handler(value, raw)
