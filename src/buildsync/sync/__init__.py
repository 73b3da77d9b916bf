"""Persistence adapter, durable layers and per-actor session wiring."""

from .adapter import MalformedPersistedData, PersistenceAdapter
from .keys import COLLECTION_KEYS, SessionKey, SharedKey, decode_collection, encode_collection
from .layers import DurableLayer, DurableLayerError, SharedMemoryLayer
from .runtime import ActorSession, load_identity, login, open_session, save_identity
from .sqlite_layer import SqliteDurableLayer

__all__ = [
    "ActorSession",
    "COLLECTION_KEYS",
    "DurableLayer",
    "DurableLayerError",
    "MalformedPersistedData",
    "PersistenceAdapter",
    "SessionKey",
    "SharedKey",
    "SharedMemoryLayer",
    "SqliteDurableLayer",
    "decode_collection",
    "encode_collection",
    "load_identity",
    "login",
    "open_session",
    "save_identity",
]
