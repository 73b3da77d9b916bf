"""User-facing notification handling."""

from .dispatcher import (
    DEFAULT_TIMEOUT_SECONDS,
    NO_OFFERS_MESSAGE,
    ClickIntent,
    ClickOutcome,
    Notification,
    NotificationDispatcher,
    Severity,
)

__all__ = [
    "ClickIntent",
    "ClickOutcome",
    "DEFAULT_TIMEOUT_SECONDS",
    "NO_OFFERS_MESSAGE",
    "Notification",
    "NotificationDispatcher",
    "Severity",
]
