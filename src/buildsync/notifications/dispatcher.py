"""Transient, dismissible, time-boxed user alerts.

Notifications live only in memory. Each one expires ``timeout`` seconds
after it is posted unless dismissed earlier; expiry is evaluated lazily
against an injectable monotonic clock, so the dispatcher never needs a timer
thread and stays on the caller's single logical thread.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Sequence

import ulid

from buildsync.marketplace.models import Broadcast

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0

NO_OFFERS_MESSAGE = "This broadcast has no offers yet."


class Severity(StrEnum):
    OFFER = "offer"
    INFO = "info"
    SUCCESS = "success"


class ClickIntent(StrEnum):
    OPEN_OFFERS = "open_offers"


class ClickOutcome(StrEnum):
    OPENED = "opened"
    NOTHING_TO_SHOW = "nothing_to_show"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Notification:
    id: str
    message: str
    severity: Severity
    created_at: float
    expires_at: float
    deep_link_id: str | None = None
    intent: ClickIntent | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "message": self.message,
            "severity": str(self.severity),
            "deepLinkId": self.deep_link_id,
            "intent": str(self.intent) if self.intent else None,
        }


PostListener = Callable[[Notification], None]
OpenOffersHandler = Callable[[Broadcast], None]


class NotificationDispatcher:
    """Owns every live notification for one actor session.

    ``broadcasts`` is called at click time to fetch the freshest broadcast
    snapshot, so a deep link never resolves against stale data.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        broadcasts: Callable[[], Sequence[Broadcast]] | None = None,
    ) -> None:
        self.timeout = timeout
        self._clock = clock
        self._broadcasts = broadcasts or (lambda: ())
        self._live: dict[str, Notification] = {}
        self._listeners: list[PostListener] = []
        self._open_offers_handlers: list[OpenOffersHandler] = []

    def add_listener(self, listener: PostListener) -> None:
        self._listeners.append(listener)

    def on_open_offers(self, handler: OpenOffersHandler) -> None:
        """Register the detail-view trigger used by deep-link clicks."""
        self._open_offers_handlers.append(handler)

    def post(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        deep_link_id: str | None = None,
    ) -> str:
        """Post a notification and return its id."""
        now = self._clock()
        note = Notification(
            id=str(ulid.ULID()),
            message=message,
            severity=Severity(severity),
            created_at=now,
            expires_at=now + self.timeout,
            deep_link_id=deep_link_id,
            intent=ClickIntent.OPEN_OFFERS if deep_link_id else None,
        )
        self._live[note.id] = note
        logger.debug("Notification %s posted: %s", note.id, message)
        for listener in self._listeners:
            listener(note)
        return note.id

    def dismiss(self, notification_id: str) -> bool:
        """Remove a notification. Unknown or expired ids are a no-op.

        Returns True only when this call removed a live notification.
        """
        self.expire()
        return self._live.pop(notification_id, None) is not None

    def expire(self, now: float | None = None) -> list[Notification]:
        """Drop every notification whose deadline has passed."""
        current = self._clock() if now is None else now
        expired = [n for n in self._live.values() if n.expires_at <= current]
        for note in expired:
            del self._live[note.id]
        return expired

    def active(self) -> list[Notification]:
        self.expire()
        return list(self._live.values())

    def get(self, notification_id: str) -> Notification | None:
        self.expire()
        return self._live.get(notification_id)

    def click(self, notification_id: str) -> ClickOutcome:
        """Act on a notification click.

        Deep links open the offer view only while the linked broadcast still
        exists and has at least one offer; otherwise a fallback notification
        is posted.
        """
        note = self.get(notification_id)
        if note is None or note.deep_link_id is None:
            return ClickOutcome.IGNORED

        broadcast = next(
            (b for b in self._broadcasts() if b.id == note.deep_link_id), None
        )
        if broadcast is None or not broadcast.offers:
            self.post(NO_OFFERS_MESSAGE, Severity.INFO)
            return ClickOutcome.NOTHING_TO_SHOW

        for handler in self._open_offers_handlers:
            handler(broadcast)
        return ClickOutcome.OPENED
