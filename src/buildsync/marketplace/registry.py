"""Strict expert lookup across the sample roster and registered experts."""

from __future__ import annotations

from typing import Callable, Iterable

from .models import ExpertProfile
from .roster import SAMPLE_EXPERTS


class NotFoundForAction(Exception):
    """Raised when a command targets an entity that no longer exists."""


class ExpertNotFound(NotFoundForAction):
    """Raised when no profile matches an expert id."""


class ExpertRegistry:
    """Resolves expert ids to profiles.

    Registered experts take precedence over the compiled-in roster. There is
    no fallback: an unknown id raises :class:`ExpertNotFound`.
    """

    def __init__(
        self,
        registered: Callable[[], Iterable[ExpertProfile]],
        roster: Iterable[ExpertProfile] = SAMPLE_EXPERTS,
    ) -> None:
        self._registered = registered
        self._roster = tuple(roster)

    def all(self) -> list[ExpertProfile]:
        seen: set[str] = set()
        result: list[ExpertProfile] = []
        for profile in list(self._registered()) + list(self._roster):
            if profile.id not in seen:
                seen.add(profile.id)
                result.append(profile)
        return result

    def get(self, expert_id: str) -> ExpertProfile:
        for profile in self.all():
            if profile.id == expert_id:
                return profile
        raise ExpertNotFound(f"No expert with id {expert_id!r}")

    def find_by_name(self, name: str) -> ExpertProfile | None:
        for profile in self.all():
            if profile.name == name:
                return profile
        return None
