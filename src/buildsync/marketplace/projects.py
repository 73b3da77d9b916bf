"""Project lifecycle commands.

Covers project creation (first message, media upload, expert approval),
message threads, the resolve / reconnect / find-new-expert transitions,
invoice attachment and advisory-service round trips.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone

import ulid

from buildsync.advisory.client import AdvisoryService, ServiceUnavailable
from buildsync.notifications import NotificationDispatcher, Severity

from .models import (
    ActorIdentity,
    ChatMessage,
    ExpertProfile,
    Invoice,
    Milestone,
    Project,
    ProjectMedia,
    ProjectStatus,
    Thread,
)
from .registry import NotFoundForAction
from .store import CollectionName, EntityStore
from .transitions import (
    InvalidTransition,
    assign_expert,
    complete_project,
    reopen_for_new_expert,
    reopen_with_expert,
)

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{ulid.ULID()}"


def _now_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


def system_message(text: str) -> ChatMessage:
    return ChatMessage(id=_new_id("sys"), role="system_summary", text=text)


def _title_from(text: str, width: int) -> str:
    return text[:width] + "..."


def link_expert(
    store: EntityStore,
    profile: ExpertProfile,
    *,
    project_id: str | None,
    summary: str,
) -> Project:
    """Create or update the project an approved expert joins.

    An existing ``project_id`` is moved to in-progress with the expert
    attached; otherwise a new in-progress project is created from
    ``summary``. Raises :class:`InvalidTransition` if the existing project
    cannot take the assignment.
    """
    existing = store.find(CollectionName.PROJECTS, project_id) if project_id else None
    if existing is not None:
        updated = assign_expert(
            existing,
            profile.id,
            profile.name,
            system_message(
                f"Expert {profile.name} has joined the link. Initial project context transmitted."
            ),
        )
        store.replace_entity(CollectionName.PROJECTS, updated)
        return updated

    project = Project(
        id=project_id or _new_id("proj"),
        title=_title_from(summary, 20),
        status=ProjectStatus.IN_PROGRESS,
        summary=summary,
        assigned_pro_id=profile.id,
        assigned_pro_name=profile.name,
        expert_messages=(
            system_message(f"Expert {profile.name} has joined the link. Match finalized."),
        ),
    )
    store.prepend(CollectionName.PROJECTS, project)
    return project


@dataclass(frozen=True)
class ResolveOutcome:
    """What the caller should show after a project is marked resolved."""

    project: Project
    prompt_review: bool


class ProjectService:
    """Project commands for one local actor."""

    def __init__(
        self,
        store: EntityStore,
        dispatcher: NotificationDispatcher,
        actor: ActorIdentity,
        advisory: AdvisoryService | None = None,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.actor = actor
        self.advisory = advisory
        self.needs_reauth = False

    def _thread(self, thread: Thread | str) -> Thread | None:
        try:
            return Thread(thread)
        except ValueError:
            logger.warning("Unknown message thread %r", thread)
            self.dispatcher.post("That conversation thread does not exist.", Severity.INFO)
            return None

    # ── Creation ──────────────────────────────────────────────────

    def start_project(self, text: str, image: str | None = None) -> Project:
        """Create a planning project from a first advisory message."""
        project = Project(
            id=_new_id("proj"),
            title=_title_from(text, 25),
            status=ProjectStatus.PLANNING,
            summary=text,
            ai_messages=(self._user_message(text, image),),
        )
        self.store.prepend(CollectionName.PROJECTS, project)
        return project

    def start_project_from_upload(self, name: str, url: str, media_type: str = "photo") -> Project:
        media = ProjectMedia(
            id=_new_id("media"), url=url, type=media_type, name=name, timestamp=_now_utc()
        )
        project = Project(
            id=_new_id("proj"),
            title=f"Upload: {name[:15]}...",
            status=ProjectStatus.PLANNING,
            summary=f"Project initiated via {media_type} upload. Material analysis pending.",
            ai_messages=(
                ChatMessage(
                    id=_new_id("msg"),
                    role="user",
                    text=f"Analyzing uploaded {media_type}: {name}",
                    canvas_snapshot=url if media_type == "photo" else None,
                ),
            ),
            media=(media,),
        )
        self.store.prepend(CollectionName.PROJECTS, project)
        self.dispatcher.post(f"New build initiated from {media_type} upload.", Severity.SUCCESS)
        return project

    def add_media(
        self, project_id: str, name: str, url: str, media_type: str = "photo"
    ) -> Project | None:
        media = ProjectMedia(
            id=_new_id("media"), url=url, type=media_type, name=name, timestamp=_now_utc()
        )
        updated = self._update(project_id, lambda p: replace(p, media=p.media + (media,)))
        if updated is not None:
            label = "Video" if media_type == "video" else "Photo"
            self.dispatcher.post(f"{label} saved to Site Data.", Severity.SUCCESS)
        return updated

    # ── Messages ──────────────────────────────────────────────────

    def append_message(
        self,
        project_id: str,
        thread: Thread | str,
        message: ChatMessage,
    ) -> Project | None:
        thread = self._thread(thread)
        if thread is None:
            return None
        if thread == Thread.ADVISORY:
            return self._update(project_id, lambda p: replace(p, ai_messages=p.ai_messages + (message,)))
        return self._update(
            project_id, lambda p: replace(p, expert_messages=p.expert_messages + (message,))
        )

    def send_message(
        self,
        text: str,
        *,
        project_id: str | None = None,
        thread: Thread | str = Thread.ADVISORY,
        image: str | None = None,
    ) -> Project | None:
        """Append a user message and, on the advisory thread, the reply.

        Without ``project_id`` a new project is started from the message.
        The advisory reply is appended even if other changes happened while
        the request was in flight.
        """
        if not text.strip() and not image:
            return None
        thread = self._thread(thread)
        if thread is None:
            return None

        if project_id is None:
            project = self.start_project(text, image)
            thread = Thread.ADVISORY
        else:
            project = self.append_message(project_id, thread, self._user_message(text, image))
            if project is None:
                return None

        if thread != Thread.ADVISORY or self.advisory is None:
            return project

        try:
            advice = self.advisory.get_advice(text, project.summary, image)
        except ServiceUnavailable as exc:
            logger.warning("Advisory request failed: %s", exc)
            if exc.auth_failure:
                self.needs_reauth = True
                self.dispatcher.post("Neural bridge session lost. Please re-connect.", Severity.INFO)
            else:
                self.dispatcher.post("AI Bridge communication error.", Severity.INFO)
            return self.store.find(CollectionName.PROJECTS, project.id)

        reply = ChatMessage(
            id=_new_id("msg"),
            role="model",
            text=advice.text,
            generated_images=tuple(advice.images),
            grounding_sources=tuple(advice.sources),
        )
        return self.append_message(project.id, Thread.ADVISORY, reply)

    def end_expert_session(self, project_id: str) -> Project | None:
        """Close a conversation session and file an AI summary as a milestone."""
        project = self.store.find(CollectionName.PROJECTS, project_id)
        if project is None:
            return None

        transcript = "\n".join(f"[{m.role.upper()}]: {m.text}" for m in project.expert_messages)
        self.append_message(
            project_id,
            Thread.EXPERT,
            system_message(
                f"Conversation session ended by {self.actor.name}. The expert remains assigned "
                "to your project. Generating AI summary of this session..."
            ),
        )
        self.dispatcher.post("Conversation session finalized. Analyzing...", Severity.INFO)

        if self.advisory is None:
            self.dispatcher.post("Failed to generate AI summary.", Severity.INFO)
            return self.store.find(CollectionName.PROJECTS, project_id)

        try:
            summary = self.advisory.summarize(transcript)
        except ServiceUnavailable as exc:
            logger.warning("Session summary failed: %s", exc)
            self.dispatcher.post("Failed to generate AI summary.", Severity.INFO)
            return self.store.find(CollectionName.PROJECTS, project_id)

        now = datetime.now(timezone.utc)
        milestone = Milestone(
            id=_new_id("sum"),
            title=f"Session Summary - {now.date().isoformat()}",
            content=summary,
            date=now.isoformat(),
        )
        updated = self._update(project_id, lambda p: replace(p, summaries=p.summaries + (milestone,)))
        self.dispatcher.post("Session summary has been added to Milestones.", Severity.SUCCESS)
        return updated

    # ── Lifecycle ─────────────────────────────────────────────────

    def resolve_project(self, project_id: str) -> ResolveOutcome | None:
        """in-progress -> completed.

        A requester whose project has an assigned expert is due a review
        prompt; anyone else goes straight to the milestone view.
        """
        try:
            updated = self._transition(project_id, complete_project)
        except (NotFoundForAction, InvalidTransition) as exc:
            logger.info("Resolve skipped: %s", exc)
            self.dispatcher.post("This project cannot be marked done right now.", Severity.INFO)
            return None

        prompt_review = self.actor.is_requester and updated.assigned_pro_id is not None
        if not prompt_review:
            self.dispatcher.post("Project marked as done and archived.", Severity.SUCCESS)
        return ResolveOutcome(project=updated, prompt_review=prompt_review)

    def reconnect_expert(self, project_id: str) -> Project | None:
        """completed -> in-progress with the same expert."""
        project = self.store.find(CollectionName.PROJECTS, project_id)
        if project is None:
            return None
        message = system_message(
            f"Signal re-established with {project.assigned_pro_name}. "
            "Project reactivated for ongoing collaboration."
        )
        try:
            updated = self._transition(project_id, lambda p: reopen_with_expert(p, message))
        except (NotFoundForAction, InvalidTransition) as exc:
            logger.info("Reconnect skipped: %s", exc)
            return None
        self.dispatcher.post(f"Reconnected with {updated.assigned_pro_name}", Severity.SUCCESS)
        return updated

    def find_new_expert(self, project_id: str) -> Project | None:
        """completed -> planning with the assignment cleared."""
        message = system_message(
            "Project reactivated. You can now broadcast for a new expert to take over."
        )
        try:
            updated = self._transition(project_id, lambda p: reopen_for_new_expert(p, message))
        except (NotFoundForAction, InvalidTransition) as exc:
            logger.info("Find-new-expert skipped: %s", exc)
            return None
        self.dispatcher.post(f"Ready to find a new expert for '{updated.title}'", Severity.INFO)
        return updated

    def attach_invoice(
        self,
        project_id: str,
        amount: float,
        invoice_type: str,
        rate_label: str,
        description: str,
    ) -> Project | None:
        if amount <= 0 or invoice_type not in ("hourly", "fixed"):
            self.dispatcher.post("Invoice details are invalid.", Severity.INFO)
            return None
        invoice = Invoice(
            id=_new_id("inv"),
            amount=amount,
            type=invoice_type,
            rate_label=rate_label,
            description=description,
            created_at=datetime.now(timezone.utc).date().isoformat(),
        )
        updated = self._update(project_id, lambda p: replace(p, invoice=invoice))
        if updated is not None:
            self.dispatcher.post("Invoice transmitted to client.", Severity.SUCCESS)
        return updated

    # ── Internal ──────────────────────────────────────────────────

    def _user_message(self, text: str, image: str | None) -> ChatMessage:
        return ChatMessage(
            id=_new_id("msg"),
            role="user" if self.actor.is_requester else "expert",
            text=text,
            expert_name=None if self.actor.is_requester else self.actor.name,
            canvas_snapshot=image,
        )

    def _update(self, project_id: str, fn) -> Project | None:
        project = self.store.find(CollectionName.PROJECTS, project_id)
        if project is None:
            logger.info("Project %s not found", project_id)
            return None
        updated = fn(project)
        self.store.replace_entity(CollectionName.PROJECTS, updated)
        return updated

    def _transition(self, project_id: str, fn) -> Project:
        project = self.store.find(CollectionName.PROJECTS, project_id)
        if project is None:
            raise NotFoundForAction(f"Project {project_id} not found")
        updated = fn(project)
        self.store.replace_entity(CollectionName.PROJECTS, updated)
        logger.debug("Project %s: %s -> %s", project_id, project.status, updated.status)
        return updated
