"""Tests for project lifecycle commands and advisory round trips."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from buildsync.advisory.client import AdviceResponse, ServiceUnavailable
from buildsync.marketplace.models import (
    ChatMessage,
    GroundingSource,
    ProjectStatus,
    Thread,
)
from buildsync.marketplace.projects import ProjectService
from buildsync.marketplace.store import CollectionName, EntityStore


@pytest.fixture
def advisory() -> MagicMock:
    mock = MagicMock()
    mock.get_advice.return_value = AdviceResponse(
        text="Shut the valve first.",
        sources=[GroundingSource(uri="https://example.org/valves", title="Valves")],
    )
    mock.summarize.return_value = "Agreed on a replacement cartridge."
    return mock


@pytest.fixture
def client_projects(store, dispatcher, client_actor, advisory) -> ProjectService:
    return ProjectService(store, dispatcher, client_actor, advisory)


@pytest.fixture
def expert_projects(store, dispatcher, expert_actor) -> ProjectService:
    return ProjectService(store, dispatcher, expert_actor)


def _messages(dispatcher) -> list[str]:
    return [n.message for n in dispatcher.active()]


# ── Creation ─────────────────────────────────────────────────────


class TestCreation:
    def test_start_project(self, client_projects: ProjectService, store: EntityStore) -> None:
        project = client_projects.start_project("My kitchen sink drips constantly at night")
        assert store.projects == (project,)
        assert project.status == ProjectStatus.PLANNING
        assert project.title == "My kitchen sink drips con..."
        assert project.ai_messages[0].role == "user"

    def test_upload(self, client_projects: ProjectService, dispatcher) -> None:
        project = client_projects.start_project_from_upload(
            "bathroom-floor-crack.jpg", "data:image/jpeg;base64,AAAA"
        )
        assert project.title == "Upload: bathroom-floor-..."
        assert project.media[0].name == "bathroom-floor-crack.jpg"
        assert project.ai_messages[0].canvas_snapshot == "data:image/jpeg;base64,AAAA"
        assert "New build initiated from photo upload." in _messages(dispatcher)

    def test_add_media(self, client_projects: ProjectService, completed_project, store, dispatcher) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        updated = client_projects.add_media(completed_project.id, "walkthrough.mp4", "u", "video")
        assert len(updated.media) == 1
        assert "Video saved to Site Data." in _messages(dispatcher)

    def test_add_media_missing_project(self, client_projects: ProjectService) -> None:
        assert client_projects.add_media("nope", "a.jpg", "u") is None


# ── Messages ─────────────────────────────────────────────────────


class TestMessages:
    def test_first_message_starts_project_with_reply(
        self, client_projects: ProjectService, advisory: MagicMock
    ) -> None:
        project = client_projects.send_message("Faucet drips")
        assert [m.role for m in project.ai_messages] == ["user", "model"]
        reply = project.ai_messages[-1]
        assert reply.text == "Shut the valve first."
        assert reply.grounding_sources[0].title == "Valves"
        advisory.get_advice.assert_called_once_with("Faucet drips", "Faucet drips", None)

    def test_empty_message_ignored(
        self, client_projects: ProjectService, store: EntityStore, advisory: MagicMock
    ) -> None:
        assert client_projects.send_message("   ") is None
        assert store.projects == ()
        advisory.get_advice.assert_not_called()

    def test_expert_thread_skips_advisory(
        self, client_projects: ProjectService, completed_project, store, advisory: MagicMock
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        project = client_projects.send_message(
            "Are you free Tuesday?", project_id=completed_project.id, thread=Thread.EXPERT
        )
        assert project.expert_messages[-1].text == "Are you free Tuesday?"
        assert project.ai_messages == ()
        advisory.get_advice.assert_not_called()

    def test_expert_messages_carry_author(
        self, expert_projects: ProjectService, completed_project, store, marcus
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        project = expert_projects.send_message(
            "On my way", project_id=completed_project.id, thread="expert"
        )
        message = project.expert_messages[-1]
        assert message.role == "expert"
        assert message.expert_name == marcus.name

    def test_message_to_missing_project(self, client_projects: ProjectService) -> None:
        assert client_projects.send_message("hello", project_id="nope") is None

    def test_unknown_thread_is_reported(
        self,
        client_projects: ProjectService,
        completed_project,
        store,
        dispatcher,
        advisory: MagicMock,
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)

        assert client_projects.send_message("hi", project_id=completed_project.id, thread="sms") is None
        assert client_projects.send_message("hi", thread="sms") is None
        assert client_projects.append_message(
            completed_project.id, "sms", client_projects._user_message("hi", None)
        ) is None

        assert store.projects == (completed_project,)
        assert _messages(dispatcher).count("That conversation thread does not exist.") == 3
        advisory.get_advice.assert_not_called()

    def test_auth_failure_requests_reauth(
        self, client_projects: ProjectService, advisory: MagicMock, dispatcher
    ) -> None:
        advisory.get_advice.side_effect = ServiceUnavailable("denied", auth_failure=True)
        project = client_projects.send_message("Faucet drips")
        assert client_projects.needs_reauth is True
        assert [m.role for m in project.ai_messages] == ["user"]
        assert "Neural bridge session lost. Please re-connect." in _messages(dispatcher)

    def test_transport_failure_keeps_session(
        self, client_projects: ProjectService, advisory: MagicMock, dispatcher
    ) -> None:
        advisory.get_advice.side_effect = ServiceUnavailable("timeout")
        client_projects.send_message("Faucet drips")
        assert client_projects.needs_reauth is False
        assert "AI Bridge communication error." in _messages(dispatcher)

    def test_reply_lands_after_concurrent_change(
        self, client_projects: ProjectService, advisory: MagicMock, store: EntityStore
    ) -> None:
        def _concurrent(prompt, context, image):
            project = store.projects[0]
            store.replace_entity(
                CollectionName.PROJECTS,
                replace(
                    project,
                    expert_messages=(ChatMessage(id="x", role="expert", text="hi"),),
                ),
            )
            return AdviceResponse(text="reply")

        advisory.get_advice.side_effect = _concurrent
        project = client_projects.send_message("Faucet drips")
        assert project.expert_messages[0].text == "hi"
        assert project.ai_messages[-1].text == "reply"


class TestEndSession:
    def test_summary_added_as_milestone(
        self, client_projects: ProjectService, completed_project, store, advisory, dispatcher
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        project = client_projects.end_expert_session(completed_project.id)
        assert project.summaries[-1].content == "Agreed on a replacement cartridge."
        assert project.summaries[-1].title.startswith("Session Summary - ")
        assert project.expert_messages[-1].role == "system_summary"
        assert "Session summary has been added to Milestones." in _messages(dispatcher)

    def test_summary_failure(
        self, client_projects: ProjectService, completed_project, store, advisory, dispatcher
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        advisory.summarize.side_effect = ServiceUnavailable("down")
        project = client_projects.end_expert_session(completed_project.id)
        assert project.summaries == ()
        assert "Failed to generate AI summary." in _messages(dispatcher)

    def test_without_advisory(
        self, expert_projects: ProjectService, completed_project, store, dispatcher
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        expert_projects.end_expert_session(completed_project.id)
        assert "Failed to generate AI summary." in _messages(dispatcher)


# ── Lifecycle ────────────────────────────────────────────────────


class TestLifecycle:
    def test_resolve_prompts_requester_review(
        self, client_projects: ProjectService, completed_project, store
    ) -> None:
        store.append(
            CollectionName.PROJECTS, replace(completed_project, status=ProjectStatus.IN_PROGRESS)
        )
        outcome = client_projects.resolve_project(completed_project.id)
        assert outcome.prompt_review is True
        assert outcome.project.status == ProjectStatus.COMPLETED
        assert outcome.project.assigned_pro_id == "E7"

    def test_resolve_by_responder_archives(
        self, expert_projects: ProjectService, completed_project, store, dispatcher
    ) -> None:
        store.append(
            CollectionName.PROJECTS, replace(completed_project, status=ProjectStatus.IN_PROGRESS)
        )
        outcome = expert_projects.resolve_project(completed_project.id)
        assert outcome.prompt_review is False
        assert "Project marked as done and archived." in _messages(dispatcher)

    def test_resolve_planning_rejected(
        self, client_projects: ProjectService, completed_project, store, dispatcher
    ) -> None:
        store.append(
            CollectionName.PROJECTS, replace(completed_project, status=ProjectStatus.PLANNING)
        )
        assert client_projects.resolve_project(completed_project.id) is None
        assert store.projects[0].status == ProjectStatus.PLANNING
        assert "This project cannot be marked done right now." in _messages(dispatcher)

    def test_reconnect(
        self, client_projects: ProjectService, completed_project, store, dispatcher
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        project = client_projects.reconnect_expert(completed_project.id)
        assert project.status == ProjectStatus.IN_PROGRESS
        assert project.assigned_pro_id == "E7"
        assert "Signal re-established with Evan Seven" in project.expert_messages[-1].text
        assert "Reconnected with Evan Seven" in _messages(dispatcher)

    def test_reconnect_in_progress_is_noop(
        self, client_projects: ProjectService, completed_project, store
    ) -> None:
        in_progress = replace(completed_project, status=ProjectStatus.IN_PROGRESS)
        store.append(CollectionName.PROJECTS, in_progress)
        assert client_projects.reconnect_expert(completed_project.id) is None
        assert store.projects[0] is in_progress

    def test_find_new_expert(
        self, client_projects: ProjectService, completed_project, store, dispatcher
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        project = client_projects.find_new_expert(completed_project.id)
        assert project.status == ProjectStatus.PLANNING
        assert project.assigned_pro_id is None
        assert "Ready to find a new expert for 'Garden Shed...'" in _messages(dispatcher)

    def test_find_new_expert_missing(self, client_projects: ProjectService) -> None:
        assert client_projects.find_new_expert("nope") is None


class TestInvoice:
    def test_attach(
        self, expert_projects: ProjectService, completed_project, store, dispatcher
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        project = expert_projects.attach_invoice(
            completed_project.id, 240.0, "hourly", "$80/hr", "3h roof patch"
        )
        assert project.invoice.amount == 240.0
        assert project.invoice.rate_label == "$80/hr"
        assert "Invoice transmitted to client." in _messages(dispatcher)

    @pytest.mark.parametrize("amount,kind", [(0, "fixed"), (-5, "hourly"), (10, "barter")])
    def test_invalid_details(
        self, expert_projects: ProjectService, completed_project, store, amount, kind
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        assert expert_projects.attach_invoice(completed_project.id, amount, kind, "", "") is None
        assert store.projects[0].invoice is None
