"""Marketplace entity models.

Defines the broadcast/offer negotiation types (Broadcast, Offer,
ExpertProfile), the collaboration types (Project and its threads, media,
milestones and invoice) and the shared wall content (WallPost, Collection).

Every persisted entity serializes with the camelCase field names used by the
durable collections, so previously stored payloads keep loading.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    """Actor roles. Values match the stored session role strings."""

    REQUESTER = "client"
    RESPONDER = "expert"


class BroadcastStatus(StrEnum):
    OPEN = "open"
    OFFER_RECEIVED = "offer_received"
    ACTIVE = "active"
    RESOLVED = "resolved"


class ProjectStatus(StrEnum):
    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Urgency(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Thread(StrEnum):
    """The two independent message threads of a project."""

    ADVISORY = "ai"
    EXPERT = "expert"


EXPERT_CATEGORIES: frozenset[str] = frozenset(
    {"Plumbing", "Electrical", "Gardening", "Carpentry", "General", "Design"}
)

MESSAGE_ROLES: frozenset[str] = frozenset(
    {"user", "model", "expert", "system_summary", "missed_call"}
)

BROADCAST_STATUS_ALIASES: dict[str, str] = {"chatting": "offer_received"}


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _list_of(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a list")
    return value


@dataclass(frozen=True)
class ExpertProfile:
    """Displayable responder profile (stored as ``Professional``)."""

    id: str
    name: str
    specialty: str
    category: str = "General"
    rating: float = 0.0
    review_count: int = 0
    experience: str = ""
    location: str = ""
    zip_code: str = ""
    avatar: str = ""
    bio: str = ""
    skills: tuple[str, ...] = ()
    hourly_rate: str = ""
    availability: str = "Available Now"
    city: str | None = None
    region: str | None = None
    expert_plan: str | None = None

    def __post_init__(self) -> None:
        if self.category not in EXPERT_CATEGORIES:
            raise ValueError(f"Unknown expert category: {self.category}")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "specialty": self.specialty,
            "category": self.category,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "experience": self.experience,
            "location": self.location,
            "zipCode": self.zip_code,
            "avatar": self.avatar,
            "bio": self.bio,
            "skills": list(self.skills),
            "portfolio": [],
            "hourlyRate": self.hourly_rate,
            "availability": self.availability,
            "reviews": [],
        }
        if self.city is not None:
            d["city"] = self.city
        if self.region is not None:
            d["region"] = self.region
        if self.expert_plan is not None:
            d["expertPlan"] = self.expert_plan
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExpertProfile:
        return cls(
            id=_require_str(data, "id"),
            name=_require_str(data, "name"),
            specialty=data.get("specialty", ""),
            category=data.get("category", "General"),
            rating=float(data.get("rating", 0.0)),
            review_count=int(data.get("reviewCount", 0)),
            experience=data.get("experience", ""),
            location=data.get("location", ""),
            zip_code=data.get("zipCode", ""),
            avatar=data.get("avatar", ""),
            bio=data.get("bio", ""),
            skills=tuple(_list_of(data, "skills")),
            hourly_rate=data.get("hourlyRate", ""),
            availability=data.get("availability", "Available Now"),
            city=data.get("city"),
            region=data.get("region"),
            expert_plan=data.get("expertPlan"),
        )


@dataclass(frozen=True)
class Offer:
    """A responder's answer to a broadcast.

    Always carries the full profile of the responder; ``expert_id`` must
    match ``profile.id``.
    """

    expert_id: str
    expert_name: str
    expert_avatar: str
    profile: ExpertProfile
    timestamp: str

    def __post_init__(self) -> None:
        if self.profile.id != self.expert_id:
            raise ValueError(
                f"Offer expertId {self.expert_id!r} does not match profile id {self.profile.id!r}"
            )

    @classmethod
    def for_profile(cls, profile: ExpertProfile, timestamp: str) -> Offer:
        return cls(
            expert_id=profile.id,
            expert_name=profile.name,
            expert_avatar=profile.avatar,
            profile=profile,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "expertId": self.expert_id,
            "expertName": self.expert_name,
            "expertAvatar": self.expert_avatar,
            "profile": self.profile.to_dict(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Offer:
        profile_data = data["profile"]
        if not isinstance(profile_data, dict):
            raise TypeError("Offer profile must be an object")
        return cls(
            expert_id=_require_str(data, "expertId"),
            expert_name=data.get("expertName", ""),
            expert_avatar=data.get("expertAvatar", ""),
            profile=ExpertProfile.from_dict(profile_data),
            timestamp=data.get("timestamp", ""),
        )


@dataclass(frozen=True)
class Broadcast:
    """A requester's open call for help.

    ``offers`` is owned exclusively by the broadcast. ``version`` is the
    optimistic-concurrency token bumped on every mutation.
    """

    id: str
    client_id: str
    client_name: str
    problem_summary: str
    category: str
    urgency: Urgency
    timestamp: str
    status: BroadcastStatus = BroadcastStatus.OPEN
    offers: tuple[Offer, ...] = ()
    snapshot: str | None = None
    assigned_expert_id: str | None = None
    assigned_expert_name: str | None = None
    version: int = 1

    def offer_from(self, expert_id: str) -> Offer | None:
        for offer in self.offers:
            if offer.expert_id == expert_id:
                return offer
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "clientId": self.client_id,
            "clientName": self.client_name,
            "problemSummary": self.problem_summary,
            "category": self.category,
            "urgency": str(self.urgency),
            "timestamp": self.timestamp,
            "status": str(self.status),
            "offers": [o.to_dict() for o in self.offers],
            "version": self.version,
        }
        if self.snapshot is not None:
            d["snapshot"] = self.snapshot
        if self.assigned_expert_id is not None:
            d["assignedExpertId"] = self.assigned_expert_id
            d["assignedExpertName"] = self.assigned_expert_name
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Broadcast:
        raw_status = str(data.get("status", "open"))
        status = BROADCAST_STATUS_ALIASES.get(raw_status, raw_status)
        return cls(
            id=_require_str(data, "id"),
            client_id=_require_str(data, "clientId"),
            client_name=data.get("clientName", ""),
            problem_summary=data.get("problemSummary", ""),
            category=data.get("category", "General"),
            urgency=Urgency(data.get("urgency", "medium")),
            timestamp=data.get("timestamp", ""),
            status=BroadcastStatus(status),
            offers=tuple(Offer.from_dict(o) for o in _list_of(data, "offers")),
            snapshot=data.get("snapshot"),
            assigned_expert_id=data.get("assignedExpertId"),
            assigned_expert_name=data.get("assignedExpertName"),
            version=int(data.get("version", 1)),
        )


@dataclass(frozen=True)
class GroundingSource:
    title: str
    uri: str

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "uri": self.uri}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GroundingSource:
        return cls(title=data.get("title", ""), uri=_require_str(data, "uri"))


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: str
    text: str
    expert_name: str | None = None
    canvas_snapshot: str | None = None
    generated_images: tuple[str, ...] = ()
    grounding_sources: tuple[GroundingSource, ...] = ()

    def __post_init__(self) -> None:
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unknown message role: {self.role}")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "role": self.role, "text": self.text}
        if self.expert_name is not None:
            d["expertName"] = self.expert_name
        if self.canvas_snapshot is not None:
            d["canvasSnapshot"] = self.canvas_snapshot
        if self.generated_images:
            d["generatedImages"] = list(self.generated_images)
        if self.grounding_sources:
            d["groundingSources"] = [s.to_dict() for s in self.grounding_sources]
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        return cls(
            id=_require_str(data, "id"),
            role=_require_str(data, "role"),
            text=data.get("text", ""),
            expert_name=data.get("expertName"),
            canvas_snapshot=data.get("canvasSnapshot"),
            generated_images=tuple(_list_of(data, "generatedImages")),
            grounding_sources=tuple(
                GroundingSource.from_dict(s) for s in _list_of(data, "groundingSources")
            ),
        )


@dataclass(frozen=True)
class ProjectMedia:
    id: str
    url: str
    type: str  # "photo", "video" or "document"
    name: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "type": self.type,
            "name": self.name,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectMedia:
        return cls(
            id=_require_str(data, "id"),
            url=data.get("url", ""),
            type=data.get("type", "photo"),
            name=data.get("name", ""),
            timestamp=data.get("timestamp", ""),
        )


@dataclass(frozen=True)
class DriveFile:
    id: str
    name: str
    type: str  # "doc", "sheet", "pdf" or "folder"
    modified: str
    size: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "modified": self.modified,
        }
        if self.size is not None:
            d["size"] = self.size
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DriveFile:
        return cls(
            id=_require_str(data, "id"),
            name=data.get("name", ""),
            type=data.get("type", "doc"),
            modified=data.get("modified", ""),
            size=data.get("size"),
        )


@dataclass(frozen=True)
class Milestone:
    """Session summary shown in the project's milestone view."""

    id: str
    title: str
    content: str
    date: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Milestone:
        return cls(
            id=_require_str(data, "id"),
            title=data.get("title", ""),
            content=data.get("content", ""),
            date=data.get("date", ""),
        )


@dataclass(frozen=True)
class Invoice:
    id: str
    amount: float
    type: str  # "hourly" or "fixed"
    rate_label: str
    description: str
    status: str = "pending"  # "pending" or "paid"
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "type": self.type,
            "rateLabel": self.rate_label,
            "description": self.description,
            "status": self.status,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Invoice:
        return cls(
            id=_require_str(data, "id"),
            amount=float(data["amount"]),
            type=data.get("type", "fixed"),
            rate_label=data.get("rateLabel", ""),
            description=data.get("description", ""),
            status=data.get("status", "pending"),
            created_at=data.get("createdAt", ""),
        )


@dataclass(frozen=True)
class Project:
    """An assigned (or assignable) collaboration.

    ``ai_messages`` is the advisory thread and ``expert_messages`` the
    human-expert thread; the two never mix.
    """

    id: str
    title: str
    status: ProjectStatus
    summary: str
    last_updated: str = "Just now"
    assigned_pro_id: str | None = None
    assigned_pro_name: str | None = None
    ai_messages: tuple[ChatMessage, ...] = ()
    expert_messages: tuple[ChatMessage, ...] = ()
    media: tuple[ProjectMedia, ...] = ()
    files: tuple[DriveFile, ...] = ()
    summaries: tuple[Milestone, ...] = ()
    invoice: Invoice | None = None

    def thread(self, thread: Thread) -> tuple[ChatMessage, ...]:
        if thread == Thread.ADVISORY:
            return self.ai_messages
        return self.expert_messages

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "status": str(self.status),
            "lastUpdated": self.last_updated,
            "summary": self.summary,
            "aiMessages": [m.to_dict() for m in self.ai_messages],
            "expertMessages": [m.to_dict() for m in self.expert_messages],
            "media": [m.to_dict() for m in self.media],
            "files": [f.to_dict() for f in self.files],
            "summaries": [s.to_dict() for s in self.summaries],
        }
        if self.assigned_pro_id is not None:
            d["assignedProId"] = self.assigned_pro_id
            d["assignedProName"] = self.assigned_pro_name
        if self.invoice is not None:
            d["invoice"] = self.invoice.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        invoice_data = data.get("invoice")
        return cls(
            id=_require_str(data, "id"),
            title=data.get("title", ""),
            status=ProjectStatus(data.get("status", "planning")),
            summary=data.get("summary", ""),
            last_updated=data.get("lastUpdated", ""),
            assigned_pro_id=data.get("assignedProId"),
            assigned_pro_name=data.get("assignedProName"),
            ai_messages=tuple(ChatMessage.from_dict(m) for m in _list_of(data, "aiMessages")),
            expert_messages=tuple(
                ChatMessage.from_dict(m) for m in _list_of(data, "expertMessages")
            ),
            media=tuple(ProjectMedia.from_dict(m) for m in _list_of(data, "media")),
            files=tuple(DriveFile.from_dict(f) for f in _list_of(data, "files")),
            summaries=tuple(Milestone.from_dict(s) for s in _list_of(data, "summaries")),
            invoice=Invoice.from_dict(invoice_data) if invoice_data else None,
        )


@dataclass(frozen=True)
class WallComment:
    id: str
    author_name: str
    author_avatar: str
    content: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "authorName": self.author_name,
            "authorAvatar": self.author_avatar,
            "content": self.content,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WallComment:
        return cls(
            id=_require_str(data, "id"),
            author_name=data.get("authorName", ""),
            author_avatar=data.get("authorAvatar", ""),
            content=data.get("content", ""),
            timestamp=data.get("timestamp", ""),
        )


@dataclass(frozen=True)
class WallPost:
    id: str
    author_name: str
    author_avatar: str
    content: str
    timestamp: str
    likes: int = 0
    tags: tuple[str, ...] = ()
    comments: tuple[WallComment, ...] = ()
    image: str | None = None
    video: str | None = None
    liked_by_client: bool = False
    liked_by_expert: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "authorName": self.author_name,
            "authorAvatar": self.author_avatar,
            "content": self.content,
            "likes": self.likes,
            "timestamp": self.timestamp,
            "tags": list(self.tags),
            "comments": [c.to_dict() for c in self.comments],
            "likedByClient": self.liked_by_client,
            "likedByExpert": self.liked_by_expert,
        }
        if self.image is not None:
            d["image"] = self.image
        if self.video is not None:
            d["video"] = self.video
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WallPost:
        return cls(
            id=_require_str(data, "id"),
            author_name=data.get("authorName", ""),
            author_avatar=data.get("authorAvatar", ""),
            content=data.get("content", ""),
            timestamp=data.get("timestamp", ""),
            likes=int(data.get("likes", 0)),
            tags=tuple(_list_of(data, "tags")),
            comments=tuple(WallComment.from_dict(c) for c in _list_of(data, "comments")),
            image=data.get("image"),
            video=data.get("video"),
            liked_by_client=bool(data.get("likedByClient", False)),
            liked_by_expert=bool(data.get("likedByExpert", False)),
        )


@dataclass(frozen=True)
class Collection:
    """A named folder of saved wall posts."""

    id: str
    name: str
    post_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "postIds": list(self.post_ids)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Collection:
        return cls(
            id=_require_str(data, "id"),
            name=data.get("name", ""),
            post_ids=tuple(_list_of(data, "postIds")),
        )


@dataclass
class ActorIdentity:
    """Who the local actor is for this session.

    Requesters are identified by ``identity``; responders additionally carry
    their own ``profile`` and are identified by ``profile.id``.
    """

    role: Role
    identity: str
    name: str
    avatar: str = ""
    profile: ExpertProfile | None = field(default=None)

    def __post_init__(self) -> None:
        if self.role == Role.RESPONDER and self.profile is None:
            raise ValueError("Responder identity requires an expert profile")

    @property
    def is_requester(self) -> bool:
        return self.role == Role.REQUESTER

    @property
    def is_responder(self) -> bool:
        return self.role == Role.RESPONDER

    @property
    def expert_id(self) -> str | None:
        return self.profile.id if self.profile is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": str(self.role),
            "identity": self.identity,
            "name": self.name,
            "avatar": self.avatar,
            "profile": self.profile.to_dict() if self.profile else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActorIdentity:
        profile_data = data.get("profile")
        return cls(
            role=Role(data["role"]),
            identity=_require_str(data, "identity"),
            name=_require_str(data, "name"),
            avatar=data.get("avatar", ""),
            profile=ExpertProfile.from_dict(profile_data) if profile_data else None,
        )
