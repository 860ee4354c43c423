"""
Portal entities — actors, organizations, projects and their dependents.

Entities are plain dataclasses owned by the EntityStore
(``portal.services.entity_store``).  They are serialized to the durable
key-value substrate with ``to_dict()`` and rebuilt with ``from_dict()``.

Relationships (all by opaque string id):
    Organization 1—N Project 1—N {Milestone, Message, FileRecord, ApprovalItem}
    Message N—0..1 ApprovalItem   (threaded feedback)
    Actor N—0..1 Organization     (CLIENT actors only)

No schema version is persisted: ``from_dict`` must default every field an
older record may be missing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum


# ── Enumerations ─────────────────────────────────────────────────────────


class Role(str, Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


class ProjectStatus(str, Enum):
    DISCOVERY = "Discovery"
    PRE_PRODUCTION = "Pre-Production"
    PRODUCTION = "Production"
    POST_PRODUCTION = "Post-Production"
    ON_HOLD = "On Hold"
    DELIVERED = "Delivered"
    ARCHIVED = "Archived"


class MilestoneStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"


class ApprovalStatus(str, Enum):
    PENDING = "Pending Review"
    APPROVED = "Approved"
    CHANGES_REQUESTED = "Changes Requested"


class EntityKind(str, Enum):
    """Entity kinds; the value is the suffix of the durable key."""

    ACTORS = "users"
    ORGANIZATIONS = "orgs"
    PROJECTS = "projects"
    MILESTONES = "milestones"
    MESSAGES = "messages"
    FILES = "files"
    APPROVALS = "approvals"


ID_PREFIXES = {
    EntityKind.ACTORS: "u",
    EntityKind.ORGANIZATIONS: "org",
    EntityKind.PROJECTS: "p",
    EntityKind.MILESTONES: "m",
    EntityKind.MESSAGES: "msg",
    EntityKind.FILES: "f",
    EntityKind.APPROVALS: "a",
}


# ── Helpers ──────────────────────────────────────────────────────────────


def new_id(kind: EntityKind) -> str:
    """Return a fresh identifier for *kind* (never reused)."""
    return f"{ID_PREFIXES[kind]}{uuid.uuid4().hex[:12]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(value) -> date | None:
    """Parse an ISO date (``2024-03-01``); datetimes are truncated to their date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if "T" in text:
        return parse_datetime(text).date()
    return date.fromisoformat(text)


def parse_datetime(value) -> datetime | None:
    """Parse an ISO timestamp; ``Z`` suffix accepted, naive values taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _optional(data: dict, key: str):
    value = data.get(key)
    return value if value not in ("", None) else None


# ═══════════════════════════════════════════════════════════════
# Actor & Organization
# ═══════════════════════════════════════════════════════════════


@dataclass
class Actor:
    """Agency staff (ADMIN) or a client contact (CLIENT, bound to one organization).

    ``password_hash`` is a bcrypt hash; ``None`` means no secret is stored.
    """

    name: str
    email: str
    role: Role
    organization_id: str | None = None
    password_hash: str | None = None
    avatar_url: str | None = None
    job_title: str | None = None
    phone: str | None = None
    id: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "organization_id": self.organization_id,
            "password_hash": self.password_hash,
            "avatar_url": self.avatar_url,
            "job_title": self.job_title,
            "phone": self.phone,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Actor":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=Role(data.get("role", Role.CLIENT.value)),
            organization_id=_optional(data, "organization_id"),
            password_hash=_optional(data, "password_hash"),
            avatar_url=_optional(data, "avatar_url"),
            job_title=_optional(data, "job_title"),
            phone=_optional(data, "phone"),
        )


@dataclass
class Organization:
    """Client company.  The primary contact is denormalized, not an Actor FK."""

    name: str
    primary_contact_name: str = ""
    primary_contact_email: str = ""
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "primary_contact_name": self.primary_contact_name,
            "primary_contact_email": self.primary_contact_email,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Organization":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            primary_contact_name=data.get("primary_contact_name", ""),
            primary_contact_email=data.get("primary_contact_email", ""),
        )


# ═══════════════════════════════════════════════════════════════
# Project & dependents
# ═══════════════════════════════════════════════════════════════


@dataclass
class Project:
    organization_id: str
    name: str
    description: str = ""
    status: ProjectStatus = ProjectStatus.DISCOVERY
    start_date: date = field(default_factory=date.today)
    due_date: date | None = None
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "start_date": _iso(self.start_date),
            "due_date": _iso(self.due_date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=data["id"],
            organization_id=data.get("organization_id", ""),
            name=data.get("name", ""),
            description=data.get("description") or "",
            status=ProjectStatus(data.get("status", ProjectStatus.DISCOVERY.value)),
            start_date=parse_date(data.get("start_date")) or date.today(),
            due_date=parse_date(data.get("due_date")),
        )


@dataclass
class Milestone:
    project_id: str
    title: str
    due_date: date | None = None
    description: str | None = None
    status: MilestoneStatus = MilestoneStatus.NOT_STARTED
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "due_date": _iso(self.due_date),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Milestone":
        return cls(
            id=data["id"],
            project_id=data.get("project_id", ""),
            title=data.get("title", ""),
            description=_optional(data, "description"),
            due_date=parse_date(data.get("due_date")),
            status=MilestoneStatus(data.get("status", MilestoneStatus.NOT_STARTED.value)),
        )


@dataclass
class Message:
    """Project chat message, or threaded feedback when ``approval_item_id`` is set.

    ``sender_name`` is a snapshot taken at write time and is authoritative
    for display even if the sender is later renamed or removed.
    """

    project_id: str
    sender_id: str
    sender_name: str
    body: str
    is_internal: bool = False
    created_at: datetime = field(default_factory=utcnow)
    approval_item_id: str | None = None
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "is_internal": self.is_internal,
            "body": self.body,
            "created_at": _iso(self.created_at),
            "approval_item_id": self.approval_item_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        return cls(
            id=data["id"],
            project_id=data.get("project_id", ""),
            sender_id=data.get("sender_id", ""),
            sender_name=data.get("sender_name", ""),
            is_internal=bool(data.get("is_internal", False)),
            body=data.get("body", ""),
            created_at=parse_datetime(data.get("created_at")) or utcnow(),
            approval_item_id=_optional(data, "approval_item_id"),
        )


@dataclass
class FileRecord:
    """Reference to an uploaded file; content lives behind ``url``."""

    project_id: str
    uploaded_by_id: str
    uploaded_by_name: str
    file_name: str
    file_type: str
    file_size: str
    url: str
    is_client_visible: bool = True
    created_at: datetime = field(default_factory=utcnow)
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "uploaded_by_id": self.uploaded_by_id,
            "uploaded_by_name": self.uploaded_by_name,
            "file_name": self.file_name,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "is_client_visible": self.is_client_visible,
            "created_at": _iso(self.created_at),
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FileRecord":
        return cls(
            id=data["id"],
            project_id=data.get("project_id", ""),
            uploaded_by_id=data.get("uploaded_by_id", ""),
            uploaded_by_name=data.get("uploaded_by_name", ""),
            file_name=data.get("file_name", ""),
            file_type=(data.get("file_type") or "unknown").lower(),
            file_size=data.get("file_size", ""),
            # Missing flag on old records: hide from clients rather than leak.
            is_client_visible=bool(data.get("is_client_visible", False)),
            created_at=parse_datetime(data.get("created_at")) or utcnow(),
            url=data.get("url", ""),
        )


@dataclass
class ApprovalItem:
    """A cut or asset submitted for client review (see ``approval_workflow``)."""

    project_id: str
    title: str
    link_to_review: str
    description: str = ""
    status: ApprovalStatus = ApprovalStatus.PENDING
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "link_to_review": self.link_to_review,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ApprovalItem":
        return cls(
            id=data["id"],
            project_id=data.get("project_id", ""),
            title=data.get("title", ""),
            description=data.get("description") or "",
            link_to_review=data.get("link_to_review", ""),
            status=ApprovalStatus(data.get("status", ApprovalStatus.PENDING.value)),
        )


ENTITY_CLASSES = {
    EntityKind.ACTORS: Actor,
    EntityKind.ORGANIZATIONS: Organization,
    EntityKind.PROJECTS: Project,
    EntityKind.MILESTONES: Milestone,
    EntityKind.MESSAGES: Message,
    EntityKind.FILES: FileRecord,
    EntityKind.APPROVALS: ApprovalItem,
}
