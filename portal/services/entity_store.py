"""
Entity Store — the single source of truth for every portal entity.

One EntityCollection per kind, each exposing:
    list() / get(id) / require(id) / filter(**fields) / upsert(record) / delete(id)

Rules:
    - upsert assigns an id when absent, inserts when the id is unseen and
      otherwise replaces the full record in place (no patching).
    - Projects and Files are prepended (newest first); the other kinds are
      appended.  Milestones are re-sorted by due date after every write
      (stable, so equal dates keep insertion order).
    - Every mutation is written to the persistence adapter before upsert()
      or delete() returns.
    - delete() of an unknown id is a no-op.
    - Reads return copies; no caller ever holds a store-owned instance.

Cascades:
    Project      → its Milestones, Messages, Files and ApprovalItems
    ApprovalItem → the Messages threaded to it
    Organization → refused (ConflictError) while it owns Projects or CLIENT actors
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from functools import partial
from typing import Callable

from portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from portal.models.entities import (
    ENTITY_CLASSES,
    ApprovalStatus,
    EntityKind,
    MilestoneStatus,
    ProjectStatus,
    Role,
    new_id,
    parse_date,
    parse_datetime,
    utcnow,
)
from portal.seed_data import load_seed

logger = logging.getLogger(__name__)

_RESOURCE_NAMES = {
    EntityKind.ACTORS: "Actor",
    EntityKind.ORGANIZATIONS: "Organization",
    EntityKind.PROJECTS: "Project",
    EntityKind.MILESTONES: "Milestone",
    EntityKind.MESSAGES: "Message",
    EntityKind.FILES: "FileRecord",
    EntityKind.APPROVALS: "ApprovalItem",
}


def _milestone_order(milestone):
    return (milestone.due_date is None, milestone.due_date or date.min)


class EntityCollection:
    """In-memory collection of one entity kind, owned by an EntityStore."""

    def __init__(self, store: "EntityStore", kind: EntityKind, *,
                 prepend: bool = False, sort_key: Callable | None = None):
        self._store = store
        self.kind = kind
        self.resource = _RESOURCE_NAMES[kind]
        self._prepend = prepend
        self._sort_key = sort_key
        self._records: list = []

    def __len__(self) -> int:
        return len(self._records)

    def _load(self, records: list) -> None:
        self._records = list(records)
        self._sort()

    def _sort(self) -> None:
        if self._sort_key is not None:
            self._records.sort(key=self._sort_key)

    def _index_of(self, record_id: str) -> int | None:
        for idx, record in enumerate(self._records):
            if record.id == record_id:
                return idx
        return None

    # ── Reads ────────────────────────────────────────────────────────────

    def list(self) -> list:
        return [replace(record) for record in self._records]

    def get(self, record_id: str):
        idx = self._index_of(record_id)
        return replace(self._records[idx]) if idx is not None else None

    def require(self, record_id: str):
        record = self.get(record_id)
        if record is None:
            raise NotFoundError(self.resource, record_id)
        return record

    def filter(self, **criteria) -> list:
        """Records whose attributes equal every keyword given (e.g. project_id="p1")."""
        return [
            replace(record)
            for record in self._records
            if all(getattr(record, name) == value for name, value in criteria.items())
        ]

    # ── Writes ───────────────────────────────────────────────────────────

    def upsert(self, record):
        record = replace(record)
        if not record.id:
            record.id = new_id(self.kind)
        idx = self._index_of(record.id)
        previous = self._records[idx] if idx is not None else None

        self._store._validate(self.kind, record, previous)

        if idx is not None:
            self._records[idx] = record
        elif self._prepend:
            self._records.insert(0, record)
        else:
            self._records.append(record)
        self._sort()
        self._store._commit(self.kind, self._records)

        logger.info(
            "%s %s %s", "Updated" if previous else "Created", self.resource, record.id,
            extra={"entity_kind": self.kind.value, "entity_id": record.id},
        )
        return replace(record)

    def delete(self, record_id: str) -> None:
        idx = self._index_of(record_id)
        if idx is None:
            logger.debug("Delete of unknown %s %s ignored", self.resource, record_id)
            return
        self._store._before_delete(self.kind, self._records[idx])
        del self._records[idx]
        self._store._commit(self.kind, self._records)
        logger.info(
            "Deleted %s %s", self.resource, record_id,
            extra={"entity_kind": self.kind.value, "entity_id": record_id},
        )


class EntityStore:
    """Per-kind collections loaded from, and written through to, the persistence adapter.

    Args:
        persistence: Object with ``load(kind, decode, seed)``, ``save(kind, records)``
                     and ``clear()`` (see ``KeyValuePersistence``).
        seed:        ``seed(kind) -> list[dict]`` fixture records used on first run.
    """

    def __init__(self, persistence, seed: Callable[[EntityKind], list[dict]] = load_seed):
        self._persistence = persistence
        self._seed = seed

        self.actors = EntityCollection(self, EntityKind.ACTORS)
        self.organizations = EntityCollection(self, EntityKind.ORGANIZATIONS)
        self.projects = EntityCollection(self, EntityKind.PROJECTS, prepend=True)
        self.milestones = EntityCollection(self, EntityKind.MILESTONES, sort_key=_milestone_order)
        self.messages = EntityCollection(self, EntityKind.MESSAGES)
        self.files = EntityCollection(self, EntityKind.FILES, prepend=True)
        self.approvals = EntityCollection(self, EntityKind.APPROVALS)

        self._collections = {
            collection.kind: collection
            for collection in (
                self.actors, self.organizations, self.projects, self.milestones,
                self.messages, self.files, self.approvals,
            )
        }
        self._validators = {
            EntityKind.ACTORS: self._validate_actor,
            EntityKind.ORGANIZATIONS: self._validate_organization,
            EntityKind.PROJECTS: self._validate_project,
            EntityKind.MILESTONES: self._validate_milestone,
            EntityKind.MESSAGES: self._validate_message,
            EntityKind.FILES: self._validate_file,
            EntityKind.APPROVALS: self._validate_approval,
        }
        self.reload()

    def collection(self, kind: EntityKind) -> EntityCollection:
        return self._collections[kind]

    def reload(self) -> None:
        """Re-read every kind from durable storage (same as a process restart)."""
        for kind, collection in self._collections.items():
            collection._load(self._persistence.load(
                kind, ENTITY_CLASSES[kind].from_dict, partial(self._seed, kind),
            ))
        logger.debug(
            "Entity store loaded: %s",
            ", ".join(f"{kind.value}={len(c)}" for kind, c in self._collections.items()),
        )

    def reset(self) -> None:
        """Drop every durable key and return to the seed dataset."""
        self._persistence.clear()
        self.reload()
        logger.info("Entity store reset to seed data")

    def _commit(self, kind: EntityKind, records: list) -> None:
        self._persistence.save(kind, records)

    # ═════════════════════════════════════════════════════════════════════
    # Cascades
    # ═════════════════════════════════════════════════════════════════════

    def _before_delete(self, kind: EntityKind, record) -> None:
        if kind == EntityKind.ORGANIZATIONS:
            if any(p.organization_id == record.id for p in self.projects._records):
                raise ConflictError("Organization", "projects", record.id)
            if any(a.organization_id == record.id for a in self.actors._records):
                raise ConflictError("Organization", "members", record.id)
        elif kind == EntityKind.PROJECTS:
            for child in (self.approvals, self.milestones, self.messages, self.files):
                self._delete_where(child, project_id=record.id)
        elif kind == EntityKind.APPROVALS:
            self._delete_where(self.messages, approval_item_id=record.id)

    @staticmethod
    def _delete_where(collection: EntityCollection, **criteria) -> None:
        for child in collection.filter(**criteria):
            collection.delete(child.id)

    # ═════════════════════════════════════════════════════════════════════
    # Validation — raises ValidationError / ConflictError, blocks the write
    # ═════════════════════════════════════════════════════════════════════

    def _validate(self, kind: EntityKind, record, previous) -> None:
        self._validators[kind](record, previous)

    @staticmethod
    def _require_text(record, *field_names: str) -> None:
        missing = {
            name: "required"
            for name in field_names
            if not str(getattr(record, name) or "").strip()
        }
        if missing:
            raise ValidationError(
                f"{', '.join(missing)} required for {type(record).__name__}",
                details=missing,
            )

    @staticmethod
    def _coerce(record, field_name: str, converter) -> None:
        value = getattr(record, field_name)
        try:
            setattr(record, field_name, converter(value) if value is not None else None)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                f"Invalid {field_name}: {value!r}", details={field_name: str(exc)},
            ) from exc

    @staticmethod
    def _blank_to_none(record, *field_names: str) -> None:
        for name in field_names:
            if getattr(record, name) == "":
                setattr(record, name, None)

    @staticmethod
    def _none_to_blank(record, *field_names: str) -> None:
        for name in field_names:
            if getattr(record, name) is None:
                setattr(record, name, "")

    def _require_project(self, project_id: str) -> None:
        if not project_id or self.projects._index_of(project_id) is None:
            raise ValidationError(
                f"Project {project_id!r} does not exist",
                details={"project_id": "unknown project"},
            )

    def _validate_actor(self, actor, previous) -> None:
        self._blank_to_none(actor, "organization_id", "password_hash", "avatar_url", "job_title", "phone")
        self._require_text(actor, "name", "email")
        self._coerce(actor, "role", Role)
        if actor.role == Role.CLIENT:
            if not actor.organization_id or self.organizations._index_of(actor.organization_id) is None:
                raise ValidationError(
                    "A CLIENT actor must belong to an existing organization",
                    details={"organization_id": "required for CLIENT"},
                )
        elif actor.organization_id:
            raise ValidationError(
                "An ADMIN actor has agency-wide scope and no organization",
                details={"organization_id": "must be empty for ADMIN"},
            )
        email = actor.email.strip().lower()
        for other in self.actors._records:
            if other.id != actor.id and other.email.strip().lower() == email:
                raise ConflictError("Actor", "email", actor.email)

    def _validate_organization(self, organization, previous) -> None:
        self._require_text(organization, "name")

    def _validate_project(self, project, previous) -> None:
        self._none_to_blank(project, "description")
        self._require_text(project, "name", "organization_id")
        self._coerce(project, "status", ProjectStatus)
        self._coerce(project, "start_date", parse_date)
        self._coerce(project, "due_date", parse_date)
        if project.start_date is None:
            raise ValidationError("start_date required for Project", details={"start_date": "required"})
        if previous is not None and previous.organization_id != project.organization_id:
            raise ValidationError(
                "A project cannot be moved to another organization",
                details={"organization_id": "immutable"},
            )
        if self.organizations._index_of(project.organization_id) is None:
            raise ValidationError(
                f"Organization {project.organization_id!r} does not exist",
                details={"organization_id": "unknown organization"},
            )

    def _validate_milestone(self, milestone, previous) -> None:
        self._blank_to_none(milestone, "description")
        self._require_text(milestone, "title")
        self._coerce(milestone, "status", MilestoneStatus)
        self._coerce(milestone, "due_date", parse_date)
        if milestone.due_date is None:
            raise ValidationError("due_date required for Milestone", details={"due_date": "required"})
        self._require_project(milestone.project_id)

    def _validate_message(self, message, previous) -> None:
        self._blank_to_none(message, "approval_item_id")
        self._coerce(message, "created_at", parse_datetime)
        message.created_at = message.created_at or utcnow()
        self._require_project(message.project_id)
        if message.approval_item_id:
            approval = self.approvals.get(message.approval_item_id)
            if approval is None or approval.project_id != message.project_id:
                raise ValidationError(
                    "Threaded message must reference an approval item of the same project",
                    details={"approval_item_id": "unknown approval item"},
                )

    def _validate_file(self, file_record, previous) -> None:
        self._require_text(file_record, "file_name")
        self._coerce(file_record, "created_at", parse_datetime)
        file_record.created_at = file_record.created_at or utcnow()
        file_record.file_type = (file_record.file_type or "unknown").lower()
        self._require_project(file_record.project_id)

    def _validate_approval(self, approval, previous) -> None:
        self._none_to_blank(approval, "description")
        self._require_text(approval, "title", "link_to_review")
        self._coerce(approval, "status", ApprovalStatus)
        self._require_project(approval.project_id)

