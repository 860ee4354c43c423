"""
Project Service — project, milestone, message and file operations for an actor.

Every call takes the acting Actor.  ADMIN actors manage records; CLIENT
actors read their organization's projects, chat and upload files.  Reads
go through the ProjectResolver and are filtered with ``visibility``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from datetime import date

from portal.core.exceptions import PermissionDenied, ValidationError
from portal.models.entities import (
    Actor,
    FileRecord,
    Message,
    Milestone,
    Project,
    ProjectStatus,
    Role,
)
from portal.services import visibility
from portal.services.permission import require_admin, require_project_access
from portal.services.project_resolver import PortalStats, ProjectBundle, ProjectResolver

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


def format_file_size(size_bytes: int) -> str:
    """Human-readable size: ``"2.4 MB"`` above 1 MiB, otherwise ``"512.0 KB"``."""
    if size_bytes > _MB:
        return f"{size_bytes / _MB:.1f} MB"
    return f"{size_bytes / 1024:.1f} KB"


def file_type_from_name(file_name: str) -> str:
    """Lower-cased extension of *file_name*, or ``"unknown"``."""
    ext = os.path.splitext(file_name)[1]
    return ext[1:].lower() if len(ext) > 1 else "unknown"


class ProjectService:
    def __init__(self, store, resolver: ProjectResolver | None = None):
        self.store = store
        self.resolver = resolver or ProjectResolver(store)

    # ═════════════════════════════════════════════════════════════════════
    # Projects
    # ═════════════════════════════════════════════════════════════════════

    def list_projects(self, actor: Actor) -> list[Project]:
        return visibility.scope_projects(self.store.projects.list(), actor)

    def projects_for_organization(self, actor: Actor, organization_id: str) -> list[Project]:
        require_admin(actor, "organization_projects")
        return self.resolver.projects_for_organization(organization_id)

    def create_project(
        self,
        actor: Actor,
        organization_id: str,
        name: str,
        description: str = "",
        status: ProjectStatus = ProjectStatus.DISCOVERY,
        start_date: date | None = None,
        due_date: date | None = None,
    ) -> Project:
        require_admin(actor, "project_create")
        project = self.store.projects.upsert(Project(
            organization_id=organization_id,
            name=(name or "").strip(),
            description=description or "",
            status=status,
            start_date=start_date or date.today(),
            due_date=due_date,
        ))
        logger.info("Project %s created for %s", project.id, organization_id,
                    extra={"actor_id": actor.id, "project_id": project.id})
        return project

    def update_project(self, actor: Actor, project: Project) -> Project:
        """Full-record replace of an existing project."""
        require_admin(actor, "project_edit")
        self.store.projects.require(project.id)
        return self.store.projects.upsert(project)

    def delete_project(self, actor: Actor, project_id: str) -> None:
        """Delete a project and all of its dependents.  Unknown ids are ignored."""
        require_admin(actor, "project_delete")
        self.store.projects.delete(project_id)

    def get_project_detail(self, actor: Actor, project_id: str) -> ProjectBundle:
        """Bundle for *project_id* as *actor* may see it.

        Raises:
            NotFoundError: unknown project, or one outside the actor's scope.
        """
        return visibility.scope_bundle(self.resolver.get_project_bundle(project_id), actor)

    def get_stats(self, actor: Actor) -> PortalStats:
        require_admin(actor, "stats_view")
        return self.resolver.get_stats()

    # ═════════════════════════════════════════════════════════════════════
    # Milestones
    # ═════════════════════════════════════════════════════════════════════

    def save_milestone(self, actor: Actor, milestone: Milestone) -> Milestone:
        require_admin(actor, "milestone_edit")
        existing = self.store.milestones.get(milestone.id) if milestone.id else None
        if existing is not None and existing.project_id != milestone.project_id:
            raise ValidationError(
                "A milestone cannot be moved to another project",
                details={"project_id": "immutable"},
            )
        return self.store.milestones.upsert(milestone)

    def delete_milestone(self, actor: Actor, milestone_id: str) -> None:
        require_admin(actor, "milestone_delete")
        self.store.milestones.delete(milestone_id)

    # ═════════════════════════════════════════════════════════════════════
    # Messages
    # ═════════════════════════════════════════════════════════════════════

    def send_message(self, actor: Actor, project_id: str, body: str,
                     is_internal: bool = False) -> Message:
        """Post to the project's general thread.

        Internal notes are agency-only; a CLIENT cannot post one.
        """
        require_project_access(self.store, actor, project_id)
        if is_internal and actor.role != Role.ADMIN:
            raise PermissionDenied(actor.id, "message_internal")
        text = (body or "").strip()
        if not text:
            raise ValidationError("Message body is required", details={"body": "required"})

        message = self.store.messages.upsert(Message(
            project_id=project_id,
            sender_id=actor.id,
            sender_name=actor.name,
            body=text,
            is_internal=is_internal,
        ))
        logger.info("Message %s posted", message.id,
                    extra={"actor_id": actor.id, "project_id": project_id})
        return message

    def general_thread(self, actor: Actor, project_id: str) -> list[Message]:
        return self.get_project_detail(actor, project_id).messages

    # ═════════════════════════════════════════════════════════════════════
    # Files
    # ═════════════════════════════════════════════════════════════════════

    def upload_file(
        self,
        actor: Actor,
        project_id: str,
        file_name: str,
        size_bytes: int,
        url: str,
        is_client_visible: bool = True,
    ) -> FileRecord:
        """Record an uploaded file reference.  Client uploads are always client-visible."""
        require_project_access(self.store, actor, project_id)
        if not isinstance(size_bytes, int) or isinstance(size_bytes, bool) or size_bytes < 0:
            raise ValidationError("File size must be a non-negative byte count",
                                  details={"size_bytes": "invalid"})

        record = self.store.files.upsert(FileRecord(
            project_id=project_id,
            uploaded_by_id=actor.id,
            uploaded_by_name=actor.name,
            file_name=(file_name or "").strip(),
            file_type=file_type_from_name(file_name or ""),
            file_size=format_file_size(size_bytes),
            url=url,
            is_client_visible=True if actor.role == Role.CLIENT else is_client_visible,
        ))
        logger.info("File %s uploaded (%s)", record.id, record.file_size,
                    extra={"actor_id": actor.id, "project_id": project_id})
        return record

    def set_file_visibility(self, actor: Actor, file_id: str, visible: bool) -> FileRecord:
        require_admin(actor, "file_visibility")
        record = self.store.files.require(file_id)
        return self.store.files.upsert(replace(record, is_client_visible=visible))

    def delete_file(self, actor: Actor, file_id: str) -> None:
        require_admin(actor, "file_delete")
        self.store.files.delete(file_id)

    def list_files(self, actor: Actor, project_id: str) -> list[FileRecord]:
        require_project_access(self.store, actor, project_id)
        return visibility.visible_files(self.store.files.filter(project_id=project_id), actor)

    def file_buckets(self, actor: Actor, project_id: str) -> visibility.UploadBuckets:
        """Visible files split into client uploads and agency deliverables."""
        return visibility.classify_uploads(self.list_files(actor, project_id), self.store.actors.list())
