"""
Visibility & scoping policy — pure functions over entities and an actor.

Rules:
    Projects  ADMIN sees all; CLIENT sees projects of its own organization.
    Files     visible when ``is_client_visible`` or the actor is ADMIN.
    Messages  the general thread holds non-threaded messages; ``is_internal``
              ones only for ADMIN.  Threaded feedback is shown only inside
              its approval item's discussion.
    Uploads   grouped by the uploader's current role in the actor directory;
              an uploader that no longer resolves belongs to neither group.

Nothing here mutates its inputs or touches the store.

Usage:
    from portal.services import visibility

    projects = visibility.scope_projects(store.projects.list(), actor)
    bundle = visibility.scope_bundle(resolver.get_project_bundle(pid), actor)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from portal.core.exceptions import NotFoundError
from portal.models.entities import Actor, FileRecord, Message, Project, Role


@dataclass(frozen=True)
class UploadBuckets:
    client_uploads: list[FileRecord]
    agency_deliverables: list[FileRecord]


# ── Projects ─────────────────────────────────────────────────────────────


def can_view_project(project: Project, actor: Actor) -> bool:
    if actor.role == Role.ADMIN:
        return True
    return bool(actor.organization_id) and project.organization_id == actor.organization_id


def scope_projects(projects: Iterable[Project], actor: Actor) -> list[Project]:
    return [project for project in projects if can_view_project(project, actor)]


# ── Files ────────────────────────────────────────────────────────────────


def is_file_visible(file_record: FileRecord, actor: Actor) -> bool:
    return file_record.is_client_visible or actor.role == Role.ADMIN


def visible_files(files: Iterable[FileRecord], actor: Actor) -> list[FileRecord]:
    return [f for f in files if is_file_visible(f, actor)]


def classify_uploads(files: Iterable[FileRecord], actors: Iterable[Actor]) -> UploadBuckets:
    """Split files into client uploads and agency deliverables by uploader role.

    Apply ``visible_files`` first when building a CLIENT view.
    """
    roles = {actor.id: actor.role for actor in actors}
    client_uploads, agency_deliverables = [], []
    for file_record in files:
        role = roles.get(file_record.uploaded_by_id)
        if role == Role.CLIENT:
            client_uploads.append(file_record)
        elif role == Role.ADMIN:
            agency_deliverables.append(file_record)
    return UploadBuckets(client_uploads=client_uploads, agency_deliverables=agency_deliverables)


# ── Messages ─────────────────────────────────────────────────────────────


def is_message_visible(message: Message, actor: Actor) -> bool:
    return not message.is_internal or actor.role == Role.ADMIN


def is_in_general_thread(message: Message, actor: Actor) -> bool:
    return not message.approval_item_id and is_message_visible(message, actor)


def general_thread(messages: Iterable[Message], actor: Actor) -> list[Message]:
    return [m for m in messages if is_in_general_thread(m, actor)]


def approval_thread(messages: Iterable[Message], approval_id: str, actor: Actor) -> list[Message]:
    return [
        m for m in messages
        if m.approval_item_id == approval_id and is_message_visible(m, actor)
    ]


# ── Bundles ──────────────────────────────────────────────────────────────


def scope_bundle(bundle, actor: Actor):
    """Return a copy of a ProjectBundle reduced to what *actor* may see.

    Raises:
        NotFoundError: the actor may not see the project at all.  Same
            error as a missing project, so existence is not disclosed.
    """
    if not can_view_project(bundle.project, actor):
        raise NotFoundError("Project", bundle.project.id)
    return replace(
        bundle,
        messages=general_thread(bundle.messages, actor),
        files=visible_files(bundle.files, actor),
        threads={
            approval_id: [m for m in thread if is_message_visible(m, actor)]
            for approval_id, thread in bundle.threads.items()
        },
    )
