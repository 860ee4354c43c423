"""Relationship resolver — composes per-project bundles and admin statistics.

Role-agnostic: callers apply ``visibility`` to what this returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from portal.models.entities import (
    ApprovalItem,
    ApprovalStatus,
    FileRecord,
    Message,
    Milestone,
    Project,
)


@dataclass(frozen=True)
class ProjectBundle:
    """A project with its dependents.

    ``messages`` is the general thread (no threaded feedback), oldest first.
    ``threads`` maps each approval id to its feedback in insertion order.
    """

    project: Project
    milestones: list[Milestone]
    messages: list[Message]
    files: list[FileRecord]
    approvals: list[ApprovalItem]
    threads: dict[str, list[Message]] = field(default_factory=dict)


@dataclass(frozen=True)
class PortalStats:
    active_projects: int
    total_orgs: int
    pending_approvals: int

    def to_dict(self) -> dict:
        return {
            "active_projects": self.active_projects,
            "total_orgs": self.total_orgs,
            "pending_approvals": self.pending_approvals,
        }


class ProjectResolver:
    def __init__(self, store):
        self.store = store

    def get_project_bundle(self, project_id: str) -> ProjectBundle:
        """Assemble the bundle for *project_id*.

        Raises:
            NotFoundError: no such project.  A project with no dependents
                still resolves, with empty lists.
        """
        project = self.store.projects.require(project_id)

        project_messages = self.store.messages.filter(project_id=project_id)
        general = sorted(
            (m for m in project_messages if not m.approval_item_id),
            key=lambda m: m.created_at,
        )
        approvals = self.store.approvals.filter(project_id=project_id)
        threads = {
            approval.id: [m for m in project_messages if m.approval_item_id == approval.id]
            for approval in approvals
        }

        return ProjectBundle(
            project=project,
            # Collection order is already due-date ascending
            milestones=self.store.milestones.filter(project_id=project_id),
            messages=general,
            files=self.store.files.filter(project_id=project_id),
            approvals=approvals,
            threads=threads,
        )

    def get_approval_thread(self, approval_id: str) -> list[Message]:
        """Feedback threaded to *approval_id*, in insertion order."""
        self.store.approvals.require(approval_id)
        return self.store.messages.filter(approval_item_id=approval_id)

    def pending_approvals(self, project_id: str) -> list[ApprovalItem]:
        return [
            a for a in self.store.approvals.filter(project_id=project_id)
            if a.status == ApprovalStatus.PENDING
        ]

    def projects_for_organization(self, organization_id: str) -> list[Project]:
        self.store.organizations.require(organization_id)
        return self.store.projects.filter(organization_id=organization_id)

    def get_stats(self) -> PortalStats:
        """Counts over the unfiltered store.  Admin-only view; callers enforce it."""
        return PortalStats(
            active_projects=len(self.store.projects),
            total_orgs=len(self.store.organizations),
            pending_approvals=sum(
                1 for a in self.store.approvals.list() if a.status == ApprovalStatus.PENDING
            ),
        )
