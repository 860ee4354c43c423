"""
Approval Workflow — review / feedback / sign-off lifecycle of an ApprovalItem.

States:
    Pending Review     initial, set on creation
    Changes Requested  non-terminal, still actionable
    Approved           terminal for the client action surface

Client actions (CLIENT of the project's organization only):
    approve          Pending Review | Changes Requested → Approved
    request_changes  Pending Review | Changes Requested → Changes Requested

Administrative override:
    save_approval() lets an ADMIN replace the full record with any status,
    bypassing the transition table.

History:
    No transition log is kept.  The new status is written onto the item;
    the discussion is the Message thread linked by ``approval_item_id``.
    Posting feedback never changes the status.

Usage:
    from portal.services.approval_workflow import ApprovalWorkflow

    workflow = ApprovalWorkflow(store)
    result = workflow.transition(client_actor, "a1", "approve")
    # {"approval_id": "a1", "action": "approve",
    #  "previous_status": "Pending Review", "new_status": "Approved"}
"""

from __future__ import annotations

import logging
from dataclasses import replace

from portal.core.exceptions import ValidationError
from portal.models.entities import (
    Actor,
    ApprovalItem,
    ApprovalStatus,
    Message,
    Role,
)
from portal.services import visibility
from portal.services.permission import require_admin, require_project_access, require_role

logger = logging.getLogger(__name__)


APPROVAL_TRANSITIONS = {
    "approve": {
        "from": [ApprovalStatus.PENDING, ApprovalStatus.CHANGES_REQUESTED],
        "to": ApprovalStatus.APPROVED,
    },
    "request_changes": {
        "from": [ApprovalStatus.PENDING, ApprovalStatus.CHANGES_REQUESTED],
        "to": ApprovalStatus.CHANGES_REQUESTED,
    },
}


class ApprovalTransitionError(Exception):
    """Raised when a client action is not allowed from the item's current status."""

    def __init__(self, approval_id: str, action: str, current: ApprovalStatus, reason: str | None = None):
        msg = f"Cannot '{action}' approval item {approval_id} (status={current.value})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.approval_id = approval_id
        self.action = action
        self.current_status = current


def validate_transition(item: ApprovalItem, action: str) -> dict:
    """Validate whether *action* is valid for the item's current status."""
    rule = APPROVAL_TRANSITIONS.get(action)
    if not rule:
        return {"valid": False, "from": item.status, "to": None,
                "reason": f"Unknown action: {action}"}

    if item.status not in rule["from"]:
        return {"valid": False, "from": item.status, "to": rule["to"],
                "reason": f"Cannot '{action}' from status '{item.status.value}'"}

    return {"valid": True, "from": item.status, "to": rule["to"], "reason": None}


class ApprovalWorkflow:
    def __init__(self, store):
        self.store = store

    # ── Client action surface ────────────────────────────────────────────

    def available_actions(self, actor: Actor, item: ApprovalItem) -> list[str]:
        """Actions *actor* may trigger on *item* right now (empty for ADMIN)."""
        if actor.role != Role.CLIENT:
            return []
        return [action for action in APPROVAL_TRANSITIONS if validate_transition(item, action)["valid"]]

    def transition(self, actor: Actor, approval_id: str, action: str) -> dict:
        """Apply a client action to an approval item.

        Returns:
            {"approval_id", "action", "previous_status", "new_status"}

        Raises:
            PermissionDenied: actor is not a CLIENT.
            NotFoundError: unknown item, or its project is outside the actor's organization.
            ApprovalTransitionError: action not allowed from the current status.
        """
        require_role(actor, Role.CLIENT, f"approval_{action}")
        item = self.store.approvals.require(approval_id)
        require_project_access(self.store, actor, item.project_id)

        check = validate_transition(item, action)
        if not check["valid"]:
            raise ApprovalTransitionError(approval_id, action, item.status, check["reason"])

        previous = item.status
        saved = self.store.approvals.upsert(replace(item, status=check["to"]))

        logger.info(
            "Approval %s: %s → %s", approval_id, previous.value, saved.status.value,
            extra={"approval_id": approval_id, "actor_id": actor.id, "project_id": item.project_id},
        )
        return {
            "approval_id": approval_id,
            "action": action,
            "previous_status": previous.value,
            "new_status": saved.status.value,
        }

    def approve(self, actor: Actor, approval_id: str) -> dict:
        return self.transition(actor, approval_id, "approve")

    def request_changes(self, actor: Actor, approval_id: str) -> dict:
        return self.transition(actor, approval_id, "request_changes")

    # ── Administrative record edits ──────────────────────────────────────

    def create_approval(self, actor: Actor, project_id: str, title: str,
                        link_to_review: str, description: str = "") -> ApprovalItem:
        """Submit a new item for review.  Always starts as Pending Review."""
        require_admin(actor, "approval_create")
        self.store.projects.require(project_id)
        return self.store.approvals.upsert(ApprovalItem(
            project_id=project_id,
            title=title,
            link_to_review=link_to_review,
            description=description or "",
            status=ApprovalStatus.PENDING,
        ))

    def save_approval(self, actor: Actor, item: ApprovalItem) -> ApprovalItem:
        """Full-record replace by an ADMIN; any status, no transition rules."""
        require_admin(actor, "approval_edit")
        existing = self.store.approvals.get(item.id) if item.id else None
        if existing is not None and existing.project_id != item.project_id:
            raise ValidationError(
                "An approval item cannot be moved to another project",
                details={"project_id": "immutable"},
            )
        return self.store.approvals.upsert(item)

    def delete_approval(self, actor: Actor, approval_id: str) -> None:
        """Remove an item and its feedback thread.  Unknown ids are ignored."""
        require_admin(actor, "approval_delete")
        self.store.approvals.delete(approval_id)

    # ── Threaded feedback ────────────────────────────────────────────────

    def post_feedback(self, actor: Actor, approval_id: str, body: str) -> Message:
        """Add a (never internal) feedback message to an item's thread."""
        item = self.store.approvals.require(approval_id)
        require_project_access(self.store, actor, item.project_id)
        text = (body or "").strip()
        if not text:
            raise ValidationError("Feedback body is required", details={"body": "required"})

        return self.store.messages.upsert(Message(
            project_id=item.project_id,
            sender_id=actor.id,
            sender_name=actor.name,
            body=text,
            is_internal=False,
            approval_item_id=approval_id,
        ))

    def thread(self, actor: Actor, approval_id: str) -> list[Message]:
        item = self.store.approvals.require(approval_id)
        require_project_access(self.store, actor, item.project_id)
        return visibility.approval_thread(self.store.messages.list(), approval_id, actor)

    def pending_actions(self, actor: Actor) -> list[ApprovalItem]:
        """Pending Review items in every project *actor* can see."""
        visible = {p.id for p in visibility.scope_projects(self.store.projects.list(), actor)}
        return [
            a for a in self.store.approvals.list()
            if a.project_id in visible and a.status == ApprovalStatus.PENDING
        ]
