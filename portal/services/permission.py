"""
Role checks shared by the portal services.

Usage:
    from portal.services.permission import require_admin, require_project_access

    require_admin(actor, "project_create")               # raises PermissionDenied
    project = require_project_access(store, actor, pid)  # raises NotFoundError
"""

from portal.core.exceptions import NotFoundError, PermissionDenied
from portal.models.entities import Actor, Project, Role
from portal.services.visibility import can_view_project


def has_role(actor: Actor, role: Role) -> bool:
    return actor is not None and actor.role == role


def require_role(actor: Actor, role: Role, action: str) -> None:
    if not has_role(actor, role):
        raise PermissionDenied(getattr(actor, "id", None), action)


def require_admin(actor: Actor, action: str) -> None:
    require_role(actor, Role.ADMIN, action)


def require_project_access(store, actor: Actor, project_id: str) -> Project:
    """Return the project if *actor* may see it.

    A project outside a CLIENT's organization raises the same NotFoundError
    as a missing one.
    """
    project = store.projects.require(project_id)
    if not can_view_project(project, actor):
        raise NotFoundError("Project", project_id)
    return project
