"""
Directory Service — organizations and actors (ADMIN only).

Actor secrets are accepted in clear only as the ``password`` argument of
save_actor() and are stored as bcrypt hashes.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from email_validator import EmailNotValidError, validate_email

from portal.core.exceptions import ValidationError
from portal.models.entities import Actor, Organization, Role
from portal.services.permission import require_admin
from portal.utils.crypto import DEFAULT_ROUNDS, hash_password

logger = logging.getLogger(__name__)


class DirectoryService:
    def __init__(self, store, *, bcrypt_rounds: int = DEFAULT_ROUNDS):
        self.store = store
        self.bcrypt_rounds = bcrypt_rounds

    # ═════════════════════════════════════════════════════════════════════
    # Organizations
    # ═════════════════════════════════════════════════════════════════════

    def list_organizations(self, actor: Actor) -> list[Organization]:
        require_admin(actor, "organization_view")
        return self.store.organizations.list()

    def get_organization(self, actor: Actor, organization_id: str) -> Organization:
        require_admin(actor, "organization_view")
        return self.store.organizations.require(organization_id)

    def save_organization(self, actor: Actor, organization: Organization) -> Organization:
        require_admin(actor, "organization_edit")
        if organization.primary_contact_email:
            organization = replace(
                organization,
                primary_contact_email=self._normalize_email(organization.primary_contact_email),
            )
        return self.store.organizations.upsert(organization)

    def delete_organization(self, actor: Actor, organization_id: str) -> None:
        """Raises ConflictError while the organization owns projects or members."""
        require_admin(actor, "organization_delete")
        self.store.organizations.delete(organization_id)

    def members_of(self, actor: Actor, organization_id: str) -> list[Actor]:
        require_admin(actor, "organization_view")
        self.store.organizations.require(organization_id)
        return self.store.actors.filter(organization_id=organization_id)

    # ═════════════════════════════════════════════════════════════════════
    # Actors
    # ═════════════════════════════════════════════════════════════════════

    def list_actors(self, actor: Actor) -> list[Actor]:
        require_admin(actor, "user_view")
        return self.store.actors.list()

    def save_actor(self, actor: Actor, record: Actor, password: str | None = None) -> Actor:
        """Create or fully replace an actor.

        Args:
            actor:    The ADMIN performing the change.
            record:   Actor to save.  Its ``password_hash`` is ignored.
            password: New secret; when omitted the stored hash is kept.
        """
        require_admin(actor, "user_edit")
        existing = self.store.actors.get(record.id) if record.id else None

        if password:
            password_hash = hash_password(password, self.bcrypt_rounds)
        else:
            password_hash = existing.password_hash if existing else None

        organization_id = record.organization_id
        if record.role == Role.ADMIN:
            organization_id = None

        saved = self.store.actors.upsert(replace(
            record,
            email=self._normalize_email(record.email),
            organization_id=organization_id,
            password_hash=password_hash,
        ))
        logger.info("Actor %s saved by %s", saved.id, actor.id,
                    extra={"actor_id": actor.id, "entity_id": saved.id})
        return saved

    def delete_actor(self, actor: Actor, actor_id: str) -> None:
        """Remove an actor.  Their messages and files keep the name snapshot."""
        require_admin(actor, "user_delete")
        if actor_id == actor.id:
            raise ValidationError("An admin cannot delete their own account",
                                  details={"id": "self"})
        self.store.actors.delete(actor_id)

    @staticmethod
    def _normalize_email(email: str) -> str:
        try:
            return validate_email((email or "").strip(), check_deliverability=False).normalized
        except EmailNotValidError as exc:
            raise ValidationError(f"Invalid email: {email!r}", details={"email": str(exc)}) from exc
