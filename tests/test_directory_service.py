"""
Directory service tests: organizations and actors (ADMIN only).
"""
from dataclasses import replace

import pytest

from portal.core.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from portal.models.entities import Actor, Organization, Role


class TestOrganizations:
    def test_list_requires_admin(self, directory, admin, client_actor):
        assert [o.id for o in directory.list_organizations(admin)] == ["org1", "org2"]
        with pytest.raises(PermissionDenied):
            directory.list_organizations(client_actor)

    def test_get_unknown(self, directory, admin):
        with pytest.raises(NotFoundError):
            directory.get_organization(admin, "org-missing")

    def test_save_normalizes_contact_email(self, directory, admin):
        org = directory.save_organization(admin, Organization(
            name="Table Rock Marina", primary_contact_name="Dana Dock",
            primary_contact_email=" dana@TRM.com ",
        ))
        assert org.id.startswith("org")
        assert org.primary_contact_email == "dana@trm.com"

    def test_save_rejects_bad_contact_email(self, directory, admin):
        with pytest.raises(ValidationError):
            directory.save_organization(admin, Organization(
                name="Table Rock Marina", primary_contact_email="not-an-email",
            ))

    def test_save_requires_name(self, directory, admin):
        with pytest.raises(ValidationError):
            directory.save_organization(admin, Organization(name=""))

    def test_delete_with_projects_conflicts(self, directory, admin):
        with pytest.raises(ConflictError):
            directory.delete_organization(admin, "org1")

    def test_delete_empty_organization(self, directory, admin, store):
        directory.delete_organization(admin, "org2")
        assert store.organizations.get("org2") is None

    def test_members_of(self, directory, admin, other_client):
        assert [a.id for a in directory.members_of(admin, "org1")] == ["u2"]
        assert [a.id for a in directory.members_of(admin, "org2")] == [other_client.id]


class TestActors:
    def test_list_requires_admin(self, directory, admin, client_actor):
        assert [a.id for a in directory.list_actors(admin)] == ["u1", "u2"]
        with pytest.raises(PermissionDenied):
            directory.list_actors(client_actor)

    def test_create_with_password(self, directory, admin, identity):
        saved = directory.save_actor(admin, Actor(
            name="Jenny Marketing", email="jenny@bigcedar.com", role=Role.CLIENT,
            organization_id="org2", job_title="Marketing Lead",
        ), password="lodge-2024")

        assert saved.password_hash and saved.password_hash != "lodge-2024"
        assert identity.authenticate("jenny@bigcedar.com", "lodge-2024").id == saved.id

    def test_update_without_password_keeps_hash(self, directory, admin, store, identity):
        u2 = store.actors.require("u2")
        directory.save_actor(admin, replace(u2, phone="555-9999", password_hash=None))

        assert store.actors.require("u2").password_hash == u2.password_hash
        assert identity.authenticate("mike@sdc.com", "password").phone == "555-9999"

    def test_update_with_password_rotates_secret(self, directory, admin, identity, store):
        directory.save_actor(admin, store.actors.require("u2"), password="new-secret")
        assert identity.authenticate("mike@sdc.com", "new-secret").id == "u2"
        with pytest.raises(AuthError):
            identity.authenticate("mike@sdc.com", "password")

    def test_admin_role_drops_organization(self, directory, admin):
        saved = directory.save_actor(admin, Actor(
            name="Ed Editor", email="ed@validate.com", role=Role.ADMIN, organization_id="org1",
        ), password="cutcutcut")
        assert saved.organization_id is None

    def test_client_requires_organization(self, directory, admin):
        with pytest.raises(ValidationError):
            directory.save_actor(admin, Actor(name="Loose", email="loose@sdc.com", role=Role.CLIENT))

    def test_duplicate_email_conflicts(self, directory, admin):
        with pytest.raises(ConflictError):
            directory.save_actor(admin, Actor(
                name="Mike Twin", email="Mike@sdc.com", role=Role.CLIENT, organization_id="org1",
            ))

    def test_invalid_email_rejected(self, directory, admin):
        with pytest.raises(ValidationError):
            directory.save_actor(admin, Actor(
                name="Typo", email="typo-at-sdc.com", role=Role.CLIENT, organization_id="org1",
            ))

    def test_client_cannot_save_actors(self, directory, client_actor):
        with pytest.raises(PermissionDenied):
            directory.save_actor(client_actor, replace(client_actor, role=Role.ADMIN))

    def test_delete_actor(self, directory, admin, store):
        directory.delete_actor(admin, "u2")
        assert store.actors.get("u2") is None
        assert store.organizations.get("org1") is not None

    def test_cannot_delete_self(self, directory, admin):
        with pytest.raises(ValidationError):
            directory.delete_actor(admin, "u1")
