"""
Identity gate tests: credential checks and the passwordless fallback flag.
"""
import pytest

from portal.core.exceptions import AuthError
from portal.models.entities import Actor, Role
from portal.services.identity import IdentityGate


def test_admin_login_succeeds(identity):
    actor = identity.authenticate("admin@validate.com", "password")
    assert actor.id == "u1"
    assert actor.role == Role.ADMIN
    assert actor.is_admin


def test_client_login_succeeds(identity):
    actor = identity.authenticate("mike@sdc.com", "password")
    assert actor.role == Role.CLIENT
    assert actor.organization_id == "org1"


def test_wrong_secret_fails(identity):
    with pytest.raises(AuthError):
        identity.authenticate("admin@validate.com", "wrong")


def test_secret_is_case_sensitive(identity):
    with pytest.raises(AuthError):
        identity.authenticate("admin@validate.com", "Password")


def test_email_lookup_is_case_insensitive(identity):
    assert identity.authenticate("  Admin@Validate.COM ", "password").id == "u1"


def test_unknown_email_and_wrong_secret_look_the_same(identity):
    with pytest.raises(AuthError) as unknown:
        identity.authenticate("nobody@validate.com", "password")
    with pytest.raises(AuthError) as wrong:
        identity.authenticate("admin@validate.com", "nope")
    assert str(unknown.value) == str(wrong.value)


def test_missing_secret_fails(identity):
    with pytest.raises(AuthError):
        identity.authenticate("admin@validate.com", None)


def test_failures_logged_without_secret(identity, caplog):
    with pytest.raises(AuthError):
        identity.authenticate("admin@validate.com", "hunter2-guess")

    failures = [r for r in caplog.records if getattr(r, "event_type", None) == "auth_failure"]
    assert len(failures) == 1
    assert "hunter2-guess" not in caplog.text


def test_find_by_email(identity):
    assert identity.find_by_email("MIKE@sdc.com").id == "u2"
    assert identity.find_by_email("") is None
    assert identity.find_by_email("ghost@sdc.com") is None


class TestPasswordless:
    @pytest.fixture()
    def no_secret_actor(self, store):
        return store.actors.upsert(Actor(
            name="Jenny Marketing", email="jenny@bigcedar.com", role=Role.CLIENT,
            organization_id="org2",
        ))

    def test_rejected_when_disabled(self, identity, no_secret_actor):
        with pytest.raises(AuthError):
            identity.authenticate("jenny@bigcedar.com", "anything")

    def test_accepted_when_enabled(self, store, no_secret_actor, caplog):
        gate = IdentityGate(store, allow_passwordless=True)

        actor = gate.authenticate("jenny@bigcedar.com", "anything")

        assert actor.id == no_secret_actor.id
        assert any(getattr(r, "event_type", None) == "auth_passwordless" for r in caplog.records)

    def test_stored_secret_still_enforced_when_enabled(self, store):
        gate = IdentityGate(store, allow_passwordless=True)
        with pytest.raises(AuthError):
            gate.authenticate("admin@validate.com", "wrong")
