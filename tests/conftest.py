"""
Shared pytest fixtures for the client portal engine test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test app context, tables recreated after each test (autouse)
    - store: EntityStore loaded from an empty substrate (seed dataset)
    - admin / client_actor / other_client: seed and extra actors
    - resolver, projects, approvals, directory, identity: services over ``store``
"""

from functools import partial

import pytest

from portal import create_app
from portal.models import db as _db
from portal.models.entities import Actor, Organization, Role
from portal.seed_data import load_seed
from portal.services.approval_workflow import ApprovalWorkflow
from portal.services.directory_service import DirectoryService
from portal.services.entity_store import EntityStore
from portal.services.identity import IdentityGate
from portal.services.persistence import KeyValuePersistence
from portal.services.project_resolver import ProjectResolver
from portal.services.project_service import ProjectService

TEST_NAMESPACE = "test_portal"
TEST_ROUNDS = 4


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


# ── Engine fixtures ──────────────────────────────────────────────────────


def build_store(namespace=TEST_NAMESPACE):
    """A fresh EntityStore over the test database (a "process start")."""
    return EntityStore(
        KeyValuePersistence(namespace),
        seed=partial(load_seed, bcrypt_rounds=TEST_ROUNDS),
    )


@pytest.fixture()
def restart():
    """Factory for a new EntityStore over the same substrate."""
    return build_store


@pytest.fixture()
def persistence():
    return KeyValuePersistence(TEST_NAMESPACE)


@pytest.fixture()
def store():
    return build_store()


@pytest.fixture()
def admin(store):
    """Seed ADMIN actor (admin@validate.com)."""
    return store.actors.require("u1")


@pytest.fixture()
def client_actor(store):
    """Seed CLIENT actor of org1 (mike@sdc.com)."""
    return store.actors.require("u2")


@pytest.fixture()
def other_client(store):
    """CLIENT actor of org2, which owns no projects in the seed."""
    return store.actors.upsert(Actor(
        name="Jenny Marketing",
        email="jenny@bigcedar.com",
        role=Role.CLIENT,
        organization_id="org2",
    ))


@pytest.fixture()
def org3(store):
    return store.organizations.upsert(Organization(
        name="Table Rock Marina",
        primary_contact_name="Dana Dock",
        primary_contact_email="dana@trm.com",
    ))


@pytest.fixture()
def resolver(store):
    return ProjectResolver(store)


@pytest.fixture()
def projects(store, resolver):
    return ProjectService(store, resolver)


@pytest.fixture()
def approvals(store):
    return ApprovalWorkflow(store)


@pytest.fixture()
def directory(store):
    return DirectoryService(store, bcrypt_rounds=TEST_ROUNDS)


@pytest.fixture()
def identity(store):
    return IdentityGate(store)
