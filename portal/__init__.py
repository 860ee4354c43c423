"""
Client Portal Engine
Flask Application Factory.

Usage:
    from portal import create_app, get_portal
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config

    with app.app_context():
        portal = get_portal()
        actor = portal.identity.authenticate("admin@validate.com", "password")
        projects = portal.projects.list_projects(actor)
"""

import logging
import os
from dataclasses import dataclass
from functools import partial

from flask import Flask, current_app

from portal.config import config
from portal.middleware.logging_config import configure_logging
from portal.models import db
from portal.seed_data import load_seed
from portal.services.approval_workflow import ApprovalWorkflow
from portal.services.directory_service import DirectoryService
from portal.services.entity_store import EntityStore
from portal.services.identity import IdentityGate
from portal.services.persistence import KeyValuePersistence
from portal.services.project_resolver import ProjectResolver
from portal.services.project_service import ProjectService

logger = logging.getLogger(__name__)


@dataclass
class PortalServices:
    """The engine components, all sharing one EntityStore."""

    store: EntityStore
    resolver: ProjectResolver
    identity: IdentityGate
    directory: DirectoryService
    projects: ProjectService
    approvals: ApprovalWorkflow


def build_portal(app) -> PortalServices:
    """Load the EntityStore from durable storage and wire the services around it.

    Must run inside an application context.
    """
    rounds = app.config["BCRYPT_ROUNDS"]
    store = EntityStore(
        KeyValuePersistence(app.config["PORTAL_STORE_NAMESPACE"]),
        seed=partial(load_seed, bcrypt_rounds=rounds),
    )
    resolver = ProjectResolver(store)
    return PortalServices(
        store=store,
        resolver=resolver,
        identity=IdentityGate(
            store, allow_passwordless=app.config["PORTAL_ALLOW_PASSWORDLESS_LOGIN"],
        ),
        directory=DirectoryService(store, bcrypt_rounds=rounds),
        projects=ProjectService(store, resolver),
        approvals=ApprovalWorkflow(store),
    )


def get_portal() -> PortalServices:
    """Return the current app's PortalServices."""
    return current_app.extensions["portal"]


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    os.makedirs(app.instance_path, exist_ok=True)
    db.init_app(app)

    from portal.models import store_entry as _store_entry_models  # noqa: F401

    # ── Durable substrate + entity store ─────────────────────────────────
    with app.app_context():
        db.create_all()
        app.extensions["portal"] = build_portal(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("portal-reset")
    def portal_reset_cmd():
        """Drop persisted portal data and reload the seed dataset."""
        get_portal().store.reset()
        logger.info("Portal data reset to seed.")

    @app.cli.command("portal-stats")
    def portal_stats_cmd():
        """Log project / organization / pending-approval counts and durable key sizes."""
        stats = get_portal().resolver.get_stats()
        logger.info(
            "Projects: %d  Organizations: %d  Pending approvals: %d",
            stats.active_projects, stats.total_orgs, stats.pending_approvals,
        )
        for entry in KeyValuePersistence(current_app.config["PORTAL_STORE_NAMESPACE"]).entries():
            logger.info("  %s: %d bytes, updated %s", entry["key"], entry["size"], entry["updated_at"])

    return app
