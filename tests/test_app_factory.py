"""
App factory, configuration, logging and CLI tests.
"""
import json
import logging

import pytest

from portal import PortalServices, get_portal
from portal.config import ProductionConfig, TestingConfig
from portal.middleware.logging_config import JSONFormatter, ReadableFormatter
from portal.models.entities import Project
from portal.models.store_entry import StoreEntry


def test_testing_config(app):
    assert app.config["TESTING"] is True
    assert app.config["PORTAL_STORE_NAMESPACE"] == "test_portal"
    assert app.config["PORTAL_ALLOW_PASSWORDLESS_LOGIN"] is False
    assert app.config["BCRYPT_ROUNDS"] == 4


def test_portal_services_registered(app):
    portal = get_portal()
    assert isinstance(portal, PortalServices)
    assert portal.resolver.store is portal.store
    assert portal.approvals.store is portal.store
    assert portal.identity.allow_passwordless is False


def test_passwordless_login_off_outside_development():
    assert TestingConfig.PORTAL_ALLOW_PASSWORDLESS_LOGIN is False
    assert ProductionConfig.PORTAL_ALLOW_PASSWORDLESS_LOGIN is False


def test_production_requires_database_url(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)
    with pytest.raises(RuntimeError):
        ProductionConfig()


class TestCLI:
    def test_portal_stats(self, app, caplog):
        get_portal().store.reset()
        scratch = get_portal().store.projects.upsert(Project(organization_id="org1", name="Scratch"))
        get_portal().store.projects.delete(scratch.id)
        caplog.set_level(logging.INFO, logger="portal")
        result = app.test_cli_runner().invoke(args=["portal-stats"])

        assert result.exit_code == 0
        assert "Projects: 2  Organizations: 2  Pending approvals: 1" in caplog.text
        assert "test_portal:projects: " in caplog.text

    def test_portal_reset(self, app):
        portal = get_portal()
        portal.store.projects.upsert(Project(organization_id="org1", name="Scratch"))
        result = app.test_cli_runner().invoke(args=["portal-reset"])

        assert result.exit_code == 0
        assert len(portal.store.projects) == 2
        assert StoreEntry.query.count() == 0


class TestLogFormatters:
    def _record(self):
        record = logging.LogRecord("portal.test", logging.WARNING, __file__, 1,
                                   "Persistence save failed", None, None)
        record.event_type = "persistence_warning"
        record.durable_key = "test_portal:projects"
        return record

    def test_json_formatter_promotes_context(self):
        entry = json.loads(JSONFormatter().format(self._record()))
        assert entry["level"] == "WARNING"
        assert entry["message"] == "Persistence save failed"
        assert entry["event_type"] == "persistence_warning"
        assert entry["durable_key"] == "test_portal:projects"
        assert "actor_id" not in entry

    def test_readable_formatter_appends_context(self):
        line = ReadableFormatter().format(self._record())
        assert "event_type=persistence_warning" in line
        assert "durable_key=test_portal:projects" in line
