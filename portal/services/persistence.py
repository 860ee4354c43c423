"""
Persistence adapter — durable key-value substrate for the EntityStore.

Layout:
    one ``store_entries`` row per entity kind, keyed ``<namespace>:<kind>``
    (e.g. ``validate_portal:projects``); the value is the JSON array of
    that kind's serialized records.

Contract:
    - load(): absent key, malformed JSON, a non-list payload or any record
      that fails to decode → fall back to the kind's seed records.
    - save(): serialize the full collection and write it back.  Failures
      are logged and swallowed; the in-memory store stays authoritative.

PersistenceWarning is raised internally and caught at this boundary; it
never reaches the EntityStore or its callers.
"""

from __future__ import annotations

import json
import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from portal.core.exceptions import PersistenceWarning
from portal.models import db
from portal.models.entities import EntityKind
from portal.models.store_entry import StoreEntry

logger = logging.getLogger(__name__)


class KeyValuePersistence:
    """Load-at-init / save-on-mutate hooks backed by the ``store_entries`` table."""

    def __init__(self, namespace: str):
        self.namespace = namespace

    def key_for(self, kind: EntityKind) -> str:
        return f"{self.namespace}:{kind.value}"

    # ── Load ─────────────────────────────────────────────────────────────

    def load(self, kind: EntityKind, decode: Callable[[dict], object],
             seed: Callable[[], list[dict]]) -> list:
        """Return decoded records for *kind*, or the decoded seed on any failure."""
        key = self.key_for(kind)
        try:
            raw = self._read(key)
            if raw is None:
                logger.info("No durable data for %s, using seed", key, extra={"durable_key": key})
                return [decode(row) for row in seed()]
            return self._decode_payload(key, raw, decode)
        except PersistenceWarning as warning:
            self._report(warning)
            return [decode(row) for row in seed()]

    def _read(self, key: str) -> str | None:
        try:
            entry = db.session.get(StoreEntry, key)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceWarning(key, "load", str(exc)) from exc
        return entry.payload if entry is not None else None

    @staticmethod
    def _decode_payload(key: str, raw: str, decode: Callable[[dict], object]) -> list:
        try:
            rows = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise PersistenceWarning(key, "load", f"malformed JSON: {exc}") from exc
        if not isinstance(rows, list):
            raise PersistenceWarning(key, "load", f"expected a list, got {type(rows).__name__}")
        try:
            return [decode(row) for row in rows]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise PersistenceWarning(key, "load", f"undecodable record: {exc!r}") from exc

    # ── Save ─────────────────────────────────────────────────────────────

    def save(self, kind: EntityKind, records: list) -> bool:
        """Write the full collection for *kind*.  Returns False if the write failed."""
        key = self.key_for(kind)
        payload = json.dumps([record.to_dict() for record in records], ensure_ascii=False)
        try:
            entry = db.session.get(StoreEntry, key)
            if entry is None:
                db.session.add(StoreEntry(key=key, payload=payload))
            else:
                entry.payload = payload
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            self._report(PersistenceWarning(key, "save", str(exc)))
            return False
        logger.debug("Persisted %d record(s) to %s", len(records), key,
                     extra={"durable_key": key})
        return True

    def entries(self) -> list[dict]:
        """Key, payload size and last write time of every durable key of this namespace."""
        rows = (
            StoreEntry.query
            .filter(StoreEntry.key.like(f"{self.namespace}:%"))
            .order_by(StoreEntry.key)
            .all()
        )
        return [row.to_dict() for row in rows]

    def clear(self) -> None:
        """Delete every durable key of this namespace."""
        try:
            StoreEntry.query.filter(StoreEntry.key.like(f"{self.namespace}:%")).delete(
                synchronize_session=False,
            )
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            self._report(PersistenceWarning(f"{self.namespace}:*", "clear", str(exc)))

    @staticmethod
    def _report(warning: PersistenceWarning) -> None:
        logger.warning(
            "Persistence %s failed for %s: %s",
            warning.operation, warning.key, warning.reason,
            extra={"event_type": "persistence_warning", "durable_key": warning.key},
        )
