"""Key-value substrate row — one serialized collection per entity kind."""

from datetime import datetime, timezone

from portal.models import db


class StoreEntry(db.Model):
    """Durable value for a single namespaced key (e.g. ``validate_portal:projects``).

    ``payload`` holds the JSON array of every record of one entity kind.
    No schema version is stored; readers default missing fields.
    """

    __tablename__ = "store_entries"

    key = db.Column(db.String(200), primary_key=True)
    payload = db.Column(db.Text, nullable=False, default="[]")
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "size": len(self.payload or ""),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
