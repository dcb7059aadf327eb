from datetime import datetime, timezone

from tipping import db


class SoftDeleteMixin:
    """Rows are never hard-deleted; readers go through live()"""

    deleted_at = db.Column(db.DateTime, nullable=True, index=True)

    @classmethod
    def live(cls):
        """Query scoped to non-deleted rows"""
        return cls.query.filter(cls.deleted_at.is_(None))

    @classmethod
    def get_live(cls, record_id):
        if record_id is None:
            return None
        return cls.live().filter(cls.id == record_id).first()

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def soft_delete(self):
        self.deleted_at = datetime.now(timezone.utc)

    def restore(self):
        self.deleted_at = None


def live_wager_indexes(table, event_column):
    """
    Uniqueness for wager tables: (member, event, deleted_at) plus a partial
    index so only one non-deleted row per (member, event) can exist
    """
    return (
        db.UniqueConstraint(
            "member_id", event_column, "deleted_at", name=f"uq_{table}_member_event"
        ),
        db.Index(
            f"uq_{table}_live_member_event",
            "member_id",
            event_column,
            unique=True,
            postgresql_where=db.text("deleted_at IS NULL"),
            sqlite_where=db.text("deleted_at IS NULL"),
        ),
        db.Index(f"idx_{table}_event", event_column),
    )
