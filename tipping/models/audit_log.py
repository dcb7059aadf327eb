from datetime import datetime, timezone

from tipping import db

# Event types
USER_BET_CREATED = "USER_BET_CREATED"
USER_BET_UPDATED = "USER_BET_UPDATED"
USER_SERIES_BET_CREATED = "USER_SERIES_BET_CREATED"
USER_SERIES_BET_UPDATED = "USER_SERIES_BET_UPDATED"
USER_SPECIAL_BET_CREATED = "USER_SPECIAL_BET_CREATED"
USER_SPECIAL_BET_UPDATED = "USER_SPECIAL_BET_UPDATED"
USER_QUESTION_BET_CREATED = "USER_QUESTION_BET_CREATED"
USER_QUESTION_BET_UPDATED = "USER_QUESTION_BET_UPDATED"
MATCH_EVALUATED = "MATCH_EVALUATED"
SERIES_EVALUATED = "SERIES_EVALUATED"
SPECIAL_BET_EVALUATED = "SPECIAL_BET_EVALUATED"
QUESTION_EVALUATED = "QUESTION_EVALUATED"
LEAGUE_ACCESS_DENIED = "LEAGUE_ACCESS_DENIED"

# Categories
CATEGORY_USER_ACTION = "USER_ACTION"
CATEGORY_EVALUATION = "EVALUATION"
CATEGORY_SECURITY = "SECURITY"

# Severities
SEVERITY_INFO = "INFO"
SEVERITY_WARNING = "WARNING"
SEVERITY_ERROR = "ERROR"

SENSITIVE_KEYS = ("password", "token", "secret", "hash", "auth")


def sanitize_metadata(metadata):
    """Drop values whose keys look like credentials"""
    if not metadata:
        return {}
    return {
        key: value
        for key, value in metadata.items()
        if not any(marker in key.lower() for marker in SENSITIVE_KEYS)
    }


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    event_type = db.Column(db.String(50), nullable=False)
    category = db.Column(db.String(30), nullable=False)
    severity = db.Column(db.String(10), nullable=False, default=SEVERITY_INFO)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=True)
    resource_type = db.Column(db.String(50))
    resource_id = db.Column(db.Integer)

    description = db.Column(db.String(500))
    event_metadata = db.Column(db.JSON, nullable=True)
    duration_ms = db.Column(db.Integer)
    success = db.Column(db.Boolean, default=True, nullable=False)
    error_message = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship("User")

    __table_args__ = (
        db.Index("idx_audit_event_type", "event_type"),
        db.Index("idx_audit_league", "league_id"),
        db.Index("idx_audit_user", "user_id"),
        db.Index("idx_audit_created", "created_at"),
    )

    def __repr__(self):
        return f"<AuditLog {self.event_type} user={self.user_id} resource={self.resource_type}:{self.resource_id}>"

    @staticmethod
    def log_event(
        event_type,
        category,
        user_id=None,
        league_id=None,
        resource_type=None,
        resource_id=None,
        description=None,
        metadata=None,
        duration_ms=None,
        severity=SEVERITY_INFO,
        success=True,
        error_message=None,
    ):
        """Add an audit row to the session; the caller commits"""
        entry = AuditLog(
            event_type=event_type,
            category=category,
            severity=severity,
            user_id=user_id,
            league_id=league_id,
            resource_type=resource_type,
            resource_id=resource_id,
            description=description,
            event_metadata=sanitize_metadata(metadata),
            duration_ms=duration_ms,
            success=success,
            error_message=error_message,
        )

        db.session.add(entry)
        return entry

    def to_dict(self):
        return {
            "id": self.id,
            "event_type": self.event_type,
            "category": self.category,
            "severity": self.severity,
            "user_id": self.user_id,
            "league_id": self.league_id,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "description": self.description,
            "metadata": self.event_metadata,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
