"""
Best-effort audit trail

Every call commits its own row after the business transaction has finished.
A failure here is logged and swallowed so it can never turn a successful
submission or evaluation into an error.
"""

import logging

from tipping import db
from tipping.models import audit_log
from tipping.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def _record(**fields):
    try:
        AuditLog.log_event(**fields)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(
            f"Audit log failed for {fields.get('event_type')}: {e.__class__.__name__}: {e}"
        )


class AuditLogger:
    """Audit sink used by the wager, evaluation and membership services"""

    @staticmethod
    def bet_created(event_type, resource_type, user_id, league_id, event_id, metadata=None, duration_ms=None):
        _record(
            event_type=event_type,
            category=audit_log.CATEGORY_USER_ACTION,
            user_id=user_id,
            league_id=league_id,
            resource_type=resource_type,
            resource_id=event_id,
            description=f"Created {resource_type} bet",
            metadata=metadata,
            duration_ms=duration_ms,
        )

    @staticmethod
    def bet_updated(event_type, resource_type, user_id, league_id, event_id, metadata=None, duration_ms=None):
        _record(
            event_type=event_type,
            category=audit_log.CATEGORY_USER_ACTION,
            user_id=user_id,
            league_id=league_id,
            resource_type=resource_type,
            resource_id=event_id,
            description=f"Updated {resource_type} bet",
            metadata=metadata,
            duration_ms=duration_ms,
        )

    @staticmethod
    def evaluated(event_type, resource_type, admin_id, event_id, league_id=None, affected_users=0, total_points=0, duration_ms=None):
        _record(
            event_type=event_type,
            category=audit_log.CATEGORY_EVALUATION,
            user_id=admin_id,
            league_id=league_id,
            resource_type=resource_type,
            resource_id=event_id,
            description=f"Evaluated {resource_type} {event_id}",
            metadata={"affected_users": affected_users, "total_points": total_points},
            duration_ms=duration_ms,
        )

    @staticmethod
    def league_access_denied(user_id, league_id):
        _record(
            event_type=audit_log.LEAGUE_ACCESS_DENIED,
            category=audit_log.CATEGORY_SECURITY,
            severity=audit_log.SEVERITY_WARNING,
            user_id=user_id,
            league_id=league_id,
            resource_type="league",
            resource_id=league_id,
            description="League access denied",
            success=False,
        )
