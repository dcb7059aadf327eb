"""
League membership and admin gates

Both raise AppError instead of returning a soft result; callers let it
propagate to the route's error handler.
"""

import logging

from flask_login import current_user

from tipping import db
from tipping.models import League, LeagueMember, User
from tipping.services.audit import AuditLogger
from tipping.utils.errors import AppError

logger = logging.getLogger(__name__)


def _resolve_user_id(user_id=None):
    if user_id is not None:
        return user_id
    if current_user and current_user.is_authenticated:
        return current_user.id
    raise AppError("Unauthorized: Login required", "UNAUTHORIZED", 401)


def require_league_member(league_id, user_id=None):
    """
    Verify that the user is an active member of an active league

    Args:
        league_id: League to check
        user_id: Explicit user, defaults to the logged-in user

    Returns:
        LeagueMember: The active membership row

    Raises:
        AppError: UNAUTHORIZED when nobody is logged in, FORBIDDEN otherwise
    """
    user_id = _resolve_user_id(user_id)

    member = LeagueMember.find_active(user_id, league_id)
    league = League.get_live(league_id) if member else None

    if member is None or league is None or not league.is_active:
        logger.warning(f"League access denied: user={user_id} league={league_id}")
        AuditLogger.league_access_denied(user_id, league_id)
        raise AppError("Unauthorized: Not a member of this league", "FORBIDDEN", 403)

    return member


def require_admin(user_id=None):
    """Site-wide admin check; returns the admin User"""
    user_id = _resolve_user_id(user_id)
    user = db.session.get(User, user_id)

    if user is None or not user.is_active or not user.is_admin:
        logger.warning(f"Admin access denied: user={user_id}")
        raise AppError("Unauthorized: Admin access required", "UNAUTHORIZED", 401)

    return user
