"""
Timezone utility functions and the shared betting-window predicate
"""

from datetime import datetime, timezone

import pytz
from flask import current_app, has_app_context


def get_app_timezone():
    """Get the application's configured timezone"""
    try:
        timezone_name = (
            current_app.config.get("TIMEZONE", "UTC") if has_app_context() else "UTC"
        )
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def get_utc_time():
    """Get current time in UTC"""
    return datetime.now(timezone.utc)


def ensure_utc(dt):
    """Attach UTC to naive datetimes (storage keeps UTC without tzinfo)"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def convert_to_app_timezone(dt):
    """Convert a datetime to the application's timezone"""
    if dt is None:
        return None

    return ensure_utc(dt).astimezone(get_app_timezone())


def is_betting_open(deadline, now=None):
    """
    Betting is open strictly before the event's scheduled time.

    Args:
        deadline: Event date_time (naive values are treated as UTC)
        now: Reference time, defaults to the current UTC time

    Returns:
        bool: True while wagers may still be submitted
    """
    if deadline is None:
        return False

    now = ensure_utc(now) if now is not None else get_utc_time()
    return now < ensure_utc(deadline)


def format_event_time(dt, format_str="%a %d.%m. %H:%M"):
    """Format an event time in the application's timezone"""
    if dt is None:
        return "TBD"

    return convert_to_app_timezone(dt).strftime(format_str)
