"""
Friend predictions

Other members' wagers stay hidden while betting on the event is open. Once
it closes every other live wager is revealed; the caller's own is excluded.
"""

import logging

from tipping.services.membership import require_league_member
from tipping.services.wagers import ADAPTERS, get_adapter
from tipping.utils.cache_utils import cached_by_tag, data_tag
from tipping.utils.errors import NotFoundError
from tipping.utils.timezone_utils import is_betting_open

logger = logging.getLogger(__name__)


def get_friend_predictions(kind, event_id, user_id=None):
    """
    Args:
        kind: match, series, special or question
        event_id: Event to reveal
        user_id: Explicit user, defaults to the logged-in user

    Returns:
        dict: {"is_locked": bool, "predictions": [wager dicts]}
    """
    adapter = get_adapter(kind)

    event = adapter.event_model.get_live(event_id)
    if event is None:
        raise NotFoundError(f"{adapter.label.capitalize()} not found")

    member = require_league_member(event.league_id, user_id)

    if is_betting_open(event.date_time):
        return {"is_locked": False, "predictions": []}

    return {
        "is_locked": True,
        "predictions": _locked_predictions(kind, event.id, member.id),
    }


# Locked wagers only change through evaluation, which invalidates the kind's tag
@cached_by_tag(lambda kind, event_id, member_id: data_tag(kind), timeout=300)
def _locked_predictions(kind, event_id, member_id):
    adapter = ADAPTERS[kind]
    model = adapter.wager_model

    wagers = (
        model.live()
        .filter(
            getattr(model, adapter.event_field) == event_id,
            model.member_id != member_id,
        )
        .order_by(model.total_points.desc(), model.id.asc())
        .all()
    )
    logger.debug(f"Revealing {len(wagers)} {kind} predictions for event {event_id}")
    return [wager.to_dict() for wager in wagers]
