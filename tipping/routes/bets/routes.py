import logging

from flask import current_app, jsonify, request
from flask_login import login_required

from tipping import limiter
from tipping.routes.bets import bp
from tipping.services.predictions import get_friend_predictions
from tipping.services.wagers import get_adapter, save_wager

logger = logging.getLogger(__name__)


def bet_rate_limit():
    return current_app.config.get("BET_RATE_LIMIT", "30 per minute")


@bp.route("/<kind>", methods=["POST"])
@login_required
@limiter.limit(bet_rate_limit)
def submit_bet(kind):
    """Create or update the current user's bet for one event"""
    adapter = get_adapter(kind)
    result = save_wager(adapter, request.get_json(silent=True))

    if not result["success"]:
        logger.debug(f"Bet rejected ({kind}): {result['code']}")
        return jsonify(result), 400

    return jsonify(result)


@bp.route("/<kind>/<int:event_id>/friends")
@login_required
def friend_predictions(kind, event_id):
    """Other members' bets on an event, revealed once betting has closed"""
    data = get_friend_predictions(kind, event_id)
    return jsonify({"success": True, **data})
