from flask import jsonify, request
from flask_login import current_user, login_required

from tipping.routes.admin import bp
from tipping.services.evaluation import run_admin_evaluation
from tipping.utils.errors import BadRequestError


@bp.route("/evaluate/<kind>/<int:event_id>", methods=["POST"])
@login_required
def evaluate(kind, event_id):
    """Score an event's bets; a JSON user_id restricts the run to one user"""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object")

    user_id = data.get("user_id")
    if user_id is not None and (isinstance(user_id, bool) or not isinstance(user_id, int)):
        raise BadRequestError("user_id must be an integer")

    result = run_admin_evaluation(kind, event_id, user_id=user_id, admin_id=current_user.id)
    return jsonify(result)
