from flask import Blueprint

bp = Blueprint("bets", __name__)

from tipping.routes.bets import routes  # noqa: F401, E402
