"""
Special bet evaluators

exact_* return a bool, closest_value a multiplier and group_stage_team raw points.
"""

from decimal import Decimal

EXACT_MULTIPLIER = 1.0
CLOSEST_MULTIPLIER = 0.33


def evaluate_exact_team(context):
    if context.prediction.team_id is None:
        return False
    return context.prediction.team_id == context.actual.team_id


def evaluate_exact_player(context):
    if context.prediction.player_id is None:
        return False
    return context.prediction.player_id == context.actual.player_id


def evaluate_exact_value(context):
    if context.prediction.value is None or context.actual.value is None:
        return False
    return context.prediction.value == context.actual.value


def _exact(value):
    # Decimal of the repr, so 0.1 and 0.5 are equally far from 0.3
    return Decimal(str(value))


def evaluate_closest_value(context):
    """
    Multiplier for value guesses across all wagers on the event.

    1.0 for the exact value, CLOSEST_MULTIPLIER for every wager sharing the
    smallest distance to it, 0 otherwise.
    """
    if context.prediction is None or not context.all_predictions:
        return 0

    actual = _exact(context.actual)
    distance = abs(_exact(context.prediction) - actual)
    if distance == 0:
        return EXACT_MULTIPLIER

    closest = min(abs(_exact(value) - actual) for value in context.all_predictions)
    if distance == closest:
        return CLOSEST_MULTIPLIER

    return 0


def evaluate_group_stage_team(context):
    """Winner points beat advance points when a team is in both"""
    if context.predicted_team_id is None:
        return 0
    if context.predicted_team_id == context.winner_team_id:
        return context.config.winner_points
    if context.predicted_team_id in context.advanced_team_ids:
        return context.config.advance_points
    return 0
