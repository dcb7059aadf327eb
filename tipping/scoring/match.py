"""
Match evaluators

Each returns True when the rule's points are awarded. The scorer evaluator in
rank mode returns the point value instead. All return False while the
regular-time result is missing. Overlapping variants (difference, one team,
total, draw) never award on top of an exact score.
"""

from tipping.scoring.contexts import DRAW


def _has_result(context):
    return context.actual.regular.is_complete and context.prediction.score.is_complete


def evaluate_exact_score(context):
    if not _has_result(context):
        return False
    predicted, actual = context.prediction.score, context.actual.regular
    return predicted.home == actual.home and predicted.away == actual.away


def evaluate_score_difference(context):
    if not _has_result(context) or evaluate_exact_score(context):
        return False
    return context.prediction.score.difference == context.actual.regular.difference


def evaluate_one_team_score(context):
    if not _has_result(context):
        return False
    if evaluate_exact_score(context) or evaluate_score_difference(context):
        return False
    predicted, actual = context.prediction.score, context.actual.regular
    return predicted.home == actual.home or predicted.away == actual.away


def evaluate_total_goals(context):
    if not _has_result(context) or evaluate_exact_score(context):
        return False
    return context.prediction.score.total == context.actual.regular.total


def evaluate_winner(context):
    """Outcome (home/away/draw) against the final score, overtime included"""
    if not _has_result(context):
        return False
    return context.prediction.score.outcome == context.actual.deciding_score.outcome


def evaluate_draw(context):
    if not _has_result(context) or evaluate_exact_score(context):
        return False
    return (
        context.prediction.score.outcome == DRAW
        and context.actual.regular.outcome == DRAW
    )


def evaluate_scorer(context, rank_config=None):
    """
    Scorer prediction

    Without rank_config returns a bool. With rank_config returns the points for
    the scorer's ranking, unranked_points for unranked scorers or a correct
    "no scorer" call, and 0 when wrong.
    """
    if not context.actual.regular.is_complete:
        return 0 if rank_config else False

    prediction, actual = context.prediction, context.actual

    if prediction.no_scorer:
        is_correct = len(actual.scorer_ids) == 0
        if rank_config:
            return rank_config.unranked_points if is_correct else 0
        return is_correct

    if prediction.scorer_id is None or prediction.scorer_id not in actual.scorer_ids:
        return 0 if rank_config else False

    if not rank_config:
        return True

    ranking = actual.scorer_rankings.get(prediction.scorer_id)
    if ranking is not None and str(ranking) in rank_config.ranked_points:
        return rank_config.ranked_points[str(ranking)]
    return rank_config.unranked_points


def evaluate_soccer_playoff_advance(context):
    if not context.actual.is_playoff_game:
        return False
    predicted = context.prediction.home_advanced
    actual = context.actual.home_advanced
    if predicted is None or actual is None:
        return False
    return predicted == actual
