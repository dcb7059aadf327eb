"""
Evaluator dispatch

Variant names are a closed enum. Names read from stored evaluator rules are
parsed once; anything outside the enum, or outside the bet kind's variant set,
is a configuration error.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from tipping.models.evaluator import (
    ENTITY_MATCH,
    ENTITY_QUESTION,
    ENTITY_SERIES,
    ENTITY_SPECIAL,
)
from tipping.scoring import match as match_evaluators
from tipping.scoring import series as series_evaluators
from tipping.scoring import special as special_evaluators
from tipping.scoring.contexts import (
    ClosestValueContext,
    GroupStageConfig,
    GroupStageContext,
    ScorerRankConfig,
)
from tipping.scoring.question import evaluate_question
from tipping.utils.errors import BadRequestError


class EvaluatorName(str, Enum):
    # Match
    EXACT_SCORE = "exact_score"
    SCORE_DIFFERENCE = "score_difference"
    GOAL_DIFFERENCE = "goal_difference"
    ONE_TEAM_SCORE = "one_team_score"
    TOTAL_GOALS = "total_goals"
    WINNER = "winner"
    DRAW = "draw"
    SCORER = "scorer"
    SOCCER_PLAYOFF_ADVANCE = "soccer_playoff_advance"
    # Series
    SERIES_EXACT = "series_exact"
    SERIES_WINNER = "series_winner"
    # Special bet
    EXACT_TEAM = "exact_team"
    EXACT_PLAYER = "exact_player"
    EXACT_VALUE = "exact_value"
    CLOSEST_VALUE = "closest_value"
    GROUP_STAGE_TEAM = "group_stage_team"
    # Question
    QUESTION = "question"

    @classmethod
    def parse(cls, name):
        try:
            return cls(name)
        except ValueError:
            raise BadRequestError(f"Unknown evaluator type: {name}") from None


MATCH_EVALUATORS = {
    EvaluatorName.EXACT_SCORE: match_evaluators.evaluate_exact_score,
    EvaluatorName.SCORE_DIFFERENCE: match_evaluators.evaluate_score_difference,
    EvaluatorName.GOAL_DIFFERENCE: match_evaluators.evaluate_score_difference,
    EvaluatorName.ONE_TEAM_SCORE: match_evaluators.evaluate_one_team_score,
    EvaluatorName.TOTAL_GOALS: match_evaluators.evaluate_total_goals,
    EvaluatorName.WINNER: match_evaluators.evaluate_winner,
    EvaluatorName.DRAW: match_evaluators.evaluate_draw,
    EvaluatorName.SCORER: match_evaluators.evaluate_scorer,
    EvaluatorName.SOCCER_PLAYOFF_ADVANCE: match_evaluators.evaluate_soccer_playoff_advance,
}

SERIES_EVALUATORS = {
    EvaluatorName.SERIES_EXACT: series_evaluators.evaluate_series_exact,
    EvaluatorName.SERIES_WINNER: series_evaluators.evaluate_series_winner,
}

# Boolean special evaluators; closest_value and group_stage_team are scored
# separately because they need every wager or the rule config
SPECIAL_EVALUATORS = {
    EvaluatorName.EXACT_TEAM: special_evaluators.evaluate_exact_team,
    EvaluatorName.EXACT_PLAYER: special_evaluators.evaluate_exact_player,
    EvaluatorName.EXACT_VALUE: special_evaluators.evaluate_exact_value,
}

ENTITY_VARIANTS = {
    ENTITY_MATCH: frozenset(MATCH_EVALUATORS),
    ENTITY_SERIES: frozenset(SERIES_EVALUATORS),
    ENTITY_SPECIAL: frozenset(SPECIAL_EVALUATORS)
    | {EvaluatorName.CLOSEST_VALUE, EvaluatorName.GROUP_STAGE_TEAM},
    ENTITY_QUESTION: frozenset({EvaluatorName.QUESTION}),
}


def supported_evaluator_types(entity=None):
    """Variant names, optionally limited to one bet kind"""
    if entity is None:
        return sorted(name.value for name in EvaluatorName)
    return sorted(name.value for name in ENTITY_VARIANTS[entity])


def resolve_evaluator(entity, name):
    evaluator_name = EvaluatorName.parse(name)
    if evaluator_name not in ENTITY_VARIANTS[entity]:
        raise BadRequestError(f"Unknown evaluator type: {name}")
    return evaluator_name


@dataclass(frozen=True)
class ScoringRule:
    name: EvaluatorName
    points: int
    config: Optional[dict] = None

    @classmethod
    def from_evaluator(cls, evaluator, entity):
        return cls(
            name=resolve_evaluator(entity, evaluator.type_name),
            points=int(evaluator.points or 0),
            config=evaluator.config,
        )


def round_points(value):
    """Round half away from zero, e.g. 16.5 -> 17"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def award_points(outcome, rule_points):
    """bool outcomes earn the rule's points; numeric outcomes are the points"""
    if isinstance(outcome, bool):
        return rule_points if outcome else 0
    return int(outcome)


def _breakdown(rule, awarded, points):
    return {"evaluator_name": rule.name.value, "awarded": awarded, "points": points}


def score_match(rules, context, is_doubled=False):
    """
    Sum every match rule for one wager

    Returns:
        tuple: (total_points, evaluator_results)
    """
    total = 0
    results = []
    for rule in rules:
        if rule.name is EvaluatorName.SCORER:
            outcome = match_evaluators.evaluate_scorer(
                context, ScorerRankConfig.from_config(rule.config)
            )
        else:
            outcome = MATCH_EVALUATORS[rule.name](context)
        points = award_points(outcome, rule.points)
        results.append(_breakdown(rule, points != 0, points))
        total += points

    if is_doubled:
        total *= 2

    return total, results


def score_series(rules, context):
    total = 0
    results = []
    for rule in rules:
        awarded = SERIES_EVALUATORS[rule.name](context)
        points = award_points(awarded, rule.points)
        results.append(_breakdown(rule, awarded, points))
        total += points
    return total, results


def validate_special_rule(rule):
    """Fail before any wager is touched when a rule's config is unusable"""
    if rule.name is EvaluatorName.GROUP_STAGE_TEAM:
        GroupStageConfig.from_config(rule.config)


def validate_special_result(rule, context):
    if rule.name is EvaluatorName.CLOSEST_VALUE and context.actual.value is None:
        raise BadRequestError("Closest value evaluator requires a value result")


def score_special(rule, context, all_values=(), advanced_team_ids=frozenset()):
    """
    Score one special bet wager

    Args:
        rule: The special bet's ScoringRule
        context: SpecialContext for the wager
        all_values: Every non-null value guess on the event (closest_value)
        advanced_team_ids: Teams recorded as advancing (group_stage_team)

    Returns:
        tuple: (total_points, evaluator_results)
    """
    validate_special_result(rule, context)

    if rule.name is EvaluatorName.CLOSEST_VALUE:
        multiplier = special_evaluators.evaluate_closest_value(
            ClosestValueContext(
                prediction=context.prediction.value,
                actual=context.actual.value,
                all_predictions=tuple(all_values),
            )
        )
        points = round_points(multiplier * rule.points)
        awarded = points != 0
    elif rule.name is EvaluatorName.GROUP_STAGE_TEAM:
        points = special_evaluators.evaluate_group_stage_team(
            GroupStageContext(
                predicted_team_id=context.prediction.team_id,
                winner_team_id=context.actual.team_id,
                advanced_team_ids=frozenset(advanced_team_ids),
                config=GroupStageConfig.from_config(rule.config),
            )
        )
        awarded = points > 0
    else:
        awarded = SPECIAL_EVALUATORS[rule.name](context)
        points = award_points(awarded, rule.points)

    return points, [_breakdown(rule, awarded, points)]


def score_question(rule, context):
    """
    Returns:
        tuple: (total_points, is_correct, evaluator_results)
    """
    points, is_correct = evaluate_question(context, rule.points)
    return points, is_correct, [_breakdown(rule, bool(is_correct), points)]
