"""
Evaluation orchestrators

One entry point per bet kind. Each loads the event and its live wagers inside a
single serializable transaction, scores every wager with the pure scoring
library, overwrites total_points and, for a full run, marks the event as
evaluated. A run restricted to one user never flips is_evaluated.

Audit logging and cache invalidation belong to run_admin_evaluation, not to
the orchestrators themselves.
"""

from flask import current_app

from tipping.models import (
    Evaluator,
    LeagueMember,
    Match,
    MatchBet,
    Question,
    QuestionBet,
    Series,
    SeriesBet,
    SpecialBet,
    SpecialBetPick,
)
from tipping.models import audit_log
from tipping.models.evaluator import (
    ENTITY_MATCH,
    ENTITY_QUESTION,
    ENTITY_SERIES,
    ENTITY_SPECIAL,
)
from tipping.scoring import (
    EvaluatorName,
    ScoringRule,
    build_match_context,
    build_question_context,
    build_series_context,
    build_special_context,
    score_match,
    score_question,
    score_series,
    score_special,
)
from tipping.scoring.registry import validate_special_rule
from tipping.services.audit import AuditLogger
from tipping.services.membership import require_admin
from tipping.utils.cache_utils import data_tag, invalidate_tags
from tipping.utils.errors import BadRequestError, NotFoundError
from tipping.utils.logging_config import ContextualLogger
from tipping.utils.performance import PerformanceMonitor, timer
from tipping.utils.transactions import serializable_transaction

logger = ContextualLogger(__name__)


def _statement_timeout():
    return current_app.config.get("EVALUATION_STATEMENT_TIMEOUT_MS")


def _live_event(model, event_id, label):
    event = model.get_live(event_id)
    if event is None:
        raise NotFoundError(f"{label} not found")
    return event


def _league_rules(league_id, entity, label):
    evaluators = Evaluator.for_league(league_id, entity)
    if not evaluators:
        raise BadRequestError(f"No evaluator configured for this {label}")
    return [ScoringRule.from_evaluator(evaluator, entity) for evaluator in evaluators]


def _unique_rules(rules):
    """At most one live rule per variant, otherwise points would be counted twice"""
    seen = set()
    for rule in rules:
        if rule.name in seen:
            raise BadRequestError(
                f"Multiple {rule.name.value} evaluators configured for this league"
            )
        seen.add(rule.name)
    return rules


def _scoped_wagers(model, event_column, event_id, user_id=None):
    """Live wagers on an event, optionally limited to one user's membership"""
    query = model.live().filter(event_column == event_id)
    if user_id is not None:
        query = query.join(LeagueMember, model.member_id == LeagueMember.id).filter(
            LeagueMember.user_id == user_id
        )
    return query.order_by(model.id.asc()).all()


def _wager_result(wager, total_points, evaluator_results):
    return {
        "user_id": wager.member.user_id,
        "bet_id": wager.id,
        "total_points": total_points,
        "evaluator_results": evaluator_results,
    }


def _summary(results):
    return {
        "success": True,
        "results": results,
        "total_users_evaluated": len(results),
    }


@timer
def evaluate_match(match_id, user_id=None):
    """
    Score every live wager on a match (or only user_id's)

    Points from every match rule of the league are summed per wager and
    doubled for doubled matches.
    """
    log = logger.bind(match_id=match_id, user_id=user_id)

    with serializable_transaction(_statement_timeout(), label=f"match {match_id} evaluation"):
        match = _live_event(Match, match_id, "Match")
        if not match.has_result:
            raise BadRequestError("Cannot evaluate match: result must be set")

        rules = _unique_rules(_league_rules(match.league_id, ENTITY_MATCH, "league"))
        wagers = _scoped_wagers(MatchBet, MatchBet.match_id, match.id, user_id)

        results = []
        for wager in wagers:
            context = build_match_context(wager, match)
            total_points, evaluator_results = score_match(
                rules, context, is_doubled=match.is_doubled
            )
            wager.total_points = total_points
            results.append(_wager_result(wager, total_points, evaluator_results))

        if user_id is None:
            match.is_evaluated = True

    log.info(f"Match evaluated: {len(results)} wagers scored")
    return _summary(results)


@timer
def evaluate_series(series_id, user_id=None):
    log = logger.bind(series_id=series_id, user_id=user_id)

    with serializable_transaction(_statement_timeout(), label=f"series {series_id} evaluation"):
        series = _live_event(Series, series_id, "Series")
        if not series.has_result:
            raise BadRequestError("Cannot evaluate series: result must be set")

        rules = _unique_rules(_league_rules(series.league_id, ENTITY_SERIES, "league"))
        wagers = _scoped_wagers(SeriesBet, SeriesBet.series_id, series.id, user_id)

        results = []
        for wager in wagers:
            total_points, evaluator_results = score_series(
                rules, build_series_context(wager, series)
            )
            wager.total_points = total_points
            results.append(_wager_result(wager, total_points, evaluator_results))

        if user_id is None:
            series.is_evaluated = True

    log.info(f"Series evaluated: {len(results)} wagers scored")
    return _summary(results)


@timer
def evaluate_special_bet(special_bet_id, user_id=None):
    """
    Score wagers on a special bet with the rule bound to that bet

    closest_value compares against every live wager on the event, even when
    only one user's wager is being re-scored.
    """
    log = logger.bind(special_bet_id=special_bet_id, user_id=user_id)

    with serializable_transaction(
        _statement_timeout(), label=f"special bet {special_bet_id} evaluation"
    ):
        special_bet = _live_event(SpecialBet, special_bet_id, "Special bet")
        if not special_bet.has_result:
            raise BadRequestError("Cannot evaluate special bet: result must be set")

        evaluator = special_bet.evaluator
        if evaluator is None or evaluator.is_deleted:
            raise BadRequestError("No evaluator configured for this special bet")

        rule = ScoringRule.from_evaluator(evaluator, ENTITY_SPECIAL)
        validate_special_rule(rule)

        all_values = ()
        if rule.name is EvaluatorName.CLOSEST_VALUE:
            all_values = tuple(
                wager.value
                for wager in _scoped_wagers(
                    SpecialBetPick, SpecialBetPick.special_bet_id, special_bet.id
                )
                if wager.value is not None
            )
        advanced_team_ids = (
            special_bet.advanced_team_ids
            if rule.name is EvaluatorName.GROUP_STAGE_TEAM
            else frozenset()
        )

        wagers = _scoped_wagers(
            SpecialBetPick, SpecialBetPick.special_bet_id, special_bet.id, user_id
        )

        results = []
        for wager in wagers:
            total_points, evaluator_results = score_special(
                rule,
                build_special_context(wager, special_bet),
                all_values=all_values,
                advanced_team_ids=advanced_team_ids,
            )
            wager.total_points = total_points
            results.append(_wager_result(wager, total_points, evaluator_results))

        if user_id is None:
            special_bet.is_evaluated = True

    log.info(f"Special bet evaluated with {rule.name.value}: {len(results)} wagers scored")
    return _summary(results)


def _question_rule(league_id):
    rules = [
        rule
        for rule in _league_rules(league_id, ENTITY_QUESTION, "league")
        if rule.name is EvaluatorName.QUESTION
    ]
    if not rules:
        raise BadRequestError("No evaluator configured for this league")
    if len(rules) > 1:
        raise BadRequestError("Multiple question evaluators configured for this league")
    return rules[0]


@timer
def evaluate_question(question_id, user_id=None):
    """Correct +points, wrong -floor(points/2), unanswered 0 with is_correct None"""
    log = logger.bind(question_id=question_id, user_id=user_id)

    with serializable_transaction(
        _statement_timeout(), label=f"question {question_id} evaluation"
    ):
        question = _live_event(Question, question_id, "Question")
        if not question.has_result:
            raise BadRequestError("Cannot evaluate question: result must be set")

        rule = _question_rule(question.league_id)
        wagers = _scoped_wagers(QuestionBet, QuestionBet.question_id, question.id, user_id)

        results = []
        for wager in wagers:
            total_points, is_correct, evaluator_results = score_question(
                rule, build_question_context(wager, question)
            )
            wager.total_points = total_points
            result = _wager_result(wager, total_points, evaluator_results)
            result["is_correct"] = is_correct
            results.append(result)

        if user_id is None:
            question.is_evaluated = True

    log.info(f"Question evaluated: {len(results)} wagers scored")
    return _summary(results)


EVALUATIONS = {
    "match": (evaluate_match, Match, audit_log.MATCH_EVALUATED),
    "series": (evaluate_series, Series, audit_log.SERIES_EVALUATED),
    "special": (evaluate_special_bet, SpecialBet, audit_log.SPECIAL_BET_EVALUATED),
    "question": (evaluate_question, Question, audit_log.QUESTION_EVALUATED),
}


def run_admin_evaluation(kind, event_id, user_id=None, admin_id=None):
    """
    Admin entry point: gate, evaluate, then audit and invalidate caches

    Audit and cache failures are logged inside their helpers and never change
    the returned result. AppError from the orchestrator propagates.
    """
    if kind not in EVALUATIONS:
        raise NotFoundError(f"Unknown bet kind: {kind}")

    admin = require_admin(admin_id)
    evaluate, model, event_type = EVALUATIONS[kind]

    with PerformanceMonitor(f"evaluate {kind} {event_id}") as monitor:
        result = evaluate(event_id, user_id=user_id)

    event = model.get_live(event_id)
    AuditLogger.evaluated(
        event_type,
        kind,
        admin.id,
        event_id,
        league_id=event.league_id if event else None,
        affected_users=result["total_users_evaluated"],
        total_points=sum(item["total_points"] for item in result["results"]),
        duration_ms=monitor.duration_ms,
    )
    invalidate_tags(data_tag(kind))

    return result
