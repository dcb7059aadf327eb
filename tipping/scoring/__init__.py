"""
Pure scoring functions for every bet variant. No database access happens here.
"""

from tipping.scoring.contexts import (
    ClosestValueContext,
    GroupStageConfig,
    GroupStageContext,
    MatchContext,
    MatchPrediction,
    MatchResult,
    QuestionContext,
    ScorePair,
    ScorerRankConfig,
    SeriesContext,
    SpecialContext,
    SpecialOutcome,
    build_match_context,
    build_question_context,
    build_series_context,
    build_special_context,
)
from tipping.scoring.registry import (
    EvaluatorName,
    ScoringRule,
    resolve_evaluator,
    round_points,
    score_match,
    score_question,
    score_series,
    score_special,
    supported_evaluator_types,
)

__all__ = [
    "ClosestValueContext",
    "GroupStageConfig",
    "GroupStageContext",
    "MatchContext",
    "MatchPrediction",
    "MatchResult",
    "QuestionContext",
    "ScorePair",
    "ScorerRankConfig",
    "SeriesContext",
    "SpecialContext",
    "SpecialOutcome",
    "build_match_context",
    "build_question_context",
    "build_series_context",
    "build_special_context",
    "EvaluatorName",
    "ScoringRule",
    "resolve_evaluator",
    "round_points",
    "score_match",
    "score_question",
    "score_series",
    "score_special",
    "supported_evaluator_types",
]
