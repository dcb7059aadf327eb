"""
Scoring contexts: small immutable snapshots of a prediction and a recorded
result, built from model rows so the evaluators never touch the database.
"""

from dataclasses import dataclass, field
from numbers import Number
from typing import FrozenSet, Mapping, Optional, Tuple

from tipping.utils.errors import BadRequestError

HOME = "home"
AWAY = "away"
DRAW = "draw"


@dataclass(frozen=True)
class ScorePair:
    home: Optional[int]
    away: Optional[int]

    @property
    def is_complete(self):
        return self.home is not None and self.away is not None

    @property
    def difference(self):
        return self.home - self.away

    @property
    def total(self):
        return self.home + self.away

    @property
    def outcome(self):
        if self.home > self.away:
            return HOME
        if self.away > self.home:
            return AWAY
        return DRAW


@dataclass(frozen=True)
class MatchPrediction:
    score: ScorePair
    scorer_id: Optional[int] = None
    no_scorer: Optional[bool] = None
    overtime: bool = False
    home_advanced: Optional[bool] = None


@dataclass(frozen=True)
class MatchResult:
    regular: ScorePair
    final: ScorePair
    scorer_ids: FrozenSet[int] = frozenset()
    # player id -> scorer ranking at match time
    scorer_rankings: Mapping[int, Optional[int]] = field(default_factory=dict)
    is_overtime: Optional[bool] = None
    is_shootout: Optional[bool] = None
    is_playoff_game: bool = False
    home_advanced: Optional[bool] = None

    @property
    def deciding_score(self):
        """Final score when recorded, otherwise the regular-time score"""
        return self.final if self.final.is_complete else self.regular


@dataclass(frozen=True)
class MatchContext:
    prediction: MatchPrediction
    actual: MatchResult


@dataclass(frozen=True)
class SeriesContext:
    prediction: ScorePair
    actual: ScorePair


@dataclass(frozen=True)
class SpecialOutcome:
    team_id: Optional[int] = None
    player_id: Optional[int] = None
    value: Optional[int] = None


@dataclass(frozen=True)
class SpecialContext:
    prediction: SpecialOutcome
    actual: SpecialOutcome


@dataclass(frozen=True)
class ClosestValueContext:
    prediction: Optional[Number]
    actual: Number
    all_predictions: Tuple[Number, ...] = ()


@dataclass(frozen=True)
class ScorerRankConfig:
    """{"rankedPoints": {"1": 2, "2": 4}, "unrankedPoints": 8}"""

    ranked_points: Mapping[str, int]
    unranked_points: int

    @classmethod
    def from_config(cls, config):
        if not config or "rankedPoints" not in config:
            return None
        ranked = config.get("rankedPoints")
        unranked = config.get("unrankedPoints")
        if not isinstance(ranked, dict) or not _is_number(unranked):
            raise BadRequestError("Scorer evaluator config is invalid")
        return cls(
            ranked_points={str(rank): int(points) for rank, points in ranked.items()},
            unranked_points=int(unranked),
        )


@dataclass(frozen=True)
class GroupStageConfig:
    winner_points: int
    advance_points: int

    @classmethod
    def from_config(cls, config):
        if not config:
            raise BadRequestError("Group stage evaluator requires config")
        winner_points = config.get("winnerPoints")
        advance_points = config.get("advancePoints")
        if not _is_number(winner_points) or not _is_number(advance_points):
            raise BadRequestError("Group stage evaluator requires config")
        return cls(winner_points=int(winner_points), advance_points=int(advance_points))


@dataclass(frozen=True)
class GroupStageContext:
    predicted_team_id: Optional[int]
    winner_team_id: Optional[int]
    advanced_team_ids: FrozenSet[int]
    config: GroupStageConfig


@dataclass(frozen=True)
class QuestionContext:
    prediction: Optional[bool]
    result: bool


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_match_context(bet, match):
    scorers = list(match.scorers or [])
    return MatchContext(
        prediction=MatchPrediction(
            score=ScorePair(bet.home_score, bet.away_score),
            scorer_id=bet.scorer_id,
            no_scorer=bet.no_scorer,
            overtime=bool(bet.overtime),
            home_advanced=bet.home_advanced,
        ),
        actual=MatchResult(
            regular=ScorePair(match.home_regular_score, match.away_regular_score),
            final=ScorePair(match.home_final_score, match.away_final_score),
            scorer_ids=frozenset(scorer.player_id for scorer in scorers),
            scorer_rankings={scorer.player_id: scorer.ranking for scorer in scorers},
            is_overtime=match.is_overtime,
            is_shootout=match.is_shootout,
            is_playoff_game=bool(match.is_playoff_game),
            home_advanced=match.home_advanced,
        ),
    )


def build_series_context(bet, series):
    return SeriesContext(
        prediction=ScorePair(bet.home_team_score, bet.away_team_score),
        actual=ScorePair(series.home_team_score, series.away_team_score),
    )


def build_special_context(pick, special_bet):
    return SpecialContext(
        prediction=SpecialOutcome(pick.team_id, pick.player_id, pick.value),
        actual=SpecialOutcome(
            special_bet.result_team_id,
            special_bet.result_player_id,
            special_bet.result_value,
        ),
    )


def build_question_context(bet, question):
    """A missing wager row is scored like an unanswered one"""
    return QuestionContext(
        prediction=bet.prediction if bet is not None else None,
        result=question.result,
    )
