from tipping import db  # noqa: F401 - imported for model imports

from .audit_log import AuditLog
from .evaluator import Evaluator, EvaluatorType
from .league import League
from .league_member import LeagueMember
from .match import Match, MatchBet, MatchScorer
from .question import Question, QuestionBet
from .series import Series, SeriesBet
from .special_bet import SpecialBet, SpecialBetAdvancedTeam, SpecialBetPick
from .team import Player, Team
from .user import User

__all__ = [
    "User",
    "League",
    "LeagueMember",
    "Team",
    "Player",
    "EvaluatorType",
    "Evaluator",
    "Match",
    "MatchScorer",
    "MatchBet",
    "Series",
    "SeriesBet",
    "SpecialBet",
    "SpecialBetAdvancedTeam",
    "SpecialBetPick",
    "Question",
    "QuestionBet",
    "AuditLog",
]
