from .evaluation import (
    evaluate_match,
    evaluate_question,
    evaluate_series,
    evaluate_special_bet,
    run_admin_evaluation,
)
from .membership import require_admin, require_league_member
from .predictions import get_friend_predictions
from .wagers import (
    get_adapter,
    save_match_bet,
    save_question_bet,
    save_series_bet,
    save_special_bet,
    save_wager,
)

__all__ = [
    "evaluate_match",
    "evaluate_series",
    "evaluate_special_bet",
    "evaluate_question",
    "run_admin_evaluation",
    "require_admin",
    "require_league_member",
    "get_friend_predictions",
    "get_adapter",
    "save_wager",
    "save_match_bet",
    "save_series_bet",
    "save_special_bet",
    "save_question_bet",
]
