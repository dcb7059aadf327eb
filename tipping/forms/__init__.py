from .bets import MatchBetForm, QuestionBetForm, SeriesBetForm, SpecialBetForm

__all__ = ["MatchBetForm", "SeriesBetForm", "SpecialBetForm", "QuestionBetForm"]
