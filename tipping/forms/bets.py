import math

from wtforms import Form
from wtforms.validators import NumberRange

from tipping.forms.fields import (
    Omittable,
    Present,
    StrictBooleanField,
    StrictIntegerField,
)


class BetForm(Form):
    """Base for wager payload schemas; cross-field checks go in validate_payload"""

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators=extra_validators):
            return False
        self.validate_payload()
        return not self.form_errors

    def validate_payload(self):
        pass


class MatchBetForm(BetForm):
    match_id = StrictIntegerField(
        "Match", validators=[Present("Match ID is required"), NumberRange(min=1)]
    )
    home_score = StrictIntegerField(
        "Home score",
        validators=[Present(), NumberRange(min=0, message="Score cannot be negative")],
    )
    away_score = StrictIntegerField(
        "Away score",
        validators=[Present(), NumberRange(min=0, message="Score cannot be negative")],
    )
    scorer_id = StrictIntegerField("Scorer", validators=[Omittable(), NumberRange(min=1)])
    no_scorer = StrictBooleanField("No scorer", validators=[Omittable()])
    overtime = StrictBooleanField("Overtime", default=False, validators=[Omittable()])
    home_advanced = StrictBooleanField("Home advances", validators=[Omittable()])

    def validate_payload(self):
        if self.no_scorer.data is True and self.scorer_id.data is not None:
            self.form_errors.append("Cannot set both scorer and no scorer")


class SeriesBetForm(BetForm):
    series_id = StrictIntegerField(
        "Series", validators=[Present("Series ID is required"), NumberRange(min=1)]
    )
    home_team_score = StrictIntegerField(
        "Home wins", validators=[Present(), NumberRange(min=0)]
    )
    away_team_score = StrictIntegerField(
        "Away wins", validators=[Present(), NumberRange(min=0)]
    )
    # Optional; without it the length check waits for the stored series
    best_of = StrictIntegerField(
        "Best of", validators=[Omittable(), NumberRange(min=1)]
    )

    def validate_payload(self):
        if self.best_of.data is None:
            return
        error = series_score_error(
            self.home_team_score.data, self.away_team_score.data, self.best_of.data
        )
        if error:
            self.form_errors.append(error)


def series_score_error(home, away, best_of):
    """Message for an impossible series result, or None"""
    if home > best_of or away > best_of:
        return f"Score must be between 0 and {best_of}"
    wins_needed = math.ceil(best_of / 2)
    if home < wins_needed and away < wins_needed:
        return f"At least one team must have {wins_needed} wins to complete the series"
    return None


class SpecialBetForm(BetForm):
    special_bet_id = StrictIntegerField(
        "Special bet",
        validators=[Present("Special Bet ID is required"), NumberRange(min=1)],
    )
    team_id = StrictIntegerField("Team", validators=[Omittable(), NumberRange(min=1)])
    player_id = StrictIntegerField(
        "Player", validators=[Omittable(), NumberRange(min=1)]
    )
    value = StrictIntegerField("Value", validators=[Omittable()])

    def validate_payload(self):
        fields_set = sum(
            field.data is not None for field in (self.team_id, self.player_id, self.value)
        )
        if fields_set != 1:
            self.form_errors.append(
                "Exactly one prediction must be set (team OR player OR value)"
            )


class QuestionBetForm(BetForm):
    question_id = StrictIntegerField(
        "Question", validators=[Present("Question ID is required"), NumberRange(min=1)]
    )
    prediction = StrictBooleanField(
        "Answer", validators=[Present("Answer must be yes or no")]
    )
