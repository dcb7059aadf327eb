"""Wager submission tests."""

import pytest
from sqlalchemy.exc import IntegrityError

from tipping import db
from tipping.models import AuditLog, MatchBet, QuestionBet, SeriesBet, SpecialBetPick
from tipping.models.audit_log import (
    LEAGUE_ACCESS_DENIED,
    USER_BET_CREATED,
    USER_BET_UPDATED,
)
from tipping.services.wagers import (
    ADAPTERS,
    save_match_bet,
    save_question_bet,
    save_series_bet,
    save_special_bet,
)
from tipping.utils.cache_utils import BET_BADGES_TAG, data_tag, get_tag_version
from tipping.utils.errors import AppError

from conftest import in_past


@pytest.fixture
def open_match(factory, league):
    return factory.match(league)


def match_payload(match, home=2, away=1, **extra):
    return {"match_id": match.id, "home_score": home, "away_score": away, **extra}


class TestSaveMatchBet:
    def test_creates_wager(self, open_match, alice, alice_member):
        """Should create a wager with zero points and audit it."""
        result = save_match_bet(match_payload(open_match), user_id=alice.id)

        assert result == {"success": True, "updated": False}
        bet = MatchBet.live().filter_by(match_id=open_match.id).one()
        assert (bet.home_score, bet.away_score, bet.total_points) == (2, 1, 0)
        assert bet.member_id == alice_member.id
        assert bet.overtime is False

        entry = AuditLog.query.filter_by(event_type=USER_BET_CREATED).one()
        assert entry.user_id == alice.id
        assert entry.resource_id == open_match.id

    def test_updates_existing_wager(self, open_match, alice, alice_member):
        """Should update the live wager instead of adding a second one."""
        save_match_bet(match_payload(open_match), user_id=alice.id)

        result = save_match_bet(match_payload(open_match, 0, 0), user_id=alice.id)

        assert result == {"success": True, "updated": True}
        bets = MatchBet.live().filter_by(match_id=open_match.id).all()
        assert len(bets) == 1
        assert (bets[0].home_score, bets[0].away_score) == (0, 0)
        assert AuditLog.query.filter_by(event_type=USER_BET_UPDATED).count() == 1

    def test_betting_closed(self, factory, league, alice, alice_member):
        """Should reject wagers once the match has started and write nothing."""
        match = factory.match(league, date_time=in_past(hours=1))

        result = save_match_bet(match_payload(match), user_id=alice.id)

        assert result == {
            "success": False,
            "error": "Betting is closed for this match",
            "code": "BETTING_CLOSED",
        }
        assert MatchBet.query.count() == 0
        assert AuditLog.query.count() == 0

    def test_validation_failure(self, open_match, alice, alice_member):
        """Should return field errors for an invalid payload."""
        result = save_match_bet(match_payload(open_match, home=-1), user_id=alice.id)

        assert result["success"] is False
        assert result["code"] == "VALIDATION_ERROR"
        assert result["field_errors"] == {"home_score": ["Score cannot be negative"]}
        assert MatchBet.query.count() == 0

    def test_non_dict_payload(self, alice):
        """Should reject payloads that are not JSON objects."""
        result = save_match_bet(["not", "a", "dict"], user_id=alice.id)

        assert result["success"] is False
        assert result["code"] == "VALIDATION_ERROR"

    def test_unknown_match(self, alice, alice_member):
        """Should report a missing match as a structured failure."""
        result = save_match_bet(
            {"match_id": 999, "home_score": 1, "away_score": 0}, user_id=alice.id
        )

        assert result == {"success": False, "error": "Match not found", "code": "NOT_FOUND"}

    def test_unknown_scorer(self, open_match, alice, alice_member):
        """Should reject a scorer that does not exist."""
        result = save_match_bet(match_payload(open_match, scorer_id=999), user_id=alice.id)

        assert result["code"] == "BAD_REQUEST"
        assert result["error"] == "Scorer not found"
        assert MatchBet.query.count() == 0

    def test_non_member(self, open_match, bob):
        """Should raise for users outside the league and audit the attempt."""
        with pytest.raises(AppError) as exc_info:
            save_match_bet(match_payload(open_match), user_id=bob.id)

        assert exc_info.value.code == "FORBIDDEN"
        assert exc_info.value.status_code == 403
        assert MatchBet.query.count() == 0
        assert AuditLog.query.filter_by(event_type=LEAGUE_ACCESS_DENIED).count() == 1

    def test_inactive_member(self, factory, league, open_match, bob):
        """Should treat an inactive membership like no membership."""
        factory.member(bob, league, is_active=False)

        with pytest.raises(AppError, match="Not a member of this league"):
            save_match_bet(match_payload(open_match), user_id=bob.id)

    def test_inactive_league(self, factory, alice):
        """Should refuse wagers in a deactivated league."""
        closed_league = factory.league(name="Closed", is_active=False)
        factory.member(alice, closed_league)
        match = factory.match(closed_league)

        with pytest.raises(AppError) as exc_info:
            save_match_bet(match_payload(match), user_id=alice.id)

        assert exc_info.value.code == "FORBIDDEN"

    def test_requires_login(self, open_match):
        """Should raise UNAUTHORIZED without a user."""
        with pytest.raises(AppError) as exc_info:
            save_match_bet(match_payload(open_match))

        assert exc_info.value.code == "UNAUTHORIZED"

    def test_invalidates_cache_tags(self, open_match, alice, alice_member):
        """Should bump the badge and kind data tags after a save."""
        badges = get_tag_version(BET_BADGES_TAG)
        match_data = get_tag_version(data_tag("match"))

        save_match_bet(match_payload(open_match), user_id=alice.id)

        assert get_tag_version(BET_BADGES_TAG) == badges + 1
        assert get_tag_version(data_tag("match")) == match_data + 1

    def test_audit_failure_does_not_fail_save(
        self, monkeypatch, open_match, alice, alice_member
    ):
        """Should keep the saved wager when the audit write fails."""

        def broken_log_event(**fields):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(AuditLog, "log_event", staticmethod(broken_log_event))

        result = save_match_bet(match_payload(open_match), user_id=alice.id)

        assert result["success"] is True
        assert MatchBet.live().filter_by(match_id=open_match.id).count() == 1

    def test_concurrent_first_submission(
        self, monkeypatch, open_match, alice, alice_member
    ):
        """Should let the unique index reject a second live wager."""
        save_match_bet(match_payload(open_match), user_id=alice.id)
        # Simulate a racing request that has not seen the first insert yet
        monkeypatch.setattr(
            ADAPTERS["match"], "find_wager", lambda member_id, event_id: None
        )

        with pytest.raises(IntegrityError):
            save_match_bet(match_payload(open_match, 3, 3), user_id=alice.id)

        assert MatchBet.live().filter_by(match_id=open_match.id).count() == 1

    def test_deleted_wager_is_replaced(self, factory, open_match, alice, alice_member):
        """Should create a fresh wager when the previous one was soft-deleted."""
        old = factory.match_bet(alice_member, open_match, 5, 5)
        old.soft_delete()
        db.session.commit()

        result = save_match_bet(match_payload(open_match), user_id=alice.id)

        assert result["updated"] is False
        assert MatchBet.query.filter_by(match_id=open_match.id).count() == 2
        assert MatchBet.live().filter_by(match_id=open_match.id).count() == 1


class TestSaveSeriesBet:
    def test_creates_series_wager(self, factory, league, alice, alice_member):
        """Should store the predicted wins."""
        series = factory.series(league)

        result = save_series_bet(
            {"series_id": series.id, "home_team_score": 4, "away_team_score": 3},
            user_id=alice.id,
        )

        assert result["success"] is True
        bet = SeriesBet.live().one()
        assert (bet.home_team_score, bet.away_team_score) == (4, 3)

    def test_stored_best_of_wins(self, factory, league, alice, alice_member):
        """Should check the score against the stored series length."""
        series = factory.series(league, best_of=7)

        result = save_series_bet(
            {
                "series_id": series.id,
                "home_team_score": 3,
                "away_team_score": 1,
                "best_of": 5,
            },
            user_id=alice.id,
        )

        assert result["success"] is False
        assert result["error"] == "At least one team must have 4 wins to complete the series"
        assert SeriesBet.query.count() == 0

    def test_short_series_without_best_of(self, factory, league, alice, alice_member):
        """Should accept 3:1 for a best-of-five series when the payload omits best_of."""
        series = factory.series(league, best_of=5)

        result = save_series_bet(
            {"series_id": series.id, "home_team_score": 3, "away_team_score": 1},
            user_id=alice.id,
        )

        assert result == {"success": True, "updated": False}
        assert SeriesBet.live().one().home_team_score == 3


class TestSaveSpecialBet:
    def test_switching_prediction(self, factory, league, alice, alice_member):
        """Should clear the old prediction when another kind is chosen."""
        team = factory.team(league)
        special_bet = factory.special_bet(league)

        save_special_bet({"special_bet_id": special_bet.id, "team_id": team.id}, user_id=alice.id)
        result = save_special_bet(
            {"special_bet_id": special_bet.id, "value": 42}, user_id=alice.id
        )

        assert result == {"success": True, "updated": True}
        pick = SpecialBetPick.live().one()
        assert pick.team_id is None
        assert pick.value == 42

    def test_team_from_other_league(self, factory, league, alice, alice_member):
        """Should reject teams that do not belong to the league."""
        other_team = factory.team(factory.league(name="Other"))
        special_bet = factory.special_bet(league)

        result = save_special_bet(
            {"special_bet_id": special_bet.id, "team_id": other_team.id}, user_id=alice.id
        )

        assert result["error"] == "Team not found in this league"
        assert SpecialBetPick.query.count() == 0

    def test_two_predictions(self, factory, league, alice, alice_member):
        """Should reject more than one prediction field."""
        special_bet = factory.special_bet(league)

        result = save_special_bet(
            {"special_bet_id": special_bet.id, "team_id": 1, "value": 3}, user_id=alice.id
        )

        assert result["code"] == "VALIDATION_ERROR"


class TestSaveQuestionBet:
    def test_answer_no(self, factory, league, alice, alice_member):
        """Should store a "no" answer."""
        question = factory.question(league)

        result = save_question_bet(
            {"question_id": question.id, "prediction": False}, user_id=alice.id
        )

        assert result["success"] is True
        assert QuestionBet.live().one().prediction is False

    def test_closed_question(self, factory, league, alice, alice_member):
        """Should name the bet kind in the closed message."""
        question = factory.question(league, date_time=in_past())

        result = save_question_bet(
            {"question_id": question.id, "prediction": True}, user_id=alice.id
        )

        assert result["error"] == "Betting is closed for this question"
