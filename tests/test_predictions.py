"""Friend predictions reveal tests."""

import pytest

from tipping import db
from tipping.services.predictions import get_friend_predictions
from tipping.utils.cache_utils import data_tag, invalidate_tags
from tipping.utils.errors import AppError, NotFoundError

from conftest import in_past


@pytest.fixture
def carol_member(factory, league):
    return factory.member(factory.user("carol"), league)


class TestFriendPredictions:
    def test_hidden_while_open(self, factory, league, alice, alice_member, bob_member):
        """Should reveal nothing before the match starts."""
        match = factory.match(league)
        factory.match_bet(bob_member, match, 1, 0)

        result = get_friend_predictions("match", match.id, user_id=alice.id)

        assert result == {"is_locked": False, "predictions": []}

    def test_revealed_after_start(
        self, factory, league, alice, alice_member, bob_member, carol_member
    ):
        """Should list other members' wagers by points, excluding the caller's."""
        match = factory.match(league, date_time=in_past())
        factory.match_bet(alice_member, match, 2, 2)
        factory.match_bet(bob_member, match, 1, 0, total_points=2)
        factory.match_bet(carol_member, match, 3, 1, total_points=7)

        result = get_friend_predictions("match", match.id, user_id=alice.id)

        assert result["is_locked"] is True
        assert [p["user"]["username"] for p in result["predictions"]] == ["carol", "bob"]
        assert result["predictions"][0]["home_score"] == 3

    def test_skips_deleted_wagers(self, factory, league, alice, alice_member, bob_member):
        """Should not reveal soft-deleted wagers."""
        match = factory.match(league, date_time=in_past())
        bet = factory.match_bet(bob_member, match, 1, 0)
        bet.soft_delete()
        db.session.commit()

        result = get_friend_predictions("match", match.id, user_id=alice.id)

        assert result == {"is_locked": True, "predictions": []}

    def test_question_predictions(self, factory, league, alice, alice_member, bob_member):
        """Should reveal question answers the same way."""
        question = factory.question(league, date_time=in_past())
        factory.question_bet(bob_member, question, False)

        result = get_friend_predictions("question", question.id, user_id=alice.id)

        assert [p["prediction"] for p in result["predictions"]] == [False]

    def test_cached_until_invalidated(
        self, factory, league, alice, alice_member, bob_member, carol_member
    ):
        """Should serve the cached list until the kind's tag is bumped."""
        match = factory.match(league, date_time=in_past())
        factory.match_bet(bob_member, match, 1, 0)
        first = get_friend_predictions("match", match.id, user_id=alice.id)

        factory.match_bet(carol_member, match, 0, 0)
        cached = get_friend_predictions("match", match.id, user_id=alice.id)
        invalidate_tags(data_tag("match"))
        fresh = get_friend_predictions("match", match.id, user_id=alice.id)

        assert len(first["predictions"]) == 1
        assert len(cached["predictions"]) == 1
        assert len(fresh["predictions"]) == 2

    def test_non_member(self, factory, league, bob):
        """Should reject users outside the league."""
        match = factory.match(league, date_time=in_past())

        with pytest.raises(AppError) as exc_info:
            get_friend_predictions("match", match.id, user_id=bob.id)

        assert exc_info.value.code == "FORBIDDEN"

    def test_missing_event(self, alice):
        """Should report an unknown event."""
        with pytest.raises(NotFoundError, match="Special bet not found"):
            get_friend_predictions("special", 404, user_id=alice.id)

    def test_unknown_kind(self, alice):
        """Should reject unknown bet kinds."""
        with pytest.raises(AppError) as exc_info:
            get_friend_predictions("darts", 1, user_id=alice.id)

        assert exc_info.value.status_code == 404
