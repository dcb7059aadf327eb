"""Evaluation orchestrator tests against an in-memory database."""

import pytest

from tipping import db
from tipping.models import AuditLog, MatchBet
from tipping.models.audit_log import MATCH_EVALUATED
from tipping.models.evaluator import (
    ENTITY_MATCH,
    ENTITY_QUESTION,
    ENTITY_SERIES,
    ENTITY_SPECIAL,
)
from tipping.services.evaluation import (
    evaluate_match,
    evaluate_question,
    evaluate_series,
    evaluate_special_bet,
    run_admin_evaluation,
)
from tipping.utils.cache_utils import data_tag, get_tag_version
from tipping.utils.errors import AppError, BadRequestError, NotFoundError

from conftest import in_past


@pytest.fixture
def carol_member(factory, league):
    return factory.member(factory.user("carol"), league)


@pytest.fixture
def match_rules(factory, league):
    factory.evaluator(league, ENTITY_MATCH, "exact_score", 5)
    factory.evaluator(league, ENTITY_MATCH, "winner", 2)


@pytest.fixture
def finished_match(factory, league):
    return factory.match(
        league,
        date_time=in_past(),
        home_regular_score=2,
        away_regular_score=1,
        home_final_score=2,
        away_final_score=1,
    )


class TestEvaluateMatch:
    def test_scores_every_wager(
        self, factory, match_rules, finished_match, alice_member, bob_member
    ):
        """Should sum rule points per wager and mark the match evaluated."""
        exact = factory.match_bet(alice_member, finished_match, 2, 1)
        winner = factory.match_bet(bob_member, finished_match, 1, 0)

        result = evaluate_match(finished_match.id)

        assert result["success"] is True
        assert result["total_users_evaluated"] == 2
        assert result["results"][0] == {
            "user_id": alice_member.user_id,
            "bet_id": exact.id,
            "total_points": 7,
            "evaluator_results": [
                {"evaluator_name": "exact_score", "awarded": True, "points": 5},
                {"evaluator_name": "winner", "awarded": True, "points": 2},
            ],
        }
        assert exact.total_points == 7
        assert winner.total_points == 2
        assert finished_match.is_evaluated is True

    def test_doubled_match(self, factory, league, match_rules, alice_member):
        """Should double the points of a doubled match."""
        match = factory.match(
            league, date_time=in_past(), home_regular_score=0, away_regular_score=0, is_doubled=True
        )
        bet = factory.match_bet(alice_member, match, 0, 0)

        evaluate_match(match.id)

        assert bet.total_points == 14

    def test_single_user_run(
        self, factory, match_rules, finished_match, alice_member, bob_member
    ):
        """Should only touch the given user's wager and leave the flag unset."""
        alice_bet = factory.match_bet(alice_member, finished_match, 2, 1)
        bob_bet = factory.match_bet(bob_member, finished_match, 1, 0)

        result = evaluate_match(finished_match.id, user_id=alice_member.user_id)

        assert result["total_users_evaluated"] == 1
        assert alice_bet.total_points == 7
        assert bob_bet.total_points == 0
        assert finished_match.is_evaluated is False

    def test_re_evaluation_overwrites(
        self, factory, match_rules, finished_match, alice_member
    ):
        """Should replace earlier points after the result is corrected."""
        bet = factory.match_bet(alice_member, finished_match, 2, 1)
        evaluate_match(finished_match.id)

        finished_match.home_regular_score = 0
        finished_match.home_final_score = 0
        db.session.commit()
        evaluate_match(finished_match.id)

        assert bet.total_points == 0

    def test_skips_deleted_wagers(
        self, factory, match_rules, finished_match, alice_member
    ):
        """Should ignore soft-deleted wagers."""
        bet = factory.match_bet(alice_member, finished_match, 2, 1)
        bet.soft_delete()
        db.session.commit()

        result = evaluate_match(finished_match.id)

        assert result["total_users_evaluated"] == 0
        assert bet.total_points == 0

    def test_missing_result(self, factory, league, match_rules, alice_member):
        """Should refuse to evaluate a match without a result."""
        match = factory.match(league, date_time=in_past())
        factory.match_bet(alice_member, match, 1, 0)

        with pytest.raises(BadRequestError, match="Cannot evaluate match: result must be set"):
            evaluate_match(match.id)

        assert match.is_evaluated is False

    def test_missing_match(self, app):
        """Should report unknown matches."""
        with pytest.raises(NotFoundError, match="Match not found"):
            evaluate_match(999)

    def test_no_rules(self, finished_match):
        """Should require at least one match rule in the league."""
        with pytest.raises(BadRequestError, match="No evaluator configured for this league"):
            evaluate_match(finished_match.id)

    def test_unknown_rule_rolls_back(
        self, factory, league, finished_match, alice_member
    ):
        """Should fail on an unknown variant without writing any points."""
        factory.evaluator(league, ENTITY_MATCH, "exact_score", 5)
        factory.evaluator(league, ENTITY_MATCH, "bogus", 1)
        bet = factory.match_bet(alice_member, finished_match, 2, 1, total_points=3)

        with pytest.raises(BadRequestError, match="Unknown evaluator type: bogus"):
            evaluate_match(finished_match.id)

        assert db.session.get(MatchBet, bet.id).total_points == 3
        assert finished_match.is_evaluated is False

    def test_duplicate_rule_fails(self, factory, league, finished_match, alice_member):
        """Should refuse two live rules of the same variant instead of summing them."""
        factory.evaluator(league, ENTITY_MATCH, "exact_score", 5)
        factory.evaluator(league, ENTITY_MATCH, "exact_score", 5)
        bet = factory.match_bet(alice_member, finished_match, 2, 1)

        with pytest.raises(
            BadRequestError, match="Multiple exact_score evaluators configured for this league"
        ):
            evaluate_match(finished_match.id)

        assert db.session.get(MatchBet, bet.id).total_points == 0
        assert finished_match.is_evaluated is False


class TestEvaluateSeries:
    def test_series_points(self, factory, league, alice_member, bob_member, carol_member):
        """Should award exact or winner points per wager."""
        factory.evaluator(league, ENTITY_SERIES, "series_exact", 6)
        factory.evaluator(league, ENTITY_SERIES, "series_winner", 3)
        series = factory.series(
            league, date_time=in_past(), home_team_score=4, away_team_score=2
        )
        exact = factory.series_bet(alice_member, series, 4, 2)
        winner = factory.series_bet(bob_member, series, 4, 3)
        wrong = factory.series_bet(carol_member, series, 1, 4)

        result = evaluate_series(series.id)

        assert result["total_users_evaluated"] == 3
        assert (exact.total_points, winner.total_points, wrong.total_points) == (6, 3, 0)
        assert series.is_evaluated is True

    def test_missing_result(self, factory, league):
        """Should refuse to evaluate an unfinished series."""
        factory.evaluator(league, ENTITY_SERIES, "series_exact", 6)
        series = factory.series(league, date_time=in_past())

        with pytest.raises(BadRequestError, match="Cannot evaluate series"):
            evaluate_series(series.id)

    def test_duplicate_rule_fails(self, factory, league, alice_member):
        """Should refuse two live series_winner rules."""
        factory.evaluator(league, ENTITY_SERIES, "series_winner", 3)
        factory.evaluator(league, ENTITY_SERIES, "series_winner", 3)
        series = factory.series(
            league, date_time=in_past(), home_team_score=4, away_team_score=2
        )
        factory.series_bet(alice_member, series, 4, 3)

        with pytest.raises(BadRequestError, match="Multiple series_winner evaluators"):
            evaluate_series(series.id)

        assert series.is_evaluated is False


class TestEvaluateSpecialBet:
    @pytest.fixture
    def closest_bet(self, factory, league):
        evaluator = factory.evaluator(league, ENTITY_SPECIAL, "closest_value", 10)
        return factory.special_bet(
            league, evaluator=evaluator, date_time=in_past(), name="Total goals", result_value=10
        )

    def test_closest_value(self, factory, closest_bet, alice_member, bob_member):
        """Should reward the closest guess with a third of the points."""
        close = factory.special_pick(alice_member, closest_bet, value=12)
        far = factory.special_pick(bob_member, closest_bet, value=7)

        evaluate_special_bet(closest_bet.id)

        assert close.total_points == 3
        assert far.total_points == 0
        assert closest_bet.is_evaluated is True

    def test_single_user_compares_all_wagers(
        self, factory, closest_bet, alice_member, bob_member
    ):
        """Should compare a single user's guess against every wager."""
        factory.special_pick(alice_member, closest_bet, value=12)
        far = factory.special_pick(bob_member, closest_bet, value=7)

        result = evaluate_special_bet(closest_bet.id, user_id=bob_member.user_id)

        assert result["total_users_evaluated"] == 1
        assert result["results"][0]["total_points"] == 0
        assert far.total_points == 0
        assert closest_bet.is_evaluated is False

    def test_exact_team(self, factory, league, alice_member, bob_member):
        """Should award the bet's rule points for the right team."""
        champion, runner_up = factory.team(league), factory.team(league)
        evaluator = factory.evaluator(league, ENTITY_SPECIAL, "exact_team", 12)
        special_bet = factory.special_bet(
            league, evaluator=evaluator, date_time=in_past(), result_team_id=champion.id
        )
        right = factory.special_pick(alice_member, special_bet, team_id=champion.id)
        wrong = factory.special_pick(bob_member, special_bet, team_id=runner_up.id)

        evaluate_special_bet(special_bet.id)

        assert (right.total_points, wrong.total_points) == (12, 0)

    def test_group_stage_team(
        self, factory, league, alice_member, bob_member, carol_member
    ):
        """Should award winner and advance points from the rule config."""
        winner, advancer, out = (factory.team(league) for _ in range(3))
        evaluator = factory.evaluator(
            league,
            ENTITY_SPECIAL,
            "group_stage_team",
            0,
            config={"winnerPoints": 10, "advancePoints": 5},
        )
        special_bet = factory.special_bet(
            league, evaluator=evaluator, date_time=in_past(), result_team_id=winner.id
        )
        factory.advanced_team(special_bet, advancer)
        picks = [
            factory.special_pick(alice_member, special_bet, team_id=winner.id),
            factory.special_pick(bob_member, special_bet, team_id=advancer.id),
            factory.special_pick(carol_member, special_bet, team_id=out.id),
        ]

        evaluate_special_bet(special_bet.id)

        assert [pick.total_points for pick in picks] == [10, 5, 0]

    def test_group_stage_without_config(self, factory, league, alice_member):
        """Should reject a group stage rule without config."""
        team = factory.team(league)
        evaluator = factory.evaluator(league, ENTITY_SPECIAL, "group_stage_team", 0)
        special_bet = factory.special_bet(
            league, evaluator=evaluator, date_time=in_past(), result_team_id=team.id
        )
        factory.special_pick(alice_member, special_bet, team_id=team.id)

        with pytest.raises(BadRequestError, match="Group stage evaluator requires config"):
            evaluate_special_bet(special_bet.id)

    def test_no_evaluator(self, factory, league):
        """Should require an evaluator bound to the special bet."""
        special_bet = factory.special_bet(league, date_time=in_past(), result_value=3)

        with pytest.raises(BadRequestError, match="No evaluator configured for this special bet"):
            evaluate_special_bet(special_bet.id)


class TestEvaluateQuestion:
    def test_question_points(
        self, factory, league, alice_member, bob_member, carol_member
    ):
        """Should award, penalize and ignore answers."""
        factory.evaluator(league, ENTITY_QUESTION, "question", 5)
        question = factory.question(league, date_time=in_past(), result=True)
        right = factory.question_bet(alice_member, question, True)
        wrong = factory.question_bet(bob_member, question, False)
        blank = factory.question_bet(carol_member, question, None)

        result = evaluate_question(question.id)

        assert [item["is_correct"] for item in result["results"]] == [True, False, None]
        assert (right.total_points, wrong.total_points, blank.total_points) == (5, -2, 0)
        assert question.is_evaluated is True

    def test_multiple_rules(self, factory, league):
        """Should refuse an ambiguous question rule."""
        factory.evaluator(league, ENTITY_QUESTION, "question", 5)
        factory.evaluator(league, ENTITY_QUESTION, "question", 3)
        question = factory.question(league, date_time=in_past(), result=False)

        with pytest.raises(
            BadRequestError, match="Multiple question evaluators configured for this league"
        ):
            evaluate_question(question.id)


class TestRunAdminEvaluation:
    def test_requires_admin(self, match_rules, finished_match, alice):
        """Should reject non-admin users."""
        with pytest.raises(AppError) as exc_info:
            run_admin_evaluation("match", finished_match.id, admin_id=alice.id)

        assert exc_info.value.code == "UNAUTHORIZED"
        assert finished_match.is_evaluated is False

    def test_audits_and_invalidates(
        self, factory, admin, match_rules, finished_match, alice_member, bob_member
    ):
        """Should record an audit entry and bump the kind's cache tag."""
        factory.match_bet(alice_member, finished_match, 2, 1)
        factory.match_bet(bob_member, finished_match, 1, 0)
        version_before = get_tag_version(data_tag("match"))

        result = run_admin_evaluation("match", finished_match.id, admin_id=admin.id)

        assert result["total_users_evaluated"] == 2
        entry = AuditLog.query.filter_by(event_type=MATCH_EVALUATED).one()
        assert entry.user_id == admin.id
        assert entry.league_id == finished_match.league_id
        assert entry.event_metadata == {"affected_users": 2, "total_points": 9}
        assert get_tag_version(data_tag("match")) == version_before + 1

    def test_unknown_kind(self, admin):
        """Should reject unknown bet kinds."""
        with pytest.raises(NotFoundError):
            run_admin_evaluation("darts", 1, admin_id=admin.id)
