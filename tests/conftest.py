"""Shared pytest fixtures for the tipping league tests."""

from datetime import datetime, timedelta, timezone

import pytest
from flask import g

from tipping import create_app, db
from tipping.models import (
    Evaluator,
    EvaluatorType,
    League,
    LeagueMember,
    Match,
    MatchBet,
    MatchScorer,
    Player,
    Question,
    QuestionBet,
    Series,
    SeriesBet,
    SpecialBet,
    SpecialBetAdvancedTeam,
    SpecialBetPick,
    Team,
    User,
)


def utc_now():
    """Naive UTC, the way event times are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def in_future(hours=24):
    return utc_now() + timedelta(hours=hours)


def in_past(hours=24):
    return utc_now() - timedelta(hours=hours)


class Factory:
    """Creates committed rows with sensible defaults"""

    def __init__(self):
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def _save(self, obj):
        db.session.add(obj)
        db.session.commit()
        return obj

    def user(self, username=None, is_admin=False, is_active=True):
        n = self._next()
        user = User(
            username=username or f"user{n}",
            email=f"{username or f'user{n}'}@example.com",
            is_admin=is_admin,
            is_active=is_active,
        )
        user.set_password("secret123")
        return self._save(user)

    def league(self, name="Test League", is_active=True):
        return self._save(League(name=name, is_active=is_active))

    def member(self, user, league, is_active=True):
        return self._save(
            LeagueMember(user_id=user.id, league_id=league.id, is_active=is_active)
        )

    def team(self, league, name=None, group_name=None):
        n = self._next()
        return self._save(
            Team(league_id=league.id, name=name or f"Team {n}", group_name=group_name)
        )

    def player(self, team=None, last_name=None):
        n = self._next()
        return self._save(
            Player(team_id=team.id if team else None, last_name=last_name or f"Player{n}")
        )

    def evaluator(self, league, entity, type_name, points, config=None):
        evaluator_type = EvaluatorType.get_or_create(type_name)
        db.session.flush()
        return self._save(
            Evaluator(
                league_id=league.id,
                evaluator_type_id=evaluator_type.id,
                entity=entity,
                name=type_name,
                points=points,
                config=config,
            )
        )

    def match(self, league, date_time=None, home_team=None, away_team=None, **fields):
        home_team = home_team or self.team(league)
        away_team = away_team or self.team(league)
        return self._save(
            Match(
                league_id=league.id,
                home_team_id=home_team.id,
                away_team_id=away_team.id,
                date_time=date_time or in_future(),
                **fields,
            )
        )

    def match_scorer(self, match, player, ranking=None, number_of_goals=1):
        return self._save(
            MatchScorer(
                match_id=match.id,
                player_id=player.id,
                ranking=ranking,
                number_of_goals=number_of_goals,
            )
        )

    def series(self, league, date_time=None, best_of=7, **fields):
        return self._save(
            Series(
                league_id=league.id,
                home_team_id=self.team(league).id,
                away_team_id=self.team(league).id,
                best_of=best_of,
                date_time=date_time or in_future(),
                **fields,
            )
        )

    def special_bet(self, league, evaluator=None, date_time=None, **fields):
        return self._save(
            SpecialBet(
                league_id=league.id,
                evaluator_id=evaluator.id if evaluator else None,
                name=fields.pop("name", "Tournament winner"),
                date_time=date_time or in_future(),
                **fields,
            )
        )

    def advanced_team(self, special_bet, team):
        return self._save(
            SpecialBetAdvancedTeam(special_bet_id=special_bet.id, team_id=team.id)
        )

    def question(self, league, date_time=None, **fields):
        return self._save(
            Question(
                league_id=league.id,
                text=fields.pop("text", "Will there be a red card?"),
                date_time=date_time or in_future(),
                **fields,
            )
        )

    def match_bet(self, member, match, home_score, away_score, **fields):
        return self._save(
            MatchBet(
                member_id=member.id,
                match_id=match.id,
                home_score=home_score,
                away_score=away_score,
                **fields,
            )
        )

    def series_bet(self, member, series, home_team_score, away_team_score):
        return self._save(
            SeriesBet(
                member_id=member.id,
                series_id=series.id,
                home_team_score=home_team_score,
                away_team_score=away_team_score,
            )
        )

    def special_pick(self, member, special_bet, **prediction):
        return self._save(
            SpecialBetPick(member_id=member.id, special_bet_id=special_bet.id, **prediction)
        )

    def question_bet(self, member, question, prediction):
        return self._save(
            QuestionBet(member_id=member.id, question_id=question.id, prediction=prediction)
        )


@pytest.fixture
def app():
    """Application with a fresh in-memory database and a pushed app context"""
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def factory(app):
    return Factory()


@pytest.fixture
def login(client):
    """Log a user into the test client session"""

    def _login(user):
        with client.session_transaction() as sess:
            sess["_user_id"] = str(user.id)
            sess["_fresh"] = True
        # The app context is shared with requests; drop any cached user
        g.pop("_login_user", None)

    return _login


@pytest.fixture
def league(factory):
    return factory.league()


@pytest.fixture
def alice(factory):
    return factory.user("alice")


@pytest.fixture
def bob(factory):
    return factory.user("bob")


@pytest.fixture
def admin(factory):
    return factory.user("admin", is_admin=True)


@pytest.fixture
def alice_member(factory, alice, league):
    return factory.member(alice, league)


@pytest.fixture
def bob_member(factory, bob, league):
    return factory.member(bob, league)
