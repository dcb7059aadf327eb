from datetime import datetime, timezone

from tipping import db
from tipping.models.mixins import SoftDeleteMixin, live_wager_indexes
from tipping.utils.timezone_utils import ensure_utc, is_betting_open


class Match(SoftDeleteMixin, db.Model):
    __tablename__ = "matches"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=False)

    # Teams
    home_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)

    # Betting closes at kick-off
    date_time = db.Column(db.DateTime, nullable=False)

    # Match flags
    is_playoff_game = db.Column(db.Boolean, default=False, nullable=False)
    is_doubled = db.Column(db.Boolean, default=False, nullable=False)

    # Result: regular time decides scores, final includes overtime/shootout
    home_regular_score = db.Column(db.Integer)
    away_regular_score = db.Column(db.Integer)
    home_final_score = db.Column(db.Integer)
    away_final_score = db.Column(db.Integer)
    is_overtime = db.Column(db.Boolean)
    is_shootout = db.Column(db.Boolean)
    home_advanced = db.Column(db.Boolean)  # Playoff games only

    is_evaluated = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    home_team = db.relationship("Team", foreign_keys=[home_team_id])
    away_team = db.relationship("Team", foreign_keys=[away_team_id])
    league = db.relationship("League", backref=db.backref("matches", lazy="dynamic"))
    scorers = db.relationship(
        "MatchScorer", backref="match", lazy="select", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_match_league_time", "league_id", "date_time"),
        db.CheckConstraint("home_team_id != away_team_id", name="different_teams"),
    )

    def __repr__(self):
        return f"<Match {self.id} league={self.league_id}>"

    @property
    def has_result(self):
        return self.home_regular_score is not None and self.away_regular_score is not None

    @property
    def is_betting_open(self):
        return is_betting_open(self.date_time)

    def to_dict(self):
        return {
            "id": self.id,
            "league_id": self.league_id,
            "home_team": self.home_team.to_dict() if self.home_team else None,
            "away_team": self.away_team.to_dict() if self.away_team else None,
            "date_time": ensure_utc(self.date_time).isoformat() if self.date_time else None,
            "is_playoff_game": self.is_playoff_game,
            "is_doubled": self.is_doubled,
            "home_regular_score": self.home_regular_score,
            "away_regular_score": self.away_regular_score,
            "home_final_score": self.home_final_score,
            "away_final_score": self.away_final_score,
            "is_evaluated": self.is_evaluated,
        }


class MatchScorer(db.Model):
    __tablename__ = "match_scorers"

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id"), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False)
    number_of_goals = db.Column(db.Integer, default=1, nullable=False)

    # Scorer ranking at match time; used by rank-based scorer scoring
    ranking = db.Column(db.Integer)

    player = db.relationship("Player")

    __table_args__ = (
        db.UniqueConstraint("match_id", "player_id", name="unique_match_scorer"),
    )

    def __repr__(self):
        return f"<MatchScorer match={self.match_id} player={self.player_id}>"


class MatchBet(SoftDeleteMixin, db.Model):
    __tablename__ = "match_bets"

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(
        db.Integer, db.ForeignKey("league_members.id"), nullable=False
    )
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id"), nullable=False)

    # Prediction
    home_score = db.Column(db.Integer, nullable=False)
    away_score = db.Column(db.Integer, nullable=False)
    scorer_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=True)
    no_scorer = db.Column(db.Boolean)
    overtime = db.Column(db.Boolean, default=False, nullable=False)
    home_advanced = db.Column(db.Boolean)

    # Written only by evaluation
    total_points = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    member = db.relationship("LeagueMember")
    match = db.relationship("Match")
    scorer = db.relationship("Player")

    __table_args__ = live_wager_indexes("match_bets", "match_id")

    def __repr__(self):
        return f"<MatchBet member={self.member_id} match={self.match_id} {self.home_score}:{self.away_score}>"

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "user": self.member.user.to_dict() if self.member and self.member.user else None,
            "match_id": self.match_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "scorer_id": self.scorer_id,
            "scorer_name": self.scorer.full_name if self.scorer else None,
            "no_scorer": self.no_scorer,
            "overtime": self.overtime,
            "home_advanced": self.home_advanced,
            "total_points": self.total_points,
        }
