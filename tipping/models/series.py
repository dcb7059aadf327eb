import math
from datetime import datetime, timezone

from tipping import db
from tipping.models.mixins import SoftDeleteMixin, live_wager_indexes
from tipping.utils.timezone_utils import ensure_utc, is_betting_open


class Series(SoftDeleteMixin, db.Model):
    """Best-of-N playoff series between two teams"""

    __tablename__ = "series"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=False)
    home_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    best_of = db.Column(db.Integer, default=7, nullable=False)
    date_time = db.Column(db.DateTime, nullable=False)

    # Result: games won by each side
    home_team_score = db.Column(db.Integer)
    away_team_score = db.Column(db.Integer)

    is_evaluated = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    home_team = db.relationship("Team", foreign_keys=[home_team_id])
    away_team = db.relationship("Team", foreign_keys=[away_team_id])
    league = db.relationship("League", backref=db.backref("series", lazy="dynamic"))

    __table_args__ = (
        db.Index("idx_series_league_time", "league_id", "date_time"),
        db.CheckConstraint("best_of > 0", name="positive_best_of"),
    )

    def __repr__(self):
        return f"<Series {self.id} best_of={self.best_of}>"

    @property
    def wins_needed(self):
        return math.ceil(self.best_of / 2)

    @property
    def has_result(self):
        return self.home_team_score is not None and self.away_team_score is not None

    @property
    def is_betting_open(self):
        return is_betting_open(self.date_time)

    def to_dict(self):
        return {
            "id": self.id,
            "league_id": self.league_id,
            "home_team": self.home_team.to_dict() if self.home_team else None,
            "away_team": self.away_team.to_dict() if self.away_team else None,
            "best_of": self.best_of,
            "date_time": ensure_utc(self.date_time).isoformat() if self.date_time else None,
            "home_team_score": self.home_team_score,
            "away_team_score": self.away_team_score,
            "is_evaluated": self.is_evaluated,
        }


class SeriesBet(SoftDeleteMixin, db.Model):
    __tablename__ = "series_bets"

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(
        db.Integer, db.ForeignKey("league_members.id"), nullable=False
    )
    series_id = db.Column(db.Integer, db.ForeignKey("series.id"), nullable=False)

    home_team_score = db.Column(db.Integer, nullable=False)
    away_team_score = db.Column(db.Integer, nullable=False)

    total_points = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    member = db.relationship("LeagueMember")
    series = db.relationship("Series")

    __table_args__ = live_wager_indexes("series_bets", "series_id")

    def __repr__(self):
        return f"<SeriesBet member={self.member_id} series={self.series_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "user": self.member.user.to_dict() if self.member and self.member.user else None,
            "series_id": self.series_id,
            "home_team_score": self.home_team_score,
            "away_team_score": self.away_team_score,
            "total_points": self.total_points,
        }
