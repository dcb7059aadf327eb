from datetime import datetime, timezone

from tipping import db
from tipping.models.mixins import SoftDeleteMixin, live_wager_indexes
from tipping.utils.timezone_utils import ensure_utc, is_betting_open


class SpecialBet(SoftDeleteMixin, db.Model):
    """
    Single-outcome long-range bet, e.g. tournament winner or top scorer.

    The result is exactly one of a team, a player or a numeric value. Group
    stage bets additionally record the set of advancing teams.
    """

    __tablename__ = "special_bets"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=False)
    evaluator_id = db.Column(db.Integer, db.ForeignKey("evaluators.id"), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    date_time = db.Column(db.DateTime, nullable=False)

    # Result
    result_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=True)
    result_player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=True)
    result_value = db.Column(db.Integer, nullable=True)

    is_evaluated = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    evaluator = db.relationship("Evaluator")
    result_team = db.relationship("Team", foreign_keys=[result_team_id])
    result_player = db.relationship("Player", foreign_keys=[result_player_id])
    league = db.relationship(
        "League", backref=db.backref("special_bets", lazy="dynamic")
    )
    advanced_teams = db.relationship(
        "SpecialBetAdvancedTeam", backref="special_bet", lazy="dynamic"
    )

    __table_args__ = (db.Index("idx_special_bet_league_time", "league_id", "date_time"),)

    def __repr__(self):
        return f"<SpecialBet {self.name}>"

    @property
    def has_result(self):
        return (
            self.result_team_id is not None
            or self.result_player_id is not None
            or self.result_value is not None
        )

    @property
    def advanced_team_ids(self):
        return {
            row.team_id
            for row in self.advanced_teams.filter(
                SpecialBetAdvancedTeam.deleted_at.is_(None)
            )
        }

    @property
    def is_betting_open(self):
        return is_betting_open(self.date_time)

    def to_dict(self):
        return {
            "id": self.id,
            "league_id": self.league_id,
            "name": self.name,
            "date_time": ensure_utc(self.date_time).isoformat() if self.date_time else None,
            "evaluator": self.evaluator.type_name if self.evaluator else None,
            "result_team_id": self.result_team_id,
            "result_player_id": self.result_player_id,
            "result_value": self.result_value,
            "is_evaluated": self.is_evaluated,
        }


class SpecialBetAdvancedTeam(SoftDeleteMixin, db.Model):
    __tablename__ = "special_bet_advanced_teams"

    id = db.Column(db.Integer, primary_key=True)
    special_bet_id = db.Column(
        db.Integer, db.ForeignKey("special_bets.id"), nullable=False
    )
    team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)

    team = db.relationship("Team")

    def __repr__(self):
        return f"<SpecialBetAdvancedTeam bet={self.special_bet_id} team={self.team_id}>"


class SpecialBetPick(SoftDeleteMixin, db.Model):
    """A member's wager on a special bet; exactly one prediction field is set"""

    __tablename__ = "special_bet_picks"

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(
        db.Integer, db.ForeignKey("league_members.id"), nullable=False
    )
    special_bet_id = db.Column(
        db.Integer, db.ForeignKey("special_bets.id"), nullable=False
    )

    team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=True)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=True)
    value = db.Column(db.Integer, nullable=True)

    total_points = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    member = db.relationship("LeagueMember")
    special_bet = db.relationship("SpecialBet")
    team = db.relationship("Team")
    player = db.relationship("Player")

    __table_args__ = live_wager_indexes("special_bet_picks", "special_bet_id")

    def __repr__(self):
        return f"<SpecialBetPick member={self.member_id} bet={self.special_bet_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "user": self.member.user.to_dict() if self.member and self.member.user else None,
            "special_bet_id": self.special_bet_id,
            "team_id": self.team_id,
            "team_name": self.team.name if self.team else None,
            "player_id": self.player_id,
            "player_name": self.player.full_name if self.player else None,
            "value": self.value,
            "total_points": self.total_points,
        }
