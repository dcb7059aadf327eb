from tipping import db
from tipping.models.mixins import SoftDeleteMixin


class Team(SoftDeleteMixin, db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    short_name = db.Column(db.String(10))
    group_name = db.Column(db.String(10))  # Group-stage letter, if any

    players = db.relationship("Player", backref="team", lazy="dynamic")

    __table_args__ = (db.Index("idx_team_league", "league_id"),)

    def __repr__(self):
        return f"<Team {self.short_name or self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "group": self.group_name,
        }


class Player(SoftDeleteMixin, db.Model):
    __tablename__ = "players"

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=True)
    first_name = db.Column(db.String(50))
    last_name = db.Column(db.String(50), nullable=False)
    position = db.Column(db.String(20))

    def __repr__(self):
        return f"<Player {self.full_name}>"

    @property
    def full_name(self):
        if self.first_name:
            return f"{self.first_name} {self.last_name}"
        return self.last_name

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.full_name,
            "team_id": self.team_id,
            "position": self.position,
        }
