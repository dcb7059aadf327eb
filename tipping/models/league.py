from datetime import datetime, timezone

from tipping import db
from tipping.models.mixins import SoftDeleteMixin


class League(SoftDeleteMixin, db.Model):
    __tablename__ = "leagues"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    members = db.relationship("LeagueMember", backref="league", lazy="dynamic")
    evaluators = db.relationship("Evaluator", backref="league", lazy="dynamic")
    teams = db.relationship("Team", backref="league", lazy="dynamic")

    def __repr__(self):
        return f"<League {self.name}>"

    def to_dict(self):
        return {"id": self.id, "name": self.name, "is_active": self.is_active}
