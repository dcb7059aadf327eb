from datetime import datetime, timezone

from tipping import db
from tipping.models.mixins import SoftDeleteMixin


class LeagueMember(SoftDeleteMixin, db.Model):
    __tablename__ = "league_members"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=False)

    # Membership status and role
    is_active = db.Column(db.Boolean, default=True)
    is_admin = db.Column(db.Boolean, default=False)

    # Timestamps
    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    left_at = db.Column(db.DateTime)

    __table_args__ = (
        db.UniqueConstraint("user_id", "league_id", name="unique_user_league"),
        db.Index("idx_league_members_active", "league_id", "is_active"),
        db.Index("idx_user_memberships", "user_id", "is_active"),
    )

    def __repr__(self):
        return f"<LeagueMember user_id={self.user_id} league_id={self.league_id}>"

    @staticmethod
    def find_active(user_id, league_id):
        """Active, non-deleted membership of a user in a league"""
        return (
            LeagueMember.live()
            .filter_by(user_id=user_id, league_id=league_id, is_active=True)
            .first()
        )

    def to_dict(self):
        return {
            "member_id": self.id,
            "user_id": self.user_id,
            "league_id": self.league_id,
            "username": self.user.username if self.user else None,
            "display_name": self.user.full_name if self.user else None,
            "is_admin": self.is_admin,
        }
