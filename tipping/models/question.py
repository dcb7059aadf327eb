from datetime import datetime, timezone

from tipping import db
from tipping.models.mixins import SoftDeleteMixin, live_wager_indexes
from tipping.utils.timezone_utils import ensure_utc, is_betting_open


class Question(SoftDeleteMixin, db.Model):
    __tablename__ = "questions"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=False)
    text = db.Column(db.String(500), nullable=False)
    date_time = db.Column(db.DateTime, nullable=False)

    result = db.Column(db.Boolean, nullable=True)
    is_evaluated = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    league = db.relationship("League", backref=db.backref("questions", lazy="dynamic"))

    __table_args__ = (db.Index("idx_question_league_time", "league_id", "date_time"),)

    def __repr__(self):
        return f"<Question {self.id}>"

    @property
    def has_result(self):
        return self.result is not None

    @property
    def is_betting_open(self):
        return is_betting_open(self.date_time)

    def to_dict(self):
        return {
            "id": self.id,
            "league_id": self.league_id,
            "text": self.text,
            "date_time": ensure_utc(self.date_time).isoformat() if self.date_time else None,
            "result": self.result,
            "is_evaluated": self.is_evaluated,
        }


class QuestionBet(SoftDeleteMixin, db.Model):
    __tablename__ = "question_bets"

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(
        db.Integer, db.ForeignKey("league_members.id"), nullable=False
    )
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id"), nullable=False)

    # None means the member did not answer
    prediction = db.Column(db.Boolean, nullable=True)

    total_points = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    member = db.relationship("LeagueMember")
    question = db.relationship("Question")

    __table_args__ = live_wager_indexes("question_bets", "question_id")

    def __repr__(self):
        return f"<QuestionBet member={self.member_id} question={self.question_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "user": self.member.user.to_dict() if self.member and self.member.user else None,
            "question_id": self.question_id,
            "prediction": self.prediction,
            "total_points": self.total_points,
        }
