from datetime import datetime, timezone

from tipping import db
from tipping.models.mixins import SoftDeleteMixin

ENTITY_MATCH = "match"
ENTITY_SERIES = "series"
ENTITY_SPECIAL = "special"
ENTITY_QUESTION = "question"

EVALUATOR_ENTITIES = (ENTITY_MATCH, ENTITY_SERIES, ENTITY_SPECIAL, ENTITY_QUESTION)


class EvaluatorType(db.Model):
    """Scoring variant known by name, e.g. 'exact_score' or 'closest_value'"""

    __tablename__ = "evaluator_types"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)

    evaluators = db.relationship("Evaluator", backref="evaluator_type", lazy="dynamic")

    def __repr__(self):
        return f"<EvaluatorType {self.name}>"

    @staticmethod
    def get_or_create(name):
        evaluator_type = EvaluatorType.query.filter_by(name=name).first()
        if evaluator_type is None:
            evaluator_type = EvaluatorType(name=name)
            db.session.add(evaluator_type)
        return evaluator_type


class Evaluator(SoftDeleteMixin, db.Model):
    """League-level rule: which variant scores which bet kind, and for how much"""

    __tablename__ = "evaluators"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey("leagues.id"), nullable=False)
    evaluator_type_id = db.Column(
        db.Integer, db.ForeignKey("evaluator_types.id"), nullable=False
    )
    entity = db.Column(db.String(20), nullable=False)  # match/series/special/question
    name = db.Column(db.String(100))
    points = db.Column(db.Integer, nullable=False, default=0)

    # Variant-specific settings, e.g. {"winnerPoints": 5, "advancePoints": 2}
    config = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("idx_evaluator_league_entity", "league_id", "entity"),
        db.CheckConstraint(
            "entity IN ('match', 'series', 'special', 'question')",
            name="valid_evaluator_entity",
        ),
    )

    def __repr__(self):
        return f"<Evaluator {self.type_name} league={self.league_id} points={self.points}>"

    @property
    def type_name(self):
        return self.evaluator_type.name if self.evaluator_type else None

    @staticmethod
    def for_league(league_id, entity):
        """Live rules of a league for one bet kind, ordered by variant name"""
        return (
            Evaluator.live()
            .join(EvaluatorType)
            .filter(Evaluator.league_id == league_id, Evaluator.entity == entity)
            .order_by(EvaluatorType.name.asc(), Evaluator.id.asc())
            .all()
        )

    def to_dict(self):
        return {
            "id": self.id,
            "league_id": self.league_id,
            "type": self.type_name,
            "entity": self.entity,
            "name": self.name,
            "points": self.points,
            "config": self.config,
        }
