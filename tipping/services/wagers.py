"""
Wager submission

save_wager runs one algorithm for every bet kind; a WagerAdapter subclass
supplies the kind-specific pieces (schema, league lookup, create-or-update,
audit metadata).

Order of operations:
    1. validate the payload (structured failure, nothing raised)
    2. look up the owning league without opening a transaction
    3. require an active league membership (raises)
    4. re-read the event, check the deadline and create or update the wager
       inside one SERIALIZABLE transaction
    5. audit and cache invalidation, both best-effort

Serialization failures and unique violations from concurrent first
submissions are not retried; they propagate to the caller.
"""

from flask import current_app

from tipping import db
from tipping.forms.bets import (
    MatchBetForm,
    QuestionBetForm,
    SeriesBetForm,
    SpecialBetForm,
    series_score_error,
)
from tipping.models import (
    Match,
    MatchBet,
    Player,
    Question,
    QuestionBet,
    Series,
    SeriesBet,
    SpecialBet,
    SpecialBetPick,
    Team,
)
from tipping.models import audit_log
from tipping.services.audit import AuditLogger
from tipping.services.membership import require_league_member
from tipping.utils.cache_utils import BET_BADGES_TAG, data_tag, invalidate_tags
from tipping.utils.errors import AppError, BadRequestError, validation_failure
from tipping.utils.logging_config import ContextualLogger
from tipping.utils.performance import PerformanceMonitor
from tipping.utils.timezone_utils import is_betting_open
from tipping.utils.transactions import serializable_transaction

logger = ContextualLogger(__name__)


class BettingClosedError(AppError):
    def __init__(self, label):
        super().__init__(f"Betting is closed for this {label}", "BETTING_CLOSED", 400)


class WagerAdapter:
    """Kind-specific hooks for save_wager"""

    kind = None
    label = None
    form_class = None
    event_model = None
    wager_model = None
    event_field = None
    created_event = None
    updated_event = None

    def event_id(self, data):
        return data[self.event_field]

    def find_league_id(self, data):
        """Lightweight pre-check; None when the event does not exist"""
        row = (
            db.session.query(self.event_model.league_id)
            .filter(
                self.event_model.id == self.event_id(data),
                self.event_model.deleted_at.is_(None),
            )
            .first()
        )
        return row.league_id if row else None

    def load_event(self, data):
        event = self.event_model.get_live(self.event_id(data))
        if event is None:
            raise AppError(f"{self.label.capitalize()} not found", "NOT_FOUND", 404)
        return event

    def is_open(self, event):
        return is_betting_open(event.date_time)

    def check_event(self, event, data):
        """Extra checks against the stored event; raise AppError to reject"""

    def find_wager(self, member_id, event_id):
        return (
            self.wager_model.live()
            .filter(
                self.wager_model.member_id == member_id,
                getattr(self.wager_model, self.event_field) == event_id,
            )
            .first()
        )

    def prediction_fields(self, data):
        raise NotImplementedError

    def apply(self, data, member_id):
        """
        Create or update the member's wager; runs inside the transaction

        Returns:
            bool: True when an existing wager was updated
        """
        event = self.load_event(data)
        if not self.is_open(event):
            raise BettingClosedError(self.label)
        self.check_event(event, data)

        fields = self.prediction_fields(data)
        wager = self.find_wager(member_id, event.id)
        if wager is not None:
            for name, value in fields.items():
                setattr(wager, name, value)
            return True

        wager = self.wager_model(
            member_id=member_id, total_points=0, **{self.event_field: event.id}, **fields
        )
        db.session.add(wager)
        db.session.flush()
        return False

    def audit_metadata(self, data):
        return self.prediction_fields(data)


class MatchWagerAdapter(WagerAdapter):
    kind = "match"
    label = "match"
    form_class = MatchBetForm
    event_model = Match
    wager_model = MatchBet
    event_field = "match_id"
    created_event = audit_log.USER_BET_CREATED
    updated_event = audit_log.USER_BET_UPDATED

    def check_event(self, event, data):
        if data.get("scorer_id") is not None and Player.get_live(data["scorer_id"]) is None:
            raise BadRequestError("Scorer not found")

    def prediction_fields(self, data):
        return {
            "home_score": data["home_score"],
            "away_score": data["away_score"],
            "scorer_id": data.get("scorer_id"),
            "no_scorer": data.get("no_scorer"),
            "overtime": bool(data.get("overtime")),
            "home_advanced": data.get("home_advanced"),
        }


class SeriesWagerAdapter(WagerAdapter):
    kind = "series"
    label = "series"
    form_class = SeriesBetForm
    event_model = Series
    wager_model = SeriesBet
    event_field = "series_id"
    created_event = audit_log.USER_SERIES_BET_CREATED
    updated_event = audit_log.USER_SERIES_BET_UPDATED

    def check_event(self, event, data):
        # The payload's best_of is only a hint; the stored series decides
        error = series_score_error(
            data["home_team_score"], data["away_team_score"], event.best_of
        )
        if error:
            raise BadRequestError(error)

    def prediction_fields(self, data):
        return {
            "home_team_score": data["home_team_score"],
            "away_team_score": data["away_team_score"],
        }


class SpecialBetWagerAdapter(WagerAdapter):
    kind = "special"
    label = "special bet"
    form_class = SpecialBetForm
    event_model = SpecialBet
    wager_model = SpecialBetPick
    event_field = "special_bet_id"
    created_event = audit_log.USER_SPECIAL_BET_CREATED
    updated_event = audit_log.USER_SPECIAL_BET_UPDATED

    def check_event(self, event, data):
        if data.get("team_id") is not None:
            team = Team.get_live(data["team_id"])
            if team is None or team.league_id != event.league_id:
                raise BadRequestError("Team not found in this league")
        if data.get("player_id") is not None and Player.get_live(data["player_id"]) is None:
            raise BadRequestError("Player not found")

    def prediction_fields(self, data):
        # Exactly one of these is set; the others are cleared on update
        return {
            "team_id": data.get("team_id"),
            "player_id": data.get("player_id"),
            "value": data.get("value"),
        }


class QuestionWagerAdapter(WagerAdapter):
    kind = "question"
    label = "question"
    form_class = QuestionBetForm
    event_model = Question
    wager_model = QuestionBet
    event_field = "question_id"
    created_event = audit_log.USER_QUESTION_BET_CREATED
    updated_event = audit_log.USER_QUESTION_BET_UPDATED

    def prediction_fields(self, data):
        return {"prediction": data["prediction"]}


ADAPTERS = {
    adapter.kind: adapter
    for adapter in (
        MatchWagerAdapter(),
        SeriesWagerAdapter(),
        SpecialBetWagerAdapter(),
        QuestionWagerAdapter(),
    )
}


def get_adapter(kind):
    adapter = ADAPTERS.get(kind)
    if adapter is None:
        raise AppError(f"Unknown bet kind: {kind}", "NOT_FOUND", 404)
    return adapter


def save_wager(adapter, payload, user_id=None):
    """
    Create or update the calling member's wager for one event

    Args:
        adapter: WagerAdapter for the bet kind
        payload: Untrusted dict from the client
        user_id: Explicit user, defaults to the logged-in user

    Returns:
        dict: {"success": True} or {"success": False, "error", "code", ...}

    Raises:
        AppError: From the membership gate (not a member, not logged in)
        sqlalchemy.exc.SQLAlchemyError: Storage and concurrency failures
    """
    with PerformanceMonitor(f"save {adapter.kind} wager") as monitor:
        if not isinstance(payload, dict):
            return {
                "success": False,
                "error": "Invalid input",
                "code": "VALIDATION_ERROR",
                "field_errors": {},
            }

        form = adapter.form_class(data=payload)
        if not form.validate():
            return validation_failure(form)

        data = form.data
        event_id = adapter.event_id(data)
        log = logger.bind(kind=adapter.kind, event_id=event_id)

        league_id = adapter.find_league_id(data)
        if league_id is None:
            return {
                "success": False,
                "error": f"{adapter.label.capitalize()} not found",
                "code": "NOT_FOUND",
            }

        member = require_league_member(league_id, user_id)
        member_id, member_user_id = member.id, member.user_id

        try:
            with serializable_transaction(
                current_app.config.get("BET_STATEMENT_TIMEOUT_MS"),
                label=f"{adapter.kind} wager",
            ):
                is_update = adapter.apply(data, member_id)
        except AppError as e:
            log.info(f"Wager rejected: {e.code} {e.message}")
            return {"success": False, "error": e.message, "code": e.code}

    audit = AuditLogger.bet_updated if is_update else AuditLogger.bet_created
    audit(
        adapter.updated_event if is_update else adapter.created_event,
        adapter.kind,
        member_user_id,
        league_id,
        event_id,
        metadata=adapter.audit_metadata(data),
        duration_ms=monitor.duration_ms,
    )
    invalidate_tags(BET_BADGES_TAG, data_tag(adapter.kind))

    log.info(f"Wager {'updated' if is_update else 'created'} by user {member_user_id}")
    return {"success": True, "updated": is_update}


def save_match_bet(payload, user_id=None):
    return save_wager(ADAPTERS["match"], payload, user_id)


def save_series_bet(payload, user_id=None):
    return save_wager(ADAPTERS["series"], payload, user_id)


def save_special_bet(payload, user_id=None):
    return save_wager(ADAPTERS["special"], payload, user_id)


def save_question_bet(payload, user_id=None):
    return save_wager(ADAPTERS["question"], payload, user_id)
