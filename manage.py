#!/usr/bin/env python3
"""
Tipping League Management CLI

Command-line management for the tipping league: database setup, evaluator
type seeding, evaluation runs and a status overview.
"""

import logging

import click
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tipping import create_app, db
from tipping.models import (
    EvaluatorType,
    League,
    Match,
    Question,
    Series,
    SpecialBet,
    User,
)
from tipping.scoring import supported_evaluator_types
from tipping.services.evaluation import EVALUATIONS, run_admin_evaluation
from tipping.utils.cache_utils import get_cache_stats
from tipping.utils.errors import AppError, handle_action_error
from tipping.utils.timezone_utils import format_event_time

app = create_app()


@click.group()
def cli():
    """Tipping League Management CLI"""
    pass


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command("init")
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")
        logging.error(f"Database init failed: {e}")


@db_cmd.command("drop")
def drop_db():
    """⚠️  DANGER: Drop all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        click.echo("✅ Database tables dropped")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error dropping database: {str(e)}")
        logging.error(f"Database drop failed: {e}")


# Evaluator Commands
@cli.group()
def evaluator_types():
    """Evaluator type commands"""
    pass


@evaluator_types.command("seed")
def seed_evaluator_types():
    """Create a row for every supported evaluator variant"""
    try:
        existing = {row.name for row in EvaluatorType.query.all()}
        created = []
        for name in supported_evaluator_types():
            if name not in existing:
                EvaluatorType.get_or_create(name)
                created.append(name)

        db.session.commit()
        click.echo(f"✅ Seeded {len(created)} evaluator types")
        for name in created:
            click.echo(f"  + {name}")

    except IntegrityError as e:
        db.session.rollback()
        click.echo("❌ Evaluator types changed concurrently, run the command again")
        logging.error(f"Evaluator type seeding failed - integrity error: {e}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error seeding evaluator types: {str(e)}")
        logging.error(f"Evaluator type seeding failed - SQL error: {e}")


@cli.command()
@click.argument("kind", type=click.Choice(sorted(EVALUATIONS)))
@click.argument("event_id", type=int)
@click.option("--user-id", type=int, help="Only re-score this user's bet")
@click.option(
    "--admin",
    "admin_username",
    required=True,
    help="Username of the admin running the evaluation",
)
def evaluate(kind, event_id, user_id, admin_username):
    """Evaluate all bets on an event"""
    admin = User.query.filter_by(username=admin_username).first()
    if admin is None:
        click.echo(f"❌ User '{admin_username}' not found!")
        return

    event = EVALUATIONS[kind][1].get_live(event_id)
    if event is not None:
        click.echo(f"Evaluating {kind} {event_id} ({format_event_time(event.date_time)})")

    try:
        result = run_admin_evaluation(kind, event_id, user_id=user_id, admin_id=admin.id)
    except AppError as e:
        error = handle_action_error(e)
        click.echo(f"❌ {error['code']}: {error['message']}")
        return

    click.echo(f"✅ Evaluated {result['total_users_evaluated']} bets")
    for item in result["results"]:
        click.echo(f"  user {item['user_id']}: {item['total_points']} points")


@cli.command()
def status():
    """Show application status"""
    click.echo("🏆 Tipping League Status")
    click.echo("=" * 40)

    # Database connection
    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    cache_stats = get_cache_stats()
    click.echo(f"🗄️  Cache: {cache_stats['type']} (timeout {cache_stats['timeout']}s)")

    user_count = User.query.filter_by(is_active=True).count()
    click.echo(f"👥 Active Users: {user_count}")

    league_count = League.live().filter_by(is_active=True).count()
    click.echo(f"🏆 Active Leagues: {league_count}")

    for label, model in (
        ("Matches", Match),
        ("Series", Series),
        ("Special bets", SpecialBet),
        ("Questions", Question),
    ):
        total = model.live().count()
        evaluated = model.live().filter_by(is_evaluated=True).count()
        click.echo(f"📋 {label}: {evaluated}/{total} evaluated")


def main():
    with app.app_context():
        cli()


if __name__ == "__main__":
    main()
