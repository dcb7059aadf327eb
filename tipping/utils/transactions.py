"""
Serializable transaction helper shared by wager submission and evaluation
"""

import logging
from contextlib import contextmanager

from sqlalchemy import text

from tipping import db

logger = logging.getLogger(__name__)

SERIALIZABLE = "SERIALIZABLE"


@contextmanager
def serializable_transaction(statement_timeout_ms=None, label="transaction"):
    """
    Run a block in a fresh SERIALIZABLE transaction on the scoped session.

    Commits when the block exits cleanly, rolls back and re-raises otherwise.
    Serialization failures and constraint violations are never retried here.

    Args:
        statement_timeout_ms: Per-statement timeout applied on PostgreSQL
        label: Name used in log messages
    """
    session = db.session()

    # The isolation level can only be chosen when the transaction begins
    pending = len(session.new) + len(session.dirty) + len(session.deleted)
    if pending:
        logger.warning(
            f"{label}: committing {pending} pending change(s) left on the "
            "session before starting the serializable transaction"
        )
    if pending or session.in_transaction():
        session.commit()

    connection = session.connection(
        execution_options={"isolation_level": SERIALIZABLE}
    )
    if statement_timeout_ms and connection.dialect.name == "postgresql":
        connection.execute(
            text(f"SET LOCAL statement_timeout = {int(statement_timeout_ms)}")
        )

    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.debug(f"Rolled back {label}: {e.__class__.__name__}: {e}")
        raise
