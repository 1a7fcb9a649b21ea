"""Idempotent persistence of audited trades.

Each insert is committed on its own. A uniqueness violation on
(algorithm, date, time, type, signal) means the trade was recorded by an
earlier or concurrent import, and is reported as ALREADY_EXISTS.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from blendcurve.models.audited_trade import AUDIT_UNIQUE_CONSTRAINT, AUDIT_UNIQUE_KEY, AuditedTrade

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"


class InsertOutcome(str, enum.Enum):
    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


@dataclass
class InsertResult:
    outcome: InsertOutcome
    trade: AuditedTrade | None = None  # set only when inserted

    @property
    def inserted(self) -> bool:
        return self.outcome is InsertOutcome.INSERTED


def is_duplicate_key_error(e: IntegrityError) -> bool:
    """True when the violation is the audited-trade uniqueness key, not NOT NULL or another constraint."""
    orig = e.orig
    # psycopg2 exposes pgcode, psycopg 3 sqlstate
    if (getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)) == UNIQUE_VIOLATION_SQLSTATE:
        return AUDIT_UNIQUE_CONSTRAINT in str(orig)
    message = str(orig)
    if message.startswith("UNIQUE constraint failed:"):
        # SQLite names the columns instead of the constraint
        columns = {c.strip().split(".")[-1] for c in message.split(":", 1)[1].split(",")}
        return columns == set(AUDIT_UNIQUE_KEY)
    return AUDIT_UNIQUE_CONSTRAINT in message


def insert_audited_trade(session: Session, trade: AuditedTrade) -> InsertResult:
    session.add(trade)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if not is_duplicate_key_error(e):
            logger.warning(f"Audited trade {trade.unique_key()} rejected: {e.orig}")
            raise
        logger.debug(f"Audited trade already recorded: {trade.unique_key()}")
        return InsertResult(InsertOutcome.ALREADY_EXISTS)
    session.refresh(trade)
    return InsertResult(InsertOutcome.INSERTED, trade)


def save_audited_trades(session: Session, trades: Iterable[AuditedTrade]) -> list[AuditedTrade]:
    """Insert every trade independently; returns only the newly stored rows."""
    inserted = []
    skipped = 0
    for trade in trades:
        result = insert_audited_trade(session, trade)
        if result.inserted:
            inserted.append(result.trade)
        else:
            skipped += 1
    logger.info(f"Stored {len(inserted)} audited trades, {skipped} already present")
    return inserted


def list_audited_trades(
    session: Session,
    algorithm: str | None = None,
    limit: int = 500,
    offset: int = 0,
) -> list[AuditedTrade]:
    stmt = select(AuditedTrade).order_by(AuditedTrade.date, AuditedTrade.time)
    if algorithm is not None:
        stmt = stmt.where(AuditedTrade.algorithm == algorithm)
    stmt = stmt.offset(offset).limit(limit)
    return list(session.exec(stmt).all())
