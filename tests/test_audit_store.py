"""Tests for idempotent audited trade persistence."""

import pytest
from sqlalchemy.exc import IntegrityError

from blendcurve.services.audit_parser import parse_audit_text
from blendcurve.services.audit_store import (
    InsertOutcome,
    insert_audited_trade,
    is_duplicate_key_error,
    list_audited_trades,
    save_audited_trades,
)

TEXT = "\n".join([
    "title",
    "header",
    "1 NQ Entry Long 01/15/2024 09:31:00 $17,250.25 2",
    "2 NQ Exit Long 01/15/2024 10:05:00 $17,300.50 2 $2,010.00",
])


def test_insert_then_duplicate(session):
    first = insert_audited_trade(session, parse_audit_text(TEXT, "Atlas NQ")[0])
    again = insert_audited_trade(session, parse_audit_text(TEXT, "Atlas NQ")[0])

    assert first.outcome is InsertOutcome.INSERTED
    assert first.trade.id is not None
    assert again.outcome is InsertOutcome.ALREADY_EXISTS
    assert again.trade is None
    assert len(list_audited_trades(session)) == 1


def test_reimport_is_a_no_op(session):
    inserted = save_audited_trades(session, parse_audit_text(TEXT, "Atlas NQ"))
    repeated = save_audited_trades(session, parse_audit_text(TEXT, "Atlas NQ"))

    assert len(inserted) == 2
    assert repeated == []
    assert len(list_audited_trades(session)) == 2


def test_overlapping_import_stores_only_new_rows(session):
    save_audited_trades(session, parse_audit_text(TEXT, "Atlas NQ"))
    overlap = TEXT + "\n3 NQ Entry Short 01/16/2024 09:40:00 $17,280.00 1"

    inserted = save_audited_trades(session, parse_audit_text(overlap, "Atlas NQ"))

    assert [t.signal for t in inserted] == ["Short"]
    assert inserted[0].profit is None


def test_duplicates_within_one_batch(session):
    line = "1 NQ Entry Long 01/15/2024 09:31:00 17250 2"
    inserted = save_audited_trades(session, parse_audit_text("\n".join(["t", "h", line, line]), "Atlas NQ"))
    assert len(inserted) == 1


def test_same_trade_under_another_algorithm_is_distinct(session):
    save_audited_trades(session, parse_audit_text(TEXT, "Atlas NQ"))
    inserted = save_audited_trades(session, parse_audit_text(TEXT, "Atlas MNQ"))

    assert len(inserted) == 2
    assert len(list_audited_trades(session, algorithm="Atlas MNQ")) == 2
    assert len(list_audited_trades(session)) == 4


def test_other_integrity_errors_propagate(session):
    broken = parse_audit_text(TEXT, "Atlas NQ")[0]
    broken.symbol = None

    with pytest.raises(IntegrityError, match="NOT NULL"):
        insert_audited_trade(session, broken)

    # the session was rolled back and stays usable
    result = insert_audited_trade(session, parse_audit_text(TEXT, "Atlas NQ")[1])
    assert result.outcome is InsertOutcome.INSERTED


class _PgError(Exception):
    pgcode = "23505"


@pytest.mark.parametrize(
    "orig, expected",
    [
        (Exception("UNIQUE constraint failed: audited_trade.algorithm, audited_trade.date, "
                   "audited_trade.time, audited_trade.type, audited_trade.signal"), True),
        (Exception("UNIQUE constraint failed: audited_trade.id"), False),
        (Exception("NOT NULL constraint failed: audited_trade.symbol"), False),
        (_PgError('duplicate key value violates unique constraint '
                  '"uq_audited_trade_algorithm_date_time_type_signal"'), True),
        (_PgError('duplicate key value violates unique constraint "audited_trade_pkey"'), False),
    ],
)
def test_duplicate_key_detection(orig, expected):
    assert is_duplicate_key_error(IntegrityError("INSERT", {}, orig)) is expected
