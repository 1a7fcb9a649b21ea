"""Tests for monthly cohort re-basing."""

from datetime import datetime, timezone

import pytest

from blendcurve.services.cohorts import build_cohorts, month_start
from blendcurve.services.equity_curve import EquityCurvePoint


def _point(month: int, d: int, equity: float, pnl: float) -> EquityCurvePoint:
    return EquityCurvePoint(datetime(2024, month, d, 15, tzinfo=timezone.utc), equity, pnl, 0.0, 0.0)


@pytest.fixture
def curve():
    return [
        _point(1, 15, 100_500.0, 500.0),
        _point(1, 20, 100_300.0, -200.0),
        _point(2, 3, 100_600.0, 300.0),
        _point(3, 10, 100_450.0, -150.0),
    ]


def test_one_cohort_per_month_sorted(curve):
    cohorts = build_cohorts(curve)
    assert [c.start_date for c in cohorts] == ["2024-01", "2024-02", "2024-03"]
    assert [len(c.data) for c in cohorts] == [4, 2, 1]


def test_trade_numbers_restart_per_cohort(curve):
    feb = build_cohorts(curve)[1]
    assert [p.trade_number for p in feb.data] == [1, 2]
    assert [p.timestamp.month for p in feb.data] == [2, 3]


def test_velocity_is_trade_pnl(curve):
    jan = build_cohorts(curve)[0]
    assert [p.velocity for p in jan.data] == [500.0, -200.0, 300.0, -150.0]


def test_relative_equity_rebased_to_cohort_start(curve):
    cohorts = build_cohorts(curve)
    assert [p.relative_equity for p in cohorts[0].data] == [500.0, 300.0, 600.0, 450.0]
    assert [p.relative_equity for p in cohorts[1].data] == [300.0, 150.0]
    assert cohorts[1].data[0].equity == 100_600.0


def test_earlier_cohort_is_superset_of_later(curve):
    cohorts = build_cohorts(curve)
    for earlier, later in zip(cohorts, cohorts[1:]):
        assert {p.timestamp for p in later.data} <= {p.timestamp for p in earlier.data}


def test_rebuilding_is_idempotent(curve):
    assert build_cohorts(curve) == build_cohorts(list(curve))


def test_unordered_points_are_sorted_by_time(curve):
    shuffled = [curve[2], curve[0], curve[3], curve[1]]
    assert build_cohorts(shuffled) == build_cohorts(curve)


def test_empty_curve_has_no_cohorts():
    assert build_cohorts([]) == []


def test_month_start_keeps_timezone():
    ts = datetime(2024, 5, 17, 13, 45, 12, tzinfo=timezone.utc)
    assert month_start(ts) == datetime(2024, 5, 1, tzinfo=timezone.utc)
