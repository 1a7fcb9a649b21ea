"""Monthly cohort re-basing of an equity curve.

A cohort answers "what if I had started trading in month X": it contains every
curve point at or after the first day of that month, renumbered from 1. Cohorts
overlap by construction; an earlier cohort is a superset of every later one.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from blendcurve.services.equity_curve import EquityCurvePoint


@dataclass(frozen=True)
class CohortPoint:
    trade_number: int  # 1-based position inside the cohort
    timestamp: datetime
    equity: float
    relative_equity: float  # P&L accumulated since the cohort started
    velocity: float  # this trade's blended P&L


@dataclass(frozen=True)
class CohortData:
    start_date: str  # "YYYY-MM"
    data: list[CohortPoint]


def month_start(ts: datetime) -> datetime:
    return ts.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def build_cohorts(points: Sequence[EquityCurvePoint]) -> list[CohortData]:
    """One cohort per calendar month present in the curve, ordered by start month."""
    ordered = sorted(points, key=lambda p: p.timestamp)
    starts = sorted({month_start(p.timestamp) for p in ordered})

    cohorts = []
    for start in starts:
        members = [p for p in ordered if p.timestamp >= start]
        if not members:
            continue
        base = members[0].equity - members[0].pnl
        cohorts.append(
            CohortData(
                start_date=start.strftime("%Y-%m"),
                data=[
                    CohortPoint(
                        trade_number=i,
                        timestamp=p.timestamp,
                        equity=p.equity,
                        relative_equity=p.equity - base,
                        velocity=p.pnl,
                    )
                    for i, p in enumerate(members, start=1)
                ],
            )
        )
    return cohorts
