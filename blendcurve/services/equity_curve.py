"""Blended equity curve construction.

All functions are pure computation with no I/O or database access.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Mapping, Sequence

import numpy as np

from blendcurve.services.capital_blender import CapitalBlend
from blendcurve.services.trade_loader import TradeRecord


@dataclass(frozen=True)
class EquityCurvePoint:
    """Account state right after one trade realizes.

    drawdown_percent and drawdown_dollars are non-negative magnitudes.
    """
    timestamp: datetime
    equity: float
    pnl: float
    drawdown_percent: float
    drawdown_dollars: float


@dataclass(frozen=True)
class EquityCurve:
    trades: list[TradeRecord]
    points: list[EquityCurvePoint]
    initial_capital: float

    @property
    def total_pnl(self) -> float:
        return float(sum(t.pnl for t in self.trades))

    @property
    def final_equity(self) -> float:
        return self.points[-1].equity if self.points else self.initial_capital

    @property
    def max_drawdown_dollars(self) -> float:
        return max((p.drawdown_dollars for p in self.points), default=0.0)

    @property
    def max_drawdown_percent(self) -> float:
        return max((p.drawdown_percent for p in self.points), default=0.0)


# ---------------------------------------------------------------------------
# Drawdown helpers
# ---------------------------------------------------------------------------

def running_drawdown(equity: np.ndarray, initial_capital: float) -> tuple[np.ndarray, np.ndarray]:
    """Peak-to-current decline for every point, peak seeded at initial_capital.

    Returns: (drawdown_percent, drawdown_dollars), both >= 0 and exactly 0
    wherever the point is at its running peak.
    """
    if len(equity) == 0:
        return np.zeros(0), np.zeros(0)
    peak = np.maximum.accumulate(np.concatenate(([initial_capital], equity)))[1:]
    below = equity < peak
    dollars = np.where(below, peak - equity, 0.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        percent = np.where(below & (peak > 0), dollars / peak * 100.0, 0.0)
    return percent, dollars


# ---------------------------------------------------------------------------
# Trade preparation
# ---------------------------------------------------------------------------

def filter_from(trades: Iterable[TradeRecord], start_date: datetime | None) -> list[TradeRecord]:
    """Drop trades entered before start_date (None keeps everything)."""
    if start_date is None:
        return list(trades)
    return [t for t in trades if t.entry_time >= start_date]


def scale_trades(trades: Iterable[TradeRecord], units: int) -> list[TradeRecord]:
    """Scale account-currency fields by units; prices and contracts describe the instrument and stay as-is."""
    return [
        replace(
            t,
            pnl=t.pnl * units,
            max_favorable_excursion=t.max_favorable_excursion * units,
            max_adverse_excursion=t.max_adverse_excursion * units,
            units=units,
        )
        for t in trades
    ]


def merge_trades(*trade_lists: Sequence[TradeRecord]) -> list[TradeRecord]:
    """Merge per-dataset lists by entry time; ties keep insertion order."""
    merged = [t for trades in trade_lists for t in trades]
    merged.sort(key=lambda t: t.entry_time)  # list.sort is stable
    return merged


# ---------------------------------------------------------------------------
# Curve construction
# ---------------------------------------------------------------------------

def build_equity_curve(trades: Sequence[TradeRecord], initial_capital: float) -> list[EquityCurvePoint]:
    """Walk trades in order, one point per trade stamped at its exit time."""
    if not trades:
        return []
    pnl = np.array([t.pnl for t in trades], dtype=float)
    equity = initial_capital + np.cumsum(pnl)
    dd_pct, dd_dollars = running_drawdown(equity, initial_capital)
    return [
        EquityCurvePoint(
            timestamp=t.exit_time,
            equity=float(equity[i]),
            pnl=float(pnl[i]),
            drawdown_percent=float(dd_pct[i]),
            drawdown_dollars=float(dd_dollars[i]),
        )
        for i, t in enumerate(trades)
    ]


def build_blended_curve(
    trades_by_dataset: Mapping[str, Sequence[TradeRecord]],
    blend: CapitalBlend,
    start_date: datetime | None = None,
) -> EquityCurve:
    """Filter, scale and merge every selected dataset, then build the account curve.

    Each dataset is scaled once by its combined units, however many
    selections reference it.
    """
    per_dataset = []
    for alloc in blend.allocations:
        trades = filter_from(trades_by_dataset.get(alloc.dataset_id, []), start_date)
        per_dataset.append(scale_trades(trades, alloc.total_units))

    merged = merge_trades(*per_dataset)
    points = build_equity_curve(merged, blend.initial_capital)
    return EquityCurve(trades=merged, points=points, initial_capital=blend.initial_capital)
