"""Performance statistics over a blended trade list and its equity curve.

Every ratio falls back to 0 when its denominator is empty or zero so that an
empty selection produces a well-formed, all-zero result.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Sequence

import numpy as np

from blendcurve.services.equity_curve import EquityCurvePoint, running_drawdown
from blendcurve.services.trade_loader import TradeRecord
from blendcurve.utils.constants import (
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    RECENT_WINDOW_DAYS,
    TRADING_DAYS_PER_YEAR,
)

ONE_DAY = timedelta(days=1)


def _ratio(num: float, den: float) -> float:
    return float(num / den) if den else 0.0


@dataclass(frozen=True)
class DrawdownPeriod:
    start: datetime
    end: datetime
    duration_days: int
    depth_percent: float  # drawdown at the last underwater point
    recovered: bool


@dataclass(frozen=True)
class DrawdownSummary:
    max_duration: int = 0
    avg_duration: float = 0.0
    median_duration: int = 0
    avg_percent: float = 0.0
    total_periods: int = 0
    periods: list[DrawdownPeriod] = field(default_factory=list)


@dataclass(frozen=True)
class PerformanceStatistics:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    pnl_percent: float = 0.0
    profit_factor: float = 0.0
    win_loss_ratio: float = 0.0
    expectancy: float = 0.0
    sharpe_ratio: float = 0.0
    recovery_factor: float = 0.0
    calmar_ratio: float = 0.0
    ulcer_index: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    payoff_ratio: float = 0.0
    max_drawdown_dollars: float = 0.0
    max_drawdown_percent: float = 0.0
    max_drawdown_duration: int = 0
    avg_drawdown_percent: float = 0.0
    avg_drawdown_duration: float = 0.0
    median_drawdown_duration: int = 0
    total_drawdown_periods: int = 0
    profit_factor_recent: float = 0.0
    win_rate_recent: float = 0.0
    avg_profit_per_day: float = 0.0
    avg_trades_per_day: float = 0.0
    profit_percent_per_trade: float = 0.0
    trading_days: int = 0
    trading_months: float = 0.0
    avg_annual_pnl_percent: float = 0.0
    start_date: datetime | None = None
    end_date: datetime | None = None


# ---------------------------------------------------------------------------
# Trade-level aggregates
# ---------------------------------------------------------------------------

def win_rate(trades: Sequence[TradeRecord]) -> float:
    return _ratio(sum(1 for t in trades if t.is_win), len(trades))


def win_loss_sums(trades: Sequence[TradeRecord]) -> tuple[float, float]:
    """Return (sum of winning pnl, magnitude of summed losing pnl)."""
    wins = sum(t.pnl for t in trades if t.is_win)
    losses = abs(sum(t.pnl for t in trades if t.is_loss))
    return float(wins), float(losses)


def profit_factor(trades: Sequence[TradeRecord]) -> float:
    """Gross profit over gross loss; 0 when there is no loss to divide by."""
    wins, losses = win_loss_sums(trades)
    return _ratio(wins, losses)


def sharpe_ratio(trades: Sequence[TradeRecord]) -> float:
    """Per-trade Sharpe, population std, annualized with sqrt(252)."""
    if not trades:
        return 0.0
    pnl = np.array([t.pnl for t in trades], dtype=float)
    std = float(np.std(pnl, ddof=0))
    if std == 0 or np.isnan(std):
        return 0.0
    return float(np.mean(pnl)) / std * math.sqrt(TRADING_DAYS_PER_YEAR)


def recent_metrics(trades: Sequence[TradeRecord], days: int = RECENT_WINDOW_DAYS) -> tuple[float, float]:
    """Profit factor and win rate over trades exiting in the trailing `days` window.

    The window ends at the latest exit. Unlike the full-history profit factor,
    a loss-free window reports its gross profit.

    Returns: (profit_factor, win_rate)
    """
    if not trades:
        return 0.0, 0.0
    cutoff = max(t.exit_time for t in trades) - timedelta(days=days)
    recent = [t for t in trades if t.exit_time >= cutoff]
    if not recent:
        return 0.0, 0.0
    wins, losses = win_loss_sums(recent)
    pf = wins if losses == 0 else wins / losses
    return pf, win_rate(recent)


# ---------------------------------------------------------------------------
# Curve-level aggregates
# ---------------------------------------------------------------------------

def ulcer_index(points: Sequence[EquityCurvePoint], initial_capital: float) -> float:
    """Root mean square of percentage drawdowns against the running peak."""
    if not points:
        return 0.0
    dd_pct, _ = running_drawdown(np.array([p.equity for p in points], dtype=float), initial_capital)
    return float(np.sqrt(np.mean(dd_pct ** 2)))


def _elapsed_days(start: datetime, end: datetime) -> int:
    return math.ceil((end - start) / ONE_DAY)


def drawdown_periods(points: Sequence[EquityCurvePoint], initial_capital: float) -> list[DrawdownPeriod]:
    """Split the curve into drawdown periods.

    A period opens at the first point below the running peak and closes when
    equity gets back to that peak. Duration is whole days (rounded up) from the
    opening point to the last point still under water. A period still open at
    the end of the curve is included with recovered=False.
    """
    periods: list[DrawdownPeriod] = []
    peak = initial_capital
    start: datetime | None = None
    last_under: datetime | None = None
    depth = 0.0

    for p in points:
        if p.equity >= peak:
            if start is not None:
                periods.append(DrawdownPeriod(start, last_under, _elapsed_days(start, last_under), depth, True))
                start = None
            peak = p.equity
            continue
        if start is None:
            start = p.timestamp
            depth = 0.0
        last_under = p.timestamp
        if peak > 0:
            depth = (peak - p.equity) / peak * 100.0

    if start is not None:
        periods.append(DrawdownPeriod(start, last_under, _elapsed_days(start, last_under), depth, False))
    return periods


def summarize_drawdowns(points: Sequence[EquityCurvePoint], initial_capital: float) -> DrawdownSummary:
    """Max/mean/median over drawdown periods.

    The median picks sorted[n // 2] (upper-middle for even counts, no
    averaging).
    """
    periods = drawdown_periods(points, initial_capital)
    if not periods:
        return DrawdownSummary()
    durations = sorted(p.duration_days for p in periods)
    return DrawdownSummary(
        max_duration=durations[-1],
        avg_duration=float(np.mean(durations)),
        median_duration=durations[len(durations) // 2],
        avg_percent=float(np.mean([p.depth_percent for p in periods])),
        total_periods=len(periods),
        periods=periods,
    )


# ---------------------------------------------------------------------------
# Full statistics block
# ---------------------------------------------------------------------------

def compute_statistics(
    trades: Sequence[TradeRecord],
    points: Sequence[EquityCurvePoint],
    initial_capital: float,
    recent_window_days: int = RECENT_WINDOW_DAYS,
) -> PerformanceStatistics:
    """Compute every statistic for one blended account."""
    if not trades:
        return PerformanceStatistics()

    total = len(trades)
    pnl = np.array([t.pnl for t in trades], dtype=float)
    total_pnl = float(pnl.sum())
    n_wins = int((pnl > 0).sum())
    n_losses = int((pnl < 0).sum())
    gross_win, gross_loss = win_loss_sums(trades)

    avg_win = _ratio(gross_win, n_wins)
    avg_loss = _ratio(gross_loss, n_losses)

    max_dd_dollars = max((p.drawdown_dollars for p in points), default=0.0)
    max_dd_percent = max((p.drawdown_percent for p in points), default=0.0)
    dd = summarize_drawdowns(points, initial_capital)

    start = min(t.entry_time for t in trades)
    end = max(t.exit_time for t in trades)
    trading_days = _elapsed_days(start, end)
    trading_months = trading_days / DAYS_PER_MONTH
    years = (end - start) / timedelta(days=DAYS_PER_YEAR)

    pnl_percent = _ratio(total_pnl * 100.0, initial_capital)
    annual_return = _ratio(total_pnl, trading_months) * 12
    pf_recent, wr_recent = recent_metrics(trades, recent_window_days)

    return PerformanceStatistics(
        total_trades=total,
        winning_trades=n_wins,
        losing_trades=n_losses,
        win_rate=n_wins / total,
        total_pnl=total_pnl,
        pnl_percent=pnl_percent,
        profit_factor=_ratio(gross_win, gross_loss),
        win_loss_ratio=_ratio(n_wins, n_losses),
        expectancy=total_pnl / total,
        sharpe_ratio=sharpe_ratio(trades),
        recovery_factor=_ratio(total_pnl, max_dd_dollars),
        calmar_ratio=_ratio(annual_return, max_dd_dollars),
        ulcer_index=ulcer_index(points, initial_capital),
        average_win=avg_win,
        average_loss=avg_loss,
        largest_win=float(pnl.max()),
        largest_loss=float(pnl.min()),
        payoff_ratio=_ratio(avg_win, avg_loss),
        max_drawdown_dollars=max_dd_dollars,
        max_drawdown_percent=max_dd_percent,
        max_drawdown_duration=dd.max_duration,
        avg_drawdown_percent=dd.avg_percent,
        avg_drawdown_duration=dd.avg_duration,
        median_drawdown_duration=dd.median_duration,
        total_drawdown_periods=dd.total_periods,
        profit_factor_recent=pf_recent,
        win_rate_recent=wr_recent,
        avg_profit_per_day=_ratio(total_pnl, trading_days),
        avg_trades_per_day=_ratio(total, trading_days),
        profit_percent_per_trade=pnl_percent / total,
        trading_days=trading_days,
        trading_months=trading_months,
        avg_annual_pnl_percent=_ratio(pnl_percent, years),
        start_date=start,
        end_date=end,
    )
