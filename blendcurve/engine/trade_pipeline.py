"""Per-request trade processing.

Orchestrates: selection parsing → capital blend → dataset loading →
equity curve → statistics. Dataset files are read concurrently in worker
threads; everything after loading is pure computation.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import pandas as pd

from blendcurve.config import settings
from blendcurve.services.capital_blender import AlgorithmSelection, CapitalTable, blend_capital
from blendcurve.services.cohorts import CohortData, build_cohorts
from blendcurve.services.equity_curve import EquityCurve, EquityCurvePoint, build_blended_curve
from blendcurve.services.errors import DatasetNotFoundError, TradeDataError
from blendcurve.services.performance import PerformanceStatistics, compute_statistics
from blendcurve.services.trade_loader import TradeRecord, load_dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeMetadata:
    total_trades: int
    win_rate: float
    total_pnl: float
    max_drawdown_dollars: float
    max_drawdown_percent: float
    pnl_percent: float
    initial_capital: float
    advanced_stats: PerformanceStatistics


@dataclass(frozen=True)
class ProcessedTradeData:
    trades: list[TradeRecord]
    equity_curve: list[EquityCurvePoint]
    metadata: TradeMetadata


# ---------------------------------------------------------------------------
# Request parameter parsing
# ---------------------------------------------------------------------------

def parse_selections(raw: str | None) -> list[AlgorithmSelection]:
    """Parse the `algorithms` JSON parameter: [{"dataset": "...", "units": 1}, ...]."""
    if not raw:
        raise TradeDataError("Algorithms parameter is required")
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        raise TradeDataError(f"Algorithms parameter is not valid JSON: {e}") from e
    if not isinstance(items, list) or not items:
        raise TradeDataError("Algorithms parameter must be a non-empty list")

    selections = []
    for item in items:
        if not isinstance(item, dict) or not item.get("dataset"):
            raise TradeDataError(f"Invalid algorithm selection: {item!r}")
        units = item.get("units", 1)
        if isinstance(units, bool) or not isinstance(units, int) or units < 1:
            raise TradeDataError(f"Units must be a positive integer, got {units!r}")
        selections.append(AlgorithmSelection(dataset_id=str(item["dataset"]), units=units))
    return selections


def parse_start_date(raw: str | None) -> datetime | None:
    """ISO-8601 start filter; empty means no filter. Naive values are taken as UTC."""
    if not raw or not raw.strip():
        return None
    try:
        ts = pd.Timestamp(raw.strip())
    except ValueError as e:
        raise TradeDataError(f"Invalid startDate: {raw!r}") from e
    if ts is pd.NaT:
        raise TradeDataError(f"Invalid startDate: {raw!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize(timezone.utc)
    return ts.to_pydatetime()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _dataset_path(data_dir: Path, dataset_id: str) -> Path:
    # dataset ids are bare file names inside data_dir
    if Path(dataset_id).name != dataset_id or dataset_id in (".", ".."):
        raise TradeDataError(f"Invalid dataset name: {dataset_id!r}")
    path = data_dir / dataset_id
    if not path.is_file():
        raise DatasetNotFoundError(dataset_id)
    return path


async def load_datasets(
    dataset_ids: Sequence[str],
    data_dir: Path,
    table: CapitalTable,
) -> dict[str, list[TradeRecord]]:
    """Read every dataset file concurrently; they share no state."""
    paths = [_dataset_path(data_dir, ds) for ds in dataset_ids]
    results = await asyncio.gather(
        *(asyncio.to_thread(load_dataset, path, ds, table.display_name(ds)) for path, ds in zip(paths, dataset_ids))
    )
    return dict(zip(dataset_ids, results))


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def summarize(curve: EquityCurve, recent_window_days: int) -> TradeMetadata:
    stats = compute_statistics(curve.trades, curve.points, curve.initial_capital, recent_window_days)
    return TradeMetadata(
        total_trades=stats.total_trades,
        win_rate=stats.win_rate,
        total_pnl=stats.total_pnl,
        max_drawdown_dollars=curve.max_drawdown_dollars,
        max_drawdown_percent=curve.max_drawdown_percent,
        pnl_percent=stats.pnl_percent,
        initial_capital=curve.initial_capital,
        advanced_stats=stats,
    )


async def build_curve(
    selections: Sequence[AlgorithmSelection],
    start_date: datetime | None = None,
    *,
    table: CapitalTable | None = None,
    data_dir: Path | None = None,
) -> EquityCurve:
    if not selections:
        raise TradeDataError("At least one algorithm must be selected")
    table = table or settings.capital_table()
    data_dir = Path(data_dir or settings.data_dir)

    blend = blend_capital(selections, table)
    trades_by_dataset = await load_datasets(blend.dataset_ids, data_dir, table)
    curve = build_blended_curve(trades_by_dataset, blend, start_date)
    logger.info(
        f"Blended {len(blend.allocations)} datasets into {len(curve.trades)} trades "
        f"(initial capital {blend.initial_capital:,.0f})"
    )
    return curve


async def process_trade_data(
    selections: Sequence[AlgorithmSelection],
    start_date: datetime | None = None,
    *,
    table: CapitalTable | None = None,
    data_dir: Path | None = None,
    recent_window_days: int | None = None,
) -> ProcessedTradeData:
    """Full trade pipeline for one request."""
    curve = await build_curve(selections, start_date, table=table, data_dir=data_dir)
    window = recent_window_days or settings.recent_window_days
    return ProcessedTradeData(
        trades=curve.trades,
        equity_curve=curve.points,
        metadata=summarize(curve, window),
    )


async def process_cohorts(
    selections: Sequence[AlgorithmSelection],
    start_date: datetime | None = None,
    *,
    table: CapitalTable | None = None,
    data_dir: Path | None = None,
) -> list[CohortData]:
    curve = await build_curve(selections, start_date, table=table, data_dir=data_dir)
    return build_cohorts(curve.points)
