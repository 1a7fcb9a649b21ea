"""Tests for the per-request trade pipeline."""

import json
from datetime import datetime, timezone

import pytest

from blendcurve.engine.trade_pipeline import (
    parse_selections,
    parse_start_date,
    process_cohorts,
    process_trade_data,
)
from blendcurve.services.capital_blender import AlgorithmSelection
from blendcurve.services.errors import DatasetNotFoundError, TradeDataError

from factories import NQ_ROWS, csv_text


# ---------------------------------------------------------------------------
# 1. Parameter parsing
# ---------------------------------------------------------------------------

class TestParseSelections:
    def test_parses_list(self):
        raw = json.dumps([{"dataset": "nq_trades.csv", "units": 2}, {"dataset": "es_trades.csv"}])
        assert parse_selections(raw) == [
            AlgorithmSelection("nq_trades.csv", 2),
            AlgorithmSelection("es_trades.csv", 1),
        ]

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "not json",
            "[]",
            '{"dataset": "nq_trades.csv"}',
            '[{"units": 1}]',
            '[{"dataset": "nq_trades.csv", "units": 0}]',
            '[{"dataset": "nq_trades.csv", "units": 1.5}]',
            '[{"dataset": "nq_trades.csv", "units": true}]',
        ],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(TradeDataError):
            parse_selections(raw)


class TestParseStartDate:
    def test_empty_means_no_filter(self):
        assert parse_start_date(None) is None
        assert parse_start_date("  ") is None

    def test_naive_is_utc(self):
        assert parse_start_date("2024-02-01") == datetime(2024, 2, 1, tzinfo=timezone.utc)

    def test_offset_is_kept(self):
        ts = parse_start_date("2024-02-01T09:30:00+01:00")
        assert ts == datetime(2024, 2, 1, 8, 30, tzinfo=timezone.utc)

    def test_garbage_rejected(self):
        with pytest.raises(TradeDataError):
            parse_start_date("yesterday-ish")


# ---------------------------------------------------------------------------
# 2. Processing
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_shared_dataset_is_loaded_and_scaled_once(data_dir, capital_table):
    result = await process_trade_data(
        [AlgorithmSelection("nq_trades.csv", 1), AlgorithmSelection("nq_trades.csv", 2)],
        table=capital_table,
        data_dir=data_dir,
    )

    assert [t.pnl for t in result.trades] == [1_500.0, -600.0, 900.0]
    assert all(t.units == 3 for t in result.trades)
    assert result.metadata.initial_capital == 300_000.0
    assert result.metadata.total_pnl == pytest.approx(1_800.0)
    assert result.equity_curve[-1].equity == pytest.approx(301_800.0)


@pytest.mark.asyncio
async def test_two_datasets_merge_by_entry_time(data_dir, capital_table):
    result = await process_trade_data(
        [AlgorithmSelection("nq_trades.csv"), AlgorithmSelection("es_trades.csv")],
        table=capital_table,
        data_dir=data_dir,
    )

    # both datasets open a trade at 2024-01-02 09:30; selection order breaks the tie
    assert [(t.dataset_id, t.pnl) for t in result.trades] == [
        ("nq_trades.csv", 500.0),
        ("es_trades.csv", 250.0),
        ("nq_trades.csv", -200.0),
        ("es_trades.csv", -100.0),
        ("nq_trades.csv", 300.0),
    ]
    assert result.trades[0].algorithm_id == "Atlas NQ"
    assert result.metadata.initial_capital == 200_000.0
    assert result.metadata.total_trades == 5
    assert result.metadata.win_rate == pytest.approx(0.6)
    assert result.metadata.max_drawdown_dollars == pytest.approx(300.0)


@pytest.mark.asyncio
async def test_reference_scenario_metadata(tmp_path, capital_table):
    rows = [dict(r) for r in NQ_ROWS]
    (tmp_path / "nq_trades.csv").write_text(csv_text(rows))

    result = await process_trade_data([AlgorithmSelection("nq_trades.csv")], table=capital_table, data_dir=tmp_path)

    assert [p.equity for p in result.equity_curve] == [100_500.0, 100_300.0, 100_600.0]
    assert result.metadata.max_drawdown_dollars == 200.0
    assert result.metadata.max_drawdown_percent == pytest.approx(0.199, abs=1e-3)
    assert result.metadata.pnl_percent == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_start_date_excluding_everything_is_empty_not_error(data_dir, capital_table):
    result = await process_trade_data(
        [AlgorithmSelection("nq_trades.csv")],
        parse_start_date("2030-01-01"),
        table=capital_table,
        data_dir=data_dir,
    )

    assert result.trades == []
    assert result.equity_curve == []
    assert result.metadata.total_trades == 0
    assert result.metadata.win_rate == 0.0
    assert result.metadata.total_pnl == 0.0
    assert result.metadata.advanced_stats.sharpe_ratio == 0.0


@pytest.mark.asyncio
async def test_dataset_without_capital_still_trades(data_dir, capital_table):
    (data_dir / "custom.csv").write_text(csv_text(NQ_ROWS))
    result = await process_trade_data(
        [AlgorithmSelection("custom.csv"), AlgorithmSelection("es_trades.csv")],
        table=capital_table,
        data_dir=data_dir,
    )

    assert result.metadata.initial_capital == 100_000.0
    assert result.metadata.total_trades == 5


@pytest.mark.asyncio
async def test_missing_dataset_file(data_dir, capital_table):
    with pytest.raises(DatasetNotFoundError):
        await process_trade_data([AlgorithmSelection("mes_trades.csv")], table=capital_table, data_dir=data_dir)


@pytest.mark.asyncio
async def test_dataset_name_cannot_escape_data_dir(data_dir, capital_table):
    with pytest.raises(TradeDataError):
        await process_trade_data([AlgorithmSelection("../nq_trades.csv")], table=capital_table, data_dir=data_dir)


@pytest.mark.asyncio
async def test_no_selection_rejected(data_dir, capital_table):
    with pytest.raises(TradeDataError):
        await process_trade_data([], table=capital_table, data_dir=data_dir)


@pytest.mark.asyncio
async def test_cohorts_from_pipeline(data_dir, capital_table):
    cohorts = await process_cohorts([AlgorithmSelection("nq_trades.csv")], table=capital_table, data_dir=data_dir)

    assert [c.start_date for c in cohorts] == ["2024-01", "2024-02"]
    assert [p.velocity for p in cohorts[0].data] == [500.0, -200.0, 300.0]
    assert [p.relative_equity for p in cohorts[1].data] == [300.0]
