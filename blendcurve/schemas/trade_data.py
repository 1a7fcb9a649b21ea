"""Pydantic schemas for the trade data API (camelCase on the wire)."""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TradeRead(CamelModel):
    entry_time: datetime
    exit_time: datetime
    entry_price: float
    exit_price: float
    contracts: int
    pnl: float
    pnl_percent: float
    max_favorable_excursion: float
    max_adverse_excursion: float
    trade_efficiency: float
    dataset_id: str
    algorithm_id: str
    cumulative_pnl_percent: float
    peak_to_peak_dd_percent: float
    duration_hours: float
    entry_signal: str
    exit_signal: str
    strategy: str
    instrument: str
    units: int


class EquityCurvePointRead(CamelModel):
    timestamp: datetime
    equity: float
    pnl: float
    drawdown_percent: float = Field(ge=0)
    drawdown_dollars: float = Field(ge=0)


class AdvancedStatsRead(CamelModel):
    profit_factor: float
    win_loss_ratio: float
    expectancy: float
    sharpe_ratio: float
    recovery_factor: float
    calmar_ratio: float
    ulcer_index: float
    average_win: float
    average_loss: float
    largest_win: float
    largest_loss: float
    payoff_ratio: float
    max_drawdown_percent: float
    max_drawdown_duration: int
    avg_drawdown_percent: float
    avg_drawdown_duration: float
    median_drawdown_duration: int
    total_drawdown_periods: int
    profit_factor_recent: float = Field(alias="profitFactor3Month")
    win_rate_recent: float = Field(alias="winRate3Month")
    avg_profit_per_day: float
    avg_trades_per_day: float
    profit_percent_per_trade: float
    trading_days: int
    trading_months: float
    avg_annual_pnl_percent: float = Field(alias="avgAnnualPnLPercent")
    start_date: datetime | None
    end_date: datetime | None


class TradeMetadataRead(CamelModel):
    total_trades: int
    win_rate: float
    total_pnl: float = Field(alias="totalPnL")
    max_drawdown_dollars: float
    max_drawdown_percent: float
    pnl_percent: float
    initial_capital: float
    advanced_stats: AdvancedStatsRead


class ProcessedTradeDataRead(CamelModel):
    trades: list[TradeRead]
    equity_curve: list[EquityCurvePointRead]
    metadata: TradeMetadataRead


class CohortPointRead(CamelModel):
    trade_number: int
    timestamp: datetime
    equity: float
    relative_equity: float
    velocity: float


class CohortDataRead(CamelModel):
    start_date: str
    data: list[CohortPointRead]


class DatasetRead(CamelModel):
    dataset: str
    name: str
    capital_per_unit: float
