"""Pydantic schemas for audited trade import."""

from datetime import date as date_type, datetime
from pydantic import Field

from blendcurve.schemas.trade_data import CamelModel


class AuditedTradeRead(CamelModel):
    id: int
    algorithm: str
    symbol: str
    type: str
    signal: str
    date: date_type
    time: str
    price: float
    contracts: int
    profit: float | None = None
    profit_percent: float | None = None
    cumulative_profit: float | None = None
    cumulative_profit_percent: float | None = None
    backtesting_profit: float | None = None
    slippage: float | None = None
    slippage_per_contract: float | None = None
    total_contracts: int | None = None
    created_at: datetime


class AuditImportResponse(CamelModel):
    message: str
    parsed: int = Field(ge=0)
    new_trades: list[AuditedTradeRead]
