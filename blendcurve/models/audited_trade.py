"""Trades observed on an externally audited statement."""

from datetime import date as date_type, datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

AUDIT_UNIQUE_KEY = ("algorithm", "date", "time", "type", "signal")
AUDIT_UNIQUE_CONSTRAINT = "uq_audited_trade_algorithm_date_time_type_signal"


class AuditedTrade(SQLModel, table=True):
    __tablename__ = "audited_trade"
    __table_args__ = (
        UniqueConstraint(*AUDIT_UNIQUE_KEY, name=AUDIT_UNIQUE_CONSTRAINT),
    )

    id: int | None = Field(default=None, primary_key=True)
    algorithm: str = Field(index=True)
    symbol: str
    type: str  # "Entry" / "Exit"
    signal: str  # "Long" / "Short" / strategy signal name
    date: date_type
    time: str  # kept as printed, e.g. "09:31:00"
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

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def unique_key(self) -> tuple:
        return tuple(getattr(self, name) for name in AUDIT_UNIQUE_KEY)
