"""Shared constants and defaults."""

# Atlas = NQ/MNQ strategy, Gateway = ES/MES strategy
DEFAULT_CAPITAL_REQUIREMENTS: dict[str, float] = {
    "nq_trades.csv": 100_000.0,
    "mnq_trades.csv": 25_000.0,
    "es_trades.csv": 100_000.0,
    "mes_trades.csv": 10_000.0,
}

DEFAULT_DATASET_NAMES: dict[str, str] = {
    "nq_trades.csv": "Atlas NQ",
    "mnq_trades.csv": "Atlas MNQ",
    "es_trades.csv": "Gateway ES",
    "mes_trades.csv": "Gateway MES",
}

# Columns coerced to numbers when a dataset file is loaded; everything else stays a string
NUMERIC_COLUMNS = [
    "Entry_Price",
    "Exit_Price",
    "Contracts",
    "PnL",
    "PnL_%",
    "Cumulative_PnL_%",
    "Peak_to_Peak_DD_%",
    "Duration_Hours",
    "Max_Favorable_Excursion",
    "Max_Adverse_Excursion",
    "Trade_Efficiency",
]

DATE_COLUMNS = ["Entry_Date", "Exit_Date"]

TEXT_COLUMNS = ["Entry_Signal", "Exit_Signal", "Strategy", "Instrument"]

DAYS_PER_MONTH = 30.44
DAYS_PER_YEAR = 365.0
TRADING_DAYS_PER_YEAR = 252
RECENT_WINDOW_DAYS = 90
