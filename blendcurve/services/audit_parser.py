"""Parser for OCR text of audited trade-list screenshots.

The recognized table has two header lines followed by one trade per line:

    <#> <symbol> <type> <signal> <date> <time> <price> <contracts> [profit] [profit %]
        [cum profit] [cum profit %] [backtest profit] [slippage] [slippage/contract]
        [total contracts]

OCR output is noisy, so short lines are dropped silently and a line whose
required columns fail to parse is logged and skipped.
"""

import logging
import math
from datetime import date, datetime

from blendcurve.models.audited_trade import AuditedTrade

logger = logging.getLogger(__name__)

HEADER_LINES = 2
REQUIRED_TOKENS = 8

DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%m/%d/%y", "%m-%d-%Y")

# (token index, field name, parser kind)
OPTIONAL_COLUMNS = [
    (8, "profit", "money"),
    (9, "profit_percent", "percent"),
    (10, "cumulative_profit", "money"),
    (11, "cumulative_profit_percent", "percent"),
    (12, "backtesting_profit", "money"),
    (13, "slippage", "money"),
    (14, "slippage_per_contract", "money"),
    (15, "total_contracts", "int"),
]


def parse_money(token: str) -> float:
    """'$1,234.50' -> 1234.5; accounting negatives '($12.00)' -> -12.0."""
    text = token.strip()
    negative = text.startswith("(") and text.endswith(")")
    text = text.strip("()").replace("$", "").replace(",", "")
    value = float(text)
    return -value if negative else value


def parse_percent(token: str) -> float:
    return float(token.strip().replace("%", "").replace(",", ""))


def parse_int(token: str) -> int:
    """Whole-number column; OCR often renders counts as "2.0", which truncates to 2."""
    value = float(token.strip().replace(",", ""))
    if not math.isfinite(value):
        raise ValueError(f"not a count: {token!r}")
    return int(value)


def parse_date(token: str) -> date:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(token, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognized date {token!r}")


_PARSERS = {"money": parse_money, "percent": parse_percent, "int": parse_int}


def parse_audit_line(parts: list[str], algorithm: str) -> AuditedTrade:
    """Build an AuditedTrade from the tokens of one line.

    Raises ValueError when a required column is unparseable. Optional columns
    that are missing or unreadable stay None.
    """
    trade = AuditedTrade(
        algorithm=algorithm,
        symbol=parts[1],
        type=parts[2],
        signal=parts[3],
        date=parse_date(parts[4]),
        time=parts[5],
        price=parse_money(parts[6]),
        contracts=parse_int(parts[7]),
    )
    for index, name, kind in OPTIONAL_COLUMNS:
        if index >= len(parts):
            break
        try:
            setattr(trade, name, _PARSERS[kind](parts[index]))
        except ValueError:
            logger.debug(f"Ignoring unreadable {name} column {parts[index]!r}")
    return trade


def parse_audit_text(text: str, algorithm: str) -> list[AuditedTrade]:
    """Parse one OCR text block for one algorithm into AuditedTrade rows."""
    trades = []
    for line in text.splitlines()[HEADER_LINES:]:
        parts = line.split()
        if len(parts) < REQUIRED_TOKENS:
            continue
        try:
            trades.append(parse_audit_line(parts, algorithm))
        except ValueError as e:
            logger.warning(f"Skipping audit line {line!r}: {e}")
    logger.info(f"Parsed {len(trades)} audited trades for {algorithm}")
    return trades
