"""Trade dataset loading and normalization.

Dataset files are comma-separated with a header row. A fixed set of columns is
coerced to numbers; everything else is kept as text. Rows whose timestamps or
PnL cannot be parsed are dropped and logged rather than failing the import.
"""

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pandas as pd

from blendcurve.services.errors import TradeDataError
from blendcurve.utils.constants import DATE_COLUMNS, NUMERIC_COLUMNS, TEXT_COLUMNS

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["Entry_Date", "Exit_Date", "PnL"]


@dataclass(frozen=True)
class TradeRecord:
    """One closed trade. PnL and excursions are in account currency."""
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
    cumulative_pnl_percent: float = 0.0
    peak_to_peak_dd_percent: float = 0.0
    duration_hours: float = 0.0
    entry_signal: str = ""
    exit_signal: str = ""
    strategy: str = ""
    instrument: str = ""
    units: int = 1  # blended multiplier already applied to pnl/excursions

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def is_loss(self) -> bool:
        return self.pnl < 0


def normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce the known numeric and date columns; drop rows that cannot be used."""
    df = df.rename(columns={c: str(c).strip() for c in df.columns})

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise TradeDataError(f"Missing required columns: {missing}. Expected at least: {REQUIRED_COLUMNS}")

    for c in NUMERIC_COLUMNS:
        if c in df.columns:
            df[c] = pd.to_numeric(df[c], errors="coerce")
        else:
            df[c] = 0.0
    for c in DATE_COLUMNS:
        df[c] = pd.to_datetime(df[c], errors="coerce", utc=True, format="mixed")
    for c in TEXT_COLUMNS:
        if c not in df.columns:
            df[c] = ""
        df[c] = df[c].fillna("").astype(str).str.strip()

    bad = df[DATE_COLUMNS + ["PnL"]].isna().any(axis=1) | (df["Exit_Date"] < df["Entry_Date"])
    if bad.any():
        for idx in df.index[bad]:
            logger.warning(f"Skipping unparseable trade row {idx}: {df.loc[idx].to_dict()}")
        df = df[~bad].copy()

    optional = [c for c in NUMERIC_COLUMNS if c != "PnL"]
    df[optional] = df[optional].fillna(0.0)
    return df.reset_index(drop=True)


def records_from_frame(df: pd.DataFrame, dataset_id: str, algorithm_id: str | None = None) -> list[TradeRecord]:
    """Convert a normalized frame into TradeRecords, preserving file order."""
    algorithm_id = algorithm_id or dataset_id
    records = []
    for row in df.to_dict(orient="records"):
        records.append(
            TradeRecord(
                entry_time=row["Entry_Date"].to_pydatetime(),
                exit_time=row["Exit_Date"].to_pydatetime(),
                entry_price=float(row["Entry_Price"]),
                exit_price=float(row["Exit_Price"]),
                contracts=int(round(row["Contracts"])),
                pnl=float(row["PnL"]),
                pnl_percent=float(row["PnL_%"]),
                max_favorable_excursion=float(row["Max_Favorable_Excursion"]),
                max_adverse_excursion=float(row["Max_Adverse_Excursion"]),
                trade_efficiency=float(row["Trade_Efficiency"]),
                dataset_id=dataset_id,
                algorithm_id=algorithm_id,
                cumulative_pnl_percent=float(row["Cumulative_PnL_%"]),
                peak_to_peak_dd_percent=float(row["Peak_to_Peak_DD_%"]),
                duration_hours=float(row["Duration_Hours"]),
                entry_signal=row["Entry_Signal"],
                exit_signal=row["Exit_Signal"],
                strategy=row["Strategy"],
                instrument=row["Instrument"],
            )
        )
    return records


def _drop_bad_line(fields: list[str]) -> None:
    logger.warning(f"Skipping unparseable trade row ({len(fields)} fields): {','.join(fields)!r}")
    return None


def parse_trade_csv(content: str | bytes, dataset_id: str, algorithm_id: str | None = None) -> list[TradeRecord]:
    """Parse dataset CSV text (or bytes) into TradeRecords."""
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig")
    if not content.strip():
        return []
    # lines with more fields than the header are dropped, not fatal
    df = pd.read_csv(
        io.StringIO(content),
        dtype=str,
        skip_blank_lines=True,
        engine="python",
        on_bad_lines=_drop_bad_line,
    )
    if not isinstance(df.index, pd.RangeIndex):
        # pandas takes a too-long first data row as an implicit index for the whole file
        raise TradeDataError(f"{dataset_id}: first data row has more fields than the header")
    return records_from_frame(normalize_frame(df), dataset_id, algorithm_id)


def load_dataset(path: Path, dataset_id: str, algorithm_id: str | None = None) -> list[TradeRecord]:
    """Read one dataset file from disk."""
    records = parse_trade_csv(Path(path).read_bytes(), dataset_id, algorithm_id)
    logger.info(f"Loaded {len(records)} trades from {dataset_id}")
    return records
