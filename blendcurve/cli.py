"""CLI tool for offline operations.

Usage:
    python -m blendcurve.cli summary nq_trades.csv:2 es_trades.csv [--start 2024-01-01]
    python -m blendcurve.cli import-audit "Atlas NQ" ocr_output.txt
"""

import asyncio
import json
import sys
from pathlib import Path

from sqlmodel import Session

from blendcurve.database import engine, create_db_and_tables
from blendcurve.engine.trade_pipeline import parse_start_date, process_trade_data
from blendcurve.schemas.trade_data import TradeMetadataRead
from blendcurve.services.audit_parser import parse_audit_text
from blendcurve.services.audit_store import save_audited_trades
from blendcurve.services.capital_blender import AlgorithmSelection
from blendcurve.services.errors import TradeDataError
from blendcurve.utils.logging import setup_logging

USAGE = """Usage: python -m blendcurve.cli <command>
Commands:
  summary <dataset[:units]> ... [--start ISO_DATE]
  import-audit <algorithm> <ocr_text_file>"""


def _parse_selection(arg: str) -> AlgorithmSelection:
    dataset, _, units = arg.partition(":")
    if units and (not units.isdigit() or int(units) < 1):
        raise TradeDataError(f"Units must be a positive integer in {arg!r}")
    return AlgorithmSelection(dataset_id=dataset, units=int(units) if units else 1)


def summary(args: list[str]):
    """Print the metadata block for a blended selection."""
    start = None
    if "--start" in args:
        i = args.index("--start")
        if i + 1 >= len(args):
            raise TradeDataError("--start needs a date")
        start = parse_start_date(args[i + 1])
        args = args[:i] + args[i + 2:]
    if not args:
        raise TradeDataError("At least one dataset is required")

    selections = [_parse_selection(a) for a in args]
    result = asyncio.run(process_trade_data(selections, start))
    metadata = TradeMetadataRead.model_validate(result.metadata)
    print(json.dumps(metadata.model_dump(mode="json", by_alias=True), indent=2))


def import_audit(args: list[str]):
    """Parse an OCR text file and store its audited trades."""
    if len(args) != 2:
        raise TradeDataError("import-audit needs <algorithm> <ocr_text_file>")
    algorithm, path = args
    text = Path(path).read_text(encoding="utf-8", errors="replace")

    create_db_and_tables()
    trades = parse_audit_text(text, algorithm)
    with Session(engine) as session:
        inserted = save_audited_trades(session, trades)

    print(f"Parsed {len(trades)} trades: {len(inserted)} new, {len(trades) - len(inserted)} already recorded.")


COMMANDS = {
    "summary": summary,
    "import-audit": import_audit,
}


def main(argv: list[str] | None = None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(USAGE)
        sys.exit(1)

    command, args = argv[0], argv[1:]
    handler = COMMANDS.get(command)
    if handler is None:
        print(f"Unknown command: {command}")
        print(USAGE)
        sys.exit(1)

    setup_logging()
    try:
        handler(args)
    except (TradeDataError, OSError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
