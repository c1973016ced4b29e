"""SignalForge — command line entry point.

Analyses a JSON candle file and prints the presented report::

    signalforge --file candles.json --symbol BTCUSDT --timeframe 1h

The file holds a list of candles, either objects with ``timestamp``,
``open``, ``high``, ``low``, ``close`` and ``volume`` keys or
``[timestamp, open, high, low, close, volume]`` arrays.  Timestamps are
ISO-8601 strings or epoch milliseconds.
"""

import json
import logging
import pathlib
import sys

from signalforge.analysis import AnalysisService
from signalforge.config import load_config
from signalforge.market.models import CandleSeries
from signalforge.presenter import present_report

logger = logging.getLogger("signalforge")


def load_series(path: pathlib.Path, symbol: str, timeframe: str) -> CandleSeries:
    """Read a JSON candle file into a ``CandleSeries``."""
    with open(path, "r", encoding="utf-8") as f:
        rows = json.load(f)
    if isinstance(rows, dict):
        rows = rows.get("candles", [])
    return CandleSeries.from_rows(symbol, timeframe, rows)


def _run_cli() -> None:
    """Parse CLI arguments, analyse the candle file and print JSON."""
    import argparse

    parser = argparse.ArgumentParser(description="SignalForge candle analysis")
    parser.add_argument("--file", required=True, help="Path to a JSON candle file")
    parser.add_argument("--symbol", required=True, help="Instrument symbol, e.g. BTCUSDT")
    parser.add_argument("--timeframe", default="1h", help="Candle timeframe (default: 1h)")
    parser.add_argument("--env-file", help="Optional .env file to load")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    args = parser.parse_args()

    config = load_config(args.env_file)
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        series = load_series(pathlib.Path(args.file), args.symbol, args.timeframe)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.error("Could not load candles from %s: %s", args.file, exc)
        sys.exit(1)

    if not len(series):
        logger.error("No candles found in %s", args.file)
        sys.exit(1)

    logger.info("Loaded %d candles for %s %s", len(series), series.symbol, series.timeframe)
    report = AnalysisService.from_config(config).analyze(series)
    print(json.dumps(present_report(report), indent=args.indent))


if __name__ == "__main__":
    _run_cli()
