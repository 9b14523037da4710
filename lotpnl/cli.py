#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from .calculator import PnLCalculator
from .errors import PnLError
from .exporter import CSVExporter
from .io import load_prices, lots_in_window, read_lots_from_csv
from .viz import plot_pnl_by_asset, plot_realized_over_time

logger = logging.getLogger("lotpnl.cli")


def _parse_when(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Use ISO format (e.g., '2024-01-01T09:00:00')"
        ) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lotpnl", description="Lot-matching PnL calculator (FIFO/LIFO).")
    parser.add_argument("csv", help="Path to lots CSV.")
    parser.add_argument("--method", "-m", default="FIFO", type=str.upper, choices=["FIFO", "LIFO"],
                        help="Lot matching method.")
    parser.add_argument("--prices", "-p", help="Path to JSON file with current prices per asset.")
    parser.add_argument("--account", "-a", default="", help="Account/wallet identifier for the report.")
    parser.add_argument("--from", dest="start", type=_parse_when, help="Only lots at or after this time.")
    parser.add_argument("--to", dest="end", type=_parse_when, help="Only lots at or before this time.")
    parser.add_argument("--out", "-o", default="out", help="Output directory for CSV/plots.")
    parser.add_argument("--export", action="store_true", help="Write the lot-level CSV export.")
    parser.add_argument("--plot", action="store_true", help="Save PnL charts.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (e.g., DEBUG, INFO, WARNING, ERROR).")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logger.info("Method: %s | Input CSV: %s", args.method, args.csv)

    try:
        lots_by_asset, symbols = read_lots_from_csv(args.csv)
    except (OSError, ValueError) as e:
        logger.error("Failed to read lots CSV: %s", e)
        return 1
    if args.start or args.end:
        lots_by_asset = {
            asset: lots_in_window(lots, args.start, args.end)
            for asset, lots in lots_by_asset.items()
        }
        lots_by_asset = {asset: lots for asset, lots in lots_by_asset.items() if lots}
    logger.info("Loaded lots for %d assets", len(lots_by_asset))
    if not lots_by_asset:
        logger.error("No lots found for the specified period")
        return 1

    prices = {}
    if args.prices:
        try:
            prices = load_prices(args.prices)
        except FileNotFoundError:
            logger.error("Prices file not found: %s", args.prices)
            return 1
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in prices file: %s", e)
            return 1
        except ValueError as e:
            logger.error("Invalid prices data: %s", e)
            return 1
    else:
        logger.info("No prices provided, open positions are valued at 0")

    calculator = PnLCalculator(args.method)
    try:
        portfolio = calculator.calculate_portfolio(lots_by_asset, prices, account=args.account, symbols=symbols)
    except PnLError as e:
        logger.error("Calculation failed: %s", e)
        return 1

    for line in portfolio.report_string().split("\n"):
        logger.info(line)

    out_dir = Path(args.out)
    if args.export or args.plot:
        out_dir.mkdir(parents=True, exist_ok=True)

    rows = portfolio.export_rows()
    if args.export:
        try:
            path = CSVExporter(temp_dir=out_dir).export_to_file(rows, account=args.account)
        except OSError as e:
            logger.error("Failed to write export: %s", e)
            return 1
        logger.info("Saved %d export rows to: %s", len(rows), path)

    if args.plot:
        prefix = str(out_dir / "pnl")
        plot_pnl_by_asset(portfolio, save_path=prefix)
        plot_realized_over_time(rows, save_path=prefix)
        logger.info("Saved charts to: %s", out_dir)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
