"""CLI entry point for the Buffett value score."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

import pandas as pd

from buffett_score.config import PortfolioConfig
from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.data.yahoo import (
    DataFetchError,
    InvalidSymbolError,
    fetch_history,
    fetch_quote,
    fetch_snapshot,
    search_symbols,
)
from buffett_score.formatting import format_currency, format_number, format_percent
from buffett_score.metrics.base import MetricResult
from buffett_score.output.csv_export import SUMMARY_COLUMNS, export_csv, results_to_frame
from buffett_score.portfolio import (
    Holding,
    PortfolioStore,
    holdings_frame,
    portfolio_totals,
    positions,
)
from buffett_score.scoring import BuffettScoreResult, calculate_buffett_score

logger = logging.getLogger(__name__)

METRIC_LABELS: dict[str, str] = {
    "roe": "Return on Equity",
    "debt_to_equity": "Debt to Equity",
    "profit_margin": "Profit Margin",
    "current_ratio": "Current Ratio",
    "eps_growth": "EPS Growth",
    "free_cash_flow": "FCF Yield",
    "price_to_book": "Price to Book",
    "intrinsic_value": "Intrinsic Value",
}

_PERCENT_METRICS = {"roe", "profit_margin", "eps_growth", "free_cash_flow"}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="buffett-score",
        description="Value investing score from Yahoo Finance fundamentals",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    score_parser = subparsers.add_parser(
        "score", help="Score one or more tickers"
    )
    score_parser.add_argument("tickers", nargs="*", help="Ticker symbols")
    score_parser.add_argument(
        "--watchlist",
        action="store_true",
        help="Also score every symbol on the stored watchlist",
    )
    score_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the results table to this CSV path",
    )

    detail_parser = subparsers.add_parser(
        "detail", help="Per-metric breakdown for one ticker"
    )
    detail_parser.add_argument("ticker", help="Ticker symbol")
    detail_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the score payload as JSON",
    )

    history_parser = subparsers.add_parser(
        "history", help="Price history for one ticker"
    )
    history_parser.add_argument("ticker", help="Ticker symbol")
    history_parser.add_argument(
        "--period",
        choices=["1m", "3m", "6m", "1y", "5y", "10y", "max"],
        default="1y",
        help="History period (default: 1y)",
    )
    history_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the history to this CSV path",
    )

    search_parser = subparsers.add_parser("search", help="Search for tickers")
    search_parser.add_argument("query", help="Company name or ticker")

    watchlist_parser = subparsers.add_parser(
        "watchlist", help="Show or edit the stored watchlist"
    )
    watchlist_parser.add_argument(
        "--add", action="append", default=[], metavar="TICKER",
        help="Add a ticker (repeatable)",
    )
    watchlist_parser.add_argument(
        "--remove", action="append", default=[], metavar="TICKER",
        help="Remove a ticker (repeatable)",
    )

    portfolio_parser = subparsers.add_parser(
        "portfolio", help="Show holdings with gain/loss, or edit them"
    )
    actions = portfolio_parser.add_subparsers(dest="action")
    add_parser = actions.add_parser("add", help="Record a purchase lot")
    add_parser.add_argument("ticker", help="Ticker symbol")
    add_parser.add_argument("shares", type=float, help="Number of shares")
    add_parser.add_argument("price", type=float, help="Price paid per share")
    add_parser.add_argument(
        "--date", default=None, help="Purchase date, YYYY-MM-DD (default: today)"
    )
    add_parser.add_argument(
        "--id", default=None, help="Replace the lot with this id instead of adding"
    )
    remove_parser = actions.add_parser("remove", help="Delete a purchase lot")
    remove_parser.add_argument("id", help="Lot id (shown by `portfolio`)")

    for sub in (score_parser, watchlist_parser, portfolio_parser):
        sub.add_argument(
            "--data-dir",
            type=Path,
            default=None,
            help="Watchlist/holdings directory (default: ~/.buffett_score)",
        )

    for sub in (
        score_parser,
        detail_parser,
        history_parser,
        search_parser,
        watchlist_parser,
        portfolio_parser,
    ):
        sub.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Enable verbose logging",
        )

    return parser.parse_args(argv)


def _load(ticker: str) -> tuple[FinancialBundle, Quote | None] | None:
    """Fetch bundle and quote; None if the financials cannot be fetched."""
    try:
        bundle, quote = fetch_snapshot(ticker)
    except (InvalidSymbolError, DataFetchError) as e:
        logger.warning("%s: %s", ticker, e)
        return None

    if quote is None:
        logger.warning("%s: no quote, scoring without price data", ticker)
    return bundle, quote


def _store(args: argparse.Namespace) -> PortfolioStore:
    if args.data_dir is None:
        return PortfolioStore()
    return PortfolioStore(PortfolioConfig(data_dir=args.data_dir))


def format_metric_value(name: str, metric: MetricResult) -> str:
    """Render a metric value in its display units."""
    if name in _PERCENT_METRICS:
        return format_percent(metric.value)
    if name == "intrinsic_value":
        return format_currency(metric.value)
    return format_number(metric.value)


def format_detail(symbol: str, result: BuffettScoreResult) -> str:
    """Multi-line per-metric report for one symbol."""
    lines = [
        f"{symbol}: {result.score}/100 - {result.recommendation_text}",
        f"Metrics available: {result.available_metrics}/{result.total_metrics}",
        "",
    ]
    for name, metric in result.metrics.items():
        line = (
            f"  {METRIC_LABELS[name]:<18} {format_metric_value(name, metric):>12}"
            f"  {metric.score:>3}  {metric.status.value}"
        )
        if metric.margin_of_safety is not None:
            line += (
                f"  (price {format_currency(metric.price)}, "
                f"margin of safety {format_percent(metric.margin_of_safety, 1)})"
            )
        lines.append(line)
    return "\n".join(lines)


def run_score(args: argparse.Namespace) -> int:
    """Execute the score command. Returns the process exit code."""
    tickers = list(args.tickers)
    if args.watchlist:
        tickers += [s for s in _store(args).watchlist() if s not in tickers]
    if not tickers:
        logger.error("No tickers given and the watchlist is empty")
        return 1

    results: dict[str, BuffettScoreResult] = {}
    for ticker in tickers:
        loaded = _load(ticker)
        if loaded is None:
            continue
        bundle, quote = loaded
        results[bundle.symbol or ticker] = calculate_buffett_score(bundle, quote)

    if not results:
        logger.error("No tickers could be scored")
        return 1

    frame = results_to_frame(results)
    print(frame[SUMMARY_COLUMNS].to_string(index=False))

    if args.output is not None:
        export_csv(results, args.output)

    logger.info("Scored %d of %d tickers", len(results), len(tickers))
    return 0


def run_detail(args: argparse.Namespace) -> int:
    """Execute the detail command."""
    loaded = _load(args.ticker)
    if loaded is None:
        return 1
    bundle, quote = loaded
    result = calculate_buffett_score(bundle, quote)
    symbol = bundle.symbol or args.ticker

    if args.json:
        print(json.dumps({"symbol": symbol, **result.to_dict()}, indent=2))
    else:
        print(format_detail(symbol, result))
    return 0


def run_history(args: argparse.Namespace) -> int:
    """Execute the history command."""
    try:
        frame = fetch_history(args.ticker, args.period)
    except (InvalidSymbolError, DataFetchError) as e:
        logger.error("%s: %s", args.ticker, e)
        return 1

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(args.output, index=False)
        logger.info("%s: %d rows written to %s", args.ticker, len(frame), args.output)
    else:
        print(frame.to_string(index=False))
    return 0


def run_search(args: argparse.Namespace) -> int:
    """Execute the search command."""
    try:
        matches = search_symbols(args.query)
    except (ValueError, DataFetchError) as e:
        logger.error("Search failed: %s", e)
        return 1

    for match in matches:
        print(f"{match['symbol']:<10} {match['shortName']}  ({match['exchange']})")
    if not matches:
        logger.info("No equities match %r", args.query)
    return 0


def run_watchlist(args: argparse.Namespace) -> int:
    """Execute the watchlist command: apply edits, then list symbols."""
    store = _store(args)
    try:
        for ticker in args.add:
            store.add_to_watchlist(ticker)
    except InvalidSymbolError as e:
        logger.error("%s", e)
        return 1
    for ticker in args.remove:
        store.remove_from_watchlist(ticker)

    symbols = store.watchlist()
    for symbol in symbols:
        print(symbol)
    if not symbols:
        logger.info("Watchlist is empty")
    return 0


def _latest_prices(symbols: list[str]) -> dict[str, float | None]:
    prices: dict[str, float | None] = {}
    for symbol in symbols:
        try:
            prices[symbol] = fetch_quote(symbol).price
        except (InvalidSymbolError, DataFetchError) as e:
            logger.warning("%s: no price (%s), valuing without it", symbol, e)
            prices[symbol] = None
    return prices


def format_portfolio(lots: pd.DataFrame) -> str:
    """Per-lot lines, per-symbol positions and portfolio totals."""
    lines = ["Lots:"]
    for lot in lots.itertuples(index=False):
        lines.append(
            f"  {lot.id or '-':<12} {lot.symbol:<8} {format_number(lot.shares):>10}"
            f" @ {format_currency(lot.buy_price):>10}  {lot.buy_date or '':<10}"
            f"  value {format_currency(lot.value):>10}"
            f"  gain {format_currency(lot.gain)} ({format_percent(lot.gain_percent)})"
        )
    lines += ["", "Positions:"]
    for pos in positions(lots).itertuples(index=False):
        lines.append(
            f"  {pos.symbol:<8} {format_number(pos.shares):>10}"
            f"  cost {format_currency(pos.cost):>10}"
            f"  value {format_currency(pos.value):>10}"
            f"  gain {format_currency(pos.gain)} ({format_percent(pos.gain_percent)})"
        )
    totals = portfolio_totals(lots)
    lines += [
        "",
        f"Total value {format_currency(totals['value'])}, "
        f"cost {format_currency(totals['cost'])}, "
        f"gain {format_currency(totals['gain'])} "
        f"({format_percent(totals['gain_percent'])})",
    ]
    return "\n".join(lines)


def run_portfolio(args: argparse.Namespace) -> int:
    """Execute the portfolio command (add, remove, or show)."""
    store = _store(args)

    if args.action == "add":
        holding = Holding(
            symbol=args.ticker,
            shares=args.shares,
            buy_price=args.price,
            buy_date=args.date or date.today().isoformat(),
            id=args.id,
        )
        try:
            store.add_holding(holding)
        except ValueError as e:
            logger.error("%s", e)
            return 1
        return 0

    if args.action == "remove":
        before = len(store.holdings())
        if len(store.remove_holding(args.id)) == before:
            logger.error("No holding with id %s", args.id)
            return 1
        return 0

    holdings = store.holdings()
    if not holdings:
        logger.info("No holdings recorded")
        return 0
    symbols = sorted({h.symbol for h in holdings})
    print(format_portfolio(holdings_frame(holdings, _latest_prices(symbols))))
    return 0


COMMANDS = {
    "score": run_score,
    "detail": run_detail,
    "history": run_history,
    "search": run_search,
    "watchlist": run_watchlist,
    "portfolio": run_portfolio,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    args = _parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    command = COMMANDS.get(args.command)
    if command is None:
        logger.error("Unknown command: %s", args.command)
        sys.exit(1)
    sys.exit(command(args))


if __name__ == "__main__":
    main()
