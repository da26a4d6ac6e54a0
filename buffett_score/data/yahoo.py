"""Yahoo Finance collaborator built on yfinance.

Fetches the quote, statement modules and price history for a symbol and
reshapes them into the documents the scoring engine reads. Statement
modules are fetched concurrently; a module that fails is logged and left
empty rather than failing the whole bundle.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping

import pandas as pd
import yfinance as yf

from buffett_score.config import FetchConfig
from buffett_score.data.extract import first_number, get_value, to_number
from buffett_score.data.models import FinancialBundle, Quote

logger = logging.getLogger(__name__)

_SYMBOL_PATTERN = re.compile(r"[A-Z0-9.-]{1,10}")
_SYMBOL_STRIP = re.compile(r"[^A-Z0-9.-]")
_QUERY_STRIP = re.compile(r"[<>\"'&]")

FINANCIAL_DATA_FIELDS: tuple[str, ...] = (
    "currentPrice",
    "returnOnEquity",
    "returnOnAssets",
    "debtToEquity",
    "profitMargins",
    "operatingMargins",
    "grossMargins",
    "currentRatio",
    "quickRatio",
    "earningsGrowth",
    "revenueGrowth",
    "freeCashflow",
    "operatingCashflow",
    "totalRevenue",
    "totalDebt",
    "totalCash",
    "netIncomeToCommon",
    "marketCap",
)

KEY_STATISTICS_FIELDS: tuple[str, ...] = (
    "bookValue",
    "priceToBook",
    "trailingEps",
    "forwardEps",
    "forwardPE",
    "pegRatio",
    "priceToSalesTrailing12Months",
    "enterpriseValue",
    "sharesOutstanding",
)

# yfinance statement row label -> bundle line item.
INCOME_STATEMENT_ROWS: Mapping[str, str] = {
    "Total Revenue": "totalRevenue",
    "Net Income": "netIncome",
    "Diluted EPS": "dilutedEPS",
    "Basic EPS": "basicEPS",
}

BALANCE_SHEET_ROWS: Mapping[str, str] = {
    "Stockholders Equity": "totalStockholderEquity",
    "Current Assets": "totalCurrentAssets",
    "Current Liabilities": "totalCurrentLiabilities",
    "Long Term Debt": "longTermDebt",
    "Current Debt": "shortLongTermDebt",
    "Total Debt": "totalDebt",
    "Cash And Cash Equivalents": "cash",
}

CASH_FLOW_ROWS: Mapping[str, str] = {
    "Operating Cash Flow": "totalCashFromOperatingActivities",
    "Capital Expenditure": "capitalExpenditures",
    "Free Cash Flow": "freeCashFlow",
}

EARNINGS_COLUMNS: Mapping[str, str] = {
    "epsActual": "epsActual",
    "EPS Actual": "epsActual",
    "epsEstimate": "epsEstimate",
    "EPS Estimate": "epsEstimate",
}

HISTORY_COLUMNS = ["date", "open", "high", "low", "close", "volume"]


class DataFetchError(RuntimeError):
    """The data provider could not be reached or returned garbage."""


class SymbolNotFoundError(DataFetchError):
    """The provider has no data for the symbol."""


class InvalidSymbolError(ValueError):
    """The symbol is not 1-10 characters of A-Z, 0-9, '.' or '-'."""


def sanitize_symbol(symbol: str, config: FetchConfig = FetchConfig()) -> str:
    """Uppercase, strip disallowed characters and truncate."""
    return _SYMBOL_STRIP.sub("", symbol.upper())[: config.max_symbol_length]


def is_valid_symbol(symbol: str) -> bool:
    """True if ``symbol`` (case-insensitive) is a well-formed ticker."""
    return _SYMBOL_PATTERN.fullmatch(symbol.upper()) is not None


def _checked_symbol(symbol: str) -> str:
    sanitized = sanitize_symbol(symbol)
    if not is_valid_symbol(sanitized):
        raise InvalidSymbolError(f"Invalid symbol format: {symbol!r}")
    return sanitized


def _iso_date(label: Any) -> str | None:
    stamp = pd.to_datetime(label, errors="coerce")
    if pd.isna(stamp):
        return None
    return stamp.date().isoformat()


def statement_records(
    frame: pd.DataFrame | None, rows: Mapping[str, str]
) -> list[dict[str, Any]]:
    """Turn a yfinance statement (line items x periods) into records.

    Args:
        frame: Statement with row labels as index and period end dates
            as columns. None or empty yields no records.
        rows: yfinance row label -> bundle line item name.

    Returns:
        One dict per period, most recent first, with ``endDate`` and the
        mapped line items. Missing cells are None; periods where every
        mapped line item is missing are dropped.
    """
    if frame is None or frame.empty:
        return []
    present = [label for label in rows if label in frame.index]
    columns = sorted(
        frame.columns,
        key=lambda c: pd.to_datetime(c, errors="coerce"),
        reverse=True,
    )
    records: list[dict[str, Any]] = []
    for column in columns:
        record: dict[str, Any] = {"endDate": _iso_date(column)}
        for label in present:
            record[rows[label]] = to_number(frame.at[label, column])
        if all(record[rows[label]] is None for label in present):
            continue
        records.append(record)
    return records


def earnings_records(frame: pd.DataFrame | None) -> list[dict[str, Any]]:
    """Quarterly earnings history, most recent quarter first.

    Quarters without a reported EPS (upcoming or empty rows) are dropped.
    """
    if frame is None or frame.empty:
        return []
    ordered = frame.sort_index(ascending=False)
    records: list[dict[str, Any]] = []
    for label, row in ordered.iterrows():
        record: dict[str, Any] = {"quarter": _iso_date(label)}
        for source, target in EARNINGS_COLUMNS.items():
            if source in row.index:
                record[target] = to_number(row[source])
        if record.get("epsActual") is None:
            continue
        records.append(record)
    return records


def _pick(info: Mapping[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    return {key: info[key] for key in fields if info.get(key) is not None}


def quote_from_info(symbol: str, info: Mapping[str, Any]) -> Quote:
    """Build a Quote from a yfinance ``Ticker.info`` mapping."""
    name = get_value(info, "shortName") or get_value(info, "longName")
    return Quote(
        symbol=str(info.get("symbol") or symbol),
        price=first_number(info, "regularMarketPrice", "currentPrice"),
        market_cap=first_number(info, "marketCap"),
        eps=first_number(info, "epsTrailingTwelveMonths", "trailingEps"),
        short_name=name if isinstance(name, str) else None,
        currency=info.get("currency"),
        exchange=info.get("exchange"),
        change=first_number(info, "regularMarketChange"),
        change_percent=first_number(info, "regularMarketChangePercent"),
        pe_ratio=first_number(info, "trailingPE"),
    )


def fetch_quote(symbol: str) -> Quote:
    """Fetch the latest quote.

    Raises:
        InvalidSymbolError: Malformed symbol.
        SymbolNotFoundError: Provider has no price for the symbol.
        DataFetchError: Provider request failed.
    """
    sanitized = _checked_symbol(symbol)
    try:
        info = yf.Ticker(sanitized).info or {}
    except Exception as e:
        raise DataFetchError(f"{sanitized}: quote request failed: {e}") from e

    quote = quote_from_info(sanitized, info)
    if quote.price is None:
        raise SymbolNotFoundError(f"{sanitized}: no quote found")
    logger.debug("%s: quote %.2f", sanitized, quote.price)
    return quote


def _module_loaders(ticker: Any) -> dict[str, Callable[[], Any]]:
    return {
        "info": lambda: ticker.info,
        "income_stmt": lambda: ticker.income_stmt,
        "balance_sheet": lambda: ticker.balance_sheet,
        "cashflow": lambda: ticker.cashflow,
        "earnings_history": lambda: ticker.earnings_history,
    }


def _load_module(symbol: str, name: str, loader: Callable[[], Any]) -> Any:
    try:
        return loader()
    except Exception as e:
        logger.warning("%s: module %s failed: %s", symbol, name, e)
        return None


def fetch_snapshot(
    symbol: str, config: FetchConfig = FetchConfig()
) -> tuple[FinancialBundle, Quote | None]:
    """Fetch every statement module plus the quote in one pass.

    The quote is built from the same ``info`` module that feeds the
    bundle, so scoring a symbol costs one round of provider requests.

    Returns:
        (bundle, quote). The quote is None when ``info`` carries no price.

    Raises:
        InvalidSymbolError: Malformed symbol.
        SymbolNotFoundError: Every module came back empty.
    """
    sanitized = _checked_symbol(symbol)
    ticker = yf.Ticker(sanitized)

    loaders = _module_loaders(ticker)
    with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
        futures = {
            name: pool.submit(_load_module, sanitized, name, loader)
            for name, loader in loaders.items()
        }
        modules = {name: future.result() for name, future in futures.items()}

    info = modules["info"] if isinstance(modules["info"], Mapping) else {}
    payload = {
        "symbol": sanitized,
        "financialData": _pick(info, FINANCIAL_DATA_FIELDS),
        "keyStatistics": _pick(info, KEY_STATISTICS_FIELDS),
        "incomeStatements": statement_records(
            modules["income_stmt"], INCOME_STATEMENT_ROWS,
        ),
        "balanceSheets": statement_records(
            modules["balance_sheet"], BALANCE_SHEET_ROWS,
        ),
        "cashFlows": statement_records(modules["cashflow"], CASH_FLOW_ROWS),
        "earningsHistory": earnings_records(modules["earnings_history"]),
    }
    bundle = FinancialBundle.from_dict(payload)

    if not any((
        bundle.financial_data,
        bundle.key_statistics,
        bundle.income_statements,
        bundle.balance_sheets,
        bundle.cash_flows,
        bundle.earnings_history,
    )):
        raise SymbolNotFoundError(f"{sanitized}: no financial data found")

    logger.info(
        "%s: fetched %d income, %d balance, %d cash flow, %d earnings records",
        sanitized,
        len(bundle.income_statements),
        len(bundle.balance_sheets),
        len(bundle.cash_flows),
        len(bundle.earnings_history),
    )
    quote: Quote | None = quote_from_info(sanitized, info)
    if quote.price is None:
        logger.warning("%s: no price in quote data", sanitized)
        quote = None
    return bundle, quote


def fetch_financials(
    symbol: str, config: FetchConfig = FetchConfig()
) -> FinancialBundle:
    """Fetch every statement module and assemble a FinancialBundle.

    Raises:
        InvalidSymbolError: Malformed symbol.
        SymbolNotFoundError: Every module came back empty.
    """
    bundle, _ = fetch_snapshot(symbol, config)
    return bundle


def fetch_history(
    symbol: str, period: str = "max", config: FetchConfig = FetchConfig()
) -> pd.DataFrame:
    """Fetch OHLCV price history.

    Args:
        symbol: Ticker symbol.
        period: One of 1m, 3m, 6m, 1y, 5y, 10y, max. Daily bars for 1m,
            weekly bars otherwise.
        config: Fetch settings (period mapping).

    Returns:
        DataFrame with columns date, open, high, low, close, volume,
        oldest first.

    Raises:
        ValueError: Unknown period.
        InvalidSymbolError: Malformed symbol.
        SymbolNotFoundError: No price history.
    """
    if period not in config.history_periods:
        raise ValueError(
            f"Invalid period {period!r}. Use: {', '.join(config.history_periods)}"
        )
    sanitized = _checked_symbol(symbol)
    interval = "1d" if period == "1m" else "1wk"

    try:
        frame = yf.Ticker(sanitized).history(
            period=config.history_periods[period], interval=interval,
        )
    except Exception as e:
        raise DataFetchError(f"{sanitized}: history request failed: {e}") from e

    if frame is None or frame.empty:
        raise SymbolNotFoundError(f"{sanitized}: no price history found")

    frame = frame.reset_index()
    frame.columns = [str(c).lower() for c in frame.columns]
    frame = frame.rename(columns={"datetime": "date"})
    missing = [c for c in HISTORY_COLUMNS if c not in frame.columns]
    if missing:
        raise DataFetchError(f"{sanitized}: history missing columns {missing}")
    return frame[HISTORY_COLUMNS].sort_values("date").reset_index(drop=True)


def search_symbols(
    query: str, config: FetchConfig = FetchConfig()
) -> list[dict[str, Any]]:
    """Search equities by name or ticker.

    Returns:
        Up to ``config.search_results`` dicts with symbol, shortName,
        longName, exchange and quoteType. Non-equity matches dropped.

    Raises:
        ValueError: Empty query.
        DataFetchError: Provider request failed.
    """
    cleaned = _QUERY_STRIP.sub("", query)[: config.max_query_length].strip()
    if not cleaned:
        raise ValueError("Search query is required")

    try:
        quotes = yf.Search(
            cleaned, max_results=config.search_results, news_count=0,
        ).quotes
    except Exception as e:
        raise DataFetchError(f"search {cleaned!r} failed: {e}") from e

    results: list[dict[str, Any]] = []
    for item in quotes or []:
        if item.get("quoteType") != "EQUITY":
            continue
        symbol = item.get("symbol")
        short_name = item.get("shortName") or item.get("shortname")
        long_name = item.get("longName") or item.get("longname")
        results.append({
            "symbol": symbol,
            "shortName": short_name or long_name or symbol,
            "longName": long_name or short_name or symbol,
            "exchange": item.get("exchange"),
            "quoteType": item.get("quoteType"),
        })
    return results
