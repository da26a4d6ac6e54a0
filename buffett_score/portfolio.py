"""Watchlist and holdings store, plus gain/loss valuation of holdings.

Both lists are CSV files under ``PortfolioConfig.data_dir``. A file that
cannot be parsed is logged and treated as empty, so a damaged store never
blocks scoring.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Mapping

import pandas as pd

from buffett_score.config import PortfolioConfig
from buffett_score.data.yahoo import InvalidSymbolError, is_valid_symbol, sanitize_symbol

logger = logging.getLogger(__name__)

WATCHLIST_COLUMNS = ["symbol"]
HOLDING_COLUMNS = ["id", "symbol", "shares", "buy_price", "buy_date"]
VALUATION_COLUMNS = HOLDING_COLUMNS + ["price", "cost", "value", "gain", "gain_percent"]
POSITION_COLUMNS = ["symbol", "shares", "cost", "value", "gain", "gain_percent"]


@dataclass(frozen=True)
class Holding:
    """One purchase lot.

    Attributes:
        symbol: Ticker symbol (uppercase).
        shares: Number of shares; fractional shares allowed.
        buy_price: Price paid per share.
        buy_date: ISO purchase date, if recorded.
        id: Store identifier; assigned when the lot is first saved.
    """

    symbol: str
    shares: float
    buy_price: float
    buy_date: str | None = None
    id: str | None = None

    @property
    def cost(self) -> float:
        return self.shares * self.buy_price


def validate_holding(holding: Holding) -> Holding:
    """Return ``holding`` with a sanitised symbol.

    Raises:
        InvalidSymbolError: Malformed symbol.
        ValueError: Shares or buy price not a positive number.
    """
    symbol = sanitize_symbol(holding.symbol)
    if not is_valid_symbol(symbol):
        raise InvalidSymbolError(f"Invalid symbol format: {holding.symbol!r}")
    if not math.isfinite(holding.shares) or holding.shares <= 0:
        raise ValueError(f"Shares must be positive, got {holding.shares}")
    if not math.isfinite(holding.buy_price) or holding.buy_price <= 0:
        raise ValueError(f"Buy price must be positive, got {holding.buy_price}")
    return replace(holding, symbol=symbol)


class PortfolioStore:
    """CSV-backed watchlist and holdings."""

    def __init__(self, config: PortfolioConfig = PortfolioConfig()) -> None:
        self.config = config

    def _read(self, path: Path, columns: list[str]) -> pd.DataFrame:
        if not path.exists():
            return pd.DataFrame(columns=columns)
        try:
            df = pd.read_csv(path, dtype=str)
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            logger.warning("%s is unreadable (%s), treating as empty", path, e)
            return pd.DataFrame(columns=columns)
        missing = [c for c in columns if c not in df.columns]
        if missing:
            logger.warning("%s is missing columns %s, treating as empty", path, missing)
            return pd.DataFrame(columns=columns)
        return df[columns]

    def _write(self, df: pd.DataFrame, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)

    # --- Watchlist ---

    def watchlist(self) -> list[str]:
        """Watched symbols in insertion order."""
        df = self._read(self.config.watchlist_path, WATCHLIST_COLUMNS)
        return [str(s) for s in df["symbol"].dropna()]

    def _save_watchlist(self, symbols: list[str]) -> None:
        self._write(
            pd.DataFrame({"symbol": symbols}, columns=WATCHLIST_COLUMNS),
            self.config.watchlist_path,
        )

    def add_to_watchlist(self, symbol: str) -> list[str]:
        """Add ``symbol`` (uppercased) unless already watched.

        Raises:
            InvalidSymbolError: Malformed symbol.
        """
        sanitized = sanitize_symbol(symbol)
        if not is_valid_symbol(sanitized):
            raise InvalidSymbolError(f"Invalid symbol format: {symbol!r}")
        symbols = self.watchlist()
        if sanitized not in symbols:
            symbols.append(sanitized)
            self._save_watchlist(symbols)
            logger.info("Added %s to watchlist", sanitized)
        return symbols

    def remove_from_watchlist(self, symbol: str) -> list[str]:
        symbols = self.watchlist()
        remaining = [s for s in symbols if s != symbol.upper()]
        if len(remaining) != len(symbols):
            self._save_watchlist(remaining)
            logger.info("Removed %s from watchlist", symbol.upper())
        return remaining

    # --- Holdings ---

    def holdings(self) -> list[Holding]:
        """Stored lots. Rows with unusable shares or price are skipped."""
        df = self._read(self.config.holdings_path, HOLDING_COLUMNS)
        shares = pd.to_numeric(df["shares"], errors="coerce")
        prices = pd.to_numeric(df["buy_price"], errors="coerce")

        result: list[Holding] = []
        for i, row in enumerate(df.itertuples(index=False)):
            if pd.isna(shares.iloc[i]) or pd.isna(prices.iloc[i]):
                logger.warning("Skipping holding %s: bad shares or price", row.id)
                continue
            result.append(Holding(
                symbol=str(row.symbol),
                shares=float(shares.iloc[i]),
                buy_price=float(prices.iloc[i]),
                buy_date=None if pd.isna(row.buy_date) else str(row.buy_date),
                id=None if pd.isna(row.id) else str(row.id),
            ))
        return result

    def _save_holdings(self, holdings: list[Holding]) -> None:
        self._write(
            pd.DataFrame([asdict(h) for h in holdings], columns=HOLDING_COLUMNS),
            self.config.holdings_path,
        )

    def add_holding(self, holding: Holding) -> list[Holding]:
        """Insert a new lot, or replace the stored lot with the same id.

        Raises:
            InvalidSymbolError: Malformed symbol.
            ValueError: Shares or buy price not positive.
        """
        holding = validate_holding(holding)
        holdings = self.holdings()
        for i, existing in enumerate(holdings):
            if holding.id is not None and existing.id == holding.id:
                holdings[i] = holding
                break
        else:
            holding = replace(holding, id=uuid.uuid4().hex[:12])
            holdings.append(holding)
        self._save_holdings(holdings)
        logger.info(
            "Saved holding %s: %g %s @ %.2f",
            holding.id, holding.shares, holding.symbol, holding.buy_price,
        )
        return holdings

    def remove_holding(self, holding_id: str) -> list[Holding]:
        holdings = self.holdings()
        remaining = [h for h in holdings if h.id != holding_id]
        if len(remaining) != len(holdings):
            self._save_holdings(remaining)
            logger.info("Removed holding %s", holding_id)
        return remaining


# --- Valuation ---


def holdings_frame(
    holdings: list[Holding], prices: Mapping[str, float | None]
) -> pd.DataFrame:
    """Value each lot at the latest price.

    Args:
        holdings: Lots to value.
        prices: Latest price per symbol. A missing or None price leaves
            value, gain and gain_percent as NaN for that lot.

    Returns:
        DataFrame with VALUATION_COLUMNS, one row per lot.
    """
    rows = []
    for h in holdings:
        price = prices.get(h.symbol)
        value = h.shares * price if price is not None else math.nan
        gain = value - h.cost
        rows.append({
            **asdict(h),
            "price": price if price is not None else math.nan,
            "cost": h.cost,
            "value": value,
            "gain": gain,
            "gain_percent": gain / h.cost * 100 if h.cost > 0 else math.nan,
        })
    return pd.DataFrame(rows, columns=VALUATION_COLUMNS)


def positions(frame: pd.DataFrame) -> pd.DataFrame:
    """Aggregate valued lots by symbol.

    A symbol's value stays NaN only if none of its lots could be priced.
    """
    if frame.empty:
        return pd.DataFrame(columns=POSITION_COLUMNS)
    grouped = frame.groupby("symbol", sort=True).agg(
        shares=("shares", "sum"),
        cost=("cost", "sum"),
        value=("value", lambda s: s.sum(min_count=1)),
    ).reset_index()
    grouped["gain"] = grouped["value"] - grouped["cost"]
    grouped["gain_percent"] = grouped["gain"] / grouped["cost"] * 100
    return grouped[POSITION_COLUMNS]


def portfolio_totals(frame: pd.DataFrame) -> dict[str, float]:
    """Total value, cost and gain across all lots.

    Unpriced lots add to cost but not to value. gain_percent is 0 when
    the total cost is 0.
    """
    value = float(frame["value"].sum()) if not frame.empty else 0.0
    cost = float(frame["cost"].sum()) if not frame.empty else 0.0
    gain = value - cost
    return {
        "value": value,
        "cost": cost,
        "gain": gain,
        "gain_percent": gain / cost * 100 if cost > 0 else 0.0,
    }
