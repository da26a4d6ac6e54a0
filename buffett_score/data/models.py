"""Data contracts consumed by the scoring engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from buffett_score.data.extract import get_number, get_value, normalize_document


def _mapping(payload: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = normalize_document(payload.get(key))
    return value if isinstance(value, dict) else {}


def _records(payload: Mapping[str, Any], key: str) -> list[dict[str, Any]]:
    value = normalize_document(payload.get(key))
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass
class FinancialBundle:
    """Statement modules for one symbol at one point in time.

    Attributes:
        financial_data: Pre-computed ratios and absolutes (returnOnEquity,
            debtToEquity, profitMargins, currentRatio, earningsGrowth,
            freeCashflow, totalRevenue, totalDebt, netIncomeToCommon,
            marketCap).
        key_statistics: bookValue, priceToBook, trailingEps, forwardPE,
            pegRatio, priceToSalesTrailing12Months, enterpriseValue.
        income_statements: Yearly income statements, most recent first
            (netIncome, totalRevenue, dilutedEPS).
        balance_sheets: Yearly balance sheets, most recent first
            (totalStockholderEquity, totalCurrentAssets,
            totalCurrentLiabilities, longTermDebt, shortLongTermDebt).
        cash_flows: Yearly cash flow statements, most recent first
            (totalCashFromOperatingActivities, capitalExpenditures).
        earnings_history: Quarterly earnings, most recent first (epsActual).
        symbol: Ticker the bundle was fetched for, if known.
    """

    financial_data: dict[str, Any] = field(default_factory=dict)
    key_statistics: dict[str, Any] = field(default_factory=dict)
    income_statements: list[dict[str, Any]] = field(default_factory=list)
    balance_sheets: list[dict[str, Any]] = field(default_factory=list)
    cash_flows: list[dict[str, Any]] = field(default_factory=list)
    earnings_history: list[dict[str, Any]] = field(default_factory=list)
    symbol: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> FinancialBundle:
        """Build a bundle from the provider document shape.

        Missing modules become empty mappings/lists and wrapped leaves are
        unwrapped.
        """
        symbol = get_value(payload, "symbol")
        return cls(
            financial_data=_mapping(payload, "financialData"),
            key_statistics=_mapping(payload, "keyStatistics"),
            income_statements=_records(payload, "incomeStatements"),
            balance_sheets=_records(payload, "balanceSheets"),
            cash_flows=_records(payload, "cashFlows"),
            earnings_history=_records(payload, "earningsHistory"),
            symbol=symbol if isinstance(symbol, str) else None,
        )


@dataclass
class Quote:
    """Latest market quote. Every numeric field may be missing."""

    symbol: str | None = None
    price: float | None = None
    market_cap: float | None = None
    eps: float | None = None
    short_name: str | None = None
    currency: str | None = None
    exchange: str | None = None
    change: float | None = None
    change_percent: float | None = None
    pe_ratio: float | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Quote:
        """Build a quote from provider keys (price, marketCap, eps, ...)."""

        def _text(key: str) -> str | None:
            value = get_value(payload, key)
            return value if isinstance(value, str) else None

        return cls(
            symbol=_text("symbol"),
            price=get_number(payload, "price"),
            market_cap=get_number(payload, "marketCap"),
            eps=get_number(payload, "eps"),
            short_name=_text("shortName"),
            currency=_text("currency"),
            exchange=_text("exchange"),
            change=get_number(payload, "change"),
            change_percent=get_number(payload, "changePercent"),
            pe_ratio=get_number(payload, "peRatio"),
        )
