"""Valuation metrics: free cash flow yield, price to book, intrinsic value."""

from __future__ import annotations

import logging

from buffett_score.analysis.dcf import calculate_intrinsic_value as _dcf_value
from buffett_score.analysis.dcf import margin_of_safety
from buffett_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from buffett_score.data.extract import get_number
from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricResult, guarded, score_value, unavailable

logger = logging.getLogger(__name__)


def _free_cash_flow(bundle: FinancialBundle) -> float | None:
    """Reported free cash flow, else operating cash flow less |capex|."""
    fcf = get_number(bundle.financial_data, "freeCashflow")
    if fcf is not None:
        return fcf
    ocf = get_number(bundle.cash_flows, "0.totalCashFromOperatingActivities")
    capex = get_number(bundle.cash_flows, "0.capitalExpenditures")
    if ocf is None and capex is None:
        return None
    # Providers disagree on the sign of capex.
    return (ocf or 0.0) - abs(capex or 0.0)


@guarded("free_cash_flow")
def calculate_fcf_yield(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """Free cash flow / market cap, in percent.

    Market cap comes from the quote, else financialData.marketCap.
    The free cash flow used is reported in the ``fcf`` extra.
    """
    fcf = _free_cash_flow(bundle)
    market_cap = quote.market_cap if quote is not None else None
    if not market_cap:
        market_cap = get_number(bundle.financial_data, "marketCap")

    if fcf is None or market_cap is None or market_cap <= 0:
        logger.debug("free_cash_flow: missing FCF or market cap")
        return unavailable()

    return score_value(
        fcf / market_cap * 100, config.ladders["free_cash_flow"], fcf=fcf,
    )


@guarded("price_to_book")
def calculate_price_to_book(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """Price to book (lower is better); falls back to price / bookValue."""
    pb = get_number(bundle.key_statistics, "priceToBook")
    if pb is None:
        book_value = get_number(bundle.key_statistics, "bookValue")
        price = quote.price if quote is not None else None
        if book_value is None or price is None or book_value <= 0:
            logger.debug("price_to_book: no priceToBook and no usable book value")
            return unavailable()
        pb = price / book_value

    return score_value(pb, config.ladders["price_to_book"])


@guarded("intrinsic_value")
def calculate_intrinsic_value(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """Intrinsic value per share, scored on its margin of safety.

    EPS comes from the quote, else keyStatistics.trailingEps; growth from
    financialData.earningsGrowth (defaulted and capped by the DCF config).

    Returns:
        MetricResult whose value is the intrinsic value, with
        margin_of_safety, price and undervalued extras. Unavailable if
        EPS <= 0, the price is missing, or the valuation is not positive.
    """
    eps = quote.eps if quote is not None else None
    # A zero EPS is how providers report a missing one.
    if not eps:
        eps = get_number(bundle.key_statistics, "trailingEps")
    price = quote.price if quote is not None else None

    if eps is None or eps <= 0:
        logger.debug("intrinsic_value: no positive EPS")
        return unavailable()
    if price is None:
        logger.debug("intrinsic_value: no price")
        return unavailable()

    growth = get_number(bundle.financial_data, "earningsGrowth")
    valuation = _dcf_value(eps, growth, config.dcf)
    mos = margin_of_safety(valuation.intrinsic_value, price)
    if mos is None:
        logger.debug(
            "intrinsic_value: non-positive valuation %.4f", valuation.intrinsic_value,
        )
        return unavailable()

    ladder = config.ladders["intrinsic_value"]
    scored = score_value(mos, ladder)
    if not scored.available:
        return scored
    return MetricResult(
        value=valuation.intrinsic_value,
        score=scored.score,
        status=scored.status,
        margin_of_safety=mos,
        price=price,
        undervalued=mos > 0,
    )
