"""Safety metrics: leverage (debt to equity) and liquidity (current ratio)."""

from __future__ import annotations

import logging

from buffett_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from buffett_score.data.extract import get_number
from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricResult, guarded, score_value, unavailable

logger = logging.getLogger(__name__)


def _total_debt(bundle: FinancialBundle) -> float | None:
    """Total debt from financialData, else long + short term balance sheet debt.

    Returns None only when no debt figure is reported at all.
    """
    total = get_number(bundle.financial_data, "totalDebt")
    if total is not None:
        return total
    long_term = get_number(bundle.balance_sheets, "0.longTermDebt")
    short_term = get_number(bundle.balance_sheets, "0.shortLongTermDebt")
    if long_term is None and short_term is None:
        return None
    return (long_term or 0.0) + (short_term or 0.0)


@guarded("debt_to_equity")
def calculate_debt_to_equity(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """Debt to equity as a plain ratio (lower is better).

    The provider reports debtToEquity as a percentage (102.63 for a ratio
    of 1.0263) for most symbols; preferred values above the configured
    cutoff are divided by 100. A ratio genuinely above the cutoff is
    misread by this rule.

    Args:
        bundle: Statement bundle.
        quote: Unused; accepted for a uniform calculator signature.
        config: Scoring configuration.

    Returns:
        MetricResult scored on the leverage ladder (<= 0.3 excellent).
    """
    ratio = get_number(bundle.financial_data, "debtToEquity")
    if ratio is not None:
        if ratio > config.debt_to_equity_percent_cutoff:
            ratio = ratio / 100
    else:
        debt = _total_debt(bundle)
        equity = get_number(bundle.balance_sheets, "0.totalStockholderEquity")
        if debt is None or equity is None or equity <= 0:
            logger.debug("debt_to_equity: no debtToEquity and no usable equity")
            return unavailable()
        logger.debug("debt_to_equity: computed from statements")
        ratio = debt / equity

    return score_value(ratio, config.ladders["debt_to_equity"])


@guarded("current_ratio")
def calculate_current_ratio(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """Current assets / current liabilities."""
    ratio = get_number(bundle.financial_data, "currentRatio")
    if ratio is None:
        assets = get_number(bundle.balance_sheets, "0.totalCurrentAssets")
        liabilities = get_number(bundle.balance_sheets, "0.totalCurrentLiabilities")
        if assets is None or liabilities is None or liabilities <= 0:
            logger.debug("current_ratio: no usable current liabilities")
            return unavailable()
        ratio = assets / liabilities

    return score_value(ratio, config.ladders["current_ratio"])
