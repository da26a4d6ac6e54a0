"""Profitability metrics: return on equity and net profit margin."""

from __future__ import annotations

import logging

from buffett_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from buffett_score.data.extract import get_number
from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricResult, guarded, score_value, unavailable

logger = logging.getLogger(__name__)


@guarded("roe")
def calculate_roe(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """Return on equity, in percent.

    Prefers the provider's returnOnEquity fraction. Falls back to latest
    net income / latest shareholders' equity.

    Args:
        bundle: Statement bundle.
        quote: Unused; accepted for a uniform calculator signature.
        config: Scoring configuration.

    Returns:
        MetricResult scored on the ROE ladder (>= 20% excellent).
    """
    roe = get_number(bundle.financial_data, "returnOnEquity")
    if roe is None:
        net_income = get_number(bundle.financial_data, "netIncomeToCommon")
        if not net_income:
            net_income = get_number(bundle.income_statements, "0.netIncome")
        equity = get_number(bundle.balance_sheets, "0.totalStockholderEquity")
        if net_income is None or equity is None or equity <= 0:
            logger.debug("roe: no returnOnEquity and no usable equity")
            return unavailable()
        logger.debug("roe: computed from statements")
        roe = net_income / equity

    return score_value(roe * 100, config.ladders["roe"])


@guarded("profit_margin")
def calculate_profit_margin(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """Net profit margin, in percent.

    Prefers profitMargins; falls back to net income / revenue from the
    latest income statement (or the financialData absolutes).
    """
    margin = get_number(bundle.financial_data, "profitMargins")
    if margin is None:
        net_income = get_number(bundle.income_statements, "0.netIncome")
        if not net_income:
            net_income = get_number(bundle.financial_data, "netIncomeToCommon")
        revenue = get_number(bundle.income_statements, "0.totalRevenue")
        if not revenue:
            revenue = get_number(bundle.financial_data, "totalRevenue")
        if net_income is None or revenue is None or revenue <= 0:
            logger.debug("profit_margin: no profitMargins and no usable revenue")
            return unavailable()
        margin = net_income / revenue

    return score_value(margin * 100, config.ladders["profit_margin"])
