"""Growth metric: EPS compound annual growth rate."""

from __future__ import annotations

import logging

from buffett_score.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from buffett_score.data.extract import get_number
from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricResult, guarded, score_value, unavailable

logger = logging.getLogger(__name__)

# Quarterly history needs at least a year of reports to be used.
MIN_QUARTERLY_POINTS = 4
MIN_YEARLY_STATEMENTS = 2
QUARTERS_PER_YEAR = 4


def cagr(start: float, end: float, years: float) -> float | None:
    """Compound annual growth rate as a fraction.

    Args:
        start: Value at the beginning of the period. Must be positive.
        end: Value at the end of the period.
        years: Length of the period in years. Must be positive.

    Returns:
        (end / start) ** (1 / years) - 1, or None when start <= 0,
        years <= 0, or end / start is not positive (no real root).
    """
    if start <= 0 or years <= 0:
        return None
    ratio = end / start
    if ratio <= 0:
        return None
    return ratio ** (1 / years) - 1


def _history_cagr(
    records: list[dict], field: str, years: float
) -> float | None:
    latest = get_number(records, f"0.{field}")
    oldest = get_number(records, f"{len(records) - 1}.{field}")
    if latest is None or oldest is None:
        return None
    return cagr(oldest, latest, years)


@guarded("eps_growth")
def calculate_eps_growth(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> MetricResult:
    """EPS growth in percent.

    Sources, in order:
        1. financialData.earningsGrowth.
        2. CAGR over quarterly earnings history (>= 4 reports), treating
           report count / 4 as the number of years.
        3. CAGR over yearly diluted EPS (>= 2 statements), treating the
           statement count as the number of years.

    Args:
        bundle: Statement bundle.
        quote: Unused; accepted for a uniform calculator signature.
        config: Scoring configuration.

    Returns:
        MetricResult scored on the growth ladder (>= 15% excellent).
    """
    ladder = config.ladders["eps_growth"]

    growth = get_number(bundle.financial_data, "earningsGrowth")
    if growth is not None:
        return score_value(growth * 100, ladder)

    history = bundle.earnings_history
    if len(history) >= MIN_QUARTERLY_POINTS:
        years = len(history) / QUARTERS_PER_YEAR
        growth = _history_cagr(history, "epsActual", years)
        source = "quarterly earnings"
    else:
        statements = bundle.income_statements
        if len(statements) < MIN_YEARLY_STATEMENTS:
            logger.debug("eps_growth: insufficient EPS history")
            return unavailable()
        growth = _history_cagr(statements, "dilutedEPS", len(statements))
        source = "yearly statements"

    if growth is None:
        logger.debug("eps_growth: no usable EPS endpoints in %s", source)
        return unavailable()

    logger.debug("eps_growth: CAGR from %s", source)
    return score_value(growth * 100, ladder)
