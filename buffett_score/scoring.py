"""Composite Buffett score: weighted sub-scores and a recommendation tier.

The composite is renormalised over metrics that reported a value, so a
symbol with sparse data is scored only on what it has. Scores of symbols
with different data coverage are therefore not directly comparable.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from buffett_score.config import (
    DEFAULT_SCORING_CONFIG,
    METRIC_NAMES,
    PASS_RECOMMENDATION,
    UNAVAILABLE_RECOMMENDATION,
    ScoringConfig,
)
from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricResult
from buffett_score.metrics.growth import calculate_eps_growth
from buffett_score.metrics.profitability import calculate_profit_margin, calculate_roe
from buffett_score.metrics.safety import calculate_current_ratio, calculate_debt_to_equity
from buffett_score.metrics.valuation import (
    calculate_fcf_yield,
    calculate_intrinsic_value,
    calculate_price_to_book,
)

logger = logging.getLogger(__name__)

Calculator = Callable[..., MetricResult]

CALCULATORS: dict[str, Calculator] = {
    "roe": calculate_roe,
    "debt_to_equity": calculate_debt_to_equity,
    "profit_margin": calculate_profit_margin,
    "current_ratio": calculate_current_ratio,
    "eps_growth": calculate_eps_growth,
    "free_cash_flow": calculate_fcf_yield,
    "price_to_book": calculate_price_to_book,
    "intrinsic_value": calculate_intrinsic_value,
}

# Payload keys used by the presentation layer.
PAYLOAD_KEYS: dict[str, str] = {
    "roe": "roe",
    "debt_to_equity": "debtToEquity",
    "profit_margin": "profitMargin",
    "current_ratio": "currentRatio",
    "eps_growth": "epsGrowth",
    "free_cash_flow": "freeCashFlow",
    "price_to_book": "priceToBook",
    "intrinsic_value": "intrinsicValue",
}


@dataclass(frozen=True)
class BuffettScoreResult:
    """Composite score for one symbol.

    Attributes:
        score: Weighted composite, integer 0-100.
        recommendation: strongBuy, consider, hold, pass or unavailable.
        recommendation_text: Human-readable recommendation.
        metrics: MetricResult per metric name (empty when unavailable).
        available_metrics: Metrics that reported a value.
        total_metrics: Number of metrics in the model.
    """

    score: int
    recommendation: str
    recommendation_text: str
    metrics: dict[str, MetricResult] = field(default_factory=dict)
    available_metrics: int = 0
    total_metrics: int = len(METRIC_NAMES)

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase payload consumed by the presentation layer."""
        return {
            "score": self.score,
            "recommendation": self.recommendation,
            "recommendationText": self.recommendation_text,
            "metrics": {
                PAYLOAD_KEYS[name]: metric.to_dict()
                for name, metric in self.metrics.items()
            },
            "availableMetrics": self.available_metrics,
            "totalMetrics": self.total_metrics,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def recommend(
    score: int, config: ScoringConfig = DEFAULT_SCORING_CONFIG
) -> tuple[str, str]:
    """Map a composite score onto (recommendation, text), highest tier first."""
    for minimum, recommendation, text in config.recommendation_tiers:
        if score >= minimum:
            return recommendation, text
    return PASS_RECOMMENDATION


def composite_score(
    metrics: dict[str, MetricResult],
    weights: Mapping[str, float],
) -> int:
    """Weighted mean of sub-scores over metrics that reported a value.

    Returns:
        Rounded score in [0, 100]; 0 if no metric has a value.
    """
    total_score = 0.0
    total_weight = 0.0
    for name, metric in metrics.items():
        if metric.value is None:
            continue
        weight = weights[name]
        total_score += metric.score * weight
        total_weight += weight
    if total_weight <= 0:
        return 0
    return _round_half_up(total_score / total_weight)


def unavailable_result() -> BuffettScoreResult:
    """Sentinel returned when no financial data was fetched at all."""
    recommendation, text = UNAVAILABLE_RECOMMENDATION
    return BuffettScoreResult(
        score=0,
        recommendation=recommendation,
        recommendation_text=text,
        metrics={},
        available_metrics=0,
        total_metrics=len(METRIC_NAMES),
    )


def calculate_metrics(
    bundle: FinancialBundle,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> dict[str, MetricResult]:
    """Run every metric calculator. Calculators never raise."""
    return {
        name: CALCULATORS[name](bundle, quote, config) for name in METRIC_NAMES
    }


def calculate_buffett_score(
    bundle: FinancialBundle | None,
    quote: Quote | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> BuffettScoreResult:
    """Score one symbol on the eight value-investing metrics.

    Args:
        bundle: Fetched statement bundle, or None if nothing was fetched.
        quote: Latest quote (price, market cap, EPS), if available.
        config: Weights, ladders and DCF parameters.

    Returns:
        BuffettScoreResult. Never raises for missing or malformed data.
    """
    if bundle is None:
        return unavailable_result()

    metrics = calculate_metrics(bundle, quote, config)
    score = composite_score(metrics, config.weights)
    recommendation, text = recommend(score, config)
    available = sum(1 for m in metrics.values() if m.value is not None)

    logger.debug(
        "%s: score %d (%s) from %d/%d metrics",
        bundle.symbol or "<bundle>", score, recommendation, available, len(metrics),
    )
    return BuffettScoreResult(
        score=score,
        recommendation=recommendation,
        recommendation_text=text,
        metrics=metrics,
        available_metrics=available,
        total_metrics=len(metrics),
    )
