"""Tests for buffett_score.scoring."""

from __future__ import annotations

import pytest

from buffett_score.config import DEFAULT_SCORING_CONFIG, METRIC_NAMES, ScoringConfig
from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricResult, MetricStatus, unavailable
from buffett_score.scoring import (
    BuffettScoreResult,
    calculate_buffett_score,
    composite_score,
    recommend,
)


def _metric(score: int, value: float = 1.0) -> MetricResult:
    return MetricResult(value=value, score=score, status=MetricStatus.GOOD)


def _metrics(**scored: int) -> dict[str, MetricResult]:
    """Every metric unavailable except those given as name=score."""
    return {
        name: _metric(scored[name]) if name in scored else unavailable()
        for name in METRIC_NAMES
    }


def _strong_bundle() -> tuple[FinancialBundle, Quote]:
    bundle = FinancialBundle(
        financial_data={
            "returnOnEquity": {"raw": 0.25},
            "debtToEquity": 20.0,
            "profitMargins": 0.25,
            "currentRatio": 2.5,
            "earningsGrowth": 0.20,
            "freeCashflow": 100.0,
        },
        key_statistics={"priceToBook": 0.8},
        symbol="VAL",
    )
    return bundle, Quote(symbol="VAL", price=80.0, eps=5.0, market_cap=1000.0)


class TestCompositeScore:

    def test_renormalises_over_available(self) -> None:
        metrics = _metrics(roe=100, debt_to_equity=80)
        assert composite_score(metrics, DEFAULT_SCORING_CONFIG.weights) == 90

    def test_nothing_available(self) -> None:
        assert composite_score(_metrics(), DEFAULT_SCORING_CONFIG.weights) == 0

    def test_available_zero_score_counts(self) -> None:
        metrics = _metrics(roe=100, debt_to_equity=0)
        assert composite_score(metrics, DEFAULT_SCORING_CONFIG.weights) == 50

    def test_rounds_half_up(self) -> None:
        weights = {name: 1.0 for name in METRIC_NAMES}
        metrics = _metrics(roe=50, debt_to_equity=25)
        # (50 + 25) / 2 = 37.5
        assert composite_score(metrics, weights) == 38

    def test_weighted(self) -> None:
        metrics = _metrics(roe=100, current_ratio=50)
        # (100 * .15 + 50 * .10) / .25 = 80
        assert composite_score(metrics, DEFAULT_SCORING_CONFIG.weights) == 80


class TestRecommend:

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (100, "strongBuy"),
            (80, "strongBuy"),
            (79, "consider"),
            (60, "consider"),
            (59, "hold"),
            (40, "hold"),
            (39, "pass"),
            (0, "pass"),
        ],
    )
    def test_tiers(self, score: int, expected: str) -> None:
        assert recommend(score)[0] == expected

    def test_texts(self) -> None:
        assert recommend(85)[1] == "Strong Buy - Excellent value investment"
        assert recommend(10)[1] == "Pass - Does not meet value criteria"


class TestCalculateBuffettScore:

    def test_none_bundle_is_unavailable(self) -> None:
        result = calculate_buffett_score(None)
        assert result.score == 0
        assert result.recommendation == "unavailable"
        assert result.recommendation_text == (
            "Unable to calculate - No financial data available"
        )
        assert result.metrics == {}
        assert result.available_metrics == 0
        assert result.total_metrics == 8

    def test_empty_bundle_is_pass(self) -> None:
        result = calculate_buffett_score(FinancialBundle())
        assert result.score == 0
        assert result.recommendation == "pass"
        assert result.available_metrics == 0
        assert result.total_metrics == 8
        assert set(result.metrics) == set(METRIC_NAMES)
        assert all(
            m.status is MetricStatus.UNAVAILABLE for m in result.metrics.values()
        )

    def test_two_metric_bundle(self) -> None:
        bundle = FinancialBundle(
            financial_data={"returnOnEquity": 0.22, "debtToEquity": 0.4},
        )
        result = calculate_buffett_score(bundle)
        assert result.metrics["roe"].score == 100
        assert result.metrics["debt_to_equity"].score == 80
        assert result.available_metrics == 2
        assert result.score == 90
        assert result.recommendation == "strongBuy"

    def test_all_metrics_available(self) -> None:
        bundle, quote = _strong_bundle()
        result = calculate_buffett_score(bundle, quote)
        assert result.available_metrics == 8
        assert result.total_metrics == 8
        assert result.score == 100
        assert result.recommendation == "strongBuy"

    def test_without_quote_valuation_degrades(self) -> None:
        bundle, _ = _strong_bundle()
        result = calculate_buffett_score(bundle)
        assert result.metrics["intrinsic_value"].status is MetricStatus.UNAVAILABLE
        assert result.metrics["free_cash_flow"].status is MetricStatus.UNAVAILABLE
        assert result.available_metrics == 6

    def test_idempotent(self) -> None:
        bundle, quote = _strong_bundle()
        assert calculate_buffett_score(bundle, quote) == calculate_buffett_score(
            bundle, quote
        )

    def test_malformed_bundle_never_raises(self) -> None:
        bundle = FinancialBundle(
            financial_data={"returnOnEquity": "lots", "currentRatio": {"raw": None}},
            balance_sheets=[{"totalStockholderEquity": [1, 2]}],
            earnings_history=[{"epsActual": float("nan")}] * 4,
        )
        result = calculate_buffett_score(bundle, Quote(price=float("inf")))
        assert 0 <= result.score <= 100
        assert result.available_metrics == 0

    def test_value_none_iff_unavailable(self) -> None:
        bundle, quote = _strong_bundle()
        bundle.financial_data["currentRatio"] = 0.5
        result = calculate_buffett_score(bundle, quote)
        for metric in result.metrics.values():
            assert (metric.value is None) == (
                metric.status is MetricStatus.UNAVAILABLE
            )
            if metric.value is None:
                assert metric.score == 0
        assert result.metrics["current_ratio"].score == 0
        assert result.metrics["current_ratio"].status is MetricStatus.POOR

    def test_custom_weights(self) -> None:
        weights = {name: 0.0 for name in METRIC_NAMES}
        weights["debt_to_equity"] = 1.0
        config = ScoringConfig(weights=weights)
        bundle = FinancialBundle(
            financial_data={"returnOnEquity": 0.22, "debtToEquity": 0.4},
        )
        assert calculate_buffett_score(bundle, config=config).score == 80


class TestResultPayload:

    def test_camel_case_keys(self) -> None:
        bundle, quote = _strong_bundle()
        payload = calculate_buffett_score(bundle, quote).to_dict()
        assert set(payload) == {
            "score",
            "recommendation",
            "recommendationText",
            "metrics",
            "availableMetrics",
            "totalMetrics",
        }
        assert set(payload["metrics"]) == {
            "roe",
            "debtToEquity",
            "profitMargin",
            "currentRatio",
            "epsGrowth",
            "freeCashFlow",
            "priceToBook",
            "intrinsicValue",
        }

    def test_metric_extras(self) -> None:
        bundle, quote = _strong_bundle()
        metrics = calculate_buffett_score(bundle, quote).to_dict()["metrics"]
        assert metrics["debtToEquity"]["lowerIsBetter"] is True
        assert "lowerIsBetter" not in metrics["roe"]
        assert metrics["freeCashFlow"]["fcf"] == 100.0
        assert metrics["intrinsicValue"]["undervalued"] is True
        assert metrics["intrinsicValue"]["price"] == 80.0
        assert "threshold" not in metrics["intrinsicValue"]

    def test_unavailable_payload(self) -> None:
        payload = calculate_buffett_score(None).to_dict()
        assert payload["metrics"] == {}
        assert payload["totalMetrics"] == 8

    def test_result_is_frozen(self) -> None:
        result = BuffettScoreResult(score=1, recommendation="pass", recommendation_text="")
        with pytest.raises(AttributeError):
            result.score = 2  # type: ignore[misc]
