"""Tests for buffett_score.metrics.valuation."""

from __future__ import annotations

import pytest

from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricStatus
from buffett_score.metrics.valuation import (
    calculate_fcf_yield,
    calculate_intrinsic_value,
    calculate_price_to_book,
)

CLOSED_FORM_IV = 10 * 5.0 + 5.0 * 1.03 / 0.07


class TestFcfYield:

    def test_preferred_fcf_over_quote_market_cap(self) -> None:
        bundle = FinancialBundle(financial_data={"freeCashflow": 90.0})
        result = calculate_fcf_yield(bundle, Quote(market_cap=1000.0))
        assert result.value == pytest.approx(9.0)
        assert result.score == 100
        assert result.fcf == 90.0
        assert result.threshold == 5.0

    def test_fallback_cash_flow_statement(self) -> None:
        bundle = FinancialBundle(
            cash_flows=[{
                "totalCashFromOperatingActivities": 120.0,
                "capitalExpenditures": -60.0,
            }],
        )
        result = calculate_fcf_yield(bundle, Quote(market_cap=2000.0))
        assert result.fcf == pytest.approx(60.0)
        assert result.value == pytest.approx(3.0)
        assert result.score == 50

    def test_capex_sign_ignored(self) -> None:
        negative = FinancialBundle(cash_flows=[{
            "totalCashFromOperatingActivities": 100.0, "capitalExpenditures": -40.0,
        }])
        positive = FinancialBundle(cash_flows=[{
            "totalCashFromOperatingActivities": 100.0, "capitalExpenditures": 40.0,
        }])
        quote = Quote(market_cap=1000.0)
        assert calculate_fcf_yield(negative, quote) == calculate_fcf_yield(positive, quote)

    def test_market_cap_from_financial_data(self) -> None:
        bundle = FinancialBundle(
            financial_data={"freeCashflow": 10.0, "marketCap": 1000.0},
        )
        assert calculate_fcf_yield(bundle).value == pytest.approx(1.0)

    def test_negative_fcf_available_scores_zero(self) -> None:
        bundle = FinancialBundle(financial_data={"freeCashflow": -10.0})
        result = calculate_fcf_yield(bundle, Quote(market_cap=1000.0))
        assert result.value == pytest.approx(-1.0)
        assert result.score == 0
        assert result.status is MetricStatus.POOR

    def test_zero_quote_market_cap_falls_back(self) -> None:
        bundle = FinancialBundle(
            financial_data={"freeCashflow": 50.0, "marketCap": 1000.0},
        )
        result = calculate_fcf_yield(bundle, Quote(market_cap=0.0))
        assert result.value == pytest.approx(5.0)

    def test_no_market_cap_unavailable(self) -> None:
        bundle = FinancialBundle(financial_data={"freeCashflow": 10.0})
        assert calculate_fcf_yield(bundle, Quote()).status is MetricStatus.UNAVAILABLE

    def test_no_cash_flow_unavailable(self) -> None:
        result = calculate_fcf_yield(FinancialBundle(), Quote(market_cap=1000.0))
        assert result.value is None
        assert result.fcf is None


class TestPriceToBook:

    def test_preferred(self) -> None:
        bundle = FinancialBundle(key_statistics={"priceToBook": 1.2})
        result = calculate_price_to_book(bundle)
        assert result.score == 80
        assert result.lower_is_better is True
        assert result.threshold == 1.5

    @pytest.mark.parametrize(
        ("pb", "score"),
        [(0.8, 100), (1.0, 100), (1.5, 80), (3.0, 50), (5.0, 25), (5.1, 0)],
    )
    def test_ladder(self, pb: float, score: int) -> None:
        bundle = FinancialBundle(key_statistics={"priceToBook": pb})
        assert calculate_price_to_book(bundle).score == score

    def test_fallback_price_over_book(self) -> None:
        bundle = FinancialBundle(key_statistics={"bookValue": 40.0})
        result = calculate_price_to_book(bundle, Quote(price=100.0))
        assert result.value == pytest.approx(2.5)
        assert result.score == 50

    def test_fallback_needs_price(self) -> None:
        bundle = FinancialBundle(key_statistics={"bookValue": 40.0})
        assert calculate_price_to_book(bundle).status is MetricStatus.UNAVAILABLE

    def test_negative_book_value_unavailable(self) -> None:
        bundle = FinancialBundle(key_statistics={"bookValue": -4.0})
        result = calculate_price_to_book(bundle, Quote(price=100.0))
        assert result.status is MetricStatus.UNAVAILABLE


class TestIntrinsicValue:

    def test_undervalued(self) -> None:
        bundle = FinancialBundle(financial_data={"earningsGrowth": 0.10})
        result = calculate_intrinsic_value(bundle, Quote(price=80.0, eps=5.0))
        assert result.value == pytest.approx(CLOSED_FORM_IV)
        expected_mos = (CLOSED_FORM_IV - 80.0) / CLOSED_FORM_IV * 100
        assert result.margin_of_safety == pytest.approx(expected_mos)
        assert result.price == 80.0
        assert result.undervalued is True
        assert result.score == 100
        assert result.status is MetricStatus.EXCELLENT

    def test_undervalued_flips_around_intrinsic_value(self) -> None:
        bundle = FinancialBundle(financial_data={"earningsGrowth": 0.10})
        iv = calculate_intrinsic_value(bundle, Quote(price=80.0, eps=5.0)).value
        assert iv is not None

        below = calculate_intrinsic_value(bundle, Quote(price=iv - 1, eps=5.0))
        at = calculate_intrinsic_value(bundle, Quote(price=iv, eps=5.0))
        above = calculate_intrinsic_value(bundle, Quote(price=iv + 1, eps=5.0))

        assert below.undervalued is True
        assert at.undervalued is False
        assert at.margin_of_safety == 0.0
        assert at.score == 50
        assert above.undervalued is False
        assert above.score == 25

    def test_overvalued_beyond_twenty_percent(self) -> None:
        bundle = FinancialBundle(financial_data={"earningsGrowth": 0.10})
        result = calculate_intrinsic_value(bundle, Quote(price=200.0, eps=5.0))
        assert result.margin_of_safety is not None
        assert result.margin_of_safety < -20
        assert result.score == 0
        assert result.status is MetricStatus.POOR
        assert result.value is not None

    def test_trailing_eps_fallback(self) -> None:
        bundle = FinancialBundle(key_statistics={"trailingEps": 5.0})
        result = calculate_intrinsic_value(bundle, Quote(price=80.0))
        # Missing growth defaults to 10%.
        assert result.value == pytest.approx(CLOSED_FORM_IV)

    def test_negative_eps_unavailable(self) -> None:
        result = calculate_intrinsic_value(
            FinancialBundle(), Quote(price=80.0, eps=-1.0),
        )
        assert result.status is MetricStatus.UNAVAILABLE

    def test_missing_price_unavailable(self) -> None:
        result = calculate_intrinsic_value(FinancialBundle(), Quote(eps=5.0))
        assert result.value is None
        assert result.margin_of_safety is None

    def test_zero_quote_eps_falls_back_to_trailing(self) -> None:
        bundle = FinancialBundle(key_statistics={"trailingEps": 5.0})
        result = calculate_intrinsic_value(bundle, Quote(price=80.0, eps=0.0))
        assert result.value == pytest.approx(CLOSED_FORM_IV)
        assert result.undervalued is True

    def test_zero_eps_everywhere_unavailable(self) -> None:
        bundle = FinancialBundle(key_statistics={"trailingEps": 0.0})
        result = calculate_intrinsic_value(bundle, Quote(price=80.0, eps=0.0))
        assert result.status is MetricStatus.UNAVAILABLE

    def test_no_quote_unavailable(self) -> None:
        bundle = FinancialBundle(key_statistics={"trailingEps": 5.0})
        assert calculate_intrinsic_value(bundle).status is MetricStatus.UNAVAILABLE

    def test_total_earnings_collapse_unavailable(self) -> None:
        bundle = FinancialBundle(financial_data={"earningsGrowth": -1.0})
        result = calculate_intrinsic_value(bundle, Quote(price=10.0, eps=5.0))
        assert result.status is MetricStatus.UNAVAILABLE
