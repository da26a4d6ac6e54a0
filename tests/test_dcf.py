"""Tests for buffett_score.analysis.dcf."""

from __future__ import annotations

from typing import Any

import pytest

from buffett_score.analysis.dcf import (
    IntrinsicValue,
    calculate_intrinsic_value,
    effective_growth_rate,
    margin_of_safety,
)
from buffett_score.config import DCFConfig

# With growth equal to the discount rate every projected year is worth
# exactly the current EPS, so the model has a closed form:
#   10 * eps + eps * (1 + g_t) / (r - g_t)
CLOSED_FORM_IV = 10 * 5.0 + 5.0 * 1.03 / 0.07


def _config(**overrides: Any) -> DCFConfig:
    kwargs: dict[str, Any] = {
        "discount_rate": 0.10,
        "terminal_growth_rate": 0.03,
        "projection_years": 10,
    }
    kwargs.update(overrides)
    return DCFConfig(**kwargs)


class TestEffectiveGrowthRate:

    def test_default_when_missing(self) -> None:
        assert effective_growth_rate(None, _config()) == 0.10

    def test_capped(self) -> None:
        assert effective_growth_rate(0.60, _config()) == 0.25

    def test_negative_not_floored(self) -> None:
        assert effective_growth_rate(-0.05, _config()) == -0.05


class TestCalculateIntrinsicValue:

    def test_returns_intrinsic_value(self) -> None:
        result = calculate_intrinsic_value(5.0, 0.10, _config())
        assert isinstance(result, IntrinsicValue)
        assert len(result.projected_eps) == 10

    def test_closed_form(self) -> None:
        result = calculate_intrinsic_value(5.0, 0.10, _config())
        assert result.pv_projected == pytest.approx(50.0)
        assert result.terminal_pv == pytest.approx(5.0 * 1.03 / 0.07)
        assert result.intrinsic_value == pytest.approx(CLOSED_FORM_IV)

    def test_components_sum(self) -> None:
        result = calculate_intrinsic_value(3.2, 0.07, _config())
        assert result.intrinsic_value == pytest.approx(
            result.pv_projected + result.terminal_pv
        )

    def test_terminal_value_on_final_year(self) -> None:
        result = calculate_intrinsic_value(2.0, 0.05, _config())
        expected = result.projected_eps[-1] * 1.03 / 0.07
        assert result.terminal_value == pytest.approx(expected)
        assert result.terminal_pv == pytest.approx(expected / 1.1 ** 10)

    def test_growth_capped(self) -> None:
        capped = calculate_intrinsic_value(5.0, 0.90, _config())
        at_cap = calculate_intrinsic_value(5.0, 0.25, _config())
        assert capped.growth_rate == 0.25
        assert capped.intrinsic_value == pytest.approx(at_cap.intrinsic_value)

    def test_missing_growth_uses_default(self) -> None:
        result = calculate_intrinsic_value(5.0, None, _config())
        assert result.growth_rate == 0.10
        assert result.intrinsic_value == pytest.approx(CLOSED_FORM_IV)

    def test_higher_growth_higher_value(self) -> None:
        low = calculate_intrinsic_value(5.0, 0.02, _config())
        high = calculate_intrinsic_value(5.0, 0.15, _config())
        assert high.intrinsic_value > low.intrinsic_value

    def test_non_positive_eps_raises(self) -> None:
        with pytest.raises(ValueError, match="EPS must be positive"):
            calculate_intrinsic_value(0.0, 0.10, _config())

    def test_horizon_respected(self) -> None:
        result = calculate_intrinsic_value(1.0, 0.05, _config(projection_years=5))
        assert len(result.projected_eps) == 5
        assert result.projected_eps[-1] == pytest.approx(1.05 ** 5)


class TestMarginOfSafety:

    def test_positive_when_price_below_value(self) -> None:
        assert margin_of_safety(100.0, 70.0) == pytest.approx(30.0)

    def test_negative_when_price_above_value(self) -> None:
        assert margin_of_safety(100.0, 120.0) == pytest.approx(-20.0)

    def test_non_positive_value(self) -> None:
        assert margin_of_safety(0.0, 50.0) is None
        assert margin_of_safety(-10.0, 50.0) is None
