"""Discounted-EPS intrinsic value.

Projects trailing EPS forward at a capped growth rate, discounts each
year to present value, and adds a Gordon Growth terminal value on the
final projected year.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from buffett_score.config import DCFConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntrinsicValue:
    """Per-share intrinsic value estimate with its supporting detail."""

    eps: float
    growth_rate: float
    projected_eps: tuple[float, ...]
    pv_projected: float
    terminal_value: float
    terminal_pv: float
    intrinsic_value: float
    discount_rate: float
    terminal_growth_rate: float


def effective_growth_rate(growth_rate: float | None, config: DCFConfig) -> float:
    """Default a missing growth rate and cap it at the configured maximum."""
    if growth_rate is None:
        growth_rate = config.default_growth_rate
    return min(growth_rate, config.max_growth_rate)


def calculate_intrinsic_value(
    eps: float,
    growth_rate: float | None,
    config: DCFConfig,
) -> IntrinsicValue:
    """Value one share from trailing EPS.

    Args:
        eps: Trailing twelve-month EPS. Must be positive.
        growth_rate: Annual EPS growth as a fraction, or None for the
            configured default. Capped at ``config.max_growth_rate``.
        config: Discount rate, terminal growth and horizon.

    Returns:
        IntrinsicValue for the share.

    Raises:
        ValueError: If eps is not positive.
    """
    if eps <= 0:
        raise ValueError(f"EPS must be positive for a DCF valuation, got {eps}")

    growth = effective_growth_rate(growth_rate, config)
    rate = config.discount_rate

    projected: list[float] = []
    pv_projected = 0.0
    for year in range(1, config.projection_years + 1):
        future_eps = eps * (1 + growth) ** year
        projected.append(future_eps)
        pv_projected += future_eps / (1 + rate) ** year

    terminal_eps = projected[-1]
    terminal_value = (terminal_eps * (1 + config.terminal_growth_rate)) / (
        rate - config.terminal_growth_rate
    )
    terminal_pv = terminal_value / (1 + rate) ** config.projection_years

    return IntrinsicValue(
        eps=eps,
        growth_rate=growth,
        projected_eps=tuple(projected),
        pv_projected=pv_projected,
        terminal_value=terminal_value,
        terminal_pv=terminal_pv,
        intrinsic_value=pv_projected + terminal_pv,
        discount_rate=rate,
        terminal_growth_rate=config.terminal_growth_rate,
    )


def margin_of_safety(intrinsic_value: float, price: float) -> float | None:
    """Percent by which intrinsic value exceeds price.

    Returns:
        (IV - price) / IV * 100, or None if IV <= 0.
    """
    if intrinsic_value <= 0:
        return None
    return (intrinsic_value - price) / intrinsic_value * 100
