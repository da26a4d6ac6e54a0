"""Shared metric result type, ladder scoring and the calculator guard."""

from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from buffett_score.config import ScoreLadder

logger = logging.getLogger(__name__)


class MetricStatus(str, Enum):
    """Qualitative bucket for a metric sub-score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNAVAILABLE = "unavailable"


_STATUS_BY_SCORE = {
    100: MetricStatus.EXCELLENT,
    80: MetricStatus.GOOD,
    50: MetricStatus.FAIR,
    25: MetricStatus.POOR,
    0: MetricStatus.POOR,
}


@dataclass(frozen=True)
class MetricResult:
    """Outcome of one metric calculator.

    Attributes:
        value: Computed ratio/value in display units (percent for ROE,
            margins, growth and yields). None when unavailable.
        score: Sub-score on the 0-100 ladder. 0 when unavailable.
        status: Qualitative bucket for ``score``.
        threshold: Reference "good" level shown alongside the value.
        lower_is_better: True for leverage and price multiples.
        fcf: Free cash flow used for the yield (FCF yield only).
        margin_of_safety: Percent by which intrinsic value exceeds price
            (intrinsic value only).
        price: Price the margin of safety was measured against.
        undervalued: True when margin_of_safety > 0.
    """

    value: float | None
    score: int
    status: MetricStatus
    threshold: float | None = None
    lower_is_better: bool = False
    fcf: float | None = None
    margin_of_safety: float | None = None
    price: float | None = None
    undervalued: bool | None = None

    @property
    def available(self) -> bool:
        return self.value is not None

    def to_dict(self) -> dict[str, Any]:
        """Render the presentation payload (camelCase, unset extras omitted)."""
        payload: dict[str, Any] = {
            "value": self.value,
            "score": self.score,
            "status": self.status.value,
        }
        if self.threshold is not None:
            payload["threshold"] = self.threshold
        if self.lower_is_better:
            payload["lowerIsBetter"] = True
        for key, val in (
            ("fcf", self.fcf),
            ("marginOfSafety", self.margin_of_safety),
            ("price", self.price),
            ("undervalued", self.undervalued),
        ):
            if val is not None:
                payload[key] = val
        return payload


UNAVAILABLE = MetricResult(value=None, score=0, status=MetricStatus.UNAVAILABLE)


def unavailable() -> MetricResult:
    """The result every calculator degrades to when data is missing."""
    return UNAVAILABLE


def status_for(score: int) -> MetricStatus:
    """Map a ladder score onto its status bucket."""
    return _STATUS_BY_SCORE.get(score, MetricStatus.POOR)


def score_value(
    value: float | None, ladder: ScoreLadder, **extras: Any
) -> MetricResult:
    """Score ``value`` on ``ladder`` and wrap it in a MetricResult.

    A missing or non-finite value yields the unavailable result.
    """
    if value is None or not math.isfinite(value):
        return unavailable()
    score = ladder.score(value)
    return MetricResult(
        value=value,
        score=score,
        status=status_for(score),
        threshold=ladder.threshold,
        lower_is_better=ladder.lower_is_better,
        **extras,
    )


def guarded(name: str) -> Callable[[Callable[..., MetricResult]], Callable[..., MetricResult]]:
    """Convert any exception raised by a calculator into ``unavailable()``."""

    def decorator(func: Callable[..., MetricResult]) -> Callable[..., MetricResult]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> MetricResult:
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.warning(
                    "%s: calculation failed, marking unavailable", name,
                    exc_info=True,
                )
                return unavailable()

        return wrapper

    return decorator
