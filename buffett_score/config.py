"""Scoring configuration dataclasses and default tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

METRIC_NAMES: tuple[str, ...] = (
    "roe",
    "debt_to_equity",
    "profit_margin",
    "current_ratio",
    "eps_growth",
    "free_cash_flow",
    "price_to_book",
    "intrinsic_value",
)

# Relative weights, renormalised over the metrics that report a value.
METRIC_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "roe": 0.15,
    "debt_to_equity": 0.15,
    "profit_margin": 0.10,
    "current_ratio": 0.10,
    "eps_growth": 0.15,
    "free_cash_flow": 0.10,
    "price_to_book": 0.10,
    "intrinsic_value": 0.15,
})

# Key under which the data provider wraps numeric leaves ({"raw": 1.5}).
WRAPPED_VALUE_KEY = "raw"

# Preferred debt/equity values above this are assumed to be percentages.
DEBT_TO_EQUITY_PERCENT_CUTOFF: float = 5.0


@dataclass(frozen=True)
class Rung:
    """One step of a score ladder.

    Attributes:
        bound: Threshold the metric value is compared against.
        score: Sub-score awarded when the comparison holds.
        inclusive: True for >= / <=, False for strict > / <.
    """

    bound: float
    score: int
    inclusive: bool = True


@dataclass(frozen=True)
class ScoreLadder:
    """Ordered thresholds mapping a metric value onto a sub-score.

    Rungs are evaluated best-first; the first rung the value satisfies
    wins. A value satisfying no rung scores 0.
    """

    rungs: tuple[Rung, ...]
    lower_is_better: bool = False
    threshold: float | None = None

    def __post_init__(self) -> None:
        if not self.rungs:
            raise ValueError("ScoreLadder requires at least one rung")
        scores = [r.score for r in self.rungs]
        if scores != sorted(scores, reverse=True):
            raise ValueError(f"Rung scores must be descending, got {scores}")

    def score(self, value: float) -> int:
        """Return the sub-score for ``value``."""
        for rung in self.rungs:
            if self.lower_is_better:
                hit = value <= rung.bound if rung.inclusive else value < rung.bound
            else:
                hit = value >= rung.bound if rung.inclusive else value > rung.bound
            if hit:
                return rung.score
        return 0


def _ladder(
    bounds: tuple[float, ...],
    scores: tuple[int, ...] = (100, 80, 50, 25),
    lower_is_better: bool = False,
    threshold: float | None = None,
    strict_last: bool = False,
) -> ScoreLadder:
    rungs = [Rung(b, s) for b, s in zip(bounds, scores)]
    if strict_last:
        rungs[-1] = Rung(rungs[-1].bound, rungs[-1].score, inclusive=False)
    return ScoreLadder(
        rungs=tuple(rungs), lower_is_better=lower_is_better, threshold=threshold,
    )


METRIC_LADDERS: Mapping[str, ScoreLadder] = MappingProxyType({
    "roe": _ladder((20.0, 15.0, 10.0, 5.0), threshold=15.0),
    "debt_to_equity": _ladder(
        (0.3, 0.5, 1.0, 2.0), lower_is_better=True, threshold=0.5,
    ),
    "profit_margin": _ladder((20.0, 10.0, 5.0, 0.0), threshold=10.0, strict_last=True),
    "current_ratio": _ladder((2.0, 1.5, 1.0), scores=(100, 80, 50), threshold=1.5),
    "eps_growth": _ladder((15.0, 10.0, 5.0, 0.0), threshold=10.0, strict_last=True),
    "free_cash_flow": _ladder((8.0, 5.0, 2.0, 0.0), threshold=5.0, strict_last=True),
    "price_to_book": _ladder(
        (1.0, 1.5, 3.0, 5.0), lower_is_better=True, threshold=1.5,
    ),
    # Scored on margin of safety (percent), not on the intrinsic value itself.
    "intrinsic_value": _ladder((30.0, 15.0, 0.0, -20.0)),
})

# (minimum composite score, recommendation, display text), highest first.
RECOMMENDATION_TIERS: tuple[tuple[int, str, str], ...] = (
    (80, "strongBuy", "Strong Buy - Excellent value investment"),
    (60, "consider", "Consider - Good potential, do more research"),
    (40, "hold", "Hold - Fair value, not compelling"),
)
PASS_RECOMMENDATION = ("pass", "Pass - Does not meet value criteria")
UNAVAILABLE_RECOMMENDATION = (
    "unavailable",
    "Unable to calculate - No financial data available",
)


@dataclass(frozen=True)
class DCFConfig:
    """Discounted-EPS intrinsic value parameters."""

    discount_rate: float = 0.10
    terminal_growth_rate: float = 0.03
    projection_years: int = 10
    default_growth_rate: float = 0.10
    max_growth_rate: float = 0.25

    def __post_init__(self) -> None:
        if self.projection_years <= 0:
            raise ValueError(
                f"projection_years must be positive, got {self.projection_years}"
            )
        if self.terminal_growth_rate >= self.discount_rate:
            raise ValueError(
                "terminal_growth_rate must be below discount_rate "
                f"({self.terminal_growth_rate} >= {self.discount_rate})"
            )


@dataclass(frozen=True)
class ScoringConfig:
    """Everything the engine closes over: weights, ladders, DCF model."""

    weights: Mapping[str, float] = field(default_factory=lambda: METRIC_WEIGHTS)
    ladders: Mapping[str, ScoreLadder] = field(default_factory=lambda: METRIC_LADDERS)
    dcf: DCFConfig = field(default_factory=DCFConfig)
    recommendation_tiers: tuple[tuple[int, str, str], ...] = RECOMMENDATION_TIERS
    debt_to_equity_percent_cutoff: float = DEBT_TO_EQUITY_PERCENT_CUTOFF

    def __post_init__(self) -> None:
        for name, table in (("weights", self.weights), ("ladders", self.ladders)):
            missing = set(METRIC_NAMES) - set(table)
            unknown = set(table) - set(METRIC_NAMES)
            if missing or unknown:
                raise ValueError(
                    f"Invalid {name} keys: missing={sorted(missing)}, "
                    f"unknown={sorted(unknown)}"
                )
        negative = sorted(k for k, w in self.weights.items() if w < 0)
        if negative:
            raise ValueError(f"Negative weights for: {negative}")


DEFAULT_SCORING_CONFIG = ScoringConfig()


@dataclass(frozen=True)
class FetchConfig:
    """Yahoo Finance collaborator settings."""

    max_workers: int = 6
    search_results: int = 10
    max_query_length: int = 50
    max_symbol_length: int = 10
    history_periods: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({
            "1m": "1mo",
            "3m": "3mo",
            "6m": "6mo",
            "1y": "1y",
            "5y": "5y",
            "10y": "10y",
            "max": "max",
        })
    )


@dataclass(frozen=True)
class PortfolioConfig:
    """Where the watchlist and holdings are stored."""

    data_dir: Path = Path.home() / ".buffett_score"
    watchlist_file: str = "watchlist.csv"
    holdings_file: str = "holdings.csv"

    @property
    def watchlist_path(self) -> Path:
        return self.data_dir / self.watchlist_file

    @property
    def holdings_path(self) -> Path:
        return self.data_dir / self.holdings_file
