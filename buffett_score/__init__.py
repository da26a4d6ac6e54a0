"""Buffett-style value score from Yahoo Finance fundamentals."""

from __future__ import annotations

from buffett_score.data.models import FinancialBundle, Quote
from buffett_score.metrics.base import MetricResult, MetricStatus
from buffett_score.scoring import BuffettScoreResult, calculate_buffett_score

__all__ = [
    "BuffettScoreResult",
    "FinancialBundle",
    "MetricResult",
    "MetricStatus",
    "Quote",
    "calculate_buffett_score",
]
