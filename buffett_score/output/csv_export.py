"""Tabulate score results and export them to CSV."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from buffett_score.config import METRIC_NAMES
from buffett_score.scoring import BuffettScoreResult

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "symbol",
    "score",
    "recommendation",
    "available_metrics",
    "total_metrics",
]


def results_to_frame(results: dict[str, BuffettScoreResult]) -> pd.DataFrame:
    """One row per symbol, sorted by score descending.

    Columns: symbol, score, recommendation, available_metrics,
    total_metrics, then ``<metric>_value``, ``<metric>_score`` and
    ``<metric>_status`` for every metric, and intrinsic_value_margin_of_safety.
    """
    metric_columns = [
        f"{name}_{part}" for name in METRIC_NAMES
        for part in ("value", "score", "status")
    ]
    columns = SUMMARY_COLUMNS + metric_columns + ["intrinsic_value_margin_of_safety"]

    rows = []
    for symbol, result in results.items():
        row: dict[str, object] = {
            "symbol": symbol,
            "score": result.score,
            "recommendation": result.recommendation,
            "available_metrics": result.available_metrics,
            "total_metrics": result.total_metrics,
        }
        for name in METRIC_NAMES:
            metric = result.metrics.get(name)
            row[f"{name}_value"] = metric.value if metric else None
            row[f"{name}_score"] = metric.score if metric else None
            row[f"{name}_status"] = metric.status.value if metric else None
        iv = result.metrics.get("intrinsic_value")
        row["intrinsic_value_margin_of_safety"] = iv.margin_of_safety if iv else None
        rows.append(row)

    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        return df
    return df.sort_values(
        ["score", "symbol"], ascending=[False, True], kind="mergesort",
    ).reset_index(drop=True)


def export_csv(results: dict[str, BuffettScoreResult], path: Path) -> pd.DataFrame:
    """Write the results table to ``path``, creating parent directories.

    Returns:
        The DataFrame that was written.
    """
    df = results_to_frame(results)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.info("Wrote %d rows to %s", len(df), path)
    return df
