"""Data contracts, field extraction and the Yahoo Finance collaborator."""

from __future__ import annotations

from buffett_score.data.extract import get_number, get_value, normalize_document
from buffett_score.data.models import FinancialBundle, Quote

__all__ = [
    "FinancialBundle",
    "Quote",
    "get_number",
    "get_value",
    "normalize_document",
]
