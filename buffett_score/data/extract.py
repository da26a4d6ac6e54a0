"""Field extraction from loosely structured provider documents.

Provider payloads mix bare numbers with wrapped ones (``{"raw": 1.5,
"fmt": "1.50"}``) and routinely omit whole branches. Every calculator
reads through ``get_value``/``get_number`` so both shapes look the same
downstream and a missing branch is simply ``None``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from buffett_score.config import WRAPPED_VALUE_KEY


def unwrap(value: Any) -> Any:
    """Return the bare number inside a one-level wrapper, else ``value``."""
    if isinstance(value, Mapping) and WRAPPED_VALUE_KEY in value:
        return value[WRAPPED_VALUE_KEY]
    return value


def _step(current: Any, part: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(part)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        try:
            index = int(part)
        except ValueError:
            return None
        if 0 <= index < len(current):
            return current[index]
        return None
    return None


def get_value(document: Any, path: str) -> Any:
    """Read the leaf at a dotted path, or ``None`` if any step is missing.

    Numeric path segments index into sequences (``"balanceSheets.0.cash"``).
    Wrapped leaves are unwrapped. Never raises.

    Args:
        document: Mapping/sequence tree (or None).
        path: Dotted field path. An empty path addresses the document itself.

    Returns:
        The leaf value, or None.
    """
    current = document
    for part in path.split(".") if path else ():
        if current is None:
            return None
        current = _step(unwrap(current), part)
    if current is None:
        return None
    return unwrap(current)


def to_number(value: Any) -> float | None:
    """Coerce a leaf to a finite float, or ``None``.

    Booleans, strings and NaN/inf are rejected; yfinance reports missing
    statement cells as NaN.
    """
    value = unwrap(value)
    if value is None or isinstance(value, (bool, str, bytes)):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    return f


def get_number(document: Any, path: str) -> float | None:
    """``get_value`` followed by ``to_number``."""
    return to_number(get_value(document, path))


def first_number(document: Any, *paths: str) -> float | None:
    """Return the first path that yields a number, in order."""
    for path in paths:
        value = get_number(document, path)
        if value is not None:
            return value
    return None


def normalize_document(obj: Any) -> Any:
    """Recursively replace wrapped leaves with their bare values.

    Mappings and lists are copied; the input is left untouched.
    """
    obj = unwrap(obj)
    if isinstance(obj, Mapping):
        return {key: normalize_document(val) for key, val in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [normalize_document(item) for item in obj]
    return obj
