"""Display formatting for scores, ratios and money amounts."""

from __future__ import annotations

from buffett_score.data.extract import to_number

_CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}

# (threshold, suffix), largest first.
_CURRENCY_SCALES = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))
_NUMBER_SCALES = ((1e9, "B"), (1e6, "M"), (1e3, "K"))

NOT_AVAILABLE = "N/A"


def format_currency(value: object, currency: str = "USD") -> str:
    """Format a money amount, abbreviating thousands and above.

    >>> format_currency(2.5e12)
    '$2.50T'
    >>> format_currency(1234.5)
    '$1.23K'
    >>> format_currency(12.5)
    '$12.50'
    """
    number = to_number(value)
    if number is None:
        return NOT_AVAILABLE
    symbol = _CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    for scale, suffix in _CURRENCY_SCALES:
        if abs(number) >= scale:
            return f"{symbol}{number / scale:.2f}{suffix}"
    if number < 0:
        return f"-{symbol}{abs(number):,.2f}"
    return f"{symbol}{number:,.2f}"


def format_percent(value: object, decimals: int = 2) -> str:
    """Format a value that is already in percent units.

    >>> format_percent(15.234)
    '15.23%'
    """
    number = to_number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{number:.{decimals}f}%"


def format_number(value: object, decimals: int = 2) -> str:
    """Format a plain number, abbreviating thousands and above.

    >>> format_number(1_500_000)
    '1.50M'
    >>> format_number(0.4567)
    '0.46'
    """
    number = to_number(value)
    if number is None:
        return NOT_AVAILABLE
    for scale, suffix in _NUMBER_SCALES:
        if abs(number) >= scale:
            return f"{number / scale:.{decimals}f}{suffix}"
    return f"{number:.{decimals}f}"
