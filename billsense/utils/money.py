"""
Shared money parsing utilities with multi-locale support.

Handles the separator conventions seen on scanned bills:
- Period decimal: 1,234.56
- Comma decimal: 1.234,56 (continental Europe, Turkey)
- Missing decimals: 1234 → 1234
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional
import re


class SeparatorConvention(Enum):
    """Which character a locale uses as its decimal separator."""
    PERIOD_DECIMAL = "period-decimal"  # 1,234.56
    COMMA_DECIMAL = "comma-decimal"  # 1.234,56


_COMMA_CENTS = re.compile(r',\d{2}$')
_PERIOD_CENTS = re.compile(r'\.\d{2}$')


def detect_separator(
    amount_str: str,
    fallback: SeparatorConvention = SeparatorConvention.PERIOD_DECIMAL
) -> SeparatorConvention:
    """
    Decide which separator is the decimal one.

    Heuristics, in order:
    - Ends with ,XX (comma + 2 digits): comma decimal
    - Ends with .XX (period + 2 digits): period decimal
    - Otherwise the locale's convention

    A thousands-grouped integer that happens to end in ",dd" is read as
    cents; there is no stricter rule that holds across all bills.
    """
    if _COMMA_CENTS.search(amount_str):
        return SeparatorConvention.COMMA_DECIMAL
    if _PERIOD_CENTS.search(amount_str):
        return SeparatorConvention.PERIOD_DECIMAL
    return fallback


def parse_money(
    amount_str: str,
    convention: SeparatorConvention = SeparatorConvention.PERIOD_DECIMAL,
    max_amount: Optional[Decimal] = None
) -> Optional[Decimal]:
    """
    Parse a numeric money substring.

    Args:
        amount_str: Matched substring (e.g., "1.234,56", "89.99", "₺ 130,50")
        convention: Locale convention used when the string itself is ambiguous
        max_amount: Optional sanity ceiling; larger values are rejected

    Returns:
        Decimal amount or None if parsing fails

    Examples:
        >>> parse_money("1.234,56")
        Decimal('1234.56')
        >>> parse_money("89.99")
        Decimal('89.99')
        >>> parse_money("1.234", SeparatorConvention.COMMA_DECIMAL)
        Decimal('1234')
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    # Keep digits and separators only (drops symbols, codes, spaces)
    cleaned = re.sub(r'[^\d.,]', '', amount_str)
    if not cleaned or not any(ch.isdigit() for ch in cleaned):
        return None

    detected = detect_separator(cleaned, fallback=convention)

    try:
        if detected == SeparatorConvention.COMMA_DECIMAL:
            result = _parse_comma_decimal(cleaned)
        else:
            result = _parse_period_decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None

    if result is None:
        return None

    if max_amount is not None and result > max_amount:
        return None

    return result


def _parse_period_decimal(amount_str: str) -> Optional[Decimal]:
    """
    Parse period-decimal format: 1,234.56

    - Comma as thousands separator
    - Last period as decimal separator
    """
    cleaned = amount_str.replace(',', '')
    return _to_decimal(cleaned, '.')


def _parse_comma_decimal(amount_str: str) -> Optional[Decimal]:
    """
    Parse comma-decimal format: 1.234,56

    - Period as thousands separator
    - Last comma as decimal separator
    """
    cleaned = amount_str.replace('.', '')
    return _to_decimal(cleaned, ',')


def _to_decimal(amount_str: str, decimal_sep: str) -> Optional[Decimal]:
    # Any earlier occurrence of the decimal character is a stray grouping mark
    head, sep, tail = amount_str.rpartition(decimal_sep)
    if sep:
        normalized = head.replace(decimal_sep, '') + '.' + tail
    else:
        normalized = tail

    normalized = normalized.strip('.')
    if not normalized:
        return None

    try:
        return Decimal(normalized)
    except (InvalidOperation, ValueError):
        return None


CURRENCY_SYMBOLS = {
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'TRY': '₺',
    'CAD': 'C$',
    'AUD': 'A$',
    'JPY': '¥',
    'CHF': 'CHF ',
    'SEK': 'kr ',
    'NOK': 'kr ',
}


def format_money(amount: Optional[Decimal], currency: str = 'USD') -> str:
    """
    Format Decimal amount as money string.

    Args:
        amount: Decimal amount
        currency: Currency code (default: USD)

    Returns:
        Formatted string (e.g., "$1,234.56")

    Examples:
        >>> format_money(Decimal('1234.56'))
        '$1,234.56'
        >>> format_money(Decimal('130.5'), 'TRY')
        '₺130.50'
    """
    if amount is None:
        return 'N/A'

    code = getattr(currency, 'value', currency)
    symbol = CURRENCY_SYMBOLS.get(str(code).upper(), f"{code} ")

    formatted = f"{float(amount):,.2f}"

    return f"{symbol}{formatted}"
