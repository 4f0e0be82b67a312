"""
Date display and due-date arithmetic helpers.
"""

from datetime import date
from typing import Optional

from billsense.services.locale import get_date_patterns


def format_date(value: Optional[date], language_code: str = 'en', country_code: str = 'US') -> str:
    """
    Format a date in the locale's primary numeric layout.

    Examples:
        >>> format_date(date(2024, 3, 15), 'de', 'DE')
        '15.03.2024'
        >>> format_date(date(2024, 3, 15), 'en', 'US')
        '03/15/2024'
    """
    if value is None:
        return 'N/A'

    layout = get_date_patterns(language_code, country_code)[0].format
    return (
        layout
        .replace('YYYY', f"{value.year:04d}")
        .replace('MM', f"{value.month:02d}")
        .replace('DD', f"{value.day:02d}")
    )


def days_until_due(due: date, today: Optional[date] = None) -> int:
    """Whole days from today until the due date; negative when overdue."""
    today = today or date.today()
    return (due - today).days


def is_date_in_future(value: date, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return value > today
