"""
Candidate dataclasses for extraction.

Each candidate represents a potential extracted value with the metadata
used to select the final result. Candidates live for one extraction call.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional
import datetime

from billsense.models.bill import Currency
from billsense.utils.text import fold_text

# Characters on each side of a date match searched for due keywords
KEYWORD_WINDOW_RADIUS = 50

MIN_BILL_YEAR = 2020


@dataclass(frozen=True)
class AmountCandidate:
    """
    Candidate for an extracted amount.

    numeric_value is 0 when the matched substring could not be parsed;
    such candidates are never selected.
    """
    raw_match: str
    currency: Currency
    numeric_value: Decimal
    match_position: int
    pattern_name: str = ""

    @property
    def is_valid(self) -> bool:
        return self.numeric_value > 0


@dataclass(frozen=True)
class DateCandidate:
    """
    Candidate for an extracted due date.

    Fields:
    - day/month/year: integers as read from the pattern's capture groups
    - format: label of the pattern that matched (e.g., "DD.MM.YYYY")
    - near_keyword: a due-date keyword appears in the surrounding window
    """
    day: int
    month: int
    year: int
    raw_match: str
    format: str
    near_keyword: bool
    match_span: tuple[int, int] = (0, 0)

    def to_date(self) -> Optional[datetime.date]:
        """Return the calendar date, or None for impossible dates (Feb 30, day 32)."""
        if self.year < MIN_BILL_YEAR:
            return None
        if not (1 <= self.month <= 12 and 1 <= self.day <= 31):
            return None
        try:
            return datetime.date(self.year, self.month, self.day)
        except ValueError:
            return None

    @property
    def is_valid(self) -> bool:
        return self.to_date() is not None


def keyword_window(text: str, match_span: tuple[int, int], radius: int = KEYWORD_WINDOW_RADIUS) -> str:
    """
    Text surrounding a match, `radius` characters on each side.

    The window spans len(match) + 2 * radius characters, so a long match
    widens it. It is not a fixed 100-character window centered on the match.
    """
    start, end = match_span
    return text[max(0, start - radius):min(len(text), end + radius)]


def window_has_keyword(window: str, keywords: Iterable[str]) -> bool:
    """Case- and accent-insensitive substring test."""
    folded = fold_text(window)
    return any(fold_text(keyword) in folded for keyword in keywords if keyword)


def create_date_candidate(
    day: int,
    month: int,
    year: int,
    raw_text: str,
    format_label: str,
    match_span: tuple[int, int],
    text: str,
    due_keywords: Iterable[str]
) -> DateCandidate:
    """
    Create DateCandidate with the keyword-proximity flag computed.

    Args:
        day, month, year: Calendar fields read from the match
        raw_text: Original matched text
        format_label: Human-readable pattern label
        match_span: Character span of match
        text: Full text for context analysis
        due_keywords: Locale due-date phrases

    Returns:
        DateCandidate
    """
    window = keyword_window(text, match_span)
    return DateCandidate(
        day=day,
        month=month,
        year=year,
        raw_match=raw_text,
        format=format_label,
        near_keyword=window_has_keyword(window, due_keywords),
        match_span=match_span,
    )
