"""
Bill parser service for extracting amounts and due dates from OCR text.
"""

import re
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from billsense.models.bill import Currency, ExtractedAmount, ExtractedDueDate, LocaleContext
from billsense.services.locale import LocaleProfile, resolve_locale_context
from billsense.utils.money import parse_money
from billsense.utils.candidates import AmountCandidate, DateCandidate, create_date_candidate
from billsense.utils.scoring import select_best_amount, select_due_date

logger = logging.getLogger(__name__)

# Integer part with optional 3-digit groups, then optional 2-digit cents.
# Not preceded by a digit or separator so "2.5 €" cannot yield "5".
NUMBER = r'(?<![\d.,])((?:\d{1,3}(?:[.,]\d{3})+|\d+)(?:[.,]\d{2})?)(?!\d)'


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    priority: Optional[int] = None
    flags: int = 0
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))


@dataclass(frozen=True)
class CurrencySurface:
    """
    How a currency is written on a bill.

    - prefix_symbols: regex fragments written before the number ("$", "€")
    - suffix_symbols: regex fragments written after the number ("€", "TL", "kr")
    - codes: ISO codes, accepted before or after the number
    """
    currency: Currency
    prefix_symbols: Tuple[str, ...] = ()
    suffix_symbols: Tuple[str, ...] = ()
    codes: Tuple[str, ...] = ()


CURRENCY_SURFACES = (
    CurrencySurface(
        Currency.USD,
        prefix_symbols=(r'(?<![A-Za-z])\$', r'US\$'),
        suffix_symbols=(r'\$',),
        codes=('USD',),
    ),
    CurrencySurface(
        Currency.EUR,
        prefix_symbols=('€',),
        suffix_symbols=('€', r'Euro(?![A-Za-z])'),
        codes=('EUR',),
    ),
    CurrencySurface(
        Currency.GBP,
        prefix_symbols=('£',),
        suffix_symbols=('£',),
        codes=('GBP',),
    ),
    CurrencySurface(
        Currency.TRY,
        prefix_symbols=('₺',),
        suffix_symbols=('₺', r'T[Ll](?![A-Za-z])'),
        codes=('TRY',),
    ),
    CurrencySurface(
        Currency.CAD,
        prefix_symbols=(r'C\$', r'CA\$'),
        codes=('CAD',),
    ),
    CurrencySurface(
        Currency.AUD,
        prefix_symbols=(r'A\$', r'AU\$'),
        codes=('AUD',),
    ),
    CurrencySurface(
        Currency.JPY,
        prefix_symbols=('¥', '￥'),
        suffix_symbols=('円', '¥'),
        codes=('JPY',),
    ),
    CurrencySurface(
        Currency.CHF,
        prefix_symbols=(r'S?Fr\.',),
        suffix_symbols=(r'S?Fr\.',),
        codes=('CHF',),
    ),
    CurrencySurface(
        Currency.SEK,
        suffix_symbols=(r'[Kk]r(?![A-Za-z])',),
        codes=('SEK',),
    ),
    CurrencySurface(
        Currency.NOK,
        suffix_symbols=(r'[Kk]r(?![A-Za-z])',),
        codes=('NOK',),
    ),
)


def build_amount_patterns(surface: CurrencySurface) -> Tuple[PatternSpec, ...]:
    """Expand a currency surface into prefix, suffix and ISO-code patterns."""
    code = surface.currency.value
    patterns = []

    for symbol in surface.prefix_symbols:
        patterns.append(PatternSpec(
            name=f'{code.lower()}_symbol_prefix',
            pattern=rf'(?:{symbol})\s*{NUMBER}',
            example=f'{symbol}89.99',
            priority=1,
        ))
    for symbol in surface.suffix_symbols:
        patterns.append(PatternSpec(
            name=f'{code.lower()}_symbol_suffix',
            pattern=rf'{NUMBER}\s*(?:{symbol})',
            example=f'1.234,56 {symbol}',
            priority=1,
        ))
    for iso in surface.codes:
        patterns.append(PatternSpec(
            name=f'{code.lower()}_code_prefix',
            pattern=rf'(?<![A-Za-z]){iso}\s*{NUMBER}',
            example=f'{iso} 130,50',
            priority=2,
        ))
        patterns.append(PatternSpec(
            name=f'{code.lower()}_code_suffix',
            pattern=rf'{NUMBER}\s*{iso}(?![A-Za-z])',
            example=f'130,50 {iso}',
            priority=2,
        ))

    return tuple(patterns)


LocaleLike = Union[LocaleProfile, LocaleContext]


def _as_profile(locale: LocaleLike) -> LocaleProfile:
    if isinstance(locale, LocaleProfile):
        return locale
    return resolve_locale_context(locale)


class BillParser:
    """Service for parsing bill text into amount and due date."""

    def __init__(self, max_amount: Optional[float] = None):
        """Initialize parser with regex patterns."""
        self.max_amount = Decimal(str(max_amount)) if max_amount is not None else None
        self._init_patterns()

    def _init_patterns(self):
        """Initialize per-currency amount patterns."""
        self.amount_patterns: Dict[Currency, Tuple[PatternSpec, ...]] = {
            surface.currency: build_amount_patterns(surface)
            for surface in CURRENCY_SURFACES
        }

    @staticmethod
    def currency_try_order(
        primary: Currency,
        hint: Optional[Currency] = None
    ) -> List[Currency]:
        """Hint first, then the locale's primary currency, then the rest in enum order."""
        order = []
        for currency in (hint, primary, *Currency):
            if currency is not None and currency not in order:
                order.append(currency)
        return order

    def amount_candidates(
        self,
        text: str,
        currency: Currency,
        locale: LocaleLike
    ) -> List[AmountCandidate]:
        """
        Collect every amount written in the given currency.

        Args:
            text: OCR text
            currency: Currency whose surface patterns are applied
            locale: Locale deciding ambiguous separators

        Returns:
            Candidates in pattern order; unparseable matches carry value 0
        """
        profile = _as_profile(locale)
        candidates = []

        for spec in self.amount_patterns.get(currency, ()):
            for match in spec.compiled.finditer(text):
                raw_number = match.group(1)
                value = parse_money(
                    raw_number,
                    convention=profile.separator_convention,
                    max_amount=self.max_amount,
                )
                candidates.append(AmountCandidate(
                    raw_match=raw_number,
                    currency=currency,
                    numeric_value=value if value is not None else Decimal('0'),
                    match_position=match.start(),
                    pattern_name=spec.name,
                ))

        return candidates

    def extract_amount(
        self,
        text: str,
        locale: LocaleLike,
        currency_hint: Optional[Currency] = None
    ) -> Optional[ExtractedAmount]:
        """
        Extract the bill total.

        Currencies are tried in order (hint, locale primary, the rest); the
        first currency with a positive match wins and its largest value is
        returned.

        Args:
            text: OCR text
            locale: Caller locale (context or resolved profile)
            currency_hint: Explicit currency to try first

        Returns:
            ExtractedAmount or None when no amount is found
        """
        if not text:
            return None

        profile = _as_profile(locale)
        if currency_hint is None and isinstance(locale, LocaleContext):
            currency_hint = locale.currency_hint

        for currency in self.currency_try_order(profile.primary_currency, currency_hint):
            best = select_best_amount(self.amount_candidates(text, currency, profile))
            if best is None:
                continue

            logger.debug("Amount found", extra={
                "currency": currency.value,
                "value": str(best.numeric_value),
                "raw": best.raw_match,
                "pattern": best.pattern_name,
            })
            return ExtractedAmount(
                value=best.numeric_value,
                currency=currency,
                raw=best.raw_match,
            )

        logger.debug("No amount found", extra={"locale": f"{profile.language_code}-{profile.country_code}"})
        return None

    def date_candidates(self, text: str, locale: LocaleLike) -> List[DateCandidate]:
        """
        Collect every date-like substring for the locale's patterns.

        A span already claimed by an earlier pattern is not reread by a later
        one. Invalid calendar dates are kept here and filtered on selection.
        """
        profile = _as_profile(locale)
        candidates = []
        seen_spans = set()

        for spec in profile.date_patterns:
            for match in spec.compiled.finditer(text):
                if match.span() in seen_spans:
                    continue
                seen_spans.add(match.span())

                candidates.append(create_date_candidate(
                    day=int(match.group(spec.day_group)),
                    month=int(match.group(spec.month_group)),
                    year=int(match.group(spec.year_group)),
                    raw_text=match.group(0),
                    format_label=spec.format,
                    match_span=match.span(),
                    text=text,
                    due_keywords=profile.due_keywords,
                ))

        return candidates

    def extract_due_date(self, text: str, locale: LocaleLike) -> Optional[ExtractedDueDate]:
        """
        Extract the payment due date.

        Args:
            text: OCR text
            locale: Caller locale (context or resolved profile)

        Returns:
            ExtractedDueDate, or None when there is no date or several dates
            without a due keyword to tell them apart
        """
        if not text:
            return None

        candidates = self.date_candidates(text, locale)
        best = select_due_date(candidates)

        if best is None:
            if candidates:
                logger.debug("Date candidates ambiguous or invalid", extra={
                    "candidate_count": len(candidates),
                })
            return None

        return ExtractedDueDate(
            date=best.to_date(),
            raw=best.raw_match,
            format=best.format,
        )
