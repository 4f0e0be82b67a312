"""
Locale resolver: maps a (language, country) pair to the defaults the
extractors need.

Pure lookup over fixed tables. Unknown inputs resolve to the English/USD
defaults instead of failing.
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from billsense.models.bill import Currency, LocaleContext
from billsense.utils.money import SeparatorConvention


@dataclass(frozen=True)
class DatePatternSpec:
    """A date regex with the capture group of each calendar field."""
    name: str
    pattern: str
    format: str
    day_group: int
    month_group: int
    year_group: int
    example: str = ""
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern))


_D = r'(\d{1,2})'
_Y = r'(\d{4})'

MM_DD_YYYY_SLASH = DatePatternSpec(
    name='us_slash', pattern=rf'(?<!\d){_D}/{_D}/{_Y}(?!\d)',
    format='MM/DD/YYYY', day_group=2, month_group=1, year_group=3,
    example='03/15/2024',
)
MM_DD_YYYY_DASH = DatePatternSpec(
    name='us_dash', pattern=rf'(?<!\d){_D}-{_D}-{_Y}(?!\d)',
    format='MM-DD-YYYY', day_group=2, month_group=1, year_group=3,
    example='03-15-2024',
)
DD_MM_YYYY_DOT = DatePatternSpec(
    name='eu_dot', pattern=rf'(?<!\d){_D}\.{_D}\.{_Y}(?!\d)',
    format='DD.MM.YYYY', day_group=1, month_group=2, year_group=3,
    example='15.03.2024',
)
DD_MM_YYYY_SLASH = DatePatternSpec(
    name='eu_slash', pattern=rf'(?<!\d){_D}/{_D}/{_Y}(?!\d)',
    format='DD/MM/YYYY', day_group=1, month_group=2, year_group=3,
    example='15/03/2024',
)
DD_MM_YYYY_DASH = DatePatternSpec(
    name='eu_dash', pattern=rf'(?<!\d){_D}-{_D}-{_Y}(?!\d)',
    format='DD-MM-YYYY', day_group=1, month_group=2, year_group=3,
    example='15-03-2024',
)
YYYY_MM_DD_ISO = DatePatternSpec(
    name='iso', pattern=rf'(?<!\d){_Y}-{_D}-{_D}(?!\d)',
    format='YYYY-MM-DD', day_group=3, month_group=2, year_group=1,
    example='2024-03-15',
)
YYYY_MM_DD_SLASH = DatePatternSpec(
    name='ymd_slash', pattern=rf'(?<!\d){_Y}/{_D}/{_D}(?!\d)',
    format='YYYY/MM/DD', day_group=3, month_group=2, year_group=1,
    example='2024/03/15',
)

DATE_STYLES = {
    'MDY': (MM_DD_YYYY_SLASH, MM_DD_YYYY_DASH, YYYY_MM_DD_ISO),
    'DMY_DOT': (DD_MM_YYYY_DOT, DD_MM_YYYY_SLASH, YYYY_MM_DD_ISO),
    'DMY_SLASH': (DD_MM_YYYY_SLASH, DD_MM_YYYY_DASH, DD_MM_YYYY_DOT, YYYY_MM_DD_ISO),
    'YMD': (YYYY_MM_DD_ISO, YYYY_MM_DD_SLASH),
}

DATE_STYLE_BY_COUNTRY = {
    'US': 'MDY', 'CA': 'MDY',
    'GB': 'DMY_SLASH', 'AU': 'DMY_SLASH', 'IE': 'DMY_SLASH',
    'FR': 'DMY_SLASH', 'ES': 'DMY_SLASH', 'IT': 'DMY_SLASH', 'BE': 'DMY_SLASH',
    'DE': 'DMY_DOT', 'AT': 'DMY_DOT', 'CH': 'DMY_DOT', 'TR': 'DMY_DOT',
    'NO': 'DMY_DOT', 'FI': 'DMY_DOT',
    'SE': 'YMD', 'JP': 'YMD',
}

DATE_STYLE_BY_LANGUAGE = {
    'en': 'MDY',
    'de': 'DMY_DOT', 'tr': 'DMY_DOT', 'nb': 'DMY_DOT', 'no': 'DMY_DOT',
    'fr': 'DMY_SLASH', 'es': 'DMY_SLASH', 'it': 'DMY_SLASH',
    'sv': 'YMD', 'ja': 'YMD',
}

DUE_KEYWORDS_BY_LANGUAGE = {
    'en': ('due', 'payment due', 'pay by', 'deadline', 'due date', 'payable by'),
    'de': ('fällig', 'zahlbar bis', 'zahlung bis', 'fälligkeit', 'zahlungstermin'),
    'tr': ('son ödeme', 'ödeme tarihi', 'vade', 'son tarih', 'ödeme vadesi', 'son ödeme tarihi'),
    'fr': ('échéance', 'date limite', 'à payer avant', 'payable avant'),
    'es': ('vencimiento', 'fecha límite', 'pagar antes', 'fecha de pago'),
    'it': ('scadenza', 'pagare entro', 'da pagare entro', 'data di scadenza'),
    'sv': ('förfallodag', 'förfallodatum', 'betala senast', 'sista betalningsdag'),
    'nb': ('forfallsdato', 'forfall', 'betales innen'),
    'no': ('forfallsdato', 'forfall', 'betales innen'),
    'ja': ('支払期限', 'お支払期日', '期限'),
}

PRIMARY_CURRENCY_BY_COUNTRY = {
    'US': Currency.USD, 'GB': Currency.GBP, 'TR': Currency.TRY,
    'DE': Currency.EUR, 'FR': Currency.EUR, 'ES': Currency.EUR,
    'IT': Currency.EUR, 'AT': Currency.EUR, 'BE': Currency.EUR,
    'IE': Currency.EUR, 'FI': Currency.EUR, 'NL': Currency.EUR,
    'CA': Currency.CAD, 'AU': Currency.AUD, 'JP': Currency.JPY,
    'CH': Currency.CHF, 'SE': Currency.SEK, 'NO': Currency.NOK,
}

COMMA_DECIMAL_COUNTRIES = frozenset({
    'DE', 'AT', 'FR', 'ES', 'IT', 'BE', 'NL', 'FI', 'TR', 'SE', 'NO',
})

COMMA_DECIMAL_LANGUAGES = frozenset({'de', 'fr', 'es', 'it', 'tr', 'sv', 'nb', 'no', 'nl'})

COUNTRY_ALIASES = {'UK': 'GB'}

DEFAULT_LANGUAGE = 'en'
DEFAULT_COUNTRY = 'US'


@dataclass(frozen=True)
class LocaleProfile:
    """Everything the extractors derive from the caller's locale."""
    language_code: str
    country_code: str
    primary_currency: Currency
    due_keywords: Tuple[str, ...]
    separator_convention: SeparatorConvention
    date_patterns: Tuple[DatePatternSpec, ...]


def normalize_country(country_code: Optional[str]) -> str:
    """Upper-case a country code and map aliases ("UK" → "GB")."""
    code = (country_code or '').strip().upper()
    return COUNTRY_ALIASES.get(code, code)


def _normalize_language(language_code: Optional[str]) -> str:
    # "de-DE" / "de_DE" → "de"
    code = (language_code or '').strip().lower()
    return re.split(r'[-_]', code, maxsplit=1)[0] if code else ''


def get_primary_currency(country_code: Optional[str]) -> Currency:
    return PRIMARY_CURRENCY_BY_COUNTRY.get(normalize_country(country_code), Currency.USD)


def get_due_keywords(language_code: Optional[str]) -> Tuple[str, ...]:
    language = _normalize_language(language_code)
    return DUE_KEYWORDS_BY_LANGUAGE.get(language, DUE_KEYWORDS_BY_LANGUAGE[DEFAULT_LANGUAGE])


def get_separator_convention(
    language_code: Optional[str],
    country_code: Optional[str]
) -> SeparatorConvention:
    """Country decides when known; language otherwise; period decimal by default."""
    country = normalize_country(country_code)
    if country in COMMA_DECIMAL_COUNTRIES:
        return SeparatorConvention.COMMA_DECIMAL
    if country in PRIMARY_CURRENCY_BY_COUNTRY:
        return SeparatorConvention.PERIOD_DECIMAL

    if _normalize_language(language_code) in COMMA_DECIMAL_LANGUAGES:
        return SeparatorConvention.COMMA_DECIMAL
    return SeparatorConvention.PERIOD_DECIMAL


def get_date_patterns(
    language_code: Optional[str],
    country_code: Optional[str]
) -> Tuple[DatePatternSpec, ...]:
    style = (
        DATE_STYLE_BY_COUNTRY.get(normalize_country(country_code))
        or DATE_STYLE_BY_LANGUAGE.get(_normalize_language(language_code))
        or 'MDY'
    )
    return DATE_STYLES[style]


def resolve_locale(language_code: Optional[str], country_code: Optional[str]) -> LocaleProfile:
    """
    Resolve locale defaults.

    Args:
        language_code: ISO 639-1 language (e.g., "de"); regional tags accepted
        country_code: ISO 3166 country (e.g., "DE"); "UK" accepted

    Returns:
        LocaleProfile; never raises. Unknown inputs get English keywords,
        USD and period-decimal parsing.

    Examples:
        >>> resolve_locale("tr", "TR").primary_currency
        <Currency.TRY: 'TRY'>
        >>> resolve_locale("xx", "ZZ").due_keywords[0]
        'due'
    """
    language = _normalize_language(language_code) or DEFAULT_LANGUAGE
    country = normalize_country(country_code) or DEFAULT_COUNTRY

    return LocaleProfile(
        language_code=language,
        country_code=country,
        primary_currency=get_primary_currency(country),
        due_keywords=get_due_keywords(language),
        separator_convention=get_separator_convention(language, country_code),
        date_patterns=get_date_patterns(language, country_code),
    )


def resolve_locale_context(locale: LocaleContext) -> LocaleProfile:
    return resolve_locale(locale.language_code, locale.country_code)
