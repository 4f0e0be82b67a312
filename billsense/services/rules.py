"""
Bill-type classification rule table.

Rules are immutable and passed to the classifier explicitly, so tests can
inject a reduced table per bill type. `validate_rules` runs on the default
table at import time: a malformed table is a configuration defect and must
fail at startup, not per request.

Regex patterns run against normalized text (lower-case, accents folded,
punctuation replaced by spaces), so they are written in that form.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from billsense.models.bill import BillType, Currency
from billsense.utils.text import normalize_text


class RuleValidationError(ValueError):
    """Raised when a classification rule table is internally inconsistent."""


@dataclass(frozen=True)
class ClassificationRule:
    """Keyword, pattern and company evidence for one bill type."""
    bill_type: BillType
    primary: Tuple[str, ...] = ()
    secondary: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()
    companies: Tuple[str, ...] = ()
    negative_keywords: Tuple[str, ...] = ()
    compiled_patterns: Tuple[re.Pattern, ...] = field(default=(), init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(
            self, 'compiled_patterns', tuple(re.compile(p) for p in self.patterns)
        )

    @property
    def is_empty(self) -> bool:
        return not (self.primary or self.secondary or self.patterns or self.companies)


@dataclass(frozen=True)
class RuleSet:
    """
    Complete classification configuration.

    - rules: one rule per BillType
    - currency_home_companies: companies whose home region uses the currency
    - country_companies: companies operating in a country
    - large_amount_types: types boosted when the amount is large
    """
    rules: Mapping[BillType, ClassificationRule]
    currency_home_companies: Mapping[Currency, Tuple[str, ...]]
    country_companies: Mapping[str, Tuple[str, ...]]
    large_amount_types: Tuple[BillType, ...]

    def rule_for(self, bill_type: BillType) -> ClassificationRule:
        return self.rules[bill_type]


ELECTRICITY_RULE = ClassificationRule(
    BillType.ELECTRICITY,
    primary=(
        # Turkish
        'elektrik', 'tedaş', 'elektrik tüketimi', 'kwh', 'enerji',
        # English
        'electricity', 'electric', 'power', 'energy', 'kilowatt',
        # German
        'strom', 'elektrizität', 'energie', 'kilowattstunde',
    ),
    secondary=(
        'fatura', 'bill', 'rechnung', 'tüketim', 'consumption', 'verbrauch',
        'meter', 'sayaç', 'zähler', 'watt', 'volt',
    ),
    patterns=(
        r'(?:kw|kilowatt)\s?h',
        r'(?:elektrik|electric|strom)\w*.{0,20}(?:fatura|bill|rechnung)',
        r'(?:enerji|energy|energie).{0,20}(?:tuketim|consumption|verbrauch)',
    ),
    companies=(
        'TEDAŞ', 'E.ON', 'RWE', 'VATTENFALL', 'ENEL', 'EDF', 'ENDESA',
        'PG&E', 'EDISON', 'ELECTRIC COMPANY', 'POWER COMPANY',
    ),
    negative_keywords=('su', 'water', 'wasser', 'gaz', 'gas', 'internet', 'telefon'),
)

WATER_RULE = ClassificationRule(
    BillType.WATER,
    primary=(
        'su', 'water', 'wasser', 'iski', 'aqualogy', 'waterworks',
        'su faturası', 'water bill', 'wasserrechnung',
    ),
    secondary=(
        'tüketim', 'consumption', 'verbrauch', 'meter', 'sayaç', 'zähler',
        'municipal', 'belediye', 'stadtwerke',
    ),
    patterns=(
        r'(?:\bsu|water|wasser)\b.{0,20}(?:fatura|bill|rechnung)',
        r'\bm3\b|metre\s?kup|cubic\s?met(?:er|re)',
        r'water\s?works',
    ),
    companies=(
        'İSKİ', 'SUSKI', 'AQUALOGY', 'WATERWORKS', 'MUNICIPAL WATER',
        'STADTWERKE', 'WATER AUTHORITY', 'WATER DISTRICT',
    ),
    negative_keywords=('elektrik', 'electric', 'strom', 'gaz', 'gas', 'telefon'),
)

GAS_RULE = ClassificationRule(
    BillType.GAS,
    primary=(
        'doğalgaz', 'gaz', 'gas', 'erdgas', 'natural gas',
        'gaz faturası', 'gas bill', 'gasrechnung',
    ),
    secondary=(
        'tüketim', 'consumption', 'verbrauch', 'meter', 'sayaç', 'zähler',
        'm3', 'metreküp', 'cubic meter',
    ),
    patterns=(
        r'dogal\s?gaz|natural\s?gas|erdgas',
        r'\b(?:gaz|gas)\b.{0,20}(?:fatura|bill|rechnung)',
        r'(?:\bm3\b|metre\s?kup|cubic\s?met(?:er|re)).{0,20}\b(?:gaz|gas)\b',
    ),
    companies=(
        'İGDAŞ', 'BOTAŞ', 'SHELL', 'BP', 'TOTALENERGIES', 'ENI',
        'GAZPROM', 'E.ON GAS', 'BRITISH GAS',
    ),
    negative_keywords=('elektrik', 'electric', 'su', 'water', 'telefon'),
)

INTERNET_RULE = ClassificationRule(
    BillType.INTERNET,
    primary=(
        'internet', 'broadband', 'wifi', 'fiber', 'adsl', 'vdsl',
        'internet faturası', 'internet bill', 'internetrechnung',
    ),
    secondary=(
        'mbps', 'gb', 'unlimited', 'sınırsız', 'unbegrenzt',
        'paket', 'package', 'modem', 'router',
    ),
    patterns=(
        r'(?:internet|broadband|fiber|adsl).{0,20}(?:fatura|bill|rechnung)',
        r'\d+\s?(?:mbps|gb)\b',
        r'\bwi\s?fi\b',
    ),
    companies=(
        'TÜRK TELEKOM', 'VODAFONE', 'TURKCELL', 'SUPERONLINE',
        'TELEKOM', 'COMCAST', 'VERIZON', 'AT&T', 'ORANGE',
    ),
    negative_keywords=('elektrik', 'su', 'gaz', 'kredi', 'credit'),
)

PHONE_RULE = ClassificationRule(
    BillType.PHONE,
    primary=(
        'telefon', 'phone', 'mobile', 'cellular', 'gsm',
        'telefon faturası', 'phone bill', 'telefonrechnung',
    ),
    secondary=(
        'dakika', 'minutes', 'minuten', 'sms', 'mms', 'data',
        'hat', 'line', 'nummer', 'arama', 'calls', 'anrufe',
    ),
    patterns=(
        r'(?:telefon|phone|mobile).{0,20}(?:fatura|bill|rechnung)',
        r'\d+\s?(?:dakika|minutes|minuten)',
        r'\bgsm\b|cellular',
    ),
    companies=(
        'TURKCELL', 'VODAFONE', 'TÜRK TELEKOM', 'TELEKOM',
        'VERIZON', 'AT&T', 'T-MOBILE', 'ORANGE', 'O2',
    ),
    negative_keywords=('internet', 'elektrik', 'su', 'gaz'),
)

CABLE_RULE = ClassificationRule(
    BillType.CABLE,
    primary=(
        'kablo', 'cable', 'tv', 'satellite', 'uydu',
        'kablo tv', 'cable tv', 'kabelfernsehen',
    ),
    secondary=(
        'kanal', 'channels', 'kanäle', 'broadcast', 'yayın',
        'digital', 'hd', '4k', 'premium',
    ),
    patterns=(
        r'(?:kablo|cable)\s?(?:tv|television)',
        r'uydu|satellite',
        r'(?:kanal|channels|kanale).{0,20}(?:paket|package)',
    ),
    companies=(
        'DIGITURK', 'TIVIBU', 'DSMART', 'COMCAST', 'SPECTRUM',
        'SKY', 'CANAL+', 'ZIGGO',
    ),
    negative_keywords=('internet', 'telefon', 'elektrik'),
)

INSURANCE_RULE = ClassificationRule(
    BillType.INSURANCE,
    primary=(
        'sigorta', 'insurance', 'versicherung', 'poliçe', 'policy',
        'sigorta faturası', 'insurance bill', 'versicherungsrechnung',
    ),
    secondary=(
        'prim', 'premium', 'prämie', 'kasko', 'dask', 'hayat',
        'sağlık', 'health', 'gesundheit', 'auto', 'car',
    ),
    patterns=(
        r'(?:sigorta|insurance|versicherung).{0,20}(?:fatura|bill|rechnung)',
        r'\bprim\b|premium|pramie',
        r'police|policy',
    ),
    companies=(
        'AXA', 'ALLIANZ', 'ZURICH', 'MAPFRE', 'AKSIGORTA',
        'ANADOLU SIGORTA', 'ALLIANZ TÜRKIYE',
    ),
    negative_keywords=('elektrik', 'su', 'gaz', 'telefon'),
)

RENT_RULE = ClassificationRule(
    BillType.RENT,
    primary=(
        'kira', 'rent', 'miete', 'rental', 'lease',
        'kira faturası', 'rent bill', 'mietrechnung',
    ),
    secondary=(
        'apartment', 'daire', 'wohnung', 'ev', 'house', 'haus',
        'aylık', 'monthly', 'monatlich', 'deposit', 'kaution',
    ),
    patterns=(
        r'(?:kira|rent|miete).{0,20}(?:fatura|bill|rechnung)',
        r'apartment|daire|wohnung',
        r'(?:monthly|aylik|monatlich).{0,20}(?:rent|kira|miete)',
    ),
    companies=(
        'REAL ESTATE', 'PROPERTY MANAGEMENT', 'EMLAK', 'IMMOBILIEN',
        'ESTATE AGENCY',
    ),
    negative_keywords=('elektrik', 'su', 'telefon', 'internet'),
)

CREDIT_CARD_RULE = ClassificationRule(
    BillType.CREDIT_CARD,
    primary=(
        'kredi kartı', 'credit card', 'kreditkarte', 'visa', 'mastercard',
        'kredi kartı faturası', 'credit card bill', 'kreditkartenrechnung',
    ),
    secondary=(
        'limit', 'minimum', 'payment', 'ödeme', 'zahlung',
        'balance', 'bakiye', 'saldo', 'interest', 'faiz',
    ),
    patterns=(
        r'kredi\s?kart|credit\s?card|kreditkarte',
        r'visa|mastercard|american\s?express',
        r'minimum\s?(?:payment|odeme)',
    ),
    companies=(
        'AKBANK', 'GARANTI', 'İŞ BANKASI', 'YAPI KREDI',
        'CHASE', 'WELLS FARGO', 'DEUTSCHE BANK', 'COMMERZBANK',
    ),
    negative_keywords=('elektrik', 'su', 'gaz', 'internet'),
)

UNKNOWN_RULE = ClassificationRule(BillType.UNKNOWN)


CURRENCY_HOME_COMPANIES = {
    Currency.TRY: ('TEDAŞ', 'İGDAŞ', 'İSKİ', 'TURKCELL', 'VODAFONE', 'TÜRK TELEKOM'),
    Currency.EUR: ('E.ON', 'RWE', 'VATTENFALL', 'ENEL', 'ENDESA', 'STADTWERKE'),
    Currency.USD: ('PG&E', 'EDISON', 'VERIZON', 'AT&T', 'COMCAST'),
    Currency.GBP: ('BRITISH GAS', 'SKY', 'O2'),
}

COUNTRY_COMPANIES = {
    'TR': ('TEDAŞ', 'İGDAŞ', 'İSKİ', 'TURKCELL', 'VODAFONE', 'TÜRK TELEKOM'),
    'DE': ('E.ON', 'RWE', 'VATTENFALL', 'TELEKOM', 'STADTWERKE'),
    'US': ('VERIZON', 'AT&T', 'COMCAST', 'PG&E', 'EDISON'),
    'GB': ('BT', 'SKY', 'BRITISH GAS', 'EDF ENERGY'),
}


def _freeze(mapping):
    return MappingProxyType(dict(mapping))


def build_rule_set(*rules: ClassificationRule) -> RuleSet:
    """Assemble a RuleSet with the default context tables."""
    return RuleSet(
        rules=_freeze({rule.bill_type: rule for rule in rules}),
        currency_home_companies=_freeze(CURRENCY_HOME_COMPANIES),
        country_companies=_freeze(COUNTRY_COMPANIES),
        large_amount_types=(BillType.ELECTRICITY, BillType.GAS),
    )


def validate_rules(rule_set: RuleSet) -> RuleSet:
    """
    Check a rule table for internal consistency.

    Raises:
        RuleValidationError: missing or extra bill types, UNKNOWN carrying
            evidence, blank terms, a type penalizing its own primary
            vocabulary, or context tables naming unknown types
    """
    missing = [t.value for t in BillType if t not in rule_set.rules]
    if missing:
        raise RuleValidationError(f"Missing rules for bill types: {', '.join(missing)}")

    for bill_type, rule in rule_set.rules.items():
        if rule.bill_type != bill_type:
            raise RuleValidationError(
                f"Rule for {bill_type.value} is declared as {rule.bill_type.value}"
            )

        if bill_type == BillType.UNKNOWN:
            if not rule.is_empty or rule.negative_keywords:
                raise RuleValidationError("UNKNOWN must not carry classification evidence")
            continue

        if rule.is_empty:
            raise RuleValidationError(f"Rule for {bill_type.value} has no evidence")

        for group in ('primary', 'secondary', 'companies', 'negative_keywords'):
            for term in getattr(rule, group):
                if not normalize_text(term):
                    raise RuleValidationError(
                        f"Blank term in {bill_type.value}.{group}: {term!r}"
                    )

        own = {normalize_text(term) for term in rule.primary}
        clashes = own & {normalize_text(term) for term in rule.negative_keywords}
        if clashes:
            raise RuleValidationError(
                f"{bill_type.value} penalizes its own primary keywords: {', '.join(sorted(clashes))}"
            )

    for bill_type in rule_set.large_amount_types:
        if bill_type not in rule_set.rules or bill_type == BillType.UNKNOWN:
            raise RuleValidationError(f"Invalid large-amount type: {bill_type}")

    return rule_set


DEFAULT_RULES = validate_rules(build_rule_set(
    ELECTRICITY_RULE,
    WATER_RULE,
    GAS_RULE,
    INTERNET_RULE,
    PHONE_RULE,
    CABLE_RULE,
    INSURANCE_RULE,
    RENT_RULE,
    CREDIT_CARD_RULE,
    UNKNOWN_RULE,
))
