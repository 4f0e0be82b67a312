"""
Bill-type classifier and company extractor.

Scores every bill type against a rule table with weighted keyword, pattern
and company evidence, then applies contextual boosts. Both functions are
pure: the rule table and weights are parameters, nothing is cached.
"""

import re
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from billsense.config import Settings
from billsense.models.bill import (
    BillType,
    ClassificationContext,
    ClassificationResult,
    CompanyMatch,
)
from billsense.services.locale import normalize_country
from billsense.services.rules import DEFAULT_RULES, ClassificationRule, RuleSet
from billsense.utils.text import contains_keyword, find_keywords, normalize_text

logger = logging.getLogger(__name__)

CLASSIFIER_COMPANY_CONFIDENCE = 0.9
KNOWN_COMPANY_CONFIDENCE = 0.95
HEURISTIC_COMPANY_CONFIDENCE = 0.7

LEGAL_SUFFIXES = (
    'Ltd', 'Limited', 'Inc', 'Corp', 'Company', 'Co', 'LLC', 'GmbH', 'AG',
    'SA', 'SE', 'AB', 'AS', 'PLC', 'Şirketi', 'A.Ş', 'Ltd. Şti',
)

_UPPER = 'A-ZÀ-ÖØ-ÞÇĞİŞÜÖ'
_LOWER = 'a-zß-öø-ÿçğışüö'
_SUFFIX_ALT = '|'.join(re.escape(s) for s in sorted(LEGAL_SUFFIXES, key=len, reverse=True))

# "Stadtwerke München GmbH", "Acme Power Ltd."
LEGAL_ENTITY_PATTERN = re.compile(
    rf'(?<!\w)((?:[{_UPPER}][{_LOWER}&\'-]+\s+)+(?:{_SUFFIX_ALT})\.?)(?!\w)'
)
# "BRITISH GAS", "TÜRK TELEKOM": two or more capitals per word
UPPERCASE_RUN_PATTERN = re.compile(
    rf'(?<!\w)([{_UPPER}][{_UPPER}&.\-]+(?:[ \t]+[{_UPPER}][{_UPPER}&.\-]+)*)(?!\w)'
)


@dataclass(frozen=True)
class ScoringWeights:
    """Additive score contributions; tunable without touching the algorithm."""
    primary: float = 0.4
    secondary: float = 0.2
    pattern: float = 0.3
    company: float = 0.5
    negative: float = 0.3
    currency_boost: float = 0.1
    large_amount_boost: float = 0.05
    large_amount_threshold: Decimal = Decimal('100')
    country_boost: float = 0.1
    score_floor: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> 'ScoringWeights':
        return cls(
            primary=settings.CLASSIFIER_PRIMARY_WEIGHT,
            secondary=settings.CLASSIFIER_SECONDARY_WEIGHT,
            pattern=settings.CLASSIFIER_PATTERN_WEIGHT,
            company=settings.CLASSIFIER_COMPANY_WEIGHT,
            negative=settings.CLASSIFIER_NEGATIVE_WEIGHT,
            currency_boost=settings.CLASSIFIER_CURRENCY_BOOST,
            large_amount_boost=settings.CLASSIFIER_LARGE_AMOUNT_BOOST,
            large_amount_threshold=Decimal(str(settings.CLASSIFIER_LARGE_AMOUNT_THRESHOLD)),
            country_boost=settings.CLASSIFIER_COUNTRY_BOOST,
            score_floor=settings.CLASSIFIER_SCORE_FLOOR,
        )


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class TypeScore:
    """Score and evidence trail for one bill type."""
    bill_type: BillType
    score: float
    primary_matches: Tuple[str, ...] = ()
    secondary_matches: Tuple[str, ...] = ()
    pattern_matches: int = 0
    negative_matches: Tuple[str, ...] = ()
    company: Optional[CompanyMatch] = None
    company_from_hint: bool = False
    boosts: Tuple[str, ...] = ()


def _find_company(normalized: str, companies) -> Optional[str]:
    for company in companies:
        if contains_keyword(normalized, company):
            return company
    return None


def _company_from_hint(hint: Optional[str], companies) -> Optional[str]:
    if not hint:
        return None
    normalized_hint = normalize_text(hint)
    for company in companies:
        if normalize_text(company) == normalized_hint:
            return company
    return None


def _context_boosts(
    rule: ClassificationRule,
    rules: RuleSet,
    context: ClassificationContext,
    weights: ScoringWeights
) -> List[Tuple[str, float]]:
    boosts = []
    companies = set(rule.companies)

    if context.currency is not None:
        home = rules.currency_home_companies.get(context.currency, ())
        if companies.intersection(home):
            boosts.append((f"currency {context.currency.value}", weights.currency_boost))

    if (
        context.amount_hint is not None
        and Decimal(str(context.amount_hint)) > weights.large_amount_threshold
        and rule.bill_type in rules.large_amount_types
    ):
        boosts.append(("large amount", weights.large_amount_boost))

    if context.country:
        country = normalize_country(context.country)
        if companies.intersection(rules.country_companies.get(country, ())):
            boosts.append((f"country {country}", weights.country_boost))

    return boosts


def score_bill_type(
    normalized: str,
    rule: ClassificationRule,
    rules: RuleSet = DEFAULT_RULES,
    context: Optional[ClassificationContext] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS
) -> TypeScore:
    """
    Score one bill type against normalized text.

    Score factors (weights from ScoringWeights):
    - +primary per primary keyword found
    - +secondary per secondary keyword found
    - +pattern per regex pattern matched
    - +company once, for the first known company found
    - -negative per negative keyword found
    - context boosts (currency region, large amount, country companies),
      applied only to types with textual evidence

    Returns:
        TypeScore with the score clamped to [0.0, 1.0]
    """
    primary = tuple(find_keywords(normalized, rule.primary))
    secondary = tuple(find_keywords(normalized, rule.secondary))
    patterns = sum(1 for pattern in rule.compiled_patterns if pattern.search(normalized))
    negatives = tuple(find_keywords(normalized, rule.negative_keywords))

    score = (
        len(primary) * weights.primary
        + len(secondary) * weights.secondary
        + patterns * weights.pattern
    )

    company = None
    from_hint = False
    company_name = _find_company(normalized, rule.companies)
    if company_name is None and context is not None:
        company_name = _company_from_hint(context.company_hint, rule.companies)
        from_hint = company_name is not None
    if company_name is not None:
        score += weights.company
        company = CompanyMatch(name=company_name, confidence=CLASSIFIER_COMPANY_CONFIDENCE)

    score -= len(negatives) * weights.negative

    has_evidence = bool(primary or secondary or patterns or company)

    boost_labels = ()
    if context is not None and has_evidence:
        boosts = _context_boosts(rule, rules, context, weights)
        score += sum(amount for _, amount in boosts)
        boost_labels = tuple(label for label, _ in boosts)

    return TypeScore(
        bill_type=rule.bill_type,
        score=max(0.0, min(1.0, score)),
        primary_matches=primary,
        secondary_matches=secondary,
        pattern_matches=patterns,
        negative_matches=negatives,
        company=company,
        company_from_hint=from_hint,
        boosts=boost_labels,
    )


def build_reasoning(winner: TypeScore, context: Optional[ClassificationContext] = None) -> str:
    """
    Human-readable trace of what drove the winning score.

    Example:
        "Classified as electricity due to keywords: elektrik, tedaş and
        company: TEDAŞ (context: currency TRY). Confidence: 100%"
    """
    if winner.bill_type == BillType.UNKNOWN:
        return f"No bill type matched. Confidence: {round(winner.score * 100)}%"

    reasoning = f"Classified as {winner.bill_type.value}"
    evidence = []

    if winner.primary_matches:
        evidence.append(f"keywords: {', '.join(winner.primary_matches[:3])}")
    elif winner.secondary_matches:
        evidence.append(f"secondary keywords: {', '.join(winner.secondary_matches[:3])}")
    if winner.pattern_matches:
        evidence.append(f"{winner.pattern_matches} pattern(s)")
    if evidence:
        reasoning += f" due to {'; '.join(evidence)}"

    if winner.company is not None:
        source = "company hint" if winner.company_from_hint else "company"
        reasoning += f" and {source}: {winner.company.name}"

    if winner.negative_matches:
        reasoning += f", penalized for: {', '.join(winner.negative_matches)}"

    if winner.boosts:
        reasoning += f" (context: {', '.join(winner.boosts)})"
    elif context is not None and context.currency is not None:
        reasoning += f" (Currency: {context.currency.value})"

    reasoning += f". Confidence: {round(winner.score * 100)}%"
    return reasoning


def classify_bill(
    text: str,
    context: Optional[ClassificationContext] = None,
    rules: RuleSet = DEFAULT_RULES,
    weights: ScoringWeights = DEFAULT_WEIGHTS
) -> ClassificationResult:
    """
    Classify bill text into a BillType.

    The strictly highest score wins; ties go to the type declared first in
    BillType. A winner must score above weights.score_floor, otherwise the
    result is UNKNOWN with confidence 0.

    Args:
        text: Raw OCR text (normalized internally)
        context: Optional currency/country/amount/company signals
        rules: Rule table to score against
        weights: Score weights

    Returns:
        ClassificationResult; never raises for unmatched text
    """
    normalized = normalize_text(text)

    scored = {
        bill_type: score_bill_type(normalized, rules.rule_for(bill_type), rules, context, weights)
        for bill_type in BillType
        if bill_type != BillType.UNKNOWN
    }

    winner = None
    for bill_type in BillType:
        candidate = scored.get(bill_type)
        if candidate is None or candidate.score <= weights.score_floor:
            continue
        if winner is None or candidate.score > winner.score:
            winner = candidate

    if winner is None:
        winner = TypeScore(bill_type=BillType.UNKNOWN, score=0.0)

    reasoning = build_reasoning(winner, context)

    logger.debug("Bill classified", extra={
        "bill_type": winner.bill_type.value,
        "confidence": winner.score,
        "reasoning": reasoning,
    })

    scores = {bill_type: type_score.score for bill_type, type_score in scored.items()}
    scores[BillType.UNKNOWN] = 0.0

    return ClassificationResult(
        type=winner.bill_type,
        confidence=winner.score,
        reasoning=reasoning,
        company=winner.company,
        scores=scores,
    )


def _longest(matches: List[str]) -> Optional[str]:
    best = None
    for match in matches:
        candidate = match.strip()
        if best is None or len(candidate) > len(best):
            best = candidate
    return best


def find_known_company(
    text: str,
    bill_type: Optional[BillType],
    rules: RuleSet = DEFAULT_RULES
) -> Optional[CompanyMatch]:
    """Known company of the bill type written in the text, if any."""
    if not text or bill_type is None or bill_type not in rules.rules:
        return None

    known = _find_company(normalize_text(text), rules.rule_for(bill_type).companies)
    if known is None:
        return None
    return CompanyMatch(name=known, confidence=KNOWN_COMPANY_CONFIDENCE)


def extract_company(
    text: str,
    bill_type: Optional[BillType] = None,
    rules: RuleSet = DEFAULT_RULES
) -> Optional[CompanyMatch]:
    """
    Extract the issuing company.

    Order:
    1. Known company of the bill type (case-insensitive): 0.95
    2. Capitalized words ending in a legal suffix (Ltd, Inc, GmbH...): 0.7
    3. Longest run of all-uppercase words: 0.7

    Args:
        text: Raw OCR text
        bill_type: Winning bill type, if any
        rules: Rule table holding the known company lists

    Returns:
        CompanyMatch or None
    """
    if not text:
        return None

    known = find_known_company(text, bill_type, rules)
    if known is not None:
        return known

    for pattern in (LEGAL_ENTITY_PATTERN, UPPERCASE_RUN_PATTERN):
        name = _longest([match.group(1) for match in pattern.finditer(text)])
        if name:
            return CompanyMatch(name=name, confidence=HEURISTIC_COMPANY_CONFIDENCE)

    return None
