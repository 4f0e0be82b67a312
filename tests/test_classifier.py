"""
Tests for bill-type classification and company extraction.

Tests cover:
- Keyword, pattern and company evidence per bill type
- Negative keywords and score clamping
- Tie-break by bill type order, score floor
- Context boosts (currency, large amount, country) and company hints
- Company extraction order (known, legal suffix, uppercase run)
- Rule table validation
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from decimal import Decimal
import pytest

from billsense.models.bill import BillType, ClassificationContext, Currency
from billsense.services.classifier import (
    HEURISTIC_COMPANY_CONFIDENCE,
    KNOWN_COMPANY_CONFIDENCE,
    ScoringWeights,
    classify_bill,
    extract_company,
    find_known_company,
)
from billsense.services.rules import (
    DEFAULT_RULES,
    ClassificationRule,
    RuleValidationError,
    build_rule_set,
    validate_rules,
)


def _rules_with(*rules):
    """Rule set where only the given rules carry evidence."""
    given = {rule.bill_type for rule in rules}
    empty = [ClassificationRule(t) for t in BillType if t not in given]
    return build_rule_set(*rules, *empty)


class TestClassification:
    """Bill types are recognized from multilingual text."""

    def test_turkish_electricity(self):
        result = classify_bill("TEDAŞ Elektrik Faturası\nToplam: 245,50 TL")
        assert result.type == BillType.ELECTRICITY
        assert result.confidence == 1.0
        assert result.company.name == "TEDAŞ"
        assert "electricity" in result.reasoning

    def test_consumption_keyword_with_company(self):
        result = classify_bill("elektrik tüketimi TEDAŞ")
        assert result.type == BillType.ELECTRICITY
        assert result.confidence >= 0.9
        assert result.company.name == "TEDAŞ"

    def test_turkish_water(self):
        result = classify_bill("İSKİ Su Faturası")
        assert result.type == BillType.WATER
        assert result.company.name == "İSKİ"
        assert result.scores[BillType.ELECTRICITY] == 0.0

    def test_german_gas(self):
        result = classify_bill("Ihre Erdgas Rechnung")
        assert result.type == BillType.GAS

    def test_internet(self):
        result = classify_bill("Fiber internet package 100 Mbps")
        assert result.type == BillType.INTERNET

    def test_credit_card(self):
        result = classify_bill("Credit card statement. Minimum payment due")
        assert result.type == BillType.CREDIT_CARD

    def test_ocr_without_accents(self):
        assert classify_bill("TEDAS ELEKTRIK").type == BillType.ELECTRICITY

    def test_empty_text_is_unknown(self):
        result = classify_bill("")
        assert result.type == BillType.UNKNOWN
        assert result.confidence == 0.0
        assert result.company is None
        assert result.reasoning.startswith("No bill type matched")

    def test_unrelated_text_is_unknown(self):
        assert classify_bill("Lorem ipsum dolor sit amet").type == BillType.UNKNOWN

    def test_short_keyword_inside_word_ignored(self):
        """'su' inside 'sum' is not water evidence."""
        assert classify_bill("sum result").type == BillType.UNKNOWN

    def test_scores_cover_every_type_and_are_clamped(self):
        result = classify_bill("Elektrik elektrik tüketimi kWh enerji TEDAŞ fatura")
        assert set(result.scores) == set(BillType)
        assert all(0.0 <= score <= 1.0 for score in result.scores.values())

    def test_deterministic(self):
        text = "Vodafone mobile phone bill 500 minutes"
        assert classify_bill(text) == classify_bill(text)


class TestScoringRules:
    """Scoring arithmetic against injected rule tables."""

    def test_tie_goes_to_earlier_type(self):
        rules = _rules_with(
            ClassificationRule(BillType.WATER, primary=("utility",)),
            ClassificationRule(BillType.ELECTRICITY, primary=("utility",)),
        )
        result = classify_bill("utility", rules=rules)
        assert result.type == BillType.ELECTRICITY
        assert result.confidence == pytest.approx(0.4)

    def test_negative_keyword_penalty(self):
        rules = _rules_with(
            ClassificationRule(BillType.GAS, primary=("meter",), secondary=("reading",)),
            ClassificationRule(BillType.WATER, primary=("meter",), negative_keywords=("reading",)),
        )
        result = classify_bill("meter reading", rules=rules)
        assert result.type == BillType.GAS
        assert result.scores[BillType.GAS] == pytest.approx(0.6)
        assert result.scores[BillType.WATER] == pytest.approx(0.1)

    def test_negative_only_clamps_to_zero(self):
        rules = _rules_with(
            ClassificationRule(BillType.RENT, primary=("lease",), negative_keywords=("water", "gas", "power")),
        )
        result = classify_bill("lease water gas power", rules=rules)
        assert result.scores[BillType.RENT] == 0.0
        assert result.type == BillType.UNKNOWN

    def test_score_floor(self):
        weights = ScoringWeights(score_floor=0.5)
        rules = _rules_with(ClassificationRule(BillType.RENT, primary=("lease",)))
        assert classify_bill("lease", rules=rules, weights=weights).type == BillType.UNKNOWN
        assert classify_bill("lease", rules=rules).type == BillType.RENT

    def test_custom_weights(self):
        weights = ScoringWeights(primary=0.25)
        rules = _rules_with(ClassificationRule(BillType.RENT, primary=("lease",)))
        assert classify_bill("lease", rules=rules, weights=weights).confidence == pytest.approx(0.25)


class TestContextBoosts:
    """Context nudges scores of types that already have evidence."""

    def test_boosts_add_up(self):
        plain = classify_bill("strom")
        context = ClassificationContext(currency=Currency.EUR, country="DE", amount_hint=Decimal("250"))
        boosted = classify_bill("strom", context)

        assert plain.confidence == pytest.approx(0.4)
        # currency 0.1 + large amount 0.05 + country 0.1
        assert boosted.confidence == pytest.approx(0.65)
        assert "currency EUR" in boosted.reasoning
        assert "large amount" in boosted.reasoning
        assert "country DE" in boosted.reasoning

    def test_small_amount_not_boosted(self):
        context = ClassificationContext(amount_hint=Decimal("50"))
        assert classify_bill("strom", context).confidence == pytest.approx(0.4)

    def test_context_alone_does_not_classify(self):
        context = ClassificationContext(currency=Currency.TRY, country="TR", amount_hint=Decimal("500"))
        result = classify_bill("", context)
        assert result.type == BillType.UNKNOWN
        assert result.confidence == 0.0

    def test_country_alias(self):
        context = ClassificationContext(country="UK")
        result = classify_bill("gas", context)
        # BRITISH GAS operates in GB
        assert result.confidence == pytest.approx(0.5)

    def test_company_hint_counts_as_company(self):
        context = ClassificationContext(company_hint="E.ON")
        result = classify_bill("energy", context)
        assert result.type == BillType.ELECTRICITY
        assert result.confidence == pytest.approx(0.9)
        assert result.company.name == "E.ON"
        assert "company hint: E.ON" in result.reasoning

    def test_unknown_company_hint_ignored(self):
        context = ClassificationContext(company_hint="Acme Utility")
        assert classify_bill("energy", context).confidence == pytest.approx(0.4)


class TestCompanyExtraction:
    """Company names come from known lists first, then heuristics."""

    def test_known_company_for_type(self):
        company = extract_company("Rechnung von E.ON Energie", BillType.ELECTRICITY)
        assert company.name == "E.ON"
        assert company.confidence == KNOWN_COMPANY_CONFIDENCE

    def test_known_company_case_insensitive(self):
        company = extract_company("paid to turkcell", BillType.PHONE)
        assert company.name == "TURKCELL"

    def test_legal_suffix(self):
        company = extract_company("Thank you for choosing Acme Power Ltd. for your service")
        assert company.name == "Acme Power Ltd."
        assert company.confidence == HEURISTIC_COMPANY_CONFIDENCE

    def test_german_legal_suffix(self):
        company = extract_company("Stadtwerke München GmbH\nStromrechnung", BillType.ELECTRICITY)
        assert company.name == "Stadtwerke München GmbH"

    def test_uppercase_run(self):
        company = extract_company("Invoice from NORDIC WATER SERVICES\nAccount 123")
        assert company.name == "NORDIC WATER SERVICES"
        assert company.confidence == HEURISTIC_COMPANY_CONFIDENCE

    def test_find_known_company_only_in_text(self):
        assert find_known_company("ACCOUNT SUMMARY elektrik", BillType.ELECTRICITY) is None
        assert find_known_company("E.ON Energie", None) is None
        assert find_known_company("E.ON Energie", BillType.ELECTRICITY).name == "E.ON"

    def test_nothing_found(self):
        assert extract_company("") is None
        assert extract_company("just some lowercase words") is None


class TestRuleValidation:
    """The default table validates; broken tables are rejected."""

    def test_default_rules_valid(self):
        assert validate_rules(DEFAULT_RULES) is DEFAULT_RULES

    def test_missing_type_rejected(self):
        rules = build_rule_set(ClassificationRule(BillType.ELECTRICITY, primary=("power",)))
        with pytest.raises(RuleValidationError):
            validate_rules(rules)

    def test_unknown_with_evidence_rejected(self):
        rules = _rules_with(ClassificationRule(BillType.UNKNOWN, primary=("misc",)))
        with pytest.raises(RuleValidationError):
            validate_rules(rules)

    def test_empty_type_rejected(self):
        # every type except UNKNOWN is empty here
        with pytest.raises(RuleValidationError):
            validate_rules(_rules_with())

    def test_self_penalizing_rule_rejected(self):
        rules = dict(DEFAULT_RULES.rules)
        rules[BillType.RENT] = ClassificationRule(BillType.RENT, primary=("rent",), negative_keywords=("rent",))
        with pytest.raises(RuleValidationError):
            validate_rules(build_rule_set(*rules.values()))
