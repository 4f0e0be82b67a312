"""
Bill analysis orchestrator.

Runs amount/date extraction, classification, company extraction and
calibration for one OCR result, and fans batches out over a thread pool.
Every step returns an explicit value; the orchestrator decides what an
absent field or a low-quality input means for the caller.
"""

import logging
import secrets
import string
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence

from billsense.config import Settings, settings as default_settings
from billsense.models.bill import (
    AnalysisHints,
    AnalysisOutcome,
    AnalysisResult,
    AnalysisStatistics,
    AnalysisStatus,
    AnalyzeRequest,
    ClassificationContext,
    CompanyCount,
    CompanyMatch,
    LocaleContext,
    OcrResult,
    ProcessingMetrics,
    QuickAnalysis,
)
from billsense.services.classifier import (
    ScoringWeights,
    classify_bill,
    extract_company,
    find_known_company,
)
from billsense.services.locale import resolve_locale
from billsense.services.parser import BillParser
from billsense.services.rules import DEFAULT_RULES, RuleSet
from billsense.utils.scoring import calibrate_confidence

logger = logging.getLogger(__name__)

HINTED_COMPANY_CONFIDENCE = 0.6
LOW_QUALITY_MESSAGE = "OCR confidence too low. Please try with a clearer image."

_BASE36 = string.digits + string.ascii_lowercase


def generate_bill_id() -> str:
    """Caller-side bill identifier: bill_<epoch ms>_<6 base36 chars>."""
    suffix = ''.join(secrets.choice(_BASE36) for _ in range(6))
    return f"bill_{int(time.time() * 1000)}_{suffix}"


def is_reminder_eligible(result: Optional[AnalysisResult]) -> bool:
    """Reminders are only scheduled for bills with a due date."""
    return result is not None and result.due_date is not None


class BillAnalyzer:
    """Service running the full extraction pipeline for bills."""

    def __init__(
        self,
        parser: Optional[BillParser] = None,
        rules: RuleSet = DEFAULT_RULES,
        weights: Optional[ScoringWeights] = None,
        settings: Settings = default_settings,
    ):
        self.settings = settings
        self.parser = parser or BillParser(max_amount=settings.MAX_AMOUNT)
        self.rules = rules
        self.weights = weights or ScoringWeights.from_settings(settings)

    def analyze(
        self,
        ocr: OcrResult,
        locale: LocaleContext,
        hints: Optional[AnalysisHints] = None,
        bill_id: Optional[str] = None
    ) -> AnalysisOutcome:
        """
        Analyze one bill.

        Args:
            ocr: OCR text and confidence
            locale: Caller locale
            hints: Optional currency/country/company overrides
            bill_id: Identifier to report; generated when omitted

        Returns:
            AnalysisOutcome; LOW_INPUT_QUALITY when OCR confidence is below
            the configured minimum (nothing is extracted in that case)
        """
        bill_id = bill_id or generate_bill_id()
        hints = hints or AnalysisHints()

        if ocr.confidence < self.settings.MIN_OCR_CONFIDENCE:
            logger.info("Skipping analysis, OCR confidence too low", extra={
                "bill_id": bill_id,
                "ocr_confidence": ocr.confidence,
                "minimum": self.settings.MIN_OCR_CONFIDENCE,
            })
            return AnalysisOutcome(
                status=AnalysisStatus.LOW_INPUT_QUALITY,
                bill_id=bill_id,
                processing=ProcessingMetrics(ocr_accuracy=ocr.confidence),
                message=LOW_QUALITY_MESSAGE,
            )

        country = hints.country or locale.country_code
        profile = resolve_locale(locale.language_code, country)
        currency_hint = hints.currency or locale.currency_hint

        amount = self.parser.extract_amount(ocr.text, profile, currency_hint)
        due_date = self.parser.extract_due_date(ocr.text, profile)

        classification = classify_bill(
            ocr.text,
            ClassificationContext(
                currency=amount.currency if amount else currency_hint,
                country=profile.country_code,
                amount_hint=amount.value if amount else None,
                company_hint=hints.company,
            ),
            rules=self.rules,
            weights=self.weights,
        )

        # Known company in the text, then the classifier's match (text or hint),
        # then the name heuristics
        company = (
            find_known_company(ocr.text, classification.type, self.rules)
            or classification.company
            or extract_company(ocr.text, rules=self.rules)
        )
        if company is None and hints.company:
            company = CompanyMatch(name=hints.company, confidence=HINTED_COMPANY_CONFIDENCE)

        confidence = calibrate_confidence(
            classification.confidence,
            has_amount=amount is not None,
            has_date=due_date is not None,
            has_company=company is not None,
        )

        result = AnalysisResult(
            type=classification.type,
            amount=amount,
            due_date=due_date,
            company=company.name if company else None,
            confidence=confidence,
        )

        parsing_accuracy = (0.5 if amount else 0.0) + (0.5 if due_date else 0.0)

        logger.info("Bill analyzed", extra={
            "bill_id": bill_id,
            "bill_type": result.type.value,
            "confidence": confidence,
            "has_amount": amount is not None,
            "has_due_date": due_date is not None,
            "company": result.company,
        })

        return AnalysisOutcome(
            status=AnalysisStatus.OK,
            bill_id=bill_id,
            result=result,
            reasoning=classification.reasoning,
            processing=ProcessingMetrics(
                ocr_accuracy=ocr.confidence,
                classification_accuracy=classification.confidence,
                parsing_accuracy=parsing_accuracy,
            ),
        )

    def analyze_request(self, request: AnalyzeRequest, bill_id: Optional[str] = None) -> AnalysisOutcome:
        return self.analyze(
            OcrResult(text=request.text, confidence=request.ocr_confidence),
            LocaleContext(language_code=request.language_code, country_code=request.country_code),
            request.hints,
            bill_id=bill_id,
        )

    def quick_analyze(self, text: str, locale: LocaleContext) -> QuickAnalysis:
        """
        Classification and amount only, without calibration.

        For previews where a date or company lookup is not worth the time.
        """
        amount = self.parser.extract_amount(text, locale)
        classification = classify_bill(text, rules=self.rules, weights=self.weights)
        return QuickAnalysis(
            type=classification.type,
            amount=amount,
            company=classification.company.name if classification.company else None,
            confidence=classification.confidence,
        )

    def _analyze_safely(self, request: AnalyzeRequest) -> AnalysisOutcome:
        bill_id = generate_bill_id()
        try:
            return self.analyze_request(request, bill_id=bill_id)
        except Exception as e:
            logger.warning("Bill analysis failed", exc_info=True, extra={"bill_id": bill_id})
            return AnalysisOutcome(
                status=AnalysisStatus.FAILED,
                bill_id=bill_id,
                processing=ProcessingMetrics(ocr_accuracy=request.ocr_confidence),
                message=str(e),
            )

    def analyze_batch(
        self,
        requests: Sequence[AnalyzeRequest],
        max_workers: Optional[int] = None
    ) -> List[AnalysisOutcome]:
        """
        Analyze independent bills in parallel.

        Outcomes are returned in input order. A failing bill yields a FAILED
        outcome and does not abort the rest of the batch.
        """
        if not requests:
            return []

        workers = max(1, min(len(requests), max_workers or self.settings.BATCH_MAX_WORKERS))
        logger.info("Processing %d bills using %d worker threads", len(requests), workers)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(self._analyze_safely, requests))

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info("Batch analysis completed: %d/%d successful", succeeded, len(outcomes))
        return outcomes


def summarize_results(results: Iterable[AnalysisResult], top_n: int = 10) -> AnalysisStatistics:
    """
    Aggregate statistics over analyzed bills.

    Returns:
        Totals, average confidence, type and currency distributions and the
        most frequent companies
    """
    results = list(results)
    if not results:
        return AnalysisStatistics()

    type_counts = Counter(result.type for result in results)
    currency_counts = Counter(result.amount.currency for result in results if result.amount)
    company_counts = Counter(result.company for result in results if result.company)

    return AnalysisStatistics(
        total_analyzed=len(results),
        average_confidence=sum(result.confidence for result in results) / len(results),
        type_distribution=dict(type_counts),
        currency_distribution=dict(currency_counts),
        top_companies=[
            CompanyCount(name=name, count=count)
            for name, count in company_counts.most_common(top_n)
        ],
    )
