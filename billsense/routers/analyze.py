"""
Analyze API router.

Bill text arrives already OCR'd; these endpoints run extraction and
classification and return structured results. Handlers are synchronous
and run in FastAPI's threadpool.
"""

from fastapi import APIRouter, HTTPException
from typing import List
import logging

from billsense.config import settings
from billsense.models.bill import (
    AnalysisOutcome,
    AnalyzeRequest,
    ClassificationResult,
    ClassifyRequest,
    LocaleProfileResponse,
)
from billsense.services.analyzer import BillAnalyzer
from billsense.services.classifier import ScoringWeights, classify_bill
from billsense.services.locale import resolve_locale

router = APIRouter(prefix="/analyze", tags=["analyze"])
logger = logging.getLogger(__name__)

analyzer = BillAnalyzer(settings=settings)

MAX_BATCH_SIZE = 50


@router.post("", response_model=AnalysisOutcome)
def analyze_bill(request: AnalyzeRequest):
    """
    Analyze a single bill.

    Args:
        request: OCR text, OCR confidence, caller locale and optional hints

    Returns:
        Analysis outcome with type, amount, due date, company and confidence

    Raises:
        422 when the OCR confidence is too low to analyze
    """
    outcome = analyzer.analyze_request(request)

    if not outcome.success:
        raise HTTPException(status_code=422, detail=outcome.message)

    return outcome


@router.post("/batch", response_model=List[AnalysisOutcome])
def analyze_batch(requests: List[AnalyzeRequest]):
    """
    Analyze several bills in one call.

    Low-quality or failing bills are reported per item instead of failing
    the whole request. Outcomes keep the request order.
    """
    if len(requests) > MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Too many bills: {len(requests)}. Maximum: {MAX_BATCH_SIZE}"
        )

    outcomes = analyzer.analyze_batch(requests)

    logger.info("Batch request served", extra={
        "requested": len(requests),
        "succeeded": sum(1 for outcome in outcomes if outcome.success),
    })

    return outcomes


@router.post("/classify", response_model=ClassificationResult)
def classify(request: ClassifyRequest):
    """Classify bill text without extracting amount or date."""
    return classify_bill(
        request.text,
        request.context,
        weights=ScoringWeights.from_settings(settings),
    )


@router.get("/locales/{language}/{country}", response_model=LocaleProfileResponse)
def get_locale_profile(language: str, country: str):
    """Show the defaults a language/country pair resolves to."""
    profile = resolve_locale(language, country)
    return LocaleProfileResponse(
        language_code=profile.language_code,
        country_code=profile.country_code,
        primary_currency=profile.primary_currency,
        due_keywords=list(profile.due_keywords),
        separator_convention=profile.separator_convention.value,
        date_formats=[spec.format for spec in profile.date_patterns],
    )
