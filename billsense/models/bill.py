"""
Pydantic models for bill analysis.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, List
import datetime
from decimal import Decimal
from enum import Enum


class BillType(str, Enum):
    """Bill categories, in tie-break order."""
    ELECTRICITY = "electricity"
    WATER = "water"
    GAS = "gas"
    INTERNET = "internet"
    PHONE = "phone"
    CABLE = "cable"
    INSURANCE = "insurance"
    RENT = "rent"
    CREDIT_CARD = "credit_card"
    UNKNOWN = "unknown"


class Currency(str, Enum):
    """Supported currencies, in amount-extraction fallback order."""
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    TRY = "TRY"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"
    CHF = "CHF"
    SEK = "SEK"
    NOK = "NOK"


class AnalysisStatus(str, Enum):
    OK = "ok"
    LOW_INPUT_QUALITY = "low_input_quality"
    FAILED = "failed"


class LocaleContext(BaseModel):
    """Language/country pair supplied by the caller for one request."""
    model_config = ConfigDict(frozen=True)

    language_code: str = "en"
    country_code: str = "US"
    currency_hint: Optional[Currency] = None


class OcrResult(BaseModel):
    """Text and confidence produced by the OCR collaborator."""
    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(ge=0.0, le=1.0)


class AnalysisHints(BaseModel):
    """Caller-supplied overrides for locale defaults."""
    model_config = ConfigDict(frozen=True)

    currency: Optional[Currency] = None
    country: Optional[str] = None
    company: Optional[str] = None


class ExtractedAmount(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Decimal = Field(gt=0)
    currency: Currency
    raw: str


class ExtractedDueDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    raw: str
    format: str


class CompanyMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    confidence: float = Field(ge=0.0, le=1.0)


class ClassificationContext(BaseModel):
    """Optional signals that nudge classification scores."""
    model_config = ConfigDict(frozen=True)

    currency: Optional[Currency] = None
    country: Optional[str] = None
    amount_hint: Optional[Decimal] = None
    company_hint: Optional[str] = None


class ClassificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: BillType
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    company: Optional[CompanyMatch] = None
    scores: Dict[BillType, float] = Field(default_factory=dict)


class AnalysisResult(BaseModel):
    """Final analysis handed to persistence and reminder collaborators."""
    model_config = ConfigDict(frozen=True)

    type: BillType
    amount: Optional[ExtractedAmount] = None
    due_date: Optional[ExtractedDueDate] = None
    company: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)


class ProcessingMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    ocr_accuracy: float
    classification_accuracy: float = 0.0
    parsing_accuracy: float = 0.0


class AnalysisOutcome(BaseModel):
    """
    Result of one pipeline run.

    LOW_INPUT_QUALITY and FAILED outcomes carry no result; the caller
    decides whether to ask for a clearer image.
    """
    model_config = ConfigDict(frozen=True)

    status: AnalysisStatus
    bill_id: str
    result: Optional[AnalysisResult] = None
    reasoning: Optional[str] = None
    processing: ProcessingMetrics
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == AnalysisStatus.OK


class QuickAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: BillType
    amount: Optional[ExtractedAmount] = None
    company: Optional[str] = None
    confidence: float


class CompanyCount(BaseModel):
    name: str
    count: int


class AnalysisStatistics(BaseModel):
    total_analyzed: int = 0
    average_confidence: float = 0.0
    type_distribution: Dict[BillType, int] = Field(default_factory=dict)
    currency_distribution: Dict[Currency, int] = Field(default_factory=dict)
    top_companies: List[CompanyCount] = Field(default_factory=list)


class AnalyzeRequest(BaseModel):
    """Model for the analyze endpoint body."""
    text: str
    ocr_confidence: float = Field(ge=0.0, le=1.0)
    language_code: str = "en"
    country_code: str = "US"
    hints: Optional[AnalysisHints] = None


class ClassifyRequest(BaseModel):
    """Model for the classify endpoint body."""
    text: str
    context: Optional[ClassificationContext] = None


class LocaleProfileResponse(BaseModel):
    language_code: str
    country_code: str
    primary_currency: Currency
    due_keywords: List[str]
    separator_convention: str
    date_formats: List[str]
