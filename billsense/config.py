from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "BillSense"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Input gate: OCR results below this confidence are not analyzed
    MIN_OCR_CONFIDENCE: float = 0.3

    # Optional amount ceiling; unset means every positive match is considered
    MAX_AMOUNT: Optional[float] = None

    # Batch analysis
    BATCH_MAX_WORKERS: int = 4

    # Classifier weights
    CLASSIFIER_PRIMARY_WEIGHT: float = 0.4
    CLASSIFIER_SECONDARY_WEIGHT: float = 0.2
    CLASSIFIER_PATTERN_WEIGHT: float = 0.3
    CLASSIFIER_COMPANY_WEIGHT: float = 0.5
    CLASSIFIER_NEGATIVE_WEIGHT: float = 0.3
    CLASSIFIER_CURRENCY_BOOST: float = 0.1
    CLASSIFIER_LARGE_AMOUNT_BOOST: float = 0.05
    CLASSIFIER_LARGE_AMOUNT_THRESHOLD: float = 100
    CLASSIFIER_COUNTRY_BOOST: float = 0.1
    CLASSIFIER_SCORE_FLOOR: float = 0.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
