"""
Test suite for the HTTP API.

Tests cover:
- Health and root endpoints
- Single and batch analysis, including the low-quality 422
- Request validation
- Classification and locale endpoints
"""

import inspect
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from decimal import Decimal
from fastapi.testclient import TestClient

from billsense.main import app
from billsense.routers import analyze as analyze_router
from billsense.routers.analyze import MAX_BATCH_SIZE
from billsense.services.analyzer import LOW_QUALITY_MESSAGE


client = TestClient(app)

TURKISH_BILL = (
    "TEDAŞ Elektrik Faturası\n"
    "Toplam: 245,50 TL\n"
    "Son ödeme tarihi: 15.03.2024"
)


class TestServiceEndpoints:
    """Root and health checks."""

    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"


class TestAnalyzeEndpoint:
    """POST /analyze"""

    def test_analyze_turkish_bill(self):
        response = client.post("/analyze", json={
            "text": TURKISH_BILL,
            "ocr_confidence": 0.95,
            "language_code": "tr",
            "country_code": "TR",
        })
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["bill_id"].startswith("bill_")
        assert data["result"]["type"] == "electricity"
        assert Decimal(str(data["result"]["amount"]["value"])) == Decimal("245.50")
        assert data["result"]["amount"]["currency"] == "TRY"
        assert data["result"]["due_date"]["date"] == "2024-03-15"
        assert data["result"]["company"] == "TEDAŞ"
        assert data["processing"]["parsing_accuracy"] == 1.0

    def test_analyze_with_hints(self):
        response = client.post("/analyze", json={
            "text": "Total 120.00 EUR and 30.00 USD",
            "ocr_confidence": 0.9,
            "hints": {"currency": "EUR"},
        })
        assert response.status_code == 200
        assert response.json()["result"]["amount"]["currency"] == "EUR"

    def test_low_quality_returns_422(self):
        response = client.post("/analyze", json={
            "text": TURKISH_BILL,
            "ocr_confidence": 0.1,
        })
        assert response.status_code == 422
        assert response.json()["detail"] == LOW_QUALITY_MESSAGE

    def test_invalid_confidence_rejected(self):
        response = client.post("/analyze", json={"text": "x", "ocr_confidence": 1.5})
        assert response.status_code == 422

    def test_missing_text_rejected(self):
        response = client.post("/analyze", json={"ocr_confidence": 0.9})
        assert response.status_code == 422

    def test_unknown_currency_hint_rejected(self):
        response = client.post("/analyze", json={
            "text": "x",
            "ocr_confidence": 0.9,
            "hints": {"currency": "XYZ"},
        })
        assert response.status_code == 422


class TestBatchEndpoint:
    """POST /analyze/batch"""

    def test_batch_keeps_order_and_reports_low_quality(self):
        response = client.post("/analyze/batch", json=[
            {"text": TURKISH_BILL, "ocr_confidence": 0.9, "language_code": "tr", "country_code": "TR"},
            {"text": TURKISH_BILL, "ocr_confidence": 0.05},
        ])
        assert response.status_code == 200

        data = response.json()
        assert [item["status"] for item in data] == ["ok", "low_input_quality"]
        assert data[1]["result"] is None

    def test_batch_too_large(self):
        item = {"text": "x", "ocr_confidence": 0.9}
        response = client.post("/analyze/batch", json=[item] * (MAX_BATCH_SIZE + 1))
        assert response.status_code == 400


class TestClassifyEndpoint:
    """POST /analyze/classify"""

    def test_classify(self):
        response = client.post("/analyze/classify", json={"text": "İSKİ Su Faturası"})
        assert response.status_code == 200

        data = response.json()
        assert data["type"] == "water"
        assert data["company"]["name"] == "İSKİ"
        assert set(data["scores"]) >= {"electricity", "water", "unknown"}

    def test_classify_with_context(self):
        response = client.post("/analyze/classify", json={
            "text": "strom",
            "context": {"currency": "EUR", "country": "DE", "amount_hint": "250"},
        })
        assert response.status_code == 200
        assert abs(response.json()["confidence"] - 0.65) < 1e-9

    def test_classify_unknown(self):
        response = client.post("/analyze/classify", json={"text": ""})
        assert response.status_code == 200
        assert response.json()["type"] == "unknown"


class TestLocaleEndpoint:
    """GET /analyze/locales/{language}/{country}"""

    def test_german_profile(self):
        response = client.get("/analyze/locales/de/DE")
        assert response.status_code == 200

        data = response.json()
        assert data["primary_currency"] == "EUR"
        assert data["separator_convention"] == "comma-decimal"
        assert data["date_formats"][0] == "DD.MM.YYYY"
        assert "fällig" in data["due_keywords"]

    def test_unknown_profile_falls_back(self):
        data = client.get("/analyze/locales/xx/ZZ").json()
        assert data["primary_currency"] == "USD"
        assert data["due_keywords"][0] == "due"


class TestHandlers:
    """Route handlers run in the threadpool."""

    def test_handlers_are_synchronous(self):
        for handler in (
            analyze_router.analyze_bill,
            analyze_router.analyze_batch,
            analyze_router.classify,
            analyze_router.get_locale_profile,
        ):
            assert not inspect.iscoroutinefunction(handler)
