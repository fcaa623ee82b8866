"""
Shared fixtures for backend tests.

``raw_bill`` mirrors what a provider actually sends back: camelCase keys,
some confidences missing, numbers where strings are expected and vice
versa.  Tests that need a clean canonical bill use ``bill``.
"""
import base64
import copy
import io

import pytest
from PIL import Image

from services.coercion_service import coerce_bill_data
from services.history_service import HistoryStore


RAW_BILL = {
    "accountName": "Jane Doe",
    "accountNumber": "1234-5678-90",
    "serviceAddress": "42 Elm St, Springfield",
    "statementDate": "2026-02-03",
    "servicePeriodStart": "2026-01-01",
    "servicePeriodEnd": "2026-01-31",
    "totalCurrentCharges": 148.27,
    "dueDate": "2026-02-24",
    "confidenceScores": {
        "overall": 0.91,
        "accountName": 0.98,
        "accountNumber": 0.95,
        "serviceAddress": 0.7,
        "statementDate": 0.9,
        "totalCurrentCharges": 0.97,
        "dueDate": 0.88,
    },
    "usageCharts": [
        {
            "title": "Electricity Usage",
            "unit": "kWh",
            "data": [
                {"month": "Jan", "usage": [
                    {"year": "2025", "value": 610, "confidence": 0.9},
                    {"year": "2026", "value": 580, "confidence": 0.3},
                ]},
                {"month": "Feb", "usage": [
                    {"year": "2025", "value": 540},
                ]},
            ],
        },
    ],
    "lineItems": [
        {"description": "Delivery Charge", "amount": 42.1},
        {"description": "Energy Charge", "amount": 111.17},
        {"description": "Autopay Credit", "amount": -5.0},
    ],
}


@pytest.fixture
def raw_bill():
    """A fresh copy of a typical provider response."""
    return copy.deepcopy(RAW_BILL)


@pytest.fixture
def bill(raw_bill):
    return coerce_bill_data(raw_bill)


def make_png(width=64, height=48, color=(30, 120, 200)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_uri(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode()


@pytest.fixture
def history_store(tmp_path):
    return HistoryStore(
        history_file=str(tmp_path / "history.json"),
        uploads_dir=str(tmp_path / "uploads"),
    )
