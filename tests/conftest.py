from __future__ import annotations

import io
from typing import Any, Dict

import pytest
from PIL import Image

from drishtifi.domain.models import FinancialEstimate, Report
from drishtifi.generation.client import ImageUpload
from drishtifi.storage import InMemoryStorage


def png_bytes(color: str = "white") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def inventory_image() -> ImageUpload:
    return ImageUpload(data=png_bytes("red"), mime_type="image/png", filename="inventory.png")


@pytest.fixture
def ledger_image() -> ImageUpload:
    return ImageUpload(data=b"\xff\xd8\xff\xe0fake-jpeg", mime_type="image/jpeg", filename="ledger.jpg")


@pytest.fixture
def model_payload() -> Dict[str, Any]:
    return {
        "shop_name": "Raju Kirana Store",
        "trust_score": "B+",
        "recommendation_summary": "MEDIUM RISK",
        "executive_summary": "Well stocked shop with consistent ledger entries.",
        "financial_estimates": [
            {"metric": "Est. Inventory Value", "value": "₹72,500", "confidence": "Medium"},
        ],
        "positive_indicators": ["Shelves are well stocked"],
        "risks_or_concerns": ["Ledger has some gaps"],
        "final_recommendation_and_rationale": "Approve a small working-capital loan of ₹50,000.",
    }


@pytest.fixture
def sample_report() -> Report:
    return Report(
        id="DF-1760000000000",
        analysis_date="October 9, 2025, 02:13 PM",
        shop_name="Raju Kirana Store",
        trust_score="B+",
        recommendation_summary="Medium Risk",
        executive_summary="Well stocked shop with consistent ledger entries.",
        financial_estimates=[
            FinancialEstimate("Est. Inventory Value", "₹72,500", "Medium"),
            FinancialEstimate("Est. Daily Sales", "₹4,000", "Low"),
        ],
        positive_indicators=["Shelves are well stocked", "Daily entries in ledger"],
        risks_or_concerns=["Ledger has some gaps"],
        final_recommendation_and_rationale="Approve a small working-capital loan of ₹50,000.",
    )
