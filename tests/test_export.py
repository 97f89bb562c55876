from __future__ import annotations

from drishtifi.app.export import export_filename, render_report_text
from drishtifi.domain.models import Report

EXPECTED = """DrishtiFi: Digital Credit-Readiness Report
=========================================

Shop Name: Raju Kirana Store
Report ID: DF-1760000000000
Date of Analysis: October 9, 2025, 02:13 PM

-----------------------------------------
OVERVIEW
-----------------------------------------
Trust Score: B+
Recommendation: MEDIUM RISK

Executive Summary:
Well stocked shop with consistent ledger entries.

-----------------------------------------
AI-POWERED FINANCIAL ESTIMATES
-----------------------------------------
- Est. Inventory Value: ₹72,500 (Confidence: Medium)
- Est. Daily Sales: ₹4,000 (Confidence: Low)

-----------------------------------------
DETAILED ANALYSIS
-----------------------------------------

Positive Indicators (Strengths):
  - Shelves are well stocked
  - Daily entries in ledger

Risks & Concerns (Weaknesses):
  - Ledger has some gaps

-----------------------------------------
FINAL RECOMMENDATION & RATIONALE
-----------------------------------------
Approve a small working-capital loan of ₹50,000.

-----------------------------------------
Disclaimer: This is an AI-generated assessment based on visual data. All financial decisions should be made in conjunction with standard due diligence by a human loan officer.
"""


def test_text_export_matches_template_exactly(sample_report: Report) -> None:
    assert render_report_text(sample_report).encode("utf-8") == EXPECTED.encode("utf-8")


def test_empty_sections_keep_their_headers(sample_report: Report) -> None:
    bare = Report.from_dict(
        {**sample_report.to_dict(), "financial_estimates": [], "positive_indicators": [], "risks_or_concerns": []}
    )
    text = render_report_text(bare)
    assert "AI-POWERED FINANCIAL ESTIMATES\n-----------------------------------------\n\n----" in text
    assert "Positive Indicators (Strengths):\n\nRisks & Concerns (Weaknesses):\n\n" in text


def test_export_filename(sample_report: Report) -> None:
    assert export_filename(sample_report) == "DrishtiFi-Report-DF-1760000000000.txt"
