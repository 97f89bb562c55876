"""Plain-text export of a report ("Download as Text")."""

from __future__ import annotations

from ..domain.models import Report

RULE = "-" * 41
TITLE_RULE = "=" * 41
DISCLAIMER = (
    "Disclaimer: This is an AI-generated assessment based on visual data. "
    "All financial decisions should be made in conjunction with standard due diligence by a human loan officer."
)


def render_report_text(report: Report) -> str:
    lines = [
        "DrishtiFi: Digital Credit-Readiness Report",
        TITLE_RULE,
        "",
        f"Shop Name: {report.shop_name}",
        f"Report ID: {report.id}",
        f"Date of Analysis: {report.analysis_date}",
        "",
        RULE,
        "OVERVIEW",
        RULE,
        f"Trust Score: {report.trust_score}",
        f"Recommendation: {report.recommendation_summary.upper()}",
        "",
        "Executive Summary:",
        report.executive_summary,
        "",
        RULE,
        "AI-POWERED FINANCIAL ESTIMATES",
        RULE,
    ]
    lines += [f"- {e.metric}: {e.value} (Confidence: {e.confidence})" for e in report.financial_estimates]
    lines += ["", RULE, "DETAILED ANALYSIS", RULE, "", "Positive Indicators (Strengths):"]
    lines += [f"  - {item}" for item in report.positive_indicators]
    lines += ["", "Risks & Concerns (Weaknesses):"]
    lines += [f"  - {item}" for item in report.risks_or_concerns]
    lines += [
        "",
        RULE,
        "FINAL RECOMMENDATION & RATIONALE",
        RULE,
        report.final_recommendation_and_rationale,
        "",
        RULE,
        DISCLAIMER,
    ]
    return "\n".join(lines) + "\n"


def export_filename(report: Report) -> str:
    return f"DrishtiFi-Report-{report.id}.txt"
