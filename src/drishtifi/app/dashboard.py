from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..domain.models import Report

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Accepted shapes of analysisDate, newest writer format first.
_DATE_FORMATS = (
    "%B %d, %Y, %I:%M %p",
    "%B %d, %Y at %I:%M %p",
    "%B %d, %Y %I:%M %p",
    "%B %d, %Y",
)


def format_analysis_date(dt: datetime) -> str:
    """en-US long date with 2-digit 12h time, e.g. "October 8, 2026, 03:45 PM"."""
    hour12 = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{_MONTHS[dt.month - 1]} {dt.day}, {dt.year}, {hour12:02d}:{dt.minute:02d} {meridiem}"


def parse_analysis_date(value: str) -> Optional[datetime]:
    text = (value or "").strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _id_number(report_id: str) -> int:
    tail = report_id[3:] if report_id.startswith("DF-") else report_id
    return int(tail) if tail.isdigit() else 0


def _sort_key(report: Report) -> Tuple[datetime, int]:
    return (parse_analysis_date(report.analysis_date) or datetime.min, _id_number(report.id))


def sort_reports(reports: Sequence[Report]) -> List[Report]:
    """Most recent first; unparsable dates sink to the end."""
    return sorted(reports, key=_sort_key, reverse=True)


def filter_reports(reports: Sequence[Report], query: Optional[str]) -> List[Report]:
    ordered = sort_reports(reports)
    if not query or not query.strip():
        return ordered
    needle = query.lower()
    return [r for r in ordered if needle in r.shop_name.lower() or needle in r.analysis_date.lower()]


def score_tone(trust_score: str) -> str:
    first = (trust_score or "")[:1]
    if first == "A":
        return "high"
    if first == "B":
        return "medium"
    if first in ("C", "D"):
        return "low"
    return "neutral"


def recommendation_tone(summary: str) -> str:
    text = (summary or "").lower()
    if "high risk" in text:
        return "low"
    if "medium risk" in text:
        return "medium"
    if "low risk" in text:
        return "high"
    return "neutral"


def confidence_tone(confidence: str) -> str:
    return {"high": "high", "medium": "medium", "low": "low"}.get((confidence or "").lower(), "neutral")


def report_card(report: Report) -> dict:
    """Dashboard list entry: the report plus its display tones."""
    card = report.to_dict()
    for estimate in card["financial_estimates"]:
        estimate["confidence_tone"] = confidence_tone(estimate["confidence"])
    card["score_tone"] = score_tone(report.trust_score)
    card["recommendation_tone"] = recommendation_tone(report.recommendation_summary)
    return card
