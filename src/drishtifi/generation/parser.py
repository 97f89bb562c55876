from __future__ import annotations

import json
from typing import Any, Dict, List

from ..domain.models import CONFIDENCE_LEVELS, FinancialEstimate, GeneratedReport
from ..logging import get_logger
from .schema import REQUIRED_FIELDS


LOG = get_logger("generation-parser")

_CONFIDENCE_BY_LOWER = {c.lower(): c for c in CONFIDENCE_LEVELS}


class ReportSchemaError(Exception):
    pass


def _string(payload: Dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str):
        raise ReportSchemaError(f"{key} must be a string")
    return value


def _string_list(payload: Dict[str, Any], key: str) -> List[str]:
    value = payload[key]
    if not isinstance(value, list):
        raise ReportSchemaError(f"{key} must be an array")
    for idx, item in enumerate(value):
        if not isinstance(item, str):
            raise ReportSchemaError(f"{key}[{idx}] must be a string")
    return list(value)


def _estimates(payload: Dict[str, Any]) -> List[FinancialEstimate]:
    raw = payload["financial_estimates"]
    if not isinstance(raw, list):
        raise ReportSchemaError("financial_estimates must be an array")
    out: List[FinancialEstimate] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ReportSchemaError(f"financial_estimates[{idx}] must be an object")
        for key in ("metric", "value", "confidence"):
            if key not in item:
                raise ReportSchemaError(f"financial_estimates[{idx}].{key} required")
            if not isinstance(item[key], str):
                raise ReportSchemaError(f"financial_estimates[{idx}].{key} must be a string")
        confidence = _CONFIDENCE_BY_LOWER.get(item["confidence"].strip().lower())
        if confidence is None:
            raise ReportSchemaError(
                f"financial_estimates[{idx}].confidence must be one of {', '.join(CONFIDENCE_LEVELS)}"
            )
        out.append(FinancialEstimate(metric=item["metric"], value=item["value"], confidence=confidence))
    return out


def validate_report_payload(payload: Any) -> GeneratedReport:
    """Check a decoded model payload against the report schema.

    Every schema field is required. Confidence values are matched
    case-insensitively and normalized to High/Medium/Low. Unknown keys are
    ignored.
    """
    if not isinstance(payload, dict):
        raise ReportSchemaError("Payload must be a JSON object")
    missing = [key for key in REQUIRED_FIELDS if key not in payload]
    if missing:
        raise ReportSchemaError(f"missing required field(s): {', '.join(missing)}")
    extra = sorted(set(payload) - set(REQUIRED_FIELDS))
    if extra:
        LOG.debug("Ignoring unexpected field(s) in model payload: %s", extra)
    return GeneratedReport(
        shop_name=_string(payload, "shop_name"),
        trust_score=_string(payload, "trust_score"),
        recommendation_summary=_string(payload, "recommendation_summary"),
        executive_summary=_string(payload, "executive_summary"),
        financial_estimates=_estimates(payload),
        positive_indicators=_string_list(payload, "positive_indicators"),
        risks_or_concerns=_string_list(payload, "risks_or_concerns"),
        final_recommendation_and_rationale=_string(payload, "final_recommendation_and_rationale"),
    )


def parse_report_text(text: Any) -> GeneratedReport:
    """Decode the raw response body and validate it. No fence stripping or JSON scavenging."""
    if not isinstance(text, str) or not text.strip():
        raise ReportSchemaError("empty response body")
    try:
        payload = json.loads(text.strip())
    except ValueError as exc:
        LOG.debug("Response is not valid JSON (first 500 chars: %r)", text[:500])
        raise ReportSchemaError(f"response is not valid JSON: {exc}") from exc
    return validate_report_payload(payload)
