from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

CONFIDENCE_LEVELS: Tuple[str, ...] = ("High", "Medium", "Low")


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def _require_str_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"{key} must be a list of strings")
    return list(value)


@dataclass(frozen=True)
class FinancialEstimate:
    metric: str
    value: str
    confidence: str  # High | Medium | Low

    def to_dict(self) -> Dict[str, str]:
        return {"metric": self.metric, "value": self.value, "confidence": self.confidence}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinancialEstimate":
        if not isinstance(data, dict):
            raise TypeError("financial estimate must be an object")
        confidence = _require_str(data, "confidence")
        if confidence not in CONFIDENCE_LEVELS:
            raise ValueError(f"confidence must be one of {', '.join(CONFIDENCE_LEVELS)}")
        return cls(metric=_require_str(data, "metric"), value=_require_str(data, "value"), confidence=confidence)


@dataclass(frozen=True)
class GeneratedReport:
    """Model output before the caller assigns an id and analysis date."""

    shop_name: str
    trust_score: str  # letter-grade convention, not validated
    recommendation_summary: str
    executive_summary: str
    financial_estimates: List[FinancialEstimate] = field(default_factory=list)
    positive_indicators: List[str] = field(default_factory=list)
    risks_or_concerns: List[str] = field(default_factory=list)
    final_recommendation_and_rationale: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shop_name": self.shop_name,
            "trust_score": self.trust_score,
            "recommendation_summary": self.recommendation_summary,
            "executive_summary": self.executive_summary,
            "financial_estimates": [e.to_dict() for e in self.financial_estimates],
            "positive_indicators": list(self.positive_indicators),
            "risks_or_concerns": list(self.risks_or_concerns),
            "final_recommendation_and_rationale": self.final_recommendation_and_rationale,
        }


@dataclass(frozen=True)
class Report:
    """A stored credit-readiness report. Immutable once created."""

    id: str
    analysis_date: str
    shop_name: str
    trust_score: str
    recommendation_summary: str
    executive_summary: str
    financial_estimates: List[FinancialEstimate] = field(default_factory=list)
    positive_indicators: List[str] = field(default_factory=list)
    risks_or_concerns: List[str] = field(default_factory=list)
    final_recommendation_and_rationale: str = ""

    @classmethod
    def stamp(cls, generated: GeneratedReport, *, report_id: str, analysis_date: str) -> "Report":
        return cls(
            id=report_id,
            analysis_date=analysis_date,
            shop_name=generated.shop_name,
            trust_score=generated.trust_score,
            recommendation_summary=generated.recommendation_summary,
            executive_summary=generated.executive_summary,
            financial_estimates=list(generated.financial_estimates),
            positive_indicators=list(generated.positive_indicators),
            risks_or_concerns=list(generated.risks_or_concerns),
            final_recommendation_and_rationale=generated.final_recommendation_and_rationale,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialized shape; `analysisDate` keeps its camelCase storage name."""
        return {
            "id": self.id,
            "analysisDate": self.analysis_date,
            "shop_name": self.shop_name,
            "trust_score": self.trust_score,
            "recommendation_summary": self.recommendation_summary,
            "executive_summary": self.executive_summary,
            "financial_estimates": [e.to_dict() for e in self.financial_estimates],
            "positive_indicators": list(self.positive_indicators),
            "risks_or_concerns": list(self.risks_or_concerns),
            "final_recommendation_and_rationale": self.final_recommendation_and_rationale,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Report":
        """Rebuild a stored report; raises KeyError/TypeError/ValueError when malformed."""
        if not isinstance(data, dict):
            raise TypeError("report must be an object")
        estimates = data["financial_estimates"]
        if not isinstance(estimates, list):
            raise TypeError("financial_estimates must be a list")
        return cls(
            id=_require_str(data, "id"),
            analysis_date=_require_str(data, "analysisDate"),
            shop_name=_require_str(data, "shop_name"),
            trust_score=_require_str(data, "trust_score"),
            recommendation_summary=_require_str(data, "recommendation_summary"),
            executive_summary=_require_str(data, "executive_summary"),
            financial_estimates=[FinancialEstimate.from_dict(e) for e in estimates],
            positive_indicators=_require_str_list(data, "positive_indicators"),
            risks_or_concerns=_require_str_list(data, "risks_or_concerns"),
            final_recommendation_and_rationale=_require_str(data, "final_recommendation_and_rationale"),
        )
