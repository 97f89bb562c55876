"""Response schema and instruction sent with every report request."""

from __future__ import annotations

from typing import Any, Dict, List

from ..domain.models import CONFIDENCE_LEVELS

REQUIRED_FIELDS: List[str] = [
    "shop_name",
    "trust_score",
    "recommendation_summary",
    "executive_summary",
    "financial_estimates",
    "positive_indicators",
    "risks_or_concerns",
    "final_recommendation_and_rationale",
]


def report_schema() -> Dict[str, Any]:
    """JSON schema of the report payload (OpenAI strict structured-output flavour)."""
    return {
        "type": "object",
        "additionalProperties": False,
        "required": list(REQUIRED_FIELDS),
        "properties": {
            "shop_name": {"type": "string"},
            "trust_score": {
                "type": "string",
                "description": "A letter grade (e.g., A, B+, C) representing credit-worthiness.",
            },
            "recommendation_summary": {
                "type": "string",
                "description": "A one or two-word summary of the recommendation (e.g., 'LOW RISK', 'HIGH RISK').",
            },
            "executive_summary": {
                "type": "string",
                "description": "A concise paragraph summarizing the findings and recommendation.",
            },
            "financial_estimates": {
                "type": "array",
                "description": "A list of financial estimates based on the visual data.",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "required": ["metric", "value", "confidence"],
                    "properties": {
                        "metric": {
                            "type": "string",
                            "description": "The name of the metric (e.g., 'Est. Inventory Value').",
                        },
                        "value": {
                            "type": "string",
                            "description": "The estimated value in INR (e.g., '₹72,500').",
                        },
                        "confidence": {
                            "type": "string",
                            "enum": list(CONFIDENCE_LEVELS),
                            "description": "Confidence level for the estimate: 'High', 'Medium', or 'Low'.",
                        },
                    },
                },
            },
            "positive_indicators": {
                "type": "array",
                "items": {"type": "string"},
                "description": "A list of positive observations from the images, phrased as strengths.",
            },
            "risks_or_concerns": {
                "type": "array",
                "items": {"type": "string"},
                "description": "A list of potential risks or concerns observed, phrased as weaknesses.",
            },
            "final_recommendation_and_rationale": {
                "type": "string",
                "description": (
                    "A detailed final recommendation and the rationale behind it, "
                    "including a suggested loan amount if applicable."
                ),
            },
        },
    }


def to_gemini_schema(node: Dict[str, Any]) -> Dict[str, Any]:
    """Convert report_schema() into Gemini's responseSchema dialect.

    Gemini uses upper-case type names, marks enums with format=enum and has no
    additionalProperties keyword.
    """
    out: Dict[str, Any] = {}
    for key, value in node.items():
        if key == "additionalProperties":
            continue
        if key == "type":
            out["type"] = str(value).upper()
        elif key == "properties":
            out["properties"] = {name: to_gemini_schema(child) for name, child in value.items()}
        elif key == "items":
            out["items"] = to_gemini_schema(value)
        else:
            out[key] = value
    if "enum" in out:
        out["format"] = "enum"
    return out


def build_prompt(shop_name: str) -> str:
    return f"""You are 'DrishtiFi', a senior credit analyst AI agent at a major Indian bank. Your job is to create a professional, detailed 'Digital Credit-Readiness Report' for an offline MSME.

You will be given the shop's name and two images: one of the inventory and one of a handwritten sales ledger.

**YOUR TASK:**
Analyze the images and the shop name ("{shop_name}") to generate a comprehensive report. Follow the structure of a professional financial document. Be insightful and base your analysis on the visual evidence.

- **Executive Summary:** Start with a concise summary that includes the trust score and overall recommendation.
- **Financial Estimates:** Provide key financial metrics you can estimate from the images (like inventory value, daily sales, monthly turnover). For each estimate, provide a value in INR and a confidence level (High, Medium, Low).
- **Detailed Analysis:** List specific, bullet-pointed 'Positive Indicators' (strengths) and 'Risks & Concerns' (weaknesses) that you observe.
- **Final Recommendation:** Conclude with a clear recommendation and a detailed rationale explaining why you've reached that conclusion. Suggest a specific loan amount if the business is deemed credit-worthy.

Return **ONLY** a single, valid JSON object that adheres to the provided schema. Do not include any markdown formatting like ```json."""
