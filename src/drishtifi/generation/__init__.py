"""Report generation against an external multimodal model.

Modules:
- schema: response schema (JSON schema + Gemini dialect) and the instruction
- parser: strict decode-and-validate of the model output
- client: image encoding, Gemini/OpenAI backends and the single-shot generator
"""

from .client import (
    GenerationState,
    ImageUpload,
    ReportGenerator,
    generate_credit_report,
)
from .parser import ReportSchemaError, parse_report_text

__all__ = [
    "GenerationState",
    "ImageUpload",
    "ReportGenerator",
    "ReportSchemaError",
    "generate_credit_report",
    "parse_report_text",
]
