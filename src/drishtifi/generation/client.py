from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
import requests
from openai import DEFAULT_TIMEOUT, APIConnectionError, APIStatusError, APITimeoutError, OpenAI, OpenAIError

from ..config import BACKEND_OPENAI, GenerationConfig, build_generation_config
from ..domain.models import GeneratedReport
from ..errors import GenerationFailed, MissingCredential
from ..logging import get_logger
from .parser import ReportSchemaError, parse_report_text
from .schema import build_prompt, report_schema, to_gemini_schema


LOG = get_logger("generation-client")


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    mime_type: str
    filename: Optional[str] = None


@dataclass(frozen=True)
class EncodedImage:
    mime_type: str
    data_b64: str

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_b64}"


class GenerationState(str, Enum):
    IDLE = "idle"
    ENCODING_IMAGES = "encoding_images"
    AWAITING_RESPONSE = "awaiting_response"
    PARSED = "parsed"
    FAILED = "failed"


class BackendError(Exception):
    """Transport or service failure while talking to the model backend."""


def encode_image(image: ImageUpload) -> EncodedImage:
    return EncodedImage(mime_type=image.mime_type, data_b64=base64.b64encode(image.data).decode("ascii"))


class GeminiClient:
    """Thin wrapper around the Gemini generateContent REST endpoint."""

    def __init__(self, config: GenerationConfig) -> None:
        self.config = config

    @property
    def endpoint(self) -> str:
        base = (self.config.base_url or "").rstrip("/")
        return f"{base}/models/{self.config.model_name}:generateContent"

    def build_payload(self, prompt: str, images: List[EncodedImage], schema: Dict[str, Any]) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [
            {"inlineData": {"mimeType": img.mime_type, "data": img.data_b64}} for img in images
        ]
        parts.append({"text": prompt})
        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": to_gemini_schema(schema),
            },
        }

    def generate_json(self, prompt: str, images: List[EncodedImage], schema: Dict[str, Any]) -> str:
        headers = {
            "x-goog-api-key": self.config.api_key or "",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(prompt, images, schema)
        try:
            resp = requests.post(
                self.endpoint,
                headers=headers,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise BackendError(f"Gemini request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise BackendError(f"Gemini HTTP {resp.status_code}: {resp.text[:500]}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise BackendError("Gemini returned a non-JSON envelope") from exc

        text = self.extract_text(body)
        usage = body.get("usageMetadata")
        LOG.info(
            "Gemini response received: finish=%s tokens=%s",
            body["candidates"][0].get("finishReason"),
            usage.get("totalTokenCount") if isinstance(usage, dict) else None,
        )
        return text

    @staticmethod
    def extract_text(body: Any) -> str:
        """Concatenate the text parts of the first candidate; BackendError on any other shape."""
        if not isinstance(body, dict):
            raise BackendError(f"Gemini envelope is not an object: {str(body)[:200]}")
        feedback = body.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            raise BackendError(f"Gemini blocked the prompt: {feedback['blockReason']}")
        candidates = body.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise BackendError(f"Gemini returned no candidates: {str(body)[:500]}")
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise BackendError(f"Gemini candidate has no content parts: {str(first)[:200]}")
        texts: List[str] = []
        for part in parts:
            if not isinstance(part, dict):
                raise BackendError("Gemini content part is not an object")
            value = part.get("text")
            if value is None:
                continue
            if not isinstance(value, str):
                raise BackendError(f"Gemini part text is {type(value).__name__}, expected str")
            texts.append(value)
        if not texts:
            raise BackendError("Gemini candidate carries no text")
        return "".join(texts)


class OpenAIVisionClient:
    """Chat Completions with image parts and a strict json_schema response format."""

    def __init__(self, config: GenerationConfig) -> None:
        self.config = config

    def build_messages(self, prompt: str, images: List[EncodedImage]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": img.data_url()}} for img in images
        ]
        content.append({"type": "text", "text": prompt})
        return [{"role": "user", "content": content}]

    def generate_json(self, prompt: str, images: List[EncodedImage], schema: Dict[str, Any]) -> str:
        timeout = httpx.Timeout(self.config.timeout_seconds) if self.config.timeout_seconds else DEFAULT_TIMEOUT
        http_client = httpx.Client(timeout=timeout)
        client = OpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            http_client=http_client,
            max_retries=0,
        )
        try:
            completion = client.chat.completions.create(
                model=self.config.model_name,
                messages=self.build_messages(prompt, images),
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "credit_report", "strict": True, "schema": schema},
                },
            )
        except (APIConnectionError, APITimeoutError) as exc:
            raise BackendError(f"Network/timeout while calling OpenAI: {exc}") from exc
        except APIStatusError as exc:
            body = getattr(getattr(exc, "response", None), "text", None)
            raise BackendError(f"OpenAI returned {exc.status_code}: {(body or '')[:300]}") from exc
        except OpenAIError as exc:
            raise BackendError(f"OpenAI request failed: {exc}") from exc
        finally:
            http_client.close()

        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None)
        usage = getattr(completion, "usage", None)
        LOG.info(
            "OpenAI completion received: id=%s tokens=%s",
            getattr(completion, "id", None),
            getattr(usage, "total_tokens", None) if usage else None,
        )
        if not isinstance(text, str) or not text:
            refusal = getattr(message, "refusal", None)
            raise BackendError(f"OpenAI returned no message content (refusal={refusal!r})")
        return text


class ReportGenerator:
    """Single-shot report generation: one outbound call, no retries.

    Lifecycle: idle -> encoding_images -> awaiting_response -> parsed | failed.
    A failed run is restarted by calling generate() again.
    """

    def __init__(self, config: Optional[GenerationConfig] = None) -> None:
        self.config = config or build_generation_config()
        self.state = GenerationState.IDLE

    def _transition(self, state: GenerationState) -> None:
        LOG.debug("Generation state: %s -> %s", self.state.value, state.value)
        self.state = state

    def _backend(self):
        if self.config.backend == BACKEND_OPENAI:
            return OpenAIVisionClient(self.config)
        return GeminiClient(self.config)

    def generate(self, shop_name: str, inventory: ImageUpload, ledger: ImageUpload) -> GeneratedReport:
        self.state = GenerationState.IDLE
        if not self.config.api_key:
            raise MissingCredential(
                f"No API key configured for the {self.config.backend} backend "
                "(set API_KEY/GEMINI_API_KEY or OPENAI_API_KEY)."
            )

        self._transition(GenerationState.ENCODING_IMAGES)
        images = [encode_image(inventory), encode_image(ledger)]

        self._transition(GenerationState.AWAITING_RESPONSE)
        LOG.info(
            "Requesting credit report for %r via %s model=%s",
            shop_name,
            self.config.backend,
            self.config.model_name,
        )
        t0 = time.perf_counter()
        try:
            text = self._backend().generate_json(build_prompt(shop_name), images, report_schema())
            report = parse_report_text(text)
        except (BackendError, ReportSchemaError) as exc:
            self._transition(GenerationState.FAILED)
            LOG.error("Error generating report: %s", exc)
            raise GenerationFailed() from exc

        self._transition(GenerationState.PARSED)
        LOG.info("Report generated in %.2fs (trust_score=%s)", time.perf_counter() - t0, report.trust_score)
        return report


def generate_credit_report(
    shop_name: str,
    inventory: ImageUpload,
    ledger: ImageUpload,
    *,
    config: Optional[GenerationConfig] = None,
) -> GeneratedReport:
    return ReportGenerator(config).generate(shop_name, inventory, ledger)
