"""Client helpers for interacting with the Gemini generateContent endpoint."""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any, Literal, Mapping, Optional, Sequence

import requests

from fridgevision_backend.config import (
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_GEMINI_TIMEOUT_SECONDS,
)
from fridgevision_backend.services.errors import (
    ApiError,
    ConfigError,
    ParseError,
)
from fridgevision_backend.services.json_extraction import find_json_span

logger = logging.getLogger(__name__)

MAX_RAW_LLM_OUTPUT_BYTES = 16_000
TRUNCATION_SUFFIX = " [truncated]"
MISSING_KEY_MESSAGE = "API key is required. Please configure it in Settings."
API_KEY_HEADER = "x-goog-api-key"

Part = dict[str, Any]


def truncate_raw_llm_output(
    raw_text: str | None,
    *,
    limit_bytes: int = MAX_RAW_LLM_OUTPUT_BYTES,
) -> str | None:
    """Trim oversized LLM responses before logging them."""
    if not raw_text:
        return None
    encoded = raw_text.encode("utf-8")
    if len(encoded) <= limit_bytes:
        return raw_text
    suffix_bytes = TRUNCATION_SUFFIX.encode("utf-8")
    if len(suffix_bytes) >= limit_bytes:
        return TRUNCATION_SUFFIX[:limit_bytes]
    truncated_bytes = encoded[: limit_bytes - len(suffix_bytes)]
    truncated_text = truncated_bytes.decode("utf-8", errors="ignore")
    return f"{truncated_text}{TRUNCATION_SUFFIX}"


def text_part(text: str) -> Part:
    return {"text": text}


def inline_image_part(image_base64: str, mime_type: str = "image/jpeg") -> Part:
    return {"inlineData": {"mimeType": mime_type, "data": image_base64}}


def encode_image_bytes(image_bytes: bytes) -> str:
    return base64.b64encode(image_bytes).decode("ascii")


@dataclass
class GeminiSettings:
    """Configuration required to reach the Gemini REST API."""

    base_url: str = DEFAULT_GEMINI_BASE_URL
    timeout: float = DEFAULT_GEMINI_TIMEOUT_SECONDS
    fallback_api_key: Optional[str] = None


@dataclass(slots=True)
class GeminiResult:
    """Concatenated text of a generateContent response."""

    raw_text: str

    def extract_json(self, opener: Literal["{", "["], *, what: str) -> Any:
        """Decode the first top-level JSON span of the given kind.

        Raises ``ParseError`` when no span exists or it fails to decode.
        """
        span = find_json_span(self.raw_text, opener)
        if span is None:
            logger.debug(
                "no JSON span in %s output: %s",
                what,
                truncate_raw_llm_output(self.raw_text),
            )
            raise ParseError(f"Invalid response format from {what}")
        try:
            return json.loads(span.text)
        except JSONDecodeError as exc:
            logger.debug("%s output was not valid JSON", what, exc_info=True)
            raise ParseError(f"Invalid JSON in response from {what}") from exc


class GeminiClient:
    """Thin wrapper around ``models/{model}:generateContent``.

    The API key travels with each call since it belongs to the user profile,
    not to the process. ``settings.fallback_api_key`` is used when the caller
    has none.
    """

    def __init__(
        self,
        settings: GeminiSettings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or GeminiSettings()
        self._session = session or requests.Session()

    def resolve_api_key(self, api_key: str | None) -> str:
        key = (api_key or "").strip() or (self._settings.fallback_api_key or "")
        if not key:
            raise ConfigError(MISSING_KEY_MESSAGE)
        return key

    def generate_content(
        self,
        *,
        api_key: str | None,
        model: str,
        parts: Sequence[Part],
        generation_config: Mapping[str, Any] | None = None,
        what: str = "model",
    ) -> GeminiResult:
        """Send a single-turn request and return the response text.

        Raises ``ConfigError`` without a key, ``ApiError`` on transport
        failures and ``ParseError`` when the response carries no text.
        """
        key = self.resolve_api_key(api_key)
        body: dict[str, Any] = {"contents": [{"parts": list(parts)}]}
        if generation_config:
            body["generationConfig"] = dict(generation_config)

        url = f"{self._settings.base_url.rstrip('/')}/models/{model}:generateContent"
        try:
            response = self._session.post(
                url,
                headers={API_KEY_HEADER: key},
                json=body,
                timeout=self._settings.timeout,
            )
        except requests.Timeout as exc:
            logger.error("Gemini / HTTP timeout: %r", exc)
            raise ApiError(f"Request to {what} timed out") from exc
        except requests.RequestException as exc:
            logger.error("Gemini / HTTP network error: %r", exc)
            raise ApiError(f"Failed to reach {what}") from exc

        if not response.ok:
            raise self._build_api_error(response)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.exception("invalid Gemini response body")
            raise ParseError(f"Invalid response body from {what}") from exc

        text = self._collect_text(payload)
        if not text:
            raise ParseError(f"No response from {what}")

        return GeminiResult(raw_text=text)

    @staticmethod
    def _build_api_error(response: requests.Response) -> ApiError:
        message = None
        code = None
        try:
            error = (response.json() or {}).get("error") or {}
        except (ValueError, AttributeError):
            error = {}
        if isinstance(error, dict):
            message = error.get("message")
            code = error.get("status") or error.get("code")

        logger.warning(
            "Gemini API returned %s: %s",
            response.status_code,
            (response.text or "")[:512],
        )
        return ApiError(
            message or f"API request failed: {response.status_code}",
            status_code=response.status_code,
            code=code,
        )

    @staticmethod
    def _collect_text(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return ""
        if not isinstance(candidates[0], dict):
            return ""
        content = candidates[0].get("content") or {}
        if not isinstance(content, dict):
            return ""
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            return ""
        texts = [
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        return "".join(texts).strip()


def init_gemini_client(settings: GeminiSettings) -> GeminiClient:
    """Create a ``GeminiClient`` instance from the provided settings."""

    return GeminiClient(settings)
