"""Diagnostic probe for user-supplied Gemini API keys."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fridgevision_backend.config import API_KEY_PROBE_PROMPT
from fridgevision_backend.services.errors import FridgeVisionError, ParseError
from fridgevision_backend.services.llm import GeminiClient, text_part

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiKeyCheck:
    """Outcome of probing a key: success flag plus the upstream error."""

    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.error:
            data["error"] = self.error
        return data


def check_api_key(
    api_key: str | None, model: str, *, client: GeminiClient
) -> ApiKeyCheck:
    """Send one minimal request with ``api_key`` and report whether it worked.

    The response content is not inspected. Failures never propagate; the
    upstream message is returned verbatim in ``error``.
    """

    candidate = (api_key or "").strip()
    if not candidate:
        return ApiKeyCheck(success=False, error="API key is required")

    try:
        client.generate_content(
            api_key=candidate,
            model=model,
            parts=[text_part(API_KEY_PROBE_PROMPT)],
            what="model",
        )
    except ParseError:
        # A 2xx without text still means the key was accepted.
        return ApiKeyCheck(success=True)
    except FridgeVisionError as exc:
        logger.info("API key probe failed", extra={"model": model})
        return ApiKeyCheck(
            success=False, error=str(exc) or "Failed to validate API key"
        )
    return ApiKeyCheck(success=True)
