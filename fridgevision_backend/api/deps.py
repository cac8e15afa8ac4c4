"""Shared API dependencies and helpers."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify

from fridgevision_backend.services.errors import (
    ApiError,
    ConfigError,
    FridgeVisionError,
    describe_error,
)
from fridgevision_backend.services.llm import GeminiClient
from fridgevision_backend.services.profile_store import ProfileStore


def get_profile_store() -> ProfileStore:
    """Return the configured profile bucket store."""

    store: ProfileStore | None = current_app.extensions.get("profile_store")
    if store is None:
        raise RuntimeError("profile store is not configured")
    return store


def get_gemini_client() -> GeminiClient:
    """Return the shared Gemini client."""

    client: GeminiClient | None = current_app.extensions.get("gemini_client")
    if client is None:
        raise RuntimeError("Gemini client is not configured")
    return client


def pipeline_error_response(exc: FridgeVisionError, *, fallback: str):
    """Translate a pipeline failure into a JSON error response."""

    if isinstance(exc, ConfigError):
        status = 400
    else:
        status = 502
    payload: dict[str, Any] = {
        "error": describe_error(exc, fallback),
        "detail": str(exc),
        "type": type(exc).__name__,
    }
    if isinstance(exc, ApiError) and exc.status_code is not None:
        payload["upstreamStatus"] = exc.status_code
    current_app.logger.warning(
        "pipeline failure: %s", exc, extra={"error_type": type(exc).__name__}
    )
    return jsonify(payload), status
