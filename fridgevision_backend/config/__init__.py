"""Static configuration shipped with the codebase."""

# Model and prompt defaults live in a dedicated module for clarity and reuse.
from .llm import (
    API_KEY_PROBE_PROMPT,
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_GEMINI_TIMEOUT_SECONDS,
    DEFAULT_RECIPE_COUNT,
    DEFAULT_RECIPE_MODEL,
    DEFAULT_VISION_MODEL,
    MIN_RECIPE_RESULTS,
    RECIPE_GENERATION_CONFIG,
    VISION_GENERATION_CONFIG,
    VISION_PROMPT,
)
from .storage import BUCKET_KEYS, HISTORY_LIMIT

__all__ = [
    "API_KEY_PROBE_PROMPT",
    "BUCKET_KEYS",
    "DEFAULT_GEMINI_BASE_URL",
    "DEFAULT_GEMINI_TIMEOUT_SECONDS",
    "DEFAULT_RECIPE_COUNT",
    "DEFAULT_RECIPE_MODEL",
    "DEFAULT_VISION_MODEL",
    "HISTORY_LIMIT",
    "MIN_RECIPE_RESULTS",
    "RECIPE_GENERATION_CONFIG",
    "VISION_GENERATION_CONFIG",
    "VISION_PROMPT",
]
