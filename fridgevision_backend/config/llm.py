"""Defaults for the Gemini models that are tracked in Git."""

# Model versions used by default. Users can override them per profile.
DEFAULT_VISION_MODEL = "gemini-2.5-flash"
DEFAULT_RECIPE_MODEL = "gemini-2.5-flash"

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_TIMEOUT_SECONDS = 60.0

# Canonical instruction for vision analysis requests.
VISION_PROMPT = (
    "Identify edible items in this image. Return JSON only (no markdown): "
    '{"isFood":boolean, "items":[{"name":string, "confidence":number, '
    '"quantityHint":string}], "suggestions":[string]}. "suggestions" holds 2-3 '
    "quick dishes the items could make. If uncertain or no food, set "
    "isFood=false and leave suggestions empty."
)

VISION_GENERATION_CONFIG = {"temperature": 0.4, "maxOutputTokens": 1024}
RECIPE_GENERATION_CONFIG = {"temperature": 0.8, "maxOutputTokens": 4096}

DEFAULT_RECIPE_COUNT = 5
# Batches shorter than this are rejected rather than returned short.
MIN_RECIPE_RESULTS = 5

API_KEY_PROBE_PROMPT = "Say 'API key is valid' if you can read this."
