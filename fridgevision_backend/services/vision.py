"""Food detection on fridge and pantry photos."""

from __future__ import annotations

import logging
import re

from fridgevision_backend.config import (
    DEFAULT_VISION_MODEL,
    VISION_GENERATION_CONFIG,
    VISION_PROMPT,
)
from fridgevision_backend.models.domain import DetectionResult
from fridgevision_backend.services.errors import ParseError
from fridgevision_backend.services.llm import (
    GeminiClient,
    encode_image_bytes,
    inline_image_part,
    text_part,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"
_DATA_URL_PREFIX = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?[^,]*,")

VISION_MODEL_LABEL = "vision model"


def split_image_payload(
    image: bytes | str, mime_type: str | None = None
) -> tuple[str, str]:
    """Return ``(base64_data, mime_type)`` for raw bytes or a data URL.

    A ``data:...;base64,`` prefix is stripped and its MIME type wins over
    ``mime_type``. Bare base64 strings pass through unchanged.
    """

    if isinstance(image, (bytes, bytearray)):
        if not image:
            raise ValueError("image is empty")
        return encode_image_bytes(bytes(image)), mime_type or DEFAULT_IMAGE_MIME_TYPE

    payload = (image or "").strip()
    match = _DATA_URL_PREFIX.match(payload)
    if match:
        mime_type = match.group("mime") or mime_type
        payload = payload[match.end() :]
    if not payload:
        raise ValueError("image is empty")
    return payload, mime_type or DEFAULT_IMAGE_MIME_TYPE


def analyze_image(
    image: bytes | str,
    *,
    client: GeminiClient,
    api_key: str | None,
    model: str = DEFAULT_VISION_MODEL,
    mime_type: str | None = None,
) -> DetectionResult:
    """Detect food items in ``image`` with one vision model request.

    ``is_food=False`` is a valid answer; a response that cannot be parsed
    raises ``ParseError`` instead of returning an empty result.
    """

    image_base64, resolved_mime = split_image_payload(image, mime_type)

    result = client.generate_content(
        api_key=api_key,
        model=model,
        parts=[text_part(VISION_PROMPT), inline_image_part(image_base64, resolved_mime)],
        generation_config=VISION_GENERATION_CONFIG,
        what=VISION_MODEL_LABEL,
    )

    parsed = result.extract_json("{", what=VISION_MODEL_LABEL)
    if not isinstance(parsed, dict):
        raise ParseError(f"Invalid response format from {VISION_MODEL_LABEL}")

    detection = DetectionResult.from_payload(parsed)
    logger.info(
        "vision analysis complete",
        extra={
            "model": model,
            "is_food": detection.is_food,
            "item_count": len(detection.items),
        },
    )
    return detection
