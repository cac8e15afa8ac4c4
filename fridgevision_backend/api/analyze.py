"""Endpoint that runs food detection on an uploaded photo."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from fridgevision_backend.api.deps import (
    get_gemini_client,
    get_profile_store,
    pipeline_error_response,
)
from fridgevision_backend.services.errors import FridgeVisionError
from fridgevision_backend.services.uploads import read_image_upload
from fridgevision_backend.services.vision import analyze_image

bp = Blueprint("analyze", __name__, url_prefix="/api")


@bp.post("/analyze")
def analyze_photo():
    """Detect food items in a multipart ``image`` file or a JSON data URL."""

    mime_type = None
    if "image" in request.files:
        try:
            upload = read_image_upload(request.files["image"])
        except ValueError as exc:
            return jsonify(error=str(exc)), 400
        image: bytes | str = upload.image_bytes
        mime_type = upload.mime_type
    else:
        payload = request.get_json(silent=True) or {}
        image = payload.get("image")
        if not isinstance(image, str) or not image.strip():
            return jsonify(error="missing file part 'image'"), 400

    try:
        store = get_profile_store()
        client = get_gemini_client()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    settings = store.get_settings()
    try:
        detection = analyze_image(
            image,
            client=client,
            api_key=store.get_api_key(),
            model=settings.vision_model,
            mime_type=mime_type,
        )
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except FridgeVisionError as exc:
        return pipeline_error_response(
            exc, fallback="Could not analyze the image. Please try again."
        )

    return jsonify(detection.to_dict())
