"""Endpoints for model settings, dietary preferences and the API key."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from fridgevision_backend.api.deps import get_gemini_client, get_profile_store
from fridgevision_backend.services.api_keys import check_api_key

bp = Blueprint("settings", __name__, url_prefix="/api")


def _json_object():
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else None


@bp.get("/settings")
def get_settings():
    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(store.get_settings().to_dict())


@bp.put("/settings")
def update_settings():
    """Shallow-merge the posted model settings into the stored ones."""

    payload = _json_object()
    if payload is None:
        return jsonify(error="request body must be a JSON object"), 400

    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(store.save_settings(payload).to_dict())


@bp.get("/preferences")
def get_preferences():
    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(store.get_preferences().to_dict())


@bp.put("/preferences")
def update_preferences():
    """Shallow-merge the posted preferences into the stored ones."""

    payload = _json_object()
    if payload is None:
        return jsonify(error="request body must be a JSON object"), 400

    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(store.save_preferences(payload).to_dict())


@bp.get("/api-key")
def get_api_key_status():
    """Report whether a key is stored; the key itself is never returned."""

    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(configured=store.get_api_key() is not None)


@bp.put("/api-key")
def save_api_key():
    payload = _json_object() or {}
    api_key = payload.get("apiKey")
    if api_key is not None and not isinstance(api_key, str):
        return jsonify(error="apiKey must be a string"), 400

    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    store.save_api_key(api_key)
    return jsonify(configured=store.get_api_key() is not None)


@bp.delete("/api-key")
def clear_api_key():
    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    store.clear_api_key()
    return jsonify(configured=False)


@bp.post("/api-key/test")
def test_api_key():
    """Probe a candidate key, or the stored one when none is posted."""

    payload = _json_object() or {}
    try:
        store = get_profile_store()
        client = get_gemini_client()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    api_key = payload.get("apiKey")
    if not isinstance(api_key, str) or not api_key.strip():
        api_key = store.get_api_key()
    model = payload.get("model")
    if not isinstance(model, str) or not model.strip():
        model = store.get_settings().vision_model

    return jsonify(check_api_key(api_key, model, client=client).to_dict())
