"""Recipe generation and history endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from fridgevision_backend.api.deps import (
    get_gemini_client,
    get_profile_store,
    pipeline_error_response,
)
from fridgevision_backend.models.domain import FoodItem
from fridgevision_backend.services.errors import FridgeVisionError
from fridgevision_backend.services.recipes import generate_recipes

bp = Blueprint("recipes", __name__, url_prefix="/api")

_MAX_RECIPE_COUNT = 10


def _parse_items(raw_items: object) -> list[FoodItem]:
    if not isinstance(raw_items, list):
        return []
    items = []
    for raw_item in raw_items:
        item = FoodItem.from_payload(raw_item)
        if item is not None:
            items.append(item)
    return items


@bp.post("/recipes")
def create_recipes():
    """Generate recipes for the posted items using the stored preferences."""

    payload = request.get_json(silent=True) or {}
    items = _parse_items(payload.get("items"))
    if not items:
        return jsonify(error="items must contain at least one ingredient"), 400

    default_count = current_app.config["RECIPE_COUNT"]
    raw_count = payload.get("count", default_count)
    if isinstance(raw_count, bool) or not isinstance(raw_count, int):
        return jsonify(error="count must be an integer"), 400
    count = max(min(raw_count, _MAX_RECIPE_COUNT), 1)
    min_results = min(current_app.config["MIN_RECIPE_RESULTS"], count)

    try:
        store = get_profile_store()
        client = get_gemini_client()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        recipes = generate_recipes(
            items,
            store.get_preferences(),
            client=client,
            api_key=store.get_api_key(),
            model=store.get_settings().recipe_model,
            count=count,
            min_results=min_results,
        )
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except FridgeVisionError as exc:
        return pipeline_error_response(
            exc, fallback="Could not generate recipes. Please try again."
        )

    for recipe in recipes:
        store.add_to_history(recipe)

    return jsonify(recipes=[recipe.to_dict() for recipe in recipes])


@bp.get("/history")
def list_history():
    """Return recently generated recipes, newest first."""

    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(recipes=[recipe.to_dict() for recipe in store.get_history()])


@bp.delete("/history")
def clear_history():
    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    store.clear_history()
    return jsonify(recipes=[])
