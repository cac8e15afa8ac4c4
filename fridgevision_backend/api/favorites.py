"""Endpoints for the user's favorite recipes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from fridgevision_backend.api.deps import get_profile_store
from fridgevision_backend.models.domain import Recipe

bp = Blueprint("favorites", __name__, url_prefix="/api")


@bp.get("/favorites")
def list_favorites():
    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(recipes=[recipe.to_dict() for recipe in store.get_favorites()])


@bp.post("/favorites")
def add_favorite():
    """Save the posted recipe; saving the same id twice keeps one entry."""

    payload = request.get_json(silent=True) or {}
    recipe = Recipe.from_dict(payload.get("recipe", payload))
    if recipe is None:
        return jsonify(error="recipe must include an id and ingredients"), 400

    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    saved = store.add_favorite(recipe)
    return jsonify(recipe=saved.to_dict()), 201


@bp.get("/favorites/<recipe_id>")
def get_favorite_status(recipe_id: str):
    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(id=recipe_id, favorite=store.is_favorite(recipe_id))


@bp.delete("/favorites/<recipe_id>")
def remove_favorite(recipe_id: str):
    try:
        store = get_profile_store()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    store.remove_favorite(recipe_id)
    return jsonify(id=recipe_id, favorite=False)
