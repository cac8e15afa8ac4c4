"""Recipe generation from detected ingredients and user preferences."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from fridgevision_backend.config import (
    DEFAULT_RECIPE_COUNT,
    DEFAULT_RECIPE_MODEL,
    RECIPE_GENERATION_CONFIG,
)
from fridgevision_backend.models.domain import (
    DietType,
    FoodItem,
    Recipe,
    UserPreferences,
    new_recipe_id,
    utc_now_iso,
)
from fridgevision_backend.services.errors import (
    InsufficientResultsError,
    ParseError,
)
from fridgevision_backend.services.llm import GeminiClient, text_part
from fridgevision_backend.services.normalization import (
    describe_ingredients,
    unique_ingredients,
)

logger = logging.getLogger(__name__)

RECIPE_MODEL_LABEL = "recipe model"
# Ids copied from the schema example are treated as missing.
_PLACEHOLDER_IDS = {"", "unique-id"}

_DIET_DESCRIPTIONS = {
    DietType.VEGETARIAN: "vegetarian only",
    DietType.NON_VEGETARIAN: "can include meat/fish",
    DietType.HEALTHY: "healthy and balanced",
}

_RECIPE_SCHEMA = """[{
  "id": "unique-id",
  "title": "Recipe Name",
  "description": "One sentence summary",
  "cuisine": "cuisine-type",
  "isVegetarian": boolean,
  "caloriesPerServing": number (approx),
  "proteinGrams": number (approx),
  "carbsGrams": number (approx),
  "fatGrams": number (approx),
  "prepTime": "15 min",
  "cookTime": "30 min",
  "servings": number,
  "ingredients": ["item 1", "item 2"],
  "steps": ["step 1", "step 2"],
  "tags": ["quick", "high-protein"],
  "source": "%s"
}]"""


def _join_or(values: Iterable[str], fallback: str) -> str:
    joined = ", ".join(value for value in values if value)
    return joined or fallback


def build_recipe_prompt(
    items: Iterable[str | FoodItem],
    preferences: UserPreferences,
    *,
    count: int,
    model: str,
) -> str:
    """Render the single text prompt sent to the recipe model."""

    lines = [
        f"Using these ingredients: {describe_ingredients(items)}",
        "",
        f"Generate exactly {count} diverse, practical recipes.",
        f"Diet: {_DIET_DESCRIPTIONS[preferences.diet]}",
        (
            f"Cuisines: {', '.join(preferences.cuisines)}"
            if preferences.cuisines
            else "Any cuisine"
        ),
        f"Dietary restrictions: {_join_or(preferences.dietary_restrictions, 'none')}",
        f"Allergies (never include): {_join_or(preferences.allergies, 'none')}",
        f"Skill level: {preferences.skill_level}",
        f"Cooking time: {preferences.cooking_time}",
    ]
    if preferences.use_calorie_target and preferences.calorie_target:
        lines.append(f"Target ~{preferences.calorie_target} calories per serving")

    lines.extend(
        [
            "",
            "Return a JSON array only (no markdown, no text before or after it):",
            _RECIPE_SCHEMA % model,
            "",
            "Keep estimates marked as approximate. No medical/dietary claims.",
        ]
    )
    return "\n".join(lines)


def normalize_recipe(
    payload: object,
    *,
    model: str,
    detected_items: list[str] | None = None,
) -> Recipe | None:
    """Fill in what the model left out and coerce the entry into a ``Recipe``.

    A missing id gets a fresh token, a missing timestamp gets the current
    time and a missing source gets the model id. Entries without ingredients
    yield ``None``.
    """

    if not isinstance(payload, Mapping):
        return None

    completed: dict[str, Any] = dict(payload)
    if str(completed.get("id") or "").strip() in _PLACEHOLDER_IDS:
        completed["id"] = new_recipe_id()
    if not completed.get("createdAt"):
        completed["createdAt"] = utc_now_iso()
    if not completed.get("source"):
        completed["source"] = model
    if detected_items and not completed.get("detectedItems"):
        completed["detectedItems"] = detected_items

    return Recipe.from_dict(completed)


def generate_recipes(
    items: Iterable[str | FoodItem],
    preferences: UserPreferences,
    *,
    client: GeminiClient,
    api_key: str | None,
    model: str = DEFAULT_RECIPE_MODEL,
    count: int = DEFAULT_RECIPE_COUNT,
    min_results: int | None = None,
) -> list[Recipe]:
    """Ask the recipe model for ``count`` recipes and validate the batch.

    Raises ``InsufficientResultsError`` when fewer than ``min_results``
    usable recipes come back (``min_results`` defaults to ``count``).
    """

    if count < 1:
        raise ValueError("count must be at least 1")
    ingredients = unique_ingredients(items)
    if not ingredients:
        raise ValueError("at least one ingredient is required")

    required = count if min_results is None else min_results
    prompt = build_recipe_prompt(
        ingredients, preferences, count=count, model=model
    )

    result = client.generate_content(
        api_key=api_key,
        model=model,
        parts=[text_part(prompt)],
        generation_config=RECIPE_GENERATION_CONFIG,
        what=RECIPE_MODEL_LABEL,
    )

    parsed = result.extract_json("[", what=RECIPE_MODEL_LABEL)
    if not isinstance(parsed, list):
        raise ParseError(f"Invalid response format from {RECIPE_MODEL_LABEL}")

    detected_names = [item.name for item in ingredients]
    recipes: list[Recipe] = []
    seen_ids: set[str] = set()
    for index, entry in enumerate(parsed):
        recipe = normalize_recipe(
            entry, model=model, detected_items=detected_names
        )
        if recipe is None:
            logger.warning(
                "dropping malformed recipe entry",
                extra={"index": index, "model": model},
            )
            continue
        if recipe.id in seen_ids:
            # Models sometimes echo the placeholder id for every entry.
            recipe.id = new_recipe_id()
        seen_ids.add(recipe.id)
        recipes.append(recipe)

    if len(recipes) < required:
        raise InsufficientResultsError(expected=required, received=len(recipes))

    logger.info(
        "generated recipes",
        extra={"model": model, "requested": count, "received": len(recipes)},
    )
    return recipes
