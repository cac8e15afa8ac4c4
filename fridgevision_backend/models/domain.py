"""Typed records exchanged with the Gemini models and the profile buckets.

External payloads arrive as loosely-shaped JSON. Each record exposes a
``from_dict``/``from_payload`` constructor that coerces the fields it knows
about and ignores everything else, and a ``to_dict`` that emits the
camelCase shape the front end and the buckets share.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_recipe_id() -> str:
    """Return a fresh opaque recipe identifier."""

    return uuid.uuid4().hex


def _as_text(value: object) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


def _as_float(value: object) -> Optional[float]:
    """Coerce to a finite float; NaN and infinities count as missing."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().lstrip("~"))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _as_int(value: object) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_bool(value: object, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return default


def _as_text_list(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    entries = []
    for entry in value:
        text = entry if isinstance(entry, str) else _as_text(entry)
        if text and text.strip():
            entries.append(text)
    return entries


class DietType(str, Enum):
    """Diet categories a user can pick in settings."""

    HEALTHY = "Healthy"
    VEGETARIAN = "Vegetarian"
    NON_VEGETARIAN = "Non-vegetarian"

    @classmethod
    def parse(cls, value: object, default: "DietType | None" = None) -> "DietType":
        """Match ``value`` case-insensitively, falling back to ``default``."""

        fallback = default or cls.HEALTHY
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return fallback
        lowered = value.strip().lower()
        for entry in cls:
            if entry.value.lower() == lowered or entry.name.lower() == lowered:
                return entry
        return fallback


SKILL_LEVELS = ("beginner", "intermediate", "advanced")
COOKING_TIMES = ("quick", "medium", "any")
MAX_SUGGESTIONS = 3


@dataclass(slots=True)
class FoodItem:
    """A single item detected by the vision model."""

    name: str
    quantity_hint: Optional[str] = None
    confidence: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: object) -> "FoodItem | None":
        if isinstance(payload, str):
            name = payload.strip()
            return cls(name=name) if name else None
        if not isinstance(payload, Mapping):
            return None

        name = _as_text(payload.get("name"))
        if not name:
            return None
        quantity = _as_text(payload.get("quantityHint")) or _as_text(
            payload.get("quantity")
        )
        confidence = _as_float(payload.get("confidence"))
        if confidence is not None:
            confidence = min(max(confidence, 0.0), 1.0)
        return cls(name=name, quantity_hint=quantity, confidence=confidence)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.quantity_hint:
            data["quantityHint"] = self.quantity_hint
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data


@dataclass(slots=True)
class DetectionResult:
    """Structured output of the vision step."""

    is_food: bool
    items: list[FoodItem] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DetectionResult":
        raw_items = payload.get("items")
        items = []
        for raw_item in raw_items if isinstance(raw_items, list) else []:
            item = FoodItem.from_payload(raw_item)
            if item is not None:
                items.append(item)

        raw_flag = payload.get("isFood")
        is_food = raw_flag if isinstance(raw_flag, bool) else bool(items)

        raw_suggestions = payload.get("suggestions")
        suggestions = [
            entry.strip()
            for entry in (raw_suggestions if isinstance(raw_suggestions, list) else [])
            if isinstance(entry, str) and entry.strip()
        ]
        return cls(
            is_food=is_food,
            items=items,
            suggestions=suggestions[:MAX_SUGGESTIONS],
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "isFood": self.is_food,
            "items": [item.to_dict() for item in self.items],
        }
        if self.suggestions:
            data["suggestions"] = list(self.suggestions)
        return data


@dataclass
class UserPreferences:
    """Dietary preferences used to steer recipe generation."""

    diet: DietType = DietType.HEALTHY
    cuisines: list[str] = field(default_factory=list)
    use_calorie_target: bool = False
    calorie_target: Optional[int] = 500
    dietary_restrictions: list[str] = field(default_factory=list)
    allergies: list[str] = field(default_factory=list)
    skill_level: str = "beginner"
    cooking_time: str = "any"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "UserPreferences":
        """Shallow-merge ``payload`` over the defaults.

        Known keys that are present replace the default; absent keys keep it.
        Values of the wrong type fall back to the default for that field.
        """

        defaults = cls()
        payload = payload or {}

        cuisines_raw = payload.get("cuisines")
        if cuisines_raw is None:
            cuisines_raw = payload.get("cuisinePreferences")

        calorie_target = defaults.calorie_target
        if "calorieTarget" in payload:
            calorie_target = _as_int(payload.get("calorieTarget"))

        skill_level = payload.get("skillLevel", defaults.skill_level)
        cooking_time = payload.get("cookingTime", defaults.cooking_time)

        return cls(
            diet=DietType.parse(payload.get("diet"), defaults.diet),
            cuisines=_as_text_list(cuisines_raw),
            use_calorie_target=_as_bool(
                payload.get("useCalorieTarget"), defaults.use_calorie_target
            ),
            calorie_target=calorie_target,
            dietary_restrictions=_as_text_list(
                payload.get("dietaryRestrictions")
            ),
            allergies=_as_text_list(payload.get("allergies")),
            skill_level=(
                skill_level if skill_level in SKILL_LEVELS else defaults.skill_level
            ),
            cooking_time=(
                cooking_time
                if cooking_time in COOKING_TIMES
                else defaults.cooking_time
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "diet": self.diet.value,
            "cuisines": list(self.cuisines),
            "useCalorieTarget": self.use_calorie_target,
            "calorieTarget": self.calorie_target,
            "dietaryRestrictions": list(self.dietary_restrictions),
            "allergies": list(self.allergies),
            "skillLevel": self.skill_level,
            "cookingTime": self.cooking_time,
        }


@dataclass
class AppSettings:
    """Which Gemini models to use for the vision and recipe calls."""

    vision_model: str
    recipe_model: str

    @classmethod
    def from_dict(
        cls, payload: Mapping[str, Any] | None, *, defaults: "AppSettings"
    ) -> "AppSettings":
        payload = payload or {}
        return cls(
            vision_model=_as_text(payload.get("visionModel"))
            or defaults.vision_model,
            recipe_model=_as_text(payload.get("recipeModel"))
            or defaults.recipe_model,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"visionModel": self.vision_model, "recipeModel": self.recipe_model}


_OPTIONAL_NUMBERS = {
    "calories_per_serving": "caloriesPerServing",
    "protein_grams": "proteinGrams",
    "carbs_grams": "carbsGrams",
    "fat_grams": "fatGrams",
}

# Field names used by the richer prompt variant.
_NUMBER_ALIASES = {
    "caloriesPerServing": "calories",
    "proteinGrams": "protein",
    "carbsGrams": "carbs",
    "fatGrams": "fat",
}


@dataclass
class Recipe:
    """A recipe produced by the recipe model."""

    id: str
    title: str
    ingredients: list[str]
    steps: list[str]
    source: str
    created_at: str
    cuisine: str = ""
    is_vegetarian: bool = False
    calories_per_serving: Optional[float] = None
    protein_grams: Optional[float] = None
    carbs_grams: Optional[float] = None
    fat_grams: Optional[float] = None
    description: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    servings: Optional[int] = None
    tags: list[str] = field(default_factory=list)
    detected_items: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: object) -> "Recipe | None":
        """Build a recipe from a camelCase mapping.

        Returns ``None`` when the mapping lacks an id or has no ingredients.
        Ingredient and step text is kept exactly as given.
        """

        if not isinstance(payload, Mapping):
            return None

        recipe_id = _as_text(payload.get("id"))
        ingredients = _as_text_list(payload.get("ingredients"))
        if not recipe_id or not ingredients:
            return None

        steps_raw = payload.get("steps")
        if steps_raw is None:
            steps_raw = payload.get("instructions")

        numbers = {}
        for attr, key in _OPTIONAL_NUMBERS.items():
            value = payload.get(key)
            if value is None:
                value = payload.get(_NUMBER_ALIASES[key])
            numbers[attr] = _as_float(value)

        return cls(
            id=recipe_id,
            title=_as_text(payload.get("title"))
            or _as_text(payload.get("name"))
            or "Untitled recipe",
            ingredients=ingredients,
            steps=_as_text_list(steps_raw),
            source=_as_text(payload.get("source")) or "",
            created_at=_as_text(payload.get("createdAt")) or "",
            cuisine=_as_text(payload.get("cuisine")) or "",
            is_vegetarian=_as_bool(payload.get("isVegetarian")),
            description=_as_text(payload.get("description")),
            prep_time=_as_text(payload.get("prepTime")),
            cook_time=_as_text(payload.get("cookTime")),
            servings=_as_int(payload.get("servings")),
            tags=_as_text_list(payload.get("tags")),
            detected_items=_as_text_list(payload.get("detectedItems")),
            **numbers,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "cuisine": self.cuisine,
            "isVegetarian": self.is_vegetarian,
            "ingredients": list(self.ingredients),
            "steps": list(self.steps),
            "source": self.source,
            "createdAt": self.created_at,
        }
        for attr, key in _OPTIONAL_NUMBERS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        optional_text = {
            "description": self.description,
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "servings": self.servings,
        }
        data.update(
            {key: value for key, value in optional_text.items() if value is not None}
        )
        if self.tags:
            data["tags"] = list(self.tags)
        if self.detected_items:
            data["detectedItems"] = list(self.detected_items)
        return data


@dataclass
class SavedRecipe(Recipe):
    """A recipe the user marked as a favorite."""

    saved_at: str = ""

    @classmethod
    def from_recipe(
        cls, recipe: Recipe, *, saved_at: str | None = None
    ) -> "SavedRecipe":
        values = {entry.name: getattr(recipe, entry.name) for entry in fields(Recipe)}
        return cls(**values, saved_at=saved_at or utc_now_iso())

    @classmethod
    def from_dict(cls, payload: object) -> "SavedRecipe | None":
        recipe = Recipe.from_dict(payload)
        if recipe is None:
            return None
        saved_at = None
        if isinstance(payload, Mapping):
            saved_at = _as_text(payload.get("savedAt"))
        return cls.from_recipe(
            recipe, saved_at=saved_at or recipe.created_at or None
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["savedAt"] = self.saved_at
        return data
