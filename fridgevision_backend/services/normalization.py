"""Ingredient name handling shared by the vision and recipe steps."""

from __future__ import annotations

import re
from typing import Iterable, cast

import inflect
from inflect import Word

from fridgevision_backend.models.domain import FoodItem

_NON_ALNUM_SPACE = re.compile(r"[^a-z0-9 ]+")
_COLLAPSE_SPACES = re.compile(r"[\s_-]+")
_INFLECT_ENGINE = inflect.engine()


def ingredient_key(raw_name: str) -> str:
    """Reduce an ingredient name to the key used to spot duplicates.

    "Red-Bell-Peppers" and "red bell pepper" share the key "red bell pepper".
    """

    collapsed = _COLLAPSE_SPACES.sub(" ", raw_name.lower())
    key = _COLLAPSE_SPACES.sub(" ", _NON_ALNUM_SPACE.sub("", collapsed)).strip()
    if not key:
        return key

    *head, last = key.split(" ")
    singular = _INFLECT_ENGINE.singular_noun(cast(Word, last))
    return " ".join([*head, str(singular or last)])


def unique_ingredients(items: Iterable[str | FoodItem]) -> list[FoodItem]:
    """Return the items in their original order with duplicates removed.

    The first spelling of each ingredient wins and is kept verbatim.
    """

    seen: set[str] = set()
    unique: list[FoodItem] = []
    for entry in items:
        item = FoodItem(name=entry) if isinstance(entry, str) else entry
        name = item.name.strip()
        key = ingredient_key(name)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(
            FoodItem(
                name=name,
                quantity_hint=item.quantity_hint,
                confidence=item.confidence,
            )
        )
    return unique


def describe_ingredients(items: Iterable[str | FoodItem]) -> str:
    """Render items as the comma-separated list used in recipe prompts."""

    rendered = []
    for item in unique_ingredients(items):
        if item.quantity_hint:
            rendered.append(f"{item.name} ({item.quantity_hint})")
        else:
            rendered.append(item.name)
    return ", ".join(rendered)
