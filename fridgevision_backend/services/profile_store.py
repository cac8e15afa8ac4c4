"""Named buckets for settings, preferences, favorites, history and the API key."""

from __future__ import annotations

import json
import logging
from json import JSONDecodeError
from typing import Any, Callable, Mapping, Optional, TypeVar

from fridgevision_backend.config import (
    BUCKET_KEYS,
    DEFAULT_RECIPE_MODEL,
    DEFAULT_VISION_MODEL,
    HISTORY_LIMIT,
)
from fridgevision_backend.models.domain import (
    AppSettings,
    Recipe,
    SavedRecipe,
    UserPreferences,
)
from fridgevision_backend.services.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = AppSettings(
    vision_model=DEFAULT_VISION_MODEL, recipe_model=DEFAULT_RECIPE_MODEL
)

_R = TypeVar("_R", bound=Recipe)


class ProfileStore:
    """Read-modify-write access to the profile buckets.

    Reads fall back to the bucket default on absence or decode failure and
    nothing here raises for storage problems. Writes are last-write-wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        default_settings: AppSettings = DEFAULT_SETTINGS,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self._store = store
        self._default_settings = default_settings
        self._history_limit = history_limit

    @property
    def available(self) -> bool:
        return self._store.available

    def _read_json(self, bucket: str) -> Any:
        raw = self._store.get(BUCKET_KEYS[bucket])
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (JSONDecodeError, TypeError):
            logger.warning("discarding undecodable bucket", extra={"bucket": bucket})
            return None

    def _write_json(self, bucket: str, value: Any) -> None:
        self._store.set(BUCKET_KEYS[bucket], json.dumps(value))

    def _read_recipes(
        self, bucket: str, decode: Callable[[object], Optional[_R]]
    ) -> list[_R]:
        stored = self._read_json(bucket)
        if not isinstance(stored, list):
            return []
        recipes = []
        for entry in stored:
            recipe = decode(entry)
            if recipe is not None:
                recipes.append(recipe)
        return recipes

    # Settings

    def get_settings(self) -> AppSettings:
        stored = self._read_json("settings")
        if not isinstance(stored, dict):
            stored = None
        return AppSettings.from_dict(stored, defaults=self._default_settings)

    def save_settings(self, changes: Mapping[str, Any] | AppSettings) -> AppSettings:
        """Shallow-merge ``changes`` onto the current settings and persist them."""

        if isinstance(changes, AppSettings):
            changes = changes.to_dict()
        merged = {**self.get_settings().to_dict(), **dict(changes)}
        settings = AppSettings.from_dict(merged, defaults=self._default_settings)
        self._write_json("settings", settings.to_dict())
        return settings

    # Preferences

    def get_preferences(self) -> UserPreferences:
        stored = self._read_json("preferences")
        return UserPreferences.from_dict(stored if isinstance(stored, dict) else None)

    def save_preferences(
        self, changes: Mapping[str, Any] | UserPreferences
    ) -> UserPreferences:
        """Shallow-merge ``changes`` onto the current preferences and persist them."""

        if isinstance(changes, UserPreferences):
            changes = changes.to_dict()
        updates = dict(changes)
        if "cuisinePreferences" in updates:
            alias = updates.pop("cuisinePreferences")
            updates.setdefault("cuisines", alias)
        merged = {**self.get_preferences().to_dict(), **updates}
        preferences = UserPreferences.from_dict(merged)
        self._write_json("preferences", preferences.to_dict())
        return preferences

    # Favorites

    def get_favorites(self) -> list[SavedRecipe]:
        return self._read_recipes("favorites", SavedRecipe.from_dict)

    def add_favorite(self, recipe: Recipe) -> SavedRecipe:
        """Save ``recipe`` as a favorite unless one with its id already exists."""

        favorites = self.get_favorites()
        for favorite in favorites:
            if favorite.id == recipe.id:
                return favorite

        saved = (
            recipe
            if isinstance(recipe, SavedRecipe) and recipe.saved_at
            else SavedRecipe.from_recipe(recipe)
        )
        favorites.insert(0, saved)
        self._write_json("favorites", [entry.to_dict() for entry in favorites])
        return saved

    def remove_favorite(self, recipe_id: str) -> None:
        favorites = self.get_favorites()
        remaining = [entry for entry in favorites if entry.id != recipe_id]
        self._write_json("favorites", [entry.to_dict() for entry in remaining])

    def is_favorite(self, recipe_id: str) -> bool:
        return any(entry.id == recipe_id for entry in self.get_favorites())

    # History

    def get_history(self) -> list[Recipe]:
        return self._read_recipes("history", Recipe.from_dict)

    def add_to_history(self, recipe: Recipe) -> None:
        """Move ``recipe`` to the front of history, evicting the oldest entries."""

        history = [entry for entry in self.get_history() if entry.id != recipe.id]
        history.insert(0, recipe)
        del history[self._history_limit :]
        self._write_json("history", [entry.to_dict() for entry in history])

    def clear_history(self) -> None:
        self._store.remove(BUCKET_KEYS["history"])

    # API key

    def get_api_key(self) -> Optional[str]:
        raw = self._store.get(BUCKET_KEYS["api_key"]) or ""
        return raw.strip() or None

    def save_api_key(self, api_key: str | None) -> None:
        """Persist ``api_key``; a blank key clears the bucket."""

        candidate = (api_key or "").strip()
        if not candidate:
            self.clear_api_key()
            return
        self._store.set(BUCKET_KEYS["api_key"], candidate)

    def clear_api_key(self) -> None:
        self._store.remove(BUCKET_KEYS["api_key"])
