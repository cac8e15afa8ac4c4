import json
import unittest

import requests

from fridgevision_backend.config import RECIPE_GENERATION_CONFIG
from fridgevision_backend.models.domain import DietType, FoodItem, UserPreferences
from fridgevision_backend.services.errors import (
    ApiError,
    InsufficientResultsError,
    ParseError,
)
from fridgevision_backend.services.llm import GeminiClient, GeminiSettings
from fridgevision_backend.services.recipes import (
    build_recipe_prompt,
    generate_recipes,
    normalize_recipe,
)

MODEL = "gemini-2.5-flash"


def _response(status: int, payload) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    response._content = json.dumps(payload).encode("utf-8")
    return response


def _gemini_text(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class _StubSession:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def post(self, url, **kwargs):
        self.calls.append(kwargs)
        return self.outcomes.pop(0)


def _recipe_payloads(count: int) -> list[dict]:
    return [
        {
            "title": f"Spinach Feta Omelette {index}",
            "cuisine": "Greek",
            "isVegetarian": True,
            "caloriesPerServing": 320,
            "proteinGrams": 21,
            "ingredients": ["3 eggs", "1 cup  spinach", "50g feta, crumbled"],
            "steps": ["Whisk the eggs.", "Wilt the spinach, add feta, fold."],
        }
        for index in range(count)
    ]


class RecipeGenerationTests(unittest.TestCase):
    def setUp(self):
        self.preferences = UserPreferences(diet=DietType.VEGETARIAN)

    def _generate(self, session, **kwargs):
        client = GeminiClient(GeminiSettings(), session=session)  # type: ignore[arg-type]
        kwargs.setdefault("count", 5)
        return generate_recipes(
            ["eggs", "spinach", "feta"],
            self.preferences,
            client=client,
            api_key="key",
            model=MODEL,
            **kwargs,
        )

    def test_missing_ids_are_generated_and_text_is_untouched(self):
        payloads = _recipe_payloads(5)
        text = "Here are your recipes:\n" + json.dumps(payloads) + "\nEnjoy!"
        session = _StubSession(_response(200, _gemini_text(text)))

        recipes = self._generate(session)

        self.assertEqual(len(recipes), 5)
        self.assertEqual(len({recipe.id for recipe in recipes}), 5)
        for recipe, payload in zip(recipes, payloads):
            self.assertTrue(recipe.id)
            self.assertTrue(recipe.created_at)
            self.assertEqual(recipe.source, MODEL)
            self.assertEqual(recipe.title, payload["title"])
            self.assertEqual(recipe.ingredients, payload["ingredients"])
            self.assertEqual(recipe.steps, payload["steps"])
            self.assertEqual(recipe.detected_items, ["eggs", "spinach", "feta"])

        body = session.calls[0]["json"]
        self.assertEqual(body["generationConfig"], RECIPE_GENERATION_CONFIG)
        prompt = body["contents"][0]["parts"][0]["text"]
        self.assertIn("eggs, spinach, feta", prompt)
        self.assertIn("Diet: vegetarian only", prompt)

    def test_four_recipes_fail_minimum_of_five(self):
        text = json.dumps(_recipe_payloads(4))
        session = _StubSession(_response(200, _gemini_text(text)))

        with self.assertRaises(InsufficientResultsError) as ctx:
            self._generate(session, min_results=5)

        self.assertEqual(ctx.exception.expected, 5)
        self.assertEqual(ctx.exception.received, 4)

    def test_minimum_defaults_to_requested_count(self):
        text = json.dumps(_recipe_payloads(2))
        session = _StubSession(_response(200, _gemini_text(text)))

        with self.assertRaises(InsufficientResultsError):
            self._generate(session, count=3)

    def test_lower_minimum_accepts_short_batch(self):
        text = json.dumps(_recipe_payloads(2))
        session = _StubSession(_response(200, _gemini_text(text)))

        recipes = self._generate(session, count=3, min_results=2)

        self.assertEqual(len(recipes), 2)

    def test_entries_without_ingredients_do_not_count(self):
        payloads = _recipe_payloads(4) + [{"title": "Air", "ingredients": []}, "nope"]
        session = _StubSession(_response(200, _gemini_text(json.dumps(payloads))))

        with self.assertRaises(InsufficientResultsError) as ctx:
            self._generate(session)

        self.assertEqual(ctx.exception.received, 4)

    def test_existing_ids_are_kept_and_duplicates_replaced(self):
        payloads = _recipe_payloads(5)
        for payload in payloads:
            payload["id"] = "omelette"
        payloads[0]["createdAt"] = "2024-01-01T00:00:00+00:00"
        payloads[0]["source"] = "gemini_flash"
        session = _StubSession(_response(200, _gemini_text(json.dumps(payloads))))

        recipes = self._generate(session)

        self.assertEqual(recipes[0].id, "omelette")
        self.assertEqual(recipes[0].created_at, "2024-01-01T00:00:00+00:00")
        self.assertEqual(recipes[0].source, "gemini_flash")
        self.assertEqual(len({recipe.id for recipe in recipes}), 5)

    def test_forbidden_key_raises_api_error_and_no_recipes(self):
        session = _StubSession(
            _response(403, {"error": {"message": "API key not valid"}})
        )

        with self.assertRaises(ApiError) as ctx:
            self._generate(session)

        self.assertIn("API key not valid", str(ctx.exception))
        self.assertEqual(ctx.exception.status_code, 403)

    def test_missing_array_raises_parse_error(self):
        session = _StubSession(
            _response(200, _gemini_text('{"recipes": "coming soon"}'))
        )

        with self.assertRaises(ParseError) as ctx:
            self._generate(session)

        self.assertNotIsInstance(ctx.exception, InsufficientResultsError)

    def test_requires_ingredients(self):
        client = GeminiClient(GeminiSettings(), session=_StubSession())  # type: ignore[arg-type]

        with self.assertRaises(ValueError):
            generate_recipes(
                ["  "], self.preferences, client=client, api_key="key"
            )


class RecipePromptTests(unittest.TestCase):
    def test_renders_preferences(self):
        preferences = UserPreferences(
            diet=DietType.NON_VEGETARIAN,
            cuisines=["Italian", "Mexican"],
            use_calorie_target=True,
            calorie_target=450,
            allergies=["Nuts"],
            skill_level="advanced",
            cooking_time="quick",
        )

        prompt = build_recipe_prompt(
            [FoodItem(name="chicken", quantity_hint="2 breasts"), "Tomatoes", "tomato"],
            preferences,
            count=5,
            model=MODEL,
        )

        self.assertIn("Using these ingredients: chicken (2 breasts), Tomatoes\n", prompt)
        self.assertIn("Generate exactly 5 diverse, practical recipes.", prompt)
        self.assertIn("Diet: can include meat/fish", prompt)
        self.assertIn("Cuisines: Italian, Mexican", prompt)
        self.assertIn("Allergies (never include): Nuts", prompt)
        self.assertIn("Skill level: advanced", prompt)
        self.assertIn("Cooking time: quick", prompt)
        self.assertIn("Target ~450 calories per serving", prompt)
        self.assertIn(f'"source": "{MODEL}"', prompt)

    def test_defaults_render_without_calorie_target(self):
        prompt = build_recipe_prompt(["rice"], UserPreferences(), count=3, model=MODEL)

        self.assertIn("Diet: healthy and balanced", prompt)
        self.assertIn("Any cuisine", prompt)
        self.assertIn("Dietary restrictions: none", prompt)
        self.assertNotIn("calories per serving", prompt)


class NormalizeRecipeTests(unittest.TestCase):
    def test_accepts_alternate_field_names(self):
        recipe = normalize_recipe(
            {
                "name": "Pasta",
                "instructions": ["Boil", "Serve"],
                "ingredients": ["pasta"],
                "calories": "~400",
                "servings": 2,
            },
            model=MODEL,
        )

        self.assertEqual(recipe.title, "Pasta")
        self.assertEqual(recipe.steps, ["Boil", "Serve"])
        self.assertEqual(recipe.calories_per_serving, 400.0)
        self.assertEqual(recipe.servings, 2)

    def test_non_finite_numbers_are_dropped(self):
        payload = json.loads(
            '{"id": "r1", "ingredients": ["rice"], "caloriesPerServing": Infinity, '
            '"proteinGrams": NaN, "servings": "Infinity"}'
        )

        recipe = normalize_recipe(payload, model=MODEL)

        self.assertIsNone(recipe.calories_per_serving)
        self.assertIsNone(recipe.protein_grams)
        self.assertIsNone(recipe.servings)
        json.dumps(recipe.to_dict(), allow_nan=False)

    def test_placeholder_id_is_replaced(self):
        recipe = normalize_recipe(
            {"id": "unique-id", "ingredients": ["x"]}, model=MODEL
        )
        self.assertNotEqual(recipe.id, "unique-id")

    def test_rejects_non_objects(self):
        self.assertIsNone(normalize_recipe(["x"], model=MODEL))


if __name__ == "__main__":
    unittest.main()
