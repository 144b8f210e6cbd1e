"""
Pytest Configuration and Fixtures
=================================

Provides shared fixtures for the test suite:
- A temporary SQLite example store
- Sample German and English recipe documents
- Fake fallback extractors (no network access)
"""
from __future__ import annotations

import asyncio

import pytest

from recipe_learner.config import EngineConfig
from recipe_learner.learning.store import ExampleStore, PatternRepository
from recipe_learner.models.recipe import Ingredient, Recipe, RecipeSource, Step
from recipe_learner.parsers.base_parser import BaseRecipeParser
from recipe_learner.parsers.heuristic_parser import HeuristicRecipeParser
from recipe_learner.parsers.ingredient_parser import IngredientParser
from recipe_learner.parsers.step_parser import StepAccumulator
from recipe_learner.parsers.structure import StructureDetector
from recipe_learner.services.extraction_service import ExtractionService


GERMAN_RECIPE = """
KÜRBISSUPPE MIT INGWER
Für 4 Personen
Zubereitungszeit: 20 Min.
Kochzeit: 30 Min.

Zutaten
1 kg Hokkaido-Kürbis
2 Zwiebeln
1 EL Butter
20 g Ingwer
800 ml Gemüsebrühe
200 ml Kokosmilch

Zubereitung
1. Den Kürbis waschen, entkernen und in grobe Würfel schneiden.
2. Zwiebeln schälen und fein würfeln, den Ingwer schälen und reiben.
3. Butter in einem großen Topf erhitzen und die Zwiebeln darin glasig dünsten.
4. Kürbis und Ingwer zugeben, mit der Brühe ablöschen und 25 Minuten köcheln lassen.
5. Kokosmilch einrühren, die Suppe fein pürieren und mit Salz und Pfeffer abschmecken.
"""

ENGLISH_RECIPE = """
Weeknight Tomato Pasta
Serves 2
Prep 10 minutes
Cook 15 minutes

Ingredients
200 g spaghetti
2 tbsp olive oil
3 cloves garlic
400 g canned tomatoes
1 tsp dried oregano

Instructions
1. Bring a large pot of salted water to the boil and cook the spaghetti.
2. Warm the olive oil in a pan and soften the sliced garlic for a minute.
3. Pour in the tomatoes with the oregano and let the sauce bubble gently.
4. Drain the pasta, keeping a splash of the cooking water for the sauce.
5. Toss the pasta through the sauce and loosen with the reserved water.
"""

# Unstructured notes the heuristics cannot make sense of
LOW_CONFIDENCE_TEXT = """
Grandma's notes
some flour and sugar, whatever is in the cupboard
"""


def fallback_recipe() -> Recipe:
    return Recipe(
        name="Grandma's Cake",
        servings=8,
        ingredients=[
            Ingredient(name="flour", amount=250, unit="g"),
            Ingredient(name="sugar", amount=100, unit="g"),
        ],
        steps=[
            Step(step_number=1, instruction="Mix the flour and sugar in a large bowl."),
            Step(step_number=2, instruction="Bake for forty minutes until golden."),
        ],
    )


class FakeFallback(BaseRecipeParser):
    """Fallback extractor returning a fixed recipe."""

    source = RecipeSource.AI_GEMINI

    def __init__(self, recipe: Recipe | None = None, confidence: int | None = None) -> None:
        self.recipe = recipe if recipe is not None else fallback_recipe()
        self.reported_confidence = confidence
        self.calls: list[str] = []

    def parse_recipe(self, text: str) -> Recipe | None:
        self.calls.append(text)
        return self.recipe


class AnonymousFallback(FakeFallback):
    """Fallback extractor that does not name its provider."""

    source = None


class EmptyFallback(FakeFallback):
    def parse_recipe(self, text: str) -> Recipe | None:
        self.calls.append(text)
        return None


class RaisingFallback(FakeFallback):
    """Fallback extractor that fails like a network error."""

    def __init__(self, error: BaseException) -> None:
        super().__init__()
        self.error = error

    def parse_recipe(self, text: str) -> Recipe | None:
        self.calls.append(text)
        raise self.error


@pytest.fixture
def store(tmp_path) -> ExampleStore:
    return ExampleStore(tmp_path / "training.db")


@pytest.fixture
def repository(store) -> PatternRepository:
    return PatternRepository(store)


@pytest.fixture
def detector() -> StructureDetector:
    return StructureDetector(PatternRepository())


@pytest.fixture
def ingredient_parser() -> IngredientParser:
    return IngredientParser(PatternRepository())


@pytest.fixture
def accumulator(detector, ingredient_parser) -> StepAccumulator:
    return StepAccumulator(detector, ingredient_parser)


@pytest.fixture
def heuristic_parser(detector, ingredient_parser, accumulator) -> HeuristicRecipeParser:
    return HeuristicRecipeParser(detector, ingredient_parser, accumulator)


@pytest.fixture
def build_service(store, repository):
    """Factory for services over the temporary store."""

    def _build(fallback: BaseRecipeParser | None = None, example_store: ExampleStore | None = None,
               **settings) -> ExtractionService:
        target = example_store or store
        patterns = repository if example_store is None else PatternRepository(example_store)
        detector = StructureDetector(patterns)
        ingredients = IngredientParser(patterns)
        parser = HeuristicRecipeParser(detector, ingredients, StepAccumulator(detector, ingredients))
        return ExtractionService(target, patterns, parser, fallback, EngineConfig(**settings))

    return _build


@pytest.fixture
def cancelled_fallback() -> RaisingFallback:
    return RaisingFallback(asyncio.CancelledError())
