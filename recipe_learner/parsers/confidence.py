"""
Confidence scoring for extracted recipes.

The score is a deterministic 0-100 estimate of extraction quality. Signals
are accumulated in a fixed order: title, ingredients, steps, servings. Too
few steps do not just withhold step points, they scale down everything
accumulated before them, so a recipe without instructions scores low even
with a good title and ingredient list.
"""
from __future__ import annotations

import logging
import math

from ..const import STEP_MIN_LENGTH
from ..models.recipe import Ingredient, Recipe

_LOGGER = logging.getLogger(__name__)

TITLE_POINTS = 15
TITLE_MIN_LENGTH = 3

# (minimum valid ratio, points) for five or more ingredients
INGREDIENT_QUALITY_POINTS = ((0.8, 35), (0.6, 20), (0.0, 10))
FEW_INGREDIENTS_POINTS = 15
VERY_FEW_INGREDIENTS_POINTS = 5
INGREDIENT_MIN_NAME_LENGTH = 3

# (minimum long-step ratio, points) for five or more steps
STEP_QUALITY_POINTS = ((0.8, 40), (0.6, 25), (0.0, 15))
FEW_STEPS_LONG_POINTS = 15
FEW_STEPS_SHORT_POINTS = 10
FEW_STEPS_LONG_AVERAGE = 50
VERY_FEW_STEPS_FACTOR = 0.7
NO_STEPS_FACTOR = 0.5

SERVINGS_POINTS = 10
SERVINGS_RANGE = (1, 20)

MAX_SCORE = 100


def is_valid_ingredient(ingredient: Ingredient) -> bool:
    """An ingredient counts as valid with a real name and a positive amount."""
    name = ingredient.name
    return len(name) >= INGREDIENT_MIN_NAME_LENGTH and not name[0].isdigit() and ingredient.amount > 0


def _points_for_ratio(ratio: float, table: tuple[tuple[float, int], ...]) -> int:
    for minimum, points in table:
        if ratio >= minimum:
            return points
    return 0


def _ingredient_points(recipe: Recipe) -> int:
    count = len(recipe.ingredients)
    if count >= 5:
        valid = sum(1 for ingredient in recipe.ingredients if is_valid_ingredient(ingredient))
        return _points_for_ratio(valid / count, INGREDIENT_QUALITY_POINTS)
    if count >= 3:
        return FEW_INGREDIENTS_POINTS
    if count >= 1:
        return VERY_FEW_INGREDIENTS_POINTS
    return 0


def score_breakdown(recipe: Recipe) -> dict[str, int]:
    """Score a recipe and report each signal's contribution.

    The ``steps`` entry is negative when a step penalty reduced the running
    total.

    Args:
        recipe: The recipe to score

    Returns:
        Contributions keyed by signal, plus ``total`` (clamped to 0-100)
    """
    breakdown = {"title": 0, "ingredients": 0, "steps": 0, "servings": 0}

    if len(recipe.name.strip()) > TITLE_MIN_LENGTH:
        breakdown["title"] = TITLE_POINTS

    breakdown["ingredients"] = _ingredient_points(recipe)
    score = breakdown["title"] + breakdown["ingredients"]

    steps = recipe.steps
    if len(steps) >= 5:
        long_steps = sum(1 for step in steps if len(step.instruction) >= STEP_MIN_LENGTH)
        breakdown["steps"] = _points_for_ratio(long_steps / len(steps), STEP_QUALITY_POINTS)
    elif len(steps) >= 3:
        average = sum(len(step.instruction) for step in steps) / len(steps)
        breakdown["steps"] = (
            FEW_STEPS_LONG_POINTS if average >= FEW_STEPS_LONG_AVERAGE else FEW_STEPS_SHORT_POINTS
        )
    else:
        factor = VERY_FEW_STEPS_FACTOR if steps else NO_STEPS_FACTOR
        breakdown["steps"] = math.floor(score * factor) - score
    score += breakdown["steps"]

    low, high = SERVINGS_RANGE
    if low <= recipe.servings <= high:
        breakdown["servings"] = SERVINGS_POINTS
    score += breakdown["servings"]

    breakdown["total"] = max(0, min(MAX_SCORE, score))
    return breakdown


def score_recipe(recipe: Recipe) -> int:
    """Return the 0-100 confidence score of a recipe."""
    breakdown = score_breakdown(recipe)
    _LOGGER.debug("Confidence breakdown: %s", breakdown)
    return breakdown["total"]
