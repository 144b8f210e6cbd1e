"""
Adapter for recipes produced by external extractors.

External providers return loosely structured records whose field names vary
(``title`` or ``name``, ``ingredient_name`` or ``name``, ``quantity`` or
``amount``, ...). This module normalizes them into the Recipe schema so the
rest of the engine never branches on field-name variants.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from ..const import DEFAULT_SERVINGS, DEFAULT_UNIT, MIN_INSTRUCTION_LENGTH
from ..models.recipe import Ingredient, Recipe, Step
from .ingredient_parser import apply_unicode_fractions, parse_amount

_LOGGER = logging.getLogger(__name__)

_NAME_KEYS = ("name", "title", "recipe_name")
_SERVINGS_KEYS = ("servings", "portions", "yield")
_PREP_KEYS = ("prep_time_minutes", "prep_time", "prepTimeMinutes", "prepTime")
_COOK_KEYS = ("cook_time_minutes", "cook_time", "cookTimeMinutes", "cookTime")
_INGREDIENT_NAME_KEYS = ("ingredient_name", "name", "ingredient")
_AMOUNT_KEYS = ("quantity", "amount")
_STEP_NUMBER_KEYS = ("step_number", "stepNumber", "order", "number")
_INSTRUCTION_KEYS = ("instruction", "text", "description")

_LEADING_NUMBER = re.compile(r"\d+(?:[.,]\d+)?(?:\s+\d+/\d+|/\d+)?")


def _first(data: Mapping[str, Any], keys: Sequence[str], default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return default


def to_amount(value: Any) -> float:
    """Convert an external quantity to a non-negative number, 0 if unknown."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value if value >= 0 else 0
    match = _LEADING_NUMBER.match(apply_unicode_fractions(str(value)).strip())
    if not match:
        return 0
    try:
        return parse_amount(match.group(0))
    except (ValueError, ZeroDivisionError):
        return 0


def to_minutes(value: Any) -> int:
    """Convert an external duration to whole minutes, 0 if unknown."""
    amount = to_amount(value)
    return int(amount)


def to_servings(value: Any) -> int:
    servings = int(to_amount(value))
    return servings if servings >= 1 else DEFAULT_SERVINGS


def _ingredient(item: Any) -> Ingredient | None:
    if isinstance(item, Ingredient):
        return item
    if isinstance(item, str):
        item = {"name": item}
    if not isinstance(item, Mapping):
        return None

    name = str(_first(item, _INGREDIENT_NAME_KEYS, "")).strip()
    try:
        return Ingredient(
            name=name,
            amount=to_amount(_first(item, _AMOUNT_KEYS)),
            unit=str(_first(item, ("unit",), DEFAULT_UNIT)),
        )
    except ValidationError as err:
        _LOGGER.debug("Dropping external ingredient %r: %s", item, err.errors()[0]["msg"])
        return None


def _instructions(items: Sequence[Any]) -> list[str]:
    ordered: list[tuple[float, int, str]] = []
    for position, item in enumerate(items):
        if isinstance(item, Step):
            number, text = item.step_number, item.instruction
        elif isinstance(item, str):
            number, text = position + 1, item
        elif isinstance(item, Mapping):
            number = to_amount(_first(item, _STEP_NUMBER_KEYS, position + 1))
            text = str(_first(item, _INSTRUCTION_KEYS, ""))
        else:
            continue
        text = " ".join(text.split())
        if len(text) >= MIN_INSTRUCTION_LENGTH:
            ordered.append((number, position, text))
    return [text for _, _, text in sorted(ordered)]


def recipe_from_external(payload: Recipe | Mapping[str, Any]) -> Recipe:
    """Normalize an external extractor's result into a Recipe.

    Ingredients that cannot be represented (no usable name) are dropped and
    steps are renumbered from 1 in their stated order.

    Args:
        payload: A Recipe, or a mapping using any supported field names

    Returns:
        The normalized recipe

    Raises:
        TypeError: If the payload is neither a Recipe nor a mapping
    """
    if isinstance(payload, Recipe):
        return payload
    if not isinstance(payload, Mapping):
        raise TypeError(f"Unsupported external recipe payload: {type(payload).__name__}")

    ingredients = [
        ingredient
        for ingredient in (_ingredient(item) for item in payload.get("ingredients") or [])
        if ingredient is not None
    ]
    steps = [
        Step(step_number=number, instruction=text)
        for number, text in enumerate(_instructions(payload.get("steps") or []), start=1)
    ]

    return Recipe(
        name=str(_first(payload, _NAME_KEYS, "")).strip(),
        servings=to_servings(_first(payload, _SERVINGS_KEYS)),
        prep_time_minutes=to_minutes(_first(payload, _PREP_KEYS)),
        cook_time_minutes=to_minutes(_first(payload, _COOK_KEYS)),
        description=str(_first(payload, ("description",), "")).strip(),
        ingredients=ingredients,
        steps=steps,
    )
