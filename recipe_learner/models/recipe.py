"""
Recipe data models for the Recipe Learner engine.

This module defines the Pydantic models used to structure recipe data
extracted from unstructured document text, either by the heuristic parser
or by an external fallback extractor.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from ..const import DEFAULT_SERVINGS, DEFAULT_UNIT, MIN_INSTRUCTION_LENGTH


class RecipeSource(str, Enum):
    """Which extraction path produced an accepted recipe."""

    AI_GEMINI = "ai-gemini"
    AI_OPENAI = "ai-openai"
    HEURISTIC = "heuristic"
    HYBRID = "hybrid"

    @property
    def is_external(self) -> bool:
        """True for results produced (or confirmed) by an external extractor."""
        return self is not RecipeSource.HEURISTIC


class FileKind(str, Enum):
    """Kind of document the raw text was converted from."""

    PDF = "pdf"
    EPUB = "epub"


class Ingredient(BaseModel):
    """A structured representation of a single ingredient.

    Attributes:
        name: The name of the ingredient (e.g., 'Mehl', 'all-purpose flour')
        amount: Numeric amount, integral values are kept as int (e.g., 250, 2.5)
        unit: Lower-cased unit of measurement (e.g., 'g', 'el', 'piece')
    """

    name: str = Field(
        description="The name of the ingredient, e.g., 'Mehl'"
    )
    amount: int | float = Field(
        default=0,
        description="The numeric amount, e.g., 250"
    )
    unit: str = Field(
        default=DEFAULT_UNIT,
        description="The unit of measurement, e.g., 'g', 'ml', 'el'"
    )

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Ingredient name cannot be empty")
        if value[0].isdigit():
            raise ValueError(f"Ingredient name must not start with a digit: {value!r}")
        return value

    @field_validator("amount")
    @classmethod
    def _normalize_amount(cls, value: int | float) -> int | float:
        if value < 0:
            raise ValueError(f"Ingredient amount must not be negative: {value}")
        if float(value).is_integer():
            return int(value)
        return value

    @field_validator("unit")
    @classmethod
    def _normalize_unit(cls, value: str) -> str:
        return value.strip().lower() or DEFAULT_UNIT


class Step(BaseModel):
    """A single numbered instruction step."""

    step_number: int = Field(
        ge=1,
        description="Position of the step, contiguous from 1"
    )
    instruction: str = Field(
        min_length=MIN_INSTRUCTION_LENGTH,
        description="The full instruction text of the step"
    )


class Recipe(BaseModel):
    """The top-level schema for the entire recipe.

    Attributes:
        name: The recipe title
        servings: Number of servings (defaults to 4 when not found)
        prep_time_minutes: Preparation time in minutes
        cook_time_minutes: Cooking time in minutes
        description: Optional free text description
        ingredients: Ordered list of structured ingredients
        steps: Ordered list of instruction steps
    """

    name: str = Field(
        default="",
        description="The title of the recipe"
    )
    servings: int = Field(
        default=DEFAULT_SERVINGS,
        ge=1,
        description="Number of servings"
    )
    prep_time_minutes: int = Field(
        default=0,
        ge=0,
        description="Preparation time in minutes"
    )
    cook_time_minutes: int = Field(
        default=0,
        ge=0,
        description="Cooking time in minutes"
    )
    description: str = Field(
        default="",
        description="A short description of the recipe"
    )
    ingredients: list[Ingredient] = Field(
        default_factory=list,
        description="A list of all ingredients, structured using the Ingredient model"
    )
    steps: list[Step] = Field(
        default_factory=list,
        description="A list of all steps, numbered from 1"
    )

    @model_validator(mode="after")
    def _check_step_order(self) -> Recipe:
        for index, step in enumerate(self.steps, start=1):
            if step.step_number != index:
                raise ValueError(
                    f"Step numbers must be contiguous from 1, got {step.step_number} at position {index}")
        return self


class FileMetadata(BaseModel):
    """Metadata about the source document of a raw text."""

    file_name: str | None = Field(
        default=None,
        description="Original file name of the document"
    )
    file_size_bytes: int | None = Field(
        default=None,
        ge=0,
        description="Size of the original document in bytes"
    )
    file_kind: FileKind = Field(
        default=FileKind.PDF,
        description="Kind of the original document"
    )


class ExtractionResult(BaseModel):
    """Outcome of a single extraction call."""

    recipe: Recipe
    confidence: int = Field(ge=0, le=100)
    used_fallback: bool = False
    source: RecipeSource
    example_id: int | None = Field(
        default=None,
        description="Id of the recorded training example, None if recording failed"
    )
