"""
AI-based Recipe Parser using LangExtract.

This module implements the external fallback extractor: it sends the raw
document text to a language model through Google's LangExtract library and
normalizes the extracted entities into a Recipe.
"""
from __future__ import annotations

import logging
from typing import Any

import langextract as lx
from langextract import tokenizer

from ..const import DEFAULT_MODEL
from ..models.recipe import Recipe, RecipeSource
from .base_parser import BaseRecipeParser
from .examples import RECIPE_EXAMPLES
from .external_adapter import recipe_from_external
from .prompts import EXTRACTION_PROMPT

_LOGGER = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 100


def source_for_model(model: str) -> RecipeSource:
    """Map a model id to the provider recorded with its results."""
    if model.lower().startswith(("gpt", "o1", "o3", "o4")):
        return RecipeSource.AI_OPENAI
    return RecipeSource.AI_GEMINI


class AIRecipeParser(BaseRecipeParser):
    """Fallback extractor asking a language model for the recipe entities."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL) -> None:
        """Set up the extractor for one model.

        Args:
            api_key: Key for the model provider
            model: LangExtract model id, also decides the recorded source

        Raises:
            ValueError: If api_key is blank
        """
        if not api_key or not api_key.strip():
            raise ValueError("An API key is required for the fallback extractor")

        self.api_key = api_key
        self.model = model
        self.source = source_for_model(model)
        # German umlauts need the unicode tokenizer for span alignment
        self.tokenizer = tokenizer.UnicodeTokenizer()
        _LOGGER.debug("Initialized AIRecipeParser with model %s", model)

    def parse_recipe(self, text: str) -> Recipe | None:
        """Extract a recipe from document text with the language model.

        Args:
            text: Document text as handed to the heuristic parser

        Returns:
            The normalized Recipe, or None when the model found no title or no ingredients

        Raises:
            Exception: Errors from the model call propagate to the caller
        """
        if not text or len(text.strip()) < MIN_TEXT_LENGTH:
            _LOGGER.warning(
                "Text too short for extraction: %d characters", len(text) if text else 0)
            return None

        _LOGGER.info(
            "Sending %d characters to the fallback model", len(text))

        try:
            _LOGGER.debug("Calling LangExtract with model %s", self.model)
            options = {}
            if self.source is RecipeSource.AI_OPENAI:
                # OpenAI models have no schema constraints, output comes fenced
                options = {"fence_output": True, "use_schema_constraints": False}
            result = lx.extract(
                text_or_documents=text,
                prompt_description=EXTRACTION_PROMPT,
                model_id=self.model,
                examples=RECIPE_EXAMPLES,
                tokenizer=self.tokenizer,
                api_key=self.api_key,
                **options
            )
        except Exception as e:
            _LOGGER.error("Error during AI recipe parsing: %s",
                          str(e), exc_info=True)
            raise

        if not result or not getattr(result, "extractions", None):
            _LOGGER.warning("No extractions found in LangExtract result")
            return None

        payload = self._collect(result.extractions)
        if not payload["name"] or not payload["ingredients"]:
            if not payload["name"]:
                _LOGGER.warning("AI parsing completed but no title found")
            if not payload["ingredients"]:
                _LOGGER.warning("AI parsing completed but no ingredients found")
            return None

        recipe = recipe_from_external(payload)
        _LOGGER.info(
            "Successfully parsed recipe '%s' with %d ingredients and %d steps using AI",
            recipe.name, len(recipe.ingredients), len(recipe.steps))
        return recipe

    @staticmethod
    def _collect(extractions: list[Any]) -> dict[str, Any]:
        """Group LangExtract entities into a raw recipe dictionary."""
        payload: dict[str, Any] = {
            "name": None,
            "servings": None,
            "prep_time": None,
            "cook_time": None,
            "ingredients": [],
            "steps": [],
        }

        for extraction in extractions:
            attrs = extraction.attributes or {}
            text = extraction.extraction_text

            if extraction.extraction_class == "title":
                payload["name"] = payload["name"] or text

            elif extraction.extraction_class in ("servings", "prep_time", "cook_time"):
                payload[extraction.extraction_class] = text

            elif extraction.extraction_class == "ingredient":
                payload["ingredients"].append({
                    "name": attrs.get("name", text),
                    "quantity": attrs.get("quantity"),
                    "unit": attrs.get("unit"),
                })

            elif extraction.extraction_class == "step":
                payload["steps"].append({
                    "step_number": attrs.get("step_number"),
                    "instruction": text,
                })

        return payload
