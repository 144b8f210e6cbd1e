"""
Base Recipe Parser.

This module defines the interface shared by the heuristic parser and by
external fallback extractors.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from ..models.recipe import Recipe, RecipeSource


class BaseRecipeParser(ABC):
    """Abstract base class for recipe parsers.

    All recipe parsers must implement the parse_recipe method to convert
    raw text into structured Recipe objects.

    Attributes:
        source: Provider identity recorded with accepted results, None when
            the parser cannot name its provider
        reported_confidence: Confidence the parser vouches for its own
            results, None to use the configured default
    """

    source: RecipeSource | None = None
    reported_confidence: int | None = None

    @abstractmethod
    def parse_recipe(self, text: str) -> Recipe | None:
        """Parse recipe information from text.

        Args:
            text: The raw recipe text to parse

        Returns:
            A Recipe object with extracted information, or None if parsing fails
        """
        pass
