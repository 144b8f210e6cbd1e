"""
Heuristic recipe parser.

Assembles a Recipe from a document in several passes: structure detection,
basic information (title, servings, times, description), ingredients and
finally steps.
"""
from __future__ import annotations

import logging
import re

from ..const import (
    DEFAULT_SERVINGS,
    METADATA_SCAN_LINES,
    NOT_FOUND,
)
from ..models.recipe import Recipe
from .base_parser import BaseRecipeParser
from .ingredient_parser import IngredientParser
from .step_parser import StepAccumulator
from .structure import (
    DocumentStructure,
    RawDocument,
    StructureDetector,
    is_metadata_line,
    tokenize,
)

_LOGGER = logging.getLogger(__name__)

_TITLE_NOISE = re.compile(r"\d+\s*(?:min|stunden|std|kcal|personen)\b\.?", re.IGNORECASE)
_SERVINGS_PATTERNS = (
    re.compile(r"(?<!\d)(\d{1,4})\s*(?:portionen|portion|personen|person|servings?)\b", re.IGNORECASE),
    re.compile(r"\b(?:für|serves|servings|portionen|yield)\s*:?\s*(\d{1,4})\b", re.IGNORECASE),
)
_MAX_SERVINGS = 100
_TIME_PATTERN = re.compile(
    r"(?<!\d)(\d{1,4})\s*(min|minuten|minutes|mins?|std|stunden|stunde|hours?|h)\b", re.IGNORECASE)
_HOUR_UNITS = ("std", "stunde", "stunden", "hour", "hours", "h")
_PREP_WORDS = ("aktiv", "vorbereit", "zubereitungszeit", "arbeitszeit", "prep")
_COOK_WORDS = ("koch", "back", "brat", "garzeit", "cook", "bake", "roast")
_TOTAL_WORDS = ("gesamt", "insgesamt", "total")
_DESCRIPTION_MIN_LENGTH = 40


class HeuristicRecipeParser(BaseRecipeParser):
    """Rule based parser driven by the current pattern set."""

    def __init__(self, structure_detector: StructureDetector,
                 ingredient_parser: IngredientParser,
                 step_accumulator: StepAccumulator) -> None:
        self._detector = structure_detector
        self._ingredients = ingredient_parser
        self._steps = step_accumulator

    def parse_recipe(self, text: str) -> Recipe | None:
        """Parse a recipe from raw document text.

        Args:
            text: The raw recipe text

        Returns:
            The best-effort recipe, or None if the text has no content
        """
        if not isinstance(text, str):
            return None
        document = tokenize(text)
        if not len(document):
            return None
        return self.parse_document(document)

    def parse_document(self, document: RawDocument) -> Recipe:
        structure = self._detector.detect(document)

        name = self.extract_title(document, structure)
        servings = self.extract_servings(document)
        prep_time, cook_time = self.extract_times(document)
        description = self.extract_description(document, structure)

        section = ()
        if structure.ingredients_start != NOT_FOUND:
            section = document.lines[structure.ingredients_start:structure.ingredients_end]
        ingredients = self._ingredients.parse_lines(line for line in section if len(line) >= 3)

        steps = self._steps.extract_steps(document, structure)

        _LOGGER.info(
            "Heuristic parse of '%s': %d ingredients, %d steps, %d servings",
            name, len(ingredients), len(steps), servings)

        return Recipe(
            name=name,
            servings=servings,
            prep_time_minutes=prep_time,
            cook_time_minutes=cook_time,
            description=description,
            ingredients=ingredients,
            steps=steps,
        )

    @staticmethod
    def extract_title(document: RawDocument, structure: DocumentStructure) -> str:
        if structure.title_line_index == NOT_FOUND:
            return ""
        line = document.lines[structure.title_line_index]
        return re.sub(r"\s{2,}", " ", _TITLE_NOISE.sub("", line)).strip(" -|,")

    @staticmethod
    def extract_servings(document: RawDocument) -> int:
        for line in document.lines[:METADATA_SCAN_LINES]:
            for pattern in _SERVINGS_PATTERNS:
                match = pattern.search(line)
                if match:
                    servings = int(match.group(1))
                    if 1 <= servings <= _MAX_SERVINGS:
                        return servings
        return DEFAULT_SERVINGS

    @staticmethod
    def extract_times(document: RawDocument) -> tuple[int, int]:
        """Return (prep, cook) minutes from the document head.

        A total time only fills in the cooking time when no explicit cooking
        time was found.
        """
        prep = 0
        cook = 0
        total = 0
        for line in document.lines[:METADATA_SCAN_LINES]:
            match = _TIME_PATTERN.search(line)
            if not match:
                continue
            minutes = int(match.group(1))
            if match.group(2).lower() in _HOUR_UNITS:
                minutes *= 60

            lower = line.lower()
            if any(word in lower for word in _TOTAL_WORDS):
                total = total or minutes
            elif any(word in lower for word in _PREP_WORDS):
                prep = prep or minutes
            elif any(word in lower for word in _COOK_WORDS):
                cook = cook or minutes
            elif prep == 0 and cook == 0:
                prep = minutes

        if cook == 0 and total > prep:
            cook = total - prep
        return prep, cook

    @staticmethod
    def extract_description(document: RawDocument, structure: DocumentStructure) -> str:
        start = structure.title_line_index + 1 if structure.title_line_index != NOT_FOUND else 0
        end = structure.ingredients_start - 1 if structure.ingredients_by_keyword else structure.ingredients_start
        for line in document.lines[start:max(start, end)]:
            if len(line) >= _DESCRIPTION_MIN_LENGTH and not is_metadata_line(line):
                return line
        return ""
