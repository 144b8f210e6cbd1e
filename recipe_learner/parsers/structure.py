"""
Document structure detection.

Locates the title line and the ingredient and step sections of a recipe
document. Section headers are found with the keyword vocabulary of the
current pattern set; documents without recognizable headers fall back to the
learned average section positions.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from ..const import (
    HEADER_MAX_LENGTH,
    HEADER_MIN_LENGTH,
    INFORMAL_STEP_KEYWORDS,
    INGREDIENT_KEYWORDS,
    INGREDIENT_SECTION_LOOKAHEAD,
    NOT_FOUND,
    POSITIONAL_SECTION_WIDTH,
    STEP_KEYWORDS,
    TITLE_MIN_LENGTH,
    TITLE_SCAN_LINES,
)
from ..learning.store import PatternRepository

_LOGGER = logging.getLogger(__name__)

# Time, calorie and serving lines are never a title
_METADATA_PATTERN = re.compile(
    r"\d+\s*(?:min|minute|minuten|minutes|std|stunde|stunden|hours?|kcal|kj|"
    r"personen|person|portionen|portion|servings?|serves)\b",
    re.IGNORECASE,
)
_NUMERIC_LINE = re.compile(r"^[\W\d_]+$")


@dataclass(frozen=True)
class RawDocument:
    """Ordered, non-empty, trimmed lines of one document."""

    lines: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.lines)


def tokenize(text: str) -> RawDocument:
    """Split text into a RawDocument, dropping blank lines."""
    return RawDocument(tuple(
        stripped for stripped in (line.strip() for line in text.splitlines()) if stripped
    ))


@dataclass
class DocumentStructure:
    """Line indices of the detected parts, NOT_FOUND when absent.

    Section ends are exclusive.
    """

    title_line_index: int = NOT_FOUND
    ingredients_start: int = NOT_FOUND
    ingredients_end: int = NOT_FOUND
    steps_start: int = NOT_FOUND
    steps_end: int = NOT_FOUND
    ingredients_by_keyword: bool = False
    steps_by_keyword: bool = False


def is_upper_case(line: str) -> bool:
    """True for lines without lower-case letters and with at least one letter."""
    return line == line.upper() and any(char.isalpha() for char in line)


def is_metadata_line(line: str) -> bool:
    """True for time, calorie, serving and purely numeric lines."""
    return bool(_METADATA_PATTERN.search(line) or _NUMERIC_LINE.match(line))


class StructureDetector:
    """Finds the title and the section bounds of a document."""

    def __init__(self, pattern_repository: PatternRepository) -> None:
        self._patterns = pattern_repository

    def ingredient_keywords(self) -> list[str]:
        """Ingredient header keywords of the current pattern set."""
        return self._patterns.effective().ingredient_keywords() or list(INGREDIENT_KEYWORDS)

    def step_keywords(self) -> list[str]:
        """Step header keywords of the current pattern set."""
        return self._patterns.effective().step_keywords() or list(STEP_KEYWORDS)

    def is_section_header(self, line: str) -> bool:
        """Classify a short keyword or all upper-case line as a section header."""
        line = line.strip()
        if not HEADER_MIN_LENGTH <= len(line) < HEADER_MAX_LENGTH:
            return False
        return self._contains_keyword(line) or is_upper_case(line)

    def _contains_keyword(self, line: str) -> bool:
        lower = line.lower()
        return any(keyword in lower for keyword in self.ingredient_keywords() + self.step_keywords())

    def detect(self, document: RawDocument) -> DocumentStructure:
        """Detect the title line and the ingredient and step sections.

        Args:
            document: The tokenized document

        Returns:
            The detected structure
        """
        structure = DocumentStructure()
        total = len(document)
        if total == 0:
            return structure

        structure.title_line_index = self.find_title(document)
        self._find_ingredients(document, structure)
        self._find_steps(document, structure)

        _LOGGER.debug(
            "Detected structure: title line %d, ingredients %d-%d (keyword: %s), "
            "steps %d-%d (keyword: %s)",
            structure.title_line_index,
            structure.ingredients_start,
            structure.ingredients_end,
            structure.ingredients_by_keyword,
            structure.steps_start,
            structure.steps_end,
            structure.steps_by_keyword,
        )
        return structure

    def find_title(self, document: RawDocument) -> int:
        """Return the index of the title line or NOT_FOUND."""
        candidates = [
            line if not self._contains_keyword(line) else ""
            for line in document.lines[:TITLE_SCAN_LINES]
        ]

        for index, line in enumerate(candidates):
            if TITLE_MIN_LENGTH <= len(line) < HEADER_MAX_LENGTH and is_upper_case(line):
                return index

        for index, line in enumerate(candidates):
            if len(line) > HEADER_MIN_LENGTH and not is_metadata_line(line):
                return index

        return NOT_FOUND

    def _find_ingredients(self, document: RawDocument, structure: DocumentStructure) -> None:
        lines = document.lines
        total = len(lines)
        keywords = self.ingredient_keywords()

        for index, line in enumerate(lines):
            if len(line) >= HEADER_MAX_LENGTH:
                continue
            lower = line.lower()
            if not any(keyword in lower for keyword in keywords):
                continue

            structure.ingredients_start = index + 1
            structure.ingredients_by_keyword = True
            for next_index in range(index + 1, total):
                if self.is_section_header(lines[next_index]):
                    structure.ingredients_end = next_index
                    break
            else:
                structure.ingredients_end = min(index + INGREDIENT_SECTION_LOOKAHEAD, total)
            return

        position = self._patterns.effective().structural_info.avg_ingredient_relative_position
        start = min(math.floor(total * position), total)
        structure.ingredients_start = start
        structure.ingredients_end = min(start + POSITIONAL_SECTION_WIDTH, total)

    def _find_steps(self, document: RawDocument, structure: DocumentStructure) -> None:
        lines = document.lines
        total = len(lines)
        scan_from = max(structure.ingredients_end, 0)
        keywords = self.step_keywords() + INFORMAL_STEP_KEYWORDS

        for index in range(scan_from, total):
            line = lines[index]
            if len(line) >= HEADER_MAX_LENGTH:
                continue
            lower = line.lower()
            if any(keyword in lower for keyword in keywords):
                structure.steps_start = index + 1
                structure.steps_end = total
                structure.steps_by_keyword = True
                return

        position = self._patterns.effective().structural_info.avg_step_relative_position
        structure.steps_start = min(max(math.floor(total * position), scan_from), total)
        structure.steps_end = total
