"""
Step accumulation.

Builds instruction steps from the lines of the step section. Continuation
lines are merged into the current step and explicit numbering markers
(``1.``, ``2)``, ``3:``) start a new one. When the detected section yields no
steps, a ladder of fallbacks is tried in order.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from enum import Enum

from ..const import (
    NOT_FOUND,
    STEP_MIN_LENGTH,
    STEP_MIN_LINE_LENGTH,
    UNLABELED_STEP_MIN_LENGTH,
)
from ..models.recipe import Step
from .ingredient_parser import IngredientParser
from .structure import DocumentStructure, RawDocument, StructureDetector

_LOGGER = logging.getLogger(__name__)

# "1. text", "2) text", "3: text"; "12.5 g" is an amount, not a marker
_NUMBERED_LINE = re.compile(r"^(\d{1,2})\s*[.):]\s*(?!\d)(.*)$")


class _State(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


def numbered_line(line: str) -> re.Match[str] | None:
    """Match an explicitly numbered step line."""
    return _NUMBERED_LINE.match(line.strip())


def number_steps(instructions: Iterable[str]) -> list[Step]:
    """Turn instruction texts into Steps numbered from 1."""
    return [
        Step(step_number=number, instruction=instruction)
        for number, instruction in enumerate(instructions, start=1)
    ]


class StepAccumulator:
    """Merges step section lines into numbered instruction steps."""

    def __init__(self, structure_detector: StructureDetector,
                 ingredient_parser: IngredientParser) -> None:
        self._detector = structure_detector
        self._ingredients = ingredient_parser
        self._ladder: tuple[Callable[[RawDocument, DocumentStructure], list[str]], ...] = (
            self._section_steps,
            self._numbered_steps,
            self._unlabeled_steps,
        )

    def _is_continuation(self, line: str) -> bool:
        return (
            len(line) >= STEP_MIN_LINE_LENGTH
            and not self._ingredients.has_quantity_indicator(line)
        )

    def accumulate(self, lines: Iterable[str]) -> list[Step]:
        """Build steps from the lines of a step section.

        Blank lines end the current step when it is long enough, numbered
        lines start a new step and a section header ends the section.

        Args:
            lines: Lines inside the step section, blank lines allowed

        Returns:
            Steps numbered from 1 in document order
        """
        return number_steps(self._accumulate(lines))

    def _accumulate(self, lines: Iterable[str]) -> list[str]:
        instructions: list[str] = []
        parts: list[str] = []
        state = _State.IDLE

        def emit() -> None:
            text = " ".join(parts).strip()
            if len(text) >= STEP_MIN_LENGTH:
                instructions.append(text)

        for raw_line in lines:
            line = raw_line.strip() if isinstance(raw_line, str) else ""

            if not line:
                if state is _State.ACCUMULATING and len(" ".join(parts)) >= STEP_MIN_LENGTH:
                    emit()
                    parts = []
                    state = _State.IDLE
                continue

            match = numbered_line(line)
            if match:
                emit()
                rest = match.group(2).strip()
                parts = [rest] if rest else []
                state = _State.ACCUMULATING
                continue

            if self._detector.is_section_header(line):
                break

            if self._is_continuation(line):
                parts.append(line)
                state = _State.ACCUMULATING

        emit()
        return instructions

    def extract_steps(self, document: RawDocument, structure: DocumentStructure) -> list[Step]:
        """Extract steps, walking the fallback ladder until one yields steps.

        1. The detected step section
        2. Numbered lines anywhere in the document
        3. Long lines after the ingredient section, one step each

        Args:
            document: The tokenized document
            structure: The detected structure of the document

        Returns:
            Steps numbered from 1
        """
        for stage in self._ladder:
            instructions = stage(document, structure)
            if instructions:
                _LOGGER.debug("Found %d steps via %s", len(instructions), stage.__name__)
                return number_steps(instructions)
        _LOGGER.debug("No steps found")
        return []

    def _section_steps(self, document: RawDocument, structure: DocumentStructure) -> list[str]:
        if structure.steps_start == NOT_FOUND:
            return []
        end = len(document) if structure.steps_end == NOT_FOUND else structure.steps_end
        return self._accumulate(document.lines[structure.steps_start:end])

    def _numbered_steps(self, document: RawDocument, structure: DocumentStructure) -> list[str]:
        instructions: list[str] = []
        parts: list[str] = []
        state = _State.IDLE

        def emit() -> None:
            text = " ".join(parts).strip()
            if len(text) >= STEP_MIN_LENGTH:
                instructions.append(text)

        for line in document.lines:
            match = numbered_line(line)
            if match:
                emit()
                rest = match.group(2).strip()
                parts = [rest] if rest else []
                state = _State.ACCUMULATING
            elif state is _State.ACCUMULATING:
                if self._detector.is_section_header(line):
                    emit()
                    parts = []
                    state = _State.IDLE
                elif self._is_continuation(line):
                    parts.append(line)

        emit()
        return instructions

    def _unlabeled_steps(self, document: RawDocument, structure: DocumentStructure) -> list[str]:
        start = max(structure.ingredients_end, 0)
        return [
            line for line in document.lines[start:]
            if len(line) >= UNLABELED_STEP_MIN_LENGTH
            and not self._ingredients.has_quantity_indicator(line)
            and not self._detector.is_section_header(line)
        ]
