"""
Pattern learning from accepted extractions.

Mines trusted training examples (externally extracted, high confidence) for
structural statistics: which header keywords mark the sections, where the
sections usually start, how ingredient and step lines are formatted and which
units are common. The aggregate replaces the stored pattern set and is used
by the structure detector and the ingredient parser on the next extraction.
"""
from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field

from ..const import (
    DEFAULT_INGREDIENT_POSITION,
    DEFAULT_LEARN_MIN_CONFIDENCE,
    DEFAULT_STEP_POSITION,
    DEFAULT_UNIT,
    HEADER_MAX_LENGTH,
    INGREDIENT_KEYWORDS,
    LEARN_INGREDIENT_SAMPLES,
    LEARN_LINE_MAX_LENGTH,
    LEARN_STEP_MATCH_LENGTH,
    LEARN_STEP_PREFIX_LENGTH,
    LEARN_STEP_SAMPLES,
    LEARN_TOP_KEYWORDS,
    LEARN_TOP_UNITS,
    LEARNABLE_SOURCE_PREFIX,
    STEP_KEYWORDS,
)
from ..models.recipe import Recipe, RecipeSource
from ..models.training import (
    KeywordStat,
    LearnedPatternSet,
    LineFormats,
    SectionKeywords,
    StructuralInfo,
    TrainingExample,
    UnitStat,
)
from ..parsers.structure import tokenize
from .store import ExampleStore

_LOGGER = logging.getLogger(__name__)

LEARNABLE_SOURCES = tuple(
    source for source in RecipeSource
    if source.value.startswith(LEARNABLE_SOURCE_PREFIX) or source is RecipeSource.HYBRID
)

_PRECISION = 4
_LEADING_NUMBER = re.compile(r"^\d+")
_STEP_NUMBERING = re.compile(r"^\d+[.):\s]")
_STEP_BULLET = re.compile(r"^[-•·]")
_STARTS_WITH_VERB = re.compile(r"^[A-ZÄÖÜ][a-zäöüß]+\s+")


@dataclass
class _IngredientLineFormat:
    leading_number: bool
    has_unit: bool
    space_before_unit: bool
    space_after_unit: bool
    length: int


@dataclass
class _StepLineFormat:
    numbered: bool
    bullet: bool
    starts_with_verb: bool
    length: int


@dataclass
class _Observations:
    """Running totals collected while walking the examples."""

    ingredient_keywords: Counter = field(default_factory=Counter)
    step_keywords: Counter = field(default_factory=Counter)
    ingredient_positions: list[float] = field(default_factory=list)
    step_positions: list[float] = field(default_factory=list)
    ingredient_formats: list[_IngredientLineFormat] = field(default_factory=list)
    step_formats: list[_StepLineFormat] = field(default_factory=list)
    ingredient_count: int = 0
    step_count: int = 0
    units: Counter = field(default_factory=Counter)


def _round(value: float) -> float:
    return round(value, _PRECISION)


def _percentage(flags: list[bool]) -> float:
    return _round(sum(flags) / len(flags) * 100)


def _mean(values: list[float], default: float) -> float:
    return _round(sum(values) / len(values)) if values else default


class PatternLearner:
    """Aggregates a LearnedPatternSet from trusted training examples."""

    def __init__(self, store: ExampleStore,
                 min_confidence: float = DEFAULT_LEARN_MIN_CONFIDENCE,
                 sources: tuple[RecipeSource, ...] = LEARNABLE_SOURCES) -> None:
        self._store = store
        self._min_confidence = min_confidence
        self._sources = sources

    def learn(self) -> LearnedPatternSet:
        """Learn from all trusted examples and persist the result.

        A run without trusted examples returns an empty pattern set and keeps
        the stored one.

        Returns:
            The learned pattern set

        Raises:
            StoreError: If the examples cannot be read or the set cannot be stored
        """
        examples = self._store.learnable_examples(self._sources, self._min_confidence)
        _LOGGER.info(
            "Learning patterns from %d trusted examples (confidence > %s)",
            len(examples), self._min_confidence)

        if not examples:
            _LOGGER.info("No trusted examples yet, keeping the current pattern set")
            return LearnedPatternSet()

        pattern_set = self.aggregate(examples)
        self._store.replace_pattern_set(pattern_set)
        self._log_report(pattern_set)
        return pattern_set

    def aggregate(self, examples: list[TrainingExample]) -> LearnedPatternSet:
        """Build a pattern set from examples without persisting it."""
        observations = _Observations()
        for example in examples:
            self._observe(example, observations)
        return self._aggregate(observations, len(examples))

    def _observe(self, example: TrainingExample, observations: _Observations) -> None:
        lines = list(tokenize(example.raw_text).lines)
        recipe = example.parsed_result

        self._count_keywords(lines, INGREDIENT_KEYWORDS, observations.ingredient_keywords)
        self._count_keywords(lines, STEP_KEYWORDS, observations.step_keywords)
        self._record_positions(lines, recipe, observations)
        self._record_line_formats(lines, recipe, observations)

        observations.ingredient_count += len(recipe.ingredients)
        observations.step_count += len(recipe.steps)
        for ingredient in recipe.ingredients:
            unit = ingredient.unit.strip().lower()
            if unit:
                observations.units[unit] += 1

    @staticmethod
    def _count_keywords(lines: list[str], keywords: list[str], counter: Counter) -> None:
        short_lines = [line.lower() for line in lines if len(line) < HEADER_MAX_LENGTH]
        for keyword in keywords:
            counter[keyword] += sum(1 for line in short_lines if keyword in line)

    @staticmethod
    def _first_line_containing(lines: list[str], needle: str) -> int | None:
        if not needle:
            return None
        for index, line in enumerate(lines):
            if needle in line.lower():
                return index
        return None

    def _record_positions(self, lines: list[str], recipe: Recipe,
                          observations: _Observations) -> None:
        if not lines:
            return
        if recipe.ingredients:
            index = self._first_line_containing(lines, recipe.ingredients[0].name.lower())
            if index is not None:
                observations.ingredient_positions.append(index / len(lines))
        if recipe.steps:
            prefix = recipe.steps[0].instruction[:LEARN_STEP_PREFIX_LENGTH].lower()
            index = self._first_line_containing(lines, prefix)
            if index is not None:
                observations.step_positions.append(index / len(lines))

    def _record_line_formats(self, lines: list[str], recipe: Recipe,
                             observations: _Observations) -> None:
        for ingredient in recipe.ingredients[:LEARN_INGREDIENT_SAMPLES]:
            name = ingredient.name.lower()
            line = next(
                (line for line in lines if name in line.lower() and len(line) < LEARN_LINE_MAX_LENGTH),
                None,
            )
            if line is not None:
                observations.ingredient_formats.append(self._ingredient_format(line, ingredient.unit))

        for step in recipe.steps[:LEARN_STEP_SAMPLES]:
            fragment = step.instruction[:LEARN_STEP_MATCH_LENGTH]
            line = next(
                (line for line in lines if fragment in line and len(line) > LEARN_STEP_MATCH_LENGTH),
                None,
            )
            if line is not None:
                observations.step_formats.append(_StepLineFormat(
                    numbered=bool(_STEP_NUMBERING.match(line)),
                    bullet=bool(_STEP_BULLET.match(line)),
                    starts_with_verb=bool(_STARTS_WITH_VERB.match(line)),
                    length=len(line),
                ))

    @staticmethod
    def _ingredient_format(line: str, unit: str) -> _IngredientLineFormat:
        unit = unit.strip().lower()
        has_unit = bool(unit) and unit != DEFAULT_UNIT
        space_before = space_after = False
        if has_unit:
            escaped = re.escape(unit)
            space_before = bool(re.search(rf"\s{escaped}", line, re.IGNORECASE))
            space_after = bool(re.search(rf"{escaped}\s+", line, re.IGNORECASE))
        return _IngredientLineFormat(
            leading_number=bool(_LEADING_NUMBER.match(line)),
            has_unit=has_unit,
            space_before_unit=space_before,
            space_after_unit=space_after,
            length=len(line),
        )

    @staticmethod
    def _top_keywords(counter: Counter, total: int) -> list[KeywordStat]:
        ranked = sorted(
            ((keyword, count) for keyword, count in counter.items() if count > 0),
            key=lambda item: (-item[1], item[0]),
        )
        return [
            KeywordStat(keyword=keyword, frequency=count, confidence=_round(count / total))
            for keyword, count in ranked[:LEARN_TOP_KEYWORDS]
        ]

    def _aggregate(self, observations: _Observations, total: int) -> LearnedPatternSet:
        ingredient_formats: dict[str, float] = {}
        if observations.ingredient_formats:
            samples = observations.ingredient_formats
            ingredient_formats = {
                "percentage_with_leading_number": _percentage([s.leading_number for s in samples]),
                "percentage_with_unit": _percentage([s.has_unit for s in samples]),
                "percentage_space_before_unit": _percentage([s.space_before_unit for s in samples]),
                "percentage_space_after_unit": _percentage([s.space_after_unit for s in samples]),
                "avg_length": _mean([s.length for s in samples], 0.0),
            }

        step_formats: dict[str, float] = {}
        if observations.step_formats:
            samples = observations.step_formats
            step_formats = {
                "percentage_numbered": _percentage([s.numbered for s in samples]),
                "percentage_bullet": _percentage([s.bullet for s in samples]),
                "percentage_starts_with_verb": _percentage([s.starts_with_verb for s in samples]),
                "avg_length": _mean([s.length for s in samples], 0.0),
            }

        units = sorted(observations.units.items(), key=lambda item: (-item[1], item[0]))

        return LearnedPatternSet(
            learned_from_count=total,
            section_keywords=SectionKeywords(
                ingredients=self._top_keywords(observations.ingredient_keywords, total),
                steps=self._top_keywords(observations.step_keywords, total),
            ),
            structural_info=StructuralInfo(
                avg_ingredient_relative_position=_mean(
                    observations.ingredient_positions, DEFAULT_INGREDIENT_POSITION),
                avg_step_relative_position=_mean(
                    observations.step_positions, DEFAULT_STEP_POSITION),
                avg_ingredient_count=_round(observations.ingredient_count / total),
                avg_step_count=_round(observations.step_count / total),
            ),
            line_formats=LineFormats(ingredients=ingredient_formats, steps=step_formats),
            common_units=[UnitStat(unit=unit, count=count) for unit, count in units[:LEARN_TOP_UNITS]],
        )

    @staticmethod
    def _log_report(pattern_set: LearnedPatternSet) -> None:
        info = pattern_set.structural_info
        _LOGGER.info("Learned patterns from %d examples", pattern_set.learned_from_count)
        _LOGGER.info(
            "Top ingredient keywords: %s",
            ", ".join(f"{k.keyword} ({k.frequency})" for k in pattern_set.section_keywords.ingredients[:5])
            or "none")
        _LOGGER.info(
            "Top step keywords: %s",
            ", ".join(f"{k.keyword} ({k.frequency})" for k in pattern_set.section_keywords.steps[:5])
            or "none")
        _LOGGER.info(
            "Ingredients start at %.0f%%, steps at %.0f%% of the document",
            info.avg_ingredient_relative_position * 100,
            info.avg_step_relative_position * 100)
        _LOGGER.info(
            "Average %.1f ingredients and %.1f steps per recipe",
            info.avg_ingredient_count, info.avg_step_count)
