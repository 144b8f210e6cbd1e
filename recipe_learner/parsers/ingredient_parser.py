"""
Ingredient line interpreter.

Turns a single line from the ingredient section into an Ingredient. Lines
that look like instructions are rejected up front; the remaining lines are
matched against an ordered list of strategies and the first match wins:

1. ``250 g Mehl`` / ``250g Mehl`` (amount, unit, space, name)
2. ``250 gMehl`` (amount, space, unit glued to a capitalized name)
3. ``250gMehl`` (fully unspaced)
4. ``2 Eier`` (amount and name, unit defaults to piece); an unspaced
   lower-case line such as ``250gmehl`` still starts with its unit
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import lru_cache

from ..const import (
    APPROXIMATION_MARKERS,
    COOKING_VERBS,
    DEFAULT_UNIT,
    INGREDIENT_MAX_LINE_LENGTH,
    INGREDIENT_MIN_NAME_LENGTH,
    NAME_STOPWORDS,
    UNITS,
)
from ..learning.store import PatternRepository
from ..models.recipe import Ingredient

_LOGGER = logging.getLogger(__name__)

_AMOUNT = r"(?P<amount>\d{1,6}(?:[.,]\d{1,6})?(?:\s+\d{1,6}/\d{1,6}|/\d{1,6})?)"
_CAPITAL = r"(?=[A-ZÄÖÜ])"
_NAME = r"(?P<name>.+)"

_BULLET = re.compile(r"^[-•·*–]\s*")
_LEADING_PUNCTUATION = re.compile(r"^[.,;:!?()\[\]/…\"'“„]")
_NAME_LEADING_PUNCTUATION = re.compile(r"^[\s\-–•·*.,;:()\[\]/]+")
_NAME_TERMINATOR = re.compile(r"[,;!?]|\.(?:\s|$)")
_LEARNED_UNIT = re.compile(r"^[a-zäöüß]+\.?$")
_MAX_UNIT_LENGTH = 15

_COOKING_VERB_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(verb) for verb in COOKING_VERBS) + r")\b",
    re.IGNORECASE,
)
_APPROXIMATION_PATTERN = re.compile(
    r"(?:^|(?<=\s))(?:"
    + "|".join(re.escape(marker) for marker in APPROXIMATION_MARKERS)
    + r")\s*\d",
    re.IGNORECASE,
)

_FRACTION_VALUES = {
    "½": 0.5,
    "⅓": 0.333,
    "⅔": 0.667,
    "¼": 0.25,
    "¾": 0.75,
    "⅛": 0.125,
    "⅜": 0.375,
    "⅝": 0.625,
    "⅞": 0.875,
}


def apply_unicode_fractions(text: str) -> str:
    """Replace unicode fraction characters with decimal equivalents.

    Handles both standalone fractions (½) and mixed numbers (2½).
    Mixed numbers are converted by adding the decimal: 2½ -> 2 + 0.5 = 2.5

    Args:
        text: String potentially containing unicode fractions

    Returns:
        String with unicode fractions replaced by decimals
    """
    for fraction_char, decimal_value in _FRACTION_VALUES.items():
        if fraction_char not in text:
            continue
        text = re.sub(
            rf"(?<!\d)(\d{{1,6}})\s?{re.escape(fraction_char)}",
            lambda match, value=decimal_value: str(int(match.group(1)) + value),
            text,
        )
        text = text.replace(fraction_char, str(decimal_value))
    return text


def parse_amount(amount_str: str) -> float:
    """Parse '250', '2,5', '1/2' or '1 1/2' into a number.

    Raises:
        ValueError: If the string is not a valid amount
        ZeroDivisionError: If a fraction has a zero denominator
    """
    amount_str = amount_str.strip().replace(",", ".")
    whole = 0.0
    if " " in amount_str:
        whole_str, amount_str = amount_str.split(None, 1)
        whole = float(whole_str)

    if "/" not in amount_str:
        return whole + float(amount_str)

    numerator, denominator = amount_str.split("/", 1)
    if float(denominator) == 0:
        raise ZeroDivisionError(f"Fraction has zero denominator: {amount_str}")
    return whole + float(numerator) / float(denominator)


@dataclass(frozen=True)
class _Patterns:
    spaced: re.Pattern[str]
    glued_after_space: re.Pattern[str]
    unspaced: re.Pattern[str]
    unitless: re.Pattern[str]
    glued_lower: re.Pattern[str]
    quantity: re.Pattern[str]
    units: frozenset[str]


@lru_cache(maxsize=8)
def _compile_patterns(units: tuple[str, ...]) -> _Patterns:
    # Longest first so 'zehen' wins over 'zehe' and 'el' over 'e'
    ordered = sorted(units, key=lambda unit: (-len(unit), unit))
    unit_group = r"(?P<unit>(?i:" + "|".join(re.escape(unit) for unit in ordered) + r"))"
    return _Patterns(
        spaced=re.compile(rf"^{_AMOUNT}\s*{unit_group}\s+{_NAME}$"),
        glued_after_space=re.compile(rf"^{_AMOUNT}\s+{unit_group}{_CAPITAL}{_NAME}$"),
        unspaced=re.compile(rf"^{_AMOUNT}{unit_group}{_CAPITAL}{_NAME}$"),
        unitless=re.compile(rf"^{_AMOUNT}(?P<gap>\s*)(?P<name>[^\W\d_].*)$"),
        glued_lower=re.compile(rf"^{_AMOUNT}{unit_group}(?P<name>[^\W\d_].*)$"),
        quantity=re.compile(rf"^{_AMOUNT}\s*{unit_group}(?=\s|[A-ZÄÖÜ]|$)"),
        units=frozenset(ordered),
    )


def _first_word(name: str) -> str:
    words = name.lower().split()
    return words[0] if words else ""


def clean_name(name: str) -> str | None:
    """Trim a captured ingredient name, or None if it is not a usable name."""
    name = _NAME_LEADING_PUNCTUATION.sub("", name)
    name = _NAME_TERMINATOR.split(name, maxsplit=1)[0].strip()

    if len(name) < INGREDIENT_MIN_NAME_LENGTH:
        return None
    if name[0].isdigit() or name.replace(".", "").replace(",", "").isdigit():
        return None
    first = _first_word(name)
    if first in NAME_STOPWORDS or first.rstrip(".") in NAME_STOPWORDS:
        return None
    return name


IngredientStrategy = Callable[[str, _Patterns], Ingredient | None]


def _build(match: re.Match[str] | None, unit: str | None) -> Ingredient | None:
    if match is None:
        return None
    name = clean_name(match.group("name"))
    if name is None:
        return None
    return Ingredient(
        name=name,
        amount=parse_amount(match.group("amount")),
        unit=unit or DEFAULT_UNIT,
    )


def _match_spaced(text: str, patterns: _Patterns) -> Ingredient | None:
    match = patterns.spaced.match(text)
    return _build(match, match.group("unit").lower() if match else None)


def _match_glued_after_space(text: str, patterns: _Patterns) -> Ingredient | None:
    match = patterns.glued_after_space.match(text)
    return _build(match, match.group("unit").lower() if match else None)


def _match_unspaced(text: str, patterns: _Patterns) -> Ingredient | None:
    match = patterns.unspaced.match(text)
    return _build(match, match.group("unit").lower() if match else None)


def _match_unitless(text: str, patterns: _Patterns) -> Ingredient | None:
    match = patterns.unitless.match(text)
    if match is None:
        return None
    if not match.group("gap") and match.group("name")[0].islower():
        # '250gmehl': a unit glued to a lower-case name is still a unit
        glued = patterns.glued_lower.match(text)
        if glued is not None:
            return _build(glued, glued.group("unit").lower())
    first = _first_word(match.group("name")).rstrip(".,;:")
    if first in patterns.units:
        return None
    return _build(match, DEFAULT_UNIT)


# Tried in order, first match wins
STRATEGIES: tuple[IngredientStrategy, ...] = (
    _match_spaced,
    _match_glued_after_space,
    _match_unspaced,
    _match_unitless,
)


class IngredientParser:
    """Interprets single ingredient lines.

    The unit vocabulary is the built-in list merged with the units of the
    current pattern set.
    """

    def __init__(self, pattern_repository: PatternRepository | None = None) -> None:
        self._patterns = pattern_repository

    def units(self) -> tuple[str, ...]:
        """The unit vocabulary currently in use."""
        units = set(UNITS)
        if self._patterns is not None:
            for unit in self._patterns.effective().unit_names():
                unit = unit.strip().lower()
                if len(unit) <= _MAX_UNIT_LENGTH and _LEARNED_UNIT.match(unit):
                    units.add(unit)
        return tuple(sorted(units))

    def _compiled(self) -> _Patterns:
        return _compile_patterns(self.units())

    @staticmethod
    def _prepare(line: str) -> str:
        text = _BULLET.sub("", line.strip(), count=1)
        return apply_unicode_fractions(text).strip()

    def rejection_reason(self, line: str) -> str | None:
        """Return why a line cannot be an ingredient, None if it may be one."""
        text = self._prepare(line)
        if _COOKING_VERB_PATTERN.search(text):
            return "cooking verb"
        if _LEADING_PUNCTUATION.match(text):
            return "leading punctuation"
        if _APPROXIMATION_PATTERN.search(text):
            return "approximate amount"
        if len(text) > INGREDIENT_MAX_LINE_LENGTH:
            return "too long"
        if len(text) < 3:
            return "too short"
        return None

    def parse_line(self, line: str) -> Ingredient | None:
        """Parse one ingredient line.

        Args:
            line: A line from the ingredient section

        Returns:
            The parsed ingredient, or None if the line is rejected
        """
        if not isinstance(line, str):
            return None

        reason = self.rejection_reason(line)
        if reason is not None:
            _LOGGER.debug("Rejected ingredient line %r: %s", line, reason)
            return None

        text = self._prepare(line)
        patterns = self._compiled()
        for strategy in STRATEGIES:
            try:
                ingredient = strategy(text, patterns)
            except (ValueError, ZeroDivisionError) as err:
                _LOGGER.debug("Strategy %s failed on %r: %s", strategy.__name__, line, err)
                continue
            if ingredient is not None:
                return ingredient

        _LOGGER.debug("No ingredient pattern matched %r", line)
        return None

    def parse_lines(self, lines: Iterable[str]) -> list[Ingredient]:
        """Parse every line, skipping rejected ones."""
        ingredients = []
        for line in lines:
            ingredient = self.parse_line(line)
            if ingredient is not None:
                ingredients.append(ingredient)
        return ingredients

    def has_quantity_indicator(self, line: str) -> bool:
        """True if the line starts with an amount followed by a known unit."""
        if not isinstance(line, str):
            return False
        return bool(self._compiled().quantity.match(self._prepare(line)))
