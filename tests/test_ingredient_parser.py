"""Tests for the ingredient line interpreter."""
import pytest

from recipe_learner.learning.store import PatternRepository
from recipe_learner.models.training import LearnedPatternSet, UnitStat
from recipe_learner.parsers.ingredient_parser import (
    STRATEGIES,
    IngredientParser,
    apply_unicode_fractions,
    clean_name,
    parse_amount,
)


class TestStrategyPriority:
    """The strategies are tried in a fixed order, first match wins."""

    @pytest.mark.parametrize("line, name, amount, unit", [
        ("250 g Mehl", "Mehl", 250, "g"),
        ("250gMehl", "Mehl", 250, "g"),
        ("2 Eier", "Eier", 2, "piece"),
        ("250 gMehl", "Mehl", 250, "g"),
        ("1 EL Olivenöl", "Olivenöl", 1, "el"),
        ("3 Zehen Knoblauch", "Knoblauch", 3, "zehen"),
        ("2 tbsp olive oil", "olive oil", 2, "tbsp"),
    ])
    def test_parses_line(self, ingredient_parser, line, name, amount, unit):
        ingredient = ingredient_parser.parse_line(line)
        assert ingredient is not None
        assert ingredient.name == name
        assert ingredient.amount == amount
        assert ingredient.unit == unit

    def test_strategy_order_is_explicit(self):
        assert [strategy.__name__ for strategy in STRATEGIES] == [
            "_match_spaced",
            "_match_glued_after_space",
            "_match_unspaced",
            "_match_unitless",
        ]

    def test_bullets_are_stripped(self, ingredient_parser):
        ingredient = ingredient_parser.parse_line("- 100 g Zucker")
        assert ingredient.name == "Zucker"
        assert ingredient.amount == 100

    def test_name_is_cut_at_comma(self, ingredient_parser):
        ingredient = ingredient_parser.parse_line("1 Zwiebel, gewürfelt")
        assert ingredient.name == "Zwiebel"

    @pytest.mark.parametrize("line, name, amount, unit", [
        ("250gmehl", "mehl", 250, "g"),
        ("500mlmilch", "milch", 500, "ml"),
        ("2elzucker", "zucker", 2, "el"),
    ])
    def test_unit_glued_to_lower_case_name(self, ingredient_parser, line, name, amount, unit):
        ingredient = ingredient_parser.parse_line(line)
        assert ingredient is not None
        assert (ingredient.name, ingredient.amount, ingredient.unit) == (name, amount, unit)

    @pytest.mark.parametrize("line, name", [("2eier", "eier"), ("4Gurken", "Gurken")])
    def test_glued_name_without_unit_prefix(self, ingredient_parser, line, name):
        ingredient = ingredient_parser.parse_line(line)
        assert ingredient.name == name
        assert ingredient.unit == "piece"


class TestAmounts:

    @pytest.mark.parametrize("line, amount", [
        ("2,5 kg Kartoffeln", 2.5),
        ("0.5 l Milch", 0.5),
        ("1/2 TL Salz", 0.5),
        ("1 1/2 cups flour", 1.5),
        ("½ Bund Petersilie", 0.5),
        ("2½ EL Zucker", 2.5),
    ])
    def test_decimal_and_fraction_amounts(self, ingredient_parser, line, amount):
        ingredient = ingredient_parser.parse_line(line)
        assert ingredient is not None
        assert ingredient.amount == pytest.approx(amount)

    def test_integral_amount_is_int(self, ingredient_parser):
        assert isinstance(ingredient_parser.parse_line("250 g Mehl").amount, int)

    def test_unicode_fractions(self):
        assert apply_unicode_fractions("2½") == "2.5"
        assert apply_unicode_fractions("¼ TL") == "0.25 TL"

    def test_parse_amount_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            parse_amount("1/0")


class TestRejections:
    """Lines that are not ingredients are rejected without raising."""

    @pytest.mark.parametrize("line", [
        "Zwiebeln fein hacken",
        "Alles gut verrühren und servieren",
        "Stir in the garlic",
    ])
    def test_cooking_verb(self, ingredient_parser, line):
        assert ingredient_parser.parse_line(line) is None
        assert ingredient_parser.rejection_reason(line) == "cooking verb"

    @pytest.mark.parametrize("line", ["ca. 200 g Mehl", "etwa 3 Tomaten", "~200 g Zucker"])
    def test_approximate_amount(self, ingredient_parser, line):
        assert ingredient_parser.parse_line(line) is None

    def test_leading_punctuation(self, ingredient_parser):
        assert ingredient_parser.parse_line("(optional) 1 Chili") is None

    def test_too_long(self, ingredient_parser):
        assert ingredient_parser.parse_line("200 g " + "Mehl " * 20) is None

    def test_long_digit_run_is_rejected(self, ingredient_parser):
        line = "9" * 5000 + "½ Mehl"
        assert ingredient_parser.parse_line(line) is None
        assert ingredient_parser.has_quantity_indicator(line) is False

    @pytest.mark.parametrize("line", ["30 Minuten", "4 Personen", "200 kcal", "Mehl", "", "12"])
    def test_no_ingredient(self, ingredient_parser, line):
        assert ingredient_parser.parse_line(line) is None

    def test_non_string_input(self, ingredient_parser):
        assert ingredient_parser.parse_line(None) is None
        assert ingredient_parser.has_quantity_indicator(None) is False

    def test_clean_name(self):
        assert clean_name("  - Mehl. Dann") == "Mehl"
        assert clean_name("x") is None
        assert clean_name("minuten") is None


class TestLearnedUnits:

    def test_learned_unit_is_recognized(self):
        patterns = PatternRepository(pattern_set=LearnedPatternSet(
            common_units=[UnitStat(unit="dash", count=3)]))
        ingredient = IngredientParser(patterns).parse_line("1 dash Tabasco")
        assert ingredient.unit == "dash"
        assert ingredient.name == "Tabasco"

    def test_unknown_unit_without_pattern_set(self, ingredient_parser):
        ingredient = ingredient_parser.parse_line("1 dash Tabasco")
        assert ingredient.unit == "piece"
        assert ingredient.name == "dash Tabasco"


class TestQuantityIndicator:

    @pytest.mark.parametrize("line, expected", [
        ("200 g Mehl", True),
        ("200gMehl", True),
        ("2 Eier", False),
        ("Den Ofen vorheizen", False),
    ])
    def test_has_quantity_indicator(self, ingredient_parser, line, expected):
        assert ingredient_parser.has_quantity_indicator(line) is expected
