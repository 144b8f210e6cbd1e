"""Tests for step accumulation and the step fallback ladder."""
from recipe_learner.parsers.step_parser import numbered_line
from recipe_learner.parsers.structure import DocumentStructure, RawDocument, tokenize


class TestAccumulate:

    def test_numbered_steps_split_by_blank_line(self, accumulator):
        """Two numbered steps separated by a blank line give exactly two steps."""
        steps = accumulator.accumulate([
            "1. Preheat the oven to 200 degrees for ten minutes.",
            "",
            "2. Mix the dry ingredients together thoroughly.",
        ])

        assert [step.step_number for step in steps] == [1, 2]
        assert steps[0].instruction == "Preheat the oven to 200 degrees for ten minutes."
        assert steps[1].instruction == "Mix the dry ingredients together thoroughly."

    def test_continuation_lines_are_merged(self, accumulator):
        steps = accumulator.accumulate([
            "1. Zwiebel und Knoblauch schälen, fein hacken und in einem Topf",
            "mit etwas Öl glasig andünsten.",
            "2. Linsen zugeben und mit der Brühe ablöschen, dann köcheln lassen.",
        ])

        assert len(steps) == 2
        assert steps[0].instruction.endswith("mit etwas Öl glasig andünsten.")

    def test_blank_line_ends_unnumbered_step(self, accumulator):
        steps = accumulator.accumulate([
            "Den Backofen auf 180 Grad vorheizen und eine Form fetten.",
            "",
            "Eier mit dem Zucker schaumig schlagen und das Mehl unterheben.",
        ])
        assert len(steps) == 2

    def test_short_fragments_are_dropped(self, accumulator):
        steps = accumulator.accumulate(["1. Fertig.", "2. Mix the dry ingredients together thoroughly."])
        assert len(steps) == 1
        assert steps[0].step_number == 1

    def test_section_header_stops_accumulation(self, accumulator):
        steps = accumulator.accumulate([
            "1. Den Teig zu einer Kugel formen und 30 Minuten ruhen lassen.",
            "TIPPS",
            "Der Teig lässt sich gut einfrieren und hält drei Monate.",
        ])
        assert len(steps) == 1

    def test_ingredient_lines_are_skipped(self, accumulator):
        steps = accumulator.accumulate([
            "1. Den Teig zu einer Kugel formen und 30 Minuten ruhen lassen.",
            "200 g Mehl",
        ])
        assert steps[0].instruction == "Den Teig zu einer Kugel formen und 30 Minuten ruhen lassen."

    def test_empty_input(self, accumulator):
        assert accumulator.accumulate([]) == []

    def test_numbered_line_ignores_amounts(self):
        assert numbered_line("1. Mehl sieben") is not None
        assert numbered_line("2) Rühren") is not None
        assert numbered_line("12.5 g Hefe") is None


class TestFallbackLadder:

    def test_uses_step_section(self, detector, accumulator):
        document = tokenize(
            "Brot\nZutaten\n500 g Mehl\nZubereitung\n"
            "Das Mehl mit Wasser und Salz zu einem glatten Teig kneten.\n"
        )
        structure = detector.detect(document)
        steps = accumulator.extract_steps(document, structure)
        assert len(steps) == 1
        assert steps[0].instruction.startswith("Das Mehl")

    def test_numbered_lines_anywhere(self, accumulator):
        document = RawDocument((
            "Brot",
            "1. Das Mehl mit Wasser und Salz zu einem glatten Teig kneten.",
            "2. Den Teig abgedeckt eine Stunde an einem warmen Ort gehen lassen.",
        ))
        structure = DocumentStructure(ingredients_end=1)

        steps = accumulator.extract_steps(document, structure)

        assert [step.step_number for step in steps] == [1, 2]
        assert steps[1].instruction.startswith("Den Teig")

    def test_long_lines_after_ingredients(self, accumulator):
        document = RawDocument((
            "Brot",
            "500 g Mehl",
            "Das Mehl mit Wasser und Salz zu einem glatten Teig kneten.",
            "Kurz",
            "Den Teig abgedeckt eine Stunde an einem warmen Ort gehen lassen.",
        ))
        structure = DocumentStructure(ingredients_start=1, ingredients_end=2)

        steps = accumulator.extract_steps(document, structure)

        assert [step.instruction[:7] for step in steps] == ["Das Meh", "Den Tei"]

    def test_nothing_found(self, accumulator):
        document = RawDocument(("Brot", "500 g Mehl"))
        assert accumulator.extract_steps(document, DocumentStructure(ingredients_end=2)) == []
