"""Tests for the extraction orchestrator."""
import pytest

from conftest import (
    ENGLISH_RECIPE,
    GERMAN_RECIPE,
    LOW_CONFIDENCE_TEXT,
    AnonymousFallback,
    EmptyFallback,
    FakeFallback,
    RaisingFallback,
    fallback_recipe,
)
from recipe_learner.config import EngineConfig
from recipe_learner.exceptions import ConfigError, InputError, StoreError
from recipe_learner.learning.store import ExampleStore
from recipe_learner.models.recipe import FileKind, FileMetadata, RecipeSource
from recipe_learner.models.training import BulkOutcome
from recipe_learner.parsers.ai_parser import AIRecipeParser
from recipe_learner.services.extraction_service import create_service


class TestInput:

    @pytest.mark.parametrize("text", ["", "   \n\t ", None, 42])
    def test_unusable_text_raises(self, build_service, store, text):
        service = build_service(FakeFallback())
        with pytest.raises(InputError):
            service.extract(text)
        assert store.count_examples() == 0

    def test_input_error_is_value_error(self, build_service):
        with pytest.raises(ValueError):
            build_service().extract("")

    def test_long_digit_runs_in_metadata(self, build_service, store):
        """Oversized numbers are not read as times or servings."""
        digits = "9" * 5000
        text = f"Linsensuppe\n{digits} Min.\nFür {digits} Personen\nZutaten\n200 g Linsen\n"

        result = build_service().extract(text)

        assert result.recipe.prep_time_minutes == 0
        assert result.recipe.cook_time_minutes == 0
        assert result.recipe.servings == 4
        assert store.count_examples() == 1


class TestHeuristicPath:

    def test_cold_start_extraction(self, build_service, store):
        """Extraction works before any pattern set was learned."""
        fallback = FakeFallback()
        service = build_service(fallback)
        assert service.get_current_pattern_set() is None

        result = service.extract(GERMAN_RECIPE)

        assert result.source is RecipeSource.HEURISTIC
        assert not result.used_fallback
        assert result.confidence >= 60
        assert fallback.calls == []
        assert result.recipe.name == "KÜRBISSUPPE MIT INGWER"
        assert result.recipe.servings == 4
        assert result.recipe.prep_time_minutes == 20
        assert result.recipe.cook_time_minutes == 30
        assert len(result.recipe.ingredients) == 6
        assert [step.step_number for step in result.recipe.steps] == [1, 2, 3, 4, 5]

    def test_result_is_recorded(self, build_service, store):
        metadata = FileMetadata(file_name="pasta.pdf", file_size_bytes=1024)
        result = build_service().extract(ENGLISH_RECIPE, metadata)

        example = store.get_example(result.example_id)
        assert example.raw_text == ENGLISH_RECIPE
        assert example.parsed_result == result.recipe
        assert example.source is RecipeSource.HEURISTIC
        assert example.confidence_score == result.confidence
        assert example.file_name == "pasta.pdf"
        assert example.file_kind is FileKind.PDF

    def test_low_confidence_without_fallback(self, build_service):
        result = build_service().extract(LOW_CONFIDENCE_TEXT)
        assert result.source is RecipeSource.HEURISTIC
        assert result.confidence < 60
        assert not result.used_fallback


class TestFallback:

    def test_fallback_result_is_authoritative(self, build_service, store):
        fallback = FakeFallback()
        result = build_service(fallback).extract(LOW_CONFIDENCE_TEXT)

        assert fallback.calls == [LOW_CONFIDENCE_TEXT]
        assert result.used_fallback
        assert result.recipe == fallback_recipe()
        assert result.source is RecipeSource.AI_GEMINI
        assert result.confidence == 95
        assert store.get_example(result.example_id).source is RecipeSource.AI_GEMINI

    def test_reported_confidence_is_used(self, build_service):
        result = build_service(FakeFallback(confidence=88)).extract(LOW_CONFIDENCE_TEXT)
        assert result.confidence == 88

    def test_configured_fallback_confidence(self, build_service):
        result = build_service(FakeFallback(), fallback_confidence=90).extract(LOW_CONFIDENCE_TEXT)
        assert result.confidence == 90

    def test_provider_without_identity_is_hybrid(self, build_service):
        result = build_service(AnonymousFallback()).extract(LOW_CONFIDENCE_TEXT)
        assert result.source is RecipeSource.HYBRID

    def test_external_payload_is_normalized(self, build_service):
        payload = {
            "title": "Grandma's Cake",
            "ingredients": [{"ingredient_name": "flour", "amount": "250", "unit": "g"}],
            "steps": [{"order": 1, "text": "Mix everything and bake it."}],
        }
        result = build_service(FakeFallback(recipe=payload)).extract(LOW_CONFIDENCE_TEXT)
        assert result.recipe.name == "Grandma's Cake"
        assert result.recipe.ingredients[0].amount == 250

    def test_threshold_is_configurable(self, build_service):
        fallback = FakeFallback()
        result = build_service(fallback, confidence_threshold=0).extract(LOW_CONFIDENCE_TEXT)
        assert fallback.calls == []
        assert result.source is RecipeSource.HEURISTIC

    def test_force_autonomous_per_call(self, build_service):
        fallback = FakeFallback()
        result = build_service(fallback).extract(LOW_CONFIDENCE_TEXT, force_autonomous=True)
        assert fallback.calls == []
        assert not result.used_fallback

    def test_force_autonomous_config(self, build_service):
        fallback = FakeFallback()
        service = build_service(fallback, force_autonomous=True)

        service.extract(LOW_CONFIDENCE_TEXT)
        assert fallback.calls == []

        service.extract(LOW_CONFIDENCE_TEXT, force_autonomous=False)
        assert len(fallback.calls) == 1


class TestDegradedFallback:
    """Fallback failures surface the heuristic result."""

    @pytest.mark.parametrize("error", [
        RuntimeError("quota exceeded"),
        TimeoutError("read timed out"),
        ValueError("bad response"),
    ])
    def test_fallback_error(self, build_service, error):
        fallback = RaisingFallback(error)
        result = build_service(fallback).extract(LOW_CONFIDENCE_TEXT)

        assert fallback.calls == [LOW_CONFIDENCE_TEXT]
        assert not result.used_fallback
        assert result.source is RecipeSource.HEURISTIC
        assert result.confidence < 60
        assert result.example_id is not None

    def test_fallback_cancelled(self, build_service, cancelled_fallback):
        result = build_service(cancelled_fallback).extract(LOW_CONFIDENCE_TEXT)
        assert not result.used_fallback
        assert result.source is RecipeSource.HEURISTIC

    def test_fallback_returns_nothing(self, build_service):
        result = build_service(EmptyFallback()).extract(LOW_CONFIDENCE_TEXT)
        assert not result.used_fallback

    def test_fallback_returns_garbage(self, build_service):
        result = build_service(FakeFallback(recipe=["not", "a", "recipe"])).extract(LOW_CONFIDENCE_TEXT)
        assert not result.used_fallback


class TestStoreFailure:

    def test_store_failure_still_returns_result(self, build_service, tmp_path, caplog):
        class FullDiskStore(ExampleStore):
            def add_example(self, *args, **kwargs):
                raise StoreError("database or disk is full")

        service = build_service(example_store=FullDiskStore(tmp_path / "full.db"))
        result = service.extract(GERMAN_RECIPE)

        assert result.example_id is None
        assert result.recipe.name == "KÜRBISSUPPE MIT INGWER"
        assert "Could not record training example" in caplog.text


class TestBulkTraining:
    """Whole batches of documents go straight to the fallback extractor."""

    def test_requires_fallback(self, build_service):
        with pytest.raises(ConfigError):
            build_service().train_bulk([(GERMAN_RECIPE, FileMetadata(file_name="suppe.pdf"))])

    def test_processed_and_duplicate_files(self, build_service, store):
        store.add_example("old", fallback_recipe(), RecipeSource.HEURISTIC, 50,
                          FileMetadata(file_name="pasta.pdf"))
        fallback = FakeFallback()
        service = build_service(fallback)

        report = service.train_bulk([
            (GERMAN_RECIPE, FileMetadata(file_name="suppe.pdf", file_size_bytes=512)),
            (ENGLISH_RECIPE, FileMetadata(file_name="pasta.pdf")),
            (GERMAN_RECIPE, FileMetadata(file_name="suppe.pdf")),
        ])

        assert [result.outcome for result in report.results] == [
            BulkOutcome.PROCESSED,
            BulkOutcome.DUPLICATE,
            BulkOutcome.DUPLICATE,
        ]
        assert (report.total_files, report.processed, report.failed) == (3, 1, 2)
        assert fallback.calls == [GERMAN_RECIPE]
        assert store.count_examples() == 2

        processed = report.results[0]
        assert processed.confidence == 95
        example = store.get_example(processed.example_id)
        assert example.source is RecipeSource.AI_GEMINI
        assert example.parsed_result == fallback_recipe()
        assert example.file_size_bytes == 512

    def test_failures_do_not_stop_the_run(self, build_service, store):
        report = build_service(RaisingFallback(RuntimeError("quota exceeded"))).train_bulk([
            (GERMAN_RECIPE, FileMetadata(file_name="a.pdf")),
            ("   ", FileMetadata(file_name="b.pdf")),
        ])

        assert [result.outcome for result in report.results] == [BulkOutcome.ERROR, BulkOutcome.ERROR]
        assert report.results[0].message == "quota exceeded"
        assert report.results[1].message == "Document has no text"
        assert report.failed == 2
        assert store.count_examples() == 0

        summary = report.summary()
        assert summary["processed"] == 0
        assert [failure["file_name"] for failure in summary["failures"]] == ["a.pdf", "b.pdf"]

    def test_empty_and_cancelled_fallback(self, build_service, cancelled_fallback):
        empty = build_service(EmptyFallback()).train_bulk([(GERMAN_RECIPE, None)])
        assert empty.results[0].outcome is BulkOutcome.ERROR
        assert empty.results[0].message == "Fallback extractor returned no recipe"
        assert empty.results[0].file_name is None

        cancelled = build_service(cancelled_fallback).train_bulk([(GERMAN_RECIPE, None)])
        assert cancelled.results[0].outcome is BulkOutcome.ERROR
        assert cancelled.results[0].message == "CancelledError"

    def test_store_failure_is_reported(self, build_service, tmp_path):
        class FullDiskStore(ExampleStore):
            def add_example(self, *args, **kwargs):
                raise StoreError("database or disk is full")

        service = build_service(FakeFallback(), example_store=FullDiskStore(tmp_path / "full.db"))
        report = service.train_bulk([(GERMAN_RECIPE, FileMetadata(file_name="suppe.pdf"))])

        assert report.results[0].outcome is BulkOutcome.ERROR
        assert report.results[0].message == "database or disk is full"


class TestLearningLoop:

    def test_learn_patterns_refreshes_snapshot(self, build_service):
        service = build_service(FakeFallback())
        service.extract(GERMAN_RECIPE)
        service.extract(LOW_CONFIDENCE_TEXT)

        learned = service.learn_patterns()

        assert learned.learned_from_count == 1
        assert service.patterns.current == learned
        assert service.get_current_pattern_set() == learned

        result = service.extract(ENGLISH_RECIPE)
        assert result.source is RecipeSource.HEURISTIC

    def test_learning_stats(self, build_service):
        service = build_service(FakeFallback())
        service.extract(GERMAN_RECIPE)
        service.extract(LOW_CONFIDENCE_TEXT)

        stats = service.get_learning_stats()
        assert stats.total_examples == 2
        assert stats.heuristic_only_count == 1
        assert stats.externally_assisted_count == 1

    def test_autonomy_readiness_counts_trusted_examples(self, build_service):
        service = build_service()
        service.extract(GERMAN_RECIPE)
        service.extract(LOW_CONFIDENCE_TEXT)

        readiness = service.get_autonomy_readiness()
        assert readiness.count == 1
        assert readiness.level == "training"

    def test_example_queries(self, build_service):
        service = build_service(FakeFallback())
        first = service.extract(LOW_CONFIDENCE_TEXT, FileMetadata(file_name="notes.pdf"))
        service.extract(GERMAN_RECIPE)

        assert service.has_example_for_file("notes.pdf")
        assert service.get_example(first.example_id).parsed_result == fallback_recipe()
        assert len(service.list_examples(limit=1)) == 1

    def test_find_similar_examples(self, build_service, store):
        service = build_service()
        store.add_example("Zutaten: 200 g Mehl", fallback_recipe(), RecipeSource.AI_GEMINI, 95)
        store.add_example("Ingredients: flour", fallback_recipe(), RecipeSource.AI_GEMINI, 95)

        similar = service.find_similar_examples("Zutaten\n500 g Mehl")

        assert [example.raw_text for example in similar] == ["Zutaten: 200 g Mehl"]
        assert service.find_similar_examples("nothing in common") == []


class TestCreateService:

    def test_without_api_key(self, tmp_path):
        service = create_service(EngineConfig(database_path=str(tmp_path / "db" / "training.db")))
        assert service.fallback is None
        assert (tmp_path / "db" / "training.db").exists()

    def test_with_api_key(self, tmp_path):
        service = create_service(EngineConfig(
            database_path=str(tmp_path / "training.db"), api_key="test-key", model="gpt-4o-mini"))
        assert isinstance(service.fallback, AIRecipeParser)
        assert service.fallback.source is RecipeSource.AI_OPENAI
