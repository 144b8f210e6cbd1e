"""
Recipe Extraction Service.

This module orchestrates the extraction of recipes from document text: the
heuristic parser runs first, its result is scored, and only a low confidence
result is handed to the external fallback extractor. Every accepted result is
recorded as a training example for the pattern learner.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from ..config import EngineConfig, load_config
from ..const import SIMILAR_MIN_CONFIDENCE, SIMILARITY_KEYWORDS
from ..exceptions import ConfigError, InputError, StoreError
from ..learning.pattern_learner import LEARNABLE_SOURCES, PatternLearner
from ..learning.stats import autonomy_readiness
from ..learning.store import ExampleStore, PatternRepository
from ..models.recipe import (
    ExtractionResult,
    FileMetadata,
    Recipe,
    RecipeSource,
)
from ..models.training import (
    AutonomyReadiness,
    BulkFileResult,
    BulkOutcome,
    BulkTrainingReport,
    LearnedPatternSet,
    LearningStats,
    TrainingExample,
)
from ..parsers.ai_parser import AIRecipeParser
from ..parsers.base_parser import BaseRecipeParser
from ..parsers.confidence import score_breakdown, score_recipe
from ..parsers.external_adapter import recipe_from_external
from ..parsers.heuristic_parser import HeuristicRecipeParser
from ..parsers.ingredient_parser import IngredientParser
from ..parsers.step_parser import StepAccumulator
from ..parsers.structure import StructureDetector

_LOGGER = logging.getLogger(__name__)


class ExtractionService:
    """Runs extractions and the learning loop over one example store."""

    def __init__(
        self,
        store: ExampleStore,
        pattern_repository: PatternRepository,
        heuristic_parser: HeuristicRecipeParser,
        fallback: BaseRecipeParser | None = None,
        config: EngineConfig = EngineConfig(),
    ) -> None:
        self.store = store
        self.patterns = pattern_repository
        self.heuristic_parser = heuristic_parser
        self.fallback = fallback
        self.config = config

    def extract(
        self,
        raw_text: str,
        file_metadata: FileMetadata | None = None,
        *,
        force_autonomous: bool | None = None,
    ) -> ExtractionResult:
        """Extract a recipe from document text.

        The heuristic result is used unless it scores below the configured
        threshold and a fallback extractor is available and not disabled.
        Fallback failures and store failures never fail the extraction.

        Args:
            raw_text: Text of the recipe document
            file_metadata: Optional information about the source document
            force_autonomous: Disable the fallback for this call, None to use
                the configured default

        Returns:
            The accepted recipe with its confidence and source

        Raises:
            InputError: If raw_text is not a string or has no content
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise InputError("Recipe text is empty or unreadable")

        self.patterns.refresh()
        recipe = self.heuristic_parser.parse_recipe(raw_text)
        if recipe is None:
            raise InputError("Recipe text is empty or unreadable")

        confidence = score_recipe(recipe)
        _LOGGER.info("Heuristic confidence for '%s': %d%%", recipe.name, confidence)
        _LOGGER.debug("Score breakdown: %s", score_breakdown(recipe))

        source = RecipeSource.HEURISTIC
        used_fallback = False
        autonomous = self.config.force_autonomous if force_autonomous is None else force_autonomous

        if confidence < self.config.confidence_threshold:
            if autonomous:
                _LOGGER.info(
                    "Confidence %d%% below threshold %d%%, fallback disabled",
                    confidence, self.config.confidence_threshold)
            elif self.fallback is None:
                _LOGGER.info(
                    "Confidence %d%% below threshold %d%%, no fallback configured",
                    confidence, self.config.confidence_threshold)
            else:
                accepted = self._run_fallback(raw_text)
                if accepted is not None:
                    recipe, source, confidence = accepted
                    used_fallback = True

        example_id = self._record(raw_text, recipe, source, confidence, file_metadata)
        return ExtractionResult(
            recipe=recipe,
            confidence=confidence,
            used_fallback=used_fallback,
            source=source,
            example_id=example_id,
        )

    def _call_fallback(self, raw_text: str) -> tuple[Recipe, RecipeSource, int] | None:
        """Run the fallback extractor and normalize its result, errors propagate."""
        fallback = self.fallback
        result = fallback.parse_recipe(raw_text)
        if result is None:
            return None
        recipe = recipe_from_external(result)

        source = RecipeSource(fallback.source) if fallback.source else RecipeSource.HYBRID
        confidence = fallback.reported_confidence
        if confidence is None:
            confidence = self.config.fallback_confidence
        return recipe, source, max(0, min(100, int(confidence)))

    def _run_fallback(self, raw_text: str) -> tuple[Recipe, RecipeSource, int] | None:
        """Call the fallback extractor, None when it is unavailable."""
        _LOGGER.info("Using fallback extractor %s", type(self.fallback).__name__)
        try:
            accepted = self._call_fallback(raw_text)
        except (Exception, asyncio.CancelledError) as err:
            _LOGGER.warning(
                "Fallback extractor failed, keeping heuristic result: %s", err, exc_info=True)
            return None
        if accepted is None:
            _LOGGER.warning("Fallback extractor returned no recipe, keeping heuristic result")
            return None

        recipe, source, _ = accepted
        _LOGGER.info(
            "Fallback extracted '%s' with %d ingredients and %d steps (%s)",
            recipe.name, len(recipe.ingredients), len(recipe.steps), source.value)
        return accepted

    def _record(self, raw_text: str, recipe: Recipe, source: RecipeSource,
                confidence: int, file_metadata: FileMetadata | None) -> int | None:
        try:
            example = self.store.add_example(raw_text, recipe, source, confidence, file_metadata)
        except StoreError as err:
            _LOGGER.warning("Could not record training example: %s", err)
            return None
        return example.id

    def train_bulk(
        self, documents: Iterable[tuple[str, FileMetadata | None]]
    ) -> BulkTrainingReport:
        """Record fallback extractions of many documents as training examples.

        Every document goes straight to the fallback extractor, the heuristic
        parser is not consulted. Documents whose file name was already
        recorded are skipped as duplicates, and a failing document never
        stops the run.

        Args:
            documents: Pairs of document text and file metadata

        Returns:
            One outcome per document, in input order

        Raises:
            ConfigError: If no fallback extractor is configured
        """
        if self.fallback is None:
            raise ConfigError("Bulk training needs a configured fallback extractor")

        report = BulkTrainingReport()
        for raw_text, file_metadata in documents:
            result = self._train_document(raw_text, file_metadata)
            report.results.append(result)
            if result.outcome is BulkOutcome.PROCESSED:
                _LOGGER.info("Trained on %s with %d%% confidence",
                             result.file_name or "unnamed document", result.confidence)
            else:
                _LOGGER.warning("Skipped %s (%s): %s", result.file_name or "unnamed document",
                                result.outcome.value, result.message)

        _LOGGER.info("Bulk training finished: %d processed, %d failed",
                     report.processed, report.failed)
        return report

    def _train_document(self, raw_text: str, file_metadata: FileMetadata | None) -> BulkFileResult:
        file_name = file_metadata.file_name if file_metadata else None
        try:
            if file_name and self.store.has_example_for_file(file_name):
                return BulkFileResult(
                    file_name=file_name,
                    outcome=BulkOutcome.DUPLICATE,
                    message="File was already used for training",
                )
            if not isinstance(raw_text, str) or not raw_text.strip():
                return BulkFileResult(
                    file_name=file_name, outcome=BulkOutcome.ERROR, message="Document has no text")

            accepted = self._call_fallback(raw_text)
            if accepted is None:
                return BulkFileResult(
                    file_name=file_name,
                    outcome=BulkOutcome.ERROR,
                    message="Fallback extractor returned no recipe",
                )
            recipe, source, confidence = accepted
            example = self.store.add_example(raw_text, recipe, source, confidence, file_metadata)
        except (Exception, asyncio.CancelledError) as err:
            _LOGGER.debug("Bulk training of %s failed", file_name, exc_info=True)
            return BulkFileResult(
                file_name=file_name,
                outcome=BulkOutcome.ERROR,
                message=str(err) or type(err).__name__,
            )

        return BulkFileResult(
            file_name=file_name,
            outcome=BulkOutcome.PROCESSED,
            example_id=example.id,
            confidence=confidence,
        )

    def learn_patterns(self) -> LearnedPatternSet:
        """Regenerate the pattern set from trusted examples.

        Raises:
            StoreError: If the store cannot be read or written
        """
        learner = PatternLearner(self.store, min_confidence=self.config.learn_min_confidence)
        pattern_set = learner.learn()
        self.patterns.refresh()
        return pattern_set

    def get_learning_stats(self) -> LearningStats:
        return self.store.get_learning_stats()

    def get_current_pattern_set(self) -> LearnedPatternSet | None:
        return self.patterns.refresh()

    def get_autonomy_readiness(self) -> AutonomyReadiness:
        """Progress toward autonomy, counted over trusted examples."""
        count = self.store.count_examples(min_confidence=self.config.learn_min_confidence)
        return autonomy_readiness(count)

    def list_examples(self, limit: int = 50, offset: int = 0) -> list[TrainingExample]:
        return self.store.list_examples(limit=limit, offset=offset)

    def get_example(self, example_id: int) -> TrainingExample | None:
        return self.store.get_example(example_id)

    def has_example_for_file(self, file_name: str) -> bool:
        return self.store.has_example_for_file(file_name)

    def find_similar_examples(self, text: str, limit: int = 10) -> list[TrainingExample]:
        """Return trusted examples sharing section vocabulary with text.

        Args:
            text: Document text to compare
            limit: Maximum number of examples

        Returns:
            Matching examples, highest confidence first
        """
        lower = text.lower() if isinstance(text, str) else ""
        keywords = [keyword for keyword in SIMILARITY_KEYWORDS if keyword in lower]
        if not keywords:
            return []
        return self.store.find_by_keywords(
            keywords, LEARNABLE_SOURCES, SIMILAR_MIN_CONFIDENCE, limit=limit)


def create_service(config: EngineConfig | None = None) -> ExtractionService:
    """Assemble the engine around one store and pattern repository.

    Args:
        config: Engine settings, loaded from the environment when omitted

    Returns:
        The ready extraction service

    Raises:
        ConfigError: If the configuration is invalid
        StoreError: If the example store cannot be opened
    """
    config = config or load_config()
    store = ExampleStore(config.database_path)
    patterns = PatternRepository(store)
    patterns.refresh()

    detector = StructureDetector(patterns)
    ingredient_parser = IngredientParser(patterns)
    heuristic_parser = HeuristicRecipeParser(
        detector, ingredient_parser, StepAccumulator(detector, ingredient_parser))

    fallback = None
    if config.fallback_configured:
        fallback = AIRecipeParser(api_key=config.api_key, model=config.model)
    else:
        _LOGGER.info("No API key configured, running without fallback extractor")

    return ExtractionService(store, patterns, heuristic_parser, fallback, config)
