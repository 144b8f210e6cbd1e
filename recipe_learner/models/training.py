"""
Training data models for the Recipe Learner engine.

These models describe what the example store persists: accepted extractions
(training examples), the aggregated pattern set learned from them, and the
running learning statistics.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..const import (
    DEFAULT_INGREDIENT_POSITION,
    DEFAULT_STEP_POSITION,
    PATTERN_SET_VERSION,
)
from .recipe import FileKind, Recipe, RecipeSource


class LearningPhase(str, Enum):
    """How far the engine can rely on its heuristics alone."""

    TRAINING = "training"
    HYBRID = "hybrid"
    AUTONOMOUS = "autonomous"


class TrainingExample(BaseModel):
    """An accepted extraction, stored once and never modified."""

    model_config = ConfigDict(frozen=True)

    id: int
    raw_text: str
    parsed_result: Recipe
    source: RecipeSource
    confidence_score: float = Field(ge=0, le=100)
    created_at: datetime
    file_name: str | None = None
    file_size_bytes: int | None = None
    file_kind: FileKind = FileKind.PDF


class KeywordStat(BaseModel):
    """How often a section keyword was seen in learned documents."""

    keyword: str
    frequency: int = Field(ge=0)
    confidence: float = Field(ge=0)


class UnitStat(BaseModel):
    """How often a unit was used by learned ingredients."""

    unit: str
    count: int = Field(ge=0)


class SectionKeywords(BaseModel):
    ingredients: list[KeywordStat] = Field(default_factory=list)
    steps: list[KeywordStat] = Field(default_factory=list)


class StructuralInfo(BaseModel):
    """Average positions are fractions of the document's line count."""

    avg_ingredient_relative_position: float = DEFAULT_INGREDIENT_POSITION
    avg_step_relative_position: float = DEFAULT_STEP_POSITION
    avg_ingredient_count: float = 0.0
    avg_step_count: float = 0.0


class LineFormats(BaseModel):
    """Percentage statistics over sampled ingredient and step source lines."""

    ingredients: dict[str, float] = Field(default_factory=dict)
    steps: dict[str, float] = Field(default_factory=dict)


class LearnedPatternSet(BaseModel):
    """Versioned statistics mined from accepted high-confidence examples."""

    version: str = PATTERN_SET_VERSION
    learned_from_count: int = Field(default=0, ge=0)
    section_keywords: SectionKeywords = Field(default_factory=SectionKeywords)
    structural_info: StructuralInfo = Field(default_factory=StructuralInfo)
    line_formats: LineFormats = Field(default_factory=LineFormats)
    common_units: list[UnitStat] = Field(default_factory=list)

    def ingredient_keywords(self) -> list[str]:
        return [stat.keyword for stat in self.section_keywords.ingredients]

    def step_keywords(self) -> list[str]:
        return [stat.keyword for stat in self.section_keywords.steps]

    def unit_names(self) -> list[str]:
        return [stat.unit for stat in self.common_units]

    def to_json(self) -> str:
        """Serialize with a stable key order."""
        return self.model_dump_json()


class LearningStats(BaseModel):
    """Aggregate counters over all training examples."""

    total_examples: int = 0
    externally_assisted_count: int = 0
    heuristic_only_count: int = 0
    average_confidence: float = 0.0
    phase: LearningPhase = LearningPhase.TRAINING
    last_pattern_update: datetime | None = None


class AutonomyReadiness(BaseModel):
    """Progress toward the example milestones for autonomous operation."""

    count: int
    percentage: int
    level: str
    to_basic: int
    to_good: int
    to_excellent: int
    milestones: dict[str, int]


class ExampleSummary(BaseModel):
    """Listing view of a training example without its raw text."""

    id: int
    file_name: str | None
    source: RecipeSource
    confidence_score: float
    created_at: datetime
    file_size_bytes: int | None
    file_kind: FileKind
    recipe_name: str

    @classmethod
    def from_example(cls, example: TrainingExample) -> ExampleSummary:
        return cls(
            id=example.id,
            file_name=example.file_name,
            source=example.source,
            confidence_score=example.confidence_score,
            created_at=example.created_at,
            file_size_bytes=example.file_size_bytes,
            file_kind=example.file_kind,
            recipe_name=example.parsed_result.name,
        )


def summarize(examples: list[TrainingExample]) -> list[dict[str, Any]]:
    """Convert examples to JSON-ready listing dictionaries."""
    return [ExampleSummary.from_example(e).model_dump(mode="json") for e in examples]


class BulkOutcome(str, Enum):
    """What happened to one document of a bulk training run."""

    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    ERROR = "error"


class BulkFileResult(BaseModel):
    """Outcome for a single document of a bulk training run."""

    file_name: str | None = Field(default=None, description="Name of the source document")
    outcome: BulkOutcome = Field(description="Whether the document became a training example")
    example_id: int | None = Field(default=None, description="Id of the recorded example")
    confidence: int | None = Field(default=None, description="Confidence stored with the example")
    message: str | None = Field(default=None, description="Why the document was skipped")


class BulkTrainingReport(BaseModel):
    """Per-document outcomes of a bulk training run."""

    results: list[BulkFileResult] = Field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.results)

    @property
    def processed(self) -> int:
        return sum(1 for result in self.results if result.outcome is BulkOutcome.PROCESSED)

    @property
    def failed(self) -> int:
        """Duplicates count as failed, as do extraction and store errors."""
        return self.total_files - self.processed

    def failures(self) -> list[BulkFileResult]:
        return [result for result in self.results if result.outcome is not BulkOutcome.PROCESSED]

    def summary(self) -> dict[str, Any]:
        """JSON-ready counts plus the failed documents with their reasons."""
        return {
            "total_files": self.total_files,
            "processed": self.processed,
            "failed": self.failed,
            "failures": [result.model_dump(mode="json") for result in self.failures()],
            "results": [result.model_dump(mode="json") for result in self.results],
        }
