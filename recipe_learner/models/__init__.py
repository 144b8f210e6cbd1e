"""Models package."""
from .recipe import (
    ExtractionResult,
    FileKind,
    FileMetadata,
    Ingredient,
    Recipe,
    RecipeSource,
    Step,
)
from .training import (
    AutonomyReadiness,
    BulkFileResult,
    BulkOutcome,
    BulkTrainingReport,
    ExampleSummary,
    KeywordStat,
    LearnedPatternSet,
    LearningPhase,
    LearningStats,
    LineFormats,
    SectionKeywords,
    StructuralInfo,
    TrainingExample,
    UnitStat,
)

__all__ = [
    "AutonomyReadiness",
    "BulkFileResult",
    "BulkOutcome",
    "BulkTrainingReport",
    "ExampleSummary",
    "ExtractionResult",
    "FileKind",
    "FileMetadata",
    "Ingredient",
    "KeywordStat",
    "LearnedPatternSet",
    "LearningPhase",
    "LearningStats",
    "LineFormats",
    "Recipe",
    "RecipeSource",
    "SectionKeywords",
    "Step",
    "StructuralInfo",
    "TrainingExample",
    "UnitStat",
]
