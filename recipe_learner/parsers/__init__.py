"""Parsers package."""
from .base_parser import BaseRecipeParser
from .confidence import score_breakdown, score_recipe
from .heuristic_parser import HeuristicRecipeParser
from .ingredient_parser import IngredientParser
from .step_parser import StepAccumulator
from .structure import RawDocument, StructureDetector, tokenize

__all__ = [
    "BaseRecipeParser",
    "HeuristicRecipeParser",
    "IngredientParser",
    "RawDocument",
    "StepAccumulator",
    "StructureDetector",
    "score_breakdown",
    "score_recipe",
    "tokenize",
]
