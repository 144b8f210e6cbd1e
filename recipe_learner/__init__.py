"""
Recipe Learner.

Extracts structured recipes from unstructured document text with a
heuristic parser, falls back to an AI extractor for low confidence results
and learns document patterns from the accepted extractions.
"""
from .config import EngineConfig, load_config
from .exceptions import ConfigError, InputError, RecipeLearnerError, StoreError
from .services.extraction_service import ExtractionService, create_service

__all__ = [
    "ConfigError",
    "EngineConfig",
    "ExtractionService",
    "InputError",
    "RecipeLearnerError",
    "StoreError",
    "create_service",
    "load_config",
]
