"""Exceptions raised by the Recipe Learner engine."""
from __future__ import annotations


class RecipeLearnerError(Exception):
    """Base class for all engine errors."""


class InputError(RecipeLearnerError, ValueError):
    """Raised when the raw text cannot be used for extraction at all."""


class StoreError(RecipeLearnerError):
    """Raised when the example store cannot be read or written."""


class ConfigError(RecipeLearnerError):
    """Raised when the engine configuration is invalid."""
