"""Learning package."""
from .stats import autonomy_readiness, phase_for
from .store import ExampleStore, PatternRepository

__all__ = ["ExampleStore", "PatternRepository", "autonomy_readiness", "phase_for"]
