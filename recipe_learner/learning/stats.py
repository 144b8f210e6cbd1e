"""Learning phase and autonomy readiness calculations."""
from __future__ import annotations

from ..const import (
    MILESTONE_BASIC,
    MILESTONE_EXCELLENT,
    MILESTONE_GOOD,
    PHASE_AUTONOMOUS_AT,
    PHASE_HYBRID_AT,
)
from ..models.training import AutonomyReadiness, LearningPhase


def phase_for(total_examples: int) -> LearningPhase:
    """Return the learning phase for a number of recorded examples."""
    if total_examples >= PHASE_AUTONOMOUS_AT:
        return LearningPhase.AUTONOMOUS
    if total_examples >= PHASE_HYBRID_AT:
        return LearningPhase.HYBRID
    return LearningPhase.TRAINING


def _progress(count: int, milestone: int) -> float:
    return min(100.0, count / milestone * 100)


def autonomy_readiness(count: int) -> AutonomyReadiness:
    """Weighted progress toward the basic, good and excellent milestones.

    The overall percentage weights the three milestones 20/30/50, so a corpus
    only reaches 100% once the excellent milestone is met.

    Args:
        count: Number of trusted training examples

    Returns:
        The readiness summary
    """
    count = max(0, count)
    to_basic = _progress(count, MILESTONE_BASIC)
    to_good = _progress(count, MILESTONE_GOOD)
    to_excellent = _progress(count, MILESTONE_EXCELLENT)

    if count >= MILESTONE_EXCELLENT:
        level = "excellent"
    elif count >= MILESTONE_GOOD:
        level = "good"
    elif count >= MILESTONE_BASIC:
        level = "basic"
    else:
        level = "training"

    return AutonomyReadiness(
        count=count,
        percentage=round(to_basic * 0.2 + to_good * 0.3 + to_excellent * 0.5),
        level=level,
        to_basic=round(to_basic),
        to_good=round(to_good),
        to_excellent=round(to_excellent),
        milestones={
            "basic": MILESTONE_BASIC,
            "good": MILESTONE_GOOD,
            "excellent": MILESTONE_EXCELLENT,
        },
    )
