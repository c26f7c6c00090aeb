"""Progress, rubric clamping and session score aggregation.

Everything here is pure: the session score can be recomputed from the
stored feedback list alone.
"""
import math
from collections.abc import Iterable, Mapping

from carefully.schemas.oracle import RawRubric
from carefully.schemas.session import FeedbackRubricSchema

MIN_SCORE = 0
MAX_SCORE = 100

RUBRIC_AXES = ("empathy", "tone", "clarity", "decision_making")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round and clamp to 0..100."""
    return max(MIN_SCORE, min(MAX_SCORE, _round_half_up(value)))


def compute_progress(turn_count: int, turn_target: int) -> int:
    """Percentage of the session done: min(round(turns / target * 100), 100)."""
    if turn_target <= 0:
        raise ValueError("turn_target must be positive")
    return min(_round_half_up(turn_count / turn_target * 100), MAX_SCORE)


def turn_average(rubric: FeedbackRubricSchema | Mapping) -> float:
    """Mean of the four rubric axes for one turn."""
    if not isinstance(rubric, FeedbackRubricSchema):
        rubric = FeedbackRubricSchema.model_validate(rubric)
    return sum(getattr(rubric, axis) for axis in RUBRIC_AXES) / len(RUBRIC_AXES)


def _clean(items: list[str]) -> list[str]:
    return [s.strip() for s in items if s and s.strip()]


def build_rubric(raw: RawRubric) -> FeedbackRubricSchema:
    """Clamp oracle axis scores and attach the locally computed overall score."""
    axes = {axis: clamp_score(getattr(raw, axis)) for axis in RUBRIC_AXES}
    overall = sum(axes.values()) / len(RUBRIC_AXES)
    return FeedbackRubricSchema(
        **axes,
        overall_score=overall,
        summary=raw.summary.strip(),
        suggestions=_clean(raw.suggestions),
        strengths=_clean(raw.strengths),
        improvements=_clean(raw.improvements),
        next_steps=_clean(raw.next_steps),
    )


def compute_session_score(feedback: Iterable[FeedbackRubricSchema | Mapping]) -> int:
    """Mean of per-turn averages, rounded; 0 when no turn was scored."""
    averages = [turn_average(r) for r in feedback]
    if not averages:
        return MIN_SCORE
    return clamp_score(sum(averages) / len(averages))
