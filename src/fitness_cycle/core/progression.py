"""
Adaptive weight progression.

A planned exercise's recommended weight follows the user's logged sets:
when the last ADAPTIVE_HISTORY_SETS sets of the exercise averaged at least
ADAPTIVE_REP_MARGIN reps above its rep target, the recommendation becomes
their average weight plus ADAPTIVE_WEIGHT_STEP_KG, rounded to a weight
that exists on a dumbbell rack or a barbell.
"""

import logging
import math
import re
from collections.abc import Iterable, Sequence

from .config import (
    ADAPTIVE_HISTORY_SETS,
    ADAPTIVE_REP_MARGIN,
    ADAPTIVE_WEIGHT_STEP_KG,
    HEAVY_WEIGHT_STEP_KG,
    STANDARD_WEIGHTS_KG,
)
from .models import ExerciseStats, WeightChange, WeightProgression

logger = logging.getLogger(__name__)


def round_to_standard_weight(weight: float) -> float:
    """
    Round to the nearest standard weight; the lighter one wins a tie.

    Above the heaviest standard weight, rounds to HEAVY_WEIGHT_STEP_KG.
    """
    if weight > STANDARD_WEIGHTS_KG[-1]:
        lower = math.floor(weight / HEAVY_WEIGHT_STEP_KG) * HEAVY_WEIGHT_STEP_KG
        upper = lower + HEAVY_WEIGHT_STEP_KG
        return lower if weight - lower <= upper - weight else upper
    return min(STANDARD_WEIGHTS_KG, key=lambda w: (abs(w - weight), w))


def parse_target_reps(reps: str) -> float | None:
    """
    Parse a rep prescription into a single target.

    "10" -> 10, "8-12" -> 10 (midpoint), "12,10,8" -> 10 (average).
    Returns None if the prescription has no usable numbers.
    """
    numbers = [int(n) for n in re.findall(r"\d+", reps or "")]
    if not numbers or ("-" in reps and len(numbers) != 2):
        return None
    return sum(numbers) / len(numbers)


def recent_sets(
    stats: Iterable[ExerciseStats],
    exercise_name: str,
    count: int = ADAPTIVE_HISTORY_SETS,
) -> list[ExerciseStats]:
    """The last `count` logged sets of an exercise, oldest first."""
    rows = sorted(
        (s for s in stats if s.exercise_name == exercise_name),
        key=lambda s: (s.date, s.set_number),
    )
    return rows[-count:] if count > 0 else []


def adaptive_weight(history: Sequence[ExerciseStats], target_reps: float) -> float | None:
    """
    Weight earned by the given sets, or None if they do not beat the target.

    Args:
        history: Recent sets of one exercise; fewer than
            ADAPTIVE_HISTORY_SETS give no recommendation
        target_reps: Reps the plan prescribes

    Returns:
        New standard weight (kg) or None
    """
    if len(history) < ADAPTIVE_HISTORY_SETS:
        return None
    window = history[-ADAPTIVE_HISTORY_SETS:]
    avg_reps = sum(s.reps for s in window) / len(window)
    if avg_reps < target_reps + ADAPTIVE_REP_MARGIN:
        return None
    avg_weight = sum(s.weight for s in window) / len(window)
    return round_to_standard_weight(avg_weight + ADAPTIVE_WEIGHT_STEP_KG)


def weight_progression(
    exercise_name: str,
    current_weight: float | None,
    stats: Iterable[ExerciseStats],
    reps: str,
) -> WeightProgression:
    """
    Review one exercise's recommended weight against its logged sets.

    new_weight is always the weight to prescribe next: the adaptive weight
    when the sets earned one, otherwise current_weight. Exercises without
    a load (bodyweight, cardio) are left alone.
    """
    def result(change: WeightChange, reason: str, new: float | None = current_weight):
        return WeightProgression(exercise_name, current_weight, new, change, reason)

    if current_weight is None:
        return result(WeightChange.UNCHANGED, "no external load")

    history = recent_sets(stats, exercise_name)
    if len(history) < ADAPTIVE_HISTORY_SETS:
        return result(
            WeightChange.NO_HISTORY,
            f"needs {ADAPTIVE_HISTORY_SETS} logged sets, found {len(history)}",
        )

    target = parse_target_reps(reps)
    if target is None:
        logger.debug("%s: unusable rep target %r", exercise_name, reps)
        return result(WeightChange.UNCHANGED, f"no rep target in {reps!r}")

    new = adaptive_weight(history, target)
    if new is None:
        return result(
            WeightChange.UNCHANGED,
            f"recent sets below {target + ADAPTIVE_REP_MARGIN:g} reps",
        )
    if new > current_weight:
        return result(WeightChange.INCREASED, f"beat {target:g} reps by {ADAPTIVE_REP_MARGIN}+", new)
    if new < current_weight:
        return result(WeightChange.DECREASED, "logged weights are below the plan", new)
    return result(WeightChange.UNCHANGED, "already at the earned weight", new)
