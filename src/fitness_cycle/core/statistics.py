"""
Read-side statistics over the exercise stats log.

Every function here is a pure projection of the logged sets and the static
exercise -> muscle-group catalog; nothing is cached or written back.
Malformed entries and exercises missing from the catalog are skipped, so
the projections return empty/zero aggregates instead of raising.
"""

import math
from collections.abc import Iterable, Mapping, Sequence

from .config import BALANCE_TOLERANCE, DAYS_NEVER, MS_PER_DAY, STALE_GROUP_DAYS
from .models import ExerciseProgress, ExerciseStats, Insight, MuscleGroupSummary
from .schedule import start_of_day


def _valid_entries(stats: Iterable[ExerciseStats]) -> list[ExerciseStats]:
    """Drop entries whose numbers cannot contribute to an aggregate."""
    valid = []
    for s in stats:
        if not isinstance(s.weight, (int, float)) or not isinstance(s.reps, int):
            continue
        if not math.isfinite(s.weight) or s.weight < 0 or s.reps < 0:
            continue
        valid.append(s)
    return valid


def total_volume(stats: Iterable[ExerciseStats]) -> float:
    """Sum of weight x reps over all logged sets."""
    return sum(s.weight * s.reps for s in _valid_entries(stats))


def filter_by_period(
    stats: Iterable[ExerciseStats],
    now: int,
    period_days: int,
) -> list[ExerciseStats]:
    """Keep entries logged within the last period_days (0 = keep everything)."""
    entries = _valid_entries(stats)
    if period_days <= 0:
        return entries
    cutoff = now - period_days * MS_PER_DAY
    return [s for s in entries if s.date >= cutoff]


def days_since(now: int, last_date: int | None) -> int:
    """Whole days elapsed since last_date, or DAYS_NEVER when there is none."""
    if last_date is None:
        return DAYS_NEVER
    return max((now - last_date) // MS_PER_DAY, 0)


def per_muscle_group_summary(
    stats: Iterable[ExerciseStats],
    muscle_lookup: Mapping[str, Sequence[str]],
    now: int,
    period_days: int = 0,
    groups: Iterable[str] | None = None,
) -> list[MuscleGroupSummary]:
    """
    Aggregate logged sets per muscle group.

    A set counts toward every muscle group its exercise trains.  Groups
    with no entries still get a summary (zero volume, DAYS_NEVER) so that
    untrained groups are visible to the insight rules.

    Args:
        stats: Exercise stats log
        muscle_lookup: {exercise name: muscle groups}
        now: Reference time (epoch ms)
        period_days: Only consider the last N days (0 = all time)
        groups: Groups to report; default is every group in muscle_lookup

    Returns:
        Summaries sorted by total volume, highest first
    """
    entries = filter_by_period(stats, now, period_days)

    by_group: dict[str, list[ExerciseStats]] = {}
    for s in entries:
        for group in muscle_lookup.get(s.exercise_name, ()):
            by_group.setdefault(group, []).append(s)

    if groups is None:
        all_groups: list[str] = []
        for names in muscle_lookup.values():
            for g in names:
                if g not in all_groups:
                    all_groups.append(g)
    else:
        all_groups = list(groups)
    for g in by_group:
        if g not in all_groups:
            all_groups.append(g)

    grand_total = sum(s.volume for rows in by_group.values() for s in rows)

    if period_days > 0:
        period = period_days
    elif entries:
        first = min(s.date for s in entries)
        period = max((now - first) // MS_PER_DAY, 1)
    else:
        period = 1
    weeks = period / 7

    summaries = []
    for group in all_groups:
        rows = by_group.get(group, [])
        volume = sum(s.volume for s in rows)
        names = tuple(dict.fromkeys(s.exercise_name for s in rows))
        workout_days = {start_of_day(s.date) for s in rows}
        summaries.append(
            MuscleGroupSummary(
                muscle_group=group,
                total_volume=volume,
                total_sets=len(rows),
                exercise_count=len(names),
                max_weight=max((s.weight for s in rows), default=0.0),
                percentage=(volume / grand_total * 100) if grand_total > 0 else 0.0,
                days_since_last_workout=days_since(
                    now, max((s.date for s in rows), default=None)
                ),
                average_weekly_frequency=len(workout_days) / weeks if weeks > 0 else 0.0,
                exercise_names=names,
            )
        )

    summaries.sort(key=lambda m: (-m.total_volume, m.muscle_group))
    return summaries


def generate_insights(
    summaries: Sequence[MuscleGroupSummary],
    stale_days: int = STALE_GROUP_DAYS,
    balance_tolerance: float = BALANCE_TOLERANCE,
    period_days: int = 0,
) -> list[Insight]:
    """
    Derive advisory insights from muscle-group summaries.

    Rules:
      most_trained     group with the highest total volume
      least_trained    trained group with the lowest volume (needs two trained groups)
      needs_attention  each group not trained for more than stale_days
      balanced         two or more groups, all within ±balance_tolerance of mean volume

    period_days is the window the summaries were built over (0 = all time);
    with a window, a group without entries is reported as untrained in
    that period rather than never trained.
    """
    insights: list[Insight] = []
    trained = [s for s in summaries if s.total_volume > 0]

    if trained:
        top = max(trained, key=lambda s: s.total_volume)
        insights.append(
            Insight(
                kind="most_trained",
                message=f"{top.muscle_group} is your most trained group "
                f"({top.total_volume:.0f} kg total volume)",
                muscle_group=top.muscle_group,
            )
        )
    if len(trained) >= 2:
        bottom = min(trained, key=lambda s: s.total_volume)
        insights.append(
            Insight(
                kind="least_trained",
                message=f"{bottom.muscle_group} gets the least volume "
                f"({bottom.total_volume:.0f} kg)",
                muscle_group=bottom.muscle_group,
            )
        )

    for s in summaries:
        if s.days_since_last_workout <= stale_days:
            continue
        if s.days_since_last_workout == DAYS_NEVER:
            if period_days > 0:
                message = f"{s.muscle_group} has not been trained in the selected period"
            else:
                message = f"{s.muscle_group} has not been trained yet"
        else:
            message = f"{s.muscle_group} has not been trained for {s.days_since_last_workout} days"
        insights.append(Insight(kind="needs_attention", message=message, muscle_group=s.muscle_group))

    if len(summaries) >= 2:
        mean = sum(s.total_volume for s in summaries) / len(summaries)
        if mean > 0 and all(
            abs(s.total_volume - mean) <= balance_tolerance * mean for s in summaries
        ):
            insights.append(
                Insight(
                    kind="balanced",
                    message="Training volume is balanced across muscle groups",
                )
            )

    return insights


def exercise_progress(
    stats: Iterable[ExerciseStats],
    exercise_name: str,
) -> ExerciseProgress | None:
    """
    Summarise how one exercise progressed over the log.

    Returns:
        ExerciseProgress, or None if the exercise was never logged
    """
    rows = sorted(
        (s for s in _valid_entries(stats) if s.exercise_name == exercise_name),
        key=lambda s: s.date,
    )
    if not rows:
        return None

    weights = [s.weight for s in rows]
    first, last = rows[0].weight, rows[-1].weight
    change = last - first
    return ExerciseProgress(
        exercise_name=exercise_name,
        start_date=rows[0].date,
        end_date=rows[-1].date,
        max_weight=max(weights),
        min_weight=min(weights),
        average_weight=sum(weights) / len(weights),
        total_volume=sum(s.volume for s in rows),
        total_sets=len(rows),
        total_reps=sum(s.reps for s in rows),
        weight_change=change,
        weight_change_percentage=(change / first * 100) if first > 0 else 0.0,
    )


def volume_by_day(stats: Iterable[ExerciseStats]) -> list[tuple[int, float]]:
    """Daily volume series: (local midnight ms, volume) sorted by date."""
    daily: dict[int, float] = {}
    for s in _valid_entries(stats):
        day = start_of_day(s.date)
        daily[day] = daily.get(day, 0.0) + s.volume
    return sorted(daily.items())
