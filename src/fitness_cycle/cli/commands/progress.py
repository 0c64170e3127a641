"""Progress commands: plan, mark, unmark, adapt, migrate."""

import json
from typing import Annotated, Optional

import typer

from ...core.engine.training_engine import TrainingEngine
from ...core.models import CycleState
from .. import views
from ..app import DEFAULT_USER, DataDirOption, JsonOption, UserOption, app, check_user, get_engine

DayArgument = Annotated[int, typer.Argument(help="0-based plan day", min=0)]
ExerciseArgument = Annotated[str, typer.Argument(help="Exercise name as shown by 'plan'")]


@app.command()
def plan(
    day: Annotated[
        Optional[int],
        typer.Option("--day", "-d", help="Show a single plan day", min=0),
    ] = None,
    pending: Annotated[
        bool,
        typer.Option("--pending", help="Only show days with nothing marked yet"),
    ] = False,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the workout plan of the active cycle with completion marks.
    """
    check_user(user)
    engine = get_engine(data_dir)

    if engine.state(user) is not CycleState.ACTIVE:
        views.print_error("No active cycle. Run 'start' first.")
        raise typer.Exit(1)

    outcome = engine.initialize(user)
    workout_plan = outcome.plan
    completed = engine.completed_set(user)
    status_split = engine.day_status(user)

    days = workout_plan.days
    if day is not None:
        selected = workout_plan.day(day)
        if selected is None:
            views.print_error(f"Day {day} is outside the plan (0-{len(workout_plan.days) - 1})")
            raise typer.Exit(1)
        days = [selected]
    elif pending:
        touched = status_split.fully_completed | status_split.partially_completed
        days = [d for d in days if d.day_index not in touched]

    if json_out:
        print(json.dumps({
            "cycle_number": workout_plan.cycle_number,
            "frequency": workout_plan.frequency,
            "pool_id": workout_plan.pool_id,
            "completed_days": len(status_split.fully_completed | status_split.partially_completed),
            "days": [
                {
                    "day_index": d.day_index,
                    "date": views.fmt_date(d.scheduled_date),
                    "slot": d.slot,
                    "exercises": [
                        {
                            "name": e.name,
                            "sets": e.sets,
                            "reps": e.reps,
                            "recommended_weight": e.recommended_weight,
                            "done": (d.day_index, e.name) in completed,
                        }
                        for e in d.exercises
                    ],
                }
                for d in days
            ],
        }, indent=2))
        return

    views.print_plan(workout_plan, completed, status_split, days)


def _set_marker(
    engine: TrainingEngine,
    user: str,
    day: int,
    exercise: str,
    completed: bool,
    json_out: bool,
) -> None:
    update = engine.mark_exercise(user, day, exercise, completed=completed)
    if not update.ok:
        views.print_error(update.error or "Could not update the completion marker")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "day_index": day,
            "exercise": exercise,
            "done": completed,
            "completed_days": update.completed_days,
            "days_completed": update.cycle.days_completed if update.cycle else None,
            "cycle_completed": update.cycle_completed,
        }, indent=2))
        return

    verb = "Marked" if completed else "Unmarked"
    views.print_success(f"{verb} {exercise} on day {day}.")
    if update.cycle is not None:
        views.print_info(
            f"Cycle {update.cycle.cycle_number}: "
            f"{update.cycle.days_completed}/{update.cycle.total_days} days completed"
        )
    if update.cycle_completed:
        views.print_success(f"Cycle {update.cycle.cycle_number} complete! Well done.")
        views.print_info("From tomorrow, 'status --advance' schedules the next cycle for Monday.")


@app.command()
def mark(
    day: DayArgument,
    exercise: ExerciseArgument,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Mark an exercise of a plan day as done.
    """
    check_user(user)
    _set_marker(get_engine(data_dir), user, day, exercise, True, json_out)


@app.command()
def unmark(
    day: DayArgument,
    exercise: ExerciseArgument,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Remove the done mark of an exercise. Cycle progress is not lowered.
    """
    check_user(user)
    _set_marker(get_engine(data_dir), user, day, exercise, False, json_out)


@app.command()
def migrate(
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Convert completion marks stored in the old format.
    """
    check_user(user)
    report = get_engine(data_dir).migrate_completion(user)

    if json_out:
        print(json.dumps({
            "performed": report.performed,
            "migrated": report.migrated,
            "dropped": report.dropped,
            "deferred": report.deferred,
        }, indent=2))
        return

    if report.deferred:
        views.print_warning("No workout plan yet; start a cycle before migrating old marks.")
    elif not report.performed:
        views.print_info("Completion marks are already up to date.")
    else:
        views.print_success(f"Migrated {report.migrated} completion marks.")
        if report.dropped:
            views.print_warning(f"Dropped {report.dropped} marks that match no plan day.")


@app.command()
def adapt(
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show the new weights without changing the plan"),
    ] = False,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Adjust planned weights to the most recently logged sets.

    An exercise whose last two sets beat its rep target by two or more reps
    moves up to the next standard weight.
    """
    check_user(user)
    results = get_engine(data_dir).apply_weight_progression(user, dry_run=dry_run)
    if results is None:
        views.print_error("No active cycle. Run 'start' first.")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "applied": not dry_run,
            "exercises": [
                {
                    "exercise": r.exercise_name,
                    "old_weight": r.old_weight,
                    "new_weight": r.new_weight,
                    "change": r.change.value,
                    "reason": r.reason,
                }
                for r in results
            ],
        }, indent=2))
        return

    views.print_weight_progressions(results, applied=not dry_run)
    changed = [r for r in results if r.new_weight != r.old_weight]
    if not changed:
        views.print_info("No weight changes.")
    elif dry_run:
        views.print_info(f"{len(changed)} weights would change. Run without --dry-run to apply.")
    else:
        views.print_success(f"Updated {len(changed)} planned weights.")
