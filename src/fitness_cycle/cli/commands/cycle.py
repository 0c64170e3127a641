"""Cycle commands: start, status, reset, history, schedule."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import DAYS_IN_CYCLE, SUPPORTED_FREQUENCIES
from ...core.models import Cycle, CycleState
from ...core.schedule import generate_schedule, normalize_frequency, now_millis
from .. import views
from ..app import (
    DEFAULT_USER,
    DataDirOption,
    JsonOption,
    UserOption,
    app,
    check_user,
    get_engine,
    parse_date,
)

FrequencyOption = Annotated[
    Optional[str],
    typer.Option(
        "--frequency",
        "-f",
        help=f"Weekly frequency: {' | '.join(SUPPORTED_FREQUENCIES)} (default: from config)",
    ),
]


def _warn_unknown_frequency(frequency: str | None) -> None:
    if frequency is not None and normalize_frequency(frequency) not in SUPPORTED_FREQUENCIES:
        views.print_warning(f"Unknown frequency '{frequency}', scheduling consecutive days")


def _cycle_to_json(cycle: Cycle | None, state: CycleState) -> dict:
    if cycle is None:
        return {"state": state.value, "cycle": None}
    return {
        "state": state.value,
        "cycle": {
            "cycle_number": cycle.cycle_number,
            "start_date": views.fmt_date(cycle.start_date),
            "completed_date": (
                views.fmt_date(cycle.completed_date) if cycle.completed_date is not None else None
            ),
            "days_completed": cycle.days_completed,
            "total_days": cycle.total_days,
            "completed_microcycles": cycle.completed_microcycles,
            "progress": round(cycle.progress, 4),
        },
    }


@app.command()
def start(
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="First day of the cycle (YYYY-MM-DD, default: today)"),
    ] = None,
    frequency: FrequencyOption = None,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Start a new 30-day cycle and build its workout plan.
    """
    check_user(user)
    engine = get_engine(data_dir)
    if not json_out:
        _warn_unknown_frequency(frequency)

    outcome = engine.start_cycle(user, start_date=parse_date(date), frequency=frequency)
    if not outcome.ok:
        views.print_error(outcome.error or "Could not start a cycle")
        raise typer.Exit(1)

    if json_out:
        data = _cycle_to_json(outcome.cycle, CycleState.ACTIVE)
        data["pool_id"] = outcome.plan.pool_id if outcome.plan else None
        data["frequency"] = outcome.plan.frequency if outcome.plan else None
        print(json.dumps(data, indent=2))
        return

    views.print_success(
        f"Started cycle {outcome.cycle.cycle_number} on {views.fmt_date(outcome.cycle.start_date)}"
    )
    if outcome.plan is not None and outcome.plan.days:
        first = outcome.plan.days[0]
        views.print_info(
            f"Day 0 ({views.fmt_weekday_date(first.scheduled_date)}): {first.slot} - "
            + ", ".join(first.exercise_names())
        )
    views.print_info("Run 'plan' to see the whole cycle.")


@app.command()
def status(
    advance: Annotated[
        bool,
        typer.Option("--advance", "-a", help="Start the next cycle if the last one finished"),
    ] = False,
    frequency: FrequencyOption = None,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the current cycle and overall progress.
    """
    check_user(user)
    engine = get_engine(data_dir)

    if advance:
        started = engine.start_next_cycle_if_due(user, frequency=frequency, now=now_millis())
        if started is not None and started.ok and not json_out:
            views.print_success(
                f"Started cycle {started.cycle.cycle_number} on "
                f"{views.fmt_date(started.cycle.start_date)}"
            )

    cycle = engine.current_cycle(user)
    state = engine.state(user)

    if json_out:
        data = _cycle_to_json(cycle, state)
        data["completed_day_count"] = (
            engine.completed_day_count(user) if state is CycleState.ACTIVE else 0
        )
        print(json.dumps(data, indent=2))
        return

    views.console.print()
    views.console.print(views.format_cycle_status(cycle, state, engine.history_summary(user)))
    views.console.print()


@app.command()
def reset(
    force: Annotated[
        bool,
        typer.Option("--force", help="Skip the confirmation prompt"),
    ] = False,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
) -> None:
    """
    Abandon the active cycle. Its progress is discarded, not archived.
    """
    check_user(user)
    engine = get_engine(data_dir)

    cycle = engine.current_cycle(user)
    if engine.state(user) is not CycleState.ACTIVE:
        views.print_error("No active cycle to reset")
        raise typer.Exit(1)

    if not force and not views.confirm_action(
        f"Discard cycle {cycle.cycle_number} ({cycle.days_completed} days completed)?"
    ):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    outcome = engine.reset_cycle(user)
    if not outcome.ok:
        views.print_error(outcome.error or "Could not reset the cycle")
        raise typer.Exit(1)
    views.print_success(f"Cycle {outcome.cycle.cycle_number} discarded.")


@app.command()
def history(
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show completed cycles.
    """
    check_user(user)
    engine = get_engine(data_dir)
    entries = engine.cycle_history(user)
    summary = engine.history_summary(user)

    if json_out:
        print(json.dumps({
            "cycles": [
                {
                    "cycle_number": e.cycle_number,
                    "start_date": views.fmt_date(e.start_date),
                    "completed_date": views.fmt_date(e.completed_date),
                    "days_completed": e.days_completed,
                    "completion_percentage": round(e.completion_percentage, 4),
                }
                for e in entries
            ],
            "total_completed_cycles": summary.total_completed_cycles,
            "total_training_days": summary.total_training_days,
            "average_completion_percentage": round(summary.average_completion_percentage, 4),
        }, indent=2))
        return

    views.print_cycle_history(entries, summary)


@app.command()
def schedule(
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="First workout day (YYYY-MM-DD, default: today)"),
    ] = None,
    frequency: FrequencyOption = None,
    days: Annotated[
        int,
        typer.Option("--days", "-n", help="Number of workout dates", min=0),
    ] = DAYS_IN_CYCLE,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Preview workout dates for a weekly frequency.
    """
    engine = get_engine(data_dir)
    freq = frequency or engine.cycles.default_frequency
    if not json_out:
        _warn_unknown_frequency(frequency)
    start_ms = parse_date(date)
    dates = generate_schedule(start_ms if start_ms is not None else now_millis(), freq, days)

    if json_out:
        print(json.dumps({
            "frequency": freq,
            "dates": [views.fmt_date(d) for d in dates],
        }, indent=2))
        return

    views.print_schedule(dates, freq)
