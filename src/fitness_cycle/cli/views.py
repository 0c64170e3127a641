"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of cycles, plans, statistics and
body measurements.
"""

from rich.console import Console
from rich.table import Table

from ..core.config import DAYS_NEVER
from ..core.models import (
    BodyMeasurement,
    BodyParameter,
    BodyParameterTrend,
    CompletionKey,
    Cycle,
    CycleHistoryEntry,
    CycleHistorySummary,
    CycleState,
    DayCompletionStatus,
    ExerciseProgress,
    Insight,
    MuscleGroupSummary,
    WeightChange,
    WeightProgression,
    WorkoutDay,
    WorkoutPlan,
)
from ..core.schedule import from_millis

console = Console()
# Log records go to stderr so --json output stays parseable.
err_console = Console(stderr=True)

_INSIGHT_STYLES = {
    "most_trained": "green",
    "least_trained": "yellow",
    "needs_attention": "red",
    "balanced": "cyan",
}

_CHANGE_STYLES = {
    WeightChange.INCREASED: "green",
    WeightChange.DECREASED: "yellow",
    WeightChange.UNCHANGED: "white",
    WeightChange.NO_HISTORY: "dim",
}


def fmt_date(timestamp_ms: int | None) -> str:
    """Format epoch ms as YYYY-MM-DD ("-" for None)."""
    if timestamp_ms is None:
        return "-"
    return from_millis(timestamp_ms).strftime("%Y-%m-%d")


def fmt_weekday_date(timestamp_ms: int | None) -> str:
    if timestamp_ms is None:
        return "-"
    return from_millis(timestamp_ms).strftime("%a %Y-%m-%d")


def fmt_days_since(days: int) -> str:
    return "never" if days == DAYS_NEVER else f"{days}d"


def fmt_weight(weight: float | None) -> str:
    return "-" if weight is None else f"{weight:g}"


def fmt_body_value(parameter: BodyParameter, value: float) -> str:
    unit = parameter.unit
    if not unit:
        return f"{value:.1f}"
    return f"{value:g}{unit}" if unit == "%" else f"{value:g} {unit}"


def _progress_bar(fraction: float, width: int = 30) -> str:
    filled = int(round(fraction * width))
    return "[green]" + "█" * filled + "[/green]" + "░" * (width - filled)


def format_cycle_status(
    cycle: Cycle | None,
    state: CycleState,
    summary: CycleHistorySummary | None = None,
) -> str:
    """
    Format the current cycle as a text block.

    Args:
        cycle: Stored cycle record (None when there is none)
        state: Classified state of the record
        summary: Optional aggregate over archived cycles

    Returns:
        Formatted string with Rich markup
    """
    lines: list[str] = []
    if cycle is None or state is CycleState.NO_ACTIVE_CYCLE:
        lines.append("[bold]No active cycle.[/bold] Run 'start' to begin one.")
    else:
        label = "active" if state is CycleState.ACTIVE else "completed"
        lines.append(f"[bold]Cycle {cycle.cycle_number}[/bold] ({label})")
        lines.append(f"- Started:     {fmt_date(cycle.start_date)}")
        if cycle.completed_date is not None:
            lines.append(f"- Completed:   {fmt_date(cycle.completed_date)}")
        lines.append(
            f"- Days:        {cycle.days_completed}/{cycle.total_days}"
            f"  {_progress_bar(cycle.progress)} {cycle.progress:.0%}"
        )
        lines.append(f"- Microcycles: {cycle.completed_microcycles}")
        if state is CycleState.ACTIVE:
            lines.append(f"- Remaining:   {cycle.remaining_days} days")

    if summary is not None and summary.total_completed_cycles:
        lines.append("")
        lines.append(
            f"Completed cycles: {summary.total_completed_cycles}, "
            f"training days: {summary.total_training_days}, "
            f"average completion: {summary.average_completion_percentage:.0%}"
        )
    return "\n".join(lines)


def _fmt_exercise(day: WorkoutDay, index: int, completed: set[CompletionKey]) -> str:
    ex = day.exercises[index]
    done = CompletionKey(day.day_index, ex.name) in completed
    mark = "[green]✓[/green]" if done else "·"
    weight = f" @ {ex.recommended_weight:g}kg" if ex.recommended_weight else ""
    return f"{mark} {ex.name} {ex.sets}x{ex.reps}{weight}"


def format_plan_table(
    plan: WorkoutPlan,
    completed: set[CompletionKey],
    status: DayCompletionStatus,
    days: list[WorkoutDay] | None = None,
) -> Table:
    """
    Create a Rich table of plan days with their completion marks.

    Args:
        plan: Workout plan of the cycle
        completed: Completion markers
        status: Fully / partially completed day split
        days: Subset of days to show (default: all)

    Returns:
        Rich Table object
    """
    table = Table(title=f"Cycle {plan.cycle_number} plan ({plan.frequency}, {plan.pool_id})")

    table.add_column("Day", justify="right", style="dim", width=4)
    table.add_column("Date", style="cyan")
    table.add_column("Slot", style="magenta")
    table.add_column("Exercises")
    table.add_column("Status", justify="center")

    for day in days if days is not None else plan.days:
        if day.day_index in status.fully_completed:
            state = "[green]done[/green]"
        elif day.day_index in status.partially_completed:
            state = "[yellow]partial[/yellow]"
        else:
            state = ""
        table.add_row(
            str(day.day_index),
            fmt_weekday_date(day.scheduled_date),
            day.slot,
            "\n".join(_fmt_exercise(day, i, completed) for i in range(len(day.exercises))),
            state,
        )

    return table


def print_plan(
    plan: WorkoutPlan,
    completed: set[CompletionKey],
    status: DayCompletionStatus,
    days: list[WorkoutDay] | None = None,
) -> None:
    console.print(format_plan_table(plan, completed, status, days))


def print_cycle_history(
    entries: list[CycleHistoryEntry],
    summary: CycleHistorySummary,
) -> None:
    """
    Print archived cycles to console.

    Args:
        entries: Cycle history entries in append order
        summary: Aggregate over the entries
    """
    if not entries:
        console.print("[yellow]No completed cycles yet.[/yellow]")
        return

    table = Table(title="Cycle History")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Started", style="cyan")
    table.add_column("Completed", style="cyan")
    table.add_column("Days", justify="right")
    table.add_column("Completion", justify="right", style="bold")

    for entry in entries:
        table.add_row(
            str(entry.cycle_number),
            fmt_date(entry.start_date),
            fmt_date(entry.completed_date),
            str(entry.days_completed),
            f"{entry.completion_percentage:.0%}",
        )

    console.print(table)
    console.print(
        f"Total training days: {summary.total_training_days}  "
        f"Average completion: {summary.average_completion_percentage:.0%}"
    )


def print_schedule(dates: list[int], frequency: str) -> None:
    """Print generated workout dates."""
    table = Table(title=f"Schedule ({frequency})")
    table.add_column("Day", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    for i, ts in enumerate(dates):
        table.add_row(str(i), fmt_weekday_date(ts))
    console.print(table)


def format_muscle_group_table(summaries: list[MuscleGroupSummary], title: str) -> Table:
    """
    Create a Rich table of per-muscle-group aggregates.

    Returns:
        Rich Table object
    """
    table = Table(title=title)
    table.add_column("Muscle group", style="magenta")
    table.add_column("Volume(kg)", justify="right", style="bold")
    table.add_column("Share", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Exercises", justify="right")
    table.add_column("Max(kg)", justify="right")
    table.add_column("Last", justify="right")
    table.add_column("Per week", justify="right")

    for s in summaries:
        table.add_row(
            s.muscle_group,
            f"{s.total_volume:.0f}",
            f"{s.percentage:.1f}%",
            str(s.total_sets),
            str(s.exercise_count),
            f"{s.max_weight:g}" if s.total_sets else "-",
            fmt_days_since(s.days_since_last_workout),
            f"{s.average_weekly_frequency:.1f}",
        )
    return table


def print_muscle_groups(summaries: list[MuscleGroupSummary], title: str = "Muscle Groups") -> None:
    if not summaries:
        console.print("[yellow]No muscle groups to show.[/yellow]")
        return
    console.print(format_muscle_group_table(summaries, title))


def print_insights(insights: list[Insight]) -> None:
    """Print insights as a bulleted list."""
    if not insights:
        return
    console.print()
    console.print("[bold]Insights[/bold]")
    for insight in insights:
        style = _INSIGHT_STYLES.get(insight.kind, "white")
        console.print(f"  [{style}]•[/{style}] {insight.message}")


def print_exercise_progress(progress: ExerciseProgress) -> None:
    """Print one exercise's progress summary."""
    change_style = "green" if progress.is_improved else "yellow"
    lines = [
        f"[bold]{progress.exercise_name}[/bold]"
        f"  ({fmt_date(progress.start_date)} to {fmt_date(progress.end_date)})",
        f"- Weight:  min {progress.min_weight:g} / avg {progress.average_weight:.1f}"
        f" / max {progress.max_weight:g} kg",
        f"- Change:  [{change_style}]{progress.weight_change:+g} kg"
        f" ({progress.weight_change_percentage:+.1f}%)[/{change_style}]",
        f"- Volume:  {progress.total_volume:.0f} kg over {progress.total_sets} sets,"
        f" {progress.total_reps} reps",
    ]
    console.print("\n".join(lines))


def print_daily_volume(series: list[tuple[int, float]]) -> None:
    """Print the daily volume series."""
    if not series:
        console.print("[yellow]No sets logged yet.[/yellow]")
        return
    table = Table(title="Daily Volume")
    table.add_column("Date", style="cyan")
    table.add_column("Volume(kg)", justify="right", style="bold")
    for day, volume in series:
        table.add_row(fmt_weekday_date(day), f"{volume:.0f}")
    console.print(table)


def print_weight_progressions(results: list[WeightProgression], applied: bool) -> None:
    """
    Print adaptive weight results, one row per planned exercise.

    Args:
        results: Reviewed exercises in plan order
        applied: Whether changed weights were written to the plan
    """
    table = Table(title="Weight Progression" + ("" if applied else " (preview)"))
    table.add_column("Exercise", style="magenta")
    table.add_column("Plan(kg)", justify="right")
    table.add_column("Next(kg)", justify="right", style="bold")
    table.add_column("Change")
    table.add_column("Reason", style="dim")

    for r in results:
        style = _CHANGE_STYLES[r.change]
        table.add_row(
            r.exercise_name,
            fmt_weight(r.old_weight),
            fmt_weight(r.new_weight),
            f"[{style}]{r.change.value}[/{style}]",
            r.reason,
        )
    console.print(table)


def print_body_measurements(latest: dict[BodyParameter, BodyMeasurement]) -> None:
    """Print the latest value of every measured body parameter."""
    if not latest:
        console.print("[yellow]No body measurements yet.[/yellow] Run 'measure' to add some.")
        return
    table = Table(title="Body Measurements")
    table.add_column("Parameter", style="magenta")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("Date", style="cyan")
    table.add_column("Source", style="dim")
    for parameter, m in latest.items():
        table.add_row(
            parameter.value,
            fmt_body_value(parameter, m.value),
            fmt_date(m.date),
            "calculated" if m.calculated else "entered",
        )
    console.print(table)


def print_body_trends(trends: list[BodyParameterTrend], horizon_days: int) -> None:
    """Print per-parameter change and the projection horizon_days ahead."""
    if not trends:
        return
    table = Table(title=f"Trends (projection +{horizon_days}d)")
    table.add_column("Parameter", style="magenta")
    table.add_column("Start", justify="right")
    table.add_column("Current", justify="right", style="bold")
    table.add_column("Change", justify="right")
    table.add_column("Per week", justify="right")
    table.add_column("Projected", justify="right", style="cyan")
    table.add_column("N", justify="right", style="dim")
    for t in trends:
        table.add_row(
            t.parameter.value,
            fmt_body_value(t.parameter, t.start_value),
            fmt_body_value(t.parameter, t.current_value),
            f"{t.total_change:+.1f} ({t.change_percentage:+.1f}%)",
            f"{t.slope_per_week:+.2f}",
            f"{t.projected_value:.1f} on {fmt_date(t.projection_date)}",
            str(t.measurement_count),
        )
    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
