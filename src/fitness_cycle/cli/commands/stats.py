"""Statistics commands: log-set, stats."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import PERIOD_DAYS
from ...core.schedule import now_millis
from ...io.serializers import ValidationError, parse_sets_string
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


@app.command("log-set")
def log_set(
    exercise: Annotated[str, typer.Argument(help="Exercise name, e.g. 'Bench Press'")],
    sets: Annotated[
        str,
        typer.Option("--sets", "-s", help="Sets: reps@kg,... e.g. 10@60,8@62.5 or 10x3@60"),
    ],
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Date of the sets (YYYY-MM-DD, default: now)"),
    ] = None,
    heart_rate: Annotated[
        Optional[int],
        typer.Option("--heart-rate", help="Average heart rate (bpm)", min=0),
    ] = None,
    calories: Annotated[
        Optional[int],
        typer.Option("--calories", help="Calories burned", min=0),
    ] = None,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log the sets of one exercise to the stats log.
    """
    check_user(user)
    try:
        parsed = parse_sets_string(sets)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    engine = get_engine(data_dir)
    when = parse_date(date)
    when = when if when is not None else now_millis()

    logged = []
    for number, (reps, weight) in enumerate(parsed, 1):
        logged.append(
            engine.log_set(
                user,
                exercise,
                weight=weight,
                reps=reps,
                date=when,
                set_number=number,
                sets=len(parsed),
                avg_heart_rate=heart_rate,
                calories_burned=calories,
            )
        )

    volume = sum(s.volume for s in logged)
    if json_out:
        print(json.dumps({
            "exercise": exercise,
            "date": views.fmt_date(when),
            "sets": [{"reps": s.reps, "weight": s.weight} for s in logged],
            "volume": volume,
        }, indent=2))
        return

    views.print_success(f"Logged {len(logged)} sets of {exercise} ({volume:.0f} kg volume).")
    if not engine.catalog.muscle_groups_for(exercise):
        views.print_warning(f"'{exercise}' is not in the catalog; it won't count toward muscle groups.")


@app.command()
def stats(
    period: Annotated[
        str,
        typer.Option("--period", help=f"Period: {' | '.join(PERIOD_DAYS)}"),
    ] = "all",
    exercise: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Show progress of a single exercise"),
    ] = None,
    daily: Annotated[
        bool,
        typer.Option("--daily", help="Also show the daily volume series"),
    ] = False,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show training volume per muscle group and insights.
    """
    check_user(user)
    if period not in PERIOD_DAYS:
        views.print_error(f"Invalid period: {period}. Must be one of {', '.join(PERIOD_DAYS)}")
        raise typer.Exit(1)

    engine = get_engine(data_dir)
    now = now_millis()

    if exercise is not None:
        progress = engine.exercise_progress(user, exercise)
        if progress is None:
            views.print_error(f"No sets logged for {exercise}")
            raise typer.Exit(1)
        if json_out:
            print(json.dumps({
                "exercise": progress.exercise_name,
                "start_date": views.fmt_date(progress.start_date),
                "end_date": views.fmt_date(progress.end_date),
                "max_weight": progress.max_weight,
                "min_weight": progress.min_weight,
                "average_weight": round(progress.average_weight, 2),
                "total_volume": progress.total_volume,
                "total_sets": progress.total_sets,
                "total_reps": progress.total_reps,
                "weight_change": progress.weight_change,
                "weight_change_percentage": round(progress.weight_change_percentage, 2),
            }, indent=2))
            return
        views.print_exercise_progress(progress)
        return

    period_days = PERIOD_DAYS[period]
    summaries = engine.muscle_group_summary(user, period_days=period_days, now=now)
    insights = engine.insights(user, period_days=period_days, now=now)
    total = engine.total_volume(user)
    daily_volume = engine.volume_by_day(user)

    if json_out:
        print(json.dumps({
            "period": period,
            "total_volume": total,
            "muscle_groups": [
                {
                    "muscle_group": s.muscle_group,
                    "total_volume": s.total_volume,
                    "percentage": round(s.percentage, 2),
                    "total_sets": s.total_sets,
                    "exercise_count": s.exercise_count,
                    "max_weight": s.max_weight,
                    "days_since_last_workout": (
                        s.days_since_last_workout if s.total_sets else None
                    ),
                    "average_weekly_frequency": round(s.average_weekly_frequency, 2),
                }
                for s in summaries
            ],
            "insights": [
                {"kind": i.kind, "message": i.message, "muscle_group": i.muscle_group}
                for i in insights
            ],
            "daily_volume": [
                {"date": views.fmt_date(day), "volume": volume} for day, volume in daily_volume
            ],
        }, indent=2))
        return

    views.console.print(f"Total volume (all time): [bold]{total:.0f} kg[/bold]")
    views.print_muscle_groups(summaries, title=f"Muscle Groups ({period})")
    views.print_insights(insights)
    if daily:
        views.console.print()
        views.print_daily_volume(daily_volume)
