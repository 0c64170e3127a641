"""Body measurement commands: measure, body."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import SUPPORTED_SEXES, TREND_HORIZON_DAYS
from ...core.models import BodyMeasurement
from ...core.schedule import now_millis
from ...io.serializers import ValidationError, parse_body_values
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


def _measurement_json(m: BodyMeasurement) -> dict:
    return {
        "parameter": m.parameter.value,
        "value": m.value,
        "unit": m.parameter.unit,
        "date": views.fmt_date(m.date),
        "calculated": m.calculated,
    }


@app.command()
def measure(
    values: Annotated[
        list[str],
        typer.Argument(help="Measurements as parameter=value, e.g. weight=80 waist=85"),
    ],
    sex: Annotated[
        Optional[str],
        typer.Option("--sex", help=f"{' | '.join(SUPPORTED_SEXES)}; enables the body-fat estimate"),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Measurement date (YYYY-MM-DD, default: now)"),
    ] = None,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Record body measurements.

    Weight and muscle mass are in kg, body_fat in %, lengths in cm.
    BMI, body fat and muscle mass are derived when the entered values allow.
    """
    check_user(user)
    try:
        parsed = parse_body_values(values)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    engine = get_engine(data_dir)
    when = parse_date(date)
    try:
        logged = engine.log_body_measurements(
            user, parsed, date=when if when is not None else now_millis(), sex=sex
        )
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({"measurements": [_measurement_json(m) for m in logged]}, indent=2))
        return

    views.print_success(f"Logged {len(logged)} body measurements.")
    for m in logged:
        if m.calculated:
            views.print_info(f"{m.parameter.value}: {views.fmt_body_value(m.parameter, m.value)}")


@app.command()
def body(
    horizon: Annotated[
        int,
        typer.Option("--horizon", help="Days past the latest measurement to project trends", min=1),
    ] = TREND_HORIZON_DAYS,
    user: UserOption = DEFAULT_USER,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the latest body measurements and their trends.
    """
    check_user(user)
    engine = get_engine(data_dir)
    latest = engine.latest_body_measurements(user)
    trends = engine.body_trends(user, horizon_days=horizon)

    if json_out:
        print(json.dumps({
            "latest": [_measurement_json(m) for m in latest.values()],
            "trends": [
                {
                    "parameter": t.parameter.value,
                    "start_date": views.fmt_date(t.start_date),
                    "end_date": views.fmt_date(t.end_date),
                    "start_value": t.start_value,
                    "current_value": t.current_value,
                    "min_value": t.min_value,
                    "max_value": t.max_value,
                    "average_value": round(t.average_value, 2),
                    "total_change": round(t.total_change, 2),
                    "change_percentage": round(t.change_percentage, 2),
                    "slope_per_week": round(t.slope_per_week, 3),
                    "projected_value": round(t.projected_value, 2),
                    "projection_date": views.fmt_date(t.projection_date),
                    "measurement_count": t.measurement_count,
                }
                for t in trends
            ],
        }, indent=2))
        return

    views.print_body_measurements(latest)
    views.print_body_trends(trends, horizon)
