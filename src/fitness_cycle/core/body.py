"""
Body measurement calculations.

Derived parameters are computed from the measurements entered together:

    bmi          weight / (height / 100)^2
    body_fat     US Navy circumference method (needs sex, height, neck,
                 waist, and hips for women)
    muscle_mass  lean mass x MUSCLE_MASS_SHARE_OF_LEAN

Trends fit a least-squares line through a parameter's history and project
it a number of days past the latest measurement.
"""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence

from .config import MS_PER_DAY, MUSCLE_MASS_SHARE_OF_LEAN, SUPPORTED_SEXES, TREND_HORIZON_DAYS
from .models import BodyMeasurement, BodyParameter, BodyParameterTrend

logger = logging.getLogger(__name__)


def body_mass_index(weight_kg: float, height_cm: float) -> float:
    """
    Calculate BMI.

    Raises:
        ValueError: If height is not positive
    """
    if height_cm <= 0:
        raise ValueError("height must be positive")
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def body_fat_us_navy(
    sex: str,
    height_cm: float,
    neck_cm: float,
    waist_cm: float,
    hips_cm: float | None = None,
) -> float:
    """
    Estimate body fat percentage with the US Navy circumference formula.

    Args:
        sex: "male" or "female"
        height_cm: Standing height
        neck_cm: Neck circumference
        waist_cm: Waist circumference
        hips_cm: Hip circumference, required for "female"

    Returns:
        Body fat in percent

    Raises:
        ValueError: If sex is unknown, hips are missing for "female", or the
            circumferences leave nothing to take a logarithm of
    """
    if sex not in SUPPORTED_SEXES:
        raise ValueError(f"sex must be one of {', '.join(SUPPORTED_SEXES)}, got {sex!r}")

    if sex == "male":
        girth = waist_cm - neck_cm
        if girth <= 0 or height_cm <= 0:
            raise ValueError("waist must exceed neck")
        density = 1.0324 - 0.19077 * math.log10(girth) + 0.15456 * math.log10(height_cm)
    else:
        if hips_cm is None:
            raise ValueError("hips are required for the female formula")
        girth = waist_cm + hips_cm - neck_cm
        if girth <= 0 or height_cm <= 0:
            raise ValueError("waist + hips must exceed neck")
        density = 1.29579 - 0.35004 * math.log10(girth) + 0.22100 * math.log10(height_cm)

    return 495 / density - 450


def muscle_mass(weight_kg: float, body_fat_percent: float) -> float:
    """Skeletal muscle estimate from lean body mass."""
    lean = weight_kg * (1 - body_fat_percent / 100)
    return lean * MUSCLE_MASS_SHARE_OF_LEAN


def _measurement(parameter: BodyParameter, value: float, date: int) -> BodyMeasurement | None:
    try:
        return BodyMeasurement(parameter, round(value, 2), date, calculated=True)
    except ValueError as e:
        logger.debug("Skipping derived %s: %s", parameter.value, e)
        return None


def derived_measurements(
    values: Mapping[BodyParameter, float],
    date: int,
    sex: str | None = None,
) -> list[BodyMeasurement]:
    """
    Compute the derived parameters the entered values allow.

    A derived parameter that was entered manually is not recomputed, and
    muscle mass uses the entered body fat when there is one. Results outside
    a parameter's valid range are dropped.

    Args:
        values: Entered measurements for one date
        date: Timestamp given to the derived measurements (epoch ms)
        sex: Enables the body-fat estimate
    """
    derived: list[BodyMeasurement] = []
    weight = values.get(BodyParameter.WEIGHT)
    height = values.get(BodyParameter.HEIGHT)

    if BodyParameter.BMI not in values and weight is not None and height is not None:
        m = _measurement(BodyParameter.BMI, body_mass_index(weight, height), date)
        if m is not None:
            derived.append(m)

    body_fat = values.get(BodyParameter.BODY_FAT)
    neck = values.get(BodyParameter.NECK)
    waist = values.get(BodyParameter.WAIST)
    if body_fat is None and sex is not None and None not in (height, neck, waist):
        try:
            estimate = body_fat_us_navy(sex, height, neck, waist, values.get(BodyParameter.HIPS))
        except ValueError as e:
            logger.debug("No body-fat estimate: %s", e)
        else:
            m = _measurement(BodyParameter.BODY_FAT, estimate, date)
            if m is not None:
                derived.append(m)
                body_fat = m.value

    if BodyParameter.MUSCLE_MASS not in values and weight is not None and body_fat is not None:
        m = _measurement(BodyParameter.MUSCLE_MASS, muscle_mass(weight, body_fat), date)
        if m is not None:
            derived.append(m)

    return derived


def linear_trend(points: Sequence[tuple[float, float]]) -> tuple[float, float]:
    """
    Least-squares line y = a + b*x through (x, y) points.

    Returns:
        Tuple (intercept a, slope b); a single point gives a flat line
    """
    if len(points) < 2:
        if len(points) == 1:
            return (float(points[0][1]), 0.0)
        return (0.0, 0.0)

    n = len(points)
    sum_x = sum(p[0] for p in points)
    sum_y = sum(p[1] for p in points)
    sum_xy = sum(p[0] * p[1] for p in points)
    sum_x2 = sum(p[0] ** 2 for p in points)

    denominator = n * sum_x2 - sum_x**2
    if abs(denominator) < 1e-10:
        return (sum_y / n, 0.0)

    b = (n * sum_xy - sum_x * sum_y) / denominator
    a = (sum_y - b * sum_x) / n
    return (a, b)


def parameter_trend(
    measurements: Iterable[BodyMeasurement],
    parameter: BodyParameter,
    horizon_days: int = TREND_HORIZON_DAYS,
) -> BodyParameterTrend | None:
    """
    Summarise one parameter's history and project it horizon_days ahead.

    Returns:
        BodyParameterTrend, or None if the parameter was never measured
    """
    rows = sorted((m for m in measurements if m.parameter is parameter), key=lambda m: m.date)
    if not rows:
        return None

    first, last = rows[0], rows[-1]
    points = [((m.date - first.date) / MS_PER_DAY, m.value) for m in rows]
    a, b = linear_trend(points)
    last_x = points[-1][0]

    values = [m.value for m in rows]
    change = last.value - first.value
    return BodyParameterTrend(
        parameter=parameter,
        start_date=first.date,
        end_date=last.date,
        start_value=first.value,
        current_value=last.value,
        min_value=min(values),
        max_value=max(values),
        average_value=sum(values) / len(values),
        total_change=change,
        change_percentage=(change / first.value * 100) if first.value else 0.0,
        slope_per_week=b * 7,
        projected_value=a + b * (last_x + horizon_days),
        projection_date=last.date + horizon_days * MS_PER_DAY,
        measurement_count=len(rows),
    )


def latest_measurements(
    measurements: Iterable[BodyMeasurement],
) -> dict[BodyParameter, BodyMeasurement]:
    """Most recent measurement of every parameter, in BodyParameter order."""
    latest: dict[BodyParameter, BodyMeasurement] = {}
    for m in measurements:
        current = latest.get(m.parameter)
        if current is None or m.date >= current.date:
            latest[m.parameter] = m
    return {p: latest[p] for p in BodyParameter if p in latest}
