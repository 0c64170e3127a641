"""
Tests for body measurements: derived parameters, trends and the engine API.
"""

import pytest

from fitness_cycle.core.body import (
    body_fat_us_navy,
    body_mass_index,
    derived_measurements,
    latest_measurements,
    linear_trend,
    muscle_mass,
    parameter_trend,
)
from fitness_cycle.core.config import MS_PER_DAY
from fitness_cycle.core.models import BodyMeasurement, BodyParameter
from fitness_cycle.io.serializers import ValidationError, parse_body_values

from conftest import MONDAY

USER = "alice"
W = BodyParameter.WEIGHT


def _weights(*pairs: tuple[int, float]) -> list[BodyMeasurement]:
    return [BodyMeasurement(W, value, MONDAY + day * MS_PER_DAY) for day, value in pairs]


class TestFormulas:
    """BMI, US Navy body fat and muscle mass."""

    def test_bmi(self):
        assert body_mass_index(80, 180) == pytest.approx(24.69, abs=0.01)

    def test_bmi_needs_height(self):
        with pytest.raises(ValueError):
            body_mass_index(80, 0)

    def test_body_fat_male(self):
        assert body_fat_us_navy("male", 180, 40, 90) == pytest.approx(18.4, abs=0.1)

    def test_body_fat_female(self):
        assert body_fat_us_navy("female", 165, 32, 70, hips_cm=95) == pytest.approx(24.9, abs=0.1)

    def test_body_fat_female_needs_hips(self):
        with pytest.raises(ValueError, match="hips"):
            body_fat_us_navy("female", 165, 32, 70)

    def test_body_fat_unknown_sex(self):
        with pytest.raises(ValueError):
            body_fat_us_navy("other", 180, 40, 90)

    def test_body_fat_neck_wider_than_waist(self):
        with pytest.raises(ValueError):
            body_fat_us_navy("male", 180, 90, 40)

    def test_muscle_mass(self):
        assert muscle_mass(80, 20) == pytest.approx(35.2)


class TestDerivedMeasurements:
    """Which derived parameters a set of entered values produces."""

    def test_weight_and_height_give_bmi(self):
        derived = derived_measurements({W: 80, BodyParameter.HEIGHT: 180}, MONDAY)

        assert [m.parameter for m in derived] == [BodyParameter.BMI]
        assert derived[0].value == 24.69
        assert derived[0].calculated
        assert derived[0].date == MONDAY

    def test_circumferences_with_sex_give_body_fat_and_muscle_mass(self):
        values = {W: 80, BodyParameter.HEIGHT: 180, BodyParameter.NECK: 40, BodyParameter.WAIST: 90}

        derived = {m.parameter: m.value for m in derived_measurements(values, MONDAY, sex="male")}

        assert set(derived) == {BodyParameter.BMI, BodyParameter.BODY_FAT, BodyParameter.MUSCLE_MASS}
        assert derived[BodyParameter.MUSCLE_MASS] == pytest.approx(
            80 * (1 - derived[BodyParameter.BODY_FAT] / 100) * 0.55, abs=0.01
        )

    def test_no_body_fat_without_sex(self):
        values = {BodyParameter.HEIGHT: 180, BodyParameter.NECK: 40, BodyParameter.WAIST: 90}
        assert derived_measurements(values, MONDAY) == []

    def test_entered_value_is_not_recomputed(self):
        derived = derived_measurements({W: 80, BodyParameter.HEIGHT: 180, BodyParameter.BMI: 30}, MONDAY)
        assert derived == []

    def test_entered_body_fat_feeds_muscle_mass(self):
        derived = derived_measurements({W: 80, BodyParameter.BODY_FAT: 20}, MONDAY)
        assert [(m.parameter, m.value) for m in derived] == [(BodyParameter.MUSCLE_MASS, 35.2)]

    def test_out_of_range_result_is_dropped(self):
        assert derived_measurements({W: 20, BodyParameter.HEIGHT: 250}, MONDAY) == []


class TestTrend:
    """Least-squares trend and projection."""

    def test_linear_trend(self):
        assert linear_trend([(0, 1), (1, 3), (2, 5)]) == pytest.approx((1.0, 2.0))

    def test_single_point_is_flat(self):
        assert linear_trend([(3, 70.0)]) == (70.0, 0.0)

    def test_same_x_gives_mean(self):
        assert linear_trend([(1, 70.0), (1, 72.0)]) == (71.0, 0.0)

    def test_parameter_trend(self):
        trend = parameter_trend(_weights((0, 80.0), (7, 79.0), (14, 78.0)), W)

        assert trend.measurement_count == 3
        assert trend.start_value == 80.0
        assert trend.current_value == 78.0
        assert trend.total_change == -2.0
        assert trend.change_percentage == pytest.approx(-2.5)
        assert trend.slope_per_week == pytest.approx(-1.0)
        assert trend.projected_value == pytest.approx(80 - 44 / 7)
        assert trend.projection_date == MONDAY + 44 * MS_PER_DAY

    def test_custom_horizon(self):
        trend = parameter_trend(_weights((0, 80.0), (7, 79.0)), W, horizon_days=7)
        assert trend.projected_value == pytest.approx(78.0)

    def test_unmeasured_parameter(self):
        assert parameter_trend(_weights((0, 80.0)), BodyParameter.WAIST) is None

    def test_latest_measurements(self):
        log = _weights((0, 80.0), (7, 79.0)) + [BodyMeasurement(BodyParameter.WAIST, 90.0, MONDAY)]
        latest = latest_measurements(log)
        assert list(latest) == [W, BodyParameter.WAIST]
        assert latest[W].value == 79.0


class TestParseBodyValues:
    """parameter=value input."""

    def test_pairs(self):
        assert parse_body_values(["weight=80", "Waist=85.5"]) == {W: 80.0, BodyParameter.WAIST: 85.5}

    @pytest.mark.parametrize(
        "pairs",
        [["weight"], ["wingspan=180"], ["weight=heavy"], ["weight=900"], ["weight=80", "weight=81"]],
    )
    def test_invalid(self, pairs):
        with pytest.raises(ValidationError):
            parse_body_values(pairs)


class TestEngineBody:
    """Body measurement methods of the engine facade."""

    def test_log_returns_entered_and_derived(self, engine):
        logged = engine.log_body_measurements(
            USER, {W: 80.0, BodyParameter.HEIGHT: 180.0}, date=MONDAY
        )

        assert [(m.parameter, m.calculated) for m in logged] == [
            (W, False),
            (BodyParameter.HEIGHT, False),
            (BodyParameter.BMI, True),
        ]
        assert engine.body_measurements(USER) == sorted(logged, key=lambda m: m.date)
        assert engine.body_measurements(USER, BodyParameter.BMI)[0].value == 24.69

    def test_requires_a_value(self, engine):
        with pytest.raises(ValueError, match="At least one"):
            engine.log_body_measurements(USER, {})

    def test_out_of_range_value_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.log_body_measurements(USER, {W: 5.0})
        assert engine.body_measurements(USER) == []

    def test_unknown_sex_rejected(self, engine):
        with pytest.raises(ValueError, match="sex"):
            engine.log_body_measurements(USER, {W: 80.0}, sex="x")

    def test_trend_and_latest(self, engine):
        engine.log_body_measurements(USER, {W: 80.0}, date=MONDAY)
        engine.log_body_measurements(USER, {W: 79.0}, date=MONDAY + 7 * MS_PER_DAY)

        assert engine.latest_body_measurements(USER)[W].value == 79.0
        assert engine.body_trend(USER, W).slope_per_week == pytest.approx(-1.0)
        assert [t.parameter for t in engine.body_trends(USER)] == [W]
