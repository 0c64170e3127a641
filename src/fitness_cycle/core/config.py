"""
Configuration constants for the training cycle engine.

All adjustable parameters are centralized here. Values that users may
override at runtime (data directory, default frequency, insight thresholds)
are surfaced through core.engine.config_loader.EngineSettings; these
constants are their defaults.
"""

from typing import Final

# =============================================================================
# CYCLE LIFECYCLE
# =============================================================================

DAYS_IN_CYCLE: Final[int] = 30  # Length of one training cycle (plan days)
DAYS_IN_MICROCYCLE: Final[int] = 10  # Sub-period used for the microcycle counter
NEXT_CYCLE_DELAY_DAYS: Final[int] = 1  # Days after completion before auto-restart

# =============================================================================
# TIME
# =============================================================================

MS_PER_DAY: Final[int] = 86_400_000

# =============================================================================
# SCHEDULE FREQUENCIES
# =============================================================================

FREQUENCY_ONCE_A_WEEK: Final[str] = "1x/week"
FREQUENCY_THREE_A_WEEK: Final[str] = "3x/week"  # Mon / Wed / Fri
FREQUENCY_FIVE_A_WEEK: Final[str] = "5x/week"  # weekdays

SUPPORTED_FREQUENCIES: Final[tuple[str, ...]] = (
    FREQUENCY_ONCE_A_WEEK,
    FREQUENCY_THREE_A_WEEK,
    FREQUENCY_FIVE_A_WEEK,
)
DEFAULT_FREQUENCY: Final[str] = FREQUENCY_THREE_A_WEEK

# =============================================================================
# EXERCISE ROTATION
# =============================================================================

POOL_ROTATION_SIZE: Final[int] = 3  # pool_A, pool_B, pool_C
DEFAULT_RECENCY_WINDOW: Final[int | None] = None  # None = all retained history

# Recommended weight grows by WEIGHT_STEP_KG for every completed group of
# CYCLES_PER_WEIGHT_STEP cycles (cycles 1-3: +0, 4-6: +2, 7-9: +4, ...).
WEIGHT_STEP_KG: Final[float] = 2.0
CYCLES_PER_WEIGHT_STEP: Final[int] = 3

# =============================================================================
# ADAPTIVE WEIGHT PROGRESSION
# =============================================================================

# The last ADAPTIVE_HISTORY_SETS logged sets of an exercise are compared with
# its rep target; beating the target by ADAPTIVE_REP_MARGIN reps moves the
# recommendation to their average weight plus ADAPTIVE_WEIGHT_STEP_KG.
ADAPTIVE_HISTORY_SETS: Final[int] = 2
ADAPTIVE_REP_MARGIN: Final[int] = 2
ADAPTIVE_WEIGHT_STEP_KG: Final[float] = 1.25

# Dumbbell and barbell increments recommendations are rounded to (kg)
STANDARD_WEIGHTS_KG: Final[tuple[float, ...]] = (
    1.25, 2.5, 3.75, 5.0, 6.25, 7.5, 8.75, 10.0, 11.25, 12.5, 13.75, 15.0,
    17.5, 20.0, 22.5, 25.0, 27.5, 30.0, 32.5, 35.0, 37.5, 40.0, 45.0, 50.0,
    55.0, 60.0, 70.0, 80.0, 90.0, 100.0,
)
HEAVY_WEIGHT_STEP_KG: Final[float] = 2.5  # rounding step above the largest standard weight

# =============================================================================
# COMPLETION MARKERS
# =============================================================================

# Version 1: flat string keys ("Squat" or "3_Squat"). Version 2: structured keys.
COMPLETION_SCHEMA_VERSION: Final[int] = 2

# =============================================================================
# STATISTICS & INSIGHTS
# =============================================================================

DAYS_NEVER: Final[int] = 2_147_483_647  # days_since_last_workout with no entry
STALE_GROUP_DAYS: Final[int] = 14  # "needs attention" beyond this many days
BALANCE_TOLERANCE: Final[float] = 0.20  # ±20% of mean volume counts as balanced

# Period filters for muscle-group summaries (0 = all time)
PERIOD_DAYS: Final[dict[str, int]] = {
    "day": 1,
    "week": 7,
    "month": 30,
    "3months": 90,
    "all": 0,
}

# =============================================================================
# BODY MEASUREMENTS
# =============================================================================

# Accepted range per body parameter (inclusive), in the parameter's unit
BODY_PARAMETER_RANGES: Final[dict[str, tuple[float, float]]] = {
    "weight": (20.0, 300.0),  # kg
    "height": (50.0, 250.0),  # cm
    "chest": (10.0, 200.0),
    "waist": (10.0, 200.0),
    "hips": (10.0, 200.0),
    "biceps": (10.0, 200.0),
    "thigh": (10.0, 200.0),
    "calf": (10.0, 200.0),
    "neck": (10.0, 200.0),
    "shoulders": (10.0, 200.0),
    "body_fat": (1.0, 60.0),  # %
    "bmi": (10.0, 60.0),
    "muscle_mass": (10.0, 150.0),  # kg
}

SUPPORTED_SEXES: Final[tuple[str, ...]] = ("male", "female")  # for the US Navy body-fat formula
MUSCLE_MASS_SHARE_OF_LEAN: Final[float] = 0.55  # skeletal muscle share of lean body mass
TREND_HORIZON_DAYS: Final[int] = 30  # default projection distance for body trends
