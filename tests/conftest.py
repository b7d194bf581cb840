"""Pytest configuration and shared fixtures for plan engine tests."""

from datetime import date, timedelta

import pytest

from ultra_plan.config import get_config
from ultra_plan.training_plan.models import (
    WEEK_DAYS,
    AthleteCategory,
    AthleteProfile,
    DailyFeedback,
    DailyPlan,
    DayOfWeek,
    RaceEvent,
    RaceResult,
    RecoveryRatio,
    Session,
    TrainingConstraints,
    TrainingPhase,
    WeeklyPlan,
    WorkoutType,
)

# Monday
PLAN_START = date(2026, 10, 19)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from ULTRA_PLAN_* variables and the cached config."""
    for name in (
        "ULTRA_PLAN_LOG_LEVEL",
        "ULTRA_PLAN_LOG_DIR",
        "ULTRA_PLAN_DAYS_PER_WEEK",
        "ULTRA_PLAN_FEEDBACK_WINDOW_DAYS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def plan_start() -> date:
    return PLAN_START


@pytest.fixture
def cat1_athlete() -> AthleteProfile:
    """Classified novice: 2:1 recovery ratio, 40 km start, 80 km ceiling."""
    return AthleteProfile(
        age=32,
        years_training=1.5,
        category=AthleteCategory.CAT1,
        weekly_mileage_history=[30, 32, 35, 38],
        start_mileage=40,
        volume_ceiling=80,
        recovery_ratio=RecoveryRatio.TWO_TO_ONE,
    )


@pytest.fixture
def cat2_athlete() -> AthleteProfile:
    """Classified experienced ultrarunner with a finished 100 km race."""
    return AthleteProfile(
        age=35,
        years_training=8,
        category=AthleteCategory.CAT2,
        weekly_mileage_history=[60, 65, 62, 66],
        recent_races=[RaceResult(name="Trail 100", distance_km=100)],
        start_mileage=55,
        volume_ceiling=140,
        recovery_ratio=RecoveryRatio.THREE_TO_ONE,
    )


@pytest.fixture
def race_100k() -> RaceEvent:
    """Saturday race 19 weeks and 5 days after PLAN_START."""
    return RaceEvent(
        name="Mountain 100K",
        race_date=date(2027, 3, 6),
        distance_km=100,
        vertical_gain_m=4500,
    )


@pytest.fixture
def five_day_constraints() -> TrainingConstraints:
    """Five training days; derived rest days are Thu and Sun."""
    return TrainingConstraints(days_per_week=5)


@pytest.fixture
def make_session():
    """Factory for sessions with sensible defaults."""

    def _make(
        workout_type: WorkoutType = WorkoutType.EASY,
        title: str | None = None,
        **fields,
    ) -> Session:
        return Session(
            workout_type=workout_type,
            title=title or workout_type.value.replace("_", " ").title(),
            **fields,
        )

    return _make


@pytest.fixture
def make_week():
    """Factory for a weekly plan from a {day: [sessions]} mapping."""

    def _make(
        sessions: dict[DayOfWeek, list[Session]] | None = None,
        week_number: int = 1,
        phase: TrainingPhase = TrainingPhase.BASE,
        target_mileage: float = 40,
        target_vert: float = 800,
        start: date = PLAN_START,
        **fields,
    ) -> WeeklyPlan:
        sessions = sessions or {}
        days = [
            DailyPlan(
                day=day,
                calendar_date=start + timedelta(days=day.index),
                sessions=list(sessions.get(day, [])),
            )
            for day in WEEK_DAYS
        ]
        return WeeklyPlan(
            week_number=week_number,
            phase=phase,
            target_mileage=target_mileage,
            target_vert=target_vert,
            days=days,
            **fields,
        )

    return _make


@pytest.fixture
def make_feedback():
    """Factory for consecutive days of identical feedback."""

    def _make(days: int = 7, start: date = PLAN_START, **values) -> list[DailyFeedback]:
        return [
            DailyFeedback(feedback_date=start + timedelta(days=i), **values)
            for i in range(days)
        ]

    return _make
