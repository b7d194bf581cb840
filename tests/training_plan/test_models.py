"""Tests for training plan Pydantic models."""

from datetime import date

import pytest
from pydantic import ValidationError

from ultra_plan.training_plan.models import (
    AthleteProfile,
    DailyPlan,
    DayOfWeek,
    IntensityLevel,
    RaceEvent,
    RaceType,
    RecoveryRatio,
    SafetyViolation,
    Session,
    TrainingConstraints,
    ViolationSeverity,
    WorkoutType,
    infer_race_type,
)


@pytest.mark.unit
class TestInferRaceType:
    @pytest.mark.parametrize(
        "distance,expected",
        [
            (10, RaceType.CUSTOM),
            (21.1, RaceType.HALF_MARATHON),
            (42.2, RaceType.MARATHON),
            (50, RaceType.ULTRA_50K),
            (80, RaceType.ULTRA_50M),
            (99.9, RaceType.ULTRA_50M),
            (100, RaceType.ULTRA_100K),
            (160, RaceType.ULTRA_100M),
            (330, RaceType.ULTRA_200M),
        ],
    )
    def test_distance_bands(self, distance, expected):
        assert infer_race_type(distance) == expected

    def test_race_event_infers_type(self):
        race = RaceEvent(name="Local 50", race_date=date(2027, 5, 1), distance_km=52)
        assert race.race_type == RaceType.ULTRA_50K

    def test_explicit_race_type_kept(self):
        race = RaceEvent(
            name="Skimo Cup",
            race_date=date(2027, 2, 1),
            distance_km=25,
            race_type=RaceType.SKIMO,
        )
        assert race.race_type == RaceType.SKIMO


@pytest.mark.unit
class TestEnums:
    @pytest.mark.parametrize(
        "ratio,hard,easy,cycle",
        [(RecoveryRatio.TWO_TO_ONE, 2, 1, 3), (RecoveryRatio.THREE_TO_ONE, 3, 1, 4)],
    )
    def test_recovery_ratio(self, ratio, hard, easy, cycle):
        assert ratio.hard_weeks == hard
        assert ratio.easy_weeks == easy
        assert ratio.cycle_length == cycle

    def test_day_index(self):
        assert DayOfWeek.MON.index == 0
        assert DayOfWeek.SUN.index == 6


@pytest.mark.unit
class TestAthleteProfile:
    def test_average_uses_last_four_weeks(self):
        athlete = AthleteProfile(weekly_mileage_history=[10, 40, 40, 50, 50])
        assert athlete.average_mileage == 45
        assert athlete.last_week_mileage == 50

    def test_no_history(self):
        athlete = AthleteProfile()
        assert athlete.average_mileage is None
        assert athlete.last_week_mileage is None

    def test_negative_history_rejected(self):
        with pytest.raises(ValidationError):
            AthleteProfile(weekly_mileage_history=[30, -5])


@pytest.mark.unit
class TestSession:
    def test_type_default_intensity(self, make_session):
        assert make_session(WorkoutType.VO2).effective_intensity == IntensityLevel.HIGH
        assert make_session(WorkoutType.LONG).effective_intensity == IntensityLevel.MEDIUM
        assert make_session(WorkoutType.EASY).effective_intensity == IntensityLevel.LOW

    def test_explicit_intensity_wins(self, make_session):
        session = make_session(WorkoutType.HILL_REPEATS, intensity=IntensityLevel.HIGH)
        assert session.effective_intensity == IntensityLevel.HIGH

    def test_unlisted_type_is_medium(self, make_session):
        assert make_session(WorkoutType.HIKE).effective_intensity == IntensityLevel.MEDIUM

    @pytest.mark.parametrize("bad_range", [(60, 30), (-5, 10)])
    def test_invalid_range_rejected(self, bad_range):
        with pytest.raises(ValidationError):
            Session(workout_type=WorkoutType.EASY, title="Easy", duration_range=bad_range)


@pytest.mark.unit
class TestDailyPlan:
    def test_empty_day_is_rest_day(self, plan_start):
        assert DailyPlan(day=DayOfWeek.MON, calendar_date=plan_start).is_rest_day

    def test_rest_session_day_is_rest_day(self, plan_start, make_session):
        day = DailyPlan(
            day=DayOfWeek.MON,
            calendar_date=plan_start,
            sessions=[make_session(WorkoutType.REST)],
        )
        assert day.is_rest_day

    def test_totals(self, plan_start, make_session):
        day = DailyPlan(
            day=DayOfWeek.MON,
            calendar_date=plan_start,
            sessions=[
                make_session(distance_km=10, duration_min=60, vertical_gain_m=100),
                make_session(WorkoutType.CORE_STABILITY, duration_min=25),
            ],
        )
        assert not day.is_rest_day
        assert day.total_distance_km() == 10
        assert day.total_duration_min() == 85
        assert day.total_vertical_m() == 100


@pytest.mark.unit
class TestWeeklyPlan:
    def test_requires_seven_days(self, make_week):
        week = make_week()
        with pytest.raises(ValidationError):
            type(week)(
                week_number=1,
                phase=week.phase,
                target_mileage=40,
                target_vert=0,
                days=week.days[:6],
            )

    def test_load_mileage_prefers_actual(self, make_week):
        assert make_week(target_mileage=40).load_mileage == 40
        assert make_week(target_mileage=40, actual_mileage=35).load_mileage == 35

    def test_get_day_and_dates(self, make_week, plan_start):
        week = make_week()
        assert week.get_day(DayOfWeek.WED).day == DayOfWeek.WED
        assert week.start_date == plan_start
        assert (week.end_date - week.start_date).days == 6

    def test_summary_lists_rest_days(self, make_week, make_session):
        week = make_week(
            {
                DayOfWeek.TUE: [make_session(distance_km=8)],
                DayOfWeek.SAT: [make_session(WorkoutType.LONG, distance_km=20)],
            }
        )
        summary = week.to_summary()
        assert summary["sessions"] == 2
        assert summary["planned_distance_km"] == 28
        assert summary["rest_days"] == ["Mon", "Wed", "Thu", "Fri", "Sun"]
        assert summary["safety_passed"] is None


@pytest.mark.unit
class TestTrainingConstraints:
    def test_rest_days_deduplicated_in_week_order(self):
        constraints = TrainingConstraints(
            days_per_week=4,
            rest_days=[DayOfWeek.FRI, DayOfWeek.MON, DayOfWeek.FRI],
        )
        assert constraints.rest_days == [DayOfWeek.MON, DayOfWeek.FRI]

    @pytest.mark.parametrize("days", [-1, 8])
    def test_days_per_week_bounds(self, days):
        with pytest.raises(ValidationError):
            TrainingConstraints(days_per_week=days)


@pytest.mark.unit
class TestSafetyViolation:
    @pytest.mark.parametrize(
        "severity,blocking",
        [
            (ViolationSeverity.WARNING, False),
            (ViolationSeverity.ERROR, True),
            (ViolationSeverity.CRITICAL, True),
        ],
    )
    def test_is_blocking(self, severity, blocking):
        violation = SafetyViolation(severity=severity, rule="RULE", message="msg")
        assert violation.is_blocking is blocking
