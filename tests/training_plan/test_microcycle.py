"""Tests for MicrocycleGenerator."""

from datetime import date, timedelta

import pytest

from ultra_plan.training_plan.microcycle import (
    MicrocycleGenerator,
    adapt_workout_to_surface,
    concretize_session,
)
from ultra_plan.training_plan.models import (
    AthleteCategory,
    AthleteProfile,
    DayOfWeek,
    IntensityLevel,
    MacrocycleWeek,
    RaceEvent,
    RacePriority,
    RaceType,
    Session,
    SessionOrigin,
    SurfacePreference,
    TrainingConstraints,
    TrainingPhase,
    WorkoutType,
)
from ultra_plan.training_plan.rest_days import resolve_rest_days
from ultra_plan.training_plan.workout_library import (
    Prerequisites,
    WorkoutCatalog,
    WorkoutTemplate,
)


@pytest.fixture
def generator():
    return MicrocycleGenerator()


@pytest.fixture
def make_macro_week(plan_start):
    def _make(
        phase: TrainingPhase = TrainingPhase.BASE,
        week_number: int = 1,
        start: date = plan_start,
    ) -> MacrocycleWeek:
        return MacrocycleWeek(
            week_number=week_number,
            phase=phase,
            start_date=start,
            end_date=start + timedelta(days=6),
            phase_week=1,
        )

    return _make


def _types(plan, day: DayOfWeek) -> list[WorkoutType]:
    return [s.workout_type for s in plan.get_day(day).sessions]


@pytest.mark.unit
class TestTargetMileage:
    def test_ten_percent_rule_in_base(self, generator, cat1_athlete):
        target = generator.target_mileage(cat1_athlete, TrainingPhase.BASE, 40)
        assert target <= 44.0
        assert target == 34

    def test_capped_by_previous_week(self, generator, cat2_athlete):
        target = generator.target_mileage(cat2_athlete, TrainingPhase.SPECIFICITY, 50)
        assert target == 55

    def test_rounding_never_exceeds_cap(self, generator, cat2_athlete):
        athlete = cat2_athlete.model_copy(update={"start_mileage": 60})
        # Raw target 65.55 against a 65.56 cap would round up to 66
        target = generator.target_mileage(athlete, TrainingPhase.INTENSITY, 59.6)
        assert target == 65
        assert target <= 59.6 * 1.1

    def test_recovery_week(self, generator, cat1_athlete):
        target = generator.target_mileage(
            cat1_athlete, TrainingPhase.BASE, 50, is_recovery_week=True
        )
        assert target == 40

    def test_volume_ceiling(self, generator, cat1_athlete):
        athlete = cat1_athlete.model_copy(update={"volume_ceiling": 30})
        assert generator.target_mileage(athlete, TrainingPhase.BASE) == 30

    def test_default_start_without_classification(self, generator):
        target = generator.target_mileage(AthleteProfile(), TrainingPhase.SPECIFICITY)
        assert target == 40

    @pytest.mark.parametrize("phase", list(TrainingPhase))
    @pytest.mark.parametrize("previous", [10, 33.3, 40, 57.5, 120])
    def test_never_above_ten_percent_increase(
        self, generator, cat2_athlete, phase, previous
    ):
        target = generator.target_mileage(cat2_athlete, phase, previous)
        assert target <= previous * 1.1
        assert target <= cat2_athlete.volume_ceiling


@pytest.mark.unit
class TestTargetVert:
    @pytest.mark.parametrize(
        "phase,expected",
        [
            (TrainingPhase.BASE, 1360),
            (TrainingPhase.SPECIFICITY, 1768),
            (TrainingPhase.TAPER, 680),
        ],
    )
    def test_hilly_race(self, generator, race_100k, phase, expected):
        assert generator.target_vert(race_100k, phase, 34) == expected

    def test_flat_race(self, generator, race_100k):
        flat = race_100k.model_copy(update={"vertical_gain_m": 500})
        assert generator.target_vert(flat, TrainingPhase.BASE, 34) == 680


@pytest.mark.unit
class TestConcretizeSession:
    def test_range_midpoints_and_backfill(self, make_session):
        session = concretize_session(make_session(duration_range=(40, 60)))
        assert session.duration_min == 50
        assert session.distance_km == 8.3
        assert session.vertical_gain_m == 83

    def test_hill_session_uses_hard_pace(self, make_session):
        session = concretize_session(
            make_session(WorkoutType.HILL_SPRINTS, duration_range=(30, 40))
        )
        assert session.duration_min == 35
        assert session.distance_km == 7.0
        assert session.vertical_gain_m == 315

    def test_distance_drives_duration(self, make_session):
        session = concretize_session(make_session(WorkoutType.LONG, distance_range=(15, 30)))
        assert session.distance_km == 22.5
        assert session.duration_min == 112
        assert session.vertical_gain_m == 405

    def test_fallback_distance(self, make_session):
        session = concretize_session(
            make_session(WorkoutType.BACK_TO_BACK), fallback_distance_km=10
        )
        assert session.distance_km == 10
        assert session.duration_min == 50
        assert session.vertical_gain_m == 100

    def test_non_running_session_gets_no_distance(self, make_session):
        session = concretize_session(
            make_session(WorkoutType.CORE_STABILITY, duration_range=(20, 30)),
            fallback_distance_km=10,
        )
        assert session.duration_min == 25
        assert session.distance_km is None
        assert session.vertical_gain_m is None

    def test_rest_is_zeroed(self, make_session):
        session = concretize_session(make_session(WorkoutType.REST, duration_min=30))
        assert (session.duration_min, session.distance_km, session.vertical_gain_m) == (
            0,
            0,
            0,
        )

    def test_original_untouched(self, make_session):
        original = make_session(duration_range=(40, 60))
        concretize_session(original)
        assert original.duration_min is None


@pytest.mark.unit
class TestAdaptWorkoutToSurface:
    def test_trail_long_run_gets_more_time(self, make_session):
        session = make_session(WorkoutType.LONG, duration_range=(100, 200))
        adapted = adapt_workout_to_surface(session, SurfacePreference.TRAIL)
        assert adapted.duration_range == (115, 230)
        assert "Trail Running" in adapted.notes
        assert session.duration_range == (100, 200)

    def test_treadmill_hills(self, make_session):
        session = make_session(WorkoutType.HILL_SPRINTS, title="Hill Sprints")
        adapted = adapt_workout_to_surface(session, SurfacePreference.TREADMILL)
        assert adapted.title == "Treadmill Hill Sprints"
        assert "grade" in adapted.notes

    def test_treadmill_vo2_unchanged_notes(self, make_session):
        adapted = adapt_workout_to_surface(
            make_session(WorkoutType.VO2), SurfacePreference.TREADMILL
        )
        assert adapted.notes is None

    def test_existing_notes_kept(self, make_session):
        session = make_session(WorkoutType.TEMPO, notes="Bring gels")
        adapted = adapt_workout_to_surface(session, SurfacePreference.TRAIL)
        assert adapted.notes.startswith("Bring gels\n\n")

    @pytest.mark.parametrize("surface", [None, SurfacePreference.MIXED])
    def test_mixed_or_unknown_returns_same(self, make_session, surface):
        session = make_session(WorkoutType.LONG)
        assert adapt_workout_to_surface(session, surface) is session


@pytest.mark.unit
class TestSelect:
    def test_exact_match(self, generator, cat1_athlete, race_100k):
        entry = generator.select(
            WorkoutType.LONG, TrainingPhase.SPECIFICITY, cat1_athlete, race_100k
        )
        assert entry.id == "long_run_mountain"

    def test_relaxes_race_type(self, generator, cat1_athlete, race_100k, mocker):
        spy = mocker.spy(generator.catalog, "query")
        entry = generator.select(
            WorkoutType.VO2, TrainingPhase.INTENSITY, cat1_athlete, race_100k
        )
        assert entry.id == "vo2_3min"
        assert spy.call_count == 2
        assert "race_type" not in spy.call_args_list[1].kwargs

    def test_falls_back_to_type_only(self, generator, cat1_athlete, race_100k):
        entry = generator.select(
            WorkoutType.LONG, TrainingPhase.TAPER, cat1_athlete, race_100k
        )
        assert entry.id == "long_run_easy"

    def test_prerequisites_filter(self, cat2_athlete, race_100k):
        gated = WorkoutTemplate(
            id="long_big",
            phases=(TrainingPhase.INTENSITY,),
            template=Session(workout_type=WorkoutType.LONG, title="Big Long Run"),
            prerequisites=Prerequisites(min_weekly_km=80),
        )
        open_entry = WorkoutTemplate(
            id="long_small",
            phases=(TrainingPhase.INTENSITY,),
            template=Session(workout_type=WorkoutType.LONG, title="Long Run"),
        )
        generator = MicrocycleGenerator(catalog=WorkoutCatalog([gated, open_entry]))

        entry = generator.select(
            WorkoutType.LONG, TrainingPhase.INTENSITY, cat2_athlete, race_100k
        )
        assert entry.id == "long_small"

        strong = cat2_athlete.model_copy(update={"weekly_mileage_history": [90, 95]})
        entry = generator.select(WorkoutType.LONG, TrainingPhase.INTENSITY, strong, race_100k)
        assert entry.id == "long_big"

    def test_no_match_logs_warning(self, cat1_athlete, race_100k, caplog):
        generator = MicrocycleGenerator(catalog=WorkoutCatalog([]))
        entry = generator.select(
            WorkoutType.VO2, TrainingPhase.INTENSITY, cat1_athlete, race_100k
        )
        assert entry is None
        assert "No catalog entry" in caplog.text


@pytest.mark.unit
class TestGenerateWeek:
    @pytest.fixture
    def base_week(self, generator, make_macro_week, cat1_athlete, race_100k, five_day_constraints):
        return generator.generate(
            make_macro_week(TrainingPhase.BASE),
            cat1_athlete,
            race_100k,
            five_day_constraints,
            previous_week_mileage=38,
        )

    def test_layout(self, base_week):
        assert len(base_week.days) == 7
        assert base_week.target_mileage == 34
        assert _types(base_week, DayOfWeek.MON) == [
            WorkoutType.EASY,
            WorkoutType.CORE_STABILITY,
        ]
        assert _types(base_week, DayOfWeek.TUE) == [WorkoutType.HILL_SPRINTS]
        assert _types(base_week, DayOfWeek.WED) == [
            WorkoutType.EASY,
            WorkoutType.MUSCULAR_ENDURANCE,
            WorkoutType.CORE_STABILITY,
        ]
        assert _types(base_week, DayOfWeek.FRI) == [WorkoutType.EASY]
        assert _types(base_week, DayOfWeek.SAT) == [WorkoutType.LONG]

    def test_rest_days_stay_empty(self, base_week, five_day_constraints):
        for day in resolve_rest_days(five_day_constraints):
            assert base_week.get_day(day).sessions == []
            assert base_week.get_day(day).rationale == "Rest day"

    def test_key_sessions_flagged(self, base_week):
        tuesday = base_week.get_day(DayOfWeek.TUE).sessions[0]
        friday = base_week.get_day(DayOfWeek.FRI).sessions[0]
        assert tuesday.is_key_workout
        assert friday.library_id == "easy_with_strides"
        assert friday.is_key_workout

    def test_long_run_is_concrete(self, base_week):
        long_run = base_week.get_day(DayOfWeek.SAT).sessions[0]
        assert long_run.library_id == "long_run_easy"
        # 22.5 km template capped at 40% of 34 km scaled by the 0.7 base factor
        assert long_run.distance_km == 10
        assert long_run.duration_min == 60
        assert long_run.vertical_gain_m == 200
        assert "Capped at 10 km" in long_run.notes
        assert long_run.origin == SessionOrigin.BASE_PLAN

    def test_session_ids_unique(self, base_week):
        ids = [s.session_id for _, s in base_week.iter_sessions()]
        assert len(ids) == len(set(ids))
        assert "w01-sat-1" in ids

    def test_core_is_generated_and_never_on_long_day(self, base_week):
        core = [
            (d.day, s)
            for d, s in base_week.iter_sessions()
            if s.workout_type == WorkoutType.CORE_STABILITY
        ]
        assert len(core) == 2
        assert all(day != DayOfWeek.SAT for day, _ in core)
        assert all(s.origin == SessionOrigin.GENERATED for _, s in core)

    def test_intensity_week_places_hard_sessions(
        self, generator, make_macro_week, cat1_athlete, race_100k, five_day_constraints
    ):
        plan = generator.generate(
            make_macro_week(TrainingPhase.INTENSITY),
            cat1_athlete,
            race_100k,
            five_day_constraints,
        )
        assert _types(plan, DayOfWeek.TUE) == [WorkoutType.VO2]
        assert _types(plan, DayOfWeek.FRI) == [WorkoutType.TEMPO]
        # No valid muscular endurance day next to high-intensity days
        assert all(
            s.workout_type != WorkoutType.MUSCULAR_ENDURANCE for _, s in plan.iter_sessions()
        )
        assert any(n.startswith("Muscular endurance session omitted") for n in plan.notes)
        # Sunday is a rest day and Friday holds the tempo run
        assert "Back-to-back run omitted: no free training day next to the long run" in plan.notes

    def test_six_day_intensity_week_notes_missing_me(
        self, generator, make_macro_week, cat1_athlete, race_100k, caplog
    ):
        # Mon-Sat: VO2 Tue, tempo Thu, long run Sat leave no spaced day
        with caplog.at_level("WARNING", logger="ultra_plan.training_plan.microcycle"):
            plan = generator.generate(
                make_macro_week(TrainingPhase.INTENSITY),
                cat1_athlete,
                race_100k,
                TrainingConstraints(days_per_week=6),
            )
        assert "Muscular endurance session omitted" in " ".join(plan.notes)
        assert "no valid muscular endurance day" in caplog.text

    def test_recovery_intensity_week_has_no_key_sessions(
        self, generator, make_macro_week, cat1_athlete, race_100k, five_day_constraints
    ):
        plan = generator.generate(
            make_macro_week(TrainingPhase.INTENSITY, week_number=3),
            cat1_athlete,
            race_100k,
            five_day_constraints,
            is_recovery_week=True,
            previous_week_mileage=40,
        )
        assert plan.is_recovery_week
        assert plan.target_mileage == 32
        key = [
            s.workout_type
            for _, s in plan.iter_sessions()
            if s.is_key_workout and s.workout_type != WorkoutType.LONG
        ]
        assert key == []
        assert any("Recovery week" in n for n in plan.notes)

    def test_taper_week(
        self, generator, make_macro_week, cat1_athlete, race_100k, five_day_constraints
    ):
        plan = generator.generate(
            make_macro_week(TrainingPhase.TAPER),
            cat1_athlete,
            race_100k,
            five_day_constraints,
        )
        long_run = plan.get_day(DayOfWeek.SAT).sessions[0]
        assert long_run.title == "Taper Long Run"
        assert long_run.duration_min == 75
        assert long_run.origin == SessionOrigin.TAPER_PLAN
        assert plan.get_day(DayOfWeek.TUE).sessions[0].library_id == "taper_sharpener"
        core = [s for _, s in plan.iter_sessions() if s.workout_type == WorkoutType.CORE_STABILITY]
        assert len(core) == 1

    @pytest.mark.parametrize("days_per_week", range(1, 8))
    @pytest.mark.parametrize(
        "phase",
        [
            TrainingPhase.TRANSITION,
            TrainingPhase.BASE,
            TrainingPhase.INTENSITY,
            TrainingPhase.SPECIFICITY,
            TrainingPhase.TAPER,
        ],
    )
    def test_never_schedules_on_rest_days(
        self, generator, make_macro_week, cat2_athlete, race_100k, days_per_week, phase
    ):
        constraints = TrainingConstraints(days_per_week=days_per_week)
        plan = generator.generate(make_macro_week(phase), cat2_athlete, race_100k, constraints)
        for day in resolve_rest_days(constraints):
            assert plan.get_day(day).sessions == []
        long_runs = [s for _, s in plan.iter_sessions() if s.workout_type == WorkoutType.LONG]
        assert len(long_runs) == 1

    def test_explicit_rest_days_move_long_run(
        self, generator, make_macro_week, cat1_athlete, race_100k
    ):
        constraints = TrainingConstraints(
            days_per_week=5, rest_days=[DayOfWeek.FRI, DayOfWeek.SAT]
        )
        plan = generator.generate(make_macro_week(), cat1_athlete, race_100k, constraints)
        assert _types(plan, DayOfWeek.SUN)[0] == WorkoutType.LONG
        assert plan.get_day(DayOfWeek.SAT).sessions == []

    def test_zero_training_days(self, generator, make_macro_week, cat1_athlete, race_100k):
        plan = generator.generate(
            make_macro_week(), cat1_athlete, race_100k, TrainingConstraints(days_per_week=0)
        )
        assert all(d.sessions == [] for d in plan.days)
        assert "No training day available for the long run" in plan.notes

    def test_trail_surface_applied(
        self, generator, make_macro_week, cat1_athlete, race_100k, five_day_constraints
    ):
        athlete = cat1_athlete.model_copy(
            update={"surface_preference": SurfacePreference.TRAIL}
        )
        plan = generator.generate(make_macro_week(), athlete, race_100k, five_day_constraints)
        long_run = plan.get_day(DayOfWeek.SAT).sessions[0]
        assert "Trail Running" in long_run.notes
        assert long_run.distance_km == 10
        assert long_run.duration_min > 60


@pytest.mark.unit
class TestRaceWeek:
    @pytest.fixture
    def race_week(self, make_macro_week):
        return make_macro_week(TrainingPhase.GOAL, week_number=20, start=date(2027, 3, 1))

    def test_race_inserted_and_locked(
        self, generator, race_week, cat1_athlete, race_100k, five_day_constraints
    ):
        plan = generator.generate(race_week, cat1_athlete, race_100k, five_day_constraints)
        saturday = plan.get_day(DayOfWeek.SAT)
        assert len(saturday.sessions) == 1
        race = saturday.sessions[0]
        assert race.origin == SessionOrigin.RACE
        assert race.locked
        assert race.lock_reason == "Race day"
        assert race.intensity == IntensityLevel.HIGH
        assert race.distance_km == 100
        # 100 km at 6 min/km plus 10 min per 100 m of climbing
        assert race.duration_min == 1050
        assert saturday.rationale == "Race day"

    def test_race_replaces_long_run(
        self, generator, race_week, cat1_athlete, race_100k, five_day_constraints
    ):
        plan = generator.generate(race_week, cat1_athlete, race_100k, five_day_constraints)
        assert not any(s.workout_type == WorkoutType.LONG for _, s in plan.iter_sessions())
        assert any("Race week" in n for n in plan.notes)

    def test_expected_time_used(
        self, generator, race_week, cat1_athlete, race_100k, five_day_constraints
    ):
        race = race_100k.model_copy(update={"expected_time_min": 840})
        plan = generator.generate(race_week, cat1_athlete, race, five_day_constraints)
        assert plan.get_day(DayOfWeek.SAT).sessions[0].duration_min == 840

    @pytest.mark.parametrize(
        "priority,sunday_sessions", [(RacePriority.A, 0), (RacePriority.B, 1)]
    )
    def test_rest_after_a_race(
        self, generator, race_week, cat1_athlete, race_100k, priority, sunday_sessions
    ):
        race = race_100k.model_copy(update={"priority": priority})
        plan = generator.generate(
            race_week, cat1_athlete, race, TrainingConstraints(days_per_week=7)
        )
        assert len(plan.get_day(DayOfWeek.SUN).sessions) == sunday_sessions

    def test_race_on_rest_day_noted(self, generator, race_week, cat1_athlete, race_100k):
        constraints = TrainingConstraints(days_per_week=5, rest_days=[DayOfWeek.SAT])
        plan = generator.generate(race_week, cat1_athlete, race_100k, constraints)
        assert plan.get_day(DayOfWeek.SAT).sessions[0].origin == SessionOrigin.RACE
        assert any("configured rest day" in n for n in plan.notes)


@pytest.mark.unit
class TestInjectedCatalog:
    def test_custom_catalog_is_used(
        self, make_macro_week, cat1_athlete, race_100k, five_day_constraints, mocker
    ):
        catalog = WorkoutCatalog()
        spy = mocker.spy(catalog, "get_by_id")
        generator = MicrocycleGenerator(catalog=catalog)
        generator.generate(make_macro_week(), cat1_athlete, race_100k, five_day_constraints)
        assert spy.call_count > 0

    def test_category_multiplier(self, generator, cat1_athlete):
        cat2 = cat1_athlete.model_copy(update={"category": AthleteCategory.CAT2})
        assert generator.target_mileage(cat2, TrainingPhase.SPECIFICITY) == 46


@pytest.mark.unit
class TestRaceSpecificLongRun:
    @pytest.fixture
    def make_race(self):
        def _make(distance_km: float, race_type: RaceType) -> RaceEvent:
            return RaceEvent(
                name="Goal",
                race_date=date(2027, 6, 5),
                distance_km=distance_km,
                race_type=race_type,
            )

        return _make

    @pytest.mark.parametrize(
        "phase,mileage,expected",
        [
            (TrainingPhase.BASE, 34, 10.0),
            (TrainingPhase.INTENSITY, 60, 20.0),
            (TrainingPhase.SPECIFICITY, 80, 32.0),
        ],
    )
    def test_fraction_of_weekly_volume(self, generator, race_100k, phase, mileage, expected):
        assert generator.long_run_limit(race_100k, phase, mileage) == expected

    @pytest.mark.parametrize(
        "phase", [TrainingPhase.TRANSITION, TrainingPhase.TAPER, TrainingPhase.GOAL]
    )
    def test_no_cap_outside_build_phases(self, generator, race_100k, phase):
        assert generator.long_run_limit(race_100k, phase, 80) is None

    def test_capped_at_share_of_race_distance(self, generator, make_race):
        marathon = make_race(42.2, RaceType.MARATHON)
        # 35% of 100 km would be 35 km; three quarters of 42.2 km wins
        assert generator.long_run_limit(marathon, TrainingPhase.SPECIFICITY, 100) == 32.0

    def test_hundred_mile_specificity_cap(self, generator, make_race):
        race = make_race(161, RaceType.ULTRA_100M)
        assert generator.long_run_limit(race, TrainingPhase.SPECIFICITY, 140) == 55.0
        # 140 * 0.45 * 0.85 = 53.55
        assert generator.long_run_limit(race, TrainingPhase.INTENSITY, 140) == 54.0

    @pytest.mark.parametrize(
        "race_type,distance_km,category,expected",
        [
            (RaceType.ULTRA_100K, 100, AthleteCategory.CAT1, True),
            (RaceType.ULTRA_50M, 80.5, AthleteCategory.CAT1, True),
            (RaceType.ULTRA_50M, 70, AthleteCategory.CAT1, False),
            (RaceType.ULTRA_50M, 70, AthleteCategory.CAT2, True),
            (RaceType.ULTRA_50K, 50, AthleteCategory.CAT2, False),
            (RaceType.MARATHON, 42.2, AthleteCategory.CAT2, False),
        ],
    )
    def test_back_to_back_by_race(
        self, generator, make_race, cat1_athlete, race_type, distance_km, category, expected
    ):
        athlete = cat1_athlete.model_copy(update={"category": category})
        race = make_race(distance_km, race_type)
        assert (
            generator.should_include_back_to_back(race, athlete, TrainingPhase.SPECIFICITY)
            is expected
        )

    @pytest.mark.parametrize(
        "phase,is_recovery_week,expected",
        [
            (TrainingPhase.BASE, False, False),
            (TrainingPhase.INTENSITY, False, True),
            (TrainingPhase.SPECIFICITY, False, True),
            (TrainingPhase.SPECIFICITY, True, False),
            (TrainingPhase.TAPER, False, False),
        ],
    )
    def test_back_to_back_by_phase(
        self, generator, race_100k, cat1_athlete, phase, is_recovery_week, expected
    ):
        assert (
            generator.should_include_back_to_back(
                race_100k, cat1_athlete, phase, is_recovery_week
            )
            is expected
        )

    def test_specificity_week_pairs_long_days(
        self, generator, make_macro_week, cat1_athlete, race_100k
    ):
        plan = generator.generate(
            make_macro_week(TrainingPhase.SPECIFICITY),
            cat1_athlete,
            race_100k,
            TrainingConstraints(days_per_week=6),
        )
        long_run = plan.get_day(DayOfWeek.SAT).sessions[0]
        assert long_run.workout_type == WorkoutType.LONG
        assert long_run.distance_km <= 16
        # Sunday is a rest day, so the second long day comes first
        friday = plan.get_day(DayOfWeek.FRI).sessions
        assert [s.workout_type for s in friday][0] == WorkoutType.BACK_TO_BACK
        assert friday[0].distance_km == round(long_run.distance_km * 0.6, 1)
        assert plan.get_day(DayOfWeek.FRI).rationale == "Back-to-back long day"
        assert plan.get_day(DayOfWeek.SUN).sessions == []

    def test_seven_day_week_uses_following_day(
        self, generator, make_macro_week, cat2_athlete, race_100k
    ):
        plan = generator.generate(
            make_macro_week(TrainingPhase.SPECIFICITY),
            cat2_athlete,
            race_100k,
            TrainingConstraints(days_per_week=7),
        )
        assert _types(plan, DayOfWeek.SUN)[0] == WorkoutType.BACK_TO_BACK

    def test_base_week_has_single_long_day(
        self, generator, make_macro_week, cat2_athlete, race_100k
    ):
        plan = generator.generate(
            make_macro_week(TrainingPhase.BASE),
            cat2_athlete,
            race_100k,
            TrainingConstraints(days_per_week=7),
        )
        assert all(s.workout_type != WorkoutType.BACK_TO_BACK for _, s in plan.iter_sessions())
