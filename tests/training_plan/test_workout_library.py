"""Tests for the workout catalog."""

import pytest

from ultra_plan.training_plan.models import (
    AthleteCategory,
    RaceType,
    Session,
    SessionOrigin,
    TrainingPhase,
    WorkoutType,
)
from ultra_plan.training_plan.workout_library import (
    DEFAULT_WORKOUTS,
    Prerequisites,
    WorkoutCatalog,
    WorkoutTemplate,
    meets_prerequisites,
)


@pytest.fixture
def catalog():
    return WorkoutCatalog()


def _template(entry_id: str, **tags) -> WorkoutTemplate:
    return WorkoutTemplate(
        id=entry_id,
        phases=tags.pop("phases", (TrainingPhase.BASE,)),
        template=Session(workout_type=WorkoutType.EASY, title=entry_id),
        **tags,
    )


@pytest.mark.unit
class TestWorkoutCatalog:
    def test_default_catalog(self, catalog):
        assert len(catalog) == len(DEFAULT_WORKOUTS)
        assert catalog.get_by_id("long_run_easy").workout_type == WorkoutType.LONG
        assert catalog.get_by_id("missing") is None

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="unique"):
            WorkoutCatalog([_template("a"), _template("a")])

    def test_custom_entries(self):
        custom = WorkoutCatalog([_template("only")])
        assert [e.id for e in custom.entries] == ["only"]

    def test_query_all_criteria(self, catalog):
        matches = catalog.query(
            workout_type=WorkoutType.LONG,
            phase=TrainingPhase.SPECIFICITY,
            category=AthleteCategory.CAT1,
            race_type=RaceType.ULTRA_100K,
        )
        assert [e.id for e in matches] == ["long_run_mountain"]

    def test_query_keeps_catalog_order(self, catalog):
        ids = [e.id for e in catalog.by_type(WorkoutType.EASY)]
        assert ids[:3] == ["easy_short", "easy_medium", "easy_with_strides"]

    def test_query_flags(self, catalog):
        hard = catalog.query(is_hard=True)
        assert hard
        assert all(e.template.is_hard for e in hard)
        key = catalog.query(workout_type=WorkoutType.LONG, is_key_workout=True)
        assert {e.id for e in key} >= {"long_run_easy", "long_run_mountain"}

    def test_query_without_match(self, catalog):
        assert catalog.query(
            workout_type=WorkoutType.VO2, phase=TrainingPhase.BASE
        ) == []

    def test_convenience_filters(self, catalog):
        assert all(TrainingPhase.TAPER in e.phases for e in catalog.for_phase(TrainingPhase.TAPER))
        assert all(
            AthleteCategory.CAT2 in e.categories
            for e in catalog.for_category(AthleteCategory.CAT2)
        )
        skimo = [e.id for e in catalog.for_race(RaceType.SKIMO)]
        assert "skimo_uphill_intervals" in skimo
        assert "long_run_mountain" not in skimo

    def test_every_phase_has_a_rest_entry(self, catalog):
        for phase in TrainingPhase:
            assert catalog.query(workout_type=WorkoutType.REST, phase=phase)


@pytest.mark.unit
class TestWorkoutTemplate:
    def test_instantiate_returns_independent_copy(self, catalog):
        entry = catalog.get_by_id("hill_sprints_short")
        first = entry.instantiate(SessionOrigin.TAPER_PLAN)
        first.title = "Changed"
        first.structure.intervals[0].reps = 1

        second = entry.instantiate()
        assert second.title == "Short Hill Sprints"
        assert second.structure.intervals[0].reps == 8
        assert second.origin == SessionOrigin.BASE_PLAN
        assert first.origin == SessionOrigin.TAPER_PLAN
        assert second.library_id == "hill_sprints_short"


@pytest.mark.unit
class TestMeetsPrerequisites:
    def test_no_prerequisites(self):
        assert meets_prerequisites(_template("free"))

    @pytest.mark.parametrize(
        "weekly_km,months,expected",
        [
            (90, 24, True),
            (70, 24, False),
            (90, 12, False),
            (None, 24, False),
            (90, None, False),
        ],
    )
    def test_volume_and_training_age(self, weekly_km, months, expected):
        entry = _template(
            "gated",
            prerequisites=Prerequisites(min_weekly_km=80, min_training_age_months=16),
        )
        assert meets_prerequisites(entry, weekly_km, months) is expected
