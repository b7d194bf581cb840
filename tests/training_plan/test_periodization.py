"""Tests for macrocycle phase allocation."""

from datetime import date, timedelta

import pytest

from ultra_plan.training_plan.models import (
    PHASE_ORDER,
    RaceEvent,
    RaceType,
    RecoveryRatio,
    TrainingPhase,
)
from ultra_plan.training_plan.periodization import (
    MacrocyclePlanner,
    adjust_macrocycle,
    get_current_week,
    get_week_phase,
    get_weeks_to_race,
    is_in_taper,
    is_recovery_week,
    monday_of_week,
    weeks_between,
)
from ultra_plan.utils.error_handling import (
    InsufficientTrainingTimeError,
    InvalidPlanInputError,
)


@pytest.fixture
def planner():
    return MacrocyclePlanner()


@pytest.fixture
def macrocycle(planner, cat1_athlete, race_100k, plan_start):
    return planner.build(cat1_athlete, race_100k, start_date=plan_start)


@pytest.fixture
def gap_athlete(cat1_athlete):
    """Cat1 athlete with a 17.6% AeT/LT gap."""
    return cat1_athlete.model_copy(
        update={"aerobic_threshold_hr": 140, "lactate_threshold_hr": 170}
    )


def _race(race_date: date, distance_km: float) -> RaceEvent:
    return RaceEvent(name="Goal", race_date=race_date, distance_km=distance_km)


def _breakdown(plan) -> tuple[int, ...]:
    return tuple(plan.phase_breakdown[p] for p in PHASE_ORDER)


@pytest.mark.unit
class TestDateHelpers:
    @pytest.mark.parametrize("offset", range(7))
    def test_monday_of_week(self, plan_start, offset):
        assert monday_of_week(plan_start + timedelta(days=offset)) == plan_start

    def test_weeks_between_floors(self, plan_start):
        assert weeks_between(plan_start, plan_start + timedelta(days=13)) == 1
        assert weeks_between(plan_start, plan_start + timedelta(days=14)) == 2


@pytest.mark.unit
class TestIsRecoveryWeek:
    @pytest.mark.parametrize(
        "week,phase,ratio,expected",
        [
            (3, TrainingPhase.BASE, RecoveryRatio.TWO_TO_ONE, True),
            (2, TrainingPhase.BASE, RecoveryRatio.TWO_TO_ONE, False),
            (4, TrainingPhase.INTENSITY, RecoveryRatio.THREE_TO_ONE, True),
            (3, TrainingPhase.INTENSITY, RecoveryRatio.THREE_TO_ONE, False),
            (6, TrainingPhase.TAPER, RecoveryRatio.TWO_TO_ONE, False),
            (6, TrainingPhase.TRANSITION, RecoveryRatio.TWO_TO_ONE, False),
            (8, TrainingPhase.GOAL, RecoveryRatio.THREE_TO_ONE, False),
        ],
    )
    def test_cadence(self, week, phase, ratio, expected):
        assert is_recovery_week(week, phase, ratio) is expected


@pytest.mark.unit
class TestMacrocyclePlanner:
    def test_nineteen_week_cat1_plan(self, macrocycle, plan_start):
        assert macrocycle.total_weeks == 19
        assert _breakdown(macrocycle) == (0, 8, 4, 4, 2, 1)
        assert macrocycle.start_date == plan_start
        assert any("Cat1" in note for note in macrocycle.notes)

    def test_weeks_cover_plan_in_phase_order(self, macrocycle, race_100k):
        weeks = macrocycle.weeks
        assert [w.week_number for w in weeks] == list(range(1, 20))
        assert weeks[0].start_date == macrocycle.start_date
        for prev, week in zip(weeks, weeks[1:]):
            assert week.start_date == prev.end_date + timedelta(days=1)
            assert PHASE_ORDER.index(week.phase) >= PHASE_ORDER.index(prev.phase)
        assert weeks[-1].end_date <= race_100k.race_date
        assert weeks[-1].phase == TrainingPhase.GOAL

    def test_phase_week_restarts_per_phase(self, macrocycle):
        first_intensity = next(w for w in macrocycle.weeks if w.phase == TrainingPhase.INTENSITY)
        assert first_intensity.week_number == 9
        assert first_intensity.phase_week == 1

    def test_start_moves_back_to_monday(self, planner, cat1_athlete, race_100k, plan_start):
        plan = planner.build(
            cat1_athlete, race_100k, start_date=plan_start + timedelta(days=2)
        )
        assert plan.start_date == plan_start

    def test_today_used_without_start(self, planner, cat1_athlete, race_100k, plan_start):
        plan = planner.build(cat1_athlete, race_100k, today=plan_start)
        assert plan.total_weeks == 19

    def test_cat2_has_shorter_minimum_base(self, planner, cat2_athlete, race_100k, plan_start):
        plan = planner.build(cat2_athlete, race_100k, start_date=plan_start)
        assert _breakdown(plan) == (0, 7, 5, 4, 2, 1)

    def test_long_plan_with_specificity_ideal(self, planner, cat1_athlete, plan_start):
        # 27 weeks to a 100 mile race
        plan = planner.build(
            cat1_athlete, _race(date(2027, 5, 1), 160), start_date=plan_start
        )
        assert _breakdown(plan) == (0, 11, 5, 7, 3, 1)

    def test_short_plan_split(self, planner, cat1_athlete, plan_start):
        # 8 weeks to a 50K: category minimums cannot all fit
        plan = planner.build(
            cat1_athlete, _race(date(2026, 12, 19), 50), start_date=plan_start
        )
        assert plan.total_weeks == 8
        assert _breakdown(plan) == (0, 3, 1, 1, 2, 1)

    def test_transition_after_race(self, planner, cat1_athlete, race_100k, plan_start):
        plan = planner.build(
            cat1_athlete, race_100k, start_date=plan_start, coming_from_race=True
        )
        # Minimums do not fit after the transition block: short-plan split
        assert _breakdown(plan) == (2, 6, 4, 4, 2, 1)
        assert plan.weeks[0].phase == TrainingPhase.TRANSITION
        assert any("transition" in note for note in plan.notes)

    def test_aerobic_deficiency_extends_base(self, planner, gap_athlete, plan_start):
        # 27 weeks to a 100 mile race; the 17.6% gap asks for 4 more base weeks
        plan = planner.build(gap_athlete, _race(date(2027, 5, 1), 160), start_date=plan_start)
        assert _breakdown(plan) == (0, 15, 4, 4, 3, 1)
        assert "Extended base phase by 4 week(s) to address 17.6% AeT/LT gap" in plan.notes

    def test_aerobic_deficiency_without_room(self, planner, gap_athlete, race_100k, plan_start):
        plan = planner.build(gap_athlete, race_100k, start_date=plan_start)
        assert _breakdown(plan) == (0, 8, 4, 4, 2, 1)
        assert any("no room to extend base" in note for note in plan.notes)

    def test_half_marathon_after_race_stays_inside_window(
        self, planner, cat1_athlete, plan_start
    ):
        race = RaceEvent(
            name="Half",
            race_type=RaceType.HALF_MARATHON,
            distance_km=21.1,
            race_date=plan_start + timedelta(weeks=17),
        )
        plan = planner.build(cat1_athlete, race, start_date=plan_start, coming_from_race=True)
        assert _breakdown(plan) == (2, 7, 3, 3, 1, 1)
        assert len(plan.weeks) == 17
        assert plan.weeks[-1].end_date <= race.race_date

    @pytest.mark.parametrize("race_type", list(RaceType))
    @pytest.mark.parametrize("athlete_name", ["cat1_athlete", "cat2_athlete", "gap_athlete"])
    @pytest.mark.parametrize("coming_from_race", [False, True])
    def test_every_window_is_covered_once(
        self, request, planner, plan_start, race_type, athlete_name, coming_from_race
    ):
        athlete = request.getfixturevalue(athlete_name)
        for weeks_out in range(8, 41):
            race = RaceEvent(
                name="Goal",
                race_type=race_type,
                distance_km=50,
                race_date=plan_start + timedelta(weeks=weeks_out, days=5),
            )
            plan = planner.build(
                athlete, race, start_date=plan_start, coming_from_race=coming_from_race
            )
            context = (race_type, weeks_out, plan.phase_breakdown)
            assert all(v >= 0 for v in plan.phase_breakdown.values()), context
            assert sum(plan.phase_breakdown.values()) == plan.total_weeks, context
            assert len(plan.weeks) == plan.total_weeks, context
            assert [w.week_number for w in plan.weeks] == list(range(1, weeks_out + 1))
            assert plan.weeks[-1].end_date <= race.race_date, context

    @pytest.mark.parametrize("weeks_out", [8, 12, 19, 27, 40])
    def test_breakdown_sums_to_total(self, planner, cat1_athlete, plan_start, weeks_out):
        race = _race(plan_start + timedelta(weeks=weeks_out, days=5), 100)
        plan = planner.build(cat1_athlete, race, start_date=plan_start)
        assert sum(plan.phase_breakdown.values()) == plan.total_weeks
        assert all(v >= 0 for v in plan.phase_breakdown.values())
        assert len(plan.weeks) == plan.total_weeks

    def test_insufficient_time(self, planner, cat1_athlete, plan_start):
        with pytest.raises(InsufficientTrainingTimeError) as exc_info:
            planner.build(
                cat1_athlete, _race(date(2026, 12, 12), 50), start_date=plan_start
            )
        assert exc_info.value.total_weeks == 7
        assert exc_info.value.minimum_weeks == 8

    def test_race_before_start(self, planner, cat1_athlete, plan_start):
        with pytest.raises(InvalidPlanInputError, match="before plan start"):
            planner.build(cat1_athlete, _race(date(2026, 9, 1), 50), start_date=plan_start)

    def test_missing_start(self, planner, cat1_athlete, race_100k):
        with pytest.raises(InvalidPlanInputError):
            planner.build(cat1_athlete, race_100k)


@pytest.mark.unit
class TestMacrocycleQueries:
    def test_week_lookup(self, macrocycle):
        assert get_week_phase(macrocycle, 9).phase == TrainingPhase.INTENSITY
        assert get_week_phase(macrocycle, 99) is None

    def test_current_week(self, macrocycle, plan_start):
        assert get_current_week(macrocycle, plan_start + timedelta(days=2)).week_number == 1
        assert get_current_week(macrocycle, plan_start - timedelta(days=1)) is None

    def test_taper_and_weeks_to_race(self, macrocycle, plan_start):
        assert not is_in_taper(macrocycle, plan_start)
        assert is_in_taper(macrocycle, date(2027, 2, 8))
        assert get_weeks_to_race(macrocycle, plan_start) == 18
        assert get_weeks_to_race(macrocycle, date(2030, 1, 1)) == 0


@pytest.mark.unit
class TestAdjustMacrocycle:
    @pytest.fixture
    def long_plan(self, planner, cat1_athlete, plan_start):
        # 27 weeks to a 100 mile race: (0, 11, 5, 7, 3, 1)
        return planner.build(cat1_athlete, _race(date(2027, 5, 1), 160), start_date=plan_start)

    def test_extend_base_limited_by_intensity_minimum(self, long_plan):
        adjusted = adjust_macrocycle(long_plan, extend_base=3)
        assert _breakdown(adjusted) == (0, 12, 4, 7, 3, 1)
        assert len(adjusted.weeks) == long_plan.total_weeks
        assert "base +1" in adjusted.notes[-1]

    def test_early_taper(self, long_plan):
        adjusted = adjust_macrocycle(long_plan, early_taper=True)
        assert _breakdown(adjusted) == (0, 11, 5, 6, 4, 1)

    def test_no_change_possible(self, macrocycle):
        adjusted = adjust_macrocycle(macrocycle, early_taper=True, shorten_intensity=1)
        assert _breakdown(adjusted) == _breakdown(macrocycle)
        assert "no change possible" in adjusted.notes[-1]

    def test_shorten_intensity(self, long_plan):
        adjusted = adjust_macrocycle(long_plan, shorten_intensity=1)
        assert _breakdown(adjusted) == (0, 11, 4, 8, 3, 1)
