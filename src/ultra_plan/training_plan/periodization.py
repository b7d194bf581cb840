"""Macrocycle planner: phase allocation from start date to race.

Phases always run transition → base → intensity → specificity → taper → goal.
Transition, taper and goal lengths are fixed up front; the remainder is
split between base, intensity and specificity by banded rules.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from ultra_plan.training_plan.athlete_profiler import assess_aerobic_deficiency
from ultra_plan.training_plan.models import (
    PHASE_ORDER,
    AthleteCategory,
    AthleteProfile,
    MacrocyclePlan,
    MacrocycleWeek,
    RaceEvent,
    RaceType,
    RecoveryRatio,
    TrainingPhase,
)
from ultra_plan.training_plan.policy import DEFAULT_MACROCYCLE_POLICY, MacrocyclePolicy
from ultra_plan.utils.error_handling import (
    InsufficientTrainingTimeError,
    InvalidPlanInputError,
)

logger = logging.getLogger(__name__)


def monday_of_week(d: date) -> date:
    """Monday of the ISO week containing ``d``."""
    return d - timedelta(days=d.weekday())


def weeks_between(start: date, end: date) -> int:
    """Whole weeks between two dates (floor of days / 7)."""
    return (end - start).days // 7


def is_recovery_week(
    week_number: int, phase: TrainingPhase, ratio: RecoveryRatio
) -> bool:
    """Whether a macrocycle week is a scheduled recovery week.

    Every 3rd week for 2:1 and every 4th week for 3:1; never in transition,
    taper or goal weeks.
    """
    if phase in (TrainingPhase.TRANSITION, TrainingPhase.TAPER, TrainingPhase.GOAL):
        return False
    return week_number % ratio.cycle_length == 0


class MacrocyclePlanner:
    """Allocates the weeks before a race into periodization phases."""

    def __init__(self, policy: MacrocyclePolicy = DEFAULT_MACROCYCLE_POLICY):
        self.policy = policy

    def build(
        self,
        athlete: AthleteProfile,
        race: RaceEvent,
        start_date: date | None = None,
        today: date | None = None,
        coming_from_race: bool = False,
    ) -> MacrocyclePlan:
        """Build the macrocycle for a race.

        Args:
            athlete: Classified athlete profile
            race: Goal race
            start_date: Plan start; moved back to its Monday
            today: Current date, used for the start when start_date is omitted
            coming_from_race: Include a transition block after a prior race

        Returns:
            MacrocyclePlan covering every whole week up to the race

        Raises:
            InvalidPlanInputError: If no start can be determined or the race is
                before the start
            InsufficientTrainingTimeError: If fewer than the minimum weeks remain
        """
        if start_date is None and today is None:
            raise InvalidPlanInputError(
                "A start date or the current date is required to build a macrocycle",
                suggestion="Pass start_date or today explicitly",
            )
        start = monday_of_week(start_date if start_date is not None else today)

        if race.race_date < start:
            raise InvalidPlanInputError(
                f"Race date {race.race_date} is before plan start {start}",
                suggestion="Check the race date and the plan start date",
            )

        total_weeks = weeks_between(start, race.race_date)
        if total_weeks < self.policy.minimum_weeks:
            raise InsufficientTrainingTimeError(total_weeks, self.policy.minimum_weeks)

        breakdown, extended = self._allocate(total_weeks, athlete, race, coming_from_race)
        weeks = build_week_schedule(start, breakdown)

        notes: list[str] = []
        if coming_from_race:
            notes.append("Plan includes transition phase for post-race recovery")
        if athlete.category == AthleteCategory.CAT1:
            notes.append(
                "Cat1 athlete: Conservative progression with frequent recovery weeks"
            )
        aerobic = assess_aerobic_deficiency(
            athlete.aerobic_threshold_hr, athlete.lactate_threshold_hr
        )
        if aerobic.has_deficiency and extended:
            notes.append(
                f"Extended base phase by {extended} week(s) to address "
                f"{aerobic.gap_percentage:.1f}% AeT/LT gap"
            )
        elif aerobic.has_deficiency:
            notes.append(
                f"{aerobic.gap_percentage:.1f}% AeT/LT gap: no room to extend base "
                "beyond the phase minimums"
            )

        logger.info(
            f"Built macrocycle for {race.name}: {total_weeks} weeks "
            + ", ".join(f"{p.value}={breakdown[p]}" for p in PHASE_ORDER if breakdown[p])
        )

        return MacrocyclePlan(
            weeks=weeks,
            total_weeks=total_weeks,
            phase_breakdown=breakdown,
            start_date=start,
            race_date=race.race_date,
            notes=notes,
        )

    def taper_weeks(self, race_type: RaceType | None) -> int:
        if race_type is None:
            return self.policy.default_taper_weeks
        return self.policy.taper_weeks.get(race_type, self.policy.default_taper_weeks)

    def allocate_phases(
        self,
        total_weeks: int,
        athlete: AthleteProfile,
        race: RaceEvent,
        coming_from_race: bool = False,
    ) -> dict[TrainingPhase, int]:
        """Split total weeks into phase lengths.

        Allocation bands on the weeks left after transition, taper and goal:
        - < 12: base 40% (category minimum), intensity 30% (min 4), rest specificity
        - < 20: base 45% (category minimum), intensity 6, rest specificity
        - >= 20: base 50% (max 16), intensity 25% (max 10), rest specificity

        Specificity never starts below its minimum; over-allocation is trimmed
        back by ``_reconcile``.

        Args:
            total_weeks: Whole weeks between start and race
            athlete: Athlete profile (category and threshold heart rates)
            race: Goal race (race type)
            coming_from_race: Reserve transition weeks

        Returns:
            Weeks per phase; values are non-negative and sum to total_weeks

        Raises:
            InsufficientTrainingTimeError: If transition, taper and goal alone
                do not fit in total_weeks
        """
        return self._allocate(total_weeks, athlete, race, coming_from_race)[0]

    def _allocate(
        self,
        total_weeks: int,
        athlete: AthleteProfile,
        race: RaceEvent,
        coming_from_race: bool,
    ) -> tuple[dict[TrainingPhase, int], int]:
        """Phase lengths plus the number of base weeks added for an aerobic gap."""
        p = self.policy
        transition = p.transition_weeks if coming_from_race else 0
        taper = self.taper_weeks(race.race_type)
        goal = p.goal_weeks
        remaining = total_weeks - transition - taper - goal
        if remaining < 0:
            raise InsufficientTrainingTimeError(total_weeks, transition + taper + goal)

        min_base = p.min_base_weeks[athlete.category]

        if remaining < 12:
            base = max(min_base, int(remaining * 0.4))
            intensity = max(p.min_intensity_weeks, int(remaining * 0.3))
        elif remaining < 20:
            base = max(min_base, int(remaining * 0.45))
            intensity = p.default_intensity_weeks
        else:
            base = min(p.max_base_weeks, max(min_base, int(remaining * 0.5)))
            intensity = min(p.max_intensity_weeks, int(remaining * 0.25))
        specificity = max(p.min_specificity_weeks, remaining - base - intensity)

        base, intensity, specificity = self._reconcile(
            remaining, base, intensity, specificity, min_base
        )

        # Aerobic base extension comes out of intensity first, then specificity
        extension = assess_aerobic_deficiency(
            athlete.aerobic_threshold_hr, athlete.lactate_threshold_hr
        ).extend_base_weeks
        wanted = max(0, min(extension, p.max_base_weeks - base))
        from_intensity = min(wanted, max(0, intensity - p.min_intensity_weeks))
        from_specificity = min(
            wanted - from_intensity, max(0, specificity - p.min_specificity_weeks)
        )
        intensity -= from_intensity
        specificity -= from_specificity
        base += from_intensity + from_specificity

        ideal = p.specificity_ideals.get(race.race_type) if race.race_type else None
        if ideal is not None:
            specificity = max(p.min_specificity_weeks, min(specificity, ideal))
            base, intensity, specificity = self._reconcile(
                remaining, base, intensity, specificity, min_base
            )

        breakdown = {
            TrainingPhase.TRANSITION: transition,
            TrainingPhase.BASE: base,
            TrainingPhase.INTENSITY: intensity,
            TrainingPhase.SPECIFICITY: specificity,
            TrainingPhase.TAPER: taper,
            TrainingPhase.GOAL: goal,
        }
        assert all(weeks >= 0 for weeks in breakdown.values()), breakdown
        return breakdown, from_intensity + from_specificity

    def _reconcile(
        self, remaining: int, base: int, intensity: int, specificity: int, min_base: int
    ) -> tuple[int, int, int]:
        """Make base + intensity + specificity equal the remaining weeks."""
        p = self.policy
        diff = remaining - (base + intensity + specificity)
        if diff >= 0:
            return base + diff, intensity, specificity

        over = -diff
        cut = min(over, max(0, specificity - p.min_specificity_weeks))
        specificity -= cut
        over -= cut
        cut = min(over, max(0, intensity - p.min_intensity_weeks))
        intensity -= cut
        over -= cut
        cut = min(over, max(0, base - min_base))
        base -= cut
        over -= cut
        if over == 0:
            return base, intensity, specificity

        # Minimums cannot all fit: fall back to the short-plan split
        intensity = int(remaining * p.short_plan_split)
        specificity = int(remaining * p.short_plan_split)
        base = remaining - intensity - specificity
        logger.debug(
            f"Short-plan split for {remaining} weeks: base={base}, "
            f"intensity={intensity}, specificity={specificity}"
        )
        return base, intensity, specificity


def build_week_schedule(
    start: date, breakdown: dict[TrainingPhase, int]
) -> list[MacrocycleWeek]:
    """Walk forward from the start, 7 days per week, phase by phase."""
    weeks: list[MacrocycleWeek] = []
    current = start
    week_number = 1
    for phase in PHASE_ORDER:
        for phase_week in range(1, breakdown.get(phase, 0) + 1):
            weeks.append(
                MacrocycleWeek(
                    week_number=week_number,
                    phase=phase,
                    start_date=current,
                    end_date=current + timedelta(days=6),
                    phase_week=phase_week,
                )
            )
            current += timedelta(days=7)
            week_number += 1
    return weeks


def get_week_phase(plan: MacrocyclePlan, week_number: int) -> MacrocycleWeek | None:
    return plan.get_week(week_number)


def get_current_week(plan: MacrocyclePlan, today: date) -> MacrocycleWeek | None:
    """Macrocycle week containing ``today``, if any."""
    for week in plan.weeks:
        if week.start_date <= today <= week.end_date:
            return week
    return None


def is_in_taper(plan: MacrocyclePlan, today: date) -> bool:
    current = get_current_week(plan, today)
    return current is not None and current.phase == TrainingPhase.TAPER


def get_weeks_to_race(plan: MacrocyclePlan, today: date) -> int:
    """Weeks from the current week to the goal week (0 when outside the plan)."""
    current = get_current_week(plan, today)
    if current is None:
        return 0
    goal_week = next((w for w in plan.weeks if w.phase == TrainingPhase.GOAL), None)
    if goal_week is None:
        return 0
    return goal_week.week_number - current.week_number


def adjust_macrocycle(
    plan: MacrocyclePlan,
    extend_base: int = 0,
    shorten_intensity: int = 0,
    early_taper: bool = False,
    policy: MacrocyclePolicy = DEFAULT_MACROCYCLE_POLICY,
) -> MacrocyclePlan:
    """Shift weeks between phases while keeping the total week count.

    Args:
        plan: Existing macrocycle
        extend_base: Weeks to move from intensity to base
        shorten_intensity: Weeks to move from intensity to specificity
        early_taper: Move one week from specificity to taper
        policy: Phase minimums

    Returns:
        A new MacrocyclePlan with rebuilt weeks and an adjustment note
    """
    breakdown = dict(plan.phase_breakdown)
    for phase in PHASE_ORDER:
        breakdown.setdefault(phase, 0)
    changes: list[str] = []

    if extend_base > 0:
        spare = breakdown[TrainingPhase.INTENSITY] - policy.min_intensity_weeks
        moved = min(extend_base, max(0, spare))
        breakdown[TrainingPhase.INTENSITY] -= moved
        breakdown[TrainingPhase.BASE] += moved
        if moved:
            changes.append(f"base +{moved}")

    if shorten_intensity > 0:
        moved = min(
            shorten_intensity,
            max(0, breakdown[TrainingPhase.INTENSITY] - policy.min_intensity_weeks),
        )
        breakdown[TrainingPhase.INTENSITY] -= moved
        breakdown[TrainingPhase.SPECIFICITY] += moved
        if moved:
            changes.append(f"intensity -{moved}")

    if early_taper and breakdown[TrainingPhase.SPECIFICITY] > policy.min_specificity_weeks:
        breakdown[TrainingPhase.SPECIFICITY] -= 1
        breakdown[TrainingPhase.TAPER] += 1
        changes.append("taper +1")

    note = "Plan adjusted based on athlete progress"
    if changes:
        note += f" ({', '.join(changes)})"
    else:
        note += " (no change possible within phase minimums)"
    logger.info(note)

    return plan.model_copy(
        update={
            "weeks": build_week_schedule(plan.start_date, breakdown),
            "phase_breakdown": breakdown,
            "notes": [*plan.notes, note],
        }
    )
