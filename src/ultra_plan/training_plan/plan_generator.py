"""Training plan generator - orchestrates all components."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from ultra_plan.config import get_config
from ultra_plan.training_plan.athlete_profiler import (
    apply_classification,
    classify_athlete,
)
from ultra_plan.training_plan.conflict_resolution import ConflictResolver
from ultra_plan.training_plan.microcycle import MicrocycleGenerator
from ultra_plan.training_plan.models import (
    AthleteProfile,
    FlagSeverity,
    MacrocyclePlan,
    MacrocycleWeek,
    RaceEvent,
    TrainingConstraints,
    TrainingPhase,
    TrainingPlan,
    WeeklyPlan,
)
from ultra_plan.training_plan.periodization import MacrocyclePlanner, is_recovery_week
from ultra_plan.training_plan.plan_validator import validate_weekly_plan
from ultra_plan.training_plan.policy import (
    DEFAULT_CONFLICT_POLICY,
    DEFAULT_MACROCYCLE_POLICY,
    DEFAULT_SAFETY_LIMITS,
    DEFAULT_VOLUME_POLICY,
    ConflictPolicy,
    MacrocyclePolicy,
    SafetyLimits,
    VolumePolicy,
)
from ultra_plan.training_plan.safety import SafetyEvaluator
from ultra_plan.training_plan.workout_library import WorkoutCatalog
from ultra_plan.utils.error_handling import log_safety_result

logger = logging.getLogger(__name__)


class TrainingPlanGenerator:
    """Generates periodized training plans."""

    def __init__(
        self,
        catalog: WorkoutCatalog | None = None,
        macrocycle_policy: MacrocyclePolicy = DEFAULT_MACROCYCLE_POLICY,
        volume_policy: VolumePolicy = DEFAULT_VOLUME_POLICY,
        safety_limits: SafetyLimits = DEFAULT_SAFETY_LIMITS,
        conflict_policy: ConflictPolicy = DEFAULT_CONFLICT_POLICY,
    ) -> None:
        self.planner = MacrocyclePlanner(macrocycle_policy)
        self.microcycle = MicrocycleGenerator(catalog, volume_policy)
        self.safety = SafetyEvaluator(safety_limits)
        self.resolver = ConflictResolver(conflict_policy)

    def generate(
        self,
        athlete: AthleteProfile,
        race: RaceEvent,
        constraints: TrainingConstraints | None = None,
        start_date: date | None = None,
        today: date | None = None,
        coming_from_race: bool = False,
    ) -> TrainingPlan:
        """Generate a complete training plan.

        Steps:
        1. Classify the athlete when no starting volume is set
        2. Allocate phases (MacrocyclePlanner)
        3. Append the race week when the race falls after the last full week
        4. Fill each week with sessions (MicrocycleGenerator), chaining the
           previous week's mileage
        5. Resolve conflicts, validate and safety-check each week
        6. Return TrainingPlan

        Args:
            athlete: Athlete profile
            race: Goal race
            constraints: Days per week and rest days; defaults to the
                configured days per week with derived rest days
            start_date: Plan start (moved back to its Monday)
            today: Current date, used as the start when start_date is omitted
            coming_from_race: Start with a transition block

        Returns:
            TrainingPlan with the macrocycle and one WeeklyPlan per week

        Raises:
            InsufficientTrainingTimeError: Fewer than the minimum weeks remain
            InvalidPlanInputError: No start date or the race precedes it
        """
        if constraints is None:
            constraints = TrainingConstraints(
                days_per_week=get_config().default_days_per_week
            )

        # 1. Classify
        notes: list[str] = []
        if athlete.start_mileage is None:
            result = classify_athlete(athlete)
            athlete = apply_classification(athlete, result)
            notes.append(
                f"Athlete classified as {result.category} "
                f"({result.confidence}% confidence)"
            )
            notes.extend(result.warnings)

        # 2. Phases
        macrocycle = self.planner.build(
            athlete,
            race,
            start_date=start_date,
            today=today,
            coming_from_race=coming_from_race,
        )
        notes.extend(macrocycle.notes)

        # 3. Race week
        schedule = list(macrocycle.weeks)
        race_week = self._race_week(macrocycle, race)
        if race_week is not None:
            schedule.append(race_week)
            notes.append(f"Race week {race_week.week_number} contains {race.name}")

        # 4-5. Weekly plans
        weeks: list[WeeklyPlan] = []
        history = list(athlete.weekly_mileage_history)
        previous = athlete.last_week_mileage
        for week in schedule:
            weekly = self.microcycle.generate(
                week,
                athlete,
                race,
                constraints,
                is_recovery_week=is_recovery_week(
                    week.week_number, week.phase, athlete.recovery_ratio
                ),
                previous_week_mileage=previous,
            )
            weekly = self.resolver.resolve_weekly_conflicts(weekly)

            validation = validate_weekly_plan(weekly, constraints)
            for flag in validation.flags:
                if flag.severity == FlagSeverity.ERROR:
                    weekly.notes.append(flag.message)

            check = self.safety.check(
                weekly,
                athlete.model_copy(update={"weekly_mileage_history": list(history)}),
                previous,
                previous_weeks=weeks,
            )
            weekly.safety = check
            log_safety_result(logger, check, f"week {week.week_number}")

            weeks.append(weekly)
            history.append(weekly.load_mileage)
            previous = weekly.load_mileage

        failed = [w.week_number for w in weeks if w.safety and not w.safety.passed]
        logger.info(
            f"Generated {len(weeks)}-week plan for {race.name} "
            f"({len(failed)} week(s) with blocking safety violations)"
        )

        return TrainingPlan(
            race=race,
            macrocycle=macrocycle,
            weeks=weeks,
            notes=notes,
        )

    @staticmethod
    def _race_week(macrocycle: MacrocyclePlan, race: RaceEvent) -> MacrocycleWeek | None:
        """Goal-phase week holding the race day when it lies past the last week."""
        if not macrocycle.weeks:
            return None
        last = macrocycle.weeks[-1]
        if race.race_date <= last.end_date:
            return None
        start = last.end_date + timedelta(days=1)
        goal_weeks = macrocycle.phase_breakdown.get(TrainingPhase.GOAL, 0)
        return MacrocycleWeek(
            week_number=last.week_number + 1,
            phase=TrainingPhase.GOAL,
            start_date=start,
            end_date=start + timedelta(days=6),
            phase_week=goal_weeks + 1,
        )
