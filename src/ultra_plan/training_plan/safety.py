"""Safety guardrail evaluator.

Checks a weekly plan against volume, recovery, intensity, workload ratio and
age limits, and against the progression of the weeks before it. The evaluator
never edits the plan it checks: blocking violations (error/critical) and
advisory warnings are returned as data and the caller decides whether to
regenerate or accept.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ultra_plan.training_plan.models import (
    AthleteProfile,
    DailyPlan,
    IntensityLevel,
    SafetyCheck,
    SafetyViolation,
    TrainingPhase,
    ViolationSeverity,
    VolumeRange,
    WeeklyPlan,
    WorkoutType,
)
from ultra_plan.training_plan.policy import DEFAULT_SAFETY_LIMITS, SafetyLimits

logger = logging.getLogger(__name__)


def _is_hard_day(daily: DailyPlan) -> bool:
    return daily.has_high_intensity or daily.has_long_run


def _rest_day_count(plan: WeeklyPlan) -> int:
    return sum(1 for d in plan.days if d.is_rest_day)


def _rise(current: float, base: float) -> float:
    if base <= 0:
        return 0.0
    return (current - base) / base


def calculate_acwr(
    current_km: float,
    history: list[float],
    min_history_weeks: int = DEFAULT_SAFETY_LIMITS.acwr_min_history_weeks,
) -> float | None:
    """Acute:chronic workload ratio of a candidate week.

    Chronic load is the mean of the last four recorded weeks; acute load is
    the mean of the last three recorded weeks plus the candidate week.

    Args:
        current_km: Candidate week mileage
        history: Recorded weekly mileages, most recent last
        min_history_weeks: Weeks of history required

    Returns:
        The ratio, or None when history is too short or the chronic load is 0
    """
    if len(history) < min_history_weeks:
        return None
    chronic = sum(history[-4:]) / 4
    if chronic <= 0:
        return None
    acute = (sum(history[-3:]) + current_km) / 4
    return acute / chronic


def is_within_safe_acwr(
    current_km: float,
    history: list[float],
    limits: SafetyLimits = DEFAULT_SAFETY_LIMITS,
) -> bool:
    """True if the ratio is inside the safe band (or history is too short)."""
    acwr = calculate_acwr(current_km, history, limits.acwr_min_history_weeks)
    if acwr is None:
        return True
    return limits.acwr_safe_low <= acwr <= limits.acwr_high


class SafetyEvaluator:
    """Evaluates weekly plans against the guardrail limits."""

    def __init__(self, limits: SafetyLimits = DEFAULT_SAFETY_LIMITS):
        self.limits = limits

    def check(
        self,
        plan: WeeklyPlan,
        athlete: AthleteProfile,
        previous_week_mileage: float | None = None,
        previous_weeks: Sequence[WeeklyPlan] | None = None,
    ) -> SafetyCheck:
        """Run every guardrail rule against a weekly plan.

        Args:
            plan: Candidate weekly plan
            athlete: Athlete profile (category, age, ratio, mileage history)
            previous_week_mileage: Previous week's mileage for progression checks
            previous_weeks: Earlier weekly plans, oldest first, for the
                build-cycle and load/vertical progression rules

        Returns:
            SafetyCheck; passed when no error or critical violation exists
        """
        found: list[SafetyViolation] = []
        found.extend(self._volume_progression(plan, athlete, previous_week_mileage))
        found.extend(self._recovery(plan, athlete))
        found.extend(self._intensity(plan, athlete))
        acwr_violations, acwr = self._acwr(plan, athlete)
        found.extend(acwr_violations)
        found.extend(self._age(plan, athlete))
        if previous_weeks:
            found.extend(self.check_progression(plan, previous_weeks, athlete))

        violations = [v for v in found if v.is_blocking]
        warnings = [v for v in found if not v.is_blocking]
        return SafetyCheck(
            passed=not violations,
            violations=violations,
            warnings=warnings,
            acwr=round(acwr, 3) if acwr is not None else None,
        )

    def _volume_progression(
        self,
        plan: WeeklyPlan,
        athlete: AthleteProfile,
        previous_week_mileage: float | None,
    ) -> list[SafetyViolation]:
        found = []
        current = plan.load_mileage
        low, high = self.limits.weekly_volume_band[athlete.category]

        if current < low:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="MIN_WEEKLY_VOLUME",
                    message=(
                        f"Weekly volume ({current:g}km) is below recommended minimum "
                        f"for {athlete.category}"
                    ),
                    value=current,
                    limit=low,
                    recommendation=f"Consider increasing to at least {low:g}km/week",
                )
            )
        if current > high:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.ERROR,
                    rule="MAX_WEEKLY_VOLUME",
                    message=(
                        f"Weekly volume ({current:g}km) exceeds safe maximum "
                        f"for {athlete.category}"
                    ),
                    value=current,
                    limit=high,
                    recommendation=f"Reduce volume to {high:g}km or less",
                )
            )

        if previous_week_mileage:
            increase = (current - previous_week_mileage) / previous_week_mileage
            if increase > self.limits.max_weekly_increase:
                found.append(
                    SafetyViolation(
                        severity=ViolationSeverity.ERROR,
                        rule="MAX_WEEKLY_INCREASE",
                        message=(
                            f"Volume increase ({increase * 100:.1f}%) exceeds "
                            f"{self.limits.max_weekly_increase * 100:g}% rule"
                        ),
                        value=round(increase * 100, 1),
                        limit=self.limits.max_weekly_increase * 100,
                        recommendation=(
                            "Limit increase to "
                            f"{previous_week_mileage * (1 + self.limits.max_weekly_increase):.1f}km"
                        ),
                    )
                )
            decrease = -increase
            if decrease > self.limits.max_weekly_decrease:
                found.append(
                    SafetyViolation(
                        severity=ViolationSeverity.WARNING,
                        rule="MAX_WEEKLY_DECREASE",
                        message=f"Volume drop ({decrease * 100:.1f}%) may be too aggressive",
                        value=round(decrease * 100, 1),
                        limit=self.limits.max_weekly_decrease * 100,
                        recommendation="Consider more gradual taper",
                    )
                )
        return found

    def _recovery(
        self, plan: WeeklyPlan, athlete: AthleteProfile
    ) -> list[SafetyViolation]:
        found = []
        rest_days = _rest_day_count(plan)
        if rest_days < self.limits.min_rest_days:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.CRITICAL,
                    rule="MIN_REST_DAYS",
                    message=(
                        f"Insufficient rest days ({rest_days}). Minimum "
                        f"{self.limits.min_rest_days} rest day required per week."
                    ),
                    value=rest_days,
                    limit=self.limits.min_rest_days,
                    recommendation="Add at least one complete rest day",
                )
            )

        run = 0
        longest = 0
        for daily in plan.days:
            run = run + 1 if _is_hard_day(daily) else 0
            longest = max(longest, run)
        if longest > self.limits.max_consecutive_hard_days:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.ERROR,
                    rule="MAX_CONSECUTIVE_HARD",
                    message=(
                        f"Too many consecutive hard days ({longest}). Maximum "
                        f"{self.limits.max_consecutive_hard_days} allowed."
                    ),
                    value=longest,
                    limit=self.limits.max_consecutive_hard_days,
                    recommendation="Insert easy/recovery days between hard efforts",
                )
            )

        quota = self.limits.hard_day_quota(athlete.recovery_ratio)
        hard_days = sum(1 for d in plan.days if _is_hard_day(d))
        if hard_days > quota * self.limits.recovery_ratio_tolerance:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="RECOVERY_RATIO",
                    message=(
                        f"Hard days ({hard_days}) exceed athlete's recovery ratio "
                        f"({athlete.recovery_ratio})"
                    ),
                    value=hard_days,
                    limit=quota,
                    recommendation=f"Reduce to {quota} hard days per week",
                )
            )
        return found

    def _intensity(
        self, plan: WeeklyPlan, athlete: AthleteProfile
    ) -> list[SafetyViolation]:
        found = []
        cap = self.limits.max_high_intensity_sessions[athlete.category]
        high_sessions = sum(
            1
            for _, s in plan.iter_sessions()
            if s.effective_intensity == IntensityLevel.HIGH
        )
        if high_sessions > cap:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.ERROR,
                    rule="MAX_HARD_SESSIONS",
                    message=(
                        f"Too many high-intensity sessions ({high_sessions}) "
                        f"for {athlete.category}"
                    ),
                    value=high_sessions,
                    limit=cap,
                    recommendation=f"Reduce to {cap} hard sessions per week",
                )
            )

        for today, tomorrow in zip(plan.days, plan.days[1:]):
            if today.has_high_intensity and tomorrow.has_high_intensity:
                found.append(
                    SafetyViolation(
                        severity=ViolationSeverity.WARNING,
                        rule="BACK_TO_BACK_HARD",
                        message=(
                            f"Back-to-back hard sessions on {today.day} and "
                            f"{tomorrow.day}"
                        ),
                        recommendation="Consider inserting easy day between hard sessions",
                    )
                )
        return found

    def _acwr(
        self, plan: WeeklyPlan, athlete: AthleteProfile
    ) -> tuple[list[SafetyViolation], float | None]:
        acwr = calculate_acwr(
            plan.load_mileage,
            athlete.weekly_mileage_history,
            self.limits.acwr_min_history_weeks,
        )
        if acwr is None:
            history = athlete.weekly_mileage_history
            no_base = (
                len(history) >= self.limits.acwr_min_history_weeks
                and sum(history[-4:]) <= 0
                and plan.load_mileage > 0
            )
            if not no_base:
                return [], None
            return [
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="ACWR_NO_CHRONIC_LOAD",
                    message=(
                        f"No training load in the last 4 weeks; ACWR undefined for "
                        f"{plan.load_mileage:g}km"
                    ),
                    value=plan.load_mileage,
                    limit=0,
                    recommendation="Rebuild volume gradually from a low base",
                )
            ], None

        found = []
        if acwr > self.limits.acwr_danger_high:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.CRITICAL,
                    rule="ACWR_TOO_HIGH",
                    message=f"ACWR ({acwr:.2f}) in danger zone - high injury risk",
                    value=round(acwr, 3),
                    limit=self.limits.acwr_danger_high,
                    recommendation=(
                        "Reduce weekly volume to bring ACWR below "
                        f"{self.limits.acwr_high:g}"
                    ),
                )
            )
        elif acwr > self.limits.acwr_high:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="ACWR_HIGH",
                    message=f"ACWR ({acwr:.2f}) above optimal range",
                    value=round(acwr, 3),
                    limit=self.limits.acwr_high,
                    recommendation="Consider slight volume reduction",
                )
            )
        if acwr < self.limits.acwr_danger_low:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="ACWR_TOO_LOW",
                    message=f"ACWR ({acwr:.2f}) very low - may indicate detraining",
                    value=round(acwr, 3),
                    limit=self.limits.acwr_danger_low,
                    recommendation="Consider gradual volume increase if feeling recovered",
                )
            )
        return found, acwr

    def _age(self, plan: WeeklyPlan, athlete: AthleteProfile) -> list[SafetyViolation]:
        if athlete.age is None:
            return []

        found = []
        factor = self.limits.age_volume_factor(athlete.age)
        baseline = (
            athlete.volume_ceiling or self.limits.weekly_volume_band[athlete.category][1]
        )
        ceiling = baseline * factor
        current = plan.load_mileage
        if current > ceiling:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="AGE_APPROPRIATE_VOLUME",
                    message=f"Volume ({current:g}km) high for age {athlete.age}",
                    value=current,
                    limit=round(ceiling, 1),
                    recommendation=f"Consider age-adjusted ceiling of {ceiling:.0f}km/week",
                )
            )

        required = self.limits.required_rest_days(athlete.age)
        rest_days = _rest_day_count(plan)
        if rest_days < required:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="AGE_APPROPRIATE_RECOVERY",
                    message=(
                        f"For age {athlete.age}, recommend {required}+ rest days "
                        f"(currently {rest_days})"
                    ),
                    value=rest_days,
                    limit=required,
                    recommendation=f"Add {required - rest_days} more rest day(s)",
                )
            )
        return found

    def check_progression(
        self,
        plan: WeeklyPlan,
        previous_weeks: Sequence[WeeklyPlan],
        athlete: AthleteProfile,
    ) -> list[SafetyViolation]:
        """Build-cycle and load/vertical progression rules.

        A build week is a week whose load rises over the week before it. The
        candidate week is checked for:

        - more consecutive build weeks than the athlete's recovery ratio allows
        - a missing recovery after a large jump (load or vertical) last week
        - load and vertical rising together with more climbing per km

        Vertical that rises in proportion to distance counts as one dimension.
        Every finding is a warning.

        Args:
            plan: Candidate weekly plan
            previous_weeks: Earlier weekly plans, oldest first
            athlete: Athlete profile (recovery ratio)

        Returns:
            Progression warnings; empty without previous weeks
        """
        if not previous_weeks:
            return []

        found = []
        last = previous_weeks[-1]
        weeks = [*previous_weeks, plan]

        streak = 0
        for before, after in zip(reversed(weeks[:-1]), reversed(weeks[1:])):
            if after.load_mileage <= before.load_mileage:
                break
            streak += 1
        allowed = athlete.recovery_ratio.hard_weeks
        if streak > allowed:
            found.append(
                SafetyViolation(
                    severity=ViolationSeverity.WARNING,
                    rule="MAX_BUILD_WEEKS",
                    message=(
                        f"{streak} consecutive build weeks exceed the "
                        f"{athlete.recovery_ratio} cycle"
                    ),
                    value=streak,
                    limit=allowed,
                    recommendation="Schedule a recovery week",
                )
            )

        if len(previous_weeks) >= 2:
            before = previous_weeks[-2]
            load_jump = _rise(last.load_mileage, before.load_mileage)
            vert_jump = _rise(last.load_vertical, before.load_vertical)
            jump = max(load_jump, vert_jump)
            if jump >= self.limits.large_jump and plan.load_mileage >= last.load_mileage:
                dimension = "load" if load_jump >= vert_jump else "vertical"
                found.append(
                    SafetyViolation(
                        severity=ViolationSeverity.WARNING,
                        rule="RECOVERY_AFTER_JUMP",
                        message=(
                            f"{jump * 100:.0f}% {dimension} jump in week "
                            f"{last.week_number} is not followed by recovery"
                        ),
                        value=round(jump * 100, 1),
                        limit=self.limits.large_jump * 100,
                        recommendation=(
                            f"Reduce load below {last.load_mileage:g}km this week"
                        ),
                    )
                )

        if (
            last.load_mileage > 0
            and plan.load_mileage > last.load_mileage
            and plan.load_vertical > last.load_vertical
        ):
            density = round(plan.load_vertical / plan.load_mileage, 1)
            last_density = round(last.load_vertical / last.load_mileage, 1)
            if density > last_density:
                vert_rise = _rise(plan.load_vertical, last.load_vertical)
                found.append(
                    SafetyViolation(
                        severity=ViolationSeverity.WARNING,
                        rule="LOAD_AND_VERTICAL_INCREASE",
                        message=(
                            f"Distance and vertical both rise (vertical "
                            f"+{vert_rise * 100:.0f}%, {last_density:g} -> "
                            f"{density:g} m/km)"
                        ),
                        value=round(vert_rise * 100, 1),
                        limit=0,
                        recommendation="Raise either distance or vertical this week, not both",
                    )
                )
        return found

    def calculate_safe_volume_range(
        self,
        athlete: AthleteProfile,
        phase: TrainingPhase,
        previous_week_mileage: float | None = None,
    ) -> VolumeRange:
        """Safe weekly volume band for an athlete in a phase.

        Args:
            athlete: Athlete profile
            phase: Training phase (sets the optimal fraction of max)
            previous_week_mileage: Caps max at the 10% rule when given

        Returns:
            VolumeRange with rounded max and optimal
        """
        low, high = self.limits.weekly_volume_band[athlete.category]
        max_km = high * self.limits.age_volume_factor(athlete.age)
        if previous_week_mileage is not None:
            max_km = min(
                max_km, previous_week_mileage * (1 + self.limits.max_weekly_increase)
            )
        if athlete.volume_ceiling:
            max_km = min(max_km, athlete.volume_ceiling)
        optimal = max_km * self.limits.phase_volume_modifiers[phase]
        return VolumeRange(min_km=low, max_km=round(max_km), optimal_km=round(optimal))

    def enforce_minimum_recovery(
        self, plan: WeeklyPlan, athlete: AthleteProfile
    ) -> WeeklyPlan:
        """Return a copy with easy days turned into rest days where needed.

        Low-intensity, non-long days without locked sessions are converted in
        week order until the age-appropriate rest-day minimum is met.
        """
        result = plan.model_copy(deep=True)
        missing = self.limits.required_rest_days(athlete.age) - _rest_day_count(result)
        if missing <= 0:
            return result

        for daily in result.days:
            if missing == 0:
                break
            if daily.is_rest_day or daily.has_long_run:
                continue
            if any(s.locked for s in daily.sessions):
                continue
            if all(
                s.effective_intensity == IntensityLevel.LOW
                and s.workout_type != WorkoutType.LONG
                for s in daily.sessions
            ):
                daily.sessions = []
                daily.rationale = "Converted to rest day for safety compliance"
                missing -= 1
                logger.info(
                    f"Week {plan.week_number}: converted {daily.day} to a rest day"
                )
        return result
