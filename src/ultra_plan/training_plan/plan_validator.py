"""Structural validation of weekly plans against training constraints.

Rest days always win over volume targets: a session on a constraint rest day
is the only flag that makes a plan invalid. Everything else is advisory.
"""

import logging

from ultra_plan.training_plan.models import (
    ConstraintViolation,
    FlagSeverity,
    PlanValidationResult,
    TrainingConstraints,
    WeeklyPlan,
)
from ultra_plan.training_plan.rest_days import derive_rest_days

logger = logging.getLogger(__name__)

REST_DAY_VIOLATION = "rest-day-violation"
INSUFFICIENT_TRAINING_DAYS = "insufficient-training-days"
OVER_VERTICAL_LOAD = "over-vertical-load"
OVER_WEEKLY_VERTICAL_LOAD = "over-weekly-vertical-load"
OVER_WEEKLY_HOURS = "over-weekly-hours"


def validate_weekly_plan(
    plan: WeeklyPlan, constraints: TrainingConstraints
) -> PlanValidationResult:
    """Validate a weekly plan against training constraints.

    Args:
        plan: Weekly plan to validate
        constraints: Days per week, rest days and load ceilings

    Returns:
        PlanValidationResult with flags, day counts and a one-line summary
    """
    flags: list[ConstraintViolation] = []
    # Explicit rest days are the contract; derived ones stand in when none are given
    rest_days = constraints.rest_days or derive_rest_days(constraints.days_per_week)

    session_count = 0
    training_day_count = 0
    rest_day_count = 0

    for daily in plan.days:
        n_sessions = len(daily.sessions)
        session_count += n_sessions
        if n_sessions > 0:
            training_day_count += 1
        else:
            rest_day_count += 1

        if daily.day in rest_days and n_sessions > 0:
            flags.append(
                ConstraintViolation(
                    code=REST_DAY_VIOLATION,
                    severity=FlagSeverity.ERROR,
                    message=(
                        f"{daily.day} is configured as a rest day but contains "
                        f"{n_sessions} session(s)."
                    ),
                    day_or_week=daily.day.value,
                    value=n_sessions,
                )
            )

    if training_day_count != constraints.days_per_week:
        flags.append(
            ConstraintViolation(
                code=INSUFFICIENT_TRAINING_DAYS,
                severity=FlagSeverity.WARNING,
                message=(
                    f"Plan has {training_day_count} training days but days_per_week "
                    f"is set to {constraints.days_per_week}."
                ),
                value=training_day_count,
                limit=constraints.days_per_week,
            )
        )

    if constraints.max_vert_per_day_m is not None:
        for daily in plan.days:
            vert = daily.total_vertical_m()
            if vert > constraints.max_vert_per_day_m:
                flags.append(
                    ConstraintViolation(
                        code=OVER_VERTICAL_LOAD,
                        severity=FlagSeverity.WARNING,
                        message=(
                            f"{daily.day} exceeds max vertical load: "
                            f"{round(vert)}m > {constraints.max_vert_per_day_m:g}m."
                        ),
                        day_or_week=daily.day.value,
                        value=vert,
                        limit=constraints.max_vert_per_day_m,
                    )
                )

    metrics = get_plan_volume_metrics(plan)

    if (
        constraints.max_vert_per_week_m is not None
        and metrics["total_vert"] > constraints.max_vert_per_week_m
    ):
        flags.append(
            ConstraintViolation(
                code=OVER_WEEKLY_VERTICAL_LOAD,
                severity=FlagSeverity.WARNING,
                message=(
                    f"Week {plan.week_number} exceeds max weekly vertical: "
                    f"{round(metrics['total_vert'])}m > "
                    f"{constraints.max_vert_per_week_m:g}m."
                ),
                day_or_week=f"week {plan.week_number}",
                value=metrics["total_vert"],
                limit=constraints.max_vert_per_week_m,
            )
        )

    if constraints.target_weekly_hours is not None:
        hours = metrics["total_minutes"] / 60
        max_hours = constraints.target_weekly_hours[1]
        if hours > max_hours:
            flags.append(
                ConstraintViolation(
                    code=OVER_WEEKLY_HOURS,
                    severity=FlagSeverity.WARNING,
                    message=(
                        f"Week {plan.week_number} totals {hours:.1f}h, above the "
                        f"{max_hours:g}h target."
                    ),
                    day_or_week=f"week {plan.week_number}",
                    value=round(hours, 2),
                    limit=max_hours,
                )
            )

    is_valid = not any(f.code == REST_DAY_VIOLATION for f in flags)
    n_errors = sum(1 for f in flags if f.severity == FlagSeverity.ERROR)
    summary = (
        f"{training_day_count}/{constraints.days_per_week} training days, "
        f"{session_count} sessions, {n_errors} errors"
    )

    if not is_valid:
        logger.warning(f"Week {plan.week_number} failed validation: {summary}")

    return PlanValidationResult(
        is_valid=is_valid,
        flags=flags,
        session_count=session_count,
        training_day_count=training_day_count,
        rest_day_count=rest_day_count,
        summary=summary,
    )


def is_rest_day_in_plan(plan: WeeklyPlan, day_index: int) -> bool:
    """True if the day at ``day_index`` (0-6) has no sessions."""
    if not 0 <= day_index < len(plan.days):
        return True
    return not plan.days[day_index].sessions


def get_rest_days_in_plan(plan: WeeklyPlan) -> list[int]:
    return [i for i in range(len(plan.days)) if is_rest_day_in_plan(plan, i)]


def get_plan_volume_metrics(plan: WeeklyPlan) -> dict[str, float]:
    """Total km, vertical (m) and minutes over every session of a plan."""
    total_km = 0.0
    total_vert = 0.0
    total_minutes = 0.0
    for _, session in plan.iter_sessions():
        total_km += session.distance_km or 0
        total_vert += session.vertical_gain_m or 0
        total_minutes += session.duration_min or 0
    return {
        "total_km": total_km,
        "total_vert": total_vert,
        "total_minutes": total_minutes,
    }
