"""Deterministic rest-day derivation.

Training days are spread across the week by even sampling; rest days are the
complement. The derivation depends on nothing but the day count, so the same
input always yields the same days.
"""

from ultra_plan.training_plan.models import WEEK_DAYS, DayOfWeek, TrainingConstraints


def _clamp_days(days_per_week: int) -> int:
    return max(0, min(7, days_per_week))


def get_training_days(days_per_week: int) -> list[DayOfWeek]:
    """Training days for a weekly day count.

    Day ``i`` of ``days_per_week`` lands on index ``floor(i * 7 / days_per_week)``.

    Args:
        days_per_week: Training days per week (clamped to 0-7)

    Returns:
        Training days in week order
    """
    n = _clamp_days(days_per_week)
    return [WEEK_DAYS[(i * 7) // n] for i in range(n)]


def derive_rest_days(days_per_week: int) -> list[DayOfWeek]:
    """Rest days for a weekly day count.

    Args:
        days_per_week: Training days per week (clamped to 0-7)

    Returns:
        ``7 - days_per_week`` rest days in week order
    """
    training = set(get_training_days(days_per_week))
    return [day for day in WEEK_DAYS if day not in training]


def is_rest_day(day: DayOfWeek, rest_days: list[DayOfWeek]) -> bool:
    return day in rest_days


def resolve_rest_days(constraints: TrainingConstraints) -> list[DayOfWeek]:
    """Effective rest days of a constraint set.

    Explicit rest days always win. When fewer than ``7 - days_per_week`` are
    given, derived rest days are added in week order until the count is met.
    """
    required = 7 - _clamp_days(constraints.days_per_week)
    rest = list(constraints.rest_days)
    for day in derive_rest_days(constraints.days_per_week):
        if len(rest) >= required:
            break
        if day not in rest:
            rest.append(day)
    return sorted(rest, key=lambda d: d.index)


def resolve_training_days(constraints: TrainingConstraints) -> list[DayOfWeek]:
    """Days that are not effective rest days, in week order."""
    rest = set(resolve_rest_days(constraints))
    return [day for day in WEEK_DAYS if day not in rest]
