"""Session conflict detection and resolution.

Detects same-day conflicts (fatigue, overload, contradictory goals, duration)
and back-to-back hard days across a week. Only remove-type resolutions act,
and they only ever remove unlocked sessions whose origin is not protected.
"""

from __future__ import annotations

import logging
from collections import Counter

from ultra_plan.training_plan.models import (
    ConflictResolution,
    ConflictSeverity,
    ConflictSummary,
    ConflictType,
    DailyPlan,
    IntensityLevel,
    Session,
    SessionConflict,
    WeeklyPlan,
    WorkoutType,
)
from ultra_plan.training_plan.policy import DEFAULT_CONFLICT_POLICY, ConflictPolicy

logger = logging.getLogger(__name__)

_STRENGTH_TYPES = frozenset({WorkoutType.MUSCULAR_ENDURANCE, WorkoutType.STRENGTH})
_INTENSITY_TYPES = frozenset(
    {WorkoutType.TEMPO, WorkoutType.THRESHOLD, WorkoutType.VO2, WorkoutType.RACE_PACE}
)


def _contains(sessions: list[Session], session: Session) -> bool:
    return any(s is session for s in sessions)


class ConflictResolver:
    """Detects and resolves session conflicts with a fixed origin priority."""

    def __init__(self, policy: ConflictPolicy = DEFAULT_CONFLICT_POLICY):
        self.policy = policy

    def fatigue_load(self, session: Session) -> float:
        """Heuristic 0-100 fatigue score of one session."""
        p = self.policy
        load = p.intensity_load[session.effective_intensity]
        if session.workout_type == WorkoutType.MUSCULAR_ENDURANCE:
            load += p.muscular_endurance_bonus
        if (
            session.workout_type == WorkoutType.LONG
            and (session.distance_km or 0) > p.long_run_bonus_km
        ):
            load += p.long_run_bonus
        if session.workout_type == WorkoutType.BACK_TO_BACK:
            load += p.back_to_back_bonus

        duration = session.duration_min or p.default_duration_min
        for minutes, bonus in p.duration_bonuses:
            if duration > minutes:
                load += bonus
        return min(load, p.max_session_load)

    def detect_daily_conflicts(self, day: DailyPlan) -> list[SessionConflict]:
        """Conflicts among the sessions of one day (none with fewer than two).

        Args:
            day: Daily plan to inspect

        Returns:
            Conflicts in detection order; sessions are the day's own objects
        """
        sessions = day.sessions
        if len(sessions) <= 1:
            return []

        p = self.policy
        conflicts: list[SessionConflict] = []

        loads = [self.fatigue_load(s) for s in sessions]
        total = sum(loads)
        if total > p.fatigue_medium:
            conflicts.append(
                SessionConflict(
                    conflict_type=ConflictType.EXCESSIVE_FATIGUE,
                    severity=(
                        ConflictSeverity.HIGH
                        if total > p.fatigue_high
                        else ConflictSeverity.MEDIUM
                    ),
                    sessions=[
                        s for s, load in zip(sessions, loads) if load > p.contributing_load
                    ],
                    reason=f"Total daily fatigue ({total:g}) exceeds safe limit",
                    suggested_resolution=ConflictResolution.REMOVE,
                    day=day.day,
                )
            )

        high = [s for s in sessions if s.effective_intensity == IntensityLevel.HIGH]
        if len(high) > 1:
            conflicts.append(
                SessionConflict(
                    conflict_type=ConflictType.OVERLOAD,
                    severity=ConflictSeverity.HIGH,
                    sessions=high,
                    reason="Multiple high-intensity sessions on same day",
                    suggested_resolution=ConflictResolution.REMOVE,
                    day=day.day,
                )
            )

        strength = [s for s in sessions if s.workout_type in _STRENGTH_TYPES]
        long_runs = [s for s in sessions if s.workout_type == WorkoutType.LONG]
        if strength and any(
            (s.distance_km or 0) > p.contradictory_long_run_km for s in long_runs
        ):
            conflicts.append(
                SessionConflict(
                    conflict_type=ConflictType.CONTRADICTORY_GOALS,
                    severity=ConflictSeverity.HIGH,
                    sessions=[*strength, *long_runs],
                    reason=(
                        "ME session conflicts with long run "
                        "(excessive neuromuscular fatigue)"
                    ),
                    suggested_resolution=ConflictResolution.RESCHEDULE,
                    day=day.day,
                )
            )

        heat = [s for s in sessions if s.workout_type == WorkoutType.HEAT_ADAPTATION]
        intensity = [s for s in sessions if s.workout_type in _INTENSITY_TYPES]
        if heat and intensity:
            conflicts.append(
                SessionConflict(
                    conflict_type=ConflictType.CONTRADICTORY_GOALS,
                    severity=ConflictSeverity.MEDIUM,
                    sessions=[*heat, *intensity],
                    reason="Heat adaptation conflicts with intensity (contradictory stress)",
                    suggested_resolution=ConflictResolution.RESCHEDULE,
                    day=day.day,
                )
            )

        duration = sum(s.duration_min or p.default_duration_min for s in sessions)
        if duration > p.max_daily_duration_min:
            conflicts.append(
                SessionConflict(
                    conflict_type=ConflictType.DURATION_OVERFLOW,
                    severity=ConflictSeverity.MEDIUM,
                    sessions=list(sessions),
                    reason=f"Total duration ({duration:g} min) exceeds daily time budget",
                    suggested_resolution=ConflictResolution.REMOVE,
                    day=day.day,
                )
            )

        return conflicts

    def detect_scheduling_conflicts(self, plan: WeeklyPlan) -> list[SessionConflict]:
        """Back-to-back days that both contain a high-intensity session."""
        conflicts = []
        for today, tomorrow in zip(plan.days, plan.days[1:]):
            if today.has_high_intensity and tomorrow.has_high_intensity:
                conflicts.append(
                    SessionConflict(
                        conflict_type=ConflictType.SCHEDULING_VIOLATION,
                        severity=ConflictSeverity.MEDIUM,
                        sessions=[
                            s
                            for s in (*today.sessions, *tomorrow.sessions)
                            if s.effective_intensity == IntensityLevel.HIGH
                        ],
                        reason=f"Back-to-back hard days ({today.day} -> {tomorrow.day})",
                        suggested_resolution=ConflictResolution.RESCHEDULE,
                        day=today.day,
                    )
                )
        return conflicts

    def is_removable(self, session: Session) -> bool:
        return not session.locked and session.origin not in self.policy.protected_origins

    def resolve_conflict(
        self, day: DailyPlan, conflict: SessionConflict
    ) -> tuple[DailyPlan, Session | None]:
        """Remove the lowest-priority eligible session of a conflict.

        Args:
            day: Day the conflict was detected on
            conflict: Conflict whose sessions belong to ``day``

        Returns:
            (day, removed session); the day is unchanged and the removed
            session is None when nothing could be removed
        """
        if conflict.suggested_resolution != ConflictResolution.REMOVE:
            return day, None

        eligible = [
            s
            for s in conflict.sessions
            if _contains(day.sessions, s) and self.is_removable(s)
        ]
        if not eligible:
            logger.warning(
                f"No removable session for conflict on {day.day}: {conflict.reason}"
            )
            return day, None

        to_remove = min(eligible, key=lambda s: self.policy.origin_priority[s.origin])
        logger.info(
            f"Removing {to_remove.workout_type} ({to_remove.origin}) on {day.day} "
            f"to resolve {conflict.conflict_type}: {conflict.reason}"
        )
        rationale = f"{day.rationale or ''}\n\nConflict resolved: {conflict.reason}"
        resolved = day.model_copy(
            update={
                "sessions": [s for s in day.sessions if s is not to_remove],
                "rationale": rationale.strip(),
            }
        )
        return resolved, to_remove

    def resolve_weekly_conflicts(self, plan: WeeklyPlan) -> WeeklyPlan:
        """Resolve high-severity daily conflicts across a week.

        Lower-severity and cross-day conflicts are only reported. High-severity
        conflicts that cannot be removed are recorded in the plan notes.

        Args:
            plan: Weekly plan (not modified)

        Returns:
            A copy with conflicts resolved and the remaining conflicts attached
        """
        result = plan.model_copy(deep=True)
        notes = list(result.notes)

        for index, day in enumerate(result.days):
            for conflict in self.detect_daily_conflicts(day):
                if conflict.severity != ConflictSeverity.HIGH:
                    continue
                # Already resolved by an earlier removal on this day
                if conflict.sessions and not any(
                    _contains(day.sessions, s) for s in conflict.sessions
                ):
                    continue
                day, removed = self.resolve_conflict(day, conflict)
                if removed is None:
                    note = (
                        f"Unresolved {conflict.conflict_type} conflict on {day.day}: "
                        f"{conflict.reason}"
                    )
                    if note not in notes:
                        notes.append(note)
                    logger.warning(f"Week {plan.week_number}: {note}")
            result.days[index] = day

        remaining = [
            c for d in result.days for c in self.detect_daily_conflicts(d)
        ] + self.detect_scheduling_conflicts(result)
        scheduling = sum(
            1 for c in remaining if c.conflict_type == ConflictType.SCHEDULING_VIOLATION
        )
        if scheduling:
            logger.debug(
                f"Week {plan.week_number}: {scheduling} scheduling conflict(s) detected"
            )

        result.notes = notes
        result.conflicts = remaining
        return result

    def is_day_safe(self, day: DailyPlan) -> bool:
        """True when the day has no high-severity conflict."""
        return not any(
            c.severity == ConflictSeverity.HIGH for c in self.detect_daily_conflicts(day)
        )

    def get_conflict_summary(self, plan: WeeklyPlan) -> ConflictSummary:
        conflicts = [
            c for d in plan.days for c in self.detect_daily_conflicts(d)
        ] + self.detect_scheduling_conflicts(plan)
        severities = Counter(c.severity for c in conflicts)
        types = Counter(c.conflict_type for c in conflicts)
        return ConflictSummary(
            total=len(conflicts),
            high=severities[ConflictSeverity.HIGH],
            medium=severities[ConflictSeverity.MEDIUM],
            low=severities[ConflictSeverity.LOW],
            by_type={t: types[t] for t in ConflictType},
        )
