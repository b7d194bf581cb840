"""Adaptive controller: feedback signals -> decision -> plan mutation.

Signals are extracted from a rolling feedback window, a fixed priority ladder
turns them into one AdaptationDecision, and the matching mutation is applied
to a copy of the weekly plan. Locked sessions are never mutated. The mutated
week goes through the conflict pass and the guardrail evaluator; warnings are
appended to the plan notes and never revert the mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date

from ultra_plan.config import get_config
from ultra_plan.training_plan.conflict_resolution import ConflictResolver
from ultra_plan.training_plan.models import (
    AdaptationAction,
    AdaptationDecision,
    AdaptationResult,
    AdaptationSignal,
    AthleteProfile,
    DailyFeedback,
    DailyPlan,
    DNFCause,
    DNFEvent,
    DNFPatterns,
    FeedbackType,
    IntensityLevel,
    OverallReadiness,
    RaceFeedback,
    RaceLimiter,
    Session,
    SessionOrigin,
    SignalSeverity,
    SignalSource,
    TrainingConstraints,
    Urgency,
    WeeklyPlan,
    WeightedInsight,
    WorkoutType,
)
from ultra_plan.training_plan.policy import (
    DEFAULT_ADAPTATION_THRESHOLDS,
    AdaptationThresholds,
)
from ultra_plan.training_plan.rest_days import resolve_rest_days
from ultra_plan.training_plan.safety import SafetyEvaluator
from ultra_plan.utils.error_handling import log_safety_result

logger = logging.getLogger(__name__)

INJURY_REPORTED = "INJURY_REPORTED"

_VOLUME_ACTIONS = frozenset(
    {AdaptationAction.REDUCE_VOLUME_MINOR, AdaptationAction.REDUCE_VOLUME_MAJOR}
)


def _mean(values: Sequence[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _append_note(session: Session, text: str) -> None:
    session.notes = f"{session.notes}\n\n{text}" if session.notes else text


def _scale(session: Session, factor: float) -> None:
    if session.distance_km is not None:
        session.distance_km = round(session.distance_km * factor, 1)
    if session.duration_min is not None:
        session.duration_min = round(session.duration_min * factor)


def _scale_week_targets(plan: WeeklyPlan, factor: float) -> None:
    plan.target_mileage = round(plan.target_mileage * factor, 1)
    if plan.actual_mileage is not None:
        plan.actual_mileage = round(plan.actual_mileage * factor, 1)


def _insight(
    source: FeedbackType,
    weight: float,
    confidence: float,
    message: str,
    event_date: date,
    affected_models: list[str],
) -> WeightedInsight:
    return WeightedInsight(
        source=source,
        weight=weight,
        confidence=round(confidence * weight, 3),
        message=message,
        event_date=event_date,
        affected_models=affected_models,
    )


def process_race_feedback(
    race: RaceFeedback,
    thresholds: AdaptationThresholds = DEFAULT_ADAPTATION_THRESHOLDS,
) -> list[WeightedInsight]:
    """Weighted insights from a race or race-simulation report.

    Confidence is the rule's base confidence times the event weight, so a
    race outweighs a simulation reporting the same limiter.
    """
    source = race.feedback_type
    weight = thresholds.feedback_weights[source]
    limiter = race.biggest_limiter
    found = []

    def add(confidence: float, message: str, models: list[str]) -> None:
        found.append(_insight(source, weight, confidence, message, race.event_date, models))

    if limiter == RaceLimiter.HEAT and (race.heat_perception or 0) >= 4:
        add(
            0.9,
            "Heat was a major limiter; heat adaptation training needed",
            ["heat_adaptation", "pacing", "training_emphasis"],
        )
    if limiter == RaceLimiter.LEGS and (race.downhill_difficulty or 0) >= 4:
        add(
            0.85,
            "Leg fatigue on technical downhills; eccentric strength training recommended",
            ["downhill_durability", "strength_training", "training_emphasis"],
        )
    if limiter == RaceLimiter.STOMACH:
        add(
            0.95,
            "GI issues limited performance; nutrition strategy needs adjustment",
            ["nutrition_reliability", "fueling_protocol", "race_readiness"],
        )
    if limiter == RaceLimiter.PACING and race.issues_start_km:
        add(
            0.9,
            f"Pacing error led to issues at {race.issues_start_km:g} km; adjust race strategy",
            ["pacing_accuracy", "race_strategy", "terrain_confidence"],
        )
    if (race.climbing_difficulty or 0) >= 4:
        add(
            0.8,
            "Challenging climbs; increase vertical gain in training",
            ["terrain_confidence", "climbing_strength", "training_emphasis"],
        )
    return found


_DNF_CAUSE_INSIGHTS: dict[DNFCause, tuple[float, str, list[str]]] = {
    DNFCause.HEAT: (
        0.95,
        "Heat exhaustion DNF; prioritize heat adaptation and hydration",
        ["heat_adaptation", "hydration_strategy", "training_conditions"],
    ),
    DNFCause.STOMACH: (
        0.95,
        "GI distress DNF; review the complete nutrition strategy",
        ["nutrition_reliability", "fueling_protocol", "gut_training"],
    ),
    DNFCause.PACING: (
        0.9,
        "Pacing error DNF; use a conservative race strategy with better pacing tools",
        ["pacing_accuracy", "race_strategy", "effort_management"],
    ),
}


def process_dnf_event(
    event: DNFEvent,
    thresholds: AdaptationThresholds = DEFAULT_ADAPTATION_THRESHOLDS,
) -> list[WeightedInsight]:
    """Weighted insights from a DNF. DNFs carry the highest event weight."""
    weight = thresholds.feedback_weights[FeedbackType.DNF]
    found = [
        _insight(
            FeedbackType.DNF,
            weight,
            1.0,
            f"DNF due to {event.cause} at {event.km_stopped:g} km; "
            "recovery protocol activated",
            event.event_date,
            ["recovery", "readiness", "training_stress", "injury_risk"],
        )
    ]
    if event.cause == DNFCause.INJURY:
        found.append(
            _insight(
                FeedbackType.DNF,
                weight,
                1.0,
                f"Injury-related DNF; {thresholds.dnf_recovery_days}-day recovery "
                "protocol with reduced volume",
                event.event_date,
                ["injury_risk", "recovery", "volume_adjustment", "training_plan"],
            )
        )
    elif event.cause in _DNF_CAUSE_INSIGHTS:
        confidence, message, models = _DNF_CAUSE_INSIGHTS[event.cause]
        found.append(
            _insight(FeedbackType.DNF, weight, confidence, message, event.event_date, models)
        )
    if event.had_warning_signs:
        found.append(
            _insight(
                FeedbackType.DNF,
                weight,
                0.85,
                "Warning signs present before DNF; improve pre-race readiness checks",
                event.event_date,
                ["readiness", "risk_assessment", "pre_race_protocol"],
            )
        )
    return found


_DNF_PREVENTION: dict[DNFCause, str] = {
    DNFCause.HEAT: "Increase heat adaptation training sessions",
    DNFCause.STOMACH: "Review and test nutrition strategy systematically",
    DNFCause.PACING: "Use a more conservative pacing strategy with better monitoring",
    DNFCause.INJURY: "Prioritize injury prevention and strength training",
}


def analyze_dnf_patterns(events: Sequence[DNFEvent]) -> DNFPatterns:
    """Cause distribution across DNFs; repeated causes get preventive advice."""
    by_cause = {cause: 0 for cause in DNFCause}
    most_common = None
    best = 0
    for event in events:
        by_cause[event.cause] += 1
        # First cause to reach the highest count wins a tie
        if by_cause[event.cause] > best:
            best = by_cause[event.cause]
            most_common = event.cause

    return DNFPatterns(
        total=len(events),
        by_cause=by_cause,
        most_common_cause=most_common,
        recommendations=[
            advice for cause, advice in _DNF_PREVENTION.items() if by_cause[cause] > 1
        ],
    )


class AdaptiveController:
    """Turns athlete feedback into weekly plan adaptations."""

    def __init__(
        self,
        thresholds: AdaptationThresholds = DEFAULT_ADAPTATION_THRESHOLDS,
        safety: SafetyEvaluator | None = None,
        resolver: ConflictResolver | None = None,
        window_days: int | None = None,
    ):
        self.thresholds = thresholds
        self.safety = safety if safety is not None else SafetyEvaluator()
        self.resolver = resolver if resolver is not None else ConflictResolver()
        self.window_days = (
            window_days if window_days is not None else get_config().feedback_window_days
        )

    # ─────────────────────────────────────────────────────────
    #   Signal extraction
    # ─────────────────────────────────────────────────────────

    def _window(self, feedback: Sequence[DailyFeedback]) -> list[DailyFeedback]:
        if self.window_days <= 0:
            return []
        ordered = sorted(feedback, key=lambda f: f.feedback_date)
        return ordered[-self.window_days :]

    def extract_signals(
        self,
        feedback: Sequence[DailyFeedback],
        races: Sequence[RaceFeedback] = (),
        dnf_events: Sequence[DNFEvent] = (),
        as_of: date | None = None,
    ) -> list[AdaptationSignal]:
        """Extract adaptation signals from the most recent feedback window.

        Args:
            feedback: Daily feedback entries in any order
            races: Race and race-simulation reports
            dnf_events: Races the athlete did not finish
            as_of: Reference date for event recency; defaults to the latest
                feedback or event date

        Returns:
            Signals in a fixed rule order (fatigue, pain, completion, recovery,
            motivation, then race events); empty without feedback or events
        """
        window = self._window(feedback)
        signals = self._feedback_signals(window) if window else []

        events = [*races, *dnf_events]
        if events:
            if as_of is None:
                as_of = max(
                    [f.feedback_date for f in window] + [e.event_date for e in events]
                )
            signals.extend(self.event_signals(races, dnf_events, as_of))

        logger.debug(
            f"Extracted {len(signals)} signal(s) from {len(window)} feedback day(s) "
            f"and {len(events)} event(s): " + ", ".join(s.indicator for s in signals)
        )
        return signals

    def event_signals(
        self,
        races: Sequence[RaceFeedback],
        dnf_events: Sequence[DNFEvent],
        as_of: date,
    ) -> list[AdaptationSignal]:
        """Recovery signals for races and DNFs still inside their recovery period.

        The event weight is the signal value. An injury DNF is critical, any
        other DNF is high. A race is high when its weight reaches the high
        event weight (real races), medium otherwise (simulations).
        """
        t = self.thresholds
        signals: list[AdaptationSignal] = []

        dnf_weight = t.feedback_weights[FeedbackType.DNF]
        for event in sorted(dnf_events, key=lambda e: e.event_date):
            if not 0 <= (as_of - event.event_date).days < t.dnf_recovery_days:
                continue
            if event.cause == DNFCause.INJURY:
                signals.append(
                    AdaptationSignal(
                        source=SignalSource.INJURY,
                        severity=SignalSeverity.CRITICAL,
                        indicator="DNF_INJURY",
                        value=dnf_weight,
                        threshold=t.event_weight_high,
                        recommendation=AdaptationAction.MEDICAL_ATTENTION,
                    )
                )
            else:
                signals.append(
                    AdaptationSignal(
                        source=SignalSource.PERFORMANCE,
                        severity=SignalSeverity.HIGH,
                        indicator="RECENT_DNF",
                        value=dnf_weight,
                        threshold=t.event_weight_high,
                        recommendation=AdaptationAction.DELOAD_WEEK,
                    )
                )

        for race in sorted(races, key=lambda r: r.event_date):
            if not 0 <= (as_of - race.event_date).days < t.race_recovery_days:
                continue
            weight = t.feedback_weights[race.feedback_type]
            high = weight >= t.event_weight_high
            signals.append(
                AdaptationSignal(
                    source=SignalSource.PERFORMANCE,
                    severity=SignalSeverity.HIGH if high else SignalSeverity.MEDIUM,
                    indicator=(
                        "RECENT_RACE_SIMULATION" if race.is_simulation else "RECENT_RACE"
                    ),
                    value=weight,
                    threshold=t.event_weight_high,
                    recommendation=(
                        AdaptationAction.REDUCE_VOLUME_MAJOR
                        if high
                        else AdaptationAction.REDUCE_VOLUME_MINOR
                    ),
                )
            )
        return signals

    def _feedback_signals(self, window: list[DailyFeedback]) -> list[AdaptationSignal]:
        t = self.thresholds
        signals: list[AdaptationSignal] = []

        fatigue = [f.fatigue for f in window if f.fatigue is not None]
        avg_fatigue = _mean(fatigue)
        if avg_fatigue is not None:
            if avg_fatigue >= t.fatigue_high:
                signals.append(
                    AdaptationSignal(
                        source=SignalSource.FEEDBACK,
                        severity=SignalSeverity.HIGH,
                        indicator="CHRONIC_FATIGUE",
                        value=avg_fatigue,
                        threshold=t.fatigue_high,
                        recommendation=AdaptationAction.DELOAD_WEEK,
                    )
                )
            elif avg_fatigue >= t.fatigue_medium:
                signals.append(
                    AdaptationSignal(
                        source=SignalSource.FEEDBACK,
                        severity=SignalSeverity.MEDIUM,
                        indicator="ELEVATED_FATIGUE",
                        value=avg_fatigue,
                        threshold=t.fatigue_medium,
                        recommendation=AdaptationAction.REDUCE_VOLUME_MINOR,
                    )
                )

        last_days = window[-t.consecutive_fatigue_days :]
        if len(last_days) == t.consecutive_fatigue_days and all(
            f.fatigue is not None and f.fatigue >= t.fatigue_medium for f in last_days
        ):
            signals.append(
                AdaptationSignal(
                    source=SignalSource.FEEDBACK,
                    severity=SignalSeverity.HIGH,
                    indicator="CONSECUTIVE_FATIGUE",
                    value=len(last_days),
                    threshold=t.consecutive_fatigue_days,
                    recommendation=AdaptationAction.ADD_REST_DAY,
                )
            )

        avg_pain = _mean([f.muscle_aches or 0 for f in window])
        if avg_pain is not None and avg_pain >= t.pain_critical:
            signals.append(
                AdaptationSignal(
                    source=SignalSource.INJURY,
                    severity=SignalSeverity.CRITICAL,
                    indicator="ELEVATED_PAIN",
                    value=avg_pain,
                    threshold=t.pain_critical,
                    recommendation=AdaptationAction.MEDICAL_ATTENTION,
                )
            )
        if any(f.injury_notes and "pain" in f.injury_notes.lower() for f in window):
            signals.append(
                AdaptationSignal(
                    source=SignalSource.INJURY,
                    severity=SignalSeverity.HIGH,
                    indicator=INJURY_REPORTED,
                    value=1,
                    threshold=1,
                    recommendation=AdaptationAction.REDUCE_VOLUME_MAJOR,
                )
            )

        avg_completion = _mean(
            [f.completion_rate if f.completion_rate is not None else 1.0 for f in window]
        )
        if avg_completion < t.completion_high:
            signals.append(
                AdaptationSignal(
                    source=SignalSource.PERFORMANCE,
                    severity=SignalSeverity.HIGH,
                    indicator="LOW_COMPLETION_RATE",
                    value=avg_completion,
                    threshold=t.completion_high,
                    recommendation=AdaptationAction.REDUCE_VOLUME_MAJOR,
                )
            )
        elif avg_completion < t.completion_medium:
            signals.append(
                AdaptationSignal(
                    source=SignalSource.PERFORMANCE,
                    severity=SignalSeverity.MEDIUM,
                    indicator="MODERATE_COMPLETION_RATE",
                    value=avg_completion,
                    threshold=t.completion_medium,
                    recommendation=AdaptationAction.REDUCE_VOLUME_MINOR,
                )
            )

        avg_sleep = _mean(
            [f.sleep_quality if f.sleep_quality is not None else 5.0 for f in window]
        )
        if avg_sleep <= t.sleep_low:
            signals.append(
                AdaptationSignal(
                    source=SignalSource.FEEDBACK,
                    severity=SignalSeverity.MEDIUM,
                    indicator="POOR_SLEEP",
                    value=avg_sleep,
                    threshold=t.sleep_low,
                    recommendation=AdaptationAction.REDUCE_INTENSITY,
                )
            )

        drop = self._hrv_drop([f.hrv for f in window if f.hrv is not None])
        if drop is not None and drop >= t.hrv_drop:
            signals.append(
                AdaptationSignal(
                    source=SignalSource.FEEDBACK,
                    severity=SignalSeverity.HIGH,
                    indicator="HRV_DROP",
                    value=round(drop * 100, 1),
                    threshold=t.hrv_drop * 100,
                    recommendation=AdaptationAction.ADD_REST_DAY,
                )
            )

        avg_motivation = _mean(
            [f.motivation if f.motivation is not None else 5.0 for f in window]
        )
        if avg_motivation <= t.motivation_low:
            signals.append(
                AdaptationSignal(
                    source=SignalSource.FEEDBACK,
                    severity=SignalSeverity.LOW,
                    indicator="LOW_MOTIVATION",
                    value=avg_motivation,
                    threshold=t.motivation_low,
                    recommendation=AdaptationAction.REDUCE_INTENSITY,
                )
            )

        return signals

    def _hrv_drop(self, readings: list[float]) -> float | None:
        """Fractional drop of the last readings against the earlier baseline."""
        recent_n = self.thresholds.hrv_recent_readings
        if len(readings) < recent_n:
            return None
        earlier = readings[:-recent_n]
        baseline = _mean(earlier) if earlier else readings[0]
        recent = _mean(readings[-recent_n:])
        return (baseline - recent) / baseline

    # ─────────────────────────────────────────────────────────
    #   Decision
    # ─────────────────────────────────────────────────────────

    def decide(self, signals: Sequence[AdaptationSignal]) -> AdaptationDecision:
        """Pick one action from the signal priority ladder (first match wins)."""
        t = self.thresholds
        if not signals:
            return AdaptationDecision(
                action=AdaptationAction.MAINTAIN,
                signals=[],
                volume_adjustment=0.0,
                explanation="No adaptation signals detected; maintain current plan",
                urgency=Urgency.LOW,
            )

        by_severity: dict[SignalSeverity, list[AdaptationSignal]] = {
            s: [sig for sig in signals if sig.severity == s] for s in SignalSeverity
        }
        critical = by_severity[SignalSeverity.CRITICAL]
        high = by_severity[SignalSeverity.HIGH]
        medium = by_severity[SignalSeverity.MEDIUM]

        if critical:
            return AdaptationDecision(
                action=AdaptationAction.MEDICAL_ATTENTION,
                signals=critical,
                volume_adjustment=t.critical_adjustment,
                explanation=(
                    "Critical indicators: "
                    + ", ".join(s.indicator for s in critical)
                    + "; medical consultation and major volume reduction"
                ),
                urgency=Urgency.HIGH,
            )

        if len(high) >= 2 or any(s.indicator == INJURY_REPORTED for s in high):
            return AdaptationDecision(
                action=AdaptationAction.DELOAD_WEEK,
                signals=high,
                volume_adjustment=t.deload_adjustment,
                explanation=(
                    "High-severity signals: "
                    + ", ".join(s.indicator for s in high)
                    + f"; deload week at {t.deload_adjustment:+.0%} volume"
                ),
                urgency=Urgency.HIGH,
            )

        if len(high) == 1:
            signal = high[0]
            return AdaptationDecision(
                action=signal.recommendation,
                signals=[signal],
                volume_adjustment=t.single_high_adjustment,
                explanation=(
                    f"{signal.indicator} detected; {signal.recommendation} at "
                    f"{t.single_high_adjustment:+.0%} volume"
                ),
                urgency=Urgency.MEDIUM,
            )

        if len(medium) >= 2:
            return AdaptationDecision(
                action=AdaptationAction.REDUCE_VOLUME_MINOR,
                signals=medium,
                volume_adjustment=t.medium_adjustment,
                explanation=(
                    "Medium-severity signals: "
                    + ", ".join(s.indicator for s in medium)
                    + f"; volume {t.medium_adjustment:+.0%}"
                ),
                urgency=Urgency.MEDIUM,
            )

        if len(medium) == 1:
            signal = medium[0]
            return AdaptationDecision(
                action=signal.recommendation,
                signals=[signal],
                volume_adjustment=t.medium_adjustment,
                explanation=f"{signal.indicator} detected; minor adjustment",
                urgency=Urgency.LOW,
            )

        return AdaptationDecision(
            action=AdaptationAction.MAINTAIN,
            signals=list(signals),
            volume_adjustment=0.0,
            explanation="Low-severity signals only; monitoring, plan maintained",
            urgency=Urgency.LOW,
        )

    # ─────────────────────────────────────────────────────────
    #   Plan mutation
    # ─────────────────────────────────────────────────────────

    def apply_decision(
        self,
        plan: WeeklyPlan,
        decision: AdaptationDecision,
        constraints: TrainingConstraints | None = None,
    ) -> WeeklyPlan:
        """Apply a decision to a copy of the weekly plan.

        Args:
            plan: Weekly plan (not modified)
            decision: Decision from ``decide``
            constraints: Rest-day set used by ``shift_long_run``

        Returns:
            The mutated copy with adaptation note and decision recorded
        """
        adapted = plan.model_copy(deep=True)
        adapted.last_adaptation = decision
        if decision.action == AdaptationAction.MAINTAIN:
            return adapted

        mutations: dict[AdaptationAction, Callable[[WeeklyPlan], str]] = {
            AdaptationAction.REDUCE_VOLUME_MINOR: lambda p: self._reduce_volume(
                p, decision.volume_adjustment
            ),
            AdaptationAction.REDUCE_VOLUME_MAJOR: lambda p: self._reduce_volume(
                p, decision.volume_adjustment
            ),
            AdaptationAction.REDUCE_INTENSITY: self._reduce_intensity,
            AdaptationAction.ADD_REST_DAY: self._add_rest_day,
            AdaptationAction.DELOAD_WEEK: self._deload_week,
            AdaptationAction.SKIP_WORKOUT: self._skip_workout,
            AdaptationAction.SHIFT_LONG_RUN: lambda p: self._shift_long_run(
                p, constraints
            ),
            AdaptationAction.MEDICAL_ATTENTION: self._recovery_week,
        }
        detail = mutations[decision.action](adapted)
        adapted.adaptation_note = f"{decision.explanation}. {detail}"

        logger.info(
            f"Week {plan.week_number}: applied {decision.action} "
            f"({decision.volume_adjustment:+.0%}, urgency {decision.urgency})"
        )
        return adapted

    @staticmethod
    def _unlocked(daily: DailyPlan) -> list[Session]:
        return [s for s in daily.sessions if not s.locked]

    def _reduce_volume(self, plan: WeeklyPlan, adjustment: float) -> str:
        factor = 1 + adjustment
        for daily in plan.days:
            for session in self._unlocked(daily):
                if not session.is_rest:
                    _scale(session, factor)
        _scale_week_targets(plan, factor)
        return f"Volume reduced by {abs(adjustment):.0%}"

    def _reduce_intensity(self, plan: WeeklyPlan) -> str:
        changed = 0
        for daily in plan.days:
            for session in self._unlocked(daily):
                if session.effective_intensity == IntensityLevel.HIGH:
                    session.intensity = IntensityLevel.MEDIUM
                    _append_note(session, "Intensity reduced for recovery")
                    daily.rationale = "Intensity reduced for recovery"
                    changed += 1
        return f"{changed} high-intensity session(s) converted to moderate intensity"

    def _add_rest_day(self, plan: WeeklyPlan) -> str:
        candidates = [
            daily
            for daily in plan.days
            if daily.sessions
            and not daily.has_long_run
            and all(
                not s.locked and s.effective_intensity == IntensityLevel.LOW
                for s in daily.sessions
            )
        ]
        if not candidates:
            return "No easy day available to convert to rest"

        target = min(candidates, key=lambda d: d.total_duration_min())
        target.sessions = []
        target.rationale = "Converted to rest day based on recovery needs"
        return f"Added rest day on {target.day}"

    def _deload_week(self, plan: WeeklyPlan) -> str:
        factor = self.thresholds.deload_factor
        for daily in plan.days:
            for session in self._unlocked(daily):
                if session.is_rest:
                    continue
                _scale(session, factor)
                if session.effective_intensity == IntensityLevel.HIGH:
                    session.intensity = IntensityLevel.MEDIUM
        _scale_week_targets(plan, factor)
        return f"Deload week: volume {factor - 1:+.0%}, intensity moderated"

    def _skip_workout(self, plan: WeeklyPlan) -> str:
        factor = self.thresholds.skip_volume_factor
        for daily in plan.days:
            for index, session in enumerate(daily.sessions):
                if session.locked or session.effective_intensity != IntensityLevel.HIGH:
                    continue
                daily.sessions[index] = Session(
                    session_id=session.session_id,
                    workout_type=WorkoutType.EASY,
                    title="Easy Recovery Run",
                    description="Easy recovery run (hard workout skipped)",
                    purpose="Recovery and adaptation",
                    distance_km=(
                        round(session.distance_km * factor, 1)
                        if session.distance_km is not None
                        else None
                    ),
                    duration_min=(
                        round(session.duration_min * factor)
                        if session.duration_min is not None
                        else None
                    ),
                    intensity=IntensityLevel.LOW,
                    origin=SessionOrigin.ADAPTIVE,
                )
                daily.rationale = "Hard workout replaced with easy recovery run"
                return f"{session.title} on {daily.day} converted to easy run"
        return "No hard workout to skip"

    def _shift_long_run(
        self, plan: WeeklyPlan, constraints: TrainingConstraints | None
    ) -> str:
        rest_days = resolve_rest_days(constraints) if constraints is not None else []
        for index, daily in enumerate(plan.days):
            if not daily.has_long_run:
                continue
            if index == len(plan.days) - 1:
                return "Long run is on the last day of the week; not shifted"
            following = plan.days[index + 1]
            if following.day in rest_days:
                return f"Long run not shifted: {following.day} is a rest day"
            if any(s.locked for s in (*daily.sessions, *following.sessions)):
                return "Long run not shifted: a locked session is involved"
            daily.sessions, following.sessions = following.sessions, daily.sessions
            daily.rationale, following.rationale = following.rationale, daily.rationale
            return f"Long run shifted from {daily.day} to {following.day}"
        return "No long run to shift"

    def _recovery_week(self, plan: WeeklyPlan) -> str:
        t = self.thresholds
        factor = t.medical_volume_factor
        for index, daily in enumerate(plan.days):
            locked = [s for s in daily.sessions if s.locked]
            unlocked = self._unlocked(daily)
            if index % 2 == 0 or not any(not s.is_rest for s in unlocked):
                daily.sessions = locked
                daily.rationale = "Rest day for recovery"
                continue
            distance = sum(s.distance_km or 0 for s in unlocked)
            duration = sum(s.duration_min or 0 for s in unlocked)
            daily.sessions = [
                *locked,
                Session(
                    session_id=unlocked[0].session_id,
                    workout_type=WorkoutType.EASY,
                    title="Very Easy Recovery Run",
                    description="Very easy recovery run",
                    purpose="Active recovery",
                    distance_km=round(min(distance * factor, t.medical_max_distance_km), 1),
                    duration_min=round(min(duration * factor, t.medical_max_duration_min)),
                    intensity=IntensityLevel.LOW,
                    origin=SessionOrigin.ADAPTIVE,
                ),
            ]
            daily.rationale = "Recovery focus week"
        _scale_week_targets(plan, factor)
        return "Recovery week: alternating rest and very easy runs"

    # ─────────────────────────────────────────────────────────
    #   Pipeline
    # ─────────────────────────────────────────────────────────

    def adapt_week(
        self,
        plan: WeeklyPlan,
        feedback: Sequence[DailyFeedback],
        athlete: AthleteProfile,
        constraints: TrainingConstraints | None = None,
        previous_week_mileage: float | None = None,
        races: Sequence[RaceFeedback] = (),
        dnf_events: Sequence[DNFEvent] = (),
        previous_weeks: Sequence[WeeklyPlan] | None = None,
    ) -> AdaptationResult:
        """Run signals, decision, mutation, conflict pass and guardrail re-check.

        Args:
            plan: Current weekly plan (not modified)
            feedback: Recent daily feedback
            athlete: Athlete profile
            constraints: Training constraints (rest days)
            previous_week_mileage: Previous week's mileage for the guardrails
            races: Race and race-simulation reports
            dnf_events: Races the athlete did not finish
            previous_weeks: Earlier weekly plans for the progression rules

        Returns:
            AdaptationResult with the adapted plan, the decision, the check
            and the weighted race/DNF insights (highest confidence first)
        """
        signals = self.extract_signals(feedback, races, dnf_events)
        decision = self.decide(signals)
        adapted = self.apply_decision(plan, decision, constraints)
        if decision.action != AdaptationAction.MAINTAIN:
            adapted = self.resolver.resolve_weekly_conflicts(adapted)

        check = self.safety.check(
            adapted, athlete, previous_week_mileage, previous_weeks=previous_weeks
        )
        adapted.safety = check
        for item in (*check.violations, *check.warnings):
            note = f"Safety {item.severity}: {item.message}"
            if note not in adapted.notes:
                adapted.notes.append(note)
        log_safety_result(logger, check, f"adapted week {plan.week_number}")

        insights = [
            *(i for race in races for i in process_race_feedback(race, self.thresholds)),
            *(i for event in dnf_events for i in process_dnf_event(event, self.thresholds)),
        ]
        insights.sort(key=lambda i: i.confidence, reverse=True)
        if insights:
            logger.info(
                f"Week {plan.week_number}: {len(insights)} race/DNF insight(s), "
                f"top: {insights[0].message}"
            )

        return AdaptationResult(
            plan=adapted, decision=decision, safety=check, insights=insights
        )

    def assess_overall_readiness(
        self,
        feedback: Sequence[DailyFeedback],
        races: Sequence[RaceFeedback] = (),
        dnf_events: Sequence[DNFEvent] = (),
    ) -> OverallReadiness:
        """Readiness score from the signals of a feedback window and recent events."""
        signals = self.extract_signals(feedback, races, dnf_events)
        critical = [s for s in signals if s.severity == SignalSeverity.CRITICAL]
        high = [s for s in signals if s.severity == SignalSeverity.HIGH]

        if critical:
            return OverallReadiness(
                ready=False, score=20, blockers=[s.indicator for s in critical]
            )
        if len(high) >= 2:
            return OverallReadiness(
                ready=False, score=40, blockers=[s.indicator for s in high]
            )

        score = max(0, 100 - (40 * len(critical) + 20 * len(high) + 5 * len(signals)))
        ready = score >= self.thresholds.readiness_threshold
        return OverallReadiness(
            ready=ready,
            score=score,
            blockers=[] if ready else [s.indicator for s in signals],
        )
