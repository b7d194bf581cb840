"""Pydantic models for adaptive training plan generation."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class TrainingPhase(StrEnum):
    """Periodization phase, in macrocycle order."""

    TRANSITION = "transition"
    BASE = "base"
    INTENSITY = "intensity"
    SPECIFICITY = "specificity"
    TAPER = "taper"
    GOAL = "goal"


PHASE_ORDER: tuple[TrainingPhase, ...] = (
    TrainingPhase.TRANSITION,
    TrainingPhase.BASE,
    TrainingPhase.INTENSITY,
    TrainingPhase.SPECIFICITY,
    TrainingPhase.TAPER,
    TrainingPhase.GOAL,
)


class AthleteCategory(StrEnum):
    """Athlete volume category."""

    CAT1 = "Cat1"  # low-volume / novice
    CAT2 = "Cat2"  # high-volume / experienced


class RecoveryRatio(StrEnum):
    """Loading-to-recovery week cadence."""

    TWO_TO_ONE = "2:1"
    THREE_TO_ONE = "3:1"

    @property
    def hard_weeks(self) -> int:
        return int(self.value.split(":")[0])

    @property
    def easy_weeks(self) -> int:
        return int(self.value.split(":")[1])

    @property
    def cycle_length(self) -> int:
        """Weeks in one load/recovery cycle (3 for 2:1, 4 for 3:1)."""
        return self.hard_weeks + self.easy_weeks


class RaceType(StrEnum):
    """Race distance / discipline class."""

    ULTRA_50K = "50K"
    ULTRA_50M = "50M"
    ULTRA_100K = "100K"
    ULTRA_100M = "100M"
    ULTRA_200M = "200M"
    STAGE_RACE = "StageRace"
    SKIMO = "Skimo"
    MARATHON = "Marathon"
    HALF_MARATHON = "HalfMarathon"
    CUSTOM = "Custom"


# Lower bound (km) of each distance band, longest first. Bands do not overlap.
RACE_TYPE_BANDS: tuple[tuple[float, RaceType], ...] = (
    (320.0, RaceType.ULTRA_200M),
    (160.0, RaceType.ULTRA_100M),
    (100.0, RaceType.ULTRA_100K),
    (80.0, RaceType.ULTRA_50M),
    (50.0, RaceType.ULTRA_50K),
    (42.0, RaceType.MARATHON),
    (21.0, RaceType.HALF_MARATHON),
)


def infer_race_type(distance_km: float) -> RaceType:
    """Infer the race class from its distance.

    Args:
        distance_km: Race distance in kilometers

    Returns:
        The RaceType whose band contains the distance, CUSTOM below 21 km
    """
    for lower_bound, race_type in RACE_TYPE_BANDS:
        if distance_km >= lower_bound:
            return race_type
    return RaceType.CUSTOM


class RacePriority(StrEnum):
    """Race priority."""

    A = "A"  # goal race
    B = "B"  # tune-up
    C = "C"  # training race


class SurfacePreference(StrEnum):
    """Preferred training surface."""

    ROAD = "road"
    TRAIL = "trail"
    TREADMILL = "treadmill"
    MIXED = "mixed"


class DayOfWeek(StrEnum):
    """Day of the week, Monday first."""

    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"

    @property
    def index(self) -> int:
        """0 for Monday through 6 for Sunday."""
        return WEEK_DAYS.index(self)


WEEK_DAYS: tuple[DayOfWeek, ...] = tuple(DayOfWeek)


class WorkoutType(StrEnum):
    """Workout type."""

    EASY = "easy"
    AEROBIC = "aerobic"
    LONG = "long"
    BACK_TO_BACK = "back_to_back"
    TEMPO = "tempo"
    THRESHOLD = "threshold"
    VO2 = "vo2"
    HILL_SPRINTS = "hill_sprints"
    HILL_REPEATS = "hill_repeats"
    MUSCULAR_ENDURANCE = "muscular_endurance"
    STRENGTH = "strength"
    CORE_STABILITY = "core_stability"
    CROSS_TRAIN = "cross_train"
    REST = "rest"
    SHAKEOUT = "shakeout"
    RACE_PACE = "race_pace"
    SPEED_PLAY = "speed_play"
    HIKE = "hike"
    SKIMO = "skimo"
    HEAT_ADAPTATION = "heat_adaptation"
    OVERNIGHT = "overnight"
    SIMULATION = "simulation"


# Types that cover ground on foot; only these get distance back-filled from duration.
RUNNING_TYPES: frozenset[WorkoutType] = frozenset(
    {
        WorkoutType.EASY,
        WorkoutType.AEROBIC,
        WorkoutType.LONG,
        WorkoutType.BACK_TO_BACK,
        WorkoutType.TEMPO,
        WorkoutType.THRESHOLD,
        WorkoutType.VO2,
        WorkoutType.HILL_SPRINTS,
        WorkoutType.HILL_REPEATS,
        WorkoutType.SHAKEOUT,
        WorkoutType.RACE_PACE,
        WorkoutType.SPEED_PLAY,
        WorkoutType.HIKE,
        WorkoutType.SIMULATION,
    }
)


class IntensityLevel(StrEnum):
    """Coarse session intensity class."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_TYPE_INTENSITY: dict[WorkoutType, IntensityLevel] = {
    WorkoutType.REST: IntensityLevel.LOW,
    WorkoutType.EASY: IntensityLevel.LOW,
    WorkoutType.AEROBIC: IntensityLevel.LOW,
    WorkoutType.SHAKEOUT: IntensityLevel.LOW,
    WorkoutType.CORE_STABILITY: IntensityLevel.LOW,
    WorkoutType.CROSS_TRAIN: IntensityLevel.LOW,
    WorkoutType.STRENGTH: IntensityLevel.MEDIUM,
    WorkoutType.MUSCULAR_ENDURANCE: IntensityLevel.MEDIUM,
    WorkoutType.TEMPO: IntensityLevel.HIGH,
    WorkoutType.THRESHOLD: IntensityLevel.HIGH,
    WorkoutType.VO2: IntensityLevel.HIGH,
    WorkoutType.RACE_PACE: IntensityLevel.HIGH,
    WorkoutType.LONG: IntensityLevel.MEDIUM,
    WorkoutType.BACK_TO_BACK: IntensityLevel.MEDIUM,
}


def default_intensity(workout_type: WorkoutType) -> IntensityLevel:
    """Intensity class implied by a workout type (medium when unlisted)."""
    return _TYPE_INTENSITY.get(workout_type, IntensityLevel.MEDIUM)


class SessionOrigin(StrEnum):
    """Who authored a session."""

    RACE = "RACE"
    USER = "USER"
    BASE_PLAN = "BASE_PLAN"
    TAPER_PLAN = "TAPER_PLAN"
    RACE_PLAN = "RACE_PLAN"
    GENERATED = "GENERATED"
    ADAPTIVE = "ADAPTIVE"


class ViolationSeverity(StrEnum):
    """Guardrail violation severity."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class FlagSeverity(StrEnum):
    """Structural validation flag severity."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class SignalSeverity(StrEnum):
    """Adaptation signal severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SignalSource(StrEnum):
    """Where an adaptation signal came from."""

    FEEDBACK = "feedback"
    PERFORMANCE = "performance"
    INJURY = "injury"
    EXTERNAL = "external"


class AdaptationAction(StrEnum):
    """Coarse-grained plan mutation chosen by the controller."""

    MAINTAIN = "maintain"
    REDUCE_VOLUME_MINOR = "reduce_volume_minor"
    REDUCE_VOLUME_MAJOR = "reduce_volume_major"
    REDUCE_INTENSITY = "reduce_intensity"
    ADD_REST_DAY = "add_rest_day"
    SHIFT_LONG_RUN = "shift_long_run"
    SKIP_WORKOUT = "skip_workout"
    DELOAD_WEEK = "deload_week"
    MEDICAL_ATTENTION = "medical_attention"


class Urgency(StrEnum):
    """Decision urgency."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConflictType(StrEnum):
    """Session conflict type."""

    EXCESSIVE_FATIGUE = "EXCESSIVE_FATIGUE"
    CONTRADICTORY_GOALS = "CONTRADICTORY_GOALS"
    OVERLOAD = "OVERLOAD"
    SCHEDULING_VIOLATION = "SCHEDULING_VIOLATION"
    DURATION_OVERFLOW = "DURATION_OVERFLOW"


class ConflictSeverity(StrEnum):
    """Session conflict severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConflictResolution(StrEnum):
    """Suggested way to resolve a conflict."""

    REMOVE = "remove"
    RESCHEDULE = "reschedule"
    MODIFY = "modify"


class InsightType(StrEnum):
    """Feedback insight classification."""

    CRITICAL = "critical"
    WARNING = "warning"
    POSITIVE = "positive"
    INFO = "info"


class RiskLevel(StrEnum):
    """Overall risk level of a feedback window."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FeedbackType(StrEnum):
    """Kind of event a piece of feedback was recorded for."""

    TRAINING_NORMAL = "training_normal"
    TRAINING_KEY_WORKOUT = "training_key_workout"
    RACE_SIMULATION = "race_simulation"
    RACE = "race"
    DNF = "dnf"


class RaceLimiter(StrEnum):
    """What held the athlete back most in a race."""

    LEGS = "legs"
    STOMACH = "stomach"
    HEAT = "heat"
    PACING = "pacing"
    MINDSET = "mindset"
    EQUIPMENT = "equipment"
    OTHER = "other"


class DNFCause(StrEnum):
    """Reason a race was not finished."""

    INJURY = "injury"
    HEAT = "heat"
    STOMACH = "stomach"
    PACING = "pacing"
    MENTAL = "mental"
    EQUIPMENT = "equipment"
    OTHER = "other"


# ─────────────────────────────────────────────────────────────
#   Athlete and race
# ─────────────────────────────────────────────────────────────


class RaceResult(BaseModel):
    """A completed race from the athlete's history."""

    name: str | None = None
    distance_km: float = Field(ge=0)
    race_date: date | None = None
    finish_time_min: float | None = Field(default=None, gt=0)


class AthleteProfile(BaseModel):
    """Athlete profile.

    Category, start mileage, volume ceiling and recovery ratio are outputs
    of classification (see athlete_profiler.apply_classification).
    """

    age: int | None = Field(default=None, ge=10, le=100)
    years_training: float | None = Field(default=None, ge=0)
    category: AthleteCategory = AthleteCategory.CAT1
    weekly_mileage_history: list[float] = Field(
        default_factory=list, description="Weekly km, most recent last"
    )
    average_vertical_m: float | None = Field(
        default=None, ge=0, description="Average weekly vertical gain (m)"
    )
    recent_races: list[RaceResult] = Field(default_factory=list)
    training_consistency: float | None = Field(
        default=None, ge=0, le=100, description="Training consistency (%)"
    )
    injury_history: list[str] = Field(default_factory=list)
    aerobic_threshold_hr: int | None = Field(default=None, gt=0)
    lactate_threshold_hr: int | None = Field(default=None, gt=0)
    surface_preference: SurfacePreference | None = None
    start_mileage: float | None = Field(
        default=None, gt=0, description="Starting weekly volume (km)"
    )
    volume_ceiling: float | None = Field(
        default=None, gt=0, description="Maximum weekly volume (km)"
    )
    recovery_ratio: RecoveryRatio = RecoveryRatio.THREE_TO_ONE

    @field_validator("weekly_mileage_history")
    @classmethod
    def non_negative_history(cls, v: list[float]) -> list[float]:
        if any(km < 0 for km in v):
            raise ValueError("Weekly mileage cannot be negative")
        return v

    @property
    def average_mileage(self) -> float | None:
        """Average of the last four recorded weeks, None without history."""
        if not self.weekly_mileage_history:
            return None
        recent = self.weekly_mileage_history[-4:]
        return sum(recent) / len(recent)

    @property
    def last_week_mileage(self) -> float | None:
        if not self.weekly_mileage_history:
            return None
        return self.weekly_mileage_history[-1]


class RaceEvent(BaseModel):
    """Goal or tune-up race."""

    name: str
    race_date: date
    distance_km: float = Field(gt=0)
    vertical_gain_m: float = Field(default=0, ge=0)
    race_type: RaceType | None = Field(
        default=None, description="Inferred from distance when omitted"
    )
    priority: RacePriority = RacePriority.A
    expected_time_min: float | None = Field(default=None, gt=0)
    altitude_m: float | None = None
    climate: str | None = None
    terrain: str | None = None
    technical_difficulty: int | None = Field(default=None, ge=1, le=5)

    @model_validator(mode="after")
    def fill_race_type(self) -> RaceEvent:
        if self.race_type is None:
            self.race_type = infer_race_type(self.distance_km)
        return self


# ─────────────────────────────────────────────────────────────
#   Sessions and plans
# ─────────────────────────────────────────────────────────────


class IntervalSet(BaseModel):
    """One repeated work/rest block."""

    work_min: float = Field(gt=0, description="Work duration (min)")
    rest_min: float = Field(ge=0, description="Recovery duration (min)")
    reps: int = Field(ge=1)
    intensity: str | None = None


class WorkoutStructure(BaseModel):
    """Warmup / intervals / cooldown layout."""

    warmup_min: float | None = None
    cooldown_min: float | None = None
    intervals: list[IntervalSet] = Field(default_factory=list)


class Session(BaseModel):
    """A single training session (a workout placed on a day).

    Ranges are resolved into concrete values by the microcycle generator.
    Origin and lock state decide whether the conflict resolver may remove it.
    """

    session_id: str | None = None
    workout_type: WorkoutType
    title: str
    description: str | None = None
    purpose: str | None = None
    duration_min: float | None = Field(default=None, ge=0)
    distance_km: float | None = Field(default=None, ge=0)
    vertical_gain_m: float | None = Field(default=None, ge=0)
    duration_range: tuple[float, float] | None = None
    distance_range: tuple[float, float] | None = None
    vertical_range: tuple[float, float] | None = None
    intensity: IntensityLevel | None = Field(
        default=None, description="Explicit intensity; type default when omitted"
    )
    intensity_zones: list[str] = Field(default_factory=list)
    structure: WorkoutStructure | None = None
    is_hard: bool = False
    is_key_workout: bool = False
    notes: str | None = None
    origin: SessionOrigin = SessionOrigin.GENERATED
    locked: bool = False
    lock_reason: str | None = None
    library_id: str | None = None

    @field_validator("duration_range", "distance_range", "vertical_range")
    @classmethod
    def ordered_range(
        cls, v: tuple[float, float] | None
    ) -> tuple[float, float] | None:
        if v is not None and (v[0] < 0 or v[0] > v[1]):
            raise ValueError(f"Invalid range: {v}")
        return v

    @property
    def effective_intensity(self) -> IntensityLevel:
        return self.intensity or default_intensity(self.workout_type)

    @property
    def is_rest(self) -> bool:
        return self.workout_type == WorkoutType.REST


class DailyPlan(BaseModel):
    """One calendar day. An empty session list is a rest day."""

    day: DayOfWeek
    calendar_date: date
    sessions: list[Session] = Field(default_factory=list)
    rationale: str | None = None

    @property
    def is_rest_day(self) -> bool:
        return all(s.is_rest for s in self.sessions)

    @property
    def has_high_intensity(self) -> bool:
        return any(
            s.effective_intensity == IntensityLevel.HIGH for s in self.sessions
        )

    @property
    def has_long_run(self) -> bool:
        return any(s.workout_type == WorkoutType.LONG for s in self.sessions)

    def total_distance_km(self) -> float:
        return sum(s.distance_km or 0 for s in self.sessions)

    def total_vertical_m(self) -> float:
        return sum(s.vertical_gain_m or 0 for s in self.sessions)

    def total_duration_min(self) -> float:
        return sum(s.duration_min or 0 for s in self.sessions)


class ConstraintViolation(BaseModel):
    """Structural validation flag."""

    code: str
    severity: FlagSeverity
    message: str
    day_or_week: str | None = None
    value: float | None = None
    limit: float | None = None


class PlanValidationResult(BaseModel):
    """Structural validation result of a weekly plan."""

    is_valid: bool
    flags: list[ConstraintViolation] = Field(default_factory=list)
    session_count: int
    training_day_count: int
    rest_day_count: int
    summary: str


class SafetyViolation(BaseModel):
    """One guardrail rule outcome."""

    severity: ViolationSeverity
    rule: str
    message: str
    value: float | None = None
    limit: float | None = None
    recommendation: str | None = None

    @property
    def is_blocking(self) -> bool:
        return self.severity in (ViolationSeverity.ERROR, ViolationSeverity.CRITICAL)


class SafetyCheck(BaseModel):
    """Guardrail evaluation: blocking violations and advisory warnings."""

    passed: bool
    violations: list[SafetyViolation] = Field(
        default_factory=list, description="Blocking (error/critical) violations"
    )
    warnings: list[SafetyViolation] = Field(default_factory=list)
    acwr: float | None = None


class VolumeRange(BaseModel):
    """Safe weekly volume band (km)."""

    min_km: float
    max_km: float
    optimal_km: float


class SessionConflict(BaseModel):
    """Sessions that co-occur in a way that violates fatigue or goal rules."""

    conflict_type: ConflictType
    severity: ConflictSeverity
    sessions: list[Session]
    reason: str
    suggested_resolution: ConflictResolution
    day: DayOfWeek | None = None


class ConflictSummary(BaseModel):
    """Conflict counts for a weekly plan."""

    total: int
    high: int
    medium: int
    low: int
    by_type: dict[ConflictType, int]


class AdaptationSignal(BaseModel):
    """Weighted signal extracted from feedback."""

    source: SignalSource
    severity: SignalSeverity
    indicator: str
    value: float
    threshold: float
    recommendation: AdaptationAction


class AdaptationDecision(BaseModel):
    """Action chosen from the signal ladder."""

    action: AdaptationAction
    signals: list[AdaptationSignal] = Field(default_factory=list)
    volume_adjustment: float = Field(
        default=0.0, description="Fractional change, e.g. -0.3 for -30%"
    )
    explanation: str
    urgency: Urgency


class WeeklyPlan(BaseModel):
    """One microcycle: seven days of sessions plus targets and annotations."""

    week_number: int = Field(ge=1)
    phase: TrainingPhase
    target_mileage: float = Field(ge=0, description="Target weekly distance (km)")
    target_vert: float = Field(ge=0, description="Target weekly vertical (m)")
    actual_mileage: float | None = Field(default=None, ge=0)
    actual_vert: float | None = Field(default=None, ge=0)
    days: list[DailyPlan]
    is_recovery_week: bool = False
    notes: list[str] = Field(default_factory=list)
    adaptation_note: str | None = None
    safety: SafetyCheck | None = None
    conflicts: list[SessionConflict] = Field(default_factory=list)
    last_adaptation: AdaptationDecision | None = None

    @field_validator("days")
    @classmethod
    def seven_days(cls, v: list[DailyPlan]) -> list[DailyPlan]:
        if len(v) != 7:
            raise ValueError(f"A weekly plan has exactly 7 days, got {len(v)}")
        return v

    @property
    def start_date(self) -> date:
        return self.days[0].calendar_date

    @property
    def end_date(self) -> date:
        return self.days[-1].calendar_date

    @property
    def load_mileage(self) -> float:
        """Weekly km used for load checks: actual when recorded, else target."""
        if self.actual_mileage is not None:
            return self.actual_mileage
        return self.target_mileage

    @property
    def load_vertical(self) -> float:
        """Weekly vertical (m) used for load checks: actual when recorded."""
        if self.actual_vert is not None:
            return self.actual_vert
        return self.target_vert

    def get_day(self, day: DayOfWeek) -> DailyPlan:
        return self.days[day.index]

    def iter_sessions(self) -> Iterator[tuple[DailyPlan, Session]]:
        for daily in self.days:
            for session in daily.sessions:
                yield daily, session

    def planned_distance_km(self) -> float:
        return round(sum(d.total_distance_km() for d in self.days), 1)

    def planned_vertical_m(self) -> float:
        return round(sum(d.total_vertical_m() for d in self.days))

    def planned_duration_min(self) -> float:
        return round(sum(d.total_duration_min() for d in self.days))

    def to_summary(self) -> dict[str, Any]:
        """Return a compact summary without session details."""
        return {
            "week_number": self.week_number,
            "phase": self.phase.value,
            "start_date": str(self.start_date),
            "target_mileage": self.target_mileage,
            "target_vert": self.target_vert,
            "planned_distance_km": self.planned_distance_km(),
            "is_recovery_week": self.is_recovery_week,
            "sessions": sum(len(d.sessions) for d in self.days),
            "rest_days": [d.day.value for d in self.days if not d.sessions],
            "safety_passed": self.safety.passed if self.safety else None,
            "adaptation_note": self.adaptation_note,
        }


class MacrocycleWeek(BaseModel):
    """One week of the macrocycle."""

    week_number: int = Field(ge=1)
    phase: TrainingPhase
    start_date: date
    end_date: date
    phase_week: int = Field(ge=1, description="Week number within the phase")


class MacrocyclePlan(BaseModel):
    """Phase allocation from start date to race."""

    weeks: list[MacrocycleWeek]
    total_weeks: int
    phase_breakdown: dict[TrainingPhase, int]
    start_date: date
    race_date: date
    notes: list[str] = Field(default_factory=list)

    def get_week(self, week_number: int) -> MacrocycleWeek | None:
        """Get the macrocycle week with this number."""
        for week in self.weeks:
            if week.week_number == week_number:
                return week
        return None

    def to_summary(self) -> dict[str, Any]:
        return {
            "start_date": str(self.start_date),
            "race_date": str(self.race_date),
            "total_weeks": self.total_weeks,
            "phases": [
                (phase.value, self.phase_breakdown.get(phase, 0))
                for phase in PHASE_ORDER
            ],
            "notes": list(self.notes),
        }


class TrainingConstraints(BaseModel):
    """Structural constraints derived from onboarding inputs."""

    days_per_week: int = Field(ge=0, le=7)
    rest_days: list[DayOfWeek] = Field(
        default_factory=list,
        description="Explicit rest days; derived from days_per_week when short",
    )
    target_weekly_hours: tuple[float, float] | None = None
    max_vert_per_day_m: float | None = Field(default=None, gt=0)
    max_vert_per_week_m: float | None = Field(default=None, gt=0)

    @field_validator("rest_days")
    @classmethod
    def unique_days(cls, v: list[DayOfWeek]) -> list[DayOfWeek]:
        return sorted(set(v), key=lambda d: d.index)


# ─────────────────────────────────────────────────────────────
#   Feedback
# ─────────────────────────────────────────────────────────────


class DailyFeedback(BaseModel):
    """Subjective and physiological feedback for one day."""

    feedback_date: date
    fatigue: float | None = Field(default=None, ge=1, le=10)
    muscle_aches: float | None = Field(default=None, ge=0, le=10)
    sleep_quality: float | None = Field(default=None, ge=1, le=10)
    sleep_hours: float | None = Field(default=None, ge=0, le=24)
    motivation: float | None = Field(default=None, ge=1, le=10)
    rpe: float | None = Field(default=None, ge=1, le=10)
    completion_rate: float | None = Field(default=None, ge=0, le=1)
    injury_notes: str | None = None
    hrv: float | None = Field(default=None, gt=0)


class FeedbackInsight(BaseModel):
    """One observation about a feedback window."""

    insight_type: InsightType
    category: str
    message: str
    value: float | None = None


class FeedbackTrends(BaseModel):
    """Percent change between the first and second half of a window."""

    fatigue: float = 0.0
    motivation: float = 0.0
    recovery: float = 0.0
    performance: float = 0.0


class FeedbackSummary(BaseModel):
    """Aggregated view of a feedback window."""

    period: str
    overall_score: float
    insights: list[FeedbackInsight] = Field(default_factory=list)
    trends: FeedbackTrends = Field(default_factory=FeedbackTrends)
    risk_level: RiskLevel
    ready_for_progression: bool


class OverallReadiness(BaseModel):
    """Readiness verdict derived from adaptation signals."""

    ready: bool
    score: float
    blockers: list[str] = Field(default_factory=list)


class RaceFeedback(BaseModel):
    """Post-race (or race simulation) report. Ratings are 1-5."""

    event_date: date
    is_simulation: bool = False
    climbing_difficulty: int | None = Field(default=None, ge=1, le=5)
    downhill_difficulty: int | None = Field(default=None, ge=1, le=5)
    heat_perception: int | None = Field(default=None, ge=1, le=5)
    biggest_limiter: RaceLimiter | None = None
    issues_start_km: float | None = Field(default=None, ge=0)

    @property
    def feedback_type(self) -> FeedbackType:
        return FeedbackType.RACE_SIMULATION if self.is_simulation else FeedbackType.RACE


class DNFEvent(BaseModel):
    """A race the athlete started but did not finish."""

    event_date: date
    cause: DNFCause
    km_stopped: float = Field(ge=0)
    had_warning_signs: bool = False


class WeightedInsight(BaseModel):
    """Observation from a race or DNF, weighted by the event type."""

    source: FeedbackType
    weight: float
    confidence: float
    message: str
    event_date: date
    affected_models: list[str] = Field(default_factory=list)


class DNFPatterns(BaseModel):
    """Cause distribution and preventive advice across DNF events."""

    total: int
    by_cause: dict[DNFCause, int]
    most_common_cause: DNFCause | None = None
    recommendations: list[str] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────
#   Profiling results
# ─────────────────────────────────────────────────────────────


class ClassificationResult(BaseModel):
    """Athlete classification output."""

    category: AthleteCategory
    start_mileage: float
    volume_ceiling: float
    recovery_ratio: RecoveryRatio
    confidence: int = Field(ge=0, le=100)
    reasoning: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AerobicAssessment(BaseModel):
    """Aerobic threshold vs lactate threshold gap assessment."""

    has_deficiency: bool
    gap_percentage: float | None = None
    recommendation: str
    extend_base_weeks: int = 0


class ReadinessFactors(BaseModel):
    """Component scores (0-100) of a readiness assessment."""

    aerobic_base: float
    consistency: float
    recent_load: float
    recovery: float


class ReadinessScore(BaseModel):
    """Readiness to progress into intensity work."""

    overall_score: int
    can_progress_to_intensity: bool
    factors: ReadinessFactors
    blockers: list[str] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────
#   Orchestration results
# ─────────────────────────────────────────────────────────────


class AdaptationResult(BaseModel):
    """Outcome of one feedback-driven adaptation pass."""

    plan: WeeklyPlan
    decision: AdaptationDecision
    safety: SafetyCheck
    insights: list[WeightedInsight] = Field(default_factory=list)


class TrainingPlan(BaseModel):
    """Complete periodized plan: macrocycle plus generated weeks."""

    race: RaceEvent
    macrocycle: MacrocyclePlan
    weeks: list[WeeklyPlan] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    def get_week(self, week_number: int) -> WeeklyPlan | None:
        """Get the weekly plan for a specific week number."""
        for week in self.weeks:
            if week.week_number == week_number:
                return week
        return None

    def get_phase_for_week(self, week_number: int) -> TrainingPhase | None:
        week = self.get_week(week_number)
        return week.phase if week else None

    def to_summary(self) -> dict[str, Any]:
        """Return a summary without individual sessions."""
        return {
            "race": self.race.name,
            "race_date": str(self.race.race_date),
            "race_type": self.race.race_type.value if self.race.race_type else None,
            "macrocycle": self.macrocycle.to_summary(),
            "weekly_targets_km": [w.target_mileage for w in self.weeks],
            "failed_safety_weeks": [
                w.week_number for w in self.weeks if w.safety and not w.safety.passed
            ],
            "notes": list(self.notes),
        }
