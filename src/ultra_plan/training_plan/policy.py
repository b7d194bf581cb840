"""Immutable policy tables for the plan engine.

Each engine accepts its policy as a parameter that defaults to the matching
DEFAULT_* instance below. Tests substitute alternate tables with
``dataclasses.replace`` instead of patching module globals.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeVar

from ultra_plan.training_plan.models import (
    AthleteCategory,
    DayOfWeek,
    FeedbackType,
    IntensityLevel,
    RaceType,
    RecoveryRatio,
    SessionOrigin,
    TrainingPhase,
)

K = TypeVar("K")
V = TypeVar("V")


def frozen_mapping(values: Mapping[K, V]) -> Mapping[K, V]:
    """Read-only copy of a mapping."""
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class MacrocyclePolicy:
    """Phase allocation rules."""

    minimum_weeks: int = 8
    transition_weeks: int = 2
    goal_weeks: int = 1
    min_base_weeks: Mapping[AthleteCategory, int] = field(
        default_factory=lambda: frozen_mapping(
            {AthleteCategory.CAT1: 8, AthleteCategory.CAT2: 6}
        )
    )
    max_base_weeks: int = 16
    min_intensity_weeks: int = 4
    default_intensity_weeks: int = 6
    max_intensity_weeks: int = 10
    min_specificity_weeks: int = 4
    taper_weeks: Mapping[RaceType, int] = field(
        default_factory=lambda: frozen_mapping(
            {
                RaceType.ULTRA_50K: 2,
                RaceType.ULTRA_50M: 2,
                RaceType.ULTRA_100K: 2,
                RaceType.ULTRA_100M: 3,
                RaceType.ULTRA_200M: 3,
                RaceType.STAGE_RACE: 2,
                RaceType.SKIMO: 1,
                RaceType.MARATHON: 2,
                RaceType.HALF_MARATHON: 1,
                RaceType.CUSTOM: 2,
            }
        )
    )
    default_taper_weeks: int = 2
    specificity_ideals: Mapping[RaceType, int] = field(
        default_factory=lambda: frozen_mapping(
            {
                RaceType.ULTRA_50K: 5,
                RaceType.ULTRA_100M: 7,
                RaceType.ULTRA_200M: 8,
            }
        )
    )
    # Fraction of the remainder given to intensity and to specificity when
    # the category minimums cannot all be honored.
    short_plan_split: float = 0.3


@dataclass(frozen=True)
class VolumePolicy:
    """Weekly volume targets and range concretization."""

    default_start_mileage: float = 40.0
    default_volume_ceiling: float = 120.0
    phase_multipliers: Mapping[TrainingPhase, float] = field(
        default_factory=lambda: frozen_mapping(
            {
                TrainingPhase.TRANSITION: 0.5,
                TrainingPhase.BASE: 0.85,
                TrainingPhase.INTENSITY: 0.95,
                TrainingPhase.SPECIFICITY: 1.0,
                TrainingPhase.TAPER: 0.65,
                TrainingPhase.GOAL: 0.3,
            }
        )
    )
    category_multipliers: Mapping[AthleteCategory, float] = field(
        default_factory=lambda: frozen_mapping(
            {AthleteCategory.CAT1: 1.0, AthleteCategory.CAT2: 1.15}
        )
    )
    max_weekly_increase: float = 0.10
    recovery_week_reduction: float = 0.20
    hilly_race_threshold_m: float = 1000.0
    vert_per_km_hilly: float = 40.0
    vert_per_km_flat: float = 20.0
    specificity_vert_boost: float = 1.3
    taper_vert_factor: float = 0.5
    easy_pace_min_per_km: float = 6.0
    hard_pace_min_per_km: float = 5.0
    hill_vert_per_km: float = 45.0
    long_vert_per_km: float = 18.0
    other_vert_per_km: float = 10.0
    core_sessions_per_week: Mapping[TrainingPhase, int] = field(
        default_factory=lambda: frozen_mapping(
            {
                TrainingPhase.TRANSITION: 3,
                TrainingPhase.BASE: 2,
                TrainingPhase.INTENSITY: 2,
                TrainingPhase.SPECIFICITY: 2,
                TrainingPhase.TAPER: 1,
                TrainingPhase.GOAL: 0,
            }
        )
    )
    long_run_day: DayOfWeek = DayOfWeek.SAT
    # Race duration estimate when no expected time is known
    race_pace_min_per_km: float = 6.0
    race_min_per_100m_vert: float = 10.0
    # Long run cap as a fraction of weekly volume, scaled by phase
    long_run_max_fraction: Mapping[RaceType, float] = field(
        default_factory=lambda: frozen_mapping(
            {
                RaceType.ULTRA_50K: 0.35,
                RaceType.ULTRA_50M: 0.35,
                RaceType.ULTRA_100K: 0.40,
                RaceType.ULTRA_100M: 0.45,
                RaceType.ULTRA_200M: 0.50,
                RaceType.STAGE_RACE: 0.35,
                RaceType.SKIMO: 0.30,
                RaceType.MARATHON: 0.35,
                RaceType.HALF_MARATHON: 0.30,
                RaceType.CUSTOM: 0.40,
            }
        )
    )
    long_run_phase_factors: Mapping[TrainingPhase, float] = field(
        default_factory=lambda: frozen_mapping(
            {
                TrainingPhase.BASE: 0.7,
                TrainingPhase.INTENSITY: 0.85,
                TrainingPhase.SPECIFICITY: 1.0,
            }
        )
    )
    long_run_race_fraction: float = 0.75
    multiday_races: frozenset[RaceType] = frozenset(
        {RaceType.ULTRA_100M, RaceType.ULTRA_200M}
    )
    multiday_specificity_long_run_km: float = 55.0
    back_to_back_races: frozenset[RaceType] = frozenset(
        {
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
            RaceType.ULTRA_200M,
            RaceType.STAGE_RACE,
        }
    )
    # Cat1 athletes only get back-to-back runs for races at least this long
    back_to_back_cat1_min_km: float = 80.0
    back_to_back_second_day_fraction: float = 0.6


@dataclass(frozen=True)
class SafetyLimits:
    """Guardrail thresholds."""

    weekly_volume_band: Mapping[AthleteCategory, tuple[float, float]] = field(
        default_factory=lambda: frozen_mapping(
            {
                AthleteCategory.CAT1: (15.0, 100.0),
                AthleteCategory.CAT2: (30.0, 160.0),
            }
        )
    )
    max_weekly_increase: float = 0.10
    max_weekly_decrease: float = 0.30
    min_rest_days: int = 1
    max_consecutive_hard_days: int = 2
    # Warn when hard days exceed the ratio-implied quota by this factor
    recovery_ratio_tolerance: float = 1.2
    max_high_intensity_sessions: Mapping[AthleteCategory, int] = field(
        default_factory=lambda: frozen_mapping(
            {AthleteCategory.CAT1: 2, AthleteCategory.CAT2: 3}
        )
    )
    acwr_min_history_weeks: int = 4
    acwr_danger_high: float = 1.5
    acwr_high: float = 1.3
    acwr_danger_low: float = 0.7
    acwr_safe_low: float = 0.8
    # Week-over-week rise (load or vertical) that must be followed by recovery
    large_jump: float = 0.15
    masters_age: int = 40
    veteran_age: int = 50
    masters_volume_factor: float = 0.9
    veteran_volume_factor: float = 0.8
    masters_min_rest_days: int = 2
    phase_volume_modifiers: Mapping[TrainingPhase, float] = field(
        default_factory=lambda: frozen_mapping(
            {
                TrainingPhase.TRANSITION: 0.6,
                TrainingPhase.BASE: 0.8,
                TrainingPhase.INTENSITY: 0.9,
                TrainingPhase.SPECIFICITY: 1.0,
                TrainingPhase.TAPER: 0.5,
                TrainingPhase.GOAL: 0.3,
            }
        )
    )

    def age_volume_factor(self, age: int | None) -> float:
        if age is None:
            return 1.0
        if age >= self.veteran_age:
            return self.veteran_volume_factor
        if age >= self.masters_age:
            return self.masters_volume_factor
        return 1.0

    def required_rest_days(self, age: int | None) -> int:
        if age is not None and age >= self.masters_age:
            return self.masters_min_rest_days
        return self.min_rest_days

    def hard_day_quota(self, ratio: RecoveryRatio) -> int:
        """Hard days per week implied by a recovery ratio."""
        return (7 // ratio.cycle_length) * ratio.hard_weeks


@dataclass(frozen=True)
class AdaptationThresholds:
    """Signal thresholds and mutation sizes of the adaptive controller."""

    fatigue_high: float = 7.0
    fatigue_medium: float = 5.0
    consecutive_fatigue_days: int = 3
    pain_critical: float = 5.0
    completion_high: float = 0.5
    completion_medium: float = 0.7
    sleep_low: float = 3.0
    hrv_drop: float = 0.15
    hrv_recent_readings: int = 3
    motivation_low: float = 3.0
    critical_adjustment: float = -0.5
    deload_adjustment: float = -0.3
    single_high_adjustment: float = -0.2
    medium_adjustment: float = -0.1
    deload_factor: float = 0.7
    skip_volume_factor: float = 0.5
    medical_volume_factor: float = 0.4
    medical_max_distance_km: float = 8.0
    medical_max_duration_min: float = 60.0
    readiness_threshold: float = 70.0
    feedback_weights: Mapping[FeedbackType, float] = field(
        default_factory=lambda: frozen_mapping(
            {
                FeedbackType.TRAINING_NORMAL: 1.0,
                FeedbackType.TRAINING_KEY_WORKOUT: 1.5,
                FeedbackType.RACE_SIMULATION: 3.0,
                FeedbackType.RACE: 5.0,
                FeedbackType.DNF: 8.0,
            }
        )
    )
    # Event weight at or above which a race signal is high severity
    event_weight_high: float = 5.0
    race_recovery_days: int = 7
    dnf_recovery_days: int = 14


@dataclass(frozen=True)
class ConflictPolicy:
    """Daily conflict detection and resolution rules."""

    fatigue_medium: float = 120.0
    fatigue_high: float = 150.0
    max_daily_duration_min: float = 300.0
    contradictory_long_run_km: float = 20.0
    intensity_load: Mapping[IntensityLevel, float] = field(
        default_factory=lambda: frozen_mapping(
            {
                IntensityLevel.LOW: 20.0,
                IntensityLevel.MEDIUM: 40.0,
                IntensityLevel.HIGH: 60.0,
            }
        )
    )
    muscular_endurance_bonus: float = 20.0
    long_run_bonus: float = 15.0
    long_run_bonus_km: float = 25.0
    back_to_back_bonus: float = 25.0
    default_duration_min: float = 60.0
    # (minutes, bonus); every threshold exceeded adds its bonus
    duration_bonuses: tuple[tuple[float, float], ...] = ((120.0, 15.0), (180.0, 20.0))
    max_session_load: float = 100.0
    # Sessions above this load are listed in an excessive-fatigue conflict
    contributing_load: float = 40.0
    origin_priority: Mapping[SessionOrigin, int] = field(
        default_factory=lambda: frozen_mapping(
            {
                SessionOrigin.RACE: 7,
                SessionOrigin.USER: 6,
                SessionOrigin.BASE_PLAN: 5,
                SessionOrigin.TAPER_PLAN: 4,
                SessionOrigin.RACE_PLAN: 3,
                SessionOrigin.GENERATED: 2,
                SessionOrigin.ADAPTIVE: 1,
            }
        )
    )
    protected_origins: frozenset[SessionOrigin] = frozenset(
        {SessionOrigin.USER, SessionOrigin.BASE_PLAN, SessionOrigin.RACE}
    )


DEFAULT_MACROCYCLE_POLICY = MacrocyclePolicy()
DEFAULT_VOLUME_POLICY = VolumePolicy()
DEFAULT_SAFETY_LIMITS = SafetyLimits()
DEFAULT_ADAPTATION_THRESHOLDS = AdaptationThresholds()
DEFAULT_CONFLICT_POLICY = ConflictPolicy()
