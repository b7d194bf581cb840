"""Workout catalog: queryable templates tagged by phase, category and race type.

The catalog is an ordinary object handed to the microcycle generator, so an
alternate library can be injected in tests or for other disciplines.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel, Field

from ultra_plan.training_plan.models import (
    PHASE_ORDER,
    AthleteCategory,
    IntensityLevel,
    IntervalSet,
    RaceType,
    Session,
    SessionOrigin,
    TrainingPhase,
    WorkoutStructure,
    WorkoutType,
)

logger = logging.getLogger(__name__)

_ALL_CATEGORIES = (AthleteCategory.CAT1, AthleteCategory.CAT2)
_CAT2 = (AthleteCategory.CAT2,)
_ALL_RACES = tuple(RaceType)
_TRAINING_PHASES = (
    TrainingPhase.TRANSITION,
    TrainingPhase.BASE,
    TrainingPhase.INTENSITY,
    TrainingPhase.SPECIFICITY,
    TrainingPhase.TAPER,
)
_BUILD_PHASES = (TrainingPhase.BASE, TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY)


class Prerequisites(BaseModel):
    """Minimum athlete state for a catalog entry."""

    min_weekly_km: float | None = None
    min_training_age_months: int | None = None


class WorkoutTemplate(BaseModel):
    """One catalog entry: a session template plus its tags."""

    id: str
    phases: tuple[TrainingPhase, ...]
    categories: tuple[AthleteCategory, ...] = _ALL_CATEGORIES
    race_types: tuple[RaceType, ...] = _ALL_RACES
    template: Session
    prerequisites: Prerequisites | None = None

    @property
    def workout_type(self) -> WorkoutType:
        return self.template.workout_type

    def instantiate(self, origin: SessionOrigin = SessionOrigin.BASE_PLAN) -> Session:
        """Fresh session from this template, tagged with its catalog id."""
        return self.template.model_copy(
            deep=True, update={"origin": origin, "library_id": self.id}
        )


def meets_prerequisites(
    entry: WorkoutTemplate,
    weekly_km: float | None = None,
    training_age_months: float | None = None,
) -> bool:
    """Check whether an athlete satisfies a catalog entry's prerequisites.

    Args:
        entry: Catalog entry
        weekly_km: Athlete's current weekly volume
        training_age_months: Months of consistent training

    Returns:
        True when the entry has no prerequisites or all are met
    """
    prereq = entry.prerequisites
    if prereq is None:
        return True
    if prereq.min_weekly_km is not None and (
        weekly_km is None or weekly_km < prereq.min_weekly_km
    ):
        return False
    if prereq.min_training_age_months is not None and (
        training_age_months is None
        or training_age_months < prereq.min_training_age_months
    ):
        return False
    return True


def _intervals(
    work: float, rest: float, reps: int, intensity: str, warmup=None, cooldown=None
) -> WorkoutStructure:
    return WorkoutStructure(
        warmup_min=warmup,
        cooldown_min=cooldown,
        intervals=[IntervalSet(work_min=work, rest_min=rest, reps=reps, intensity=intensity)],
    )


DEFAULT_WORKOUTS: tuple[WorkoutTemplate, ...] = (
    # Easy and aerobic
    WorkoutTemplate(
        id="easy_short",
        phases=_TRAINING_PHASES,
        race_types=tuple(r for r in RaceType if r != RaceType.STAGE_RACE),
        template=Session(
            workout_type=WorkoutType.EASY,
            title="Easy Recovery Run",
            duration_range=(30, 45),
            intensity_zones=["Z1", "Z2"],
            description="Short easy pace run for recovery or light training stimulus.",
            purpose="Active recovery and aerobic maintenance",
        ),
    ),
    WorkoutTemplate(
        id="easy_medium",
        phases=_BUILD_PHASES,
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
            RaceType.ULTRA_200M,
            RaceType.MARATHON,
            RaceType.CUSTOM,
        ),
        template=Session(
            workout_type=WorkoutType.EASY,
            title="Easy Aerobic Run",
            duration_range=(45, 75),
            intensity_zones=["Z1", "Z2"],
            description="Moderate-length easy run for aerobic development.",
            purpose="Build aerobic capacity and fat oxidation",
        ),
    ),
    WorkoutTemplate(
        id="easy_with_strides",
        phases=_BUILD_PHASES,
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
            RaceType.MARATHON,
            RaceType.HALF_MARATHON,
            RaceType.CUSTOM,
        ),
        template=Session(
            workout_type=WorkoutType.EASY,
            title="Easy Run + Strides",
            duration_range=(45, 60),
            intensity_zones=["Z1", "Z2"],
            structure=_intervals(0.33, 2, 6, "Fast but relaxed (form focus)", warmup=10),
            description="Easy run finishing with 6-8 strides for neuromuscular activation.",
            purpose="Maintain leg speed and running economy during base training",
        ),
    ),
    # Hill sprints
    WorkoutTemplate(
        id="hill_sprints_short",
        phases=(TrainingPhase.BASE, TrainingPhase.INTENSITY),
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
            RaceType.ULTRA_200M,
            RaceType.SKIMO,
            RaceType.CUSTOM,
        ),
        template=Session(
            workout_type=WorkoutType.HILL_SPRINTS,
            title="Short Hill Sprints",
            duration_range=(30, 40),
            intensity_zones=["Z4", "Z5"],
            structure=_intervals(
                0.33, 3, 8, "Maximum power (not speed)", warmup=15, cooldown=10
            ),
            description="8x20s uphill sprints at maximum power.",
            purpose="Build power and running economy without high-impact stress",
            is_key_workout=True,
        ),
    ),
    WorkoutTemplate(
        id="hill_sprints_long",
        phases=(TrainingPhase.BASE, TrainingPhase.INTENSITY),
        categories=_CAT2,
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
            RaceType.SKIMO,
        ),
        template=Session(
            workout_type=WorkoutType.HILL_SPRINTS,
            title="Extended Hill Sprints",
            duration_min=45,
            intensity_zones=["Z4", "Z5"],
            structure=_intervals(0.5, 3, 10, "Powerful uphill drive", warmup=15, cooldown=10),
            description="10x30s hill sprints with full recovery between reps.",
            purpose="Advanced power development for mountain ultras",
            is_key_workout=True,
        ),
        prerequisites=Prerequisites(min_weekly_km=40),
    ),
    # Long runs
    WorkoutTemplate(
        id="long_run_easy",
        phases=(TrainingPhase.BASE, TrainingPhase.INTENSITY),
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
            RaceType.MARATHON,
            RaceType.HALF_MARATHON,
        ),
        template=Session(
            workout_type=WorkoutType.LONG,
            title="Long Run - Easy Effort",
            duration_range=(90, 180),
            distance_range=(15, 30),
            intensity_zones=["Z1", "Z2"],
            description="Long steady run entirely at easy aerobic pace.",
            purpose="Build aerobic endurance and time-on-feet",
            is_key_workout=True,
            notes="Practice fueling every 30-40 minutes",
        ),
    ),
    WorkoutTemplate(
        id="long_run_progression",
        phases=(TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY),
        categories=_CAT2,
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.MARATHON,
        ),
        template=Session(
            workout_type=WorkoutType.LONG,
            title="Progressive Long Run",
            duration_range=(120, 180),
            intensity_zones=["Z2", "Z3"],
            description="Long run starting easy, finishing with 30-40 min at moderate-hard effort.",
            purpose="Train lactate clearing and sustained effort on fatigued legs",
            is_key_workout=True,
            is_hard=True,
        ),
        prerequisites=Prerequisites(min_weekly_km=50),
    ),
    WorkoutTemplate(
        id="long_run_mountain",
        phases=(TrainingPhase.SPECIFICITY,),
        race_types=(RaceType.ULTRA_100K, RaceType.ULTRA_100M, RaceType.ULTRA_200M),
        template=Session(
            workout_type=WorkoutType.LONG,
            title="Mountain Long Run",
            duration_range=(180, 360),
            vertical_range=(800, 2500),
            intensity_zones=["Z1", "Z2", "Z3"],
            description="Long trail run with significant vertical gain.",
            purpose="Build climbing endurance and specificity for mountain ultras",
            is_key_workout=True,
            notes="Power hike steep sections. Practice using poles if race allows.",
        ),
    ),
    # Back-to-back weekends
    WorkoutTemplate(
        id="back_to_back_moderate",
        phases=(TrainingPhase.SPECIFICITY,),
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
        ),
        template=Session(
            workout_type=WorkoutType.BACK_TO_BACK,
            title="Back-to-Back Weekend (Sat+Sun)",
            description="Saturday: 3-4 hour long run. Sunday: 2-3 hour easy run on tired legs.",
            purpose="Train running on fatigue to simulate race conditions",
            is_key_workout=True,
        ),
    ),
    WorkoutTemplate(
        id="back_to_back_big",
        phases=(TrainingPhase.SPECIFICITY,),
        categories=_CAT2,
        race_types=(RaceType.ULTRA_100M, RaceType.ULTRA_200M),
        template=Session(
            workout_type=WorkoutType.BACK_TO_BACK,
            title="Peak Weekend Block",
            description="Saturday: 5-8 hour run/hike with vert. Sunday: 3-5 hour moderate run.",
            purpose="Simulate multi-day ultra fatigue",
            is_key_workout=True,
            is_hard=True,
        ),
        prerequisites=Prerequisites(min_weekly_km=80, min_training_age_months=16),
    ),
    # Tempo
    WorkoutTemplate(
        id="tempo_short",
        phases=(TrainingPhase.INTENSITY,),
        race_types=(RaceType.ULTRA_50K, RaceType.MARATHON, RaceType.HALF_MARATHON),
        template=Session(
            workout_type=WorkoutType.TEMPO,
            title="Tempo Run - 20 minutes",
            duration_min=40,
            intensity_zones=["Z3"],
            structure=_intervals(
                20, 0, 1, "Comfortably hard (marathon effort)", warmup=10, cooldown=10
            ),
            description="20 minutes at tempo pace.",
            purpose="Improve lactate threshold and aerobic efficiency",
            is_hard=True,
            is_key_workout=True,
        ),
    ),
    WorkoutTemplate(
        id="tempo_long",
        phases=(TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY),
        categories=_CAT2,
        race_types=(RaceType.ULTRA_50K, RaceType.MARATHON),
        template=Session(
            workout_type=WorkoutType.TEMPO,
            title="Extended Tempo",
            duration_min=60,
            intensity_zones=["Z3"],
            structure=_intervals(30, 0, 1, "Steady hard effort", warmup=15, cooldown=15),
            description="30 minutes continuous at threshold effort.",
            purpose="Advanced lactate threshold training",
            is_hard=True,
            is_key_workout=True,
        ),
        prerequisites=Prerequisites(min_weekly_km=60),
    ),
    # VO2max
    WorkoutTemplate(
        id="vo2_3min",
        phases=(TrainingPhase.INTENSITY,),
        race_types=(RaceType.ULTRA_50K, RaceType.MARATHON, RaceType.HALF_MARATHON),
        template=Session(
            workout_type=WorkoutType.VO2,
            title="VO2max Intervals - 3 minute",
            duration_min=50,
            intensity_zones=["Z4", "Z5"],
            structure=_intervals(3, 3, 6, "5K race effort", warmup=15, cooldown=10),
            description="6x3min @ VO2max with 3min jog recovery.",
            purpose="Boost maximal aerobic power",
            is_hard=True,
            is_key_workout=True,
        ),
    ),
    WorkoutTemplate(
        id="billat_30_30",
        phases=(TrainingPhase.INTENSITY,),
        categories=_CAT2,
        race_types=(RaceType.ULTRA_50K, RaceType.MARATHON),
        template=Session(
            workout_type=WorkoutType.VO2,
            title="Billat 30/30s",
            duration_min=45,
            intensity_zones=["Z5"],
            structure=_intervals(0.5, 0.5, 20, "Fast (vVO2max)", warmup=15, cooldown=10),
            description="20x 30s fast / 30s slow jog.",
            purpose="Efficient VO2max stimulus with manageable fatigue",
            is_hard=True,
            is_key_workout=True,
        ),
    ),
    # Hill repeats
    WorkoutTemplate(
        id="hill_repeats_medium",
        phases=(TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY),
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
            RaceType.SKIMO,
        ),
        template=Session(
            workout_type=WorkoutType.HILL_REPEATS,
            title="Hill Repeats - 3 minutes",
            duration_min=60,
            intensity=IntensityLevel.HIGH,
            intensity_zones=["Z4"],
            structure=_intervals(3, 3, 6, "Hard uphill effort", warmup=15, cooldown=10),
            description="6x3min uphill repeats at threshold-VO2 effort. Jog down for recovery.",
            purpose="Build climbing power and leg strength",
            is_hard=True,
            is_key_workout=True,
        ),
    ),
    # Muscular endurance
    WorkoutTemplate(
        id="me_weighted_hike",
        phases=_BUILD_PHASES,
        template=Session(
            workout_type=WorkoutType.MUSCULAR_ENDURANCE,
            title="Weighted Uphill Hike",
            duration_range=(45, 90),
            vertical_range=(300, 800),
            intensity_zones=["Z2", "Z3"],
            description="Steep uphill hike carrying 5-7 kg in a vest or pack.",
            purpose="Build quad and glute endurance for mountain climbing",
            is_hard=True,
            notes="Stair climber or treadmill at 15% grade if no hills are available",
        ),
    ),
    WorkoutTemplate(
        id="me_treadhill_double",
        phases=_BUILD_PHASES,
        categories=_CAT2,
        race_types=(RaceType.ULTRA_100M, RaceType.SKIMO),
        template=Session(
            workout_type=WorkoutType.MUSCULAR_ENDURANCE,
            title="Treadhill Double Session",
            duration_min=30,
            vertical_gain_m=500,
            intensity_zones=["Z2", "Z3"],
            description="Second workout of the day: 30 min uphill treadmill hike at 12-15% grade.",
            purpose="Boost vertical capacity without additional impact",
        ),
        prerequisites=Prerequisites(min_weekly_km=60),
    ),
    # Strength and core
    WorkoutTemplate(
        id="strength_ultra_legs",
        phases=_BUILD_PHASES,
        template=Session(
            workout_type=WorkoutType.STRENGTH,
            title="Ultra Legs Circuit",
            duration_min=30,
            description="Squats, lunges, step-ups, single-leg deadlifts, calf raises.",
            purpose="Build general strength and injury resilience",
        ),
    ),
    WorkoutTemplate(
        id="strength_mountain_legs",
        phases=(TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY),
        race_types=(RaceType.ULTRA_100K, RaceType.ULTRA_100M, RaceType.SKIMO),
        template=Session(
            workout_type=WorkoutType.STRENGTH,
            title="Mountain Legs",
            duration_min=40,
            description="Weighted step-ups, split squats, box jumps, weighted carries.",
            purpose="Build power for climbing and descending",
            is_hard=True,
            notes="Last heavy session 2-3 weeks before race",
        ),
    ),
    WorkoutTemplate(
        id="core_stability",
        phases=_TRAINING_PHASES,
        template=Session(
            workout_type=WorkoutType.CORE_STABILITY,
            title="Core Stability",
            duration_range=(20, 30),
            description="Planks, dead bugs, side planks, single-leg balance work.",
            purpose="Trunk stability for late-race form",
        ),
    ),
    # Cross-training and hiking
    WorkoutTemplate(
        id="cross_train_easy",
        phases=_TRAINING_PHASES,
        template=Session(
            workout_type=WorkoutType.CROSS_TRAIN,
            title="Easy Cross-Training",
            duration_range=(45, 90),
            intensity_zones=["Z1", "Z2"],
            description="Bike, swim, elliptical, or row at easy aerobic effort.",
            purpose="Build aerobic base without running impact",
        ),
    ),
    WorkoutTemplate(
        id="hike_long",
        phases=(TrainingPhase.SPECIFICITY,),
        race_types=(RaceType.ULTRA_100M, RaceType.ULTRA_200M),
        template=Session(
            workout_type=WorkoutType.HIKE,
            title="Long Mountain Hike",
            duration_range=(240, 480),
            vertical_range=(1000, 3000),
            intensity_zones=["Z1", "Z2"],
            description="Multi-hour mountain hike with significant elevation.",
            purpose="Build hiking-specific fitness for 100M/200M races",
            is_key_workout=True,
        ),
    ),
    WorkoutTemplate(
        id="skimo_uphill_intervals",
        phases=(TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY),
        race_types=(RaceType.SKIMO,),
        template=Session(
            workout_type=WorkoutType.SKIMO,
            title="Skimo Uphill Intervals",
            duration_min=60,
            vertical_gain_m=800,
            intensity=IntensityLevel.HIGH,
            intensity_zones=["Z4"],
            description="Skin uphill intervals at threshold+ effort with transitions.",
            purpose="Build skimo-specific climbing power",
            is_hard=True,
            is_key_workout=True,
        ),
    ),
    # Rest, taper and race prep
    WorkoutTemplate(
        id="rest",
        phases=PHASE_ORDER,
        template=Session(
            workout_type=WorkoutType.REST,
            title="Complete Rest",
            description="Full day off from training.",
            purpose="Allow body to adapt to training stress",
        ),
    ),
    WorkoutTemplate(
        id="taper_sharpener",
        phases=(TrainingPhase.TAPER,),
        template=Session(
            workout_type=WorkoutType.EASY,
            title="Taper Sharpener",
            duration_range=(30, 45),
            distance_range=(5, 7),
            vertical_range=(50, 100),
            intensity_zones=["Z1", "Z2"],
            structure=_intervals(0.33, 2, 6, "Fast but relaxed"),
            description="Short easy run with 6-8 strides to maintain leg speed.",
            purpose="Keep leg speed without adding fatigue",
            is_key_workout=True,
        ),
    ),
    WorkoutTemplate(
        id="shakeout",
        phases=(TrainingPhase.TAPER, TrainingPhase.GOAL),
        template=Session(
            workout_type=WorkoutType.SHAKEOUT,
            title="Pre-Race Shakeout",
            duration_min=20,
            intensity_zones=["Z1", "Z2"],
            structure=_intervals(0.33, 2, 4, "Fast but relaxed"),
            description="Short easy jog with 4 strides to stay loose before race.",
            purpose="Keep legs feeling fresh without adding fatigue",
        ),
    ),
    WorkoutTemplate(
        id="race_simulation",
        phases=(TrainingPhase.SPECIFICITY,),
        race_types=(
            RaceType.ULTRA_50K,
            RaceType.ULTRA_50M,
            RaceType.ULTRA_100K,
            RaceType.ULTRA_100M,
        ),
        template=Session(
            workout_type=WorkoutType.SIMULATION,
            title="Race Simulation",
            duration_range=(120, 240),
            intensity=IntensityLevel.HIGH,
            description="Race pacing, fueling and gear for 2-4 hours at goal race effort.",
            purpose="Test race-day strategy in training",
            is_key_workout=True,
            is_hard=True,
        ),
    ),
)


class WorkoutCatalog:
    """Query layer over a set of workout templates."""

    def __init__(self, entries: Iterable[WorkoutTemplate] | None = None):
        self._entries: tuple[WorkoutTemplate, ...] = tuple(
            DEFAULT_WORKOUTS if entries is None else entries
        )
        ids = [e.id for e in self._entries]
        if len(ids) != len(set(ids)):
            raise ValueError("Workout catalog ids must be unique")

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[WorkoutTemplate, ...]:
        return self._entries

    def get_by_id(self, workout_id: str) -> WorkoutTemplate | None:
        for entry in self._entries:
            if entry.id == workout_id:
                return entry
        return None

    def query(
        self,
        workout_type: WorkoutType | None = None,
        phase: TrainingPhase | None = None,
        category: AthleteCategory | None = None,
        race_type: RaceType | None = None,
        is_hard: bool | None = None,
        is_key_workout: bool | None = None,
    ) -> list[WorkoutTemplate]:
        """Return entries matching every given criterion, in catalog order.

        Args:
            workout_type: Session type
            phase: Training phase the entry must be tagged with
            category: Athlete category the entry must be tagged with
            race_type: Race type the entry must be tagged with
            is_hard: Filter on the template's hard flag
            is_key_workout: Filter on the template's key-workout flag

        Returns:
            Matching catalog entries (possibly empty)
        """
        matches = []
        for entry in self._entries:
            if workout_type is not None and entry.workout_type != workout_type:
                continue
            if phase is not None and phase not in entry.phases:
                continue
            if category is not None and category not in entry.categories:
                continue
            if race_type is not None and race_type not in entry.race_types:
                continue
            if is_hard is not None and entry.template.is_hard != is_hard:
                continue
            if is_key_workout is not None and entry.template.is_key_workout != is_key_workout:
                continue
            matches.append(entry)
        return matches

    def for_phase(self, phase: TrainingPhase) -> list[WorkoutTemplate]:
        return self.query(phase=phase)

    def for_category(self, category: AthleteCategory) -> list[WorkoutTemplate]:
        return self.query(category=category)

    def for_race(self, race_type: RaceType) -> list[WorkoutTemplate]:
        return self.query(race_type=race_type)

    def by_type(self, workout_type: WorkoutType) -> list[WorkoutTemplate]:
        return self.query(workout_type=workout_type)
