"""Microcycle generator: one week of concrete sessions placed on days.

For a macrocycle week the generator sets the volume targets, selects the long
run, key sessions, a muscular-endurance session, core-stability work and easy
filler runs from the workout catalog, resolves template ranges into concrete
values and places everything on the training days of the constraint set.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from ultra_plan.training_plan.models import (
    RUNNING_TYPES,
    WEEK_DAYS,
    AthleteCategory,
    AthleteProfile,
    DailyPlan,
    DayOfWeek,
    IntensityLevel,
    MacrocycleWeek,
    RacePriority,
    RaceEvent,
    Session,
    SessionOrigin,
    SurfacePreference,
    TrainingConstraints,
    TrainingPhase,
    WeeklyPlan,
    WorkoutType,
)
from ultra_plan.training_plan.policy import DEFAULT_VOLUME_POLICY, VolumePolicy
from ultra_plan.training_plan.rest_days import resolve_rest_days
from ultra_plan.training_plan.workout_library import (
    WorkoutCatalog,
    WorkoutTemplate,
    meets_prerequisites,
)

logger = logging.getLogger(__name__)

# Slot order of sessions within one day
_RACE, _LONG, _B2B, _KEY, _EASY, _ME, _CORE = range(7)

# Preference order for muscular-endurance and core days when spacing ties
_SUPPORT_DAY_ORDER: tuple[DayOfWeek, ...] = (
    DayOfWeek.WED,
    DayOfWeek.THU,
    DayOfWeek.TUE,
    DayOfWeek.MON,
    DayOfWeek.FRI,
    DayOfWeek.SUN,
    DayOfWeek.SAT,
)

_EASY_ROTATION = ("easy_short", "easy_medium", "easy_with_strides")
_MID_WEEK = (DayOfWeek.TUE, DayOfWeek.WED, DayOfWeek.THU)
_ME_PHASES = frozenset(
    {TrainingPhase.BASE, TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY}
)
_TAPERING = frozenset({TrainingPhase.TAPER, TrainingPhase.GOAL})
_BACK_TO_BACK_PHASES = frozenset({TrainingPhase.INTENSITY, TrainingPhase.SPECIFICITY})

# (duration, distance, vertical) ranges
_TAPER_LONG_RUN = ((60, 90), (10, 15), (150, 300))
_DEFAULT_LONG_RUN_VERT = (300, 600)
_EASY_SIZES = {
    "taper": ((30, 50), (5, 8), (50, 100)),
    "mid_week": ((40, 60), (6, 10), (80, 150)),
    "other": ((50, 75), (8, 12), (120, 200)),
}

_HILL_TYPES = frozenset({WorkoutType.HILL_REPEATS, WorkoutType.HILL_SPRINTS})
_EASY_PACE_TYPES = frozenset(
    {WorkoutType.EASY, WorkoutType.AEROBIC, WorkoutType.SHAKEOUT}
)


def _append_note(session: Session, text: str) -> None:
    session.notes = f"{session.notes}\n\n{text}" if session.notes else text


def adapt_workout_to_surface(
    session: Session, surface: SurfacePreference | None
) -> Session:
    """Return a copy of a session with terrain-specific guidance.

    Args:
        session: Session to adapt
        surface: Athlete's preferred surface; mixed or None leaves it unchanged

    Returns:
        Adapted copy (or the original session when nothing applies)
    """
    if surface is None or surface == SurfacePreference.MIXED:
        return session

    adapted = session.model_copy(deep=True)
    wt = session.workout_type

    if wt in (WorkoutType.LONG, WorkoutType.AEROBIC):
        if surface == SurfacePreference.TRAIL:
            _append_note(
                adapted,
                "Trail Running: Allow extra time for technical terrain. Focus on "
                "effort and time rather than distance.",
            )
            if adapted.duration_range is not None:
                low, high = adapted.duration_range
                adapted.duration_range = (round(low * 1.15), round(high * 1.15))
        elif surface == SurfacePreference.TREADMILL:
            _append_note(
                adapted,
                "Treadmill: Break into segments. Vary incline (0-3%) every 15-20 min.",
            )
    elif wt in (WorkoutType.TEMPO, WorkoutType.THRESHOLD, WorkoutType.VO2):
        if surface == SurfacePreference.TRAIL:
            _append_note(
                adapted,
                "Trail: Effort-based pacing. Use a smooth fire road or groomed trail "
                "and hold sustained effort rather than a specific pace.",
            )
        elif surface == SurfacePreference.TREADMILL and wt != WorkoutType.VO2:
            _append_note(
                adapted,
                "Treadmill: Use 1-2% incline to simulate outdoor effort.",
            )
    elif wt in _HILL_TYPES:
        if surface == SurfacePreference.TREADMILL:
            adapted.title = adapted.title.replace("Hill", "Treadmill Hill")
            _append_note(
                adapted,
                "Treadmill: Set to 6-12% grade. Powerful uphill drive, controlled "
                "recovery.",
            )
        elif surface == SurfacePreference.ROAD:
            _append_note(
                adapted,
                "Road: Find a moderate hill (4-8% grade). Parking garages or "
                "overpasses work well.",
            )

    return adapted


def concretize_session(
    session: Session,
    policy: VolumePolicy = DEFAULT_VOLUME_POLICY,
    fallback_distance_km: float | None = None,
) -> Session:
    """Resolve template ranges into concrete duration, distance and vertical.

    Midpoints are taken for any range without a fixed value. Missing
    dimensions are back-filled from fixed pace assumptions (distance only for
    running types) and per-type vertical-per-km heuristics.

    Args:
        session: Session with ranges
        policy: Pace and vertical heuristics
        fallback_distance_km: Distance for running sessions with no size at all

    Returns:
        A concrete copy of the session
    """
    s = session.model_copy(deep=True)
    wt = s.workout_type

    if wt == WorkoutType.REST:
        s.duration_min = 0
        s.distance_km = 0
        s.vertical_gain_m = 0
        return s

    if s.duration_min is None and s.duration_range is not None:
        s.duration_min = round(sum(s.duration_range) / 2)
    if s.distance_km is None and s.distance_range is not None:
        s.distance_km = round(sum(s.distance_range) / 2, 1)
    if s.vertical_gain_m is None and s.vertical_range is not None:
        s.vertical_gain_m = round(sum(s.vertical_range) / 2)

    running = wt in RUNNING_TYPES
    pace = (
        policy.easy_pace_min_per_km
        if wt in _EASY_PACE_TYPES
        else policy.hard_pace_min_per_km
    )

    if running and s.distance_km is None and s.duration_min is None and fallback_distance_km:
        s.distance_km = round(fallback_distance_km, 1)
    if running and s.distance_km is None and s.duration_min:
        s.distance_km = round(s.duration_min / pace, 1)
    if s.duration_min is None and s.distance_km:
        s.duration_min = round(s.distance_km * pace)

    if s.vertical_gain_m is None and s.distance_km:
        if wt in _HILL_TYPES:
            per_km = policy.hill_vert_per_km
        elif wt == WorkoutType.LONG:
            per_km = policy.long_vert_per_km
        else:
            per_km = policy.other_vert_per_km
        s.vertical_gain_m = round(s.distance_km * per_km)

    return s


def _resize(session: Session, sizes: tuple) -> None:
    duration, distance, vertical = sizes
    session.duration_min = None
    session.distance_km = None
    session.vertical_gain_m = None
    session.duration_range = duration
    session.distance_range = distance
    session.vertical_range = vertical


def _shrink(session: Session, distance_km: float) -> None:
    """Scale a concrete session down to a distance, keeping pace and grade."""
    factor = distance_km / session.distance_km
    session.distance_km = distance_km
    if session.duration_min is not None:
        session.duration_min = round(session.duration_min * factor)
    if session.vertical_gain_m is not None:
        session.vertical_gain_m = round(session.vertical_gain_m * factor)


class MicrocycleGenerator:
    """Builds weekly plans from macrocycle weeks."""

    def __init__(
        self,
        catalog: WorkoutCatalog | None = None,
        policy: VolumePolicy = DEFAULT_VOLUME_POLICY,
    ):
        self.catalog = catalog if catalog is not None else WorkoutCatalog()
        self.policy = policy

    # ─────────────────────────────────────────────────────────
    #   Volume targets
    # ─────────────────────────────────────────────────────────

    def target_mileage(
        self,
        athlete: AthleteProfile,
        phase: TrainingPhase,
        previous_week_mileage: float | None = None,
        is_recovery_week: bool = False,
    ) -> float:
        """Weekly distance target (km).

        Starting volume × phase multiplier × category multiplier, capped at a
        10% increase over the previous week (or set 20% below it in a recovery
        week), then capped at the athlete's ceiling.
        """
        p = self.policy
        start = athlete.start_mileage or p.default_start_mileage
        target = (
            start
            * p.phase_multipliers[phase]
            * p.category_multipliers.get(athlete.category, 1.0)
        )

        cap: float | None = None
        if previous_week_mileage:
            if is_recovery_week:
                target = previous_week_mileage * (1 - p.recovery_week_reduction)
            else:
                cap = previous_week_mileage * (1 + p.max_weekly_increase)
                target = min(target, cap)

        ceiling = athlete.volume_ceiling or p.default_volume_ceiling
        target = min(target, ceiling)
        cap = ceiling if cap is None else min(cap, ceiling)

        result = round(target)
        if result > cap:
            # Rounding must never push the target over a cap
            result = math.floor(cap)
        return float(result)

    def target_vert(
        self, race: RaceEvent, phase: TrainingPhase, mileage: float
    ) -> float:
        p = self.policy
        per_km = (
            p.vert_per_km_hilly
            if race.vertical_gain_m > p.hilly_race_threshold_m
            else p.vert_per_km_flat
        )
        vert = mileage * per_km
        if phase == TrainingPhase.SPECIFICITY:
            vert *= p.specificity_vert_boost
        elif phase == TrainingPhase.TAPER:
            vert *= p.taper_vert_factor
        return float(round(vert))

    def long_run_limit(
        self, race: RaceEvent, phase: TrainingPhase, mileage: float
    ) -> float | None:
        """Race-specific long run cap (km), or None outside the build phases.

        Weekly volume × the race type's long-run fraction × the phase factor,
        never above three quarters of the race distance. 100-mile and longer
        races cap specificity long runs at a fixed distance; the remaining
        distance is covered by back-to-back days.
        """
        p = self.policy
        factor = p.long_run_phase_factors.get(phase)
        if factor is None:
            return None
        fraction = p.long_run_max_fraction.get(race.race_type, 0.40)
        limit = min(mileage * fraction * factor, race.distance_km * p.long_run_race_fraction)
        if phase == TrainingPhase.SPECIFICITY and race.race_type in p.multiday_races:
            limit = min(limit, p.multiday_specificity_long_run_km)
        return float(round(limit))

    def should_include_back_to_back(
        self,
        race: RaceEvent,
        athlete: AthleteProfile,
        phase: TrainingPhase,
        is_recovery_week: bool = False,
    ) -> bool:
        """True when the week pairs the long run with a second long day.

        Only for race types that need fatigue-resistance training, in the
        intensity and specificity phases of a loading week. Cat1 athletes
        keep single long runs below the minimum race distance.
        """
        p = self.policy
        if race.race_type not in p.back_to_back_races:
            return False
        if phase not in _BACK_TO_BACK_PHASES or is_recovery_week:
            return False
        if athlete.category == AthleteCategory.CAT1:
            return race.distance_km >= p.back_to_back_cat1_min_km
        return True

    # ─────────────────────────────────────────────────────────
    #   Catalog selection
    # ─────────────────────────────────────────────────────────

    def select(
        self,
        workout_type: WorkoutType,
        phase: TrainingPhase,
        athlete: AthleteProfile,
        race: RaceEvent,
    ) -> WorkoutTemplate | None:
        """First catalog entry for a slot, relaxing the query step by step.

        Tries (type, phase, category, race type), then (type, phase, category),
        then type alone. Entries whose prerequisites the athlete does not meet
        are skipped.
        """
        weekly_km = athlete.average_mileage or athlete.start_mileage
        training_age = (
            athlete.years_training * 12 if athlete.years_training is not None else None
        )
        attempts = (
            {"phase": phase, "category": athlete.category, "race_type": race.race_type},
            {"phase": phase, "category": athlete.category},
            {},
        )
        for criteria in attempts:
            for entry in self.catalog.query(workout_type=workout_type, **criteria):
                if meets_prerequisites(entry, weekly_km, training_age):
                    return entry
        logger.warning(
            f"No catalog entry for {workout_type} ({phase}, {athlete.category}); "
            "leaving the slot empty"
        )
        return None

    def _by_id_or_select(
        self,
        workout_id: str,
        workout_type: WorkoutType,
        phase: TrainingPhase,
        athlete: AthleteProfile,
        race: RaceEvent,
    ) -> WorkoutTemplate | None:
        entry = self.catalog.get_by_id(workout_id)
        if entry is not None:
            return entry
        return self.select(workout_type, phase, athlete, race)

    # ─────────────────────────────────────────────────────────
    #   Weekly generation
    # ─────────────────────────────────────────────────────────

    def generate(
        self,
        week: MacrocycleWeek,
        athlete: AthleteProfile,
        race: RaceEvent,
        constraints: TrainingConstraints,
        is_recovery_week: bool = False,
        previous_week_mileage: float | None = None,
    ) -> WeeklyPlan:
        """Generate the weekly plan for one macrocycle week.

        Args:
            week: Macrocycle week (number, phase, dates)
            athlete: Classified athlete profile
            race: Goal race
            constraints: Days per week and rest days
            is_recovery_week: Apply the recovery-week reduction
            previous_week_mileage: Previous week's mileage for the 10% rule

        Returns:
            WeeklyPlan with exactly seven days
        """
        phase = week.phase
        mileage = self.target_mileage(
            athlete, phase, previous_week_mileage, is_recovery_week
        )
        vert = self.target_vert(race, phase, mileage)
        origin = (
            SessionOrigin.TAPER_PLAN if phase in _TAPERING else SessionOrigin.BASE_PLAN
        )
        notes: list[str] = []
        if is_recovery_week:
            notes.append("Recovery week: volume reduced to absorb training")

        rest_days = resolve_rest_days(constraints)
        training_days = [d for d in WEEK_DAYS if d not in rest_days]
        dates = {d: week.start_date + timedelta(days=d.index) for d in WEEK_DAYS}
        slots: dict[DayOfWeek, list[tuple[int, Session]]] = {d: [] for d in WEEK_DAYS}
        rationale: dict[DayOfWeek, str] = {d: "Rest day" for d in rest_days}

        race_day = next(
            (d for d in WEEK_DAYS if dates[d] == race.race_date), None
        )
        blocked: set[DayOfWeek] = set()
        if race_day is not None:
            slots[race_day].append((_RACE, self._race_session(race)))
            rationale[race_day] = "Race day"
            blocked.add(race_day)
            notes.append(f"Race week: {race.name} on {race.race_date}")
            if race_day in rest_days:
                notes.append(f"Race falls on configured rest day {race_day}")
            if race.priority == RacePriority.A:
                for d in WEEK_DAYS[race_day.index + 1 :]:
                    blocked.add(d)
                    rationale[d] = "Post-race rest"
            logger.info(f"Inserted race {race.name} on {race_day} {race.race_date}")

        available = [d for d in training_days if d not in blocked]
        n_training = len(training_days)
        fallback_km = mileage / max(n_training, 1)

        def place(day: DayOfWeek, rank: int, session: Session, reason: str) -> Session:
            session = adapt_workout_to_surface(session, athlete.surface_preference)
            session = concretize_session(session, self.policy, fallback_km)
            slots[day].append((rank, session))
            rationale.setdefault(day, reason)
            return session

        # Long run (the race replaces it in race week)
        long_day: DayOfWeek | None = None
        long_run: Session | None = None
        if race_day is None:
            long_day = self._nearest(self.policy.long_run_day, available)
            entry = self.select(WorkoutType.LONG, phase, athlete, race)
            if long_day is not None and entry is not None:
                session = entry.instantiate(origin)
                if phase in _TAPERING:
                    _resize(session, _TAPER_LONG_RUN)
                    session.title = "Taper Long Run"
                    session.description = (
                        "Shorter long run to maintain fitness while reducing fatigue "
                        "before race."
                    )
                elif session.vertical_range is None and session.vertical_gain_m is None:
                    session.vertical_range = _DEFAULT_LONG_RUN_VERT
                long_run = place(long_day, _LONG, session, "Long run")
                limit = self.long_run_limit(race, phase, mileage)
                if limit is not None and (long_run.distance_km or 0) > limit:
                    _shrink(long_run, limit)
                    _append_note(
                        long_run,
                        f"Capped at {limit:g} km for {race.race_type} preparation",
                    )
            elif long_day is None:
                notes.append("No training day available for the long run")

        # Key sessions
        key_days: set[DayOfWeek] = set()
        for preferred, session in self._key_sessions(
            phase, athlete, race, is_recovery_week, origin
        ):
            candidates = [d for d in available if d != long_day and d not in key_days]
            day = self._nearest(preferred, candidates)
            if day is None:
                logger.warning(
                    f"Week {week.week_number}: no day left for {session.title}; dropped"
                )
                continue
            key_days.add(day)
            place(day, _KEY, session, "Key session")

        # Second long day next to the long run
        if long_run is not None and self.should_include_back_to_back(
            race, athlete, phase, is_recovery_week
        ):
            entry = self.select(WorkoutType.BACK_TO_BACK, phase, athlete, race)
            day = self._back_to_back_day(long_day, available, key_days)
            if entry is not None and day is not None:
                session = entry.instantiate(origin)
                session.distance_km = round(
                    (long_run.distance_km or fallback_km)
                    * self.policy.back_to_back_second_day_fraction,
                    1,
                )
                place(day, _B2B, session, "Back-to-back long day")
            elif entry is not None:
                notes.append(
                    "Back-to-back run omitted: no free training day next to the long run"
                )

        high_days = {
            d
            for d in WEEK_DAYS
            if any(s.effective_intensity == IntensityLevel.HIGH for _, s in slots[d])
        }

        # Muscular endurance
        me_day: DayOfWeek | None = None
        if phase in _ME_PHASES:
            entry = self.select(WorkoutType.MUSCULAR_ENDURANCE, phase, athlete, race)
            me_day = self._choose_me_day(available, long_day, key_days, high_days)
            if entry is not None and me_day is not None:
                place(me_day, _ME, entry.instantiate(origin), "Muscular endurance")
            elif entry is not None:
                notes.append(
                    "Muscular endurance session omitted: no training day clear of the "
                    "long run and high-intensity days"
                )
                logger.warning(f"Week {week.week_number}: no valid muscular endurance day")

        # Easy runs on every training day without a run
        rotation = [
            e for e in (self.catalog.get_by_id(i) for i in _EASY_ROTATION) if e is not None
        ]
        if not rotation:
            entry = self.select(WorkoutType.EASY, phase, athlete, race)
            rotation = [entry] if entry is not None else []
        easy_count = 0
        for day in available:
            if any(s.workout_type in RUNNING_TYPES for _, s in slots[day]) or not rotation:
                continue
            session = rotation[easy_count % len(rotation)].instantiate(origin)
            if phase in _TAPERING:
                _resize(session, _EASY_SIZES["taper"])
            elif day in _MID_WEEK:
                _resize(session, _EASY_SIZES["mid_week"])
            else:
                _resize(session, _EASY_SIZES["other"])
            easy_count += 1
            place(day, _EASY, session, "Easy run")

        # Core stability
        n_core = self.policy.core_sessions_per_week.get(phase, 0)
        if n_core:
            entry = self._by_id_or_select(
                "core_stability", WorkoutType.CORE_STABILITY, phase, athlete, race
            )
            if entry is not None:
                for day in self._choose_core_days(
                    available, long_day, key_days, me_day, n_core
                ):
                    place(day, _CORE, entry.instantiate(SessionOrigin.GENERATED), "Core")

        days = []
        for d in WEEK_DAYS:
            sessions = [s for _, s in sorted(slots[d], key=lambda item: item[0])]
            for n, session in enumerate(sessions, start=1):
                session.session_id = f"w{week.week_number:02d}-{d.value.lower()}-{n}"
            days.append(
                DailyPlan(
                    day=d,
                    calendar_date=dates[d],
                    sessions=sessions,
                    rationale=rationale.get(d, "Rest day" if not sessions else None),
                )
            )

        logger.debug(
            f"Week {week.week_number} ({phase}): target {mileage:g} km, "
            f"{sum(len(d.sessions) for d in days)} sessions"
        )

        return WeeklyPlan(
            week_number=week.week_number,
            phase=phase,
            target_mileage=mileage,
            target_vert=vert,
            days=days,
            is_recovery_week=is_recovery_week,
            notes=notes,
        )

    def _key_sessions(
        self,
        phase: TrainingPhase,
        athlete: AthleteProfile,
        race: RaceEvent,
        is_recovery_week: bool,
        origin: SessionOrigin,
    ) -> list[tuple[DayOfWeek, Session]]:
        """Phase-specific key sessions with their preferred days."""
        picks: list[tuple[DayOfWeek, WorkoutTemplate | None]] = []
        if phase == TrainingPhase.BASE:
            picks.append(
                (DayOfWeek.TUE, self.select(WorkoutType.HILL_SPRINTS, phase, athlete, race))
            )
            picks.append(
                (
                    DayOfWeek.THU,
                    self._by_id_or_select(
                        "easy_with_strides", WorkoutType.EASY, phase, athlete, race
                    ),
                )
            )
        elif phase == TrainingPhase.INTENSITY and not is_recovery_week:
            picks.append((DayOfWeek.TUE, self.select(WorkoutType.VO2, phase, athlete, race)))
            picks.append((DayOfWeek.THU, self.select(WorkoutType.TEMPO, phase, athlete, race)))
        elif phase == TrainingPhase.SPECIFICITY:
            entry = self.select(WorkoutType.HILL_REPEATS, phase, athlete, race)
            if entry is None:
                entry = self.select(WorkoutType.SIMULATION, phase, athlete, race)
            picks.append((DayOfWeek.TUE, entry))
        elif phase == TrainingPhase.TAPER:
            picks.append(
                (
                    DayOfWeek.TUE,
                    self._by_id_or_select(
                        "taper_sharpener", WorkoutType.EASY, phase, athlete, race
                    ),
                )
            )

        sessions = []
        for day, entry in picks:
            if entry is None:
                continue
            session = entry.instantiate(origin)
            session.is_key_workout = True
            sessions.append((day, session))
        return sessions

    def _race_session(self, race: RaceEvent) -> Session:
        p = self.policy
        if race.expected_time_min:
            duration = round(race.expected_time_min)
        else:
            duration = round(
                race.distance_km * p.race_pace_min_per_km
                + race.vertical_gain_m / 100 * p.race_min_per_100m_vert
            )
        return Session(
            workout_type=WorkoutType.SIMULATION,
            title=f"Race Day: {race.name}",
            description=(
                f"Race day! {race.distance_km:g}km with "
                f"{race.vertical_gain_m:g}m elevation gain."
            ),
            duration_min=duration,
            distance_km=race.distance_km,
            vertical_gain_m=race.vertical_gain_m,
            intensity=IntensityLevel.HIGH,
            intensity_zones=["Z4", "Z5"],
            is_key_workout=True,
            is_hard=True,
            origin=SessionOrigin.RACE,
            locked=True,
            lock_reason="Race day",
        )

    @staticmethod
    def _nearest(
        preferred: DayOfWeek, candidates: list[DayOfWeek]
    ) -> DayOfWeek | None:
        """Candidate closest to the preferred day; later day wins a tie."""
        if not candidates:
            return None
        return min(candidates, key=lambda d: (abs(d.index - preferred.index), -d.index))

    @staticmethod
    def _back_to_back_day(
        long_day: DayOfWeek | None,
        available: list[DayOfWeek],
        key_days: set[DayOfWeek],
    ) -> DayOfWeek | None:
        """Day after the long run, else the day before it."""
        if long_day is None:
            return None
        for offset in (1, -1):
            index = long_day.index + offset
            if not 0 <= index < len(WEEK_DAYS):
                continue
            day = WEEK_DAYS[index]
            if day in available and day not in key_days:
                return day
        return None

    @staticmethod
    def _choose_me_day(
        available: list[DayOfWeek],
        long_day: DayOfWeek | None,
        key_days: set[DayOfWeek],
        high_days: set[DayOfWeek],
    ) -> DayOfWeek | None:
        """Pick the muscular-endurance day.

        Never the long-run day or next to it, never next to a high-intensity
        day. Days without key sessions come first, then the largest distance
        to the nearest key session.
        """
        anchors = set(key_days)
        if long_day is not None:
            anchors.add(long_day)

        def adjacent(day: DayOfWeek, others: set[DayOfWeek]) -> bool:
            return any(abs(day.index - o.index) == 1 for o in others)

        candidates = []
        for day in available:
            if day == long_day or day in high_days:
                continue
            if long_day is not None and adjacent(day, {long_day}):
                continue
            if adjacent(day, high_days):
                continue
            candidates.append(day)
        if not candidates:
            return None

        def spacing(day: DayOfWeek) -> int:
            others = [abs(day.index - a.index) for a in anchors if a != day]
            return min(others) if others else 7

        return min(
            candidates,
            key=lambda d: (d in key_days, -spacing(d), _SUPPORT_DAY_ORDER.index(d)),
        )

    @staticmethod
    def _choose_core_days(
        available: list[DayOfWeek],
        long_day: DayOfWeek | None,
        key_days: set[DayOfWeek],
        me_day: DayOfWeek | None,
        count: int,
    ) -> list[DayOfWeek]:
        candidates = [d for d in available if d != long_day]
        candidates.sort(
            key=lambda d: (d in key_days, d == me_day, _SUPPORT_DAY_ORDER.index(d))
        )
        return sorted(candidates[:count], key=lambda d: d.index)

