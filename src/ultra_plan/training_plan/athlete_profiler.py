"""Athlete classification (Cat1 vs Cat2) and readiness assessment.

Classification is a weighted vote over training history, race history,
volume, consistency, age, aerobic threshold gap and injuries. The winning
category fixes starting volume, volume ceiling and recovery ratio.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ultra_plan.training_plan.models import (
    AerobicAssessment,
    AthleteCategory,
    AthleteProfile,
    ClassificationResult,
    ReadinessFactors,
    ReadinessScore,
    RecoveryRatio,
    infer_race_type,
)

logger = logging.getLogger(__name__)

__all__ = [
    "apply_classification",
    "assess_aerobic_deficiency",
    "calculate_readiness",
    "classify_athlete",
    "infer_race_type",
]

BEGINNER_MAX_YEARS = 2
EXPERIENCED_MIN_YEARS = 5
CAT2_MIN_WEEKLY_KM = 50
ULTRA_THRESHOLD_KM = 50
LONG_ULTRA_THRESHOLD_KM = 100
MASTERS_AGE = 40
VETERAN_AGE = 50
MIN_CONSISTENCY = 70
AEROBIC_DEFICIENCY_THRESHOLD = 10.0
MAX_BASE_EXTENSION_WEEKS = 8


@dataclass(frozen=True)
class VolumeSettings:
    """Starting volume band, ceiling and default recovery ratio of a category."""

    start_km_low: float
    start_km_high: float
    ceiling_km: float
    default_recovery_ratio: RecoveryRatio


VOLUME_SETTINGS: dict[AthleteCategory, VolumeSettings] = {
    AthleteCategory.CAT1: VolumeSettings(20, 40, 80, RecoveryRatio.TWO_TO_ONE),
    AthleteCategory.CAT2: VolumeSettings(40, 70, 140, RecoveryRatio.THREE_TO_ONE),
}


def _aet_lt_gap(aet: int | None, lt: int | None) -> float | None:
    if not aet or not lt:
        return None
    return (lt - aet) / lt * 100


def classify_athlete(profile: AthleteProfile) -> ClassificationResult:
    """Classify an athlete as Cat1 or Cat2.

    Args:
        profile: Athlete profile (category fields are ignored)

    Returns:
        ClassificationResult with volume parameters, confidence and reasoning
    """
    reasoning: list[str] = []
    warnings: list[str] = []
    cat1 = 0
    cat2 = 0

    years = profile.years_training
    if years is not None:
        if years < BEGINNER_MAX_YEARS:
            cat1 += 3
            reasoning.append(f"Limited training history ({years:g} years)")
        elif years >= EXPERIENCED_MIN_YEARS:
            cat2 += 3
            reasoning.append(f"Extensive training experience ({years:g} years)")
        else:
            cat1 += 1
            cat2 += 1
            reasoning.append(f"Moderate training history ({years:g} years)")

    races = profile.recent_races
    if races:
        long_ultras = [r for r in races if r.distance_km >= LONG_ULTRA_THRESHOLD_KM]
        ultras = [r for r in races if r.distance_km >= ULTRA_THRESHOLD_KM]
        if long_ultras:
            cat2 += 4
            reasoning.append(f"Completed {len(long_ultras)} ultra(s) >=100km")
        elif ultras:
            cat2 += 2
            reasoning.append(f"Completed {len(ultras)} ultra(s) >=50km")
        elif len(races) >= 3:
            cat1 += 1
            cat2 += 1
            reasoning.append(f"Multiple race completions ({len(races)})")
        else:
            cat1 += 1
            reasoning.append(f"Limited race history ({len(races)} race(s))")
    else:
        cat1 += 2
        reasoning.append("No documented race history")

    average = profile.average_mileage
    if average is not None:
        if average >= CAT2_MIN_WEEKLY_KM:
            cat2 += 3
            reasoning.append(f"High weekly volume ({average:.0f} km/week)")
        else:
            cat1 += 2
            reasoning.append(f"Moderate weekly volume ({average:.0f} km/week)")

    consistency = profile.training_consistency
    if consistency is not None:
        if consistency >= MIN_CONSISTENCY:
            cat2 += 1
            reasoning.append(f"High training consistency ({consistency:g}%)")
        else:
            cat1 += 1
            warnings.append(
                "Inconsistent training history - conservative approach recommended"
            )

    age = profile.age
    if age is not None:
        if age >= VETERAN_AGE:
            cat1 += 2
            warnings.append("Veteran athlete - prioritizing recovery and injury prevention")
            reasoning.append(f"Veteran age ({age}) - recovery-focused approach")
        elif age >= MASTERS_AGE:
            cat1 += 1
            reasoning.append(f"Masters age ({age}) - balanced recovery needed")

    gap = _aet_lt_gap(profile.aerobic_threshold_hr, profile.lactate_threshold_hr)
    if gap is not None:
        if gap > AEROBIC_DEFICIENCY_THRESHOLD:
            cat1 += 2
            warnings.append(
                f"Aerobic deficiency detected ({gap:.1f}% gap) - extended base phase needed"
            )
            reasoning.append("Significant AeT/LT gap indicates need for base building")
        else:
            cat2 += 1
            reasoning.append("Good aerobic base (AeT/LT gap optimal)")

    if profile.injury_history:
        cat1 += 1
        warnings.append(
            f"Injury history noted ({len(profile.injury_history)} issue(s)) - "
            "cautious progression"
        )

    total = cat1 + cat2
    category = AthleteCategory.CAT2 if cat2 > cat1 else AthleteCategory.CAT1
    confidence = round(max(cat1, cat2) / total * 100) if total > 0 else 50

    start_mileage, ceiling = _volume_parameters(category, average or 0, age)
    ratio = _recovery_ratio(category, age, profile.injury_history)

    logger.debug(
        f"Classified athlete as {category} (cat1={cat1}, cat2={cat2}, "
        f"confidence={confidence}%)"
    )

    return ClassificationResult(
        category=category,
        start_mileage=start_mileage,
        volume_ceiling=ceiling,
        recovery_ratio=ratio,
        confidence=confidence,
        reasoning=reasoning,
        warnings=warnings,
    )


def _volume_parameters(
    category: AthleteCategory, current_km: float, age: int | None
) -> tuple[float, float]:
    settings = VOLUME_SETTINGS[category]
    if current_km > 0:
        start = min(settings.start_km_high, max(settings.start_km_low, round(current_km * 0.8)))
    else:
        start = settings.start_km_low

    ceiling = settings.ceiling_km
    if age is not None and age >= VETERAN_AGE:
        ceiling = round(ceiling * 0.8)
    elif age is not None and age >= MASTERS_AGE:
        ceiling = round(ceiling * 0.9)
    return start, ceiling


def _recovery_ratio(
    category: AthleteCategory, age: int | None, injuries: list[str]
) -> RecoveryRatio:
    ratio = VOLUME_SETTINGS[category].default_recovery_ratio
    if age is not None and age >= VETERAN_AGE:
        return RecoveryRatio.TWO_TO_ONE
    if age is not None and age >= MASTERS_AGE and ratio == RecoveryRatio.THREE_TO_ONE:
        return RecoveryRatio.TWO_TO_ONE
    if len(injuries) >= 2:
        return RecoveryRatio.TWO_TO_ONE
    return ratio


def apply_classification(
    profile: AthleteProfile, result: ClassificationResult
) -> AthleteProfile:
    """Return a copy of the profile with the classification outputs filled in."""
    return profile.model_copy(
        update={
            "category": result.category,
            "start_mileage": result.start_mileage,
            "volume_ceiling": result.volume_ceiling,
            "recovery_ratio": result.recovery_ratio,
        }
    )


def assess_aerobic_deficiency(
    aerobic_threshold_hr: int | None, lactate_threshold_hr: int | None
) -> AerobicAssessment:
    """Assess the gap between aerobic and lactate threshold heart rates.

    A gap above 10% of LT means the aerobic base needs work before intensity.
    Each started 5% above the threshold adds 2 base weeks, capped at 8.

    Args:
        aerobic_threshold_hr: Aerobic threshold heart rate (bpm)
        lactate_threshold_hr: Lactate threshold heart rate (bpm)

    Returns:
        AerobicAssessment with the base extension in weeks
    """
    gap = _aet_lt_gap(aerobic_threshold_hr, lactate_threshold_hr)
    if gap is None:
        return AerobicAssessment(
            has_deficiency=False,
            recommendation=(
                "Unable to assess - HR threshold data not available. "
                "Consider field testing."
            ),
        )

    if gap <= AEROBIC_DEFICIENCY_THRESHOLD:
        return AerobicAssessment(
            has_deficiency=False,
            gap_percentage=gap,
            recommendation=(
                "Aerobic base is solid. Ready for intensity training when appropriate."
            ),
        )

    extra_weeks = math.ceil((gap - AEROBIC_DEFICIENCY_THRESHOLD) / 5) * 2
    return AerobicAssessment(
        has_deficiency=True,
        gap_percentage=gap,
        recommendation=(
            f"Aerobic deficiency detected ({gap:.1f}% gap). Focus on Zone 1-2 "
            "training to close gap before adding intensity."
        ),
        extend_base_weeks=min(extra_weeks, MAX_BASE_EXTENSION_WEEKS),
    )


def calculate_readiness(
    profile: AthleteProfile,
    recent_weekly_km: list[float],
    recent_fatigue: list[float],
) -> ReadinessScore:
    """Score readiness to progress into intensity work.

    Args:
        profile: Classified athlete profile
        recent_weekly_km: Recent weekly volumes, most recent last
        recent_fatigue: Recent fatigue scores (1-10)

    Returns:
        ReadinessScore with weighted factors and blockers
    """
    blockers: list[str] = []

    assessment = assess_aerobic_deficiency(
        profile.aerobic_threshold_hr, profile.lactate_threshold_hr
    )
    if assessment.gap_percentage is None:
        aerobic_base = 70.0
    elif assessment.has_deficiency:
        aerobic_base = 50.0
        blockers.append(
            f"Aerobic deficiency: {assessment.gap_percentage:.1f}% AeT/LT gap"
        )
    else:
        aerobic_base = 100.0

    consistency = profile.training_consistency or 50.0
    if consistency < MIN_CONSISTENCY:
        blockers.append(f"Low training consistency: {consistency:g}%")

    if len(recent_weekly_km) >= 3:
        avg_load = sum(recent_weekly_km[-3:]) / 3
        target = profile.start_mileage or 40.0
        if avg_load >= target * 0.8:
            recent_load = 100.0
        elif avg_load >= target * 0.6:
            recent_load = 70.0
        else:
            recent_load = 40.0
            blockers.append(f"Weekly volume still building ({avg_load:.0f}/{target:g} km)")
    else:
        recent_load = 50.0
        blockers.append("Insufficient training history")

    if recent_fatigue:
        avg_fatigue = sum(recent_fatigue) / len(recent_fatigue)
        recovery = max(0.0, 100 - avg_fatigue * 10)
        if avg_fatigue > 7:
            blockers.append(f"High fatigue levels: {avg_fatigue:.1f}/10")
    else:
        recovery = 70.0

    overall = round(
        aerobic_base * 0.35 + consistency * 0.25 + recent_load * 0.25 + recovery * 0.15
    )

    return ReadinessScore(
        overall_score=overall,
        can_progress_to_intensity=overall >= 70 and not blockers,
        factors=ReadinessFactors(
            aerobic_base=aerobic_base,
            consistency=consistency,
            recent_load=recent_load,
            recovery=recovery,
        ),
        blockers=blockers,
    )
