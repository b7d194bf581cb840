"""Feedback summary: insights, trends and risk level over a feedback window."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ultra_plan.training_plan.models import (
    DailyFeedback,
    FeedbackInsight,
    FeedbackSummary,
    FeedbackTrends,
    InsightType,
    RiskLevel,
)
from ultra_plan.training_plan.policy import (
    DEFAULT_ADAPTATION_THRESHOLDS,
    AdaptationThresholds,
)

logger = logging.getLogger(__name__)

BASE_SCORE = 80
MOTIVATION_CRITICAL = 2.0
SLEEP_HOURS_DEFICIT = 6.0
COMPLETION_GOOD = 0.9
MIN_TREND_READINGS = 4
PROGRESSION_MIN_SCORE = 60


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _half_trend(values: list[float]) -> float:
    """Percent change from the first half to the second half of a series."""
    if len(values) < MIN_TREND_READINGS:
        return 0.0
    mid = len(values) // 2
    first = _mean(values[:mid])
    second = _mean(values[mid:])
    if first == 0:
        return 0.0
    return round((second - first) / first * 100, 1)


def _fatigue_insights(
    feedback: list[DailyFeedback], t: AdaptationThresholds
) -> list[FeedbackInsight]:
    readings = [f.fatigue for f in feedback if f.fatigue is not None]
    if len(readings) < 3:
        return []

    avg = _mean(readings)
    recent = _mean(readings[-3:])
    early = _mean(readings[:3])
    if avg >= t.fatigue_high:
        return [
            FeedbackInsight(
                insight_type=InsightType.CRITICAL,
                category="recovery",
                message=f"Chronic high fatigue (avg {avg:.1f}/10)",
                value=round(avg, 1),
            )
        ]
    if avg >= t.fatigue_medium and recent > early:
        return [
            FeedbackInsight(
                insight_type=InsightType.WARNING,
                category="recovery",
                message=f"Fatigue trending upward (avg {avg:.1f}/10)",
                value=round(avg, 1),
            )
        ]
    if recent < early:
        return [
            FeedbackInsight(
                insight_type=InsightType.POSITIVE,
                category="recovery",
                message=f"Fatigue improving (avg {avg:.1f}/10)",
                value=round(avg, 1),
            )
        ]
    return []


def _pain_insights(
    feedback: list[DailyFeedback], t: AdaptationThresholds
) -> list[FeedbackInsight]:
    insights = []
    aches = [f.muscle_aches for f in feedback if f.muscle_aches is not None]
    if aches and _mean(aches) >= t.pain_critical:
        insights.append(
            FeedbackInsight(
                insight_type=InsightType.CRITICAL,
                category="injury",
                message=f"Elevated pain (avg {_mean(aches):.1f}/10)",
                value=round(_mean(aches), 1),
            )
        )
    reports = [
        f for f in feedback if f.injury_notes and "pain" in f.injury_notes.lower()
    ]
    if reports:
        insights.append(
            FeedbackInsight(
                insight_type=InsightType.WARNING,
                category="injury",
                message=f"Pain mentioned in {len(reports)} injury note(s)",
                value=len(reports),
            )
        )
    return insights


def _sleep_insights(
    feedback: list[DailyFeedback], t: AdaptationThresholds
) -> list[FeedbackInsight]:
    insights = []
    quality = [f.sleep_quality for f in feedback if f.sleep_quality is not None]
    if quality and _mean(quality) <= t.sleep_low:
        insights.append(
            FeedbackInsight(
                insight_type=InsightType.WARNING,
                category="recovery",
                message=f"Poor sleep quality ({_mean(quality):.1f}/10)",
                value=round(_mean(quality), 1),
            )
        )
    hours = [f.sleep_hours for f in feedback if f.sleep_hours is not None]
    if len(hours) >= 5 and _mean(hours) < SLEEP_HOURS_DEFICIT:
        insights.append(
            FeedbackInsight(
                insight_type=InsightType.WARNING,
                category="recovery",
                message=f"Insufficient sleep ({_mean(hours):.1f} hrs/night avg)",
                value=round(_mean(hours), 1),
            )
        )
    return insights


def _motivation_insights(
    feedback: list[DailyFeedback], t: AdaptationThresholds
) -> list[FeedbackInsight]:
    readings = [f.motivation for f in feedback if f.motivation is not None]
    if len(readings) < 3:
        return []
    avg = _mean(readings)
    if avg <= MOTIVATION_CRITICAL:
        return [
            FeedbackInsight(
                insight_type=InsightType.CRITICAL,
                category="motivation",
                message=f"Very low motivation ({avg:.1f}/10), burnout risk",
                value=round(avg, 1),
            )
        ]
    if avg <= t.motivation_low:
        return [
            FeedbackInsight(
                insight_type=InsightType.WARNING,
                category="motivation",
                message=f"Low motivation ({avg:.1f}/10)",
                value=round(avg, 1),
            )
        ]
    return []


def _completion_insights(
    feedback: list[DailyFeedback], t: AdaptationThresholds
) -> list[FeedbackInsight]:
    rates = [f.completion_rate for f in feedback if f.completion_rate is not None]
    if not rates:
        return []
    avg = _mean(rates)
    if avg < t.completion_high:
        insight_type = InsightType.CRITICAL
        message = f"Most sessions missed ({avg:.0%} completed)"
    elif avg < t.completion_medium:
        insight_type = InsightType.WARNING
        message = f"Low completion rate ({avg:.0%})"
    elif avg >= COMPLETION_GOOD:
        insight_type = InsightType.POSITIVE
        message = f"Consistent completion ({avg:.0%})"
    else:
        return []
    return [
        FeedbackInsight(
            insight_type=insight_type,
            category="performance",
            message=message,
            value=round(avg, 2),
        )
    ]


def _rpe_insights(feedback: list[DailyFeedback]) -> list[FeedbackInsight]:
    readings = [f.rpe for f in feedback if f.rpe is not None]
    if len(readings) < 5:
        return []
    recent = _mean(readings[-3:])
    early = _mean(readings[:3])
    if recent > early * 1.3:
        return [
            FeedbackInsight(
                insight_type=InsightType.WARNING,
                category="performance",
                message="Effort increasing for the same workouts (RPE trending up)",
                value=round(recent, 1),
            )
        ]
    if recent < early * 0.85:
        return [
            FeedbackInsight(
                insight_type=InsightType.POSITIVE,
                category="performance",
                message="Workouts feeling easier",
                value=round(recent, 1),
            )
        ]
    return []


def calculate_trends(feedback: Sequence[DailyFeedback]) -> FeedbackTrends:
    """First-half vs second-half trends; recovery is sleep quality and
    performance is the negated RPE trend."""
    return FeedbackTrends(
        fatigue=_half_trend([f.fatigue for f in feedback if f.fatigue is not None]),
        motivation=_half_trend(
            [f.motivation for f in feedback if f.motivation is not None]
        ),
        recovery=_half_trend(
            [f.sleep_quality for f in feedback if f.sleep_quality is not None]
        ),
        performance=-_half_trend([f.rpe for f in feedback if f.rpe is not None]),
    )


def calculate_overall_score(
    insights: Sequence[FeedbackInsight], trends: FeedbackTrends
) -> float:
    counts = {kind: 0 for kind in InsightType}
    for insight in insights:
        counts[insight.insight_type] += 1

    score = BASE_SCORE
    score -= 25 * counts[InsightType.CRITICAL]
    score -= 10 * counts[InsightType.WARNING]
    score += 5 * counts[InsightType.POSITIVE]

    if trends.fatigue > 20:
        score -= 15
    if trends.motivation < -20:
        score -= 10
    if trends.recovery < -15:
        score -= 10
    if trends.performance > 15:
        score += 10
    return max(0, min(100, score))


def determine_risk_level(insights: Sequence[FeedbackInsight]) -> RiskLevel:
    if any(i.insight_type == InsightType.CRITICAL for i in insights):
        return RiskLevel.CRITICAL
    warnings = sum(1 for i in insights if i.insight_type == InsightType.WARNING)
    if warnings >= 3:
        return RiskLevel.HIGH
    if warnings >= 1:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def is_ready_for_progression(
    insights: Sequence[FeedbackInsight], trends: FeedbackTrends, score: float
) -> bool:
    if score < PROGRESSION_MIN_SCORE:
        return False
    for insight in insights:
        if insight.insight_type == InsightType.CRITICAL:
            return False
        if insight.insight_type == InsightType.WARNING and insight.category == "injury":
            return False
    return trends.fatigue <= 30 and trends.recovery >= -25


def process_daily_feedback(
    feedback: Sequence[DailyFeedback],
    thresholds: AdaptationThresholds = DEFAULT_ADAPTATION_THRESHOLDS,
) -> FeedbackSummary:
    """Summarize a feedback window.

    Args:
        feedback: Daily feedback entries in any order
        thresholds: Thresholds shared with the adaptive controller

    Returns:
        FeedbackSummary with insights, trends, score, risk and readiness
    """
    if not feedback:
        return FeedbackSummary(
            period="No data",
            overall_score=50,
            risk_level=RiskLevel.LOW,
            ready_for_progression=True,
        )

    ordered = sorted(feedback, key=lambda f: f.feedback_date)
    insights = [
        *_fatigue_insights(ordered, thresholds),
        *_pain_insights(ordered, thresholds),
        *_sleep_insights(ordered, thresholds),
        *_motivation_insights(ordered, thresholds),
        *_completion_insights(ordered, thresholds),
        *_rpe_insights(ordered),
    ]
    trends = calculate_trends(ordered)
    score = calculate_overall_score(insights, trends)
    risk = determine_risk_level(insights)

    logger.debug(
        f"Processed {len(ordered)} feedback day(s): score={score}, risk={risk}, "
        f"{len(insights)} insight(s)"
    )

    return FeedbackSummary(
        period=f"{ordered[0].feedback_date} to {ordered[-1].feedback_date}",
        overall_score=score,
        insights=insights,
        trends=trends,
        risk_level=risk,
        ready_for_progression=is_ready_for_progression(insights, trends, score),
    )
