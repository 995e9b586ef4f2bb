"""
Session regulation: break suggestions, session-stop decisions and daily
workload budgets.

Pure functions over fatigue indicators, elapsed time and workload counters.
The per-user RegulatorConfig is built once by `adaptive_regulator_config`
and threaded through every call.
"""

import dataclasses
import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from cadence.domain import constants as c
from cadence.domain.session.models import (
    BreakReason,
    BreakUrgency,
    FatigueIndicators,
    PerformanceWindow,
    RegulatorConfig,
    ResponseTimeBaseline,
    SessionOptimization,
    SmartBreakSuggestion,
    UserBreakPreferences,
    UserLearningProfile,
    WorkloadBalance,
)

from .baseline import personalized_thresholds

logger = logging.getLogger(__name__)

_ALTERNATIVES = [
    "Study 3 more cards then break",
    "Switch to easier cards",
    "Try a different study mode",
]


def adaptive_regulator_config(
    preferences: UserBreakPreferences | None = None,
    baseline: ResponseTimeBaseline | None = None,
    profile: UserLearningProfile | None = None,
    base: RegulatorConfig | None = None,
) -> RegulatorConfig:
    """
    Personalize the regulator for one user.

    Layers, last wins: base config, learned response-time baseline, the
    personalization profile's fatigue threshold, explicit user preferences.
    """
    config = base or RegulatorConfig()
    triggers = config.triggers
    workload = config.workload
    thresholds = config.thresholds

    if baseline is not None:
        thresholds = personalized_thresholds(baseline)

    if profile is not None:
        triggers = dataclasses.replace(
            triggers, fatigue_score_threshold=profile.fatigue_threshold
        )

    if preferences is not None:
        if preferences.break_interval and not preferences.adaptive_breaks:
            triggers = dataclasses.replace(
                triggers, time_based_break_interval=preferences.break_interval
            )
        if preferences.max_daily_cards:
            workload = dataclasses.replace(workload, max_daily_cards=preferences.max_daily_cards)
        if preferences.break_duration:
            workload = dataclasses.replace(
                workload, preferred_break_duration=preferences.break_duration
            )
        if preferences.custom_session_length and preferences.session_length == "custom":
            length = preferences.custom_session_length
            workload = dataclasses.replace(
                workload, optimal_session_length=length, max_session_length=length * 1.5
            )

    return dataclasses.replace(
        config, thresholds=thresholds, triggers=triggers, workload=workload
    )


def break_suggestion(
    fatigue: FatigueIndicators,
    session_duration_min: float,
    recent_windows: Sequence[PerformanceWindow],
    config: RegulatorConfig = RegulatorConfig(),
) -> SmartBreakSuggestion:
    """
    Decide whether to suggest a break, by priority:

    1. fatigue score above the threshold  -> fatigue_detected
    2. session longer than the interval   -> time_threshold
    3. rating drop between last two windows above the threshold -> performance_drop
    """
    triggers = config.triggers

    if fatigue.overall_fatigue_score > triggers.fatigue_score_threshold:
        score = fatigue.overall_fatigue_score
        return _triggered(
            "fatigue_detected",
            min(95.0, score),
            f"Your performance is showing signs of fatigue ({round(score)}% fatigue score).",
            [
                "Restore cognitive energy",
                "Improve retention of upcoming cards",
                "Prevent performance decline",
                "Maintain learning motivation",
            ],
        )

    if session_duration_min > triggers.time_based_break_interval:
        ratio = session_duration_min / triggers.time_based_break_interval
        return _triggered(
            "time_threshold",
            min(80.0, ratio * 60),
            f"You've been studying for {round(session_duration_min)} minutes. "
            "A break will help maintain focus.",
            [
                "Prevent mental fatigue",
                "Consolidate what you've learned",
                "Return refreshed for better performance",
            ],
        )

    drop = performance_drop(recent_windows)
    if drop is not None and drop > triggers.performance_drop_threshold:
        return _triggered(
            "performance_drop",
            min(90.0, drop * 2),
            f"Your performance has dropped {round(drop)}% in recent cards.",
            [
                "Recover lost performance",
                "Break negative momentum",
                "Return to peak learning state",
            ],
        )

    return SmartBreakSuggestion(
        triggered=False,
        trigger="scheduled",
        confidence=0.0,
        message="",
        benefits=[],
        timing="after_current_card",
    )


def performance_drop(windows: Sequence[PerformanceWindow]) -> float | None:
    """
    Percentage fall in average rating between the last two windows.

    None with fewer than two windows or a zero previous average.
    """
    if len(windows) < 2:
        return None
    previous = windows[-2].average_rating
    recent = windows[-1].average_rating
    if previous <= 0:
        return None
    return (previous - recent) / previous * 100


def session_optimization(
    fatigue: FatigueIndicators,
    session_duration_min: float,
    recent_windows: Sequence[PerformanceWindow],
    config: RegulatorConfig = RegulatorConfig(),
    *,
    now: datetime | None = None,
) -> SessionOptimization:
    """
    Escalate break urgency and recommend a break length.

    critical above fatigue 80; high when a trigger fired with confidence > 75
    or the session exceeded max_session_length; low otherwise.
    The break starts from the user's preferred duration (5 minutes when unset)
    and grows to 10 past fatigue 70 and to 15 past 30 minutes of study.
    """
    now = now or datetime.now(timezone.utc)
    suggestion = break_suggestion(fatigue, session_duration_min, recent_windows, config)

    recommended_break_now = False
    session_should_end = False
    urgency: BreakUrgency = "low"
    reason: BreakReason = "schedule_optimization"

    if fatigue.overall_fatigue_score > c.CRITICAL_FATIGUE_SCORE:
        recommended_break_now = True
        urgency = "critical"
        reason = "fatigue_pattern"
    elif suggestion.triggered and suggestion.confidence > c.HIGH_CONFIDENCE_TRIGGER:
        recommended_break_now = True
        urgency = "high"
        reason = _reason_for(suggestion.trigger)
    elif session_duration_min > config.workload.max_session_length:
        session_should_end = True
        urgency = "high"
        reason = "time_limit"

    duration = round(config.workload.preferred_break_duration or c.BREAK_DURATION_SHORT)
    if fatigue.overall_fatigue_score > c.BREAK_FATIGUED_SCORE:
        duration = max(duration, c.BREAK_DURATION_FATIGUED)
    if session_duration_min > c.BREAK_LONG_SESSION_MINUTES:
        duration = max(duration, c.BREAK_DURATION_LONG_SESSION)

    wait = max(duration, config.workload.minimum_break_between_sessions)
    return SessionOptimization(
        recommended_break_now=recommended_break_now,
        break_urgency=urgency,
        break_reason=reason,
        recommended_break_duration=duration,
        session_should_end=session_should_end,
        next_session_recommendation=now + timedelta(minutes=wait),
    )


def workload_balance(
    cards_studied_today: int,
    fatigue: FatigueIndicators,
    config: RegulatorConfig = RegulatorConfig(),
    *,
    session_cards: int = 0,
    session_duration_min: float = 0.0,
) -> WorkloadBalance:
    """
    Daily budget scaled down linearly with fatigue.

    adjusted capacity = max_daily_cards * (1 - fatigue / 200); overload risk
    once today's load passes 80% of it.
    """
    limits = config.workload
    adjusted = round(limits.max_daily_cards * (1 - fatigue.overall_fatigue_score / 200))
    remaining = max(0, adjusted - cards_studied_today)

    optimal_length = limits.optimal_session_length
    if fatigue.overall_fatigue_score > c.WORKLOAD_FATIGUED_SCORE:
        optimal_length = round(optimal_length * c.WORKLOAD_FATIGUED_SESSION_RATIO)

    cards_per_minute = session_cards / max(1.0, session_duration_min)
    recommended = round(optimal_length * cards_per_minute)

    return WorkloadBalance(
        daily_capacity=adjusted,
        current_load=cards_studied_today,
        remaining_capacity=remaining,
        optimal_session_length=optimal_length,
        recommended_card_count=min(recommended, remaining),
        overload_risk=cards_studied_today > adjusted * c.OVERLOAD_RATIO,
    )


def _triggered(trigger, confidence: float, message: str, benefits: list[str]):
    logger.debug(f"Break suggested: {trigger} ({confidence:.0f}%)")
    return SmartBreakSuggestion(
        triggered=True,
        trigger=trigger,
        confidence=confidence,
        message=message,
        benefits=benefits,
        alternatives=list(_ALTERNATIVES),
        timing="immediate" if confidence > c.IMMEDIATE_BREAK_CONFIDENCE else "after_current_card",
    )


def _reason_for(trigger: str) -> BreakReason:
    if trigger == "performance_drop":
        return "performance_decline"
    if trigger == "fatigue_detected":
        return "fatigue_pattern"
    return "time_limit"
