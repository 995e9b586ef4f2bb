"""
In-session fatigue detection.

A session is an immutable SessionHistory value. `ingest` returns a new
history with the record appended and the overlapping performance windows
recomputed; every other function is a read-only view over a history.
"""

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone

from ulid import ULID

from cadence.application.stats.basics import clamp, mean, trend, variance
from cadence.domain import constants as c
from cadence.domain.scheduling.models import Rating
from cadence.domain.session.models import (
    FatigueIndicators,
    PatternDetection,
    PerformanceWindow,
    RegulatorConfig,
    ReviewRecord,
    SessionHistory,
    SessionSummary,
    TrendAnalysis,
)

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    return f"session_{ULID()}"


def new_session(
    *, started_at: datetime | None = None, session_id: str | None = None
) -> SessionHistory:
    return SessionHistory(
        started_at=started_at or datetime.now(timezone.utc),
        session_id=session_id or generate_session_id(),
    )


def ingest(
    history: SessionHistory,
    record: ReviewRecord,
    config: RegulatorConfig = RegulatorConfig(),
) -> SessionHistory:
    """Return a new history with `record` appended and windows refreshed."""
    records = (*history.records, record)
    windows = history.windows
    if len(records) >= config.fatigue.minimum_records:
        windows = compute_windows(records, config)

    return SessionHistory(
        started_at=history.started_at,
        records=records,
        windows=windows,
        session_id=history.session_id,
    )


def ingest_all(
    history: SessionHistory,
    records: Sequence[ReviewRecord],
    config: RegulatorConfig = RegulatorConfig(),
) -> SessionHistory:
    for record in records:
        history = ingest(history, record, config)
    return history


def compute_windows(
    records: Sequence[ReviewRecord], config: RegulatorConfig = RegulatorConfig()
) -> tuple[PerformanceWindow, ...]:
    """
    Overlapping windows of window_size records advancing by
    window_size - overlap_size. Only the most recent max_windows are kept.
    """
    params = config.fatigue
    size = max(1, params.window_size)
    step = max(1, size - params.overlap_size)

    windows = []
    for start in range(0, len(records) - size + 1, step):
        chunk = records[start : start + size]
        windows.append(
            PerformanceWindow(
                window_start=start,
                window_end=start + size - 1,
                average_response_time=mean([r.total_time_ms for r in chunk]),
                average_rating=mean([float(r.rating) for r in chunk]),
                rating_distribution=dict(Counter(r.rating for r in chunk)),
                fatigue_score=window_fatigue_score(chunk, config),
            )
        )

    return tuple(windows[-params.max_windows :])


def window_fatigue_score(
    records: Sequence[ReviewRecord], config: RegulatorConfig = RegulatorConfig()
) -> float:
    """
    Fatigue inside one window: rising response times, falling ratings and
    hesitation relative to the user's baseline.
    """
    params = config.fatigue
    time_trend = trend([r.total_time_ms for r in records])
    rating_trend = trend([float(r.rating) for r in records], higher_is_worse=False)

    score = (
        _weighted_strength(time_trend) * params.weight_response_time
        + _weighted_strength(rating_trend) * params.weight_rating
        + hesitation_score(records, config.thresholds.baseline) * params.window_weight_hesitation
    )
    return clamp(score, 0.0, 100.0)


def hesitation_score(records: Sequence[ReviewRecord], baseline_ms: float) -> float:
    """
    0-100 score for time-to-show-answer well above half the baseline total.
    """
    if not records:
        return 0.0
    expected = baseline_ms / 2
    if expected <= 0:
        return 0.0

    average = mean([r.time_to_show_answer_ms for r in records])
    if average > expected * 1.5:
        return min(100.0, (average - expected) / expected * 50)
    return 0.0


def fatigue_indicators(
    history: SessionHistory, config: RegulatorConfig = RegulatorConfig()
) -> FatigueIndicators:
    """
    Current fatigue indicators from the most recent records.

    Fewer than minimum_records records yields an all-false, zero-score result.
    """
    params = config.fatigue
    if len(history.records) < params.minimum_records:
        return FatigueIndicators()

    recent = history.records[-params.recent_records :]
    response_times = [r.total_time_ms for r in recent]

    time_trend = trend(response_times)
    rating_trend = trend([float(r.rating) for r in recent], higher_is_worse=False)
    hesitation_trend = trend([r.time_to_show_answer_ms for r in recent])

    consistency = consistency_score(response_times, config)

    score = (
        _declining_strength(time_trend) * params.weight_response_time
        + _declining_strength(rating_trend) * params.weight_rating
        + _declining_strength(hesitation_trend) * params.weight_hesitation
        + (100 - consistency) * params.weight_consistency
    )

    gate = params.indicator_confidence
    return FatigueIndicators(
        response_time_slowing=_confidently_declining(time_trend, gate),
        performance_declining=_confidently_declining(rating_trend, gate),
        hesitation_increasing=_confidently_declining(hesitation_trend, gate),
        consistency_decreasing=consistency < c.CONSISTENCY_WARNING_SCORE,
        overall_fatigue_score=clamp(score, 0.0, 100.0),
    )


def consistency_score(
    response_times: Sequence[float], config: RegulatorConfig = RegulatorConfig()
) -> float:
    """
    100 when response times are as steady as expected, dropping toward 0 as
    their variance exceeds (30% of baseline)^2.
    """
    observed = variance(response_times)
    expected = (config.thresholds.baseline * config.fatigue.consistency_baseline_fraction) ** 2
    if expected <= 0:
        return 100.0 if observed == 0 else 0.0
    return max(0.0, 100 - observed / expected * 100)


def pattern_detection(
    history: SessionHistory, config: RegulatorConfig = RegulatorConfig()
) -> PatternDetection:
    if len(history.records) < c.PATTERN_MIN_RECORDS:
        return PatternDetection(
            response_time_trend=TrendAnalysis.flat(),
            performance_trend=TrendAnalysis.flat(),
            fatigue_progression=TrendAnalysis.flat(),
            recommendations=["Need more data for pattern analysis"],
        )

    response_time_trend = trend([r.total_time_ms for r in history.records])
    performance_trend = trend([float(r.rating) for r in history.records], higher_is_worse=False)
    fatigue_progression = trend([w.fatigue_score for w in history.windows])

    gate = config.fatigue.indicator_confidence
    recommendations: list[str] = []
    if _confidently_declining(response_time_trend, gate):
        recommendations.append("Consider shorter study sessions or more frequent breaks")
    if _confidently_declining(performance_trend, gate):
        recommendations.append("Review difficult cards later when you're fresher")
    if _confidently_declining(fatigue_progression, gate):
        recommendations.append("Your fatigue is increasing - take a longer break")
    if not recommendations:
        recommendations.append("You're maintaining good performance - keep it up!")

    return PatternDetection(
        response_time_trend=response_time_trend,
        performance_trend=performance_trend,
        fatigue_progression=fatigue_progression,
        recommendations=recommendations,
    )


def session_duration_minutes(history: SessionHistory, now: datetime | None = None) -> float:
    now = now or datetime.now(timezone.utc)
    return max(0.0, (now - history.started_at).total_seconds() / 60)


def retention_rate(records: Sequence[ReviewRecord]) -> float:
    """Percentage of ratings that were not Again."""
    if not records:
        return 0.0
    kept = sum(1 for r in records if r.rating != Rating.AGAIN)
    return kept / len(records) * 100


def session_summary(
    history: SessionHistory,
    config: RegulatorConfig = RegulatorConfig(),
    *,
    now: datetime | None = None,
) -> SessionSummary:
    return SessionSummary(
        session_id=history.session_id,
        started_at=history.started_at,
        total_cards=len(history.records),
        duration_minutes=session_duration_minutes(history, now),
        final_fatigue_score=fatigue_indicators(history, config).overall_fatigue_score,
        average_response_time=mean([r.total_time_ms for r in history.records]),
        retention_rate=retention_rate(history.records),
        performance_windows=len(history.windows),
        patterns=pattern_detection(history, config),
    )


def _declining_strength(analysis: TrendAnalysis) -> float:
    return analysis.strength if analysis.direction == "declining" else 0.0


def _weighted_strength(analysis: TrendAnalysis) -> float:
    return _declining_strength(analysis) * (analysis.confidence / 100)


def _confidently_declining(analysis: TrendAnalysis, gate: float) -> bool:
    return analysis.direction == "declining" and analysis.confidence > gate
