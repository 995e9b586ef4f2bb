"""
Domain models for in-session intelligence: review events, fatigue signals,
break/workload decisions, response-time baselines and learner profiles.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from cadence.domain import constants as c
from cadence.domain.scheduling.models import Rating

TrendDirection = Literal["improving", "stable", "declining"]
BreakTrigger = Literal[
    "fatigue_detected", "time_threshold", "performance_drop", "scheduled", "user_pattern"
]
BreakTiming = Literal["immediate", "after_current_card", "in_5_minutes", "flexible"]
BreakUrgency = Literal["low", "medium", "high", "critical"]
BreakReason = Literal[
    "performance_decline", "time_limit", "response_slow", "fatigue_pattern",
    "schedule_optimization",
]


@dataclass(frozen=True)
class ReviewRecord:
    """
    A single card shown to the user.

    Attributes:
        card_id: The card that was reviewed.
        rating: Button pressed.
        time_to_show_answer_ms: Card shown -> "Show Answer" clicked.
        time_to_rate_ms: Answer shown -> rating selected.
        timestamp: When the rating was submitted.
        difficulty: Card difficulty level (1-5 scale, may be fractional).
    """

    card_id: str
    rating: Rating
    time_to_show_answer_ms: float
    time_to_rate_ms: float
    timestamp: datetime
    difficulty: float = 3.0

    def __post_init__(self):
        if self.time_to_show_answer_ms < 0 or self.time_to_rate_ms < 0:
            raise ValueError("Review timings must be non-negative")
        object.__setattr__(self, "rating", Rating.parse(self.rating))

    @property
    def total_time_ms(self) -> float:
        return self.time_to_show_answer_ms + self.time_to_rate_ms


@dataclass(frozen=True)
class TrendAnalysis:
    """
    Linear trend over a numeric series.

    "declining" always means the series is moving in the bad direction for
    the metric it describes.
    """

    direction: TrendDirection
    strength: float  # 0-100
    confidence: float  # 0-100
    data_points: int
    slope: float = 0.0

    @classmethod
    def flat(cls, data_points: int = 0) -> "TrendAnalysis":
        return cls(direction="stable", strength=0.0, confidence=0.0, data_points=data_points)


@dataclass(frozen=True)
class PerformanceWindow:
    window_start: int  # index into the session's records
    window_end: int  # inclusive
    average_response_time: float
    average_rating: float  # 0-3 scale
    rating_distribution: dict[Rating, int]
    fatigue_score: float  # 0-100


@dataclass(frozen=True)
class FatigueIndicators:
    response_time_slowing: bool = False
    performance_declining: bool = False
    hesitation_increasing: bool = False
    consistency_decreasing: bool = False
    overall_fatigue_score: float = 0.0


@dataclass(frozen=True)
class SessionHistory:
    """
    Append-only record sequence of one study session plus its derived windows.

    Never mutated; `ingest` returns a new history.
    """

    started_at: datetime
    records: tuple[ReviewRecord, ...] = ()
    windows: tuple[PerformanceWindow, ...] = ()
    session_id: str = ""


@dataclass(frozen=True)
class PatternDetection:
    response_time_trend: TrendAnalysis
    performance_trend: TrendAnalysis
    fatigue_progression: TrendAnalysis
    recommendations: list[str]


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    started_at: datetime
    total_cards: int
    duration_minutes: float
    final_fatigue_score: float
    average_response_time: float
    retention_rate: float  # 0-100
    performance_windows: int
    patterns: PatternDetection


@dataclass(frozen=True)
class SmartBreakSuggestion:
    triggered: bool
    trigger: BreakTrigger
    confidence: float  # 0-100
    message: str
    benefits: list[str]
    timing: BreakTiming
    alternatives: list[str] | None = None


@dataclass(frozen=True)
class SessionOptimization:
    recommended_break_now: bool
    break_urgency: BreakUrgency
    break_reason: BreakReason
    recommended_break_duration: int  # minutes
    session_should_end: bool
    next_session_recommendation: datetime


@dataclass(frozen=True)
class WorkloadBalance:
    daily_capacity: int
    current_load: int
    remaining_capacity: int
    optimal_session_length: float  # minutes
    recommended_card_count: int
    overload_risk: bool


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResponseTimeThresholds:
    baseline: float = c.DEFAULT_BASELINE_MS
    slow_warning: float = c.DEFAULT_SLOW_WARNING_MS
    fatigue_threshold: float = c.DEFAULT_FATIGUE_THRESHOLD_MS


@dataclass(frozen=True)
class FatigueParams:
    """Window geometry and weighting used by the fatigue engine."""

    window_size: int = c.FATIGUE_WINDOW_SIZE
    overlap_size: int = c.FATIGUE_WINDOW_OVERLAP
    minimum_records: int = c.FATIGUE_MIN_RECORDS
    recent_records: int = c.FATIGUE_RECENT_RECORDS
    max_windows: int = c.FATIGUE_MAX_WINDOWS
    indicator_confidence: float = c.FATIGUE_INDICATOR_CONFIDENCE
    weight_response_time: float = c.FATIGUE_WEIGHT_RESPONSE_TIME
    weight_rating: float = c.FATIGUE_WEIGHT_RATING
    weight_hesitation: float = c.FATIGUE_WEIGHT_HESITATION
    weight_consistency: float = c.FATIGUE_WEIGHT_CONSISTENCY
    window_weight_hesitation: float = c.WINDOW_WEIGHT_HESITATION
    consistency_baseline_fraction: float = c.CONSISTENCY_BASELINE_FRACTION


@dataclass(frozen=True)
class BreakTriggers:
    fatigue_score_threshold: float = c.DEFAULT_FATIGUE_SCORE_THRESHOLD
    performance_drop_threshold: float = c.DEFAULT_PERFORMANCE_DROP_THRESHOLD
    time_based_break_interval: float = c.DEFAULT_TIME_BASED_BREAK_INTERVAL


@dataclass(frozen=True)
class WorkloadLimits:
    max_daily_cards: int = c.DEFAULT_MAX_DAILY_CARDS
    max_session_length: float = c.DEFAULT_MAX_SESSION_LENGTH
    optimal_session_length: float = c.DEFAULT_OPTIMAL_SESSION_LENGTH
    minimum_break_between_sessions: float = c.DEFAULT_MIN_BREAK_BETWEEN_SESSIONS
    preferred_break_duration: float | None = None  # minutes


@dataclass(frozen=True)
class RegulatorConfig:
    """Per-user configuration threaded through the fatigue engine and regulator."""

    thresholds: ResponseTimeThresholds = field(default_factory=ResponseTimeThresholds)
    fatigue: FatigueParams = field(default_factory=FatigueParams)
    triggers: BreakTriggers = field(default_factory=BreakTriggers)
    workload: WorkloadLimits = field(default_factory=WorkloadLimits)


@dataclass(frozen=True)
class UserBreakPreferences:
    break_interval: float | None = None
    break_duration: float | None = None
    adaptive_breaks: bool = False
    max_daily_cards: int | None = None
    custom_session_length: float | None = None
    session_length: str | None = None  # "custom" enables custom_session_length


# ---------------------------------------------------------------------------
# Baseline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaselineParams:
    min_samples: int = c.BASELINE_MIN_SAMPLES
    outlier_sigma: float = c.BASELINE_OUTLIER_SIGMA
    max_stored_samples: int = c.BASELINE_MAX_STORED_SAMPLES
    min_plausible_ms: float = c.BASELINE_MIN_PLAUSIBLE_MS
    max_plausible_ms: float = c.BASELINE_MAX_PLAUSIBLE_MS
    min_bucket_samples: int = c.BASELINE_MIN_BUCKET_SAMPLES


@dataclass(frozen=True)
class DifficultyStats:
    avg: float
    std: float
    count: int


@dataclass(frozen=True)
class ResponseTimeBaseline:
    user_id: str
    average_time_ms: float
    standard_deviation_ms: float
    sample_size: int
    last_updated: datetime
    by_difficulty: dict[int, DifficultyStats] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Personalization
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserLearningProfile:
    user_id: str
    total_cards_studied: int = 0
    average_session_length: float = 25.0  # minutes
    average_cards_per_session: float = 15.0
    average_retention_rate: float = 0.75  # 0-1
    preferred_study_times: tuple[int, ...] = (9, 14, 19)  # hours of day
    fatigue_threshold: float = c.DEFAULT_FATIGUE_SCORE_THRESHOLD
    optimal_break_interval: float = 25.0  # minutes
    optimal_break_duration: float = 10.0  # minutes
    celebration_frequency: int = 5
    milestone_progression: tuple[int, ...] = (25, 75, 150, 300, 500)
    study_velocity: float = 5.0  # cards per hour
    consistency_score: float = 0.5  # 0-1
    difficulty_tolerance: float = 0.7  # 0-1
    last_updated: datetime | None = None


@dataclass(frozen=True)
class SessionLog:
    """One stored study session, as read back for profile construction."""

    session_date: datetime
    cards_studied: int
    time_spent_seconds: float
    retention_rate: float  # 0-100
    fatigue_score: float | None = None


@dataclass(frozen=True)
class SessionResult:
    """Outcome of the session that just ended, fed to the profile update."""

    cards_studied: int
    time_spent_seconds: float
    retention_rate: float  # 0-100
    fatigue_score: float
    study_hour: int


@dataclass(frozen=True)
class PersonalizedRecommendations:
    next_milestone: int
    celebration_trigger: int
    fatigue_warning_threshold: float
    break_interval: float
    break_duration: float
    session_length_recommendation: int
    optimal_study_time: str
    difficulty_adjustment: float
