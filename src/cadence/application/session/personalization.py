"""
Cross-session personalization.

A UserLearningProfile is built from the last 30 days of session logs and
then nudged after every session with exponential smoothing. Its fatigue
threshold and break cadence feed the next session's RegulatorConfig.
"""

import dataclasses
import logging
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from cadence.application.stats.basics import clamp, mean
from cadence.domain import constants as c
from cadence.domain.session.models import (
    PersonalizedRecommendations,
    SessionLog,
    SessionResult,
    UserLearningProfile,
)
from cadence.domain.session.ports import ProfileStore, SessionLogStore

logger = logging.getLogger(__name__)


def default_profile(user_id: str, *, now: datetime | None = None) -> UserLearningProfile:
    return UserLearningProfile(user_id=user_id, last_updated=now or datetime.now(timezone.utc))


def profile_from_history(
    user_id: str,
    sessions: Sequence[SessionLog],
    *,
    now: datetime | None = None,
) -> UserLearningProfile:
    """
    Derive a profile from the user's recent session logs.

    Only sessions from the last 30 days count; with none, the default
    profile is returned.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=c.PROFILE_HISTORY_DAYS)
    recent = [s for s in sessions if s.session_date >= cutoff]
    if not recent:
        return default_profile(user_id, now=now)

    total_cards = sum(s.cards_studied for s in recent)
    total_seconds = sum(s.time_spent_seconds for s in recent)

    avg_session_length = total_seconds / len(recent) / 60
    avg_cards = total_cards / len(recent)
    avg_retention = mean([s.retention_rate for s in recent]) / 100
    velocity = total_cards / (total_seconds / 3600) if total_seconds > 0 else 5.0

    fatigue_scores = [s.fatigue_score for s in recent if s.fatigue_score is not None]
    avg_fatigue = mean(fatigue_scores) if fatigue_scores else c.DEFAULT_FATIGUE_SCORE_THRESHOLD

    unique_days = len({s.session_date.date() for s in recent})
    tolerance = min(1.0, avg_retention * 1.2) if avg_retention > 0.8 else 0.6

    return UserLearningProfile(
        user_id=user_id,
        total_cards_studied=total_cards,
        average_session_length=clamp(avg_session_length, 10, 120),
        average_cards_per_session=max(5.0, avg_cards),
        average_retention_rate=avg_retention,
        preferred_study_times=find_preferred_study_times([s.session_date.hour for s in recent]),
        fatigue_threshold=clamp(
            avg_fatigue - 10, c.PROFILE_MIN_FATIGUE_THRESHOLD, c.PROFILE_MAX_FATIGUE_THRESHOLD
        ),
        optimal_break_interval=optimal_break_interval(avg_session_length, fatigue_scores),
        optimal_break_duration=optimal_break_duration(avg_session_length),
        celebration_frequency=celebration_frequency(avg_cards, avg_retention),
        milestone_progression=personalized_milestones(velocity),
        study_velocity=velocity,
        consistency_score=min(1.0, unique_days / c.PROFILE_HISTORY_DAYS),
        difficulty_tolerance=tolerance,
        last_updated=now,
    )


def update_profile(
    profile: UserLearningProfile,
    session: SessionResult,
    *,
    learning_rate: float = c.PROFILE_LEARNING_RATE,
    now: datetime | None = None,
) -> UserLearningProfile:
    """
    Fold one finished session into the profile.

    Session length, cards per session, retention and study velocity are
    exponentially smoothed. The fatigue threshold drops by 2 after a
    fatigued, low-retention session and rises by 1 after a fresh,
    high-retention one, always within [50, 80].
    """
    alpha = learning_rate
    minutes = session.time_spent_seconds / 60
    retention = session.retention_rate / 100

    def smooth(old: float, new: float) -> float:
        return (1 - alpha) * old + alpha * new

    session_length = smooth(profile.average_session_length, minutes)
    cards_per_session = smooth(profile.average_cards_per_session, session.cards_studied)
    retention_rate = smooth(profile.average_retention_rate, retention)

    velocity = profile.study_velocity
    if session.time_spent_seconds > 0:
        velocity = smooth(velocity, session.cards_studied / (session.time_spent_seconds / 3600))

    hours = profile.preferred_study_times
    if (
        session.study_hour not in hours
        and retention > 0.8
        and len(hours) < c.PROFILE_MAX_PREFERRED_HOURS
    ):
        hours = (*hours, session.study_hour)

    threshold = profile.fatigue_threshold
    if session.fatigue_score > threshold and retention < 0.7:
        threshold = max(c.PROFILE_MIN_FATIGUE_THRESHOLD, threshold - 2)
    elif session.fatigue_score < threshold and retention > 0.85:
        threshold = min(c.PROFILE_MAX_FATIGUE_THRESHOLD, threshold + 1)

    return dataclasses.replace(
        profile,
        total_cards_studied=profile.total_cards_studied + session.cards_studied,
        average_session_length=session_length,
        average_cards_per_session=cards_per_session,
        average_retention_rate=retention_rate,
        study_velocity=velocity,
        preferred_study_times=hours,
        fatigue_threshold=threshold,
        optimal_break_interval=optimal_break_interval(session_length, [session.fatigue_score]),
        optimal_break_duration=optimal_break_duration(session_length),
        celebration_frequency=celebration_frequency(cards_per_session, retention_rate),
        milestone_progression=personalized_milestones(velocity),
        last_updated=now or datetime.now(timezone.utc),
    )


def recommendations(
    profile: UserLearningProfile, *, current_hour: int | None = None
) -> PersonalizedRecommendations:
    if current_hour is None:
        current_hour = datetime.now().hour

    milestones = profile.milestone_progression
    next_milestone = next(
        (m for m in milestones if m > profile.total_cards_studied),
        (milestones[-1] + 500) if milestones else 500,
    )

    closest = current_hour
    if profile.preferred_study_times:
        closest = min(profile.preferred_study_times, key=lambda h: abs(h - current_hour))

    return PersonalizedRecommendations(
        next_milestone=next_milestone,
        celebration_trigger=profile.celebration_frequency,
        fatigue_warning_threshold=profile.fatigue_threshold,
        break_interval=profile.optimal_break_interval,
        break_duration=profile.optimal_break_duration,
        session_length_recommendation=round(profile.average_session_length),
        optimal_study_time=format_hour(closest),
        difficulty_adjustment=profile.difficulty_tolerance,
    )


def adaptive_session_length(
    profile: UserLearningProfile | None,
    time_of_day: int,
    available_minutes: float | None = None,
) -> int:
    """Recommended session length in minutes, between 10 and 90."""
    if profile is None:
        return 25

    length = profile.average_session_length
    if time_of_day in profile.preferred_study_times:
        length *= 1.1
    if profile.consistency_score > 0.8:
        length *= 1.2
    if available_minutes:
        length = min(length, available_minutes * 0.9)

    return int(clamp(round(length), 10, 90))


def should_refresh(profile: UserLearningProfile | None, *, now: datetime | None = None) -> bool:
    if profile is None or profile.last_updated is None:
        return True
    now = now or datetime.now(timezone.utc)
    return now - profile.last_updated > timedelta(days=c.PROFILE_REFRESH_DAYS)


# ---------------------------------------------------------------------------
# Derived cadence helpers
# ---------------------------------------------------------------------------


def find_preferred_study_times(study_hours: Sequence[int]) -> tuple[int, ...]:
    """The three most frequent study hours, most frequent first."""
    counts = Counter(study_hours)
    return tuple(hour for hour, _ in counts.most_common(c.PROFILE_MAX_PREFERRED_HOURS))


def optimal_break_interval(avg_session_length: float, fatigue_scores: Sequence[float]) -> float:
    based_on_session = clamp(avg_session_length * 0.8, 15, 45)

    if fatigue_scores:
        avg_fatigue = mean(fatigue_scores)
        if avg_fatigue > 70:
            return max(15.0, based_on_session - 5)
        if avg_fatigue < 50:
            return min(45.0, based_on_session + 5)

    return float(round(based_on_session))


def optimal_break_duration(avg_session_length: float) -> float:
    if avg_session_length < 20:
        return 5.0
    if avg_session_length < 30:
        return 8.0
    if avg_session_length < 45:
        return 12.0
    return 15.0


def celebration_frequency(avg_cards_per_session: float, avg_retention: float) -> int:
    # Beginners and struggling learners get more frequent encouragement.
    if avg_cards_per_session < 10 or avg_retention < 0.7:
        return 3
    if avg_cards_per_session < 20 or avg_retention < 0.8:
        return 4
    if avg_cards_per_session < 30 or avg_retention < 0.9:
        return 5
    return 7


def personalized_milestones(study_velocity: float) -> tuple[int, ...]:
    if study_velocity > 8:
        return tuple(round(m * 1.2) for m in c.BASE_MILESTONES)
    if study_velocity < 3:
        return tuple(round(m * 0.7) for m in c.BASE_MILESTONES)
    return c.BASE_MILESTONES


def format_hour(hour: int) -> str:
    period = "PM" if hour >= 12 else "AM"
    display = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display}:00 {period}"


class PersonalizationService:
    """
    Loads, initializes and updates learner profiles through the store ports.
    """

    def __init__(self, profile_store: ProfileStore, session_logs: SessionLogStore):
        self._profiles = profile_store
        self._logs = session_logs

    async def get_or_create(
        self, user_id: str, *, now: datetime | None = None
    ) -> UserLearningProfile:
        """
        Return the stored profile, creating it from session history if absent.
        """
        existing = await self._profiles.load_profile(user_id)
        if existing is not None:
            return existing

        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=c.PROFILE_HISTORY_DAYS)
        sessions = await self._logs.sessions_since(user_id, since)
        profile = profile_from_history(user_id, sessions, now=now)

        await self._profiles.upsert_profile(user_id, profile)
        logger.info(f"Created learning profile for {user_id} from {len(sessions)} sessions")
        return profile

    async def record_session(
        self, user_id: str, session: SessionResult, *, now: datetime | None = None
    ) -> UserLearningProfile:
        profile = await self.get_or_create(user_id, now=now)
        updated = update_profile(profile, session, now=now)
        await self._profiles.upsert_profile(user_id, updated)
        return updated
