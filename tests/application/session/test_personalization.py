import dataclasses
from datetime import timedelta

import pytest

from cadence.application.session.personalization import (
    PersonalizationService,
    adaptive_session_length,
    default_profile,
    format_hour,
    personalized_milestones,
    profile_from_history,
    recommendations,
    should_refresh,
    update_profile,
)
from cadence.domain.session.models import SessionLog, SessionResult, UserLearningProfile
from cadence.infrastructure.adapters.memory import InMemoryProfileStore, InMemorySessionLogStore


@pytest.fixture
def sessions(now):
    return [
        SessionLog(now - timedelta(days=1), 20, 1200, 90.0, 40.0),
        SessionLog(now - timedelta(days=2), 30, 1800, 85.0, 50.0),
        SessionLog(now - timedelta(days=40), 500, 600, 10.0, 99.0),
    ]


def test_profile_from_history(sessions, now):
    profile = profile_from_history("u1", sessions, now=now)

    assert profile.total_cards_studied == 50
    assert profile.average_session_length == pytest.approx(25.0)
    assert profile.average_cards_per_session == pytest.approx(25.0)
    assert profile.average_retention_rate == pytest.approx(0.875)
    assert profile.study_velocity == pytest.approx(60.0)
    assert profile.preferred_study_times == (9,)
    assert profile.fatigue_threshold == 50.0
    assert profile.optimal_break_interval == 25.0
    assert profile.optimal_break_duration == 8.0
    assert profile.celebration_frequency == 5
    assert profile.milestone_progression[0] == 30
    assert profile.difficulty_tolerance == 1.0
    assert profile.last_updated == now


def test_profile_from_empty_history_is_default(now):
    assert profile_from_history("u1", [], now=now) == default_profile("u1", now=now)


def test_update_profile_smooths_averages(now):
    profile = default_profile("u1", now=now)
    session = SessionResult(
        cards_studied=30, time_spent_seconds=1800, retention_rate=90.0,
        fatigue_score=40.0, study_hour=20,
    )

    updated = update_profile(profile, session, now=now)

    assert updated.total_cards_studied == 30
    assert updated.average_session_length == pytest.approx(25.5)
    assert updated.average_cards_per_session == pytest.approx(16.5)
    assert updated.average_retention_rate == pytest.approx(0.765)
    assert updated.study_velocity == pytest.approx(10.5)
    assert updated.fatigue_threshold == 66.0
    assert updated.preferred_study_times == (9, 14, 19)
    assert updated.milestone_progression[0] == 30


def test_update_profile_learns_new_study_hour(now):
    profile = dataclasses.replace(default_profile("u1", now=now), preferred_study_times=(9,))
    session = SessionResult(20, 1200, 95.0, 30.0, 21)

    assert update_profile(profile, session, now=now).preferred_study_times == (9, 21)


def test_fatigued_session_lowers_threshold_within_bounds(now):
    session = SessionResult(20, 1200, 60.0, 80.0, 9)
    profile = default_profile("u1", now=now)
    floor = dataclasses.replace(profile, fatigue_threshold=50.0)

    assert update_profile(profile, session, now=now).fatigue_threshold == 63.0
    assert update_profile(floor, session, now=now).fatigue_threshold == 50.0


def test_personalized_milestones():
    assert personalized_milestones(5.0)[:3] == (25, 75, 150)
    assert personalized_milestones(2.0)[2:4] == (105, 210)


def test_recommendations(now):
    profile = default_profile("u1", now=now)
    recs = recommendations(profile, current_hour=13)

    assert recs.next_milestone == 25
    assert recs.optimal_study_time == "2:00 PM"
    assert recs.session_length_recommendation == 25
    assert recs.fatigue_warning_threshold == 65.0


def test_next_milestone_past_the_last_one(now):
    profile = dataclasses.replace(default_profile("u1", now=now), total_cards_studied=600)
    assert recommendations(profile, current_hour=9).next_milestone == 1000


@pytest.mark.parametrize(
    "hour, expected",
    [(0, "12:00 AM"), (9, "9:00 AM"), (12, "12:00 PM"), (13, "1:00 PM"), (23, "11:00 PM")],
)
def test_format_hour(hour, expected):
    assert format_hour(hour) == expected


def test_adaptive_session_length(now):
    profile = default_profile("u1", now=now)

    assert adaptive_session_length(None, 9) == 25
    assert adaptive_session_length(profile, 3) == 25
    assert adaptive_session_length(profile, 9) == 28
    assert adaptive_session_length(profile, 9, available_minutes=10) == 10


def test_should_refresh(now):
    assert should_refresh(None, now=now)
    assert should_refresh(UserLearningProfile(user_id="u1"), now=now)
    assert should_refresh(default_profile("u1", now=now - timedelta(days=8)), now=now)
    assert not should_refresh(default_profile("u1", now=now - timedelta(days=1)), now=now)


@pytest.mark.asyncio
async def test_service_creates_profile_once(sessions, now):
    store = InMemoryProfileStore()
    logs = InMemorySessionLogStore({"u1": sessions})
    service = PersonalizationService(store, logs)

    created = await service.get_or_create("u1", now=now)
    again = await service.get_or_create("u1", now=now + timedelta(hours=1))

    assert created.total_cards_studied == 50
    assert again is created
    assert await store.load_profile("u1") == created


@pytest.mark.asyncio
async def test_service_records_session(now):
    store = InMemoryProfileStore()
    service = PersonalizationService(store, InMemorySessionLogStore())

    updated = await service.record_session("u1", SessionResult(12, 600, 80.0, 50.0, 9), now=now)

    assert updated.total_cards_studied == 12
    assert await store.load_profile("u1") == updated
