from datetime import timedelta

import pytest

from cadence.application.session.fatigue import (
    compute_windows,
    consistency_score,
    fatigue_indicators,
    generate_session_id,
    hesitation_score,
    ingest,
    ingest_all,
    new_session,
    pattern_detection,
    retention_rate,
    session_summary,
)
from cadence.domain.scheduling.models import Rating
from cadence.domain.session.models import FatigueIndicators


@pytest.fixture
def session(now):
    return new_session(started_at=now, session_id="session_test")


def steady_records(make_record, count):
    return [make_record(i) for i in range(count)]


def tiring_records(make_record):
    """Ten reviews getting slower while ratings slide from Easy to Again."""
    ratings = [3, 3, 3, 2, 2, 2, 1, 1, 0, 0]
    return [
        make_record(i, rating=r, show_ms=1000 + 500 * i, rate_ms=1000 + 500 * i)
        for i, r in enumerate(ratings)
    ]


# --- Session history ---


def test_new_session_generates_id(now):
    history = new_session(started_at=now)
    assert history.session_id.startswith("session_")
    assert history.records == ()


def test_generated_session_ids_are_unique():
    assert generate_session_id() != generate_session_id()


def test_ingest_returns_new_history(session, make_record):
    updated = ingest(session, make_record())

    assert len(updated.records) == 1
    assert session.records == ()
    assert updated.session_id == session.session_id
    assert updated.started_at == session.started_at


def test_windows_appear_once_window_is_full(session, make_record):
    four = ingest_all(session, steady_records(make_record, 4))
    five = ingest(four, make_record(4))

    assert four.windows == ()
    assert len(five.windows) == 1
    assert (five.windows[0].window_start, five.windows[0].window_end) == (0, 4)


def test_windows_overlap(make_record):
    windows = compute_windows(steady_records(make_record, 11))

    assert [(w.window_start, w.window_end) for w in windows] == [(0, 4), (3, 7), (6, 10)]
    assert windows[0].average_response_time == 3000
    assert windows[0].average_rating == 2.0
    assert windows[0].rating_distribution == {Rating.GOOD: 5}


def test_only_recent_windows_are_kept(make_record):
    windows = compute_windows(steady_records(make_record, 100))

    assert len(windows) == 20
    assert windows[-1].window_start == 93


def test_window_scores_stay_in_range(session, make_record):
    history = ingest_all(session, tiring_records(make_record))
    assert all(0 <= w.fatigue_score <= 100 for w in history.windows)


# --- Indicators ---


def test_too_few_records_report_no_fatigue(session, make_record):
    history = ingest_all(session, steady_records(make_record, 2))
    assert fatigue_indicators(history) == FatigueIndicators()


def test_steady_session_has_no_fatigue(session, make_record):
    history = ingest_all(session, steady_records(make_record, 10))
    indicators = fatigue_indicators(history)

    assert indicators.overall_fatigue_score == 0.0
    assert not indicators.response_time_slowing
    assert not indicators.consistency_decreasing


def test_slowing_session_scores_high(session, make_record):
    history = ingest_all(session, tiring_records(make_record))
    indicators = fatigue_indicators(history)

    assert 60 < indicators.overall_fatigue_score <= 100
    assert indicators.consistency_decreasing


def test_hesitation_score(make_record):
    slow = [make_record(i, show_ms=4000) for i in range(3)]
    quick = [make_record(i, show_ms=2000) for i in range(3)]

    assert hesitation_score(slow, 3000) == pytest.approx(250 / 3)
    assert hesitation_score(quick, 3000) == 0.0
    assert hesitation_score([], 3000) == 0.0


def test_consistency_score():
    assert consistency_score([3000, 3000, 3000]) == 100.0
    assert consistency_score([3000, 3900]) == pytest.approx(75.0)
    assert consistency_score([1000, 9000]) == 0.0


# --- Patterns and summary ---


def test_pattern_detection_needs_data(session, make_record):
    history = ingest_all(session, steady_records(make_record, 4))
    patterns = pattern_detection(history)
    assert patterns.recommendations == ["Need more data for pattern analysis"]


def test_pattern_detection_steady_session(session, make_record):
    history = ingest_all(session, steady_records(make_record, 8))
    patterns = pattern_detection(history)

    assert patterns.response_time_trend.direction == "stable"
    assert patterns.recommendations == ["You're maintaining good performance - keep it up!"]


def test_rising_ratings_are_an_improvement(session, make_record):
    ratings = [0, 0, 1, 1, 2, 2, 3, 3]
    history = ingest_all(session, [make_record(i, rating=r) for i, r in enumerate(ratings)])
    assert pattern_detection(history).performance_trend.direction == "improving"


def test_session_summary(session, make_record, now):
    records = [make_record(i, rating=r) for i, r in enumerate([2, 0, 3, 2])]
    history = ingest_all(session, records)

    summary = session_summary(history, now=now + timedelta(minutes=10))

    assert summary.session_id == "session_test"
    assert summary.total_cards == 4
    assert summary.duration_minutes == pytest.approx(10.0)
    assert summary.retention_rate == 75.0
    assert summary.average_response_time == 3000.0
    assert summary.performance_windows == 0


def test_retention_rate_of_empty_session():
    assert retention_rate([]) == 0.0
