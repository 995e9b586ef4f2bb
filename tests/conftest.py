from datetime import datetime, timedelta, timezone

import pytest

from cadence.domain.scheduling.models import DeckConfig, Rating
from cadence.domain.session.models import ReviewRecord

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def deck_config():
    return DeckConfig(deck_id="deck-1")


@pytest.fixture
def make_record():
    """Factory for review records spaced a few seconds apart."""

    def _make(
        index: int = 0,
        rating: Rating | int = Rating.GOOD,
        show_ms: float = 2000.0,
        rate_ms: float = 1000.0,
        difficulty: float = 3.0,
        start: datetime = NOW,
    ) -> ReviewRecord:
        return ReviewRecord(
            card_id=f"card-{index}",
            rating=rating,
            time_to_show_answer_ms=show_ms,
            time_to_rate_ms=rate_ms,
            timestamp=start + timedelta(seconds=10 * index),
            difficulty=difficulty,
        )

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config
    monkeypatch.setenv("HOME", str(home))
    return home
