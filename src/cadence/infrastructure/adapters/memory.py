"""
In-memory adapters for every persistence port.

Used by the CLI replay commands and the test suite. Card writes go through
an asyncio lock per card and an optimistic version check, which is the
serialization point concurrent submissions for one card need.
"""

import asyncio
from collections import defaultdict, deque
from datetime import datetime

from cadence.domain import constants as c
from cadence.domain.errors import ConcurrentUpdateError
from cadence.domain.scheduling.models import DeckConfig, SchedulingState
from cadence.domain.scheduling.ports import CardStore, DeckConfigStore, VersionedState
from cadence.domain.session.models import (
    ResponseTimeBaseline,
    ReviewRecord,
    SessionLog,
    UserLearningProfile,
)
from cadence.domain.session.ports import BaselineStore, ProfileStore, ReviewSink, SessionLogStore


class InMemoryCardStore(CardStore):
    def __init__(self, states: dict[str, SchedulingState] | None = None):
        self._rows: dict[str, VersionedState] = {
            card_id: VersionedState(state=state, version=0)
            for card_id, state in (states or {}).items()
        }
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def add(self, card_id: str, state: SchedulingState) -> None:
        self._rows[card_id] = VersionedState(state=state, version=0)

    async def load_scheduling_state(self, card_id: str) -> VersionedState:
        return self._rows[card_id]

    async def save_scheduling_state(
        self, card_id: str, state: SchedulingState, expected_version: int
    ) -> int:
        async with self._locks[card_id]:
            current = self._rows.get(card_id)
            actual = current.version if current else -1
            if actual != expected_version:
                raise ConcurrentUpdateError(card_id, expected_version, actual)
            self._rows[card_id] = VersionedState(state=state, version=actual + 1)
            return actual + 1


class InMemoryDeckConfigStore(DeckConfigStore):
    def __init__(self, configs: dict[str, DeckConfig] | None = None):
        self._configs = dict(configs or {})

    def put(self, deck_id: str, config: DeckConfig) -> None:
        self._configs[deck_id] = config

    async def load_deck_config(self, deck_id: str) -> DeckConfig | None:
        return self._configs.get(deck_id)


class InMemoryBaselineStore(BaselineStore):
    def __init__(self):
        self._baselines: dict[str, ResponseTimeBaseline] = {}
        self.upserts = 0

    async def load_baseline(self, user_id: str) -> ResponseTimeBaseline | None:
        return self._baselines.get(user_id)

    async def upsert_baseline(self, user_id: str, baseline: ResponseTimeBaseline) -> None:
        self._baselines[user_id] = baseline
        self.upserts += 1


class InMemoryProfileStore(ProfileStore):
    def __init__(self):
        self._profiles: dict[str, UserLearningProfile] = {}

    async def load_profile(self, user_id: str) -> UserLearningProfile | None:
        return self._profiles.get(user_id)

    async def upsert_profile(self, user_id: str, profile: UserLearningProfile) -> None:
        self._profiles[user_id] = profile


class InMemoryReviewSink(ReviewSink):
    """Keeps at most `max_records` records per user, oldest dropped first."""

    def __init__(self, max_records: int = c.BASELINE_MAX_STORED_SAMPLES):
        self._max = max_records
        self._logs: dict[str, deque[ReviewRecord]] = {}

    async def append(self, user_id: str, record: ReviewRecord) -> None:
        log = self._logs.setdefault(user_id, deque(maxlen=self._max))
        log.append(record)

    async def recent(self, user_id: str, limit: int) -> list[ReviewRecord]:
        log = self._logs.get(user_id)
        if not log:
            return []
        return list(reversed(log))[:limit]


class InMemorySessionLogStore(SessionLogStore):
    def __init__(self, sessions: dict[str, list[SessionLog]] | None = None):
        self._sessions = {k: list(v) for k, v in (sessions or {}).items()}

    def add(self, user_id: str, session: SessionLog) -> None:
        self._sessions.setdefault(user_id, []).append(session)

    async def sessions_since(self, user_id: str, since: datetime) -> list[SessionLog]:
        return [s for s in self._sessions.get(user_id, []) if s.session_date >= since]
