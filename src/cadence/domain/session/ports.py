"""
Ports (interfaces) for per-user session intelligence persistence.

Writers upsert keyed by user id; last write wins.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import ResponseTimeBaseline, ReviewRecord, SessionLog, UserLearningProfile


class BaselineStore(ABC):
    @abstractmethod
    async def load_baseline(self, user_id: str) -> ResponseTimeBaseline | None:
        pass

    @abstractmethod
    async def upsert_baseline(self, user_id: str, baseline: ResponseTimeBaseline) -> None:
        pass


class ProfileStore(ABC):
    @abstractmethod
    async def load_profile(self, user_id: str) -> UserLearningProfile | None:
        pass

    @abstractmethod
    async def upsert_profile(self, user_id: str, profile: UserLearningProfile) -> None:
        pass


class ReviewSink(ABC):
    """
    Append-only log of review records per user.

    Used only to replenish the rolling sample for baseline learning.
    Implementations keep a bounded number of records per user.
    """

    @abstractmethod
    async def append(self, user_id: str, record: ReviewRecord) -> None:
        pass

    @abstractmethod
    async def recent(self, user_id: str, limit: int) -> list[ReviewRecord]:
        """
        Return up to `limit` most recent records, newest first.
        """
        pass


class SessionLogStore(ABC):
    @abstractmethod
    async def sessions_since(self, user_id: str, since: datetime) -> list[SessionLog]:
        pass
