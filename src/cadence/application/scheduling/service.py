"""
Review submission service: application layer orchestrator.

Validates input at the boundary, runs the pure scheduling engine under an
optimistic version check, and persists the result. A persistence failure
after scheduling does not discard the decision: it is returned alongside
the computed state so the caller can retry or notify the user.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from cadence.application.session.baseline import BaselineService
from cadence.domain.scheduling.models import DeckConfig, Prediction, Rating, SchedulingState
from cadence.domain.scheduling.ports import CardStore, DeckConfigStore
from cadence.domain.session.models import ResponseTimeBaseline, ReviewRecord

from .deck_config import DeckConfigManager
from .engine import predict_next_due, schedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """
    Result of one rating submission.

    Attributes:
        card_id: The rated card.
        previous: State before the rating.
        state: State computed by the engine (always present).
        version: Stored version after saving, None if saving failed.
        persist_error: Why the state could not be saved, if it could not.
        baseline: Baseline saved as a side effect, if one was recomputed.
        baseline_error: Why the baseline update failed, if it did.
    """

    card_id: str
    previous: SchedulingState
    state: SchedulingState
    version: int | None = None
    persist_error: Exception | None = None
    baseline: ResponseTimeBaseline | None = None
    baseline_error: Exception | None = None

    @property
    def persisted(self) -> bool:
        return self.persist_error is None


class ReviewService:
    """
    Applies ratings to cards.

    Depends on the CardStore and DeckConfigStore ports; optionally feeds the
    same review into the user's response-time baseline.
    """

    def __init__(
        self,
        card_store: CardStore,
        deck_store: DeckConfigStore,
        baseline_service: BaselineService | None = None,
        config_manager: DeckConfigManager | None = None,
    ):
        self._cards = card_store
        self._decks = deck_store
        self._baselines = baseline_service
        self._manager = config_manager or DeckConfigManager()

    async def load_config(self, deck_id: str) -> DeckConfig:
        """
        Load a deck's config, falling back to defaults when it has none.

        Raises:
            InvalidConfigError: If the stored config is invalid.
        """
        config = await self._decks.load_deck_config(deck_id)
        if config is None:
            logger.info(f"No config stored for deck {deck_id}; using defaults")
            config = self._manager.merge_with_defaults({"deck_id": deck_id})
        self._manager.ensure_valid(config)
        return config

    async def submit_review(
        self,
        card_id: str,
        deck_id: str,
        rating: Rating | int | str,
        *,
        user_id: str | None = None,
        record: ReviewRecord | None = None,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """
        Rate a card and persist its next scheduling state.

        Raises:
            InvalidRatingError: Before anything is loaded, for ratings outside 0-3.
            InvalidConfigError: If the deck config is invalid.
            KeyError: If the card does not exist.
        """
        rating = Rating.parse(rating)
        now = now or datetime.now(timezone.utc)

        config = await self.load_config(deck_id)
        loaded = await self._cards.load_scheduling_state(card_id)
        state = schedule(loaded.state, rating, config, now=now)

        version: int | None = None
        persist_error: Exception | None = None
        try:
            version = await self._cards.save_scheduling_state(
                card_id, state, expected_version=loaded.version
            )
        except Exception as e:
            logger.warning(f"Failed to save scheduling state for card {card_id}: {e}")
            persist_error = e

        baseline = None
        baseline_error: Exception | None = None
        if self._baselines is not None and user_id is not None and record is not None:
            try:
                baseline = await self._baselines.update(user_id, record, now=now)
            except Exception as e:
                logger.warning(f"Failed to update response time baseline for {user_id}: {e}")
                baseline_error = e

        return ReviewOutcome(
            card_id=card_id,
            previous=loaded.state,
            state=state,
            version=version,
            persist_error=persist_error,
            baseline=baseline,
            baseline_error=baseline_error,
        )

    async def preview(
        self, card_id: str, deck_id: str, *, now: datetime | None = None
    ) -> dict[Rating, Prediction]:
        config = await self.load_config(deck_id)
        loaded = await self._cards.load_scheduling_state(card_id)
        return predict_next_due(loaded.state, config, now=now)
