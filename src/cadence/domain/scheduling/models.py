"""
Domain models for card scheduling.

These are pure data structures with no I/O or external dependencies.
Card state is a closed union of four frozen dataclasses so every state only
carries the fields that are meaningful for it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Union

from cadence.domain import constants as c
from cadence.domain.errors import InvalidRatingError


class Rating(IntEnum):
    """Button pressed by the user after revealing the answer."""

    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3

    @classmethod
    def parse(cls, value: "int | str | Rating") -> "Rating":
        """
        Coerce an int (0-3) or a case-insensitive name into a Rating.

        Raises:
            InvalidRatingError: If the value is not one of the four ratings.
        """
        if isinstance(value, Rating):
            return value
        if isinstance(value, bool):
            raise InvalidRatingError(f"Invalid rating: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidRatingError(f"Rating must be 0-3, got {value}") from None
        if isinstance(value, str):
            key = value.strip().upper()
            if key.isdigit():
                return cls.parse(int(key))
            if key in cls.__members__:
                return cls[key]
        raise InvalidRatingError(f"Invalid rating: {value!r}")


@dataclass(frozen=True)
class New:
    """Never reviewed."""

    name = "new"


@dataclass(frozen=True)
class Learning:
    """Working through the deck's learning steps."""

    step: int = 0
    name = "learning"


@dataclass(frozen=True)
class Review:
    """Graduated; scheduled in days by the SM-2 rules."""

    name = "review"


@dataclass(frozen=True)
class Relearning:
    """
    Lapsed review card working through the relearning steps.

    Attributes:
        step: Index into the deck's relearning steps.
        lapsed_interval_days: Review interval the card held when it lapsed.
            Graduation back to Review is computed from this value.
    """

    step: int = 0
    lapsed_interval_days: float = 0.0
    name = "relearning"


CardState = Union[New, Learning, Review, Relearning]

STATE_NAMES = ("new", "learning", "review", "relearning")


@dataclass(frozen=True)
class SchedulingState:
    """
    Scheduling state of a single card.

    Mutated exactly once per rating submission, exclusively by the
    scheduling engine (which returns a new instance).

    Attributes:
        card_state: One of New, Learning, Review, Relearning.
        ease_factor: Interval multiplier, never below 1.3.
        interval_days: Current interval (fractional days while in a step).
        lapse_count: Number of times the card was forgotten.
        is_leech: Sticky flag set once lapse_count reaches the deck threshold.
        review_count: Total number of ratings applied.
        next_due: When the card should be shown again.
        last_studied: When the card was last rated, None if never.
        graduated: The last transition moved the card into Review.
        lapsed: The last transition was a lapse (Review -> Relearning).
        became_leech: The last transition set is_leech.
    """

    card_state: CardState
    next_due: datetime
    ease_factor: float = c.DEFAULT_STARTING_EASE
    interval_days: float = 0.0
    lapse_count: int = 0
    is_leech: bool = False
    review_count: int = 0
    last_studied: datetime | None = None

    graduated: bool = False
    lapsed: bool = False
    became_leech: bool = False

    @property
    def state_name(self) -> str:
        return self.card_state.name

    @property
    def learning_step(self) -> int | None:
        if isinstance(self.card_state, (Learning, Relearning)):
            return self.card_state.step
        return None

    @classmethod
    def new_card(cls, created: datetime, starting_ease: float = c.DEFAULT_STARTING_EASE):
        """State of a freshly authored card."""
        return cls(card_state=New(), next_due=created, ease_factor=starting_ease)


@dataclass(frozen=True)
class DeckConfig:
    """
    Scheduling configuration owned by a deck.

    Step durations are in minutes, intervals in days. Immutable: the engine
    and the optimizer always return new instances.
    """

    learning_steps: tuple[float, ...] = c.DEFAULT_LEARNING_STEPS
    relearning_steps: tuple[float, ...] = c.DEFAULT_RELEARNING_STEPS
    graduating_interval_days: float = c.DEFAULT_GRADUATING_INTERVAL
    easy_interval_days: float = c.DEFAULT_EASY_INTERVAL
    starting_ease: float = c.DEFAULT_STARTING_EASE
    easy_bonus: float = c.DEFAULT_EASY_BONUS
    hard_penalty: float = c.DEFAULT_HARD_PENALTY
    lapse_penalty: float = c.DEFAULT_LAPSE_PENALTY
    maximum_interval_days: float = c.DEFAULT_MAXIMUM_INTERVAL
    new_cards_per_day: int = c.DEFAULT_NEW_CARDS_PER_DAY
    lapse_threshold: int = c.DEFAULT_LAPSE_THRESHOLD

    # Metadata
    id: str = ""
    deck_id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Prediction:
    """Would-be outcome of one rating, as shown on a preview button."""

    rating: Rating
    next_due: datetime
    interval_days: float
    state_name: str
    state: SchedulingState


@dataclass(frozen=True)
class MasteryEstimate:
    days: float
    reviews: int


@dataclass(frozen=True)
class DeckPerformance:
    """
    Observed deck statistics fed to the config optimizer.

    Attributes:
        average_retention: Share of non-lapse ratings (0.0-1.0).
        lapse_rate: Lapses per review (0.0-1.0).
        average_response_time_ms: Mean total response time.
    """

    average_retention: float
    lapse_rate: float
    average_response_time_ms: float = 0.0


@dataclass(frozen=True)
class ConfigPreset:
    name: str
    description: str
    overrides: dict = field(default_factory=dict)
