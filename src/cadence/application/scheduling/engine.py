"""
Card scheduling engine: a modified SM-2 with learning and relearning steps.

Every public function is pure. The input state and config are never
mutated; a new SchedulingState is returned for every rating.

Transition table (state, rating -> state):

    New         Easy          -> Review          (easy interval, ease + easy bonus)
    New         Again/Hard/Good -> Learning[0]
    Learning    Again         -> Learning[0]
    Learning    Easy          -> Review          (easy interval)
    Learning    Hard/Good     -> Learning[n+1] or Review (graduating interval)
    Review      Again         -> Relearning[0]   (lapse)
    Review      Hard/Good/Easy -> Review         (SM-2 ease + interval)
    Relearning  Again         -> Relearning[0]   (lapse count grows)
    Relearning  Easy          -> Review          (50% of lapsed interval)
    Relearning  Hard/Good     -> Relearning[n+1] or Review (25% of lapsed interval)
"""

import logging
import math
from datetime import datetime, timedelta, timezone

from cadence.domain import constants as c
from cadence.domain.errors import UnknownStateError
from cadence.domain.scheduling.models import (
    CardState,
    DeckConfig,
    Learning,
    MasteryEstimate,
    New,
    Prediction,
    Rating,
    Relearning,
    Review,
    SchedulingState,
)

logger = logging.getLogger(__name__)


def schedule(
    state: SchedulingState,
    rating: Rating | int | str,
    config: DeckConfig,
    *,
    now: datetime | None = None,
) -> SchedulingState:
    """
    Compute the next scheduling state of a card.

    Args:
        state: The card's current state.
        rating: Again/Hard/Good/Easy (or 0-3).
        config: The owning deck's config. Assumed valid.
        now: Time of the rating. Defaults to the current UTC time.

    Raises:
        InvalidRatingError: If the rating is outside 0-3.
        UnknownStateError: If card_state is not one of the four states.
    """
    rating = Rating.parse(rating)
    now = now or datetime.now(timezone.utc)

    match state.card_state:
        case New():
            result = _schedule_new(state, rating, config, now)
        case Learning(step=step):
            result = _schedule_learning(state, max(0, step), rating, config, now)
        case Review():
            result = _schedule_review(state, rating, config, now)
        case Relearning(step=step, lapsed_interval_days=lapsed_interval):
            result = _schedule_relearning(
                state, max(0, step), lapsed_interval, rating, config, now
            )
        case _:
            raise UnknownStateError(f"Unknown card state: {state.card_state!r}")

    logger.debug(
        f"{state.state_name} --{rating.name}--> {result.state_name} "
        f"(interval={result.interval_days:.4f}d, ease={result.ease_factor})"
    )
    return result


def predict_next_due(
    state: SchedulingState,
    config: DeckConfig,
    *,
    now: datetime | None = None,
) -> dict[Rating, Prediction]:
    """
    Preview the outcome of every rating without changing the card.

    Runs the same transition code as `schedule`, so a preview and the
    subsequent real rating always agree for the same `now`.
    """
    now = now or datetime.now(timezone.utc)
    predictions: dict[Rating, Prediction] = {}

    for rating in Rating:
        result = schedule(state, rating, config, now=now)
        predictions[rating] = Prediction(
            rating=rating,
            next_due=result.next_due,
            interval_days=result.interval_days,
            state_name=result.state_name,
            state=result,
        )

    return predictions


def retention_probability(state: SchedulingState, *, now: datetime | None = None) -> float:
    """
    Estimate the current recall probability of a card.

    R = exp(-days_since_last_study / (interval * ease / 2.5)), clamped to [0, 1].
    Returns 0 for cards that were never studied.
    """
    if state.last_studied is None:
        return 0.0

    now = now or datetime.now(timezone.utc)
    days_since = (now - state.last_studied).total_seconds() / 86400.0
    stability = state.interval_days * (state.ease_factor / c.DEFAULT_EASE_NORMALIZER)

    if stability <= 0:
        return 0.0

    return max(0.0, min(1.0, math.exp(-days_since / stability)))


def estimate_time_to_mastery(
    state: SchedulingState,
    config: DeckConfig,
    target_ease: float = 3.0,
    target_interval: float = 30.0,
) -> MasteryEstimate:
    """
    Simulate consecutive Good reviews until both targets are met.

    Gives up after 100 simulated reviews.
    """
    ease = state.ease_factor
    interval = state.interval_days
    days = 0.0
    reviews = 0

    while ease < target_ease or interval < target_interval:
        ease = update_ease_factor(ease, Rating.GOOD, config)
        interval = review_interval(interval, ease, Rating.GOOD, config)
        days += interval
        reviews += 1
        if reviews >= c.MASTERY_SIMULATION_LIMIT:
            break

    return MasteryEstimate(days=days, reviews=reviews)


# ---------------------------------------------------------------------------
# SM-2 helpers
# ---------------------------------------------------------------------------


def update_ease_factor(ease: float, rating: Rating, config: DeckConfig) -> float:
    """Review-state ease update, rounded to 2 decimals."""
    match rating:
        case Rating.AGAIN:
            new_ease = max(c.MIN_EASE_FACTOR, ease - config.lapse_penalty)
        case Rating.HARD:
            new_ease = max(c.MIN_EASE_FACTOR, ease - config.hard_penalty)
        case Rating.GOOD:
            new_ease = ease + c.GOOD_EASE_BONUS
        case Rating.EASY:
            new_ease = ease + config.easy_bonus
    return _round_half_up(new_ease * 100) / 100


def review_interval(
    interval: float, ease: float, rating: Rating, config: DeckConfig
) -> float:
    """Review-state interval update, floored at 1 day and capped at the deck maximum."""
    match rating:
        case Rating.HARD:
            new_interval = _round_half_up(interval * c.HARD_INTERVAL_MULTIPLIER)
        case Rating.EASY:
            new_interval = _round_half_up(interval * ease * c.EASY_INTERVAL_MULTIPLIER)
        case _:
            new_interval = _round_half_up(interval * ease)
    return float(min(max(1, new_interval), config.maximum_interval_days))


# ---------------------------------------------------------------------------
# Per-state transitions
# ---------------------------------------------------------------------------


def _schedule_new(
    state: SchedulingState, rating: Rating, config: DeckConfig, now: datetime
) -> SchedulingState:
    if rating == Rating.EASY:
        return _advance(
            state,
            now,
            Review(),
            interval_days=config.easy_interval_days,
            ease=config.starting_ease + config.easy_bonus,
            graduated=True,
        )

    return _advance(
        state,
        now,
        Learning(step=0),
        interval_days=_step_days(config.learning_steps, 0),
        ease=config.starting_ease,
    )


def _schedule_learning(
    state: SchedulingState, step: int, rating: Rating, config: DeckConfig, now: datetime
) -> SchedulingState:
    if rating == Rating.AGAIN:
        return _advance(
            state,
            now,
            Learning(step=0),
            interval_days=_step_days(config.learning_steps, 0),
            ease=state.ease_factor,
        )

    if rating == Rating.EASY:
        return _advance(
            state,
            now,
            Review(),
            interval_days=config.easy_interval_days,
            ease=state.ease_factor + config.easy_bonus,
            graduated=True,
        )

    ease = _hard_adjusted(state.ease_factor, rating, config)
    next_step = step + 1

    if next_step >= len(config.learning_steps):
        return _advance(
            state,
            now,
            Review(),
            interval_days=config.graduating_interval_days,
            ease=ease,
            graduated=True,
        )

    return _advance(
        state,
        now,
        Learning(step=next_step),
        interval_days=_step_days(config.learning_steps, next_step),
        ease=ease,
    )


def _schedule_review(
    state: SchedulingState, rating: Rating, config: DeckConfig, now: datetime
) -> SchedulingState:
    if rating == Rating.AGAIN:
        lapse_count = state.lapse_count + 1
        return _advance(
            state,
            now,
            Relearning(step=0, lapsed_interval_days=state.interval_days),
            interval_days=_step_days(config.relearning_steps, 0),
            ease=max(c.MIN_EASE_FACTOR, state.ease_factor - config.lapse_penalty),
            lapse_count=lapse_count,
            lapse_threshold=config.lapse_threshold,
            lapsed=True,
        )

    ease = update_ease_factor(state.ease_factor, rating, config)
    interval = review_interval(state.interval_days, ease, rating, config)
    return _advance(state, now, Review(), interval_days=interval, ease=ease)


def _schedule_relearning(
    state: SchedulingState,
    step: int,
    lapsed_interval: float,
    rating: Rating,
    config: DeckConfig,
    now: datetime,
) -> SchedulingState:
    if rating == Rating.AGAIN:
        lapse_count = state.lapse_count + 1
        return _advance(
            state,
            now,
            Relearning(step=0, lapsed_interval_days=lapsed_interval),
            interval_days=_step_days(config.relearning_steps, 0),
            ease=max(c.MIN_EASE_FACTOR, state.ease_factor - config.lapse_penalty),
            lapse_count=lapse_count,
            lapse_threshold=config.lapse_threshold,
        )

    if rating == Rating.EASY:
        return _advance(
            state,
            now,
            Review(),
            interval_days=_relearned_interval(lapsed_interval, c.RELEARN_EASY_FRACTION, config),
            ease=state.ease_factor + config.easy_bonus,
            graduated=True,
        )

    ease = _hard_adjusted(state.ease_factor, rating, config)
    next_step = step + 1

    if next_step >= len(config.relearning_steps):
        return _advance(
            state,
            now,
            Review(),
            interval_days=_relearned_interval(
                lapsed_interval, c.RELEARN_GRADUATE_FRACTION, config
            ),
            ease=ease,
            graduated=True,
        )

    return _advance(
        state,
        now,
        Relearning(step=next_step, lapsed_interval_days=lapsed_interval),
        interval_days=_step_days(config.relearning_steps, next_step),
        ease=ease,
    )


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def _advance(
    state: SchedulingState,
    now: datetime,
    card_state: CardState,
    *,
    interval_days: float,
    ease: float,
    lapse_count: int | None = None,
    lapse_threshold: int | None = None,
    graduated: bool = False,
    lapsed: bool = False,
) -> SchedulingState:
    """Build the successor state. Leech status only ever turns on."""
    lapses = state.lapse_count if lapse_count is None else lapse_count
    is_leech = state.is_leech
    if lapse_threshold is not None and lapses >= lapse_threshold:
        is_leech = True

    return SchedulingState(
        card_state=card_state,
        next_due=now + timedelta(days=interval_days),
        ease_factor=ease,
        interval_days=interval_days,
        lapse_count=lapses,
        is_leech=is_leech,
        review_count=state.review_count + 1,
        last_studied=now,
        graduated=graduated,
        lapsed=lapsed,
        became_leech=is_leech and not state.is_leech,
    )


def _step_days(steps: tuple[float, ...], index: int) -> float:
    return steps[index] / c.MINUTES_PER_DAY


def _hard_adjusted(ease: float, rating: Rating, config: DeckConfig) -> float:
    if rating == Rating.HARD:
        return max(c.MIN_EASE_FACTOR, ease - config.hard_penalty)
    return ease


def _relearned_interval(lapsed_interval: float, fraction: float, config: DeckConfig) -> float:
    interval = max(1, _round_half_up(lapsed_interval * fraction))
    return float(min(interval, config.maximum_interval_days))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
