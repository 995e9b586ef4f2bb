"""
Plain-dict (JSON/YAML friendly) encoding of scheduling models.

Card state tags are written as "new" | "learning" | "review" | "relearning";
any other tag on the way back in is treated as corrupted data.
"""

import dataclasses
from datetime import datetime, timezone
from typing import Any

from cadence.domain.errors import UnknownStateError
from cadence.domain.scheduling.models import (
    CardState,
    DeckConfig,
    Learning,
    New,
    Relearning,
    Review,
    SchedulingState,
)


def card_state_to_dict(card_state: CardState) -> dict[str, Any]:
    data: dict[str, Any] = {"state": card_state.name}
    if isinstance(card_state, (Learning, Relearning)):
        data["learning_step"] = card_state.step
    if isinstance(card_state, Relearning):
        data["lapsed_interval_days"] = card_state.lapsed_interval_days
    return data


def card_state_from_dict(data: dict[str, Any]) -> CardState:
    tag = data.get("state")
    step = int(data.get("learning_step") or 0)
    match tag:
        case "new":
            return New()
        case "learning":
            return Learning(step=step)
        case "review":
            return Review()
        case "relearning":
            return Relearning(
                step=step,
                lapsed_interval_days=float(data.get("lapsed_interval_days") or 0.0),
            )
    raise UnknownStateError(f"Unknown card state: {tag!r}")


def state_to_dict(state: SchedulingState) -> dict[str, Any]:
    data = card_state_to_dict(state.card_state)
    data.update(
        ease_factor=state.ease_factor,
        interval_days=state.interval_days,
        lapse_count=state.lapse_count,
        is_leech=state.is_leech,
        review_count=state.review_count,
        next_due=state.next_due.isoformat(),
        last_studied=state.last_studied.isoformat() if state.last_studied else None,
        graduated=state.graduated,
        lapsed=state.lapsed,
        became_leech=state.became_leech,
    )
    return data


def state_from_dict(data: dict[str, Any]) -> SchedulingState:
    """
    Raises:
        UnknownStateError: If the state tag is not one of the four states.
        KeyError: If next_due is missing.
    """
    last_studied = data.get("last_studied")
    return SchedulingState(
        card_state=card_state_from_dict(data),
        next_due=_parse_datetime(data["next_due"]),
        ease_factor=float(data.get("ease_factor", DeckConfig.starting_ease)),
        interval_days=float(data.get("interval_days", 0.0)),
        lapse_count=int(data.get("lapse_count", 0)),
        is_leech=bool(data.get("is_leech", False)),
        review_count=int(data.get("review_count", 0)),
        last_studied=_parse_datetime(last_studied) if last_studied else None,
    )


def config_to_dict(config: DeckConfig) -> dict[str, Any]:
    data = dataclasses.asdict(config)
    data["learning_steps"] = list(config.learning_steps)
    data["relearning_steps"] = list(config.relearning_steps)
    for key in ("created_at", "updated_at"):
        if data[key] is not None:
            data[key] = data[key].isoformat()
    return data


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(str(value)))
