# Application Scheduling Package
from .deck_config import CONFIG_PRESETS, DeckConfigManager
from .engine import (
    estimate_time_to_mastery,
    predict_next_due,
    retention_probability,
    review_interval,
    schedule,
    update_ease_factor,
)
from .service import ReviewOutcome, ReviewService

__all__ = [
    "CONFIG_PRESETS",
    "DeckConfigManager",
    "estimate_time_to_mastery",
    "predict_next_due",
    "retention_probability",
    "review_interval",
    "schedule",
    "update_ease_factor",
    "ReviewOutcome",
    "ReviewService",
]
