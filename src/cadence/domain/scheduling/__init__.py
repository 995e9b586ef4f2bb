# Domain Scheduling Package
from .models import (
    STATE_NAMES,
    CardState,
    ConfigPreset,
    DeckConfig,
    DeckPerformance,
    Learning,
    MasteryEstimate,
    New,
    Prediction,
    Rating,
    Relearning,
    Review,
    SchedulingState,
)
from .ports import CardStore, DeckConfigStore, VersionedState

__all__ = [
    "STATE_NAMES",
    "CardState",
    "ConfigPreset",
    "DeckConfig",
    "DeckPerformance",
    "Learning",
    "MasteryEstimate",
    "New",
    "Prediction",
    "Rating",
    "Relearning",
    "Review",
    "SchedulingState",
    "CardStore",
    "DeckConfigStore",
    "VersionedState",
]
