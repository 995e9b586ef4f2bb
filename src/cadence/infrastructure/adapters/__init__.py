from .memory import (
    InMemoryBaselineStore,
    InMemoryCardStore,
    InMemoryDeckConfigStore,
    InMemoryProfileStore,
    InMemoryReviewSink,
    InMemorySessionLogStore,
)
from .yaml_decks import YamlDeckConfigStore, load_deck_file

__all__ = [
    "InMemoryBaselineStore",
    "InMemoryCardStore",
    "InMemoryDeckConfigStore",
    "InMemoryProfileStore",
    "InMemoryReviewSink",
    "InMemorySessionLogStore",
    "YamlDeckConfigStore",
    "load_deck_file",
]
