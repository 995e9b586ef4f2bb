"""
Ports (interfaces) for scheduling persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .models import DeckConfig, SchedulingState


@dataclass(frozen=True)
class VersionedState:
    """A stored scheduling state plus the version used for optimistic checks."""

    state: SchedulingState
    version: int


class CardStore(ABC):
    """
    Port for reading and writing per-card scheduling state.

    Implementations must make `save_scheduling_state` atomic per card and
    reject writes whose expected version no longer matches.
    """

    @abstractmethod
    async def load_scheduling_state(self, card_id: str) -> VersionedState:
        """
        Load the current state of a card.

        Raises:
            KeyError: If the card does not exist.
        """
        pass

    @abstractmethod
    async def save_scheduling_state(
        self, card_id: str, state: SchedulingState, expected_version: int
    ) -> int:
        """
        Persist a new state for a card.

        Returns:
            The new version number.

        Raises:
            ConcurrentUpdateError: If the stored version differs from expected_version.
        """
        pass


class DeckConfigStore(ABC):
    """Port for loading deck configurations."""

    @abstractmethod
    async def load_deck_config(self, deck_id: str) -> DeckConfig | None:
        """Return the deck's stored config, or None if the deck has none."""
        pass
