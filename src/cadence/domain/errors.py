"""Error taxonomy shared by every layer."""

from dataclasses import dataclass, field


class CadenceError(Exception):
    """Base class for all cadence errors."""


class InvalidConfigError(CadenceError):
    """A deck configuration failed validation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid deck config: " + "; ".join(self.errors))


class InvalidRatingError(CadenceError):
    """A rating outside Again..Easy reached the scheduling boundary."""


class UnknownStateError(CadenceError):
    """A card state outside the closed state union.

    Only reachable with corrupted persisted data.
    """


class ConcurrentUpdateError(CadenceError):
    """The stored card changed between load and save."""

    def __init__(self, card_id: str, expected: int, actual: int):
        self.card_id = card_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Card {card_id} was modified concurrently (expected v{expected}, found v{actual})"
        )


class StoreError(CadenceError):
    """A persistence collaborator failed."""


@dataclass(frozen=True)
class ValidationResult:
    """Structured validation outcome, suitable for field-level UI feedback."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors
