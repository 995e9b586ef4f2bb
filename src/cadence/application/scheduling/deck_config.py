"""
Deck configuration management: validation, defaults, presets and tuning.

Validation returns structured results; only `ensure_valid` raises.
"""

import dataclasses
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from cadence.domain import constants as c
from cadence.domain.errors import InvalidConfigError, ValidationResult
from cadence.domain.scheduling.models import ConfigPreset, DeckConfig, DeckPerformance

logger = logging.getLogger(__name__)

CONFIG_FIELDS = tuple(f.name for f in dataclasses.fields(DeckConfig))
_STEP_FIELDS = ("learning_steps", "relearning_steps")
_POSITIVE_FIELDS = ("graduating_interval_days", "easy_interval_days", "maximum_interval_days")
_FRACTION_FIELDS = ("easy_bonus", "hard_penalty", "lapse_penalty")
_METADATA_FIELDS = ("id", "deck_id", "created_at", "updated_at")

CONFIG_PRESETS: tuple[ConfigPreset, ...] = (
    ConfigPreset(
        name="Conservative",
        description="Longer learning phases, more frequent reviews",
        overrides={
            "learning_steps": (1.0, 10.0, 1440.0),
            "graduating_interval_days": 3.0,
            "easy_interval_days": 7.0,
            "new_cards_per_day": 15,
            "starting_ease": 2.3,
        },
    ),
    ConfigPreset(
        name="Balanced",
        description="Standard settings for most users",
        overrides={},
    ),
    ConfigPreset(
        name="Aggressive",
        description="Faster progression, more new cards",
        overrides={
            "learning_steps": (10.0,),
            "graduating_interval_days": 1.0,
            "easy_interval_days": 3.0,
            "new_cards_per_day": 30,
            "starting_ease": 2.7,
        },
    ),
    ConfigPreset(
        name="Language Learning",
        description="Optimized for vocabulary acquisition",
        overrides={
            "learning_steps": (1.0, 10.0, 60.0, 1440.0),
            "graduating_interval_days": 2.0,
            "easy_interval_days": 5.0,
            "new_cards_per_day": 25,
            "lapse_threshold": 6,
        },
    ),
)


class DeckConfigManager:
    """
    Validates, completes and tunes deck configurations.

    Stateless and side-effect free apart from timestamping.
    """

    def validate(self, partial: Mapping[str, Any] | DeckConfig) -> ValidationResult:
        """
        Check every provided field. Omitted fields are not violations.

        Returns:
            ValidationResult listing one message per violation.
        """
        values = _as_mapping(partial)
        errors: list[str] = []

        unknown = sorted(set(values) - set(CONFIG_FIELDS))
        for key in unknown:
            errors.append(f"Unknown config field: {key}")

        for name in _STEP_FIELDS:
            if name not in values:
                continue
            label = name.replace("_", " ").capitalize()
            steps = values[name]
            if not isinstance(steps, (list, tuple)) or not all(_is_number(s) for s in steps):
                errors.append(f"{label} must be a list of minute durations")
                continue
            if len(steps) == 0:
                errors.append(f"{label} cannot be empty")
            elif any(s <= 0 for s in steps):
                errors.append(f"All {name.replace('_', ' ')} must be positive")

        for name in _POSITIVE_FIELDS:
            if name in values and not _positive(values[name]):
                errors.append(f"{_label(name)} must be positive")

        if "starting_ease" in values:
            ease = values["starting_ease"]
            if not _is_number(ease) or ease < c.MIN_EASE_FACTOR:
                errors.append(f"Starting ease must be at least {c.MIN_EASE_FACTOR}")

        for name in _FRACTION_FIELDS:
            if name in values:
                v = values[name]
                if not _is_number(v) or not 0 <= v < 1:
                    errors.append(f"{_label(name)} must be in [0, 1)")

        if "new_cards_per_day" in values:
            v = values["new_cards_per_day"]
            if not _is_int(v) or v < 0:
                errors.append("New cards per day cannot be negative")

        if "lapse_threshold" in values:
            v = values["lapse_threshold"]
            if not _is_int(v) or v <= 0:
                errors.append("Lapse threshold must be positive")

        return ValidationResult(errors=errors)

    def ensure_valid(self, config: Mapping[str, Any] | DeckConfig) -> None:
        """
        Raises:
            InvalidConfigError: If validation reports any violation.
        """
        result = self.validate(config)
        if not result.is_valid:
            raise InvalidConfigError(result.errors)

    def merge_with_defaults(
        self,
        partial: Mapping[str, Any] | None = None,
        *,
        now: datetime | None = None,
    ) -> DeckConfig:
        """
        Fill every omitted field from the defaults and stamp timestamps.

        created_at is preserved when provided; updated_at is always now.
        Unknown keys are ignored here; call `validate` first to report them.
        """
        now = now or datetime.now(timezone.utc)
        values = {k: v for k, v in dict(partial or {}).items() if k in CONFIG_FIELDS}

        for name in _STEP_FIELDS:
            if isinstance(values.get(name), (list, tuple)):
                values[name] = tuple(float(s) for s in values[name])

        values["id"] = values.get("id") or ""
        values["deck_id"] = values.get("deck_id") or ""
        values["created_at"] = values.get("created_at") or now
        values["updated_at"] = now

        return DeckConfig(**values)

    def from_preset(self, name: str, *, now: datetime | None = None) -> DeckConfig:
        """
        Raises:
            KeyError: If no preset has that name (case-insensitive).
        """
        for preset in CONFIG_PRESETS:
            if preset.name.lower() == name.lower():
                return self.merge_with_defaults(preset.overrides, now=now)
        raise KeyError(name)

    def optimize(self, config: DeckConfig, stats: DeckPerformance) -> DeckConfig:
        """
        Suggest a tuned config from observed performance.

        Advisory only: the input is untouched and callers decide whether to
        persist the result.
        """
        graduating = config.graduating_interval_days
        ease = config.starting_ease
        relearning = config.relearning_steps

        if stats.average_retention < c.OPTIMIZE_LOW_RETENTION:
            graduating = min(graduating + 1, c.OPTIMIZE_MAX_GRADUATING_INTERVAL)
            ease = max(ease - c.OPTIMIZE_EASE_STEP, c.OPTIMIZE_MIN_STARTING_EASE)
        elif stats.average_retention > c.OPTIMIZE_HIGH_RETENTION:
            graduating = max(graduating - 1, c.OPTIMIZE_MIN_GRADUATING_INTERVAL)
            ease = min(ease + c.OPTIMIZE_EASE_STEP, c.OPTIMIZE_MAX_STARTING_EASE)

        if (
            stats.lapse_rate > c.OPTIMIZE_HIGH_LAPSE_RATE
            and len(relearning) < c.OPTIMIZE_MAX_RELEARNING_STEPS
        ):
            relearning = (*relearning, c.OPTIMIZE_EXTRA_RELEARNING_STEP)

        optimized = dataclasses.replace(
            config,
            graduating_interval_days=graduating,
            starting_ease=round(ease, 2),
            relearning_steps=relearning,
        )
        if optimized != config:
            logger.debug(f"Optimized deck config {config.deck_id or '<unsaved>'}: {stats}")
        return optimized


def _as_mapping(partial: Mapping[str, Any] | DeckConfig) -> dict[str, Any]:
    if isinstance(partial, DeckConfig):
        values = dataclasses.asdict(partial)
    else:
        values = dict(partial)
    for key in _METADATA_FIELDS:
        values.pop(key, None)
    return values


def _label(name: str) -> str:
    return name.removesuffix("_days").replace("_", " ").capitalize()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _positive(value: Any) -> bool:
    return _is_number(value) and value > 0
