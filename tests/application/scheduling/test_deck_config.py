import dataclasses
from datetime import timedelta

import pytest

from cadence.application.scheduling.deck_config import CONFIG_PRESETS, DeckConfigManager
from cadence.domain.errors import InvalidConfigError
from cadence.domain.scheduling.models import DeckConfig, DeckPerformance


@pytest.fixture
def manager():
    return DeckConfigManager()


def test_empty_partial_is_valid(manager):
    assert manager.validate({}).is_valid


def test_defaults_are_valid(manager, deck_config):
    assert manager.validate(deck_config).is_valid


@pytest.mark.parametrize(
    "partial, message",
    [
        ({"learning_steps": []}, "Learning steps cannot be empty"),
        ({"learning_steps": [1, -5]}, "All learning steps must be positive"),
        ({"relearning_steps": [0]}, "All relearning steps must be positive"),
        ({"learning_steps": "1m 10m"}, "Learning steps must be a list of minute durations"),
        ({"starting_ease": 1.2}, "Starting ease must be at least 1.3"),
        ({"new_cards_per_day": -1}, "New cards per day cannot be negative"),
        ({"graduating_interval_days": 0}, "Graduating interval must be positive"),
        ({"maximum_interval_days": -3}, "Maximum interval must be positive"),
        ({"easy_bonus": 1.5}, "Easy bonus must be in [0, 1)"),
        ({"lapse_threshold": 0}, "Lapse threshold must be positive"),
        ({"foo": 1}, "Unknown config field: foo"),
    ],
)
def test_validate_reports_violation(manager, partial, message):
    result = manager.validate(partial)

    assert not result.is_valid
    assert message in result.errors


def test_validate_lists_every_violation(manager):
    result = manager.validate({"learning_steps": [], "starting_ease": 1.0, "new_cards_per_day": -5})
    assert len(result.errors) == 3


def test_ensure_valid_raises_with_errors(manager):
    with pytest.raises(InvalidConfigError) as exc:
        manager.ensure_valid({"starting_ease": 1.0})
    assert exc.value.errors == ["Starting ease must be at least 1.3"]


def test_merge_with_defaults_fills_omitted_fields(manager, now):
    config = manager.merge_with_defaults({"new_cards_per_day": 30, "learning_steps": [5, 20]}, now=now)

    assert config.new_cards_per_day == 30
    assert config.learning_steps == (5.0, 20.0)
    assert config.relearning_steps == (10.0,)
    assert config.starting_ease == 2.5
    assert config.created_at == now
    assert config.updated_at == now


def test_merge_with_defaults_keeps_created_at(manager, now):
    created = now - timedelta(days=3)
    config = manager.merge_with_defaults({"created_at": created}, now=now)

    assert config.created_at == created
    assert config.updated_at == now


def test_from_preset_is_case_insensitive(manager, now):
    config = manager.from_preset("conservative", now=now)

    assert config.learning_steps == (1.0, 10.0, 1440.0)
    assert config.new_cards_per_day == 15
    assert config.starting_ease == 2.3


def test_from_unknown_preset(manager):
    with pytest.raises(KeyError):
        manager.from_preset("Turbo")


def test_every_preset_is_valid(manager):
    for preset in CONFIG_PRESETS:
        assert manager.validate(manager.from_preset(preset.name)).is_valid, preset.name


# --- Optimizer ---


def test_optimize_low_retention_lengthens_graduation(manager, deck_config):
    optimized = manager.optimize(deck_config, DeckPerformance(average_retention=0.7, lapse_rate=0.1))

    assert optimized.graduating_interval_days == 2.0
    assert optimized.starting_ease == 2.4
    assert deck_config.graduating_interval_days == 1.0


def test_optimize_high_retention_respects_bounds(manager, deck_config):
    optimized = manager.optimize(deck_config, DeckPerformance(average_retention=0.97, lapse_rate=0.0))

    assert optimized.graduating_interval_days == 1.0
    assert optimized.starting_ease == 2.6


def test_optimize_high_lapse_rate_adds_relearning_step(manager, deck_config):
    optimized = manager.optimize(deck_config, DeckPerformance(average_retention=0.85, lapse_rate=0.4))
    assert optimized.relearning_steps == (10.0, 60.0)


def test_optimize_does_not_exceed_relearning_step_limit(manager, deck_config):
    config = dataclasses.replace(deck_config, relearning_steps=(10.0, 60.0, 120.0))
    optimized = manager.optimize(config, DeckPerformance(average_retention=0.85, lapse_rate=0.4))
    assert optimized.relearning_steps == (10.0, 60.0, 120.0)


def test_optimize_in_band_is_unchanged(manager, deck_config):
    optimized = manager.optimize(deck_config, DeckPerformance(average_retention=0.9, lapse_rate=0.1))
    assert optimized == deck_config


def test_optimize_clamps_starting_ease(manager):
    config = DeckConfig(starting_ease=2.0)
    optimized = manager.optimize(config, DeckPerformance(average_retention=0.5, lapse_rate=0.0))
    assert optimized.starting_ease == 2.0
