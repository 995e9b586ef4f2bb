from cadence.application.config import AppConfig, resolve_config
from cadence.domain.session.models import BaselineParams, RegulatorConfig


def test_defaults_match_engine_parameters(mock_home):
    config = resolve_config()

    assert config.baseline_params() == BaselineParams()
    assert config.regulator_config() == RegulatorConfig()


def test_toml_file_is_loaded(mock_home):
    cfg_dir = mock_home / ".config/cadence"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "config.toml").write_text("max_daily_cards = 150\nbaseline_outlier_sigma = 2.5\n")

    config = resolve_config()

    assert config.max_daily_cards == 150
    assert config.baseline_params().outlier_sigma == 2.5


def test_env_overrides_toml(mock_home, monkeypatch):
    cfg_dir = mock_home / ".config/cadence"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "config.toml").write_text("max_daily_cards = 150\n")
    monkeypatch.setenv("CADENCE_MAX_DAILY_CARDS", "120")

    assert resolve_config().max_daily_cards == 120


def test_cli_overrides_win_and_none_is_ignored(mock_home, monkeypatch):
    monkeypatch.setenv("CADENCE_MAX_DAILY_CARDS", "120")

    config = resolve_config({"max_daily_cards": 90, "window_size": None})

    assert config.max_daily_cards == 90
    assert config.window_size == 5


def test_window_overlap_is_kept_below_window_size(mock_home):
    config = AppConfig(window_size=3, window_overlap=4)
    assert config.regulator_config().fatigue.overlap_size == 2


def test_deck_dir_is_resolved(mock_home, tmp_path):
    config = resolve_config({"deck_dir": str(tmp_path / "decks")})
    assert config.deck_dir == (tmp_path / "decks").resolve()
