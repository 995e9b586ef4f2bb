from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain import constants as c
from cadence.domain.session.models import (
    BaselineParams,
    BreakTriggers,
    FatigueParams,
    RegulatorConfig,
    WorkloadLimits,
)


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/cadence/config.toml",
        Path.home() / ".cadence.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for cadence.
    Supports loading from:
    1. Environment variables (CADENCE_*)
    2. Config file (~/.config/cadence/config.toml)
    3. Manual overrides (CLI)

    The empirical constants of the baseline and fatigue models are exposed
    here so they can be tuned per deployment.
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
    )

    # Paths
    deck_dir: Path | None = None

    # Response-time baseline
    baseline_min_samples: int = Field(default=c.BASELINE_MIN_SAMPLES, ge=1)
    baseline_outlier_sigma: float = Field(default=c.BASELINE_OUTLIER_SIGMA, gt=0)
    baseline_max_samples: int = Field(default=c.BASELINE_MAX_STORED_SAMPLES, ge=1)
    baseline_min_plausible_ms: float = c.BASELINE_MIN_PLAUSIBLE_MS
    baseline_max_plausible_ms: float = c.BASELINE_MAX_PLAUSIBLE_MS
    baseline_min_bucket_samples: int = Field(default=c.BASELINE_MIN_BUCKET_SAMPLES, ge=1)

    # Fatigue engine
    window_size: int = Field(default=c.FATIGUE_WINDOW_SIZE, ge=2)
    window_overlap: int = Field(default=c.FATIGUE_WINDOW_OVERLAP, ge=0)
    recent_records: int = Field(default=c.FATIGUE_RECENT_RECORDS, ge=3)
    indicator_confidence: float = Field(default=c.FATIGUE_INDICATOR_CONFIDENCE, ge=0, le=100)
    weight_response_time: float = Field(default=c.FATIGUE_WEIGHT_RESPONSE_TIME, ge=0)
    weight_rating: float = Field(default=c.FATIGUE_WEIGHT_RATING, ge=0)
    weight_hesitation: float = Field(default=c.FATIGUE_WEIGHT_HESITATION, ge=0)
    weight_consistency: float = Field(default=c.FATIGUE_WEIGHT_CONSISTENCY, ge=0)

    # Session regulator
    fatigue_score_threshold: float = Field(default=c.DEFAULT_FATIGUE_SCORE_THRESHOLD, ge=0, le=100)
    performance_drop_threshold: float = c.DEFAULT_PERFORMANCE_DROP_THRESHOLD
    break_interval: float = Field(default=c.DEFAULT_TIME_BASED_BREAK_INTERVAL, gt=0)
    max_daily_cards: int = Field(default=c.DEFAULT_MAX_DAILY_CARDS, ge=0)
    max_session_length: float = Field(default=c.DEFAULT_MAX_SESSION_LENGTH, gt=0)
    optimal_session_length: float = Field(default=c.DEFAULT_OPTIMAL_SESSION_LENGTH, gt=0)
    min_break_between_sessions: float = Field(default=c.DEFAULT_MIN_BREAK_BETWEEN_SESSIONS, ge=0)

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("deck_dir", mode="before")
    @classmethod
    def resolve_deck_dir(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    def baseline_params(self) -> BaselineParams:
        return BaselineParams(
            min_samples=self.baseline_min_samples,
            outlier_sigma=self.baseline_outlier_sigma,
            max_stored_samples=self.baseline_max_samples,
            min_plausible_ms=self.baseline_min_plausible_ms,
            max_plausible_ms=self.baseline_max_plausible_ms,
            min_bucket_samples=self.baseline_min_bucket_samples,
        )

    def regulator_config(self) -> RegulatorConfig:
        """Base RegulatorConfig before any per-user personalization."""
        return RegulatorConfig(
            fatigue=FatigueParams(
                window_size=self.window_size,
                overlap_size=min(self.window_overlap, self.window_size - 1),
                recent_records=self.recent_records,
                indicator_confidence=self.indicator_confidence,
                weight_response_time=self.weight_response_time,
                weight_rating=self.weight_rating,
                weight_hesitation=self.weight_hesitation,
                weight_consistency=self.weight_consistency,
            ),
            triggers=BreakTriggers(
                fatigue_score_threshold=self.fatigue_score_threshold,
                performance_drop_threshold=self.performance_drop_threshold,
                time_based_break_interval=self.break_interval,
            ),
            workload=WorkloadLimits(
                max_daily_cards=self.max_daily_cards,
                max_session_length=self.max_session_length,
                optimal_session_length=self.optimal_session_length,
                minimum_break_between_sessions=self.min_break_between_sessions,
            ),
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
