from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from episteme.application.scheduling.queue import NewCardOrder, NewReviewMix, ReviewOrder
from episteme.domain.constants import (
    DEFAULT_DAY_START_HOUR,
    DEFAULT_DESIRED_RETENTION,
    DEFAULT_LEARNING_STEPS_MINUTES,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_NEW_CARD_ORDER,
    DEFAULT_NEW_CARDS_PER_DAY,
    DEFAULT_NEW_REVIEW_MIX,
    DEFAULT_RELEARNING_STEPS_MINUTES,
    DEFAULT_REVIEW_ORDER,
    DEFAULT_REVIEWS_PER_DAY,
    HISTORY_CAP,
    LEARN_AHEAD_LIMIT_MINUTES,
    MATURE_THRESHOLD_DAYS,
    MAX_DESIRED_RETENTION,
    MIN_DESIRED_RETENTION,
    WEIGHT_COUNT,
)


def config_files() -> list[Path]:
    """Candidate config files in priority order (resolved per call so HOME can change)."""
    return [
        Path.home() / ".config/episteme/config.toml",
        Path.home() / ".episteme.toml",
    ]


class AppConfig(BaseSettings):
    """
    Scheduling and simulator settings for episteme.
    Supports loading from:
    1. Environment variables (EPISTEME_*)
    2. Config file (~/.config/episteme/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="EPISTEME_",
        extra="ignore",
    )

    # Scheduling
    day_start_hour: int = Field(default=DEFAULT_DAY_START_HOUR, ge=0, le=23)
    timezone: str | None = None
    mature_threshold_days: float = Field(default=MATURE_THRESHOLD_DAYS, gt=0)

    # Daily limits (None = unlimited, 0 = disabled)
    new_cards_per_day: Annotated[int, Field(ge=0)] | None = DEFAULT_NEW_CARDS_PER_DAY
    reviews_per_day: Annotated[int, Field(ge=0)] | None = DEFAULT_REVIEWS_PER_DAY

    # FSRS
    desired_retention: float = Field(
        default=DEFAULT_DESIRED_RETENTION, ge=MIN_DESIRED_RETENTION, le=MAX_DESIRED_RETENTION
    )
    fsrs_weights: list[float] | None = None  # None = algorithm defaults
    maximum_interval: int = Field(default=DEFAULT_MAXIMUM_INTERVAL, ge=1)
    learning_steps_minutes: list[float] = Field(
        default_factory=lambda: list(DEFAULT_LEARNING_STEPS_MINUTES)
    )
    relearning_steps_minutes: list[float] = Field(
        default_factory=lambda: list(DEFAULT_RELEARNING_STEPS_MINUTES), min_length=1
    )

    # Review queue
    learn_ahead_minutes: float = Field(default=LEARN_AHEAD_LIMIT_MINUTES, ge=0)
    new_card_order: NewCardOrder = NewCardOrder(DEFAULT_NEW_CARD_ORDER)
    review_order: ReviewOrder = ReviewOrder(DEFAULT_REVIEW_ORDER)
    new_review_mix: NewReviewMix = NewReviewMix(DEFAULT_NEW_REVIEW_MIX)

    # Simulator
    history_cap: int = Field(default=HISTORY_CAP, ge=1)

    # Logging
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

        toml_file = None
        for f in config_files():
            if f.exists():
                toml_file = f
                break

        # Earlier sources win: CLI overrides, then env, then the file.
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

    @field_validator("fsrs_weights")
    @classmethod
    def check_weight_count(cls, v: list[float] | None) -> list[float] | None:
        if v is not None and len(v) != WEIGHT_COUNT:
            raise ValueError(f"fsrs_weights must have {WEIGHT_COUNT} values, got {len(v)}")
        return v

    @field_validator("learning_steps_minutes", "relearning_steps_minutes")
    @classmethod
    def check_steps(cls, v: list[float]) -> list[float]:
        if any(step <= 0 for step in v):
            raise ValueError("learning steps must be positive minutes")
        return v


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/episteme/config.toml (if exists)
    3. Environment variables (EPISTEME_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
