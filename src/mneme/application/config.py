from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mneme.consts import DEFAULT_HOME, config_files
from mneme.domain.constants import (
    DEFAULT_LEARNING_STEPS,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_RELEARNING_STEPS,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_WEIGHTS,
    WEIGHT_COUNT,
)


class SchedulerSettings(BaseModel):
    """
    Tuning knobs for the scheduler.

    Step lists are in minutes. An empty step list means cards skip that
    phase and go straight to day-based intervals.
    """

    request_retention: float = Field(default=DEFAULT_REQUEST_RETENTION, gt=0.0, lt=1.0)
    maximum_interval: int = Field(default=DEFAULT_MAXIMUM_INTERVAL, ge=1)
    enable_fuzz: bool = True
    enable_short_term: bool = True
    learning_steps: list[float] = Field(default_factory=lambda: list(DEFAULT_LEARNING_STEPS))
    relearning_steps: list[float] = Field(
        default_factory=lambda: list(DEFAULT_RELEARNING_STEPS)
    )
    weights: list[float] = Field(default_factory=lambda: list(DEFAULT_WEIGHTS))
    fuzz_seed: str = ""

    @field_validator("learning_steps", "relearning_steps")
    @classmethod
    def positive_steps(cls, v: list[float]) -> list[float]:
        if any(step <= 0 for step in v):
            raise ValueError("learning steps must be positive minute counts")
        return v

    @field_validator("weights")
    @classmethod
    def weight_count(cls, v: list[float]) -> list[float]:
        if len(v) != WEIGHT_COUNT:
            raise ValueError(f"expected {WEIGHT_COUNT} weights, got {len(v)}")
        return v


class AppConfig(BaseSettings):
    """
    Configuration model for mneme.
    Supports loading from:
    1. Environment variables (MNEME_*, nested with MNEME_SCHEDULER__*)
    2. Config file (~/.config/mneme/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEME_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    vault_root: Path | None = None
    store_path: Path | None = None
    log_dir: Path = Field(default_factory=lambda: DEFAULT_HOME / "logs")

    verbose: int = 1

    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

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

        toml_file = next((f for f in config_files() if f.exists()), None)

        # Earlier sources win: CLI overrides, then environment, then file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("vault_root", "store_path", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mneme/config.toml (if exists)
    3. Environment variables (MNEME_*)
    4. cli_overrides (non-None values passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.vault_root is None:
        config.vault_root = Path.cwd()

    if config.store_path is None:
        config.store_path = config.vault_root / ".mneme" / "cards.yaml"

    return config
