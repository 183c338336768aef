import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain.constants import DEFAULT_TIMEZONE
from cadence.domain.settings import DEFAULT_SETTINGS, SchedulerSettings

from .settings_validator import SettingsReport, sanitize_settings

logger = logging.getLogger(__name__)


class AppConfig(BaseSettings):
    """
    Runtime configuration for the cadence CLI.
    Supports loading from:
    1. Environment variables (CADENCE_*)
    2. Config file (~/.config/cadence/config.toml)
    3. Manual overrides (CLI)

    Scheduler settings are per deck and live in their own file
    (``settings_file``), not here.
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
    )

    # Paths
    store_path: Path = Field(
        default_factory=lambda: Path.home() / ".config/cadence/deck.json"
    )
    settings_file: Path | None = None

    # Session
    timezone: str = DEFAULT_TIMEZONE
    seed: int | None = None

    verbose: int = 0

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

        # Home may be patched (tests), so resolve the candidates lazily
        toml_files = [
            Path.home() / ".config/cadence/config.toml",
            Path.home() / ".cadence.toml",
        ]
        toml_file = next((f for f in toml_files if f.exists()), None)

        # Earlier sources win: CLI overrides > env > TOML > defaults
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("store_path", "settings_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser()


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


def load_settings_report(path: Path | None) -> SettingsReport:
    """
    Read a YAML (or JSON) scheduler-settings file and validate it.

    A missing or unparsable file yields the defaults plus a warning.
    """
    if path is None:
        return SettingsReport(DEFAULT_SETTINGS)

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        message = f"Settings file {path} not found, using defaults"
        logger.warning(message)
        return SettingsReport(DEFAULT_SETTINGS, [message])
    except (OSError, yaml.YAMLError) as e:
        message = f"Could not read settings file {path}: {e}; using defaults"
        logger.warning(message)
        return SettingsReport(DEFAULT_SETTINGS, [message])

    return sanitize_settings(raw)


def load_scheduler_settings(path: Path | None) -> SchedulerSettings:
    return load_settings_report(path).settings
