from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from deckoracle.application.utils.time import get_timezone
from deckoracle.domain.constants import (
    CARD_PERFORMANCE_LIMIT,
    DEFAULT_HOST,
    DEFAULT_LEARNED_STATUSES,
    DEFAULT_PORT,
    DEFAULT_TIMEZONE,
)
from deckoracle.domain.progress.models import MasteryPolicy
from deckoracle.domain.study.models import CardStatus


def config_files() -> list[Path]:
    """Candidate config files, first existing one wins."""
    return [
        Path.home() / ".config/deckoracle/config.toml",
        Path.home() / ".deckoracle.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for deckoracle.
    Supports loading from:
    1. Environment variables (DECKORACLE_*)
    2. Config file (~/.config/deckoracle/config.toml)
    3. Manual overrides (CLI / server)
    """

    model_config = SettingsConfigDict(
        env_prefix="DECKORACLE_",
        extra="ignore",
    )

    # Storage
    backend: Literal["memory", "json"] = "json"
    data_file: Path = Field(
        default_factory=lambda: Path.home() / ".config/deckoracle/history.json"
    )

    # Analytics
    timezone: str = DEFAULT_TIMEZONE
    learned_statuses: list[CardStatus] = Field(
        default_factory=lambda: [CardStatus(s) for s in DEFAULT_LEARNED_STATUSES]
    )
    dense_learning_curve: bool = False
    card_performance_limit: int = Field(default=CARD_PERFORMANCE_LIMIT, ge=1)

    # Server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

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

        # Find the first existing file
        toml_file = next((f for f in config_files() if f.exists()), None)

        # Overrides win over env vars, env vars win over the file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            get_timezone(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("data_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    def mastery_policy(self) -> MasteryPolicy:
        return MasteryPolicy(learned_statuses=frozenset(self.learned_statuses))


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/deckoracle/config.toml (if exists)
    3. Environment variables (DECKORACLE_*)
    4. cli_overrides (passed from Typer or the server), None values ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
