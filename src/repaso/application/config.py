from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from repaso.domain.constants import DEFAULT_SESSION_LIMIT, MAX_SESSION_SIZE


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/repaso/config.toml",
        Path.home() / ".repaso.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for repaso.
    Supports loading from:
    1. Environment variables (REPASO_*)
    2. Config file (~/.config/repaso/config.toml or ~/.repaso.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="REPASO_",
        extra="ignore",
    )

    # Storage
    backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: Path = Field(default_factory=lambda: Path.home() / ".config/repaso/repaso.db")
    store_timeout: float = 5.0
    update_retries: int = Field(default=3, ge=1)

    # Sessions
    default_session_limit: int = Field(default=DEFAULT_SESSION_LIMIT, ge=1)
    max_session_limit: int = Field(default=MAX_SESSION_SIZE, ge=1, le=MAX_SESSION_SIZE)

    # Server
    host: str = "127.0.0.1"
    port: int = 8787

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
        return (init_settings, env_settings)

    @field_validator("db_path", mode="before")
    @classmethod
    def resolve_db_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("default_session_limit")
    @classmethod
    def cap_default_limit(cls, v: int) -> int:
        return min(v, MAX_SESSION_SIZE)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/repaso/config.toml (if exists)
    3. Environment variables (REPASO_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
