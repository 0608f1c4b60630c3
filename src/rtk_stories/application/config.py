import os
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from rtk_stories.domain.constants import (
    ANKI_CONNECT_PORT,
    ANKI_CONNECT_URL,
    DEFAULT_CACHE_DIR,
    DEFAULT_HOST,
    DEFAULT_PORT,
    REQUEST_TIMEOUT,
    SITE_BASE_URL,
)

CONFIG_FILES = [
    Path.home() / ".config/rtk-stories/config.toml",
    Path.home() / ".rtk-stories.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for rtk-stories.
    Supports loading from:
    1. Manual overrides (CLI)
    2. Environment variables (RTK_STORIES_*)
    3. Config file (~/.config/rtk-stories/config.toml)
    """

    model_config = SettingsConfigDict(
        env_prefix="RTK_STORIES_",
        extra="ignore",
    )

    deck: str | None = None

    # Endpoints
    anki_connect_url: str = ANKI_CONNECT_URL
    site_base_url: str = SITE_BASE_URL
    request_timeout: float = REQUEST_TIMEOUT

    # Paths
    cache_dir: Path = Field(default=Path(DEFAULT_CACHE_DIR), validate_default=True)

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

        # First existing file wins
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("cache_dir", mode="before")
    @classmethod
    def resolve_cache_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("site_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/rtk-stories/config.toml (if exists)
    3. Environment variables (RTK_STORIES_*)
    4. cli_overrides (passed from Typer), None values ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    # ANKI_CONNECT_HOST points at Anki on another machine (e.g. the Windows host under WSL)
    env_host = os.environ.get("ANKI_CONNECT_HOST")
    if env_host and "anki_connect_url" not in overrides:
        overrides["anki_connect_url"] = f"http://{env_host}:{ANKI_CONNECT_PORT}"

    return AppConfig(**overrides)
