"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (GITFIRST__GITHUB__TOKEN=ghp_...)
  3. gitfirst.yaml          (searched in cwd, then the user config dir)
  4. Hardcoded defaults

The config file is optional. Settings are built once at process start and
handed to the server and CLI explicitly; nothing reads the environment ad hoc.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("gitfirst")
_DEFAULT_CACHE_URL = "sqlite:///" + str(Path(_DEFAULT_DATA_DIR) / "cache.db")


def _find_config_file() -> str | None:
    """Return the path of the first gitfirst.yaml found, or None."""
    candidates = [
        Path("gitfirst.yaml"),
        Path(platformdirs.user_config_dir("gitfirst")) / "gitfirst.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class GitHubSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    token: SecretStr | None = None
    api_url: str = "https://api.github.com/graphql"
    timeout_seconds: float = 30.0
    user_agent: str = "gitfirst"


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # sqlite:///path, redis://host:port/db, rediss://..., ":memory:", or "" to disable
    url: str = _DEFAULT_CACHE_URL
    # None keeps entries forever; a root commit does not change unless history is rewritten
    ttl_hours: int | None = Field(default=None, ge=1)
    force_tls: bool = False


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "0.0.0.0"
    port: int = 8080
    public_url: str = "https://git-first-commit.vercel.app"


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: GITFIRST__SERVER__PORT=9090
        env_prefix="GITFIRST__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    github: GitHubSettings = GitHubSettings()
    cache: CacheSettings = CacheSettings()
    server: ServerSettings = ServerSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
