"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments  (the port given on the command line)
  2. Environment variables  (WIKITELNET__SERVER__PORT=2323)
  3. wikitelnet.yaml        (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_DOMAIN = "en.wikipedia.org"


def _find_config_file() -> str | None:
    """Return the path of the first wikitelnet.yaml found, or None."""
    candidates = [
        Path("wikitelnet.yaml"),
        Path(platformdirs.user_config_dir("wikitelnet")) / "wikitelnet.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=1081, ge=1, le=65535)
    # Idle seconds before telnetlib3 drops a connection
    connect_timeout: int = 600


class WikiSettings(BaseModel):
    default_domain: str = DEFAULT_DOMAIN
    search_limit: int = Field(default=6, ge=1, le=50)
    http_timeout_seconds: float = 30.0


class SiteinfoSettings(BaseModel):
    max_attempts: int = Field(default=3, ge=1)


class WelcomeSettings(BaseModel):
    domain: str = DEFAULT_DOMAIN
    title: str = "User:cscott/Telnet"
    refresh_hours: float = Field(default=6, gt=0)


class RenderSettings(BaseModel):
    wrap_width: int = Field(default=78, ge=20)
    # A coloured ANSI separator exists upstream but bolds the next line on
    # several terminals; stick to a bare newline.
    separator: str = "\n"
    prompt: str = ">>> "


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: WIKITELNET__SERVER__PORT=2323
        env_prefix="WIKITELNET__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    wiki: WikiSettings = WikiSettings()
    siteinfo: SiteinfoSettings = SiteinfoSettings()
    welcome: WelcomeSettings = WelcomeSettings()
    render: RenderSettings = RenderSettings()
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
