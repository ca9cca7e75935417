"""Configuration loading from YAML and environment.

The OAuth client id may be given in config.yaml or via GITHUB_CLIENT_ID.
The access token itself is never part of the config; it lives in the token
file written by the device flow.
"""

import os
import re
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitHubConfig(BaseSettings):
    """GitHub OAuth app and API endpoints."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    client_id: str = Field(default="Ov23liUkXjGnMzhLzpLr", description="OAuth app client id (device flow enabled)")
    scope: str = Field(default="repo read:user", description="OAuth scopes requested for the token")
    device_code_url: str = Field(default="https://github.com/login/device/code")
    access_token_url: str = Field(default="https://github.com/login/oauth/access_token")
    graphql_url: str = Field(default="https://api.github.com/graphql")
    pulls_url: str = Field(default="https://github.com/pulls", description="Opened by the 'open GitHub' action")
    token_path: Path = Field(default=Path("~/.prism/token"), description="Where the access token is stored")
    page_size: int = Field(default=50, ge=1, le=100, description="PRs fetched per query")
    open_verification_uri: bool = Field(default=True, description="Open the device verification page in a browser")
    timeout: int = Field(default=30, ge=1, description="HTTP timeout in seconds")


class FeedConfig(BaseSettings):
    """PR feed refresh and rendering."""

    model_config = SettingsConfigDict(env_prefix="FEED_", extra="ignore")

    auto_refresh_seconds: int = Field(default=300, ge=30, description="Periodic refresh interval")
    # hide: empty categories are not shown; placeholder: shown with "None"
    empty_sections: Literal["hide", "placeholder"] = Field(default="hide")


class UIConfig(BaseSettings):
    """Presentation timings."""

    model_config = SettingsConfigDict(env_prefix="UI_", extra="ignore")

    error_display_seconds: float = Field(default=3.0, ge=0, description="How long a connect error stays visible")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


_ENV_REF_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _substitute_env(raw: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """Expand ${VAR} references in a config section.

    A value that is only a reference to an unset variable is dropped so the
    field default (or the field's own env override) applies.
    """
    out: dict[str, Any] = {}
    for key, value in raw.items():
        if isinstance(value, str):
            whole = _ENV_REF_RE.fullmatch(value.strip())
            if whole and whole.group(1) not in env:
                continue
            value = _ENV_REF_RE.sub(lambda m: env.get(m.group(1), m.group(0)), value)
        out[key] = value
    return out


def load_config(config_path: Path | None = None, env: Mapping[str, str] | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Missing file means defaults (still overridable by env, e.g.
    GITHUB_CLIENT_ID, FEED_AUTO_REFRESH_SECONDS).
    """
    env = os.environ if env is None else env
    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}

    def section(name: str) -> dict[str, Any]:
        return _substitute_env(raw.get(name) or {}, env)

    return AppConfig(
        github=GitHubConfig(**section("github")),
        feed=FeedConfig(**section("feed")),
        ui=UIConfig(**section("ui")),
        logging=LoggingConfig(**section("logging")),
    )
