"""Configuration settings loader with YAML and environment variables support."""

from __future__ import annotations

import os
import re
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class VersionControlType(str, Enum):
    """Supported version control systems."""

    GIT = "git"
    HG = "hg"


class GitConfig(BaseModel):
    """Git backend configuration."""

    executable: str = "git"
    log_count: int = Field(default=20, ge=1)


class HgConfig(BaseModel):
    """Mercurial backend configuration."""

    executable: str = "hg"
    log_count: int = Field(default=20, ge=1)


class WorkerConfig(BaseModel):
    """Background worker configuration."""

    # How long the worker sleeps between polling rounds
    poll_interval_ms: int = Field(default=20, ge=1)

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000


class UIConfig(BaseModel):
    """Terminal UI configuration."""

    # How often the UI drains finished results
    tick_ms: int = Field(default=50, ge=1)


class CustomActionConfig(BaseModel):
    """A user-defined command bound to a key."""

    shortcut: str = Field(min_length=1, max_length=1)
    command: str
    args: list[str] = Field(default_factory=list)
    description: str = ""


class Settings(BaseSettings):
    """Application settings."""

    # Force a backend instead of detecting it from the repository
    vcs: VersionControlType | None = None

    git: GitConfig = Field(default_factory=GitConfig)
    hg: HgConfig = Field(default_factory=HgConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    custom_actions: list[CustomActionConfig] = Field(default_factory=list)

    # App settings
    log_dir: str = str(Path.home() / ".verco" / "logs")
    log_to_file: bool = True

    class Config:
        env_prefix = "VERCO_"
        env_nested_delimiter = "__"


def _resolve_env_vars(value: Any) -> Any:
    """Resolve environment variables in string values like ${VAR_NAME}."""
    if isinstance(value, str):
        pattern = r"\$\{([^}]+)\}"
        matches = re.findall(pattern, value)
        for match in matches:
            env_value = os.getenv(match, "")
            value = value.replace(f"${{{match}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config_file(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        # Try default locations
        locations = [
            Path("verco.yaml"),
            Path(".verco") / "config.yaml",
            Path.home() / ".verco" / "config.yaml",
        ]
        for loc in locations:
            if loc.exists():
                config_path = loc
                break

    if config_path is None or not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    # Resolve environment variables
    return _resolve_env_vars(config_data)


@lru_cache
def get_settings(config_path: str | None = None) -> Settings:
    """Get application settings (cached)."""
    path = Path(config_path) if config_path else None
    config_data = load_config_file(path)

    if isinstance(config_data.get("vcs"), str):
        config_data["vcs"] = VersionControlType(config_data["vcs"].lower())

    return Settings(**config_data)


def clear_settings_cache() -> None:
    """Clear the settings cache."""
    get_settings.cache_clear()
