"""Configuration module."""

from .settings import (
    CustomActionConfig,
    Settings,
    VersionControlType,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "CustomActionConfig",
    "Settings",
    "VersionControlType",
    "clear_settings_cache",
    "get_settings",
]
