"""Version control backends."""

from __future__ import annotations

from pathlib import Path

from .base import Entry, VersionControlActions, VersionControlError
from .custom_actions import CustomAction
from .git_actions import GitActions
from .hg_actions import HgActions

__all__ = [
    # Base
    "Entry",
    "VersionControlActions",
    "VersionControlError",
    # Backends
    "GitActions",
    "HgActions",
    "CustomAction",
    "detect_version_control",
]


def detect_version_control(directory: str | Path, settings) -> VersionControlActions | None:
    """
    Factory function to create the backend for a repository directory.

    Args:
        directory: Repository root
        settings: Application settings

    Returns:
        GitActions or HgActions, or None when the directory is not a repository
    """
    from verco.config import VersionControlType

    path = Path(directory).resolve()
    vcs = settings.vcs
    if vcs is None:
        if (path / ".git").exists():
            vcs = VersionControlType.GIT
        elif (path / ".hg").exists():
            vcs = VersionControlType.HG
        else:
            return None

    if vcs == VersionControlType.HG:
        return HgActions(str(path), settings.hg.executable, settings.hg.log_count)
    return GitActions(str(path), settings.git.executable, settings.git.log_count)
