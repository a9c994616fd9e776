"""Abstract base class for version control backends."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass

from verco.core import Action, ActionFuture, ActionResult, ProcessTask

logger = logging.getLogger(__name__)


class VersionControlError(Exception):
    """A synchronous backend query failed."""


@dataclass
class Entry:
    """A changed file that can be picked for commit or revert."""

    filename: str
    status: str
    selected: bool = False


class VersionControlActions(ABC):
    """
    Builds the tasks behind each user action for one repository.

    Every action returns an ``ActionFuture``; nothing runs until the future's
    task is handed to the worker. ``version`` and ``get_files_to_commit`` are
    quick queries and run synchronously.
    """

    def __init__(self, repository_directory: str, executable: str, log_count: int = 20):
        self._repository_directory = repository_directory
        self._executable = executable
        self._log_count = log_count

    @property
    def repository_directory(self) -> str:
        return self._repository_directory

    @property
    def executable(self) -> str:
        return self._executable

    @property
    def log_count(self) -> int:
        return self._log_count

    def command(self, *args: str) -> ProcessTask:
        """Task running the backend executable with ``args`` in the repository."""
        return ProcessTask([self._executable, *args], cwd=self._repository_directory)

    def future(self, action: Action, *args: str) -> ActionFuture:
        return ActionFuture(action, self.command(*args))

    def run_sync(self, *args: str) -> ActionResult:
        """Run the backend executable and wait for it."""
        cmd = [self._executable, *args]
        logger.debug(f"Running (sync): {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=self._repository_directory,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            logger.error(f"Could not run {self._executable}: {e}")
            return ActionResult.err(str(e))

        if result.returncode == 0:
            return ActionResult.ok(result.stdout)
        return ActionResult.err(result.stderr)

    def version(self) -> ActionResult:
        """Version string of the backend executable."""
        return self.run_sync("--version")

    @abstractmethod
    def get_files_to_commit(self) -> list[Entry]:
        """
        List changed files.

        Returns:
            Entries for every changed file

        Raises:
            VersionControlError: if the status command fails
        """

    @abstractmethod
    def status(self) -> ActionFuture:
        pass

    @abstractmethod
    def log(self, count: int | None = None) -> ActionFuture:
        pass

    @abstractmethod
    def full_revision(self, target: str) -> ActionFuture:
        """Message and patch of a single revision."""

    @abstractmethod
    def current_diff_all(self) -> ActionFuture:
        """Uncommitted changes in the working copy."""

    @abstractmethod
    def current_diff_selected(self, entries: list[Entry]) -> ActionFuture:
        pass

    @abstractmethod
    def changes(self, target: str) -> ActionFuture:
        """Files changed by a revision."""

    @abstractmethod
    def diff(self, target: str) -> ActionFuture:
        """Full diff of a revision."""

    @abstractmethod
    def diff_selected(self, target: str, entries: list[Entry]) -> ActionFuture:
        """Diff of a revision restricted to the selected files."""

    @abstractmethod
    def commit_all(self, message: str) -> ActionFuture:
        pass

    @abstractmethod
    def commit_selected(self, message: str, entries: list[Entry]) -> ActionFuture:
        pass

    @abstractmethod
    def revert_all(self) -> ActionFuture:
        pass

    @abstractmethod
    def revert_selected(self, entries: list[Entry]) -> ActionFuture:
        pass

    @abstractmethod
    def update(self, target: str) -> ActionFuture:
        pass

    @abstractmethod
    def merge(self, target: str) -> ActionFuture:
        pass

    @abstractmethod
    def conflicts(self) -> ActionFuture:
        pass

    @abstractmethod
    def take_other(self) -> ActionFuture:
        pass

    @abstractmethod
    def take_local(self) -> ActionFuture:
        pass

    @abstractmethod
    def fetch(self) -> ActionFuture:
        pass

    @abstractmethod
    def pull(self) -> ActionFuture:
        pass

    @abstractmethod
    def push(self) -> ActionFuture:
        pass

    @abstractmethod
    def create_tag(self, name: str) -> ActionFuture:
        pass

    @abstractmethod
    def list_branches(self) -> ActionFuture:
        pass

    @abstractmethod
    def create_branch(self, name: str) -> ActionFuture:
        pass

    @abstractmethod
    def close_branch(self, name: str) -> ActionFuture:
        pass


def selected_filenames(entries: list[Entry]) -> list[str]:
    return [entry.filename for entry in entries if entry.selected]
