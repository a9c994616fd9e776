"""Git backend."""

from __future__ import annotations

from verco.core import Action, ActionFuture, action_aggregator, parallel, serial
from verco.integrations.base import (
    Entry,
    VersionControlActions,
    VersionControlError,
    selected_filenames,
)

LOG_FORMAT = "--format=%h %ad %<(12,trunc)%an%C(auto)%d%Creset %s"


def parse_porcelain_status(output: str) -> list[Entry]:
    """
    Parse ``git status --porcelain`` output into entries.

    Renames are reported under their new name.
    """
    entries = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        status = line[:2].strip()
        filename = line[3:]
        if " -> " in filename:
            filename = filename.split(" -> ", 1)[1]
        entries.append(Entry(filename=filename.strip('"'), status=status))
    return entries


class GitActions(VersionControlActions):
    """Builds git command lines for every action."""

    def __init__(self, repository_directory: str, executable: str = "git", log_count: int = 20):
        super().__init__(repository_directory, executable, log_count)

    def get_files_to_commit(self) -> list[Entry]:
        result = self.run_sync("status", "--porcelain", "--untracked-files=all")
        if not result.success:
            raise VersionControlError(result.text)
        return parse_porcelain_status(result.text)

    def status(self) -> ActionFuture:
        return self.future(Action.STATUS, "status")

    def log(self, count: int | None = None) -> ActionFuture:
        return self.future(
            Action.LOG,
            "log",
            "--all",
            "--decorate",
            "--graph",
            "--date=short",
            f"--max-count={count or self.log_count}",
            "--color",
            LOG_FORMAT,
        )

    def full_revision(self, target: str) -> ActionFuture:
        return self.future(Action.CURRENT_FULL_REVISION, "show", "--color", target)

    def current_diff_all(self) -> ActionFuture:
        return self.future(Action.CURRENT_DIFF_ALL, "diff", "--color")

    def current_diff_selected(self, entries: list[Entry]) -> ActionFuture:
        return self.future(
            Action.CURRENT_DIFF_SELECTED, "diff", "--color", "--", *selected_filenames(entries)
        )

    def changes(self, target: str) -> ActionFuture:
        return self.future(Action.REVISION_CHANGES, "diff", "--name-status", target)

    def diff(self, target: str) -> ActionFuture:
        return self.future(Action.REVISION_DIFF, "diff", target)

    def diff_selected(self, target: str, entries: list[Entry]) -> ActionFuture:
        return self.future(
            Action.REVISION_DIFF_SELECTED, "diff", target, "--", *selected_filenames(entries)
        )

    def commit_all(self, message: str) -> ActionFuture:
        task = serial(
            [
                self.command("add", "--all"),
                self.command("commit", "-m", message),
            ],
            action_aggregator,
        )
        return ActionFuture(Action.COMMIT_ALL, task)

    def commit_selected(self, message: str, entries: list[Entry]) -> ActionFuture:
        files = selected_filenames(entries)
        task = serial(
            [
                self.command("add", "--", *files),
                self.command("commit", "-m", message, "--", *files),
            ],
            action_aggregator,
        )
        return ActionFuture(Action.COMMIT_SELECTED, task)

    def revert_all(self) -> ActionFuture:
        task = serial(
            [
                self.command("reset", "--hard"),
                self.command("clean", "-d", "--force"),
            ],
            action_aggregator,
        )
        return ActionFuture(Action.REVERT_ALL, task)

    def revert_selected(self, entries: list[Entry]) -> ActionFuture:
        task = parallel(
            [self.command("checkout", "HEAD", "--", name) for name in selected_filenames(entries)],
            action_aggregator,
        )
        return ActionFuture(Action.REVERT_SELECTED, task)

    def update(self, target: str) -> ActionFuture:
        return self.future(Action.UPDATE, "checkout", target)

    def merge(self, target: str) -> ActionFuture:
        return self.future(Action.MERGE, "merge", target)

    def conflicts(self) -> ActionFuture:
        return self.future(
            Action.UNRESOLVED_CONFLICTS, "diff", "--name-only", "--diff-filter=U"
        )

    def take_other(self) -> ActionFuture:
        return self._resolve(Action.MERGE_TAKING_OTHER, "--theirs")

    def take_local(self) -> ActionFuture:
        return self._resolve(Action.MERGE_TAKING_LOCAL, "--ours")

    def _resolve(self, action: Action, side: str) -> ActionFuture:
        task = serial(
            [
                self.command("checkout", side, "--", "."),
                self.command("add", "--update"),
            ],
            action_aggregator,
        )
        return ActionFuture(action, task)

    def fetch(self) -> ActionFuture:
        return self.future(Action.FETCH, "fetch", "--all")

    def pull(self) -> ActionFuture:
        return self.future(Action.PULL, "pull", "--all")

    def push(self) -> ActionFuture:
        return self.future(Action.PUSH, "push")

    def create_tag(self, name: str) -> ActionFuture:
        return self.future(Action.NEW_TAG, "tag", name)

    def list_branches(self) -> ActionFuture:
        return self.future(Action.LIST_BRANCHES, "branch", "--all", "--list")

    def create_branch(self, name: str) -> ActionFuture:
        return self.future(Action.NEW_BRANCH, "checkout", "-b", name)

    def close_branch(self, name: str) -> ActionFuture:
        return self.future(Action.DELETE_BRANCH, "branch", "--delete", name)
