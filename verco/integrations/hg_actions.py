"""Mercurial backend."""

from __future__ import annotations

from verco.core import Action, ActionFuture, action_aggregator, parallel, serial
from verco.integrations.base import (
    Entry,
    VersionControlActions,
    VersionControlError,
    selected_filenames,
)

LOG_TEMPLATE = "{rev}:{node|short} {date|shortdate} {author|user}{if(tags, ' ({tags})')} {desc|firstline}\n"


def parse_status(output: str) -> list[Entry]:
    """Parse ``hg status`` output (``X path`` per line) into entries."""
    entries = []
    for line in output.splitlines():
        if len(line) < 3:
            continue
        entries.append(Entry(filename=line[2:], status=line[0]))
    return entries


class HgActions(VersionControlActions):
    """Builds Mercurial command lines for every action."""

    def __init__(self, repository_directory: str, executable: str = "hg", log_count: int = 20):
        super().__init__(repository_directory, executable, log_count)

    def get_files_to_commit(self) -> list[Entry]:
        result = self.run_sync("status")
        if not result.success:
            raise VersionControlError(result.text)
        return parse_status(result.text)

    def status(self) -> ActionFuture:
        return self.future(Action.STATUS, "summary")

    def log(self, count: int | None = None) -> ActionFuture:
        return self.future(
            Action.LOG,
            "log",
            "--graph",
            "--limit",
            str(count or self.log_count),
            "--template",
            LOG_TEMPLATE,
        )

    def full_revision(self, target: str) -> ActionFuture:
        return self.future(Action.CURRENT_FULL_REVISION, "log", "--rev", target, "--patch")

    def current_diff_all(self) -> ActionFuture:
        return self.future(Action.CURRENT_DIFF_ALL, "diff")

    def current_diff_selected(self, entries: list[Entry]) -> ActionFuture:
        return self.future(Action.CURRENT_DIFF_SELECTED, "diff", *selected_filenames(entries))

    def changes(self, target: str) -> ActionFuture:
        return self.future(Action.REVISION_CHANGES, "status", "--rev", target)

    def diff(self, target: str) -> ActionFuture:
        return self.future(Action.REVISION_DIFF, "diff", "--rev", target)

    def diff_selected(self, target: str, entries: list[Entry]) -> ActionFuture:
        return self.future(
            Action.REVISION_DIFF_SELECTED, "diff", "--rev", target, *selected_filenames(entries)
        )

    def commit_all(self, message: str) -> ActionFuture:
        return self.future(Action.COMMIT_ALL, "commit", "--addremove", "--message", message)

    def commit_selected(self, message: str, entries: list[Entry]) -> ActionFuture:
        files = selected_filenames(entries)
        return self.future(
            Action.COMMIT_SELECTED, "commit", "--addremove", "--message", message, *files
        )

    def revert_all(self) -> ActionFuture:
        task = serial(
            [
                self.command("revert", "--all", "--no-backup"),
                self.command("purge"),
            ],
            action_aggregator,
        )
        return ActionFuture(Action.REVERT_ALL, task)

    def revert_selected(self, entries: list[Entry]) -> ActionFuture:
        task = parallel(
            [self.command("revert", "--no-backup", name) for name in selected_filenames(entries)],
            action_aggregator,
        )
        return ActionFuture(Action.REVERT_SELECTED, task)

    def update(self, target: str) -> ActionFuture:
        return self.future(Action.UPDATE, "update", target)

    def merge(self, target: str) -> ActionFuture:
        return self.future(Action.MERGE, "merge", target)

    def conflicts(self) -> ActionFuture:
        return self.future(Action.UNRESOLVED_CONFLICTS, "resolve", "--list")

    def take_other(self) -> ActionFuture:
        return self.future(
            Action.MERGE_TAKING_OTHER, "resolve", "--all", "--tool", "internal:other"
        )

    def take_local(self) -> ActionFuture:
        return self.future(
            Action.MERGE_TAKING_LOCAL, "resolve", "--all", "--tool", "internal:local"
        )

    def fetch(self) -> ActionFuture:
        return self.future(Action.FETCH, "pull")

    def pull(self) -> ActionFuture:
        return self.future(Action.PULL, "pull", "--update")

    def push(self) -> ActionFuture:
        return self.future(Action.PUSH, "push", "--new-branch")

    def create_tag(self, name: str) -> ActionFuture:
        return self.future(Action.NEW_TAG, "tag", name)

    def list_branches(self) -> ActionFuture:
        return self.future(Action.LIST_BRANCHES, "branches")

    def create_branch(self, name: str) -> ActionFuture:
        return self.future(Action.NEW_BRANCH, "branch", name)

    def close_branch(self, name: str) -> ActionFuture:
        task = serial(
            [
                self.command("update", name),
                self.command("commit", "--close-branch", "--message", f"close branch {name}"),
            ],
            action_aggregator,
        )
        return ActionFuture(Action.DELETE_BRANCH, task)
