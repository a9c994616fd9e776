"""Tests for the git and Mercurial backends and custom actions."""

from __future__ import annotations

import shutil
import subprocess

import pytest

from verco.config import CustomActionConfig, Settings, VersionControlType
from verco.core import Action, ParallelTasks, ProcessTask, SerialTasks
from verco.integrations import (
    CustomAction,
    Entry,
    GitActions,
    HgActions,
    VersionControlError,
    detect_version_control,
)
from verco.integrations.git_actions import parse_porcelain_status
from verco.integrations.hg_actions import parse_status

from .fakes import run_to_completion

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def argv(task) -> list[str]:
    assert isinstance(task, ProcessTask)
    return task.args


def child_argvs(task) -> list[list[str]]:
    return [argv(child) for child in task.tasks]


@pytest.fixture()
def git() -> GitActions:
    return GitActions("/repo", log_count=5)


@pytest.fixture()
def hg() -> HgActions:
    return HgActions("/repo", log_count=5)


# ── Git ──────────────────────────────────────────────────────

class TestGitActions:
    def test_command_runs_in_repository(self, git):
        task = git.command("status")
        assert task.args == ["git", "status"]
        assert task.cwd == "/repo"

    def test_custom_executable(self):
        task = GitActions("/repo", executable="/opt/bin/git").status().task
        assert argv(task)[0] == "/opt/bin/git"

    def test_status(self, git):
        future = git.status()
        assert future.action == Action.STATUS
        assert argv(future.task) == ["git", "status"]

    def test_log_uses_configured_count(self, git):
        args = argv(git.log().task)
        assert args[:2] == ["git", "log"]
        assert "--max-count=5" in args
        assert "--graph" in args

    def test_log_count_override(self, git):
        assert "--max-count=50" in argv(git.log(50).task)

    def test_revision_queries(self, git):
        assert argv(git.changes("HEAD~1").task) == ["git", "diff", "--name-status", "HEAD~1"]
        assert argv(git.diff("abc123").task) == ["git", "diff", "abc123"]

    def test_working_copy_diffs(self, git):
        future = git.current_diff_all()
        assert future.action == Action.CURRENT_DIFF_ALL
        assert argv(future.task) == ["git", "diff", "--color"]

        entries = [Entry("a.py", "M", selected=True), Entry("b.py", "M")]
        future = git.current_diff_selected(entries)
        assert future.action == Action.CURRENT_DIFF_SELECTED
        assert argv(future.task) == ["git", "diff", "--color", "--", "a.py"]

    def test_revision_diff_of_selected_files(self, git):
        entries = [Entry("a.py", "M"), Entry("b.py", "M", selected=True)]
        future = git.diff_selected("HEAD~2", entries)
        assert future.action == Action.REVISION_DIFF_SELECTED
        assert argv(future.task) == ["git", "diff", "HEAD~2", "--", "b.py"]

    def test_full_revision(self, git):
        future = git.full_revision("abc123")
        assert future.action == Action.CURRENT_FULL_REVISION
        assert argv(future.task) == ["git", "show", "--color", "abc123"]

    def test_commit_all_adds_then_commits(self, git):
        future = git.commit_all("fix typo")
        assert future.action == Action.COMMIT_ALL
        assert isinstance(future.task, SerialTasks)
        assert child_argvs(future.task) == [
            ["git", "add", "--all"],
            ["git", "commit", "-m", "fix typo"],
        ]

    def test_commit_selected_only_uses_selected_entries(self, git):
        entries = [
            Entry("a.py", "M", selected=True),
            Entry("b.py", "M", selected=False),
            Entry("c.py", "??", selected=True),
        ]
        future = git.commit_selected("msg", entries)
        assert future.action == Action.COMMIT_SELECTED
        assert child_argvs(future.task) == [
            ["git", "add", "--", "a.py", "c.py"],
            ["git", "commit", "-m", "msg", "--", "a.py", "c.py"],
        ]

    def test_revert_all(self, git):
        assert child_argvs(git.revert_all().task) == [
            ["git", "reset", "--hard"],
            ["git", "clean", "-d", "--force"],
        ]

    def test_revert_selected_runs_in_parallel(self, git):
        entries = [Entry("a.py", "M", selected=True), Entry("b.py", "M", selected=True)]
        future = git.revert_selected(entries)
        assert isinstance(future.task, ParallelTasks)
        assert child_argvs(future.task) == [
            ["git", "checkout", "HEAD", "--", "a.py"],
            ["git", "checkout", "HEAD", "--", "b.py"],
        ]

    def test_conflict_resolution(self, git):
        assert argv(git.conflicts().task) == ["git", "diff", "--name-only", "--diff-filter=U"]
        assert child_argvs(git.take_other().task) == [
            ["git", "checkout", "--theirs", "--", "."],
            ["git", "add", "--update"],
        ]
        assert child_argvs(git.take_local().task)[0] == ["git", "checkout", "--ours", "--", "."]
        assert git.take_other().action == Action.MERGE_TAKING_OTHER
        assert git.take_local().action == Action.MERGE_TAKING_LOCAL

    def test_remote_and_branch_commands(self, git):
        assert argv(git.update("main").task) == ["git", "checkout", "main"]
        assert argv(git.merge("topic").task) == ["git", "merge", "topic"]
        assert argv(git.fetch().task) == ["git", "fetch", "--all"]
        assert argv(git.pull().task) == ["git", "pull", "--all"]
        assert argv(git.push().task) == ["git", "push"]
        assert argv(git.create_tag("v1.0").task) == ["git", "tag", "v1.0"]
        assert argv(git.list_branches().task) == ["git", "branch", "--all", "--list"]
        assert argv(git.create_branch("topic").task) == ["git", "checkout", "-b", "topic"]
        assert argv(git.close_branch("topic").task) == ["git", "branch", "--delete", "topic"]

    def test_missing_executable_is_reported_not_raised(self, tmp_path):
        actions = GitActions(str(tmp_path), executable="verco-no-such-git")
        result = actions.version()
        assert result.success is False
        assert result.text


class TestParsePorcelainStatus:
    def test_statuses_and_renames(self):
        output = " M src/app.py\n?? new file.txt\nR  old.py -> new.py\nA  \"quoted name.py\"\n"
        entries = parse_porcelain_status(output)
        assert [(e.status, e.filename) for e in entries] == [
            ("M", "src/app.py"),
            ("??", "new file.txt"),
            ("R", "new.py"),
            ("A", "quoted name.py"),
        ]
        assert not any(e.selected for e in entries)

    def test_empty_output(self):
        assert parse_porcelain_status("") == []


# ── Mercurial ────────────────────────────────────────────────

class TestHgActions:
    def test_status_is_summary(self, hg):
        assert argv(hg.status().task) == ["hg", "summary"]

    def test_log(self, hg):
        args = argv(hg.log().task)
        assert args[:5] == ["hg", "log", "--graph", "--limit", "5"]

    def test_diffs(self, hg):
        entries = [Entry("a.py", "M", selected=True), Entry("b.py", "M")]
        assert argv(hg.current_diff_all().task) == ["hg", "diff"]
        assert argv(hg.current_diff_selected(entries).task) == ["hg", "diff", "a.py"]
        assert argv(hg.diff_selected("tip", entries).task) == ["hg", "diff", "--rev", "tip", "a.py"]

    def test_full_revision(self, hg):
        assert argv(hg.full_revision("42").task) == ["hg", "log", "--rev", "42", "--patch"]

    def test_commit_is_a_single_command(self, hg):
        assert argv(hg.commit_all("msg").task) == ["hg", "commit", "--addremove", "--message", "msg"]
        entries = [Entry("a.py", "M", selected=True), Entry("b.py", "M")]
        assert argv(hg.commit_selected("msg", entries).task) == [
            "hg", "commit", "--addremove", "--message", "msg", "a.py",
        ]

    def test_revert(self, hg):
        assert child_argvs(hg.revert_all().task) == [
            ["hg", "revert", "--all", "--no-backup"],
            ["hg", "purge"],
        ]
        entries = [Entry("a.py", "M", selected=True)]
        assert child_argvs(hg.revert_selected(entries).task) == [["hg", "revert", "--no-backup", "a.py"]]

    def test_conflict_resolution(self, hg):
        assert argv(hg.conflicts().task) == ["hg", "resolve", "--list"]
        assert argv(hg.take_other().task)[-1] == "internal:other"
        assert argv(hg.take_local().task)[-1] == "internal:local"

    def test_remote_commands(self, hg):
        assert argv(hg.fetch().task) == ["hg", "pull"]
        assert argv(hg.pull().task) == ["hg", "pull", "--update"]
        assert argv(hg.push().task) == ["hg", "push", "--new-branch"]

    def test_close_branch_updates_then_commits(self, hg):
        future = hg.close_branch("feature")
        assert future.action == Action.DELETE_BRANCH
        assert child_argvs(future.task) == [
            ["hg", "update", "feature"],
            ["hg", "commit", "--close-branch", "--message", "close branch feature"],
        ]


class TestParseHgStatus:
    def test_parse(self):
        entries = parse_status("M src/app.py\n? notes.txt\n\n")
        assert [(e.status, e.filename) for e in entries] == [("M", "src/app.py"), ("?", "notes.txt")]


# ── Detection and custom actions ─────────────────────────────

class TestDetectVersionControl:
    def test_git_directory(self, tmp_path):
        (tmp_path / ".git").mkdir()
        actions = detect_version_control(tmp_path, Settings(log_to_file=False))
        assert isinstance(actions, GitActions)
        assert actions.repository_directory == str(tmp_path.resolve())

    def test_hg_directory(self, tmp_path):
        (tmp_path / ".hg").mkdir()
        assert isinstance(detect_version_control(tmp_path, Settings(log_to_file=False)), HgActions)

    def test_plain_directory(self, tmp_path):
        assert detect_version_control(tmp_path, Settings(log_to_file=False)) is None

    def test_forced_backend_and_settings(self, tmp_path):
        settings = Settings(
            log_to_file=False,
            vcs=VersionControlType.HG,
            hg={"executable": "/usr/local/bin/hg", "log_count": 7},
        )
        actions = detect_version_control(tmp_path, settings)
        assert isinstance(actions, HgActions)
        assert actions.executable == "/usr/local/bin/hg"
        assert actions.log_count == 7


class TestCustomAction:
    def test_from_config(self, tmp_path):
        config = CustomActionConfig(shortcut="t", command="make", args=["test"])
        action = CustomAction.from_config(config)
        assert action.title == "make test"

        future = action.future(str(tmp_path))
        assert future.action == Action.CUSTOM_ACTION
        assert future.task.args == ["make", "test"]
        assert future.task.cwd == str(tmp_path)

    def test_description_is_the_title(self):
        action = CustomAction(shortcut="x", command="tox", description="run tox")
        assert action.title == "run tox"


# ── Against a real repository ────────────────────────────────

@pytest.fixture()
def git_repo(tmp_path):
    def run(*args):
        subprocess.run(["git", *args], cwd=tmp_path, check=True, capture_output=True)

    run("init")
    run("config", "user.email", "dev@example.com")
    run("config", "user.name", "Dev")
    run("config", "commit.gpgsign", "false")
    (tmp_path / "readme.txt").write_text("hello\n")
    return tmp_path


@requires_git
class TestRealGit:
    def test_files_to_commit(self, git_repo):
        actions = GitActions(str(git_repo))
        entries = actions.get_files_to_commit()
        assert [(e.status, e.filename) for e in entries] == [("??", "readme.txt")]

    def test_commit_all_then_log(self, git_repo):
        actions = GitActions(str(git_repo))

        result = run_to_completion(actions.commit_all("initial").task)
        assert result.success, result.text
        assert actions.get_files_to_commit() == []

        log = run_to_completion(actions.log().task)
        assert log.success
        assert "initial" in log.text

    def test_revert_selected(self, git_repo):
        actions = GitActions(str(git_repo))
        run_to_completion(actions.commit_all("initial").task)
        (git_repo / "readme.txt").write_text("changed\n")

        entries = actions.get_files_to_commit()
        for entry in entries:
            entry.selected = True
        result = run_to_completion(actions.revert_selected(entries).task)

        assert result.success, result.text
        assert (git_repo / "readme.txt").read_text() == "hello\n"

    def test_current_diff_shows_pending_edit(self, git_repo):
        actions = GitActions(str(git_repo))
        run_to_completion(actions.commit_all("initial").task)
        (git_repo / "readme.txt").write_text("changed\n")

        result = run_to_completion(actions.current_diff_all().task)

        assert result.success, result.text
        assert "changed" in result.text

    def test_failed_status_raises(self, tmp_path):
        actions = GitActions(str(tmp_path))
        with pytest.raises(VersionControlError):
            actions.get_files_to_commit()
