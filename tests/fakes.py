# tests/fakes.py

from __future__ import annotations

import threading
import time
from typing import Callable, TypeVar

from verco.core import ActionResult, Ready, Task
from verco.integrations import Entry, GitActions

T = TypeVar("T")


class ScriptedTask(Task[ActionResult]):
    """
    Leaf task that becomes ready after a fixed number of polls.

    Every poll is appended to ``log`` (when given) so tests can assert on
    the order in which a composite drives its children.
    """

    def __init__(
        self,
        result: ActionResult,
        polls_until_ready: int = 1,
        name: str = "",
        log: list[str] | None = None,
    ) -> None:
        self.result = result
        self.polls_until_ready = polls_until_ready
        self.name = name
        self.log = log
        self.polls = 0
        self.cancel_calls = 0

    def poll(self) -> Ready[ActionResult] | None:
        self.polls += 1
        if self.log is not None:
            self.log.append(self.name)
        if self.polls >= self.polls_until_ready:
            return Ready(self.result)
        return None

    def cancel(self) -> None:
        self.cancel_calls += 1


class BlockingTask(Task[ActionResult]):
    """Stays pending until ``release()`` is called from the test thread."""

    def __init__(self, result: ActionResult | None = None) -> None:
        self.result = result or ActionResult.ok("released")
        self._released = threading.Event()
        self.polls = 0
        self.cancel_calls = 0

    def release(self) -> None:
        self._released.set()

    def poll(self) -> Ready[ActionResult] | None:
        self.polls += 1
        if self._released.is_set():
            return Ready(self.result)
        return None

    def cancel(self) -> None:
        self.cancel_calls += 1


class ExplodingTask(Task[ActionResult]):
    """Raises from poll, which the worker treats as a broken invariant."""

    def poll(self) -> Ready[ActionResult] | None:
        raise RuntimeError("boom")

    def cancel(self) -> None:
        pass


class FakeGitActions(GitActions):
    """
    GitActions that never spawns anything.

    Each command becomes a ScriptedTask whose output is the joined argument
    list, so tests can see which command lines an action would run.
    """

    def __init__(self, repository_directory: str = "/repo", entries: list[Entry] | None = None) -> None:
        super().__init__(repository_directory)
        self.entries = entries if entries is not None else []

    def command(self, *args: str) -> ScriptedTask:
        return ScriptedTask(ActionResult.ok(" ".join(args)), polls_until_ready=2)

    def run_sync(self, *args: str) -> ActionResult:
        return ActionResult.ok("git version 0.0.fake")

    def get_files_to_commit(self) -> list[Entry]:
        return [Entry(e.filename, e.status, e.selected) for e in self.entries]


def run_to_completion(task: Task[T], timeout: float = 10.0) -> T:
    """Poll ``task`` on the current thread until it is ready."""
    deadline = time.monotonic() + timeout
    while True:
        ready = task.poll()
        if ready is not None:
            return ready.value
        if time.monotonic() > deadline:
            raise AssertionError("task did not finish in time")
        time.sleep(0.01)


def wait_for(drain: Callable[[], T | None], timeout: float = 10.0) -> T:
    """Call ``drain`` until it returns something other than None."""
    deadline = time.monotonic() + timeout
    while True:
        value = drain()
        if value is not None:
            return value
        if time.monotonic() > deadline:
            raise AssertionError("nothing arrived in time")
        time.sleep(0.01)


def wait_until(condition: Callable[[], bool], timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)
